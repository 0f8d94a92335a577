"""Ready-made scenes with matching cameras.

Each factory returns a ``(Scene, ThinLensCamera)`` pair for a requested image
width. All three scenes share the same layout conventions:
    - a huge sphere of radius 100 or 1000 acts as the ground
    - the camera looks down -z (or toward the origin) with +y up
    - materials are shared between spheres where colors repeat

Example:
    >>> from glimmer.scene.presets import material_showcase
    >>> scene, camera = material_showcase(image_width=400)
    >>> len(scene), camera.image_height
    (5, 225)
"""

from __future__ import annotations

from collections.abc import Callable

import numpy as np

from glimmer.camera.thin_lens import ThinLensCamera
from glimmer.core.ray import length, vec3
from glimmer.geometry.sphere import Sphere
from glimmer.materials import Dielectric, Lambertian, Material, Metal
from glimmer.scene.world import Scene

# Widescreen aspect used by every preset
DEFAULT_ASPECT_RATIO = 16.0 / 9.0
DEFAULT_IMAGE_WIDTH = 600


def _forward_camera(image_width: int, aspect_ratio: float) -> ThinLensCamera:
    """Pinhole camera at the origin looking down -z with a 90 degree FOV."""
    return ThinLensCamera(
        look_from=(0.0, 0.0, 0.0),
        look_at=(0.0, 0.0, -1.0),
        up=(0.0, 1.0, 0.0),
        image_width=image_width,
        vertical_fov=90.0,
        aspect_ratio=aspect_ratio,
        focus_distance=1.0,
    )


def two_spheres(
    image_width: int = DEFAULT_IMAGE_WIDTH,
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[Scene, ThinLensCamera]:
    """A diffuse sphere resting on a diffuse ground sphere.

    Args:
        image_width: Output width in pixels.
        aspect_ratio: Output width / height.

    Returns:
        Tuple of (scene, camera).
    """
    grey = Lambertian((0.5, 0.5, 0.5))
    scene = Scene(
        [
            Sphere((0.0, 0.0, -1.0), 0.5, grey),
            Sphere((0.0, -100.5, -1.0), 100.0, grey),
        ]
    )
    return scene, _forward_camera(image_width, aspect_ratio)


def material_showcase(
    image_width: int = DEFAULT_IMAGE_WIDTH,
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[Scene, ThinLensCamera]:
    """One sphere of each material side by side.

    The left sphere is a hollow glass bubble: an outer glass sphere with a
    slightly smaller negative-radius glass sphere inside it, whose inward
    normals flip the refraction at the inner wall.

    Args:
        image_width: Output width in pixels.
        aspect_ratio: Output width / height.

    Returns:
        Tuple of (scene, camera).
    """
    ground = Lambertian((0.8, 0.8, 0.0))
    center = Lambertian((0.1, 0.2, 0.5))
    glass = Dielectric(1.5)
    gold = Metal((0.8, 0.6, 0.2), fuzz=0.0)

    scene = Scene(
        [
            Sphere((0.0, -100.5, -1.0), 100.0, ground),
            Sphere((0.0, 0.0, -1.0), 0.5, center),
            Sphere((-1.0, 0.0, -1.0), 0.5, glass),
            Sphere((-1.0, 0.0, -1.0), -0.4, glass),
            Sphere((1.0, 0.0, -1.0), 0.5, gold),
        ]
    )
    return scene, _forward_camera(image_width, aspect_ratio)


def random_spheres(
    rng: np.random.Generator,
    image_width: int = DEFAULT_IMAGE_WIDTH,
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[Scene, ThinLensCamera]:
    """A field of small random spheres around three large feature spheres.

    Small spheres sit on a 22 x 22 grid with random jitter. Each picks a
    material at random: 80% diffuse, 15% metal, 5% glass. Spheres that would
    overlap the metal feature sphere are skipped. The camera uses a shallow
    depth of field focused 10 units away.

    Args:
        rng: Random generator used for placement and colors.
        image_width: Output width in pixels.
        aspect_ratio: Output width / height.

    Returns:
        Tuple of (scene, camera).
    """
    glass = Dielectric(1.5)
    spheres = [Sphere((0.0, -1000.0, 0.0), 1000.0, Lambertian((0.5, 0.5, 0.5)))]

    keep_clear = vec3(4.0, 0.2, 0.0)
    for a in range(-11, 11):
        for b in range(-11, 11):
            choose_material = rng.random()
            center = vec3(a + 0.9 * rng.random(), 0.2, b + 0.9 * rng.random())
            if length(center - keep_clear) <= 0.9:
                continue

            material: Material
            if choose_material < 0.8:
                material = Lambertian(rng.random(3) * rng.random(3))
            elif choose_material < 0.95:
                material = Metal(rng.uniform(0.5, 1.0, 3), fuzz=rng.uniform(0.0, 0.5))
            else:
                material = glass
            spheres.append(Sphere(center, 0.2, material))

    spheres.append(Sphere((0.0, 1.0, 0.0), 1.0, glass))
    spheres.append(Sphere((-4.0, 1.0, 0.0), 1.0, Lambertian((0.4, 0.2, 0.1))))
    spheres.append(Sphere((4.0, 1.0, 0.0), 1.0, Metal((0.7, 0.6, 0.5), fuzz=0.0)))

    camera = ThinLensCamera(
        look_from=(13.0, 2.0, 3.0),
        look_at=(0.0, 0.0, 0.0),
        up=(0.0, 1.0, 0.0),
        image_width=image_width,
        vertical_fov=20.0,
        aspect_ratio=aspect_ratio,
        defocus_angle=0.6,
        focus_distance=10.0,
    )
    return Scene(spheres), camera


# Name -> factory, for the command line. Factories take (rng, width, aspect).
PRESETS: dict[str, Callable[[np.random.Generator, int, float], tuple[Scene, ThinLensCamera]]] = {
    "two-spheres": lambda rng, width, aspect: two_spheres(width, aspect),
    "showcase": lambda rng, width, aspect: material_showcase(width, aspect),
    "random": random_spheres,
}


def build_preset(
    name: str,
    rng: np.random.Generator,
    image_width: int = DEFAULT_IMAGE_WIDTH,
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[Scene, ThinLensCamera]:
    """Build a preset scene by name.

    Raises:
        ValueError: If the name is not one of :data:`PRESETS`.
    """
    try:
        factory = PRESETS[name]
    except KeyError:
        raise ValueError(f"Unknown scene {name!r}; expected one of {sorted(PRESETS)}") from None
    return factory(rng, image_width, aspect_ratio)
