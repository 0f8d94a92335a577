"""Scene container and nearest-hit ray queries.

A scene is an ordered, immutable collection of surfaces. Queries scan every
surface (no acceleration structure) and keep the hit with the smallest ``t``;
the answer never depends on the order in which surfaces were added.

Example:
    >>> from glimmer.core.ray import Ray, vec3
    >>> from glimmer.geometry import Sphere
    >>> from glimmer.materials import Lambertian
    >>> from glimmer.scene.world import Scene
    >>> grey = Lambertian((0.5, 0.5, 0.5))
    >>> scene = Scene([Sphere((0, 0, -1), 0.5, grey), Sphere((0, -100.5, -1), 100, grey)])
    >>> hit = scene.find_nearest_hit(Ray(vec3(0, 0, 0), vec3(0, 0, -1)), 0.001, float("inf"))
    >>> hit.record.t
    0.5
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING, NamedTuple

from glimmer.core.ray import Ray
from glimmer.geometry.sphere import HitRecord, Surface

if TYPE_CHECKING:
    from glimmer.materials import Material


class SceneHit(NamedTuple):
    """Record of a ray-scene intersection with the surface that was hit.

    Attributes:
        record: Geometric hit data (point, normal, t, front_face).
        surface: The hit surface; supplies the material for shading.
    """

    record: HitRecord
    surface: Surface

    @property
    def material(self) -> Material:
        return self.surface.material


class Scene:
    """An ordered, read-only collection of surfaces.

    Args:
        surfaces: The surfaces to render, in any order.
    """

    __slots__ = ("_surfaces",)

    def __init__(self, surfaces: Iterable[Surface] = ()) -> None:
        self._surfaces: tuple[Surface, ...] = tuple(surfaces)

    @property
    def surfaces(self) -> tuple[Surface, ...]:
        return self._surfaces

    def __len__(self) -> int:
        return len(self._surfaces)

    def __iter__(self) -> Iterator[Surface]:
        return iter(self._surfaces)

    def find_nearest_hit(self, ray: Ray, t_min: float, t_max: float) -> SceneHit | None:
        """Test a ray against every surface and return the closest hit.

        Each successful hit shrinks the search interval to ``(t_min, t]``, so
        later surfaces only report hits that are at least as close.

        Args:
            ray: The ray to trace.
            t_min: Exclusive lower bound on the hit parameter.
            t_max: Inclusive upper bound on the hit parameter.

        Returns:
            The nearest SceneHit, or None if the ray escapes.
        """
        closest: SceneHit | None = None
        closest_t = t_max
        for surface in self._surfaces:
            record = surface.intersect(ray, t_min, closest_t)
            if record is not None and (closest is None or record.t < closest_t):
                closest_t = record.t
                closest = SceneHit(record, surface)
        return closest

    def materials(self) -> list[Material]:
        """Distinct materials in first-use order (shared instances counted once)."""
        seen: dict[int, Material] = {}
        for surface in self._surfaces:
            seen.setdefault(id(surface.material), surface.material)
        return list(seen.values())

    def __repr__(self) -> str:
        return f"Scene(surfaces={len(self._surfaces)})"
