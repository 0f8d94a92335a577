"""Thin-lens camera model for perspective ray generation with depth of field.

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from look_at toward look_from (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport sits at ``focus_distance`` in front of the camera, so everything
on that plane is in perfect focus. Rays start on a disk of radius
``focus_distance * tan(defocus_angle / 2)`` around ``look_from``; a defocus
angle of zero degenerates to a pinhole.

Pixel (0, 0) is the upper-left corner of the image and the row index grows
downward, matching the order in which pixels are emitted to image sinks.

Example:
    >>> import numpy as np
    >>> from glimmer.camera.thin_lens import ThinLensCamera
    >>> camera = ThinLensCamera(
    ...     look_from=(0.0, 0.0, 0.0),
    ...     look_at=(0.0, 0.0, -1.0),
    ...     up=(0.0, 1.0, 0.0),
    ...     image_width=400,
    ...     vertical_fov=90.0,
    ...     aspect_ratio=16.0 / 9.0,
    ... )
    >>> camera.image_height
    225
    >>> ray = camera.generate_ray(200, 112, np.random.default_rng(7))
"""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

from glimmer.core.ray import Ray, Vec3, as_vec3, length, random_in_unit_disk


def _frozen(v: Vec3) -> Vec3:
    v.setflags(write=False)
    return v


class ThinLensCamera:
    """Immutable camera turning pixel coordinates into world-space rays.

    All derived quantities (basis, viewport, pixel deltas, defocus disk) are
    computed once in the constructor and exposed read-only.

    Attributes:
        image_width: Image width in pixels.
        image_height: Image height in pixels, ``max(1, round(width / aspect))``.
        look_from: Camera position (center of the lens).
        defocus_angle: Cone apex angle in degrees; <= 0 disables depth of field.
    """

    def __init__(
        self,
        look_from: Sequence[float] | Vec3,
        look_at: Sequence[float] | Vec3,
        up: Sequence[float] | Vec3,
        image_width: int,
        vertical_fov: float,
        aspect_ratio: float,
        defocus_angle: float = 0.0,
        focus_distance: float = 1.0,
    ) -> None:
        """Validate the view parameters and derive the camera frame.

        Args:
            look_from: Camera position in world space.
            look_at: Point the camera is looking at.
            up: Approximate up direction (must not be parallel to the view).
            image_width: Image width in pixels (> 0).
            vertical_fov: Vertical field of view in degrees, in (0, 180).
            aspect_ratio: Requested width / height (> 0).
            defocus_angle: Defocus cone angle in degrees (>= 0).
            focus_distance: Distance to the plane of perfect focus (> 0).

        Raises:
            ValueError: If any parameter is out of range or the view basis
                is degenerate.
        """
        if isinstance(image_width, bool) or int(image_width) != image_width or image_width <= 0:
            raise ValueError(f"Image width must be a positive integer, got {image_width!r}")
        if not (0.0 < vertical_fov < 180.0):
            raise ValueError(f"Vertical FOV must be in (0, 180) degrees, got {vertical_fov}")
        if not (aspect_ratio > 0.0 and math.isfinite(aspect_ratio)):
            raise ValueError(f"Aspect ratio must be a finite positive number, got {aspect_ratio}")
        if not (focus_distance > 0.0 and math.isfinite(focus_distance)):
            raise ValueError(f"Focus distance must be positive, got {focus_distance}")
        if not (0.0 <= defocus_angle < 180.0):
            raise ValueError(f"Defocus angle must be in [0, 180) degrees, got {defocus_angle}")

        self._look_from = _frozen(as_vec3(look_from))
        look_at_vec = as_vec3(look_at)
        up_vec = as_vec3(up)
        named = (("look_from", self._look_from), ("look_at", look_at_vec), ("up", up_vec))
        for name, value in named:
            if not np.all(np.isfinite(value)):
                raise ValueError(f"{name} must have finite components, got {value.tolist()}")

        self._image_width = int(image_width)
        self._image_height = max(1, round(self._image_width / aspect_ratio))
        self._vertical_fov = float(vertical_fov)
        self._defocus_angle = float(defocus_angle)
        self._focus_distance = float(focus_distance)

        # Viewport dimensions on the focus plane
        half_height = math.tan(math.radians(self._vertical_fov) / 2.0)
        self._viewport_height = 2.0 * half_height * self._focus_distance
        self._viewport_width = self._viewport_height * (self._image_width / self._image_height)

        # w points from look_at toward look_from (backward)
        view = self._look_from - look_at_vec
        view_length = length(view)
        if view_length == 0.0:
            raise ValueError("look_from and look_at must be distinct points")
        w = view / view_length

        # u points right, v points up in the camera's frame
        right = np.cross(up_vec, w)
        right_length = length(right)
        if right_length < 1e-12:
            raise ValueError("Up vector must not be zero or parallel to the view direction")
        u = right / right_length
        v = np.cross(w, u)
        self._u, self._v, self._w = _frozen(u), _frozen(v), _frozen(w)

        # Vectors across the viewport; viewport_v runs down so row j grows downward
        viewport_u = self._viewport_width * u
        viewport_v = -self._viewport_height * v
        self._pixel_delta_u = _frozen(viewport_u / self._image_width)
        self._pixel_delta_v = _frozen(viewport_v / self._image_height)

        viewport_upper_left = (
            self._look_from - self._focus_distance * w - viewport_u / 2.0 - viewport_v / 2.0
        )
        self._pixel00_location = _frozen(
            viewport_upper_left + 0.5 * (self._pixel_delta_u + self._pixel_delta_v)
        )

        # Defocus disk basis
        defocus_radius = self._focus_distance * math.tan(math.radians(self._defocus_angle / 2.0))
        self._defocus_disk_u = _frozen(u * defocus_radius)
        self._defocus_disk_v = _frozen(v * defocus_radius)

    # -------------------------------------------------------------------------
    # Read-only state
    # -------------------------------------------------------------------------

    @property
    def image_width(self) -> int:
        return self._image_width

    @property
    def image_height(self) -> int:
        return self._image_height

    @property
    def aspect_ratio(self) -> float:
        """The realized aspect ratio, width / height after rounding."""
        return self._image_width / self._image_height

    @property
    def vertical_fov(self) -> float:
        return self._vertical_fov

    @property
    def defocus_angle(self) -> float:
        return self._defocus_angle

    @property
    def focus_distance(self) -> float:
        return self._focus_distance

    @property
    def viewport_width(self) -> float:
        return self._viewport_width

    @property
    def viewport_height(self) -> float:
        return self._viewport_height

    @property
    def look_from(self) -> Vec3:
        return self._look_from

    @property
    def basis(self) -> tuple[Vec3, Vec3, Vec3]:
        """The (u, v, w) orthonormal camera basis."""
        return self._u, self._v, self._w

    @property
    def pixel_delta_u(self) -> Vec3:
        return self._pixel_delta_u

    @property
    def pixel_delta_v(self) -> Vec3:
        return self._pixel_delta_v

    @property
    def pixel00_location(self) -> Vec3:
        return self._pixel00_location

    @property
    def defocus_disk_u(self) -> Vec3:
        return self._defocus_disk_u

    @property
    def defocus_disk_v(self) -> Vec3:
        return self._defocus_disk_v

    # -------------------------------------------------------------------------
    # Ray generation
    # -------------------------------------------------------------------------

    def pixel_center(self, i: int, j: int) -> Vec3:
        """World-space center of pixel (i, j) on the focus plane."""
        return self._pixel00_location + i * self._pixel_delta_u + j * self._pixel_delta_v

    def center_ray(self, i: int, j: int) -> Ray:
        """The un-jittered pinhole ray through the center of pixel (i, j)."""
        return Ray(self._look_from, self.pixel_center(i, j) - self._look_from)

    def defocus_disk_sample(self, rng: np.random.Generator) -> Vec3:
        """Uniformly sample a ray origin on the defocus disk."""
        p = random_in_unit_disk(rng)
        return self._look_from + p[0] * self._defocus_disk_u + p[1] * self._defocus_disk_v

    def generate_ray(self, i: int, j: int, rng: np.random.Generator) -> Ray:
        """Generate a jittered camera ray for pixel (i, j).

        The sample point is displaced uniformly within the pixel footprint
        (offsets in [-0.5, 0.5] along each pixel delta) for antialiasing, and
        the origin is drawn from the defocus disk when depth of field is on.
        Each call re-draws both.

        Args:
            i: Pixel column (0 = left).
            j: Pixel row (0 = top).
            rng: Random generator owned by the calling worker.

        Returns:
            A Ray from the lens toward the jittered sample on the focus plane.
        """
        offset_u, offset_v = rng.random(2) - 0.5
        pixel_sample = (
            self.pixel_center(i, j)
            + offset_u * self._pixel_delta_u
            + offset_v * self._pixel_delta_v
        )
        if self._defocus_angle <= 0.0:
            origin = self._look_from
        else:
            origin = self.defocus_disk_sample(rng)
        return Ray(origin, pixel_sample - origin)

    # -------------------------------------------------------------------------
    # Utility Functions
    # -------------------------------------------------------------------------

    def describe(self) -> dict[str, tuple[float, float, float]]:
        """Get the derived camera vectors for debugging.

        Returns:
            Dictionary with origin, u, v, w, pixel deltas, pixel00 and the
            defocus disk vectors as plain float tuples.
        """
        vectors = {
            "origin": self._look_from,
            "u": self._u,
            "v": self._v,
            "w": self._w,
            "pixel_delta_u": self._pixel_delta_u,
            "pixel_delta_v": self._pixel_delta_v,
            "pixel00": self._pixel00_location,
            "defocus_disk_u": self._defocus_disk_u,
            "defocus_disk_v": self._defocus_disk_v,
        }
        return {name: (float(v[0]), float(v[1]), float(v[2])) for name, v in vectors.items()}

    def __repr__(self) -> str:
        return (
            f"ThinLensCamera(width={self._image_width}, height={self._image_height}, "
            f"vfov={self._vertical_fov}, defocus_angle={self._defocus_angle}, "
            f"focus_distance={self._focus_distance})"
        )
