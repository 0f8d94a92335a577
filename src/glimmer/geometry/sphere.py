"""Sphere primitive and the surface intersection protocol.

Every surface answers one question: does this ray hit me for some parameter
``t`` in ``(t_min, t_max]``, and if so where, with which normal and from which
side? The lower bound is exclusive so that a ray leaving a surface never
re-hits it at ``t == t_min``.

A sphere with a negative radius keeps its geometry but flips its outward
normal, which is how hollow shells (a glass bubble inside a glass ball) are
modelled.

Example:
    >>> from glimmer.core.ray import Ray, vec3
    >>> from glimmer.geometry.sphere import Sphere
    >>> from glimmer.materials import Lambertian
    >>> sphere = Sphere((0.0, 0.0, -1.0), 0.5, Lambertian((0.5, 0.5, 0.5)))
    >>> rec = sphere.intersect(Ray(vec3(0, 0, 0), vec3(0, 0, -1)), 0.001, float("inf"))
    >>> rec.t
    0.5
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import numpy as np

from glimmer.core.ray import Ray, Vec3, as_vec3

if TYPE_CHECKING:
    from glimmer.materials import Material


@dataclass(frozen=True, eq=False)
class HitRecord:
    """Record of a ray-surface intersection.

    Attributes:
        point: The 3D point where the ray met the surface.
        normal: The unit surface normal, always facing against the ray.
        t: The ray parameter of the intersection.
        front_face: True if the ray hit the outward-normal side.
    """

    point: Vec3
    normal: Vec3
    t: float
    front_face: bool

    @property
    def outward_normal(self) -> Vec3:
        """The geometric normal, ``(point - center) / radius``, whatever side was hit."""
        return self.normal if self.front_face else -self.normal


@runtime_checkable
class Surface(Protocol):
    """Capability shared by everything that can be placed in a scene."""

    @property
    def material(self) -> Material: ...

    def intersect(self, ray: Ray, t_min: float, t_max: float) -> HitRecord | None:
        """Return the nearest hit with ``t_min < t <= t_max``, or None."""
        ...


@dataclass(frozen=True, eq=False)
class Sphere:
    """A sphere defined by center point, radius and material.

    Attributes:
        center: The center point of the sphere.
        radius: The radius. Negative values describe an inward-facing shell.
        material: The material shared with any other surface using it.
    """

    center: Vec3
    radius: float
    material: Material = field(repr=False)

    def __post_init__(self) -> None:
        radius = float(self.radius)
        if radius == 0.0 or not math.isfinite(radius):
            raise ValueError(f"Sphere radius must be finite and non-zero, got {radius}")
        # Frozen dataclass: normalize inputs in place
        object.__setattr__(self, "center", as_vec3(self.center))
        object.__setattr__(self, "radius", radius)

    def intersect(self, ray: Ray, t_min: float, t_max: float) -> HitRecord | None:
        """Test for ray-sphere intersection.

        Solves ``|origin + t*direction - center|^2 = radius^2`` in its
        half-b form::

            a      = |direction|^2
            half_b = dot(oc, direction)      oc = origin - center
            c      = |oc|^2 - radius^2
            disc   = half_b^2 - a*c

        and accepts the smaller root lying in ``(t_min, t_max]``, falling back
        to the larger one.

        Args:
            ray: The ray to test (direction need not be normalized).
            t_min: Exclusive lower bound on the hit parameter.
            t_max: Inclusive upper bound on the hit parameter.

        Returns:
            A HitRecord for the nearest valid root, or None on a miss.
        """
        direction = ray.direction
        oc = ray.origin - self.center
        a = float(np.dot(direction, direction))
        if a == 0.0:
            return None
        half_b = float(np.dot(oc, direction))
        c = float(np.dot(oc, oc)) - self.radius * self.radius

        discriminant = half_b * half_b - a * c
        if discriminant < 0.0:
            return None
        sqrt_d = math.sqrt(discriminant)

        root = (-half_b - sqrt_d) / a
        if not (t_min < root <= t_max):
            root = (-half_b + sqrt_d) / a
            if not (t_min < root <= t_max):
                return None

        point = ray.at(root)
        outward_normal = (point - self.center) / self.radius
        front_face = float(np.dot(direction, outward_normal)) < 0.0
        return HitRecord(
            point=point,
            normal=outward_normal if front_face else -outward_normal,
            t=root,
            front_face=front_face,
        )
