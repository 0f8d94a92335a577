"""Dielectric (glass/water) material implementation.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Total internal reflection when (n1 / n2) * sin(theta1) > 1

The ray refracts whenever Snell's law allows it and reflects otherwise.
Glass does not absorb in this model, so the attenuation is white.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

import numpy as np

from glimmer.core.ray import Ray, normalize_or_zero, reflect, refract
from glimmer.materials.material import (
    MaterialType,
    ScatterResult,
    validate_refractive_index,
)

if TYPE_CHECKING:
    from glimmer.geometry.sphere import HitRecord

_WHITE = np.ones(3, dtype=np.float64)
_WHITE.setflags(write=False)


@dataclass(frozen=True, eq=False)
class Dielectric:
    """Dielectric (glass/water) material properties.

    Attributes:
        refractive_index: Index of refraction. Common values:
            - Air: 1.0
            - Water: 1.33
            - Glass: 1.5
            - Diamond: 2.4
    """

    kind: ClassVar[MaterialType] = MaterialType.DIELECTRIC

    refractive_index: float = 1.5

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "refractive_index", validate_refractive_index(self.refractive_index)
        )

    def refraction_ratio(self, front_face: bool) -> float:
        """Ratio n_incident / n_transmitted for a ray entering or leaving."""
        return 1.0 / self.refractive_index if front_face else self.refractive_index

    def scatter(
        self, ray_in: Ray, hit: HitRecord, rng: np.random.Generator
    ) -> ScatterResult:
        """Refract through the surface, or reflect on total internal reflection.

        Args:
            ray_in: The incoming ray.
            hit: The intersection being shaded (front_face selects the ratio).
            rng: Unused; dielectric scattering is deterministic here.

        Returns:
            The reflected or refracted ray with white attenuation.
        """
        ratio = self.refraction_ratio(hit.front_face)
        unit_direction = normalize_or_zero(ray_in.direction)
        cos_theta = min(-float(np.dot(unit_direction, hit.normal)), 1.0)
        sin_theta = math.sqrt(max(0.0, 1.0 - cos_theta * cos_theta))

        if ratio * sin_theta > 1.0:
            direction = reflect(unit_direction, hit.normal)
        else:
            direction = refract(unit_direction, hit.normal, ratio)

        return ScatterResult(_WHITE, Ray(hit.point, direction))
