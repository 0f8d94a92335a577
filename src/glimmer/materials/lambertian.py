"""Lambertian (ideal diffuse) material implementation.

A Lambertian surface scatters light uniformly about its normal. Sampling
``normal + random_unit_vector`` yields directions distributed proportionally
to ``cos(theta)``, so the estimator weight collapses to the albedo:

    attenuation = (BRDF * cos_theta) / pdf
                = (albedo / pi) * cos_theta / (cos_theta / pi)
                = albedo

Example:
    >>> import numpy as np
    >>> from glimmer.materials.lambertian import Lambertian
    >>> matte = Lambertian((0.8, 0.3, 0.3))
    >>> # result = matte.scatter(ray_in, hit, np.random.default_rng(0))
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

import numpy as np

from glimmer.core.ray import Ray, Vec3, near_zero, random_unit_vector
from glimmer.materials.material import MaterialType, ScatterResult, validate_albedo

if TYPE_CHECKING:
    from glimmer.geometry.sphere import HitRecord


@dataclass(frozen=True, eq=False)
class Lambertian:
    """Lambertian (ideal diffuse) material properties.

    Attributes:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
    """

    kind: ClassVar[MaterialType] = MaterialType.LAMBERTIAN

    albedo: Vec3 | Sequence[float]

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", validate_albedo(self.albedo))

    def scatter(
        self, ray_in: Ray, hit: HitRecord, rng: np.random.Generator
    ) -> ScatterResult:
        """Scatter diffusely about the hit normal.

        Always scatters. When the random unit vector nearly cancels the
        normal, the normal itself is used so the new direction is never
        degenerate.

        Args:
            ray_in: The incoming ray (unused; diffuse scattering forgets it).
            hit: The intersection being shaded.
            rng: Random generator owned by the calling worker.

        Returns:
            The scattered ray with attenuation equal to the albedo.
        """
        direction = hit.normal + random_unit_vector(rng)
        if near_zero(direction):
            direction = hit.normal
        return ScatterResult(self.albedo, Ray(hit.point, direction))
