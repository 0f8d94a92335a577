"""Metal (specular reflective) material implementation.

Perfect metals (fuzz=0) produce mirror reflections; larger fuzz perturbs the
mirror direction by a random vector on the unit sphere scaled by ``fuzz``.

The reflection formula is:
    R = I - 2(I . N)N

A fuzzed direction pointing into the surface is absorbed. A small tolerance
(``ABSORPTION_TOLERANCE``) lets near-grazing reflections through instead of
darkening silhouettes.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

import numpy as np

from glimmer.core.ray import Ray, Vec3, normalize_or_zero, random_unit_vector, reflect
from glimmer.materials.material import (
    MaterialType,
    ScatterResult,
    validate_albedo,
    validate_fuzz,
)

if TYPE_CHECKING:
    from glimmer.geometry.sphere import HitRecord

# Scattered rays with dot(direction, normal) below -ABSORPTION_TOLERANCE are absorbed
ABSORPTION_TOLERANCE = 5e-6


@dataclass(frozen=True, eq=False)
class Metal:
    """Metal (specular reflective) material properties.

    Attributes:
        albedo: The reflective tint (RGB, each component in [0, 1]).
        fuzz: Surface fuzziness in [0, 1]. 0 = perfect mirror.
    """

    kind: ClassVar[MaterialType] = MaterialType.METAL

    albedo: Vec3 | Sequence[float]
    fuzz: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", validate_albedo(self.albedo))
        object.__setattr__(self, "fuzz", validate_fuzz(self.fuzz))

    def scatter(
        self, ray_in: Ray, hit: HitRecord, rng: np.random.Generator
    ) -> ScatterResult | None:
        """Reflect the incoming ray about the hit normal.

        Args:
            ray_in: The incoming ray.
            hit: The intersection being shaded.
            rng: Random generator owned by the calling worker.

        Returns:
            The reflected ray tinted by the albedo, or None if the fuzzed
            direction points into the surface.
        """
        reflected = reflect(normalize_or_zero(ray_in.direction), hit.normal)
        direction = reflected + self.fuzz * random_unit_vector(rng)
        if float(np.dot(direction, hit.normal)) < -ABSORPTION_TOLERANCE:
            return None
        return ScatterResult(self.albedo, Ray(hit.point, direction))
