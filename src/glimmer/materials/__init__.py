"""Materials module for light scattering models.

Components:
    lambertian: Ideal diffuse reflection
    metal: Specular reflection with optional fuzz
    dielectric: Glass-like refraction with total internal reflection
    material: Shared scatter result, type tags and parameter validation

Each material is an immutable value exposing
``scatter(ray_in, hit, rng) -> ScatterResult | None``. Surfaces hold
materials by reference, so one instance may be shared by many spheres.
"""

from typing import Union

from .dielectric import Dielectric
from .lambertian import Lambertian
from .material import MaterialType, ScatterResult
from .metal import Metal

# Closed set of materials understood by every backend
Material = Union[Lambertian, Metal, Dielectric]

__all__ = [
    "Material",
    "MaterialType",
    "ScatterResult",
    "Lambertian",
    "Metal",
    "Dielectric",
]
