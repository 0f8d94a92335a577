"""Shared pieces of the material model.

A material answers a single question for a ray that hit a surface: does the
light scatter, and if so along which new ray and with what per-channel
attenuation? ``None`` means the light was absorbed.

The set of materials is closed (Lambertian, Metal, Dielectric); each carries
a :class:`MaterialType` tag so that data-parallel backends can dispatch on an
integer instead of a Python class.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from enum import IntEnum
from typing import NamedTuple

from glimmer.core.ray import Ray, Vec3, as_vec3


class MaterialType(IntEnum):
    """Enumeration of supported material types."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


class ScatterResult(NamedTuple):
    """Outcome of a scattering event.

    Attributes:
        attenuation: Per-channel fraction of light carried by the new ray.
        scattered: The outgoing ray, starting at the hit point.
    """

    attenuation: Vec3
    scattered: Ray


def validate_albedo(albedo: Sequence[float] | Vec3) -> Vec3:
    """Convert and validate an albedo color.

    Raises:
        ValueError: If any component is outside [0, 1].
    """
    color = as_vec3(albedo)
    for i, component in enumerate(color):
        if not (0.0 <= component <= 1.0):
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )
    color.setflags(write=False)
    return color


def validate_fuzz(fuzz: float) -> float:
    """Validate a metal fuzz factor.

    Raises:
        ValueError: If fuzz is outside [0, 1].
    """
    fuzz = float(fuzz)
    if not (0.0 <= fuzz <= 1.0):
        raise ValueError(
            f"Fuzz = {fuzz} is outside [0, 1]. "
            "Fuzz must be between 0 (perfect mirror) and 1 (maximum fuzz)."
        )
    return fuzz


def validate_refractive_index(refractive_index: float) -> float:
    """Validate a dielectric refractive index.

    Raises:
        ValueError: If the index is not a finite positive number.
    """
    refractive_index = float(refractive_index)
    if not (refractive_index > 0.0 and math.isfinite(refractive_index)):
        raise ValueError(
            f"Refractive index = {refractive_index} must be a finite positive number."
        )
    return refractive_index
