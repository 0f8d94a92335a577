"""Core rendering module.

Components:
    ray: Ray data structure, vector utilities and random samplers
    integrator: Radiance estimation (``ray_color``) and the per-pixel sampling loop
    kernel: Taichi data-parallel renderer sharding rows across threads

The host-side path (``integrator``) is a single deterministic pass driven by
an explicit NumPy generator. The kernel path renders the same image model in
parallel once Taichi has been initialized.
"""

from .ray import (
    Ray,
    Vec3,
    as_vec3,
    length,
    length_squared,
    near_zero,
    normalize,
    normalize_or_zero,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    reflect,
    refract,
    vec3,
)

# Note: integrator and kernel are NOT imported here to avoid circular imports
# (the integrator depends on camera and scene, which depend on this module).

__all__ = [
    "Ray",
    "Vec3",
    "vec3",
    "as_vec3",
    "length",
    "length_squared",
    "normalize",
    "normalize_or_zero",
    "near_zero",
    "reflect",
    "refract",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
]
