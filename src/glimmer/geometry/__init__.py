"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive, hit records and the Surface protocol

Ray-object intersection follows the pattern:
    record = surface.intersect(ray, t_min, t_max)   # HitRecord or None
"""

from .sphere import HitRecord, Sphere, Surface

__all__ = [
    "HitRecord",
    "Sphere",
    "Surface",
]
