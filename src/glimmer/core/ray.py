"""Ray data structure and vector utilities for host-side ray tracing.

Vectors are plain NumPy ``float64`` arrays of shape ``(3,)``; they serve as
points, directions and RGB colors alike. Every random sampler takes an
explicit :class:`numpy.random.Generator` so that a render is reproducible
from its seed and safe to split across workers (one generator each).

Example:
    >>> import numpy as np
    >>> from glimmer.core.ray import Ray, vec3
    >>> ray = Ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0))
    >>> ray.at(5.0)
    array([ 0.,  0., -5.])
"""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np
import numpy.typing as npt

# Type alias for 3D vectors
Vec3 = npt.NDArray[np.float64]

# Components below this magnitude count as zero in degenerate-direction checks
NEAR_ZERO_EPSILON = 1e-8


def vec3(x: float, y: float, z: float) -> Vec3:
    """Create a 3-component float64 vector."""
    return np.array((x, y, z), dtype=np.float64)


def as_vec3(value: Sequence[float] | Vec3) -> Vec3:
    """Coerce a 3-sequence into a float64 vector.

    Args:
        value: Any sequence of three numbers, or an existing vector.

    Returns:
        A new float64 array of shape (3,).

    Raises:
        ValueError: If the value does not have exactly three components.
    """
    result = np.array(value, dtype=np.float64).reshape(-1)
    if result.shape != (3,):
        raise ValueError(f"Expected a 3-component vector, got shape {result.shape}")
    return result


class Ray:
    """A ray with an origin point and direction vector.

    The direction is not normalized; ``at(t)`` walks ``t`` direction-lengths
    from the origin.

    Attributes:
        origin: The starting point of the ray.
        direction: The direction vector of the ray.
    """

    __slots__ = ("origin", "direction")

    def __init__(self, origin: Vec3, direction: Vec3) -> None:
        self.origin = origin
        self.direction = direction

    def at(self, t: float) -> Vec3:
        """Compute the point ``origin + t * direction``."""
        return self.origin + t * self.direction

    def __repr__(self) -> str:
        return f"Ray(origin={self.origin.tolist()}, direction={self.direction.tolist()})"


# =============================================================================
# Vector Utility Functions
# =============================================================================


def length_squared(v: Vec3) -> float:
    """Squared Euclidean length of a vector."""
    return float(np.dot(v, v))


def length(v: Vec3) -> float:
    """Euclidean length of a vector."""
    return math.sqrt(length_squared(v))


def normalize(v: Vec3) -> Vec3:
    """Normalize a vector to unit length.

    Raises:
        ValueError: If the vector has zero length.
    """
    n = length(v)
    if n == 0.0:
        raise ValueError("Cannot normalize a zero-length vector")
    return v / n


def normalize_or_zero(v: Vec3) -> Vec3:
    """Normalize a vector, returning the zero vector for zero-length input."""
    n = length(v)
    if n == 0.0 or not math.isfinite(n):
        return np.zeros(3, dtype=np.float64)
    return v / n


def near_zero(v: Vec3) -> bool:
    """Check if every component of a vector is near zero."""
    return bool(np.all(np.abs(v) < NEAR_ZERO_EPSILON))


def reflect(incident: Vec3, normal: Vec3) -> Vec3:
    """Reflect an incident vector about a unit normal: ``d - 2(d.n)n``."""
    return incident - 2.0 * float(np.dot(incident, normal)) * normal


def refract(unit_direction: Vec3, normal: Vec3, eta_ratio: float) -> Vec3:
    """Refract a unit direction through a surface using Snell's law.

    The caller decides beforehand whether refraction is possible; the
    parallel component takes the magnitude of ``1 - |perp|^2`` so rounding
    near the critical angle never produces a NaN.

    Args:
        unit_direction: The incoming direction (unit length).
        normal: The surface normal facing against the incoming ray.
        eta_ratio: Ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        The refracted direction.
    """
    cos_theta = min(-float(np.dot(unit_direction, normal)), 1.0)
    perpendicular = eta_ratio * (unit_direction + cos_theta * normal)
    parallel = -math.sqrt(abs(1.0 - length_squared(perpendicular))) * normal
    return perpendicular + parallel


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


def random_in_unit_sphere(rng: np.random.Generator) -> Vec3:
    """Rejection-sample a point strictly inside the unit sphere.

    Points too close to the center are rejected as well so the result can
    always be normalized.
    """
    while True:
        p = rng.uniform(-1.0, 1.0, 3)
        lensq = float(np.dot(p, p))
        if 1e-160 < lensq < 1.0:
            return p


def random_unit_vector(rng: np.random.Generator) -> Vec3:
    """Generate a unit vector uniformly distributed on the sphere."""
    p = random_in_unit_sphere(rng)
    return p / math.sqrt(float(np.dot(p, p)))


def random_in_unit_disk(rng: np.random.Generator) -> Vec3:
    """Rejection-sample a point ``(x, y, 0)`` inside the unit disk."""
    while True:
        x, y = rng.uniform(-1.0, 1.0, 2)
        if x * x + y * y < 1.0:
            return vec3(x, y, 0.0)
