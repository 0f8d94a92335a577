"""Unit tests for the material scatter models.

Tests cover:
- Parameter validation for each material
- Lambertian: always scatters, degenerate direction guard
- Metal: exact mirror reflection, fuzz, absorption below the surface
- Dielectric: pass-through at index 1, Snell refraction, total internal reflection
"""

import math

import numpy as np
import pytest


def make_hit(point=(0.0, 0.0, 0.0), normal=(0.0, 1.0, 0.0), t=1.0, front_face=True):
    from glimmer.core.ray import vec3
    from glimmer.geometry import HitRecord

    return HitRecord(point=vec3(*point), normal=vec3(*normal), t=t, front_face=front_face)


class FixedUniformRng:
    """Generator stand-in whose uniform() always returns the same sample."""

    def __init__(self, sample):
        self.sample = np.asarray(sample, dtype=np.float64)

    def uniform(self, low, high, size):
        return self.sample.copy()


class TestMaterialValidation:
    """Tests for material parameter validation."""

    def test_albedo_out_of_range(self):
        """Test albedo components must lie in [0, 1]."""
        from glimmer.materials import Lambertian, Metal

        with pytest.raises(ValueError, match="energy conservation"):
            Lambertian((1.2, 0.5, 0.5))
        with pytest.raises(ValueError):
            Metal((0.5, -0.1, 0.5))

    def test_albedo_wrong_length(self):
        """Test albedo needs three components."""
        from glimmer.materials import Lambertian

        with pytest.raises(ValueError):
            Lambertian((0.5, 0.5))

    def test_albedo_is_read_only(self):
        """Test the stored albedo cannot be mutated through the material."""
        from glimmer.materials import Lambertian

        material = Lambertian((0.5, 0.5, 0.5))
        with pytest.raises(ValueError):
            material.albedo[0] = 1.0

    @pytest.mark.parametrize("fuzz", [-0.1, 1.5])
    def test_fuzz_out_of_range(self, fuzz):
        """Test fuzz must lie in [0, 1]."""
        from glimmer.materials import Metal

        with pytest.raises(ValueError, match="Fuzz"):
            Metal((0.5, 0.5, 0.5), fuzz=fuzz)

    @pytest.mark.parametrize("index", [0.0, -1.5, math.inf])
    def test_refractive_index_invalid(self, index):
        """Test the refractive index must be finite and positive."""
        from glimmer.materials import Dielectric

        with pytest.raises(ValueError):
            Dielectric(index)

    def test_material_type_tags(self):
        """Test every material carries its dispatch tag."""
        from glimmer.materials import Dielectric, Lambertian, MaterialType, Metal

        assert Lambertian((0.1, 0.1, 0.1)).kind == MaterialType.LAMBERTIAN
        assert Metal((0.1, 0.1, 0.1)).kind == MaterialType.METAL
        assert Dielectric().kind == MaterialType.DIELECTRIC


class TestLambertian:
    """Tests for diffuse scattering."""

    def test_always_scatters(self, rng):
        """Test scatter never reports absorption."""
        from glimmer.core.ray import Ray, vec3
        from glimmer.materials import Lambertian

        material = Lambertian((0.8, 0.3, 0.3))
        ray = Ray(vec3(0.0, 1.0, 0.0), vec3(0.0, -1.0, 0.0))
        for _ in range(200):
            result = material.scatter(ray, make_hit(), rng)
            assert result is not None
            assert np.array_equal(result.attenuation, [0.8, 0.3, 0.3])

    def test_scattered_ray_leaves_hit_point_above_surface(self, rng):
        """Test scattered rays start at the hit point on the normal's side."""
        from glimmer.core.ray import Ray, vec3
        from glimmer.materials import Lambertian

        material = Lambertian((0.5, 0.5, 0.5))
        hit = make_hit(point=(1.0, 2.0, 3.0))
        ray = Ray(vec3(1.0, 3.0, 3.0), vec3(0.0, -1.0, 0.0))
        for _ in range(200):
            result = material.scatter(ray, hit, rng)
            assert np.array_equal(result.scattered.origin, [1.0, 2.0, 3.0])
            assert float(np.dot(result.scattered.direction, hit.normal)) >= 0.0

    def test_degenerate_direction_falls_back_to_normal(self):
        """Test a random vector cancelling the normal yields the normal."""
        from glimmer.core.ray import Ray, vec3
        from glimmer.materials import Lambertian

        material = Lambertian((0.5, 0.5, 0.5))
        # Unit vector (0, -1, 0) exactly cancels the normal (0, 1, 0)
        fixed = FixedUniformRng([0.0, -0.5, 0.0])
        ray = Ray(vec3(0.0, 1.0, 0.0), vec3(0.0, -1.0, 0.0))
        result = material.scatter(ray, make_hit(), fixed)
        assert np.array_equal(result.scattered.direction, [0.0, 1.0, 0.0])


class TestMetal:
    """Tests for specular reflection."""

    def test_perfect_mirror_reflection(self, rng):
        """Test fuzz=0 yields exactly the ideal reflection."""
        from glimmer.core.ray import Ray, normalize, reflect, vec3
        from glimmer.materials import Metal

        material = Metal((0.9, 0.9, 0.9), fuzz=0.0)
        direction = vec3(1.0, -2.0, 0.5)
        hit = make_hit()
        result = material.scatter(Ray(vec3(0.0, 4.0, 0.0), direction), hit, rng)

        assert result is not None
        expected = reflect(normalize(direction), hit.normal)
        assert np.array_equal(result.scattered.direction, expected)
        assert np.array_equal(result.attenuation, [0.9, 0.9, 0.9])

    def test_fuzz_perturbs_within_sphere(self, rng):
        """Test fuzzed reflections stay within fuzz of the ideal direction."""
        from glimmer.core.ray import Ray, length, normalize, reflect, vec3
        from glimmer.materials import Metal

        material = Metal((0.9, 0.9, 0.9), fuzz=0.3)
        direction = vec3(0.0, -1.0, 0.0)
        hit = make_hit()
        ideal = reflect(normalize(direction), hit.normal)
        for _ in range(200):
            result = material.scatter(Ray(vec3(0.0, 1.0, 0.0), direction), hit, rng)
            assert result is not None
            assert abs(length(result.scattered.direction - ideal) - 0.3) < 1e-12

    def test_absorbs_when_fuzz_points_below_surface(self):
        """Test a fuzzed direction into the surface is absorbed."""
        from glimmer.core.ray import Ray, vec3
        from glimmer.materials import Metal

        material = Metal((0.9, 0.9, 0.9), fuzz=1.0)
        # Grazing incidence; the fuzz vector (0, -1, 0) pushes below the surface
        direction = vec3(1.0, -0.01, 0.0)
        fixed = FixedUniformRng([0.0, -0.5, 0.0])
        result = material.scatter(Ray(vec3(0.0, 0.01, 0.0), direction), make_hit(), fixed)
        assert result is None

    def test_tangent_reflection_not_absorbed(self, rng):
        """Test a reflection lying in the tangent plane still scatters."""
        from glimmer.core.ray import Ray, vec3
        from glimmer.materials import Metal

        material = Metal((0.9, 0.9, 0.9))
        result = material.scatter(Ray(vec3(-1.0, 0.0, 0.0), vec3(1.0, 0.0, 0.0)), make_hit(), rng)
        assert result is not None


class TestDielectric:
    """Tests for refraction and total internal reflection."""

    @pytest.mark.parametrize("angle_degrees", [0.0, 15.0, 30.0, 45.0, 60.0, 75.0, 89.0])
    @pytest.mark.parametrize("front_face", [True, False])
    def test_index_one_passes_straight_through(self, rng, angle_degrees, front_face):
        """Test an index of 1 never bends the ray."""
        from glimmer.core.ray import Ray, normalize, vec3
        from glimmer.materials import Dielectric

        theta = math.radians(angle_degrees)
        direction = vec3(math.sin(theta), -math.cos(theta), 0.0) * 3.0
        hit = make_hit(front_face=front_face)
        result = Dielectric(1.0).scatter(Ray(vec3(0.0, 1.0, 0.0), direction), hit, rng)

        assert np.allclose(result.scattered.direction, normalize(direction), atol=1e-12)

    def test_attenuation_is_white(self, rng):
        """Test glass does not absorb."""
        from glimmer.core.ray import Ray, vec3
        from glimmer.materials import Dielectric

        result = Dielectric(1.5).scatter(
            Ray(vec3(0.0, 1.0, 0.0), vec3(0.3, -1.0, 0.0)), make_hit(), rng
        )
        assert np.array_equal(result.attenuation, [1.0, 1.0, 1.0])

    def test_refraction_bends_toward_normal_entering(self, rng):
        """Test entering glass bends the ray toward the normal."""
        from glimmer.core.ray import Ray, length, normalize, vec3
        from glimmer.materials import Dielectric

        direction = normalize(vec3(1.0, -1.0, 0.0))
        result = Dielectric(1.5).scatter(Ray(vec3(-1.0, 1.0, 0.0), direction), make_hit(), rng)

        scattered = result.scattered.direction
        sin_t = abs(scattered[0]) / length(scattered)
        assert abs(sin_t - math.sin(math.radians(45.0)) / 1.5) < 1e-12
        assert scattered[1] < 0.0

    def test_total_internal_reflection(self, rng):
        """Test a grazing ray leaving glass reflects back inside."""
        from glimmer.core.ray import Ray, normalize, reflect, vec3
        from glimmer.materials import Dielectric

        # Leaving the glass: the normal faces against the ray, front_face False
        direction = normalize(vec3(1.0, -0.2, 0.0))
        hit = make_hit(front_face=False)
        result = Dielectric(1.5).scatter(Ray(vec3(-1.0, 0.2, 0.0), direction), hit, rng)

        assert np.allclose(result.scattered.direction, reflect(direction, hit.normal))

    def test_refraction_ratio(self):
        """Test the ratio depends on the side of the surface."""
        from glimmer.materials import Dielectric

        glass = Dielectric(1.5)
        assert abs(glass.refraction_ratio(True) - 1.0 / 1.5) < 1e-15
        assert glass.refraction_ratio(False) == 1.5
