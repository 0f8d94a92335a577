"""Unit tests for the scene container and preset scenes.

Tests cover:
- Nearest-hit selection independent of surface order
- Interval handling and misses
- Material deduplication
- Preset scene construction
"""

import math
from itertools import permutations

import numpy as np
import pytest


class TestNearestHit:
    """Tests for Scene.find_nearest_hit."""

    def _spheres(self, grey):
        from glimmer.geometry import Sphere
        from glimmer.materials import Metal

        near = Sphere((0.0, 0.0, -2.0), 0.5, grey)
        middle = Sphere((0.0, 0.0, -4.0), 0.5, Metal((0.5, 0.5, 0.5)))
        far = Sphere((0.0, 0.0, -6.0), 0.5, grey)
        return near, middle, far

    def test_order_independent(self, grey):
        """Test the nearest sphere wins for every storage order."""
        from glimmer.core.ray import Ray, vec3
        from glimmer.scene import Scene

        near, middle, far = self._spheres(grey)
        ray = Ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0))
        for order in permutations((near, middle, far)):
            hit = Scene(order).find_nearest_hit(ray, 0.001, math.inf)
            assert hit is not None
            assert hit.surface is near
            assert abs(hit.record.t - 1.5) < 1e-12

    def test_material_comes_from_hit_surface(self, grey):
        """Test SceneHit exposes the hit surface's material."""
        from glimmer.core.ray import Ray, vec3
        from glimmer.scene import Scene

        near, middle, far = self._spheres(grey)
        ray = Ray(vec3(0.0, 0.0, -3.0), vec3(0.0, 0.0, -1.0))
        hit = Scene([far, middle, near]).find_nearest_hit(ray, 0.001, math.inf)
        assert hit.surface is middle
        assert hit.material is middle.material

    def test_miss(self, grey):
        """Test a ray away from every surface returns None."""
        from glimmer.core.ray import Ray, vec3
        from glimmer.scene import Scene

        scene = Scene(self._spheres(grey))
        assert scene.find_nearest_hit(Ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, 1.0)), 0.001, math.inf) is None

    def test_empty_scene(self):
        """Test an empty scene never reports a hit."""
        from glimmer.core.ray import Ray, vec3
        from glimmer.scene import Scene

        scene = Scene()
        assert len(scene) == 0
        assert scene.find_nearest_hit(Ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0)), 0.001, math.inf) is None

    def test_t_max_limits_search(self, grey):
        """Test surfaces beyond t_max are ignored."""
        from glimmer.core.ray import Ray, vec3
        from glimmer.scene import Scene

        scene = Scene(self._spheres(grey))
        ray = Ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0))
        assert scene.find_nearest_hit(ray, 0.001, 1.0) is None

    def test_overlapping_spheres(self, grey):
        """Test the closer of two overlapping spheres is reported."""
        from glimmer.core.ray import Ray, vec3
        from glimmer.geometry import Sphere
        from glimmer.scene import Scene

        big = Sphere((0.0, 0.0, -3.0), 1.0, grey)
        small = Sphere((0.0, 0.0, -2.2), 0.5, grey)
        ray = Ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0))
        for order in ([big, small], [small, big]):
            hit = Scene(order).find_nearest_hit(ray, 0.001, math.inf)
            assert hit.surface is small
            assert abs(hit.record.t - 1.7) < 1e-12


class TestSceneContainer:
    """Tests for Scene storage."""

    def test_surfaces_are_immutable(self, grey):
        """Test the scene snapshots its surfaces."""
        from glimmer.geometry import Sphere
        from glimmer.scene import Scene

        surfaces = [Sphere((0.0, 0.0, -1.0), 0.5, grey)]
        scene = Scene(surfaces)
        surfaces.append(Sphere((0.0, 0.0, -3.0), 0.5, grey))
        assert len(scene) == 1
        assert isinstance(scene.surfaces, tuple)

    def test_materials_deduplicated(self, grey):
        """Test shared material instances are listed once, in first-use order."""
        from glimmer.geometry import Sphere
        from glimmer.materials import Dielectric
        from glimmer.scene import Scene

        glass = Dielectric(1.5)
        scene = Scene(
            [
                Sphere((0.0, 0.0, -1.0), 0.5, grey),
                Sphere((1.0, 0.0, -1.0), 0.5, glass),
                Sphere((2.0, 0.0, -1.0), 0.5, grey),
                Sphere((3.0, 0.0, -1.0), -0.4, glass),
            ]
        )
        materials = scene.materials()
        assert len(materials) == 2
        assert materials[0] is grey
        assert materials[1] is glass


class TestPresets:
    """Tests for the ready-made scenes."""

    def test_two_spheres(self):
        """Test the two-sphere scene and its camera."""
        from glimmer.scene import two_spheres

        scene, camera = two_spheres(image_width=160)
        assert len(scene) == 2
        assert camera.image_width == 160
        assert camera.image_height == 90
        assert len(scene.materials()) == 1

    def test_material_showcase(self):
        """Test the showcase holds every material and a hollow glass sphere."""
        from glimmer.materials import Dielectric, Lambertian, Metal
        from glimmer.scene import material_showcase

        scene, camera = material_showcase(image_width=64)
        kinds = {type(m) for m in scene.materials()}
        assert kinds == {Lambertian, Metal, Dielectric}
        assert any(s.radius < 0 for s in scene)
        assert camera.image_height == 36

    def test_random_spheres_reproducible(self):
        """Test the random scene depends only on the generator's seed."""
        from glimmer.scene import random_spheres

        scene_a, _ = random_spheres(np.random.default_rng(3), image_width=32)
        scene_b, _ = random_spheres(np.random.default_rng(3), image_width=32)
        assert len(scene_a) == len(scene_b)
        for a, b in zip(scene_a, scene_b):
            assert np.array_equal(a.center, b.center)
            assert a.radius == b.radius

    def test_random_spheres_layout(self, rng):
        """Test the ground, feature spheres and depth of field camera."""
        from glimmer.scene import random_spheres

        scene, camera = random_spheres(rng, image_width=32)
        radii = [s.radius for s in scene]
        assert radii[0] == 1000.0
        assert radii[-3:] == [1.0, 1.0, 1.0]
        assert all(r == 0.2 for r in radii[1:-3])
        assert 4 < len(scene) <= 1 + 22 * 22 + 3
        assert camera.defocus_angle == 0.6

    def test_build_preset_unknown(self, rng):
        """Test unknown preset names are rejected."""
        from glimmer.scene import build_preset

        with pytest.raises(ValueError, match="Unknown scene"):
            build_preset("cornell", rng)

    @pytest.mark.parametrize("name", ["two-spheres", "showcase", "random"])
    def test_build_preset(self, rng, name):
        """Test every registered preset builds with the requested width."""
        from glimmer.scene import build_preset

        scene, camera = build_preset(name, rng, image_width=48, aspect_ratio=1.5)
        assert len(scene) > 0
        assert camera.image_width == 48
        assert camera.image_height == 32
