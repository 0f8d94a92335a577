"""Scene module for scene storage and ready-made scenes.

Components:
    world: Immutable surface collection with nearest-hit queries
    presets: Factory functions returning a scene and a matching camera

Scenes are built once and only read during tracing, so the same scene can
be shared by every worker rendering a frame.
"""

from .presets import (
    PRESETS,
    build_preset,
    material_showcase,
    random_spheres,
    two_spheres,
)
from .world import Scene, SceneHit

__all__ = [
    # World module
    "Scene",
    "SceneHit",
    # Presets module
    "PRESETS",
    "build_preset",
    "two_spheres",
    "material_showcase",
    "random_spheres",
]
