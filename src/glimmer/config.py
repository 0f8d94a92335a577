"""Render configuration.

Example:
    >>> from glimmer.config import RenderSettings
    >>> settings = RenderSettings(samples_per_pixel=50, max_bounces=10, seed=1)
    >>> rng = settings.make_rng()
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

# Defaults match the scenes shipped in glimmer.scene.presets
DEFAULT_SAMPLES_PER_PIXEL = 50
DEFAULT_MAX_BOUNCES = 10

# Lower bound of the ray parameter range, guards against self-intersection
T_MIN = 0.001

# Upper clamp applied to averaged channels before gamma encoding
COLOR_CLAMP_MAX = 1.0 - 1e-11


@dataclass(frozen=True)
class RenderSettings:
    """Per-frame sampling configuration.

    Attributes:
        samples_per_pixel: Number of jittered camera rays averaged per pixel.
        max_bounces: Bounce budget handed to the radiance function for each
            camera ray. A budget of 1 shades only the background.
        seed: Seed for the frame's random stream. None draws fresh OS entropy.
    """

    samples_per_pixel: int = DEFAULT_SAMPLES_PER_PIXEL
    max_bounces: int = DEFAULT_MAX_BOUNCES
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.samples_per_pixel <= 0:
            raise ValueError(
                f"samples_per_pixel must be positive, got {self.samples_per_pixel}"
            )
        if self.max_bounces <= 0:
            raise ValueError(f"max_bounces must be positive, got {self.max_bounces}")
        if self.seed is not None and self.seed < 0:
            raise ValueError(f"seed must be non-negative, got {self.seed}")

    def make_rng(self) -> np.random.Generator:
        """Create the frame's random generator from the configured seed."""
        return np.random.default_rng(self.seed)
