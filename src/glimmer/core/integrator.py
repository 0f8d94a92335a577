"""Recursive radiance estimation and the per-pixel sampling loop.

This module is the host-side reference renderer. For every pixel it draws
``samples_per_pixel`` jittered camera rays, follows each through the scene
with :func:`ray_color`, averages the estimates, clamps and gamma-encodes
them, and yields the finished colors row by row (top to bottom) so that an
image sink can consume the frame as a single-pass stream.

The radiance function terminates in one of two ways:
    - the ray escapes: the sky gradient is returned
    - the bounce budget runs out or the light is absorbed: black is returned

All randomness flows through one explicit :class:`numpy.random.Generator`,
so a frame is reproducible from ``RenderSettings.seed``.

Example:
    >>> from glimmer.config import RenderSettings
    >>> from glimmer.core.integrator import render_frame
    >>> from glimmer.scene.presets import material_showcase
    >>> scene, camera = material_showcase(image_width=64)
    >>> image = render_frame(camera, scene, RenderSettings(samples_per_pixel=4, seed=1))
    >>> image.shape
    (36, 64, 3)
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterator
from typing import Protocol

import numpy as np
import numpy.typing as npt

from glimmer.camera.thin_lens import ThinLensCamera
from glimmer.config import COLOR_CLAMP_MAX, T_MIN, RenderSettings
from glimmer.core.ray import Ray, Vec3, normalize_or_zero
from glimmer.scene.world import Scene

logger = logging.getLogger(__name__)

# =============================================================================
# Rendering Constants
# =============================================================================

# Upper end of the sky gradient (the lower end is white)
SKY_BLUE = np.array((0.5, 0.7, 1.0), dtype=np.float64)
WHITE = np.ones(3, dtype=np.float64)
BLACK = np.zeros(3, dtype=np.float64)
for _constant in (SKY_BLUE, WHITE, BLACK):
    _constant.setflags(write=False)

# Type alias for progress callback
# Callback receives (pixels_done, pixels_total)
ProgressCallback = Callable[[int, int], None]


class CancellationFlag(Protocol):
    """Anything with ``is_set()``, e.g. :class:`threading.Event`."""

    def is_set(self) -> bool: ...


class RenderCancelled(RuntimeError):
    """Raised when a render is stopped through its cancellation flag."""


# =============================================================================
# Radiance
# =============================================================================


def background_color(direction: Vec3) -> Vec3:
    """Sky gradient seen by a ray that escapes the scene.

    Blends linearly from white (looking straight down) to sky blue (looking
    straight up); the horizontal part of the direction plays no role.

    Args:
        direction: The escaping ray's direction (any length).

    Returns:
        ``(1 - a) * white + a * sky_blue`` with ``a = 0.5 * (unit.y + 1)``.
    """
    a = 0.5 * (normalize_or_zero(direction)[1] + 1.0)
    return (1.0 - a) * WHITE + a * SKY_BLUE


def ray_color(
    ray: Ray,
    remaining_bounces: int,
    scene: Scene,
    rng: np.random.Generator,
) -> Vec3:
    """Estimate the radiance arriving along a ray.

    Finds the nearest hit in ``(T_MIN, inf)``. A miss returns the sky
    gradient. A hit with budget left scatters according to the hit surface's
    material and recurses with one bounce fewer, multiplying the result
    component-wise by the attenuation. Absorption, a zero attenuation, or a
    budget of one or less ends the path in black.

    Args:
        ray: The ray to trace.
        remaining_bounces: Bounce budget; recursion depth never exceeds it.
        scene: The scene to trace against.
        rng: Random generator owned by the calling worker.

    Returns:
        The estimated linear RGB radiance.
    """
    hit = scene.find_nearest_hit(ray, T_MIN, math.inf)
    if hit is None:
        return background_color(ray.direction)

    # If we've exceeded the ray bounce limit, no more light is gathered
    if remaining_bounces <= 1:
        return BLACK.copy()

    result = hit.material.scatter(ray, hit.record, rng)
    if result is None or not np.any(result.attenuation):
        return BLACK.copy()

    return result.attenuation * ray_color(result.scattered, remaining_bounces - 1, scene, rng)


# =============================================================================
# Sampling Loop
# =============================================================================


def encode_color(color_sum: Vec3, samples_per_pixel: int) -> Vec3:
    """Average, clamp and gamma-encode an accumulated pixel color.

    The clamp stops just below 1.0 so quantizing the encoded value can never
    round up past the channel's maximum.

    Args:
        color_sum: Sum of ``samples_per_pixel`` radiance estimates.
        samples_per_pixel: Number of estimates in the sum.

    Returns:
        Gamma-2 encoded color with channels in [0, 1).
    """
    average = color_sum * (1.0 / samples_per_pixel)
    return np.sqrt(np.clip(average, 0.0, COLOR_CLAMP_MAX))


def sample_pixel(
    camera: ThinLensCamera,
    scene: Scene,
    i: int,
    j: int,
    settings: RenderSettings,
    rng: np.random.Generator,
) -> Vec3:
    """Render one pixel: average independent jittered samples and encode.

    Args:
        camera: The frame's camera.
        scene: The frame's scene.
        i: Pixel column (0 = left).
        j: Pixel row (0 = top).
        settings: Samples per pixel and bounce budget.
        rng: Random generator owned by the calling worker.

    Returns:
        The display-ready (gamma-encoded) pixel color.
    """
    color_sum = np.zeros(3, dtype=np.float64)
    for _ in range(settings.samples_per_pixel):
        ray = camera.generate_ray(i, j, rng)
        color_sum += ray_color(ray, settings.max_bounces, scene, rng)
    return encode_color(color_sum, settings.samples_per_pixel)


def render_pixels(
    camera: ThinLensCamera,
    scene: Scene,
    settings: RenderSettings,
    rng: np.random.Generator | None = None,
    *,
    progress: ProgressCallback | None = None,
    cancel: CancellationFlag | None = None,
) -> Iterator[Vec3]:
    """Render a frame as a row-major stream of encoded pixel colors.

    The generator is lazy: pixels are computed as the consumer pulls them,
    so a failing sink stops the render immediately.

    Args:
        camera: The frame's camera.
        scene: The frame's scene (never mutated).
        settings: Sampling configuration.
        rng: Random generator; defaults to one seeded from ``settings.seed``.
        progress: Optional callback invoked after each completed row with
            ``(pixels_done, pixels_total)``.
        cancel: Optional flag checked before every pixel.

    Yields:
        Gamma-encoded RGB colors, left to right, top row first.

    Raises:
        RenderCancelled: If ``cancel`` becomes set mid-frame.
    """
    if rng is None:
        rng = settings.make_rng()

    width, height = camera.image_width, camera.image_height
    total = width * height
    logger.info(
        "Rendering %dx%d, %d spp, %d max bounces, %d surfaces",
        width,
        height,
        settings.samples_per_pixel,
        settings.max_bounces,
        len(scene),
    )

    for j in range(height):
        for i in range(width):
            if cancel is not None and cancel.is_set():
                logger.info("Render cancelled at pixel (%d, %d)", i, j)
                raise RenderCancelled(f"Render cancelled at pixel ({i}, {j})")
            yield sample_pixel(camera, scene, i, j, settings, rng)
        if progress is not None:
            progress((j + 1) * width, total)


def render_frame(
    camera: ThinLensCamera,
    scene: Scene,
    settings: RenderSettings,
    rng: np.random.Generator | None = None,
    *,
    progress: ProgressCallback | None = None,
    cancel: CancellationFlag | None = None,
) -> npt.NDArray[np.float64]:
    """Render a frame into a preallocated framebuffer.

    Args:
        camera: The frame's camera.
        scene: The frame's scene.
        settings: Sampling configuration.
        rng: Random generator; defaults to one seeded from ``settings.seed``.
        progress: Optional per-row progress callback.
        cancel: Optional cancellation flag.

    Returns:
        Array of shape (height, width, 3), row 0 at the top, gamma-encoded.
    """
    width, height = camera.image_width, camera.image_height
    framebuffer = np.empty((height, width, 3), dtype=np.float64)
    pixels = render_pixels(camera, scene, settings, rng, progress=progress, cancel=cancel)
    for index, color in enumerate(pixels):
        framebuffer[index // width, index % width] = color
    return framebuffer


def iter_framebuffer(framebuffer: npt.NDArray[np.float64]) -> Iterator[Vec3]:
    """Stream a (height, width, 3) framebuffer row-major, as sinks expect."""
    height, width, _ = framebuffer.shape
    for j in range(height):
        for i in range(width):
            yield framebuffer[j, i]
