"""Image sink protocol and shared quantization.

A sink receives a finished frame as a single-pass, row-major stream of
gamma-encoded colors (top row first) and persists it. Sinks never see
linear radiance: clamping and gamma encoding happen in the integrator.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

import numpy as np
import numpy.typing as npt

from glimmer.core.ray import Vec3

# Scale applied before flooring so that 1 - epsilon still maps to 255
QUANTIZE_SCALE = 255.999


class SinkError(RuntimeError):
    """Raised when a sink cannot persist a frame."""


@runtime_checkable
class ImageSink(Protocol):
    """Destination for a rendered frame."""

    def write(self, width: int, height: int, colors: Iterable[Vec3]) -> None:
        """Consume ``width * height`` encoded colors and persist them.

        Raises:
            SinkError: On any I/O failure or a color count mismatch.
        """
        ...


def quantize(color: Vec3 | npt.ArrayLike) -> npt.NDArray[np.int64]:
    """Map encoded channels in [0, 1] to integers ``floor(c * 255.999)`` in [0, 255]."""
    scaled = np.floor(np.asarray(color, dtype=np.float64) * QUANTIZE_SCALE)
    return np.clip(scaled, 0, 255).astype(np.int64)


def check_dimensions(width: int, height: int) -> None:
    """Reject non-positive frame sizes.

    Raises:
        SinkError: If either dimension is not a positive integer.
    """
    if width <= 0 or height <= 0:
        raise SinkError(f"Image dimensions must be positive, got {width}x{height}")
