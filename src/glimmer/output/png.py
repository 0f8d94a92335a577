"""PNG image sink backed by Pillow.

Channels are quantized exactly like the PPM sink, so both formats encode the
same 8-bit values for a frame.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from typing import BinaryIO

import numpy as np
from PIL import Image as PILImage

from glimmer.core.ray import Vec3
from glimmer.output.sink import SinkError, check_dimensions, quantize

logger = logging.getLogger(__name__)


class PngSink:
    """Write frames as 8-bit RGB PNG to a path or an open binary stream.

    PNG is not a streaming format here: the frame is gathered into a
    (height, width, 3) uint8 array before Pillow encodes it.
    """

    def __init__(self, target: str | os.PathLike[str] | BinaryIO) -> None:
        self._target = target

    def write(self, width: int, height: int, colors: Iterable[Vec3]) -> None:
        check_dimensions(width, height)
        total = width * height
        pixels = np.zeros((total, 3), dtype=np.uint8)
        count = 0
        for color in colors:
            if count == total:
                raise SinkError(f"Received more than {total} colors for a {width}x{height} image")
            pixels[count] = quantize(color)
            count += 1
        if count != total:
            raise SinkError(f"Received {count} colors for a {width}x{height} image, expected {total}")

        image = PILImage.fromarray(pixels.reshape(height, width, 3))
        try:
            image.save(self._target, format="PNG")
        except OSError as exc:
            raise SinkError(f"Failed to write PNG: {exc}") from exc
        logger.info("Wrote %dx%d PNG", width, height)
