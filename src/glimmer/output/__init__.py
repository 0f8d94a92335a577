"""Output module for persisting rendered frames.

Components:
    sink: ImageSink protocol, SinkError and 8-bit quantization
    ppm: Plain-text P3 PPM writer (streams pixels as they are produced)
    png: 8-bit PNG writer via Pillow
"""

from __future__ import annotations

import os
from pathlib import Path

from .png import PngSink
from .ppm import PpmSink
from .sink import ImageSink, SinkError, quantize

# Suffix -> sink class
SINKS = {
    ".ppm": PpmSink,
    ".png": PngSink,
}


def sink_for_path(path: str | os.PathLike[str]) -> ImageSink:
    """Choose a sink from the file suffix (``.ppm`` or ``.png``).

    Raises:
        ValueError: If the suffix is not supported.
    """
    suffix = Path(path).suffix.lower()
    if suffix not in SINKS:
        raise ValueError(f"Unsupported output format {suffix!r}; use one of {sorted(SINKS)}")
    return SINKS[suffix](path)


__all__ = [
    "ImageSink",
    "SinkError",
    "PpmSink",
    "PngSink",
    "quantize",
    "sink_for_path",
    "SINKS",
]
