"""Plain-text PPM (P3) image sink.

Output layout:

    P3
    {width} {height}
    255
    R G B        <- one line per pixel, row-major, top row first

Example:
    >>> from glimmer.output.ppm import PpmSink
    >>> sink = PpmSink("render.ppm")
    >>> # sink.write(width, height, render_pixels(camera, scene, settings))
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from typing import TextIO

from glimmer.core.ray import Vec3
from glimmer.output.sink import SinkError, check_dimensions, quantize

logger = logging.getLogger(__name__)


class PpmSink:
    """Write frames as ASCII PPM to a path or an open text stream.

    Pixels are written as they arrive, so the whole frame is never held in
    memory. The first I/O error aborts the write and is reported once as a
    :class:`SinkError`; pulling further colors stops with it.
    """

    def __init__(self, target: str | os.PathLike[str] | TextIO) -> None:
        self._target = target

    def write(self, width: int, height: int, colors: Iterable[Vec3]) -> None:
        check_dimensions(width, height)
        if isinstance(self._target, (str, os.PathLike)):
            try:
                with open(self._target, "w", encoding="ascii", newline="\n") as stream:
                    self._write_stream(stream, width, height, colors)
            except OSError as exc:
                raise SinkError(f"Failed to write PPM to {os.fspath(self._target)!r}: {exc}") from exc
            logger.info("Wrote %dx%d PPM to %s", width, height, os.fspath(self._target))
        else:
            self._write_stream(self._target, width, height, colors)
            logger.info("Wrote %dx%d PPM to stream", width, height)

    @staticmethod
    def _write_stream(stream: TextIO, width: int, height: int, colors: Iterable[Vec3]) -> None:
        total = width * height
        written = 0
        try:
            stream.write(f"P3\n{width} {height}\n255\n")
            for color in colors:
                if written == total:
                    raise SinkError(f"Received more than {total} colors for a {width}x{height} image")
                r, g, b = quantize(color)
                stream.write(f"{r} {g} {b}\n")
                written += 1
            stream.flush()
        except OSError as exc:
            raise SinkError(f"Failed to write PPM after {written} pixels: {exc}") from exc
        if written != total:
            raise SinkError(f"Received {written} colors for a {width}x{height} image, expected {total}")
