"""Command-line renderer.

Renders one of the preset scenes and writes it as PPM or PNG.

Usage:
    glimmer-render [options]
    python -m glimmer.cli [options]

Options:
    --scene NAME            Preset scene: two-spheres, showcase, random (default: showcase)
    --width WIDTH           Image width in pixels (default: 600)
    --aspect-ratio RATIO    Width / height (default: 16/9)
    --samples SAMPLES       Samples per pixel (default: 50)
    --max-bounces N         Bounce budget per camera ray (default: 10)
    --seed SEED             Random seed for a reproducible frame
    --backend BACKEND       python (reference) or taichi (parallel) (default: python)
    --arch ARCH             Taichi architecture: cpu or gpu (default: cpu)
    --rows-per-batch N      Rows per Taichi kernel launch (default: 16)
    --output OUTPUT         Output path, .ppm or .png (default: render.ppm)
    --quiet                 Suppress progress output
    --verbose               Enable debug logging

Example:
    glimmer-render --scene random --width 400 --samples 20 --backend taichi --output final.png
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from collections.abc import Sequence
from pathlib import Path

from glimmer.config import DEFAULT_MAX_BOUNCES, DEFAULT_SAMPLES_PER_PIXEL, RenderSettings
from glimmer.core.integrator import ProgressCallback, render_pixels
from glimmer.output import sink_for_path
from glimmer.scene.presets import DEFAULT_ASPECT_RATIO, DEFAULT_IMAGE_WIDTH, PRESETS, build_preset

logger = logging.getLogger(__name__)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="glimmer-render",
        description="Render a preset sphere scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        choices=sorted(PRESETS),
        default="showcase",
        help="Preset scene (default: showcase)",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=DEFAULT_IMAGE_WIDTH,
        help=f"Image width in pixels (default: {DEFAULT_IMAGE_WIDTH})",
    )
    parser.add_argument(
        "--aspect-ratio",
        type=float,
        default=DEFAULT_ASPECT_RATIO,
        help="Image width / height (default: 16/9)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=DEFAULT_SAMPLES_PER_PIXEL,
        help=f"Number of samples per pixel (default: {DEFAULT_SAMPLES_PER_PIXEL})",
    )
    parser.add_argument(
        "--max-bounces",
        type=int,
        default=DEFAULT_MAX_BOUNCES,
        help=f"Bounce budget per camera ray (default: {DEFAULT_MAX_BOUNCES})",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed (default: fresh entropy)",
    )
    parser.add_argument(
        "--backend",
        choices=("python", "taichi"),
        default="python",
        help="Renderer backend (default: python)",
    )
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu"),
        default="cpu",
        help="Taichi architecture for the taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--rows-per-batch",
        type=int,
        default=16,
        help="Rows per kernel launch for the taichi backend (default: 16)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="render.ppm",
        help="Output file path, .ppm or .png (default: render.ppm)",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    verbosity.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def configure_logging(*, quiet: bool, verbose: bool) -> None:
    """Route library log records to stderr at the requested level."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def make_progress_printer(quiet: bool) -> ProgressCallback | None:
    """Build a progress callback that redraws one stderr line."""
    if quiet:
        return None
    start_time = time.time()

    def progress_callback(done: int, total: int) -> None:
        elapsed = time.time() - start_time
        progress_pct = (done / total) * 100 if total > 0 else 0
        pixels_per_sec = done / elapsed if elapsed > 0 else 0
        print(
            f"\r  Progress: {done}/{total} pixels "
            f"({progress_pct:.1f}%) - {pixels_per_sec:.0f} px/s",
            end="",
            file=sys.stderr,
            flush=True,
        )

    return progress_callback


def render_to_file(args: argparse.Namespace) -> Path:
    """Build the requested scene, render it and write the image.

    Returns:
        Path to the written image.
    """
    settings = RenderSettings(
        samples_per_pixel=args.samples,
        max_bounces=args.max_bounces,
        seed=args.seed,
    )
    rng = settings.make_rng()
    scene, camera = build_preset(args.scene, rng, args.width, args.aspect_ratio)
    output_file = Path(args.output)
    sink = sink_for_path(output_file)
    progress = make_progress_printer(args.quiet)

    logger.info("Scene %r with %d surfaces; camera %r", args.scene, len(scene), camera)
    start_time = time.time()

    if args.backend == "taichi":
        # Imported lazily so the reference path never loads Taichi
        from glimmer.core.kernel import KernelRenderer, init_taichi

        # Unseeded frames still need fresh kernel randomness
        kernel_seed = args.seed if args.seed is not None else int(rng.integers(2**31 - 1))
        logger.debug("Taichi kernel seed %d", kernel_seed)
        init_taichi(args.arch, kernel_seed)
        renderer = KernelRenderer(camera, scene, settings, rows_per_batch=args.rows_per_batch)
        colors = renderer.render_pixels(progress=progress)
    else:
        colors = render_pixels(camera, scene, settings, rng, progress=progress)

    sink.write(camera.image_width, camera.image_height, colors)

    if not args.quiet:
        print(file=sys.stderr)  # Newline after progress
        print(f"Saved to: {output_file.absolute()}", file=sys.stderr)
        print(f"Total time: {time.time() - start_time:.2f}s", file=sys.stderr)
    return output_file


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(quiet=args.quiet, verbose=args.verbose)

    try:
        render_to_file(args)
        return 0
    except Exception as e:
        logger.debug("Render failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
