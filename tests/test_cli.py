"""End-to-end tests for the glimmer-render command.

Tests cover:
- Rendering presets to PPM and PNG on both backends
- Argument defaults
- Error reporting and exit status
"""

import subprocess
import sys

import numpy as np
import pytest
from PIL import Image as PILImage


class TestParseArgs:
    """Tests for command-line parsing."""

    def test_defaults(self):
        """Test the default options."""
        from glimmer.cli import parse_args

        args = parse_args([])
        assert args.scene == "showcase"
        assert args.width == 600
        assert args.samples == 50
        assert args.max_bounces == 10
        assert args.backend == "python"
        assert args.output == "render.ppm"

    def test_quiet_and_verbose_exclusive(self):
        """Test --quiet and --verbose cannot be combined."""
        from glimmer.cli import parse_args

        with pytest.raises(SystemExit):
            parse_args(["--quiet", "--verbose"])


class TestMain:
    """Tests for the main entry point."""

    def test_render_ppm(self, tmp_path):
        """Test a small render writes a complete PPM."""
        from glimmer.cli import main

        output = tmp_path / "two.ppm"
        status = main(
            [
                "--scene", "two-spheres",
                "--width", "8",
                "--samples", "1",
                "--seed", "1",
                "--output", str(output),
                "--quiet",
            ]
        )
        assert status == 0
        lines = output.read_text(encoding="ascii").splitlines()
        assert lines[:3] == ["P3", "8 4", "255"]
        assert len(lines) == 3 + 32

    def test_same_seed_same_file(self, tmp_path):
        """Test the CLI output is reproducible from --seed."""
        from glimmer.cli import main

        paths = [tmp_path / "a.ppm", tmp_path / "b.ppm"]
        for path in paths:
            main(["--width", "8", "--samples", "2", "--seed", "9", "--output", str(path), "--quiet"])
        assert paths[0].read_text() == paths[1].read_text()

    def test_render_png_with_progress(self, tmp_path, capsys):
        """Test PNG output and progress reporting on stderr."""
        from glimmer.cli import main

        output = tmp_path / "showcase.png"
        status = main(["--width", "16", "--samples", "1", "--seed", "3", "--output", str(output)])

        assert status == 0
        captured = capsys.readouterr()
        assert "Progress: 144/144 pixels" in captured.err
        assert "Saved to:" in captured.err
        with PILImage.open(output) as image:
            assert image.size == (16, 9)

    def test_taichi_backend(self, tmp_path, monkeypatch):
        """Test the parallel backend renders through the same sinks."""
        import glimmer.core.kernel
        from glimmer.cli import main

        # Reuse the session's Taichi runtime instead of re-initializing
        monkeypatch.setattr(glimmer.core.kernel, "init_taichi", lambda arch, seed: None)
        output = tmp_path / "kernel.png"
        status = main(
            [
                "--backend", "taichi",
                "--width", "16",
                "--samples", "2",
                "--rows-per-batch", "4",
                "--output", str(output),
                "--quiet",
            ]
        )
        assert status == 0
        with PILImage.open(output) as image:
            pixels = np.asarray(image)
        assert pixels.shape == (9, 16, 3)
        assert pixels.max() > 0

    def test_taichi_backend_unseeded_frames_differ(self, tmp_path):
        """Test unseeded parallel renders draw fresh kernel randomness."""
        # Separate processes so each render gets its own Taichi runtime
        paths = [tmp_path / "a.ppm", tmp_path / "b.ppm"]
        for path in paths:
            subprocess.run(
                [
                    sys.executable, "-m", "glimmer.cli",
                    "--backend", "taichi",
                    "--width", "16",
                    "--samples", "2",
                    "--output", str(path),
                    "--quiet",
                ],
                check=True,
            )
        assert paths[0].read_text() != paths[1].read_text()

    def test_unsupported_output(self, tmp_path, capsys):
        """Test an unknown output format fails with exit status 1."""
        from glimmer.cli import main

        status = main(["--width", "8", "--samples", "1", "--output", str(tmp_path / "x.jpg"), "--quiet"])
        assert status == 1
        assert "Error: Unsupported output format" in capsys.readouterr().err

    def test_invalid_samples(self, tmp_path, capsys):
        """Test invalid settings are reported, not raised."""
        from glimmer.cli import main

        status = main(["--samples", "0", "--output", str(tmp_path / "x.ppm"), "--quiet"])
        assert status == 1
        assert "samples_per_pixel must be positive" in capsys.readouterr().err

    def test_unwritable_output(self, tmp_path, capsys):
        """Test sink failures become exit status 1."""
        from glimmer.cli import main

        output = tmp_path / "missing" / "x.ppm"
        status = main(["--width", "8", "--samples", "1", "--output", str(output), "--quiet"])
        assert status == 1
        assert "Error: Failed to write PPM" in capsys.readouterr().err
