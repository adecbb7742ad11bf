"""Tests for the command-line interface."""

import json

import pytest
from click.testing import CliRunner

from chunkraster.cli import main
from chunkraster.core.config import ExporterConfig
from chunkraster.export.encoder import decode_png

from conftest import PatternBackend

SVG = '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 200 100"><rect width="50" height="50"/></svg>'


@pytest.fixture
def svg_file(tmp_path):
    path = tmp_path / "diagram.svg"
    path.write_text(SVG)
    return path


@pytest.fixture
def runner():
    return CliRunner()


class TestInitConfig:
    """Test the init-config command."""

    def test_writes_default_config(self, runner, tmp_path):
        """Test the generated file loads as the default config."""
        out = tmp_path / "cfg.json"
        result = runner.invoke(main, ["init-config", "-o", str(out)])

        assert result.exit_code == 0
        assert ExporterConfig.from_file(out) == ExporterConfig.default()
        assert json.loads(out.read_text())["options"]["scale_factor"] == 4.0


class TestInfo:
    """Test the info command."""

    def test_shows_plan(self, runner, svg_file):
        """Test the plan table lists the output size."""
        result = runner.invoke(main, ["info", str(svg_file), "--scale", "2", "--padding", "10"])

        assert result.exit_code == 0
        assert "420 x 220 px" in result.output
        assert "Needs chunking" in result.output

    def test_uses_config_file(self, runner, svg_file, tmp_path):
        """Test options are read from a config file."""
        cfg_path = tmp_path / "cfg.json"
        cfg_path.write_text(json.dumps({"options": {"scale_factor": 1.0, "padding": 0}}))

        result = runner.invoke(main, ["info", str(svg_file), "-c", str(cfg_path)])

        assert result.exit_code == 0
        assert "200 x 100 px" in result.output

    def test_infinite_scale_rejected(self, runner, svg_file):
        """Test a non-finite scale is rejected as a bad parameter."""
        result = runner.invoke(main, ["info", str(svg_file), "--scale", "inf"])
        assert result.exit_code == 2

    def test_invalid_svg(self, runner, tmp_path):
        """Test unparseable input aborts with an error."""
        path = tmp_path / "broken.svg"
        path.write_text("<svg><g></svg>")

        result = runner.invoke(main, ["info", str(path)])

        assert result.exit_code != 0
        assert "Error loading" in result.output


class TestExport:
    """Test the export command."""

    def test_export_writes_png(self, runner, svg_file, tmp_path, monkeypatch):
        """Test exporting writes a PNG of the planned size."""
        monkeypatch.setattr(
            "chunkraster.backend.cairo.CairoBackend", lambda: PatternBackend(), raising=True
        )
        out = tmp_path / "out.png"

        result = runner.invoke(
            main,
            ["export", str(svg_file), "-o", str(out), "--scale", "1", "--padding", "5",
             "--background", "transparent"],
        )

        assert result.exit_code == 0, result.output
        width, height, pixels = decode_png(out.read_bytes())
        assert (width, height) == (210, 110)
        assert not pixels[0, 0].any()
        assert pixels[5, 5, 3] == 255

    def test_bad_theme_entry(self, runner, svg_file):
        """Test a --theme value without '=' is rejected."""
        result = runner.invoke(main, ["export", str(svg_file), "--theme", "nope"])
        assert result.exit_code != 0

    def test_bad_color(self, runner, svg_file):
        """Test an invalid color is rejected before exporting."""
        result = runner.invoke(main, ["export", str(svg_file), "--background", "nope"])
        assert result.exit_code != 0
