"""Tests for VectorScene and intrinsic dimension resolution."""

import pytest

from chunkraster.core.errors import ExportErrorKind, SceneUnavailableError
from chunkraster.scene.dimensions import parse_length, parse_view_box, resolve_dimensions
from chunkraster.scene.scene import VectorScene


def scene_from(attrs: str, **kwargs) -> VectorScene:
    return VectorScene.from_string(f'<svg xmlns="http://www.w3.org/2000/svg" {attrs}/>', **kwargs)


class TestVectorScene:
    """Test VectorScene loading and state."""

    def test_theme_keys_normalized(self):
        """Test theme names gain the custom property prefix."""
        scene = scene_from("", theme={"primary": "#333", "--accent": "red"})
        assert scene.theme == {"--primary": "#333", "--accent": "red"}

    def test_invalid_zoom_defaults_to_one(self):
        """Test a non-positive zoom is treated as 1."""
        assert scene_from("", zoom=0).zoom == 1.0

    def test_malformed_markup(self):
        """Test unparseable markup raises scene_unavailable."""
        with pytest.raises(SceneUnavailableError) as exc_info:
            VectorScene.from_string("<svg><g></svg>")
        assert exc_info.value.kind == ExportErrorKind.SCENE_UNAVAILABLE

    def test_missing_file(self, tmp_path):
        """Test a missing file raises scene_unavailable."""
        with pytest.raises(SceneUnavailableError):
            VectorScene.from_file(tmp_path / "missing.svg")

    def test_from_file(self, tmp_path):
        """Test loading from disk records the source file."""
        path = tmp_path / "diagram.svg"
        path.write_text('<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 10 10"/>')
        scene = VectorScene.from_file(path)
        assert scene.source_file == str(path)
        assert scene.attached

    def test_detached(self):
        """Test a detached scene refuses access to its root."""
        scene = scene_from('viewBox="0 0 10 10"')
        scene.detach()
        assert not scene.attached
        with pytest.raises(SceneUnavailableError):
            scene.root

    def test_non_svg_root(self):
        """Test a non-<svg> root is not a scene."""
        scene = VectorScene.from_string("<html/>")
        with pytest.raises(SceneUnavailableError):
            scene.root


class TestParsing:
    """Test length and viewBox parsing."""

    @pytest.mark.parametrize("text,expected", [
        ("100", 100.0),
        ("100px", 100.0),
        ("1in", 96.0),
        ("72pt", 96.0),
        ("2.54cm", 96.0),
        (" 12.5 ", 12.5),
    ])
    def test_lengths(self, text, expected):
        """Test absolute units convert to px."""
        assert parse_length(text) == pytest.approx(expected)

    @pytest.mark.parametrize("text", [None, "", "50%", "2em", "auto"])
    def test_non_absolute_lengths(self, text):
        """Test relative or invalid lengths give None."""
        assert parse_length(text) is None

    def test_view_box(self):
        """Test comma and space separated viewBoxes."""
        assert parse_view_box("-10 -20 300 200") == (-10.0, -20.0, 300.0, 200.0)
        assert parse_view_box("0,0,5,5") == (0.0, 0.0, 5.0, 5.0)
        assert parse_view_box("0 0 5") is None
        assert parse_view_box("a b c d") is None


class TestResolveDimensions:
    """Test intrinsic size and origin selection."""

    def test_view_box_used(self):
        """Test a positive viewBox gives size and origin directly."""
        dims = resolve_dimensions(scene_from('viewBox="-50 -25 2000 1500" width="10" height="10"'))
        assert (dims.width, dims.height) == (2000, 1500)
        assert (dims.origin_x, dims.origin_y) == (-50, -25)

    def test_rendered_size_divided_by_zoom(self):
        """Test the on-screen size is normalized by zoom."""
        scene = scene_from("", zoom=2.0, display_size=(800, 600))
        dims = resolve_dimensions(scene)
        assert (dims.width, dims.height) == (400, 300)
        assert (dims.origin_x, dims.origin_y) == (0, 0)

    def test_degenerate_view_box_falls_back(self):
        """Test a zero-size viewBox falls back to width/height attributes."""
        dims = resolve_dimensions(scene_from('viewBox="0 0 0 0" width="120" height="1in"'))
        assert (dims.width, dims.height) == (120, 96)

    def test_no_size_clamped(self):
        """Test a scene with no usable size gets a 1x1 minimum."""
        dims = resolve_dimensions(scene_from(""))
        assert (dims.width, dims.height) == (1, 1)
