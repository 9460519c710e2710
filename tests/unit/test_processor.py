"""Tests for process_glyph and FontConverter."""

from pathlib import Path
from unittest.mock import patch

import pytest
from fontTools.ttLib import TTFont

from ase2ttf.config import Ase2TtfSettings, build_settings
from ase2ttf.core.outline import OutlineBuilder
from ase2ttf.core.processor import FontConverter, process_glyph
from ase2ttf.domain import GlyphOutline
from ase2ttf.exceptions import BuildError, ConfigError, FormatError

CELL_A = ["##", "#."]
CELL_B = [".#", "##"]
CELL_C = ["#.", "#."]


def make_settings(**overrides: dict) -> Ase2TtfSettings:
    """Settings for 2x2 cells at ten units per pixel."""
    values: dict = {
        "glyph": {"glyph_width": 2, "glyph_height": 2},
        "metrics": {"units_per_pixel": 10, "baseline": 0},
        "processing": {"max_workers": 1},
    }
    for key, value in overrides.items():
        values[key] = {**values.get(key, {}), **value}
    return build_settings(**values)


@pytest.fixture
def builder_config() -> dict:
    return {
        "metrics": {
            "units_per_pixel": 10,
            "cell_width": 2,
            "cell_height": 2,
            "baseline": 0,
            "line_gap": 0,
            "underline_position": 0,
            "underline_thickness": 0,
        },
        "trim": False,
        "trim_pad": 1,
        "alpha_threshold": 0,
    }


class TestProcessGlyph:
    """Tests for process_glyph function."""

    def test_process_glyph(self, builder_config: dict, to_rgba):
        """Test that a cell comes back as a serialized outline."""
        task = {"code_point": 0x41, "width": 2, "height": 2, "rgba": to_rgba(["##", "##"])}

        result = process_glyph(task, builder_config)

        assert "error" not in result
        assert result["duration_ms"] >= 0
        outline = GlyphOutline.from_dict(result["outline"])
        assert outline.code_point == 0x41
        assert outline.bounds == (0, 0, 20, 20)
        assert outline.contour_count == 1

    def test_process_glyph_handles_error(self, builder_config: dict):
        """Test that bad input is reported instead of raised."""
        task = {"code_point": 0x41, "width": 2, "height": 2, "rgba": b"\x00"}

        result = process_glyph(task, builder_config)

        assert "expected 16" in result["error"]
        assert result["code_point"] == 0x41
        assert "Traceback" in result["traceback"]
        assert "outline" not in result

    def test_process_glyph_trim(self, builder_config: dict, to_rgba):
        """Test that trim settings reach the builder."""
        builder_config["trim"] = True
        builder_config["trim_pad"] = 0
        task = {"code_point": 0x49, "width": 2, "height": 2, "rgba": to_rgba([".#", ".#"])}

        outline = GlyphOutline.from_dict(process_glyph(task, builder_config)["outline"])

        assert outline.advance_width == 10


class TestFontConverter:
    """Tests for FontConverter class."""

    def test_init(self):
        """Test converter initialization."""
        converter = FontConverter(make_settings())

        assert converter.metrics.units_per_em == 20
        assert converter.metrics.cell_advance == 20
        assert converter.extractor.cell_width == 2

    def test_metrics_scaled_from_pixels(self):
        """Test that pixel-valued metrics are converted to design units."""
        settings = make_settings(
            metrics={"line_gap": 1, "underline_position": -1, "underline_thickness": 1}
        )
        metrics = FontConverter(settings).metrics

        assert metrics.line_gap == 10
        assert metrics.underline_position == -10
        assert metrics.underline_thickness == 10

    def test_baseline_above_cell(self):
        """Test that a baseline higher than the cell is rejected."""
        with pytest.raises(ConfigError) as exc_info:
            FontConverter(make_settings(metrics={"baseline": 3}))
        assert exc_info.value.field == "metrics.baseline"

    def test_convert(self, make_sprite, tmp_path: Path):
        """Test a sequential conversion and its statistics."""
        path = make_sprite({"U+0041-": [CELL_A, CELL_B], "Notes": [CELL_C]}, columns=2)
        output = tmp_path / "out.ttf"
        progress: list[tuple[int, int, str, bool]] = []

        stats = FontConverter(make_settings()).convert(
            path, output, progress_callback=lambda *args: progress.append(args)
        )

        assert output.exists()
        assert stats.output_path == output
        assert stats.output_size == output.stat().st_size
        assert stats.glyph_count == 2
        assert stats.layers_matched == 1
        assert stats.layers_ignored == ["Notes"]
        assert stats.units_per_em == 20
        assert stats.error_count == 0
        assert progress == [(1, 2, "U+0041", True), (2, 2, "U+0042", True)]

        font = TTFont(output)
        assert font.getBestCmap() == {0x41: "A", 0x42: "B"}

    def test_convert_counts_holes(self, make_sprite, tmp_path: Path):
        """Test that enclosed counters are tallied in the statistics."""
        ring = ["###", "#.#", "###"]
        path = make_sprite({"U+004F-": [ring, ["###", "###", "###"]]}, columns=2)

        stats = FontConverter(
            make_settings(glyph={"glyph_width": 3, "glyph_height": 3})
        ).convert(path, tmp_path / "out.ttf")

        assert stats.contour_count == 3
        assert stats.hole_count == 1

    def test_convert_parallel(self, make_sprite, tmp_path: Path):
        """Test that worker processes give the same font as in-process outlining."""
        path = make_sprite({"U+0041-": [CELL_A, CELL_B, CELL_C]}, columns=3)
        sequential = tmp_path / "seq.ttf"
        parallel = tmp_path / "par.ttf"

        FontConverter(make_settings()).convert(path, sequential)
        stats = FontConverter(make_settings(processing={"max_workers": 2})).convert(
            path, parallel
        )

        assert stats.glyph_count == 3
        assert parallel.read_bytes() == sequential.read_bytes()

    def test_convert_default_output_path(self, make_sprite):
        """Test that the font lands beside the input by default."""
        path = make_sprite({"U+0041": [CELL_A]}, name="pixel.aseprite")

        stats = FontConverter(make_settings()).convert(path)

        assert stats.output_path == path.with_suffix(".ttf")
        assert path.with_suffix(".ttf").exists()

    def test_convert_settings_output_path(self, make_sprite, tmp_path: Path):
        """Test that the configured output path is used."""
        path = make_sprite({"U+0041": [CELL_A]})
        target = tmp_path / "configured.ttf"
        settings = make_settings().model_copy(update={"output_path": target})

        FontConverter(settings).convert(path)

        assert target.exists()

    def test_family_defaults_to_stem(self, make_sprite, tmp_path: Path):
        """Test naming from the input file when no family is set."""
        path = make_sprite({"U+0041": [CELL_A]}, name="Tiny Sans.aseprite")
        output = tmp_path / "out.ttf"

        FontConverter(make_settings()).convert(path, output)

        name = TTFont(output)["name"]
        assert name.getDebugName(1) == "Tiny Sans"
        assert name.getDebugName(2) == "Regular"

    def test_glyph_error_raises(self, make_sprite, tmp_path: Path):
        """Test that a failing glyph aborts the conversion without output."""
        path = make_sprite({"U+0041": [CELL_A]})
        output = tmp_path / "out.ttf"

        with patch.object(OutlineBuilder, "build", side_effect=ValueError("boom")):
            with pytest.raises(BuildError, match="U\\+0041: boom"):
                FontConverter(make_settings()).convert(path, output)

        assert not output.exists()

    def test_corrupt_input(self, tmp_path: Path):
        """Test that a corrupt sprite raises FormatError without output."""
        path = tmp_path / "bad.aseprite"
        path.write_bytes(bytes(200))
        output = tmp_path / "out.ttf"

        with pytest.raises(FormatError):
            FontConverter(make_settings()).convert(path, output)

        assert not output.exists()
