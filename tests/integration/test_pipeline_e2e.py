"""End-to-end tests: sprite file in, TrueType font out.

These tests run the whole converter on generated sprites and inspect the
written font with fontTools.
"""

import struct
from pathlib import Path

import pytest
from fontTools.ttLib import TTFont

from ase2ttf.config import build_settings
from ase2ttf.core import FontConverter
from ase2ttf.exceptions import BuildError, FormatError

CELL_O = [
    "###.",
    "#.#.",
    "###.",
    "....",
]
CELL_I = [
    ".#..",
    ".#..",
    ".#..",
    "....",
]
CELL_DOT = [
    "....",
    "....",
    "....",
    "..#.",
]
CELL_EMPTY = ["...."] * 4


def convert(path: Path, output: Path, **overrides: dict) -> TTFont:
    """Convert with 4x4 cells, ten units per pixel and baseline 1."""
    values: dict = {
        "glyph": {"glyph_width": 4, "glyph_height": 4},
        "metrics": {"units_per_pixel": 10, "baseline": 1},
        "processing": {"max_workers": 1},
    }
    for key, value in overrides.items():
        values[key] = {**values.get(key, {}), **value}
    FontConverter(build_settings(**values)).convert(path, output)
    return TTFont(output, checkChecksums=2)


def contours(font: TTFont, name: str) -> list[list[tuple[int, int]]]:
    """Contours of a glyph as coordinate lists."""
    glyf = font["glyf"]
    coords, end_points, _ = glyf[name].getCoordinates(glyf)
    result = []
    start = 0
    for end in end_points:
        result.append([tuple(p) for p in coords[start : end + 1]])
        start = end + 1
    return result


def area(points: list[tuple[int, int]]) -> float:
    total = 0
    for (x0, y0), (x1, y1) in zip(points, points[1:] + points[:1]):
        total += x0 * y1 - x1 * y0
    return total / 2


class TestEndToEnd:
    """Whole-pipeline conversions."""

    def test_glyph_set(self, make_sprite, tmp_path: Path):
        """Test glyph order, cmap and empty-cell handling."""
        path = make_sprite({"U+004F-": [CELL_O, CELL_EMPTY, CELL_I, CELL_DOT]}, columns=2)

        font = convert(path, tmp_path / "out.ttf")

        assert font.getGlyphOrder() == [".notdef", "O", "Q", "R"]
        assert font.getBestCmap() == {0x4F: "O", 0x51: "Q", 0x52: "R"}
        assert font["maxp"].numGlyphs == 4

    def test_outer_and_hole_winding(self, make_sprite, tmp_path: Path):
        """Test that outer contours wind clockwise and holes counter-clockwise."""
        path = make_sprite({"U+004F": [CELL_O]})

        font = convert(path, tmp_path / "out.ttf")
        outer, hole = contours(font, "O")

        assert sorted(outer) == [(0, 0), (0, 30), (30, 0), (30, 30)]
        assert sorted(hole) == [(10, 10), (10, 20), (20, 10), (20, 20)]
        assert area(outer) < 0
        assert area(hole) > 0

    def test_descender_below_baseline(self, make_sprite, tmp_path: Path):
        """Test that pixels under the baseline have negative y."""
        path = make_sprite({"U+002E": [CELL_DOT]})

        font = convert(path, tmp_path / "out.ttf")
        glyph = font["glyf"]["period"]

        assert (glyph.xMin, glyph.yMin, glyph.xMax, glyph.yMax) == (20, -10, 30, 0)
        assert font["hhea"].descent == -10
        assert font["hhea"].ascent == 30

    def test_whole_file_checksum(self, make_sprite, tmp_path: Path):
        """Test the head checksum adjustment over the written bytes."""
        path = make_sprite({"U+0041-": [CELL_O, CELL_I]}, columns=2)
        output = tmp_path / "out.ttf"
        convert(path, output)

        data = output.read_bytes()
        assert len(data) % 4 == 0
        total = sum(struct.unpack(f">{len(data) // 4}I", data)) & 0xFFFFFFFF
        assert total == 0xB1B0AFBA

    def test_deterministic(self, make_sprite, tmp_path: Path):
        """Test that the same input gives byte-identical fonts."""
        path = make_sprite({"U+0041-": [CELL_O, CELL_I, CELL_DOT]}, columns=3)

        convert(path, tmp_path / "a.ttf")
        convert(path, tmp_path / "b.ttf")

        assert (tmp_path / "a.ttf").read_bytes() == (tmp_path / "b.ttf").read_bytes()

    def test_proportional(self, make_sprite, tmp_path: Path):
        """Test trimmed advances and the post table pitch flag."""
        path = make_sprite({"U+0041-": [CELL_O, CELL_I]}, columns=2)

        font = convert(path, tmp_path / "out.ttf", glyph={"trim": True, "trim_pad": 1})

        assert font["hmtx"]["A"] == (50, 10)
        assert font["hmtx"]["B"] == (30, 10)
        assert font["post"].isFixedPitch == 0

    def test_monospace(self, make_sprite, tmp_path: Path):
        """Test that untrimmed glyphs share the cell advance."""
        path = make_sprite({"U+0041-": [CELL_O, CELL_I]}, columns=2)

        font = convert(path, tmp_path / "out.ttf")

        assert font["hmtx"]["A"][0] == font["hmtx"]["B"][0] == 40
        assert font["post"].isFixedPitch == 1

    def test_naming(self, make_sprite, tmp_path: Path):
        """Test that naming options reach the name table."""
        path = make_sprite({"U+0041": [CELL_O]})

        font = convert(
            path,
            tmp_path / "out.ttf",
            font={
                "family": "Blocky",
                "subfamily": "Bold",
                "copyright": "(c) Someone",
                "font_version": "Version 2.5",
            },
        )
        name = font["name"]

        assert name.getDebugName(0) == "(c) Someone"
        assert name.getDebugName(1) == "Blocky"
        assert name.getDebugName(2) == "Bold"
        assert name.getDebugName(4) == "Blocky Bold"
        assert name.getDebugName(5) == "Version 2.5"
        assert name.getDebugName(6) == "Blocky-Bold"
        assert font["head"].fontRevision == pytest.approx(2.5)
        assert font["OS/2"].usWeightClass == 700

    def test_supplementary_plane(self, make_sprite, tmp_path: Path):
        """Test code points above the BMP."""
        path = make_sprite({"U+1F600": [CELL_O]})

        font = convert(path, tmp_path / "out.ttf")

        assert font.getBestCmap() == {0x1F600: "u1F600"}
        assert font["cmap"].getcmap(3, 10) is not None


class TestLayers:
    """Layer handling across the pipeline."""

    def test_duplicate_layers(self, ase_builder, to_rgba, tmp_path: Path):
        """Test that the later layer's glyph replaces the earlier one."""
        builder = ase_builder(4, 4)
        first = builder.add_layer("U+0041")
        builder.add_cel(first, to_rgba(CELL_O), 4, 4)
        second = builder.add_layer("U+0041")
        builder.add_cel(second, to_rgba(CELL_I), 4, 4)
        path = tmp_path / "dupes.aseprite"
        path.write_bytes(builder.build())

        font = convert(path, tmp_path / "out.ttf")

        assert len(contours(font, "A")) == 1
        assert font["glyf"]["A"].xMin == 10

    def test_non_glyph_layers_ignored(self, ase_builder, to_rgba, tmp_path: Path):
        """Test that reference layers add nothing to the font."""
        builder = ase_builder(4, 4)
        guides = builder.add_layer("Guides")
        builder.add_cel(guides, to_rgba(["####"] * 4), 4, 4)
        glyph = builder.add_layer("U+0049")
        builder.add_cel(glyph, to_rgba(CELL_I), 4, 4)
        path = tmp_path / "guides.aseprite"
        path.write_bytes(builder.build())

        font = convert(path, tmp_path / "out.ttf")

        assert font.getGlyphOrder() == [".notdef", "I"]

    def test_indexed_sprite(self, ase_builder, tmp_path: Path):
        """Test a palette-based sprite."""
        builder = ase_builder(4, 4, depth=8, transparent_index=0)
        builder.add_palette([(0, 0, 0, 0), (255, 255, 255, 255)])
        layer = builder.add_layer("U+004F")
        builder.add_cel(layer, bytes(1 if c == "#" else 0 for row in CELL_O for c in row), 4, 4)
        path = tmp_path / "indexed.aseprite"
        path.write_bytes(builder.build())

        font = convert(path, tmp_path / "out.ttf")

        assert len(contours(font, "O")) == 2

    def test_no_glyph_layers(self, make_sprite, tmp_path: Path):
        """Test that a sprite without glyph layers still yields a valid font."""
        path = make_sprite({"Sketch": [CELL_O]})

        font = convert(path, tmp_path / "out.ttf")

        assert font.getGlyphOrder() == [".notdef"]


class TestFailures:
    """Conversions that must not write a font."""

    def test_corrupt_file(self, tmp_path: Path):
        """Test that a truncated sprite raises FormatError."""
        path = tmp_path / "truncated.aseprite"
        path.write_bytes(struct.pack("<IH", 1000, 0xA5E0) + bytes(20))
        output = tmp_path / "out.ttf"

        with pytest.raises(FormatError):
            convert(path, output)

        assert not output.exists()

    def test_em_too_large(self, make_sprite, tmp_path: Path):
        """Test that an em above 16384 units is refused."""
        path = make_sprite({"U+0041": [CELL_O]})
        output = tmp_path / "out.ttf"

        with pytest.raises(BuildError):
            convert(
                path,
                output,
                glyph={"glyph_width": 20, "glyph_height": 20},
                metrics={"units_per_pixel": 1024},
            )

        assert not output.exists()


class TestDefaults:
    """Conversions with the default cell size and scale."""

    def test_default_cells(self, make_sprite, tmp_path: Path):
        """Test 16x16 cells at 64 units per pixel over one open-ended layer."""
        cell_a = [row * 4 for row in CELL_O] * 4
        cell_b = [row * 4 for row in CELL_I] * 4
        path = make_sprite({"U+0041-": [cell_a, cell_b]}, columns=2)
        output = tmp_path / "out.ttf"

        FontConverter(build_settings(processing={"max_workers": 1})).convert(path, output)
        font = TTFont(output, checkChecksums=2)

        assert font["head"].unitsPerEm == 1024
        assert font.getBestCmap() == {0x41: "A", 0x42: "B"}
        assert font["hmtx"]["A"][0] == font["hmtx"]["B"][0] == 1024
        assert font["hhea"].ascent == 896
        assert font["hhea"].descent == -128
        glyph = font["glyf"]["A"]
        assert (glyph.xMin, glyph.xMax, glyph.yMax) == (0, 960, 896)
