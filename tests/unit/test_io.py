"""Tests for AsepriteReader and FontWriter."""

from pathlib import Path
from unittest.mock import patch

import pytest

from ase2ttf.exceptions import FormatError, InputReadError, OutputWriteError
from ase2ttf.io.reader import AsepriteReader
from ase2ttf.io.writer import FontWriter

CELL = ["##", "#."]


class TestAsepriteReader:
    """Tests for AsepriteReader class."""

    def test_init(self):
        """Test reader initialization."""
        path = Path("font.aseprite")
        reader = AsepriteReader(path)

        assert reader.path == path

    def test_load_nonexistent_file(self, tmp_path: Path):
        """Test that a missing file raises InputReadError."""
        path = tmp_path / "missing.aseprite"
        reader = AsepriteReader(path)

        with pytest.raises(InputReadError) as exc_info:
            reader.load()
        assert exc_info.value.path == str(path)

    def test_document_before_load(self):
        """Test accessing the document before load."""
        reader = AsepriteReader(Path("font.aseprite"))

        with pytest.raises(RuntimeError, match="not loaded"):
            _ = reader.document

    def test_load(self, make_sprite):
        """Test loading a generated sprite."""
        path = make_sprite({"U+0041": [CELL]})
        reader = AsepriteReader(path)

        document = reader.load()

        assert reader.document is document
        assert document.width == 2
        assert document.height == 2
        assert [layer.name for layer in document.layers] == ["U+0041"]

    def test_invalid_file(self, tmp_path: Path):
        """Test that a file which is not a sprite raises FormatError."""
        path = tmp_path / "notes.aseprite"
        path.write_bytes(b"hello world")

        with pytest.raises(FormatError):
            AsepriteReader(path).load()

    def test_context_manager(self, make_sprite):
        """Test context manager usage."""
        path = make_sprite({"U+0041": [CELL]})

        with AsepriteReader(path) as reader:
            assert reader.document.layers[0].name == "U+0041"

        with pytest.raises(RuntimeError):
            _ = reader.document


class TestFontWriter:
    """Tests for FontWriter class."""

    def test_init(self):
        """Test writer initialization."""
        path = Path("output.ttf")
        writer = FontWriter(path)

        assert writer.output_path == path

    def test_get_output_path(self):
        """Test default output path generation."""
        assert FontWriter.get_output_path(Path("font.aseprite")) == Path("font.ttf")
        assert FontWriter.get_output_path(Path("/art/Pixel-Sans.ase")) == Path(
            "/art/Pixel-Sans.ttf"
        )

    def test_save(self, tmp_path: Path):
        """Test that bytes land at the target without temporary leftovers."""
        target = tmp_path / "out" / "font.ttf"

        FontWriter(target).save(b"\x00\x01\x00\x00data")

        assert target.read_bytes() == b"\x00\x01\x00\x00data"
        assert sorted(p.name for p in target.parent.iterdir()) == ["font.ttf"]

    def test_save_overwrites(self, tmp_path: Path):
        """Test that an existing font is replaced."""
        target = tmp_path / "font.ttf"
        target.write_bytes(b"old")

        FontWriter(target).save(b"new")

        assert target.read_bytes() == b"new"

    def test_failed_replace_keeps_original(self, tmp_path: Path):
        """Test that a failed write leaves neither a partial file nor a temp file."""
        target = tmp_path / "font.ttf"
        target.write_bytes(b"old")

        with patch("ase2ttf.io.writer.os.replace", side_effect=OSError(13, "Permission denied")):
            with pytest.raises(OutputWriteError) as exc_info:
                FontWriter(target).save(b"new")

        assert exc_info.value.reason == "Permission denied"
        assert target.read_bytes() == b"old"
        assert [p.name for p in tmp_path.iterdir()] == ["font.ttf"]

    def test_unwritable_directory(self, tmp_path: Path):
        """Test that a file in place of the directory is reported."""
        blocker = tmp_path / "blocker"
        blocker.write_bytes(b"")

        with pytest.raises(OutputWriteError):
            FontWriter(blocker / "font.ttf").save(b"data")
