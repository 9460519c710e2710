"""Shared fixtures: in-memory Aseprite file construction."""

import struct
import zlib
from pathlib import Path

import pytest

INK = (0, 0, 0, 255)


class AseBuilder:
    """Builds minimal Aseprite files chunk by chunk.

    Example:
        builder = AseBuilder(16, 8)
        layer = builder.add_layer("U+0041-")
        builder.add_cel(layer, pixels, 16, 8)
        data = builder.build()
    """

    def __init__(
        self,
        width: int,
        height: int,
        depth: int = 32,
        flags: int = 1,
        transparent_index: int = 0,
    ) -> None:
        self.width = width
        self.height = height
        self.depth = depth
        self.flags = flags
        self.transparent_index = transparent_index
        self.frames: list[list[bytes]] = [[]]
        self.layer_count = 0

    @staticmethod
    def chunk(chunk_type: int, payload: bytes) -> bytes:
        return struct.pack("<IH", len(payload) + 6, chunk_type) + payload

    def add_frame(self) -> int:
        self.frames.append([])
        return len(self.frames) - 1

    def add_raw_chunk(self, chunk_type: int, payload: bytes, frame: int = 0) -> None:
        self.frames[frame].append(self.chunk(chunk_type, payload))

    def add_layer(
        self,
        name: str,
        flags: int = 1,
        kind: int = 0,
        child_level: int = 0,
        blend_mode: int = 0,
        opacity: int = 255,
        tileset_index: int | None = None,
    ) -> int:
        encoded = name.encode("utf-8")
        payload = struct.pack(
            "<HHHHHHB3xH", flags, kind, child_level, 0, 0, blend_mode, opacity, len(encoded)
        )
        payload += encoded
        if tileset_index is not None:
            payload += struct.pack("<I", tileset_index)
        if self.flags & 4:
            payload += bytes(16)
        self.add_raw_chunk(0x2004, payload)
        self.layer_count += 1
        return self.layer_count - 1

    def _cel_header(self, layer: int, x: int, y: int, opacity: int, cel_type: int) -> bytes:
        return struct.pack("<HhhBHh5x", layer, x, y, opacity, cel_type, 0)

    def add_cel(
        self,
        layer: int,
        pixels: bytes,
        width: int,
        height: int,
        x: int = 0,
        y: int = 0,
        opacity: int = 255,
        compressed: bool = False,
        frame: int = 0,
    ) -> None:
        cel_type = 2 if compressed else 0
        body = zlib.compress(pixels) if compressed else pixels
        payload = self._cel_header(layer, x, y, opacity, cel_type)
        payload += struct.pack("<HH", width, height) + body
        self.add_raw_chunk(0x2005, payload, frame)

    def add_linked_cel(self, layer: int, link_frame: int, frame: int) -> None:
        payload = self._cel_header(layer, 0, 0, 255, 1) + struct.pack("<H", link_frame)
        self.add_raw_chunk(0x2005, payload, frame)

    def add_tilemap_cel(
        self,
        layer: int,
        tiles: list[int],
        columns: int,
        rows: int,
        x: int = 0,
        y: int = 0,
    ) -> None:
        payload = self._cel_header(layer, x, y, 255, 3)
        payload += struct.pack(
            "<HHHIIII10x", columns, rows, 32, 0x1FFFFFFF, 0x20000000, 0x40000000, 0x80000000
        )
        payload += zlib.compress(struct.pack(f"<{len(tiles)}I", *tiles))
        self.add_raw_chunk(0x2005, payload)

    def add_tileset(
        self, tileset_id: int, tile_width: int, tile_height: int, tiles: list[bytes]
    ) -> None:
        data = zlib.compress(b"".join(tiles))
        payload = struct.pack(
            "<IIIHHh14xH", tileset_id, 2, len(tiles), tile_width, tile_height, 1, 0
        )
        payload += struct.pack("<I", len(data)) + data
        self.add_raw_chunk(0x2023, payload)

    def add_palette(self, entries: list[tuple[int, int, int, int]]) -> None:
        payload = struct.pack("<III8x", len(entries), 0, len(entries) - 1)
        for r, g, b, a in entries:
            payload += struct.pack("<H4B", 0, r, g, b, a)
        self.add_raw_chunk(0x2019, payload)

    def build(self) -> bytes:
        body = b""
        for chunks in self.frames:
            content = b"".join(chunks)
            body += struct.pack(
                "<IHHHHI", 16 + len(content), 0xF1FA, min(len(chunks), 0xFFFF), 100, 0, len(chunks)
            )
            body += content

        header = struct.pack(
            "<IHHHHHIHIIB3xH",
            128 + len(body),
            0xA5E0,
            len(self.frames),
            self.width,
            self.height,
            self.depth,
            self.flags,
            100,
            0,
            0,
            self.transparent_index,
            256,
        )
        return header.ljust(128, b"\x00") + body


def grid_to_rgba(rows: list[str], color: tuple[int, int, int, int] = INK) -> bytes:
    """Convert a text grid ("#" ink, anything else empty) to RGBA bytes."""
    ink = bytes(color)
    blank = bytes(4)
    return b"".join(ink if c == "#" else blank for row in rows for c in row)


def glyph_sheet(cells: list[list[str]], columns: int) -> tuple[list[str], int, int]:
    """Lay out equally sized text cells on a sheet, row-major.

    Returns:
        (rows, width, height) of the assembled sheet
    """
    cell_h = len(cells[0])
    cell_w = len(cells[0][0])
    sheet_rows = (len(cells) + columns - 1) // columns
    rows = []
    for sheet_row in range(sheet_rows):
        for y in range(cell_h):
            line = ""
            for column in range(columns):
                index = sheet_row * columns + column
                line += cells[index][y] if index < len(cells) else "." * cell_w
            rows.append(line)
    return rows, columns * cell_w, sheet_rows * cell_h


@pytest.fixture
def ase_builder():
    """Factory for AseBuilder instances."""
    return AseBuilder


@pytest.fixture
def to_rgba():
    """Text grid to RGBA bytes converter."""
    return grid_to_rgba


@pytest.fixture
def make_sprite(tmp_path: Path):
    """Write a one-layer RGBA sprite from text cells and return its path.

    Usage:
        path = make_sprite({"U+0041-": [cell_a, cell_b]}, columns=2)
    """

    def _make(
        layers: dict[str, list[list[str]]],
        columns: int = 1,
        name: str = "font.aseprite",
    ) -> Path:
        sheets = {layer: glyph_sheet(cells, columns) for layer, cells in layers.items()}
        width = max(w for _, w, _ in sheets.values())
        height = max(h for _, _, h in sheets.values())
        builder = AseBuilder(width, height)
        for layer_name, (rows, w, h) in sheets.items():
            index = builder.add_layer(layer_name)
            builder.add_cel(index, grid_to_rgba(rows), w, h, compressed=True)
        path = tmp_path / name
        path.write_bytes(builder.build())
        return path

    return _make
