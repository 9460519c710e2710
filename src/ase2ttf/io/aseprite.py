"""Aseprite (.ase/.aseprite) container decoder.

The file is a 128-byte header followed by frames; each frame is a list of
typed chunks. Only the chunks that matter for glyph extraction are decoded:
layers, cels, palettes and tilesets. Everything else is skipped by size.

Each layer's frame-0 cel is converted to RGBA and cropped to the sprite,
so the resulting Document no longer carries palette indices or compressed
payloads. Memory follows the cel sizes, not the size the header declares.
"""

import struct
import zlib
from dataclasses import dataclass, field

from ase2ttf.domain.document import (
    RGBA,
    BlendMode,
    Document,
    Layer,
    LayerKind,
    PixelFormat,
)
from ase2ttf.exceptions import FormatError

HEADER_SIZE = 128
FRAME_HEADER_SIZE = 16
CHUNK_HEADER_SIZE = 6

FILE_MAGIC = 0xA5E0
FRAME_MAGIC = 0xF1FA

CHUNK_OLD_PALETTE = 0x0004
CHUNK_OLD_PALETTE_64 = 0x0011
CHUNK_LAYER = 0x2004
CHUNK_CEL = 0x2005
CHUNK_PALETTE = 0x2019
CHUNK_TILESET = 0x2023

# Header flags
FLAG_LAYER_OPACITY_VALID = 0x1
FLAG_LAYER_UUID = 0x4

# Layer flags
LAYER_VISIBLE = 0x1
LAYER_BACKGROUND = 0x8

# Cel types
CEL_RAW = 0
CEL_LINKED = 1
CEL_COMPRESSED = 2
CEL_TILEMAP = 3

# Tileset flags
TILESET_EXTERNAL = 0x1
TILESET_EMBEDDED = 0x2

TRANSPARENT = b"\x00\x00\x00\x00"


class _ByteReader:
    """Little-endian cursor over a bounded slice of the file."""

    def __init__(self, data: bytes, start: int, end: int) -> None:
        self.data = data
        self.pos = start
        self.end = end

    def _take(self, size: int) -> bytes:
        if self.pos + size > self.end:
            raise FormatError(
                f"Unexpected end of data reading {size} bytes", offset=self.pos
            )
        chunk = self.data[self.pos : self.pos + size]
        self.pos += size
        return chunk

    def _unpack(self, fmt: str) -> int:
        size = struct.calcsize(fmt)
        return struct.unpack(fmt, self._take(size))[0]

    def byte(self) -> int:
        return self._unpack("<B")

    def word(self) -> int:
        return self._unpack("<H")

    def short(self) -> int:
        return self._unpack("<h")

    def dword(self) -> int:
        return self._unpack("<I")

    def read(self, size: int) -> bytes:
        return self._take(size)

    def rest(self) -> bytes:
        return self._take(self.end - self.pos)

    def skip(self, size: int) -> None:
        self._take(size)

    def string(self) -> str:
        length = self.word()
        offset = self.pos
        raw = self._take(length)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise FormatError(f"Invalid UTF-8 string: {e.reason}", offset=offset) from e


@dataclass
class _Header:
    frames: int
    width: int
    height: int
    pixel_format: PixelFormat
    flags: int
    transparent_index: int
    color_count: int


@dataclass
class _RawLayer:
    flags: int
    kind: LayerKind
    child_level: int
    blend_mode: BlendMode
    opacity: int
    name: str
    tileset_index: int | None = None


@dataclass
class _RawCel:
    layer_index: int
    x: int
    y: int
    opacity: int
    cel_type: int
    offset: int
    width: int = 0
    height: int = 0
    pixels: bytes = b""
    link_frame: int = 0
    tile_bits: int = 32
    tile_id_mask: int = 0
    flip_x_mask: int = 0
    flip_y_mask: int = 0
    flip_d_mask: int = 0


@dataclass
class _Tileset:
    tile_width: int
    tile_height: int
    count: int
    pixels: bytes


@dataclass
class _ParseState:
    header: _Header
    palette: list[RGBA] = field(default_factory=list)
    has_new_palette: bool = False
    layers: list[_RawLayer] = field(default_factory=list)
    cels: dict[tuple[int, int], _RawCel] = field(default_factory=dict)
    tilesets: dict[int, _Tileset] = field(default_factory=dict)


def decode_aseprite(data: bytes) -> Document:
    """Decode an Aseprite file into a Document.

    Args:
        data: Complete file contents

    Returns:
        Document with one composited canvas per layer

    Raises:
        FormatError: If the file is malformed, truncated, uses an
            unsupported colour depth or holds a corrupt compressed payload
    """
    header = _parse_header(data)
    state = _ParseState(header=header)

    pos = HEADER_SIZE
    for frame_index in range(header.frames):
        pos = _parse_frame(data, pos, frame_index, state)

    for (_, layer_index), cel in state.cels.items():
        if layer_index >= len(state.layers):
            raise FormatError(f"Cel refers to unknown layer {layer_index}", offset=cel.offset)

    layers = tuple(
        _compose_layer(state, index, raw) for index, raw in enumerate(state.layers)
    )

    return Document(
        width=header.width,
        height=header.height,
        pixel_format=header.pixel_format,
        palette=tuple(state.palette),
        transparent_index=header.transparent_index,
        frame_count=header.frames,
        layers=layers,
    )


def _parse_header(data: bytes) -> _Header:
    if len(data) < HEADER_SIZE:
        raise FormatError(
            f"File too short for an Aseprite header ({len(data)} bytes)", offset=0
        )

    reader = _ByteReader(data, 0, HEADER_SIZE)
    file_size = reader.dword()
    magic = reader.word()
    if magic != FILE_MAGIC:
        raise FormatError(f"Bad magic number 0x{magic:04X}, not an Aseprite file", offset=4)
    if file_size > len(data):
        raise FormatError(
            f"Header declares {file_size} bytes but only {len(data)} are present",
            offset=0,
        )

    frames = reader.word()
    width = reader.word()
    height = reader.word()
    depth = reader.word()
    try:
        pixel_format = PixelFormat(depth)
    except ValueError:
        raise FormatError(f"Unsupported color depth {depth}", offset=12) from None

    flags = reader.dword()
    reader.skip(2 + 4 + 4)  # speed (deprecated) and two reserved dwords
    transparent_index = reader.byte()
    reader.skip(3)
    color_count = reader.word() or 256

    if width == 0 or height == 0:
        raise FormatError(f"Invalid sprite size {width}x{height}", offset=8)

    return _Header(
        frames=frames,
        width=width,
        height=height,
        pixel_format=pixel_format,
        flags=flags,
        transparent_index=transparent_index,
        color_count=color_count,
    )


def _parse_frame(data: bytes, start: int, frame_index: int, state: _ParseState) -> int:
    """Parse one frame and return the offset of the next one."""
    reader = _ByteReader(data, start, len(data))
    frame_size = reader.dword()
    magic = reader.word()
    if magic != FRAME_MAGIC:
        raise FormatError(f"Bad frame magic 0x{magic:04X} in frame {frame_index}", offset=start + 4)

    frame_end = start + frame_size
    if frame_size < FRAME_HEADER_SIZE or frame_end > len(data):
        raise FormatError(f"Truncated frame {frame_index}", offset=start)

    old_chunk_count = reader.word()
    reader.skip(2 + 2)  # duration, reserved
    new_chunk_count = reader.dword()
    chunk_count = new_chunk_count or old_chunk_count

    pos = start + FRAME_HEADER_SIZE
    for _ in range(chunk_count):
        chunk = _ByteReader(data, pos, frame_end)
        chunk_size = chunk.dword()
        chunk_type = chunk.word()
        chunk_end = pos + chunk_size
        if chunk_size < CHUNK_HEADER_SIZE or chunk_end > frame_end:
            raise FormatError(
                f"Truncated chunk 0x{chunk_type:04X} in frame {frame_index}", offset=pos
            )
        chunk.end = chunk_end
        _parse_chunk(chunk_type, chunk, frame_index, state)
        pos = chunk_end

    return frame_end


def _parse_chunk(chunk_type: int, chunk: _ByteReader, frame_index: int, state: _ParseState) -> None:
    if chunk_type == CHUNK_LAYER:
        state.layers.append(_parse_layer(chunk, state.header))
    elif chunk_type == CHUNK_CEL:
        cel = _parse_cel(chunk, state.header)
        state.cels[(frame_index, cel.layer_index)] = cel
    elif chunk_type == CHUNK_PALETTE:
        _parse_palette(chunk, state)
        state.has_new_palette = True
    elif chunk_type in (CHUNK_OLD_PALETTE, CHUNK_OLD_PALETTE_64):
        if not state.has_new_palette:
            _parse_old_palette(chunk, state, six_bit=chunk_type == CHUNK_OLD_PALETTE_64)
    elif chunk_type == CHUNK_TILESET:
        tileset_id, tileset = _parse_tileset(chunk, state.header)
        if tileset is not None:
            state.tilesets[tileset_id] = tileset


def _parse_layer(chunk: _ByteReader, header: _Header) -> _RawLayer:
    offset = chunk.pos
    flags = chunk.word()
    kind_value = chunk.word()
    child_level = chunk.word()
    chunk.skip(4)  # default width/height, ignored
    blend_value = chunk.word()
    opacity = chunk.byte()
    chunk.skip(3)
    name = chunk.string()

    try:
        kind = LayerKind(kind_value)
    except ValueError:
        raise FormatError(f"Unknown layer type {kind_value} for layer '{name}'", offset=offset) from None
    try:
        blend_mode = BlendMode(blend_value)
    except ValueError:
        raise FormatError(f"Unknown blend mode {blend_value} for layer '{name}'", offset=offset) from None

    tileset_index = chunk.dword() if kind is LayerKind.TILEMAP else None
    if header.flags & FLAG_LAYER_UUID:
        chunk.skip(16)

    if not header.flags & FLAG_LAYER_OPACITY_VALID:
        opacity = 255

    return _RawLayer(
        flags=flags,
        kind=kind,
        child_level=child_level,
        blend_mode=blend_mode,
        opacity=opacity,
        name=name,
        tileset_index=tileset_index,
    )


def _parse_cel(chunk: _ByteReader, header: _Header) -> _RawCel:
    offset = chunk.pos
    cel = _RawCel(
        layer_index=chunk.word(),
        x=chunk.short(),
        y=chunk.short(),
        opacity=chunk.byte(),
        cel_type=chunk.word(),
        offset=offset,
    )
    chunk.skip(2 + 5)  # z-index, reserved

    bpp = header.pixel_format.bytes_per_pixel
    if cel.cel_type == CEL_RAW:
        cel.width = chunk.word()
        cel.height = chunk.word()
        cel.pixels = chunk.read(cel.width * cel.height * bpp)
    elif cel.cel_type == CEL_LINKED:
        cel.link_frame = chunk.word()
    elif cel.cel_type == CEL_COMPRESSED:
        cel.width = chunk.word()
        cel.height = chunk.word()
        cel.pixels = _inflate(chunk.rest(), cel.width * cel.height * bpp, offset)
    elif cel.cel_type == CEL_TILEMAP:
        cel.width = chunk.word()
        cel.height = chunk.word()
        cel.tile_bits = chunk.word()
        cel.tile_id_mask = chunk.dword()
        cel.flip_x_mask = chunk.dword()
        cel.flip_y_mask = chunk.dword()
        cel.flip_d_mask = chunk.dword()
        chunk.skip(10)
        if cel.tile_bits not in (8, 16, 32):
            raise FormatError(f"Unsupported tile size of {cel.tile_bits} bits", offset=offset)
        size = cel.width * cel.height * (cel.tile_bits // 8)
        cel.pixels = _inflate(chunk.rest(), size, offset)
    else:
        raise FormatError(f"Unknown cel type {cel.cel_type}", offset=offset)

    return cel


def _parse_palette(chunk: _ByteReader, state: _ParseState) -> None:
    size = chunk.dword()
    first = chunk.dword()
    last = chunk.dword()
    chunk.skip(8)
    if first > last or last >= size:
        raise FormatError(f"Invalid palette range {first}..{last} of {size}", offset=chunk.pos)

    palette = state.palette
    if len(palette) < size:
        palette.extend([(0, 0, 0, 255)] * (size - len(palette)))
    else:
        del palette[size:]

    for index in range(first, last + 1):
        entry_flags = chunk.word()
        r, g, b, a = chunk.read(4)
        palette[index] = (r, g, b, a)
        if entry_flags & 0x1:
            chunk.string()


def _parse_old_palette(chunk: _ByteReader, state: _ParseState, six_bit: bool) -> None:
    palette = state.palette
    index = 0
    for _ in range(chunk.word()):
        index += chunk.byte()
        count = chunk.byte() or 256
        for _ in range(count):
            r, g, b = chunk.read(3)
            if six_bit:
                r, g, b = (r * 255 // 63, g * 255 // 63, b * 255 // 63)
            if index >= len(palette):
                palette.extend([(0, 0, 0, 255)] * (index + 1 - len(palette)))
            palette[index] = (r, g, b, 255)
            index += 1


def _parse_tileset(chunk: _ByteReader, header: _Header) -> tuple[int, _Tileset | None]:
    offset = chunk.pos
    tileset_id = chunk.dword()
    flags = chunk.dword()
    count = chunk.dword()
    tile_width = chunk.word()
    tile_height = chunk.word()
    chunk.skip(2 + 14)  # base index, reserved
    chunk.string()

    if flags & TILESET_EXTERNAL:
        chunk.skip(8)
    if not flags & TILESET_EMBEDDED:
        return tileset_id, None

    data_length = chunk.dword()
    size = tile_width * tile_height * count * header.pixel_format.bytes_per_pixel
    pixels = _inflate(chunk.read(data_length), size, offset)
    return tileset_id, _Tileset(
        tile_width=tile_width,
        tile_height=tile_height,
        count=count,
        pixels=pixels,
    )


def _inflate(payload: bytes, expected: int, offset: int) -> bytes:
    try:
        raw = zlib.decompressobj().decompress(payload, max(expected, 1))
    except zlib.error as e:
        raise FormatError(f"Corrupt compressed data: {e}", offset=offset) from e
    if len(raw) < expected:
        raise FormatError(
            f"Compressed data holds {len(raw)} bytes, expected {expected}", offset=offset
        )
    return raw[:expected]


def _palette_lut(state: _ParseState, transparent_index: int | None) -> list[bytes]:
    lut = [bytes(entry) for entry in state.palette[:256]]
    lut.extend([TRANSPARENT] * (256 - len(lut)))
    if transparent_index is not None:
        lut[transparent_index] = TRANSPARENT
    return lut


def _to_rgba(raw: bytes, state: _ParseState, is_background: bool) -> bytes:
    """Convert stored pixels to RGBA bytes."""
    pixel_format = state.header.pixel_format
    if pixel_format is PixelFormat.RGBA:
        return raw
    if pixel_format is PixelFormat.GRAYSCALE:
        out = bytearray(len(raw) * 2)
        for i in range(0, len(raw), 2):
            value, alpha = raw[i], raw[i + 1]
            out[i * 2 : i * 2 + 4] = bytes((value, value, value, alpha))
        return bytes(out)

    lut = _palette_lut(state, None if is_background else state.header.transparent_index)
    return b"".join(lut[index] for index in raw)


def _resolve_cel(state: _ParseState, layer_index: int, name: str) -> _RawCel | None:
    cel = state.cels.get((0, layer_index))
    if cel is not None and cel.cel_type == CEL_LINKED:
        linked = state.cels.get((cel.link_frame, layer_index))
        if linked is None or linked.cel_type == CEL_LINKED:
            raise FormatError(
                f"Layer '{name}' links to missing cel in frame {cel.link_frame}",
                offset=cel.offset,
            )
        return _RawCel(
            layer_index=layer_index,
            x=linked.x,
            y=linked.y,
            opacity=linked.opacity,
            cel_type=linked.cel_type,
            offset=linked.offset,
            width=linked.width,
            height=linked.height,
            pixels=linked.pixels,
            tile_bits=linked.tile_bits,
            tile_id_mask=linked.tile_id_mask,
            flip_x_mask=linked.flip_x_mask,
            flip_y_mask=linked.flip_y_mask,
            flip_d_mask=linked.flip_d_mask,
        )
    return cel


def _render_tilemap(state: _ParseState, raw: _RawLayer, cel: _RawCel) -> tuple[int, int, bytes]:
    """Expand a tilemap cel into RGBA pixels through its tileset."""
    tileset = None
    if raw.tileset_index is not None:
        tileset = state.tilesets.get(raw.tileset_index)
    if tileset is None:
        raise FormatError(
            f"Tilemap layer '{raw.name}' refers to missing tileset {raw.tileset_index}",
            offset=cel.offset,
        )

    tw, th = tileset.tile_width, tileset.tile_height
    tiles_rgba = _to_rgba(tileset.pixels, state, is_background=False)
    tile_stride = tw * 4
    width, height = cel.width * tw, cel.height * th
    out = bytearray(width * height * 4)

    entry_size = cel.tile_bits // 8
    entry_format = {1: "<B", 2: "<H", 4: "<I"}[entry_size]
    for ty in range(cel.height):
        for tx in range(cel.width):
            pos = (ty * cel.width + tx) * entry_size
            value = struct.unpack_from(entry_format, cel.pixels, pos)[0]
            tile_id = value & cel.tile_id_mask if cel.tile_id_mask else value
            if tile_id == 0 or tile_id >= tileset.count:
                continue

            rows = [
                [
                    tiles_rgba[
                        (tile_id * th + py) * tile_stride + px * 4 : (tile_id * th + py) * tile_stride + px * 4 + 4
                    ]
                    for px in range(tw)
                ]
                for py in range(th)
            ]
            if value & cel.flip_d_mask and tw == th:
                rows = [list(col) for col in zip(*rows)]
            if value & cel.flip_x_mask:
                rows = [row[::-1] for row in rows]
            if value & cel.flip_y_mask:
                rows = rows[::-1]

            for py, row in enumerate(rows):
                start = ((ty * th + py) * width + tx * tw) * 4
                out[start : start + tile_stride] = b"".join(row)

    return width, height, bytes(out)


def _compose_layer(state: _ParseState, index: int, raw: _RawLayer) -> Layer:
    header = state.header
    is_background = bool(raw.flags & LAYER_BACKGROUND)
    image = b""
    box = (0, 0, 0, 0)

    cel = _resolve_cel(state, index, raw.name)
    if cel is not None and raw.kind is not LayerKind.GROUP:
        if cel.cel_type == CEL_TILEMAP:
            width, height, rgba = _render_tilemap(state, raw, cel)
        else:
            width, height = cel.width, cel.height
            rgba = _to_rgba(cel.pixels, state, is_background)
        opacity = cel.opacity * raw.opacity // 255
        image, box = _clip(header.width, header.height, rgba, width, height, cel.x, cel.y, opacity)

    return Layer(
        name=raw.name,
        visible=bool(raw.flags & LAYER_VISIBLE),
        blend_mode=raw.blend_mode,
        opacity=raw.opacity,
        kind=raw.kind,
        child_level=raw.child_level,
        width=header.width,
        height=header.height,
        image=image,
        image_box=box,
        is_background=is_background,
    )


def _clip(
    canvas_width: int,
    canvas_height: int,
    rgba: bytes,
    width: int,
    height: int,
    x: int,
    y: int,
    opacity: int,
) -> tuple[bytes, tuple[int, int, int, int]]:
    """Crop a cel image to the canvas, scaling alpha by opacity.

    Returns:
        The cropped RGBA bytes and their (x, y, width, height) on the canvas
    """
    x0, x1 = max(x, 0), min(x + width, canvas_width)
    y0, y1 = max(y, 0), min(y + height, canvas_height)
    if x0 >= x1 or y0 >= y1:
        return b"", (0, 0, 0, 0)

    rows = []
    for cy in range(y0, y1):
        src = ((cy - y) * width + (x0 - x)) * 4
        span = bytearray(rgba[src : src + (x1 - x0) * 4])
        if opacity < 255:
            for i in range(3, len(span), 4):
                span[i] = span[i] * opacity // 255
        rows.append(bytes(span))
    return b"".join(rows), (x0, y0, x1 - x0, y1 - y0)
