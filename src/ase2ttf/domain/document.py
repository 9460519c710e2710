"""In-memory representation of a decoded Aseprite document.

The decoder converts each layer's first-frame cel to RGBA and clips it to
the sprite, so later stages never deal with palettes, compression or cels
hanging off the canvas.
"""

from dataclasses import dataclass, field
from enum import Enum

RGBA = tuple[int, int, int, int]


class PixelFormat(Enum):
    """Colour depth of the source sprite."""

    RGBA = 32
    GRAYSCALE = 16
    INDEXED = 8

    @property
    def bytes_per_pixel(self) -> int:
        """Size of one stored pixel."""
        return self.value // 8


class LayerKind(Enum):
    """Layer type as stored in the layer chunk."""

    NORMAL = 0
    GROUP = 1
    TILEMAP = 2


class BlendMode(Enum):
    """Aseprite layer blend modes."""

    NORMAL = 0
    MULTIPLY = 1
    SCREEN = 2
    OVERLAY = 3
    DARKEN = 4
    LIGHTEN = 5
    COLOR_DODGE = 6
    COLOR_BURN = 7
    HARD_LIGHT = 8
    SOFT_LIGHT = 9
    DIFFERENCE = 10
    EXCLUSION = 11
    HUE = 12
    SATURATION = 13
    COLOR = 14
    LUMINOSITY = 15
    ADDITION = 16
    SUBTRACT = 17
    DIVIDE = 18


@dataclass(frozen=True)
class Layer:
    """A single layer with its first-frame image.

    Only the part of the cel that lies on the canvas is stored, with cel and
    layer opacity already applied. Everything outside ``image_box`` is
    transparent.

    Attributes:
        name: Layer name as typed by the artist
        visible: Visibility flag from the layer chunk
        blend_mode: Blend mode
        opacity: Layer opacity (0-255)
        kind: Normal, group or tilemap layer
        child_level: Nesting depth inside groups
        width: Canvas width in pixels
        height: Canvas height in pixels
        image: Row-major RGBA bytes of the ``image_box`` area
        image_box: (x, y, width, height) of the image on the canvas
        is_background: Whether this is the background layer
    """

    name: str
    visible: bool
    blend_mode: BlendMode
    opacity: int
    kind: LayerKind
    child_level: int
    width: int
    height: int
    image: bytes = field(default=b"", repr=False)
    image_box: tuple[int, int, int, int] = (0, 0, 0, 0)
    is_background: bool = False

    def __post_init__(self) -> None:
        _, _, box_width, box_height = self.image_box
        if len(self.image) != box_width * box_height * 4:
            raise ValueError(
                f"Layer image has {len(self.image)} bytes, "
                f"expected {box_width * box_height * 4}"
            )

    def region(self, x: int, y: int, width: int, height: int) -> bytes:
        """Compose a rectangular region as row-major RGBA bytes.

        Pixels outside the stored image come back transparent.
        """
        out = bytearray(width * height * 4)
        box_x, box_y, box_width, box_height = self.image_box
        x0 = max(x, box_x)
        x1 = min(x + width, box_x + box_width)
        if x0 >= x1:
            return bytes(out)

        span = (x1 - x0) * 4
        for row in range(max(y, box_y), min(y + height, box_y + box_height)):
            src = ((row - box_y) * box_width + (x0 - box_x)) * 4
            dst = ((row - y) * width + (x0 - x)) * 4
            out[dst : dst + span] = self.image[src : src + span]
        return bytes(out)


@dataclass(frozen=True)
class Document:
    """A decoded Aseprite file.

    Attributes:
        width: Sprite width in pixels
        height: Sprite height in pixels
        pixel_format: Colour depth of the source file
        palette: Palette entries in index order
        transparent_index: Palette index treated as transparent
        frame_count: Number of frames in the file
        layers: Layers in declaration order (bottom to top)
    """

    width: int
    height: int
    pixel_format: PixelFormat
    palette: tuple[RGBA, ...]
    transparent_index: int
    frame_count: int
    layers: tuple[Layer, ...]
