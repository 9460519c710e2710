"""Glyph representation from raster cell to traced outline.

This module defines the glyph domain models:
- GlyphSpec: where a glyph lives on the sprite and which code point it gets
- GlyphBitmap: the pixels of one cell
- ExtractedGlyph: a cell placement paired with its bitmap
- GlyphOutline: the traced, scaled outline ready for the font
"""

from dataclasses import dataclass, field
from typing import Any

from ase2ttf.domain.contour import Contour, Point, WindingDirection


@dataclass(frozen=True)
class GlyphSpec:
    """Placement of one glyph cell.

    Attributes:
        code_point: Unicode code point assigned to the cell
        x: Left edge of the cell on the canvas
        y: Top edge of the cell on the canvas
        width: Cell width in pixels
        height: Cell height in pixels
        layer_name: Name of the layer the cell was cut from
    """

    code_point: int
    x: int
    y: int
    width: int
    height: int
    layer_name: str = ""

    @property
    def label(self) -> str:
        """Human readable code point, e.g. ``U+0041``."""
        return f"U+{self.code_point:04X}"


@dataclass(frozen=True)
class GlyphBitmap:
    """A ``width x height`` RGBA pixel grid, top row first.

    Attributes:
        width: Width in pixels
        height: Height in pixels
        rgba: Row-major RGBA bytes
    """

    width: int
    height: int
    rgba: bytes = field(repr=False)

    def __post_init__(self) -> None:
        if len(self.rgba) != self.width * self.height * 4:
            raise ValueError(
                f"Bitmap data has {len(self.rgba)} bytes, "
                f"expected {self.width * self.height * 4}"
            )

    def alpha(self, x: int, y: int) -> int:
        """Alpha value of the pixel at (x, y)."""
        return self.rgba[(y * self.width + x) * 4 + 3]

    def mask(self, threshold: int = 0) -> list[list[bool]]:
        """Binary coverage mask.

        Args:
            threshold: Pixels with alpha strictly above this are "on"

        Returns:
            Rows of booleans, top row first
        """
        return [
            [self.alpha(x, y) > threshold for x in range(self.width)]
            for y in range(self.height)
        ]

    def is_empty(self, threshold: int = 0) -> bool:
        """Check whether no pixel is "on"."""
        return all(a <= threshold for a in self.rgba[3::4])


@dataclass(frozen=True)
class ExtractedGlyph:
    """A glyph cell and its pixels, as produced by the extractor."""

    spec: GlyphSpec
    bitmap: GlyphBitmap

    @property
    def code_point(self) -> int:
        return self.spec.code_point


@dataclass(frozen=True)
class GlyphOutline:
    """A traced glyph in font design units.

    Contour points are kept in one flat arena; ``end_points`` holds the
    index of the last point of each contour, the same layout TrueType uses
    for ``endPtsOfContours``.

    Attributes:
        code_point: Unicode code point
        advance_width: Horizontal advance in design units
        bounds: (x_min, y_min, x_max, y_max), all zero for empty glyphs
        points: Flat tuple of (x, y) coordinates
        end_points: Last point index of each contour
    """

    code_point: int
    advance_width: int
    bounds: tuple[int, int, int, int] = (0, 0, 0, 0)
    points: tuple[tuple[int, int], ...] = ()
    end_points: tuple[int, ...] = ()

    @classmethod
    def from_contours(
        cls, code_point: int, advance_width: int, contours: list[Contour]
    ) -> "GlyphOutline":
        """Pack contours into the flat point arena.

        Args:
            code_point: Unicode code point
            advance_width: Advance width in design units
            contours: Contours in drawing order

        Returns:
            GlyphOutline instance
        """
        points: list[tuple[int, int]] = []
        end_points: list[int] = []
        for contour in contours:
            points.extend(p.to_tuple() for p in contour.points)
            end_points.append(len(points) - 1)

        if points:
            xs = [x for x, _ in points]
            ys = [y for _, y in points]
            bounds = (min(xs), min(ys), max(xs), max(ys))
        else:
            bounds = (0, 0, 0, 0)

        return cls(
            code_point=code_point,
            advance_width=advance_width,
            bounds=bounds,
            points=tuple(points),
            end_points=tuple(end_points),
        )

    @property
    def contours(self) -> list[Contour]:
        """Contours rebuilt from the point arena."""
        result = []
        start = 0
        for end in self.end_points:
            result.append(
                Contour(points=tuple(Point(x, y) for x, y in self.points[start : end + 1]))
            )
            start = end + 1
        return result

    @property
    def left_side_bearing(self) -> int:
        return self.bounds[0]

    @property
    def point_count(self) -> int:
        return len(self.points)

    @property
    def contour_count(self) -> int:
        return len(self.end_points)

    @property
    def hole_count(self) -> int:
        """Number of counter-clockwise contours."""
        return sum(
            1 for c in self.contours if c.direction is WindingDirection.COUNTER_CLOCKWISE
        )

    def is_empty(self) -> bool:
        """Check if glyph has no outlines."""
        return not self.end_points

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for IPC.

        Returns:
            Dictionary representation of the outline
        """
        return {
            "code_point": self.code_point,
            "advance_width": self.advance_width,
            "bounds": list(self.bounds),
            "points": [list(p) for p in self.points],
            "end_points": list(self.end_points),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GlyphOutline":
        """Deserialize from dictionary.

        Args:
            data: Dictionary representation of an outline

        Returns:
            GlyphOutline instance
        """
        return cls(
            code_point=data["code_point"],
            advance_width=data["advance_width"],
            bounds=tuple(data["bounds"]),  # type: ignore[arg-type]
            points=tuple((x, y) for x, y in data["points"]),
            end_points=tuple(data["end_points"]),
        )
