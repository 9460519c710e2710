"""Outline building: from glyph bitmap to scaled TrueType contours."""

from ase2ttf.core.geometry import trace_contours
from ase2ttf.domain.contour import Contour, Point
from ase2ttf.domain.font import FontMetrics
from ase2ttf.domain.glyph import GlyphBitmap, GlyphOutline
from ase2ttf.exceptions import ConfigError


def trim_columns(mask: list[list[bool]], pad: int) -> list[list[bool]]:
    """Drop empty leading and trailing columns, then pad both sides.

    Rows are never trimmed.

    Args:
        mask: Rows of booleans, top row first
        pad: Blank columns to add on each side

    Returns:
        The trimmed mask, or an empty list when no pixel is set
    """
    width = len(mask[0]) if mask else 0
    inked = [x for x in range(width) if any(row[x] for row in mask)]
    if not inked:
        return []

    left, right = inked[0], inked[-1]
    blank = [False] * pad
    return [blank + row[left : right + 1] + blank for row in mask]


class OutlineBuilder:
    """Converts glyph bitmaps into GlyphOutlines.

    One pixel becomes a ``units_per_pixel`` square in design units. The
    origin sits at the left edge of the (possibly trimmed) cell on the
    baseline, ``metrics.baseline`` pixels above the cell bottom.

    Example:
        builder = OutlineBuilder(metrics, trim=True, trim_pad=1)
        outline = builder.build(0x41, bitmap)
    """

    def __init__(
        self,
        metrics: FontMetrics,
        trim: bool = False,
        trim_pad: int = 1,
        alpha_threshold: int = 0,
    ) -> None:
        if trim_pad < 0:
            raise ConfigError(f"must not be negative, got {trim_pad}", field="trim_pad")
        self.metrics = metrics
        self.trim = trim
        self.trim_pad = trim_pad
        self.alpha_threshold = alpha_threshold

    def build(self, code_point: int, bitmap: GlyphBitmap) -> GlyphOutline:
        """Trace one glyph.

        Args:
            code_point: Code point to assign
            bitmap: Cell pixels

        Returns:
            Immutable outline; an empty trimmed bitmap gives a zero-width
            glyph without contours
        """
        mask = bitmap.mask(self.alpha_threshold)
        width = bitmap.width

        if self.trim:
            mask = trim_columns(mask, self.trim_pad)
            if not mask:
                return GlyphOutline(code_point=code_point, advance_width=0)
            width = len(mask[0])

        upp = self.metrics.units_per_pixel
        top = bitmap.height - self.metrics.baseline

        contours = [
            Contour(points=tuple(Point(x * upp, (top - y) * upp) for x, y in loop))
            for loop in trace_contours(mask)
        ]
        return GlyphOutline.from_contours(code_point, width * upp, contours)
