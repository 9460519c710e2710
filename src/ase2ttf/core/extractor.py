"""Glyph extraction from code-point-named layers.

A layer named ``U+0041-`` holds glyphs starting at U+0041. The canvas is cut
into cells row by row, left to right, and the Nth cell gets ``start + N``.
An explicit end (``U+0041-005A`` or ``U+0041-U+005A``) stops assignment after
that code point. A word after the terminator (``U+0041-Bold``) is only a
label and leaves the range open.
"""

import math
import re
from dataclasses import dataclass

import structlog

from ase2ttf.domain.document import Document, Layer
from ase2ttf.domain.glyph import ExtractedGlyph, GlyphBitmap, GlyphSpec
from ase2ttf.exceptions import ConfigError

MAX_CODE_POINT = 0x10FFFF

LAYER_NAME_PATTERN = re.compile(
    r"""
    ^[Uu]\+(?P<start>[0-9A-Fa-f]+)
    (?:
        \s*(?:-|~|\.\.)\s*
        (?:[Uu]\+)?(?P<end>[0-9A-Fa-f]+(?![0-9A-Za-z]))?
    )?
    """,
    re.VERBOSE,
)

logger = structlog.get_logger("ase2ttf.extractor")


@dataclass(frozen=True)
class CodeRange:
    """Code points claimed by a layer name.

    Attributes:
        start: First code point
        end: Last code point (inclusive), None when open-ended
    """

    start: int
    end: int | None = None

    def limit(self) -> int:
        """Highest code point that may be assigned."""
        return MAX_CODE_POINT if self.end is None else min(self.end, MAX_CODE_POINT)


def parse_layer_name(name: str) -> CodeRange | None:
    """Parse a ``U+<hex>`` layer name.

    Args:
        name: Layer name

    Returns:
        The claimed code range, or None if the layer is not a glyph layer

    Examples:
        >>> parse_layer_name("U+0041-")
        CodeRange(start=65, end=None)
        >>> parse_layer_name("u+30-39")
        CodeRange(start=48, end=57)
        >>> parse_layer_name("Background") is None
        True
    """
    match = LAYER_NAME_PATTERN.match(name.strip())
    if match is None:
        return None

    start = int(match.group("start"), 16)
    if start > MAX_CODE_POINT:
        logger.warning("Layer code point out of Unicode range", layer=name)
        return None

    end_text = match.group("end")
    end = int(end_text, 16) if end_text else None
    if end is not None and end < start:
        logger.warning("Layer range ends before it starts", layer=name)
        return None

    return CodeRange(start=start, end=end)


class GlyphExtractor:
    """Cuts glyph cells out of code-point-named layers.

    Example:
        extractor = GlyphExtractor(cell_width=8, cell_height=8)
        for glyph in extractor.extract(document):
            print(glyph.spec.label)
    """

    def __init__(self, cell_width: int, cell_height: int, alpha_threshold: int = 0) -> None:
        """Initialize the extractor.

        Args:
            cell_width: Glyph cell width in pixels
            cell_height: Glyph cell height in pixels
            alpha_threshold: Pixels with alpha above this count as ink

        Raises:
            ConfigError: If a cell dimension is not positive
        """
        if cell_width <= 0:
            raise ConfigError(f"must be positive, got {cell_width}", field="glyph_width")
        if cell_height <= 0:
            raise ConfigError(f"must be positive, got {cell_height}", field="glyph_height")
        self.cell_width = cell_width
        self.cell_height = cell_height
        self.alpha_threshold = alpha_threshold
        self.ignored_layers: list[str] = []
        self.matched_layers: list[tuple[str, int]] = []
        self.overwritten: list[int] = []

    def extract(self, document: Document) -> list[ExtractedGlyph]:
        """Extract every non-empty glyph cell.

        Layers are visited in document order; when two layers assign the
        same code point, the later layer wins.

        Args:
            document: Decoded image document

        Returns:
            Extracted glyphs ordered by code point
        """
        self.ignored_layers = []
        self.matched_layers = []
        self.overwritten = []
        glyphs: dict[int, ExtractedGlyph] = {}

        for layer in document.layers:
            code_range = parse_layer_name(layer.name)
            if code_range is None:
                self.ignored_layers.append(layer.name)
                logger.debug("Layer ignored", layer=layer.name)
                continue

            count = 0
            for glyph in self.iter_cells(layer, code_range):
                if glyph.code_point in glyphs:
                    self.overwritten.append(glyph.code_point)
                    logger.debug(
                        "Code point overwritten",
                        code_point=glyph.spec.label,
                        previous=glyphs[glyph.code_point].spec.layer_name,
                        layer=layer.name,
                    )
                glyphs[glyph.code_point] = glyph
                count += 1

            self.matched_layers.append((layer.name, count))
            logger.debug("Layer extracted", layer=layer.name, glyphs=count)

        return [glyphs[code] for code in sorted(glyphs)]

    def iter_cells(self, layer: Layer, code_range: CodeRange):
        """Yield the non-empty cells of one layer, row-major.

        Cells that would extend past the canvas edge are dropped, as are
        cells beyond the end of the code range. Only cells overlapping the
        layer image are inspected; the others are empty but still count
        toward the code points of the cells after them.
        """
        columns = layer.width // self.cell_width
        rows = layer.height // self.cell_height
        limit = code_range.limit()

        box_x, box_y, box_width, box_height = layer.image_box
        if not box_width or not box_height:
            return
        first_row = box_y // self.cell_height
        last_row = min(rows, math.ceil((box_y + box_height) / self.cell_height))
        first_column = box_x // self.cell_width
        last_column = min(columns, math.ceil((box_x + box_width) / self.cell_width))

        for row in range(first_row, last_row):
            for column in range(first_column, last_column):
                code_point = code_range.start + row * columns + column
                if code_point > limit:
                    return

                x = column * self.cell_width
                y = row * self.cell_height
                bitmap = GlyphBitmap(
                    width=self.cell_width,
                    height=self.cell_height,
                    rgba=layer.region(x, y, self.cell_width, self.cell_height),
                )
                if bitmap.is_empty(self.alpha_threshold):
                    continue

                yield ExtractedGlyph(
                    spec=GlyphSpec(
                        code_point=code_point,
                        x=x,
                        y=y,
                        width=self.cell_width,
                        height=self.cell_height,
                        layer_name=layer.name,
                    ),
                    bitmap=bitmap,
                )
