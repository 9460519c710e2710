"""Font-level domain models consumed by the assembler."""

from dataclasses import dataclass, field
from datetime import datetime

from ase2ttf.domain.glyph import GlyphOutline


@dataclass(frozen=True)
class FontMetadata:
    """Naming data, inserted verbatim into the name table.

    Attributes:
        family: Family name
        subfamily: Subfamily (style) name
        version: Version string
        weight_class: OS/2 usWeightClass
        copyright: Optional copyright notice
    """

    family: str
    subfamily: str = "Regular"
    version: str = "Version 1.0"
    weight_class: int = 400
    copyright: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.family} {self.subfamily}"

    @property
    def postscript_name(self) -> str:
        """PostScript name: printable ASCII without spaces or brackets."""
        raw = f"{self.family}-{self.subfamily}"
        allowed = [c for c in raw if 33 <= ord(c) <= 126 and c not in "[](){}<>/%"]
        return "".join(allowed)[:63] or "Untitled"


@dataclass(frozen=True)
class FontMetrics:
    """Global metrics in design units.

    Attributes:
        units_per_pixel: Design units per source pixel
        cell_width: Glyph cell width in pixels
        cell_height: Glyph cell height in pixels
        baseline: Baseline height above the cell bottom, in pixels
        line_gap: Line gap in design units
        underline_position: Underline position in design units
        underline_thickness: Underline thickness in design units
    """

    units_per_pixel: int
    cell_width: int
    cell_height: int
    baseline: int = 2
    line_gap: int = 0
    underline_position: int = 0
    underline_thickness: int = 0

    @property
    def units_per_em(self) -> int:
        return self.units_per_pixel * max(self.cell_width, self.cell_height)

    @property
    def ascent(self) -> int:
        return (self.cell_height - self.baseline) * self.units_per_pixel

    @property
    def descent(self) -> int:
        """Descent below the baseline, negative in font convention."""
        return -self.baseline * self.units_per_pixel

    @property
    def cell_advance(self) -> int:
        return self.cell_width * self.units_per_pixel


@dataclass(frozen=True)
class FontDocument:
    """Everything needed to serialize a font.

    Glyph index 0 (notdef) is implicit and always emitted by the
    assembler; ``glyphs`` holds the encoded glyphs only.

    Attributes:
        glyphs: Outlines sorted strictly by code point
        metadata: Naming data
        metrics: Global metrics
        fixed_pitch: Whether every glyph shares the cell advance
        created: Creation time, None for the fixed 1904 epoch
    """

    glyphs: tuple[GlyphOutline, ...]
    metadata: FontMetadata
    metrics: FontMetrics
    fixed_pitch: bool = True
    created: datetime | None = field(default=None)

    def __post_init__(self) -> None:
        codes = [g.code_point for g in self.glyphs]
        if any(a >= b for a, b in zip(codes, codes[1:])):
            raise ValueError("Glyphs must be strictly increasing by code point")

    @classmethod
    def from_outlines(
        cls,
        outlines: list[GlyphOutline],
        metadata: FontMetadata,
        metrics: FontMetrics,
        fixed_pitch: bool = True,
        created: datetime | None = None,
    ) -> "FontDocument":
        """Build a document from outlines in any order.

        When two outlines share a code point the later one wins.
        """
        by_code: dict[int, GlyphOutline] = {}
        for outline in outlines:
            by_code[outline.code_point] = outline
        return cls(
            glyphs=tuple(by_code[c] for c in sorted(by_code)),
            metadata=metadata,
            metrics=metrics,
            fixed_pitch=fixed_pitch,
            created=created,
        )

    @property
    def glyph_count(self) -> int:
        """Number of glyphs including notdef."""
        return len(self.glyphs) + 1
