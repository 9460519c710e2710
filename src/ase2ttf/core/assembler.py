"""TrueType font assembly.

The assembler turns a FontDocument into a complete ``.ttf`` file using
fontTools' FontBuilder. Tables are set up in stages:

1. Glyph order and outlines (``glyf``/``loca``)
2. Metrics (``hmtx``, ``hhea``) and character map (``cmap``)
3. Profile and naming (``maxp``, ``name``, ``OS/2``, ``post``)
4. ``head`` last, with fixed timestamps

Serialization goes to an in-memory buffer; fontTools lays out the table
directory, pads every table to four bytes, records per-table checksums and
finally patches ``head.checkSumAdjustment`` so the whole file sums to
``0xB1B0AFBA``.
"""

import io
import re
import struct
from datetime import datetime

from fontTools import agl
from fontTools.fontBuilder import FontBuilder
from fontTools.misc.timeTools import timestampSinceEpoch
from fontTools.pens.ttGlyphPen import TTGlyphPen
from fontTools.ttLib import newTable
from fontTools.ttLib.tables._c_m_a_p import CmapSubtable

from ase2ttf.domain.font import FontDocument, FontMetadata, FontMetrics
from ase2ttf.domain.glyph import GlyphOutline
from ase2ttf.exceptions import BuildError

NOTDEF = ".notdef"

MAX_GLYPHS = 0xFFFF
MAX_POINTS = 0xFFFF
MAX_CONTOURS = 0x7FFF
MIN_UNITS_PER_EM = 16
MAX_UNITS_PER_EM = 16384
INT16_MIN = -0x8000
INT16_MAX = 0x7FFF
UINT16_MAX = 0xFFFF

# head.flags: baseline at y=0, lsb at x=0, integer scaling
HEAD_FLAGS = 0b0000_0000_0000_1011
MAC_STYLE_BOLD = 0x1

FS_SELECTION_BOLD = 1 << 5
FS_SELECTION_REGULAR = 1 << 6

RIBBI_STYLES = ("Regular", "Bold", "Italic", "Bold Italic")

VERSION_NUMBER = re.compile(r"(\d+(?:\.\d+)?)")


def glyph_name(code_point: int) -> str:
    """Production glyph name for a code point.

    Uses the AGL name when there is one (``A``, ``space``), otherwise
    ``uniXXXX`` or ``uXXXXX``.
    """
    name = agl.UV2AGL.get(code_point)
    if name:
        return name
    if code_point <= 0xFFFF:
        return f"uni{code_point:04X}"
    return f"u{code_point:05X}"


def font_revision(version: str) -> float:
    """Extract the numeric revision from a version string.

    Examples:
        >>> font_revision("Version 1.002")
        1.002
        >>> font_revision("beta")
        1.0
    """
    match = VERSION_NUMBER.search(version)
    if match is None:
        return 1.0
    value = float(match.group(1))
    return value if value < 32768 else 1.0


def _timestamp(created: datetime | None) -> int:
    """Seconds since 1904-01-01, the fixed epoch when unset."""
    if created is None:
        return 0
    return timestampSinceEpoch(created.timestamp())


def _draw(outline: GlyphOutline):
    pen = TTGlyphPen(None)
    start = 0
    for end in outline.end_points:
        points = outline.points[start : end + 1]
        pen.moveTo(points[0])
        for point in points[1:]:
            pen.lineTo(point)
        pen.closePath()
        start = end + 1
    return pen.glyph()


def _notdef_outline(metrics: FontMetrics) -> GlyphOutline:
    """A one-pixel hollow box from baseline to ascent, with a one-pixel right margin."""
    upp = metrics.units_per_pixel
    x0, x1 = 0, metrics.cell_advance - upp
    y0, y1 = 0, metrics.ascent
    if x1 - x0 < 3 * upp or y1 - y0 < 3 * upp:
        return GlyphOutline(code_point=0, advance_width=metrics.cell_advance)

    outer = ((x0, y0), (x0, y1), (x1, y1), (x1, y0))
    inner = (
        (x0 + upp, y0 + upp),
        (x1 - upp, y0 + upp),
        (x1 - upp, y1 - upp),
        (x0 + upp, y1 - upp),
    )
    xs = [x for x, _ in outer]
    ys = [y for _, y in outer]
    return GlyphOutline(
        code_point=0,
        advance_width=metrics.cell_advance,
        bounds=(min(xs), min(ys), max(xs), max(ys)),
        points=outer + inner,
        end_points=(3, 7),
    )


def _mac_encodable(value: str) -> bool:
    try:
        value.encode("mac_roman")
    except UnicodeEncodeError:
        return False
    return True


class FontAssembler:
    """Serializes a FontDocument into TrueType bytes.

    Example:
        assembler = FontAssembler()
        data = assembler.assemble(document)
    """

    def assemble(self, document: FontDocument) -> bytes:
        """Build the complete font file.

        Args:
            document: Glyphs, metadata and metrics

        Returns:
            Font file contents

        Raises:
            BuildError: If the font would exceed a structural limit
        """
        self.check_limits(document)

        metrics = document.metrics
        names = [NOTDEF] + [glyph_name(g.code_point) for g in document.glyphs]
        outlines = [_notdef_outline(metrics), *document.glyphs]

        fb = FontBuilder(metrics.units_per_em, isTTF=True)
        fb.font.recalcTimestamp = False

        # Stage 1: outlines
        fb.setupGlyphOrder(names)
        fb.setupGlyf({name: _draw(outline) for name, outline in zip(names, outlines)})

        # Stage 2: metrics and character map
        fb.setupHorizontalMetrics(
            {
                name: (outline.advance_width, outline.left_side_bearing)
                for name, outline in zip(names, outlines)
            }
        )
        fb.setupHorizontalHeader(
            ascent=metrics.ascent,
            descent=metrics.descent,
            lineGap=metrics.line_gap,
        )
        self._setup_cmap(fb, {g.code_point: name for g, name in zip(document.glyphs, names[1:])})

        # Stage 3: profile, naming, summary metrics
        fb.setupMaxp()
        self._setup_names(fb, document.metadata)
        self._setup_os2(fb, document, outlines)
        fb.setupPost(
            keepGlyphNames=True,
            isFixedPitch=int(document.fixed_pitch),
            underlinePosition=metrics.underline_position,
            underlineThickness=metrics.underline_thickness,
        )

        # Stage 4: head, once everything it summarizes exists
        timestamp = _timestamp(document.created)
        bold = document.metadata.weight_class >= 700
        fb.setupHead(
            unitsPerEm=metrics.units_per_em,
            fontRevision=font_revision(document.metadata.version),
            created=timestamp,
            modified=timestamp,
            flags=HEAD_FLAGS,
            macStyle=MAC_STYLE_BOLD if bold else 0,
            lowestRecPPEM=min(metrics.cell_height, 255),
        )

        buffer = io.BytesIO()
        try:
            fb.save(buffer)
        except (struct.error, OverflowError, UnicodeEncodeError) as e:
            raise BuildError(f"Failed to compile font tables: {e}") from e
        return buffer.getvalue()

    def check_limits(self, document: FontDocument) -> None:
        """Validate the document against TrueType structural limits.

        Raises:
            BuildError: On the first limit exceeded
        """
        metrics = document.metrics
        if document.glyph_count > MAX_GLYPHS:
            raise BuildError(f"Too many glyphs: {document.glyph_count}", limit=MAX_GLYPHS)

        upm = metrics.units_per_em
        if not MIN_UNITS_PER_EM <= upm <= MAX_UNITS_PER_EM:
            raise BuildError(
                f"Units per em {upm} out of range {MIN_UNITS_PER_EM}..{MAX_UNITS_PER_EM}; "
                "adjust units per pixel",
                limit=MAX_UNITS_PER_EM if upm > MAX_UNITS_PER_EM else MIN_UNITS_PER_EM,
            )

        for value in (metrics.ascent, metrics.descent, metrics.line_gap, metrics.cell_advance):
            if not INT16_MIN <= value <= INT16_MAX:
                raise BuildError(f"Font metric {value} does not fit in 16 bits", limit=INT16_MAX)

        for outline in document.glyphs:
            label = f"U+{outline.code_point:04X}"
            if outline.point_count > MAX_POINTS:
                raise BuildError(
                    f"Glyph {label} has {outline.point_count} points", limit=MAX_POINTS
                )
            if outline.contour_count > MAX_CONTOURS:
                raise BuildError(
                    f"Glyph {label} has {outline.contour_count} contours", limit=MAX_CONTOURS
                )
            if outline.advance_width > UINT16_MAX:
                raise BuildError(
                    f"Glyph {label} advance {outline.advance_width} too wide", limit=UINT16_MAX
                )
            if any(not INT16_MIN <= v <= INT16_MAX for v in outline.bounds):
                raise BuildError(
                    f"Glyph {label} coordinates exceed 16 bits", limit=INT16_MAX
                )

    def _setup_cmap(self, fb: FontBuilder, mapping: dict[int, str]) -> None:
        bmp = {code: name for code, name in mapping.items() if code <= 0xFFFF}
        encodings = [(4, 0, 3, bmp), (4, 3, 1, bmp)]
        if len(bmp) != len(mapping):
            encodings += [(12, 0, 4, mapping), (12, 3, 10, mapping)]

        subtables = []
        for format_, platform_id, encoding_id, cmapping in encodings:
            subtable = CmapSubtable.newSubtable(format_)
            subtable.platformID = platform_id
            subtable.platEncID = encoding_id
            subtable.language = 0
            subtable.cmap = dict(cmapping)
            subtables.append(subtable)

        cmap = newTable("cmap")
        cmap.tableVersion = 0
        cmap.tables = subtables
        fb.font["cmap"] = cmap

    def _setup_names(self, fb: FontBuilder, metadata: FontMetadata) -> None:
        family = metadata.family
        subfamily = metadata.subfamily
        if subfamily in RIBBI_STYLES:
            legacy_family, legacy_style = family, subfamily
        else:
            legacy_family, legacy_style = f"{family} {subfamily}", "Regular"

        names = {
            "familyName": legacy_family,
            "styleName": legacy_style,
            "uniqueFontIdentifier": f"ase2ttf: {metadata.full_name}",
            "fullName": metadata.full_name,
            "version": metadata.version,
            "psName": metadata.postscript_name,
            "typographicFamily": family,
            "typographicSubfamily": subfamily,
        }
        if metadata.copyright:
            names["copyright"] = metadata.copyright

        fb.setupNameTable(names, mac=all(_mac_encodable(v) for v in names.values()))

    def _setup_os2(
        self, fb: FontBuilder, document: FontDocument, outlines: list[GlyphOutline]
    ) -> None:
        metrics = document.metrics
        metadata = document.metadata
        advances = [o.advance_width for o in outlines if o.advance_width > 0]
        half_width = metrics.cell_advance // 2
        half_height = metrics.cell_height * metrics.units_per_pixel // 2

        if metadata.weight_class >= 700:
            selection = FS_SELECTION_BOLD
        elif metadata.subfamily == "Regular":
            selection = FS_SELECTION_REGULAR
        else:
            selection = 0

        fb.setupOS2(
            xAvgCharWidth=round(sum(advances) / len(advances)) if advances else 0,
            usWeightClass=metadata.weight_class,
            usWidthClass=5,
            fsType=0,
            ySubscriptXSize=half_width,
            ySubscriptYSize=half_height,
            ySubscriptXOffset=0,
            ySubscriptYOffset=half_height,
            ySuperscriptXSize=half_width,
            ySuperscriptYSize=half_height,
            ySuperscriptXOffset=0,
            ySuperscriptYOffset=half_height,
            yStrikeoutSize=metrics.units_per_pixel,
            yStrikeoutPosition=half_height,
            fsSelection=selection,
            sTypoAscender=metrics.ascent,
            sTypoDescender=metrics.descent,
            sTypoLineGap=metrics.line_gap,
            usWinAscent=max(metrics.ascent, 0),
            usWinDescent=-min(metrics.descent, 0),
        )
        fb.font["OS/2"].recalcUnicodeRanges(fb.font)
