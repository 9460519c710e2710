"""Core conversion algorithms for ase2ttf.

This module contains the pipeline stages after decoding:

- Glyph extraction (layer name parsing, cell slicing)
- Raster tracing (boundary edges, loop linking, simplification)
- Outline building (trimming, scaling to design units)
- Font assembly (TrueType tables via fontTools)

The extraction, tracing and outline services are stateless and pure, so
they are safe for use in worker processes.

Key functions:
- parse_layer_name: Parse a ``U+<hex>`` layer name into a code range
- trace_contours: Turn a binary mask into rectilinear loops
- trim_columns: Drop empty columns and re-pad a mask
- process_glyph: Picklable per-glyph worker entry point

Key classes:
- GlyphExtractor: Cuts glyph cells out of a decoded document
- OutlineBuilder: Converts bitmaps into scaled outlines
- FontAssembler: Serializes a FontDocument into TrueType bytes
- FontConverter: Orchestrates a full conversion
"""

from ase2ttf.core.assembler import FontAssembler, glyph_name
from ase2ttf.core.extractor import CodeRange, GlyphExtractor, parse_layer_name
from ase2ttf.core.geometry import signed_area, trace_contours
from ase2ttf.core.outline import OutlineBuilder, trim_columns
from ase2ttf.core.processor import FontConverter, process_glyph

__all__ = [
    "CodeRange",
    "FontAssembler",
    "FontConverter",
    "GlyphExtractor",
    "OutlineBuilder",
    "glyph_name",
    "parse_layer_name",
    "process_glyph",
    "signed_area",
    "trace_contours",
    "trim_columns",
]
