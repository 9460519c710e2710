"""Domain models for ase2ttf.

This module contains the core domain models flowing through the pipeline,
from decoded image document to font-ready outlines. All models are:

- Immutable (frozen dataclasses)
- Serializable for inter-process communication (parallel processing)
- Independent of fonttools implementation details

Key classes:
- Document, Layer: The decoded Aseprite file
- GlyphSpec, GlyphBitmap, ExtractedGlyph: Glyph cells cut from layers
- Point, Contour: Integer outline geometry
- GlyphOutline: A traced glyph in design units
- FontMetadata, FontMetrics, FontDocument: Input to the font assembler
"""

from ase2ttf.domain.contour import Contour, Point, WindingDirection
from ase2ttf.domain.document import BlendMode, Document, Layer, LayerKind, PixelFormat
from ase2ttf.domain.font import FontDocument, FontMetadata, FontMetrics
from ase2ttf.domain.glyph import ExtractedGlyph, GlyphBitmap, GlyphOutline, GlyphSpec

__all__: list[str] = [
    # Enums
    "BlendMode",
    "LayerKind",
    "PixelFormat",
    "WindingDirection",
    # Image document
    "Document",
    "Layer",
    # Glyph types
    "ExtractedGlyph",
    "GlyphBitmap",
    "GlyphOutline",
    "GlyphSpec",
    # Geometry
    "Contour",
    "Point",
    # Font
    "FontDocument",
    "FontMetadata",
    "FontMetrics",
]
