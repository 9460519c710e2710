"""ase2ttf - Convert layered pixel-art sheets to TrueType fonts.

ase2ttf reads an Aseprite file whose layers are named after Unicode code
points (``U+0041-``), slices every layer into fixed-size glyph cells and
traces each cell into a TrueType outline.

Example:
    $ ase2ttf alphabet.aseprite --glyph-width=8 --glyph-height=8

This will create alphabet.ttf next to the input file.
"""

__version__ = "0.1.0"
__author__ = "ase2ttf contributors"

__all__ = ["__author__", "__version__"]
