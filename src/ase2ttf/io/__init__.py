"""I/O layer for ase2ttf.

This module handles the two blocking I/O points of a conversion: reading
the Aseprite source and writing the finished font.

Key responsibilities:
- Decode the Aseprite container into domain models
- Read the input inside a scoped file handle
- Write the output atomically through a temporary file

Key classes:
- AsepriteReader: Load and decode a sprite file
- FontWriter: Save assembled font bytes
"""

from ase2ttf.io.aseprite import decode_aseprite
from ase2ttf.io.reader import AsepriteReader
from ase2ttf.io.writer import FontWriter

__all__ = [
    "AsepriteReader",
    "FontWriter",
    "decode_aseprite",
]
