"""Reader for loading Aseprite files.

This module provides the AsepriteReader class for loading a sprite file
and decoding it into the Document domain model.
"""

from pathlib import Path

from ase2ttf.domain.document import Document
from ase2ttf.exceptions import InputReadError
from ase2ttf.io.aseprite import decode_aseprite


class AsepriteReader:
    """Loads an Aseprite file and decodes it.

    The file is read once, inside a ``with`` block, and the handle is
    released before decoding starts.

    Example:
        with AsepriteReader(Path("font.aseprite")) as reader:
            for layer in reader.document.layers:
                print(layer.name)
    """

    def __init__(self, path: Path) -> None:
        """Initialize the reader.

        Args:
            path: Path to the .ase or .aseprite file
        """
        self._path = path
        self._document: Document | None = None

    def load(self) -> Document:
        """Read and decode the file.

        Returns:
            Decoded document

        Raises:
            InputReadError: If the file cannot be read
            FormatError: If the file is not a valid Aseprite file
        """
        try:
            with open(self._path, "rb") as fh:
                data = fh.read()
        except OSError as e:
            raise InputReadError(str(self._path), e.strerror or str(e)) from e

        self._document = decode_aseprite(data)
        return self._document

    @property
    def path(self) -> Path:
        return self._path

    @property
    def document(self) -> Document:
        """Return the decoded document.

        Raises:
            RuntimeError: If the file has not been loaded yet
        """
        if self._document is None:
            raise RuntimeError("File not loaded. Call load() first.")
        return self._document

    def close(self) -> None:
        """Drop the decoded document."""
        self._document = None

    def __enter__(self) -> "AsepriteReader":
        """Context manager entry."""
        self.load()
        return self

    def __exit__(self, _exc_type: object, _exc_val: object, _exc_tb: object) -> None:
        """Context manager exit."""
        self.close()
