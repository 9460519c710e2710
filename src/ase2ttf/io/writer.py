"""Font writer for saving assembled fonts.

This module provides the FontWriter class, which writes font bytes through
a temporary file in the destination directory so a failed run never leaves
a partially written font behind.
"""

import os
import tempfile
from pathlib import Path

from ase2ttf.exceptions import OutputWriteError


class FontWriter:
    """Writes assembled font bytes atomically.

    Example:
        writer = FontWriter(Path("output.ttf"))
        writer.save(font_bytes)
    """

    def __init__(self, output_path: Path) -> None:
        """Initialize the font writer.

        Args:
            output_path: Path where the font will be saved
        """
        self._output_path = output_path

    @property
    def output_path(self) -> Path:
        return self._output_path

    def save(self, data: bytes) -> None:
        """Write the font file to the output path.

        The bytes go to a temporary sibling file which replaces the target
        only after it has been fully written and flushed.

        Args:
            data: Complete font file contents

        Raises:
            OutputWriteError: If the file cannot be written
        """
        directory = self._output_path.parent
        tmp_name: str | None = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="wb",
                dir=directory,
                prefix=f".{self._output_path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(data)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self._output_path)
            tmp_name = None
        except OSError as e:
            raise OutputWriteError(str(self._output_path), e.strerror or str(e)) from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass

    @staticmethod
    def get_output_path(input_path: Path) -> Path:
        """Generate the default output path for an input file.

        Converts: font.aseprite -> font.ttf
                  /art/Pixel-Sans.ase -> /art/Pixel-Sans.ttf

        Args:
            input_path: Source image path

        Returns:
            Path with the .ttf extension beside the input
        """
        return input_path.with_suffix(".ttf")
