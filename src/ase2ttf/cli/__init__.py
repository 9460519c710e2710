"""Command-line interface for ase2ttf.

This module provides the CLI using Typer with rich output for
user-friendly feedback and progress reporting.

Key features:
- Progress bar for glyph outlining
- Verbose/quiet output modes
- Layer listing for checking code point assignment
- Detailed error reporting
"""

from ase2ttf.cli.app import cli, main

__all__ = ["cli", "main"]
