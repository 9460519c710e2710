"""CLI application entry point for ase2ttf.

This module provides the main CLI interface using Typer.
"""

from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer

from ase2ttf import __version__
from ase2ttf.cli.output import (
    console,
    create_progress,
    print_cancellation_notice,
    print_error,
    print_header,
    print_layer,
    print_processing_info,
    print_sprite_info,
    print_step,
    print_success,
)
from ase2ttf.config import Ase2TtfSettings, build_settings
from ase2ttf.core import FontConverter, parse_layer_name
from ase2ttf.core.extractor import CodeRange
from ase2ttf.exceptions import Ase2TtfError, InputReadError, OutputWriteError
from ase2ttf.io import AsepriteReader

# Create the Typer app
app = typer.Typer(
    name="ase2ttf",
    help="Convert layered Aseprite pixel fonts into TrueType fonts.",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]ase2ttf[/bold blue] v{__version__}")
        raise typer.Exit()


@app.command()
def convert(
    input_file: Annotated[
        Path,
        typer.Argument(
            help="Path to input .ase/.aseprite file",
            show_default=False,
        ),
    ],
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output path (default: {name}.ttf beside the input)",
        ),
    ] = None,
    copyright_notice: Annotated[
        str | None,
        typer.Option("--copyright", help="Copyright notice"),
    ] = None,
    family: Annotated[
        str | None,
        typer.Option("--family", help="Family name (default: input file name)"),
    ] = None,
    subfamily: Annotated[
        str | None,
        typer.Option("--subfamily", help="Subfamily name (default: Regular)"),
    ] = None,
    font_version: Annotated[
        str,
        typer.Option("--font-version", help="Version string, stored verbatim"),
    ] = "Version 1.0",
    font_weight: Annotated[
        int | None,
        typer.Option(
            "--font-weight",
            help="OS/2 weight class 1-1000 (default: derived from subfamily)",
            min=1,
            max=1000,
        ),
    ] = None,
    created: Annotated[
        datetime | None,
        typer.Option(
            "--created",
            help="Creation timestamp stored in the font (default: fixed epoch)",
        ),
    ] = None,
    glyph_width: Annotated[
        int,
        typer.Option("--glyph-width", "-W", help="Glyph cell width in pixels", min=1),
    ] = 16,
    glyph_height: Annotated[
        int,
        typer.Option("--glyph-height", "-H", help="Glyph cell height in pixels", min=1),
    ] = 16,
    trim: Annotated[
        bool,
        typer.Option("--trim", help="Trim empty columns for a proportional font"),
    ] = False,
    trim_pad: Annotated[
        int,
        typer.Option("--trim-pad", help="Blank columns kept on each side when trimming", min=0),
    ] = 1,
    units_per_pixel: Annotated[
        int,
        typer.Option(
            "--units-per-pixel",
            help="Design units per pixel",
            min=1,
            max=1024,
        ),
    ] = 64,
    alpha_threshold: Annotated[
        int,
        typer.Option(
            "--alpha-threshold",
            help="Pixels with alpha above this value are filled",
            min=0,
            max=254,
        ),
    ] = 0,
    baseline: Annotated[
        int,
        typer.Option("--baseline", help="Baseline height above the cell bottom, in pixels"),
    ] = 2,
    line_gap: Annotated[
        int,
        typer.Option("--line-gap", help="Extra line spacing in pixels", min=0, max=255),
    ] = 0,
    underline_position: Annotated[
        int,
        typer.Option("--underline-position", help="Underline position in pixels"),
    ] = 0,
    underline_thickness: Annotated[
        int,
        typer.Option("--underline-thickness", help="Underline thickness in pixels", min=0),
    ] = 1,
    workers: Annotated[
        int | None,
        typer.Option(
            "--workers",
            "-j",
            help="Number of parallel workers (default: auto, 1: in-process)",
            min=1,
        ),
    ] = None,
    list_layers: Annotated[
        bool,
        typer.Option(
            "--list-layers",
            help="List layers and the code points they claim, then exit",
        ),
    ] = False,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            help="Write detailed logs to file",
        ),
    ] = None,
    log_level: Annotated[
        str,
        typer.Option(
            "--log-level",
            help="Logging level (DEBUG|INFO|WARNING|ERROR)",
        ),
    ] = "WARNING",
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbose console output",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Minimal console output",
        ),
    ] = False,
    _version: Annotated[  # noqa: ARG001
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Convert an Aseprite sprite into a TrueType font.

    Layers named U+<hex> hold glyphs: the layer is cut into cells row by
    row and each cell gets the next code point. Layers with other names
    are ignored.

    Example:
        ase2ttf font.aseprite --glyph-width 8 --glyph-height 8

    This will create font.ttf with one glyph per non-empty cell.
    """
    if verbose and quiet:
        print_error("Cannot use --verbose and --quiet together")
        raise typer.Exit(code=1)

    if not input_file.is_file():
        print_error(
            f"Input file not found: {input_file}",
            details="Please provide a path to an .ase or .aseprite file.",
        )
        raise typer.Exit(code=1)

    try:
        if list_layers:
            _handle_list_layers(input_file)
            raise typer.Exit(code=0)

        settings = build_settings(
            glyph={
                "glyph_width": glyph_width,
                "glyph_height": glyph_height,
                "trim": trim,
                "trim_pad": trim_pad,
                "alpha_threshold": alpha_threshold,
            },
            metrics={
                "units_per_pixel": units_per_pixel,
                "baseline": baseline,
                "line_gap": line_gap,
                "underline_position": underline_position,
                "underline_thickness": underline_thickness,
            },
            font={
                "copyright": copyright_notice,
                "family": family,
                "subfamily": subfamily,
                "font_version": font_version,
                "font_weight": font_weight,
                "created": created,
            },
            processing={"max_workers": workers},
            logging={
                "log_file": log_file,
                "log_level": "DEBUG" if verbose else log_level,
                "quiet": quiet,
            },
            output_path=output,
        )

        if not quiet:
            print_header(__version__)

        _run_conversion(input_file, settings, quiet=quiet, verbose=verbose)

    except InputReadError as e:
        print_error(f"Could not read sprite: {e.reason}")
        raise typer.Exit(code=1)
    except OutputWriteError as e:
        print_error(f"Could not save font: {e.reason}")
        raise typer.Exit(code=1)
    except Ase2TtfError as e:
        print_error(str(e))
        raise typer.Exit(code=1)
    except typer.Exit:
        # Re-raise typer.Exit to allow clean exits
        raise
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        raise typer.Exit(code=1)


def _run_conversion(
    input_file: Path, settings: Ase2TtfSettings, quiet: bool, verbose: bool
) -> None:
    """Run the converter with a progress bar unless quiet."""
    converter = FontConverter(settings)

    try:
        if quiet:
            converter.convert(input_file)
            return

        print_step("Converting")
        print_processing_info(settings.processing.max_workers)

        with create_progress() as progress:
            task_id = progress.add_task("Outlining glyphs", total=None)

            def update_progress(completed: int, total: int, *_: object) -> None:
                progress.update(task_id, completed=completed, total=total)

            stats = converter.convert(input_file, progress_callback=update_progress)

    except KeyboardInterrupt:
        if not quiet:
            print_cancellation_notice()
        raise typer.Exit(code=130) from None  # Standard Unix SIGINT exit code

    print_success(stats, verbose=verbose)


def describe_range(code_range: CodeRange) -> str:
    """Human readable code range, e.g. ``U+0041..U+005A``."""
    if code_range.end is None:
        return f"U+{code_range.start:04X}.."
    return f"U+{code_range.start:04X}..U+{code_range.end:04X}"


def _handle_list_layers(input_file: Path) -> None:
    """Handle --list-layers mode.

    Args:
        input_file: Path to sprite file
    """
    print_step("Loading sprite")

    with AsepriteReader(input_file) as reader:
        document = reader.document
        print_sprite_info(
            path=str(input_file),
            width=document.width,
            height=document.height,
            pixel_format=document.pixel_format.name,
            layer_count=len(document.layers),
        )

        print_step("Layers")
        for layer in document.layers:
            code_range = parse_layer_name(layer.name)
            print_layer(layer.name, describe_range(code_range) if code_range else None)


def cli() -> None:
    """Entry point for the CLI application."""
    app()


def main() -> None:
    """Entry point for the CLI application (alias for cli)."""
    cli()


if __name__ == "__main__":
    cli()
