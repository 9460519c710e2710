"""Rich console output helpers for the CLI.

This module provides user-friendly console output using Rich library
with progress bars and formatted messages.
"""

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.text import Text

from ase2ttf.utils import ProcessingStats

console = Console()

# Unicode symbols for consistent visual language
SYM_STEP = "▸"  # Step indicator
SYM_OK = "✓"  # Success
SYM_ERR = "✗"  # Error
SYM_DOT = "·"  # Separator/secondary info


def create_progress() -> Progress:
    """Create a rich progress bar for glyph outlining.

    Returns:
        Configured Progress instance with bar and time elapsed.
    """
    return Progress(
        TextColumn("  "),
        BarColumn(bar_width=40, complete_style="green", finished_style="green"),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=False,
    )


def print_header(version: str) -> None:
    """Print application header.

    Args:
        version: Application version string
    """
    console.print(f"\n[bold]ase2ttf[/bold] v{version}")
    console.print("─" * 44)


def print_step(message: str) -> None:
    """Print a processing step indicator."""
    console.print(f"\n{SYM_STEP} {message}")


def print_sprite_info(
    path: str, width: int, height: int, pixel_format: str, layer_count: int
) -> None:
    """Print sprite information.

    Args:
        path: Path to the sprite file
        width: Canvas width in pixels
        height: Canvas height in pixels
        pixel_format: Colour depth name (e.g. "RGBA", "INDEXED")
        layer_count: Number of layers in the file
    """
    # Use Text to safely handle paths with special characters
    line = Text("  ")
    line.append(path)
    line.append(f" ({pixel_format})")
    console.print(line)
    console.print(f"  {width}x{height} px {SYM_DOT} {layer_count} layers")


def print_layer(name: str, claim: str | None) -> None:
    """Print one layer and the code range it claims.

    Args:
        name: Layer name
        claim: Code range description, or None for ignored layers
    """
    line = Text("  ")
    line.append(name, style="bold" if claim else "dim")
    if claim:
        line.append(f"  {claim}")
    else:
        line.append("  ignored", style="dim")
    console.print(line)


def _format_time(seconds: float) -> str:
    """Format seconds into human-readable time string."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    else:
        mins = int(seconds // 60)
        secs = seconds % 60
        return f"{mins}m {secs:.1f}s"


def format_file_size(size_bytes: int) -> str:
    """Format a byte count in human-readable form (e.g. "12 KB")."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.0f} KB"
    return f"{size_bytes / (1024 * 1024):.1f} MB"


def print_processing_info(workers: int | None) -> None:
    """Print processing configuration.

    Args:
        workers: Number of parallel workers, None when auto-detected
    """
    if workers is None:
        console.print(f"  auto workers {SYM_DOT} Ctrl+C to cancel")
    elif workers == 1:
        console.print("  in-process")
    else:
        console.print(f"  {workers} workers {SYM_DOT} Ctrl+C to cancel")


def print_success(stats: ProcessingStats, verbose: bool = False) -> None:
    """Print success message with summary.

    Args:
        stats: Statistics of the finished conversion
        verbose: Whether to list ignored layers
    """
    console.print(
        f"\n[bold green]{SYM_OK} Complete[/bold green] in {_format_time(stats.duration_seconds)}"
    )

    line = Text("  ")
    line.append(str(stats.output_path), style="bold")
    line.append(f" ({format_file_size(stats.output_size)})")
    console.print(line)

    console.print(
        f"  {stats.glyph_count} glyphs {SYM_DOT} {stats.contour_count} contours "
        f"({stats.hole_count} holes) "
        f"{SYM_DOT} {stats.units_per_em} UPM"
    )
    console.print(
        f"  {stats.layers_matched} glyph layers {SYM_DOT} "
        f"{len(stats.layers_ignored)} ignored"
    )
    if stats.overwritten_count:
        console.print(
            f"  [yellow]{stats.overwritten_count} code points overwritten by later layers"
            "[/yellow]"
        )
    if verbose and stats.layers_ignored:
        console.print(f"  ignored: {', '.join(stats.layers_ignored)}")

    if stats.glyph_timings_ms:
        console.print(
            f"  {stats.avg_glyph_ms:.1f}ms avg "
            f"({stats.min_glyph_ms:.1f}-{stats.max_glyph_ms:.1f}ms range)"
        )


def print_error(message: str, details: str | None = None) -> None:
    """Print error message.

    Args:
        message: Main error message
        details: Optional detailed error information
    """
    console.print(f"\n[bold red]{SYM_ERR} Error:[/bold red] {message}")
    if details:
        console.print(f"  {details}")


def print_cancellation_notice() -> None:
    """Print cancellation acknowledgment."""
    console.print(f"\n{SYM_DOT} [bold]Cancelled[/bold]")
    console.print("  No output file created")
