"""Logging utilities for ase2ttf."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import structlog

# Handlers installed by configure_logging, replaced on reconfiguration
_installed_handlers: list[logging.Handler] = []


@dataclass
class ProcessingStats:
    """Statistics from a conversion run."""

    layers_matched: int = 0
    layers_ignored: list[str] = field(default_factory=list)
    glyph_count: int = 0
    overwritten_count: int = 0
    empty_count: int = 0
    contour_count: int = 0
    hole_count: int = 0
    point_count: int = 0
    error_count: int = 0
    errors: list[tuple[str, str]] = field(default_factory=list)
    glyph_timings_ms: list[float] = field(default_factory=list)
    units_per_em: int = 0
    output_path: Path | None = None
    output_size: int = 0
    start_time: float | None = None
    end_time: float | None = None

    @property
    def duration_seconds(self) -> float:
        """Calculate processing duration."""
        if self.start_time and self.end_time:
            return self.end_time - self.start_time
        return 0.0

    @property
    def avg_glyph_ms(self) -> float:
        if not self.glyph_timings_ms:
            return 0.0
        return sum(self.glyph_timings_ms) / len(self.glyph_timings_ms)

    @property
    def min_glyph_ms(self) -> float:
        return min(self.glyph_timings_ms, default=0.0)

    @property
    def max_glyph_ms(self) -> float:
        return max(self.glyph_timings_ms, default=0.0)


def configure_logging(
    log_file: Path | None = None,
    console_level: str = "WARNING",
    file_level: str = "DEBUG",
    quiet: bool = False,
) -> structlog.stdlib.BoundLogger:
    """Configure dual-output structured logging.

    Console output always goes to stderr. A file handler is only added
    when ``log_file`` is given.

    Args:
        log_file: Path to log file, or None for console only
        console_level: Logging level for console output
        file_level: Logging level for file output
        quiet: If True, suppress console output except errors

    Returns:
        Configured structlog logger
    """
    root_logger = logging.getLogger()
    for handler in _installed_handlers:
        root_logger.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel("ERROR" if quiet else console_level.upper())
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    _installed_handlers.append(console_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(file_level.upper())
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s | %(message)s")
        )
        _installed_handlers.append(file_handler)

    root_logger.setLevel(logging.DEBUG)
    for handler in _installed_handlers:
        root_logger.addHandler(handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logger = structlog.get_logger("ase2ttf")
    logger.debug(
        "Logging initialized",
        log_file=str(log_file) if log_file else None,
        level=file_level,
    )

    return logger


class ProcessingLogger:
    """Logger for tracking conversion progress and statistics."""

    def __init__(self, logger: structlog.stdlib.BoundLogger) -> None:
        self._logger = logger
        self._stats = ProcessingStats()

    def log_layer_matched(self, layer_name: str, glyphs: int) -> None:
        """Log a glyph layer and how many glyphs it contributed."""
        self._logger.debug("Glyph layer", layer=layer_name, glyphs=glyphs)
        self._stats.layers_matched += 1

    def log_layer_ignored(self, layer_name: str) -> None:
        """Log a layer whose name does not claim code points."""
        self._logger.info("Layer ignored", layer=layer_name)
        self._stats.layers_ignored.append(layer_name)

    def log_glyph_complete(
        self,
        label: str,
        contours: int,
        points: int,
        duration_ms: float,
        holes: int = 0,
    ) -> None:
        """Log a traced glyph."""
        self._logger.debug(
            "Glyph outlined",
            glyph=label,
            contours=contours,
            holes=holes,
            points=points,
            duration_ms=round(duration_ms, 2),
        )
        self._stats.glyph_count += 1
        self._stats.contour_count += contours
        self._stats.hole_count += holes
        self._stats.point_count += points
        self._stats.glyph_timings_ms.append(duration_ms)
        if contours == 0:
            self._stats.empty_count += 1

    def log_glyph_error(
        self,
        label: str,
        error: Exception,
        traceback: str | None = None,
    ) -> None:
        """Log glyph processing error."""
        self._logger.error(
            "Glyph outlining failed",
            glyph=label,
            error=str(error),
            error_type=type(error).__name__,
            traceback=traceback,
        )
        self._stats.error_count += 1
        self._stats.errors.append((label, str(error)))

    def log_overwritten(self, code_points: list[int]) -> None:
        """Log code points claimed by more than one layer."""
        if code_points:
            self._logger.warning(
                "Code points assigned by several layers; later layers win",
                code_points=[f"U+{c:04X}" for c in code_points],
            )
        self._stats.overwritten_count += len(code_points)

    @property
    def stats(self) -> ProcessingStats:
        """Get current processing statistics."""
        return self._stats
