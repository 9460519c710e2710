"""Conversion orchestration.

This module wires the pipeline stages together and runs per-glyph outline
building in worker processes using ProcessPoolExecutor.

Key components:
- process_glyph: Top-level picklable function for parallel execution
- FontConverter: Main orchestrator class for a single conversion
"""

import time
import traceback
from collections.abc import Callable
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import asdict
from pathlib import Path
from typing import Any

from ase2ttf.config import Ase2TtfSettings
from ase2ttf.core.assembler import FontAssembler
from ase2ttf.core.extractor import GlyphExtractor
from ase2ttf.core.outline import OutlineBuilder
from ase2ttf.domain import (
    ExtractedGlyph,
    FontDocument,
    FontMetadata,
    FontMetrics,
    GlyphBitmap,
    GlyphOutline,
)
from ase2ttf.exceptions import BuildError, ConfigError
from ase2ttf.io import AsepriteReader, FontWriter
from ase2ttf.utils import ProcessingLogger, ProcessingStats, configure_logging

ProgressCallback = Callable[[int, int, str, bool], None]


def process_glyph(task: dict[str, Any], builder_config: dict[str, Any]) -> dict[str, Any]:
    """Outline a single glyph.

    Top-level function designed to be picklable for use with
    ProcessPoolExecutor. Rebuilds the bitmap and builder from plain data,
    traces the glyph and returns the outline as a dictionary.

    Args:
        task: Glyph cell as {"code_point", "width", "height", "rgba"}
        builder_config: {"metrics": dict, "trim", "trim_pad", "alpha_threshold"}

    Returns:
        Dictionary containing either:
        - Success: {"outline": outline_dict, "duration_ms": float}
        - Error: {"error": str, "code_point": int, "traceback": str, "duration_ms": float}
    """
    start_time = time.time()

    try:
        bitmap = GlyphBitmap(width=task["width"], height=task["height"], rgba=task["rgba"])
        builder = OutlineBuilder(
            metrics=FontMetrics(**builder_config["metrics"]),
            trim=builder_config["trim"],
            trim_pad=builder_config["trim_pad"],
            alpha_threshold=builder_config["alpha_threshold"],
        )
        outline = builder.build(task["code_point"], bitmap)

        duration_ms = (time.time() - start_time) * 1000
        return {"outline": outline.to_dict(), "duration_ms": duration_ms}

    except Exception as e:
        duration_ms = (time.time() - start_time) * 1000
        return {
            "error": str(e),
            "code_point": task.get("code_point", -1),
            "traceback": traceback.format_exc(),
            "duration_ms": duration_ms,
        }


class FontConverter:
    """Converts one Aseprite file into one TrueType font.

    Manages the complete workflow:
    1. Validate settings before touching the input
    2. Read and decode the sprite
    3. Extract glyph cells from code-point layers
    4. Outline glyphs, in worker processes unless max_workers is 1
    5. Assemble the font and write it atomically

    Example:
        settings = Ase2TtfSettings()
        converter = FontConverter(settings)
        stats = converter.convert(Path("font.aseprite"))
    """

    def __init__(self, config: Ase2TtfSettings) -> None:
        """Initialize converter with configuration.

        Args:
            config: Conversion settings

        Raises:
            ConfigError: If the settings are inconsistent
        """
        self.config = config
        self.logger = configure_logging(
            log_file=config.logging.log_file,
            console_level=config.logging.log_level,
            file_level=config.logging.file_log_level,
            quiet=config.logging.quiet,
        )

        glyph = config.glyph
        if config.metrics.baseline > glyph.glyph_height:
            raise ConfigError(
                f"baseline {config.metrics.baseline} is above the cell height "
                f"{glyph.glyph_height}",
                field="metrics.baseline",
            )
        self.metrics = self._build_metrics()
        self.extractor = GlyphExtractor(
            cell_width=glyph.glyph_width,
            cell_height=glyph.glyph_height,
            alpha_threshold=glyph.alpha_threshold,
        )
        self.builder = OutlineBuilder(
            metrics=self.metrics,
            trim=glyph.trim,
            trim_pad=glyph.trim_pad,
            alpha_threshold=glyph.alpha_threshold,
        )
        self.assembler = FontAssembler()

    def _build_metrics(self) -> FontMetrics:
        glyph = self.config.glyph
        metrics = self.config.metrics
        upp = metrics.units_per_pixel
        return FontMetrics(
            units_per_pixel=upp,
            cell_width=glyph.glyph_width,
            cell_height=glyph.glyph_height,
            baseline=metrics.baseline,
            line_gap=metrics.line_gap * upp,
            underline_position=metrics.underline_position * upp,
            underline_thickness=metrics.underline_thickness * upp,
        )

    def _build_metadata(self, input_path: Path) -> FontMetadata:
        font = self.config.font
        return FontMetadata(
            family=font.family or input_path.stem,
            subfamily=font.subfamily or "Regular",
            version=font.font_version,
            weight_class=font.weight_class(),
            copyright=font.copyright,
        )

    def convert(
        self,
        input_path: Path,
        output_path: Path | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> ProcessingStats:
        """Convert a sprite file into a font file.

        Args:
            input_path: Path to the .ase or .aseprite file
            output_path: Path for the font (settings or <stem>.ttf if None)
            progress_callback: Optional callback(completed, total, label, success)
                for progress updates

        Returns:
            ProcessingStats with counts, timing and output details

        Raises:
            InputReadError: If the input cannot be read
            FormatError: If the input is not a valid Aseprite file
            BuildError: If a glyph fails or the font exceeds a format limit
            OutputWriteError: If the font cannot be written
        """
        processing_logger = ProcessingLogger(self.logger)
        stats = processing_logger.stats
        stats.start_time = time.time()

        if output_path is None:
            output_path = self.config.output_path or FontWriter.get_output_path(input_path)

        max_workers = self.config.processing.max_workers
        self.logger.info(
            "Starting conversion",
            input=str(input_path),
            output=str(output_path),
            max_workers=max_workers,
        )

        reader = AsepriteReader(input_path)
        try:
            document = reader.load()
            self.logger.info(
                "Sprite loaded",
                width=document.width,
                height=document.height,
                pixel_format=document.pixel_format.name,
                layers=len(document.layers),
                frames=document.frame_count,
            )
            glyphs = self.extractor.extract(document)
        finally:
            reader.close()

        for name, count in self.extractor.matched_layers:
            processing_logger.log_layer_matched(name, count)
        for name in self.extractor.ignored_layers:
            processing_logger.log_layer_ignored(name)
        processing_logger.log_overwritten(self.extractor.overwritten)

        self.logger.info("Glyphs extracted", glyphs=len(glyphs))

        if max_workers == 1 or len(glyphs) <= 1:
            outlines = self._outline_sequential(glyphs, processing_logger, progress_callback)
        else:
            outlines = self._outline_parallel(
                glyphs, max_workers, processing_logger, progress_callback
            )

        if stats.error_count:
            label, message = stats.errors[0]
            raise BuildError(f"Failed to outline {stats.error_count} glyph(s); {label}: {message}")

        font_document = FontDocument.from_outlines(
            outlines,
            metadata=self._build_metadata(input_path),
            metrics=self.metrics,
            fixed_pitch=not self.config.glyph.trim,
            created=self.config.font.created,
        )
        data = self.assembler.assemble(font_document)
        FontWriter(output_path).save(data)

        stats.units_per_em = self.metrics.units_per_em
        stats.output_path = output_path
        stats.output_size = len(data)
        stats.end_time = time.time()

        self.logger.info(
            "Conversion complete",
            glyphs=stats.glyph_count,
            contours=stats.contour_count,
            holes=stats.hole_count,
            points=stats.point_count,
            bytes=stats.output_size,
            duration_seconds=round(stats.duration_seconds, 2),
        )

        return stats

    def _outline_sequential(
        self,
        glyphs: list[ExtractedGlyph],
        processing_logger: ProcessingLogger,
        progress_callback: ProgressCallback | None,
    ) -> list[GlyphOutline]:
        """Outline glyphs in the current process."""
        outlines: list[GlyphOutline] = []
        total = len(glyphs)

        for completed, glyph in enumerate(glyphs, start=1):
            start_time = time.time()
            label = glyph.spec.label
            success = False
            try:
                outline = self.builder.build(glyph.code_point, glyph.bitmap)
            except Exception as e:
                processing_logger.log_glyph_error(
                    label=label,
                    error=e,
                    traceback=traceback.format_exc(),
                )
            else:
                success = True
                outlines.append(outline)
                processing_logger.log_glyph_complete(
                    label=label,
                    contours=outline.contour_count,
                    holes=outline.hole_count,
                    points=outline.point_count,
                    duration_ms=(time.time() - start_time) * 1000,
                )
            if progress_callback is not None:
                progress_callback(completed, total, label, success)

        return outlines

    def _outline_parallel(
        self,
        glyphs: list[ExtractedGlyph],
        max_workers: int | None,
        processing_logger: ProcessingLogger,
        progress_callback: ProgressCallback | None,
    ) -> list[GlyphOutline]:
        """Outline glyphs using ProcessPoolExecutor.

        Results arrive in completion order and are sorted by code point
        before returning.
        """
        outlines: list[GlyphOutline] = []

        builder_config = {
            "metrics": asdict(self.metrics),
            "trim": self.builder.trim,
            "trim_pad": self.builder.trim_pad,
            "alpha_threshold": self.builder.alpha_threshold,
        }

        self.logger.info(
            "Starting parallel outlining",
            glyph_count=len(glyphs),
            max_workers=max_workers,
        )

        total = len(glyphs)
        completed = 0
        pending_futures: dict = {}

        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            for glyph in glyphs:
                task = {
                    "code_point": glyph.code_point,
                    "width": glyph.bitmap.width,
                    "height": glyph.bitmap.height,
                    "rgba": glyph.bitmap.rgba,
                }
                future = executor.submit(process_glyph, task, builder_config)
                pending_futures[future] = glyph.spec.label

            try:
                for future in as_completed(pending_futures):
                    label = pending_futures.pop(future)
                    success = False

                    try:
                        result = future.result()

                        if "error" in result:
                            processing_logger.log_glyph_error(
                                label=label,
                                error=Exception(result["error"]),
                                traceback=result.get("traceback"),
                            )
                        else:
                            success = True
                            outline = GlyphOutline.from_dict(result["outline"])
                            outlines.append(outline)
                            processing_logger.log_glyph_complete(
                                label=label,
                                contours=outline.contour_count,
                                holes=outline.hole_count,
                                points=outline.point_count,
                                duration_ms=result.get("duration_ms", 0.0),
                            )

                    except Exception as e:
                        # Executor-level error, e.g. a worker died
                        processing_logger.log_glyph_error(
                            label=label,
                            error=e,
                            traceback=traceback.format_exc(),
                        )

                    completed += 1
                    if progress_callback is not None:
                        progress_callback(completed, total, label, success)

            except KeyboardInterrupt:
                self.logger.info("Cancellation requested by user")
                for f in pending_futures:
                    f.cancel()
                executor.shutdown(wait=True, cancel_futures=True)
                raise

        outlines.sort(key=lambda o: o.code_point)
        return outlines
