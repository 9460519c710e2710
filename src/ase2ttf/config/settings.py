"""Configuration settings for ase2ttf."""

from datetime import datetime
from enum import IntEnum
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from ase2ttf.exceptions import ConfigError


class FontWeight(IntEnum):
    """Standard OS/2 weight classes."""

    THIN = 100
    EXTRA_LIGHT = 200
    LIGHT = 300
    REGULAR = 400
    MEDIUM = 500
    SEMI_BOLD = 600
    BOLD = 700
    EXTRA_BOLD = 800
    BLACK = 900


# Subfamily spellings recognised when no explicit weight is given
_SUBFAMILY_WEIGHTS: dict[str, FontWeight] = {
    "thin": FontWeight.THIN,
    "extralight": FontWeight.EXTRA_LIGHT,
    "ultralight": FontWeight.EXTRA_LIGHT,
    "light": FontWeight.LIGHT,
    "regular": FontWeight.REGULAR,
    "medium": FontWeight.MEDIUM,
    "semibold": FontWeight.SEMI_BOLD,
    "demibold": FontWeight.SEMI_BOLD,
    "bold": FontWeight.BOLD,
    "extrabold": FontWeight.EXTRA_BOLD,
    "ultrabold": FontWeight.EXTRA_BOLD,
    "black": FontWeight.BLACK,
    "heavy": FontWeight.BLACK,
}


def weight_for_subfamily(subfamily: str | None) -> int:
    """Derive an OS/2 weight class from a subfamily name.

    Args:
        subfamily: Subfamily such as "Bold" or "Extra-Light"

    Returns:
        Weight class, 400 when the name is unknown or missing
    """
    if not subfamily:
        return int(FontWeight.REGULAR)
    key = subfamily.lower().replace("-", "").replace(" ", "")
    return int(_SUBFAMILY_WEIGHTS.get(key, FontWeight.REGULAR))


class GlyphConfig(BaseModel):
    """Configuration for glyph cell slicing and outlining."""

    glyph_width: int = Field(
        default=16,
        gt=0,
        description="Glyph cell width in pixels",
    )
    glyph_height: int = Field(
        default=16,
        gt=0,
        description="Glyph cell height in pixels",
    )
    trim: bool = Field(
        default=False,
        description="Trim empty columns to build a proportional font",
    )
    trim_pad: int = Field(
        default=1,
        ge=0,
        description="Blank columns kept on each side of a trimmed glyph",
    )
    alpha_threshold: int = Field(
        default=0,
        ge=0,
        le=254,
        description="Pixels with alpha above this value are filled",
    )


class MetricsConfig(BaseModel):
    """Vertical metrics, expressed in pixels unless noted."""

    units_per_pixel: int = Field(
        default=64,
        ge=1,
        le=1024,
        description="Design units per pixel",
    )
    baseline: int = Field(
        default=2,
        ge=0,
        description="Baseline height above the bottom of the cell",
    )
    line_gap: int = Field(
        default=0,
        ge=0,
        le=255,
        description="Extra line spacing",
    )
    underline_position: int = Field(
        default=0,
        description="Underline position relative to the baseline",
    )
    underline_thickness: int = Field(
        default=1,
        ge=0,
        description="Underline thickness",
    )


class FontInfoConfig(BaseModel):
    """User-supplied naming data."""

    copyright: str | None = Field(default=None, description="Copyright notice")
    family: str | None = Field(
        default=None,
        description="Family name (defaults to the input file stem)",
    )
    subfamily: str | None = Field(default=None, description="Subfamily name")
    font_version: str = Field(
        default="Version 1.0",
        description="Version string, stored verbatim",
    )
    font_weight: int | None = Field(
        default=None,
        ge=1,
        le=1000,
        description="OS/2 weight class (derived from subfamily if unset)",
    )
    created: datetime | None = Field(
        default=None,
        description="Creation timestamp (None = fixed 1904 epoch)",
    )

    def weight_class(self) -> int:
        """Resolve the weight class to store in OS/2."""
        if self.font_weight is not None:
            return int(self.font_weight)
        return weight_for_subfamily(self.subfamily)


class ProcessingConfig(BaseModel):
    """Configuration for glyph processing."""

    max_workers: int | None = Field(
        default=None,
        ge=1,
        description="Max worker processes (None = auto, 1 = in-process)",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    log_file: Path | None = Field(
        default=None,
        description="Path to log file",
    )
    log_level: str = Field(
        default="WARNING",
        description="Console log level",
    )
    file_log_level: str = Field(
        default="DEBUG",
        description="File log level (more verbose)",
    )
    quiet: bool = Field(
        default=False,
        description="Only show errors on the console",
    )


class Ase2TtfSettings(BaseModel):
    """Main application settings."""

    glyph: GlyphConfig = Field(default_factory=GlyphConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    font: FontInfoConfig = Field(default_factory=FontInfoConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    output_path: Path | None = Field(
        default=None,
        description="Output font path (default: <input stem>.ttf)",
    )


def get_default_settings() -> Ase2TtfSettings:
    """Get default application settings."""
    return Ase2TtfSettings()


def build_settings(**values: object) -> Ase2TtfSettings:
    """Validate raw settings values.

    Args:
        **values: Keyword arguments accepted by Ase2TtfSettings

    Returns:
        Validated settings

    Raises:
        ConfigError: If any value is out of range
    """
    try:
        return Ase2TtfSettings.model_validate(values)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        raise ConfigError(first["msg"], field=field) from e
