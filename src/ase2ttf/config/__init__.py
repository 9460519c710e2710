"""Configuration management for ase2ttf.

This module provides configuration management using Pydantic models.
Configuration can be provided via CLI arguments or defaults.

Key classes:
- GlyphConfig: Cell size and trimming settings
- MetricsConfig: Design-unit scale and vertical metrics
- FontInfoConfig: Naming data and weight
- ProcessingConfig: Worker settings
- LoggingConfig: Logging settings
- Ase2TtfSettings: Main application settings
"""

from ase2ttf.config.settings import (
    Ase2TtfSettings,
    FontInfoConfig,
    FontWeight,
    GlyphConfig,
    LoggingConfig,
    MetricsConfig,
    ProcessingConfig,
    build_settings,
    get_default_settings,
    weight_for_subfamily,
)

__all__ = [
    "Ase2TtfSettings",
    "FontInfoConfig",
    "FontWeight",
    "GlyphConfig",
    "LoggingConfig",
    "MetricsConfig",
    "ProcessingConfig",
    "build_settings",
    "get_default_settings",
    "weight_for_subfamily",
]
