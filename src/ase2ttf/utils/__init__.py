"""Utility functions for ase2ttf.

This module provides logging setup and the statistics collected during a
conversion.
"""

from ase2ttf.utils.logging import (
    ProcessingLogger,
    ProcessingStats,
    configure_logging,
)

__all__ = [
    "ProcessingLogger",
    "ProcessingStats",
    "configure_logging",
]
