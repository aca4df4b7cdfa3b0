"""
Configuration dataclasses for plyviewer.

This module provides type-safe configuration using Python 3.10+ dataclasses.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field

from plyviewer.domain.services.synthesis import DEFAULT_COLOR


logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class PlyLoadingConfig:
    """Configuration for PLY decoding and attribute synthesis."""

    default_color: float = DEFAULT_COLOR  # Channel value used when a file has no colors
    synthesize_colors: bool = True
    synthesize_normals: bool = True
    sh_dc_to_rgb: bool = False  # Convert f_dc_* channels from SH coefficients to RGB

    def __post_init__(self):
        """Validate settings after initialization."""
        if not 0.0 <= self.default_color <= 1.0:
            raise ValueError(f"default_color must be within [0, 1], got {self.default_color}")

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for easy serialization."""
        return asdict(self)


@dataclass
class NormalizationSettings:
    """Bounding-box normalization applied before display."""

    target_extent: float = 2.0  # Side of the viewing cube, 2.0 fits [-1, 1]
    strict: bool = False  # Raise on degenerate bounding boxes instead of recentering only

    def __post_init__(self):
        if self.target_extent <= 0:
            raise ValueError(f"target_extent must be positive, got {self.target_extent}")

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass
class PlyViewerConfig:
    """Top-level configuration."""

    loading: PlyLoadingConfig = field(default_factory=PlyLoadingConfig)
    normalization: NormalizationSettings = field(default_factory=NormalizationSettings)
    log_level: str = "INFO"

    def __post_init__(self):
        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}, got {self.log_level}")

    def to_dict(self) -> dict[str, object]:
        return {
            "loading": self.loading.to_dict(),
            "normalization": self.normalization.to_dict(),
            "log_level": self.log_level,
        }


__all__ = ["LOG_LEVELS", "NormalizationSettings", "PlyLoadingConfig", "PlyViewerConfig"]
