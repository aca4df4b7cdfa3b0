"""Configuration for plyviewer."""

from plyviewer.config.io import config_from_dict, load_config, save_config
from plyviewer.config.settings import NormalizationSettings, PlyLoadingConfig, PlyViewerConfig

__all__ = [
    "NormalizationSettings",
    "PlyLoadingConfig",
    "PlyViewerConfig",
    "config_from_dict",
    "load_config",
    "save_config",
]
