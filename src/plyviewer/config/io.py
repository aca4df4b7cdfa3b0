"""
Configuration import/export.

Reads and writes PlyViewerConfig to YAML files.
"""

from __future__ import annotations

import logging
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from plyviewer.config.settings import NormalizationSettings, PlyLoadingConfig, PlyViewerConfig
from plyviewer.shared.exceptions import ConfigError


logger = logging.getLogger(__name__)


def _known_fields(cls: type, section: dict[str, Any], section_name: str) -> dict[str, Any]:
    """Keep the keys ``cls`` declares, warning about the rest."""
    names = {f.name for f in fields(cls)}
    unknown = sorted(set(section) - names)
    if unknown:
        logger.warning("Ignoring unknown %s config keys: %s", section_name, ", ".join(unknown))
    return {key: value for key, value in section.items() if key in names}


def config_from_dict(data: dict[str, Any], config_path: str | None = None) -> PlyViewerConfig:
    """
    Build a PlyViewerConfig from a plain dictionary.

    Parameters
    ----------
    data : dict[str, Any]
        Parsed YAML content
    config_path : str | None
        Source file, for error messages

    Returns
    -------
    PlyViewerConfig
        Validated configuration

    Raises
    ------
    ConfigError
        If a section has the wrong shape or a value fails validation
    """
    if not isinstance(data, dict):
        raise ConfigError("Config root must be a mapping", config_path=config_path)

    sections: dict[str, Any] = {}
    for name, cls in (("loading", PlyLoadingConfig), ("normalization", NormalizationSettings)):
        section = data.get(name) or {}
        if not isinstance(section, dict):
            raise ConfigError("Config section must be a mapping", config_path=config_path, field_name=name)
        try:
            sections[name] = cls(**_known_fields(cls, section, name))
        except (TypeError, ValueError) as e:
            raise ConfigError(str(e), config_path=config_path, field_name=name) from e

    extra = sorted(set(data) - {"loading", "normalization", "log_level"})
    if extra:
        logger.warning("Ignoring unknown config sections: %s", ", ".join(extra))

    try:
        return PlyViewerConfig(log_level=str(data.get("log_level", "INFO")), **sections)
    except ValueError as e:
        raise ConfigError(str(e), config_path=config_path, field_name="log_level") from e


def load_config(path: Path | str) -> PlyViewerConfig:
    """Load configuration from a YAML file."""
    path = Path(path)
    if not path.exists():
        raise ConfigError("Config file not found", config_path=str(path))

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML: {e}", config_path=str(path)) from e

    config = config_from_dict(data, config_path=str(path))
    logger.info(f"Loaded config from {path}")
    return config


def save_config(config: PlyViewerConfig, output_path: Path | str) -> None:
    """Export configuration to a YAML file."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w") as f:
        yaml.safe_dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)

    logger.info(f"Saved config to {output_path}")
