"""
plyviewer - Main Entry Point.

This is the CLI entry point that uses tyro for argument parsing.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Annotated, Literal

import tyro

from plyviewer.config.io import load_config
from plyviewer.config.settings import LOG_LEVELS, PlyViewerConfig
from plyviewer.domain.services.transform import compute_bounds, compute_normalization
from plyviewer.infrastructure.processing.ply import load_ply, write_ply
from plyviewer.shared.exceptions import PlyViewerError

logger = logging.getLogger(__name__)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def setup_logging(level: str = "INFO") -> None:
    """
    Setup logging configuration.

    Parameters
    ----------
    level : str
        Logging level (DEBUG, INFO, WARNING, ERROR)

    Raises
    ------
    ValueError
        If ``level`` is not a standard logging level name
    """
    level = level.upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"log_level must be one of {LOG_LEVELS}, got {level}")

    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _origin(from_file: bool, synthesized: bool) -> str:
    if from_file:
        return "file"
    return "synthesized" if synthesized else "none"


def _resolve_config(config: Path | None, log_level: str | None) -> PlyViewerConfig:
    viewer_config = load_config(config) if config is not None else PlyViewerConfig()
    setup_logging(log_level or viewer_config.log_level)
    return viewer_config


def info(
    path: Annotated[str, tyro.conf.Positional],
    config: Path | None = None,
    log_level: LogLevel | None = None,
    normalize: bool = False,
) -> int:
    """
    Print a summary of a PLY file.

    Parameters
    ----------
    path : str
        Local path or fsspec URL of the PLY file
    config : Path | None
        YAML configuration file
    log_level : str | None
        Logging level override: DEBUG, INFO, WARNING, ERROR
    normalize : bool
        Also report the bounding box after fitting into the viewing cube
    """
    viewer_config = _resolve_config(config, log_level)

    try:
        geometry = load_ply(path, config=viewer_config.loading)
    except (PlyViewerError, FileNotFoundError) as e:
        logger.error(f"Failed to load {path}: {e}")
        return 1

    bounds = compute_bounds(geometry.positions)
    print(f"File:       {path}")
    print(f"Vertices:   {geometry.vertex_count}")
    print(f"Triangles:  {geometry.triangle_count}")
    print(f"Colors:     {_origin(geometry.has_colors, geometry.colors_synthesized)}")
    print(f"Normals:    {_origin(geometry.has_normals, geometry.normals_synthesized)}")
    print(f"Truncated:  {geometry.truncated}")
    print(f"Bounds min: {bounds.min_coords}")
    print(f"Bounds max: {bounds.max_coords}")

    if normalize:
        settings = viewer_config.normalization
        try:
            transform = compute_normalization(
                geometry.positions,
                target_extent=settings.target_extent,
                strict=settings.strict,
            )
        except PlyViewerError as e:
            logger.error(f"Normalization failed: {e}")
            return 1
        normalized = compute_bounds(transform.apply(geometry.positions))
        print(f"Scale:      {transform.scale:.6g}")
        print(f"Normalized: {normalized.min_coords} .. {normalized.max_coords}")

    return 0


def convert(
    src: Annotated[str, tyro.conf.Positional],
    dst: Annotated[str, tyro.conf.Positional],
    format: Literal["ascii", "binary_little_endian", "binary_big_endian"] = "binary_little_endian",
    color_type: Literal["uchar", "float"] = "uchar",
    normalize: bool = False,
    config: Path | None = None,
    log_level: LogLevel | None = None,
) -> int:
    """
    Re-encode a PLY file, optionally fitted into the viewing cube.

    Parameters
    ----------
    src : str
        Input PLY path or URL
    dst : str
        Output PLY path or URL
    format : str
        Output encoding
    color_type : str
        Color channel type written to the output
    normalize : bool
        Center and scale positions before writing
    config : Path | None
        YAML configuration file
    log_level : str | None
        Logging level override
    """
    viewer_config = _resolve_config(config, log_level)

    try:
        geometry = load_ply(src, config=viewer_config.loading)
        if normalize:
            settings = viewer_config.normalization
            transform = compute_normalization(
                geometry.positions,
                target_extent=settings.target_extent,
                strict=settings.strict,
            )
            geometry = replace(geometry, positions=transform.apply(geometry.positions))
        write_ply(dst, geometry, format=format, color_type=color_type)
    except (PlyViewerError, FileNotFoundError) as e:
        logger.error(f"Conversion failed: {e}")
        return 1

    logger.info(f"Wrote {dst} ({format})")
    return 0


def cli() -> None:
    """Entry point for the installed script."""
    sys.exit(tyro.extras.subcommand_cli_from_dict({"info": info, "convert": convert}))


if __name__ == "__main__":
    cli()
