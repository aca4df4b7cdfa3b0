"""
Unified PLY loader.

Runs the full decoding pipeline on one PLY file:

header -> vertex block -> face block -> attribute synthesis -> Geometry

Every call works on its own Header and GeometryBuilder, so independent files
can be parsed concurrently from worker threads. Binary payloads are read
into memory in one piece before decoding.
"""

from __future__ import annotations

import io
import logging
import time
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO

from plyviewer.config.settings import PlyLoadingConfig
from plyviewer.domain.geometry import Geometry, GeometryBuilder
from plyviewer.domain.header import Header
from plyviewer.domain.services.synthesis import synthesize_colors, synthesize_normals
from plyviewer.infrastructure.io.path_io import UniversalPath
from plyviewer.infrastructure.processing.ply.face_decoder import (
    decode_ascii_faces,
    decode_binary_faces,
)
from plyviewer.infrastructure.processing.ply.header_parser import parse_header
from plyviewer.infrastructure.processing.ply.scalar_decoder import BinaryCursor
from plyviewer.infrastructure.processing.ply.utils import sh_dc_colors_to_rgb
from plyviewer.infrastructure.processing.ply.vertex_decoder import (
    decode_ascii_vertices,
    decode_binary_vertices,
)
from plyviewer.shared.exceptions import MalformedHeaderError, TruncatedBinaryDataError


logger = logging.getLogger(__name__)


def _ascii_lines(stream: BinaryIO) -> Iterator[tuple[int, list[str]]]:
    """Yield ``(line_number, tokens)`` for each non-blank payload line."""
    for line_number, raw in enumerate(stream, start=1):
        tokens = raw.decode("latin-1").split()
        if tokens:
            yield line_number, tokens


def _decode_binary(header: Header, stream: BinaryIO, builder: GeometryBuilder) -> None:
    data = stream.read()
    try:
        end = decode_binary_vertices(header, data, builder)
    except TruncatedBinaryDataError as exc:
        logger.warning("[PLY Loader] %s, skipping faces", exc)
        builder.truncated = True
        return

    cursor = BinaryCursor(data, big_endian=header.big_endian, offset=end)
    try:
        builder.set_indices(decode_binary_faces(header, cursor))
    except TruncatedBinaryDataError as exc:
        logger.warning("[PLY Loader] %s, keeping complete faces", exc)
        builder.set_indices(exc.indices)
        builder.truncated = True


def _decode_ascii(header: Header, stream: BinaryIO, builder: GeometryBuilder) -> None:
    lines = _ascii_lines(stream)
    decode_ascii_vertices(header, lines, builder)
    if builder.truncated:
        return
    builder.set_indices(decode_ascii_faces(header, lines))


def _synthesize(header: Header, builder: GeometryBuilder, config: PlyLoadingConfig) -> None:
    if builder.colors is not None and config.sh_dc_to_rgb and header.has_sh_dc_colors:
        builder.colors = sh_dc_colors_to_rgb(builder.colors)

    if builder.colors is None and config.synthesize_colors:
        builder.colors = synthesize_colors(builder.vertex_count, config.default_color)
        builder.colors_synthesized = True

    if builder.normals is None and config.synthesize_normals:
        builder.normals = synthesize_normals(builder.positions, builder.indices)
        builder.normals_synthesized = True


def parse_ply(
    stream: BinaryIO,
    config: PlyLoadingConfig | None = None,
    source_path: str | None = None,
) -> Geometry:
    """
    Decode a PLY file from an open binary stream.

    Parameters
    ----------
    stream : BinaryIO
        Stream positioned at the start of the file
    config : PlyLoadingConfig | None
        Decoding options (defaults when None)
    source_path : str | None
        Originating path, recorded on the Geometry and used in messages

    Returns
    -------
    Geometry
        Immutable decoded geometry. ``truncated`` is set when a binary
        payload ended early and a partial mesh was returned.

    Raises
    ------
    PlyFormatError
        On header errors (including vertex counts whose buffers cannot be
        allocated) or malformed ASCII tokens
    """
    config = config or PlyLoadingConfig()
    t0 = time.perf_counter()

    header = parse_header(stream, path=source_path)
    logger.info("[PLY Loader] PLY Info - %s", header.describe())
    t_header = time.perf_counter()

    try:
        builder = GeometryBuilder(
            vertex_count=header.vertex_count,
            has_colors=header.has_colors,
            has_normals=header.has_normals,
            source_path=source_path,
        )
    except (ValueError, MemoryError) as e:
        raise MalformedHeaderError(
            f"Cannot allocate buffers for {header.vertex_count} vertices: {e}",
            path=source_path,
        ) from e

    if header.binary:
        _decode_binary(header, stream, builder)
    else:
        _decode_ascii(header, stream, builder)
    t_decode = time.perf_counter()

    _synthesize(header, builder, config)
    geometry = builder.build()
    t_done = time.perf_counter()

    logger.debug(
        "[PLY Loader] Timings: header %.1fms, decode %.1fms, synthesis %.1fms",
        (t_header - t0) * 1000,
        (t_decode - t_header) * 1000,
        (t_done - t_decode) * 1000,
    )
    return geometry


def load_ply(
    file_path: str | Path | UniversalPath,
    config: PlyLoadingConfig | None = None,
) -> Geometry:
    """Load a PLY file from a local or remote path.

    Args:
        file_path: Path to PLY file (local or fsspec URL)
        config: Decoding options

    Returns:
        Decoded Geometry

    Raises:
        FileNotFoundError: If file doesn't exist
        PlyFormatError: If the file cannot be decoded
    """
    file_path = UniversalPath(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"PLY file not found: {file_path}")

    logger.debug(f"[PLY Loader] Loading {file_path.name}")

    with file_path.open("rb") as f:
        geometry = parse_ply(f, config=config, source_path=str(file_path))

    logger.debug(
        f"[PLY Loader] Loaded {geometry.vertex_count} vertices, "
        f"{geometry.triangle_count} triangles from {file_path.name}"
    )
    return geometry


def load_ply_bytes(data: bytes, config: PlyLoadingConfig | None = None) -> Geometry:
    """Decode an in-memory PLY file."""
    return parse_ply(io.BytesIO(data), config=config)
