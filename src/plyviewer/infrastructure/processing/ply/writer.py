"""
PLY writer for decoded geometry.

Encodes a Geometry back to PLY (ASCII or binary, either byte order). Colors
are written either as ``uchar`` (0-255) or as ``float`` channels already in
[0, 1]; faces are written as triangles with a ``uchar``/``int`` index list.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import BinaryIO, Literal

import numpy as np

from plyviewer.domain.geometry import Geometry
from plyviewer.infrastructure.io.path_io import UniversalPath


logger = logging.getLogger(__name__)

PlyFormat = Literal["ascii", "binary_little_endian", "binary_big_endian"]
ColorType = Literal["uchar", "float"]

_FORMATS = ("ascii", "binary_little_endian", "binary_big_endian")


def _header_text(
    geometry: Geometry,
    format: str,
    color_type: str,
    with_normals: bool,
    comment: str | None,
) -> str:
    lines = ["ply", f"format {format} 1.0"]
    if comment:
        lines.append(f"comment {comment}")
    lines.append(f"element vertex {geometry.vertex_count}")
    lines += [f"property float {axis}" for axis in ("x", "y", "z")]
    if with_normals:
        lines += [f"property float {axis}" for axis in ("nx", "ny", "nz")]
    lines += [f"property {color_type} {channel}" for channel in ("red", "green", "blue")]
    if geometry.triangle_count:
        lines.append(f"element face {geometry.triangle_count}")
        lines.append("property list uchar int vertex_indices")
    lines.append("end_header")
    return "\n".join(lines) + "\n"


def _color_values(geometry: Geometry, color_type: str) -> np.ndarray:
    colors = geometry.colors.reshape(-1, 3)
    if color_type == "float":
        return colors.astype(np.float32)
    return np.clip(np.rint(colors * 255.0), 0, 255).astype(np.uint8)


def _write_ascii(out: BinaryIO, geometry: Geometry, color_type: str, with_normals: bool) -> None:
    positions = geometry.positions.reshape(-1, 3)
    normals = geometry.normals.reshape(-1, 3)
    colors = _color_values(geometry, color_type)

    for i in range(geometry.vertex_count):
        fields = [repr(float(v)) for v in positions[i]]
        if with_normals:
            fields += [repr(float(v)) for v in normals[i]]
        if color_type == "float":
            fields += [repr(float(v)) for v in colors[i]]
        else:
            fields += [str(int(v)) for v in colors[i]]
        out.write((" ".join(fields) + "\n").encode("ascii"))

    for tri in geometry.indices.reshape(-1, 3):
        out.write(f"3 {tri[0]} {tri[1]} {tri[2]}\n".encode("ascii"))


def _write_binary(
    out: BinaryIO,
    geometry: Geometry,
    color_type: str,
    with_normals: bool,
    big_endian: bool,
) -> None:
    order = ">" if big_endian else "<"
    color_code = "f4" if color_type == "float" else "u1"

    layout = [("x", "f4"), ("y", "f4"), ("z", "f4")]
    if with_normals:
        layout += [("nx", "f4"), ("ny", "f4"), ("nz", "f4")]
    layout += [("red", color_code), ("green", color_code), ("blue", color_code)]

    vertices = np.empty(geometry.vertex_count, dtype=[(name, order + code) for name, code in layout])
    positions = geometry.positions.reshape(-1, 3)
    for axis, name in enumerate(("x", "y", "z")):
        vertices[name] = positions[:, axis]
    if with_normals:
        normals = geometry.normals.reshape(-1, 3)
        for axis, name in enumerate(("nx", "ny", "nz")):
            vertices[name] = normals[:, axis]
    colors = _color_values(geometry, color_type)
    for axis, name in enumerate(("red", "green", "blue")):
        vertices[name] = colors[:, axis]
    out.write(vertices.tobytes())

    if geometry.triangle_count:
        faces = np.empty(
            geometry.triangle_count,
            dtype=[("count", "u1"), ("indices", order + "i4", (3,))],
        )
        faces["count"] = 3
        faces["indices"] = geometry.indices.reshape(-1, 3).astype(np.int32)
        out.write(faces.tobytes())


def write_ply_stream(
    out: BinaryIO,
    geometry: Geometry,
    format: PlyFormat = "ascii",
    color_type: ColorType = "uchar",
    comment: str | None = None,
) -> None:
    """Encode ``geometry`` into an open binary stream."""
    if format not in _FORMATS:
        raise ValueError(f"Unsupported PLY format {format!r}, expected one of {_FORMATS}")
    if color_type not in ("uchar", "float"):
        raise ValueError(f"Unsupported color type {color_type!r}")

    with_normals = geometry.has_normals or geometry.normals_synthesized
    out.write(_header_text(geometry, format, color_type, with_normals, comment).encode("ascii"))

    if format == "ascii":
        _write_ascii(out, geometry, color_type, with_normals)
    else:
        _write_binary(out, geometry, color_type, with_normals, format == "binary_big_endian")


def write_ply_bytes(
    geometry: Geometry,
    format: PlyFormat = "ascii",
    color_type: ColorType = "uchar",
    comment: str | None = None,
) -> bytes:
    """Encode ``geometry`` to PLY bytes in memory."""
    buffer = io.BytesIO()
    write_ply_stream(buffer, geometry, format=format, color_type=color_type, comment=comment)
    return buffer.getvalue()


def write_ply(
    file_path: str | Path | UniversalPath,
    geometry: Geometry,
    format: PlyFormat = "ascii",
    color_type: ColorType = "uchar",
    comment: str | None = None,
) -> None:
    """Write ``geometry`` to a local or remote PLY file.

    Args:
        file_path: Output path (local or fsspec URL)
        geometry: Geometry to encode
        format: "ascii", "binary_little_endian" or "binary_big_endian"
        color_type: "uchar" (0-255) or "float" ([0, 1])
        comment: Optional header comment line

    Raises:
        ValueError: If format or color_type is unsupported
    """
    file_path = UniversalPath(file_path)
    logger.debug(f"[PLY Writer] Writing {format} format to {file_path.name}")

    if not file_path.is_remote:
        file_path.parent.mkdir(parents=True, exist_ok=True)

    with file_path.open("wb") as f:
        write_ply_stream(f, geometry, format=format, color_type=color_type, comment=comment)

    logger.debug(
        f"[PLY Writer] Wrote {geometry.vertex_count} vertices, "
        f"{geometry.triangle_count} triangles to {file_path.name}"
    )
