"""
Face block decoding and triangulation.

Triangles are emitted as-is, quads are split from their first vertex into
``(v0, v1, v2)`` and ``(v0, v2, v3)``, and any other polygon is consumed
without emitting indices. Faces referencing a vertex outside the declared
vertex range are dropped.

Other face properties (per-face scalars, texture coordinate lists) are
consumed for alignment and discarded.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence

import numpy as np

from plyviewer.domain.header import FaceProperty, Header
from plyviewer.infrastructure.processing.ply.scalar_decoder import BinaryCursor, parse_ascii_int
from plyviewer.shared.exceptions import (
    MalformedAsciiTokenError,
    TruncatedBinaryDataError,
    UnsupportedPropertyError,
)


logger = logging.getLogger(__name__)


def triangulate(polygon: Sequence[int]) -> list[int]:
    """Triangle indices for one polygon (empty for sizes other than 3 and 4)."""
    if len(polygon) == 3:
        return [polygon[0], polygon[1], polygon[2]]
    if len(polygon) == 4:
        v0, v1, v2, v3 = polygon
        return [v0, v1, v2, v0, v2, v3]
    return []


class _TriangleSink:
    """Collects triangulated indices, dropping faces with out-of-range vertices."""

    def __init__(self, vertex_count: int) -> None:
        self.vertex_count = vertex_count
        self.indices: list[int] = []
        self.dropped = 0
        self.skipped = 0

    def add(self, polygon: Sequence[int]) -> None:
        triangles = triangulate(polygon)
        if not triangles:
            self.skipped += 1
            return
        if any(v < 0 or v >= self.vertex_count for v in polygon):
            self.dropped += 1
            return
        self.indices.extend(triangles)

    def result(self) -> np.ndarray:
        if self.dropped:
            logger.warning(
                "Dropped %d faces referencing vertices outside [0, %d)",
                self.dropped,
                self.vertex_count,
            )
        if self.skipped:
            logger.debug("Skipped %d faces that are neither triangles nor quads", self.skipped)
        return np.asarray(self.indices, dtype=np.uint32)


def _check_face_layout(header: Header) -> None:
    schema = header.face_list
    for ptype in (schema.count_type, schema.index_type):
        if ptype.byte_width is None or ptype.is_float:
            raise UnsupportedPropertyError(
                f"Face list type {ptype.value!r} cannot index vertices",
                property_name=schema.name,
            )
    for prop in header.face_layout:
        if prop.value_type.byte_width is None:
            raise UnsupportedPropertyError(
                f"Unknown face type {prop.value_type.value!r}, cannot keep payload aligned",
                property_name=prop.name,
            )
        if prop.is_list and (prop.count_type.byte_width is None or prop.count_type.is_float):
            raise UnsupportedPropertyError(
                f"Face list count type {prop.count_type.value!r} is not an integer type",
                property_name=prop.name,
            )


def _is_index_list(header: Header, prop: FaceProperty) -> bool:
    return prop.is_list and prop.name == header.face_list.name


def _uniform_triangles(header: Header, cursor: BinaryCursor) -> np.ndarray | None:
    """Vectorized path for the common all-triangles layout, None if it does not apply."""
    if len(header.face_layout) != 1:
        return None
    schema = header.face_list
    dtype = np.dtype(
        [
            ("count", schema.count_type.numpy_dtype(header.big_endian)),
            ("indices", schema.index_type.numpy_dtype(header.big_endian), (3,)),
        ]
    )
    if not cursor.has(dtype.itemsize * header.face_count):
        return None
    records = cursor.peek_records(dtype, header.face_count)
    if not np.all(records["count"] == 3):
        return None

    cursor.skip(dtype.itemsize * header.face_count)
    triangles = records["indices"].astype(np.int64)
    in_range = np.all((triangles >= 0) & (triangles < header.vertex_count), axis=1)
    if not in_range.all():
        logger.warning(
            "Dropped %d faces referencing vertices outside [0, %d)",
            int((~in_range).sum()),
            header.vertex_count,
        )
        triangles = triangles[in_range]
    return triangles.astype(np.uint32).reshape(-1)


def decode_binary_faces(header: Header, cursor: BinaryCursor) -> np.ndarray:
    """
    Decode ``face_count`` binary faces from ``cursor``.

    Returns
    -------
    np.ndarray
        Flat uint32 triangle list

    Raises
    ------
    TruncatedBinaryDataError
        If the payload ends mid-face. ``exc.indices`` holds the triangles of
        every face read completely before the cut.
    """
    if header.face_count <= 0:
        return np.zeros(0, dtype=np.uint32)
    _check_face_layout(header)

    fast = _uniform_triangles(header, cursor)
    if fast is not None:
        logger.debug("Decoded %d binary triangles (uniform layout)", header.face_count)
        return fast

    sink = _TriangleSink(header.vertex_count)

    for face in range(header.face_count):
        polygon: list[int] = []
        for prop in header.face_layout:
            if not prop.is_list:
                if not cursor.has(prop.value_type.byte_width):
                    _raise_truncated(cursor, face, header.face_count, sink)
                cursor.skip(prop.value_type.byte_width)
                continue

            if not cursor.has(prop.count_type.byte_width):
                _raise_truncated(cursor, face, header.face_count, sink)
            k = int(cursor.read_raw(prop.count_type))
            width = k * prop.value_type.byte_width
            if k < 0 or not cursor.has(width):
                _raise_truncated(cursor, face, header.face_count, sink)
            if _is_index_list(header, prop):
                polygon = cursor.read_array(prop.value_type, k).astype(np.int64).tolist()
            else:
                cursor.skip(width)
        sink.add(polygon)

    return sink.result()


def _raise_truncated(cursor: BinaryCursor, face: int, face_count: int, sink: _TriangleSink):
    exc = TruncatedBinaryDataError(
        f"Face block truncated after {face} of {face_count} faces",
        offset=cursor.offset,
        decoded=face,
    )
    exc.indices = sink.result()
    raise exc


def decode_ascii_faces(header: Header, lines: Iterator[tuple[int, list[str]]]) -> np.ndarray:
    """
    Decode ``face_count`` ASCII face lines (``k i0 i1 ...``).

    Tokens are walked in face property order; scalar and list properties
    other than the index list are consumed and discarded.

    Raises
    ------
    MalformedAsciiTokenError
        If a count or index is not an integer, or a line is shorter than
        its declared properties
    """
    sink = _TriangleSink(header.vertex_count)
    layout = header.face_layout

    for face in range(header.face_count):
        entry = next(lines, None)
        if entry is None:
            logger.warning("ASCII face data ended after %d of %d faces", face, header.face_count)
            break
        line_number, tokens = entry

        polygon: list[int] = []
        pos = 0
        for prop in layout:
            if pos >= len(tokens):
                raise MalformedAsciiTokenError(
                    " ".join(tokens), line_number=line_number, element="face"
                )
            if not prop.is_list:
                pos += 1
                continue
            k = parse_ascii_int(tokens[pos], line_number=line_number)
            values = tokens[pos + 1 : pos + 1 + k]
            if k < 0 or len(values) < k:
                raise MalformedAsciiTokenError(
                    " ".join(tokens), line_number=line_number, element="face"
                )
            pos += 1 + k
            if _is_index_list(header, prop):
                polygon = [parse_ascii_int(token, line_number=line_number) for token in values]
        sink.add(polygon)

    return sink.result()

