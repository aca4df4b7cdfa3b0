"""
Vertex block decoding.

Property names are resolved to slots once per parse into a decode plan; the
binary path then views the whole vertex block through a numpy structured
dtype built from that plan, and the ASCII path walks tokens positionally.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass

import numpy as np

from plyviewer.domain.geometry import GeometryBuilder
from plyviewer.domain.header import Header, PlyProperty, PrimitiveType, VertexSlot
from plyviewer.infrastructure.processing.ply.scalar_decoder import decode_ascii, normalize_column
from plyviewer.shared.exceptions import TruncatedBinaryDataError


logger = logging.getLogger(__name__)

AsciiLines = Iterator[tuple[int, list[str]]]


@dataclass(frozen=True)
class DecodeStep:
    """One property of the decode plan: where its value goes, if anywhere."""

    prop: PlyProperty
    slot: VertexSlot
    target: str | None  # builder buffer name, None when the value is dropped

    @property
    def ptype(self) -> PrimitiveType:
        return self.prop.type


def build_decode_plan(header: Header) -> list[DecodeStep]:
    """
    Resolve each vertex property onto its destination buffer.

    A slot is only targeted when its value can be imported and the header
    declared the matching attribute; everything else is decoded for alignment
    and dropped.
    """
    present = {
        "positions": True,
        "colors": header.has_colors,
        "normals": header.has_normals,
    }
    plan = []
    for prop in header.vertex_properties:
        target = prop.slot.buffer
        if target is not None and not (present[target] and prop.type.is_decoded):
            target = None
        plan.append(DecodeStep(prop=prop, slot=prop.slot, target=target))
    return plan


def vertex_dtype(plan: list[DecodeStep], big_endian: bool) -> np.dtype:
    """Structured dtype of one binary vertex record, field ``p{i}`` per plan step."""
    return np.dtype(
        [(f"p{i}", step.ptype.numpy_dtype(big_endian)) for i, step in enumerate(plan)]
    )


def decode_binary_vertices(
    header: Header,
    data: bytes,
    builder: GeometryBuilder,
    offset: int = 0,
) -> int:
    """
    Decode the binary vertex block into ``builder``.

    Parameters
    ----------
    header : Header
        Parsed header (binary)
    data : bytes
        Whole payload following ``end_header``
    builder : GeometryBuilder
        Destination buffers
    offset : int
        Start of the vertex block in ``data``

    Returns
    -------
    int
        Offset of the first byte after the vertex block

    Raises
    ------
    TruncatedBinaryDataError
        If fewer than ``vertex_count`` complete records are available; the
        complete ones are decoded into ``builder`` before raising
    """
    plan = build_decode_plan(header)
    dtype = vertex_dtype(plan, header.big_endian)
    stride = dtype.itemsize

    available = (len(data) - offset) // stride if stride else header.vertex_count
    count = min(header.vertex_count, max(available, 0))

    if count and stride:
        records = np.frombuffer(data, dtype=dtype, count=count, offset=offset)
        for i, step in enumerate(plan):
            if step.target is None:
                continue
            values = normalize_column(step.ptype, records[f"p{i}"])
            builder.buffer(step.target).reshape(-1, 3)[:count, step.slot.component] = values

    end = offset + count * stride
    if count < header.vertex_count:
        raise TruncatedBinaryDataError(
            f"Vertex block truncated, {header.vertex_count - count} of "
            f"{header.vertex_count} vertices missing",
            offset=end,
            decoded=count,
        )

    logger.debug("Decoded %d binary vertices (%d bytes/vertex)", count, stride)
    return end


def decode_ascii_vertices(header: Header, lines: AsciiLines, builder: GeometryBuilder) -> int:
    """
    Decode ``vertex_count`` ASCII vertex lines into ``builder``.

    Tokens are matched to properties by position. A short line leaves the
    remaining slots at zero; running out of lines stops decoding early.

    Returns
    -------
    int
        Number of vertex lines decoded
    """
    plan = build_decode_plan(header)
    views = {
        name: builder.buffer(name).reshape(-1, 3)
        for name in ("positions", "colors", "normals")
        if builder.buffer(name) is not None
    }

    decoded = 0
    for i in range(header.vertex_count):
        entry = next(lines, None)
        if entry is None:
            logger.warning(
                "ASCII vertex data ended after %d of %d vertices",
                decoded,
                header.vertex_count,
            )
            builder.truncated = True
            break
        line_number, tokens = entry

        for step, token in zip(plan, tokens):
            value = decode_ascii(
                step.ptype,
                token,
                color=step.target == "colors",
                line_number=line_number,
            )
            if value is not None and step.target is not None:
                views[step.target][i, step.slot.component] = value
        decoded += 1

    return decoded
