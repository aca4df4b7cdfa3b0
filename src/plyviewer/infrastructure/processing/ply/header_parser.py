"""
PLY header parsing.

The header is read one byte at a time up to each newline so the stream is
left positioned exactly at the first payload byte. Buffered line readers may
over-read into a binary payload and must not be used here.
"""

from __future__ import annotations

import logging
from typing import BinaryIO

from plyviewer.domain.header import (
    COLOR_MARKERS,
    FACE_INDEX_NAMES,
    NORMAL_MARKERS,
    FaceListSchema,
    FaceProperty,
    Header,
    PlyProperty,
    PrimitiveType,
)
from plyviewer.shared.exceptions import (
    MalformedHeaderError,
    MissingVertexElementError,
    NotPlyError,
    UnsupportedPropertyError,
)


logger = logging.getLogger(__name__)

_FORMATS: dict[str, tuple[bool, bool]] = {
    "ascii": (False, False),
    "binary_little_endian": (True, False),
    "binary_big_endian": (True, True),
}

_IGNORED_KEYWORDS = ("comment", "obj_info")

# Largest element count accepted from a header. Vertex buffers are allocated
# up front from this count.
MAX_ELEMENT_COUNT = 1 << 28


def read_header_line(stream: BinaryIO) -> str | None:
    """Read one ``\\n``-terminated line without reading past it.

    Returns None at end of stream when nothing was read.
    """
    chars = bytearray()
    while True:
        byte = stream.read(1)
        if not byte:
            if not chars:
                return None
            break
        if byte == b"\n":
            break
        chars += byte
    return chars.decode("latin-1").strip()


def parse_header(stream: BinaryIO, path: str | None = None) -> Header:
    """
    Parse a PLY header from an open binary stream.

    Parameters
    ----------
    stream : BinaryIO
        Stream positioned at the start of the file; left positioned at the
        first byte after ``end_header``
    path : str | None
        Source path, used in error messages only

    Returns
    -------
    Header
        Layout description for the vertex and face elements

    Raises
    ------
    NotPlyError
        If the first line is not ``ply``
    MissingVertexElementError
        If no positive-count vertex element is declared
    MalformedHeaderError
        If an element line is incomplete, or its count is not an integer
        within [0, MAX_ELEMENT_COUNT]
    UnsupportedPropertyError
        If a vertex property cannot be decoded without losing alignment
    """
    first = read_header_line(stream)
    if first != "ply":
        raise NotPlyError(first or "", path=path)

    header = Header()
    current_element: str | None = None
    line_number = 1

    while True:
        line = read_header_line(stream)
        if line is None:
            logger.debug("Stream ended before end_header (line %d)", line_number)
            break
        line_number += 1

        if not line or line.startswith(_IGNORED_KEYWORDS):
            continue
        if line == "end_header":
            break

        tokens = line.split()
        if len(tokens) < 2:
            continue
        keyword = tokens[0]

        if keyword == "format":
            _apply_format(header, tokens[1])
        elif keyword == "element":
            current_element = _apply_element(header, tokens, line_number, path)
        elif keyword == "property":
            _apply_property(header, current_element, tokens, line_number, path)

    if header.vertex_count <= 0:
        raise MissingVertexElementError(path=path)

    _select_face_list(header)

    if header.binary:
        for prop in header.vertex_properties:
            if prop.byte_width is None:
                raise UnsupportedPropertyError(
                    f"Unknown binary type {prop.type_name!r}, cannot keep payload aligned",
                    property_name=prop.name,
                )

    for element in header.ignored_elements:
        logger.debug("Ignoring PLY element %r", element)

    return header


def _apply_format(header: Header, kind: str) -> None:
    header.format_name = kind
    if kind not in _FORMATS:
        logger.debug("Unrecognized PLY format %r, encoding left unchanged", kind)
        return
    header.binary, header.big_endian = _FORMATS[kind]


def _apply_element(
    header: Header,
    tokens: list[str],
    line_number: int,
    path: str | None,
) -> str:
    name = tokens[1]
    if len(tokens) < 3:
        raise MalformedHeaderError(f"Element {name!r} has no count", path=path, line_number=line_number)
    try:
        count = int(tokens[2])
    except ValueError:
        raise MalformedHeaderError(
            f"Element {name!r} count {tokens[2]!r} is not an integer",
            path=path,
            line_number=line_number,
        ) from None

    if not 0 <= count <= MAX_ELEMENT_COUNT:
        raise MalformedHeaderError(
            f"Element {name!r} count {count} is outside [0, {MAX_ELEMENT_COUNT}]",
            path=path,
            line_number=line_number,
        )

    if name == "vertex":
        header.vertex_count = count
    elif name == "face":
        header.face_count = count
    else:
        header.ignored_elements.append(name)
    return name


def _apply_property(
    header: Header,
    element: str | None,
    tokens: list[str],
    line_number: int,
    path: str | None,
) -> None:
    is_list = tokens[1] == "list"

    if element == "face":
        _apply_face_property(header, tokens, line_number, path)
        return

    if element != "vertex":
        return

    if is_list:
        raise UnsupportedPropertyError(
            "List properties are not supported on the vertex element",
            property_name=tokens[-1],
            line_number=line_number,
        )
    if len(tokens) < 3:
        raise MalformedHeaderError(
            f"Property declaration {' '.join(tokens)!r} has no name",
            path=path,
            line_number=line_number,
        )

    prop = PlyProperty.declare(tokens[1], tokens[2])
    header.vertex_properties.append(prop)

    if prop.name in NORMAL_MARKERS:
        header.has_normals = True
    if prop.name in COLOR_MARKERS:
        header.has_colors = True


def _apply_face_property(
    header: Header,
    tokens: list[str],
    line_number: int,
    path: str | None,
) -> None:
    is_list = tokens[1] == "list"
    if len(tokens) < (5 if is_list else 3):
        raise MalformedHeaderError(
            f"Property declaration {' '.join(tokens)!r} is incomplete",
            path=path,
            line_number=line_number,
        )
    if is_list:
        prop = FaceProperty(
            name=tokens[4],
            value_type=PrimitiveType.from_name(tokens[3]),
            count_type=PrimitiveType.from_name(tokens[2]),
        )
    else:
        prop = FaceProperty(name=tokens[2], value_type=PrimitiveType.from_name(tokens[1]))
    header.face_properties.append(prop)


def _select_face_list(header: Header) -> None:
    """Pick the polygon index list among the face properties.

    A list named ``vertex_indices``/``vertex_index`` wins, otherwise the first
    list. Every other face property is consumed and discarded.
    """
    if not header.face_properties:
        return

    lists = [prop for prop in header.face_properties if prop.is_list]
    if not lists:
        logger.warning("Face element declares no index list, ignoring %d faces", header.face_count)
        header.face_count = 0
        return

    index = next((prop for prop in lists if prop.name in FACE_INDEX_NAMES), lists[0])
    header.face_list = FaceListSchema(
        count_type=index.count_type,
        index_type=index.value_type,
        name=index.name,
    )

    skipped = [prop.name for prop in header.face_properties if prop is not index]
    if skipped:
        logger.warning("Skipping face properties %s", ", ".join(repr(name) for name in skipped))
