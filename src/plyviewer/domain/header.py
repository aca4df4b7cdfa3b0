"""
PLY header model.

Describes the on-disk layout of a PLY file as far as the vertex and face
elements are concerned: encoding, element counts, the ordered vertex property
schema and the face index list types. Property names are resolved once, at
header time, onto a small fixed set of vertex slots so that the decoders never
compare strings per vertex.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import numpy as np


class PrimitiveType(str, Enum):
    """Scalar types that may appear in a PLY property declaration."""

    FLOAT32 = "float32"
    UINT8 = "uint8"
    INT8 = "int8"
    UINT16 = "uint16"
    INT16 = "int16"
    # Sized so binary decoding stays aligned, never imported into geometry
    INT32 = "int32"
    UINT32 = "uint32"
    FLOAT64 = "float64"
    UNKNOWN = "unknown"

    @classmethod
    def from_name(cls, type_name: str) -> PrimitiveType:
        """Map a header type token (``uchar``, ``float32``, ...) to a PrimitiveType."""
        return _TYPE_ALIASES.get(type_name, cls.UNKNOWN)

    @property
    def byte_width(self) -> int | None:
        """Width in bytes of one binary value, or None when it cannot be known."""
        return _BYTE_WIDTHS.get(self)

    @property
    def is_decoded(self) -> bool:
        """True when values of this type are routed into the geometry."""
        return self in _DECODED_TYPES

    @property
    def is_float(self) -> bool:
        return self in (PrimitiveType.FLOAT32, PrimitiveType.FLOAT64)

    @property
    def normalizer(self) -> float:
        """Divisor applied to raw values when decoding (1.0 for floats)."""
        return _NORMALIZERS.get(self, 1.0)

    def numpy_dtype(self, big_endian: bool) -> np.dtype:
        """Structured-array field dtype honoring the payload endianness."""
        code = _NUMPY_CODES.get(self)
        if code is None:
            raise ValueError(f"No binary layout for PLY type {self.value!r}")
        return np.dtype((">" if big_endian else "<") + code)


_TYPE_ALIASES: dict[str, PrimitiveType] = {
    "float": PrimitiveType.FLOAT32,
    "float32": PrimitiveType.FLOAT32,
    "uchar": PrimitiveType.UINT8,
    "uint8": PrimitiveType.UINT8,
    "char": PrimitiveType.INT8,
    "int8": PrimitiveType.INT8,
    "ushort": PrimitiveType.UINT16,
    "uint16": PrimitiveType.UINT16,
    "short": PrimitiveType.INT16,
    "int16": PrimitiveType.INT16,
    "int": PrimitiveType.INT32,
    "int32": PrimitiveType.INT32,
    "uint": PrimitiveType.UINT32,
    "uint32": PrimitiveType.UINT32,
    "double": PrimitiveType.FLOAT64,
    "float64": PrimitiveType.FLOAT64,
}

_BYTE_WIDTHS: dict[PrimitiveType, int] = {
    PrimitiveType.FLOAT32: 4,
    PrimitiveType.UINT8: 1,
    PrimitiveType.INT8: 1,
    PrimitiveType.UINT16: 2,
    PrimitiveType.INT16: 2,
    PrimitiveType.INT32: 4,
    PrimitiveType.UINT32: 4,
    PrimitiveType.FLOAT64: 8,
}

_NUMPY_CODES: dict[PrimitiveType, str] = {
    PrimitiveType.FLOAT32: "f4",
    PrimitiveType.UINT8: "u1",
    PrimitiveType.INT8: "i1",
    PrimitiveType.UINT16: "u2",
    PrimitiveType.INT16: "i2",
    PrimitiveType.INT32: "i4",
    PrimitiveType.UINT32: "u4",
    PrimitiveType.FLOAT64: "f8",
}

_DECODED_TYPES = frozenset(
    {
        PrimitiveType.FLOAT32,
        PrimitiveType.UINT8,
        PrimitiveType.INT8,
        PrimitiveType.UINT16,
        PrimitiveType.INT16,
    }
)

# Signed types divide by the unsigned maximum, without offsetting negatives
_NORMALIZERS: dict[PrimitiveType, float] = {
    PrimitiveType.UINT8: 255.0,
    PrimitiveType.INT8: 255.0,
    PrimitiveType.UINT16: 65535.0,
    PrimitiveType.INT16: 65535.0,
}


class VertexSlot(Enum):
    """Semantic destination of a vertex property value."""

    X = ("positions", 0)
    Y = ("positions", 1)
    Z = ("positions", 2)
    NX = ("normals", 0)
    NY = ("normals", 1)
    NZ = ("normals", 2)
    R = ("colors", 0)
    G = ("colors", 1)
    B = ("colors", 2)
    IGNORED = (None, -1)

    @property
    def buffer(self) -> str | None:
        """Name of the geometry buffer this slot writes to."""
        return self.value[0]

    @property
    def component(self) -> int:
        """Component offset (0, 1 or 2) inside the per-vertex triple."""
        return self.value[1]

    @classmethod
    def from_name(cls, property_name: str) -> VertexSlot:
        return VERTEX_PROPERTY_ALIASES.get(property_name, cls.IGNORED)


VERTEX_PROPERTY_ALIASES: dict[str, VertexSlot] = {
    "x": VertexSlot.X,
    "y": VertexSlot.Y,
    "z": VertexSlot.Z,
    "nx": VertexSlot.NX,
    "ny": VertexSlot.NY,
    "nz": VertexSlot.NZ,
    "red": VertexSlot.R,
    "r": VertexSlot.R,
    "f_dc_0": VertexSlot.R,  # Gaussian splatting DC color
    "green": VertexSlot.G,
    "g": VertexSlot.G,
    "f_dc_1": VertexSlot.G,
    "blue": VertexSlot.B,
    "b": VertexSlot.B,
    "f_dc_2": VertexSlot.B,
}

# Header-level presence markers. A file is considered to carry normals or
# colors when any of these names is declared on the vertex element.
NORMAL_MARKERS = frozenset({"nx", "normal_x"})
COLOR_MARKERS = frozenset({"red", "r", "f_dc_0"})
SH_DC_NAMES = frozenset({"f_dc_0", "f_dc_1", "f_dc_2"})


@dataclass(frozen=True)
class PlyProperty:
    """A single typed vertex property, in header declaration order."""

    type: PrimitiveType
    type_name: str
    name: str
    slot: VertexSlot = VertexSlot.IGNORED

    @classmethod
    def declare(cls, type_name: str, name: str) -> PlyProperty:
        return cls(
            type=PrimitiveType.from_name(type_name),
            type_name=type_name,
            name=name,
            slot=VertexSlot.from_name(name),
        )

    @property
    def byte_width(self) -> int | None:
        return self.type.byte_width


@dataclass(frozen=True)
class FaceListSchema:
    """Types of the face element's ``property list <count> <index> <name>``."""

    count_type: PrimitiveType = PrimitiveType.UINT8
    index_type: PrimitiveType = PrimitiveType.INT32
    name: str = "vertex_indices"

    def as_property(self) -> FaceProperty:
        return FaceProperty(name=self.name, value_type=self.index_type, count_type=self.count_type)


# Face list names preferred as the polygon index list
FACE_INDEX_NAMES = frozenset({"vertex_indices", "vertex_index"})


@dataclass(frozen=True)
class FaceProperty:
    """One face element property, scalar or list, in declaration order."""

    name: str
    value_type: PrimitiveType
    count_type: PrimitiveType | None = None  # set for list properties

    @property
    def is_list(self) -> bool:
        return self.count_type is not None


@dataclass
class Header:
    """Everything the decoders need to know about a PLY file's payload.

    Attributes:
        binary: True for binary payloads, False for ASCII
        big_endian: Byte order of binary payloads
        vertex_count: Declared number of vertices (must be > 0)
        face_count: Declared number of faces (0 for point clouds)
        vertex_properties: Vertex properties in on-disk order, including
            properties no slot consumes
        has_colors: A color marker property was declared
        has_normals: A normal marker property was declared
        face_list: Types of the face index list
        face_properties: Every face property in on-disk order, index list included
        format_name: Raw token of the ``format`` line
        ignored_elements: Elements other than vertex/face, in header order
    """

    binary: bool = False
    big_endian: bool = False
    vertex_count: int = 0
    face_count: int = 0
    vertex_properties: list[PlyProperty] = field(default_factory=list)
    has_colors: bool = False
    has_normals: bool = False
    face_list: FaceListSchema = field(default_factory=FaceListSchema)
    face_properties: list[FaceProperty] = field(default_factory=list)
    format_name: str = "ascii"
    ignored_elements: list[str] = field(default_factory=list)

    @property
    def vertex_stride(self) -> int | None:
        """Bytes per binary vertex record, or None if any width is unknown."""
        total = 0
        for prop in self.vertex_properties:
            width = prop.byte_width
            if width is None:
                return None
            total += width
        return total

    @property
    def face_layout(self) -> list[FaceProperty]:
        """Face record layout; a lone index list when no face property was declared."""
        return self.face_properties or [self.face_list.as_property()]

    @property
    def property_names(self) -> list[str]:
        return [prop.name for prop in self.vertex_properties]

    @property
    def has_sh_dc_colors(self) -> bool:
        """True when colors come from Gaussian splatting ``f_dc_*`` channels."""
        return any(
            prop.name in SH_DC_NAMES and prop.slot.buffer == "colors"
            for prop in self.vertex_properties
        )

    def describe(self) -> str:
        encoding = "ASCII"
        if self.binary:
            encoding = "Binary BE" if self.big_endian else "Binary LE"
        return f"Vertices: {self.vertex_count}, Faces: {self.face_count}, Format: {encoding}"
