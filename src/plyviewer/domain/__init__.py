"""Domain model: PLY header schema and decoded geometry."""

from plyviewer.domain.geometry import Geometry, GeometryBuilder
from plyviewer.domain.header import (
    FaceListSchema,
    FaceProperty,
    Header,
    PlyProperty,
    PrimitiveType,
    VertexSlot,
)

__all__ = [
    "Geometry",
    "GeometryBuilder",
    "FaceListSchema",
    "FaceProperty",
    "Header",
    "PlyProperty",
    "PrimitiveType",
    "VertexSlot",
]
