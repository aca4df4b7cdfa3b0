"""
plyviewer: PLY decoding into renderer-ready geometry.

Decodes ASCII and binary PLY files (point clouds, meshes and Gaussian splat
exports) into flat position, color, normal and triangle-index buffers, and
fits them into a canonical viewing cube.
"""

from plyviewer.domain.geometry import Geometry
from plyviewer.domain.services.transform import (
    BoundingBox,
    NormalizationTransform,
    compute_bounds,
    compute_normalization,
    normalize_positions,
)
from plyviewer.infrastructure.processing.ply import (
    load_ply,
    load_ply_bytes,
    parse_header,
    parse_ply,
    write_ply,
    write_ply_bytes,
)

__version__ = "0.1.0"

__all__ = [
    "Geometry",
    "BoundingBox",
    "NormalizationTransform",
    "compute_bounds",
    "compute_normalization",
    "normalize_positions",
    "load_ply",
    "load_ply_bytes",
    "parse_header",
    "parse_ply",
    "write_ply",
    "write_ply_bytes",
]
