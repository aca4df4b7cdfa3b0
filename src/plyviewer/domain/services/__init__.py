"""Domain services: attribute synthesis and bounding-box normalization."""

from plyviewer.domain.services.synthesis import (
    DEFAULT_COLOR,
    synthesize_colors,
    synthesize_normals,
)
from plyviewer.domain.services.transform import (
    BoundingBox,
    NormalizationTransform,
    compute_bounds,
    compute_normalization,
    normalize_positions,
)

__all__ = [
    "DEFAULT_COLOR",
    "synthesize_colors",
    "synthesize_normals",
    "BoundingBox",
    "NormalizationTransform",
    "compute_bounds",
    "compute_normalization",
    "normalize_positions",
]
