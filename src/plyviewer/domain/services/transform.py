"""
Bounding-box normalization services.

Provides pure geometric operations to fit an arbitrary model into the
canonical viewing cube (side ``target_extent``, centered at the origin) with a
single uniform scale, so aspect ratio is preserved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from plyviewer.shared.exceptions import DegenerateBoundingBoxError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned bounding box of a point set."""

    min_coords: tuple[float, float, float] = (0.0, 0.0, 0.0)
    max_coords: tuple[float, float, float] = (0.0, 0.0, 0.0)

    @property
    def center(self) -> tuple[float, float, float]:
        return tuple((lo + hi) / 2.0 for lo, hi in zip(self.min_coords, self.max_coords))

    @property
    def size(self) -> tuple[float, float, float]:
        return tuple(hi - lo for lo, hi in zip(self.min_coords, self.max_coords))

    @property
    def max_range(self) -> float:
        return max(self.size)

    @property
    def is_degenerate(self) -> bool:
        return not self.max_range > 0.0


@dataclass(frozen=True)
class NormalizationTransform:
    """Centering plus uniform scale: ``p' = (p - center) * scale``."""

    center: tuple[float, float, float] = (0.0, 0.0, 0.0)
    scale: float = 1.0

    def apply(self, positions: np.ndarray) -> np.ndarray:
        """Return transformed flat positions as a new float32 array."""
        xyz = np.asarray(positions, dtype=np.float32).reshape(-1, 3)
        center = np.asarray(self.center, dtype=np.float32)
        result = (xyz - center) * np.float32(self.scale)
        return result.astype(np.float32).reshape(-1)


def compute_bounds(positions: np.ndarray) -> BoundingBox:
    """
    Calculate the axis-aligned bounding box of flat positions.

    :param positions: Flat positions [3 * N] or [N, 3]
    :return: Bounding box; an all-zero box when there are no points
    """
    xyz = np.asarray(positions, dtype=np.float32).reshape(-1, 3)
    if xyz.shape[0] == 0:
        return BoundingBox()

    min_coords = xyz.min(axis=0)
    max_coords = xyz.max(axis=0)

    logger.debug(
        "Model bounds: X [%.3f, %.3f], Y [%.3f, %.3f], Z [%.3f, %.3f]",
        min_coords[0], max_coords[0],
        min_coords[1], max_coords[1],
        min_coords[2], max_coords[2],
    )

    return BoundingBox(
        min_coords=tuple(float(v) for v in min_coords),
        max_coords=tuple(float(v) for v in max_coords),
    )


def compute_normalization(
    positions: np.ndarray,
    target_extent: float = 2.0,
    strict: bool = False,
) -> NormalizationTransform:
    """
    Compute the transform fitting ``positions`` into a cube of side ``target_extent``.

    A zero-extent box (single vertex, or all vertices coincident) keeps an
    identity scale and is only recentered.

    :param positions: Flat positions [3 * N] or [N, 3]
    :param target_extent: Side of the target cube (default 2.0, i.e. [-1, 1])
    :param strict: Raise DegenerateBoundingBoxError instead of falling back
    :return: Normalization transform
    """
    if target_extent <= 0:
        raise ValueError(f"target_extent must be positive, got {target_extent}")

    bounds = compute_bounds(positions)
    vertex_count = int(np.asarray(positions).size // 3)

    if bounds.is_degenerate:
        if strict:
            raise DegenerateBoundingBoxError(
                "Cannot normalize a zero-extent bounding box", vertex_count=vertex_count
            )
        if vertex_count > 0:
            logger.warning(
                "Degenerate bounding box for %d vertices, recentering without scaling",
                vertex_count,
            )
        return NormalizationTransform(center=bounds.center, scale=1.0)

    scale = target_extent / bounds.max_range
    if not np.isfinite(scale):
        if strict:
            raise DegenerateBoundingBoxError(
                f"Bounding box range {bounds.max_range!r} yields non-finite scale",
                vertex_count=vertex_count,
            )
        logger.warning("Non-finite normalization scale, recentering without scaling")
        scale = 1.0

    return NormalizationTransform(center=bounds.center, scale=float(scale))


def normalize_positions(
    positions: np.ndarray,
    target_extent: float = 2.0,
    strict: bool = False,
) -> np.ndarray:
    """Center and uniformly scale positions into the viewing cube."""
    transform = compute_normalization(positions, target_extent=target_extent, strict=strict)
    return transform.apply(positions)
