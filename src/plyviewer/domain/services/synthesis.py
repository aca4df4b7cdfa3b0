"""
Attribute synthesis for geometry decoded without colors or normals.

Pure numpy operations on flat per-vertex buffers; no knowledge of the PLY
format lives here.
"""

from __future__ import annotations

import logging

import numpy as np


logger = logging.getLogger(__name__)

DEFAULT_COLOR = 0.8


def synthesize_colors(vertex_count: int, value: float = DEFAULT_COLOR) -> np.ndarray:
    """Constant light-gray color buffer.

    :param vertex_count: Number of vertices
    :param value: Channel value in [0, 1] (default 0.8)
    :return: Flat float32 array [3 * vertex_count]
    """
    return np.full(vertex_count * 3, value, dtype=np.float32)


def synthesize_normals(positions: np.ndarray, indices: np.ndarray) -> np.ndarray:
    """Smooth vertex normals by face-normal accumulation.

    Each triangle adds its unnormalized face normal ``(p1 - p0) x (p2 - p0)``
    to its three vertices, so larger triangles weigh more. Accumulated vectors
    are then scaled to unit length; vertices no triangle touches stay zero.

    :param positions: Flat float32 positions [3 * N]
    :param indices: Flat triangle list [3 * M]
    :return: Flat float32 normals [3 * N]
    """
    xyz = np.asarray(positions, dtype=np.float32).reshape(-1, 3)
    normals = np.zeros_like(xyz)

    triangles = np.asarray(indices, dtype=np.int64).reshape(-1, 3)
    if triangles.shape[0] == 0:
        logger.debug("No triangles, normals left at zero for %d vertices", xyz.shape[0])
        return normals.reshape(-1)

    p0 = xyz[triangles[:, 0]]
    p1 = xyz[triangles[:, 1]]
    p2 = xyz[triangles[:, 2]]
    face_normals = np.cross(p1 - p0, p2 - p0)

    # Unbuffered scatter-add: repeated vertex indices must all accumulate
    for corner in range(3):
        np.add.at(normals, triangles[:, corner], face_normals)

    lengths = np.linalg.norm(normals, axis=1)
    nonzero = lengths > 0
    normals[nonzero] /= lengths[nonzero, None]

    logger.debug(
        "Synthesized normals for %d vertices from %d triangles (%d untouched)",
        xyz.shape[0],
        triangles.shape[0],
        int((~nonzero).sum()),
    )
    return normals.astype(np.float32).reshape(-1)
