"""
Renderer-ready geometry containers.

GeometryBuilder is the mutable accumulator owned by a single parse call.
Geometry is the immutable snapshot handed to callers: four flat buffers laid
out for direct upload as parallel vertex attributes plus a triangle list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np


if TYPE_CHECKING:
    import torch

logger = logging.getLogger(__name__)


def _frozen(array: np.ndarray) -> np.ndarray:
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class Geometry:
    """Decoded PLY geometry.

    Attributes:
        positions: Vertex positions, flat float32 [3 * vertex_count]
        colors: Vertex colors in [0, 1], flat float32 [3 * vertex_count]
        normals: Vertex normals (unit length where defined), flat float32 [3 * vertex_count]
        indices: Triangle list, flat uint32 [3 * triangle_count]
        has_colors: Colors were present in the source file
        has_normals: Normals were present in the source file
        colors_synthesized: Colors were filled with a constant
        normals_synthesized: Normals were accumulated from faces
        truncated: The binary payload ended before all declared data was read
        source_path: Originating file, for logging and metadata
    """

    positions: np.ndarray
    colors: np.ndarray
    normals: np.ndarray
    indices: np.ndarray
    has_colors: bool = False
    has_normals: bool = False
    colors_synthesized: bool = False
    normals_synthesized: bool = False
    truncated: bool = False
    source_path: str | None = None

    @property
    def vertex_count(self) -> int:
        return self.positions.size // 3

    @property
    def triangle_count(self) -> int:
        return self.indices.size // 3

    def positions_xyz(self) -> np.ndarray:
        """Positions viewed as [N, 3]."""
        return self.positions.reshape(-1, 3)

    def is_valid(self) -> bool:
        return self.positions.size > 0

    def to_tensors(self, device: str = "cpu") -> dict[str, torch.Tensor]:
        """Convert buffers to PyTorch tensors for GPU upload.

        Parameters
        ----------
        device : str
            Target device (e.g., "cuda:0", "cuda", "cpu")

        Returns
        -------
        dict[str, torch.Tensor]
            ``positions``, ``colors`` and ``normals`` as float32 [N, 3] and
            ``indices`` as int64 [M, 3]
        """
        import torch

        # torch.from_numpy rejects read-only arrays, copy them out first
        return {
            "positions": torch.from_numpy(self.positions.reshape(-1, 3).copy()).to(device),
            "colors": torch.from_numpy(self.colors.reshape(-1, 3).copy()).to(device),
            "normals": torch.from_numpy(self.normals.reshape(-1, 3).copy()).to(device),
            "indices": torch.from_numpy(self.indices.reshape(-1, 3).astype(np.int64)).to(device),
        }

    def __len__(self) -> int:
        return self.vertex_count

    def __repr__(self) -> str:
        return (
            f"Geometry(vertices={self.vertex_count}, triangles={self.triangle_count}, "
            f"has_colors={self.has_colors}, has_normals={self.has_normals}, "
            f"truncated={self.truncated})"
        )


@dataclass
class GeometryBuilder:
    """Mutable geometry under construction for one parse call.

    ``colors`` and ``normals`` stay None unless the header declared them, and
    are only filled by synthesis afterwards.
    """

    vertex_count: int
    positions: np.ndarray = field(init=False)
    colors: np.ndarray | None = None
    normals: np.ndarray | None = None
    indices: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.uint32))
    has_colors: bool = False
    has_normals: bool = False
    colors_synthesized: bool = False
    normals_synthesized: bool = False
    truncated: bool = False
    source_path: str | None = None

    def __post_init__(self) -> None:
        self.positions = np.zeros(self.vertex_count * 3, dtype=np.float32)
        if self.has_colors:
            self.colors = np.zeros(self.vertex_count * 3, dtype=np.float32)
        if self.has_normals:
            self.normals = np.zeros(self.vertex_count * 3, dtype=np.float32)

    def buffer(self, name: str) -> np.ndarray | None:
        """Return the named buffer (``positions``, ``colors``, ``normals``)."""
        return getattr(self, name)

    def set_indices(self, indices: np.ndarray | list[int]) -> None:
        self.indices = np.asarray(indices, dtype=np.uint32).reshape(-1)

    def build(self) -> Geometry:
        """Freeze the accumulated buffers into an immutable Geometry."""
        empty = np.zeros(self.vertex_count * 3, dtype=np.float32)
        colors = self.colors if self.colors is not None else empty.copy()
        normals = self.normals if self.normals is not None else empty.copy()

        if self.colors is None or self.normals is None:
            logger.debug(
                "Building geometry with unset buffers (colors=%s, normals=%s)",
                self.colors is not None,
                self.normals is not None,
            )

        return Geometry(
            positions=_frozen(self.positions),
            colors=_frozen(colors),
            normals=_frozen(normals),
            indices=_frozen(self.indices),
            has_colors=self.has_colors,
            has_normals=self.has_normals,
            colors_synthesized=self.colors_synthesized,
            normals_synthesized=self.normals_synthesized,
            truncated=self.truncated,
            source_path=self.source_path,
        )
