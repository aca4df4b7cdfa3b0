"""Storage I/O: local and fsspec-backed paths."""

from plyviewer.infrastructure.io.path_io import UniversalPath

__all__ = ["UniversalPath"]
