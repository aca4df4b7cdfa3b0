"""
Universal path abstraction supporting local and remote storage.

PLY files are opened through a single interface whether they live on the
local filesystem or behind an fsspec protocol (s3://, gs://, http://, ...).

Key Features:
- Zero dependencies for local paths (uses pathlib)
- Optional remote support via fsspec (install separately)
- Automatic protocol detection from the ``<protocol>://`` prefix

Example Usage:
    # Local filesystem (no extra dependencies)
    path = UniversalPath("./models/bunny.ply")
    with path.open("rb") as f:
        geometry = parse_ply(f)

    # S3 (requires: pip install s3fs)
    path = UniversalPath("s3://my-bucket/scans/room.ply")
    data = path.read_bytes()
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Protocol


logger = logging.getLogger(__name__)


class PathBackend(Protocol):
    """Interface every storage backend implements."""

    def open(self, path: str, mode: str = "rb") -> BinaryIO:
        """Open file for reading/writing."""
        ...

    def exists(self, path: str) -> bool:
        """Check if path exists."""
        ...

    def mkdir(self, path: str, parents: bool = True, exist_ok: bool = True) -> None:
        """Create directory."""
        ...


class LocalBackend:
    """Storage backend for local filesystem using pathlib."""

    def open(self, path: str, mode: str = "rb") -> BinaryIO:
        return open(path, mode)

    def exists(self, path: str) -> bool:
        return Path(path).exists()

    def mkdir(self, path: str, parents: bool = True, exist_ok: bool = True) -> None:
        Path(path).mkdir(parents=parents, exist_ok=exist_ok)


class FsspecBackend:
    """Storage backend for remote filesystems using fsspec."""

    def __init__(self, protocol: str):
        """
        Initialize fsspec backend.

        Parameters
        ----------
        protocol : str
            Storage protocol (s3, gs, az, http, https, memory, etc.)

        Raises
        ------
        ImportError
            If fsspec or the protocol's implementation is not installed
        """
        self.protocol = protocol
        try:
            import fsspec
        except ImportError:
            raise ImportError(
                f"fsspec is required for {protocol} paths. Install with: pip install fsspec"
            )

        self._fsspec = fsspec
        try:
            self._fs = fsspec.filesystem(protocol)
        except ImportError as e:
            raise ImportError(
                f"Protocol '{protocol}' requires additional dependencies.\nOriginal error: {e}"
            ) from e

    def open(self, path: str, mode: str = "rb") -> BinaryIO:
        return self._fs.open(path, mode)

    def exists(self, path: str) -> bool:
        return self._fs.exists(path)

    def mkdir(self, path: str, parents: bool = True, exist_ok: bool = True) -> None:
        try:
            self._fs.makedirs(path, exist_ok=exist_ok)
        except AttributeError:
            # Some fsspec filesystems don't support makedirs
            logger.warning(f"{self.protocol} filesystem does not support mkdir")


class UniversalPath:
    """
    Path to a local file or a remote object.

    Parameters
    ----------
    path : str | Path | UniversalPath
        Path to file or directory

    Examples
    --------
        >>> path = UniversalPath("./data/model.ply")
        >>> path.is_remote
        False
        >>> UniversalPath("memory://model.ply").protocol
        'memory'
    """

    def __init__(self, path: str | Path | UniversalPath):
        if isinstance(path, UniversalPath):
            self.path_str = path.path_str
            self._protocol = path._protocol
            self._backend = path._backend
            return

        self.path_str = str(path)
        self._protocol = self._detect_protocol()
        self._backend = self._create_backend()

    def _detect_protocol(self) -> str:
        if "://" in self.path_str:
            return self.path_str.split("://")[0]
        return "local"

    def _create_backend(self) -> PathBackend:
        if self._protocol == "local":
            return LocalBackend()
        return FsspecBackend(self._protocol)

    @property
    def is_remote(self) -> bool:
        return self._protocol != "local"

    @property
    def protocol(self) -> str:
        return self._protocol

    @property
    def name(self) -> str:
        """Final path component."""
        return self.path_str.rstrip("/").rsplit("/", 1)[-1]

    @property
    def parent(self) -> UniversalPath:
        if self.is_remote:
            return UniversalPath(self.path_str.rstrip("/").rsplit("/", 1)[0])
        return UniversalPath(Path(self.path_str).parent)

    def open(self, mode: str = "rb") -> BinaryIO:
        return self._backend.open(self.path_str, mode)

    def exists(self) -> bool:
        return self._backend.exists(self.path_str)

    def mkdir(self, parents: bool = True, exist_ok: bool = True) -> None:
        self._backend.mkdir(self.path_str, parents=parents, exist_ok=exist_ok)

    def read_bytes(self) -> bytes:
        with self.open("rb") as f:
            return f.read()

    def write_bytes(self, data: bytes) -> None:
        with self.open("wb") as f:
            f.write(data)

    def __str__(self) -> str:
        return self.path_str

    def __repr__(self) -> str:
        return f"UniversalPath({self.path_str!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, UniversalPath):
            return self.path_str == other.path_str
        if isinstance(other, (str, Path)):
            return self.path_str == str(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.path_str)
