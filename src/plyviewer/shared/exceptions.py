"""
Custom exceptions for plyviewer.

This module provides domain-specific exceptions for better error handling
and clearer error messages throughout the package.

Clean Architecture Note:
- This file belongs to the Shared layer (cross-cutting concerns)
- Can be imported by any layer (domain, infrastructure, config, CLI)
"""


class PlyViewerError(Exception):
    """Base exception for all plyviewer errors."""

    pass


class PlyFormatError(PlyViewerError):
    """Base class for errors raised while decoding a PLY file."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        line_number: int | None = None,
    ):
        """
        Initialize PlyFormatError.

        Parameters
        ----------
        message : str
            Error message
        path : str | None
            Path of the file being parsed, when known
        line_number : int | None
            1-based line number in the header or ASCII payload
        """
        self.path = path
        self.line_number = line_number

        full_message = message
        if line_number is not None:
            full_message = f"{full_message} (line: {line_number})"
        if path:
            full_message = f"{full_message} (path: {path})"

        super().__init__(full_message)


class NotPlyError(PlyFormatError):
    """Raised when the first header line is not the ``ply`` magic marker."""

    def __init__(self, first_line: str, path: str | None = None):
        self.first_line = first_line
        super().__init__(
            f"Not a PLY file: expected 'ply' magic, got {first_line[:32]!r}",
            path=path,
            line_number=1,
        )


class MissingVertexElementError(PlyFormatError):
    """Raised when the header never declares a positive-count vertex element."""

    def __init__(self, path: str | None = None):
        super().__init__("PLY header declares no vertices", path=path)


class MalformedHeaderError(PlyFormatError):
    """Raised when a header line cannot be interpreted."""

    pass


class UnsupportedPropertyError(PlyFormatError):
    """Raised when a vertex property cannot be decoded without losing alignment."""

    def __init__(
        self,
        message: str,
        property_name: str | None = None,
        line_number: int | None = None,
    ):
        self.property_name = property_name
        if property_name:
            message = f"{message} (property: {property_name})"
        super().__init__(message, line_number=line_number)


class MalformedAsciiTokenError(PlyFormatError):
    """Raised when a numeric token in an ASCII payload fails to parse."""

    def __init__(self, token: str, line_number: int | None = None, element: str | None = None):
        self.token = token
        self.element = element

        message = f"Malformed numeric token {token!r}"
        if element:
            message = f"{message} in {element} data"
        super().__init__(message, line_number=line_number)


class TruncatedBinaryDataError(PlyFormatError):
    """Raised when a binary payload is exhausted mid-decode."""

    def __init__(self, message: str, offset: int | None = None, decoded: int | None = None):
        """
        Initialize TruncatedBinaryDataError.

        Parameters
        ----------
        message : str
            Error message
        offset : int | None
            Byte offset into the payload where data ran out
        decoded : int | None
            Number of complete records decoded before the cut
        """
        self.offset = offset
        self.decoded = decoded

        full_message = message
        if offset is not None:
            full_message = f"{full_message} (offset: {offset})"
        if decoded is not None:
            full_message = f"{full_message} (decoded: {decoded})"

        super().__init__(full_message)


class DegenerateBoundingBoxError(PlyViewerError):
    """Raised when normalization is asked to scale a zero-extent bounding box."""

    def __init__(self, message: str, vertex_count: int | None = None):
        self.vertex_count = vertex_count

        full_message = message
        if vertex_count is not None:
            full_message = f"{full_message} (vertices: {vertex_count})"

        super().__init__(full_message)


class ConfigError(PlyViewerError):
    """Raised when configuration is invalid or missing."""

    def __init__(
        self,
        message: str,
        config_path: str | None = None,
        field_name: str | None = None,
    ):
        """
        Initialize ConfigError.

        Parameters
        ----------
        message : str
            Error message
        config_path : str | None
            Path to the config file
        field_name : str | None
            Name of the invalid/missing config field
        """
        self.config_path = config_path
        self.field_name = field_name

        full_message = message
        if field_name:
            full_message = f"{full_message} (field: {field_name})"
        if config_path:
            full_message = f"{full_message} (config: {config_path})"

        super().__init__(full_message)
