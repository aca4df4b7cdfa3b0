"""
Type-aware scalar decoding shared by the vertex and face decoders.

Binary normalization rules:

- float32: passed through
- uint8 / int8: raw / 255
- uint16 / int16: raw / 65535
- int32 / uint32 / float64: consumed for alignment, never imported

Signed types divide by the unsigned maximum without offsetting negative
values, matching what existing viewers render for these files.
"""

from __future__ import annotations

import logging
import struct

import numpy as np

from plyviewer.domain.header import PrimitiveType
from plyviewer.shared.exceptions import MalformedAsciiTokenError, TruncatedBinaryDataError


logger = logging.getLogger(__name__)

_STRUCT_CODES: dict[PrimitiveType, str] = {
    PrimitiveType.FLOAT32: "f",
    PrimitiveType.UINT8: "B",
    PrimitiveType.INT8: "b",
    PrimitiveType.UINT16: "H",
    PrimitiveType.INT16: "h",
    PrimitiveType.INT32: "i",
    PrimitiveType.UINT32: "I",
    PrimitiveType.FLOAT64: "d",
}


class BinaryCursor:
    """Monotonically advancing read cursor over an in-memory payload."""

    def __init__(self, data: bytes, big_endian: bool = False, offset: int = 0) -> None:
        self._data = memoryview(data)
        self._prefix = ">" if big_endian else "<"
        self.offset = offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self.offset

    def has(self, n_bytes: int) -> bool:
        return self.remaining >= n_bytes

    def read_raw(self, ptype: PrimitiveType) -> int | float:
        """Read one value of ``ptype`` without normalization."""
        code = _STRUCT_CODES.get(ptype)
        if code is None:
            raise ValueError(f"No binary layout for PLY type {ptype.value!r}")
        width = ptype.byte_width
        if not self.has(width):
            raise TruncatedBinaryDataError(
                f"Need {width} bytes for {ptype.value}, {self.remaining} left",
                offset=self.offset,
            )
        (value,) = struct.unpack_from(self._prefix + code, self._data, self.offset)
        self.offset += width
        return value

    def read_array(self, ptype: PrimitiveType, count: int) -> np.ndarray:
        """Read ``count`` consecutive raw values of ``ptype`` as a numpy array."""
        width = ptype.byte_width * count
        if not self.has(width):
            raise TruncatedBinaryDataError(
                f"Need {width} bytes for {count} x {ptype.value}, {self.remaining} left",
                offset=self.offset,
            )
        dtype = ptype.numpy_dtype(self._prefix == ">")
        values = np.frombuffer(self._data, dtype=dtype, count=count, offset=self.offset)
        self.offset += width
        return values

    def peek_records(self, dtype: np.dtype, count: int) -> np.ndarray:
        """View ``count`` structured records at the cursor without advancing."""
        return np.frombuffer(self._data, dtype=dtype, count=count, offset=self.offset)

    def skip(self, n_bytes: int) -> None:
        if not self.has(n_bytes):
            raise TruncatedBinaryDataError(
                f"Cannot skip {n_bytes} bytes, {self.remaining} left", offset=self.offset
            )
        self.offset += n_bytes


def normalize_column(ptype: PrimitiveType, raw: np.ndarray) -> np.ndarray | None:
    """Apply the per-type normalization to a column of raw values.

    Returns None for types that are consumed but never imported.
    """
    if not ptype.is_decoded:
        return None
    values = raw.astype(np.float32)
    if ptype.normalizer != 1.0:
        values /= np.float32(ptype.normalizer)
    return values


def decode_ascii(
    ptype: PrimitiveType,
    token: str,
    *,
    color: bool = False,
    line_number: int | None = None,
) -> float | None:
    """
    Decode one ASCII token.

    Positions and normals take the token value as written. Color channels of
    integer types are rescaled to [0, 1]; float-typed colors are taken as
    already normalized.

    Parameters
    ----------
    ptype : PrimitiveType
        Declared property type
    token : str
        Decimal token
    color : bool
        The value is routed to a color channel
    line_number : int | None
        Payload line, for error messages

    Returns
    -------
    float | None
        Decoded value, or None for types that are not imported

    Raises
    ------
    MalformedAsciiTokenError
        If the token is not a number
    """
    if not ptype.is_decoded:
        return None
    try:
        value = float(token)
    except ValueError:
        raise MalformedAsciiTokenError(token, line_number=line_number, element="vertex") from None
    if color and not ptype.is_float:
        value /= ptype.normalizer
    return float(np.float32(value))


def parse_ascii_int(token: str, *, line_number: int | None = None, element: str = "face") -> int:
    """Parse a decimal integer token (face counts and indices)."""
    try:
        return int(token)
    except ValueError:
        raise MalformedAsciiTokenError(token, line_number=line_number, element=element) from None
