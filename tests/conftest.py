"""Pytest configuration and shared fixtures."""

import shutil
import struct
import tempfile
from pathlib import Path

import pytest


_STRUCT_CODES = {
    "float": "f", "float32": "f",
    "uchar": "B", "uint8": "B",
    "char": "b", "int8": "b",
    "ushort": "H", "uint16": "H",
    "short": "h", "int16": "h",
    "int": "i", "int32": "i",
    "uint": "I", "uint32": "I",
    "double": "d", "float64": "d",
}


def _header(fmt, properties, n_vertices, faces, face_list="uchar int"):
    lines = ["ply", f"format {fmt} 1.0", "comment generated by tests"]
    lines.append(f"element vertex {n_vertices}")
    lines += [f"property {ptype} {name}" for ptype, name in properties]
    if faces is not None:
        lines.append(f"element face {len(faces)}")
        lines.append(f"property list {face_list} vertex_indices")
    lines.append("end_header")
    return ("\n".join(lines) + "\n").encode("ascii")


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def make_ascii_ply():
    """Factory building ASCII PLY bytes from property specs and rows."""

    def _make(properties, vertices, faces=None):
        body = [" ".join(str(v) for v in row) for row in vertices]
        if faces is not None:
            body += [" ".join(str(v) for v in [len(face), *face]) for face in faces]
        text = "\n".join(body) + "\n"
        return _header("ascii", properties, len(vertices), faces) + text.encode("ascii")

    return _make


@pytest.fixture
def make_binary_ply():
    """Factory building binary PLY bytes in either byte order."""

    def _make(properties, vertices, faces=None, big_endian=False, face_list="uchar int"):
        order = ">" if big_endian else "<"
        fmt = "binary_big_endian" if big_endian else "binary_little_endian"
        codes = "".join(_STRUCT_CODES[ptype] for ptype, _ in properties)

        payload = b"".join(struct.pack(order + codes, *row) for row in vertices)
        if faces is not None:
            count_code, index_code = (_STRUCT_CODES[t] for t in face_list.split())
            for face in faces:
                payload += struct.pack(order + count_code, len(face))
                payload += struct.pack(order + index_code * len(face), *face)
        return _header(fmt, properties, len(vertices), faces, face_list) + payload

    return _make


@pytest.fixture
def xyz_properties():
    return [("float", "x"), ("float", "y"), ("float", "z")]


@pytest.fixture
def triangle_vertices():
    """Counter-clockwise unit triangle in the XY plane."""
    return [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0)]


@pytest.fixture
def quad_vertices():
    return [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 1.0, 0.0), (0.0, 1.0, 0.0)]
