"""Tests for face decoding and triangulation."""

import struct

import numpy as np
import pytest

from plyviewer.infrastructure.processing.ply import load_ply_bytes
from plyviewer.infrastructure.processing.ply.face_decoder import triangulate
from plyviewer.shared.exceptions import MalformedAsciiTokenError


class TestTriangulate:
    """Test polygon triangulation policy."""

    def test_triangle(self):
        assert triangulate([4, 5, 6]) == [4, 5, 6]

    def test_quad_fan_split(self):
        assert triangulate([0, 1, 2, 3]) == [0, 1, 2, 0, 2, 3]

    @pytest.mark.parametrize("polygon", [[], [0, 1], [0, 1, 2, 3, 4]])
    def test_other_sizes_emit_nothing(self, polygon):
        assert triangulate(polygon) == []


class TestAsciiFaces:
    """Test ASCII face decoding."""

    def test_quad_line(self, make_ascii_ply, xyz_properties, quad_vertices):
        """Test that '4 0 1 2 3' yields [0,1,2, 0,2,3]."""
        geometry = load_ply_bytes(make_ascii_ply(xyz_properties, quad_vertices, [(0, 1, 2, 3)]))
        assert geometry.indices.tolist() == [0, 1, 2, 0, 2, 3]
        assert geometry.indices.dtype == np.uint32

    def test_pentagon_skipped(self, make_ascii_ply, xyz_properties):
        vertices = [(i, i * i, 0) for i in range(5)]
        geometry = load_ply_bytes(
            make_ascii_ply(xyz_properties, vertices, [(0, 1, 2, 3, 4), (0, 1, 2)])
        )
        assert geometry.indices.tolist() == [0, 1, 2]

    def test_out_of_range_face_dropped(self, make_ascii_ply, xyz_properties, triangle_vertices):
        geometry = load_ply_bytes(
            make_ascii_ply(xyz_properties, triangle_vertices, [(0, 1, 2), (0, 1, 3)])
        )
        assert geometry.indices.tolist() == [0, 1, 2]

    def test_malformed_index(self, make_ascii_ply, xyz_properties, triangle_vertices):
        with pytest.raises(MalformedAsciiTokenError):
            load_ply_bytes(make_ascii_ply(xyz_properties, triangle_vertices, [(0, 1, "two")]))

    def test_short_face_line(self, make_ascii_ply, xyz_properties, triangle_vertices):
        data = make_ascii_ply(xyz_properties, triangle_vertices, [(0, 1, 2)])
        data = data.replace(b"3 0 1 2\n", b"3 0 1\n")
        with pytest.raises(MalformedAsciiTokenError):
            load_ply_bytes(data)


class TestBinaryFaces:
    """Test binary face decoding."""

    def test_triangles_and_quads(self, make_binary_ply, xyz_properties, quad_vertices):
        geometry = load_ply_bytes(
            make_binary_ply(xyz_properties, quad_vertices, [(0, 1, 2), (0, 1, 2, 3)])
        )
        assert geometry.indices.tolist() == [0, 1, 2, 0, 1, 2, 0, 2, 3]

    def test_uniform_triangles(self, make_binary_ply, xyz_properties, quad_vertices):
        geometry = load_ply_bytes(
            make_binary_ply(xyz_properties, quad_vertices, [(0, 1, 2), (0, 2, 3)], big_endian=True)
        )
        assert geometry.indices.tolist() == [0, 1, 2, 0, 2, 3]
        assert not geometry.truncated

    def test_other_polygon_consumed(self, make_binary_ply, xyz_properties):
        """Test that a hexagon's indices are skipped so later faces stay aligned."""
        vertices = [(float(i), 0.0, float(i % 2)) for i in range(6)]
        faces = [(0, 1, 2, 3, 4, 5), (3, 4, 5)]
        geometry = load_ply_bytes(make_binary_ply(xyz_properties, vertices, faces))
        assert geometry.indices.tolist() == [3, 4, 5]

    def test_declared_list_types(self, make_binary_ply, xyz_properties, triangle_vertices):
        geometry = load_ply_bytes(
            make_binary_ply(
                xyz_properties,
                triangle_vertices,
                [(2, 1, 0)],
                face_list="uint16 uint32",
            )
        )
        assert geometry.indices.tolist() == [2, 1, 0]

    def test_truncated_mid_face(self, make_binary_ply, xyz_properties, quad_vertices):
        """Test that a cut mid-face keeps whole faces only, without raising."""
        faces = [(0, 1, 2), (0, 2, 3), (1, 2, 3)]
        data = make_binary_ply(xyz_properties, quad_vertices, faces)
        geometry = load_ply_bytes(data[:-5])

        assert geometry.truncated
        assert geometry.indices.tolist() == [0, 1, 2, 0, 2, 3]
        assert geometry.positions.size == 12

    def test_truncated_before_count_byte(self, make_binary_ply, xyz_properties, quad_vertices):
        faces = [(0, 1, 2, 3), (0, 1, 2)]
        data = make_binary_ply(xyz_properties, quad_vertices, faces)
        geometry = load_ply_bytes(data[:-13])

        assert geometry.truncated
        assert geometry.indices.tolist() == [0, 1, 2, 0, 2, 3]

    def test_negative_index_dropped(self, make_binary_ply, xyz_properties, triangle_vertices):
        geometry = load_ply_bytes(
            make_binary_ply(xyz_properties, triangle_vertices, [(0, 1, -1), (0, 1, 2)])
        )
        assert geometry.indices.tolist() == [0, 1, 2]
        assert int(geometry.indices.max()) < geometry.vertex_count


class TestExtraFaceProperties:
    """Test face elements carrying more than the index list."""

    HEADER = (
        "ply\nformat {fmt} 1.0\nelement vertex 4\n"
        "property float x\nproperty float y\nproperty float z\n"
        "element face 2\n"
        "property uchar flags\n"
        "property list uchar int vertex_indices\n"
        "property list uchar float texcoord\n"
        "end_header\n"
    )

    def _binary(self, quad_vertices, big_endian=False):
        order = ">" if big_endian else "<"
        fmt = "binary_big_endian" if big_endian else "binary_little_endian"
        payload = b"".join(struct.pack(order + "3f", *v) for v in quad_vertices)
        payload += struct.pack(order + "BB3iB6f", 1, 3, 0, 1, 2, 6, 0, 0, 1, 0, 1, 1)
        payload += struct.pack(order + "BB4iB8f", 2, 4, 0, 1, 2, 3, 8, *([0.5] * 8))
        return self.HEADER.format(fmt=fmt).encode("ascii") + payload

    @pytest.mark.parametrize("big_endian", [False, True])
    def test_binary_skips_texcoords_and_scalars(self, quad_vertices, big_endian):
        geometry = load_ply_bytes(self._binary(quad_vertices, big_endian))

        assert geometry.indices.tolist() == [0, 1, 2, 0, 1, 2, 0, 2, 3]
        assert not geometry.truncated

    def test_binary_truncated_inside_texcoords(self, quad_vertices):
        geometry = load_ply_bytes(self._binary(quad_vertices)[:-4])

        assert geometry.truncated
        assert geometry.indices.tolist() == [0, 1, 2]

    def test_ascii_matches_binary(self, quad_vertices):
        body = "\n".join(" ".join(str(c) for c in v) for v in quad_vertices)
        body += "\n1 3 0 1 2 6 0 0 1 0 1 1\n2 4 0 1 2 3 8 0 0 0 0 0 0 0 0\n"
        data = self.HEADER.format(fmt="ascii").encode("ascii") + body.encode("ascii")

        assert load_ply_bytes(data).indices.tolist() == [0, 1, 2, 0, 1, 2, 0, 2, 3]

    def test_ascii_line_shorter_than_layout(self, quad_vertices):
        body = "\n".join(" ".join(str(c) for c in v) for v in quad_vertices)
        body += "\n1 3 0 1 2\n1 3 0 1 2\n"
        data = self.HEADER.format(fmt="ascii").encode("ascii") + body.encode("ascii")

        with pytest.raises(MalformedAsciiTokenError):
            load_ply_bytes(data)
