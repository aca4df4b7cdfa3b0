"""Tests for PLY header parsing."""

import io

import pytest

from plyviewer.domain.header import PrimitiveType, VertexSlot
from plyviewer.infrastructure.processing.ply import load_ply_bytes, loader
from plyviewer.infrastructure.processing.ply.header_parser import (
    MAX_ELEMENT_COUNT,
    parse_header,
    read_header_line,
)
from plyviewer.shared.exceptions import (
    MalformedHeaderError,
    MissingVertexElementError,
    NotPlyError,
    PlyFormatError,
    UnsupportedPropertyError,
)


def _stream(text: str, payload: bytes = b"") -> io.BytesIO:
    return io.BytesIO(text.encode("ascii") + payload)


class TestReadHeaderLine:
    """Test the byte-exact line reader."""

    def test_stops_at_newline(self):
        """Test that nothing past the newline is consumed."""
        stream = io.BytesIO(b"ply\n\x00\x01")
        assert read_header_line(stream) == "ply"
        assert stream.tell() == 4

    def test_strips_carriage_return(self):
        stream = io.BytesIO(b"format ascii 1.0\r\n")
        assert read_header_line(stream) == "format ascii 1.0"

    def test_end_of_stream(self):
        assert read_header_line(io.BytesIO(b"")) is None


class TestParseHeader:
    """Test parse_header."""

    def test_basic_ascii_header(self):
        """Test vertex/face counts and property order."""
        stream = _stream(
            "ply\n"
            "format ascii 1.0\n"
            "comment made by hand\n"
            "element vertex 8\n"
            "property float x\n"
            "property float y\n"
            "property float z\n"
            "element face 6\n"
            "property list uchar int vertex_indices\n"
            "end_header\n"
        )
        header = parse_header(stream)

        assert not header.binary
        assert header.vertex_count == 8
        assert header.face_count == 6
        assert header.property_names == ["x", "y", "z"]
        assert not header.has_colors
        assert not header.has_normals

    def test_stream_positioned_at_payload(self):
        """Test that binary payload bytes are left unread."""
        payload = b"\x00\x00\x80\x3f" * 3
        stream = _stream(
            "ply\nformat binary_little_endian 1.0\n"
            "element vertex 1\nproperty float x\nproperty float y\nproperty float z\n"
            "end_header\n",
            payload,
        )
        parse_header(stream)
        assert stream.read() == payload

    @pytest.mark.parametrize(
        "fmt, binary, big_endian",
        [
            ("ascii", False, False),
            ("binary_little_endian", True, False),
            ("binary_big_endian", True, True),
        ],
    )
    def test_formats(self, fmt, binary, big_endian):
        header = parse_header(
            _stream(f"ply\nformat {fmt} 1.0\nelement vertex 1\nproperty float x\nend_header\n")
        )
        assert header.binary is binary
        assert header.big_endian is big_endian
        assert header.format_name == fmt

    def test_unknown_format_is_accepted(self):
        """Test that an unrecognized format token leaves ASCII mode in place."""
        header = parse_header(
            _stream("ply\nformat binary_middle_endian 1.0\nelement vertex 1\nproperty float x\nend_header\n")
        )
        assert not header.binary

    def test_not_ply(self):
        with pytest.raises(NotPlyError):
            parse_header(_stream("solid cube\nfacet normal 0 0 1\n"))

    def test_empty_stream_is_not_ply(self):
        with pytest.raises(NotPlyError):
            parse_header(io.BytesIO(b""))

    def test_missing_vertex_element(self):
        with pytest.raises(MissingVertexElementError):
            parse_header(_stream("ply\nformat ascii 1.0\nelement face 2\nend_header\n"))

    def test_zero_vertices(self):
        with pytest.raises(MissingVertexElementError):
            parse_header(_stream("ply\nformat ascii 1.0\nelement vertex 0\nend_header\n"))

    def test_errors_share_base_class(self):
        with pytest.raises(PlyFormatError):
            parse_header(_stream("PLY\n"))

    def test_bad_element_count(self):
        with pytest.raises(MalformedHeaderError):
            parse_header(_stream("ply\nformat ascii 1.0\nelement vertex many\nend_header\n"))

    @pytest.mark.parametrize("count", ["-3", "100000000000000000000", str(MAX_ELEMENT_COUNT + 1)])
    def test_element_count_out_of_range(self, count):
        with pytest.raises(MalformedHeaderError) as exc_info:
            parse_header(
                _stream(
                    f"ply\nformat ascii 1.0\nelement vertex {count}\nproperty float x\nend_header\n"
                )
            )
        assert exc_info.value.line_number == 3

    def test_huge_face_count_rejected(self):
        with pytest.raises(MalformedHeaderError):
            parse_header(
                _stream(
                    "ply\nformat ascii 1.0\nelement vertex 1\nproperty float x\n"
                    "element face 4294967296\nend_header\n"
                )
            )


    def test_color_and_normal_markers(self):
        """Test has_colors/has_normals detection, including splat names."""
        header = parse_header(
            _stream(
                "ply\nformat binary_little_endian 1.0\nelement vertex 2\n"
                "property float x\nproperty float y\nproperty float z\n"
                "property float nx\nproperty float ny\nproperty float nz\n"
                "property float f_dc_0\nproperty float f_dc_1\nproperty float f_dc_2\n"
                "property float opacity\n"
                "end_header\n"
            )
        )
        assert header.has_normals
        assert header.has_colors
        assert header.has_sh_dc_colors
        assert [p.slot for p in header.vertex_properties][-4:] == [
            VertexSlot.R,
            VertexSlot.G,
            VertexSlot.B,
            VertexSlot.IGNORED,
        ]

    def test_normal_x_marker(self):
        """Test that normal_x flags normals even though it routes nowhere."""
        header = parse_header(
            _stream("ply\nformat ascii 1.0\nelement vertex 1\nproperty float normal_x\nend_header\n")
        )
        assert header.has_normals
        assert header.vertex_properties[0].slot is VertexSlot.IGNORED

    def test_property_types(self):
        header = parse_header(
            _stream(
                "ply\nformat binary_little_endian 1.0\nelement vertex 1\n"
                "property uchar red\nproperty int16 s\nproperty double d\nproperty uint i\n"
                "end_header\n"
            )
        )
        types = [p.type for p in header.vertex_properties]
        assert types == [
            PrimitiveType.UINT8,
            PrimitiveType.INT16,
            PrimitiveType.FLOAT64,
            PrimitiveType.UINT32,
        ]
        assert header.vertex_stride == 1 + 2 + 8 + 4

    def test_face_list_schema(self):
        header = parse_header(
            _stream(
                "ply\nformat binary_little_endian 1.0\nelement vertex 3\nproperty float x\n"
                "element face 1\nproperty list uint8 uint32 vertex_index\nend_header\n"
            )
        )
        assert header.face_list.count_type is PrimitiveType.UINT8
        assert header.face_list.index_type is PrimitiveType.UINT32
        assert header.face_list.name == "vertex_index"

    def test_index_list_preferred_over_other_lists(self):
        """Test that a texture-coordinate list does not replace the index list."""
        header = parse_header(
            _stream(
                "ply\nformat binary_little_endian 1.0\nelement vertex 3\nproperty float x\n"
                "element face 1\nproperty list uchar float texcoord\n"
                "property list uchar int vertex_indices\nproperty int material\nend_header\n"
            )
        )
        assert header.face_list.name == "vertex_indices"
        assert header.face_list.index_type is PrimitiveType.INT32
        assert [p.name for p in header.face_layout] == ["texcoord", "vertex_indices", "material"]
        assert [p.is_list for p in header.face_layout] == [True, True, False]

    def test_first_list_used_without_standard_name(self):
        header = parse_header(
            _stream(
                "ply\nformat ascii 1.0\nelement vertex 3\nproperty float x\n"
                "element face 1\nproperty list uchar uint corners\n"
                "property list uchar float texcoord\nend_header\n"
            )
        )
        assert header.face_list.name == "corners"

    def test_face_element_without_list(self):
        header = parse_header(
            _stream(
                "ply\nformat ascii 1.0\nelement vertex 3\nproperty float x\n"
                "element face 2\nproperty int material\nend_header\n"
            )
        )
        assert header.face_count == 0


    def test_other_element_properties_dropped(self):
        """Test that properties of unrelated elements are not tracked."""
        header = parse_header(
            _stream(
                "ply\nformat ascii 1.0\n"
                "element vertex 1\nproperty float x\n"
                "element edge 1\nproperty int vertex1\nproperty int vertex2\n"
                "end_header\n"
            )
        )
        assert header.property_names == ["x"]
        assert header.ignored_elements == ["edge"]

    def test_vertex_list_property_rejected(self):
        with pytest.raises(UnsupportedPropertyError):
            parse_header(
                _stream(
                    "ply\nformat ascii 1.0\nelement vertex 1\n"
                    "property list uchar float weights\nend_header\n"
                )
            )

    def test_unknown_binary_type_rejected(self):
        """Test that a type of unknown width cannot be skipped in binary mode."""
        with pytest.raises(UnsupportedPropertyError):
            parse_header(
                _stream(
                    "ply\nformat binary_little_endian 1.0\nelement vertex 1\n"
                    "property float x\nproperty half h\nend_header\n"
                )
            )

    def test_unknown_ascii_type_accepted(self):
        header = parse_header(
            _stream("ply\nformat ascii 1.0\nelement vertex 1\nproperty half h\nend_header\n")
        )
        assert header.vertex_properties[0].type is PrimitiveType.UNKNOWN


class TestHeaderErrorsThroughLoader:
    """Test that oversized headers surface as PlyFormatError from the loader."""

    def test_huge_vertex_count(self):
        data = (
            b"ply\nformat binary_little_endian 1.0\nelement vertex 100000000000000000000\n"
            b"property float x\nend_header\n\x00\x00\x00\x00"
        )
        with pytest.raises(MalformedHeaderError):
            load_ply_bytes(data)

    def test_allocation_failure_reported_as_header_error(
        self, monkeypatch, make_binary_ply, xyz_properties
    ):
        def _fail(**kwargs):
            raise MemoryError("out of memory")

        monkeypatch.setattr(loader, "GeometryBuilder", _fail)
        with pytest.raises(MalformedHeaderError) as exc_info:
            load_ply_bytes(make_binary_ply(xyz_properties, [(1.0, 2.0, 3.0)]))
        assert isinstance(exc_info.value.__cause__, MemoryError)
