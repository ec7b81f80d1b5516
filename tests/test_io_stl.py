import io
import struct

import pytest

from polyinside.geometry_checks import validate_closed_surface
from polyinside.io import read_stl, write_stl
from polyinside.io.stl import _is_binary_stl
from polyinside.mesh import box_surface, surface_triangles


def test_binary_round_trip(tmp_path):
    path = tmp_path / "box.stl"
    write_stl(box_surface(), path)
    data = path.read_bytes()
    assert len(data) == 84 + 12 * 50
    assert struct.unpack('<I', data[80:84])[0] == 12
    assert _is_binary_stl(data)

    mesh = read_stl(path)
    assert len(mesh[1]) == 8
    assert len(mesh[3]) == 12
    assert validate_closed_surface(mesh)


def test_ascii_stream_round_trip():
    buf = io.StringIO()
    write_stl(box_surface((0, 0, 0), (2, 1, 1)), buf, binary=False, name='slab')
    text = buf.getvalue()
    assert text.startswith('solid slab')
    assert text.rstrip().endswith('endsolid slab')
    assert not _is_binary_stl(text.encode('ascii'))

    mesh = read_stl(io.StringIO(text))
    assert len(mesh[3]) == 12
    xs = [v[0] for v in mesh[1]]
    assert min(xs) == 0.0 and max(xs) == 2.0


def test_read_without_deduplication():
    buf = io.BytesIO()
    write_stl(list(surface_triangles(box_surface())), buf)
    buf.seek(0)
    mesh = read_stl(buf, deduplicate=False)
    assert len(mesh[1]) == 36
    assert len(mesh[3]) == 12


def test_truncated_binary_raises():
    buf = io.BytesIO()
    write_stl(box_surface(), buf)
    with pytest.raises(ValueError, match='Invalid binary STL'):
        read_stl(io.BytesIO(buf.getvalue()[:-10]))


def test_malformed_ascii_raises():
    text = "solid broken\nfacet normal 0 0 1\nendsolid broken\n"
    with pytest.raises(ValueError, match='Invalid ASCII STL'):
        read_stl(io.StringIO(text))


def test_empty_ascii_gives_empty_surface():
    mesh = read_stl(io.StringIO("solid empty\nendsolid empty\n"))
    assert mesh[1] == []
    assert mesh[3] == []


def test_collapsed_triangles_are_dropped():
    text = (
        "solid tiny\n"
        "facet normal 0 0 1\n outer loop\n"
        "  vertex 0 0 0\n  vertex 1e-12 0 0\n  vertex 0 1 0\n"
        " endloop\nendfacet\n"
        "facet normal 0 0 1\n outer loop\n"
        "  vertex 0 0 0\n  vertex 1 0 0\n  vertex 0 1 0\n"
        " endloop\nendfacet\n"
        "endsolid tiny\n"
    )
    mesh = read_stl(io.StringIO(text))
    assert len(mesh[3]) == 1
    assert len(read_stl(io.StringIO(text), deduplicate=False)[3]) == 2


def test_vertices_straddling_grid_line_merge():
    # 9.9999999e-10 and 1.0000001e-9 fall in different 1e-9 cells
    text = (
        "solid split\n"
        "facet normal 0 0 -1\n outer loop\n"
        "  vertex 9.9999999e-10 0 0\n  vertex 0 1 0\n  vertex 1 0 0\n"
        " endloop\nendfacet\n"
        "facet normal 0 -1 0\n outer loop\n"
        "  vertex 1.0000001e-9 0 0\n  vertex 1 0 0\n  vertex 0 0 1\n"
        " endloop\nendfacet\n"
        "endsolid split\n"
    )
    mesh = read_stl(io.StringIO(text))
    assert len(mesh[1]) == 4
    assert mesh[3][0][0] == mesh[3][1][0]
