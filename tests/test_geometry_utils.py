import pytest

from polyinside.geom import point
from polyinside.geometry_utils import (
    Triangle,
    to_vec3,
    triangle_normal,
)


def test_to_vec3():
    assert to_vec3(point(1.2, -3.4, 5.6)) == (1.2, -3.4, 5.6)
    with pytest.raises(ValueError):
        to_vec3((1.0, 2.0))


def test_triangle_normal():
    v0 = (0.0, 0.0, 0.0)
    v1 = (1.0, 0.0, 0.0)
    v2 = (0.0, 1.0, 0.0)

    n = triangle_normal(v0, v1, v2)
    assert n == (0.0, 0.0, 1.0)


def test_degenerate_triangle_has_no_normal():
    v0 = (0.0, 0.0, 0.0)
    v1 = (1.0, 1.0, 1.0)
    v2 = (2.0, 2.0, 2.0)
    assert triangle_normal(v0, v1, v2) is None
    assert Triangle.from_vertices(v0, v1, v2).normal == (0.0, 0.0, 0.0)


def test_triangle_from_points_and_bbox():
    tri = Triangle.from_vertices(point(0, 0, 1), point(2, 0, 1), point(0, 3, 1))
    assert tri.vertices == ((0.0, 0.0, 1.0), (2.0, 0.0, 1.0), (0.0, 3.0, 1.0))
    assert tri.normal == (0.0, 0.0, 1.0)
    assert tri.bbox() == [[0.0, 0.0, 1.0, 1.0], [2.0, 3.0, 1.0, 1.0]]
    assert tri.bbox(pad=0.5) == [[-0.5, -0.5, 0.5, 1.0], [2.5, 3.5, 1.5, 1.0]]
