import logging
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from polyinside import (
    Classification,
    ContainmentConfig,
    DirectionSampler,
    OutcomeKind,
    PointInsideTester,
    TriangleOctree,
    choose_primary_direction,
    classify,
)
from polyinside.config import DEFAULT_SEED
from polyinside.containment import probe
from polyinside.evaluation import evaluate_classifications
from polyinside.geom import mag
from polyinside.geometry_utils import Triangle
from polyinside.mesh import (
    box_surface,
    merge_surfaces,
    reverse_surface,
    surface_triangles,
    tetrahedron_surface,
)

UNIT_BOX = [[0, 0, 0, 1], [1, 1, 1, 1]]


def cube_index():
    tree = TriangleOctree(list(surface_triangles(box_surface())))
    tree.build()
    return tree


class CountingIndex:
    """Wraps an index and records every probe ray pushed through it."""

    def __init__(self, index):
        self.index = index
        self.rays = []

    def bounding_box(self):
        return self.index.bounding_box()

    def traverse(self, ray, visitor):
        self.rays.append(ray)
        self.index.traverse(ray, visitor)


def grazed_triangle(ray):
    """Triangle across ``ray`` with a vertex exactly on it, one unit out."""
    d = np.array(ray.direction)
    axis = np.array([1.0, 0.0, 0.0]) if abs(d[0]) < 0.9 else np.array([0.0, 1.0, 0.0])
    n1 = np.cross(d, axis)
    n2 = np.cross(d, n1)
    p = np.array(ray.at(1.0))
    return Triangle.from_vertices(p, p + n1, p + n2)


class AlwaysGrazingIndex:
    """Every probe passes exactly through a triangle vertex."""

    def __init__(self):
        self.traversals = 0

    def bounding_box(self):
        return [[-10, -10, -10, 1], [10, 10, 10, 1]]

    def traverse(self, ray, visitor):
        self.traversals += 1
        visitor.intersection(ray, grazed_triangle(ray))


class GrazedFirstIndex(CountingIndex):
    """The first probe grazes a stray vertex; later ones see the real mesh."""

    def traverse(self, ray, visitor):
        self.rays.append(ray)
        if len(self.rays) == 1:
            visitor.intersection(ray, grazed_triangle(ray))
            if not visitor.go_further():
                return
        self.index.traverse(ray, visitor)


def test_choose_primary_direction():
    assert choose_primary_direction([0.5, 0.5, 0.2, 1], UNIT_BOX) == [0, 0, -1, 0]
    # the midplane probes upward
    assert choose_primary_direction([0.5, 0.5, 0.5, 1], UNIT_BOX) == [0, 0, 1, 0]
    assert choose_primary_direction([0.5, 0.5, 0.9, 1], UNIT_BOX) == [0, 0, 1, 0]


def test_direction_sampler_is_deterministic():
    a = DirectionSampler(7)
    b = DirectionSampler(7)
    first = [a.next_direction() for _ in range(5)]
    assert first == [b.next_direction() for _ in range(5)]
    for d in first:
        assert abs(mag(d) - 1.0) < 1e-12
        assert d[3] == 0
    assert DirectionSampler(8).next_direction() != first[0]
    assert DirectionSampler().seed == DEFAULT_SEED


def test_probe_counts_crossings():
    index = cube_index()
    for direction in ([0, 0, -1, 0], [0, 0, 1, 0]):
        outcome = probe([0.25, 0.3, 0.2, 1], direction, index, 1e-9)
        assert outcome.kind is OutcomeKind.DEFINITE
        assert outcome.crossings == 1
        assert outcome.side is Classification.INSIDE


def test_point_outside_bbox_needs_no_traversal():
    index = CountingIndex(cube_index())
    assert classify((10, 10, 10), index) is Classification.OUTSIDE
    assert index.rays == []


def test_empty_index_is_outside():
    assert classify((0, 0, 0), TriangleOctree()) is Classification.OUTSIDE


def test_inside_point_resolved_by_vertical_probe():
    index = CountingIndex(cube_index())
    assert classify((0.25, 0.3, 0.2), index) is Classification.INSIDE
    assert len(index.rays) == 1
    assert index.rays[0].direction == (0.0, 0.0, -1.0)


def test_boundary_points():
    index = cube_index()
    assert classify((0.5, 0.5, 0), index) is Classification.ON_BOUNDARY
    assert classify((0, 0, 0), index) is Classification.ON_BOUNDARY
    assert classify((1, 0.5, 0.5), index) is Classification.ON_BOUNDARY


@pytest.mark.parametrize("p", [(0.5, 0.5, 0), (0, 0, 0), (0.5, 0, 0.5), (1, 1, 1)])
def test_boundary_point_resolved_by_fallback(p):
    index = GrazedFirstIndex(cube_index())
    assert classify(p, index) is Classification.ON_BOUNDARY
    assert index.rays[0].direction in ((0.0, 0.0, 1.0), (0.0, 0.0, -1.0))
    assert len(index.rays) >= 2


def test_grazing_vertical_probe_falls_back():
    # the upward probe from the center hits the diagonal of the top face
    index = CountingIndex(cube_index())
    assert classify((0.5, 0.5, 0.5), index) is Classification.INSIDE
    assert index.rays[0].direction == (0.0, 0.0, 1.0)
    assert len(index.rays) >= 2


def test_fallback_sequence_replays():
    a = CountingIndex(cube_index())
    b = CountingIndex(cube_index())
    classify((0.5, 0.5, 0.5), a)
    classify((0.5, 0.5, 0.5), b)
    assert [r.direction for r in a.rays] == [r.direction for r in b.rays]

    c = CountingIndex(cube_index())
    classify((0.5, 0.5, 0.5), c, ContainmentConfig(seed=99))
    assert c.rays[1].direction != a.rays[1].direction


def test_cavity_parity():
    solid = merge_surfaces(box_surface((0, 0, 0), (3, 3, 3)),
                           reverse_surface(box_surface((1, 1, 1), (2, 2, 2))))
    tester = PointInsideTester(solid)
    assert tester((1.5, 1.4, 1.3)) is Classification.OUTSIDE
    assert tester((0.5, 1.4, 1.3)) is Classification.INSIDE
    outcome = probe([1.5, 1.4, 1.3, 1], [0, 0, -1, 0], tester.index, 1e-9)
    assert outcome.crossings == 2


def test_fallback_cap_gives_inconclusive(caplog):
    index = AlwaysGrazingIndex()
    cfg = ContainmentConfig(max_fallback_probes=5)
    with caplog.at_level(logging.WARNING, logger="polyinside.containment"):
        assert classify((0, 0, 0), index, cfg) is Classification.INCONCLUSIVE
    assert index.traversals == 6
    assert "fallback rays" in caplog.text


def test_invalid_point_raises():
    with pytest.raises(ValueError):
        classify((1, 2), cube_index())


def test_tester_accepts_surfaces_triangles_and_indexes():
    triangles = list(surface_triangles(box_surface()))
    index = cube_index()
    for geometry in (box_surface(), triangles, tuple(triangles), index):
        tester = PointInsideTester(geometry)
        assert tester((0.25, 0.3, 0.2)) is Classification.INSIDE
        assert tester((2, 0.3, 0.2)) is Classification.OUTSIDE
    assert PointInsideTester(index).index is index
    with pytest.raises(ValueError):
        PointInsideTester(42)


def test_tester_uses_config_for_octree():
    cfg = ContainmentConfig(octree_maxdepth=3, octree_leaf_size=2)
    tester = PointInsideTester(box_surface(), cfg)
    assert tester.config is cfg
    assert tester.index.maxdepth == 3
    assert tester.index.leafsize == 2


def test_contains_and_mask():
    tester = PointInsideTester(box_surface())
    assert tester.contains((0.2, 0.3, 0.4))
    assert tester.contains((0.5, 0.5, 0))
    assert not tester.contains((0.5, 0.5, 0), on_boundary=False)
    assert not tester.contains((3, 3, 3))

    mask = tester.inside_mask(np.array([[0.2, 0.3, 0.4], [3, 3, 3], [0.5, 0.5, 0]]))
    assert mask.dtype == bool
    assert mask.tolist() == [True, False, True]
    with pytest.raises(ValueError):
        tester.inside_mask([1, 2, 3])


def _random_points(n, seed=5):
    rng = np.random.default_rng(seed)
    return rng.uniform(-0.5, 1.5, size=(n, 3))


def test_random_points_against_cube():
    points = _random_points(300)
    inside = np.all((points > 0) & (points < 1), axis=1)
    truth = [Classification.INSIDE if f else Classification.OUTSIDE for f in inside]
    results = PointInsideTester(box_surface()).classify_points(points)
    ev = evaluate_classifications(truth, results)
    assert ev.number_of_items() == 300
    assert ev.accuracy() == 1.0


def test_random_points_against_tetrahedron():
    points = _random_points(300, seed=11)
    inside = np.all(points > 0, axis=1) & (points.sum(axis=1) < 1)
    truth = [Classification.INSIDE if f else Classification.OUTSIDE for f in inside]
    results = PointInsideTester(tetrahedron_surface()).classify_points(points)
    assert evaluate_classifications(truth, results).number_of_misclassified_items() == 0


def test_concurrent_queries_match_serial():
    tester = PointInsideTester(box_surface())
    points = [tuple(p) for p in _random_points(200, seed=3)]
    points.append((0.5, 0.5, 0.5))
    serial = [tester(p) for p in points]
    with ThreadPoolExecutor(max_workers=4) as pool:
        threaded = list(pool.map(tester, points))
    assert threaded == serial
