"""Point-in-solid classification by ray parity.

:func:`classify` decides whether a point lies inside, outside or on a
closed triangle surface held in a spatial index:

1. points outside the index bounding box are OUTSIDE, with no traversal;
2. a vertical probe ray, pointed away from the nearer half of the box
   along Z, is pushed through the index and its crossings counted;
3. if that probe grazes an edge or vertex, probes along directions
   drawn uniformly from the unit sphere are retried until one is
   determinate.

The fallback directions come from a sampler created per call with a
fixed seed, so the same query always replays the same probe sequence.

The parity rule is only valid when the surface is closed and
consistently oriented.  That precondition is not checked here; see
:mod:`polyinside.geometry_checks` for an optional validation pass.
A malformed surface still yields some classification, it just may not
match the geometry.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Protocol, Sequence

import numpy as np

from polyinside.config import DEFAULT_SEED, ContainmentConfig
from polyinside.geom import isinsidebbox, point, vect
from polyinside.mesh import issurface, surface_triangles
from polyinside.octtree import TriangleOctree
from polyinside.raycast import CrossingCounter, Ray
from polyinside.types import Classification, TraversalOutcome

logger = logging.getLogger(__name__)


class SpatialIndex(Protocol):
    """What :func:`classify` needs from a spatial index."""

    def bounding_box(self): ...

    def traverse(self, ray, visitor) -> None: ...


def choose_primary_direction(p: Sequence[float], bbox) -> list:
    """Vertical unit direction for the first probe.

    Points in the lower half of the box along Z probe downward and
    points in the upper half (or exactly at the middle) probe upward,
    so the ray leaves the box through the nearer face.
    """

    if 2 * p[2] < bbox[0][2] + bbox[1][2]:
        return vect(0, 0, -1, 0)
    return vect(0, 0, 1, 0)


class DirectionSampler:
    """Deterministic stream of directions uniform on the unit sphere."""

    def __init__(self, seed: int = DEFAULT_SEED):
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def next_direction(self) -> list:
        while True:
            v = self._rng.standard_normal(3)
            m = float(np.linalg.norm(v))
            if m > 1e-12:
                v = v / m
                return vect(float(v[0]), float(v[1]), float(v[2]), 0)


def probe(p: Sequence[float], direction: Sequence[float], index: SpatialIndex,
          tol: float) -> TraversalOutcome:
    """Push one ray from ``p`` along ``direction`` through ``index``."""

    ray = Ray(p, direction)
    counter = CrossingCounter(tol)
    index.traverse(ray, counter)
    return counter.outcome()


def classify(p: Sequence[float], index: SpatialIndex,
             config: Optional[ContainmentConfig] = None) -> Classification:
    """Classify point ``p`` against the closed surface held by ``index``.

    Returns INSIDE, OUTSIDE or ON_BOUNDARY.  With no fallback cap (the
    default) the call loops until a probe is determinate, which happens
    almost surely.  When ``config.max_fallback_probes`` is set and
    every fallback probe is degenerate, INCONCLUSIVE is returned.

    Raises ``ValueError`` if ``p`` is not a point with three numeric
    coordinates.
    """

    cfg = config or ContainmentConfig()
    q = point(p)

    bbox = index.bounding_box()
    if bbox is None or not isinsidebbox(bbox, q):
        return Classification.OUTSIDE

    outcome = probe(q, choose_primary_direction(q, bbox), index, cfg.tolerance)
    if not outcome.is_indeterminate:
        return outcome.classification()

    sampler = DirectionSampler(cfg.seed)
    attempts = 0
    while outcome.is_indeterminate:
        if cfg.max_fallback_probes is not None and attempts >= cfg.max_fallback_probes:
            logger.warning('no determinate probe from %s after %d fallback rays',
                           q[:3], attempts)
            return Classification.INCONCLUSIVE
        attempts += 1
        outcome = probe(q, sampler.next_direction(), index, cfg.tolerance)
    logger.debug('vertical probe from %s was degenerate, resolved after %d fallback rays',
                 q[:3], attempts)
    return outcome.classification()


class PointInsideTester:
    """Reusable classifier bound to one surface.

    ``geometry`` is a surface, an iterable of triangles, or anything
    already implementing :class:`SpatialIndex`.  Surfaces and triangles
    are indexed with a :class:`TriangleOctree`, built eagerly so the
    tester can be shared between threads.
    """

    def __init__(self, geometry, config: Optional[ContainmentConfig] = None):
        self._config = config or ContainmentConfig()
        if hasattr(geometry, 'traverse') and hasattr(geometry, 'bounding_box'):
            self._index = geometry
        else:
            if issurface(geometry):
                triangles = surface_triangles(geometry)
            elif isinstance(geometry, (list, tuple)):
                triangles = geometry
            else:
                raise ValueError('PointInsideTester needs a surface, triangles or a spatial index')
            self._index = TriangleOctree(triangles,
                                         maxdepth=self._config.octree_maxdepth,
                                         leafsize=self._config.octree_leaf_size)
            self._index.build()

    @property
    def index(self) -> SpatialIndex:
        return self._index

    @property
    def config(self) -> ContainmentConfig:
        return self._config

    def __call__(self, p: Sequence[float]) -> Classification:
        return classify(p, self._index, self._config)

    def classify_points(self, points: Iterable[Sequence[float]]) -> List[Classification]:
        return [classify(p, self._index, self._config) for p in points]

    def contains(self, p: Sequence[float], on_boundary: bool = True) -> bool:
        """``True`` for inside points, and for boundary points when
        ``on_boundary`` is set."""
        result = self(p)
        if result is Classification.INSIDE:
            return True
        return on_boundary and result is Classification.ON_BOUNDARY

    def inside_mask(self, points, on_boundary: bool = True) -> np.ndarray:
        """Boolean numpy mask over an ``(n, 3)`` array-like of points."""
        arr = np.asarray(points, dtype=float)
        if arr.ndim != 2 or arr.shape[1] < 3:
            raise ValueError('inside_mask expects an (n, 3) array of points')
        return np.array([self.contains(row, on_boundary) for row in arr], dtype=bool)


__all__ = [
    'SpatialIndex',
    'choose_primary_direction',
    'DirectionSampler',
    'probe',
    'classify',
    'PointInsideTester',
]
