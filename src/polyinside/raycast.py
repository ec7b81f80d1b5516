"""Probe rays, ray/box and ray/triangle tests, and the crossing counter.

The crossing counter is the visitor handed to a spatial index's
``traverse(ray, visitor)``.  The index asks it ``do_intersect(ray,
box)`` before descending into a node, reports candidate triangles
through ``intersection(ray, triangle)``, and stops as soon as
``go_further()`` returns ``False``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from polyinside.geom import cross, dot, mag, normalize, point, sub
from polyinside.geometry_utils import Triangle
from polyinside.types import TraversalOutcome

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 1e-9


@dataclass(frozen=True)
class Ray:
    """Half-line from ``origin`` along the unit vector ``direction``."""

    origin: tuple
    direction: tuple

    def __init__(self, origin: Sequence[float], direction: Sequence[float]):
        o = point(origin)
        d = normalize(direction)
        object.__setattr__(self, 'origin', (o[0], o[1], o[2]))
        object.__setattr__(self, 'direction', (d[0], d[1], d[2]))

    def at(self, t: float) -> tuple:
        o, d = self.origin, self.direction
        return (o[0] + d[0] * t, o[1] + d[1] * t, o[2] + d[2] * t)


def ray_box_intersect(ray: Ray, bbox, pad: float = 0.0) -> bool:
    """Slab test: does ``ray`` meet ``bbox`` grown by ``pad``?"""

    tmin = 0.0
    tmax = float('inf')
    for axis in range(3):
        o = ray.origin[axis]
        d = ray.direction[axis]
        lo = bbox[0][axis] - pad
        hi = bbox[1][axis] + pad
        if d == 0.0:
            if o < lo or o > hi:
                return False
            continue
        t0 = (lo - o) / d
        t1 = (hi - o) / d
        if t0 > t1:
            t0, t1 = t1, t0
        tmin = max(tmin, t0)
        tmax = min(tmax, t1)
        if tmin > tmax:
            return False
    return True


class HitKind(Enum):
    """How a probe ray meets a single triangle."""

    MISS = "miss"
    PROPER = "proper"        # transversal crossing of the triangle interior
    EDGE = "edge"            # crossing through an edge or a vertex
    ORIGIN = "origin"        # ray origin lies on the triangle
    COPLANAR = "coplanar"    # ray runs inside the triangle's plane


def _point_in_triangle(p, tri: Triangle, tol: float) -> bool:
    a, b, c = tri.vertices
    v0 = sub(c, a)
    v1 = sub(b, a)
    v2 = sub(p, a)

    dot00 = dot(v0, v0)
    dot01 = dot(v0, v1)
    dot02 = dot(v0, v2)
    dot11 = dot(v1, v1)
    dot12 = dot(v1, v2)

    denom = dot00 * dot11 - dot01 * dot01
    if denom == 0.0:
        return False
    inv = 1.0 / denom
    u = (dot11 * dot02 - dot01 * dot12) * inv
    v = (dot00 * dot12 - dot01 * dot02) * inv
    return u >= -tol and v >= -tol and (u + v) <= 1.0 + tol


def ray_triangle_hit(ray: Ray, tri: Triangle, tol: float = DEFAULT_TOLERANCE) -> HitKind:
    """Classify the meeting of ``ray`` and ``tri`` (Moller-Trumbore).

    ``tol`` is used both as a distance along the ray and as a
    barycentric margin; a barycentric coordinate within ``tol`` of
    zero counts as touching an edge.
    """

    v0, v1, v2 = tri.vertices
    origin = ray.origin
    direction = ray.direction
    e1 = sub(v1, v0)
    e2 = sub(v2, v0)
    s = sub(origin, v0)
    normal = cross(e1, e2)
    nlen = mag(normal)
    if nlen == 0.0:
        return HitKind.MISS

    h = cross(direction, e2)
    a = dot(e1, h)
    if abs(a) <= tol * nlen:
        # ray parallel to the triangle plane
        if abs(dot(normal, s)) / nlen > tol:
            return HitKind.MISS
        if _point_in_triangle(origin, tri, tol):
            return HitKind.ORIGIN
        if ray_box_intersect(ray, tri.bbox(), pad=tol):
            return HitKind.COPLANAR
        return HitKind.MISS

    f = 1.0 / a
    u = f * dot(s, h)
    q = cross(s, e1)
    v = f * dot(direction, q)
    t = f * dot(e2, q)
    w = 1.0 - u - v
    lowest = min(u, v, w)

    if lowest < -tol:
        return HitKind.MISS
    if abs(t) <= tol:
        return HitKind.ORIGIN
    if t < 0.0:
        return HitKind.MISS
    if lowest <= tol:
        return HitKind.EDGE
    return HitKind.PROPER


class CrossingCounter:
    """Traversal visitor that counts proper crossings along one ray.

    Stops early with a boundary result when the ray origin lies on a
    triangle, and with an indeterminate result when the ray grazes an
    edge or vertex or runs inside a triangle's plane.
    """

    def __init__(self, tol: float = DEFAULT_TOLERANCE):
        self.tol = tol
        self.crossings = 0
        self.visited = 0
        self._stop = None

    def do_intersect(self, ray: Ray, bbox) -> bool:
        return ray_box_intersect(ray, bbox, pad=self.tol)

    def intersection(self, ray: Ray, tri: Triangle) -> None:
        self.visited += 1
        kind = ray_triangle_hit(ray, tri, self.tol)
        if kind is HitKind.PROPER:
            self.crossings += 1
        elif kind is HitKind.ORIGIN:
            self._stop = TraversalOutcome.boundary()
        elif kind in (HitKind.EDGE, HitKind.COPLANAR):
            logger.debug('degenerate %s hit along direction %s', kind.value, ray.direction)
            self._stop = TraversalOutcome.indeterminate()

    def go_further(self) -> bool:
        return self._stop is None

    def outcome(self) -> TraversalOutcome:
        if self._stop is not None:
            return self._stop
        return TraversalOutcome.definite(self.crossings)


__all__ = [
    'DEFAULT_TOLERANCE',
    'Ray',
    'HitKind',
    'ray_box_intersect',
    'ray_triangle_hit',
    'CrossingCounter',
]
