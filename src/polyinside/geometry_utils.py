"""Common triangle helpers shared by the mesh, index and I/O modules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

from polyinside.geom import cross, epsilon, mag

Vec3 = Tuple[float, float, float]


@dataclass(frozen=True)
class Triangle:
    """Immutable triangle representation in XYZ space.

    ``normal`` is the unit normal implied by the winding ``v0, v1, v2``
    (or the zero vector for a degenerate triangle).
    """

    normal: Vec3
    v0: Vec3
    v1: Vec3
    v2: Vec3

    @classmethod
    def from_vertices(cls, v0: Sequence[float], v1: Sequence[float], v2: Sequence[float]) -> "Triangle":
        a, b, c = to_vec3(v0), to_vec3(v1), to_vec3(v2)
        normal = triangle_normal(a, b, c) or (0.0, 0.0, 0.0)
        return cls(normal=normal, v0=a, v1=b, v2=c)

    @property
    def vertices(self) -> Tuple[Vec3, Vec3, Vec3]:
        return (self.v0, self.v1, self.v2)

    def bbox(self, pad: float = 0.0) -> list:
        """Axis-aligned bounding box ``[min, max]`` grown by ``pad``."""

        verts = self.vertices
        mins = [min(v[i] for v in verts) - pad for i in range(3)]
        maxs = [max(v[i] for v in verts) + pad for i in range(3)]
        return [[mins[0], mins[1], mins[2], 1.0], [maxs[0], maxs[1], maxs[2], 1.0]]


def to_vec3(point_like: Sequence[float]) -> Vec3:
    """Return the XYZ components of a point/vector as a tuple."""

    if len(point_like) < 3:
        raise ValueError("value must have at least three components")
    return float(point_like[0]), float(point_like[1]), float(point_like[2])


def triangle_normal(v0: Vec3, v1: Vec3, v2: Vec3) -> Vec3 | None:
    """Return the unit normal of a triangle or ``None`` if degenerate."""

    ax, ay, az = v1[0] - v0[0], v1[1] - v0[1], v1[2] - v0[2]
    bx, by, bz = v2[0] - v0[0], v2[1] - v0[1], v2[2] - v0[2]
    n = cross([ax, ay, az, 1.0], [bx, by, bz, 1.0])
    length = mag(n)
    if length <= epsilon * epsilon:
        return None
    return (n[0] / length, n[1] / length, n[2] / length)


__all__ = [
    "Triangle",
    "Vec3",
    "to_vec3",
    "triangle_normal",
]
