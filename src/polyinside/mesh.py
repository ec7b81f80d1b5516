"""Triangle surfaces in the nested-list representation.

A surface is ``['surface', vertices, normals, faces, boundary, holes]``
where ``vertices`` are points, ``normals`` are per-vertex direction
vectors (w=0) and ``faces`` are index triples.  Faces are wound
counter-clockwise when seen from outside, so the right-hand normal
points away from the enclosed volume.
"""

from __future__ import annotations

from typing import Iterable, Iterator, List, Sequence

from polyinside.geom import point, pointsbbox, vect
from polyinside.geometry_utils import Triangle, to_vec3, triangle_normal


def surface(vertices=None, faces=None, normals=None) -> list:
    """Build a surface from vertex and face lists.

    When ``normals`` is omitted, per-vertex normals are averaged from
    the incident face normals.
    """

    vertices = [point(v) for v in (vertices or [])]
    faces = [list(f) for f in (faces or [])]
    n = len(vertices)
    for face in faces:
        if len(face) != 3:
            raise ValueError('surface faces must be triangles, got {}'.format(face))
        for idx in face:
            if not isinstance(idx, int) or idx < 0 or idx >= n:
                raise ValueError('bad vertex index {} in face {}'.format(idx, face))
    if normals is None:
        normals = _vertex_normals(vertices, faces)
    elif len(normals) != n:
        raise ValueError('surface needs exactly one normal per vertex')
    else:
        normals = [vect(nm[0], nm[1], nm[2], 0) for nm in normals]
    return ['surface', vertices, normals, faces, [], []]


def issurface(s) -> bool:
    """Check to see if ``s`` looks like a surface."""

    return (isinstance(s, list) and len(s) in (6, 7) and s[0] == 'surface'
            and isinstance(s[1], list) and isinstance(s[3], list))


def _vertex_normals(vertices, faces):
    sums = [[0.0, 0.0, 0.0] for _ in vertices]
    for face in faces:
        tri = [to_vec3(vertices[i]) for i in face]
        n = triangle_normal(*tri)
        if n is None:
            continue
        for i in face:
            sums[i][0] += n[0]
            sums[i][1] += n[1]
            sums[i][2] += n[2]
    normals = []
    for s in sums:
        length = (s[0] ** 2 + s[1] ** 2 + s[2] ** 2) ** 0.5
        if length > 1e-12:
            normals.append(vect(s[0] / length, s[1] / length, s[2] / length, 0))
        else:
            normals.append(vect(0, 0, 0, 0))
    return normals


def surface_triangles(s) -> Iterator[Triangle]:
    """Yield the non-degenerate faces of ``s`` as :class:`Triangle` values."""

    if not issurface(s):
        raise ValueError('surface_triangles expects a surface')
    verts = s[1]
    for face in s[3]:
        if len(face) != 3:
            continue
        tri = Triangle.from_vertices(verts[face[0]], verts[face[1]], verts[face[2]])
        if tri.normal == (0.0, 0.0, 0.0):
            continue
        yield tri


def surface_bbox(s) -> list:
    """return bounding box for surface"""
    if not issurface(s):
        raise ValueError('bad surface passed to surface_bbox')
    return pointsbbox(s[1])


def surface_from_triangles(triangles: Iterable[Triangle]) -> list:
    """Build an unshared-vertex surface from triangles."""

    verts: List[list] = []
    faces: List[List[int]] = []
    for tri in triangles:
        base = len(verts)
        verts.extend(point(v) for v in tri.vertices)
        faces.append([base, base + 1, base + 2])
    return surface(verts, faces)


def reverse_surface(s) -> list:
    """Flip the winding (and normals) of every face of ``s``."""

    if not issurface(s):
        raise ValueError('bad surface passed to reverse_surface')
    faces = [[f[0], f[2], f[1]] for f in s[3]]
    normals = [vect(-n[0], -n[1], -n[2], 0) for n in s[2]]
    return surface(s[1], faces, normals)


def merge_surfaces(*surfaces: Sequence) -> list:
    """Concatenate surfaces into one, renumbering face indices."""

    verts: List[list] = []
    normals: List[list] = []
    faces: List[List[int]] = []
    for s in surfaces:
        if not issurface(s):
            raise ValueError('bad surface passed to merge_surfaces')
        base = len(verts)
        verts.extend(s[1])
        normals.extend(s[2])
        faces.extend([f[0] + base, f[1] + base, f[2] + base] for f in s[3])
    return surface(verts, faces, normals)


## primitives
## ----------

_BOX_FACES = [
    [0, 2, 1], [0, 3, 2],  # bottom, -z
    [4, 5, 6], [4, 6, 7],  # top, +z
    [0, 1, 5], [0, 5, 4],  # front, -y
    [3, 7, 6], [3, 6, 2],  # back, +y
    [0, 4, 7], [0, 7, 3],  # left, -x
    [1, 2, 6], [1, 6, 5],  # right, +x
]


def box_surface(pmin=(0, 0, 0), pmax=(1, 1, 1)) -> list:
    """Closed, outward-wound axis-aligned box between ``pmin`` and ``pmax``.

    Each rectangular side is split along the diagonal that runs from
    its lowest-index corner, so every side has a triangle edge running
    through its center.
    """

    x0, y0, z0 = to_vec3(pmin)
    x1, y1, z1 = to_vec3(pmax)
    if x1 <= x0 or y1 <= y0 or z1 <= z0:
        raise ValueError('box_surface needs pmax strictly greater than pmin')
    verts = [
        point(x0, y0, z0), point(x1, y0, z0), point(x1, y1, z0), point(x0, y1, z0),
        point(x0, y0, z1), point(x1, y0, z1), point(x1, y1, z1), point(x0, y1, z1),
    ]
    return surface(verts, _BOX_FACES)


def tetrahedron_surface(size: float = 1.0) -> list:
    """Closed corner tetrahedron with legs of length ``size`` along the axes."""

    if size <= 0:
        raise ValueError('tetrahedron size must be positive')
    verts = [point(0, 0, 0), point(size, 0, 0), point(0, size, 0), point(0, 0, size)]
    faces = [[0, 2, 1], [0, 1, 3], [0, 3, 2], [1, 2, 3]]
    return surface(verts, faces)


__all__ = [
    'surface',
    'issurface',
    'surface_triangles',
    'surface_bbox',
    'surface_from_triangles',
    'reverse_surface',
    'merge_surfaces',
    'box_surface',
    'tetrahedron_surface',
]
