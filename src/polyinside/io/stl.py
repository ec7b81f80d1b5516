"""STL import and export for polyinside surfaces."""

from __future__ import annotations

import logging
import math
import re
import struct
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from polyinside.geom import point
from polyinside.geometry_utils import Triangle
from polyinside.mesh import issurface, surface, surface_triangles

logger = logging.getLogger(__name__)

_HEADER_SIZE = 80
_STRUCT_TRIANGLE = struct.Struct('<12fH')
_VERTEX_TOL = 1e-9  # Tolerance for vertex deduplication


def write_stl(obj, path_or_file, *, binary: bool = True, name: str = 'polyinside') -> None:
    """Write ``obj`` (a surface or an iterable of triangles) to STL.

    ``path_or_file`` can be a filesystem path or an open binary/text stream.
    """

    if issurface(obj):
        triangles = list(surface_triangles(obj))
    else:
        triangles = list(obj)

    if binary:
        _write_binary(triangles, path_or_file, name)
    else:
        _write_ascii(triangles, path_or_file, name)


def _write_binary(triangles: List[Triangle], path_or_file, name: str) -> None:
    close_when_done = False
    if hasattr(path_or_file, 'write'):
        stream = path_or_file
    else:
        stream = open(path_or_file, 'wb')
        close_when_done = True

    try:
        header = (name[:_HEADER_SIZE]).encode('ascii', errors='replace')
        header = header.ljust(_HEADER_SIZE, b' ')
        stream.write(header)
        stream.write(struct.pack('<I', len(triangles)))
        for tri in triangles:
            stream.write(_STRUCT_TRIANGLE.pack(*tri.normal, *tri.v0, *tri.v1, *tri.v2, 0))
    finally:
        if close_when_done:
            stream.close()


def _write_ascii(triangles: Iterable[Triangle], path_or_file, name: str) -> None:
    close_when_done = False
    if hasattr(path_or_file, 'write'):
        stream = path_or_file
    else:
        stream = open(path_or_file, 'w', encoding='ascii')
        close_when_done = True

    try:
        print(f"solid {name}", file=stream)
        for tri in triangles:
            print(f"  facet normal {tri.normal[0]:.6e} {tri.normal[1]:.6e} {tri.normal[2]:.6e}", file=stream)
            print("    outer loop", file=stream)
            for v in tri.vertices:
                print(f"      vertex {v[0]:.9e} {v[1]:.9e} {v[2]:.9e}", file=stream)
            print("    endloop", file=stream)
            print("  endfacet", file=stream)
        print(f"endsolid {name}", file=stream)
    finally:
        if close_when_done:
            stream.close()


# ---------------------------------------------------------------------------
# STL Import
# ---------------------------------------------------------------------------


def _is_binary_stl(data: bytes) -> bool:
    """Determine if STL data is binary format.

    Binary STL has 80-byte header + 4-byte count, then 50 bytes per triangle.
    ASCII STL starts with 'solid' keyword, but so do some binary headers.
    """
    if len(data) < 84:
        return False

    header = data[:80].decode('ascii', errors='ignore').strip().lower()
    tri_count = struct.unpack('<I', data[80:84])[0]
    if not header.startswith('solid'):
        return True
    if len(data) == 84 + tri_count * 50:
        rest = data[84:min(200, len(data))]
        return not (b'facet' in rest or b'vertex' in rest)
    return False


def _parse_binary_stl(data: bytes) -> List[Triangle]:
    """Parse binary STL data into triangles."""

    tri_count = struct.unpack('<I', data[80:84])[0]
    expected = 84 + tri_count * 50
    if len(data) < expected:
        raise ValueError(
            f'Invalid binary STL: header declares {tri_count} triangles, '
            f'data holds {(len(data) - 84) // 50}'
        )

    triangles = []
    for offset in range(84, expected, 50):
        values = _STRUCT_TRIANGLE.unpack(data[offset:offset + 50])
        triangles.append(Triangle(normal=tuple(values[0:3]),
                                  v0=tuple(values[3:6]),
                                  v1=tuple(values[6:9]),
                                  v2=tuple(values[9:12])))
    return triangles


_NUM = r'([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)'
_FACET_PATTERN = re.compile(
    r'facet\s+normal\s+' + r'\s+'.join([_NUM] * 3) + r'\s+'
    r'outer\s+loop\s+'
    r'vertex\s+' + r'\s+'.join([_NUM] * 3) + r'\s+'
    r'vertex\s+' + r'\s+'.join([_NUM] * 3) + r'\s+'
    r'vertex\s+' + r'\s+'.join([_NUM] * 3) + r'\s+'
    r'endloop\s+endfacet',
    re.IGNORECASE
)


def _parse_ascii_stl(text: str) -> List[Triangle]:
    """Parse ASCII STL text into triangles."""
    triangles = []
    for match in _FACET_PATTERN.finditer(text):
        g = [float(x) for x in match.groups()]
        triangles.append(Triangle(normal=(g[0], g[1], g[2]),
                                  v0=(g[3], g[4], g[5]),
                                  v1=(g[6], g[7], g[8]),
                                  v2=(g[9], g[10], g[11])))
    if not triangles and 'facet' in text.lower():
        raise ValueError('Invalid ASCII STL: no well-formed facets found')
    return triangles


def _vertex_key(v: Sequence[float], tol: float = _VERTEX_TOL) -> Tuple[int, int, int]:
    """Grid cell of ``v`` on a ``tol`` spaced grid."""
    scale = 1.0 / tol
    return (math.floor(v[0] * scale), math.floor(v[1] * scale), math.floor(v[2] * scale))


def _find_vertex(cells: Dict[Tuple[int, int, int], list], v: Sequence[float],
                 tol: float = _VERTEX_TOL) -> Optional[int]:
    """Index of an already seen vertex within ``tol`` of ``v`` (per axis).

    Neighbouring cells are searched too, so vertices that straddle a
    grid line still merge.
    """
    kx, ky, kz = _vertex_key(v, tol)
    for dx in (-1, 0, 1):
        for dy in (-1, 0, 1):
            for dz in (-1, 0, 1):
                for index, w in cells.get((kx + dx, ky + dy, kz + dz), ()):
                    if (abs(w[0] - v[0]) <= tol and abs(w[1] - v[1]) <= tol
                            and abs(w[2] - v[2]) <= tol):
                        return index
    return None


def _triangles_to_surface(triangles: List[Triangle], deduplicate: bool = True) -> list:
    """Convert triangles to a surface, merging coincident vertices if asked.

    Deduplication gives the shared-vertex connectivity that the
    watertightness checks in :mod:`polyinside.geometry_checks` rely on.
    """
    vertices = []
    faces = []

    if deduplicate:
        cells = {}
        for tri in triangles:
            face = []
            for v in tri.vertices:
                index = _find_vertex(cells, v)
                if index is None:
                    index = len(vertices)
                    cells.setdefault(_vertex_key(v), []).append((index, v))
                    vertices.append(point(v))
                face.append(index)
            if len(set(face)) < 3:
                logger.debug('dropping triangle collapsed by vertex merge: %s', tri)
                continue
            faces.append(face)
    else:
        for tri in triangles:
            base = len(vertices)
            vertices.extend(point(v) for v in tri.vertices)
            faces.append([base, base + 1, base + 2])

    return surface(vertices, faces)


def read_stl(path_or_file, *, deduplicate: bool = True) -> list:
    """Read an STL file (binary or ASCII) and return a surface.

    Parameters
    ----------
    path_or_file : str or path-like or file-like
        Path to STL file, or an open binary file object.
    deduplicate : bool, optional
        If True (default), merge vertices within 1e-9 of each other on
        every axis to create a proper indexed mesh. If False, each
        triangle gets its own vertices.

    Returns
    -------
    surface
        ``['surface', vertices, normals, faces, [], []]``; empty lists
        for an STL without facets.
    """
    if hasattr(path_or_file, 'read'):
        data = path_or_file.read()
        if isinstance(data, str):
            data = data.encode('utf-8')
    else:
        with open(path_or_file, 'rb') as f:
            data = f.read()

    if _is_binary_stl(data):
        triangles = _parse_binary_stl(data)
    else:
        triangles = _parse_ascii_stl(data.decode('utf-8', errors='replace'))

    logger.debug('read %d STL facets', len(triangles))
    return _triangles_to_surface(triangles, deduplicate=deduplicate)


__all__ = ['write_stl', 'read_stl']
