"""Validation helpers for closed triangle surfaces.

Containment by ray parity assumes every edge is shared by exactly two
faces that traverse it in opposite directions.  These checks are a
debug aid; :func:`polyinside.containment.classify` never runs them.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import List, Sequence

from polyinside.mesh import issurface

logger = logging.getLogger(__name__)


@dataclass
class CheckResult:
    ok: bool
    warnings: List[str]

    def __bool__(self) -> bool:
        return self.ok


def _edge_key(a: int, b: int) -> tuple[int, int]:
    return (a, b) if a < b else (b, a)


def surface_watertight(surface: Sequence) -> CheckResult:
    """Every undirected edge must be used by exactly two faces."""

    if not issurface(surface):
        raise ValueError('surface_watertight expects a surface')

    edges = Counter()
    for face in surface[3]:
        if len(face) != 3:
            continue
        a, b, c = face
        edges[_edge_key(a, b)] += 1
        edges[_edge_key(b, c)] += 1
        edges[_edge_key(c, a)] += 1

    boundary = [edge for edge, count in edges.items() if count == 1]
    invalid = [edge for edge, count in edges.items() if count > 2]

    warnings: List[str] = []
    ok = True
    if boundary:
        ok = False
        warnings.append(f'{len(boundary)} boundary edges detected')
    if invalid:
        ok = False
        warnings.append(f'edges with multiplicity >2: {sorted(invalid)}')
    return CheckResult(ok, warnings)


def faces_oriented(surface: Sequence) -> CheckResult:
    """Every directed edge must appear once, paired with its reverse."""

    if not issurface(surface):
        raise ValueError('faces_oriented expects a surface')

    directed = Counter()
    for face in surface[3]:
        if len(face) != 3:
            continue
        a, b, c = face
        directed[(a, b)] += 1
        directed[(b, c)] += 1
        directed[(c, a)] += 1

    warnings: List[str] = []
    repeated = sorted(edge for edge, count in directed.items() if count > 1)
    if repeated:
        warnings.append(f'inconsistently wound edges: {repeated}')
    unpaired = sorted(edge for edge in directed if (edge[1], edge[0]) not in directed)
    if unpaired:
        warnings.append(f'{len(unpaired)} directed edges without a reverse')
    return CheckResult(not warnings, warnings)


def validate_closed_surface(surface: Sequence) -> CheckResult:
    """Run both checks, logging any problems at WARNING level."""

    warnings: List[str] = []
    ok = True
    for check in (surface_watertight, faces_oriented):
        result = check(surface)
        ok = ok and result.ok
        warnings.extend(result.warnings)
    for message in warnings:
        logger.warning('surface validation: %s', message)
    return CheckResult(ok, warnings)


__all__ = [
    'CheckResult',
    'surface_watertight',
    'faces_oriented',
    'validate_closed_surface',
]
