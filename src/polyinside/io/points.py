"""Plain-text point set reader.

Each non-comment line holds ``x y z`` or ``x y z label``, separated by
whitespace or commas.  ``#`` starts a comment.  Missing labels are
reported as ``-1``, the "no information" label of
:class:`polyinside.evaluation.Evaluation`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Tuple, Union

import numpy as np

logger = logging.getLogger(__name__)


def _sniff_delimiter(path: Path):
    with open(path, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.split('#', 1)[0].strip()
            if line:
                return ',' if ',' in line else None
    return None


def read_point_set(path: Union[str, Path]) -> Tuple[np.ndarray, np.ndarray]:
    """Return ``(points, labels)``: an ``(n, 3)`` float array and an
    ``(n,)`` int array.

    Raises ``ValueError`` for rows that are not 3 or 4 columns wide or
    labels that are not integers.
    """
    path = Path(path)
    delimiter = _sniff_delimiter(path)
    data = np.loadtxt(path, comments='#', delimiter=delimiter, ndmin=2, dtype=float)

    if data.size == 0:
        return np.zeros((0, 3)), np.zeros((0,), dtype=np.int64)
    if data.shape[1] not in (3, 4):
        raise ValueError(f'{path}: expected 3 or 4 columns, found {data.shape[1]}')

    points = np.ascontiguousarray(data[:, :3])
    if data.shape[1] == 4:
        raw = data[:, 3]
        if not np.all(np.equal(np.mod(raw, 1), 0)):
            raise ValueError(f'{path}: labels must be integers')
        labels = raw.astype(np.int64)
    else:
        labels = np.full(len(points), -1, dtype=np.int64)

    logger.debug('read %d points from %s', len(points), path)
    return points, labels


__all__ = ['read_point_set']
