"""Confusion-matrix evaluation of point classifications.

An :class:`Evaluation` compares a ground truth labelling of a point set
with a computed one.  Labels are given by index into the label list;
items whose ground truth or result index is ``-1`` carry no information
and are skipped.

Usage::

    ev = Evaluation(['outside', 'inside'], ground_truth, result)
    print(ev.precision('inside'), ev.mean_intersection_over_union())
    print(ev)
"""

from __future__ import annotations

import html
import math
from typing import Iterable, List, Sequence, Union

import numpy as np

from polyinside.types import Classification

Label = Union[int, str]

#: label order used by :func:`evaluate_classifications` and the CLI
CONTAINMENT_LABELS = [
    Classification.OUTSIDE.value,
    Classification.INSIDE.value,
    Classification.ON_BOUNDARY.value,
]


class Evaluation:
    """Precision, recall, F1 and IoU per label, plus global accuracy.

    The confusion matrix is indexed ``[result, ground_truth]``.
    """

    def __init__(self, labels: Sequence[str], ground_truth: Iterable[int] = (),
                 result: Iterable[int] = ()):
        self._labels = list(labels)
        if not self._labels:
            raise ValueError('Evaluation needs at least one label')
        if len(set(self._labels)) != len(self._labels):
            raise ValueError('Evaluation labels must be unique')
        n = len(self._labels)
        self._confusion = np.zeros((n, n), dtype=np.int64)
        self.append(ground_truth, result)

    @property
    def labels(self) -> List[str]:
        return list(self._labels)

    @property
    def confusion_matrix(self) -> np.ndarray:
        return self._confusion.copy()

    def append(self, ground_truth: Iterable[int], result: Iterable[int]) -> None:
        """Accumulate more (ground truth, result) pairs."""

        gt = np.asarray(list(ground_truth), dtype=np.int64)
        res = np.asarray(list(result), dtype=np.int64)
        if gt.shape != res.shape:
            raise ValueError('ground truth and result must have the same length')
        n = len(self._labels)
        keep = (gt != -1) & (res != -1)
        gt = gt[keep]
        res = res[keep]
        if gt.size and (gt.min() < 0 or gt.max() >= n or res.min() < 0 or res.max() >= n):
            raise ValueError('label index out of range')
        np.add.at(self._confusion, (res, gt), 1)

    def _index(self, label: Label) -> int:
        if isinstance(label, str):
            try:
                return self._labels.index(label)
            except ValueError:
                raise ValueError(f'unknown label {label!r}') from None
        if not 0 <= label < len(self._labels):
            raise ValueError(f'label index {label} out of range')
        return int(label)

    def label_has_ground_truth(self, label: Label) -> bool:
        return bool(self._confusion[:, self._index(label)].sum() != 0)

    def precision(self, label: Label) -> float:
        """True positives over everything predicted as ``label``.

        NaN when the label has no ground truth, 0 when it was never
        predicted.
        """
        idx = self._index(label)
        if not self.label_has_ground_truth(idx):
            return math.nan
        total = int(self._confusion[idx, :].sum())
        if total == 0:
            return 0.0
        return float(self._confusion[idx, idx]) / total

    def recall(self, label: Label) -> float:
        """True positives over everything whose ground truth is ``label``."""
        idx = self._index(label)
        if not self.label_has_ground_truth(idx):
            return math.nan
        return float(self._confusion[idx, idx]) / int(self._confusion[:, idx].sum())

    def f1_score(self, label: Label) -> float:
        p = self.precision(label)
        r = self.recall(label)
        if p == 0.0 and r == 0.0:
            return 0.0
        return 2.0 * p * r / (p + r)

    def intersection_over_union(self, label: Label) -> float:
        """True positives over true plus false positives and negatives."""
        idx = self._index(label)
        total = int(self._confusion[:, idx].sum() + self._confusion[idx, :].sum()
                    - self._confusion[idx, idx])
        if total == 0:
            return math.nan
        return float(self._confusion[idx, idx]) / total

    def number_of_items(self) -> int:
        return int(self._confusion.sum())

    def number_of_misclassified_items(self) -> int:
        return self.number_of_items() - int(np.trace(self._confusion))

    def accuracy(self) -> float:
        total = self.number_of_items()
        if total == 0:
            return math.nan
        return float(np.trace(self._confusion)) / total

    def mean_f1_score(self) -> float:
        scores = [self.f1_score(i) for i in range(len(self._labels))
                  if self.label_has_ground_truth(i)]
        if not scores:
            return math.nan
        return sum(scores) / len(scores)

    def mean_intersection_over_union(self) -> float:
        scores = [self.intersection_over_union(i) for i in range(len(self._labels))]
        scores = [s for s in scores if not math.isnan(s)]
        if not scores:
            return math.nan
        return sum(scores) / len(scores)

    def __str__(self) -> str:
        lines = [
            'Evaluation of classification:',
            ' * Global results:',
            f'   - {self.number_of_misclassified_items()} misclassified item(s) out of {self.number_of_items()}',
            f'   - Accuracy = {self.accuracy():.6g}',
            f'   - Mean F1 score = {self.mean_f1_score():.6g}',
            f'   - Mean IoU = {self.mean_intersection_over_union():.6g}',
            ' * Detailed results:',
        ]
        for i, name in enumerate(self._labels):
            if self.label_has_ground_truth(i):
                lines.append(
                    f'   - "{name}": Precision = {self.precision(i):.6g} ; '
                    f'Recall = {self.recall(i):.6g} ; '
                    f'F1 score = {self.f1_score(i):.6g} ; '
                    f'IoU = {self.intersection_over_union(i):.6g}'
                )
            else:
                lines.append(f'   - "{name}": (no ground truth)')
        return '\n'.join(lines)

    def to_html(self) -> str:
        """Standalone HTML page with the global and per-label results."""

        out = [
            '<!DOCTYPE html>',
            '<html>',
            '<head>',
            '<style type="text/css">',
            '  body{margin:40px auto; max-width:900px; line-height:1.5; color:#333}',
            '  table,th,td{border: 1px solid black; border-collapse: collapse; }',
            '  th,td{padding: 5px;}',
            '</style>',
            '<title>Evaluation of classification results</title>',
            '</head>',
            '<body>',
            '<h1>Evaluation of classification results</h1>',
            '<h2>Global Results</h2>',
            '<ul>',
            f'  <li>{self.number_of_misclassified_items()} misclassified item(s) out of {self.number_of_items()}</li>',
            f'  <li>Accuracy = {self.accuracy():.6g}</li>',
            f'  <li>Mean F1 score = {self.mean_f1_score():.6g}</li>',
            f'  <li>Mean IoU = {self.mean_intersection_over_union():.6g}</li>',
            '</ul>',
            '<h2>Detailed Results</h2>',
            '<table>',
            '  <tr><th>Label</th><th>Precision</th><th>Recall</th><th>F1 score</th><th>IoU</th></tr>',
        ]
        for i, name in enumerate(self._labels):
            label = html.escape(name)
            if self.label_has_ground_truth(i):
                out.append(
                    f'  <tr><td>{label}</td><td>{self.precision(i):.6g}</td>'
                    f'<td>{self.recall(i):.6g}</td><td>{self.f1_score(i):.6g}</td>'
                    f'<td>{self.intersection_over_union(i):.6g}</td></tr>'
                )
            else:
                out.append(f'  <tr><td>{label}</td><td colspan="4"><em>(no ground truth)</em></td></tr>')
        out += ['</table>', '</body>', '</html>']
        return '\n'.join(out) + '\n'


def classification_index(value: Classification) -> int:
    """Index of ``value`` in :data:`CONTAINMENT_LABELS`, or -1."""

    if value is Classification.INCONCLUSIVE:
        return -1
    return CONTAINMENT_LABELS.index(value.value)


def evaluate_classifications(ground_truth: Iterable[Classification],
                             result: Iterable[Classification]) -> Evaluation:
    """Evaluate containment results against known classifications.

    INCONCLUSIVE entries on either side are ignored.
    """

    return Evaluation(CONTAINMENT_LABELS,
                      [classification_index(c) for c in ground_truth],
                      [classification_index(c) for c in result])


__all__ = [
    'CONTAINMENT_LABELS',
    'Evaluation',
    'classification_index',
    'evaluate_classifications',
]
