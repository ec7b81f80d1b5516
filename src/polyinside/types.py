"""Result types for containment queries."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Classification(Enum):
    """Where a query point lies relative to a closed surface."""

    INSIDE = "inside"
    OUTSIDE = "outside"
    ON_BOUNDARY = "on_boundary"
    # only produced when a fallback probe cap is configured and exhausted
    INCONCLUSIVE = "inconclusive"

    def __str__(self) -> str:
        return self.value


class OutcomeKind(Enum):
    """Tag of a :class:`TraversalOutcome`."""

    DEFINITE = "definite"
    BOUNDARY = "boundary"
    INDETERMINATE = "indeterminate"


@dataclass(frozen=True)
class TraversalOutcome:
    """Result of pushing one probe ray through a spatial index.

    ``side`` is set only for ``DEFINITE`` outcomes and is either
    ``Classification.INSIDE`` (odd crossing count) or
    ``Classification.OUTSIDE`` (even crossing count).
    """

    kind: OutcomeKind
    side: Optional[Classification] = None
    crossings: int = 0

    def __post_init__(self) -> None:
        if self.kind is OutcomeKind.DEFINITE:
            if self.side not in (Classification.INSIDE, Classification.OUTSIDE):
                raise ValueError('definite outcome needs an INSIDE or OUTSIDE side')
        elif self.side is not None:
            raise ValueError(f'{self.kind.value} outcome cannot carry a side')

    @classmethod
    def definite(cls, crossings: int) -> "TraversalOutcome":
        side = Classification.INSIDE if crossings % 2 == 1 else Classification.OUTSIDE
        return cls(OutcomeKind.DEFINITE, side, crossings)

    @classmethod
    def boundary(cls) -> "TraversalOutcome":
        return cls(OutcomeKind.BOUNDARY)

    @classmethod
    def indeterminate(cls) -> "TraversalOutcome":
        return cls(OutcomeKind.INDETERMINATE)

    @property
    def is_indeterminate(self) -> bool:
        return self.kind is OutcomeKind.INDETERMINATE

    def classification(self) -> Classification:
        """Resolve a determinate outcome to the caller-facing value."""

        if self.kind is OutcomeKind.DEFINITE:
            return self.side
        if self.kind is OutcomeKind.BOUNDARY:
            return Classification.ON_BOUNDARY
        raise ValueError('an indeterminate outcome has no classification')


__all__ = ['Classification', 'OutcomeKind', 'TraversalOutcome']
