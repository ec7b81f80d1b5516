# -*- coding: utf-8 -*-
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("polyinside")
except PackageNotFoundError:  # pragma: no cover - handled when package not installed
    __version__ = "unknown"

from polyinside.config import ContainmentConfig, load_config
from polyinside.containment import (
    DirectionSampler,
    PointInsideTester,
    choose_primary_direction,
    classify,
)
from polyinside.octtree import TriangleOctree
from polyinside.types import Classification, OutcomeKind, TraversalOutcome

__all__ = [
    "Classification",
    "OutcomeKind",
    "TraversalOutcome",
    "ContainmentConfig",
    "load_config",
    "TriangleOctree",
    "DirectionSampler",
    "PointInsideTester",
    "choose_primary_direction",
    "classify",
]
