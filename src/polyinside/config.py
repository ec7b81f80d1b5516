"""Configuration for containment queries.

Settings are resolved from, in increasing priority:

1. built-in defaults
2. a YAML file passed to :func:`load_config`, either a flat mapping or
   one nested under a top-level ``containment:`` key
3. environment variables
4. keyword overrides passed to :func:`load_config`

Environment Variables:
    POLYINSIDE_SEED: integer seed for the fallback direction sampler
    POLYINSIDE_MAX_FALLBACK_PROBES: integer cap on fallback probes, or
        ``none`` for no cap
    POLYINSIDE_TOLERANCE: float degeneracy tolerance

Example::

    containment:
      seed: 1340818006
      max_fallback_probes: 1000
      tolerance: 1.0e-9
"""

from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_SEED",
    "POLYINSIDE_SEED",
    "POLYINSIDE_MAX_FALLBACK_PROBES",
    "POLYINSIDE_TOLERANCE",
    "ContainmentConfig",
    "load_config",
]

# fixed so fallback probe sequences replay identically between runs
DEFAULT_SEED = 1340818006

POLYINSIDE_SEED = "POLYINSIDE_SEED"
POLYINSIDE_MAX_FALLBACK_PROBES = "POLYINSIDE_MAX_FALLBACK_PROBES"
POLYINSIDE_TOLERANCE = "POLYINSIDE_TOLERANCE"


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class ContainmentConfig:
    """Tunable parameters of :func:`polyinside.containment.classify`."""

    seed: int = DEFAULT_SEED
    max_fallback_probes: Optional[int] = None
    tolerance: float = 1e-9
    octree_maxdepth: int = 7
    octree_leaf_size: int = 8

    def __post_init__(self) -> None:
        if not _is_int(self.seed) or self.seed < 0:
            raise ValueError(f"seed must be a non-negative integer, got {self.seed!r}")
        if self.max_fallback_probes is not None and (
            not _is_int(self.max_fallback_probes) or self.max_fallback_probes < 1
        ):
            raise ValueError(
                f"max_fallback_probes must be a positive integer or None, got {self.max_fallback_probes!r}"
            )
        if isinstance(self.tolerance, bool) or not isinstance(self.tolerance, (int, float)) or self.tolerance <= 0:
            raise ValueError(f"tolerance must be a positive number, got {self.tolerance!r}")
        if not _is_int(self.octree_maxdepth) or self.octree_maxdepth < 1:
            raise ValueError(f"octree_maxdepth must be a positive integer, got {self.octree_maxdepth!r}")
        if not _is_int(self.octree_leaf_size) or self.octree_leaf_size < 1:
            raise ValueError(f"octree_leaf_size must be a positive integer, got {self.octree_leaf_size!r}")

    def replace(self, **changes: Any) -> "ContainmentConfig":
        """Return a copy with ``changes`` applied (and validated)."""
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


_FIELDS = {f.name for f in dataclasses.fields(ContainmentConfig)}


def _read_yaml(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"config file {path} must contain a mapping")
    if "containment" in data:
        data = data["containment"]
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"'containment' section of {path} must be a mapping")
    return dict(data)


def _env_overrides() -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    raw = os.environ.get(POLYINSIDE_SEED)
    if raw:
        try:
            values["seed"] = int(raw)
        except ValueError:
            raise ValueError(f"{POLYINSIDE_SEED} must be an integer, got {raw!r}") from None
    raw = os.environ.get(POLYINSIDE_MAX_FALLBACK_PROBES)
    if raw:
        if raw.strip().lower() in ("none", "unlimited"):
            values["max_fallback_probes"] = None
        else:
            try:
                values["max_fallback_probes"] = int(raw)
            except ValueError:
                raise ValueError(
                    f"{POLYINSIDE_MAX_FALLBACK_PROBES} must be an integer or 'none', got {raw!r}"
                ) from None
    raw = os.environ.get(POLYINSIDE_TOLERANCE)
    if raw:
        try:
            values["tolerance"] = float(raw)
        except ValueError:
            raise ValueError(f"{POLYINSIDE_TOLERANCE} must be a number, got {raw!r}") from None
    return values


def load_config(path: Optional[Union[str, Path]] = None, **overrides: Any) -> ContainmentConfig:
    """Resolve a :class:`ContainmentConfig` from file, environment and overrides.

    Raises ``ValueError`` for unknown keys or invalid values.
    """

    values: Dict[str, Any] = {}
    if path is not None:
        path = Path(path)
        values.update(_read_yaml(path))
        logger.debug("loaded containment config from %s", path)
    values.update(_env_overrides())
    values.update(overrides)

    unknown = sorted(set(values) - _FIELDS)
    if unknown:
        raise ValueError(f"unknown containment config keys: {', '.join(unknown)}")
    return ContainmentConfig(**values)
