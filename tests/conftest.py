import logging

import pytest


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """Keep POLYINSIDE_* variables and CLI logging setup out of other tests."""
    for name in ("POLYINSIDE_SEED", "POLYINSIDE_MAX_FALLBACK_PROBES", "POLYINSIDE_TOLERANCE"):
        monkeypatch.delenv(name, raising=False)
    logger = logging.getLogger("polyinside")
    handlers = list(logger.handlers)
    level = logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
