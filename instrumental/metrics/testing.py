"""Testing helpers for metrics isolation.

``isolated_registry()`` installs a brand new InstrumentRegistry (backed by
its own CollectorRegistry) as the process default for the duration of the
block, then restores whatever was installed before. Namespaces created
inside the block without an explicit registry declare into the isolated
one, so tests can reuse metric names freely.

Use in pytest fixtures::

    @pytest.fixture()
    def registry():
        with isolated_registry() as reg:
            yield reg
"""
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from prometheus_client import CollectorRegistry

from .registry import InstrumentRegistry, set_registry

logger = logging.getLogger(__name__)

__all__ = ["isolated_registry", "new_registry"]


def new_registry() -> InstrumentRegistry:
    """InstrumentRegistry over a fresh CollectorRegistry (not installed as default)."""
    return InstrumentRegistry(CollectorRegistry(auto_describe=True))


@contextmanager
def isolated_registry() -> Iterator[InstrumentRegistry]:
    reg = new_registry()
    previous = set_registry(reg)
    logger.debug("metrics.testing.isolated_registry installed previous=%r", previous)
    try:
        yield reg
    finally:
        set_registry(previous)
