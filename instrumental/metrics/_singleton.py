"""Central registry singleton anchor.

Single source of truth for the process-default InstrumentRegistry so that
namespaces created from different import paths declare into the same
CollectorRegistry. Tests swap it via ``testing.isolated_registry``.
"""
from __future__ import annotations

import threading
from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .registry import InstrumentRegistry

REGISTRY_SINGLETON: InstrumentRegistry | None = None
_REGISTRY_LOCK = threading.Lock()


def get_singleton() -> InstrumentRegistry | None:  # pragma: no cover - trivial
    return REGISTRY_SINGLETON


def swap_singleton(reg: InstrumentRegistry | None) -> InstrumentRegistry | None:
    """Install ``reg`` (or clear with None) and return the previous value."""
    global REGISTRY_SINGLETON  # noqa: PLW0603
    with _REGISTRY_LOCK:
        previous = REGISTRY_SINGLETON
        REGISTRY_SINGLETON = reg
    return previous


def create_if_absent(factory: Callable[[], InstrumentRegistry]) -> InstrumentRegistry:
    """Atomically create and publish singleton using factory() if absent.

    The factory is only invoked inside the lock when the singleton is absent.
    """
    global REGISTRY_SINGLETON  # noqa: PLW0603
    if REGISTRY_SINGLETON is not None:
        return REGISTRY_SINGLETON
    with _REGISTRY_LOCK:
        if REGISTRY_SINGLETON is None:
            REGISTRY_SINGLETON = factory()
        return REGISTRY_SINGLETON

__all__ = ["get_singleton", "swap_singleton", "create_if_absent"]
