"""Metrics package public interface.

Stable import surfaces:
    from instrumental.metrics import Namespace, InstrumentRegistry
    from instrumental.metrics import start_exposing, stop_exposing
    from instrumental.metrics.testing import isolated_registry

Layout:
    instruments  Instrument handle + InstrumentKind
    registry     InstrumentRegistry facade over prometheus_client, process default
    namespace    Namespace declaration scopes (subsystems, presets)
    push         one-shot delayed push thread
    server       self-hosted exposition listener
    asgi         exporter app and request collector middleware
"""
from __future__ import annotations

from .asgi import RequestCollectorMiddleware, exporter_app
from .instruments import Instrument, InstrumentKind
from .namespace import FORBIDDEN_IDENTIFIERS, Namespace
from .registry import InstrumentRegistry, get_registry, reset_registry, set_registry
from .server import is_exposing, start_exposing, stop_exposing
from .testing import isolated_registry

__all__ = [
    "Namespace",
    "FORBIDDEN_IDENTIFIERS",
    "Instrument",
    "InstrumentKind",
    "InstrumentRegistry",
    "get_registry",
    "set_registry",
    "reset_registry",
    "start_exposing",
    "stop_exposing",
    "is_exposing",
    "exporter_app",
    "RequestCollectorMiddleware",
    "isolated_registry",
]
