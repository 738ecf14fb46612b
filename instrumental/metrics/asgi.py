"""ASGI exposition and request collection.

``exporter_app``             ASGI app rendering a registry snapshot, mount it at /metrics.
``RequestCollectorMiddleware`` records request count and duration per request.

Usage with FastAPI / Starlette::

    app = FastAPI()
    app.add_middleware(RequestCollectorMiddleware)
    app.mount("/metrics", exporter_app())

The collector declares its two instruments through a ``Namespace``
subsystem named after ``metrics_prefix`` (default ``http_server``):

    <prefix>_requests_total{code,method,path}
    <prefix>_request_duration_seconds{method,path}

so the usual duplicate-name rules apply: two collectors with the same
prefix on the same registry fail at construction time. Numeric and UUID
path segments are collapsed to ``:id`` and ``:uuid``.
"""
from __future__ import annotations

import logging
import re
import time
from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any

from prometheus_client import make_asgi_app

from ..config.settings import get_settings
from .namespace import Namespace
from .registry import InstrumentRegistry, get_registry

logger = logging.getLogger(__name__)

__all__ = ["exporter_app", "RequestCollectorMiddleware", "strip_ids_from_path"]

Scope = MutableMapping[str, Any]
Message = MutableMapping[str, Any]
Receive = Callable[[], Awaitable[Message]]
Send = Callable[[Message], Awaitable[None]]
ASGIApp = Callable[[Scope, Receive, Send], Awaitable[None]]

DURATION_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)

_UUID_SEGMENT = re.compile(r"/[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}(?=/|$)", re.IGNORECASE)
_NUMERIC_SEGMENT = re.compile(r"/\d+(?=/|$)")


def strip_ids_from_path(path: str) -> str:
    """Replace UUID and numeric path segments with ``:uuid`` and ``:id`` to keep the path label bounded."""
    return _NUMERIC_SEGMENT.sub("/:id", _UUID_SEGMENT.sub("/:uuid", path))


def exporter_app(registry: InstrumentRegistry | None = None, *, disable_compression: bool = False) -> ASGIApp:
    reg = registry if registry is not None else get_registry()
    return make_asgi_app(registry=reg.collector_registry, disable_compression=disable_compression)


class RequestCollectorMiddleware:
    """Count and time HTTP requests.

    Requests that raise are recorded with code 500 and the exception is
    re-raised. Non-HTTP scopes (lifespan, websocket) pass straight through.
    """

    def __init__(self, app: ASGIApp, registry: InstrumentRegistry | None = None,
                 metrics_prefix: str | None = None):
        self.app = app
        prefix = metrics_prefix or get_settings().http_metrics_prefix
        self.namespace = Namespace(registry)

        def _declare(ns: Namespace) -> None:
            ns.counter("requests_total", "The total number of HTTP requests handled by the application.",
                       labels=["code", "method", "path"])
            ns.histogram("request_duration_seconds", "The HTTP response duration of the application.",
                         labels=["method", "path"], buckets=DURATION_BUCKETS)

        self.metrics = self.namespace.subsystem(prefix, _declare)
        logger.debug("metrics.http_collector.init prefix=%s", prefix)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        status = {"code": 500}

        async def _send(message: Message) -> None:
            if message["type"] == "http.response.start":
                status["code"] = message["status"]
            await send(message)

        start = time.perf_counter()
        try:
            await self.app(scope, receive, _send)
        finally:
            self._record(scope, status["code"], time.perf_counter() - start)

    def _record(self, scope: Scope, code: int, duration: float) -> None:
        method = scope.get("method", "").lower()
        path = strip_ids_from_path(scope.get("path", ""))
        self.metrics.requests_total.inc(labels={"code": str(code), "method": method, "path": path})
        self.metrics.request_duration_seconds.observe(duration, labels={"method": method, "path": path})
