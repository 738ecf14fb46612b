"""Self-hosted metrics exposition server.

Courtesy listener for applications that do not run an HTTP server of their
own. Serves the registry snapshot on ``/metrics`` (any path, in fact) using
prometheus_client's threaded WSGI server; responses are gzip-compressed when
the scraper sends ``Accept-Encoding: gzip``.

Public API:
  start_exposing(port=None, address=None, registry=None) -> (host, port)
  stop_exposing()  -> blocks until the listener thread has exited
  is_exposing()    -> bool

Idempotent: a second start while running reuses the existing listener (a
warning is logged when the requested host/port differ). Stop is a no-op when
nothing is running.
"""
from __future__ import annotations

import logging
import threading

from prometheus_client import start_http_server

from ..config.settings import get_settings
from .registry import InstrumentRegistry, get_registry

logger = logging.getLogger(__name__)

__all__ = ["start_exposing", "stop_exposing", "is_exposing"]

_SERVER_LOCK = threading.Lock()
_SERVER = None          # WSGIServer returned by start_http_server
_SERVER_THREAD: threading.Thread | None = None
_SERVER_HOST: str | None = None
_SERVER_PORT: int | None = None


def start_exposing(port: int | None = None, address: str | None = None,
                   registry: InstrumentRegistry | None = None) -> tuple[str, int]:
    """Start the exposition listener and return the bound (host, port).

    ``port=0`` binds an ephemeral port; the returned tuple carries the real one.
    """
    global _SERVER, _SERVER_THREAD, _SERVER_HOST, _SERVER_PORT  # noqa: PLW0603
    settings = get_settings()
    port = settings.port if port is None else port
    address = address or settings.host
    with _SERVER_LOCK:
        if _SERVER is not None:
            if (port not in (0, _SERVER_PORT)) or (address != _SERVER_HOST):
                logger.warning(
                    "start_exposing called again with different host/port (%s:%s) != (%s:%s); reusing existing server",
                    address, port, _SERVER_HOST, _SERVER_PORT,
                )
            else:
                logger.debug("start_exposing called again; listener already running")
            return _SERVER_HOST, _SERVER_PORT  # type: ignore[return-value]

        reg = registry if registry is not None else get_registry()
        server, thread = start_http_server(port, addr=address, registry=reg.collector_registry)
        _SERVER = server
        _SERVER_THREAD = thread
        _SERVER_HOST = address
        _SERVER_PORT = server.server_port
        logger.info("Metrics server started on %s:%s", _SERVER_HOST, _SERVER_PORT)
        logger.info("Metrics available at http://%s:%s/metrics", _SERVER_HOST, _SERVER_PORT)
        return _SERVER_HOST, _SERVER_PORT


def stop_exposing() -> None:
    """Shut down the listener started by ``start_exposing`` and wait for it."""
    global _SERVER, _SERVER_THREAD, _SERVER_HOST, _SERVER_PORT  # noqa: PLW0603
    with _SERVER_LOCK:
        if _SERVER is None:
            return
        server, thread = _SERVER, _SERVER_THREAD
        host, port = _SERVER_HOST, _SERVER_PORT
        _SERVER = None
        _SERVER_THREAD = None
        _SERVER_HOST = None
        _SERVER_PORT = None
        server.shutdown()
        server.server_close()
        if thread is not None:
            thread.join()
    logger.info("Metrics server on %s:%s stopped", host, port)


def is_exposing() -> bool:
    with _SERVER_LOCK:
        return _SERVER is not None
