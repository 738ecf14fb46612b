"""Delayed Pushgateway delivery.

``push_later`` runs a push callable once on a daemon thread after a delay.
It is deliberately one-shot: batch jobs call it near the end of their work so
the final state reaches the gateway even if the main path forgets to push.
Services that need a recurring push should call it again from their own loop.

The thread is not cancellable and is not joined; a process that exits before
the delay elapses may never push. Failures are logged with traceback and
re-raised inside the thread (reaching ``threading.excepthook``).
"""
from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)

__all__ = ["push_later"]


def push_later(push: Callable[[], None], delay: float, *, name: str = "metrics-push") -> threading.Thread:
    if delay < 0:
        raise ValueError(f"delay must not be negative, got {delay!r}")

    def _run() -> None:
        time.sleep(delay)
        try:
            push()
        except Exception:
            logger.error("metrics.push.deferred failed thread=%s", name, exc_info=True)
            raise
        logger.debug("metrics.push.deferred done thread=%s delay=%.2f", name, delay)

    thread = threading.Thread(target=_run, name=name, daemon=True)
    thread.start()
    return thread
