"""Pytest configuration for instrumental.

Responsibilities:
1. Ensure project root on sys.path.
2. Give every test its own CollectorRegistry (``registry`` / ``ns`` fixtures)
   so metric names can be reused across tests.
3. Make sure no exposition listener or cached settings leak between tests.
"""
from __future__ import annotations

import contextlib
import socket
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from instrumental.config.settings import get_settings  # noqa: E402
from instrumental.metrics import Namespace, stop_exposing  # noqa: E402
from instrumental.metrics.testing import isolated_registry  # noqa: E402


def find_free_port() -> int:
    with contextlib.closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


@pytest.fixture()
def registry():
    with isolated_registry() as reg:
        yield reg


@pytest.fixture()
def ns(registry):
    return Namespace(registry)


@pytest.fixture()
def settings_env(monkeypatch):
    """Set INSTRUMENTAL_* variables and reload the cached settings.

    Usage:
        def test_x(settings_env):
            settings = settings_env(INSTRUMENTAL_PUSH_INTERVAL='0')
    """
    def _apply(**env: str):
        for k, v in env.items():
            monkeypatch.setenv(k, v)
        return get_settings(force_reload=True)
    yield _apply
    monkeypatch.undo()
    get_settings(force_reload=True)


@pytest.fixture(autouse=True)
def _stop_listener():
    yield
    stop_exposing()


class PushRecorder:
    """prometheus_client push handler that records requests instead of sending them."""

    def __init__(self):
        self.calls: list[dict] = []

    def __call__(self, url, method, timeout, headers, data):
        def handle():
            self.calls.append({
                'url': url,
                'method': method,
                'timeout': timeout,
                'headers': headers,
                'data': data,
            })
        return handle


@pytest.fixture()
def push_recorder():
    return PushRecorder()
