"""Metrics settings hydrated from the environment.

Single-pass environment hydration object for the exposition server, the
push gateway defaults and the HTTP collector middleware. Pure data container;
the only side effect is an optional one-line summary log when
INSTRUMENTAL_SETTINGS_LOG=1.

Environment
-----------
INSTRUMENTAL_METRICS_HOST          bind address for start_exposing (0.0.0.0)
INSTRUMENTAL_METRICS_PORT          port for start_exposing (9108)
INSTRUMENTAL_PUSHGATEWAY           default push gateway address (localhost:9091)
INSTRUMENTAL_PUSH_INTERVAL         default push_periodically delay in seconds (10)
INSTRUMENTAL_PUSH_TIMEOUT          push timeout in seconds (30)
INSTRUMENTAL_HTTP_METRICS_PREFIX   request collector metric prefix (http_server)
"""
from __future__ import annotations

import logging
import os
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field

from ..utils.env_flags import is_truthy
from ..utils.exceptions import ConfigError

__all__ = ["MetricsSettings", "get_settings"]

ENV_PREFIX = "INSTRUMENTAL_"


@dataclass(slots=True)
class MetricsSettings:
    # Exposition listener
    host: str = "0.0.0.0"
    port: int = 9108

    # Push gateway
    pushgateway: str = "localhost:9091"
    push_interval: float = 10.0
    push_timeout: float = 30.0

    # Request collector middleware
    http_metrics_prefix: str = "http_server"

    _env_snapshot: dict[str, str] = field(default_factory=dict, repr=False)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> MetricsSettings:
        e = env if env is not None else os.environ

        def _int(name: str, default: int) -> int:
            raw = e.get(name)
            if raw is None or raw == "":
                return default
            try:
                return int(raw)
            except ValueError as exc:
                raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc

        def _float(name: str, default: float) -> float:
            raw = e.get(name)
            if raw is None or raw == "":
                return default
            try:
                val = float(raw)
            except ValueError as exc:
                raise ConfigError(f"{name} must be a number, got {raw!r}") from exc
            if val < 0:
                raise ConfigError(f"{name} must not be negative, got {raw!r}")
            return val

        settings = cls(
            host=e.get("INSTRUMENTAL_METRICS_HOST") or "0.0.0.0",
            port=_int("INSTRUMENTAL_METRICS_PORT", 9108),
            pushgateway=e.get("INSTRUMENTAL_PUSHGATEWAY") or "localhost:9091",
            push_interval=_float("INSTRUMENTAL_PUSH_INTERVAL", 10.0),
            push_timeout=_float("INSTRUMENTAL_PUSH_TIMEOUT", 30.0),
            http_metrics_prefix=e.get("INSTRUMENTAL_HTTP_METRICS_PREFIX") or "http_server",
            _env_snapshot={k: v for k, v in e.items() if k.startswith(ENV_PREFIX)},
        )
        if is_truthy(e.get("INSTRUMENTAL_SETTINGS_LOG")):
            logging.getLogger(__name__).info(
                "metrics.settings.init host=%s port=%s pushgateway=%s push_interval=%.1f push_timeout=%.1f",
                settings.host, settings.port, settings.pushgateway,
                settings.push_interval, settings.push_timeout,
            )
        return settings


# Lazy singleton (thread-safe) to avoid repeated parsing
_settings_lock = threading.Lock()
_settings_singleton: MetricsSettings | None = None


def get_settings(force_reload: bool = False) -> MetricsSettings:
    global _settings_singleton  # noqa: PLW0603
    if _settings_singleton is not None and not force_reload:
        return _settings_singleton
    with _settings_lock:
        if _settings_singleton is None or force_reload:
            _settings_singleton = MetricsSettings.from_env()
        return _settings_singleton
