"""Registry facade over prometheus_client.

``InstrumentRegistry`` is the only place that talks to the metrics engine:
it constructs collectors, registers them into its ``CollectorRegistry``,
renders snapshots and pushes them to a Pushgateway.

Engine errors are not caught here. A duplicate metric name surfaces as the
``ValueError`` prometheus_client raises on registration; push transport
failures surface as whatever urllib raised. Registration of a single
collector is atomic on the engine side, so a failed construction leaves the
registry untouched.

Public helpers:
    get_registry()    -> process-default InstrumentRegistry (wraps prometheus_client.REGISTRY)
    set_registry(reg) -> install a different default, returns the previous one
    reset_registry()  -> unregister everything the default registry created
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    generate_latest,
    push_to_gateway,
    pushadd_to_gateway,
)
from prometheus_client.exposition import default_handler

from ..config.settings import get_settings
from . import _singleton as _anchor
from .instruments import Instrument, InstrumentKind, merge_label_names

logger = logging.getLogger(__name__)

__all__ = ["InstrumentRegistry", "get_registry", "set_registry", "reset_registry"]


class InstrumentRegistry:
    """Creates, registers and pushes instruments for one CollectorRegistry."""

    def __init__(self, collector_registry: CollectorRegistry | None = None):
        self._registry = collector_registry if collector_registry is not None else REGISTRY
        self._instruments: dict[str, Instrument] = {}
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        default = self._registry is REGISTRY
        return f"InstrumentRegistry(default={default}, instruments={len(self._instruments)})"

    @property
    def collector_registry(self) -> CollectorRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # construction
    # ------------------------------------------------------------------
    def _construct(self, kind: InstrumentKind, name: str, docs: str,
                   labels: Sequence[str] | None, preset_labels: Mapping[str, str] | None,
                   **options: Any) -> Instrument:
        preset_labels = dict(preset_labels or {})
        labelnames = merge_label_names(labels, list(preset_labels))
        # Registers as a side effect; duplicate names raise ValueError here.
        collector = kind.collector_class(name, docs, labelnames, registry=self._registry, **options)
        instrument = Instrument(kind, name, docs, collector, labelnames, preset_labels)
        with self._lock:
            self._instruments[name] = instrument
        logger.debug("metrics.register name=%s kind=%s labels=%s presets=%s",
                     name, kind.value, ",".join(labelnames), preset_labels)
        return instrument

    def new_counter(self, name: str, docs: str, labels: Sequence[str] | None = None,
                    preset_labels: Mapping[str, str] | None = None, **options: Any) -> Instrument:
        return self._construct(InstrumentKind.COUNTER, name, docs, labels, preset_labels, **options)

    def new_gauge(self, name: str, docs: str, labels: Sequence[str] | None = None,
                  preset_labels: Mapping[str, str] | None = None, **options: Any) -> Instrument:
        return self._construct(InstrumentKind.GAUGE, name, docs, labels, preset_labels, **options)

    def new_histogram(self, name: str, docs: str, labels: Sequence[str] | None = None,
                      preset_labels: Mapping[str, str] | None = None,
                      buckets: Sequence[float] | None = None, **options: Any) -> Instrument:
        if buckets is not None:
            options["buckets"] = list(buckets)
        return self._construct(InstrumentKind.HISTOGRAM, name, docs, labels, preset_labels, **options)

    def new_summary(self, name: str, docs: str, labels: Sequence[str] | None = None,
                    preset_labels: Mapping[str, str] | None = None, **options: Any) -> Instrument:
        return self._construct(InstrumentKind.SUMMARY, name, docs, labels, preset_labels, **options)

    def create(self, kind: InstrumentKind, name: str, docs: str, labels: Sequence[str] | None = None,
               preset_labels: Mapping[str, str] | None = None, **options: Any) -> Instrument:
        """Dispatch to the ``new_*`` constructor for ``kind``."""
        ctor = {
            InstrumentKind.COUNTER: self.new_counter,
            InstrumentKind.GAUGE: self.new_gauge,
            InstrumentKind.HISTOGRAM: self.new_histogram,
            InstrumentKind.SUMMARY: self.new_summary,
        }[InstrumentKind(kind)]
        return ctor(name, docs, labels, preset_labels, **options)

    # ------------------------------------------------------------------
    # bookkeeping
    # ------------------------------------------------------------------
    def instruments(self) -> dict[str, Instrument]:
        with self._lock:
            return dict(self._instruments)

    def unregister(self, instrument: Instrument) -> None:
        self._registry.unregister(instrument.collector)
        with self._lock:
            if self._instruments.get(instrument.name) is instrument:
                del self._instruments[instrument.name]

    def clear(self) -> int:
        """Unregister every instrument this facade created. Returns the count removed."""
        with self._lock:
            created = list(self._instruments.values())
            self._instruments.clear()
        for instrument in created:
            try:
                self._registry.unregister(instrument.collector)
            except KeyError:
                # already removed directly through the CollectorRegistry
                logger.debug("metrics.clear collector already gone name=%s", instrument.name)
        return len(created)

    # ------------------------------------------------------------------
    # exposition / push
    # ------------------------------------------------------------------
    def snapshot(self) -> bytes:
        """Text exposition of the whole registry."""
        return generate_latest(self._registry)

    def push(self, job: str, gateway: str | None = None, *,
             grouping_key: Mapping[str, str] | None = None,
             timeout: float | None = None,
             handler: Callable[..., Any] = default_handler,
             replace: bool = False) -> None:
        """Push the current registry state to a Pushgateway under ``job``.

        Uses add semantics (POST, only same-named metrics are replaced) unless
        ``replace`` is set, which PUTs and replaces every metric in the group.
        Gateway and timeout default to the configured settings.
        """
        settings = get_settings()
        gateway = gateway or settings.pushgateway
        timeout = settings.push_timeout if timeout is None else timeout
        fn = push_to_gateway if replace else pushadd_to_gateway
        logger.debug("metrics.push job=%s gateway=%s replace=%s", job, gateway, replace)
        fn(gateway, job=job, registry=self._registry,
           grouping_key=dict(grouping_key) if grouping_key else None,
           timeout=timeout, handler=handler)


def get_registry() -> InstrumentRegistry:
    """Return the process-default InstrumentRegistry, creating it on first use."""
    return _anchor.create_if_absent(InstrumentRegistry)


def set_registry(reg: InstrumentRegistry | None) -> InstrumentRegistry | None:
    """Install ``reg`` as process default; returns the previously installed one."""
    return _anchor.swap_singleton(reg)


def reset_registry() -> int:
    """Unregister every instrument created through the process-default registry.

    Intended for test teardown; production code should not need it.
    """
    existing = _anchor.get_singleton()
    if existing is None:
        return 0
    removed = existing.clear()
    logger.info("metrics.registry.reset removed=%d", removed)
    return removed
