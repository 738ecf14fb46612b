"""Instrument handles.

An ``Instrument`` wraps a single prometheus_client collector together with the
resolved metric name, label names and preset label values produced at
declaration time. Observations delegate straight to the collector after the
preset values are merged with any per-call labels (per-call values win).

prometheus_client collectors are thread-safe, so no locking happens here.
"""
from __future__ import annotations

import time
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from enum import Enum
from types import MappingProxyType
from typing import Any

from prometheus_client import Counter, Gauge, Histogram, Summary

from ..utils.exceptions import UnsupportedOperationError

__all__ = ["Instrument", "InstrumentKind", "merge_label_names"]


class InstrumentKind(str, Enum):
    COUNTER = "counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"
    SUMMARY = "summary"

    @property
    def collector_class(self) -> type:
        return _COLLECTOR_CLASSES[self]


_COLLECTOR_CLASSES: dict[InstrumentKind, type] = {
    InstrumentKind.COUNTER: Counter,
    InstrumentKind.GAUGE: Gauge,
    InstrumentKind.HISTOGRAM: Histogram,
    InstrumentKind.SUMMARY: Summary,
}

# Operations allowed per kind; everything else raises UnsupportedOperationError.
_ALLOWED_OPS: dict[InstrumentKind, frozenset[str]] = {
    InstrumentKind.COUNTER: frozenset({"inc"}),
    InstrumentKind.GAUGE: frozenset({"inc", "dec", "set"}),
    InstrumentKind.HISTOGRAM: frozenset({"observe"}),
    InstrumentKind.SUMMARY: frozenset({"observe"}),
}


def merge_label_names(labels: Sequence[str] | str | None, *extra: Sequence[str]) -> tuple[str, ...]:
    """Concatenate label name sequences, keeping first-seen order and dropping repeats.

    A bare string is one label name, not a sequence of one-letter names.
    """
    out: list[str] = []
    for group in (labels or (), *extra):
        if isinstance(group, str):
            group = (group,)
        for name in group:
            name = str(name)
            if name not in out:
                out.append(name)
    return tuple(out)


class Instrument:
    """Handle returned by every declaration.

    Attributes
    ----------
    name : final registered metric name (subsystem prefix applied)
    kind : InstrumentKind
    documentation : help text
    labels : tuple of label names the collector was created with
    preset_labels : read-only mapping of label name -> fixed value
    collector : underlying prometheus_client collector
    """

    __slots__ = ("name", "kind", "documentation", "labels", "preset_labels", "collector")

    def __init__(self, kind: InstrumentKind, name: str, documentation: str, collector: Any,
                 labels: Sequence[str] = (), preset_labels: Mapping[str, str] | None = None):
        self.kind = kind
        self.name = name
        self.documentation = documentation
        self.collector = collector
        self.labels = tuple(labels)
        self.preset_labels = MappingProxyType({str(k): str(v) for k, v in (preset_labels or {}).items()})

    def __repr__(self) -> str:
        return (f"Instrument(kind={self.kind.value!r}, name={self.name!r}, "
                f"labels={list(self.labels)!r}, preset_labels={dict(self.preset_labels)!r})")

    # ------------------------------------------------------------------
    # label resolution
    # ------------------------------------------------------------------
    def resolve_labels(self, labels: Mapping[str, Any] | None = None) -> dict[str, str]:
        merged = dict(self.preset_labels)
        if labels:
            merged.update({str(k): str(v) for k, v in labels.items()})
        return merged

    def _target(self, op: str, labels: Mapping[str, Any] | None):
        if op not in _ALLOWED_OPS[self.kind]:
            raise UnsupportedOperationError(f"{self.kind.value} {self.name!r} does not support {op}()")
        if not self.labels:
            return self.collector
        # prometheus_client raises ValueError for missing / unknown label names
        return self.collector.labels(**self.resolve_labels(labels))

    # ------------------------------------------------------------------
    # observations
    # ------------------------------------------------------------------
    def inc(self, amount: float = 1, labels: Mapping[str, Any] | None = None) -> None:
        self._target("inc", labels).inc(amount)

    increment = inc

    def dec(self, amount: float = 1, labels: Mapping[str, Any] | None = None) -> None:
        self._target("dec", labels).dec(amount)

    decrement = dec

    def set(self, value: float, labels: Mapping[str, Any] | None = None) -> None:
        self._target("set", labels).set(value)

    def observe(self, value: float, labels: Mapping[str, Any] | None = None) -> None:
        self._target("observe", labels).observe(value)

    obs = observe

    @contextmanager
    def measure(self, labels: Mapping[str, Any] | None = None) -> Iterator[None]:
        """Observe the wall time spent inside the block, even when it raises."""
        target = self._target("observe", labels)
        start = time.perf_counter()
        try:
            yield
        finally:
            target.observe(time.perf_counter() - start)

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------
    def get(self, labels: Mapping[str, Any] | None = None) -> float | dict[str, float] | None:
        """Current value for the resolved label set.

        Counters and gauges return a float; histograms and summaries return a
        dict with ``sum`` and ``count`` (histograms add one entry per bucket
        upper bound, keyed by the ``le`` label). Returns None when no child
        exists yet for the label set.
        """
        wanted = self.resolve_labels(labels) if self.labels else {}
        scalar: float | None = None
        parts: dict[str, float] = {}
        for family in self.collector.collect():
            for sample in family.samples:
                sample_labels = dict(sample.labels)
                le = sample_labels.pop("le", None)
                if sample_labels != wanted:
                    continue
                suffix = sample.name[len(family.name):]
                if self.kind is InstrumentKind.COUNTER and suffix == "_total":
                    scalar = sample.value
                elif self.kind is InstrumentKind.GAUGE and suffix == "":
                    scalar = sample.value
                elif suffix == "_sum":
                    parts["sum"] = sample.value
                elif suffix == "_count":
                    parts["count"] = sample.value
                elif suffix == "_bucket" and le is not None:
                    parts[le] = sample.value
        if self.kind in (InstrumentKind.COUNTER, InstrumentKind.GAUGE):
            return scalar
        return parts or None

    def describe(self) -> dict[str, object]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "documentation": self.documentation,
            "labels": list(self.labels),
            "preset_labels": dict(self.preset_labels),
        }
