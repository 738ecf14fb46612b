"""Declarative instrument namespaces.

A ``Namespace`` is the scope application code declares instruments on::

    metrics = Namespace()
    metrics.counter("visits", "Number of visits the app has received")

    def _http(ns):
        ns.histogram("request_duration", "Duration of requests",
                     labels=["method", "path"], buckets=[0.1, 0.2])
    metrics.subsystem("http", _http)

    def _postgres(ns):
        ns.subsystem("primary", lambda s: s.counter("op_count"), presets={"op": "write"})
        ns.subsystem("replica", lambda s: s.counter("op_count"), presets={"op": "read"})
    metrics.subsystem("postgres", _postgres)

    metrics.visits.inc()
    metrics.http.request_duration.observe(0.12, labels={"method": "get", "path": "/"})
    metrics.postgres.replica.op_count.inc()      # registered as postgres_replica_op_count

Names
-----
Instruments declared inside a subsystem are registered as
``<prefix>_<identifier>``; nested subsystems concatenate outer to inner.

Presets
-------
Preset labels are label dimensions pinned to a constant value for every
instrument declared in a scope. ``with_presets`` opens a scope on top of the
current presets; ``subsystem`` starts from an empty preset set unless
``inherit_presets=True``. Presets are immutable per namespace object:
``with_presets`` hands its body a scoped view carrying the merged set, so the
namespace itself is never mutated and nothing needs restoring afterwards.

Declarations are expected to run at import / startup time. Observations on
the returned instruments are thread-safe (delegated to prometheus_client).
"""
from __future__ import annotations

import logging
import weakref
from collections.abc import Callable, Iterator, Mapping
from types import MappingProxyType
from typing import Any, TypeVar

from ..config.settings import get_settings
from ..utils.exceptions import CollidingNameError, MissingBlockError, PresetsArgumentError
from .instruments import Instrument, InstrumentKind, merge_label_names
from .push import push_later
from .registry import InstrumentRegistry, get_registry

logger = logging.getLogger(__name__)

__all__ = ["Namespace", "FORBIDDEN_IDENTIFIERS"]

T = TypeVar("T")

DEFAULT_DOCS = "..."


class _Entries:
    """Accessor table shared by a namespace and its scoped preset views."""

    __slots__ = ("instruments", "subsystems")

    def __init__(self) -> None:
        self.instruments: dict[str, Instrument] = {}
        self.subsystems: dict[str, Namespace] = {}


class Namespace:
    """Declaration scope for instruments, optionally prefixed and preset-labelled."""

    def __init__(self, registry: InstrumentRegistry | None = None, *,
                 prefix: str | None = None,
                 presets: Mapping[str, Any] | None = None,
                 parent: Namespace | None = None):
        self._registry = registry if registry is not None else get_registry()
        self._prefix = prefix or None
        self._presets = MappingProxyType({str(k): str(v) for k, v in (presets or {}).items()})
        self._parent_ref = weakref.ref(parent) if parent is not None else None
        self._entries = _Entries()
        self._owner: Namespace | None = None

    def _scoped(self, presets: Mapping[str, str]) -> Namespace:
        view = object.__new__(type(self))
        view._registry = self._registry
        view._prefix = self._prefix
        view._presets = MappingProxyType(dict(presets))
        view._parent_ref = self._parent_ref
        view._entries = self._entries
        view._owner = self._owner or self
        return view

    def __repr__(self) -> str:
        return (f"Namespace(prefix={self._prefix!r}, presets={dict(self._presets)!r}, "
                f"instruments={sorted(self._entries.instruments)!r}, "
                f"subsystems={sorted(self._entries.subsystems)!r})")

    # ------------------------------------------------------------------
    # properties
    # ------------------------------------------------------------------
    @property
    def registry(self) -> InstrumentRegistry:
        return self._registry

    @property
    def prefix(self) -> str | None:
        return self._prefix

    @property
    def presets(self) -> Mapping[str, str]:
        return self._presets

    @property
    def parent(self) -> Namespace | None:
        return self._parent_ref() if self._parent_ref is not None else None

    # ------------------------------------------------------------------
    # accessors
    # ------------------------------------------------------------------
    def __getattr__(self, name: str) -> Any:
        # Only reached when regular attribute lookup fails.
        if name.startswith("_"):
            raise AttributeError(name)
        entries = self.__dict__.get("_entries")
        if entries is not None:
            if name in entries.instruments:
                return entries.instruments[name]
            if name in entries.subsystems:
                return entries.subsystems[name]
        raise AttributeError(f"{type(self).__name__} has no instrument or subsystem {name!r}")

    def __getitem__(self, identifier: str) -> Instrument | Namespace:
        found = self.get(identifier)
        if found is None:
            raise KeyError(identifier)
        return found

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._entries.instruments or identifier in self._entries.subsystems

    def __iter__(self) -> Iterator[str]:
        yield from self._entries.instruments
        yield from self._entries.subsystems

    def get(self, identifier: str, default: Any = None) -> Instrument | Namespace | Any:
        identifier = str(identifier)
        if identifier in self._entries.instruments:
            return self._entries.instruments[identifier]
        return self._entries.subsystems.get(identifier, default)

    def instruments(self) -> dict[str, Instrument]:
        return dict(self._entries.instruments)

    def subsystems(self) -> dict[str, Namespace]:
        return dict(self._entries.subsystems)

    # ------------------------------------------------------------------
    # declarations
    # ------------------------------------------------------------------
    def id_for(self, identifier: str) -> str:
        """Final metric name for ``identifier`` in this namespace."""
        identifier = str(identifier)
        if not self._prefix:
            return identifier
        return f"{self._prefix}_{identifier}"

    def declare(self, kind: InstrumentKind | str, identifier: str, docs: str = DEFAULT_DOCS,
                options_provider: Callable[[], Mapping[str, Any]] | None = None,
                **options: Any) -> Instrument:
        """Create, register and bind an instrument.

        ``options`` are forwarded to prometheus_client (``labels``,
        ``preset_labels``, ``buckets``, ``unit``, ...). When
        ``options_provider`` is given its result replaces ``options``.
        """
        kind = InstrumentKind(kind)
        identifier = str(identifier)
        _check_identifier(identifier)
        if options_provider is not None:
            if options:
                logger.debug("metrics.declare literal options ignored id=%s keys=%s",
                             identifier, ",".join(sorted(options)))
            options = dict(options_provider())
        labels, preset_labels, engine_opts = self._merge_presets(options)
        name = self.id_for(identifier)

        instrument = self._registry.create(kind, name, docs, labels, preset_labels, **engine_opts)

        if identifier in self._entries.instruments or identifier in self._entries.subsystems:
            # Permissive redefinition: last declaration wins.
            logger.warning("metrics.declare overriding existing accessor id=%s name=%s", identifier, name)
            self._entries.subsystems.pop(identifier, None)
        self._entries.instruments[identifier] = instrument
        logger.debug("metrics.declare id=%s name=%s kind=%s", identifier, name, kind.value)
        return instrument

    def counter(self, identifier: str, docs: str = DEFAULT_DOCS,
                options_provider: Callable[[], Mapping[str, Any]] | None = None,
                **options: Any) -> Instrument:
        return self.declare(InstrumentKind.COUNTER, identifier, docs, options_provider, **options)

    def gauge(self, identifier: str, docs: str = DEFAULT_DOCS,
              options_provider: Callable[[], Mapping[str, Any]] | None = None,
              **options: Any) -> Instrument:
        return self.declare(InstrumentKind.GAUGE, identifier, docs, options_provider, **options)

    def histogram(self, identifier: str, docs: str = DEFAULT_DOCS,
                  options_provider: Callable[[], Mapping[str, Any]] | None = None,
                  **options: Any) -> Instrument:
        return self.declare(InstrumentKind.HISTOGRAM, identifier, docs, options_provider, **options)

    def summary(self, identifier: str, docs: str = DEFAULT_DOCS,
                options_provider: Callable[[], Mapping[str, Any]] | None = None,
                **options: Any) -> Instrument:
        return self.declare(InstrumentKind.SUMMARY, identifier, docs, options_provider, **options)

    def _merge_presets(self, options: Mapping[str, Any]) -> tuple[tuple[str, ...], dict[str, str], dict[str, Any]]:
        opts = dict(options)
        labels = opts.pop("labels", None) or ()
        explicit = {str(k): str(v) for k, v in (opts.pop("preset_labels", None) or {}).items()}
        preset_labels = {**self._presets, **explicit}
        merged_labels = merge_label_names(labels, list(self._presets), list(explicit))
        return merged_labels, preset_labels, opts

    # ------------------------------------------------------------------
    # scopes
    # ------------------------------------------------------------------
    def with_presets(self, labels: Mapping[str, Any] | None, body: Callable[[Namespace], T] | None = None) -> T:
        """Run ``body`` against a view of this namespace with ``labels`` added to the presets.

        Keys in ``labels`` override presets of the same name. Instruments
        declared on the view are bound on this namespace. Returns the body's
        result.
        """
        if body is None or not callable(body):
            raise MissingBlockError("with_presets requires a body callable")
        if not labels:
            raise PresetsArgumentError("labels are empty")
        merged = {**self._presets, **{str(k): str(v) for k, v in labels.items()}}
        return body(self._scoped(merged))

    def subsystem(self, prefix: str, body: Callable[[Namespace], Any] | None = None, *,
                  inherit_presets: bool = False,
                  presets: Mapping[str, Any] | None = None) -> Namespace:
        """Declare a nested namespace whose instrument names are prefixed with ``prefix``.

        The child starts with ``presets`` only; with ``inherit_presets`` the
        current presets are merged in underneath (``presets`` keys win). The
        child is bound on this namespace under ``prefix`` and returned.
        """
        if body is None or not callable(body):
            raise MissingBlockError("subsystem requires a body callable")
        prefix = str(prefix)
        _check_identifier(prefix)
        child_presets = {str(k): str(v) for k, v in (presets or {}).items()}
        if inherit_presets:
            child_presets = {**self._presets, **child_presets}
        segment = prefix[:-1] if prefix.endswith("_") else prefix
        child = type(self)(self._registry, prefix=self.id_for(segment),
                           presets=child_presets, parent=self._owner or self)
        body(child)
        if prefix in self._entries.subsystems or prefix in self._entries.instruments:
            logger.warning("metrics.subsystem overriding existing accessor id=%s", prefix)
            self._entries.instruments.pop(prefix, None)
        self._entries.subsystems[prefix] = child
        logger.debug("metrics.subsystem id=%s prefix=%s presets=%s", prefix, child.prefix, child_presets)
        return child

    # ------------------------------------------------------------------
    # push
    # ------------------------------------------------------------------
    def push(self, job: str, **options: Any) -> None:
        """Push the whole registry (not only this namespace) to a Pushgateway."""
        self._registry.push(job, **options)

    def push_periodically(self, job: str, interval: float | None = None, **options: Any):
        """Push once after ``interval`` seconds on a daemon thread; returns the thread."""
        delay = get_settings().push_interval if interval is None else interval
        return push_later(lambda: self.push(job, **options), delay, name=f"metrics-push-{job}")

    # ------------------------------------------------------------------
    # introspection
    # ------------------------------------------------------------------
    def describe(self) -> dict[str, object]:
        return {
            "prefix": self._prefix,
            "presets": dict(self._presets),
            "instruments": {k: v.describe() for k, v in self._entries.instruments.items()},
            "subsystems": {k: v.describe() for k, v in self._entries.subsystems.items()},
        }


FORBIDDEN_IDENTIFIERS: frozenset[str] = frozenset(
    name for name in dir(Namespace) if not name.startswith("_")
)


def _check_identifier(identifier: str) -> None:
    # Leading underscores are reserved for Namespace internals.
    if identifier in FORBIDDEN_IDENTIFIERS or identifier.startswith("_"):
        raise CollidingNameError(identifier)
