"""instrumental: declarative Prometheus instrumentation.

Declare counters, gauges, histograms and summaries on a ``Namespace``,
group them in prefixed subsystems with preset labels, expose them over HTTP
or push them to a Pushgateway. Collection and encoding are done by
prometheus_client; every instrument behaves like its prometheus_client
counterpart and lives in the same registry.
"""
from .metrics import (
    FORBIDDEN_IDENTIFIERS,
    Instrument,
    InstrumentKind,
    InstrumentRegistry,
    Namespace,
    RequestCollectorMiddleware,
    exporter_app,
    get_registry,
    is_exposing,
    isolated_registry,
    reset_registry,
    set_registry,
    start_exposing,
    stop_exposing,
)
from .utils.exceptions import (
    CollidingNameError,
    ConfigError,
    InstrumentalError,
    MissingBlockError,
    PresetsArgumentError,
    UnsupportedOperationError,
)
from .version import __version__

__all__ = [
    "__version__",
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
    "InstrumentalError",
    "CollidingNameError",
    "PresetsArgumentError",
    "MissingBlockError",
    "UnsupportedOperationError",
    "ConfigError",
]
