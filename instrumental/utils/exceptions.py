"""instrumental exception hierarchy.

A small exception tree for the declaration layer. Errors raised by
prometheus_client itself (duplicate registration, invalid names, missing
label values) and by the push transport are not wrapped; they reach the
caller unmodified.
"""
from __future__ import annotations


class InstrumentalError(Exception):
    """Base class for all instrumental exceptions."""


class CollidingNameError(InstrumentalError):
    """Declared identifier would shadow a Namespace operation or a private attribute."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"Identifying an instrument with {identifier!r} would shadow a namespace method or internal attribute")


class PresetsArgumentError(InstrumentalError, ValueError):
    """Preset label mapping missing or empty."""


class MissingBlockError(InstrumentalError, TypeError):
    """Required body callable was not supplied."""


class UnsupportedOperationError(InstrumentalError, AttributeError):
    """Operation is not available for the instrument kind (e.g. set() on a counter)."""


class ConfigError(InstrumentalError):
    """Malformed environment configuration."""


__all__ = [
    "InstrumentalError",
    "CollidingNameError",
    "PresetsArgumentError",
    "MissingBlockError",
    "UnsupportedOperationError",
    "ConfigError",
]
