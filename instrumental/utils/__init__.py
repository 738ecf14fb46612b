# Utils module for instrumental
from .env_flags import is_truthy, is_truthy_env
from .exceptions import (
    CollidingNameError,
    ConfigError,
    InstrumentalError,
    MissingBlockError,
    PresetsArgumentError,
    UnsupportedOperationError,
)

__all__ = [
    "is_truthy", "is_truthy_env",
    "InstrumentalError", "CollidingNameError", "PresetsArgumentError",
    "MissingBlockError", "UnsupportedOperationError", "ConfigError",
]
