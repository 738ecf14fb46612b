"""Central version metadata for instrumental.

Update __version__ during release tagging; pyproject.toml reads it from here.
"""
from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
