"""
Configuration module for instrumental.
"""
from .settings import MetricsSettings, get_settings

__all__ = ["MetricsSettings", "get_settings"]
