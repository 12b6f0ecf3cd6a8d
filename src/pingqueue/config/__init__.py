"""Config package for pingqueue.

Provides configuration loading, validation, and sensible defaults.
"""
from __future__ import annotations

from pingqueue.config.defaults import DEFAULT_CONFIG
from pingqueue.config.loader import ConfigLoader
from pingqueue.config.schema import UploaderConfig, validate_config

__all__ = [
    "UploaderConfig",
    "validate_config",
    "ConfigLoader",
    "DEFAULT_CONFIG",
]
