"""Schema package for pingqueue.

Exports the error taxonomy and the validated uploader configuration model.
"""
from __future__ import annotations

from pingqueue.schema.config import CorruptPingPolicy, UploaderConfig
from pingqueue.schema.errors import (
    ConfigurationError,
    CorruptPingError,
    ErrorSeverity,
    PingQueueError,
    PingStorageError,
    TransportError,
    UploadError,
)

__all__ = [
    # Errors
    "ErrorSeverity",
    "PingQueueError",
    "ConfigurationError",
    "PingStorageError",
    "CorruptPingError",
    "UploadError",
    "TransportError",
    # Config
    "CorruptPingPolicy",
    "UploaderConfig",
]
