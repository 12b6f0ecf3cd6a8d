"""pingqueue — durable upload queue for telemetry pings.

Ping files written to ``<data_dir>/pending_pings`` by a storage engine are
discovered, POSTed to a collection endpoint, and deleted, retried or
discarded according to the server's answer.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Quick-start
-----------
>>> import pingqueue
>>> pingqueue.__version__
'0.1.0'

::

    from pingqueue import QueueProcessor, UploaderConfig

    config = UploaderConfig(data_dir="/var/lib/myapp", debug_tag="qa-run")
    with QueueProcessor(config) as processor:
        processor.process()
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------
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

# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------
from pingqueue.storage.codec import (
    PingPayload,
    decode_ping_file,
    encode_ping_file,
    read_ping_file,
    write_ping_file,
)
from pingqueue.storage.scanner import (
    PINGS_DIR,
    QUARANTINE_DIR,
    get_or_create_ping_directory,
    is_valid_ping_file_name,
    list_ping_files,
)

# ---------------------------------------------------------------------------
# Network
# ---------------------------------------------------------------------------
from pingqueue.net.client import UploadClient, UploadRequest, UploadResult
from pingqueue.net.policy import UploadAction, UploadDisposition, UploadPolicy, classify_response
from pingqueue.net.transport import HttpxTransport, Transport, TransportResponse

# ---------------------------------------------------------------------------
# Queue
# ---------------------------------------------------------------------------
from pingqueue.queue.lifecycle import PingFileState
from pingqueue.queue.processor import PassReport, QueueProcessor

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------
from pingqueue.config.defaults import DEFAULT_CONFIG
from pingqueue.config.loader import ConfigLoader
from pingqueue.config.schema import validate_config

# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
from pingqueue.health.check import CheckResult, HealthCheck, HealthReport, HealthStatus

__all__ = [
    "__version__",
    # schema — errors
    "ErrorSeverity",
    "PingQueueError",
    "ConfigurationError",
    "PingStorageError",
    "CorruptPingError",
    "UploadError",
    "TransportError",
    # schema — config
    "CorruptPingPolicy",
    "UploaderConfig",
    # storage
    "PINGS_DIR",
    "QUARANTINE_DIR",
    "is_valid_ping_file_name",
    "get_or_create_ping_directory",
    "list_ping_files",
    "PingPayload",
    "decode_ping_file",
    "encode_ping_file",
    "read_ping_file",
    "write_ping_file",
    # net
    "UploadClient",
    "UploadRequest",
    "UploadResult",
    "UploadDisposition",
    "UploadAction",
    "UploadPolicy",
    "classify_response",
    "Transport",
    "TransportResponse",
    "HttpxTransport",
    # queue
    "PingFileState",
    "PassReport",
    "QueueProcessor",
    # config
    "DEFAULT_CONFIG",
    "ConfigLoader",
    "validate_config",
    # health
    "HealthStatus",
    "CheckResult",
    "HealthReport",
    "HealthCheck",
]
