"""Network package for pingqueue.

Provides the upload client, the pluggable HTTP transport, and the
disposition policy that decides the fate of each ping file.
"""
from __future__ import annotations

from pingqueue.net.client import (
    CONNECTION_TIMEOUT_MS,
    UploadClient,
    UploadRequest,
    UploadResult,
    create_date_header_value,
)
from pingqueue.net.policy import (
    UploadAction,
    UploadDisposition,
    UploadPolicy,
    classify_response,
)
from pingqueue.net.transport import HttpxTransport, Transport, TransportResponse

__all__ = [
    "CONNECTION_TIMEOUT_MS",
    "UploadClient",
    "UploadRequest",
    "UploadResult",
    "create_date_header_value",
    "UploadAction",
    "UploadDisposition",
    "UploadPolicy",
    "classify_response",
    "Transport",
    "TransportResponse",
    "HttpxTransport",
]
