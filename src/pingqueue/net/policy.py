"""Upload disposition and deletion policy.

Classification of an upload attempt is the central policy decision of the
pipeline: never lose a ping to a transient failure, and never retry forever
a request the server has already rejected as malformed.

Known success codes (2xx):
    200 - OK. Request accepted into the pipeline.  Every 2xx is treated as
    success even though only 200 is expected.

Known client errors (4xx):
    404 - POST/PUT to an unknown namespace
    405 - wrong request type (anything other than POST/PUT)
    411 - missing content-length header
    413 - request body too large
    414 - request path too long

    Retrying will not fix any of these, so the ping is discarded and the
    error logged.

Everything else (5xx, no response, transport failure) is retried on a
later pass by leaving the file in place.

Shipped in this module
----------------------
- UploadDisposition — SUCCESS / CLIENT_ERROR / SERVER_OR_TRANSPORT_ERROR
- classify_response — pure (status code, error) -> disposition mapping
- UploadAction      — what to do with the local file
- UploadPolicy      — pure disposition -> action mapping
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum


class UploadDisposition(str, Enum):
    """Classification of one upload attempt."""

    SUCCESS = "success"
    CLIENT_ERROR = "client_error"
    SERVER_OR_TRANSPORT_ERROR = "server_or_transport_error"


def classify_response(
    status_code: int | None,
    error: Exception | None = None,
) -> UploadDisposition:
    """Map an HTTP outcome to an :class:`UploadDisposition`.

    A transport error always means the attempt is retried, whatever status
    code accompanies it.

    Examples
    --------
    >>> classify_response(200).value
    'success'
    >>> classify_response(404).value
    'client_error'
    >>> classify_response(503).value
    'server_or_transport_error'
    >>> classify_response(None).value
    'server_or_transport_error'
    """
    if error is not None or status_code is None:
        return UploadDisposition.SERVER_OR_TRANSPORT_ERROR
    if 200 <= status_code < 300:
        return UploadDisposition.SUCCESS
    if 400 <= status_code < 500:
        return UploadDisposition.CLIENT_ERROR
    return UploadDisposition.SERVER_OR_TRANSPORT_ERROR


@dataclass(frozen=True)
class UploadAction:
    """Decision for the local copy of a ping.

    Attributes
    ----------
    should_delete_file:
        Remove the ping file from the pending directory.
    log_level:
        ``logging`` level at which the outcome is reported.
    reason:
        Short human-readable description for the log line.
    """

    should_delete_file: bool
    log_level: int
    reason: str


_ACTIONS: dict[UploadDisposition, UploadAction] = {
    UploadDisposition.SUCCESS: UploadAction(
        should_delete_file=True,
        log_level=logging.DEBUG,
        reason="uploaded",
    ),
    UploadDisposition.CLIENT_ERROR: UploadAction(
        should_delete_file=True,
        log_level=logging.ERROR,
        reason="rejected by server, discarding",
    ),
    UploadDisposition.SERVER_OR_TRANSPORT_ERROR: UploadAction(
        should_delete_file=False,
        log_level=logging.WARNING,
        reason="upload failed, will retry on next pass",
    ),
}


class UploadPolicy:
    """Pure mapping from :class:`UploadDisposition` to :class:`UploadAction`.

    No per-file retry state is kept: a ping that has not yet been accepted
    is simply the file that still exists in the pending directory.

    Examples
    --------
    >>> UploadPolicy().decide(UploadDisposition.CLIENT_ERROR).should_delete_file
    True
    >>> UploadPolicy().decide(UploadDisposition.SERVER_OR_TRANSPORT_ERROR).should_delete_file
    False
    """

    def decide(self, disposition: UploadDisposition) -> UploadAction:
        """Return the action for *disposition*."""
        return _ACTIONS[disposition]
