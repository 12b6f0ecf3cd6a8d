"""Error taxonomy for pingqueue.

All exceptions raised inside pingqueue derive from ``PingQueueError`` so
that callers can catch the whole family with a single
``except PingQueueError`` clause while still being able to distinguish
individual failure modes.

None of these ever escape :meth:`~pingqueue.queue.processor.QueueProcessor.process`;
the processor converts them into per-file outcomes and log lines.

Shipped in this module
----------------------
- ErrorSeverity     — ordered severity enum
- PingQueueError    — root exception with severity and context payload
- Domain subclasses — ConfigurationError, PingStorageError,
                      CorruptPingError, UploadError, TransportError
"""
from __future__ import annotations

from enum import Enum


class ErrorSeverity(str, Enum):
    """Ordered severity levels for ``PingQueueError`` instances.

    Severity is advisory metadata only; it lets logging infrastructure
    filter by impact level.
    """

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


class PingQueueError(Exception):
    """Root exception for all pingqueue failures.

    Parameters
    ----------
    message:
        Human-readable description of what went wrong.
    severity:
        Advisory ``ErrorSeverity`` level.  Defaults to ``HIGH``.
    context:
        Optional dict of structured metadata (file names, status codes,
        URLs) that helps diagnostics without log scraping.

    Examples
    --------
    >>> try:
    ...     raise PingQueueError("something broke", ErrorSeverity.MEDIUM)
    ... except PingQueueError as exc:
    ...     print(exc.severity)
    ErrorSeverity.MEDIUM
    """

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.HIGH,
        context: dict[str, object] | None = None,
    ) -> None:
        super().__init__(message)
        self.severity: ErrorSeverity = severity
        self.context: dict[str, object] = context or {}

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}("
            f"message={str(self)!r}, "
            f"severity={self.severity.value!r})"
        )


class ConfigurationError(PingQueueError):
    """Raised when configuration loading or validation fails.

    Examples: bad YAML, a non-URL endpoint, an invalid debug tag.
    """


class PingStorageError(PingQueueError):
    """Raised when the pending-pings directory or a ping file cannot be accessed."""


class CorruptPingError(PingStorageError):
    """Raised when a ping file's content cannot be decoded.

    Re-reading the same bytes will never succeed, so callers treat this as
    terminal for the file.
    """


class UploadError(PingQueueError):
    """Describes a failed upload attempt; carried in an upload result for logging."""


class TransportError(UploadError):
    """The request never produced an HTTP status (connection refused, timeout, DNS)."""
