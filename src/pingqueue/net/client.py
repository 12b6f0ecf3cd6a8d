"""HTTP ping upload client.

Builds the request for one ping, sends it through a :class:`Transport`, and
classifies the outcome.

Note that the ``X-Client-Type: Glean`` and ``X-Client-Version`` headers are
sent in addition to the ``User-Agent`` so the pipeline can recognise pings
from this client on the legacy ingestion path.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import format_datetime

from pingqueue.net.policy import UploadDisposition, classify_response
from pingqueue.net.transport import HttpxTransport, Transport
from pingqueue.schema.config import UploaderConfig
from pingqueue.schema.errors import ErrorSeverity, UploadError

logger = logging.getLogger(__name__)

CONNECTION_TIMEOUT_MS = 10_000
CLIENT_TYPE = "Glean"


def create_date_header_value(date: datetime | None = None) -> str:
    """Format *date* (default: now) for the ``Date`` header, in GMT.

    Examples
    --------
    >>> from datetime import datetime, timezone
    >>> create_date_header_value(datetime(2019, 8, 2, 14, 5, 9, tzinfo=timezone.utc))
    'Fri, 02 Aug 2019 14:05:09 GMT'
    """
    moment = date or datetime.now(tz=timezone.utc)
    return format_datetime(moment.astimezone(timezone.utc), usegmt=True)


@dataclass(frozen=True)
class UploadRequest:
    """One fully-built POST, owned by the client for the duration of a call."""

    url: str
    headers: dict[str, str]
    body: bytes
    timeout: float = CONNECTION_TIMEOUT_MS / 1000


@dataclass(frozen=True)
class UploadResult:
    """Outcome of :meth:`UploadClient.upload`.

    Attributes
    ----------
    disposition:
        Classification of the attempt.
    status_code:
        HTTP status, or ``None`` when no response was received.
    error:
        The triggering error, for logging; ``None`` on success.
    """

    disposition: UploadDisposition
    status_code: int | None = None
    error: Exception | None = field(default=None, compare=False)

    @property
    def succeeded(self) -> bool:
        return self.disposition is UploadDisposition.SUCCESS


class UploadClient:
    """Uploads serialized pings to the configured collection endpoint.

    Parameters
    ----------
    config:
        Uploader configuration; endpoint, user agent, version and debug tag
        are read from it on every call.
    transport:
        Network capability.  Defaults to a new :class:`HttpxTransport`.
    """

    def __init__(
        self,
        config: UploaderConfig,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport if transport is not None else HttpxTransport()

    @property
    def config(self) -> UploaderConfig:
        return self._config

    def build_request(self, path: str, body: str) -> UploadRequest:
        """Build the request used for uploading one ping.

        Parameters
        ----------
        path:
            URL path appended to the server endpoint.
        body:
            Serialized ping text.
        """
        headers = {
            "Content-Type": "application/json; charset=utf-8",
            "User-Agent": self._config.user_agent,
            "Date": create_date_header_value(),
            "X-Client-Type": CLIENT_TYPE,
            "X-Client-Version": self._config.sdk_version,
        }
        if self._config.debug_tag is not None:
            headers["X-Debug-ID"] = self._config.debug_tag

        return UploadRequest(
            url=self._config.server_endpoint + path,
            headers=headers,
            body=body.encode("utf-8"),
        )

    def log_ping(self, path: str, body: str) -> None:
        logger.debug("Glean ping to URL: %s\n%s", path, body)

    def upload(self, path: str, body: str) -> UploadResult:
        """Upload one ping and classify the outcome.

        Never raises for network or server problems; those are reported
        through the returned :class:`UploadResult`.

        Parameters
        ----------
        path:
            URL path appended to the server endpoint.
        body:
            Serialized ping text.
        """
        if self._config.log_pings:
            self.log_ping(path, body)

        request = self.build_request(path, body)
        response = self._transport.post(
            request.url, request.headers, request.body, request.timeout
        )
        disposition = classify_response(response.status_code, response.error)

        error = response.error
        if error is None and disposition is not UploadDisposition.SUCCESS:
            error = UploadError(
                f"Server responded with HTTP {response.status_code} for {path}",
                severity=(
                    ErrorSeverity.HIGH
                    if disposition is UploadDisposition.CLIENT_ERROR
                    else ErrorSeverity.LOW
                ),
                context={"url": request.url, "status_code": response.status_code},
            )

        logger.debug(
            "Upload of %s finished: status=%s disposition=%s",
            path,
            response.status_code,
            disposition.value,
        )
        return UploadResult(
            disposition=disposition,
            status_code=response.status_code,
            error=error,
        )

    def close(self) -> None:
        """Close the underlying transport."""
        self._transport.close()
