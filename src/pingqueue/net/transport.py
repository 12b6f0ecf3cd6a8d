"""HTTP transport capability for pingqueue.

The upload client talks to the network only through a :class:`Transport`,
so the classification and queue logic can be exercised without sockets.

Shipped in this module
----------------------
- TransportResponse — status code or transport error of one POST
- Transport         — ABC for all transports
- HttpxTransport    — ``httpx.Client`` backed implementation, cookies disabled
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from http.cookiejar import CookieJar, DefaultCookiePolicy

import httpx

from pingqueue.schema.errors import ErrorSeverity, TransportError

logger = logging.getLogger(__name__)

MAX_REDIRECTS = 5
_REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})


@dataclass(frozen=True)
class TransportResponse:
    """Outcome of a single POST.

    Exactly one of the two attributes is normally set: ``status_code`` when
    a server answered, ``error`` when the request never got a response.
    """

    status_code: int | None = None
    error: Exception | None = None


class Transport(ABC):
    """Abstract base class for HTTP transports."""

    @abstractmethod
    def post(
        self,
        url: str,
        headers: dict[str, str],
        body: bytes,
        timeout: float,
    ) -> TransportResponse:
        """POST *body* to *url* and report what happened.

        Implementations must not raise for network failures; they are
        returned as ``TransportResponse(error=...)``.

        Parameters
        ----------
        url:
            Absolute request URL.
        headers:
            Request headers, sent as given.
        body:
            Raw request body.
        timeout:
            Request timeout in seconds.
        """

    def close(self) -> None:
        """Release any pooled connections."""


def _stateless_cookie_jar() -> CookieJar:
    # An empty allow-list refuses every cookie, both storing and sending.
    return CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))


class HttpxTransport(Transport):
    """Transport backed by a shared ``httpx.Client``.

    The client is safe to share between the worker threads of one pass.
    Redirects are followed up to :data:`MAX_REDIRECTS` hops by repeating
    the POST, body included, against the ``Location``; httpx would turn a
    301, 302 or 303 into a body-less GET and the ping would be lost.  The cookie jar refuses all
    cookies, so every request is stateless.

    Parameters
    ----------
    transport:
        Optional low-level ``httpx`` transport, e.g. ``httpx.MockTransport``
        in tests.

    Examples
    --------
    >>> import httpx
    >>> t = HttpxTransport(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    >>> t.post("https://example.test/submit", {}, b"{}", 10.0).status_code
    200
    >>> t.close()
    """

    def __init__(self, transport: httpx.BaseTransport | None = None) -> None:
        self._client = httpx.Client(
            transport=transport,
            cookies=_stateless_cookie_jar(),
            follow_redirects=False,
        )

    def post(
        self,
        url: str,
        headers: dict[str, str],
        body: bytes,
        timeout: float,
    ) -> TransportResponse:
        """POST via httpx; network failures become ``TransportError`` results.

        A header value httpx cannot encode as ASCII is reported the same way.
        """
        try:
            response = self._client.post(url, headers=headers, content=body, timeout=timeout)
            hops = 0
            while (
                response.status_code in _REDIRECT_STATUSES
                and "location" in response.headers
                and hops < MAX_REDIRECTS
            ):
                target = response.url.join(response.headers["location"])
                logger.debug("Following HTTP %d redirect to %s", response.status_code, target)
                response = self._client.post(
                    target, headers=headers, content=body, timeout=timeout
                )
                hops += 1
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as exc:
            error = TransportError(
                f"Request to {url} failed: {exc}",
                severity=ErrorSeverity.LOW,
                context={"url": url, "exception": type(exc).__name__},
            )
            error.__cause__ = exc
            logger.debug("Transport failure for %s: %r", url, exc)
            return TransportResponse(error=error)
        return TransportResponse(status_code=response.status_code)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpxTransport":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
