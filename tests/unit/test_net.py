"""Unit tests for pingqueue.net — policy, transport, and upload client."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path

import httpx
import pytest

from conftest import ENDPOINT, FakeTransport, RecordingHandler, make_config
from pingqueue.net.client import (
    CONNECTION_TIMEOUT_MS,
    UploadClient,
    UploadResult,
    create_date_header_value,
)
from pingqueue.net.policy import UploadDisposition, UploadPolicy, classify_response
from pingqueue.net.transport import MAX_REDIRECTS, HttpxTransport, TransportResponse
from pingqueue.schema.errors import TransportError, UploadError


# ---------------------------------------------------------------------------
# classify_response
# ---------------------------------------------------------------------------


class TestClassifyResponse:
    @pytest.mark.parametrize("status", [200, 202, 299])
    def test_success_range(self, status: int) -> None:
        assert classify_response(status) is UploadDisposition.SUCCESS

    @pytest.mark.parametrize("status", [400, 404, 413, 499])
    def test_client_error_range(self, status: int) -> None:
        assert classify_response(status) is UploadDisposition.CLIENT_ERROR

    @pytest.mark.parametrize("status", [100, 199, 300, 399, 500, 599, 0])
    def test_everything_else_is_transient(self, status: int) -> None:
        assert classify_response(status) is UploadDisposition.SERVER_OR_TRANSPORT_ERROR

    def test_missing_status_is_transient(self) -> None:
        assert classify_response(None) is UploadDisposition.SERVER_OR_TRANSPORT_ERROR

    def test_transport_error_wins_over_status(self) -> None:
        disposition = classify_response(200, RuntimeError("reset"))
        assert disposition is UploadDisposition.SERVER_OR_TRANSPORT_ERROR


# ---------------------------------------------------------------------------
# UploadPolicy
# ---------------------------------------------------------------------------


class TestUploadPolicy:
    def test_success_deletes(self) -> None:
        action = UploadPolicy().decide(UploadDisposition.SUCCESS)
        assert action.should_delete_file is True

    def test_client_error_deletes_and_logs_error(self) -> None:
        action = UploadPolicy().decide(UploadDisposition.CLIENT_ERROR)
        assert action.should_delete_file is True
        assert action.log_level == logging.ERROR

    def test_transient_keeps(self) -> None:
        action = UploadPolicy().decide(UploadDisposition.SERVER_OR_TRANSPORT_ERROR)
        assert action.should_delete_file is False
        assert action.log_level == logging.WARNING

    def test_every_disposition_has_an_action(self) -> None:
        policy = UploadPolicy()
        for disposition in UploadDisposition:
            assert policy.decide(disposition).reason


# ---------------------------------------------------------------------------
# HttpxTransport
# ---------------------------------------------------------------------------


class TestHttpxTransport:
    def test_returns_status_code(self) -> None:
        transport = HttpxTransport(transport=httpx.MockTransport(RecordingHandler(503)))
        response = transport.post(f"{ENDPOINT}/x", {}, b"{}", 10.0)
        assert response == TransportResponse(status_code=503)

    def test_network_failure_becomes_transport_error(self) -> None:
        handler = RecordingHandler(exc=httpx.ConnectError("Connection refused"))
        transport = HttpxTransport(transport=httpx.MockTransport(handler))

        response = transport.post(f"{ENDPOINT}/x", {}, b"{}", 10.0)

        assert response.status_code is None
        assert isinstance(response.error, TransportError)
        assert isinstance(response.error.__cause__, httpx.ConnectError)
        assert response.error.context["exception"] == "ConnectError"

    def test_cookies_are_never_sent_back(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, headers={"Set-Cookie": "session=abc; Path=/"})

        transport = HttpxTransport(transport=httpx.MockTransport(handler))
        transport.post(f"{ENDPOINT}/a", {}, b"{}", 10.0)
        transport.post(f"{ENDPOINT}/b", {}, b"{}", 10.0)

        assert "cookie" not in requests[1].headers

    @pytest.mark.parametrize("status", [301, 302, 303, 307, 308])
    def test_redirect_repeats_post_with_body(self, status: int) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if request.url.path == "/old/submit":
                return httpx.Response(status, headers={"Location": "/new/submit"})
            return httpx.Response(200)

        transport = HttpxTransport(transport=httpx.MockTransport(handler))
        response = transport.post(f"{ENDPOINT}/old/submit", {"X-Client-Type": "Glean"}, b'{"a":1}', 10.0)

        assert response == TransportResponse(status_code=200)
        assert [str(r.url) for r in requests] == [
            f"{ENDPOINT}/old/submit",
            f"{ENDPOINT}/new/submit",
        ]
        assert requests[1].method == "POST"
        assert requests[1].content == b'{"a":1}'
        assert requests[1].headers["X-Client-Type"] == "Glean"

    def test_redirect_loop_is_bounded(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(308, headers={"Location": str(request.url)})

        transport = HttpxTransport(transport=httpx.MockTransport(handler))
        response = transport.post(f"{ENDPOINT}/x", {}, b"{}", 10.0)

        assert response.status_code == 308
        assert len(requests) == MAX_REDIRECTS + 1

    def test_redirect_without_location_is_returned(self) -> None:
        handler = RecordingHandler(301)
        transport = HttpxTransport(transport=httpx.MockTransport(handler))
        response = transport.post(f"{ENDPOINT}/x", {}, b"{}", 10.0)
        assert response.status_code == 301
        assert len(handler.requests) == 1

    def test_unencodable_header_becomes_transport_error(self) -> None:
        handler = RecordingHandler()
        transport = HttpxTransport(transport=httpx.MockTransport(handler))

        response = transport.post(f"{ENDPOINT}/x", {"User-Agent": "pingqueue-\u00fc"}, b"{}", 10.0)

        assert isinstance(response.error, TransportError)
        assert response.error.context["exception"] == "UnicodeEncodeError"
        assert handler.requests == []

    def test_context_manager_closes_client(self) -> None:
        with HttpxTransport(transport=httpx.MockTransport(RecordingHandler())) as transport:
            pass
        assert transport._client.is_closed


# ---------------------------------------------------------------------------
# create_date_header_value
# ---------------------------------------------------------------------------


class TestDateHeader:
    def test_known_date(self) -> None:
        moment = datetime(2019, 8, 2, 14, 5, 9, tzinfo=timezone.utc)
        assert create_date_header_value(moment) == "Fri, 02 Aug 2019 14:05:09 GMT"

    def test_converts_to_gmt(self) -> None:
        moment = datetime(2019, 8, 2, 16, 5, 9, tzinfo=timezone(timedelta(hours=2)))
        assert create_date_header_value(moment) == "Fri, 02 Aug 2019 14:05:09 GMT"

    def test_defaults_to_now(self) -> None:
        value = create_date_header_value()
        assert value.endswith(" GMT")
        parsed = datetime.strptime(value, "%a, %d %b %Y %H:%M:%S GMT")
        assert abs(parsed.replace(tzinfo=timezone.utc) - datetime.now(tz=timezone.utc)) < timedelta(
            minutes=1
        )


# ---------------------------------------------------------------------------
# UploadClient
# ---------------------------------------------------------------------------


class TestUploadClientRequest:
    def test_url_is_endpoint_plus_path(self, tmp_path: Path) -> None:
        transport = FakeTransport()
        UploadClient(make_config(tmp_path), transport).upload("/submit/app/metric/1", "{}")
        assert transport.calls[0][0] == f"{ENDPOINT}/submit/app/metric/1"

    def test_fixed_headers(self, tmp_path: Path) -> None:
        config = make_config(tmp_path, user_agent="test-agent/1.0", sdk_version="9.9.9")
        transport = FakeTransport()

        UploadClient(config, transport).upload("/p", "{}")

        headers = transport.calls[0][1]
        assert headers["Content-Type"] == "application/json; charset=utf-8"
        assert headers["User-Agent"] == "test-agent/1.0"
        assert headers["X-Client-Type"] == "Glean"
        assert headers["X-Client-Version"] == "9.9.9"
        assert headers["Date"].endswith(" GMT")
        assert "X-Debug-ID" not in headers

    def test_debug_tag_header(self, tmp_path: Path) -> None:
        transport = FakeTransport()
        UploadClient(make_config(tmp_path, debug_tag="qa-run-7"), transport).upload("/p", "{}")
        assert transport.calls[0][1]["X-Debug-ID"] == "qa-run-7"

    def test_body_is_utf8(self, tmp_path: Path) -> None:
        transport = FakeTransport()
        UploadClient(make_config(tmp_path), transport).upload("/p", '{"city":"Zürich"}')
        assert transport.calls[0][2] == '{"city":"Zürich"}'.encode("utf-8")

    def test_timeout_is_ten_seconds(self, tmp_path: Path) -> None:
        transport = FakeTransport()
        UploadClient(make_config(tmp_path), transport).upload("/p", "{}")
        assert transport.calls[0][3] == CONNECTION_TIMEOUT_MS / 1000 == 10.0

    def test_timeout_reaches_httpx(self, tmp_path: Path) -> None:
        handler = RecordingHandler(200)
        transport = HttpxTransport(transport=httpx.MockTransport(handler))
        UploadClient(make_config(tmp_path), transport).upload("/p", "{}")
        assert handler.requests[0].extensions["timeout"]["read"] == 10.0

    def test_build_request(self, tmp_path: Path) -> None:
        request = UploadClient(make_config(tmp_path), FakeTransport()).build_request("/p", "{}")
        assert request.url == f"{ENDPOINT}/p"
        assert request.body == b"{}"
        assert request.timeout == 10.0


class TestUploadClientResult:
    def test_success(self, tmp_path: Path) -> None:
        client = UploadClient(make_config(tmp_path), FakeTransport(TransportResponse(status_code=200)))
        result = client.upload("/p", "{}")
        assert result == UploadResult(disposition=UploadDisposition.SUCCESS, status_code=200)
        assert result.succeeded
        assert result.error is None

    def test_client_error_carries_upload_error(self, tmp_path: Path) -> None:
        client = UploadClient(make_config(tmp_path), FakeTransport(TransportResponse(status_code=413)))
        result = client.upload("/p", "{}")
        assert result.disposition is UploadDisposition.CLIENT_ERROR
        assert isinstance(result.error, UploadError)
        assert result.error.context["status_code"] == 413
        assert not result.succeeded

    def test_server_error_carries_upload_error(self, tmp_path: Path) -> None:
        client = UploadClient(make_config(tmp_path), FakeTransport(TransportResponse(status_code=500)))
        result = client.upload("/p", "{}")
        assert result.disposition is UploadDisposition.SERVER_OR_TRANSPORT_ERROR
        assert isinstance(result.error, UploadError)

    def test_transport_error_is_passed_through(self, tmp_path: Path) -> None:
        error = TransportError("refused")
        client = UploadClient(make_config(tmp_path), FakeTransport(TransportResponse(error=error)))
        result = client.upload("/p", "{}")
        assert result.disposition is UploadDisposition.SERVER_OR_TRANSPORT_ERROR
        assert result.status_code is None
        assert result.error is error


class TestUploadClientLogging:
    def test_log_pings_emits_path_and_body(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        client = UploadClient(make_config(tmp_path, log_pings=True), FakeTransport())
        with caplog.at_level(logging.DEBUG, logger="pingqueue.net.client"):
            client.upload("/submit/app/metric/1", '{"ping":true}')
        assert any(
            "/submit/app/metric/1" in r.getMessage() and '{"ping":true}' in r.getMessage()
            for r in caplog.records
        )

    def test_pings_not_logged_by_default(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        client = UploadClient(make_config(tmp_path), FakeTransport())
        with caplog.at_level(logging.DEBUG, logger="pingqueue.net.client"):
            client.upload("/p", '{"secret":1}')
        assert not any('{"secret":1}' in r.getMessage() for r in caplog.records)

    def test_close_closes_transport(self, tmp_path: Path) -> None:
        transport = FakeTransport()
        UploadClient(make_config(tmp_path), transport).close()
        assert transport.closed
