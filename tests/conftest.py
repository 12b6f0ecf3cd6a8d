"""Shared fixtures for pingqueue tests."""
from __future__ import annotations

import threading
from pathlib import Path

import httpx
import pytest

from pingqueue.net.client import UploadClient
from pingqueue.net.transport import HttpxTransport, Transport, TransportResponse
from pingqueue.queue.processor import QueueProcessor
from pingqueue.schema.config import UploaderConfig

ENDPOINT = "https://incoming.example.test"
PING_NAME = "123e4567-e89b-12d3-a456-426614174000"


class RecordingHandler:
    """``httpx.MockTransport`` handler that records every request.

    Answers with *status_code*, or raises *exc* to simulate a network
    failure.
    """

    def __init__(self, status_code: int = 200, exc: Exception | None = None) -> None:
        self.status_code = status_code
        self.exc = exc
        self.requests: list[httpx.Request] = []
        self._lock = threading.Lock()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        return httpx.Response(self.status_code)


class FakeTransport(Transport):
    """In-memory :class:`Transport` returning a canned response."""

    def __init__(self, response: TransportResponse | None = None) -> None:
        self.response = response or TransportResponse(status_code=200)
        self.calls: list[tuple[str, dict[str, str], bytes, float]] = []
        self.closed = False

    def post(
        self,
        url: str,
        headers: dict[str, str],
        body: bytes,
        timeout: float,
    ) -> TransportResponse:
        self.calls.append((url, headers, body, timeout))
        return self.response

    def close(self) -> None:
        self.closed = True


def make_config(data_dir: Path, **overrides: object) -> UploaderConfig:
    return UploaderConfig(server_endpoint=ENDPOINT, data_dir=data_dir, **overrides)


def make_processor(config: UploaderConfig, handler: RecordingHandler) -> QueueProcessor:
    transport = HttpxTransport(transport=httpx.MockTransport(handler))
    return QueueProcessor(config, UploadClient(config, transport))


@pytest.fixture()
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture()
def pending_dir(data_dir: Path) -> Path:
    directory = data_dir / "pending_pings"
    directory.mkdir(parents=True)
    return directory
