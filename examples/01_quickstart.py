#!/usr/bin/env python3
"""Example: Quickstart

Demonstrates one upload pass: three pings are written to a scratch data
directory and uploaded to an in-process fake collection endpoint that
accepts one, rejects one, and fails one with a server error.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install pingqueue
"""
from __future__ import annotations

import tempfile
from pathlib import Path

import httpx

import pingqueue
from pingqueue import (
    HttpxTransport,
    PassReport,
    QueueProcessor,
    UploadClient,
    UploaderConfig,
    get_or_create_ping_directory,
    write_ping_file,
)

_ANSWERS = {"/submit/demo/metrics/1": 202, "/submit/demo/events/1": 400}


def _collector(request: httpx.Request) -> httpx.Response:
    return httpx.Response(_ANSWERS.get(request.url.path, 503))


def run(data_dir: Path) -> PassReport:
    config = UploaderConfig(
        server_endpoint="https://collector.example",
        data_dir=data_dir,
        debug_tag="quickstart",
    )

    # Step 1: Queue three pings the way a storage engine would
    pending = get_or_create_ping_directory(config.data_dir)
    write_ping_file(pending, "/submit/demo/metrics/1", '{"metrics":{"counter":1}}')
    write_ping_file(pending, "/submit/demo/events/1", '{"events":[]}')
    write_ping_file(pending, "/submit/demo/baseline/1", '{"reason":"active"}')
    print(f"Queued {len(list(pending.iterdir()))} pings in {pending}")

    # Step 2: Run one pass against the fake collector
    transport = HttpxTransport(transport=httpx.MockTransport(_collector))
    with QueueProcessor(config, UploadClient(config, transport)) as processor:
        report = processor.run_pass()

    # Step 3: Report outcomes; the 503 ping stays queued for the next pass
    for name, state in sorted(report.outcomes.items()):
        print(f"  {name}: {state.value}")
    print(f"Still pending: {report.retained_files()}")
    transport.close()
    return report


def main() -> None:
    print(f"pingqueue version: {pingqueue.__version__}")
    with tempfile.TemporaryDirectory() as scratch:
        run(Path(scratch))


if __name__ == "__main__":
    main()
