"""Default configuration constants for pingqueue.

``DEFAULT_CONFIG`` is what ``ConfigLoader.load_auto()`` returns when
neither a config file nor a ``PINGQUEUE_*`` variable is present.
"""
from __future__ import annotations

from pingqueue.schema.config import CorruptPingPolicy, UploaderConfig

DEFAULT_CONFIG: UploaderConfig = UploaderConfig(
    log_pings=False,
    debug_tag=None,
    corrupt_ping_policy=CorruptPingPolicy.QUARANTINE,
    strict_line_count=False,
    max_workers=1,
)
"""Baseline ``UploaderConfig`` used when no file or env config is present."""

DEFAULT_CONFIG_YAML = """\
# pingqueue configuration
server_endpoint: https://incoming.telemetry.mozilla.org
log_pings: false
# debug_tag: my-test-run
# data_dir: ~/.pingqueue
corrupt_ping_policy: quarantine
strict_line_count: false
max_workers: 1
"""
"""Template written by ``pingqueue init``."""
