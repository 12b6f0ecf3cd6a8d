"""Storage package for pingqueue.

Discovers ping files in the pending directory and reads/writes their
two-line on-disk format.
"""
from __future__ import annotations

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
    get_or_create_quarantine_directory,
    is_valid_ping_file_name,
    list_ping_files,
)

__all__ = [
    "PINGS_DIR",
    "QUARANTINE_DIR",
    "is_valid_ping_file_name",
    "get_or_create_ping_directory",
    "get_or_create_quarantine_directory",
    "list_ping_files",
    "PingPayload",
    "decode_ping_file",
    "encode_ping_file",
    "read_ping_file",
    "write_ping_file",
]
