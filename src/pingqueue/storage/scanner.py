"""Pending-pings directory scanner.

Ping files are named after UUIDs; anything else found in the pending
directory is foreign and gets garbage-collected by the queue processor
without ever being parsed.

Shipped in this module
----------------------
- PINGS_DIR / QUARANTINE_DIR      — fixed directory names under the data dir
- is_valid_ping_file_name         — pure UUID-name filter
- get_or_create_ping_directory    — idempotent directory bootstrap
- get_or_create_quarantine_directory
- list_ping_files                 — stable listing of immediate child files
"""
from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from pingqueue.schema.errors import PingStorageError

logger = logging.getLogger(__name__)

# NOTE: must stay in sync with the directory name used by the ping writer.
PINGS_DIR = "pending_pings"
QUARANTINE_DIR = "quarantined_pings"

PING_FILE_PATTERN = re.compile(
    r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
)


def is_valid_ping_file_name(name: str) -> bool:
    """Return ``True`` iff *name* is exactly an 8-4-4-4-12 hex UUID.

    Examples
    --------
    >>> is_valid_ping_file_name("123e4567-e89b-12d3-a456-426614174000")
    True
    >>> is_valid_ping_file_name("123E4567-E89B-12D3-A456-426614174000")
    True
    >>> is_valid_ping_file_name("not-a-uuid.txt")
    False
    """
    return PING_FILE_PATTERN.fullmatch(name) is not None


def _get_or_create(directory: Path) -> Path:
    if not directory.is_dir():
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.error("Could not create directory %s: %s", directory, exc)
    return directory


def get_or_create_ping_directory(data_dir: str | Path) -> Path:
    """Return ``<data_dir>/pending_pings``, creating it when absent.

    Creation failures are logged rather than raised; the subsequent listing
    will fail and abort the pass instead.
    """
    return _get_or_create(Path(data_dir) / PINGS_DIR)


def get_or_create_quarantine_directory(data_dir: str | Path) -> Path:
    """Return ``<data_dir>/quarantined_pings``, creating it when absent."""
    return _get_or_create(Path(data_dir) / QUARANTINE_DIR)


def list_ping_files(directory: str | Path) -> list[str]:
    """Return the names of the regular files directly inside *directory*.

    Subdirectories are skipped and never recursed into.  Names are sorted so
    that one pass visits files in a stable order.

    Raises
    ------
    PingStorageError
        If the directory cannot be listed.
    """
    names: list[str] = []
    try:
        with os.scandir(directory) as entries:
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    logger.debug("Skipping subdirectory %s", entry.name)
                    continue
                names.append(entry.name)
    except OSError as exc:
        raise PingStorageError(
            f"Error while enumerating files in ping directory {directory}: {exc}",
            context={"directory": str(directory)},
        ) from exc
    return sorted(names)
