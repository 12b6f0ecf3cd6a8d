"""Ping file codec.

A ping file is UTF-8 text.  Line 1 is the URL path suffix the ping is
submitted to, line 2 is the serialized ping body.  Any further lines are
ignored unless strict decoding is requested.

Shipped in this module
----------------------
- PingPayload      — decoded (path, body) pair
- decode_ping_file — text -> PingPayload, raises CorruptPingError
- encode_ping_file — PingPayload fields -> text
- read_ping_file   — read + decode one file from disk
- write_ping_file  — atomically write a new ping under a fresh UUID name
"""
from __future__ import annotations

import logging
import os
import tempfile
import uuid
from dataclasses import dataclass
from pathlib import Path

from pingqueue.schema.errors import CorruptPingError, ErrorSeverity, PingStorageError

logger = logging.getLogger(__name__)

_LINE_BREAKS = ("\n", "\r")


@dataclass(frozen=True)
class PingPayload:
    """A decoded ping file.

    Attributes
    ----------
    path:
        URL path suffix appended to the server endpoint.
    body:
        Serialized ping body, sent verbatim.
    """

    path: str
    body: str


def _split_lines(content: str) -> list[str]:
    # Only CR/LF count as line breaks; bodies may legitimately carry U+2028.
    normalised = content.replace("\r\n", "\n").replace("\r", "\n")
    return normalised.split("\n")


def decode_ping_file(content: str, *, strict: bool = False) -> PingPayload:
    """Parse ping file *content* into a :class:`PingPayload`.

    Parameters
    ----------
    content:
        Full text of the ping file.
    strict:
        When ``True``, content with more than two lines is rejected instead
        of having the extra lines ignored.  A single trailing line break,
        as written by :func:`encode_ping_file`, is still accepted.

    Raises
    ------
    CorruptPingError
        If fewer than two lines are present, or more than two in strict mode.

    Examples
    --------
    >>> decode_ping_file('/submit/app/metric/1\\n{"ping":true}')
    PingPayload(path='/submit/app/metric/1', body='{"ping":true}')
    """
    lines = _split_lines(content)
    if len(lines) < 2:
        raise CorruptPingError(
            "File corrupted: expected at least 2 lines",
            severity=ErrorSeverity.MEDIUM,
            context={"line_count": len(lines)},
        )
    if strict and len(lines) > 2 and lines[2:] != [""]:
        raise CorruptPingError(
            "File corrupted: expected exactly 2 lines",
            severity=ErrorSeverity.MEDIUM,
            context={"line_count": len(lines)},
        )
    return PingPayload(path=lines[0], body=lines[1])


def encode_ping_file(path: str, body: str) -> str:
    """Serialize a (path, body) pair into ping file text.

    Raises
    ------
    ValueError
        If either part contains a line break.
    """
    for label, value in (("path", path), ("body", body)):
        if any(brk in value for brk in _LINE_BREAKS):
            raise ValueError(f"Ping {label} must not contain line breaks")
    return f"{path}\n{body}\n"


def read_ping_file(file_path: str | Path, *, strict: bool = False) -> PingPayload:
    """Read and decode the ping file at *file_path*.

    Raises
    ------
    PingStorageError
        If the file cannot be read.
    CorruptPingError
        If the content is not valid UTF-8 or cannot be decoded.
    """
    resolved = Path(file_path)
    try:
        content = resolved.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except UnicodeDecodeError as exc:
        raise CorruptPingError(
            f"File corrupted: {resolved.name} is not valid UTF-8",
            severity=ErrorSeverity.MEDIUM,
            context={"file": resolved.name, "offset": exc.start},
        ) from exc
    except OSError as exc:
        raise PingStorageError(
            f"Could not read ping file {resolved.name}: {exc}",
            severity=ErrorSeverity.MEDIUM,
            context={"file": resolved.name},
        ) from exc
    return decode_ping_file(content, strict=strict)


def write_ping_file(
    directory: str | Path,
    path: str,
    body: str,
    *,
    document_id: str | None = None,
) -> Path:
    """Write a new ping into *directory* and return its file path.

    The content is written to a temporary file in the parent directory and
    then renamed into place, so a concurrent pass never observes a partial
    ping or mistakes the temporary file for a foreign one.

    Parameters
    ----------
    directory:
        The pending-pings directory.
    path:
        URL path suffix.
    body:
        Serialized ping body.
    document_id:
        File name to use; a fresh UUID4 when omitted.
    """
    target_dir = Path(directory)
    name = document_id or str(uuid.uuid4())
    text = encode_ping_file(path, body)

    try:
        fd, tmp_name = tempfile.mkstemp(dir=target_dir.parent, prefix=".tmp-", suffix=".ping")
    except OSError as exc:
        raise PingStorageError(
            f"Could not create ping file in {target_dir}: {exc}",
            context={"directory": str(target_dir)},
        ) from exc
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, target_dir / name)
    except OSError as exc:
        Path(tmp_name).unlink(missing_ok=True)
        raise PingStorageError(
            f"Could not write ping file {name}: {exc}",
            context={"file": name},
        ) from exc
    logger.debug("Wrote ping %s for %s", name, path)
    return target_dir / name
