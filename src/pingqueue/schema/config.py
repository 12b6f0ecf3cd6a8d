"""Uploader configuration schema for pingqueue.

``UploaderConfig`` is a Pydantic v2 model that acts as the validated,
strongly-typed boundary object between raw configuration sources (YAML
files, environment variables, in-memory dicts) and the upload pipeline.
The model is frozen: one processing pass always sees a single, consistent
configuration.  File discovery and layering live in
:mod:`pingqueue.config.loader`.

Shipped in this module
----------------------
- CorruptPingPolicy — what the queue processor does with undecodable files
- UploaderConfig    — Pydantic v2 model
- env_overrides     — raw values from PINGQUEUE_* environment variables
"""
from __future__ import annotations

import os
import re
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from pingqueue import __version__

ENV_PREFIX = "PINGQUEUE_"
DEFAULT_SERVER_ENDPOINT = "https://incoming.telemetry.mozilla.org"

_DEBUG_TAG_PATTERN = re.compile(r"[A-Za-z0-9-]{1,20}")


class CorruptPingPolicy(str, Enum):
    """Disposition of a ping file whose content cannot be decoded.

    QUARANTINE — move the file to the quarantine directory (default).
    DELETE     — remove the file.
    RETAIN     — leave the file in the pending directory for the next pass.
    """

    QUARANTINE = "quarantine"
    DELETE = "delete"
    RETAIN = "retain"


def _default_data_dir() -> Path:
    return Path.home() / ".pingqueue"


class UploaderConfig(BaseModel):
    """Validated configuration for one ping upload pipeline.

    All fields have defaults so that an uploader can start with zero
    configuration.

    Parameters
    ----------
    server_endpoint:
        Base URL of the collection endpoint.  The ping's path suffix is
        appended verbatim; a trailing slash is stripped.
    user_agent:
        Value of the ``User-Agent`` request header.
    sdk_version:
        Value of the ``X-Client-Version`` request header.
    debug_tag:
        Optional ``X-Debug-ID`` header value, 1-20 of ``[A-Za-z0-9-]``.
    log_pings:
        Log each outbound path and body at DEBUG level before sending.
    data_dir:
        Application data directory holding ``pending_pings/``.
    corrupt_ping_policy:
        See :class:`CorruptPingPolicy`.
    strict_line_count:
        Treat a ping file with more than two lines as corrupt.
    max_workers:
        Number of ping files uploaded concurrently within one pass.
    """

    model_config = {"extra": "forbid", "frozen": True}

    server_endpoint: str = Field(default=DEFAULT_SERVER_ENDPOINT)
    user_agent: str = Field(default=f"pingqueue/{__version__}")
    sdk_version: str = Field(default=__version__)
    debug_tag: str | None = Field(default=None)
    log_pings: bool = Field(default=False)
    data_dir: Path = Field(default_factory=_default_data_dir)
    corrupt_ping_policy: CorruptPingPolicy = Field(default=CorruptPingPolicy.QUARANTINE)
    strict_line_count: bool = Field(default=False)
    max_workers: int = Field(default=1, ge=1)

    @model_validator(mode="before")
    @classmethod
    def _normalise_debug_tag(cls, values: Any) -> Any:  # noqa: ANN401
        """Treat an empty debug tag as unset."""
        if isinstance(values, dict) and values.get("debug_tag") == "":
            values = dict(values)
            values["debug_tag"] = None
        return values

    @field_validator("server_endpoint")
    @classmethod
    def _check_endpoint(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"server_endpoint must be an http(s) URL, got {value!r}")
        return value.rstrip("/")

    @field_validator("debug_tag")
    @classmethod
    def _check_debug_tag(cls, value: str | None) -> str | None:
        if value is not None and not _DEBUG_TAG_PATTERN.fullmatch(value):
            raise ValueError(
                f"debug_tag must be 1-20 characters of [A-Za-z0-9-], got {value!r}"
            )
        return value

    @field_validator("user_agent", "sdk_version")
    @classmethod
    def _check_header_value(cls, value: str) -> str:
        # Sent as HTTP header values, which httpx encodes as ASCII.
        if not (value.isascii() and value.isprintable()):
            raise ValueError(f"must be printable ASCII, got {value!r}")
        return value

    @field_validator("data_dir")
    @classmethod
    def _expand_data_dir(cls, value: Path) -> Path:
        return value.expanduser()

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX) -> "UploaderConfig":
        """Build configuration from environment variables only.

        See :func:`env_overrides` for the variable mapping.
        """
        return cls.model_validate(env_overrides(prefix))


_BOOL_FIELDS = frozenset({"log_pings", "strict_line_count"})


def env_overrides(prefix: str = ENV_PREFIX) -> dict[str, object]:
    """Collect raw configuration values from ``<prefix><FIELD>`` variables.

    ``PINGQUEUE_DEBUG_TAG=qa-run`` maps to ``{"debug_tag": "qa-run"}``.
    Variables that do not name a field are ignored.  Boolean fields accept
    ``true`` / ``1`` / ``yes`` (case-insensitive) as truthy and anything
    else as falsy, so an explicit ``false`` overrides a file value.
    """
    data: dict[str, object] = {}
    for raw_key, raw_value in os.environ.items():
        if not raw_key.startswith(prefix):
            continue
        key = raw_key[len(prefix):].lower()
        if key not in UploaderConfig.model_fields:
            continue
        if key in _BOOL_FIELDS:
            data[key] = raw_value.lower() in {"true", "1", "yes"}
        else:
            data[key] = raw_value
    return data
