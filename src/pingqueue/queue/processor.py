"""Queue processor: one upload pass over the pending-pings directory.

The processor is invoked by an external scheduler (timer, connectivity
change, application start).  Each invocation lists the pending directory
once and drives every listed file through read → decode → upload → decide
→ delete.  Nothing raised while handling a file escapes :meth:`process`;
every failure ends as a per-file :class:`~pingqueue.queue.lifecycle.PingFileState`
and a log line.

Crash safety comes from ordering: a file is only removed after the server
has answered, so a pass interrupted at any point leaves every unfinished
ping in place for the next pass.

Shipped in this module
----------------------
- PassReport      — per-file outcomes of one pass
- QueueProcessor  — ``process()`` / ``run_pass()`` entry points
"""
from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from pingqueue.net.client import UploadClient
from pingqueue.net.policy import UploadDisposition, UploadPolicy
from pingqueue.queue.lifecycle import PingFileLifecycle, PingFileState, TransitionCallback
from pingqueue.schema.config import CorruptPingPolicy, UploaderConfig
from pingqueue.schema.errors import CorruptPingError, PingStorageError
from pingqueue.storage.codec import read_ping_file
from pingqueue.storage.scanner import (
    get_or_create_ping_directory,
    get_or_create_quarantine_directory,
    is_valid_ping_file_name,
    list_ping_files,
)

logger = logging.getLogger(__name__)

# Oldest quarantined files beyond this count are pruned.
MAX_QUARANTINED_FILES = 100


@dataclass
class PassReport:
    """Outcome of one processing pass.

    Attributes
    ----------
    outcomes:
        Mapping from file name to the state it ended the pass in.
    aborted:
        ``True`` when the pending directory could not be listed and no file
        was touched.
    started_at / finished_at:
        UTC timestamps bracketing the pass.
    """

    outcomes: dict[str, PingFileState] = field(default_factory=dict)
    aborted: bool = False
    started_at: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))
    finished_at: datetime | None = None

    def count(self, state: PingFileState) -> int:
        return sum(1 for outcome in self.outcomes.values() if outcome is state)

    def retained_files(self) -> list[str]:
        """Names of files still in the pending directory after the pass."""
        return sorted(name for name, state in self.outcomes.items() if state.is_retained)

    def to_dict(self) -> dict[str, object]:
        """Serialise to a plain dict suitable for JSON encoding."""
        return {
            "aborted": self.aborted,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "outcomes": {name: state.value for name, state in sorted(self.outcomes.items())},
        }


class QueueProcessor:
    """Discover, upload and dispose of pending ping files.

    Parameters
    ----------
    config:
        Uploader configuration.  Read once per instance; build a new
        processor to pick up new settings.
    client:
        Upload client.  When omitted, one is created (with the default
        httpx transport) and closed by :meth:`close`.
    policy:
        Disposition policy.  Defaults to :class:`UploadPolicy`.
    on_transition:
        Optional callback receiving ``(file_name, from_state, to_state)``
        whenever a file reaches its final state for the pass.

    Examples
    --------
    ::

        with QueueProcessor(UploaderConfig(data_dir="/var/lib/app")) as processor:
            processor.process()
    """

    def __init__(
        self,
        config: UploaderConfig,
        client: UploadClient | None = None,
        *,
        policy: UploadPolicy | None = None,
        on_transition: TransitionCallback | None = None,
    ) -> None:
        self._config = config
        self._owns_client = client is None
        self._client = client if client is not None else UploadClient(config)
        self._policy = policy if policy is not None else UploadPolicy()
        self._on_transition = on_transition

    @property
    def pending_directory(self) -> Path:
        """The pending-pings directory, created on first access."""
        return get_or_create_ping_directory(self._config.data_dir)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def process(self) -> None:
        """Run one upload pass over every pending ping file.

        Outcomes are observable only through logs and the filesystem.
        """
        self.run_pass()

    def run_pass(self) -> PassReport:
        """Run one upload pass and return the per-file outcomes."""
        report = PassReport()
        directory = self.pending_directory

        try:
            names = list_ping_files(directory)
        except PingStorageError as exc:
            logger.error("%s", exc)
            report.aborted = True
            report.finished_at = datetime.now(tz=timezone.utc)
            return report

        if self._config.max_workers > 1 and len(names) > 1:
            with ThreadPoolExecutor(
                max_workers=self._config.max_workers,
                thread_name_prefix="pingqueue-upload",
            ) as pool:
                states = list(pool.map(lambda n: self._process_entry(directory, n), names))
            report.outcomes = dict(zip(names, states))
        else:
            for name in names:
                report.outcomes[name] = self._process_entry(directory, name)

        report.finished_at = datetime.now(tz=timezone.utc)
        logger.info(
            "Ping pass finished: %d uploaded, %d discarded, %d retained, %d removed as foreign",
            report.count(PingFileState.DELETED_SUCCESS),
            report.count(PingFileState.DELETED_CLIENT_ERROR)
            + report.count(PingFileState.DELETED_CORRUPT)
            + report.count(PingFileState.QUARANTINED_CORRUPT),
            len(report.retained_files()),
            report.count(PingFileState.DELETED_MALFORMED_NAME),
        )
        return report

    # ------------------------------------------------------------------
    # Per-file chain
    # ------------------------------------------------------------------

    def _process_entry(self, directory: Path, name: str) -> PingFileState:
        lifecycle = PingFileLifecycle(name, self._on_transition)
        try:
            state = self._process_file(directory / name)
        except Exception:  # noqa: BLE001
            logger.exception("Unexpected error processing ping file %s", name)
            state = PingFileState.RETAINED_TRANSIENT_FAILURE
        lifecycle.transition_to(state)
        return state

    def _process_file(self, file_path: Path) -> PingFileState:
        name = file_path.name

        if not is_valid_ping_file_name(name):
            logger.debug("Pattern mismatch. Deleting %s", name)
            if self._remove(file_path):
                return PingFileState.DELETED_MALFORMED_NAME
            return PingFileState.RETAINED_READ_OR_DECODE_FAILURE

        logger.debug("Processing ping: %s", name)
        try:
            payload = read_ping_file(file_path, strict=self._config.strict_line_count)
        except FileNotFoundError:
            logger.debug("Ping file %s disappeared before processing", name)
            return PingFileState.VANISHED
        except CorruptPingError as exc:
            logger.error("Error while processing ping file: %s: %s", name, exc)
            return self._dispose_corrupt(file_path)
        except PingStorageError as exc:
            logger.error("Error while processing ping file: %s: %s", name, exc)
            return PingFileState.RETAINED_READ_OR_DECODE_FAILURE

        result = self._client.upload(payload.path, payload.body)
        action = self._policy.decide(result.disposition)

        if not action.should_delete_file:
            logger.log(
                action.log_level,
                "Error processing ping file: %s (%s): %s",
                name,
                action.reason,
                result.error,
            )
            return PingFileState.RETAINED_TRANSIENT_FAILURE

        if result.error is not None:
            logger.log(action.log_level, "Ping %s %s: %s", name, action.reason, result.error)
        else:
            logger.log(action.log_level, "Ping %s %s", name, action.reason)

        if not self._remove(file_path):
            return PingFileState.RETAINED_TRANSIENT_FAILURE
        if result.disposition is UploadDisposition.SUCCESS:
            return PingFileState.DELETED_SUCCESS
        return PingFileState.DELETED_CLIENT_ERROR

    def _dispose_corrupt(self, file_path: Path) -> PingFileState:
        policy = self._config.corrupt_ping_policy

        if policy is CorruptPingPolicy.RETAIN:
            return PingFileState.RETAINED_READ_OR_DECODE_FAILURE

        if policy is CorruptPingPolicy.DELETE:
            if self._remove(file_path):
                return PingFileState.DELETED_CORRUPT
            return PingFileState.RETAINED_READ_OR_DECODE_FAILURE

        quarantine = get_or_create_quarantine_directory(self._config.data_dir)
        try:
            os.replace(file_path, quarantine / file_path.name)
        except OSError as exc:
            logger.error("Error quarantining ping file %s: %s", file_path.name, exc)
            return PingFileState.RETAINED_READ_OR_DECODE_FAILURE
        logger.warning("Quarantined corrupt ping file %s", file_path.name)
        self._prune_quarantine(quarantine)
        return PingFileState.QUARANTINED_CORRUPT

    @staticmethod
    def _prune_quarantine(quarantine: Path) -> None:
        try:
            entries = sorted(
                (p for p in quarantine.iterdir() if p.is_file()),
                key=lambda p: p.stat().st_mtime,
            )
        except OSError as exc:
            logger.error("Error listing quarantine directory %s: %s", quarantine, exc)
            return
        for stale in entries[: max(0, len(entries) - MAX_QUARANTINED_FILES)]:
            try:
                stale.unlink(missing_ok=True)
                logger.debug("Pruned quarantined ping file %s", stale.name)
            except OSError as exc:
                logger.error("Error pruning quarantined ping file %s: %s", stale.name, exc)

    @staticmethod
    def _remove(file_path: Path) -> bool:
        try:
            file_path.unlink(missing_ok=True)
        except OSError as exc:
            logger.error("Error deleting ping file: %s: %s", file_path.name, exc)
            return False
        return True

    # ------------------------------------------------------------------
    # Resource management
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the upload client if this processor created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "QueueProcessor":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"QueueProcessor(data_dir={str(self._config.data_dir)!r}, "
            f"max_workers={self._config.max_workers})"
        )
