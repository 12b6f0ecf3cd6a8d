"""Health check framework for pingqueue.

Reports whether the on-disk ping queue is in a state the uploader can make
progress on.

Shipped in this module
----------------------
- HealthStatus    — ordered enum: HEALTHY / DEGRADED / UNHEALTHY
- CheckResult     — result of a single named check
- HealthReport    — aggregate report from :class:`HealthCheck`
- HealthCheck     — registry and runner for named check functions
"""
from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from pingqueue.storage.scanner import PINGS_DIR, QUARANTINE_DIR, list_ping_files

logger = logging.getLogger(__name__)

DEFAULT_BACKLOG_THRESHOLD = 250


class HealthStatus(str, Enum):
    """Ordered health status values.

    HEALTHY   — all checks pass.
    DEGRADED  — the queue works but needs attention (backlog, quarantine).
    UNHEALTHY — the uploader cannot make progress.
    """

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class CheckResult:
    """Result of a single named health check."""

    name: str
    status: HealthStatus
    message: str = ""


@dataclass
class HealthReport:
    """Aggregate health report.

    Attributes
    ----------
    status:
        Overall status — the worst status across all individual checks.
    checks:
        Mapping from check name to its :class:`CheckResult`.
    timestamp:
        UTC time when the report was generated.
    """

    status: HealthStatus
    checks: dict[str, CheckResult] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))

    def is_healthy(self) -> bool:
        """Return ``True`` iff all checks are ``HEALTHY``."""
        return self.status is HealthStatus.HEALTHY

    def to_dict(self) -> dict[str, object]:
        """Serialise to a plain dict suitable for JSON encoding."""
        return {
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "checks": {
                name: {"status": result.status.value, "message": result.message}
                for name, result in self.checks.items()
            },
        }


_CheckFn = Callable[[], CheckResult]


class HealthCheck:
    """Registry and runner for named health check functions.

    Examples
    --------
    >>> hc = HealthCheck()
    >>> hc.register_check("always-ok", lambda: CheckResult("always-ok", HealthStatus.HEALTHY))
    >>> hc.run_checks().is_healthy()
    True
    """

    def __init__(self) -> None:
        self._checks: dict[str, _CheckFn] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_check(self, name: str, check_fn: _CheckFn) -> None:
        """Register a named zero-argument check returning a :class:`CheckResult`."""
        self._checks[name] = check_fn
        logger.debug("Registered health check %r.", name)

    def unregister_check(self, name: str) -> None:
        self._checks.pop(name, None)

    # ------------------------------------------------------------------
    # Built-in check factories
    # ------------------------------------------------------------------

    def register_pending_directory_check(
        self,
        data_dir: str | Path,
        backlog_threshold: int = DEFAULT_BACKLOG_THRESHOLD,
    ) -> None:
        """Register a check on the pending-pings directory.

        UNHEALTHY when the directory is missing, unlistable or not writable;
        DEGRADED when more than *backlog_threshold* files are waiting.

        Parameters
        ----------
        data_dir:
            Application data directory holding ``pending_pings/``.
        backlog_threshold:
            Pending-file count above which the queue is reported DEGRADED.
        """
        directory = Path(data_dir) / PINGS_DIR

        def _check() -> CheckResult:
            if not directory.is_dir():
                return CheckResult(
                    name="pending_directory",
                    status=HealthStatus.UNHEALTHY,
                    message=f"{directory} does not exist.",
                )
            if not os.access(directory, os.W_OK):
                return CheckResult(
                    name="pending_directory",
                    status=HealthStatus.UNHEALTHY,
                    message=f"{directory} is not writable; uploaded pings cannot be removed.",
                )
            try:
                backlog = len(list_ping_files(directory))
            except Exception as exc:
                return CheckResult(
                    name="pending_directory",
                    status=HealthStatus.UNHEALTHY,
                    message=f"Pending directory check failed: {exc}",
                )
            if backlog > backlog_threshold:
                return CheckResult(
                    name="pending_directory",
                    status=HealthStatus.DEGRADED,
                    message=f"{backlog} pending ping file(s) exceed threshold {backlog_threshold}.",
                )
            return CheckResult(
                name="pending_directory",
                status=HealthStatus.HEALTHY,
                message=f"{backlog} pending ping file(s).",
            )

        self.register_check("pending_directory", _check)

    def register_quarantine_check(self, data_dir: str | Path) -> None:
        """Register a check that reports DEGRADED while quarantined pings exist."""
        directory = Path(data_dir) / QUARANTINE_DIR

        def _check() -> CheckResult:
            if not directory.is_dir():
                return CheckResult(
                    name="quarantine",
                    status=HealthStatus.HEALTHY,
                    message="No quarantined ping files.",
                )
            count = len(list_ping_files(directory))
            status = HealthStatus.DEGRADED if count else HealthStatus.HEALTHY
            return CheckResult(
                name="quarantine",
                status=status,
                message=f"{count} quarantined ping file(s).",
            )

        self.register_check("quarantine", _check)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def run_checks(self) -> HealthReport:
        """Execute all registered health checks and return an aggregate report.

        Individual check exceptions are caught and recorded as UNHEALTHY
        results so that a single failing check never prevents others from
        running.
        """
        results: dict[str, CheckResult] = {}
        worst_status = HealthStatus.HEALTHY

        for name, check_fn in list(self._checks.items()):
            try:
                result = check_fn()
            except Exception as exc:
                logger.exception("Health check %r raised an exception.", name)
                result = CheckResult(
                    name=name,
                    status=HealthStatus.UNHEALTHY,
                    message=f"Check raised: {exc}",
                )

            results[name] = result

            if result.status is HealthStatus.UNHEALTHY:
                worst_status = HealthStatus.UNHEALTHY
            elif (
                result.status is HealthStatus.DEGRADED
                and worst_status is HealthStatus.HEALTHY
            ):
                worst_status = HealthStatus.DEGRADED

        return HealthReport(status=worst_status, checks=results)

    def __repr__(self) -> str:
        return f"HealthCheck(checks={sorted(self._checks)})"
