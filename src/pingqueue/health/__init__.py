"""Health package for pingqueue."""
from __future__ import annotations

from pingqueue.health.check import CheckResult, HealthCheck, HealthReport, HealthStatus

__all__ = ["CheckResult", "HealthCheck", "HealthReport", "HealthStatus"]
