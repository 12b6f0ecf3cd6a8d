"""Queue package for pingqueue.

Provides the queue processor that drives pending ping files to a terminal
state, and the per-file lifecycle it records outcomes with.
"""
from __future__ import annotations

from pingqueue.queue.lifecycle import PingFileLifecycle, PingFileState, StateTransitionError
from pingqueue.queue.processor import MAX_QUARANTINED_FILES, PassReport, QueueProcessor

__all__ = [
    "PingFileLifecycle",
    "PingFileState",
    "StateTransitionError",
    "PassReport",
    "QueueProcessor",
    "MAX_QUARANTINED_FILES",
]
