"""Ping file lifecycle within one processing pass.

States
------
PENDING                          : Listed in the pending directory, not yet handled.
DELETED_SUCCESS                  : Accepted by the server; file removed.
DELETED_CLIENT_ERROR             : Rejected with a 4xx; file removed.
DELETED_MALFORMED_NAME           : Name is not a UUID; removed unparsed.
DELETED_CORRUPT                  : Undecodable; removed (``delete`` policy).
QUARANTINED_CORRUPT              : Undecodable; moved to quarantine.
RETAINED_TRANSIENT_FAILURE       : 5xx or no response; kept for the next pass.
RETAINED_READ_OR_DECODE_FAILURE  : Unreadable, or undecodable under the
                                   ``retain`` policy; kept for the next pass.
VANISHED                         : Removed by someone else after listing.

Valid transitions
-----------------
PENDING → every other state.  All other states are terminal for the pass;
a retained file starts again as PENDING on the next pass.
"""
from __future__ import annotations

import datetime
import logging
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)

TransitionCallback = Callable[[str, "PingFileState", "PingFileState"], None]
"""Callback signature: (file_name, from_state, to_state) → None."""


class PingFileState(str, Enum):
    """Per-pass states of one ping file."""

    PENDING = "pending"
    DELETED_SUCCESS = "deleted_success"
    DELETED_CLIENT_ERROR = "deleted_client_error"
    DELETED_MALFORMED_NAME = "deleted_malformed_name"
    DELETED_CORRUPT = "deleted_corrupt"
    QUARANTINED_CORRUPT = "quarantined_corrupt"
    RETAINED_TRANSIENT_FAILURE = "retained_transient_failure"
    RETAINED_READ_OR_DECODE_FAILURE = "retained_read_or_decode_failure"
    VANISHED = "vanished"

    @property
    def is_retained(self) -> bool:
        """True when the file is still in the pending directory afterwards."""
        return self in _RETAINED_STATES


class StateTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_state: PingFileState, to_state: PingFileState) -> None:
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Invalid transition: {from_state.value!r} → {to_state.value!r}"
        )


_RETAINED_STATES: frozenset[PingFileState] = frozenset({
    PingFileState.PENDING,
    PingFileState.RETAINED_TRANSIENT_FAILURE,
    PingFileState.RETAINED_READ_OR_DECODE_FAILURE,
})

_VALID_TRANSITIONS: dict[PingFileState, frozenset[PingFileState]] = {
    PingFileState.PENDING: frozenset(
        state for state in PingFileState if state is not PingFileState.PENDING
    ),
}


class PingFileLifecycle:
    """Track one ping file through a single processing pass.

    Parameters
    ----------
    file_name:
        Base name of the file in the pending directory.
    on_transition:
        Optional callback invoked after the file reaches its final state.
        Callback exceptions are logged and swallowed.

    Example
    -------
    ::

        lifecycle = PingFileLifecycle("123e4567-e89b-12d3-a456-426614174000")
        lifecycle.transition_to(PingFileState.DELETED_SUCCESS)
        lifecycle.is_terminal  # True
    """

    def __init__(
        self,
        file_name: str,
        on_transition: TransitionCallback | None = None,
    ) -> None:
        self._file_name = file_name
        self._state = PingFileState.PENDING
        self._callback = on_transition
        self._finished_at: datetime.datetime | None = None

    @property
    def file_name(self) -> str:
        return self._file_name

    @property
    def state(self) -> PingFileState:
        return self._state

    @property
    def is_terminal(self) -> bool:
        return self._state is not PingFileState.PENDING

    @property
    def finished_at(self) -> datetime.datetime | None:
        """UTC time at which the terminal state was reached."""
        return self._finished_at

    def can_transition_to(self, target: PingFileState) -> bool:
        return target in _VALID_TRANSITIONS.get(self._state, frozenset())

    def transition_to(self, new_state: PingFileState) -> None:
        """Move the file to *new_state*.

        Raises
        ------
        StateTransitionError
            If *new_state* is not reachable from the current state.
        """
        if not self.can_transition_to(new_state):
            raise StateTransitionError(self._state, new_state)

        previous = self._state
        self._state = new_state
        self._finished_at = datetime.datetime.now(datetime.timezone.utc)
        logger.debug("Ping %s: %s → %s", self._file_name, previous.value, new_state.value)

        if self._callback is not None:
            try:
                self._callback(self._file_name, previous, new_state)
            except Exception as exc:
                logger.warning(
                    "Transition callback raised for %s: %s", self._file_name, exc
                )

    def __repr__(self) -> str:
        return (
            f"PingFileLifecycle(file_name={self._file_name!r}, "
            f"state={self._state.value!r})"
        )


__all__ = [
    "PingFileLifecycle",
    "PingFileState",
    "StateTransitionError",
    "TransitionCallback",
]
