"""Billing batch run state machine with transition validation."""

from __future__ import annotations

from enum import Enum


class BatchRunStatus(str, Enum):
    """Batch run status values."""

    VALIDATING = "validating"
    FETCHING = "fetching"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class BatchStateMachine:
    """State machine for one billing batch run.

    Allowed transitions:
    - validating → fetching
    - validating → failed (invalid period or run lock unavailable)
    - fetching → processing
    - fetching → failed (directory unavailable)
    - processing → completed
    - processing → failed (ledger or schedule store unavailable)

    A failed run is retried wholesale from validating, as a new run.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        BatchRunStatus.VALIDATING: [BatchRunStatus.FETCHING, BatchRunStatus.FAILED],
        BatchRunStatus.FETCHING: [BatchRunStatus.PROCESSING, BatchRunStatus.FAILED],
        BatchRunStatus.PROCESSING: [BatchRunStatus.COMPLETED, BatchRunStatus.FAILED],
        BatchRunStatus.COMPLETED: [],  # Terminal state
        BatchRunStatus.FAILED: [],  # Terminal state
    }

    TERMINAL = {BatchRunStatus.COMPLETED, BatchRunStatus.FAILED}

    def __init__(self) -> None:
        self.status = BatchRunStatus.VALIDATING
        self.history: list[BatchRunStatus] = [self.status]

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return status in cls.TERMINAL

    def advance(self, to_status: BatchRunStatus) -> None:
        """Move the run to to_status, raising on an illegal transition."""
        self.validate_transition(self.status, to_status)
        self.status = to_status
        self.history.append(to_status)
