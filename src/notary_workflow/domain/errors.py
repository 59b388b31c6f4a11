"""Errors raised by workflow operations."""

from notary_workflow.domain.sessions import SessionStatus


class WorkflowError(Exception):
    """Base class for failures of a workflow operation."""

    kind = "workflow_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(WorkflowError):
    """Unknown transaction, session, voucher or certifier."""

    kind = "not_found"


class InvalidInputError(WorkflowError):
    """Request data the workflow cannot accept."""

    kind = "invalid_input"


class InvalidTransitionError(WorkflowError):
    """The record is not in the status the operation requires."""

    kind = "invalid_transition"

    def __init__(
        self, message: str, current: str | None = None, expected: str | None = None
    ) -> None:
        super().__init__(message)
        self.current = current
        self.expected = expected

    @classmethod
    def for_session(
        cls,
        session_id: int,
        current: SessionStatus,
        expected: SessionStatus | None = None,
    ) -> "InvalidTransitionError":
        """Build the error for a session whose status does not match."""
        if expected is None:
            message = f"Session {session_id} is already {current.value}"
        else:
            message = (
                f"Session {session_id} is {current.value}, expected {expected.value}"
            )
        return cls(
            message,
            current=current.value,
            expected=expected.value if expected else None,
        )
