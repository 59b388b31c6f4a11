"""Domain models for notarization sessions and their transactions."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum


class ServiceType(Enum):
    """Notarization variant chosen at the terminal."""

    ASSISTED_IN_PERSON = "ren"
    FULLY_REMOTE = "ron"


class TransactionStatus(Enum):
    """Payment state of a transaction."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class SessionStatus(Enum):
    """Lifecycle states of a notarization session."""

    PENDING_CERTIFIER = "pending_certifier"
    ACTIVE_CALL = "active_call"
    CLIENT_APPROVAL = "client_approval"
    PENDING_CLIENT_PACKAGE = "pending_client_package"
    PENDING_FEA_SIGNATURE = "pending_fea_signature"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Return true once no further transition is possible."""
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({SessionStatus.COMPLETED, SessionStatus.FAILED})

# Happy-path edges; any non-terminal status may additionally move to FAILED.
TRANSITIONS: dict[SessionStatus, SessionStatus] = {
    SessionStatus.PENDING_CERTIFIER: SessionStatus.ACTIVE_CALL,
    SessionStatus.ACTIVE_CALL: SessionStatus.CLIENT_APPROVAL,
    SessionStatus.CLIENT_APPROVAL: SessionStatus.PENDING_CLIENT_PACKAGE,
    SessionStatus.PENDING_CLIENT_PACKAGE: SessionStatus.PENDING_FEA_SIGNATURE,
    SessionStatus.PENDING_FEA_SIGNATURE: SessionStatus.COMPLETED,
}


def is_allowed_transition(current: SessionStatus, target: SessionStatus) -> bool:
    """Return true when ``current -> target`` is an edge of the state machine."""
    if current.is_terminal:
        return False
    if target is SessionStatus.FAILED:
        return True
    return TRANSITIONS.get(current) is target


@dataclass(frozen=True)
class Transaction:
    """Payment record created when a client selects a service."""

    id: int
    voucher_code: str
    amount: Decimal
    template_name: str
    service_type: ServiceType
    status: TransactionStatus
    created_at: datetime


@dataclass(frozen=True)
class Session:
    """Snapshot of a notarization session."""

    id: int
    transaction_id: int
    voucher_code: str
    service_type: ServiceType
    status: SessionStatus
    client_name: str
    client_email: str
    template_name: str
    created_at: datetime
    updated_at: datetime
    certifier_id: int | None = None
    certifier_name: str | None = None
    call_token: str | None = None
    document_content: str | None = None
    client_signature: str | None = None
    final_document_url: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class ClientNotification:
    """Request to deliver the certified document to the client."""

    client_email: str
    voucher_code: str
    document_url: str
