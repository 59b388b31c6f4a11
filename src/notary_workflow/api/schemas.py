"""Pydantic models for the workflow HTTP API."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from notary_workflow.domain.certifiers import Certifier
from notary_workflow.domain.sessions import (
    ServiceType,
    Session,
    SessionStatus,
    Transaction,
    TransactionStatus,
)


class TransactionRequest(BaseModel):
    """Service selection made at the terminal."""

    template_name: str
    service_type: ServiceType


class PaymentRequest(BaseModel):
    """Payment confirmation event from the payment terminal."""

    success: bool = True
    client_name: str = Field(min_length=1)
    client_email: str = Field(min_length=3)
    template_name: str
    service_type: ServiceType


class AcceptRequest(BaseModel):
    """Certifier taking a session from the queue."""

    certifier_id: int


class DocumentRequest(BaseModel):
    """Document text sent to the client for review."""

    content: str = Field(min_length=1)


class PackageRequest(BaseModel):
    """Client signature payload."""

    signature: str = Field(min_length=1)


class FailRequest(BaseModel):
    """Reason for abandoning a session."""

    reason: str = Field(min_length=1)


class ExpireRequest(BaseModel):
    """Manual run of the abandonment policy."""

    max_age_seconds: float | None = Field(default=None, gt=0)


class TransactionView(BaseModel):
    """Transaction as returned to clients."""

    id: int
    voucher_code: str
    amount: Decimal
    template_name: str
    service_type: ServiceType
    status: TransactionStatus
    created_at: datetime

    @classmethod
    def from_domain(cls, transaction: Transaction) -> "TransactionView":
        """Build the view from a domain transaction."""
        return cls(
            id=transaction.id,
            voucher_code=transaction.voucher_code,
            amount=transaction.amount,
            template_name=transaction.template_name,
            service_type=transaction.service_type,
            status=transaction.status,
            created_at=transaction.created_at,
        )


class SessionView(BaseModel):
    """Session snapshot as returned to terminals and dashboards."""

    id: int
    transaction_id: int
    voucher_code: str
    service_type: ServiceType
    status: SessionStatus
    client_name: str
    client_email: str
    template_name: str
    certifier_id: int | None = None
    certifier_name: str | None = None
    call_token: str | None = None
    document_content: str | None = None
    client_signature: str | None = None
    final_document_url: str | None = None
    failure_reason: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, session: Session) -> "SessionView":
        """Build the view from a domain session."""
        return cls(
            id=session.id,
            transaction_id=session.transaction_id,
            voucher_code=session.voucher_code,
            service_type=session.service_type,
            status=session.status,
            client_name=session.client_name,
            client_email=session.client_email,
            template_name=session.template_name,
            certifier_id=session.certifier_id,
            certifier_name=session.certifier_name,
            call_token=session.call_token,
            document_content=session.document_content,
            client_signature=session.client_signature,
            final_document_url=session.final_document_url,
            failure_reason=session.failure_reason,
            created_at=session.created_at,
            updated_at=session.updated_at,
        )


class PaymentResult(BaseModel):
    """Outcome of a payment event."""

    transaction: TransactionView
    session: SessionView | None = None


class CertifierView(BaseModel):
    """Roster entry."""

    id: int
    name: str

    @classmethod
    def from_domain(cls, certifier: Certifier) -> "CertifierView":
        """Build the view from a roster entry."""
        return cls(id=certifier.id, name=certifier.name)


class PollingView(BaseModel):
    """Polling intervals clients should use."""

    session_interval_seconds: float
    queue_interval_seconds: float
