"""Session store: the authoritative record of sessions and transactions."""

import secrets
import string
import threading
from dataclasses import dataclass, field, fields, replace
from datetime import UTC, datetime
from typing import Protocol

from notary_workflow.domain.errors import (
    InvalidInputError,
    InvalidTransitionError,
    NotFoundError,
)
from notary_workflow.domain.sessions import (
    ServiceType,
    Session,
    SessionStatus,
    Transaction,
    TransactionStatus,
)
from notary_workflow.domain.templates import placeholder_document, price_for_template

VOUCHER_ALPHABET = string.ascii_uppercase + string.digits
VOUCHER_LENGTH = 8

IMMUTABLE_SESSION_FIELDS = frozenset(
    {"id", "transaction_id", "voucher_code", "created_at", "updated_at"}
)
_SESSION_FIELDS = frozenset(item.name for item in fields(Session))


def generate_voucher_code(length: int = VOUCHER_LENGTH) -> str:
    """Return a random uppercase alphanumeric voucher code."""
    return "".join(secrets.choice(VOUCHER_ALPHABET) for _ in range(length))


def validate_update_fields(fields_to_update: dict[str, object]) -> None:
    """Reject updates to unknown or immutable session fields."""
    unknown = set(fields_to_update) - _SESSION_FIELDS
    if unknown:
        raise InvalidInputError(f"Unknown session fields: {sorted(unknown)}")
    frozen = set(fields_to_update) & IMMUTABLE_SESSION_FIELDS
    if frozen:
        raise InvalidInputError(f"Session fields are immutable: {sorted(frozen)}")


def ensure_pending(transaction: Transaction) -> None:
    """Reject payment events for a transaction that is already closed."""
    if transaction.status is not TransactionStatus.PENDING:
        raise InvalidTransitionError(
            f"Transaction {transaction.id} is already {transaction.status.value}",
            current=transaction.status.value,
            expected=TransactionStatus.PENDING.value,
        )


def check_payment_matches(
    transaction: Transaction, template_name: str, service_type: ServiceType
) -> None:
    """Reject a payment whose service differs from the one that was priced."""
    price_for_template(template_name)
    if template_name != transaction.template_name:
        raise InvalidInputError(
            f"Payment template {template_name!r} does not match transaction "
            f"{transaction.id} ({transaction.template_name!r})"
        )
    if service_type is not transaction.service_type:
        raise InvalidInputError(
            f"Payment service type {service_type.value!r} does not match "
            f"transaction {transaction.id} ({transaction.service_type.value!r})"
        )


class SessionStore(Protocol):
    """Persistence interface for sessions and their transactions."""

    def create_transaction(
        self, template_name: str, service_type: ServiceType
    ) -> Transaction:
        """Create a pending transaction for a selected service."""

    def complete_transaction(
        self,
        transaction_id: int,
        client_name: str,
        client_email: str,
        template_name: str,
        service_type: ServiceType,
    ) -> Session:
        """Mark a transaction paid and open its session."""

    def fail_transaction(self, transaction_id: int) -> Transaction:
        """Mark a pending transaction as failed."""

    def get_transaction(self, transaction_id: int) -> Transaction | None:
        """Return a transaction by id, if present."""

    def get(self, session_id: int) -> Session | None:
        """Return a session by id, if present."""

    def get_by_voucher(self, voucher_code: str) -> Session | None:
        """Return the session for a voucher code, if present."""

    def list_by_status(self, status: SessionStatus) -> list[Session]:
        """Return sessions in a status, in creation order."""

    def list_sessions(self, limit: int) -> list[Session]:
        """Return the most recent sessions first."""

    def apply_update(
        self,
        session_id: int,
        fields_to_update: dict[str, object],
        expected_status: SessionStatus | None = None,
    ) -> Session:
        """Merge fields into a session and return the new snapshot."""


@dataclass
class InMemorySessionStore(SessionStore):
    """Process-lifetime store backed by dictionaries."""

    transactions: dict[int, Transaction] = field(default_factory=dict)
    sessions: dict[int, Session] = field(default_factory=dict)
    _next_transaction_id: int = field(default=1, init=False)
    _next_session_id: int = field(default=1, init=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    def create_transaction(
        self, template_name: str, service_type: ServiceType
    ) -> Transaction:
        """Create a pending transaction priced from the template table."""
        amount = price_for_template(template_name)
        with self._lock:
            transaction = Transaction(
                id=self._next_transaction_id,
                voucher_code=self._unused_voucher_code(),
                amount=amount,
                template_name=template_name,
                service_type=service_type,
                status=TransactionStatus.PENDING,
                created_at=datetime.now(tz=UTC),
            )
            self._next_transaction_id += 1
            self.transactions[transaction.id] = transaction
        return transaction

    def complete_transaction(
        self,
        transaction_id: int,
        client_name: str,
        client_email: str,
        template_name: str,
        service_type: ServiceType,
    ) -> Session:
        """Mark the transaction completed and create its session."""
        with self._lock:
            transaction = self._pending_transaction(transaction_id)
            check_payment_matches(transaction, template_name, service_type)
            self.transactions[transaction_id] = replace(
                transaction, status=TransactionStatus.COMPLETED
            )
            now = datetime.now(tz=UTC)
            session = Session(
                id=self._next_session_id,
                transaction_id=transaction_id,
                voucher_code=transaction.voucher_code,
                service_type=service_type,
                status=SessionStatus.PENDING_CERTIFIER,
                client_name=client_name,
                client_email=client_email,
                template_name=template_name,
                created_at=now,
                updated_at=now,
                document_content=placeholder_document(template_name),
            )
            self._next_session_id += 1
            self.sessions[session.id] = session
        return session

    def fail_transaction(self, transaction_id: int) -> Transaction:
        """Mark a pending transaction failed."""
        with self._lock:
            transaction = replace(
                self._pending_transaction(transaction_id),
                status=TransactionStatus.FAILED,
            )
            self.transactions[transaction_id] = transaction
        return transaction

    def get_transaction(self, transaction_id: int) -> Transaction | None:
        """Return a transaction by id."""
        return self.transactions.get(transaction_id)

    def get(self, session_id: int) -> Session | None:
        """Return a session by id."""
        return self.sessions.get(session_id)

    def get_by_voucher(self, voucher_code: str) -> Session | None:
        """Return the session for a voucher code, ignoring case."""
        wanted = voucher_code.strip().upper()
        for session in list(self.sessions.values()):
            if session.voucher_code == wanted:
                return session
        return None

    def list_by_status(self, status: SessionStatus) -> list[Session]:
        """Return sessions in a status in insertion order."""
        return [
            session
            for session in list(self.sessions.values())
            if session.status is status
        ]

    def list_sessions(self, limit: int) -> list[Session]:
        """Return the newest sessions first."""
        return list(reversed(list(self.sessions.values())))[:limit]

    def apply_update(
        self,
        session_id: int,
        fields_to_update: dict[str, object],
        expected_status: SessionStatus | None = None,
    ) -> Session:
        """Replace the stored session with the merged snapshot."""
        validate_update_fields(fields_to_update)
        with self._lock:
            current = self.sessions.get(session_id)
            if current is None:
                raise NotFoundError(f"Session {session_id} not found")
            if expected_status is not None and current.status is not expected_status:
                raise InvalidTransitionError.for_session(
                    session_id, current.status, expected_status
                )
            updated = replace(
                current, **fields_to_update, updated_at=datetime.now(tz=UTC)
            )
            self.sessions[session_id] = updated
        return updated

    def _pending_transaction(self, transaction_id: int) -> Transaction:
        transaction = self.transactions.get(transaction_id)
        if transaction is None:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        ensure_pending(transaction)
        return transaction

    def _unused_voucher_code(self) -> str:
        used = {item.voucher_code for item in self.transactions.values()}
        code = generate_voucher_code()
        while code in used:
            code = generate_voucher_code()
        return code
