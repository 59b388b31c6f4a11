"""Supabase-backed session store."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from supabase import Client

from notary_workflow.domain.errors import InvalidTransitionError, NotFoundError
from notary_workflow.domain.sessions import (
    ServiceType,
    Session,
    SessionStatus,
    Transaction,
    TransactionStatus,
)
from notary_workflow.domain.templates import placeholder_document, price_for_template
from notary_workflow.services.store import (
    SessionStore,
    check_payment_matches,
    ensure_pending,
    generate_voucher_code,
    validate_update_fields,
)

_logger = logging.getLogger(__name__)

_TRANSACTIONS = "notary_transactions"
_SESSIONS = "notary_sessions"
_TRANSACTION_COLUMNS = (
    "id, voucher_code, amount, template_name, service_type, status, created_at"
)
_SESSION_COLUMNS = (
    "id, transaction_id, voucher_code, service_type, status, client_name, "
    "client_email, template_name, certifier_id, certifier_name, call_token, "
    "document_content, client_signature, final_document_url, failure_reason, "
    "created_at, updated_at"
)


@dataclass
class SupabaseSessionStore(SessionStore):
    """Supabase implementation of the session store.

    Status changes are written with a status filter, so a transition only
    lands if the row still holds the status the caller validated against.
    """

    client: Client

    def create_transaction(
        self, template_name: str, service_type: ServiceType
    ) -> Transaction:
        """Insert a pending transaction row and return it."""
        amount = price_for_template(template_name)
        response = (
            self.client.table(_TRANSACTIONS)
            .insert(
                {
                    "voucher_code": generate_voucher_code(),
                    "amount": str(amount),
                    "template_name": template_name,
                    "service_type": service_type.value,
                    "status": TransactionStatus.PENDING.value,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create transaction")
        return _transaction_from_row(response.data[0])

    def complete_transaction(
        self,
        transaction_id: int,
        client_name: str,
        client_email: str,
        template_name: str,
        service_type: ServiceType,
    ) -> Session:
        """Mark the transaction completed and insert its session row.

        The transaction is reopened if the session row cannot be written, so
        the payment event can be replayed.
        """
        recorded = self.get_transaction(transaction_id)
        if recorded is None:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        ensure_pending(recorded)
        check_payment_matches(recorded, template_name, service_type)
        transaction = self._close_transaction(
            transaction_id, TransactionStatus.COMPLETED
        )
        try:
            response = (
                self.client.table(_SESSIONS)
                .insert(
                    {
                        "transaction_id": transaction.id,
                        "voucher_code": transaction.voucher_code,
                        "service_type": service_type.value,
                        "status": SessionStatus.PENDING_CERTIFIER.value,
                        "client_name": client_name,
                        "client_email": client_email,
                        "template_name": template_name,
                        "document_content": placeholder_document(template_name),
                    }
                )
                .execute()
            )
        except Exception:
            self._reopen_transaction(transaction.id)
            raise
        if not response.data:
            self._reopen_transaction(transaction.id)
            raise RuntimeError("Failed to create session")
        return _session_from_row(response.data[0])

    def fail_transaction(self, transaction_id: int) -> Transaction:
        """Mark a pending transaction failed."""
        return self._close_transaction(transaction_id, TransactionStatus.FAILED)

    def get_transaction(self, transaction_id: int) -> Transaction | None:
        """Return a transaction by id, if present."""
        response = (
            self.client.table(_TRANSACTIONS)
            .select(_TRANSACTION_COLUMNS)
            .eq("id", transaction_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _transaction_from_row(response.data[0])

    def get(self, session_id: int) -> Session | None:
        """Return a session by id, if present."""
        response = (
            self.client.table(_SESSIONS)
            .select(_SESSION_COLUMNS)
            .eq("id", session_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _session_from_row(response.data[0])

    def get_by_voucher(self, voucher_code: str) -> Session | None:
        """Return the session for a voucher code, if present."""
        response = (
            self.client.table(_SESSIONS)
            .select(_SESSION_COLUMNS)
            .eq("voucher_code", voucher_code.strip().upper())
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _session_from_row(response.data[0])

    def list_by_status(self, status: SessionStatus) -> list[Session]:
        """Return sessions in a status ordered by id."""
        response = (
            self.client.table(_SESSIONS)
            .select(_SESSION_COLUMNS)
            .eq("status", status.value)
            .order("id")
            .execute()
        )
        return [_session_from_row(row) for row in response.data or []]

    def list_sessions(self, limit: int) -> list[Session]:
        """Return the newest sessions first."""
        response = (
            self.client.table(_SESSIONS)
            .select(_SESSION_COLUMNS)
            .order("id", desc=True)
            .limit(limit)
            .execute()
        )
        return [_session_from_row(row) for row in response.data or []]

    def apply_update(
        self,
        session_id: int,
        fields_to_update: dict[str, object],
        expected_status: SessionStatus | None = None,
    ) -> Session:
        """Update a session row, conditionally on its current status."""
        validate_update_fields(fields_to_update)
        payload = {key: _to_column(value) for key, value in fields_to_update.items()}
        payload["updated_at"] = datetime.now(tz=UTC).isoformat()
        query = self.client.table(_SESSIONS).update(payload).eq("id", session_id)
        if expected_status is not None:
            query = query.eq("status", expected_status.value)
        response = query.execute()
        if response.data:
            return _session_from_row(response.data[0])
        current = self.get(session_id)
        if current is None:
            raise NotFoundError(f"Session {session_id} not found")
        raise InvalidTransitionError.for_session(
            session_id, current.status, expected_status
        )

    def _close_transaction(
        self, transaction_id: int, status: TransactionStatus
    ) -> Transaction:
        response = (
            self.client.table(_TRANSACTIONS)
            .update({"status": status.value})
            .eq("id", transaction_id)
            .eq("status", TransactionStatus.PENDING.value)
            .execute()
        )
        if response.data:
            return _transaction_from_row(response.data[0])
        current = self.get_transaction(transaction_id)
        if current is None:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        ensure_pending(current)
        raise InvalidTransitionError(
            f"Transaction {transaction_id} changed while closing",
            current=current.status.value,
            expected=TransactionStatus.PENDING.value,
        )

    def _reopen_transaction(self, transaction_id: int) -> None:
        _logger.warning(
            "Reopening transaction %s after failed session insert", transaction_id
        )
        (
            self.client.table(_TRANSACTIONS)
            .update({"status": TransactionStatus.PENDING.value})
            .eq("id", transaction_id)
            .eq("status", TransactionStatus.COMPLETED.value)
            .execute()
        )


def _to_column(value: object) -> object:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def _parse_timestamp(value: object) -> datetime:
    if isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(str(value))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _transaction_from_row(row: dict[str, object]) -> Transaction:
    return Transaction(
        id=int(row["id"]),
        voucher_code=str(row["voucher_code"]),
        amount=Decimal(str(row["amount"])),
        template_name=str(row["template_name"]),
        service_type=ServiceType(row["service_type"]),
        status=TransactionStatus(row["status"]),
        created_at=_parse_timestamp(row["created_at"]),
    )


def _session_from_row(row: dict[str, object]) -> Session:
    certifier_id = row.get("certifier_id")
    return Session(
        id=int(row["id"]),
        transaction_id=int(row["transaction_id"]),
        voucher_code=str(row["voucher_code"]),
        service_type=ServiceType(row["service_type"]),
        status=SessionStatus(row["status"]),
        client_name=str(row["client_name"]),
        client_email=str(row["client_email"]),
        template_name=str(row["template_name"]),
        created_at=_parse_timestamp(row["created_at"]),
        updated_at=_parse_timestamp(row["updated_at"]),
        certifier_id=int(certifier_id) if certifier_id is not None else None,
        certifier_name=row.get("certifier_name"),
        call_token=row.get("call_token"),
        document_content=row.get("document_content"),
        client_signature=row.get("client_signature"),
        final_document_url=row.get("final_document_url"),
        failure_reason=row.get("failure_reason"),
    )
