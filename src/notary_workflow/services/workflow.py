"""Session state machine for the hybrid notarization workflow."""

import logging
import secrets
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from notary_workflow.adapters.notification_client import Notifier
from notary_workflow.domain.errors import (
    InvalidInputError,
    InvalidTransitionError,
    NotFoundError,
)
from notary_workflow.domain.sessions import (
    TRANSITIONS,
    ClientNotification,
    ServiceType,
    Session,
    SessionStatus,
    Transaction,
)
from notary_workflow.services.locks import SessionLocks
from notary_workflow.services.roster import CertifierRoster
from notary_workflow.services.store import SessionStore

_logger = logging.getLogger(__name__)


@dataclass
class WorkflowEngine:
    """Validates and applies session transitions against the store.

    Every transition runs under the session's lock: it reads the current
    snapshot, checks the exact precondition status, writes the update
    conditionally on that status and returns the new snapshot.
    """

    store: SessionStore
    roster: CertifierRoster
    notifier: Notifier
    locks: SessionLocks = field(default_factory=SessionLocks)
    docs_base_path: str = "/docs"

    def start_transaction(
        self, template_name: str, service_type: ServiceType
    ) -> Transaction:
        """Open a pending transaction for the selected service."""
        transaction = self.store.create_transaction(template_name, service_type)
        _logger.info(
            "Transaction created: id=%s template=%s amount=%s",
            transaction.id,
            template_name,
            transaction.amount,
        )
        return transaction

    def confirm_payment(
        self,
        transaction_id: int,
        client_name: str,
        client_email: str,
        template_name: str,
        service_type: ServiceType,
    ) -> Session:
        """Record a successful payment and open the session in the queue.

        An unknown transaction is reported before any problem with the
        client details.
        """
        if self.store.get_transaction(transaction_id) is None:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        name = client_name.strip()
        email = client_email.strip()
        if not name:
            raise InvalidInputError("Client name is required")
        if "@" not in email:
            raise InvalidInputError(f"Invalid client email: {client_email!r}")
        session = self.store.complete_transaction(
            transaction_id,
            client_name=name,
            client_email=email,
            template_name=template_name,
            service_type=service_type,
        )
        _logger.info(
            "Payment confirmed: transaction=%s session=%s voucher=%s",
            transaction_id,
            session.id,
            session.voucher_code,
        )
        return session

    def reject_payment(self, transaction_id: int) -> Transaction:
        """Record a failed payment; no session is created."""
        transaction = self.store.fail_transaction(transaction_id)
        _logger.info("Payment failed: transaction=%s", transaction_id)
        return transaction

    async def accept_session(self, session_id: int, certifier_id: int) -> Session:
        """Assign a queued session to a certifier and open the call."""
        certifier = self.roster.get(certifier_id)
        async with self.locks.hold(session_id):
            session = self._require(session_id, SessionStatus.PENDING_CERTIFIER)
            return self._advance(
                session,
                {
                    "certifier_id": certifier.id,
                    "certifier_name": certifier.name,
                    "call_token": _issue_call_token(session_id),
                },
            )

    async def send_document_for_review(self, session_id: int, content: str) -> Session:
        """Replace the document text and hand it to the client for review."""
        if not content.strip():
            raise InvalidInputError("Document content is required")
        async with self.locks.hold(session_id):
            session = self._require(session_id, SessionStatus.ACTIVE_CALL)
            return self._advance(session, {"document_content": content})

    async def approve_document(self, session_id: int) -> Session:
        """Record the client's approval of the document."""
        async with self.locks.hold(session_id):
            session = self._require(session_id, SessionStatus.CLIENT_APPROVAL)
            return self._advance(session, {})

    async def submit_client_package(self, session_id: int, signature: str) -> Session:
        """Store the client's signature and wait for the certifier's FEA."""
        if not signature:
            raise InvalidInputError("Client signature is required")
        async with self.locks.hold(session_id):
            session = self._require(session_id, SessionStatus.PENDING_CLIENT_PACKAGE)
            return self._advance(session, {"client_signature": signature})

    async def finalize_session(self, session_id: int) -> Session:
        """Complete the session and request delivery to the client."""
        async with self.locks.hold(session_id):
            session = self._require(session_id, SessionStatus.PENDING_FEA_SIGNATURE)
            completed = self._advance(
                session,
                {"final_document_url": self.final_document_url(session.voucher_code)},
            )
        notification = ClientNotification(
            client_email=completed.client_email,
            voucher_code=completed.voucher_code,
            document_url=completed.final_document_url or "",
        )
        try:
            await self.notifier.notify_client(notification)
        except Exception:
            _logger.exception(
                "Failed to notify client",
                extra={"session_id": session_id, "voucher": completed.voucher_code},
            )
        return completed

    async def fail_session(self, session_id: int, reason: str) -> Session:
        """Move a non-terminal session to FAILED."""
        async with self.locks.hold(session_id):
            session = self._get(session_id)
            if session.status.is_terminal:
                raise InvalidTransitionError.for_session(session_id, session.status)
            updated = self.store.apply_update(
                session_id,
                {"status": SessionStatus.FAILED, "failure_reason": reason},
                expected_status=session.status,
            )
        _logger.info(
            "Session failed: id=%s from=%s reason=%s",
            session_id,
            session.status.value,
            reason,
        )
        return updated

    async def expire_stale_sessions(
        self, max_age_seconds: float, now: datetime | None = None
    ) -> list[Session]:
        """Fail non-terminal sessions untouched for longer than the limit."""
        cutoff = (now or datetime.now(tz=UTC)) - timedelta(seconds=max_age_seconds)
        expired: list[Session] = []
        for status in TRANSITIONS:
            for candidate in self.store.list_by_status(status):
                if candidate.updated_at >= cutoff:
                    continue
                async with self.locks.hold(candidate.id):
                    session = self.store.get(candidate.id)
                    if (
                        session is None
                        or session.status.is_terminal
                        or session.updated_at >= cutoff
                    ):
                        continue
                    expired.append(
                        self.store.apply_update(
                            session.id,
                            {
                                "status": SessionStatus.FAILED,
                                "failure_reason": "expired",
                            },
                            expected_status=session.status,
                        )
                    )
        if expired:
            _logger.info(
                "Expired stale sessions: %s", [session.id for session in expired]
            )
        return expired

    def final_document_url(self, voucher_code: str) -> str:
        """Return the location of the certified document for a voucher."""
        return f"{self.docs_base_path.rstrip('/')}/certified-{voucher_code}.pdf"

    def _get(self, session_id: int) -> Session:
        session = self.store.get(session_id)
        if session is None:
            raise NotFoundError(f"Session {session_id} not found")
        return session

    def _require(self, session_id: int, expected: SessionStatus) -> Session:
        session = self._get(session_id)
        if session.status is not expected:
            raise InvalidTransitionError.for_session(
                session_id, session.status, expected
            )
        return session

    def _advance(self, session: Session, updates: dict[str, object]) -> Session:
        target = TRANSITIONS[session.status]
        updated = self.store.apply_update(
            session.id,
            {**updates, "status": target},
            expected_status=session.status,
        )
        _logger.info(
            "Session transition: id=%s %s -> %s",
            session.id,
            session.status.value,
            target.value,
        )
        return updated


def _issue_call_token(session_id: int) -> str:
    """Return an opaque token for the session's video call."""
    return f"call_{session_id}_{secrets.token_hex(8)}"
