"""Read-only queries consumed by polling terminals and dashboards."""

from dataclasses import dataclass

from notary_workflow.domain.errors import NotFoundError
from notary_workflow.domain.sessions import Session, SessionStatus, Transaction
from notary_workflow.services.store import SessionStore


@dataclass(frozen=True)
class PollingHints:
    """Suggested polling intervals in seconds."""

    session_interval_seconds: float
    queue_interval_seconds: float


@dataclass
class QueryService:
    """Query surface over the session store."""

    store: SessionStore
    session_poll_interval_seconds: float = 2.0
    queue_poll_interval_seconds: float = 5.0

    def get_session(self, session_id: int) -> Session:
        """Return a session or raise NotFoundError."""
        session = self.store.get(session_id)
        if session is None:
            raise NotFoundError(f"Session {session_id} not found")
        return session

    def get_transaction(self, transaction_id: int) -> Transaction:
        """Return a transaction or raise NotFoundError."""
        transaction = self.store.get_transaction(transaction_id)
        if transaction is None:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        return transaction

    def find_by_voucher(self, voucher_code: str) -> Session:
        """Return the session a client holds a voucher for."""
        session = self.store.get_by_voucher(voucher_code)
        if session is None:
            raise NotFoundError(f"Voucher {voucher_code} not found")
        return session

    def list_by_status(self, status: SessionStatus) -> list[Session]:
        """Return sessions currently in a status."""
        return self.store.list_by_status(status)

    def certifier_queue(self) -> list[Session]:
        """Return sessions waiting for a certifier, oldest first."""
        return self.store.list_by_status(SessionStatus.PENDING_CERTIFIER)

    def recent_sessions(self, limit: int = 20) -> list[Session]:
        """Return the most recent sessions."""
        return self.store.list_sessions(limit)

    def polling_hints(self) -> PollingHints:
        """Return the configured polling intervals."""
        return PollingHints(
            session_interval_seconds=self.session_poll_interval_seconds,
            queue_interval_seconds=self.queue_poll_interval_seconds,
        )
