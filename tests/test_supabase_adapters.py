"""Tests for the Supabase session store."""

import pytest

from notary_workflow.adapters.supabase_session_store import SupabaseSessionStore
from notary_workflow.domain.errors import (
    InvalidInputError,
    InvalidTransitionError,
    NotFoundError,
)
from notary_workflow.domain.sessions import (
    ServiceType,
    SessionStatus,
    TransactionStatus,
)
from tests.fakes import FakeSupabaseClient

_CREATED = "2026-03-01T12:00:00+00:00"


def _transaction_row(status: str = "pending") -> dict[str, object]:
    return {
        "id": 3,
        "voucher_code": "QW12ER34",
        "amount": "25.00",
        "template_name": "Contrato de Arriendo",
        "service_type": "ron",
        "status": status,
        "created_at": _CREATED,
    }


def _session_row(status: str = "pending_certifier", **extra) -> dict[str, object]:
    row: dict[str, object] = {
        "id": 7,
        "transaction_id": 3,
        "voucher_code": "QW12ER34",
        "service_type": "ron",
        "status": status,
        "client_name": "Juan Díaz",
        "client_email": "juan@example.com",
        "template_name": "Contrato de Arriendo",
        "certifier_id": None,
        "certifier_name": None,
        "call_token": None,
        "document_content": "Base",
        "client_signature": None,
        "final_document_url": None,
        "failure_reason": None,
        "created_at": _CREATED,
        "updated_at": "2026-03-01T12:00:00",
    }
    row.update(extra)
    return row


def test_create_transaction_inserts_priced_row() -> None:
    client = FakeSupabaseClient()
    table = client.table("notary_transactions")
    table.queue("insert", [_transaction_row()])
    store = SupabaseSessionStore(client)

    transaction = store.create_transaction(
        "Contrato de Arriendo", ServiceType.FULLY_REMOTE
    )

    action, payload = table.payloads[0]
    assert action == "insert"
    assert payload["amount"] == "25.00"
    assert payload["service_type"] == "ron"
    assert len(payload["voucher_code"]) == 8
    assert transaction.id == 3
    assert transaction.status is TransactionStatus.PENDING


def test_create_transaction_rejects_unknown_template() -> None:
    client = FakeSupabaseClient()
    store = SupabaseSessionStore(client)

    with pytest.raises(InvalidInputError):
        store.create_transaction("Otro", ServiceType.FULLY_REMOTE)

    assert client.tables == {}


def test_complete_transaction_creates_session_row() -> None:
    client = FakeSupabaseClient()
    transactions = client.table("notary_transactions")
    transactions.queue("select", [_transaction_row()])
    transactions.queue("update", [_transaction_row("completed")])
    sessions = client.table("notary_sessions")
    sessions.queue("insert", [_session_row()])
    store = SupabaseSessionStore(client)

    session = store.complete_transaction(
        3,
        client_name="Juan Díaz",
        client_email="juan@example.com",
        template_name="Contrato de Arriendo",
        service_type=ServiceType.FULLY_REMOTE,
    )

    _, payload = sessions.payloads[0]
    assert payload["voucher_code"] == "QW12ER34"
    assert payload["status"] == "pending_certifier"
    assert "Contrato de Arriendo" in payload["document_content"]
    assert session.id == 7
    assert session.updated_at.tzinfo is not None
    assert ("status", "pending") in client.table("notary_transactions").filters


def test_complete_unknown_transaction() -> None:
    client = FakeSupabaseClient()
    store = SupabaseSessionStore(client)

    with pytest.raises(NotFoundError):
        store.complete_transaction(
            99,
            client_name="Juan Díaz",
            client_email="juan@example.com",
            template_name="Contrato de Arriendo",
            service_type=ServiceType.FULLY_REMOTE,
        )

    assert "notary_sessions" not in client.tables


def test_fail_transaction_already_completed() -> None:
    client = FakeSupabaseClient()
    client.table("notary_transactions").queue("select", [_transaction_row("completed")])
    store = SupabaseSessionStore(client)

    with pytest.raises(InvalidTransitionError):
        store.fail_transaction(3)


def test_apply_update_filters_on_expected_status() -> None:
    client = FakeSupabaseClient()
    sessions = client.table("notary_sessions")
    sessions.queue(
        "update",
        [_session_row("active_call", certifier_id=1, certifier_name="Ana Rojas")],
    )
    store = SupabaseSessionStore(client)

    session = store.apply_update(
        7,
        {"status": SessionStatus.ACTIVE_CALL, "certifier_id": 1},
        expected_status=SessionStatus.PENDING_CERTIFIER,
    )

    _, payload = sessions.payloads[0]
    assert payload["status"] == "active_call"
    assert "updated_at" in payload
    assert ("status", "pending_certifier") in sessions.filters
    assert session.certifier_name == "Ana Rojas"


def test_apply_update_lost_race_raises_invalid_transition() -> None:
    client = FakeSupabaseClient()
    sessions = client.table("notary_sessions")
    sessions.queue("update", [])
    sessions.queue("select", [_session_row("active_call", certifier_id=2)])
    store = SupabaseSessionStore(client)

    with pytest.raises(InvalidTransitionError) as excinfo:
        store.apply_update(
            7,
            {"status": SessionStatus.ACTIVE_CALL, "certifier_id": 1},
            expected_status=SessionStatus.PENDING_CERTIFIER,
        )

    assert excinfo.value.current == "active_call"


def test_apply_update_unknown_session() -> None:
    client = FakeSupabaseClient()
    store = SupabaseSessionStore(client)

    with pytest.raises(NotFoundError):
        store.apply_update(7, {"document_content": "x"})


def test_queries_map_rows() -> None:
    client = FakeSupabaseClient()
    sessions = client.table("notary_sessions")
    sessions.queue("select", [_session_row()])
    sessions.queue("select", [_session_row(), _session_row(id=8)])
    sessions.queue("select", [])
    store = SupabaseSessionStore(client)

    by_voucher = store.get_by_voucher("qw12er34")
    queued = store.list_by_status(SessionStatus.PENDING_CERTIFIER)
    missing = store.get(42)

    assert by_voucher is not None
    assert by_voucher.service_type is ServiceType.FULLY_REMOTE
    assert ("voucher_code", "QW12ER34") in sessions.filters
    assert [session.id for session in queued] == [7, 8]
    assert missing is None


def test_complete_transaction_rejects_mismatched_service() -> None:
    client = FakeSupabaseClient()
    transactions = client.table("notary_transactions")
    transactions.queue("select", [_transaction_row()])
    store = SupabaseSessionStore(client)

    with pytest.raises(InvalidInputError):
        store.complete_transaction(
            3,
            client_name="Juan Díaz",
            client_email="juan@example.com",
            template_name="Declaración Jurada",
            service_type=ServiceType.ASSISTED_IN_PERSON,
        )

    assert transactions.payloads == []
    assert "notary_sessions" not in client.tables


def test_complete_transaction_reopens_after_failed_insert() -> None:
    client = FakeSupabaseClient()
    transactions = client.table("notary_transactions")
    transactions.queue("select", [_transaction_row()])
    transactions.queue("update", [_transaction_row("completed")])
    transactions.queue("update", [_transaction_row()])
    client.table("notary_sessions").queue("insert", [])
    store = SupabaseSessionStore(client)

    with pytest.raises(RuntimeError):
        store.complete_transaction(
            3,
            client_name="Juan Díaz",
            client_email="juan@example.com",
            template_name="Contrato de Arriendo",
            service_type=ServiceType.FULLY_REMOTE,
        )

    assert transactions.payloads == [
        ("update", {"status": "completed"}),
        ("update", {"status": "pending"}),
    ]
    assert ("status", "completed") in transactions.filters
