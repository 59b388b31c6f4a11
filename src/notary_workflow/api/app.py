"""FastAPI application factory."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, Query, Request, status
from fastapi.responses import JSONResponse

from notary_workflow.api.admin import router as admin_router
from notary_workflow.api.schemas import (
    AcceptRequest,
    CertifierView,
    DocumentRequest,
    FailRequest,
    PackageRequest,
    PaymentRequest,
    PaymentResult,
    PollingView,
    SessionView,
    TransactionRequest,
    TransactionView,
)
from notary_workflow.app_logging import configure_logging
from notary_workflow.containers import AppContainer
from notary_workflow.domain.errors import (
    InvalidInputError,
    InvalidTransitionError,
    NotFoundError,
    WorkflowError,
)
from notary_workflow.domain.sessions import SessionStatus
from notary_workflow.services.workflow import WorkflowEngine

_ERROR_STATUS = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
    InvalidInputError: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        timeout = container.settings.session_timeout_seconds
        expiry_task = None
        if timeout:
            expiry_task = asyncio.create_task(
                _expire_periodically(app.state.container.workflow_engine, timeout)
            )
        yield
        if expiry_task is not None:
            expiry_task.cancel()
            with suppress(asyncio.CancelledError):
                await expiry_task
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.exception_handler(WorkflowError)
    async def workflow_error_handler(
        request: Request, exc: WorkflowError
    ) -> JSONResponse:
        """Translate workflow failures into typed error responses."""
        status_code = _ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
        logger.info(
            "Request rejected: %s %s -> %s: %s",
            request.method,
            request.url.path,
            exc.kind,
            exc.message,
        )
        return JSONResponse(
            status_code=status_code,
            content={"error": exc.kind, "message": exc.message},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/config/polling")
    async def polling(request: Request) -> PollingView:
        """Return the polling intervals terminals and dashboards should use."""
        hints = _container(request).query_service.polling_hints()
        return PollingView(
            session_interval_seconds=hints.session_interval_seconds,
            queue_interval_seconds=hints.queue_interval_seconds,
        )

    @app.get("/certifiers")
    async def list_certifiers(request: Request) -> list[CertifierView]:
        """Return the certifier roster."""
        return [
            CertifierView.from_domain(certifier)
            for certifier in _container(request).roster.list()
        ]

    @app.post("/transactions", status_code=status.HTTP_201_CREATED)
    async def create_transaction(
        body: TransactionRequest, request: Request
    ) -> TransactionView:
        """Open a pending transaction for the selected service."""
        transaction = _container(request).workflow_engine.start_transaction(
            body.template_name, body.service_type
        )
        return TransactionView.from_domain(transaction)

    @app.get("/transactions/{transaction_id}")
    async def get_transaction(transaction_id: int, request: Request) -> TransactionView:
        """Return a transaction."""
        transaction = _container(request).query_service.get_transaction(
            transaction_id
        )
        return TransactionView.from_domain(transaction)

    @app.post("/transactions/{transaction_id}/payment")
    async def payment_event(
        transaction_id: int, body: PaymentRequest, request: Request
    ) -> PaymentResult:
        """Consume a payment event; a successful payment opens a session."""
        state_container = _container(request)
        engine = state_container.workflow_engine
        if not body.success:
            transaction = engine.reject_payment(transaction_id)
            return PaymentResult(transaction=TransactionView.from_domain(transaction))
        session = engine.confirm_payment(
            transaction_id,
            client_name=body.client_name,
            client_email=body.client_email,
            template_name=body.template_name,
            service_type=body.service_type,
        )
        transaction = state_container.query_service.get_transaction(transaction_id)
        return PaymentResult(
            transaction=TransactionView.from_domain(transaction),
            session=SessionView.from_domain(session),
        )

    @app.get("/sessions")
    async def list_sessions(
        request: Request, session_status: SessionStatus = Query(alias="status")
    ) -> list[SessionView]:
        """Return sessions in a status."""
        sessions = _container(request).query_service.list_by_status(session_status)
        return [SessionView.from_domain(session) for session in sessions]

    @app.get("/sessions/{session_id}")
    async def get_session(session_id: int, request: Request) -> SessionView:
        """Return the latest snapshot of a session."""
        session = _container(request).query_service.get_session(session_id)
        return SessionView.from_domain(session)

    @app.get("/vouchers/{voucher_code}")
    async def get_by_voucher(voucher_code: str, request: Request) -> SessionView:
        """Return the session a voucher belongs to."""
        session = _container(request).query_service.find_by_voucher(voucher_code)
        return SessionView.from_domain(session)

    @app.get("/certifier/queue")
    async def certifier_queue(request: Request) -> list[SessionView]:
        """Return sessions waiting for a certifier."""
        sessions = _container(request).query_service.certifier_queue()
        return [SessionView.from_domain(session) for session in sessions]

    @app.post("/sessions/{session_id}/accept")
    async def accept_session(
        session_id: int, body: AcceptRequest, request: Request
    ) -> SessionView:
        """Certifier takes the session and opens the call."""
        session = await _container(request).workflow_engine.accept_session(
            session_id, body.certifier_id
        )
        return SessionView.from_domain(session)

    @app.post("/sessions/{session_id}/document")
    async def send_document(
        session_id: int, body: DocumentRequest, request: Request
    ) -> SessionView:
        """Certifier sends the document to the client for review."""
        session = await _container(request).workflow_engine.send_document_for_review(
            session_id, body.content
        )
        return SessionView.from_domain(session)

    @app.post("/sessions/{session_id}/approve")
    async def approve_document(session_id: int, request: Request) -> SessionView:
        """Client approves the document."""
        session = await _container(request).workflow_engine.approve_document(
            session_id
        )
        return SessionView.from_domain(session)

    @app.post("/sessions/{session_id}/package")
    async def submit_package(
        session_id: int, body: PackageRequest, request: Request
    ) -> SessionView:
        """Client submits the signature package."""
        session = await _container(request).workflow_engine.submit_client_package(
            session_id, body.signature
        )
        return SessionView.from_domain(session)

    @app.post("/sessions/{session_id}/finalize")
    async def finalize_session(session_id: int, request: Request) -> SessionView:
        """Certifier applies the FEA and completes the session."""
        session = await _container(request).workflow_engine.finalize_session(
            session_id
        )
        return SessionView.from_domain(session)

    @app.post("/sessions/{session_id}/fail")
    async def fail_session(
        session_id: int, body: FailRequest, request: Request
    ) -> SessionView:
        """Abandon a session that cannot be completed."""
        session = await _container(request).workflow_engine.fail_session(
            session_id, body.reason
        )
        return SessionView.from_domain(session)

    return app


def _container(request: Request) -> AppContainer:
    return request.app.state.container


async def _expire_periodically(engine: WorkflowEngine, timeout: float) -> None:
    """Run the abandonment policy until cancelled."""
    logger = logging.getLogger(__name__)
    interval = min(max(timeout / 4, 1.0), 60.0)
    while True:
        await asyncio.sleep(interval)
        try:
            await engine.expire_stale_sessions(timeout)
        except Exception:
            logger.exception("Failed to expire stale sessions")
