"""Shared test fixtures."""

from collections.abc import Callable

import pytest

from notary_workflow.config import Settings
from notary_workflow.containers import AppContainer
from notary_workflow.domain.sessions import ServiceType, Session
from notary_workflow.services.queries import QueryService
from notary_workflow.services.roster import DEFAULT_CERTIFIERS, CertifierRoster
from notary_workflow.services.store import InMemorySessionStore
from notary_workflow.services.workflow import WorkflowEngine
from tests.fakes import RecordingNotifier


@pytest.fixture
def settings() -> Settings:
    return Settings(admin_token="admin-token")


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def roster() -> CertifierRoster:
    return CertifierRoster.from_names(DEFAULT_CERTIFIERS)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def engine(
    store: InMemorySessionStore,
    roster: CertifierRoster,
    notifier: RecordingNotifier,
) -> WorkflowEngine:
    return WorkflowEngine(store=store, roster=roster, notifier=notifier)


@pytest.fixture
def paid_session_factory() -> Callable[[WorkflowEngine], Session]:
    def factory(engine: WorkflowEngine) -> Session:
        transaction = engine.start_transaction(
            "Declaración Jurada", ServiceType.ASSISTED_IN_PERSON
        )
        return engine.confirm_payment(
            transaction.id,
            client_name="María Pérez",
            client_email="maria@example.com",
            template_name="Declaración Jurada",
            service_type=ServiceType.ASSISTED_IN_PERSON,
        )

    return factory


@pytest.fixture
def paid_session(
    engine: WorkflowEngine, paid_session_factory: Callable[[WorkflowEngine], Session]
) -> Session:
    return paid_session_factory(engine)


@pytest.fixture
def container(
    settings: Settings,
    store: InMemorySessionStore,
    roster: CertifierRoster,
    notifier: RecordingNotifier,
    engine: WorkflowEngine,
) -> AppContainer:
    query_service = QueryService(store=store)

    async def close_resources() -> None:
        await notifier.close()

    return AppContainer(
        settings=settings,
        store=store,
        roster=roster,
        notifier=notifier,
        workflow_engine=engine,
        query_service=query_service,
        close_resources=close_resources,
    )
