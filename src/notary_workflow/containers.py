"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from notary_workflow.adapters.notification_client import (
    HttpxNotificationClient,
    LoggingNotifier,
    Notifier,
)
from notary_workflow.adapters.supabase_session_store import SupabaseSessionStore
from notary_workflow.config import Settings, parse_certifier_roster
from notary_workflow.services.queries import QueryService
from notary_workflow.services.roster import DEFAULT_CERTIFIERS, CertifierRoster
from notary_workflow.services.store import InMemorySessionStore, SessionStore
from notary_workflow.services.workflow import WorkflowEngine


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    store: SessionStore
    roster: CertifierRoster
    notifier: Notifier
    workflow_engine: WorkflowEngine
    query_service: QueryService
    close_resources: Callable[[], Awaitable[None]]


def build_store(settings: Settings) -> SessionStore:
    """Create the session store selected by settings."""
    if settings.store_backend == "memory":
        return InMemorySessionStore()
    if settings.store_backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ValueError("Supabase store requires SUPABASE_URL and key")
        return SupabaseSessionStore(
            create_client(settings.supabase_url, settings.supabase_service_key)
        )
    raise ValueError(f"Unknown store backend: {settings.store_backend}")


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    store = build_store(resolved_settings)
    roster = CertifierRoster.from_names(
        parse_certifier_roster(resolved_settings.certifier_roster)
        or DEFAULT_CERTIFIERS
    )
    notifier: HttpxNotificationClient | LoggingNotifier
    if resolved_settings.notification_webhook_url:
        notifier = HttpxNotificationClient.create(
            resolved_settings.notification_webhook_url
        )
    else:
        notifier = LoggingNotifier()
    workflow_engine = WorkflowEngine(
        store=store,
        roster=roster,
        notifier=notifier,
        docs_base_path=resolved_settings.docs_base_path,
    )
    query_service = QueryService(
        store=store,
        session_poll_interval_seconds=resolved_settings.session_poll_interval_seconds,
        queue_poll_interval_seconds=resolved_settings.queue_poll_interval_seconds,
    )

    async def close_resources() -> None:
        await notifier.close()

    return AppContainer(
        settings=resolved_settings,
        store=store,
        roster=roster,
        notifier=notifier,
        workflow_engine=workflow_engine,
        query_service=query_service,
        close_resources=close_resources,
    )
