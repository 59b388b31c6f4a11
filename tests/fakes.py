"""In-memory fakes shared by the test suite."""

from dataclasses import dataclass, field

from notary_workflow.adapters.notification_client import Notifier
from notary_workflow.domain.sessions import ClientNotification


@dataclass
class RecordingNotifier(Notifier):
    """Notifier that records every delivery request."""

    sent: list[ClientNotification] = field(default_factory=list)
    closed: bool = False

    async def notify_client(self, notification: ClientNotification) -> None:
        self.sent.append(notification)

    async def close(self) -> None:
        self.closed = True


@dataclass
class FailingNotifier(Notifier):
    """Notifier whose transport is down."""

    attempts: int = 0

    async def notify_client(self, notification: ClientNotification) -> None:
        self.attempts += 1
        raise RuntimeError("email service unavailable")

    async def close(self) -> None:
        return None


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    """Chainable stand-in for a Supabase table query builder."""

    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {"select": [], "insert": [], "update": []}
    )
    payloads: list[tuple[str, object]] = field(default_factory=list)
    filters: list[tuple[str, object]] = field(default_factory=list)
    orders: list[tuple[str, bool]] = field(default_factory=list)

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        return self

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "insert"
        self.payloads.append(("insert", payload))
        return self

    def update(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "update"
        self.payloads.append(("update", payload))
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.filters.append((column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, column: str, desc: bool = False) -> "FakeTable":
        self.orders.append((column, desc))
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]
