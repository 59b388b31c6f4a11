"""Per-session mutual exclusion for workflow transitions."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field


@dataclass
class SessionLocks:
    """Serializes operations that target the same session id.

    Locks are created on demand and dropped once nobody holds or awaits
    them, so the table only grows with the number of in-flight sessions.
    """

    _locks: dict[int, asyncio.Lock] = field(default_factory=dict, init=False)
    _users: dict[int, int] = field(default_factory=dict, init=False)

    @asynccontextmanager
    async def hold(self, session_id: int) -> AsyncIterator[None]:
        """Hold the lock for a session for the duration of the block."""
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        self._users[session_id] = self._users.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[session_id] -= 1
            if self._users[session_id] == 0:
                del self._users[session_id]
                self._locks.pop(session_id, None)

    def in_use(self) -> int:
        """Return how many session locks are currently allocated."""
        return len(self._locks)
