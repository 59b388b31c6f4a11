"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from notary_workflow.api.schemas import ExpireRequest, SessionView
from notary_workflow.domain.errors import InvalidInputError
from notary_workflow.domain.sessions import TRANSITIONS, SessionStatus

if TYPE_CHECKING:
    from notary_workflow.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/sessions", dependencies=[Depends(require_admin)])
async def list_sessions(request: Request, limit: int = 20) -> dict[str, object]:
    """Return the most recent sessions in any status."""
    container: AppContainer = request.app.state.container
    sessions = container.query_service.recent_sessions(limit)
    return {
        "sessions": [
            SessionView.from_domain(session).model_dump(mode="json")
            for session in sessions
        ]
    }


@router.get("/transitions", dependencies=[Depends(require_admin)])
async def list_transitions() -> dict[str, object]:
    """Return the state machine edges."""
    return {
        "transitions": [
            {"from": current.value, "to": target.value}
            for current, target in TRANSITIONS.items()
        ],
        "failure_from": [status_.value for status_ in TRANSITIONS],
        "terminal": [
            status_.value for status_ in SessionStatus if status_.is_terminal
        ],
    }


@router.post("/expire", dependencies=[Depends(require_admin)])
async def expire_sessions(
    request: Request, body: ExpireRequest | None = None
) -> dict[str, object]:
    """Fail sessions idle for longer than the abandonment timeout."""
    container: AppContainer = request.app.state.container
    max_age = (body.max_age_seconds if body else None) or (
        container.settings.session_timeout_seconds
    )
    if not max_age:
        raise InvalidInputError("No abandonment timeout configured")
    expired = await container.workflow_engine.expire_stale_sessions(max_age)
    return {"expired": [session.id for session in expired]}
