"""Role checks shared by the order and assignment services."""

from __future__ import annotations

from ..models.domain import Session


def require_resolved(session: Session | None) -> Session:
    """A missing or still-loading session may not do anything."""
    if session is None or not session.resolved:
        raise PermissionError("Session not resolved")
    return session


def require_admin(session: Session | None, action: str) -> Session:
    require_resolved(session)
    if not session.is_admin:
        raise PermissionError(f"Only admins may {action}")
    return session
