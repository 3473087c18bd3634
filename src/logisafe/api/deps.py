"""Request-scoped dependencies."""

from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException, status

from ..config import settings
from ..models.domain import Session, UserRole

_TRUTHY = {"1", "true", "yes", "on"}


def get_session(
    x_user_role: Optional[str] = Header(default=None),
    x_user_id: Optional[str] = Header(default=None),
    x_demo_mode: Optional[str] = Header(default=None),
) -> Session:
    """Resolve the caller's session from identity headers.

    Without a role header the request is rejected unless demo mode is enabled,
    in which case the configured demo role is used.
    """
    demo = (x_demo_mode or "").strip().lower() in _TRUTHY or settings.demo_mode
    role_value = (x_user_role or "").strip().lower()
    if not role_value and demo:
        role_value = settings.demo_role
    if not role_value:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session not resolved")
    try:
        role = UserRole(role_value)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail=f"Unknown role: {role_value}"
        ) from exc

    user_id = (x_user_id or "").strip() or None
    if user_id is None and demo and role == UserRole.DRIVER:
        user_id = settings.demo_driver_id
    return Session(role=role, user_id=user_id, is_demo_mode=demo)


def raise_for_service_error(exc: Exception, action: str) -> None:
    """Translate service exceptions into HTTP errors."""
    if isinstance(exc, HTTPException):
        raise exc
    if isinstance(exc, PermissionError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    if isinstance(exc, LookupError):
        detail = exc.args[0] if exc.args else str(exc)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail) from exc
    if isinstance(exc, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    import logging
    logging.exception(f"Error while trying to {action}: {exc}")
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}: {str(exc)}",
    ) from exc
