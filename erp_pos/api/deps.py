# erp_pos/api/deps.py
from functools import lru_cache

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from erp_pos.data.database import get_db
from erp_pos.domain.exceptions import (
    AuthenticationError,
    CartItemNotFoundError,
    CatalogItemNotFoundError,
    CheckoutInProgressError,
    CheckoutTimeoutError,
    PermissionDeniedError,
    PersistenceError,
    PosException,
    ProfileConflictError,
    SequenceAllocationError,
    SessionNotFoundError,
    StockConflictError,
)
from erp_pos.domain.schemas import CurrentUser
from erp_pos.services.lock_service import LockService
from erp_pos.services.notification_service import NotificationService
from erp_pos.services.permission_service import PermissionService
from erp_pos.services.session_store import CartSessionStore, session_store
from erp_pos.services.user_service import UserService


def to_http(e: PosException) -> HTTPException:
    """Map the POS error taxonomy to HTTP status codes."""
    if isinstance(e, AuthenticationError):
        status = 401
    elif isinstance(e, PermissionDeniedError):
        status = 403
    elif isinstance(e, (SessionNotFoundError, CartItemNotFoundError, CatalogItemNotFoundError)):
        status = 404
    elif isinstance(e, (CheckoutInProgressError, StockConflictError, ProfileConflictError)):
        status = 409
    elif isinstance(e, CheckoutTimeoutError):
        status = 504
    elif isinstance(e, PersistenceError):
        status = 500 if e.reconciliation_required else 503
    elif isinstance(e, SequenceAllocationError):
        status = 503
    else:
        status = 400
    return HTTPException(status_code=status, detail=e.to_dict())


def get_session_store() -> CartSessionStore:
    return session_store


@lru_cache
def get_lock_service() -> LockService:
    return LockService()


def get_notifier() -> NotificationService:
    return NotificationService()


def get_permission_service(db: Session = Depends(get_db)) -> PermissionService:
    return PermissionService(db)


def get_current_user(
    authorization: str | None = Header(None),
    db: Session = Depends(get_db),
) -> CurrentUser:
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()

    try:
        return UserService(db).current_user(token)
    except PosException as e:
        raise to_http(e)


def require_permission(module: str, action: str):
    """Dependency factory: the current user, if their role may do action on module."""

    def dependency(
        user: CurrentUser = Depends(get_current_user),
        permissions: PermissionService = Depends(get_permission_service),
    ) -> CurrentUser:
        if not permissions.can(user.role, module, action):
            raise to_http(
                PermissionDeniedError(
                    f"Role {user.role} cannot {action} {module}",
                    details={"role": user.role, "module": module, "action": action},
                )
            )
        return user

    return dependency
