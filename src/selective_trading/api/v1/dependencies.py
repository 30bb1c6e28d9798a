"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from selective_trading.core.security import decode_access_token
from selective_trading.core.settings import settings
from selective_trading.db.guard import storage_guard
from selective_trading.db.session import get_db
from selective_trading.models import User
from selective_trading.services.notifications import Notifier, get_notifier
from selective_trading.services.orders import OrderService
from selective_trading.services.sequence import SequenceIssuer, get_sequence_issuer
from selective_trading.services.verification import VerificationCodeRegistry

# Bearer tokens are optional; browsers send the session cookie instead.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def _unauthorized(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _session_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None,
) -> str | None:
    if credentials is not None:
        return credentials.credentials
    return request.cookies.get(settings.auth_cookie_name)


def _load_user(db: Session, token: str) -> User:
    try:
        user_id = decode_access_token(token)
    except ValueError as err:
        raise _unauthorized() from err

    with storage_guard(db, "load the current user"):
        user = db.get(User, user_id)
    if user is None:
        raise _unauthorized("User not found")
    if not user.is_active:
        raise _unauthorized("Account is deactivated")
    return user


def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from the session cookie or bearer token.

    Args:
        request: Incoming request carrying the session cookie
        credentials: Optional HTTP Bearer token credentials
        db: Database session

    Returns:
        User object for the authenticated user

    Raises:
        HTTPException: If the token is missing or invalid, or the user is
            unknown or deactivated
    """
    token = _session_token(request, credentials)
    if not token:
        raise _unauthorized("Not authenticated")
    return _load_user(db, token)


def get_optional_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> User | None:
    """Like :func:`get_current_user` but anonymous requests yield ``None``."""
    token = _session_token(request, credentials)
    if not token:
        return None
    return _load_user(db, token)


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]
OptionalUserDep = Annotated[User | None, Depends(get_optional_user)]


def get_current_admin(user: CurrentUserDep) -> User:
    """Require the current user to be an administrator."""
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


AdminDep = Annotated[User, Depends(get_current_admin)]


def get_notifier_dep() -> Notifier:
    return get_notifier()


NotifierDep = Annotated[Notifier, Depends(get_notifier_dep)]


def get_verification_registry_dep(
    db: SessionDep,
    notifier: NotifierDep,
) -> VerificationCodeRegistry:
    return VerificationCodeRegistry(db, notifier)


def get_sequence_issuer_dep(db: SessionDep) -> SequenceIssuer:
    return get_sequence_issuer(db)


def get_order_service_dep(
    db: SessionDep,
    issuer: Annotated[SequenceIssuer, Depends(get_sequence_issuer_dep)],
) -> OrderService:
    return OrderService(db, issuer)


SequenceIssuerDep = Annotated[SequenceIssuer, Depends(get_sequence_issuer_dep)]
RegistryDep = Annotated[VerificationCodeRegistry, Depends(get_verification_registry_dep)]
OrderServiceDep = Annotated[OrderService, Depends(get_order_service_dep)]
