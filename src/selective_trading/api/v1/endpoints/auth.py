# src/selective_trading/api/v1/endpoints/auth.py
"""Authentication endpoints: phone signup and login with emailed codes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request, Response, status
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from selective_trading.api.v1.dependencies import CurrentUserDep, RegistryDep, SessionDep
from selective_trading.core.errors import (
    CodeExpired,
    CodeMismatch,
    NotificationDeliveryFailed,
    VerificationNotFound,
)
from selective_trading.core.security import create_access_token
from selective_trading.core.settings import settings
from selective_trading.db.guard import storage_guard
from selective_trading.db.time import utcnow
from selective_trading.models import User, VerificationPurpose
from selective_trading.schemas.auth import (
    LoginCheckResponse,
    MessageResponse,
    PhoneRequest,
    SessionResponse,
    SignupRequest,
    UserResponse,
    VerifyRequest,
)
from selective_trading.services.verification import (
    VerificationCodeRegistry,
    VerificationPayload,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])

# Handlers below are sync: issuing a code blocks on SMTP delivery.


def _set_session_cookies(response: Response, user: User) -> None:
    """Attach the session token and the verified-device marker."""
    token = create_access_token(user.id, phone=user.phone, is_admin=user.is_admin)
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        max_age=settings.access_token_max_age,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )
    response.set_cookie(
        key=settings.verified_cookie_name,
        value="true",
        max_age=settings.access_token_max_age,
        httponly=False,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )


def _find_user_by_phone(db: Session, phone: str) -> User | None:
    with storage_guard(db, "look up a user"):
        return db.query(User).filter(User.phone == phone).first()


def _verification_http_error(err: Exception) -> HTTPException:
    if isinstance(err, VerificationNotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(err))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err))


def _delivery_http_error(err: NotificationDeliveryFailed) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(err))


def _start_login(registry: VerificationCodeRegistry, user: User) -> None:
    try:
        registry.issue(
            user.phone,
            VerificationPurpose.LOGIN,
            VerificationPayload(email=user.email, name=user.name),
        )
    except NotificationDeliveryFailed as err:
        raise _delivery_http_error(err) from err


def _record_login(db: Session, user: User) -> None:
    user.last_login = utcnow()
    with storage_guard(db, "record a login"):
        db.commit()
        db.refresh(user)


@router.post("/signup", response_model=MessageResponse, summary="Start a signup")
def signup(
    payload: SignupRequest,
    db: SessionDep,
    registry: RegistryDep,
) -> MessageResponse:
    """Email a signup code for a phone number that has no account yet."""
    with storage_guard(db, "check for an existing account"):
        existing = (
            db.query(User)
            .filter(or_(User.phone == payload.phone, User.email == payload.email))
            .first()
        )
    if existing is not None:
        field = "phone number" if existing.phone == payload.phone else "email"
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"User already exists with this {field}",
        )

    try:
        registry.issue(
            payload.phone,
            VerificationPurpose.SIGNUP,
            VerificationPayload(
                email=payload.email,
                name=payload.name,
                company_name=payload.company_name,
                address=payload.address,
            ),
        )
    except NotificationDeliveryFailed as err:
        raise _delivery_http_error(err) from err

    return MessageResponse(message="Verification code sent to your email")


@router.post("/verify", response_model=SessionResponse, summary="Complete a signup")
def verify_signup(
    payload: VerifyRequest,
    response: Response,
    db: SessionDep,
    registry: RegistryDep,
) -> SessionResponse:
    """Consume the signup code, create the account and open a session."""
    try:
        details = registry.verify(payload.phone, VerificationPurpose.SIGNUP, payload.code)
    except (VerificationNotFound, CodeMismatch, CodeExpired) as err:
        raise _verification_http_error(err) from err

    user = User(
        phone=payload.phone,
        email=details.email,
        name=details.name or "",
        company_name=details.company_name or "",
        address=details.address or "",
        last_login=utcnow(),
    )
    try:
        with storage_guard(db, "create an account"):
            db.add(user)
            db.commit()
            db.refresh(user)
    except IntegrityError as err:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User already exists with this phone number or email",
        ) from err
    logger.info("Created account %s", user.id)

    _set_session_cookies(response, user)
    return SessionResponse(user=UserResponse.model_validate(user))


@router.post("/resend", response_model=MessageResponse, summary="Resend a signup code")
def resend_signup(payload: PhoneRequest, registry: RegistryDep) -> MessageResponse:
    """Send a fresh code for a pending signup."""
    try:
        registry.resend(payload.phone, VerificationPurpose.SIGNUP)
    except VerificationNotFound as err:
        raise _verification_http_error(err) from err
    except NotificationDeliveryFailed as err:
        raise _delivery_http_error(err) from err
    return MessageResponse(message="Verification code resent")


@router.post("/login-check", response_model=LoginCheckResponse, summary="Start a login")
def login_check(
    payload: PhoneRequest,
    request: Request,
    response: Response,
    db: SessionDep,
    registry: RegistryDep,
) -> LoginCheckResponse:
    """Open a session directly on a verified device, otherwise email a login code."""
    user = _find_user_by_phone(db, payload.phone)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found. Please sign up first.",
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated",
        )
    if not user.email:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="No email address on file for this account",
        )

    if request.cookies.get(settings.verified_cookie_name) == "true":
        _record_login(db, user)
        _set_session_cookies(response, user)
        return LoginCheckResponse(
            needs_verification=False,
            user=UserResponse.model_validate(user),
        )

    _start_login(registry, user)
    return LoginCheckResponse(
        needs_verification=True,
        message="Verification code sent to your email",
    )


@router.post("/verify-login", response_model=SessionResponse, summary="Complete a login")
def verify_login(
    payload: VerifyRequest,
    response: Response,
    db: SessionDep,
    registry: RegistryDep,
) -> SessionResponse:
    """Consume the login code and open a session."""
    try:
        registry.verify(payload.phone, VerificationPurpose.LOGIN, payload.code)
    except (VerificationNotFound, CodeMismatch, CodeExpired) as err:
        raise _verification_http_error(err) from err

    user = _find_user_by_phone(db, payload.phone)
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    _record_login(db, user)
    _set_session_cookies(response, user)
    return SessionResponse(user=UserResponse.model_validate(user))


@router.post("/resend-login", response_model=MessageResponse, summary="Resend a login code")
def resend_login(payload: PhoneRequest, registry: RegistryDep) -> MessageResponse:
    """Send a fresh code for a pending login."""
    try:
        registry.resend(payload.phone, VerificationPurpose.LOGIN)
    except VerificationNotFound as err:
        raise _verification_http_error(err) from err
    except NotificationDeliveryFailed as err:
        raise _delivery_http_error(err) from err
    return MessageResponse(message="Verification code resent")


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response) -> MessageResponse:
    """Clear the session and verified-device cookies."""
    response.delete_cookie(settings.auth_cookie_name, path="/")
    response.delete_cookie(settings.verified_cookie_name, path="/")
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserResponse)
async def read_me(user: CurrentUserDep) -> UserResponse:
    """Return the profile of the signed-in user."""
    return UserResponse.model_validate(user)
