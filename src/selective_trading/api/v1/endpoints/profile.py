"""Self-service profile endpoints for signed-in customers."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status
from sqlalchemy.exc import IntegrityError

from selective_trading.api.v1.dependencies import CurrentUserDep, SessionDep
from selective_trading.schemas.auth import UserResponse
from selective_trading.schemas.customer import ProfileUpdate
from selective_trading.services.customers import update_profile

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=UserResponse)
async def read_profile(user: CurrentUserDep) -> UserResponse:
    """Return the caller's account details."""
    return UserResponse.model_validate(user)


@router.put("", response_model=UserResponse)
async def edit_profile(
    payload: ProfileUpdate,
    user: CurrentUserDep,
    db: SessionDep,
) -> UserResponse:
    """Change name, company, email or address. The phone number cannot change."""
    try:
        user = update_profile(db, user, payload)
    except IntegrityError as err:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email is already registered to another account",
        ) from err
    return UserResponse.model_validate(user)
