"""Session token helpers built on JWT."""
from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from selective_trading.core.settings import settings


def create_access_token(user_id: int, *, phone: str, is_admin: bool) -> str:
    """Create a signed session token for an authenticated user.

    Args:
        user_id: Primary key of the user; stored as the ``sub`` claim.
        phone: Normalized phone number of the user.
        is_admin: Whether the user may access the back office.

    Returns:
        The encoded JWT.
    """
    expire = datetime.now(UTC) + timedelta(days=settings.access_token_expire_days)
    to_encode: dict[str, Any] = {
        "sub": str(user_id),
        "phone": phone,
        "is_admin": is_admin,
        "exp": expire,
    }
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str) -> int:
    """Return the user id carried by a session token.

    Raises:
        ValueError: If the token is malformed, expired or has no subject.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as err:
        raise ValueError("Could not validate credentials") from err

    subject = payload.get("sub")
    if subject is None:
        raise ValueError("Could not validate credentials")
    try:
        return int(subject)
    except (TypeError, ValueError) as err:
        raise ValueError("Could not validate credentials") from err
