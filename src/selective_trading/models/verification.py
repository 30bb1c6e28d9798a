# src/selective_trading/models/verification.py
"""Short-lived verification codes gating signup and login."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from selective_trading.db.session import Base
from selective_trading.db.time import utcnow


class VerificationPurpose(str, enum.Enum):
    """Flow a code belongs to; a phone may hold one live code per purpose."""

    SIGNUP = "signup"
    LOGIN = "login"


class VerificationCode(Base):
    """Pending code plus the account fields captured when it was issued."""

    __tablename__ = "verification_code"
    __table_args__ = (Index("ix_verification_code_phone_purpose", "phone", "purpose"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    phone: Mapped[str] = mapped_column(String(32), nullable=False)
    purpose: Mapped[VerificationPurpose] = mapped_column(
        Enum(
            VerificationPurpose,
            name="verification_purpose",
            values_callable=lambda members: [member.value for member in members],
        ),
        nullable=False,
    )
    code: Mapped[str] = mapped_column(String(8), nullable=False)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    company_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
