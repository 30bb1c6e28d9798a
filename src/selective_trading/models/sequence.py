# src/selective_trading/models/sequence.py
"""Per-day counters backing human-readable order numbers."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from selective_trading.db.session import Base
from selective_trading.db.time import utcnow


class DaySequenceCounter(Base):
    """Monotonic counter keyed by day, e.g. ``ST251103``.

    Rows are created lazily by the first issuance of a day and only ever
    mutated by the atomic increment in ``services.sequence``.
    """

    __tablename__ = "day_sequence_counter"
    __table_args__ = (CheckConstraint("count >= 0", name="ck_day_sequence_count_non_negative"),)

    key: Mapped[str] = mapped_column(String(32), primary_key=True)
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
