"""Per-day sequence issuance for human-readable order numbers.

Order numbers look like ``ST251103-0007``: the day key (prefix plus the
business-time-zone date as ``YYMMDD``), a dash and the sequence value issued
for that day. Sequence values come from a counter row per day key which is
incremented by a single atomic statement in the database, never by a
read-modify-write in Python, so concurrent handlers cannot receive the same
value.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, tzinfo
from typing import Final

from sqlalchemy import Table, insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from selective_trading.core.settings import settings
from selective_trading.db.guard import storage_guard
from selective_trading.db.time import utcnow
from selective_trading.models import DaySequenceCounter

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS: Final = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def day_key(
    moment: datetime | None = None,
    *,
    prefix: str | None = None,
    tz: tzinfo | None = None,
) -> str:
    """Return the counter key for the business day containing ``moment``.

    Args:
        moment: Aware datetime; defaults to now. Naive values are taken as UTC.
        prefix: Site code; defaults to ``ORDER_NUMBER_PREFIX``.
        tz: Business time zone; defaults to ``BUSINESS_TIMEZONE``.

    Returns:
        ``<PREFIX><YYMMDD>``, e.g. ``ST251103``.
    """
    moment = moment or utcnow()
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    local = moment.astimezone(tz or settings.business_tz)
    site = settings.order_number_prefix if prefix is None else prefix
    return f"{site}{local:%y%m%d}"


def format_order_number(key: str, sequence: int, width: int | None = None) -> str:
    """Compose an order number from a day key and its sequence value."""
    if sequence < 1:
        raise ValueError("Sequence values start at 1")
    digits = settings.order_number_width if width is None else width
    return f"{key}-{sequence:0{digits}d}"


class SequenceIssuer:
    """Hands out the next integer of a per-day sequence.

    Each call to :meth:`next_in_sequence` commits its own short transaction so
    the counter row is locked only for the duration of one statement.
    """

    def __init__(self, db: Session) -> None:
        self._db = db
        self._table: Table = DaySequenceCounter.__table__  # type: ignore[assignment]

    def next_in_sequence(self, key: str) -> int:
        """Atomically increment the counter for ``key`` and return the new value.

        The counter row is created on first use, so the first value of a day
        is 1.

        Raises:
            StorageUnavailable: If the database is unreachable or timed out.
                No value is consumed in that case; retrying is safe.
        """
        now = utcnow()
        with storage_guard(self._db, f"issue a sequence value for {key}"):
            value = self._increment(key, now)
            self._db.commit()

        logger.debug("Issued sequence value %d for %s", value, key)
        return value

    def next_order_number(self, moment: datetime | None = None) -> str:
        """Issue the next order number for the business day of ``moment``."""
        key = day_key(moment)
        return format_order_number(key, self.next_in_sequence(key))

    def current_count(self, key: str) -> int:
        """Return the last value issued for ``key`` (0 if none) without consuming one."""
        table = self._table
        with storage_guard(self._db, f"read the sequence counter for {key}"):
            value = self._db.execute(select(table.c.count).where(table.c.key == key)).scalar()
        return int(value or 0)

    def _increment(self, key: str, now: datetime) -> int:
        table = self._table
        dialect = self._db.get_bind().dialect.name
        upsert = _UPSERT_DIALECTS.get(dialect)
        if upsert is None:
            return self._increment_without_upsert(key, now)

        stmt = (
            upsert(table)
            .values(key=key, count=1, created_at=now, updated_at=now)
            .on_conflict_do_update(
                index_elements=[table.c.key],
                set_={"count": table.c.count + 1, "updated_at": now},
            )
            .returning(table.c.count)
        )
        return int(self._db.execute(stmt).scalar_one())

    def _increment_without_upsert(self, key: str, now: datetime) -> int:
        """Fallback for dialects lacking INSERT ... ON CONFLICT.

        The UPDATE takes the row lock, so the follow-up SELECT inside the same
        transaction reads the value this call produced.
        """
        table = self._table
        bump = (
            update(table)
            .where(table.c.key == key)
            .values(count=table.c.count + 1, updated_at=now)
        )
        if self._db.execute(bump).rowcount == 0:
            try:
                with self._db.begin_nested():
                    self._db.execute(
                        insert(table).values(key=key, count=1, created_at=now, updated_at=now)
                    )
                return 1
            except IntegrityError:
                # Another handler created the row first.
                self._db.execute(bump)
        return int(self._db.execute(select(table.c.count).where(table.c.key == key)).scalar_one())


def get_sequence_issuer(db: Session) -> SequenceIssuer:
    """Return a sequence issuer bound to ``db``."""
    return SequenceIssuer(db)
