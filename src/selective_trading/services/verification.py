"""Issuance, single-use consumption and expiry of verification codes.

Codes are scoped to a (phone, purpose) pair. Per pair the lifecycle is::

    absent --issue--> pending --verify ok--> consumed (deleted)
                      pending --resend--> pending (new code, new expiry)
                      pending --verify after expiry--> expired (deleted)

Expiry is lazy: nothing sweeps the table in the background, an expired
record is discarded by the first verification attempt that notices it.
``purge_expired`` exists for storage hygiene only.
"""

from __future__ import annotations

import hmac
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import delete
from sqlalchemy.orm import Session

from selective_trading.core.errors import (
    CodeExpired,
    CodeMismatch,
    NotificationDeliveryFailed,
    VerificationNotFound,
)
from selective_trading.core.settings import settings
from selective_trading.db.guard import storage_guard
from selective_trading.db.time import ensure_utc, utcnow
from selective_trading.models import VerificationCode, VerificationPurpose
from selective_trading.services.notifications import Notifier
from selective_trading.utils.phone import normalize_phone

logger = logging.getLogger(__name__)


def generate_code() -> str:
    """Return a uniformly random 4-digit code in [1000, 9999]."""
    return str(1000 + secrets.randbelow(9000))


@dataclass(frozen=True)
class VerificationPayload:
    """Account fields captured at issuance and handed back on verification."""

    email: str | None = None
    name: str | None = None
    company_name: str | None = None
    address: str | None = None


class VerificationCodeRegistry:
    """Manages pending codes for signup and login flows.

    Issuance is only successful once the notifier accepted the email. The new
    record is flushed inside the session transaction first and committed
    after dispatch; a failed dispatch rolls the transaction back so the pair
    keeps whatever state it had before.
    """

    def __init__(
        self,
        db: Session,
        notifier: Notifier,
        *,
        ttl: timedelta | None = None,
        clock: Callable[[], datetime] = utcnow,
        code_factory: Callable[[], str] = generate_code,
    ) -> None:
        self._db = db
        self._notifier = notifier
        self._ttl = ttl or timedelta(minutes=settings.verification_code_ttl_minutes)
        self._clock = clock
        self._code_factory = code_factory

    def issue(
        self,
        phone: str,
        purpose: VerificationPurpose | str,
        payload: VerificationPayload,
    ) -> VerificationCode:
        """Replace any code for the pair with a fresh one and email it.

        Raises:
            ValueError: If the payload carries no email address.
            NotificationDeliveryFailed: If the email could not be sent.
            StorageUnavailable: If the database failed.
        """
        phone = normalize_phone(phone)
        purpose = VerificationPurpose(purpose)
        if not payload.email:
            raise ValueError("An email address is required to deliver the code")

        now = self._clock()
        record = VerificationCode(
            phone=phone,
            purpose=purpose,
            code=self._code_factory(),
            email=payload.email.strip().lower(),
            name=payload.name,
            company_name=payload.company_name,
            address=payload.address,
            expires_at=now + self._ttl,
            created_at=now,
        )
        with storage_guard(self._db, "store a verification code"):
            self._db.execute(
                delete(VerificationCode).where(
                    VerificationCode.phone == phone,
                    VerificationCode.purpose == purpose,
                )
            )
            self._db.add(record)
            self._db.flush()

        self._dispatch(record)
        logger.info("Issued %s verification code for %s", purpose.value, phone)
        return record

    def resend(self, phone: str, purpose: VerificationPurpose | str) -> VerificationCode:
        """Refresh the code and expiry of the pending record and email it again.

        Raises:
            VerificationNotFound: If no record exists for the pair.
            NotificationDeliveryFailed: If the email could not be sent.
        """
        phone = normalize_phone(phone)
        purpose = VerificationPurpose(purpose)
        record = self._find(phone, purpose)
        if record is None:
            raise VerificationNotFound("No verification request found")

        now = self._clock()
        with storage_guard(self._db, "refresh a verification code"):
            record.code = self._code_factory()
            record.expires_at = now + self._ttl
            record.created_at = now
            self._db.flush()

        self._dispatch(record)
        logger.info("Resent %s verification code for %s", purpose.value, phone)
        return record

    def verify(
        self,
        phone: str,
        purpose: VerificationPurpose | str,
        code: str,
    ) -> VerificationPayload:
        """Consume the pending code for the pair and return its payload.

        Raises:
            VerificationNotFound: No record for the pair.
            CodeExpired: The record was past expiry; it has been deleted.
            CodeMismatch: The code differs; the record is kept for retries.

        Only the caller whose delete removes the row succeeds. A verify that
        loses a race against another one for the same record sees
        ``VerificationNotFound``.
        """
        phone = normalize_phone(phone)
        purpose = VerificationPurpose(purpose)
        record = self._find(phone, purpose)
        if record is None:
            raise VerificationNotFound("No verification request found")

        if self._clock() > ensure_utc(record.expires_at):
            if not self._consume(record, "discard an expired verification code"):
                raise VerificationNotFound("No verification request found")
            logger.info("Discarded expired %s code for %s", purpose.value, phone)
            raise CodeExpired("Verification code expired")

        if not hmac.compare_digest(record.code.encode(), code.strip().encode()):
            raise CodeMismatch("Invalid verification code")

        payload = VerificationPayload(
            email=record.email,
            name=record.name,
            company_name=record.company_name,
            address=record.address,
        )
        if not self._consume(record, "consume a verification code"):
            logger.warning("Verification code for %s was consumed concurrently", phone)
            raise VerificationNotFound("No verification request found")
        return payload

    def purge_expired(self, now: datetime | None = None) -> int:
        """Delete every expired record and return how many were removed."""
        cutoff = now or self._clock()
        with storage_guard(self._db, "purge expired verification codes"):
            result = self._db.execute(
                delete(VerificationCode).where(VerificationCode.expires_at < cutoff)
            )
            self._db.commit()
        return int(result.rowcount or 0)

    def _find(self, phone: str, purpose: VerificationPurpose) -> VerificationCode | None:
        with storage_guard(self._db, "look up a verification code"):
            return (
                self._db.query(VerificationCode)
                .filter(VerificationCode.phone == phone, VerificationCode.purpose == purpose)
                .order_by(VerificationCode.created_at.desc(), VerificationCode.id.desc())
                .first()
            )

    def _consume(self, record: VerificationCode, action: str) -> bool:
        """Delete the record by id and report whether this call removed it."""
        with storage_guard(self._db, action):
            result = self._db.execute(
                delete(VerificationCode)
                .where(VerificationCode.id == record.id)
                .execution_options(synchronize_session=False)
            )
            self._db.commit()
        return bool(result.rowcount)

    def _dispatch(self, record: VerificationCode) -> None:
        """Send the code, committing on success and rolling back on failure."""
        phone = record.phone
        try:
            self._notifier.send_verification_code(
                record.email or "",
                record.code,
                record.name or record.email or "",
            )
        except NotificationDeliveryFailed:
            self._db.rollback()
            raise
        except Exception as exc:
            self._db.rollback()
            logger.error("Notifier failed for %s: %s", phone, exc)
            raise NotificationDeliveryFailed("Failed to send verification email") from exc
        with storage_guard(self._db, "commit a verification code"):
            self._db.commit()
