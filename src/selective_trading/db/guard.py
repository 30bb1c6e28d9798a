# src/selective_trading/db/guard.py
"""Translation of driver-level failures into StorageUnavailable."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Final

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from selective_trading.core.errors import StorageUnavailable

logger = logging.getLogger(__name__)

# Errors meaning the store is unreachable or did not answer in time.
STORAGE_ERRORS: Final = (OperationalError, InterfaceError, PoolTimeoutError)


@contextmanager
def storage_guard(db: Session, action: str) -> Iterator[None]:
    """Roll back and raise StorageUnavailable if the block hits a storage failure."""
    try:
        yield
    except STORAGE_ERRORS as err:
        db.rollback()
        logger.error("Storage failure while trying to %s: %s", action, err)
        raise StorageUnavailable(f"Storage unavailable while trying to {action}") from err
