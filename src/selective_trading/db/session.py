"""Database session configuration."""

from __future__ import annotations

import math
from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from selective_trading.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Ensure model modules are imported so that metadata is populated when create_all runs.
import selective_trading.models  # noqa: E402,F401


def _engine_options(url: str, timeout_seconds: float) -> dict[str, Any]:
    """Return driver options that bound every store call by ``timeout_seconds``."""
    backend = make_url(url).get_backend_name()
    if backend == "sqlite":
        # Busy timeout: how long a writer waits on the database lock.
        return {"connect_args": {"check_same_thread": False, "timeout": timeout_seconds}}

    options: dict[str, Any] = {"pool_timeout": timeout_seconds}
    if backend == "postgresql":
        millis = int(timeout_seconds * 1000)
        options["connect_args"] = {
            "connect_timeout": max(1, math.ceil(timeout_seconds)),
            "options": f"-c statement_timeout={millis} -c lock_timeout={millis}",
        }
    return options


def build_engine(url: str, timeout_seconds: float | None = None) -> Engine:
    """Create an engine for ``url`` with the configured store timeouts."""
    timeout = settings.db_timeout_seconds if timeout_seconds is None else timeout_seconds
    return create_engine(
        url,
        pool_pre_ping=True,
        echo=settings.sql_debug,
        **_engine_options(url, timeout),
    )


engine = build_engine(settings.effective_database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for dependency injection."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables() -> None:
    """Create all database tables."""
    Base.metadata.create_all(bind=engine)
