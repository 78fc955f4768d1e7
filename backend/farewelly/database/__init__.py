"""
Engine, session factory and declarative base for Farewelly.

PostgreSQL gets a small LIFO pool with a short checkout timeout and a
server-side statement timeout. SQLite (tests, local tinkering) runs on a
single shared connection when in memory.
"""

from __future__ import annotations

import logging
import random
import time
from typing import Any, Callable, Generator, TypeVar

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Connection drops worth a second try; anything else propagates immediately.
TRANSIENT_MARKERS = (
    "server closed the connection",
    "ssl connection has been closed unexpectedly",
    "could not connect to server",
    "connection reset by peer",
)


def build_engine_kwargs(db_url: str) -> dict[str, Any]:
    """Return engine options suited to the target dialect."""
    if db_url.startswith("sqlite"):
        options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in db_url or db_url.rstrip("/") == "sqlite:":
            options["poolclass"] = StaticPool
        return options

    return {
        "pool_size": 5,
        "max_overflow": 10,
        "pool_timeout": 2,
        "pool_recycle": 300,
        "pool_pre_ping": True,
        "pool_use_lifo": True,
        "connect_args": {
            "connect_timeout": 5,
            "options": "-c statement_timeout=15000",
            "application_name": "farewelly_api",
        },
    }


db_url = settings.get_database_url()
engine: Engine = create_engine(db_url, future=True, **build_engine_kwargs(db_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Yield a session, committing on success and always closing it."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def is_transient(exc: OperationalError) -> bool:
    message = str(exc).lower()
    return any(marker in message for marker in TRANSIENT_MARKERS)


def with_db_retry(op_name: str, func: Callable[[], T], *, max_attempts: int = 3) -> T:
    """
    Call ``func`` and retry transient connection drops with jittered backoff.

    Used by background tasks, which have no client to surface a 503 to.
    """
    for attempt in range(1, max_attempts + 1):
        try:
            return func()
        except OperationalError as exc:
            if attempt == max_attempts or not is_transient(exc):
                raise
            delay = 0.1 * 2 ** (attempt - 1) + random.uniform(0, 0.05)
            logger.warning(
                "Transient DB failure in %s (attempt %d), retrying in %.2fs",
                op_name,
                attempt,
                delay,
                extra={"event": "db_retry", "op": op_name, "attempt": attempt},
            )
            time.sleep(delay)
    raise RuntimeError("unreachable")  # pragma: no cover


__all__ = [
    "Base",
    "SessionLocal",
    "build_engine_kwargs",
    "engine",
    "get_db",
    "is_transient",
    "with_db_retry",
]
