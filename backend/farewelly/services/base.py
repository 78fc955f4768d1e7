# backend/farewelly/services/base.py
"""
Base Service Pattern for the Farewelly platform.

Services own the transaction boundary. Repositories only flush, so a
service method wraps its writes in ``transaction()`` and the commit or
rollback happens once, here, with driver errors translated to the
domain exceptions the error handlers understand.
"""

import asyncio
from contextlib import contextmanager
from functools import wraps
import logging
import time
from typing import Any, Callable, Iterator, Optional, TypeVar, cast

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..core.exceptions import (
    ConcurrentModificationException,
    ServiceException,
    ServiceUnavailableException,
)
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

SLOW_OPERATION_SECONDS = 1.0


class BaseService:
    """Shared session handling, logging and timing for service classes."""

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Commit on clean exit, roll back on any error.

        Usage:
            with self.transaction():
                self.booking_repository.update(booking, status="confirmed")
        """
        try:
            yield self.db
            self.db.commit()
        except StaleDataError as exc:
            self.db.rollback()
            self.logger.warning("Concurrent modification detected: %s", exc)
            raise ConcurrentModificationException("Record") from exc
        except OperationalError as exc:
            self.db.rollback()
            self.logger.error("Database unavailable: %s", exc)
            raise ServiceUnavailableException() from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            self.logger.error("Transaction failed: %s", exc)
            raise ServiceException(f"Database operation failed: {exc}") from exc
        except Exception:
            self.db.rollback()
            raise

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Time a service method and export the result to prometheus.

        Works for both plain and ``async def`` methods.
        """

        def decorator(func: F) -> F:
            func._operation_name = operation_name  # type: ignore[attr-defined]

            if asyncio.iscoroutinefunction(func):

                @wraps(func)
                async def async_wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
                    started = time.perf_counter()
                    error_type: Optional[str] = None
                    try:
                        return await func(self, *args, **kwargs)
                    except Exception as exc:
                        error_type = type(exc).__name__
                        raise
                    finally:
                        _observe(self, operation_name, time.perf_counter() - started, error_type)

                return cast(F, async_wrapper)

            @wraps(func)
            def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
                started = time.perf_counter()
                error_type: Optional[str] = None
                try:
                    return func(self, *args, **kwargs)
                except Exception as exc:
                    error_type = type(exc).__name__
                    raise
                finally:
                    _observe(self, operation_name, time.perf_counter() - started, error_type)

            return cast(F, wrapper)

        return decorator

    def log_operation(self, operation: str, **context: Any) -> None:
        self.logger.info("Operation: %s", operation, extra={"operation": operation, **context})


def _observe(service: Any, operation: str, elapsed: float, error_type: Optional[str]) -> None:
    if elapsed > SLOW_OPERATION_SECONDS:
        service.logger.warning("Slow operation detected: %s took %.2fs", operation, elapsed)

    try:
        prometheus_metrics.record_service_operation(
            service=service.__class__.__name__,
            operation=operation,
            duration=elapsed,
            status="error" if error_type else "success",
            error_type=error_type,
        )
    except Exception:
        # metrics must never fail the call
        logger.debug("Failed to record service metric", exc_info=True)
