"""
Exception handlers that render every failure as the error envelope:

    {"success": false, "error": "<message>", "code": "<code>", "details": {...}}

``code`` and ``details`` are omitted when empty.
"""

from http import HTTPStatus
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.constants import FALLBACK_MESSAGE_UNAVAILABLE, FALLBACK_MESSAGE_UNEXPECTED
from .core.exceptions import (
    ConcurrentModificationException,
    DomainException,
    RepositoryException,
    is_db_pool_exhaustion,
)

logger = logging.getLogger(__name__)


def error_response(
    status_code: int,
    error: str,
    *,
    code: Optional[str] = None,
    details: Optional[Any] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    body: Dict[str, Any] = {"success": False, "error": error}
    if code:
        body["code"] = code
    if details:
        body["details"] = jsonable_encoder(details)
    return JSONResponse(body, status_code=status_code, headers=headers)


def _status_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


def _first_error_message(errors: list[dict[str, Any]]) -> str:
    """Flatten pydantic's error list into ``field: reason`` for the top error."""
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query"))
    reason = str(first.get("msg", "Invalid value")).removeprefix("Value error, ")
    return f"{field}: {reason}" if field else reason


def _validation_response(errors: list[dict[str, Any]]) -> JSONResponse:
    errors = jsonable_encoder(errors)
    return error_response(
        400,
        _first_error_message(errors),
        code="validation_error",
        details={"errors": errors},
    )


def _http_exception_response(exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict):
        message = detail.get("message") or detail.get("detail")
        code = detail.get("code")
        return error_response(
            exc.status_code,
            message if isinstance(message, str) else _status_phrase(exc.status_code),
            code=code if isinstance(code, str) else None,
            details=detail.get("details") or detail.get("errors"),
            headers=exc.headers,
        )
    return error_response(
        exc.status_code,
        str(detail) if detail else _status_phrase(exc.status_code),
        headers=exc.headers,
    )


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
        return error_response(
            exc.status_code,
            exc.message or _status_phrase(exc.status_code),
            code=exc.code,
            details=exc.details,
            headers=exc.headers,
        )

    # fastapi.HTTPException subclasses Starlette's, so one handler covers both
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _http_exception_response(exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _validation_response(list(exc.errors()))

    @app.exception_handler(ValidationError)
    async def model_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return _validation_response(list(exc.errors()))

    @app.exception_handler(StaleDataError)
    async def stale_data_handler(request: Request, exc: StaleDataError) -> JSONResponse:
        logger.warning("Optimistic concurrency conflict on %s: %s", request.url.path, exc)
        conflict = ConcurrentModificationException("Record")
        return error_response(409, conflict.message, code=conflict.code, details=conflict.details)

    @app.exception_handler(OperationalError)
    async def operational_error_handler(request: Request, exc: OperationalError) -> JSONResponse:
        logger.error("Database unavailable on %s: %s", request.url.path, exc)
        return error_response(
            503,
            FALLBACK_MESSAGE_UNAVAILABLE,
            code="service_unavailable",
            headers={"Retry-After": "2"} if is_db_pool_exhaustion(exc) else None,
        )

    @app.exception_handler(RepositoryException)
    async def repository_exception_handler(
        request: Request, exc: RepositoryException
    ) -> JSONResponse:
        logger.error("Repository failure on %s: %s", request.url.path, exc)
        return error_response(500, "Database operation failed", code="database_error")

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s", request.url.path)
        return error_response(500, FALLBACK_MESSAGE_UNEXPECTED, code="internal_server_error")
