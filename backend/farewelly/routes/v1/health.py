# backend/farewelly/routes/v1/health.py
"""
Health check endpoint for monitoring and load balancer checks.
"""

import logging

from fastapi import APIRouter, Response
from sqlalchemy import text

from ...core.constants import API_VERSION
from ...database import SessionLocal
from ...schemas.base_responses import HealthCheckResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def _database_ok() -> bool:
    try:
        with SessionLocal() as session:
            session.execute(text("SELECT 1"))
        return True
    except Exception as exc:
        logger.warning("Health check database query failed: %s", exc)
        return False


@router.get("/health", response_model=HealthCheckResponse)
def health_check(response: Response) -> HealthCheckResponse:
    database = _database_ok()
    if not database:
        response.status_code = 503
    return HealthCheckResponse(
        status="healthy" if database else "degraded",
        version=API_VERSION,
        checks={"database": database},
    )
