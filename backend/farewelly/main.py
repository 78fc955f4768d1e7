# backend/farewelly/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.broadcast import connect_broadcast, disconnect_broadcast
from .core.config import settings
from .core.constants import API_VERSION, BRAND_NAME
from .errors import register_error_handlers
from .routes.v1 import (
    analytics as analytics_v1,
    bookings as bookings_v1,
    compliance as compliance_v1,
    health as health_v1,
    notifications as notifications_v1,
    payments as payments_v1,
    prometheus as prometheus_v1,
    realtime as realtime_v1,
    venue_availability as venue_availability_v1,
    venue_bookings as venue_bookings_v1,
)

logging.basicConfig(
    level=settings.log_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment}")

    if not settings.is_testing:
        try:
            await connect_broadcast()
        except Exception as e:
            # The relay answers 500 until Redis is reachable; everything else keeps working
            logger.error(f"Broadcast connection failed: {e}")

    yield

    logger.info(f"{BRAND_NAME} API shutting down...")
    if not settings.is_testing:
        await disconnect_broadcast()


app = FastAPI(
    title=f"{BRAND_NAME} API",
    description="Marketplace backend for funeral venues, directors and families",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)

register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["*"],
)

# All API routes live under /api
api_router = APIRouter(prefix="/api")
api_router.include_router(venue_availability_v1.router)
api_router.include_router(venue_bookings_v1.router)
api_router.include_router(bookings_v1.router)
api_router.include_router(compliance_v1.router)
api_router.include_router(analytics_v1.router)
api_router.include_router(payments_v1.router)
api_router.include_router(notifications_v1.router)
api_router.include_router(realtime_v1.router)

app.include_router(api_router)
app.include_router(health_v1.router)
app.include_router(prometheus_v1.router)
