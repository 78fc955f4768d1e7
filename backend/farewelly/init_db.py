# backend/farewelly/init_db.py
"""Create all tables for a fresh database."""

import logging

from . import models  # noqa: F401
from .database import Base, engine

logger = logging.getLogger(__name__)


def init_db() -> None:
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
