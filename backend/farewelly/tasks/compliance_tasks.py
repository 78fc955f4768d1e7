# backend/farewelly/tasks/compliance_tasks.py
"""Periodic legal deadline check for open bookings."""

from __future__ import annotations

from typing import Dict

from celery.utils.log import get_task_logger

from farewelly.database import SessionLocal, with_db_retry
from farewelly.services.compliance_service import ComplianceService
from farewelly.tasks.celery_app import celery_app

logger = get_task_logger(__name__)


def _run_check() -> Dict[str, int]:
    db = SessionLocal()
    try:
        return ComplianceService(db).check_deadlines()
    finally:
        db.close()


@celery_app.task(name="compliance.check_deadlines", max_retries=0, queue="notifications")
def check_deadlines() -> Dict[str, int]:
    summary = with_db_retry("compliance_check", _run_check)
    if summary["alerts"]:
        logger.info(
            "Legal deadline check raised %s alerts over %s bookings",
            summary["alerts"],
            summary["checked"],
        )
    return summary
