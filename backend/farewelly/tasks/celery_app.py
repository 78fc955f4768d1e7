# backend/farewelly/tasks/celery_app.py
"""
Celery application for Farewelly background work.

Redis is both broker and result backend. Beat runs the notification
outbox dispatcher and the legal deadline check on fixed intervals, both on
the ``notifications`` queue.
"""

import logging
import os
import re
from typing import Any

from celery import Celery
from celery.signals import setup_logging

from farewelly.core.config import settings

NOTIFICATIONS_QUEUE = "notifications"


def _broker_url() -> str:
    url = os.getenv("CELERY_BROKER_URL") or os.getenv("REDIS_URL") or settings.redis_url
    # pin a database index when the URL has none
    return url if re.search(r"/\d{1,2}$", url) else f"{url.rstrip('/')}/0"


def create_celery_app() -> Celery:
    broker = _broker_url()
    app = Celery(
        "farewelly",
        broker=broker,
        backend=os.getenv("CELERY_RESULT_BACKEND") or broker,
        include=["farewelly.tasks.notification_tasks", "farewelly.tasks.compliance_tasks"],
    )
    app.conf.update(
        task_serializer="json",
        result_serializer="json",
        accept_content=["json"],
        timezone="Europe/Amsterdam",
        enable_utc=True,
        task_acks_late=True,
        task_reject_on_worker_lost=True,
        task_soft_time_limit=300,
        task_time_limit=600,
        worker_prefetch_multiplier=4,
        worker_max_tasks_per_child=1000,
        worker_hijack_root_logger=False,
        broker_transport_options={"visibility_timeout": 3600},
        task_routes={
            "outbox.*": {"queue": NOTIFICATIONS_QUEUE},
            "compliance.*": {"queue": NOTIFICATIONS_QUEUE},
        },
        beat_schedule={
            "dispatch-notification-outbox": {
                "task": "outbox.dispatch_pending",
                "schedule": float(settings.outbox_dispatch_interval_seconds),
                "options": {"queue": NOTIFICATIONS_QUEUE},
            },
            "check-legal-deadlines": {
                "task": "compliance.check_deadlines",
                "schedule": float(settings.compliance_check_interval_seconds),
                "options": {"queue": NOTIFICATIONS_QUEUE},
            },
        },
    )
    return app


@setup_logging.connect  # type: ignore[misc]
def configure_worker_logging(*args: Any, **kwargs: Any) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


celery_app = create_celery_app()
