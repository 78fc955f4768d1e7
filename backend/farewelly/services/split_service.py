# backend/farewelly/services/split_service.py
"""
Payment split queries and payout bookkeeping for directors and venues.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Sequence

from sqlalchemy.orm import Session

from ..core.enums import NotificationType, PaymentStatus, SplitAction, SplitStatus, UserType
from ..core.exceptions import ForbiddenException, NotFoundException, ValidationException
from ..models.payment import PaymentSplit
from ..models.user import UserProfile
from ..repositories.factory import RepositoryFactory
from ..repositories.payment_repository import SplitFilters
from ..utils.money import money_float
from .base import BaseService
from .notification_service import NotificationService

SPLIT_RECIPIENT_TYPES = (UserType.DIRECTOR.value, UserType.VENUE.value)
SETTLEABLE_PAYMENT_STATUSES = {PaymentStatus.COMPLETED.value, PaymentStatus.PARTIAL_REFUNDED.value}
PAYOUT_PROCESSING_DAYS = "3-5"


class SplitService(BaseService):
    def __init__(self, db: Session, notification_service: NotificationService | None = None):
        super().__init__(db)
        self.notification_service = notification_service or NotificationService(db)
        self.split_repository = RepositoryFactory.create_payment_split_repository(db)

    def _ensure_recipient(self, profile: UserProfile) -> None:
        if profile.user_type not in SPLIT_RECIPIENT_TYPES:
            raise ForbiddenException(
                "Access denied - only service providers can view payment splits"
            )

    @BaseService.measure_operation("list_splits")
    def list_splits(
        self, profile: UserProfile, filters: SplitFilters, *, offset: int, limit: int
    ) -> tuple[List[PaymentSplit], int, Dict[str, Any]]:
        self._ensure_recipient(profile)
        rows, total = self.split_repository.list_for_recipient(
            profile.id, filters, offset=offset, limit=limit
        )
        totals = self.split_repository.totals_for_recipient(profile.id, filters)
        stats = {
            "total_splits": totals["count"],
            "total_amount": money_float(totals["total_amount"]),
            "paid_amount": money_float(totals["paid_amount"]),
            "pending_amount": money_float(totals["pending_amount"]),
            "refunded_amount": money_float(totals["refunded_amount"]),
            "net_amount": money_float(totals["total_amount"] - totals["refunded_amount"]),
        }
        return rows, total, stats

    @BaseService.measure_operation("update_splits")
    def update_splits(
        self, profile: UserProfile, split_ids: Sequence[str], action: str
    ) -> tuple[List[PaymentSplit], Decimal]:
        """
        Mark splits as paid or request a payout for them.

        Every requested split must belong to the caller and sit on a
        settled payment; ``mark_paid`` also requires the split to be pending.
        """
        self._ensure_recipient(profile)
        if not split_ids:
            raise ValidationException("split_ids array is required")

        splits = self.split_repository.get_many(split_ids)
        if not splits:
            raise NotFoundException("No valid splits found")
        if any(split.recipient_id != profile.id for split in splits):
            raise ForbiddenException("Access denied - can only update your own splits")
        if action == SplitAction.MARK_PAID.value and any(
            split.status != SplitStatus.PENDING.value for split in splits
        ):
            raise ValidationException("Can only mark pending splits as paid")
        if any(split.payment.status not in SETTLEABLE_PAYMENT_STATUSES for split in splits):
            raise ValidationException("Can only update splits for completed payments")

        now = datetime.now(timezone.utc)
        with self.transaction():
            for split in splits:
                if action == SplitAction.MARK_PAID.value:
                    self.split_repository.update(split, status=SplitStatus.PAID.value, paid_at=now)
                elif action == SplitAction.REQUEST_PAYOUT.value:
                    self.split_repository.update(
                        split,
                        status=SplitStatus.PAYOUT_REQUESTED.value,
                        payout_requested_at=now,
                    )
                else:
                    raise ValidationException("Invalid action")

            total_amount = sum((Decimal(split.amount) for split in splits), Decimal("0"))
            if action == SplitAction.REQUEST_PAYOUT.value:
                self.logger.info(
                    "Payout request: %s requested %s", profile.id, total_amount
                )
                self.notification_service.notify(
                    profile.id,
                    NotificationType.PAYMENT.value,
                    "Payout Requested",
                    f"Your payout request for €{money_float(total_amount)} has been submitted "
                    f"and will be processed within {PAYOUT_PROCESSING_DAYS} business days",
                    {
                        "split_ids": [split.id for split in splits],
                        "total_amount": money_float(total_amount),
                        "estimated_processing_days": PAYOUT_PROCESSING_DAYS,
                    },
                )

        return splits, total_amount
