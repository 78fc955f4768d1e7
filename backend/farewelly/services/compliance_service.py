# backend/farewelly/services/compliance_service.py
"""
Legal deadline tracking for bookings.

Once the death registration date is recorded on a booking, the burial or
cremation deadline is fixed. ``check_deadlines`` re-evaluates every open
booking against today's date and alerts the family and director whenever
a booking moves into a more urgent status.
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..core.enums import ComplianceStatus, NotificationType, UserType
from ..core.exceptions import ForbiddenException, NotFoundException, ValidationException
from ..models.booking import Booking
from ..models.user import UserProfile
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..utils.legal_deadline import (
    ALERT_LEVELS,
    compliance_status,
    days_remaining,
    legal_deadline,
)
from .base import BaseService
from .notification_service import NotificationService

ALERT_MESSAGES = {
    ComplianceStatus.IN_PROGRESS.value: (
        "Two days or less remain until the legal deadline. Confirm the venue and services."
    ),
    ComplianceStatus.AT_RISK.value: (
        "Less than one day remains until the legal deadline. Finalize all arrangements now."
    ),
    ComplianceStatus.EMERGENCY.value: (
        "The legal deadline has been reached. Contact the municipality about an extension."
    ),
}

STATUS_RANK = {
    ComplianceStatus.PENDING.value: 0,
    ComplianceStatus.IN_PROGRESS.value: 1,
    ComplianceStatus.AT_RISK.value: 2,
    ComplianceStatus.EMERGENCY.value: 3,
}


def deadline_summary(booking: Booking, today: date) -> Dict[str, Any]:
    remaining = days_remaining(booking.legal_deadline, today)
    status = compliance_status(remaining)
    return {
        "booking_id": booking.id,
        "booking_date": booking.booking_date,
        "death_registration_date": booking.death_registration_date,
        "legal_deadline": booking.legal_deadline,
        "days_remaining": remaining,
        "is_overdue": remaining < 0,
        "compliance_status": status,
        "alert_level": ALERT_LEVELS[status],
        "scheduled_within_deadline": booking.booking_date <= booking.legal_deadline,
    }


class ComplianceService(BaseService):
    def __init__(self, db: Session, notification_service: Optional[NotificationService] = None):
        super().__init__(db)
        self.notification_service = notification_service or NotificationService(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)

    def _booking_for(self, profile: UserProfile, booking_id: str) -> Booking:
        booking = self.booking_repository.get_by_id(booking_id)
        if booking is None or not booking.is_party(profile.id):
            raise NotFoundException("Booking not found")
        return booking

    @BaseService.measure_operation("register_death")
    def register_death(
        self,
        profile: UserProfile,
        booking_id: str,
        death_registration_date: date,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Record the death registration date and fix the legal deadline.

        Only the booking's family or director may do this.
        """
        if profile.user_type not in (UserType.FAMILY.value, UserType.DIRECTOR.value):
            raise ForbiddenException("Only families and directors can register a death")
        booking = self._booking_for(profile, booking_id)
        today = (now or datetime.now(timezone.utc)).date()
        if death_registration_date > today:
            raise ValidationException("Death registration date cannot be in the future")

        deadline = legal_deadline(death_registration_date)
        with self.transaction():
            self.booking_repository.update(
                booking,
                death_registration_date=death_registration_date,
                legal_deadline=deadline,
                compliance_status=compliance_status(days_remaining(deadline, today)),
                compliance_checked_at=now or datetime.now(timezone.utc),
            )

        self.log_operation(
            "register_death", booking_id=booking.id, legal_deadline=deadline.isoformat()
        )
        return deadline_summary(booking, today)

    @BaseService.measure_operation("get_compliance_status")
    def get_status(
        self, profile: UserProfile, booking_id: str, now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        booking = self._booking_for(profile, booking_id)
        if booking.legal_deadline is None:
            raise NotFoundException("No compliance tracking found for this booking")
        return deadline_summary(booking, (now or datetime.now(timezone.utc)).date())

    @BaseService.measure_operation("check_deadlines")
    def check_deadlines(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """
        Re-evaluate every open booking with a legal deadline.

        Alerts go out only when a booking's status escalates, so repeated
        runs on the same day stay quiet.
        """
        checked_at = now or datetime.now(timezone.utc)
        today = checked_at.date()
        checked = updated = alerts = 0

        with self.transaction():
            for booking in self.booking_repository.open_with_legal_deadline():
                checked += 1
                new_status = compliance_status(days_remaining(booking.legal_deadline, today))
                previous = booking.compliance_status
                fields: Dict[str, Any] = {"compliance_checked_at": checked_at}
                if new_status != previous:
                    fields["compliance_status"] = new_status
                    updated += 1
                self.booking_repository.update(booking, **fields)

                escalated = STATUS_RANK[new_status] > STATUS_RANK.get(previous or "", 0)
                if escalated and new_status in ALERT_MESSAGES:
                    self._alert(booking, new_status, today)
                    alerts += 1

        summary = {"checked": checked, "updated": updated, "alerts": alerts}
        self.log_operation("check_deadlines", **summary)
        return summary

    def _alert(self, booking: Booking, status: str, today: date) -> None:
        prometheus_metrics.record_compliance_alert(status)
        data = {
            "booking_id": booking.id,
            "legal_deadline": booking.legal_deadline,
            "compliance_status": status,
            "days_remaining": days_remaining(booking.legal_deadline, today),
        }
        for recipient in (booking.family_id, booking.director_id):
            self.notification_service.notify(
                recipient,
                NotificationType.BOOKING.value,
                "Legal Deadline Alert",
                ALERT_MESSAGES[status],
                data,
            )
