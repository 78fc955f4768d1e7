"""Legal deadline tracking schemas."""

from datetime import date

from pydantic import BaseModel

from ._strict_base import StrictRequestModel


class RegisterDeathRequest(StrictRequestModel):
    death_registration_date: date


class ComplianceStatusResponse(BaseModel):
    booking_id: str
    booking_date: date
    death_registration_date: date
    legal_deadline: date
    days_remaining: int
    is_overdue: bool
    compliance_status: str
    alert_level: str
    scheduled_within_deadline: bool


class ComplianceCheckSummary(BaseModel):
    checked: int
    updated: int
    alerts: int
