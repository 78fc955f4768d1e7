"""Venue booking schemas."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ._strict_base import ORMModel, StrictRequestModel


class ProfileSummary(ORMModel):
    id: str
    name: str
    email: str
    company: Optional[str] = None


class BookingPaymentSummary(ORMModel):
    id: str
    amount: float
    currency: str
    status: str
    created_at: datetime


class BookingResponse(ORMModel):
    id: str
    family_id: str
    director_id: Optional[str] = None
    venue_id: Optional[str] = None
    service_type: str
    booking_date: date
    start_time: str
    duration_minutes: int
    status: str
    price: Optional[float] = None
    notes: Optional[str] = None
    venue_notes: Optional[str] = None
    death_registration_date: Optional[date] = None
    legal_deadline: Optional[date] = None
    compliance_status: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    family: Optional[ProfileSummary] = None
    director: Optional[ProfileSummary] = None
    payments: List[BookingPaymentSummary] = Field(default_factory=list)


class BookingStats(BaseModel):
    total_bookings: int
    completed_bookings: int
    pending_bookings: int
    confirmed_bookings: int
    cancelled_bookings: int
    total_revenue: float
    average_booking_value: float
    completion_rate: int
    cancellation_rate: int


class BookingFiltersEcho(BaseModel):
    status: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    director_id: Optional[str] = None
    family_id: Optional[str] = None
    service_type: Optional[str] = None
    sort_by: str
    sort_order: str


class BookingListData(BaseModel):
    bookings: List[BookingResponse]
    stats: BookingStats
    filters: BookingFiltersEcho


class BookingActionRequest(StrictRequestModel):
    booking_id: str = Field(..., min_length=1)
    action: str = Field(..., description="confirm, cancel or complete")
    notes: Optional[str] = Field(default=None, max_length=2000)


class CreateBookingRequest(StrictRequestModel):
    service_type: str = Field(..., min_length=1, max_length=100)
    booking_date: date
    start_time: str = Field(..., description="HH:MM")
    duration_minutes: int = Field(..., gt=0, le=24 * 60)
    family_id: Optional[str] = Field(
        default=None, description="Required when a director books on behalf of a family"
    )
    director_id: Optional[str] = None
    venue_id: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=2000)


class PartyBookingFiltersEcho(BaseModel):
    status: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    service_type: Optional[str] = None


class PartyBookingListData(BaseModel):
    bookings: List[BookingResponse]
    user_role: str
    filters: PartyBookingFiltersEcho
