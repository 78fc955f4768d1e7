"""Availability ledger request and response schemas."""

from datetime import date as date_type, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..core.enums import AvailabilityAction
from ._strict_base import ORMModel, StrictRequestModel


class TimeSlotInput(BaseModel):
    """
    One submitted slot. Times accept HH:MM or HH:MM:SS and are validated
    (including start before end) by the availability service.
    """

    start_time: Optional[str] = None
    end_time: Optional[str] = None
    is_available: bool = True
    price: Decimal = Field(default=Decimal("0"), ge=0)
    booking_id: Optional[str] = None


class SetAvailabilityRequest(StrictRequestModel):
    date: date_type
    time_slots: List[TimeSlotInput]
    special_pricing: Optional[Dict[str, Any]] = None


class DayStateRequest(StrictRequestModel):
    date: date_type
    action: AvailabilityAction
    reason: Optional[str] = Field(default=None, max_length=500)


class TimeSlot(BaseModel):
    start_time: str
    end_time: str
    is_available: bool
    price: float = 0.0
    booking_id: Optional[str] = None


class AvailabilityResponse(ORMModel):
    id: str
    venue_id: str
    date: date_type
    time_slots: List[TimeSlot]
    special_pricing: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None
    version: int
    created_at: datetime
    updated_at: datetime


class AvailabilityStats(BaseModel):
    total_slots: int
    available_slots: int
    booked_slots: int
    utilization_rate: int
    availability_rate: int


class AvailabilityPeriod(BaseModel):
    start: Optional[date_type] = None
    end: Optional[date_type] = None


class AvailabilityListData(BaseModel):
    availability: List[AvailabilityResponse]
    stats: AvailabilityStats
    view: str
    period: AvailabilityPeriod
