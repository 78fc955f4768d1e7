"""Venue analytics schemas."""

from typing import Any, List, Optional

from pydantic import BaseModel


class ChartDataset(BaseModel):
    label: str
    data: List[Any]
    borderColor: Optional[str] = None
    backgroundColor: Optional[Any] = None


class ChartBody(BaseModel):
    labels: List[str]
    datasets: List[ChartDataset]


class Chart(BaseModel):
    type: str
    title: str
    data: ChartBody


class AnalyticsWindow(BaseModel):
    start: str
    end: str


class VenueMetrics(BaseModel):
    total_bookings: int
    completed_bookings: int
    confirmed_bookings: int
    pending_bookings: int
    cancelled_bookings: int
    total_revenue: float
    average_booking_value: float
    utilization_rate: float
    total_time_slots: int
    available_time_slots: int
    booked_time_slots: int
    unique_directors: int
    unique_families: int
    total_reviews: int
    average_rating: float
    completion_rate: int
    cancellation_rate: int
    repeat_client_rate: int


class AnalyticsComparisons(BaseModel):
    bookings_growth: float
    revenue_growth: float


class VenueAnalyticsData(BaseModel):
    period: str
    window: AnalyticsWindow
    metrics: VenueMetrics
    comparisons: AnalyticsComparisons
    charts: List[Chart]


class SingleMetricData(BaseModel):
    period: str
    metric_name: str
    value: Any
    growth: float
    chart: Optional[Chart] = None
