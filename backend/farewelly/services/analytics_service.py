# backend/farewelly/services/analytics_service.py
"""
Venue analytics.

Derives booking, revenue, utilization and review metrics for a reporting
window, compares bookings and revenue against the preceding window of the
same length, and assembles chart-ready series for the dashboard.
"""

from collections import Counter, OrderedDict
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import AnalyticsPeriod, BookingStatus, PaymentStatus
from ..core.exceptions import RepositoryException, ValidationException
from ..models.booking import Booking
from ..models.user import UserProfile
from ..models.venue_availability import VenueAvailability
from ..repositories.factory import RepositoryFactory
from ..utils.money import money_float, percentage
from .base import BaseService


@dataclass
class ReportingWindow:
    period: str
    start: datetime
    end: datetime

    @property
    def previous(self) -> "ReportingWindow":
        length = self.end - self.start
        return ReportingWindow(period=self.period, start=self.start - length, end=self.start)


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def resolve_window(
    period: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    now: Optional[datetime] = None,
) -> ReportingWindow:
    """Map a period name to a concrete [start, end] window ending now."""
    now = _as_utc(now or datetime.now(timezone.utc))
    end = now
    month_start = datetime(now.year, now.month, 1, tzinfo=timezone.utc)

    if period == AnalyticsPeriod.WEEK.value:
        start = now - timedelta(days=7)
    elif period == AnalyticsPeriod.QUARTER.value:
        start = datetime(now.year, (now.month - 1) // 3 * 3 + 1, 1, tzinfo=timezone.utc)
    elif period == AnalyticsPeriod.YEAR.value:
        start = datetime(now.year, 1, 1, tzinfo=timezone.utc)
    elif period == AnalyticsPeriod.CUSTOM.value:
        start = (
            datetime.combine(start_date, time.min, tzinfo=timezone.utc)
            if start_date
            else now - timedelta(days=30)
        )
        if end_date:
            end = datetime.combine(end_date, time.max, tzinfo=timezone.utc)
        if start > end:
            raise ValidationException("start_date must be on or before end_date")
    else:
        start = month_start
    return ReportingWindow(period=period, start=start, end=end)


def growth_rate(current: float, previous: float) -> float:
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round((current - previous) / previous * 100, 2)


def completed_revenue(booking: Booking) -> Decimal:
    return sum(
        (
            Decimal(payment.amount)
            for payment in booking.payments or []
            if payment.status == PaymentStatus.COMPLETED.value
        ),
        Decimal("0"),
    )


def _line_dataset(label: str, data: List[Any], color: str, fill: str) -> Dict[str, Any]:
    return {"label": label, "data": data, "borderColor": color, "backgroundColor": fill}


class AnalyticsService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.availability_repository = RepositoryFactory.create_availability_repository(db)
        self.review_repository = RepositoryFactory.create_venue_review_repository(db)

    def _ratings(self, venue_id: str, window: ReportingWindow) -> List[int]:
        try:
            reviews = self.review_repository.list_between(venue_id, window.start, window.end)
        except (RepositoryException, SQLAlchemyError) as exc:
            self.logger.error("Failed to fetch reviews for %s: %s", venue_id, exc)
            return []
        return [int(review.rating) for review in reviews]

    @BaseService.measure_operation("venue_analytics")
    def venue_analytics(
        self,
        venue: UserProfile,
        *,
        period: str = AnalyticsPeriod.MONTH.value,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        window = resolve_window(period, start_date, end_date, now=now)

        bookings = self.booking_repository.created_between(venue.id, window.start, window.end)
        availability = self.availability_repository.list_between(
            venue.id, window.start.date(), window.end.date()
        )
        ratings = self._ratings(venue.id, window)

        previous = window.previous
        previous_count = self.booking_repository.count_created_between(
            venue.id, previous.start, previous.end
        )
        previous_revenue = self.booking_repository.revenue_created_between(
            venue.id, previous.start, previous.end
        )

        metrics = self._metrics(bookings, availability, ratings)
        comparisons = {
            "bookings_growth": growth_rate(metrics["total_bookings"], previous_count),
            "revenue_growth": growth_rate(metrics["total_revenue"], float(previous_revenue)),
        }
        return {
            "period": period,
            "window": {"start": window.start.isoformat(), "end": window.end.isoformat()},
            "metrics": metrics,
            "comparisons": comparisons,
            "charts": self._charts(period, bookings, availability, metrics),
        }

    def single_metric(self, analytics: Dict[str, Any], metric: str) -> Dict[str, Any]:
        """Narrow a full analytics payload to one metric and its matching chart."""
        metrics = analytics["metrics"]
        if metric not in metrics:
            raise ValidationException(f"Unknown metric: {metric}")
        needle = metric.lower()
        chart = next(
            (c for c in analytics["charts"] if needle in c["title"].lower()),
            None,
        )
        return {
            "period": analytics["period"],
            "metric_name": metric,
            "value": metrics[metric],
            "growth": analytics["comparisons"].get(f"{metric}_growth", 0),
            "chart": chart,
        }

    def _metrics(
        self,
        bookings: Sequence[Booking],
        availability: Sequence[VenueAvailability],
        ratings: Sequence[int],
    ) -> Dict[str, Any]:
        statuses = Counter(booking.status for booking in bookings)
        total = len(bookings)
        revenue = sum((completed_revenue(b) for b in bookings), Decimal("0"))

        total_slots = available_slots = booked_slots = 0
        for record in availability:
            for slot in record.time_slots or []:
                total_slots += 1
                available_slots += 1 if slot.get("is_available") else 0
                booked_slots += 1 if slot.get("booking_id") else 0

        family_bookings = Counter(b.family_id for b in bookings if b.family_id)
        repeat_families = sum(1 for count in family_bookings.values() if count > 1)
        completed = statuses.get(BookingStatus.COMPLETED.value, 0)
        cancelled = statuses.get(BookingStatus.CANCELLED.value, 0)

        return {
            "total_bookings": total,
            "completed_bookings": completed,
            "confirmed_bookings": statuses.get(BookingStatus.CONFIRMED.value, 0),
            "pending_bookings": statuses.get(BookingStatus.PENDING.value, 0),
            "cancelled_bookings": cancelled,
            "total_revenue": money_float(revenue),
            "average_booking_value": money_float(revenue / total) if total else 0.0,
            "utilization_rate": percentage(booked_slots, total_slots, places=2),
            "total_time_slots": total_slots,
            "available_time_slots": available_slots,
            "booked_time_slots": booked_slots,
            "unique_directors": len({b.director_id for b in bookings if b.director_id}),
            "unique_families": len(family_bookings),
            "total_reviews": len(ratings),
            "average_rating": round(sum(ratings) / len(ratings), 1) if ratings else 0.0,
            "completion_rate": int(percentage(completed, total)),
            "cancellation_rate": int(percentage(cancelled, total)),
            "repeat_client_rate": int(percentage(repeat_families, len(family_bookings))),
        }

    def _charts(
        self,
        period: str,
        bookings: Sequence[Booking],
        availability: Sequence[VenueAvailability],
        metrics: Dict[str, Any],
    ) -> List[Dict[str, Any]]:
        charts: List[Dict[str, Any]] = []

        by_day: "OrderedDict[str, int]" = OrderedDict()
        for booking in bookings:
            label = _as_utc(booking.created_at).date().isoformat()
            by_day[label] = by_day.get(label, 0) + 1
        charts.append(
            {
                "type": "line",
                "title": "Bookings Over Time",
                "data": {
                    "labels": list(by_day.keys()),
                    "datasets": [
                        _line_dataset(
                            "Bookings",
                            list(by_day.values()),
                            "#3B82F6",
                            "rgba(59, 130, 246, 0.1)",
                        )
                    ],
                },
            }
        )

        if period in (AnalyticsPeriod.YEAR.value, AnalyticsPeriod.QUARTER.value):
            by_month: "OrderedDict[str, Decimal]" = OrderedDict()
            for booking in bookings:
                label = _as_utc(booking.created_at).strftime("%b")
                by_month[label] = by_month.get(label, Decimal("0")) + completed_revenue(booking)
            charts.append(
                {
                    "type": "bar",
                    "title": "Revenue by Month",
                    "data": {
                        "labels": list(by_month.keys()),
                        "datasets": [
                            {
                                "label": "Revenue (€)",
                                "data": [money_float(v) for v in by_month.values()],
                                "backgroundColor": "#10B981",
                            }
                        ],
                    },
                }
            )

        charts.append(
            {
                "type": "doughnut",
                "title": "Booking Status Distribution",
                "data": {
                    "labels": ["Completed", "Confirmed", "Pending", "Cancelled"],
                    "datasets": [
                        {
                            "label": "Bookings",
                            "data": [
                                metrics["completed_bookings"],
                                metrics["confirmed_bookings"],
                                metrics["pending_bookings"],
                                metrics["cancelled_bookings"],
                            ],
                            "backgroundColor": ["#10B981", "#3B82F6", "#F59E0B", "#EF4444"],
                        }
                    ],
                },
            }
        )

        if availability:
            labels, values = [], []
            for record in availability:
                slots = record.time_slots or []
                booked = sum(1 for slot in slots if slot.get("booking_id"))
                labels.append(record.date.isoformat())
                values.append(percentage(booked, len(slots), places=2))
            charts.append(
                {
                    "type": "line",
                    "title": "Daily Utilization Rate",
                    "data": {
                        "labels": labels,
                        "datasets": [
                            _line_dataset(
                                "Utilization %", values, "#8B5CF6", "rgba(139, 92, 246, 0.1)"
                            )
                        ],
                    },
                }
            )

        via_directors = sum(1 for b in bookings if b.director_id)
        direct_families = sum(1 for b in bookings if b.family_id and not b.director_id)
        if bookings:
            client_labels, client_values = [], []
            if via_directors:
                client_labels.append("Via Directors")
                client_values.append(via_directors)
            if direct_families:
                client_labels.append("Direct Families")
                client_values.append(direct_families)
            charts.append(
                {
                    "type": "pie",
                    "title": "Client Types",
                    "data": {
                        "labels": client_labels,
                        "datasets": [
                            {
                                "label": "Bookings",
                                "data": client_values,
                                "backgroundColor": ["#06B6D4", "#F59E0B"],
                            }
                        ],
                    },
                }
            )

        return charts
