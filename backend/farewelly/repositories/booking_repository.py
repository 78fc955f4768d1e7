# backend/farewelly/repositories/booking_repository.py
"""
Booking data access for venue dashboards and analytics.

List statistics are computed with SQL aggregates over the whole filtered
set, independent of the requested page.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Query, Session, joinedload, selectinload

from ..core.enums import BookingStatus, PaymentStatus
from ..models.booking import Booking
from ..models.payment import Payment
from .base_repository import BaseRepository

SORTABLE_COLUMNS = {
    "date": Booking.booking_date,
    "created_at": Booking.created_at,
    "price": Booking.price,
    "status": Booking.status,
}


@dataclass
class BookingFilters:
    status: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    director_id: Optional[str] = None
    family_id: Optional[str] = None
    service_type: Optional[str] = None
    sort_by: str = "date"
    sort_order: str = "desc"


class BookingRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(db, Booking)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(
            joinedload(Booking.family),
            joinedload(Booking.director),
            joinedload(Booking.venue),
            selectinload(Booking.payments),
        )

    def get_for_venue(self, booking_id: str, venue_id: str) -> Optional[Booking]:
        query = self._build_query().filter(Booking.id == booking_id, Booking.venue_id == venue_id)
        rows = self._execute_query(self._apply_eager_loading(query))
        return rows[0] if rows else None

    def _filtered(self, venue_id: str, filters: BookingFilters) -> Query:
        return self._scoped(Booking.venue_id, venue_id, filters)

    def _scoped(self, party_column: Any, party_id: str, filters: BookingFilters) -> Query:
        query = self._build_query().filter(party_column == party_id)
        if filters.status:
            query = query.filter(Booking.status == filters.status)
        if filters.start_date:
            query = query.filter(Booking.booking_date >= filters.start_date)
        if filters.end_date:
            query = query.filter(Booking.booking_date <= filters.end_date)
        if filters.director_id:
            query = query.filter(Booking.director_id == filters.director_id)
        if filters.family_id:
            query = query.filter(Booking.family_id == filters.family_id)
        if filters.service_type:
            query = query.filter(Booking.service_type == filters.service_type)
        return query

    def list_for_venue(
        self, venue_id: str, filters: BookingFilters, *, offset: int, limit: int
    ) -> tuple[List[Booking], int]:
        column = SORTABLE_COLUMNS.get(filters.sort_by, Booking.booking_date)
        ordering = column.asc() if filters.sort_order == "asc" else column.desc()
        query = self._filtered(venue_id, filters).order_by(ordering, Booking.id.asc())
        return self._paginate(
            query,
            offset=offset,
            limit=limit,
            options=(
                joinedload(Booking.family),
                joinedload(Booking.director),
                selectinload(Booking.payments),
            ),
        )

    def list_for_party(
        self, party_column: Any, party_id: str, filters: BookingFilters, *, offset: int, limit: int
    ) -> tuple[List[Booking], int]:
        """Bookings where the profile sits in ``party_column``, newest first."""
        query = self._scoped(party_column, party_id, filters).order_by(
            Booking.created_at.desc(), Booking.id.desc()
        )
        return self._paginate(
            query,
            offset=offset,
            limit=limit,
            options=(
                joinedload(Booking.family),
                joinedload(Booking.director),
                selectinload(Booking.payments),
            ),
        )

    def status_counts(self, venue_id: str, filters: BookingFilters) -> dict[str, int]:
        ids = self._filtered(venue_id, filters).with_entities(Booking.id).statement
        rows = self._execute_query(
            self.db.query(Booking.status, func.count(Booking.id))
            .filter(Booking.id.in_(ids))
            .group_by(Booking.status)
        )
        return {status: int(count) for status, count in rows}

    def completed_revenue(self, venue_id: str, filters: BookingFilters) -> Decimal:
        ids = self._filtered(venue_id, filters).with_entities(Booking.id).statement
        total = self._execute_scalar(
            self.db.query(func.coalesce(func.sum(Payment.amount), 0)).filter(
                Payment.booking_id.in_(ids),
                Payment.status == PaymentStatus.COMPLETED.value,
            )
        )
        return Decimal(str(total or 0))

    def pending_on_date(self, venue_id: str, day: date) -> List[Booking]:
        return self._execute_query(
            self._build_query().filter(
                Booking.venue_id == venue_id,
                Booking.booking_date == day,
                Booking.status == BookingStatus.PENDING.value,
            )
        )

    def created_between(self, venue_id: str, start: datetime, end: datetime) -> List[Booking]:
        query = (
            self._build_query()
            .options(selectinload(Booking.payments))
            .filter(
                Booking.venue_id == venue_id,
                Booking.created_at >= start,
                Booking.created_at <= end,
            )
            .order_by(Booking.created_at.asc())
        )
        return self._execute_query(query)

    def count_created_between(self, venue_id: str, start: datetime, end: datetime) -> int:
        return int(
            self._execute_scalar(
                self.db.query(func.count(Booking.id)).filter(
                    Booking.venue_id == venue_id,
                    Booking.created_at >= start,
                    Booking.created_at < end,
                )
            )
            or 0
        )

    def revenue_created_between(self, venue_id: str, start: datetime, end: datetime) -> Decimal:
        total: Any = self._execute_scalar(
            self.db.query(func.coalesce(func.sum(Payment.amount), 0))
            .join(Booking, Payment.booking_id == Booking.id)
            .filter(
                Booking.venue_id == venue_id,
                Booking.created_at >= start,
                Booking.created_at < end,
                Payment.status == PaymentStatus.COMPLETED.value,
            )
        )
        return Decimal(str(total or 0))

    def open_with_legal_deadline(self) -> List[Booking]:
        """Pending and confirmed bookings that carry a burial or cremation deadline."""
        return self._execute_query(
            self._build_query()
            .filter(
                Booking.legal_deadline.isnot(None),
                Booking.status.in_(
                    [BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value]
                ),
            )
            .order_by(Booking.legal_deadline.asc(), Booking.id.asc())
        )
