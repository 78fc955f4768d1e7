# backend/farewelly/repositories/availability_repository.py
"""
Availability ledger data access.

Rows are keyed by (venue, date). Slot arrays are rewritten whole; the
model's version column turns a lost concurrent update into StaleDataError.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from ..models.venue_availability import VenueAvailability
from .base_repository import BaseRepository


class AvailabilityRepository(BaseRepository[VenueAvailability]):
    def __init__(self, db: Session):
        super().__init__(db, VenueAvailability)

    def get_for_day(self, venue_id: str, day: date) -> Optional[VenueAvailability]:
        return self.find_one_by(venue_id=venue_id, date=day)

    def _range_query(self, venue_id: str, start: Optional[date], end: Optional[date]):
        query = self._build_query().filter(VenueAvailability.venue_id == venue_id)
        if start is not None:
            query = query.filter(VenueAvailability.date >= start)
        if end is not None:
            query = query.filter(VenueAvailability.date <= end)
        return query

    def list_for_venue(
        self,
        venue_id: str,
        *,
        start: Optional[date],
        end: Optional[date],
        offset: int,
        limit: int,
    ) -> tuple[List[VenueAvailability], int]:
        query = self._range_query(venue_id, start, end).order_by(VenueAvailability.date.asc())
        return self._paginate(query, offset=offset, limit=limit)

    def list_between(self, venue_id: str, start: date, end: date) -> List[VenueAvailability]:
        query = self._range_query(venue_id, start, end).order_by(VenueAvailability.date.asc())
        return self._execute_query(query)

    def replace_slots(
        self,
        record: VenueAvailability,
        slots: list[dict],
        **fields: object,
    ) -> VenueAvailability:
        """Write a fresh slot list; JSON columns only detect reassignment."""
        return self.update(record, time_slots=[dict(slot) for slot in slots], **fields)
