from datetime import datetime
from typing import List

from sqlalchemy.orm import Session

from ..models.review import VenueReview
from .base_repository import BaseRepository


class VenueReviewRepository(BaseRepository[VenueReview]):
    def __init__(self, db: Session):
        super().__init__(db, VenueReview)

    def list_between(self, venue_id: str, start: datetime, end: datetime) -> List[VenueReview]:
        return self._execute_query(
            self._build_query().filter(
                VenueReview.venue_id == venue_id,
                VenueReview.created_at >= start,
                VenueReview.created_at <= end,
            )
        )
