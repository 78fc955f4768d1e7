# backend/farewelly/repositories/payment_repository.py
"""
Payment, split and refund data access.

Listing is scoped to the caller's role: families see payments on their own
bookings; directors and venues see payments on bookings they are attached to
or on which they hold a split.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, List, Optional

from sqlalchemy import case, exists, func, or_
from sqlalchemy.orm import Query, Session, joinedload, selectinload

from ..core.enums import PaymentStatus, UserType
from ..models.booking import Booking
from ..models.payment import Payment, PaymentRefund, PaymentSplit
from .base_repository import BaseRepository

SORTABLE_COLUMNS = {
    "created_at": Payment.created_at,
    "amount": Payment.amount,
    "status": Payment.status,
}


@dataclass
class PaymentFilters:
    status: Optional[str] = None
    booking_id: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    sort_by: str = "created_at"
    sort_order: str = "desc"


@dataclass
class SplitFilters:
    status: Optional[str] = None
    payment_id: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None


@dataclass
class PaymentTotals:
    count: int
    total_amount: Decimal
    completed_amount: Decimal
    pending_amount: Decimal
    refunded_amount: Decimal


class PaymentRepository(BaseRepository[Payment]):
    def __init__(self, db: Session):
        super().__init__(db, Payment)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(
            joinedload(Payment.booking).joinedload(Booking.family),
            joinedload(Payment.booking).joinedload(Booking.director),
            joinedload(Payment.booking).joinedload(Booking.venue),
            selectinload(Payment.splits),
            selectinload(Payment.refunds),
        )

    def has_completed_payment(self, booking_id: str) -> bool:
        return self.exists(booking_id=booking_id, status=PaymentStatus.COMPLETED.value)

    def _scoped(self, user_type: str, profile_id: str, filters: PaymentFilters) -> Query:
        query = self._build_query().join(Booking, Payment.booking_id == Booking.id)
        holds_split = exists().where(
            PaymentSplit.payment_id == Payment.id,
            PaymentSplit.recipient_id == profile_id,
        )
        if user_type == UserType.FAMILY.value:
            query = query.filter(Booking.family_id == profile_id)
        elif user_type == UserType.DIRECTOR.value:
            query = query.filter(or_(Booking.director_id == profile_id, holds_split))
        elif user_type == UserType.VENUE.value:
            query = query.filter(or_(Booking.venue_id == profile_id, holds_split))
        else:
            raise ValueError(f"Unsupported user type for payment listing: {user_type}")

        if filters.status:
            query = query.filter(Payment.status == filters.status)
        if filters.booking_id:
            query = query.filter(Payment.booking_id == filters.booking_id)
        if filters.start:
            query = query.filter(Payment.created_at >= filters.start)
        if filters.end:
            query = query.filter(Payment.created_at <= filters.end)
        return query

    def list_for_profile(
        self,
        user_type: str,
        profile_id: str,
        filters: PaymentFilters,
        *,
        offset: int,
        limit: int,
    ) -> tuple[List[Payment], int]:
        column = SORTABLE_COLUMNS.get(filters.sort_by, Payment.created_at)
        ordering = column.asc() if filters.sort_order == "asc" else column.desc()
        query = self._scoped(user_type, profile_id, filters).order_by(ordering, Payment.id.asc())
        return self._paginate(
            query,
            offset=offset,
            limit=limit,
            options=(
                joinedload(Payment.booking).joinedload(Booking.family),
                joinedload(Payment.booking).joinedload(Booking.director),
                joinedload(Payment.booking).joinedload(Booking.venue),
                selectinload(Payment.splits),
                selectinload(Payment.refunds),
            ),
        )

    def totals_for_profile(
        self, user_type: str, profile_id: str, filters: PaymentFilters
    ) -> PaymentTotals:
        ids = self._scoped(user_type, profile_id, filters).with_entities(Payment.id).statement
        row = self.db.query(
            func.count(Payment.id),
            func.coalesce(func.sum(Payment.amount), 0),
            func.coalesce(
                func.sum(
                    case((Payment.status == PaymentStatus.COMPLETED.value, Payment.amount), else_=0)
                ),
                0,
            ),
            func.coalesce(
                func.sum(
                    case((Payment.status == PaymentStatus.PENDING.value, Payment.amount), else_=0)
                ),
                0,
            ),
        ).filter(Payment.id.in_(ids))
        count, total, completed, pending = row.one()
        refunded = self._execute_scalar(
            self.db.query(func.coalesce(func.sum(PaymentRefund.amount), 0)).filter(
                PaymentRefund.payment_id.in_(ids)
            )
        )
        return PaymentTotals(
            count=int(count or 0),
            total_amount=Decimal(str(total or 0)),
            completed_amount=Decimal(str(completed or 0)),
            pending_amount=Decimal(str(pending or 0)),
            refunded_amount=Decimal(str(refunded or 0)),
        )


class PaymentSplitRepository(BaseRepository[PaymentSplit]):
    def __init__(self, db: Session):
        super().__init__(db, PaymentSplit)

    def get_many(self, split_ids: Iterable[str]) -> List[PaymentSplit]:
        ids = list(dict.fromkeys(split_ids))
        if not ids:
            return []
        query = (
            self._build_query()
            .options(joinedload(PaymentSplit.payment))
            .filter(PaymentSplit.id.in_(ids))
        )
        return self._execute_query(query)

    def _for_recipient(self, recipient_id: str, filters: SplitFilters) -> Query:
        query = self._build_query().filter(PaymentSplit.recipient_id == recipient_id)
        if filters.status:
            query = query.filter(PaymentSplit.status == filters.status)
        if filters.payment_id:
            query = query.filter(PaymentSplit.payment_id == filters.payment_id)
        if filters.start:
            query = query.filter(PaymentSplit.created_at >= filters.start)
        if filters.end:
            query = query.filter(PaymentSplit.created_at <= filters.end)
        return query

    def list_for_recipient(
        self, recipient_id: str, filters: SplitFilters, *, offset: int, limit: int
    ) -> tuple[List[PaymentSplit], int]:
        query = self._for_recipient(recipient_id, filters).order_by(
            PaymentSplit.created_at.desc(), PaymentSplit.id.asc()
        )
        return self._paginate(
            query,
            offset=offset,
            limit=limit,
            options=(joinedload(PaymentSplit.payment).joinedload(Payment.booking),),
        )

    def totals_for_recipient(self, recipient_id: str, filters: SplitFilters) -> dict[str, Any]:
        ids = self._for_recipient(recipient_id, filters).with_entities(PaymentSplit.id).statement
        count, total, paid, pending, refunded = (
            self.db.query(
                func.count(PaymentSplit.id),
                func.coalesce(func.sum(PaymentSplit.amount), 0),
                func.coalesce(
                    func.sum(case((PaymentSplit.status == "paid", PaymentSplit.amount), else_=0)),
                    0,
                ),
                func.coalesce(
                    func.sum(
                        case((PaymentSplit.status == "pending", PaymentSplit.amount), else_=0)
                    ),
                    0,
                ),
                func.coalesce(func.sum(PaymentSplit.refunded_amount), 0),
            )
            .filter(PaymentSplit.id.in_(ids))
            .one()
        )
        return {
            "count": int(count or 0),
            "total_amount": Decimal(str(total or 0)),
            "paid_amount": Decimal(str(paid or 0)),
            "pending_amount": Decimal(str(pending or 0)),
            "refunded_amount": Decimal(str(refunded or 0)),
        }


class PaymentRefundRepository(BaseRepository[PaymentRefund]):
    def __init__(self, db: Session):
        super().__init__(db, PaymentRefund)

    def total_for_payment(self, payment_id: str) -> Decimal:
        total = self._execute_scalar(
            self.db.query(func.coalesce(func.sum(PaymentRefund.amount), 0)).filter(
                PaymentRefund.payment_id == payment_id
            )
        )
        return Decimal(str(total or 0))
