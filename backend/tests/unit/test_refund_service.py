from datetime import timedelta
from decimal import Decimal

import pytest

from farewelly.core.enums import BookingStatus
from farewelly.core.exceptions import (
    ForbiddenException,
    RefundNotAllowedException,
    ServiceException,
    ValidationException,
)
from farewelly.models.event_outbox import EventOutbox
from farewelly.models.payment import PaymentRefund
from farewelly.services.payment_service import PaymentService
from farewelly.services.refund_service import RefundService, proportional_shares
from tests.helpers import deterministic_provider, make_booking


def _paid(db, provider, family, director, venue, status=BookingStatus.COMPLETED):
    booking = make_booking(db, family, director=director, venue=venue, status=status)
    return PaymentService(db, provider=provider).create_payment(
        family, booking_id=booking.id, amount=Decimal("1000"), payment_method="ideal"
    )


@pytest.fixture
def service(db, payment_provider):
    return RefundService(db, provider=payment_provider)


def test_proportional_shares_absorb_rounding_in_last_split():
    shares = proportional_shares([Decimal("1"), Decimal("1"), Decimal("1")], Decimal("1.00"))
    assert shares == [Decimal("0.33"), Decimal("0.33"), Decimal("0.34")]
    assert proportional_shares([], Decimal("5")) == []


def test_full_refund_within_a_day_is_free(db, service, payment_provider, family, director, venue):
    payment = _paid(db, payment_provider, family, director, venue)

    outcome = service.process_refund(
        family, payment.id, reason="Dienst verplaatst", now=payment.created_at + timedelta(hours=3)
    )

    assert outcome.policy.allowed is True
    assert outcome.policy.fee_percentage == 0.0
    assert outcome.refund.amount == Decimal("1000.00")
    assert outcome.refund.fee == Decimal("0.00")
    assert outcome.refund.net_amount == Decimal("1000.00")
    assert outcome.refund.reason == "Dienst verplaatst"
    assert outcome.payment.status == "refunded"
    assert all(split.amount == Decimal("0") for split in outcome.payment.splits)
    refunded = {s.recipient_type: s.refunded_amount for s in outcome.payment.splits}
    assert refunded == {
        "platform": Decimal("50.00"),
        "director": Decimal("665.00"),
        "venue": Decimal("285.00"),
    }


def test_partial_refund_after_five_days_pays_ten_percent(
    db, service, payment_provider, family, director, venue
):
    payment = _paid(db, payment_provider, family, director, venue)

    outcome = service.process_refund(
        family, payment.id, amount=Decimal("400"), now=payment.created_at + timedelta(days=5)
    )

    assert outcome.policy.fee_percentage == 10.0
    assert outcome.refund.fee == Decimal("40.00")
    assert outcome.refund.net_amount == Decimal("360.00")
    assert outcome.refund.reason == "Customer request"
    assert outcome.payment.status == "partial_refunded"
    amounts = {s.recipient_type: s.amount for s in outcome.payment.splits}
    assert amounts == {
        "platform": Decimal("30.00"),
        "director": Decimal("399.00"),
        "venue": Decimal("171.00"),
    }

    titles = sorted(row.payload["title"] for row in db.query(EventOutbox).all())
    assert titles.count("Refund Processed") == 1
    assert titles.count("Payment Refunded") == 2


def test_refund_amount_is_capped_at_the_payment_total(
    db, service, payment_provider, family, director, venue
):
    payment = _paid(db, payment_provider, family, director, venue)
    now = payment.created_at + timedelta(hours=1)

    outcome = service.process_refund(family, payment.id, amount=Decimal("1500"), now=now)
    assert outcome.refund.amount == Decimal("1000.00")
    assert outcome.payment.status == "refunded"


def test_partially_refunded_payment_rejects_another_refund(
    db, service, payment_provider, family, director, venue
):
    payment = _paid(db, payment_provider, family, director, venue)
    now = payment.created_at + timedelta(hours=1)

    first = service.process_refund(family, payment.id, amount=Decimal("300"), now=now)
    assert first.payment.status == "partial_refunded"

    with pytest.raises(ValidationException) as exc:
        service.process_refund(family, payment.id, amount=Decimal("100"), now=now)
    assert exc.value.message == "Can only refund completed payments"
    assert db.query(PaymentRefund).count() == 1


def test_refund_700_300_split_scenario(db, service, payment_provider, family, director, venue):
    booking = make_booking(db, family, director=director, venue=venue, status=BookingStatus.COMPLETED)
    payment = PaymentService(db, provider=payment_provider).create_payment(
        family,
        booking_id=booking.id,
        amount=Decimal("1000"),
        payment_method="ideal",
        splits=[
            {"recipient_id": director.id, "amount": Decimal("700")},
            {"recipient_id": venue.id, "amount": Decimal("300")},
        ],
    )

    outcome = service.process_refund(
        family, payment.id, amount=Decimal("500"), now=payment.created_at + timedelta(hours=2)
    )

    amounts = {s.recipient_type: s.amount for s in outcome.payment.splits}
    refunded = {s.recipient_type: s.refunded_amount for s in outcome.payment.splits}
    assert amounts == {"director": Decimal("350.00"), "venue": Decimal("150.00")}
    assert refunded == {"director": Decimal("350.00"), "venue": Decimal("150.00")}
    assert outcome.payment.status == "partial_refunded"


def test_family_refund_denied_a_week_after_completed_service(
    db, service, payment_provider, family, director, venue
):
    payment = _paid(db, payment_provider, family, director, venue)

    with pytest.raises(RefundNotAllowedException) as exc:
        service.process_refund(family, payment.id, now=payment.created_at + timedelta(days=8))
    assert exc.value.message == "Refunds not allowed more than 7 days after completed service"
    assert db.query(PaymentRefund).count() == 0


def test_director_refund_pays_three_percent(db, service, payment_provider, family, director, venue):
    payment = _paid(db, payment_provider, family, director, venue, status=BookingStatus.CONFIRMED)

    outcome = service.process_refund(
        director, payment.id, amount=Decimal("100"), now=payment.created_at + timedelta(days=60)
    )

    assert outcome.refund.fee == Decimal("3.00")
    assert outcome.refund.processed_by_type == "director"
    stakeholders = {
        row.aggregate_id
        for row in db.query(EventOutbox).all()
        if row.payload["title"] == "Payment Refunded"
    }
    assert stakeholders == {venue.id}


def test_provider_failure_persists_nothing(db, payment_provider, family, director, venue):
    payment = _paid(db, payment_provider, family, director, venue)
    service = RefundService(db, provider=deterministic_provider(refund_success_rate=0.0))

    with pytest.raises(ServiceException):
        service.process_refund(family, payment.id, now=payment.created_at)

    db.refresh(payment)
    assert payment.status == "completed"
    assert db.query(PaymentRefund).count() == 0


def test_unrelated_profile_cannot_refund(db, service, payment_provider, family, other_family, director, venue):
    payment = _paid(db, payment_provider, family, director, venue)
    with pytest.raises(ForbiddenException):
        service.process_refund(other_family, payment.id, now=payment.created_at)


def test_non_positive_refund_amount(db, service, payment_provider, family, director, venue):
    payment = _paid(db, payment_provider, family, director, venue)
    with pytest.raises(ValidationException):
        service.process_refund(family, payment.id, amount=Decimal("0"), now=payment.created_at)
