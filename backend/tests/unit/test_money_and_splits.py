from decimal import Decimal

import pytest

from farewelly.core.constants import PLATFORM_RECIPIENT_ID
from farewelly.core.exceptions import ValidationException
from farewelly.models.payment import PaymentSplit
from farewelly.services.payment_service import compute_default_splits, splits_balance
from farewelly.services.refund_service import proportional_shares, redistribute_refund
from farewelly.utils.money import money_float, percentage, to_money


def test_to_money_rounds_half_up():
    assert to_money("10.005") == Decimal("10.01")
    assert to_money(2.675) == Decimal("2.68")
    assert money_float(None) == 0.0


def test_percentage_handles_zero_whole():
    assert percentage(1, 0) == 0.0
    assert percentage(1, 3) == 33.0
    assert percentage(1, 3, places=2) == 33.33


def test_default_splits_with_director_and_venue():
    splits = compute_default_splits(Decimal("1000.00"), "dir-1", "venue-1")

    by_type = {s.recipient_type: s for s in splits}
    assert by_type["platform"].recipient_id == PLATFORM_RECIPIENT_ID
    assert by_type["platform"].amount == Decimal("50.00")
    assert by_type["director"].amount == Decimal("665.00")
    assert by_type["venue"].amount == Decimal("285.00")
    assert by_type["director"].percentage == Decimal("70")
    assert by_type["venue"].percentage == Decimal("30")
    assert splits_balance(Decimal("1000.00"), splits)


def test_default_splits_single_party_takes_remainder():
    splits = compute_default_splits(Decimal("200.00"), None, "venue-1")

    assert [s.recipient_type for s in splits] == ["platform", "venue"]
    assert splits[1].amount == Decimal("190.00")
    assert splits[1].percentage == Decimal("95")


def test_default_splits_absorb_rounding():
    splits = compute_default_splits(Decimal("33.33"), "dir-1", "venue-1")
    assert sum(s.amount for s in splits) == Decimal("33.33")


def test_default_splits_need_a_recipient():
    with pytest.raises(ValidationException) as exc:
        compute_default_splits(Decimal("100"), None, None)
    assert exc.value.code == "NO_PAYMENT_RECIPIENT"


def test_proportional_shares_sum_to_refund():
    shares = proportional_shares([Decimal("1"), Decimal("1"), Decimal("1")], Decimal("10.00"))
    assert shares == [Decimal("3.33"), Decimal("3.33"), Decimal("3.34")]
    assert sum(shares) == Decimal("10.00")


def test_proportional_shares_zero_total():
    assert proportional_shares([Decimal("0"), Decimal("0")], Decimal("5")) == [
        Decimal("0.00"),
        Decimal("0.00"),
    ]


def test_redistribute_refund_reduces_live_amounts():
    splits = [
        PaymentSplit(amount=Decimal("700.00"), refunded_amount=Decimal("0")),
        PaymentSplit(amount=Decimal("300.00"), refunded_amount=Decimal("0")),
    ]

    shares = redistribute_refund(splits, Decimal("500.00"))

    assert shares == [Decimal("350.00"), Decimal("150.00")]
    assert [s.amount for s in splits] == [Decimal("350.00"), Decimal("150.00")]
    assert [s.refunded_amount for s in splits] == [Decimal("350.00"), Decimal("150.00")]


def test_redistribute_full_refund_zeroes_splits():
    splits = [
        PaymentSplit(amount=Decimal("50.00"), refunded_amount=Decimal("0")),
        PaymentSplit(amount=Decimal("950.00"), refunded_amount=Decimal("0")),
    ]
    redistribute_refund(splits, Decimal("1000.00"))
    assert all(s.amount == Decimal("0.00") for s in splits)
