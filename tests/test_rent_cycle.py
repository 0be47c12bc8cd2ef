from datetime import datetime, timedelta, timezone
from decimal import Decimal
import uuid

import pytest

from rentledger.models import PaymentStatus, RentCycle
from rentledger.services.rent_cycle import (
    DisplayStatus,
    advance_due_date,
    derive_payment_status,
    format_currency,
    initials,
    outstanding_balances,
    parse_due_date,
)

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


@pytest.mark.parametrize("due", [NOW - timedelta(days=30), NOW + timedelta(days=30), None, ""])
def test_verified_is_paid_regardless_of_due_date(due):
    assert derive_payment_status(PaymentStatus.VERIFIED, due, NOW) == DisplayStatus.PAID


def test_rejected_wins_over_overdue():
    assert derive_payment_status("rejected", NOW - timedelta(days=1), NOW) == DisplayStatus.REJECTED


def test_pending_past_due_is_overdue():
    assert derive_payment_status("pending", NOW - timedelta(seconds=1), NOW) == DisplayStatus.OVERDUE


def test_pending_due_now_or_later_is_pending():
    assert derive_payment_status("pending", NOW, NOW) == DisplayStatus.PENDING
    assert derive_payment_status("pending", NOW + timedelta(days=3), NOW) == DisplayStatus.PENDING


@pytest.mark.parametrize("due", [None, "", "   ", "not-a-date"])
def test_missing_or_unparseable_due_date_is_never_overdue(due):
    assert derive_payment_status("pending", due, NOW) == DisplayStatus.PENDING


def test_naive_and_string_due_dates_are_utc():
    assert parse_due_date("2024-06-01T00:00:00Z") == utc(2024, 6, 1)
    assert parse_due_date(datetime(2024, 6, 1)) == utc(2024, 6, 1)
    assert derive_payment_status("pending", "2024-06-14T00:00:00", NOW) == DisplayStatus.OVERDUE


def test_monthly_advance_clamps_to_month_end():
    assert advance_due_date(utc(2024, 1, 31), RentCycle.MONTHLY) == utc(2024, 2, 29)
    assert advance_due_date(utc(2023, 1, 31), RentCycle.MONTHLY) == utc(2023, 2, 28)


def test_monthly_advance_never_skips_a_month():
    due = utc(2024, 1, 31)
    months = []
    for _ in range(12):
        due = advance_due_date(due, "monthly")
        months.append(due.month)
    assert months == [2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 12, 1]


def test_annual_advance_from_leap_day():
    assert advance_due_date(utc(2024, 2, 29), RentCycle.ANNUAL) == utc(2025, 2, 28)
    assert advance_due_date(utc(2023, 3, 1), "annual") == utc(2024, 3, 1)


def test_advance_requires_a_date():
    with pytest.raises(ValueError):
        advance_due_date(None, RentCycle.MONTHLY)


def test_outstanding_excludes_only_verified():
    tenancy_id = uuid.uuid4()
    payments = [
        {"tenancy_id": tenancy_id, "amount": 100, "status": "pending"},
        {"tenancy_id": tenancy_id, "amount": 50, "status": "verified"},
        {"tenancy_id": tenancy_id, "amount": 25, "status": "rejected"},
    ]
    assert outstanding_balances(payments) == {tenancy_id: Decimal("125.00")}


def test_outstanding_sums_exactly_and_fills_requested_ids():
    owing, clear = uuid.uuid4(), uuid.uuid4()
    payments = [{"tenancy_id": owing, "amount": "0.10", "status": "pending"} for _ in range(3)]
    balances = outstanding_balances(payments, [owing, clear])
    assert balances[owing] == Decimal("0.30")
    assert balances[clear] == Decimal("0")


def test_format_currency():
    assert format_currency(Decimal("12500"), "₦") == "₦12,500.00"
    assert format_currency(0.5, "₦") == "₦0.50"


def test_initials():
    assert initials("Ada  Obi Eze") == "AO"
    assert initials("") == ""
    assert initials(None) == ""
