"""
Rent cycle rules

Pure functions deciding what "paid / pending / overdue" means and when the
next bill of a tenancy falls due:

  • derive_payment_status : stored review status + due date → display status
  • advance_due_date      : next due date after one rent cycle
  • outstanding_balances  : unpaid amounts summed per tenancy
  • format_currency       : display string for an amount

Calendar rule: relativedelta clamps to the last valid day of the target
month, so 2024-01-31 + 1 month = 2024-02-29 and 2024-02-29 + 1 year =
2025-02-28. The clamped day is kept for later cycles (Feb 29 → Mar 29).
"""
from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Dict, Iterable, Optional, Union

from dateutil.relativedelta import relativedelta

from rentledger.models.payment import PaymentStatus
from rentledger.models.tenancy import RentCycle

CENT = Decimal("0.01")


class DisplayStatus(str, Enum):
    """Payment status shown to users; never stored"""
    PAID = "paid"
    PENDING = "pending"
    OVERDUE = "overdue"
    REJECTED = "rejected"


CYCLE_STEPS = {
    RentCycle.MONTHLY: relativedelta(months=1),
    RentCycle.ANNUAL: relativedelta(years=1),
}


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops the offset)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_due_date(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse an ISO timestamp. Empty or unparseable input gives None, which
    derive_payment_status treats as "not yet due".
    """
    if value is None or isinstance(value, datetime):
        return as_utc(value)
    value = value.strip()
    if not value:
        return None
    try:
        return as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        return None


def derive_payment_status(
    raw_status: Union[PaymentStatus, str],
    due_date: Union[str, datetime, None],
    now: Optional[datetime] = None,
) -> DisplayStatus:
    """
    Map a stored payment status and its due date to the display status.

    First match wins: verified → paid, rejected → rejected,
    due date in the past → overdue, otherwise pending.
    """
    status = PaymentStatus(raw_status)
    if status == PaymentStatus.VERIFIED:
        return DisplayStatus.PAID
    if status == PaymentStatus.REJECTED:
        return DisplayStatus.REJECTED

    due = parse_due_date(due_date)
    now = as_utc(now) if now is not None else datetime.now(timezone.utc)
    if due is not None and due < now:
        return DisplayStatus.OVERDUE
    return DisplayStatus.PENDING


def advance_due_date(due_date: datetime, rent_cycle: Union[RentCycle, str]) -> datetime:
    """Return due_date moved forward by one calendar month or year."""
    if due_date is None:
        raise ValueError("due_date is required")
    return as_utc(due_date) + CYCLE_STEPS[RentCycle(rent_cycle)]


def to_decimal(amount) -> Decimal:
    if amount is None:
        return Decimal("0")
    if isinstance(amount, Decimal):
        return amount
    # str() first so floats keep their shortest repr instead of binary noise
    return Decimal(str(amount))


def outstanding_balances(payments: Iterable, tenancy_ids: Optional[Iterable] = None) -> Dict:
    """
    Sum amounts of payments whose stored status is not verified, per tenancy.

    Rejected payments still count as owed. Accepts ORM rows or dicts with
    tenancy_id / amount / status. Every id in tenancy_ids is present in the
    result, with 0 when nothing is outstanding.
    """
    totals: Dict = defaultdict(lambda: Decimal("0"))
    for tenancy_id in tenancy_ids or ():
        totals[tenancy_id] = Decimal("0")

    for payment in payments:
        if isinstance(payment, dict):
            tenancy_id = payment["tenancy_id"]
            amount = payment.get("amount")
            status = payment.get("status")
        else:
            tenancy_id, amount, status = payment.tenancy_id, payment.amount, payment.status
        if PaymentStatus(status) == PaymentStatus.VERIFIED:
            continue
        totals[tenancy_id] += to_decimal(amount)

    return {key: value.quantize(CENT) for key, value in totals.items()}


def format_currency(amount, symbol: Optional[str] = None) -> str:
    """₦12,500.00 style display string."""
    if symbol is None:
        from rentledger.core.config import settings
        symbol = settings.CURRENCY_SYMBOL
    value = to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def initials(name: Optional[str]) -> str:
    parts = [p for p in (name or "").split(" ") if p]
    return "".join(p[0] for p in parts).upper()[:2]
