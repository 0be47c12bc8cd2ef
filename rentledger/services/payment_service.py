"""
Payment Service
Landlord review of payments, rent bill generation and tenant proof submission.

Stored payment status is the review state (pending / verified / rejected);
what users see is derived from it and the payment's due date, see
rent_cycle.derive_payment_status.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from dateutil.relativedelta import relativedelta
from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from rentledger.core.config import settings
from rentledger.core.pagination import Pagination
from rentledger.core.security import AuthContext
from rentledger.models.notification import NotificationType
from rentledger.models.payment import Payment, PaymentStatus
from rentledger.models.property import Property, Unit
from rentledger.models.tenancy import Tenancy, TenancyStatus
from rentledger.services.notification_service import notify
from rentledger.services.property_service import GENERIC_ERROR, bad_request, parse_rent_amount, server_error
from rentledger.services.rent_cycle import (
    DisplayStatus,
    advance_due_date,
    as_utc,
    derive_payment_status,
    format_currency,
    initials,
)
from rentledger.services.storage_service import ProofStorage, StorageError, build_proof_path

logger = logging.getLogger(__name__)

PAYMENT_NOT_FOUND = "Payment not found"
TENANCY_NOT_FOUND = "Tenancy not found"

# ?status= values of the landlord list, mapped onto display statuses
LIST_FILTERS = {
    "all": None,
    "pending": DisplayStatus.PENDING,
    "paid": DisplayStatus.PAID,
    "verified": DisplayStatus.PAID,
    "overdue": DisplayStatus.OVERDUE,
    "rejected": DisplayStatus.REJECTED,
}


def payment_due_date(payment: Payment) -> Optional[datetime]:
    """A payment's own due date, falling back to its tenancy's current one"""
    return as_utc(payment.due_date) or as_utc(payment.tenancy.next_due_date)


def display_status(payment: Payment, now: Optional[datetime] = None) -> DisplayStatus:
    return derive_payment_status(payment.status, payment_due_date(payment), now)


# ─────────────────────── Landlord: list ───────────────────────

def list_payments(
    db: Session,
    user: AuthContext,
    status_filter: Optional[str] = "all",
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> Tuple[List[Dict[str, Any]], Pagination]:
    """
    Payments on the landlord's tenancies, newest first.

    The filter applies to the derived status, which depends on the clock, so
    rows are derived and filtered before the page window is cut.
    """
    key = (status_filter or "all").lower()
    if key not in LIST_FILTERS:
        raise bad_request("Invalid status filter.")
    wanted = LIST_FILTERS[key]

    rows = [row for row in landlord_payment_rows(db, user) if wanted is None or row["status"] == wanted]
    window = Pagination.build(page, limit).with_total(len(rows))
    return window.slice(rows), window


def landlord_payment_rows(db: Session, user: AuthContext) -> List[Dict[str, Any]]:
    """Every payment on the landlord's tenancies as a display row, newest first"""
    payments = db.query(Payment).join(Tenancy).join(Unit).join(Property).filter(
        Property.landlord_id == user.user_id
    ).options(
        joinedload(Payment.tenancy).joinedload(Tenancy.tenant),
        joinedload(Payment.tenancy).joinedload(Tenancy.unit).joinedload(Unit.property),
    ).order_by(Payment.created_at.desc()).all()

    now = datetime.now(timezone.utc)
    rows = []
    for payment in payments:
        derived = display_status(payment, now)
        tenancy = payment.tenancy
        rows.append({
            "id": payment.id,
            "tenant_name": tenancy.tenant.full_name or "Unknown",
            "tenant_initials": initials(tenancy.tenant.full_name),
            "unit_label": tenancy.unit.label,
            "property_name": tenancy.unit.property.name,
            "amount": float(payment.amount),
            "amount_display": format_currency(payment.amount),
            "status": derived,
            "due_date": payment_due_date(payment),
            "paid_at": payment.payment_date,
            "reference": payment.reference,
            "proof_url": payment.proof_url,
            "rejection_reason": payment.rejection_reason,
        })
    return rows


# ─────────────────────── Landlord: review ───────────────────────

def review_payment(
    db: Session,
    user: AuthContext,
    payment_id: UUID,
    action: Optional[str],
    reason: Optional[str] = None,
) -> Payment:
    """
    Verify or reject a pending payment on one of the landlord's tenancies.

    Verifying advances the tenancy's next due date by one rent cycle.
    Rejecting records the reason and leaves the due date alone.
    Status, due date and the tenant's notification share one commit.
    """
    action = (action or "").strip().lower()
    if action not in ("verify", "reject"):
        raise bad_request("Invalid action.")
    reason = (reason or "").strip()
    if action == "reject" and not reason:
        raise bad_request("Rejection reason is required.")

    payment = db.query(Payment).join(Tenancy).join(Unit).join(Property).filter(
        Payment.id == payment_id,
        Property.landlord_id == user.user_id
    ).with_for_update().first()
    if not payment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=PAYMENT_NOT_FOUND)
    if payment.status != PaymentStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Payment has already been {payment.status.value}."
        )

    tenancy = payment.tenancy
    unit = tenancy.unit
    now = datetime.now(timezone.utc)
    amount_display = format_currency(payment.amount)

    try:
        payment.reviewed_at = now
        if action == "verify":
            payment.status = PaymentStatus.VERIFIED
            payment.rejection_reason = None
            if payment.payment_date is None:
                payment.payment_date = now
            current_due = tenancy.next_due_date or tenancy.start_date
            tenancy.next_due_date = advance_due_date(current_due, tenancy.rent_cycle)
            notify(
                db,
                tenancy.tenant_id,
                "Payment Verified",
                f"Your payment of {amount_display} for {unit.label} at {unit.property.name} has been verified.",
                type=NotificationType.PAYMENT,
                data={"payment_id": payment.id, "tenancy_id": tenancy.id},
            )
        else:
            payment.status = PaymentStatus.REJECTED
            payment.rejection_reason = reason
            notify(
                db,
                tenancy.tenant_id,
                "Payment Rejected",
                f"Your payment of {amount_display} for {unit.label} was rejected: {reason}",
                type=NotificationType.PAYMENT,
                data={"payment_id": payment.id, "tenancy_id": tenancy.id},
            )
        db.commit()
    except SQLAlchemyError as e:
        raise server_error(db, f"Review payment {payment_id}", e)

    if action == "verify":
        logger.info(f"Payment {payment.id} verified; tenancy {tenancy.id} next due {tenancy.next_due_date}")
    else:
        logger.info(f"Payment {payment.id} rejected by {user.user_id}")
    return payment


# ─────────────────────── Landlord: bill generation ───────────────────────

def billing_period_end(month: Optional[int], year: Optional[int]) -> datetime:
    """Start of the month after (month, year): the exclusive end of the period"""
    if not month or not year:
        raise bad_request("Month and year are required")
    if not 1 <= month <= 12:
        raise bad_request("Month must be between 1 and 12")
    if not 1970 <= year <= 9998:
        raise bad_request("Invalid year")
    return datetime(year, month, 1, tzinfo=timezone.utc) + relativedelta(months=1)


def generate_bills(
    db: Session,
    user: AuthContext,
    month: Optional[int],
    year: Optional[int],
) -> Dict[str, int]:
    """
    Create a pending bill at the unit's rent for each active tenancy due on
    or before the end of the given month. A tenancy that already has a
    payment for its current due date is skipped, so generating twice for
    the same month creates nothing the second time.
    """
    period_end = billing_period_end(month, year)

    tenancies = db.query(Tenancy).join(Unit).join(Property).filter(
        Property.landlord_id == user.user_id,
        Tenancy.status == TenancyStatus.ACTIVE
    ).options(
        joinedload(Tenancy.unit),
        joinedload(Tenancy.payments),
    ).all()

    created = 0
    try:
        for tenancy in tenancies:
            due = as_utc(tenancy.next_due_date)
            if due is None or due >= period_end:
                continue
            if any(as_utc(p.due_date) == due for p in tenancy.payments):
                continue
            db.add(Payment(
                tenancy_id=tenancy.id,
                amount=tenancy.unit.rent_amount,
                status=PaymentStatus.PENDING,
                due_date=due,
            ))
            notify(
                db,
                tenancy.tenant_id,
                "Rent Due",
                f"Rent of {format_currency(tenancy.unit.rent_amount)} for {tenancy.unit.label} is due on {due:%d %b %Y}.",
                type=NotificationType.PAYMENT,
                data={"tenancy_id": tenancy.id},
            )
            created += 1
        db.commit()
    except SQLAlchemyError as e:
        raise server_error(db, "Generate bills", e)

    logger.info(f"Generated {created} bills for {year}-{month:02d} (landlord {user.user_id})")
    return {"created": created, "skipped": len(tenancies) - created, "total": len(tenancies)}


# ─────────────────────── Tenant: proof submission ───────────────────────

@dataclass
class ProofFile:
    filename: str
    content: bytes
    content_type: str


def validate_proof_file(proof: ProofFile) -> None:
    if not proof.content:
        raise bad_request("The uploaded file is empty.")
    if proof.content_type not in settings.ALLOWED_PROOF_TYPES:
        raise bad_request("Proof must be an image (JPEG, PNG, WebP) or a PDF.")
    if len(proof.content) > settings.max_proof_size_bytes:
        raise bad_request(f"Proof must be smaller than {settings.MAX_PROOF_SIZE_MB} MB.")


def open_bill_for_current_due(tenancy: Tenancy) -> Optional[Payment]:
    """Unverified payment already recorded for the tenancy's current due date"""
    due = as_utc(tenancy.next_due_date)
    if due is None:
        return None
    return next(
        (p for p in tenancy.payments if p.status != PaymentStatus.VERIFIED and as_utc(p.due_date) == due),
        None
    )


def submit_proof(
    db: Session,
    user: AuthContext,
    storage: ProofStorage,
    tenancy_id: Optional[UUID],
    payment_id: Optional[UUID] = None,
    reference: Optional[str] = None,
    amount: Any = None,
    proof: Optional[ProofFile] = None,
) -> Payment:
    """
    Record a tenant's proof of payment.

    The file is uploaded first. If the upload fails nothing is written; if
    the database write fails afterwards the uploaded object is deleted again.
    With payment_id that bill is resubmitted. Without it, an open bill for
    the tenancy's current due date is reused, and a new payment is created
    only when there is none.
    """
    if not tenancy_id:
        raise bad_request("tenancyId required")
    reference = (reference or "").strip() or None
    if proof is None and reference is None:
        raise bad_request("Upload a proof of payment or enter a reference.")
    if proof is not None:
        validate_proof_file(proof)
    paid_amount = parse_rent_amount(amount) if amount not in (None, "") else None

    tenancy = db.query(Tenancy).filter(
        Tenancy.id == tenancy_id,
        Tenancy.tenant_id == user.user_id,
        Tenancy.status.in_([TenancyStatus.ACTIVE, TenancyStatus.TERMINATED])
    ).first()
    if not tenancy:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TENANCY_NOT_FOUND)

    payment = None
    if payment_id:
        payment = db.query(Payment).filter(
            Payment.id == payment_id,
            Payment.tenancy_id == tenancy.id
        ).first()
        if not payment:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=PAYMENT_NOT_FOUND)
        if payment.status == PaymentStatus.VERIFIED:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="This payment has already been verified."
            )
    else:
        payment = open_bill_for_current_due(tenancy)

    path = url = None
    if proof is not None:
        path = build_proof_path(tenancy.id, proof.filename)
        try:
            url = storage.upload(path, proof.content, proof.content_type)
        except StorageError:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=GENERIC_ERROR
            )

    replaced_path = None
    now = datetime.now(timezone.utc)
    try:
        if payment is None:
            payment = Payment(
                tenancy_id=tenancy.id,
                amount=paid_amount if paid_amount is not None else tenancy.unit.rent_amount,
                due_date=tenancy.next_due_date,
            )
            db.add(payment)
        elif paid_amount is not None:
            payment.amount = paid_amount

        payment.status = PaymentStatus.PENDING
        payment.payment_date = now
        payment.rejection_reason = None
        payment.reviewed_at = None
        if reference is not None:
            payment.reference = reference
        if path is not None:
            replaced_path = payment.proof_path
            payment.proof_path = path
            payment.proof_url = url

        db.flush()
        notify(
            db,
            tenancy.unit.property.landlord_id,
            "Payment Submitted",
            f"{user.full_name or 'A tenant'} submitted a payment of {format_currency(payment.amount)} "
            f"for {tenancy.unit.label} at {tenancy.unit.property.name}.",
            type=NotificationType.PAYMENT,
            data={"payment_id": payment.id, "tenancy_id": tenancy.id},
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Saving payment proof for tenancy {tenancy_id} failed: {e}")
        if path is not None:
            try:
                storage.remove(path)
                logger.info(f"Removed orphaned proof {path}")
            except StorageError:
                logger.error(f"Orphaned proof left in storage: {path}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=GENERIC_ERROR
        )

    if replaced_path and replaced_path != path:
        try:
            storage.remove(replaced_path)
        except StorageError:
            logger.warning(f"Could not delete replaced proof {replaced_path}")

    logger.info(f"Tenant {user.user_id} submitted payment {payment.id} for tenancy {tenancy.id}")
    return payment
