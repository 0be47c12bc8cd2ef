"""
Tenancy Service
Invitations from landlords and the tenant's accept / decline response.

Tenancy lifecycle: pending → active | rejected, active → terminated.
A tenant holds at most one active tenancy and a unit at most one active
tenant; accepting a new invitation terminates the tenant's previous active
tenancy in the same transaction.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from rentledger.core.pagination import Pagination
from rentledger.core.security import AuthContext
from rentledger.models.notification import NotificationType
from rentledger.models.payment import Payment
from rentledger.models.profile import Profile, UserRole
from rentledger.models.property import Property, Unit
from rentledger.models.tenancy import RentCycle, Tenancy, TenancyStatus
from rentledger.services.notification_service import notify
from rentledger.services.property_service import bad_request, server_error
from rentledger.services.rent_cycle import advance_due_date, as_utc, outstanding_balances

logger = logging.getLogger(__name__)

TENANCY_NOT_FOUND = "Tenancy not found"
UNIT_OCCUPIED = "This unit is already occupied."
STATUS_FILTERS = {"all"} | {s.value for s in TenancyStatus}

# Accepted spellings of the tenant's response
RESPONSES = {
    "accept": TenancyStatus.ACTIVE,
    "reject": TenancyStatus.REJECTED,
    "decline": TenancyStatus.REJECTED,
}


# ─────────────────────── Landlord: tenant list ───────────────────────

def list_tenants(
    db: Session,
    user: AuthContext,
    status_filter: Optional[str] = "all",
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> Tuple[List[Dict[str, Any]], Pagination]:
    """Tenancies on the landlord's units with each tenancy's outstanding balance"""
    status_filter = (status_filter or "all").lower()
    if status_filter not in STATUS_FILTERS:
        raise bad_request("Invalid status filter.")

    query = db.query(Tenancy).join(Unit).join(Property).filter(
        Property.landlord_id == user.user_id
    )
    if status_filter != "all":
        query = query.filter(Tenancy.status == TenancyStatus(status_filter))

    window = Pagination.build(page, limit).with_total(query.count())
    tenancies = query.options(
        joinedload(Tenancy.tenant),
        joinedload(Tenancy.unit).joinedload(Unit.property),
    ).order_by(Tenancy.start_date.desc()).offset(window.offset).limit(window.limit).all()

    tenancy_ids = [t.id for t in tenancies]
    payments = []
    if tenancy_ids:
        payments = db.query(Payment.tenancy_id, Payment.amount, Payment.status).filter(
            Payment.tenancy_id.in_(tenancy_ids)
        ).all()
    balances = outstanding_balances(payments, tenancy_ids)

    items = [
        {
            "id": t.tenant_id,
            "tenancy_id": t.id,
            "full_name": t.tenant.full_name or "Unknown",
            "phone": t.tenant.phone_number,
            "unit_label": t.unit.label,
            "property_name": t.unit.property.name,
            "status": t.status,
            "outstanding_balance": float(balances[t.id]),
            "start_date": t.start_date,
            "next_due_date": t.next_due_date,
            "rent_cycle": t.rent_cycle,
        }
        for t in tenancies
    ]
    return items, window


def phone_is_registered(db: Session, phone: Optional[str]) -> bool:
    phone = (phone or "").strip()
    if not phone:
        raise bad_request("Phone number is required.")
    return db.query(Profile.id).filter(Profile.phone_number == phone).first() is not None


# ─────────────────────── Landlord: invite ───────────────────────

def invite_tenant(
    db: Session,
    user: AuthContext,
    phone: Optional[str],
    unit_id: Optional[UUID],
    start_date: Optional[datetime] = None,
    rent_cycle: RentCycle = RentCycle.MONTHLY,
) -> Tenancy:
    """
    Create a pending tenancy for the registered user with this phone number
    and notify them. The rent cycle is fixed here for the tenancy's lifetime.
    """
    phone = (phone or "").strip()
    if not phone:
        raise bad_request("Tenant phone is required.")
    if not unit_id:
        raise bad_request("Please select a unit.")

    unit = db.query(Unit).join(Property).filter(
        Unit.id == unit_id,
        Property.landlord_id == user.user_id
    ).first()
    if not unit:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unit not found.")

    if unit.active_tenancy() is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=UNIT_OCCUPIED)

    tenant = db.query(Profile).filter(Profile.phone_number == phone).first()
    if not tenant:
        # needsRegistration lets the client offer to share a sign-up link
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "message": "User not found. They must register on the app first.",
                "needsRegistration": True,
            }
        )
    if tenant.role != UserRole.TENANT:
        raise bad_request("That phone number belongs to a landlord account.")

    already_invited = any(
        t.tenant_id == tenant.id and t.status == TenancyStatus.PENDING for t in unit.tenancies
    )
    if already_invited:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An invitation to this unit is already pending for this tenant."
        )

    tenancy = Tenancy(
        tenant_id=tenant.id,
        unit_id=unit.id,
        status=TenancyStatus.PENDING,
        rent_cycle=RentCycle(rent_cycle or RentCycle.MONTHLY),
        start_date=as_utc(start_date) or datetime.now(timezone.utc),
    )
    try:
        db.add(tenancy)
        db.flush()
        notify(
            db,
            tenant.id,
            "Tenancy Invitation",
            f"You have been invited to {unit.label} at {unit.property.name}. Please accept or decline.",
            type=NotificationType.TENANCY,
            data={"tenancy_id": tenancy.id},
        )
        db.commit()
    except SQLAlchemyError as e:
        raise server_error(db, "Invite tenant", e)

    logger.info(f"Landlord {user.user_id} invited tenant {tenant.id} to unit {unit.id} ({tenancy.id})")
    return tenancy


# ─────────────────────── Tenant: respond ───────────────────────

def _terminate_active_tenancies(db: Session, tenant: AuthContext, keep_id: UUID) -> List[Tenancy]:
    others = db.query(Tenancy).filter(
        Tenancy.tenant_id == tenant.user_id,
        Tenancy.status == TenancyStatus.ACTIVE,
        Tenancy.id != keep_id
    ).with_for_update().all()
    for other in others:
        other.status = TenancyStatus.TERMINATED
        notify(
            db,
            other.unit.property.landlord_id,
            "Tenancy Ended",
            f"{tenant.full_name or 'A tenant'} has moved out of {other.unit.label} at {other.unit.property.name}.",
            type=NotificationType.TENANCY,
            data={"tenancy_id": other.id},
        )
    # Terminations reach the database before the activation so the
    # one-active-tenancy-per-tenant index never sees two active rows
    db.flush()
    return others


def respond_to_tenancy(
    db: Session,
    user: AuthContext,
    tenancy_id: Optional[UUID],
    action: Optional[str],
) -> Tenancy:
    """
    Accept or decline a pending invitation addressed to this tenant.

    Accepting terminates the tenant's other active tenancy, activates this
    one, sets the first due date one rent cycle after the start date and
    notifies the landlord, all in one commit.
    """
    if not tenancy_id or not action:
        raise bad_request("tenancyId and action required")
    new_status = RESPONSES.get(action.strip().lower())
    if new_status is None:
        raise bad_request("Invalid action")

    tenancy = db.query(Tenancy).filter(
        Tenancy.id == tenancy_id,
        Tenancy.tenant_id == user.user_id,
        Tenancy.status == TenancyStatus.PENDING
    ).with_for_update().first()
    if not tenancy:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TENANCY_NOT_FOUND)

    unit = tenancy.unit
    try:
        if new_status == TenancyStatus.ACTIVE:
            occupied = db.query(Tenancy.id).filter(
                Tenancy.unit_id == tenancy.unit_id,
                Tenancy.status == TenancyStatus.ACTIVE,
                Tenancy.id != tenancy.id
            ).first()
            if occupied:
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=UNIT_OCCUPIED)

            terminated = _terminate_active_tenancies(db, user, tenancy.id)
            tenancy.status = TenancyStatus.ACTIVE
            tenancy.next_due_date = advance_due_date(tenancy.start_date, tenancy.rent_cycle)
        else:
            terminated = []
            tenancy.status = TenancyStatus.REJECTED

        verb = "accepted" if new_status == TenancyStatus.ACTIVE else "declined"
        notify(
            db,
            unit.property.landlord_id,
            "Tenancy Accepted" if new_status == TenancyStatus.ACTIVE else "Tenancy Declined",
            f"{user.full_name or 'A tenant'} has {verb} the invitation to {unit.label} at {unit.property.name}.",
            type=NotificationType.TENANCY,
            data={"tenancy_id": tenancy.id},
        )
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except IntegrityError as e:
        # Lost a race for the unit to another acceptance
        db.rollback()
        logger.warning(f"Tenancy {tenancy_id} activation conflicted: {e}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=UNIT_OCCUPIED)
    except SQLAlchemyError as e:
        raise server_error(db, "Respond to tenancy", e)

    if terminated:
        logger.info(f"Terminated tenancies {[t.id for t in terminated]} for tenant {user.user_id}")
    logger.info(f"Tenant {user.user_id} {verb} tenancy {tenancy.id}")
    return tenancy
