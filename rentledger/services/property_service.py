"""
Property Service
Landlord-owned properties and their units. Every lookup is scoped to the
calling landlord; a property that exists but belongs to someone else is
reported exactly like one that does not exist.
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from rentledger.core.pagination import Pagination
from rentledger.core.security import AuthContext
from rentledger.models.payment import PaymentStatus
from rentledger.models.property import Property, Unit
from rentledger.models.tenancy import Tenancy, TenancyStatus
from rentledger.services.rent_cycle import as_utc, to_decimal

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Something went wrong. Please try again."
PROPERTY_NOT_FOUND = "Property not found"
MAX_UNITS_PER_PROPERTY = 500


def server_error(db: Session, action: str, exc: Exception) -> HTTPException:
    """Roll back, log and build the generic 500 returned for backend failures"""
    db.rollback()
    logger.error(f"{action} failed: {exc}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=GENERIC_ERROR
    )


def bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def parse_rent_amount(value: Any) -> Decimal:
    try:
        amount = to_decimal(value)
    except (InvalidOperation, ValueError):
        raise bad_request("Rent amount must be a number.")
    if value is None or not amount.is_finite() or amount <= 0:
        raise bad_request("Rent amount must be greater than 0.")
    return amount.quantize(Decimal("0.01"))


def get_owned_property(db: Session, user: AuthContext, property_id: UUID) -> Property:
    property_obj = db.query(Property).filter(
        Property.id == property_id,
        Property.landlord_id == user.user_id
    ).first()
    if not property_obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=PROPERTY_NOT_FOUND)
    return property_obj


# ─────────────────────── Listing ───────────────────────

def _tenancy_counts(units: List[Unit], now: datetime) -> Tuple[int, int, int]:
    """(active tenants, tenancies with a pending bill, tenancies overdue)"""
    active = [t for unit in units for t in unit.tenancies if t.status == TenancyStatus.ACTIVE]
    pending = overdue = 0
    for tenancy in active:
        due = as_utc(tenancy.next_due_date)
        unpaid = [p for p in tenancy.payments if p.status != PaymentStatus.VERIFIED]
        if not unpaid or due is None:
            continue
        if due < now:
            overdue += 1
        elif any(p.status == PaymentStatus.PENDING for p in unpaid):
            pending += 1
    return len(active), pending, overdue


def list_properties(
    db: Session,
    user: AuthContext,
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> Tuple[List[Dict[str, Any]], Pagination]:
    window = Pagination.build(page, limit)
    base = db.query(Property).filter(Property.landlord_id == user.user_id)
    window = window.with_total(base.count())

    properties = base.options(
        selectinload(Property.units)
        .selectinload(Unit.tenancies)
        .selectinload(Tenancy.payments)
    ).order_by(Property.created_at.desc()).offset(window.offset).limit(window.limit).all()

    now = datetime.now(timezone.utc)
    items = []
    for prop in properties:
        active, pending, overdue = _tenancy_counts(prop.units, now)
        items.append({
            "id": prop.id,
            "name": prop.name,
            "address": prop.address or "",
            "units_count": len(prop.units),
            "active_tenants": active,
            "pending_payments": pending,
            "overdue_payments": overdue,
            "created_at": prop.created_at,
        })
    return items, window


# ─────────────────────── Create / edit ───────────────────────

def create_property(
    db: Session,
    user: AuthContext,
    name: Optional[str],
    address: Optional[str],
    units_count: Optional[int],
    rent_amount: Any,
) -> Property:
    """
    Insert a property with units named "1".."N", all at the same rent.
    Property and units are committed together or not at all.
    """
    if not name or not name.strip():
        raise bad_request("Property name is required.")
    if not units_count or units_count < 1:
        raise bad_request("Number of units is required.")
    if units_count > MAX_UNITS_PER_PROPERTY:
        raise bad_request(f"A property can have at most {MAX_UNITS_PER_PROPERTY} units.")
    amount = parse_rent_amount(rent_amount)

    property_obj = Property(
        landlord_id=user.user_id,
        name=name.strip(),
        address=(address or "").strip() or None,
    )
    property_obj.units = [
        Unit(name=str(number), rent_amount=amount)
        for number in range(1, units_count + 1)
    ]

    try:
        db.add(property_obj)
        db.commit()
    except SQLAlchemyError as e:
        raise server_error(db, "Create property", e)

    logger.info(f"Landlord {user.user_id} created property {property_obj.id} with {units_count} units")
    return property_obj


def update_property(
    db: Session,
    user: AuthContext,
    property_id: UUID,
    name: Optional[str],
    address: Optional[str],
) -> Property:
    if not name or not name.strip():
        raise bad_request("Property name required.")
    property_obj = get_owned_property(db, user, property_id)
    property_obj.name = name.strip()
    property_obj.address = (address or "").strip() or None
    try:
        db.commit()
    except SQLAlchemyError as e:
        raise server_error(db, "Update property", e)
    return property_obj


def delete_property(db: Session, user: AuthContext, property_id: UUID) -> None:
    """Delete a property; its units, tenancies and payments go with it"""
    property_obj = get_owned_property(db, user, property_id)
    try:
        db.delete(property_obj)
        db.commit()
    except SQLAlchemyError as e:
        raise server_error(db, "Delete property", e)
    logger.info(f"Landlord {user.user_id} deleted property {property_id}")


# ─────────────────────── Detail ───────────────────────

def unit_payment_state(tenancy: Optional[Tenancy], now: datetime) -> str:
    """paid | pending | overdue for an occupied unit, vacant otherwise"""
    if tenancy is None:
        return "vacant"
    due = as_utc(tenancy.next_due_date)
    latest = tenancy.payments[0] if tenancy.payments else None
    if latest is not None and latest.status == PaymentStatus.VERIFIED and (due is None or due >= now):
        return "paid"
    if due is not None and due < now:
        return "overdue"
    return "pending"


def get_property_detail(db: Session, user: AuthContext, property_id: UUID) -> Dict[str, Any]:
    property_obj = get_owned_property(db, user, property_id)
    now = datetime.now(timezone.utc)

    units = []
    revenue = Decimal("0")
    for unit in property_obj.units:
        tenancy = unit.active_tenancy()
        for t in unit.tenancies:
            revenue += sum(
                (to_decimal(p.amount) for p in t.payments if p.status == PaymentStatus.VERIFIED),
                Decimal("0"),
            )
        units.append({
            "id": unit.id,
            "unit_number": unit.name,
            "rent_amount": float(unit.rent_amount),
            "tenant_name": tenancy.tenant.full_name if tenancy else None,
            "tenant_id": tenancy.tenant_id if tenancy else None,
            "tenancy_id": tenancy.id if tenancy else None,
            "payment_status": unit_payment_state(tenancy, now),
        })

    return {
        "id": property_obj.id,
        "name": property_obj.name,
        "address": property_obj.address or "",
        "created_at": property_obj.created_at,
        "units_count": len(units),
        "active_tenants": sum(1 for u in units if u["tenant_id"]),
        "total_revenue": float(revenue),
        "pending_count": sum(1 for u in units if u["payment_status"] == "pending"),
        "overdue_count": sum(1 for u in units if u["payment_status"] == "overdue"),
        "units": units,
    }


# ─────────────────────── Units ───────────────────────

def list_units(db: Session, user: AuthContext, property_id: UUID) -> List[Dict[str, Any]]:
    """Units of one property with who (if anyone) currently holds them"""
    property_obj = get_owned_property(db, user, property_id)
    items = []
    for unit in property_obj.units:
        # An active tenancy wins over a pending invitation
        holder = unit.active_tenancy() or next(
            (t for t in unit.tenancies if t.status == TenancyStatus.PENDING), None
        )
        items.append({
            "id": unit.id,
            "name": unit.name,
            "rent_amount": float(unit.rent_amount),
            "is_vacant": unit.active_tenancy() is None,
            "tenant_name": holder.tenant.full_name if holder else None,
            "tenancy_status": holder.status.value if holder else None,
        })
    return items


def add_unit(
    db: Session,
    user: AuthContext,
    property_id: UUID,
    unit_number: Optional[str],
    rent_amount: Any,
) -> Unit:
    if not unit_number or not str(unit_number).strip():
        raise bad_request("Unit number is required.")
    amount = parse_rent_amount(rent_amount)
    property_obj = get_owned_property(db, user, property_id)

    name = str(unit_number).strip()
    exists = db.query(func.count(Unit.id)).filter(
        Unit.property_id == property_obj.id,
        Unit.name == name
    ).scalar()
    if exists:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Unit {name} already exists.")

    unit = Unit(property_id=property_obj.id, name=name, rent_amount=amount)
    try:
        db.add(unit)
        db.commit()
    except SQLAlchemyError as e:
        raise server_error(db, "Add unit", e)
    return unit


def list_vacant_units(db: Session, user: AuthContext) -> List[Dict[str, Any]]:
    """Every unit across the landlord's properties with no active tenancy"""
    units = db.query(Unit).join(Property).filter(
        Property.landlord_id == user.user_id
    ).options(selectinload(Unit.tenancies)).order_by(Property.name, Unit.name).all()

    return [
        {
            "id": unit.id,
            "name": unit.name,
            "rent_amount": float(unit.rent_amount),
            "property_id": unit.property_id,
            "property_name": unit.property.name,
        }
        for unit in units
        if unit.active_tenancy() is None
    ]
