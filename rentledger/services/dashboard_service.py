"""
Dashboard Service
Read-only summaries for the landlord and tenant home screens.
"""
import logging
import math
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from rentledger.core.config import settings
from rentledger.core.pagination import Pagination
from rentledger.core.security import AuthContext
from rentledger.models.payment import Payment, PaymentStatus
from rentledger.models.property import Property, Unit
from rentledger.models.tenancy import Tenancy, TenancyStatus
from rentledger.services.payment_service import display_status, landlord_payment_rows
from rentledger.services.property_service import unit_payment_state
from rentledger.services.rent_cycle import (
    DisplayStatus,
    as_utc,
    derive_payment_status,
    format_currency,
    outstanding_balances,
)

logger = logging.getLogger(__name__)

RECENT_PAYMENTS = 5
HISTORY_PAGE_SIZE = 20


# ─────────────────────── Landlord ───────────────────────

def landlord_summary(db: Session, user: AuthContext) -> Dict[str, Any]:
    properties_count = db.query(func.count(Property.id)).filter(
        Property.landlord_id == user.user_id
    ).scalar() or 0

    active_tenants = db.query(func.count(Tenancy.id)).join(Unit).join(Property).filter(
        Property.landlord_id == user.user_id,
        Tenancy.status == TenancyStatus.ACTIVE
    ).scalar() or 0

    revenue = db.query(func.coalesce(func.sum(Payment.amount), 0)).join(Tenancy).join(Unit).join(Property).filter(
        Property.landlord_id == user.user_id,
        Payment.status == PaymentStatus.VERIFIED
    ).scalar()

    rows = landlord_payment_rows(db, user)
    recent = [
        {
            "id": row["id"],
            "tenantName": row["tenant_name"],
            "tenantInitials": row["tenant_initials"],
            "unitLabel": row["unit_label"],
            "amount": row["amount"],
            "status": row["status"].value,
            "date": row["paid_at"] or row["due_date"],
        }
        for row in rows[:RECENT_PAYMENTS]
    ]

    total_revenue = Decimal(str(revenue or 0))
    return {
        "totalRevenue": float(total_revenue),
        "totalRevenueDisplay": format_currency(total_revenue),
        "pendingPayments": sum(1 for row in rows if row["status"] == DisplayStatus.PENDING),
        "overduePayments": sum(1 for row in rows if row["status"] == DisplayStatus.OVERDUE),
        "activeTenantsCount": active_tenants,
        "propertiesCount": properties_count,
        "recentPayments": recent,
    }


# ─────────────────────── Tenant ───────────────────────

def get_active_tenancy(db: Session, user: AuthContext) -> Optional[Tenancy]:
    return db.query(Tenancy).filter(
        Tenancy.tenant_id == user.user_id,
        Tenancy.status == TenancyStatus.ACTIVE
    ).options(
        joinedload(Tenancy.unit).joinedload(Unit.property)
    ).first()


def days_until(due: Optional[datetime], now: datetime) -> int:
    if due is None:
        return 0
    return math.ceil((due - now).total_seconds() / 86400)


def current_payment(tenancy: Tenancy) -> Optional[Payment]:
    """The bill or proof recorded for the tenancy's current due date"""
    due = as_utc(tenancy.next_due_date)
    return next((p for p in tenancy.payments if as_utc(p.due_date) == due), None)


def current_status(tenancy: Tenancy, now: datetime) -> DisplayStatus:
    payment = current_payment(tenancy)
    if payment is not None:
        return derive_payment_status(payment.status, tenancy.next_due_date, now)
    return DisplayStatus(unit_payment_state(tenancy, now))


def tenant_payment(payment: Payment, now: datetime) -> Dict[str, Any]:
    return {
        "id": payment.id,
        "amount": float(payment.amount),
        "status": display_status(payment, now),
        "due_date": as_utc(payment.due_date) or as_utc(payment.tenancy.next_due_date),
        "paid_at": payment.payment_date,
        "reference": payment.reference,
        "proof_url": payment.proof_url,
        "rejection_reason": payment.rejection_reason,
    }


def tenant_rent_info(tenancy: Tenancy, now: datetime) -> Dict[str, Any]:
    unit = tenancy.unit
    due = as_utc(tenancy.next_due_date)
    payment = current_payment(tenancy)
    balance = outstanding_balances(tenancy.payments, [tenancy.id])[tenancy.id]
    return {
        "tenancy_id": tenancy.id,
        "unit_label": unit.label,
        "property_name": unit.property.name,
        "property_address": unit.property.address or "",
        "rent_amount": float(unit.rent_amount),
        "rent_amount_display": format_currency(unit.rent_amount),
        "rent_cycle": tenancy.rent_cycle.value,
        "next_due_date": due,
        "days_until_due": days_until(due, now),
        "is_overdue": due is not None and due < now,
        "current_payment_status": current_status(tenancy, now),
        "current_payment_id": payment.id if payment else None,
        "outstanding_balance": float(balance),
    }


def tenant_dashboard(db: Session, user: AuthContext) -> Dict[str, Any]:
    tenancy = get_active_tenancy(db, user)
    if tenancy is None:
        return {"has_tenancy": False, "rent_info": None, "recent_payments": []}

    now = datetime.now(timezone.utc)
    return {
        "has_tenancy": True,
        "rent_info": tenant_rent_info(tenancy, now),
        "recent_payments": [tenant_payment(p, now) for p in tenancy.payments[:RECENT_PAYMENTS]],
    }


def tenant_history(
    db: Session,
    user: AuthContext,
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> Dict[str, Any]:
    """Payments of the tenant's active tenancy, newest first; limit capped at 50"""
    window = Pagination.build(
        page,
        limit or HISTORY_PAGE_SIZE,
        max_limit=settings.TENANT_HISTORY_MAX_PAGE_SIZE
    )
    tenancy = get_active_tenancy(db, user)
    if tenancy is None:
        return {"has_tenancy": False, "items": [], "pagination": window.to_dict()}

    query = db.query(Payment).filter(Payment.tenancy_id == tenancy.id)
    window = window.with_total(query.count())
    payments: List[Payment] = query.order_by(
        Payment.created_at.desc()
    ).offset(window.offset).limit(window.limit).all()

    now = datetime.now(timezone.utc)
    return {
        "has_tenancy": True,
        "items": [tenant_payment(p, now) for p in payments],
        "pagination": window.to_dict(),
    }


def tenant_summary(db: Session, user: AuthContext) -> Optional[Dict[str, Any]]:
    """Compact tenancy summary for /api/dashboard/summary; None without a tenancy"""
    tenancy = get_active_tenancy(db, user)
    if tenancy is None:
        return None

    now = datetime.now(timezone.utc)
    info = tenant_rent_info(tenancy, now)
    return {
        "tenancy": {
            "id": tenancy.id,
            "unitName": tenancy.unit.name,
            "propertyName": info["property_name"],
            "propertyAddress": info["property_address"],
            "rentAmount": info["rent_amount"],
            "dueDate": info["next_due_date"],
            "daysUntilDue": max(info["days_until_due"], 0),
            "isOverdue": info["is_overdue"],
        },
        "currentStatus": info["current_payment_status"].value,
        "outstandingBalance": info["outstanding_balance"],
        "paymentHistory": [
            {
                "id": p.id,
                "amount": float(p.amount),
                "status": display_status(p, now).value,
                "date": p.payment_date or p.created_at,
            }
            for p in tenancy.payments[:10]
        ],
    }
