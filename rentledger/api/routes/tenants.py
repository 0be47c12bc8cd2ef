"""
Tenant Management Endpoints
Landlords invite tenants by phone number and list tenancies on their units.
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from rentledger.core.security import AuthContext, require_landlord, require_tenant
from rentledger.database import get_db
from rentledger.schemas.property import AvailableUnit
from rentledger.schemas.tenancy import TenancyAction, TenantInvite, TenantItem
from rentledger.services import property_service, tenancy_service

router = APIRouter()


@router.get("/")
def list_tenants(
    status_filter: Optional[str] = Query("all", alias="status"),
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(require_landlord)
):
    items, window = tenancy_service.list_tenants(db, current_user, status_filter, page, limit)
    return {
        "items": [TenantItem(**item) for item in items],
        "pagination": window.to_dict(),
    }


@router.post("/", status_code=status.HTTP_201_CREATED)
def invite_tenant(
    invite: TenantInvite,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(require_landlord)
):
    """Invite a registered tenant (looked up by phone) to a vacant unit"""
    tenancy = tenancy_service.invite_tenant(
        db,
        current_user,
        phone=invite.phone,
        unit_id=invite.unit_id,
        start_date=invite.start_date,
        rent_cycle=invite.rent_cycle,
    )
    return {
        "tenancy": {"id": tenancy.id, "status": tenancy.status.value},
        "message": "Invitation sent successfully!",
    }


@router.get("/units")
def available_units(
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(require_landlord)
):
    """Vacant units the landlord can invite a tenant to"""
    units = property_service.list_vacant_units(db, current_user)
    return {"units": [AvailableUnit(**unit) for unit in units]}


@router.get("/validate")
def validate_phone(
    phone: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(require_landlord)
):
    """Whether a phone number belongs to a registered user"""
    return {"valid": tenancy_service.phone_is_registered(db, phone)}


@router.patch("/{tenancy_id}")
def respond_to_invitation(
    tenancy_id: UUID,
    body: TenancyAction,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(require_tenant)
):
    """Tenant accepts or declines an invitation"""
    tenancy = tenancy_service.respond_to_tenancy(db, current_user, tenancy_id, body.action)
    return {"success": True, "status": tenancy.status.value}
