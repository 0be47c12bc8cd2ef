"""
Property Endpoints (landlord only)
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from rentledger.core.security import AuthContext, require_landlord
from rentledger.database import get_db
from rentledger.schemas.property import (
    PropertyCreate, PropertyDetail, PropertyOut, PropertySummary, PropertyUpdate,
    UnitCreate, UnitOccupancy, UnitOut
)
from rentledger.services import property_service

router = APIRouter()


@router.get("/")
def list_properties(
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(require_landlord)
):
    """Landlord's properties with unit, tenant and payment counts"""
    items, window = property_service.list_properties(db, current_user, page, limit)
    return {
        "items": [PropertySummary(**item) for item in items],
        "pagination": window.to_dict(),
    }


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_property(
    property_in: PropertyCreate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(require_landlord)
):
    """Create a property together with its units"""
    property_obj = property_service.create_property(
        db,
        current_user,
        name=property_in.name,
        address=property_in.address,
        units_count=property_in.units_count,
        rent_amount=property_in.rent_amount,
    )
    return {
        "property": PropertyOut.model_validate(property_obj),
        "units": [UnitOut(id=u.id, name=u.name, rent_amount=float(u.rent_amount)) for u in property_obj.units],
    }


@router.get("/{property_id}")
def get_property(
    property_id: UUID,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(require_landlord)
):
    detail = property_service.get_property_detail(db, current_user, property_id)
    return {"property": PropertyDetail(**detail)}


@router.patch("/{property_id}")
def update_property(
    property_id: UUID,
    property_update: PropertyUpdate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(require_landlord)
):
    property_obj = property_service.update_property(
        db, current_user, property_id, property_update.name, property_update.address
    )
    return {"property": PropertyOut.model_validate(property_obj)}


@router.delete("/{property_id}")
def delete_property(
    property_id: UUID,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(require_landlord)
):
    property_service.delete_property(db, current_user, property_id)
    return {"success": True}


# Unit endpoints
@router.get("/{property_id}/units")
def list_units(
    property_id: UUID,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(require_landlord)
):
    units = property_service.list_units(db, current_user, property_id)
    return {"units": [UnitOccupancy(**unit) for unit in units]}


@router.post("/{property_id}/units", status_code=status.HTTP_201_CREATED)
def add_unit(
    property_id: UUID,
    unit_in: UnitCreate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(require_landlord)
):
    """Add a unit to a property"""
    unit = property_service.add_unit(db, current_user, property_id, unit_in.unit_number, unit_in.rent_amount)
    return {"unit": UnitOut(id=unit.id, name=unit.name, rent_amount=float(unit.rent_amount))}
