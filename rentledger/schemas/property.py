from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from rentledger.schemas.common import CamelModel


class PropertyCreate(CamelModel):
    name: Optional[str] = None
    address: Optional[str] = None
    units_count: Optional[int] = None
    rent_amount: Optional[Decimal] = None


class PropertyUpdate(CamelModel):
    name: Optional[str] = None
    address: Optional[str] = None


class PropertyOut(CamelModel):
    id: UUID
    name: str
    address: Optional[str] = None
    created_at: Optional[datetime] = None


class PropertySummary(CamelModel):
    id: UUID
    name: str
    address: str
    units_count: int
    active_tenants: int
    pending_payments: int
    overdue_payments: int
    created_at: Optional[datetime] = None


class UnitCreate(CamelModel):
    unit_number: Optional[str] = None
    rent_amount: Optional[Decimal] = None


class UnitOut(CamelModel):
    id: UUID
    name: str
    rent_amount: float


class UnitOccupancy(CamelModel):
    id: UUID
    name: str
    rent_amount: float
    is_vacant: bool
    tenant_name: Optional[str] = None
    tenancy_status: Optional[str] = None


class UnitPaymentState(CamelModel):
    id: UUID
    unit_number: str
    rent_amount: float
    tenant_name: Optional[str] = None
    tenant_id: Optional[UUID] = None
    tenancy_id: Optional[UUID] = None
    payment_status: str  # paid | pending | overdue | vacant


class PropertyDetail(CamelModel):
    id: UUID
    name: str
    address: str
    created_at: Optional[datetime] = None
    units_count: int
    active_tenants: int
    total_revenue: float
    pending_count: int
    overdue_count: int
    units: List[UnitPaymentState]


class AvailableUnit(CamelModel):
    id: UUID
    name: str
    rent_amount: float
    property_id: UUID
    property_name: str
