"""
Tenancy Pydantic Schemas - API Request/Response Models
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from rentledger.models.tenancy import RentCycle, TenancyStatus
from rentledger.schemas.common import CamelModel


class TenantInvite(CamelModel):
    phone: Optional[str] = None
    unit_id: Optional[UUID] = None
    start_date: Optional[datetime] = None
    rent_cycle: RentCycle = RentCycle.MONTHLY


class TenancyRespond(CamelModel):
    tenancy_id: Optional[UUID] = None
    action: Optional[str] = None  # accept | reject


class TenancyAction(CamelModel):
    action: Optional[str] = None  # accept | decline


class TenantItem(CamelModel):
    id: UUID
    tenancy_id: UUID
    full_name: str
    phone: Optional[str] = None
    unit_label: str
    property_name: str
    status: TenancyStatus
    outstanding_balance: float
    start_date: datetime
    next_due_date: Optional[datetime] = None
    rent_cycle: RentCycle
