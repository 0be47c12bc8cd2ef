"""
Payment Request/Response Schemas
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from rentledger.services.rent_cycle import DisplayStatus
from rentledger.schemas.common import CamelModel, PaginationOut


class PaymentReview(CamelModel):
    action: Optional[str] = None  # verify | reject
    reason: Optional[str] = None


class GenerateBillsRequest(CamelModel):
    month: Optional[int] = None
    year: Optional[int] = None


class GenerateBillsResponse(CamelModel):
    success: bool = True
    created: int
    skipped: int
    total: int


class PaymentRow(CamelModel):
    """Landlord view of a payment"""
    id: UUID
    tenant_name: str
    tenant_initials: str
    unit_label: str
    property_name: str
    amount: float
    amount_display: str
    status: DisplayStatus
    due_date: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    reference: Optional[str] = None
    proof_url: Optional[str] = None
    rejection_reason: Optional[str] = None


class TenantPayment(CamelModel):
    """Tenant view of one of their payments"""
    id: UUID
    amount: float
    status: DisplayStatus
    due_date: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    reference: Optional[str] = None
    proof_url: Optional[str] = None
    rejection_reason: Optional[str] = None


class TenantRentInfo(CamelModel):
    tenancy_id: UUID
    unit_label: str
    property_name: str
    property_address: str
    rent_amount: float
    rent_amount_display: str
    rent_cycle: str
    next_due_date: Optional[datetime] = None
    days_until_due: int
    is_overdue: bool
    current_payment_status: DisplayStatus
    current_payment_id: Optional[UUID] = None
    outstanding_balance: float


class TenantDashboardResponse(CamelModel):
    has_tenancy: bool
    rent_info: Optional[TenantRentInfo] = None
    recent_payments: List[TenantPayment] = []


class TenantHistoryResponse(CamelModel):
    has_tenancy: bool
    items: List[TenantPayment]
    pagination: PaginationOut


class ProofSubmitted(CamelModel):
    success: bool = True
    payment_id: UUID
    status: DisplayStatus
    proof_url: Optional[str] = None
