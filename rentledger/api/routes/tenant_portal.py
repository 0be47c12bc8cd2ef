"""
Tenant Portal Endpoints
What the signed-in tenant owes, their payment history and proof upload.
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from rentledger.core.config import settings
from rentledger.core.security import AuthContext, require_tenant
from rentledger.database import get_db
from rentledger.schemas.payment import ProofSubmitted, TenantDashboardResponse, TenantHistoryResponse
from rentledger.services import dashboard_service, payment_service
from rentledger.services.storage_service import ProofStorage, get_proof_storage

router = APIRouter()


@router.get("/dashboard", response_model=TenantDashboardResponse)
def get_dashboard(
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(require_tenant)
):
    return dashboard_service.tenant_dashboard(db, current_user)


@router.post("/dashboard", response_model=ProofSubmitted, status_code=status.HTTP_201_CREATED)
def submit_payment_proof(
    tenancy_id: Optional[UUID] = Form(None, alias="tenancyId"),
    payment_id: Optional[UUID] = Form(None, alias="paymentId"),
    reference: Optional[str] = Form(None),
    amount: Optional[str] = Form(None),
    proof: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    storage: ProofStorage = Depends(get_proof_storage),
    current_user: AuthContext = Depends(require_tenant)
):
    """
    Submit proof of payment (multipart form).

    Needs a proof file, a transfer reference or both. With paymentId the
    existing bill is resubmitted, otherwise the open bill for the current
    due date is reused or a new payment is recorded.
    """
    proof_file = None
    if proof is not None and proof.filename:
        proof_file = payment_service.ProofFile(
            filename=proof.filename,
            content=proof.file.read(settings.max_proof_size_bytes + 1),
            content_type=proof.content_type or "application/octet-stream",
        )

    payment = payment_service.submit_proof(
        db,
        current_user,
        storage,
        tenancy_id=tenancy_id,
        payment_id=payment_id,
        reference=reference,
        amount=amount,
        proof=proof_file,
    )
    return ProofSubmitted(
        payment_id=payment.id,
        status=payment_service.display_status(payment),
        proof_url=payment.proof_url,
    )


@router.get("/history", response_model=TenantHistoryResponse)
def get_history(
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(require_tenant)
):
    return dashboard_service.tenant_history(db, current_user, page, limit)
