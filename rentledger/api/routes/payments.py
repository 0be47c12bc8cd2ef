"""
Payment Endpoints (landlord only)
List, verify / reject and bill generation
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from rentledger.core.security import AuthContext, require_landlord
from rentledger.database import get_db
from rentledger.schemas.payment import GenerateBillsRequest, GenerateBillsResponse, PaymentReview, PaymentRow
from rentledger.services import payment_service

router = APIRouter()


@router.get("/")
def list_payments(
    status_filter: Optional[str] = Query("all", alias="status"),
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(require_landlord)
):
    items, window = payment_service.list_payments(db, current_user, status_filter, page, limit)
    return {
        "items": [PaymentRow(**item) for item in items],
        "pagination": window.to_dict(),
    }


@router.post("/generate", response_model=GenerateBillsResponse, status_code=status.HTTP_200_OK)
def generate_bills(
    body: GenerateBillsRequest,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(require_landlord)
):
    """Create pending rent bills for tenancies due by the end of the given month"""
    result = payment_service.generate_bills(db, current_user, body.month, body.year)
    return GenerateBillsResponse(**result)


@router.patch("/{payment_id}")
def review_payment(
    payment_id: UUID,
    review: PaymentReview,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(require_landlord)
):
    """Verify or reject a submitted payment"""
    payment = payment_service.review_payment(db, current_user, payment_id, review.action, review.reason)
    return {
        "success": True,
        "status": payment_service.display_status(payment).value,
        "nextDueDate": payment.tenancy.next_due_date,
    }
