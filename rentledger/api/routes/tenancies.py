from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rentledger.core.security import AuthContext, require_tenant
from rentledger.database import get_db
from rentledger.schemas.tenancy import TenancyRespond
from rentledger.services import tenancy_service

router = APIRouter()


@router.post("/respond")
def respond(
    body: TenancyRespond,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(require_tenant)
):
    """Accept or reject a pending tenancy invitation"""
    tenancy = tenancy_service.respond_to_tenancy(db, current_user, body.tenancy_id, body.action)
    return {
        "success": True,
        "status": tenancy.status.value,
        "nextDueDate": tenancy.next_due_date,
    }
