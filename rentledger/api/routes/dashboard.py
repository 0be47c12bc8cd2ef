from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rentledger.core.security import AuthContext, get_current_user
from rentledger.database import get_db
from rentledger.services import dashboard_service

router = APIRouter()


@router.get("/summary")
def get_summary(
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user)
):
    """Home screen numbers for either role"""
    if current_user.is_landlord:
        return {"role": current_user.role.value, "summary": dashboard_service.landlord_summary(db, current_user)}

    summary = dashboard_service.tenant_summary(db, current_user)
    if summary is None:
        return {"role": current_user.role.value, "summary": None, "message": "No active tenancy"}
    return {"role": current_user.role.value, "summary": summary}
