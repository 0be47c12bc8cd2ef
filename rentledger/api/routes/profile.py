"""
Profile Endpoints
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rentledger.core.security import AuthContext, get_current_user
from rentledger.database import get_db
from rentledger.models.profile import Profile
from rentledger.schemas.auth import ChangePasswordRequest, ProfileOut, ProfileUpdate
from rentledger.services.property_service import bad_request, server_error
from rentledger.services.supabase_service import SupabaseAuthError, SupabaseService, get_supabase_service

logger = logging.getLogger(__name__)

router = APIRouter()

MIN_PASSWORD_LENGTH = 6


@router.get("/", response_model=ProfileOut)
def get_profile(
    current_user: AuthContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return db.get(Profile, current_user.user_id)


@router.patch("/", response_model=ProfileOut)
def update_profile(
    update: ProfileUpdate,
    current_user: AuthContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update name and phone. An empty phone clears it."""
    profile = db.get(Profile, current_user.user_id)
    fields = update.model_dump(exclude_unset=True)

    if "full_name" in fields:
        full_name = (fields["full_name"] or "").strip()
        if not full_name:
            raise bad_request("Full name cannot be empty.")
        profile.full_name = full_name

    if "phone_number" in fields:
        phone = (fields["phone_number"] or "").strip() or None
        if phone:
            taken = db.query(Profile.id).filter(
                Profile.phone_number == phone,
                Profile.id != profile.id
            ).first()
            if taken:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="Phone number is already in use."
                )
        profile.phone_number = phone

    try:
        db.commit()
    except SQLAlchemyError as e:
        raise server_error(db, "Update profile", e)
    return profile


@router.post("/change-password")
def change_password(
    body: ChangePasswordRequest,
    current_user: AuthContext = Depends(get_current_user),
    supabase: SupabaseService = Depends(get_supabase_service)
):
    """Check the current password with a sign-in, then set the new one via the admin API"""
    if not body.current_password or not body.new_password:
        raise bad_request("Current and new password are required.")
    if len(body.new_password) < MIN_PASSWORD_LENGTH:
        raise bad_request(f"New password must be at least {MIN_PASSWORD_LENGTH} characters.")
    if not current_user.email or not supabase.verify_password(current_user.email, body.current_password):
        raise bad_request("Current password is incorrect.")

    try:
        supabase.update_password(str(current_user.user_id), body.new_password)
    except SupabaseAuthError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Something went wrong. Please try again."
        )

    logger.info(f"Password changed for {current_user.user_id}")
    return {"success": True, "message": "Password updated successfully."}
