"""
Authentication Endpoints
Sign-up, sign-in, sign-out and password reset, all backed by Supabase Auth
"""
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.requests import Request

from rentledger.core.config import settings
from rentledger.core.security import AuthContext, extract_token, get_current_user
from rentledger.database import get_db
from rentledger.models.profile import Profile
from rentledger.schemas.auth import ForgotPasswordRequest, ProfileOut, SignInRequest, SignUpRequest
from rentledger.services.property_service import server_error
from rentledger.services.supabase_service import SupabaseAuthError, SupabaseService, get_supabase_service

logger = logging.getLogger(__name__)

router = APIRouter()


def set_auth_cookie(response: Response, access_token: str, max_age: int = None) -> None:
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=access_token,
        max_age=max_age or 3600,
        httponly=True,
        secure=not settings.DEBUG,
        samesite="lax",
        path="/",
    )


@router.post("/signup", status_code=status.HTTP_201_CREATED)
def signup(
    user_in: SignUpRequest,
    db: Session = Depends(get_db),
    supabase: SupabaseService = Depends(get_supabase_service)
):
    """Register a new user with Supabase and create their profile"""
    phone = (user_in.phone or "").strip() or None
    if phone and db.query(Profile.id).filter(Profile.phone_number == phone).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Phone number is already registered."
        )

    try:
        created = supabase.sign_up(
            user_in.email,
            user_in.password,
            metadata={
                "full_name": user_in.full_name.strip(),
                "phone_number": phone,
                "role": user_in.role.value,
            },
            redirect_to=f"{settings.FRONTEND_URL}/auth/callback",
        )
    except SupabaseAuthError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    user_id = uuid.UUID(str(created["id"]))
    try:
        profile = db.get(Profile, user_id)
        if profile is None:
            profile = Profile(id=user_id)
            db.add(profile)
        profile.email = created["email"] or user_in.email
        profile.full_name = user_in.full_name.strip()
        profile.phone_number = phone
        profile.role = user_in.role
        db.commit()
    except SQLAlchemyError as e:
        raise server_error(db, "Signup profile", e)

    logger.info(f"New {user_in.role.value} account {user_id}")
    return {
        "success": True,
        "message": "Account created. Check your email to confirm your address.",
        "user": ProfileOut.model_validate(profile),
    }


@router.post("/signin")
def signin(
    credentials: SignInRequest,
    response: Response,
    supabase: SupabaseService = Depends(get_supabase_service)
):
    """Sign in with email + password; the access token is also set as an HttpOnly cookie"""
    if not credentials.email.strip() or not credentials.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email and password are required.")

    try:
        session = supabase.sign_in(credentials.email.strip(), credentials.password)
    except SupabaseAuthError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )

    set_auth_cookie(response, session["access_token"], session.get("expires_in"))
    return {
        "user": session["user"],
        "access_token": session["access_token"],
        "refresh_token": session["refresh_token"],
        "token_type": "bearer",
    }


@router.post("/signout")
def signout(
    request: Request,
    response: Response,
    supabase: SupabaseService = Depends(get_supabase_service)
):
    token = extract_token(request)
    if token:
        supabase.sign_out(token)
    response.delete_cookie(settings.AUTH_COOKIE_NAME, path="/")
    return {"success": True}


@router.post("/forgot-password")
def forgot_password(
    body: ForgotPasswordRequest,
    supabase: SupabaseService = Depends(get_supabase_service)
):
    """Send a password reset link. Always answers the same way."""
    try:
        supabase.reset_password(body.email, redirect_to=f"{settings.FRONTEND_URL}/auth/reset-password")
    except SupabaseAuthError:
        # Same answer whether or not the address exists
        pass
    return {
        "success": True,
        "message": "If an account exists for that email, a reset link has been sent."
    }


@router.get("/me", response_model=ProfileOut)
def me(
    current_user: AuthContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return db.get(Profile, current_user.user_id)
