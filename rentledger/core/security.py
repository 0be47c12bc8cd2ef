"""
Security and Authentication
Verifies Supabase-issued JWTs and builds the request-scoped principal
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional
import logging
import uuid

from fastapi import Depends, HTTPException, status
from jose import jwt, JWTError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.requests import Request

from rentledger.core.config import settings
from rentledger.database import get_db
from rentledger.models.profile import Profile, UserRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthContext:
    """Who is making this request. Passed explicitly into every service call."""
    user_id: uuid.UUID
    email: Optional[str]
    role: UserRole
    full_name: str
    token: str

    @property
    def is_landlord(self) -> bool:
        return self.role == UserRole.LANDLORD


def extract_token(request: Request) -> Optional[str]:
    """Bearer header first, then the HttpOnly cookie set at sign-in"""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return request.cookies.get(settings.AUTH_COOKIE_NAME)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Return the claims of a valid Supabase access token, else None"""
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.SUPABASE_JWT_AUDIENCE,
        )
    except JWTError as e:
        logger.warning(f"JWT decode error: {e}")
        return None


def role_from_metadata(metadata: Dict[str, Any]) -> UserRole:
    try:
        return UserRole(str(metadata.get("role") or "tenant").lower())
    except ValueError:
        return UserRole.TENANT


def sync_profile(db: Session, user_id: uuid.UUID, claims: Dict[str, Any]) -> Profile:
    """
    Load the profile behind a token, creating it from the token's
    user_metadata the first time a Supabase user reaches the API.
    """
    profile = db.get(Profile, user_id)
    if profile:
        return profile

    metadata = claims.get("user_metadata") or {}
    phone = (metadata.get("phone_number") or "").strip() or None
    if phone and db.query(Profile).filter(Profile.phone_number == phone).first():
        phone = None

    profile = Profile(
        id=user_id,
        email=claims.get("email"),
        full_name=metadata.get("full_name") or "",
        phone_number=phone,
        role=role_from_metadata(metadata),
    )
    db.add(profile)
    db.commit()
    logger.info(f"Created profile {user_id} from token metadata")
    return profile


async def get_current_user(
    request: Request,
    db: Session = Depends(get_db)
) -> AuthContext:
    """
    Resolve the authenticated principal for this request.

    Raises:
        HTTPException: 401 if the token is missing/invalid
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token = extract_token(request)
    if not token:
        raise credentials_exception

    claims = decode_access_token(token)
    if not claims or not claims.get("sub"):
        raise credentials_exception

    try:
        user_id = uuid.UUID(str(claims["sub"]))
    except ValueError:
        logger.warning("Token 'sub' is not a UUID")
        raise credentials_exception

    try:
        profile = sync_profile(db, user_id, claims)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error looking up profile {user_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Something went wrong. Please try again."
        )

    return AuthContext(
        user_id=profile.id,
        email=profile.email or claims.get("email"),
        role=profile.role,
        full_name=profile.full_name or "",
        token=token,
    )


def require_role(*roles: UserRole):
    async def role_checker(user: AuthContext = Depends(get_current_user)) -> AuthContext:
        if user.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
        return user
    return role_checker


require_landlord = require_role(UserRole.LANDLORD)
require_tenant = require_role(UserRole.TENANT)
