from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import EmailStr, Field

from rentledger.models.profile import UserRole
from rentledger.schemas.common import CamelModel


class SignUpRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    role: UserRole = UserRole.TENANT

    model_config = {
        "json_schema_extra": {
            "example": {
                "email": "ada@example.com",
                "password": "secret123",
                "fullName": "Ada Obi",
                "phone": "+2348012345678",
                "role": "landlord",
            }
        }
    }


class SignInRequest(CamelModel):
    email: str
    password: str


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ProfileOut(CamelModel):
    id: UUID
    email: Optional[str] = None
    full_name: str
    phone_number: Optional[str] = None
    role: UserRole
    created_at: Optional[datetime] = None


class ProfileUpdate(CamelModel):
    full_name: Optional[str] = None
    phone_number: Optional[str] = None


class ChangePasswordRequest(CamelModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None
