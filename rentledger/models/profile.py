"""
Profile Model - Synced with Supabase Auth
The id matches auth.users.id from Supabase
"""
from enum import Enum
from typing import Optional
import uuid

from sqlalchemy import String, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentledger.db.base import Base, TimestampMixin


class UserRole(str, Enum):
    LANDLORD = "landlord"
    TENANT = "tenant"


def enum_values(enum_cls):
    """Persist enum values ("active") rather than member names ("ACTIVE")."""
    return [member.value for member in enum_cls]


class Profile(Base, TimestampMixin):
    """A landlord or tenant account"""
    __tablename__ = "profiles"

    # Primary key - matches Supabase auth.users.id
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)

    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    # Tenants are invited by phone, so it must resolve to exactly one profile
    phone_number: Mapped[Optional[str]] = mapped_column(String(32), nullable=True, unique=True, index=True)
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole, native_enum=False, values_callable=enum_values, length=20),
        default=UserRole.TENANT,
        nullable=False,
        index=True,
    )

    properties = relationship("Property", back_populates="landlord", cascade="all, delete-orphan")
    tenancies = relationship("Tenancy", back_populates="tenant")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")
