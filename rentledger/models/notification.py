from enum import Enum
from typing import Any, Dict, Optional
import uuid

from sqlalchemy import JSON, Boolean, ForeignKey, String, Text, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentledger.db.base import Base, TimestampMixin
from rentledger.models.profile import enum_values


class NotificationType(str, Enum):
    PAYMENT = "payment"
    SYSTEM = "system"
    MESSAGE = "message"
    TENANCY = "tenancy"


class Notification(Base, TimestampMixin):
    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    type: Mapped[NotificationType] = mapped_column(
        SQLEnum(NotificationType, native_enum=False, values_callable=enum_values, length=20),
        default=NotificationType.SYSTEM,
        nullable=False,
    )
    read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    data: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)

    user = relationship("Profile", back_populates="notifications")
