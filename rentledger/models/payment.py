"""
Payment Model
One rent payment (or scheduled bill) against a tenancy.
The stored status is the landlord's review state; the status users see is
derived from it together with the tenancy due date.
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
import uuid

from sqlalchemy import DateTime, ForeignKey, Numeric, String, Text, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentledger.db.base import Base, TimestampMixin
from rentledger.models.profile import enum_values


class PaymentStatus(str, Enum):
    """Stored review status"""
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class Payment(Base, TimestampMixin):
    __tablename__ = "payments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tenancy_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tenancies.id", ondelete="CASCADE"), nullable=False, index=True
    )

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(PaymentStatus, native_enum=False, values_callable=enum_values, length=20),
        default=PaymentStatus.PENDING,
        nullable=False,
        index=True,
    )

    # Due date this bill / proof is for
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    payment_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Proof of payment
    reference: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    proof_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    proof_path: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Review
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    tenancy = relationship("Tenancy", back_populates="payments")
