"""
Tenancy Model
Links one tenant profile to one unit; carries the rent cycle and next due date.
"""
from datetime import datetime
from enum import Enum
from typing import Optional
import uuid

from sqlalchemy import DateTime, ForeignKey, Index, Uuid, text, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentledger.db.base import Base, TimestampMixin
from rentledger.models.profile import enum_values


class TenancyStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    REJECTED = "rejected"
    TERMINATED = "terminated"


class RentCycle(str, Enum):
    MONTHLY = "monthly"
    ANNUAL = "annual"


ACTIVE_ONLY = text("status = 'active'")


class Tenancy(Base, TimestampMixin):
    __tablename__ = "tenancies"
    __table_args__ = (
        # At most one active tenancy per unit and per tenant
        Index("uq_tenancies_active_unit", "unit_id", unique=True,
              postgresql_where=ACTIVE_ONLY, sqlite_where=ACTIVE_ONLY),
        Index("uq_tenancies_active_tenant", "tenant_id", unique=True,
              postgresql_where=ACTIVE_ONLY, sqlite_where=ACTIVE_ONLY),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("profiles.id"), nullable=False, index=True)
    unit_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("units.id", ondelete="CASCADE"), nullable=False, index=True
    )

    status: Mapped[TenancyStatus] = mapped_column(
        SQLEnum(TenancyStatus, native_enum=False, values_callable=enum_values, length=20),
        default=TenancyStatus.PENDING,
        nullable=False,
        index=True,
    )
    rent_cycle: Mapped[RentCycle] = mapped_column(
        SQLEnum(RentCycle, native_enum=False, values_callable=enum_values, length=20),
        default=RentCycle.MONTHLY,
        nullable=False,
    )
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    next_due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    tenant = relationship("Profile", back_populates="tenancies")
    unit = relationship("Unit", back_populates="tenancies")
    payments = relationship(
        "Payment",
        back_populates="tenancy",
        cascade="all, delete-orphan",
        order_by="Payment.created_at.desc()",
    )

    @property
    def is_active(self) -> bool:
        return self.status == TenancyStatus.ACTIVE
