from decimal import Decimal
from typing import Optional
import uuid

from sqlalchemy import CheckConstraint, String, ForeignKey, Numeric, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentledger.db.base import Base, TimestampMixin


class Property(Base, TimestampMixin):
    __tablename__ = "properties"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    landlord_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("profiles.id"), nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Relationships
    landlord = relationship("Profile", back_populates="properties")
    units = relationship(
        "Unit",
        back_populates="property",
        cascade="all, delete-orphan",
        order_by="Unit.name",
    )


class Unit(Base, TimestampMixin):
    __tablename__ = "units"
    __table_args__ = (
        CheckConstraint("rent_amount > 0", name="ck_units_rent_amount_positive"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )

    name: Mapped[str] = mapped_column(String(50), nullable=False)
    rent_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    # Declared before the `property` relationship, which shadows the builtin below
    @property
    def label(self) -> str:
        return f"Unit {self.name}"

    def active_tenancy(self):
        return next((t for t in self.tenancies if t.is_active), None)

    # Relationships
    property = relationship("Property", back_populates="units")
    tenancies = relationship("Tenancy", back_populates="unit", cascade="all, delete-orphan")
