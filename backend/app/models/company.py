"""Company (tenant) model."""

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, Boolean, Text, Numeric, Integer, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin, enum_column


class CompanyStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    SUSPENDED = "suspended"


class Company(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "companies"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    status: Mapped[CompanyStatus] = mapped_column(
        enum_column(CompanyStatus), default=CompanyStatus.PENDING, nullable=False, index=True
    )
    menu_published: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_open: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    address: Mapped[str | None] = mapped_column(Text)
    phone: Mapped[str | None] = mapped_column(String(20))
    logo_url: Mapped[str | None] = mapped_column(String(500))

    delivery_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"), nullable=False)
    min_order_value: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    estimated_delivery_minutes: Mapped[int | None] = mapped_column(Integer)

    # Subscription snapshot kept on the tenant row
    subscription_plan: Mapped[str] = mapped_column(String(50), default="free", nullable=False)
    subscription_end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    monthly_revenue: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"), nullable=False)
    revenue_limit_bonus: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"), nullable=False)

    owner_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL", use_alter=True), index=True
    )

    owner = relationship("User", foreign_keys=[owner_id])

    def __repr__(self) -> str:
        return f"<Company {self.slug}: {self.name}>"
