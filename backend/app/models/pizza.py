"""Pizza configuration: sizes and half/half rules per category."""

import enum
import uuid
from decimal import Decimal

from sqlalchemy import String, Numeric, Boolean, Integer, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.mixins import UUIDPrimaryKeyMixin, enum_column


class HalfHalfPricingRule(str, enum.Enum):
    HIGHEST = "highest"
    AVERAGE = "average"
    SUM = "sum"


class PizzaCategorySettings(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "pizza_category_settings"

    allow_half_half: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    max_flavors: Mapped[int] = mapped_column(Integer, default=2, nullable=False)
    half_half_pricing_rule: Mapped[HalfHalfPricingRule] = mapped_column(
        enum_column(HalfHalfPricingRule), default=HalfHalfPricingRule.AVERAGE, nullable=False
    )
    half_half_discount_percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), default=Decimal("0"), nullable=False
    )
    allow_repeated_flavors: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    category_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("categories.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True
    )


class PizzaSize(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "pizza_sizes"

    name: Mapped[str] = mapped_column(String(50), nullable=False)
    base_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"), nullable=False)
    max_flavors: Mapped[int] = mapped_column(Integer, default=2, nullable=False)
    slices: Mapped[int] = mapped_column(Integer, default=8, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    category_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True
    )
