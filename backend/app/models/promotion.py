"""Promotions, coupons and promotion engagement events."""

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, Text, Numeric, Boolean, Integer, ForeignKey, DateTime, UniqueConstraint, Index,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin, enum_column


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class PromotionEventType(str, enum.Enum):
    VIEW = "view"
    CLICK = "click"
    CONVERSION = "conversion"


class Promotion(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "promotions"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    discount_type: Mapped[DiscountType] = mapped_column(enum_column(DiscountType), nullable=False)
    discount_value: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    image_url: Mapped[str | None] = mapped_column(String(500))
    apply_to_all_sizes: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("products.id", ondelete="CASCADE")
    )
    category_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("categories.id", ondelete="CASCADE")
    )

    sizes = relationship(
        "PromotionSize", back_populates="promotion", cascade="all, delete-orphan", lazy="selectin"
    )

    @property
    def size_option_ids(self) -> list[uuid.UUID]:
        return [s.product_option_id for s in self.sizes]

    def __repr__(self) -> str:
        return f"<Promotion {self.name} {self.discount_type}={self.discount_value}>"


class PromotionSize(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "promotion_sizes"
    __table_args__ = (
        UniqueConstraint("promotion_id", "product_option_id", name="uq_promotion_size"),
    )

    promotion_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("promotions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_option_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("product_options.id", ondelete="CASCADE"), nullable=False, index=True
    )

    promotion = relationship("Promotion", back_populates="sizes")


class Coupon(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "coupons"
    __table_args__ = (
        UniqueConstraint("company_id", "code", name="uq_coupons_company_code"),
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False)
    discount_type: Mapped[DiscountType] = mapped_column(enum_column(DiscountType), nullable=False)
    discount_value: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    min_order_value: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    max_uses: Mapped[int | None] = mapped_column(Integer)
    current_uses: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True
    )

    def __repr__(self) -> str:
        return f"<Coupon {self.code}>"


class PromotionEvent(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "promotion_events"
    __table_args__ = (
        Index("ix_promotion_events_promo_type", "promotion_id", "event_type"),
    )

    event_type: Mapped[PromotionEventType] = mapped_column(enum_column(PromotionEventType), nullable=False)
    session_id: Mapped[str | None] = mapped_column(String(64))
    revenue: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))

    promotion_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("promotions.id", ondelete="CASCADE"), nullable=False
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    order_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("orders.id", ondelete="SET NULL")
    )
