"""Lottery settings, tickets and draws."""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, Text, Numeric, Boolean, Integer, ForeignKey, DateTime, Index, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin


class LotterySettings(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "lottery_settings"

    is_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    tickets_per_order: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    tickets_per_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"), nullable=False)
    prize_description: Mapped[str | None] = mapped_column(Text)
    draw_frequency: Mapped[str] = mapped_column(String(20), default="monthly", nullable=False)

    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("companies.id", ondelete="CASCADE"), unique=True, nullable=False
    )


class LotteryTicket(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "lottery_tickets"
    __table_args__ = (
        Index("ix_lottery_tickets_company_used", "company_id", "is_used"),
    )

    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    is_used: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    earned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    customer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    order_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("orders.id", ondelete="SET NULL")
    )
    used_in_draw_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("lottery_draws.id", ondelete="SET NULL"), index=True
    )

    customer = relationship("Customer")


class LotteryDraw(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "lottery_draws"

    drawn_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    prize_description: Mapped[str] = mapped_column(Text, nullable=False)
    total_tickets_in_draw: Mapped[int] = mapped_column(Integer, nullable=False)
    winner_tickets_count: Mapped[int] = mapped_column(Integer, nullable=False)
    winner_name: Mapped[str | None] = mapped_column(String(255))
    winner_phone: Mapped[str | None] = mapped_column(String(20))

    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    winner_customer_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("customers.id", ondelete="SET NULL")
    )
