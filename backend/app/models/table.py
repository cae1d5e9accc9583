"""Dine-in tables and their QR sessions."""

import enum
import uuid
from datetime import datetime

from sqlalchemy import String, Integer, Boolean, ForeignKey, DateTime, UniqueConstraint, Index, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin, enum_column


class TableSessionStatus(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


class Table(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "tables"
    __table_args__ = (
        UniqueConstraint("company_id", "table_number", name="uq_tables_company_number"),
    )

    table_number: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str | None] = mapped_column(String(100))
    capacity: Mapped[int | None] = mapped_column(Integer)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True
    )

    sessions = relationship("TableSession", back_populates="table")

    @property
    def display_name(self) -> str:
        return self.name or f"Mesa {self.table_number}"

    def __repr__(self) -> str:
        return f"<Table {self.table_number}>"


class TableSession(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "table_sessions"
    __table_args__ = (
        Index("ix_table_sessions_table_status", "table_id", "status"),
    )

    session_token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    status: Mapped[TableSessionStatus] = mapped_column(
        enum_column(TableSessionStatus), default=TableSessionStatus.OPEN, nullable=False
    )
    opened_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    customer_name: Mapped[str | None] = mapped_column(String(255))
    customer_phone: Mapped[str | None] = mapped_column(String(20))
    customer_email: Mapped[str | None] = mapped_column(String(255))
    customer_count: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    table_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("tables.id", ondelete="CASCADE"), nullable=False
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True
    )

    table = relationship("Table", back_populates="sessions")

    def __repr__(self) -> str:
        return f"<TableSession table={self.table_id} status={self.status}>"
