"""Delivery drivers employed by a company."""

import enum
import uuid

from sqlalchemy import String, Boolean, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin, enum_column


class DriverStatus(str, enum.Enum):
    AVAILABLE = "available"
    PENDING_ACCEPTANCE = "pending_acceptance"
    IN_DELIVERY = "in_delivery"
    OFFLINE = "offline"


class DeliveryDriver(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "delivery_drivers"

    driver_name: Mapped[str] = mapped_column(String(255), nullable=False)
    driver_phone: Mapped[str | None] = mapped_column(String(20))
    vehicle_type: Mapped[str] = mapped_column(String(20), default="moto", nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    driver_status: Mapped[DriverStatus] = mapped_column(
        enum_column(DriverStatus), default=DriverStatus.AVAILABLE, nullable=False
    )

    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Login account, when the driver uses the app
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL")
    )

    def __repr__(self) -> str:
        return f"<DeliveryDriver {self.driver_name} status={self.driver_status}>"
