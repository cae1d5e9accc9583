"""Payment settings & gateway transactions."""

import enum
import uuid
from decimal import Decimal

from sqlalchemy import String, Numeric, Boolean, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin, enum_column


class PaymentGateway(str, enum.Enum):
    MERCADOPAGO = "mercadopago"
    PICPAY = "picpay"


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class CompanyPaymentSettings(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "company_payment_settings"

    accepts_cash: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    accepts_card_on_delivery: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    accepts_pix: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    pix_key: Mapped[str | None] = mapped_column(String(255))
    pix_key_type: Mapped[str | None] = mapped_column(String(20))
    pix_holder_name: Mapped[str | None] = mapped_column(String(255))

    online_gateway: Mapped[PaymentGateway | None] = mapped_column(enum_column(PaymentGateway))
    gateway_public_key: Mapped[str | None] = mapped_column(String(255))
    # Never leaves the server
    gateway_secret: Mapped[str | None] = mapped_column(String(255))

    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("companies.id", ondelete="CASCADE"), unique=True, nullable=False
    )


class PaymentTransaction(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "payment_transactions"
    __table_args__ = (
        Index("ix_payment_transactions_company_created", "company_id", "created_at"),
    )

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    gateway: Mapped[PaymentGateway] = mapped_column(enum_column(PaymentGateway), nullable=False)
    status: Mapped[TransactionStatus] = mapped_column(
        enum_column(TransactionStatus), default=TransactionStatus.PENDING, nullable=False, index=True
    )
    gateway_charge_id: Mapped[str | None] = mapped_column(String(255), unique=True, index=True)
    gateway_response: Mapped[dict | None] = mapped_column(JSONB)

    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )

    def __repr__(self) -> str:
        return f"<PaymentTransaction {self.id} {self.gateway}={self.amount} status={self.status}>"
