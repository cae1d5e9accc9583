"""Payment schemas for API request/response."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict

from app.models.payment import PaymentGateway, TransactionStatus


class PaymentSettingsUpdate(BaseModel):
    accepts_cash: bool | None = None
    accepts_card_on_delivery: bool | None = None
    accepts_pix: bool | None = None
    pix_key: str | None = Field(None, max_length=255)
    pix_key_type: str | None = Field(None, pattern="^(cpf|cnpj|email|phone|random)$")
    pix_holder_name: str | None = Field(None, max_length=255)
    online_gateway: PaymentGateway | None = None
    gateway_public_key: str | None = Field(None, max_length=255)
    gateway_secret: str | None = Field(None, max_length=255)


class PublicPaymentInfo(BaseModel):
    """Fields safe to expose on the public menu."""
    model_config = ConfigDict(from_attributes=True)

    accepts_cash: bool = True
    accepts_card_on_delivery: bool = True
    accepts_pix: bool = False
    pix_key: str | None = None
    pix_key_type: str | None = None
    pix_holder_name: str | None = None
    online_gateway: PaymentGateway | None = None
    gateway_public_key: str | None = None


class PaymentSettingsResponse(PublicPaymentInfo):
    company_id: UUID
    has_gateway_secret: bool = False


class CompanyPaymentInfoRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    company_id: UUID | None = Field(None, alias="companyId")


class TransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_id: UUID
    company_id: UUID
    amount: Decimal
    gateway: PaymentGateway
    status: TransactionStatus
    gateway_charge_id: str | None
    created_at: datetime
    updated_at: datetime


class TransactionListResponse(BaseModel):
    items: list[TransactionResponse]
    total: int
    page: int
    size: int
