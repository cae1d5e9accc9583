"""Promotion, coupon and engagement-event schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.models.promotion import DiscountType, PromotionEventType


def check_discount(discount_type: DiscountType | None, value: Decimal | None) -> None:
    if value is None:
        return
    if value <= 0:
        raise ValueError("discount_value must be greater than zero")
    if discount_type == DiscountType.PERCENTAGE and value > 100:
        raise ValueError("percentage discount cannot exceed 100")


# ── Promotion ──
class PromotionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    discount_type: DiscountType
    discount_value: Decimal = Field(..., decimal_places=2)
    is_active: bool = True
    expires_at: datetime | None = None
    image_url: str | None = None
    product_id: UUID | None = None
    category_id: UUID | None = None
    apply_to_all_sizes: bool = True
    size_option_ids: list[UUID] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_rules(self):
        check_discount(self.discount_type, self.discount_value)
        if self.product_id is None and self.category_id is None:
            raise ValueError("promotion must target a product or a category")
        return self


class PromotionUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    discount_type: DiscountType | None = None
    discount_value: Decimal | None = Field(None, decimal_places=2)
    is_active: bool | None = None
    expires_at: datetime | None = None
    image_url: str | None = None
    product_id: UUID | None = None
    category_id: UUID | None = None
    apply_to_all_sizes: bool | None = None
    size_option_ids: list[UUID] | None = None

    @model_validator(mode="after")
    def check_rules(self):
        check_discount(self.discount_type, self.discount_value)
        return self


class PromotionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    company_id: UUID
    name: str
    description: str | None
    discount_type: DiscountType
    discount_value: Decimal
    is_active: bool
    expires_at: datetime | None
    image_url: str | None
    product_id: UUID | None
    category_id: UUID | None
    apply_to_all_sizes: bool
    size_option_ids: list[UUID] = []
    created_at: datetime


class PromotionEventCreate(BaseModel):
    promotion_id: UUID
    event_type: PromotionEventType
    session_id: str | None = Field(None, max_length=64)
    order_id: UUID | None = None
    revenue: Decimal | None = Field(None, ge=0)


class PromotionStats(BaseModel):
    promotion_id: UUID
    views: int
    clicks: int
    conversions: int
    revenue: Decimal
    conversion_rate: float


# ── Coupon ──
class CouponCreate(BaseModel):
    code: str = Field(..., min_length=2, max_length=50)
    discount_type: DiscountType
    discount_value: Decimal = Field(..., decimal_places=2)
    min_order_value: Decimal | None = Field(None, ge=0)
    max_uses: int | None = Field(None, gt=0)
    expires_at: datetime | None = None
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def upper_code(cls, v: str) -> str:
        return v.strip().upper()

    @model_validator(mode="after")
    def check_rules(self):
        check_discount(self.discount_type, self.discount_value)
        return self


class CouponUpdate(BaseModel):
    discount_type: DiscountType | None = None
    discount_value: Decimal | None = Field(None, decimal_places=2)
    min_order_value: Decimal | None = Field(None, ge=0)
    max_uses: int | None = Field(None, gt=0)
    expires_at: datetime | None = None
    is_active: bool | None = None

    @model_validator(mode="after")
    def check_rules(self):
        check_discount(self.discount_type, self.discount_value)
        return self


class CouponResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    company_id: UUID
    code: str
    discount_type: DiscountType
    discount_value: Decimal
    min_order_value: Decimal | None
    max_uses: int | None
    current_uses: int
    expires_at: datetime | None
    is_active: bool
    created_at: datetime


class CouponValidateRequest(BaseModel):
    company_slug: str
    code: str = Field(..., min_length=1, max_length=50)
    subtotal: Decimal = Field(..., ge=0)


class CouponValidateResponse(BaseModel):
    valid: bool
    code: str
    discount: Decimal = Decimal("0.00")
    message: str | None = None
