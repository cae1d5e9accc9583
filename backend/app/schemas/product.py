"""Product schemas for API request/response."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict


# ── Options ──
class ProductOptionBase(BaseModel):
    group_name: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=100)
    price_modifier: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    is_size: bool = False
    is_available: bool = True
    sort_order: int = 0


class ProductOptionCreate(ProductOptionBase):
    pass


class ProductOptionResponse(ProductOptionBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID


# ── Product ──
class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    price: Decimal = Field(default=Decimal("0.00"), ge=0, decimal_places=2)
    promotional_price: Decimal | None = Field(None, ge=0, decimal_places=2)
    image_url: str | None = None
    is_active: bool = True
    requires_preparation: bool = True
    sort_order: int = 0
    category_id: UUID | None = None


class ProductCreate(ProductBase):
    options: list[ProductOptionCreate] = Field(default_factory=list)


class ProductUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    price: Decimal | None = Field(None, ge=0, decimal_places=2)
    promotional_price: Decimal | None = Field(None, ge=0, decimal_places=2)
    image_url: str | None = None
    is_active: bool | None = None
    requires_preparation: bool | None = None
    sort_order: int | None = None
    category_id: UUID | None = None
    # When present, replaces the full option list
    options: list[ProductOptionCreate] | None = None


class ProductResponse(ProductBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    company_id: UUID
    options: list[ProductOptionResponse] = []
    created_at: datetime
    updated_at: datetime


class ProductListResponse(BaseModel):
    items: list[ProductResponse]
    total: int
    page: int
    size: int
