"""Ingredient stock schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class IngredientBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    unit: str = Field(default="un", max_length=20)
    current_stock: Decimal = Field(default=Decimal("0"), ge=0)
    min_stock: Decimal = Field(default=Decimal("0"), ge=0)
    unit_cost: Decimal | None = Field(None, ge=0)


class IngredientCreate(IngredientBase):
    pass


class IngredientUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    unit: str | None = Field(None, max_length=20)
    min_stock: Decimal | None = Field(None, ge=0)
    unit_cost: Decimal | None = Field(None, ge=0)


class IngredientResponse(IngredientBase):
    """Schema for ingredient response."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    company_id: UUID
    is_low_stock: bool
    created_at: datetime
    updated_at: datetime


class IngredientAdjustRequest(BaseModel):
    """Stock movement; negative deltas never push stock below zero."""
    quantity_delta: Decimal = Field(..., description="Change in quantity (positive=in, negative=out)")
    reason: str = Field(..., pattern="^(purchase|usage|adjustment|waste|return)$")


class LowStockResponse(BaseModel):
    """Response for low stock alerts."""
    items: list[IngredientResponse]
    count: int


class RecipeItem(BaseModel):
    ingredient_id: UUID
    quantity_per_unit: Decimal = Field(..., gt=0)


class RecipeItemResponse(RecipeItem):
    ingredient_name: str
    unit: str


class RecipeResponse(BaseModel):
    product_id: UUID
    items: list[RecipeItemResponse]


class UnavailableProductsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    company_id: UUID | None = Field(None, alias="companyId")
