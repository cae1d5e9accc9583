"""Auth request/response schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.models.company import CompanyStatus


# ── Login ──────────────────────────────────────────
class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: UUID
    company_id: UUID | None
    role: str


# ── Register Company ───────────────────────────────
class RegisterCompanyRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: str = Field(min_length=1, max_length=255)
    phone: str | None = None
    company_name: str = Field(min_length=1, max_length=255)
    company_slug: str = Field(min_length=2, max_length=100, pattern=r"^[a-z0-9-]+$")
    company_address: str | None = None
    company_phone: str | None = None


class RegisterCompanyResponse(BaseModel):
    user_id: UUID
    company_id: UUID
    access_token: str
    token_type: str = "bearer"
    message: str = "Company registered, awaiting approval"


# ── Company profile ────────────────────────────────
class CompanyUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    address: str | None = None
    phone: str | None = None
    logo_url: str | None = None
    is_open: bool | None = None
    menu_published: bool | None = None
    delivery_fee: Decimal | None = Field(None, ge=0)
    min_order_value: Decimal | None = Field(None, ge=0)
    estimated_delivery_minutes: int | None = Field(None, gt=0)


class CompanyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str
    status: CompanyStatus
    menu_published: bool
    is_open: bool
    address: str | None
    phone: str | None
    logo_url: str | None
    delivery_fee: Decimal
    min_order_value: Decimal | None
    estimated_delivery_minutes: int | None
    subscription_plan: str
    subscription_end_date: datetime | None
    owner_id: UUID | None
    created_at: datetime


# ── Current User ───────────────────────────────────
class CurrentUser(BaseModel):
    id: UUID
    email: str
    full_name: str
    role: str
    company_id: UUID | None
    permissions: list[str]
    is_active: bool
