"""Table and table-session schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.table import TableSessionStatus


class TableCreate(BaseModel):
    table_number: int = Field(..., gt=0)
    name: str | None = Field(None, max_length=100)
    capacity: int | None = Field(None, gt=0)
    is_active: bool = True


class TableUpdate(BaseModel):
    name: str | None = Field(None, max_length=100)
    capacity: int | None = Field(None, gt=0)
    is_active: bool | None = None


class TableResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    company_id: UUID
    table_number: int
    name: str | None
    display_name: str
    capacity: int | None
    is_active: bool
    created_at: datetime


class TableSessionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    table_id: UUID
    session_token: str
    status: TableSessionStatus
    opened_at: datetime
    closed_at: datetime | None
    customer_name: str | None
    customer_phone: str | None
    customer_count: int


# ── Public QR endpoints (camelCase wire format) ──
class CheckTableRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    table_number: int | None = Field(None, alias="tableNumber")
    company_slug: str | None = Field(None, alias="companySlug")
    customer_name: str | None = Field(None, alias="customerName")
    customer_phone: str | None = Field(None, alias="customerPhone")
    customer_email: str | None = Field(None, alias="customerEmail")
    customer_count: int | None = Field(None, alias="customerCount", gt=0)


class CheckSessionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_token: str | None = Field(None, alias="sessionToken")
