"""Delivery driver schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.driver import DriverStatus

VEHICLE_PATTERN = "^(moto|bike|carro|a_pe)$"


class DriverCreate(BaseModel):
    driver_name: str = Field(..., min_length=1, max_length=255)
    driver_phone: str | None = Field(None, max_length=20)
    vehicle_type: str = Field("moto", pattern=VEHICLE_PATTERN)
    user_id: UUID | None = None


class DriverUpdate(BaseModel):
    driver_name: str | None = Field(None, min_length=1, max_length=255)
    driver_phone: str | None = Field(None, max_length=20)
    vehicle_type: str | None = Field(None, pattern=VEHICLE_PATTERN)
    is_active: bool | None = None
    is_available: bool | None = None


class DriverResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    company_id: UUID
    driver_name: str
    driver_phone: str | None
    vehicle_type: str
    is_active: bool
    is_available: bool
    driver_status: DriverStatus
    user_id: UUID | None
    created_at: datetime


class AssignDriverRequest(BaseModel):
    driver_id: UUID


class AssignDriverResponse(BaseModel):
    success: bool = True
    order_id: UUID
    driver_id: UUID
    driver_name: str
    message: str
