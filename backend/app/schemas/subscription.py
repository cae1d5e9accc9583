"""Subscription schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class PlanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str
    name: str
    description: str | None = None
    revenue_limit: Decimal
    price: Decimal


class SubscriptionStatus(BaseModel):
    plan: PlanResponse
    revenue_limit: Decimal
    monthly_revenue: Decimal
    usage_percentage: float
    is_unlimited: bool
    is_near_limit: bool
    is_at_limit: bool
    recommended_plan: PlanResponse | None
    subscription_end_date: datetime | None


class SubscriptionPaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    plan_key: str
    amount: Decimal
    status: str
    paid_at: datetime | None
    period_start: datetime | None
    period_end: datetime | None
    created_at: datetime
