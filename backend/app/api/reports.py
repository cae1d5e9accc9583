"""Dashboard analytics endpoints."""

from datetime import datetime, date, timezone
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel, Field

from app.core.deps import require_permission, company_id_of
from app.db.base import get_db
from app.models.order import Order
from app.schemas.auth import CurrentUser
from app.schemas.order import OrderResponse
from app.services.analytics import (
    PERIOD_DAYS,
    calculate_change,
    daily_points,
    period_bounds,
    period_stats,
    status_breakdown,
    top_products,
)

router = APIRouter(prefix="/reports", tags=["reports"])

RECENT_ORDERS = 5


# Response schemas
class Change(BaseModel):
    value: str
    trend: str


class StatCard(BaseModel):
    current: Decimal
    previous: Decimal
    change: Change


class DailyPoint(BaseModel):
    date: date
    orders: int
    revenue: Decimal = Field(..., decimal_places=2)


class TopProduct(BaseModel):
    name: str
    quantity: int
    revenue: Decimal = Field(..., decimal_places=2)


class DashboardReport(BaseModel):
    period: str
    period_start: datetime
    period_end: datetime
    orders: StatCard
    revenue: StatCard
    average_ticket: StatCard
    daily: list[DailyPoint]
    status_breakdown: dict[str, int]
    top_products: list[TopProduct]
    recent_orders: list[OrderResponse]


def _card(current, previous) -> StatCard:
    return StatCard(
        current=Decimal(current),
        previous=Decimal(previous),
        change=Change(**calculate_change(current, previous)),
    )


@router.get("/dashboard", response_model=DashboardReport)
async def get_dashboard(
    period: str = Query("7days", pattern="^(today|7days|30days)$"),
    current_user: CurrentUser = Depends(require_permission("report:sales")),
    db: AsyncSession = Depends(get_db),
):
    """
    Headline numbers for the store dashboard.

    Each card compares the selected period with the one right before it.
    Revenue and average ticket ignore cancelled orders.
    """
    start, end, previous_start, previous_end = period_bounds(period, datetime.now(timezone.utc))

    result = await db.execute(
        select(Order)
        .where(
            Order.company_id == company_id_of(current_user),
            Order.created_at >= previous_start,
            Order.created_at <= end,
        )
        .order_by(Order.created_at.desc())
    )
    orders = result.scalars().all()
    current = [o for o in orders if o.created_at >= start]
    previous = [o for o in orders if o.created_at <= previous_end]

    now_stats = period_stats(current)
    before_stats = period_stats(previous)

    return DashboardReport(
        period=period,
        period_start=start,
        period_end=end,
        orders=_card(now_stats["orders"], before_stats["orders"]),
        revenue=_card(now_stats["revenue"], before_stats["revenue"]),
        average_ticket=_card(now_stats["average_ticket"], before_stats["average_ticket"]),
        daily=[DailyPoint(**p) for p in daily_points(current, start.date(), PERIOD_DAYS[period])],
        status_breakdown=status_breakdown(current),
        top_products=[TopProduct(**p) for p in top_products(current)],
        recent_orders=[OrderResponse.model_validate(o) for o in current[:RECENT_ORDERS]],
    )
