"""Dashboard analytics: period windows, change indicators and aggregations."""

from __future__ import annotations

from collections import Counter, defaultdict
from datetime import date, datetime, time, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Literal

from app.models.order import OrderStatus

Period = Literal["today", "7days", "30days"]

PERIOD_DAYS: dict[str, int] = {"today": 1, "7days": 7, "30days": 30}

ZERO = Decimal("0.00")


def calculate_change(current: float | Decimal, previous: float | Decimal) -> dict[str, str]:
    """Signed percent change between two periods, e.g. ``{"value": "+25%", "trend": "up"}``."""
    current = Decimal(str(current))
    previous = Decimal(str(previous))
    if previous == 0:
        return {"value": "+100%" if current > 0 else "0%", "trend": "up" if current >= 0 else "down"}

    change = (current - previous) / previous * 100
    rounded = change.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "+" if change >= 0 else ""
    return {"value": f"{sign}{rounded}%", "trend": "up" if change >= 0 else "down"}


def period_bounds(period: str, now: datetime) -> tuple[datetime, datetime, datetime, datetime]:
    """
    Current and previous windows for a dashboard period.

    Returns ``(start, end, previous_start, previous_end)``. The current window
    runs from the start of day ``days - 1`` days ago to the end of today; the
    previous window has the same length and ends right before ``start``.
    """
    try:
        days = PERIOD_DAYS[period]
    except KeyError:
        raise ValueError(f"Unknown period: {period}")

    tz = now.tzinfo
    start = datetime.combine(now.date() - timedelta(days=days - 1), time.min, tzinfo=tz)
    end = datetime.combine(now.date(), time.max, tzinfo=tz)
    previous_start = start - timedelta(days=days)
    previous_end = start - timedelta(microseconds=1)
    return start, end, previous_start, previous_end


def _is_valid(order) -> bool:
    return order.status != OrderStatus.CANCELLED


def period_stats(orders: Iterable) -> dict[str, Decimal | int]:
    """Order count, revenue and average ticket. Cancelled orders count but earn nothing."""
    orders = list(orders)
    valid = [o for o in orders if _is_valid(o)]
    revenue = sum((Decimal(o.total) for o in valid), ZERO)
    average = (revenue / len(valid)).quantize(Decimal("0.01")) if valid else ZERO
    return {"orders": len(orders), "revenue": revenue, "average_ticket": average}


def daily_points(orders: Iterable, start: date, days: int) -> list[dict]:
    buckets: dict[date, dict] = {
        start + timedelta(days=i): {"orders": 0, "revenue": ZERO} for i in range(days)
    }
    for order in orders:
        day = order.created_at.date()
        if day not in buckets:
            continue
        buckets[day]["orders"] += 1
        if _is_valid(order):
            buckets[day]["revenue"] += Decimal(order.total)
    return [{"date": day, **values} for day, values in sorted(buckets.items())]


def status_breakdown(orders: Iterable) -> dict[str, int]:
    counts = Counter(o.status.value if hasattr(o.status, "value") else o.status for o in orders)
    return dict(counts)


def top_products(orders: Iterable, limit: int = 5) -> list[dict]:
    quantities: dict[str, int] = defaultdict(int)
    revenue: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for order in orders:
        if not _is_valid(order):
            continue
        for item in order.items:
            quantities[item.product_name] += item.quantity
            revenue[item.product_name] += Decimal(item.total_price)
    ranked = sorted(quantities.items(), key=lambda x: x[1], reverse=True)[:limit]
    return [{"name": name, "quantity": qty, "revenue": revenue[name]} for name, qty in ranked]
