"""Revenue-based subscription usage and plan recommendation."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

UNLIMITED = Decimal("-1")
NEAR_LIMIT_PERCENT = 80


@dataclass(frozen=True)
class PlanInfo:
    key: str
    name: str
    revenue_limit: Decimal
    price: Decimal
    description: str | None = None

    @property
    def is_unlimited(self) -> bool:
        return self.revenue_limit == UNLIMITED


FREE_PLAN = PlanInfo(key="free", name="Plano Gratuito", revenue_limit=Decimal("2000"), price=Decimal("0"))

# Used when no plan rows exist yet
DEFAULT_PLANS: tuple[PlanInfo, ...] = (
    FREE_PLAN,
    PlanInfo(key="basic", name="Plano Básico", revenue_limit=Decimal("10000"), price=Decimal("99")),
    PlanInfo(key="growth", name="Plano Crescimento", revenue_limit=Decimal("30000"), price=Decimal("149")),
    PlanInfo(key="pro", name="Plano Pro", revenue_limit=Decimal("50000"), price=Decimal("199")),
)


def plan_info(plan) -> PlanInfo:
    return PlanInfo(
        key=plan.key,
        name=plan.name,
        revenue_limit=Decimal(plan.revenue_limit),
        price=Decimal(plan.price),
        description=getattr(plan, "description", None),
    )


def _sort_key(plan: PlanInfo):
    # unlimited plans go last
    return (plan.is_unlimited, plan.revenue_limit)


def recommended_plan(current_key: str, monthly_revenue: Decimal, plans: Sequence[PlanInfo]) -> PlanInfo | None:
    """Next plan above the current limit that fits the revenue, else the highest plan."""
    if not plans:
        return None
    ordered = sorted(plans, key=_sort_key)
    current = next((p for p in ordered if p.key == current_key), None)
    current_limit = current.revenue_limit if current else Decimal("0")

    for plan in ordered:
        if plan.key == current_key:
            continue
        if not plan.is_unlimited and plan.revenue_limit <= current_limit:
            continue
        if plan.is_unlimited or plan.revenue_limit > monthly_revenue:
            return plan
    return ordered[-1]


def subscription_status(
    current_key: str | None,
    monthly_revenue: Decimal,
    revenue_limit_bonus: Decimal,
    plans: Sequence[PlanInfo],
) -> dict:
    """
    Usage summary for a company.

    Unknown plans fall back to the free plan. A bonus only extends finite
    limits. A recommendation is only made once usage is near or at the limit.
    """
    plans = list(plans) or list(DEFAULT_PLANS)
    plan = next((p for p in plans if p.key == current_key), None) or FREE_PLAN
    monthly_revenue = Decimal(monthly_revenue or 0)

    if plan.is_unlimited:
        limit = UNLIMITED
        usage = 0.0
    else:
        limit = plan.revenue_limit + Decimal(revenue_limit_bonus or 0)
        usage = float(monthly_revenue / limit * 100) if limit > 0 else 100.0

    is_near = not plan.is_unlimited and NEAR_LIMIT_PERCENT <= usage < 100
    is_at = not plan.is_unlimited and usage >= 100

    return {
        "plan": plan,
        "revenue_limit": limit,
        "monthly_revenue": monthly_revenue,
        "usage_percentage": round(usage, 2),
        "is_unlimited": plan.is_unlimited,
        "is_near_limit": is_near,
        "is_at_limit": is_at,
        "recommended_plan": recommended_plan(plan.key, monthly_revenue, plans) if (is_near or is_at) else None,
    }
