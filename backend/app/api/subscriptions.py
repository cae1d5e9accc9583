"""Subscription plans and revenue usage for the current company."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_user, require_permission, company_id_of
from app.db.base import get_db
from app.models.company import Company
from app.models.subscription import SubscriptionPayment, SubscriptionPlan
from app.schemas.auth import CurrentUser
from app.schemas.subscription import PlanResponse, SubscriptionPaymentResponse, SubscriptionStatus
from app.services.subscription import DEFAULT_PLANS, PlanInfo, plan_info, subscription_status

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


async def _active_plans(db: AsyncSession) -> list[PlanInfo]:
    result = await db.execute(
        select(SubscriptionPlan)
        .where(SubscriptionPlan.is_active.is_(True))
        .order_by(SubscriptionPlan.price)
    )
    plans = [plan_info(p) for p in result.scalars().all()]
    return plans or list(DEFAULT_PLANS)


@router.get("/plans", response_model=list[PlanResponse])
async def list_plans(db: AsyncSession = Depends(get_db)):
    return [PlanResponse.model_validate(p) for p in await _active_plans(db)]


@router.get("/status", response_model=SubscriptionStatus)
async def get_subscription_status(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Plan usage against this month's revenue, with an upgrade hint near the limit."""
    company = await db.get(Company, company_id_of(current_user))
    if company is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")

    summary = subscription_status(
        company.subscription_plan,
        company.monthly_revenue,
        company.revenue_limit_bonus,
        await _active_plans(db),
    )
    recommended = summary["recommended_plan"]
    return SubscriptionStatus(
        plan=PlanResponse.model_validate(summary["plan"]),
        revenue_limit=summary["revenue_limit"],
        monthly_revenue=summary["monthly_revenue"],
        usage_percentage=summary["usage_percentage"],
        is_unlimited=summary["is_unlimited"],
        is_near_limit=summary["is_near_limit"],
        is_at_limit=summary["is_at_limit"],
        recommended_plan=PlanResponse.model_validate(recommended) if recommended else None,
        subscription_end_date=company.subscription_end_date,
    )


@router.get("/payments", response_model=list[SubscriptionPaymentResponse])
async def list_subscription_payments(
    current_user: CurrentUser = Depends(require_permission("subscription:read")),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(SubscriptionPayment)
        .where(SubscriptionPayment.company_id == company_id_of(current_user))
        .order_by(SubscriptionPayment.created_at.desc())
    )
    return [SubscriptionPaymentResponse.model_validate(p) for p in result.scalars().all()]
