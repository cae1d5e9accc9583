"""Unit tests for subscription usage and upgrade hints."""

from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
import uuid

import pytest
from fastapi import HTTPException

from app.services.subscription import (
    DEFAULT_PLANS,
    UNLIMITED,
    PlanInfo,
    plan_info,
    recommended_plan,
    subscription_status,
)

ENTERPRISE = PlanInfo(key="enterprise", name="Enterprise", revenue_limit=UNLIMITED, price=Decimal("499"))


def test_plan_info_from_row():
    row = SimpleNamespace(key="basic", name="Básico", revenue_limit=10000, price=99, description=None)
    info = plan_info(row)
    assert info.revenue_limit == Decimal("10000")
    assert not info.is_unlimited


def test_status_far_from_limit():
    status = subscription_status("basic", Decimal("1000"), Decimal("0"), DEFAULT_PLANS)
    assert status["usage_percentage"] == 10.0
    assert not status["is_near_limit"]
    assert not status["is_at_limit"]
    assert status["recommended_plan"] is None


def test_status_near_limit_recommends_next_plan():
    status = subscription_status("free", Decimal("1700"), Decimal("0"), DEFAULT_PLANS)
    assert status["is_near_limit"]
    assert status["recommended_plan"].key == "basic"


def test_status_over_limit_skips_too_small_plans():
    status = subscription_status("free", Decimal("15000"), Decimal("0"), DEFAULT_PLANS)
    assert status["is_at_limit"]
    assert status["recommended_plan"].key == "growth"


def test_bonus_extends_limit():
    status = subscription_status("free", Decimal("2000"), Decimal("2000"), DEFAULT_PLANS)
    assert status["revenue_limit"] == Decimal("4000")
    assert status["usage_percentage"] == 50.0


def test_unknown_plan_falls_back_to_free():
    status = subscription_status("legacy", Decimal("0"), Decimal("0"), DEFAULT_PLANS)
    assert status["plan"].key == "free"


def test_unlimited_plan():
    status = subscription_status("enterprise", Decimal("999999"), Decimal("0"), [*DEFAULT_PLANS, ENTERPRISE])
    assert status["is_unlimited"]
    assert status["revenue_limit"] == UNLIMITED
    assert status["usage_percentage"] == 0.0
    assert status["recommended_plan"] is None


def test_recommendation_prefers_unlimited_when_revenue_exceeds_all():
    plans = [*DEFAULT_PLANS, ENTERPRISE]
    assert recommended_plan("pro", Decimal("80000"), plans).key == "enterprise"


def test_recommendation_falls_back_to_highest():
    assert recommended_plan("basic", Decimal("90000"), DEFAULT_PLANS).key == "pro"


@pytest.mark.asyncio
async def test_status_endpoint_uses_default_plans():
    from app.api.subscriptions import get_subscription_status

    user = MagicMock()
    user.company_id = uuid.uuid4()
    company = SimpleNamespace(
        subscription_plan="free",
        monthly_revenue=Decimal("1900"),
        revenue_limit_bonus=Decimal("0"),
        subscription_end_date=None,
    )
    no_rows = MagicMock()
    no_rows.scalars.return_value.all.return_value = []

    mock_db = AsyncMock()
    mock_db.get.return_value = company
    mock_db.execute.return_value = no_rows

    result = await get_subscription_status(user, mock_db)

    assert result.plan.key == "free"
    assert result.is_near_limit is True
    assert result.recommended_plan.key == "basic"


@pytest.mark.asyncio
async def test_status_endpoint_missing_company():
    from app.api.subscriptions import get_subscription_status

    user = MagicMock()
    user.company_id = uuid.uuid4()
    mock_db = AsyncMock()
    mock_db.get.return_value = None

    with pytest.raises(HTTPException) as exc_info:
        await get_subscription_status(user, mock_db)
    assert exc_info.value.status_code == 404
