"""Unit tests for promotions, engagement events and coupons."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
import uuid

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from app.models.promotion import DiscountType, PromotionEventType
from app.schemas.promotion import (
    CouponCreate,
    CouponUpdate,
    CouponValidateRequest,
    PromotionCreate,
    PromotionEventCreate,
    PromotionUpdate,
)


def _user():
    user = MagicMock()
    user.id = uuid.uuid4()
    user.company_id = uuid.uuid4()
    return user


def _scalar(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def _coupon(**overrides):
    values = dict(
        code="PIZZA10",
        discount_type=DiscountType.PERCENTAGE,
        discount_value=Decimal("10"),
        min_order_value=None,
        max_uses=None,
        current_uses=0,
        expires_at=None,
        is_active=True,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


# ── Schemas ──────────────────────────────────────────

def test_promotion_needs_a_target():
    with pytest.raises(ValidationError):
        PromotionCreate(name="Terça", discount_type=DiscountType.FIXED, discount_value=Decimal("5"))


def test_percentage_over_100_rejected():
    with pytest.raises(ValidationError):
        PromotionCreate(
            name="Tudo grátis",
            discount_type=DiscountType.PERCENTAGE,
            discount_value=Decimal("150"),
            product_id=uuid.uuid4(),
        )


def test_coupon_code_is_upper_cased():
    coupon = CouponCreate(code=" pizza10 ", discount_type=DiscountType.FIXED, discount_value=Decimal("5"))
    assert coupon.code == "PIZZA10"


# ── Engagement events ────────────────────────────────

@pytest.mark.asyncio
async def test_event_for_missing_promotion():
    from app.api.promotions import record_promotion_event

    mock_db = AsyncMock()
    mock_db.get.return_value = None

    with pytest.raises(HTTPException) as exc_info:
        await record_promotion_event(
            PromotionEventCreate(promotion_id=uuid.uuid4(), event_type=PromotionEventType.CLICK), mock_db
        )
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_repeated_view_in_session_is_ignored():
    from app.api.promotions import record_promotion_event

    promotion = SimpleNamespace(id=uuid.uuid4(), company_id=uuid.uuid4())
    mock_db = AsyncMock()
    mock_db.add = MagicMock()
    mock_db.get.return_value = promotion
    mock_db.execute.return_value = _scalar(uuid.uuid4())

    result = await record_promotion_event(
        PromotionEventCreate(promotion_id=promotion.id, event_type=PromotionEventType.VIEW, session_id="s1"),
        mock_db,
    )

    assert result == {"recorded": False, "reason": "duplicate_view"}
    mock_db.add.assert_not_called()
    mock_db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_first_view_is_recorded():
    from app.api.promotions import record_promotion_event

    promotion = SimpleNamespace(id=uuid.uuid4(), company_id=uuid.uuid4())
    mock_db = AsyncMock()
    mock_db.add = MagicMock()
    mock_db.get.return_value = promotion
    mock_db.execute.return_value = _scalar(None)

    result = await record_promotion_event(
        PromotionEventCreate(promotion_id=promotion.id, event_type=PromotionEventType.VIEW, session_id="s1"),
        mock_db,
    )

    assert result == {"recorded": True}
    event = mock_db.add.call_args[0][0]
    assert event.company_id == promotion.company_id
    mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_conversion_skips_duplicate_check():
    from app.api.promotions import record_promotion_event

    promotion = SimpleNamespace(id=uuid.uuid4(), company_id=uuid.uuid4())
    mock_db = AsyncMock()
    mock_db.add = MagicMock()
    mock_db.get.return_value = promotion

    await record_promotion_event(
        PromotionEventCreate(
            promotion_id=promotion.id,
            event_type=PromotionEventType.CONVERSION,
            session_id="s1",
            revenue=Decimal("42.00"),
        ),
        mock_db,
    )

    mock_db.execute.assert_not_awaited()
    mock_db.add.assert_called_once()


@pytest.mark.asyncio
async def test_stats_conversion_rate():
    from app.api.promotions import get_promotion_stats

    promotion = SimpleNamespace(id=uuid.uuid4())
    grouped = MagicMock()
    grouped.all.return_value = [
        (PromotionEventType.VIEW, 10, 0),
        (PromotionEventType.CLICK, 4, 0),
        (PromotionEventType.CONVERSION, 2, Decimal("80")),
    ]
    mock_db = AsyncMock()
    mock_db.execute.side_effect = [_scalar(promotion), grouped]

    stats = await get_promotion_stats(promotion.id, _user(), mock_db)

    assert stats.views == 10
    assert stats.clicks == 4
    assert stats.conversions == 2
    assert stats.revenue == Decimal("80.00")
    assert stats.conversion_rate == 20.0


@pytest.mark.asyncio
async def test_stats_without_views():
    from app.api.promotions import get_promotion_stats

    promotion = SimpleNamespace(id=uuid.uuid4())
    grouped = MagicMock()
    grouped.all.return_value = []
    mock_db = AsyncMock()
    mock_db.execute.side_effect = [_scalar(promotion), grouped]

    stats = await get_promotion_stats(promotion.id, _user(), mock_db)
    assert stats.conversion_rate == 0.0


# ── Promotion CRUD ───────────────────────────────────

@pytest.mark.asyncio
async def test_update_cannot_remove_every_target():
    from app.api.promotions import update_promotion

    promotion = SimpleNamespace(
        id=uuid.uuid4(),
        product_id=uuid.uuid4(),
        category_id=None,
        discount_type=DiscountType.FIXED,
        discount_value=Decimal("5"),
    )
    mock_db = AsyncMock()
    mock_db.execute.return_value = _scalar(promotion)

    with pytest.raises(HTTPException) as exc_info:
        await update_promotion(promotion.id, PromotionUpdate(product_id=None), _user(), mock_db)
    assert exc_info.value.status_code == 400
    mock_db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_value_checked_against_stored_percentage():
    from app.api.promotions import update_promotion

    promotion = SimpleNamespace(
        id=uuid.uuid4(),
        product_id=uuid.uuid4(),
        category_id=None,
        discount_type=DiscountType.PERCENTAGE,
        discount_value=Decimal("10"),
    )
    mock_db = AsyncMock()
    mock_db.execute.return_value = _scalar(promotion)

    with pytest.raises(HTTPException) as exc_info:
        await update_promotion(promotion.id, PromotionUpdate(discount_value=Decimal("150")), _user(), mock_db)

    assert exc_info.value.status_code == 400
    assert promotion.discount_value == Decimal("10")
    mock_db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_type_to_percentage_checks_stored_value():
    from app.api.promotions import update_promotion

    promotion = SimpleNamespace(
        id=uuid.uuid4(),
        product_id=uuid.uuid4(),
        category_id=None,
        discount_type=DiscountType.FIXED,
        discount_value=Decimal("120"),
    )
    mock_db = AsyncMock()
    mock_db.execute.return_value = _scalar(promotion)

    with pytest.raises(HTTPException) as exc_info:
        await update_promotion(
            promotion.id, PromotionUpdate(discount_type=DiscountType.PERCENTAGE), _user(), mock_db
        )
    assert exc_info.value.status_code == 400
    mock_db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_other_company_promotion():
    from app.api.promotions import update_promotion

    mock_db = AsyncMock()
    mock_db.execute.return_value = _scalar(None)

    with pytest.raises(HTTPException) as exc_info:
        await update_promotion(uuid.uuid4(), PromotionUpdate(name="Nova"), _user(), mock_db)
    assert exc_info.value.status_code == 404


# ── Coupons ──────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_coupon_duplicate_code():
    from app.api.promotions import create_coupon

    mock_db = AsyncMock()
    mock_db.execute.return_value = _scalar(uuid.uuid4())

    with pytest.raises(HTTPException) as exc_info:
        await create_coupon(
            CouponCreate(code="pizza10", discount_type=DiscountType.FIXED, discount_value=Decimal("5")),
            _user(),
            mock_db,
        )
    assert exc_info.value.status_code == 409
    assert "PIZZA10" in exc_info.value.detail


@pytest.mark.asyncio
async def test_update_coupon_rejects_percentage_over_100():
    from app.api.promotions import update_coupon

    coupon = _coupon()
    mock_db = AsyncMock()
    mock_db.execute.return_value = _scalar(coupon)

    with pytest.raises(HTTPException) as exc_info:
        await update_coupon(uuid.uuid4(), CouponUpdate(discount_value=Decimal("150")), _user(), mock_db)

    assert exc_info.value.status_code == 400
    assert coupon.discount_value == Decimal("10")
    mock_db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_coupon_fixed_value_above_100():
    from app.api.promotions import update_coupon

    now = datetime.now(timezone.utc)
    coupon = _coupon(
        id=uuid.uuid4(),
        company_id=uuid.uuid4(),
        discount_type=DiscountType.FIXED,
        discount_value=Decimal("20"),
        created_at=now,
    )
    mock_db = AsyncMock()
    mock_db.execute.return_value = _scalar(coupon)

    result = await update_coupon(coupon.id, CouponUpdate(discount_value=Decimal("150")), _user(), mock_db)

    assert result.discount_value == Decimal("150")
    mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_validate_coupon_unknown_company():
    from app.api.promotions import validate_coupon_code

    mock_db = AsyncMock()
    mock_db.execute.return_value = _scalar(None)

    result = await validate_coupon_code(
        CouponValidateRequest(company_slug="nope", code="pizza10", subtotal=Decimal("50")), mock_db
    )
    assert result.valid is False
    assert result.code == "PIZZA10"
    assert result.message == "Estabelecimento não encontrado"


@pytest.mark.asyncio
async def test_validate_coupon_applies_discount():
    from app.api.promotions import validate_coupon_code

    company = SimpleNamespace(id=uuid.uuid4())
    mock_db = AsyncMock()
    mock_db.execute.side_effect = [_scalar(company), _scalar(_coupon())]

    result = await validate_coupon_code(
        CouponValidateRequest(company_slug="bella", code="pizza10", subtotal=Decimal("80")), mock_db
    )
    assert result.valid is True
    assert result.discount == Decimal("8.00")


@pytest.mark.asyncio
async def test_validate_coupon_expired():
    from app.api.promotions import validate_coupon_code

    company = SimpleNamespace(id=uuid.uuid4())
    expired = _coupon(expires_at=datetime.now(timezone.utc) - timedelta(days=1))
    mock_db = AsyncMock()
    mock_db.execute.side_effect = [_scalar(company), _scalar(expired)]

    result = await validate_coupon_code(
        CouponValidateRequest(company_slug="bella", code="PIZZA10", subtotal=Decimal("80")), mock_db
    )
    assert result.valid is False
    assert result.discount == Decimal("0.00")
    assert result.message == "Este cupom expirou"
