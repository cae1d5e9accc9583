"""Unit tests for cart, promotion, coupon and half/half pricing."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace
import uuid

import pytest

from app.models.pizza import HalfHalfPricingRule
from app.models.promotion import DiscountType
from app.services.pricing import (
    CartLine,
    CartOption,
    cart_subtotal,
    checkout_totals,
    coupon_discount,
    discounted_price,
    find_promotion,
    half_half_price,
    item_count,
    lottery_tickets_earned,
    promotion_applies_to_size,
    resolve_base_price,
    to_money,
    validate_coupon,
)

NOW = datetime(2026, 5, 10, 12, 0, tzinfo=timezone.utc)


def _promo(**kw):
    data = dict(
        is_active=True,
        expires_at=None,
        product_id=None,
        category_id=None,
        discount_type=DiscountType.PERCENTAGE,
        discount_value=Decimal("10"),
        apply_to_all_sizes=True,
        size_option_ids=[],
    )
    data.update(kw)
    return SimpleNamespace(**data)


def _coupon(**kw):
    data = dict(
        is_active=True,
        expires_at=None,
        min_order_value=None,
        max_uses=None,
        current_uses=0,
        discount_type=DiscountType.FIXED,
        discount_value=Decimal("10.00"),
    )
    data.update(kw)
    return SimpleNamespace(**data)


# ── Cart ─────────────────────────────────────────────

def test_cart_subtotal_includes_options():
    lines = [
        CartLine(
            name="Pizza",
            price=Decimal("40.00"),
            quantity=2,
            options=[CartOption(name="Borda", price_modifier=Decimal("5.00"))],
        ),
        CartLine(name="Coca", price=Decimal("8.00"), quantity=1),
    ]
    assert cart_subtotal(lines) == Decimal("98.00")
    assert item_count(lines) == 3


def test_cart_line_rejects_zero_quantity():
    with pytest.raises(ValueError):
        CartLine(name="x", price=Decimal("1"), quantity=0)


def test_to_money_rounds_half_up():
    assert to_money(Decimal("10.005")) == Decimal("10.01")
    assert to_money(3) == Decimal("3.00")


def test_resolve_base_price_falls_back_to_category():
    assert resolve_base_price(Decimal("12.00"), Decimal("20.00")) == Decimal("12.00")
    assert resolve_base_price(Decimal("0"), Decimal("20.00")) == Decimal("20.00")
    assert resolve_base_price(None, None) == Decimal("0.00")


# ── Promotions ───────────────────────────────────────

def test_find_promotion_prefers_product_target():
    product_id, category_id = uuid.uuid4(), uuid.uuid4()
    by_category = _promo(category_id=category_id)
    by_product = _promo(product_id=product_id)
    assert find_promotion(product_id, category_id, [by_category, by_product], NOW) is by_product


def test_find_promotion_skips_expired_and_inactive():
    product_id = uuid.uuid4()
    expired = _promo(product_id=product_id, expires_at=NOW - timedelta(minutes=1))
    inactive = _promo(product_id=product_id, is_active=False)
    assert find_promotion(product_id, None, [expired, inactive], NOW) is None


def test_discounted_price_variants():
    assert discounted_price(Decimal("50"), None, _promo()) == Decimal("45")
    fixed = _promo(discount_type=DiscountType.FIXED, discount_value=Decimal("60"))
    assert discounted_price(Decimal("50"), None, fixed) == Decimal("0")
    oversized = _promo(discount_value=Decimal("150"))
    assert discounted_price(Decimal("40"), None, oversized) == Decimal("0")
    # promotional price wins over any promotion
    assert discounted_price(Decimal("50"), Decimal("39.90"), _promo()) == Decimal("39.90")


def test_promotion_size_restriction():
    size_a, size_b = uuid.uuid4(), uuid.uuid4()
    promo = _promo(apply_to_all_sizes=False, size_option_ids=[size_a])
    assert promotion_applies_to_size(promo, size_a)
    assert not promotion_applies_to_size(promo, size_b)
    assert promotion_applies_to_size(promo, None)


# ── Half/half ────────────────────────────────────────

def test_half_half_average_and_highest():
    prices = [Decimal("40"), Decimal("60")]
    assert half_half_price(prices, HalfHalfPricingRule.AVERAGE) == Decimal("50")
    assert half_half_price(prices, HalfHalfPricingRule.HIGHEST) == Decimal("60")


def test_half_half_partial_selection():
    assert half_half_price([Decimal("60")], HalfHalfPricingRule.AVERAGE, max_flavors=2) == Decimal("30")


def test_half_half_discount_and_quantity():
    price = half_half_price(
        [Decimal("40"), Decimal("60")],
        discount_percentage=Decimal("10"),
        options_total=Decimal("10"),
        quantity=2,
    )
    assert price == Decimal("108")


def test_half_half_size_base_when_no_flavors():
    assert half_half_price([], size_base_price=Decimal("35")) == Decimal("35")


def test_half_half_rejects_bad_quantity():
    with pytest.raises(ValueError):
        half_half_price([Decimal("10")], quantity=0)


# ── Coupons ──────────────────────────────────────────

def test_validate_coupon_messages():
    assert validate_coupon(None, Decimal("10"), NOW) is not None
    assert validate_coupon(_coupon(expires_at=NOW - timedelta(days=1)), Decimal("10"), NOW) == "Este cupom expirou"
    assert "mínimo" in validate_coupon(_coupon(min_order_value=Decimal("50")), Decimal("10"), NOW)
    assert "limite" in validate_coupon(_coupon(max_uses=3, current_uses=3), Decimal("10"), NOW)
    assert validate_coupon(_coupon(), Decimal("10"), NOW) is None


def test_coupon_discount_capped_at_subtotal():
    assert coupon_discount(_coupon(discount_value=Decimal("30")), Decimal("20")) == Decimal("20.00")
    percent = _coupon(discount_type=DiscountType.PERCENTAGE, discount_value=Decimal("15"))
    assert coupon_discount(percent, Decimal("80")) == Decimal("12.00")


# ── Lottery / totals ─────────────────────────────────

def test_lottery_tickets_earned():
    settings = SimpleNamespace(is_enabled=True, tickets_per_order=1, tickets_per_amount=Decimal("50"))
    assert lottery_tickets_earned(settings, Decimal("120")) == 3
    assert lottery_tickets_earned(None, Decimal("120")) == 0
    settings.is_enabled = False
    assert lottery_tickets_earned(settings, Decimal("120")) == 0


def test_checkout_totals_table_has_no_delivery_fee():
    totals = checkout_totals(Decimal("100"), Decimal("10"), Decimal("7.5"), is_table=True)
    assert totals["delivery_fee"] == Decimal("0.00")
    assert totals["total"] == Decimal("90.00")

    delivery = checkout_totals(Decimal("100"), Decimal("10"), Decimal("7.5"), is_table=False)
    assert delivery["total"] == Decimal("97.50")
