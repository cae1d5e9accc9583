"""
Cart and checkout pricing.

Pure functions shared by the checkout endpoint and the coupon validator.
All money is handled as Decimal and rounded to cents only where a value is
persisted or shown to the customer.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP, ROUND_FLOOR
from typing import Iterable, Sequence
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.pizza import HalfHalfPricingRule
from app.models.promotion import DiscountType

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Decimal | int | float) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


class CartOption(BaseModel):
    name: str
    group_name: str | None = None
    price_modifier: Decimal = ZERO


class CartLine(BaseModel):
    """Priced cart line: unit price before options, plus chosen options."""
    product_id: UUID | None = None
    name: str
    price: Decimal = Field(..., ge=0)
    quantity: int = Field(..., gt=0)
    options: list[CartOption] = Field(default_factory=list)

    @property
    def options_total(self) -> Decimal:
        return sum((o.price_modifier for o in self.options), ZERO)

    @property
    def unit_total(self) -> Decimal:
        return self.price + self.options_total

    @property
    def line_total(self) -> Decimal:
        return self.unit_total * self.quantity


def cart_subtotal(items: Iterable[CartLine]) -> Decimal:
    """Σ (price + Σ option modifiers) × quantity."""
    return sum((item.line_total for item in items), ZERO)


def item_count(items: Iterable[CartLine]) -> int:
    return sum(item.quantity for item in items)


# ── Base price / promotions ──────────────────────────────


def resolve_base_price(product_price: Decimal | None, category_base_price: Decimal | None) -> Decimal:
    """Product price when set, else the category base price (açaí cups), else zero."""
    if product_price is not None and product_price > 0:
        return Decimal(product_price)
    if category_base_price is not None and category_base_price > 0:
        return Decimal(category_base_price)
    return ZERO


def _is_live(promotion, now: datetime) -> bool:
    if not promotion.is_active:
        return False
    return promotion.expires_at is None or promotion.expires_at > now


def find_promotion(
    product_id: UUID,
    category_id: UUID | None,
    promotions: Sequence,
    now: datetime | None = None,
):
    """First live promotion targeting the product; otherwise one targeting its category."""
    now = now or datetime.now(timezone.utc)
    live = [p for p in promotions if _is_live(p, now)]
    for promo in live:
        if promo.product_id == product_id:
            return promo
    if category_id is not None:
        for promo in live:
            if promo.product_id is None and promo.category_id == category_id:
                return promo
    return None


def discounted_price(price: Decimal, promotional_price: Decimal | None, promotion=None) -> Decimal:
    if promotional_price is not None and promotional_price > 0:
        return Decimal(promotional_price)
    if promotion is None:
        return Decimal(price)
    value = Decimal(promotion.discount_value)
    if promotion.discount_type == DiscountType.PERCENTAGE:
        return max(ZERO, Decimal(price) * (1 - value / 100))
    return max(ZERO, Decimal(price) - value)


def promotion_applies_to_size(
    promotion,
    size_option_id: UUID | None,
    size_ids: Iterable[UUID] | None = None,
) -> bool:
    if promotion.apply_to_all_sizes or size_option_id is None:
        return True
    if size_ids is None:
        size_ids = promotion.size_option_ids
    return size_option_id in set(size_ids)


# ── Half/half pizzas ─────────────────────────────────────


def half_half_price(
    flavor_prices: Sequence[Decimal],
    rule: HalfHalfPricingRule | str = HalfHalfPricingRule.AVERAGE,
    max_flavors: int = 2,
    size_base_price: Decimal = ZERO,
    discount_percentage: Decimal = ZERO,
    options_total: Decimal = ZERO,
    quantity: int = 1,
) -> Decimal:
    """
    Price of a multi-flavor pizza.

    While fewer than ``max_flavors`` are chosen the base is a partial total:
    each chosen flavor contributes its fraction of the pizza.
    """
    if quantity <= 0:
        raise ValueError("quantity must be positive")
    if max_flavors <= 0:
        raise ValueError("max_flavors must be positive")

    base = ZERO
    prices = [Decimal(p) for p in flavor_prices]
    if prices:
        partial = len(prices) < max_flavors
        if rule == HalfHalfPricingRule.HIGHEST:
            base = max(prices) / (max_flavors if partial else 1)
        else:
            # sum and average only differ for the partial display
            base = sum(prices, ZERO) / (max_flavors if partial else len(prices))

    if base == 0 and size_base_price and size_base_price > 0:
        base = Decimal(size_base_price)

    subtotal = base + Decimal(options_total)
    if discount_percentage and discount_percentage > 0:
        subtotal -= subtotal * Decimal(discount_percentage) / 100
    return subtotal * quantity


# ── Coupons ──────────────────────────────────────────────


def validate_coupon(coupon, subtotal: Decimal, now: datetime | None = None) -> str | None:
    """Return a customer-facing error message, or None when the coupon can be applied."""
    now = now or datetime.now(timezone.utc)
    if coupon is None or not coupon.is_active:
        return "Cupom não encontrado ou inválido"
    if coupon.expires_at is not None and coupon.expires_at < now:
        return "Este cupom expirou"
    if coupon.min_order_value is not None and subtotal < coupon.min_order_value:
        return f"Pedido mínimo de R$ {to_money(coupon.min_order_value):.2f} para este cupom"
    if coupon.max_uses is not None and coupon.current_uses >= coupon.max_uses:
        return "Este cupom atingiu o limite de uso"
    return None


def coupon_discount(coupon, subtotal: Decimal) -> Decimal:
    value = Decimal(coupon.discount_value)
    if coupon.discount_type == DiscountType.PERCENTAGE:
        discount = Decimal(subtotal) * value / 100
    else:
        discount = value
    return to_money(min(discount, Decimal(subtotal)))


# ── Lottery / totals ─────────────────────────────────────


def lottery_tickets_earned(settings, subtotal: Decimal) -> int:
    if settings is None or not settings.is_enabled:
        return 0
    tickets = 0
    if settings.tickets_per_order and settings.tickets_per_order > 0:
        tickets += settings.tickets_per_order
    per_amount = Decimal(settings.tickets_per_amount or 0)
    if per_amount > 0 and subtotal > 0:
        tickets += int((Decimal(subtotal) / per_amount).to_integral_value(rounding=ROUND_FLOOR))
    return tickets


def checkout_totals(
    subtotal: Decimal,
    discount: Decimal,
    delivery_fee: Decimal,
    is_table: bool,
) -> dict[str, Decimal]:
    fee = ZERO if is_table else to_money(delivery_fee or ZERO)
    subtotal = to_money(subtotal)
    discount = to_money(discount)
    return {
        "subtotal": subtotal,
        "discount_amount": discount,
        "delivery_fee": fee,
        "total": subtotal - discount + fee,
    }
