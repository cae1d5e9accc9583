"""
Smart cart suggestions.

Algorithms:
1. Frequently bought together (co-occurrence counts from order history)
2. Beverage fallback when history gives no signal for the current cart
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Sequence

logger = logging.getLogger(__name__)

BEVERAGE_KEYWORDS = ("bebida", "refrigerante", "suco", "água", "drink")


class SuggestionResult:
    def __init__(self, product_ids: list[str], reason: str):
        self.product_ids = product_ids
        self.reason = reason


def is_beverage(product_name: str, category_name: str | None) -> bool:
    haystacks = (product_name.lower(), (category_name or "").lower())
    return any(kw in text for kw in BEVERAGE_KEYWORDS for text in haystacks)


class SuggestionEngine:
    """Co-occurrence model trained from one company's order history."""

    def __init__(self):
        # {product_id: {other_product_id: count}}
        self._co_occurrence: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
        self._is_trained = False

    @property
    def is_trained(self) -> bool:
        return self._is_trained

    def train_from_orders(self, order_items_list: list[list[str]]) -> None:
        """
        Build the co-occurrence matrix.

        Args:
            order_items_list: one list of product ids per past order
        """
        self._co_occurrence.clear()

        for items in order_items_list:
            unique_items = list(set(items))
            for i, item_a in enumerate(unique_items):
                for item_b in unique_items[i + 1:]:
                    self._co_occurrence[item_a][item_b] += 1
                    self._co_occurrence[item_b][item_a] += 1

        self._is_trained = True
        total_pairs = sum(len(v) for v in self._co_occurrence.values())
        logger.info("Suggestion model trained: %d orders, %d pairs", len(order_items_list), total_pairs)

    def get_frequently_bought_together(
        self,
        cart_product_ids: list[str],
        available_ids: set[str] | None = None,
        limit: int = 5,
    ) -> SuggestionResult:
        """
        Products most often bought with the current cart.

        Args:
            cart_product_ids: products already in the cart (never suggested)
            available_ids: restrict suggestions to these products
            limit: max suggestions
        """
        if not self._is_trained:
            return SuggestionResult(product_ids=[], reason="model_not_trained")

        exclude = set(cart_product_ids)
        score: dict[str, int] = defaultdict(int)

        for product_id in cart_product_ids:
            for related_id, count in self._co_occurrence.get(product_id, {}).items():
                if related_id in exclude:
                    continue
                if available_ids is not None and related_id not in available_ids:
                    continue
                score[related_id] += count

        top_products = sorted(score.items(), key=lambda x: x[1], reverse=True)[:limit]
        return SuggestionResult(
            product_ids=[pid for pid, _ in top_products],
            reason="frequently_bought_together",
        )

    def suggest(
        self,
        cart_product_ids: list[str],
        products: Sequence,
        category_names: dict[str, str],
        limit: int = 5,
    ) -> SuggestionResult:
        """
        Co-occurrence suggestions, falling back to beverages not in the cart.

        ``products`` are the company's active, available products; each has
        ``id``, ``name`` and ``category_id``.
        """
        if not cart_product_ids:
            return SuggestionResult(product_ids=[], reason="empty_cart")

        available = {str(p.id) for p in products}
        result = self.get_frequently_bought_together(cart_product_ids, available, limit)
        if result.product_ids:
            return result

        in_cart = set(cart_product_ids)
        beverages = [
            str(p.id)
            for p in products
            if str(p.id) not in in_cart
            and is_beverage(p.name, category_names.get(str(p.category_id)) if p.category_id else None)
        ]
        return SuggestionResult(product_ids=beverages[:limit], reason="beverage_fallback")
