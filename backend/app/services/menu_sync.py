"""
Real-time product change feed for public menus.

Dashboard writes publish a ProductChange per company; connected menus
receive it over a WebSocket and fold it into their local product list with
the same rules implemented by MenuCache.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any, AsyncIterator
from uuid import UUID

from pydantic import BaseModel, Field

from app.core.config import settings

logger = logging.getLogger(__name__)


class ChangeType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ProductChange(BaseModel):
    event_type: ChangeType
    company_id: UUID
    product_id: UUID
    # Full row for INSERT/UPDATE, empty for DELETE
    new: dict[str, Any] = Field(default_factory=dict)


def product_payload(product) -> dict[str, Any]:
    """JSON-safe snapshot of a product row for the change feed."""
    return {
        "id": str(product.id),
        "name": product.name,
        "description": product.description,
        "price": str(product.price),
        "promotional_price": str(product.promotional_price) if product.promotional_price is not None else None,
        "image_url": product.image_url,
        "is_active": product.is_active,
        "category_id": str(product.category_id) if product.category_id else None,
        "sort_order": product.sort_order,
    }


class MenuCache:
    """Client-side product list kept in sync with the change feed."""

    def __init__(self, products: list[dict[str, Any]] | None = None):
        self.products: list[dict[str, Any]] = list(products or [])

    def _index_of(self, product_id: str) -> int | None:
        for i, product in enumerate(self.products):
            if str(product.get("id")) == product_id:
                return i
        return None

    def apply(self, change: ProductChange) -> None:
        product_id = str(change.product_id)
        index = self._index_of(product_id)

        if change.event_type == ChangeType.DELETE:
            if index is not None:
                self.products.pop(index)
            return

        row = {**change.new, "id": product_id}
        active = bool(row.get("is_active", True))

        if change.event_type == ChangeType.UPDATE:
            if not active:
                if index is not None:
                    self.products.pop(index)
            elif index is not None:
                self.products[index] = {**self.products[index], **row}
            else:
                self.products.append(row)
            return

        # INSERT
        if not active:
            return
        if index is not None:
            self.products[index] = {**self.products[index], **row}
        else:
            self.products.append(row)


class ProductChangeBroker:
    """In-process fan-out of product changes, keyed by company."""

    def __init__(self, queue_size: int | None = None):
        self.queue_size = queue_size or settings.MENU_CHANGE_QUEUE_SIZE
        self._subscribers: dict[UUID, set[asyncio.Queue]] = defaultdict(set)

    def subscriber_count(self, company_id: UUID) -> int:
        return len(self._subscribers.get(company_id, ()))

    @asynccontextmanager
    async def subscribe(self, company_id: UUID) -> AsyncIterator[asyncio.Queue]:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        self._subscribers[company_id].add(queue)
        logger.debug("Menu subscriber added for company %s", company_id)
        try:
            yield queue
        finally:
            subscribers = self._subscribers.get(company_id)
            if subscribers is not None:
                subscribers.discard(queue)
                if not subscribers:
                    del self._subscribers[company_id]

    def publish(self, change: ProductChange) -> int:
        """Deliver to every subscriber of the company. Returns how many received it."""
        delivered = 0
        for queue in list(self._subscribers.get(change.company_id, ())):
            if queue.full():
                # slow consumer: drop its oldest event
                queue.get_nowait()
                logger.warning("Menu change queue full for company %s, dropped oldest event", change.company_id)
            queue.put_nowait(change)
            delivered += 1
        return delivered


# Singleton
product_change_broker = ProductChangeBroker()
