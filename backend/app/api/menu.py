"""Public storefront: menu snapshot, live product changes and cart suggestions."""

import asyncio
import logging
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base import get_db, async_session_maker
from app.models.category import Category
from app.models.company import Company
from app.models.order import Order
from app.models.pizza import HalfHalfPricingRule, PizzaCategorySettings, PizzaSize
from app.models.product import Product
from app.models.promotion import Promotion, DiscountType
from app.schemas.category import CategoryResponse
from app.schemas.product import ProductResponse
from app.services.catalog import get_company_by_slug, is_storefront_visible, unavailable_product_ids
from app.services.menu_sync import product_change_broker
from app.services.suggestions import SuggestionEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/menu", tags=["menu"])

# Orders used to train the suggestion model
SUGGESTION_HISTORY = 300


# Response schemas
class PublicCompany(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str
    logo_url: str | None
    address: str | None
    phone: str | None
    is_open: bool
    delivery_fee: Decimal
    min_order_value: Decimal | None
    estimated_delivery_minutes: int | None


class PublicPromotion(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None
    discount_type: DiscountType
    discount_value: Decimal
    expires_at: datetime | None
    image_url: str | None
    product_id: UUID | None
    category_id: UUID | None
    apply_to_all_sizes: bool
    size_option_ids: list[UUID] = []


class PizzaSizeInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    category_id: UUID
    name: str
    base_price: Decimal
    max_flavors: int
    slices: int


class PizzaSettingsInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category_id: UUID
    allow_half_half: bool
    max_flavors: int
    half_half_pricing_rule: HalfHalfPricingRule
    half_half_discount_percentage: Decimal


class PublicMenu(BaseModel):
    company: PublicCompany
    categories: list[CategoryResponse]
    products: list[ProductResponse]
    promotions: list[PublicPromotion]
    pizza_settings: list[PizzaSettingsInfo] = []
    pizza_sizes: list[PizzaSizeInfo] = []
    unavailable_product_ids: list[UUID]


class SuggestionRequest(BaseModel):
    cart_product_ids: list[UUID] = Field(default_factory=list, max_length=100)
    limit: int = Field(default=5, ge=1, le=20)


class SuggestionResponse(BaseModel):
    product_ids: list[UUID]
    reason: str


async def _storefront_company(db: AsyncSession, slug: str) -> Company:
    company = await get_company_by_slug(db, slug)
    if not is_storefront_visible(company):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Menu not found")
    return company


@router.get("/{slug}", response_model=PublicMenu)
async def get_public_menu(slug: str, db: AsyncSession = Depends(get_db)):
    """Menu snapshot; clients then follow ``/menu/{slug}/changes`` for updates."""
    company = await _storefront_company(db, slug)
    now = datetime.now(timezone.utc)

    categories = (await db.execute(
        select(Category)
        .where(Category.company_id == company.id, Category.is_active.is_(True))
        .order_by(Category.sort_order, Category.name)
    )).scalars().all()

    products = (await db.execute(
        select(Product)
        .where(Product.company_id == company.id, Product.is_active.is_(True))
        .order_by(Product.sort_order, Product.name)
    )).scalars().all()

    promotions = (await db.execute(
        select(Promotion).where(
            Promotion.company_id == company.id,
            Promotion.is_active.is_(True),
            or_(Promotion.expires_at.is_(None), Promotion.expires_at > now),
        )
    )).scalars().all()

    pizza_settings = (await db.execute(
        select(PizzaCategorySettings).where(PizzaCategorySettings.company_id == company.id)
    )).scalars().all()

    category_ids = [c.id for c in categories]
    pizza_sizes = []
    if category_ids:
        pizza_sizes = (await db.execute(
            select(PizzaSize)
            .where(PizzaSize.category_id.in_(category_ids))
            .order_by(PizzaSize.sort_order)
        )).scalars().all()

    unavailable = await unavailable_product_ids(db, company.id)

    return PublicMenu(
        company=PublicCompany.model_validate(company),
        categories=[CategoryResponse.model_validate(c) for c in categories],
        products=[ProductResponse.model_validate(p) for p in products],
        promotions=[PublicPromotion.model_validate(p) for p in promotions],
        pizza_settings=[PizzaSettingsInfo.model_validate(s) for s in pizza_settings],
        pizza_sizes=[PizzaSizeInfo.model_validate(s) for s in pizza_sizes],
        unavailable_product_ids=sorted(unavailable, key=str),
    )


async def _stream_changes(websocket: WebSocket, queue: asyncio.Queue) -> None:
    """Forward queued changes until the client goes away.

    The socket is read alongside the queue so a disconnect is noticed
    even when the menu is quiet.
    """
    receive = asyncio.create_task(websocket.receive())
    change = asyncio.create_task(queue.get())
    try:
        while True:
            done, _ = await asyncio.wait({receive, change}, return_when=asyncio.FIRST_COMPLETED)
            if change in done:
                await websocket.send_json(change.result().model_dump(mode="json"))
                change = asyncio.create_task(queue.get())
            if receive in done:
                if receive.result()["type"] == "websocket.disconnect":
                    return
                # Client messages carry nothing; keep listening
                receive = asyncio.create_task(websocket.receive())
    finally:
        receive.cancel()
        change.cancel()


@router.websocket("/{slug}/changes")
async def menu_changes(websocket: WebSocket, slug: str):
    """Stream ProductChange events for one storefront as JSON messages."""
    async with async_session_maker() as db:
        company = await get_company_by_slug(db, slug)

    if not is_storefront_visible(company):
        await websocket.close(code=4404)
        return

    await websocket.accept()
    async with product_change_broker.subscribe(company.id) as queue:
        try:
            await _stream_changes(websocket, queue)
        except WebSocketDisconnect:
            pass
    logger.debug("Menu listener for %s disconnected", slug)


@router.post("/{slug}/suggestions", response_model=SuggestionResponse)
async def get_suggestions(slug: str, body: SuggestionRequest, db: AsyncSession = Depends(get_db)):
    """Products to offer alongside the current cart."""
    company = await _storefront_company(db, slug)

    orders = (await db.execute(
        select(Order)
        .where(Order.company_id == company.id)
        .order_by(Order.created_at.desc())
        .limit(SUGGESTION_HISTORY)
    )).scalars().all()

    engine = SuggestionEngine()
    engine.train_from_orders([
        [str(item.product_id) for item in order.items if item.product_id]
        for order in orders
    ])

    unavailable = await unavailable_product_ids(db, company.id)
    products = [
        p for p in (await db.execute(
            select(Product)
            .where(Product.company_id == company.id, Product.is_active.is_(True))
            .order_by(Product.sort_order, Product.name)
        )).scalars().all()
        if p.id not in unavailable
    ]
    categories = (await db.execute(
        select(Category).where(Category.company_id == company.id, Category.is_active.is_(True))
    )).scalars().all()
    visible_categories = {str(c.id): c.name for c in categories}
    products = [p for p in products if p.category_id is None or str(p.category_id) in visible_categories]

    result = engine.suggest(
        [str(pid) for pid in body.cart_product_ids],
        products,
        visible_categories,
        limit=body.limit,
    )
    return SuggestionResponse(product_ids=[UUID(pid) for pid in result.product_ids], reason=result.reason)
