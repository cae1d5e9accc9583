"""Promotions with engagement tracking, and discount coupons."""

import logging
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_user, require_permission, company_id_of
from app.db.base import get_db
from app.models.category import Category
from app.models.product import Product, ProductOption
from app.models.promotion import Coupon, Promotion, PromotionEvent, PromotionEventType, PromotionSize
from app.schemas.auth import CurrentUser
from app.schemas.promotion import (
    CouponCreate,
    CouponResponse,
    CouponUpdate,
    CouponValidateRequest,
    CouponValidateResponse,
    PromotionCreate,
    PromotionEventCreate,
    PromotionResponse,
    PromotionStats,
    PromotionUpdate,
    check_discount,
)
from app.services.catalog import get_company_by_slug
from app.services.pricing import coupon_discount, to_money, validate_coupon

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/promotions", tags=["promotions"])
coupon_router = APIRouter(prefix="/coupons", tags=["coupons"])


# ---------------------------------------------------------------------------
# Promotions
# ---------------------------------------------------------------------------


async def _get_owned_promotion(db: AsyncSession, promotion_id: UUID, company_id: UUID) -> Promotion:
    result = await db.execute(
        select(Promotion).where(Promotion.id == promotion_id, Promotion.company_id == company_id)
    )
    promotion = result.scalar_one_or_none()
    if not promotion:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Promotion not found")
    return promotion


def _check_merged_discount(current, update_data: dict) -> None:
    """Discount rules hold for the stored values merged with a partial update."""
    try:
        check_discount(
            update_data.get("discount_type", current.discount_type),
            update_data.get("discount_value", current.discount_value),
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


async def _check_targets(
    db: AsyncSession,
    company_id: UUID,
    product_id: UUID | None,
    category_id: UUID | None,
    size_option_ids: list[UUID],
) -> None:
    """Targets and size options must belong to the caller's company."""
    if product_id is not None:
        found = await db.execute(
            select(Product.id).where(Product.id == product_id, Product.company_id == company_id)
        )
        if found.scalar_one_or_none() is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Product not found")
    if category_id is not None:
        found = await db.execute(
            select(Category.id).where(Category.id == category_id, Category.company_id == company_id)
        )
        if found.scalar_one_or_none() is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category not found")
    if size_option_ids:
        found = await db.execute(
            select(ProductOption.id)
            .join(Product, ProductOption.product_id == Product.id)
            .where(
                ProductOption.id.in_(size_option_ids),
                ProductOption.is_size.is_(True),
                Product.company_id == company_id,
            )
        )
        if len(set(found.scalars().all())) != len(set(size_option_ids)):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid size options")


@router.get("", response_model=list[PromotionResponse])
async def list_promotions(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Promotion)
        .where(Promotion.company_id == company_id_of(current_user))
        .order_by(Promotion.created_at.desc())
    )
    return [PromotionResponse.model_validate(p) for p in result.scalars().all()]


@router.post("", response_model=PromotionResponse, status_code=status.HTTP_201_CREATED)
async def create_promotion(
    body: PromotionCreate,
    current_user: CurrentUser = Depends(require_permission("promotion:manage")),
    db: AsyncSession = Depends(get_db),
):
    company_id = company_id_of(current_user)
    size_ids = [] if body.apply_to_all_sizes else body.size_option_ids
    await _check_targets(db, company_id, body.product_id, body.category_id, size_ids)

    promotion = Promotion(
        **body.model_dump(exclude={"size_option_ids"}),
        company_id=company_id,
    )
    promotion.sizes = [PromotionSize(product_option_id=oid) for oid in dict.fromkeys(size_ids)]
    db.add(promotion)
    await db.commit()
    await db.refresh(promotion)
    logger.info("Promotion %s created for company %s", promotion.name, company_id)
    return PromotionResponse.model_validate(promotion)


@router.patch("/{promotion_id}", response_model=PromotionResponse)
async def update_promotion(
    promotion_id: UUID,
    body: PromotionUpdate,
    current_user: CurrentUser = Depends(require_permission("promotion:manage")),
    db: AsyncSession = Depends(get_db),
):
    company_id = company_id_of(current_user)
    promotion = await _get_owned_promotion(db, promotion_id, company_id)

    update_data = body.model_dump(exclude_unset=True)
    size_ids = update_data.pop("size_option_ids", None)
    _check_merged_discount(promotion, update_data)

    product_id = update_data.get("product_id", promotion.product_id)
    category_id = update_data.get("category_id", promotion.category_id)
    if product_id is None and category_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Promotion must target a product or a category",
        )
    await _check_targets(db, company_id, update_data.get("product_id"), update_data.get("category_id"), size_ids or [])

    for field, value in update_data.items():
        setattr(promotion, field, value)

    # Size rows are replaced wholesale
    if promotion.apply_to_all_sizes:
        promotion.sizes = []
    elif size_ids is not None:
        promotion.sizes = [PromotionSize(product_option_id=oid) for oid in dict.fromkeys(size_ids)]

    await db.commit()
    await db.refresh(promotion)
    return PromotionResponse.model_validate(promotion)


@router.delete("/{promotion_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_promotion(
    promotion_id: UUID,
    current_user: CurrentUser = Depends(require_permission("promotion:manage")),
    db: AsyncSession = Depends(get_db),
):
    promotion = await _get_owned_promotion(db, promotion_id, company_id_of(current_user))
    await db.delete(promotion)
    await db.commit()


@router.post("/events", status_code=status.HTTP_201_CREATED)
async def record_promotion_event(body: PromotionEventCreate, db: AsyncSession = Depends(get_db)):
    """Storefront engagement tracking. Views count once per browsing session."""
    promotion = await db.get(Promotion, body.promotion_id)
    if promotion is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Promotion not found")

    if body.event_type == PromotionEventType.VIEW and body.session_id:
        seen = await db.execute(
            select(PromotionEvent.id)
            .where(
                PromotionEvent.promotion_id == promotion.id,
                PromotionEvent.event_type == PromotionEventType.VIEW,
                PromotionEvent.session_id == body.session_id,
            )
            .limit(1)
        )
        if seen.scalar_one_or_none() is not None:
            return {"recorded": False, "reason": "duplicate_view"}

    db.add(PromotionEvent(
        event_type=body.event_type,
        session_id=body.session_id,
        order_id=body.order_id,
        revenue=body.revenue,
        promotion_id=promotion.id,
        company_id=promotion.company_id,
    ))
    await db.commit()
    return {"recorded": True}


@router.get("/{promotion_id}/stats", response_model=PromotionStats)
async def get_promotion_stats(
    promotion_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    promotion = await _get_owned_promotion(db, promotion_id, company_id_of(current_user))

    result = await db.execute(
        select(
            PromotionEvent.event_type,
            func.count(PromotionEvent.id),
            func.coalesce(func.sum(PromotionEvent.revenue), 0),
        )
        .where(PromotionEvent.promotion_id == promotion.id)
        .group_by(PromotionEvent.event_type)
    )
    counts = {PromotionEventType(row[0]): (row[1], row[2]) for row in result.all()}

    views = counts.get(PromotionEventType.VIEW, (0, 0))[0]
    clicks = counts.get(PromotionEventType.CLICK, (0, 0))[0]
    conversions, revenue = counts.get(PromotionEventType.CONVERSION, (0, 0))

    return PromotionStats(
        promotion_id=promotion.id,
        views=views,
        clicks=clicks,
        conversions=conversions,
        revenue=to_money(Decimal(revenue)),
        conversion_rate=round(conversions / views * 100, 2) if views else 0.0,
    )


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------


async def _get_owned_coupon(db: AsyncSession, coupon_id: UUID, company_id: UUID) -> Coupon:
    result = await db.execute(
        select(Coupon).where(Coupon.id == coupon_id, Coupon.company_id == company_id)
    )
    coupon = result.scalar_one_or_none()
    if not coupon:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Coupon not found")
    return coupon


@coupon_router.get("", response_model=list[CouponResponse])
async def list_coupons(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Coupon)
        .where(Coupon.company_id == company_id_of(current_user))
        .order_by(Coupon.created_at.desc())
    )
    return [CouponResponse.model_validate(c) for c in result.scalars().all()]


@coupon_router.post("", response_model=CouponResponse, status_code=status.HTTP_201_CREATED)
async def create_coupon(
    body: CouponCreate,
    current_user: CurrentUser = Depends(require_permission("promotion:manage")),
    db: AsyncSession = Depends(get_db),
):
    company_id = company_id_of(current_user)
    existing = await db.execute(
        select(Coupon.id).where(Coupon.company_id == company_id, Coupon.code == body.code)
    )
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Coupon '{body.code}' already exists",
        )

    coupon = Coupon(**body.model_dump(), company_id=company_id)
    db.add(coupon)
    await db.commit()
    await db.refresh(coupon)
    return CouponResponse.model_validate(coupon)


@coupon_router.patch("/{coupon_id}", response_model=CouponResponse)
async def update_coupon(
    coupon_id: UUID,
    body: CouponUpdate,
    current_user: CurrentUser = Depends(require_permission("promotion:manage")),
    db: AsyncSession = Depends(get_db),
):
    coupon = await _get_owned_coupon(db, coupon_id, company_id_of(current_user))
    update_data = body.model_dump(exclude_unset=True)
    _check_merged_discount(coupon, update_data)
    for field, value in update_data.items():
        setattr(coupon, field, value)
    await db.commit()
    await db.refresh(coupon)
    return CouponResponse.model_validate(coupon)


@coupon_router.delete("/{coupon_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_coupon(
    coupon_id: UUID,
    current_user: CurrentUser = Depends(require_permission("promotion:manage")),
    db: AsyncSession = Depends(get_db),
):
    coupon = await _get_owned_coupon(db, coupon_id, company_id_of(current_user))
    await db.delete(coupon)
    await db.commit()


@coupon_router.post("/validate", response_model=CouponValidateResponse)
async def validate_coupon_code(body: CouponValidateRequest, db: AsyncSession = Depends(get_db)):
    """Preview a coupon from the cart. Always 200; ``valid`` says whether it applies."""
    code = body.code.strip().upper()
    company = await get_company_by_slug(db, body.company_slug)
    if company is None:
        return CouponValidateResponse(valid=False, code=code, message="Estabelecimento não encontrado")

    result = await db.execute(
        select(Coupon).where(Coupon.company_id == company.id, Coupon.code == code)
    )
    coupon = result.scalar_one_or_none()

    error = validate_coupon(coupon, body.subtotal)
    if error:
        return CouponValidateResponse(valid=False, code=code, message=error)
    return CouponValidateResponse(valid=True, code=code, discount=coupon_discount(coupon, body.subtotal))
