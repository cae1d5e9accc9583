"""Ingredient stock, product recipes and stock-driven availability."""

import logging
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from fastapi.responses import JSONResponse
from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import require_permission, company_id_of
from app.db.base import get_db
from app.models.inventory import Ingredient, ProductIngredient
from app.models.product import Product
from app.schemas.auth import CurrentUser
from app.schemas.inventory import (
    IngredientAdjustRequest,
    IngredientCreate,
    IngredientResponse,
    IngredientUpdate,
    LowStockResponse,
    RecipeItem,
    RecipeItemResponse,
    RecipeResponse,
    UnavailableProductsRequest,
)
from app.services.catalog import unavailable_product_ids

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/inventory", tags=["inventory"])


async def _get_owned_ingredient(db: AsyncSession, ingredient_id: UUID, company_id: UUID) -> Ingredient:
    result = await db.execute(
        select(Ingredient).where(
            Ingredient.id == ingredient_id,
            Ingredient.company_id == company_id,
        )
    )
    ingredient = result.scalar_one_or_none()
    if not ingredient:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Ingredient not found",
        )
    return ingredient


async def _get_owned_product(db: AsyncSession, product_id: UUID, company_id: UUID) -> Product:
    result = await db.execute(
        select(Product).where(Product.id == product_id, Product.company_id == company_id)
    )
    product = result.scalar_one_or_none()
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product


@router.get("/ingredients", response_model=list[IngredientResponse])
async def list_ingredients(
    low_stock_only: bool = False,
    search: str | None = Query(None, max_length=100),
    current_user: CurrentUser = Depends(require_permission("inventory:read")),
    db: AsyncSession = Depends(get_db),
):
    query = select(Ingredient).where(Ingredient.company_id == company_id_of(current_user))
    if low_stock_only:
        query = query.where(Ingredient.current_stock <= Ingredient.min_stock)
    if search:
        query = query.where(Ingredient.name.ilike(f"%{search}%"))

    result = await db.execute(query.order_by(Ingredient.name))
    return [IngredientResponse.model_validate(i) for i in result.scalars().all()]


@router.get("/ingredients/low-stock", response_model=LowStockResponse)
async def get_low_stock_ingredients(
    current_user: CurrentUser = Depends(require_permission("inventory:read")),
    db: AsyncSession = Depends(get_db),
):
    """Ingredients at or below their minimum, emptiest first."""
    result = await db.execute(
        select(Ingredient)
        .where(
            Ingredient.company_id == company_id_of(current_user),
            Ingredient.current_stock <= Ingredient.min_stock,
        )
        .order_by(Ingredient.current_stock.asc())
    )
    items = result.scalars().all()
    return LowStockResponse(
        items=[IngredientResponse.model_validate(i) for i in items],
        count=len(items),
    )


@router.get("/ingredients/{ingredient_id}", response_model=IngredientResponse)
async def get_ingredient(
    ingredient_id: UUID,
    current_user: CurrentUser = Depends(require_permission("inventory:read")),
    db: AsyncSession = Depends(get_db),
):
    ingredient = await _get_owned_ingredient(db, ingredient_id, company_id_of(current_user))
    return IngredientResponse.model_validate(ingredient)


@router.post("/ingredients", response_model=IngredientResponse, status_code=status.HTTP_201_CREATED)
async def create_ingredient(
    body: IngredientCreate,
    current_user: CurrentUser = Depends(require_permission("inventory:adjust")),
    db: AsyncSession = Depends(get_db),
):
    company_id = company_id_of(current_user)
    existing = await db.execute(
        select(Ingredient.id).where(Ingredient.company_id == company_id, Ingredient.name == body.name)
    )
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Ingredient '{body.name}' already exists",
        )

    ingredient = Ingredient(**body.model_dump(), company_id=company_id)
    db.add(ingredient)
    await db.commit()
    await db.refresh(ingredient)
    return IngredientResponse.model_validate(ingredient)


@router.patch("/ingredients/{ingredient_id}", response_model=IngredientResponse)
async def update_ingredient(
    ingredient_id: UUID,
    body: IngredientUpdate,
    current_user: CurrentUser = Depends(require_permission("inventory:adjust")),
    db: AsyncSession = Depends(get_db),
):
    """Edit ingredient details. Stock levels change only through /adjust."""
    ingredient = await _get_owned_ingredient(db, ingredient_id, company_id_of(current_user))
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(ingredient, field, value)
    await db.commit()
    await db.refresh(ingredient)
    return IngredientResponse.model_validate(ingredient)


@router.post("/ingredients/{ingredient_id}/adjust", response_model=IngredientResponse)
async def adjust_ingredient(
    ingredient_id: UUID,
    adjustment: IngredientAdjustRequest,
    current_user: CurrentUser = Depends(require_permission("inventory:adjust")),
    db: AsyncSession = Depends(get_db),
):
    """
    Move stock in or out.

    Use a positive quantity_delta for stock in and a negative one for stock
    out. Stock out beyond what is on hand leaves the ingredient at zero.
    """
    ingredient = await _get_owned_ingredient(db, ingredient_id, company_id_of(current_user))

    new_stock = ingredient.current_stock + adjustment.quantity_delta
    if new_stock < 0:
        logger.warning(
            "Stock of %s clamped at zero (had %s, delta %s)",
            ingredient.name, ingredient.current_stock, adjustment.quantity_delta,
        )
        new_stock = Decimal("0")
    ingredient.current_stock = new_stock

    await db.commit()
    await db.refresh(ingredient)
    logger.info("Ingredient %s adjusted (%s): now %s", ingredient.name, adjustment.reason, ingredient.current_stock)
    return IngredientResponse.model_validate(ingredient)


@router.delete("/ingredients/{ingredient_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ingredient(
    ingredient_id: UUID,
    current_user: CurrentUser = Depends(require_permission("inventory:adjust")),
    db: AsyncSession = Depends(get_db),
):
    ingredient = await _get_owned_ingredient(db, ingredient_id, company_id_of(current_user))
    await db.delete(ingredient)
    await db.commit()


# ---------------------------------------------------------------------------
# Recipes
# ---------------------------------------------------------------------------


def _recipe_out(product_id: UUID, rows) -> RecipeResponse:
    return RecipeResponse(
        product_id=product_id,
        items=[
            RecipeItemResponse(
                ingredient_id=row.ingredient_id,
                quantity_per_unit=row.quantity_per_unit,
                ingredient_name=row.ingredient.name,
                unit=row.ingredient.unit,
            )
            for row in rows
        ],
    )


@router.get("/products/{product_id}/recipe", response_model=RecipeResponse)
async def get_recipe(
    product_id: UUID,
    current_user: CurrentUser = Depends(require_permission("inventory:read")),
    db: AsyncSession = Depends(get_db),
):
    company_id = company_id_of(current_user)
    await _get_owned_product(db, product_id, company_id)
    result = await db.execute(
        select(ProductIngredient).where(
            ProductIngredient.product_id == product_id,
            ProductIngredient.company_id == company_id,
        )
    )
    return _recipe_out(product_id, result.scalars().all())


@router.put("/products/{product_id}/recipe", response_model=RecipeResponse)
async def replace_recipe(
    product_id: UUID,
    items: list[RecipeItem],
    current_user: CurrentUser = Depends(require_permission("inventory:adjust")),
    db: AsyncSession = Depends(get_db),
):
    """Replace the product's whole recipe with the given ingredient list."""
    company_id = company_id_of(current_user)
    await _get_owned_product(db, product_id, company_id)

    ingredient_ids = {item.ingredient_id for item in items}
    if len(ingredient_ids) != len(items):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Duplicate ingredient in recipe")
    if ingredient_ids:
        found = await db.execute(
            select(func.count(Ingredient.id)).where(
                Ingredient.id.in_(ingredient_ids),
                Ingredient.company_id == company_id,
            )
        )
        if found.scalar_one() != len(ingredient_ids):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown ingredient in recipe")

    await db.execute(
        delete(ProductIngredient).where(
            ProductIngredient.product_id == product_id,
            ProductIngredient.company_id == company_id,
        )
    )
    for item in items:
        db.add(ProductIngredient(
            product_id=product_id,
            ingredient_id=item.ingredient_id,
            quantity_per_unit=item.quantity_per_unit,
            company_id=company_id,
        ))
    await db.commit()

    result = await db.execute(
        select(ProductIngredient).where(
            ProductIngredient.product_id == product_id,
            ProductIngredient.company_id == company_id,
        )
    )
    return _recipe_out(product_id, result.scalars().all())


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------


@router.post("/unavailable-products")
async def get_unavailable_products(body: UnavailableProductsRequest, db: AsyncSession = Depends(get_db)):
    """Products the storefront should grey out because an ingredient ran short."""
    if body.company_id is None:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"ok": False, "error": "companyId is required", "unavailableProductIds": []},
        )

    unavailable = await unavailable_product_ids(db, body.company_id)
    return {"ok": True, "unavailableProductIds": sorted(str(pid) for pid in unavailable)}
