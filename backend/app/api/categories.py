"""Menu category CRUD endpoints with RBAC enforcement."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_user, require_permission, company_id_of
from app.db.base import get_db
from app.models.category import Category
from app.models.product import Product
from app.schemas.auth import CurrentUser
from app.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    CategoryListResponse,
)

router = APIRouter(prefix="/categories", tags=["categories"])


async def _get_owned_category(db: AsyncSession, category_id: UUID, company_id: UUID) -> Category:
    result = await db.execute(
        select(Category).where(
            Category.id == category_id,
            Category.company_id == company_id,
        )
    )
    category = result.scalar_one_or_none()
    if not category:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Category not found",
        )
    return category


@router.get("", response_model=CategoryListResponse)
async def list_categories(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List all categories of the current company, in menu order."""
    company_id = company_id_of(current_user)
    result = await db.execute(
        select(Category)
        .where(Category.company_id == company_id)
        .order_by(Category.sort_order, Category.name)
    )
    items = result.scalars().all()

    return CategoryListResponse(
        items=[CategoryResponse.model_validate(c) for c in items],
        total=len(items),
    )


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(
    category_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    category = await _get_owned_category(db, category_id, company_id_of(current_user))
    return CategoryResponse.model_validate(category)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    body: CategoryCreate,
    current_user: CurrentUser = Depends(require_permission("product:create")),
    db: AsyncSession = Depends(get_db),
):
    """Create a new category (requires product:create permission)."""
    company_id = company_id_of(current_user)
    existing = await db.execute(
        select(Category).where(
            Category.company_id == company_id,
            Category.name == body.name,
        )
    )
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Category with this name already exists",
        )

    category = Category(**body.model_dump(), company_id=company_id)
    db.add(category)
    await db.commit()
    await db.refresh(category)

    return CategoryResponse.model_validate(category)


@router.patch("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: UUID,
    body: CategoryUpdate,
    current_user: CurrentUser = Depends(require_permission("product:update")),
    db: AsyncSession = Depends(get_db),
):
    """Update a category (requires product:update permission)."""
    company_id = company_id_of(current_user)
    category = await _get_owned_category(db, category_id, company_id)

    if body.name and body.name != category.name:
        existing = await db.execute(
            select(Category).where(
                Category.company_id == company_id,
                Category.name == body.name,
                Category.id != category_id,
            )
        )
        if existing.scalar_one_or_none():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Category with this name already exists",
            )

    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(category, field, value)

    await db.commit()
    await db.refresh(category)

    return CategoryResponse.model_validate(category)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: UUID,
    current_user: CurrentUser = Depends(require_permission("product:delete")),
    db: AsyncSession = Depends(get_db),
):
    """Delete an empty category (requires product:delete permission)."""
    category = await _get_owned_category(db, category_id, company_id_of(current_user))

    products_count = await db.execute(
        select(func.count(Product.id)).where(Product.category_id == category.id)
    )
    if products_count.scalar_one() > 0:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cannot delete category with existing products",
        )

    await db.delete(category)
    await db.commit()
