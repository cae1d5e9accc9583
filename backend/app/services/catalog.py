"""Catalog queries shared by the public menu, checkout and stock endpoints."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.company import Company, CompanyStatus
from app.models.inventory import Ingredient, ProductIngredient


async def get_company_by_slug(db: AsyncSession, slug: str) -> Company | None:
    result = await db.execute(select(Company).where(Company.slug == slug))
    return result.scalar_one_or_none()


def is_storefront_visible(company: Company | None) -> bool:
    return (
        company is not None
        and company.status == CompanyStatus.APPROVED
        and company.menu_published
    )


async def unavailable_product_ids(db: AsyncSession, company_id: UUID) -> set[UUID]:
    """Products with at least one recipe ingredient short of one unit's worth."""
    result = await db.execute(
        select(ProductIngredient.product_id)
        .join(Ingredient, ProductIngredient.ingredient_id == Ingredient.id)
        .where(
            ProductIngredient.company_id == company_id,
            Ingredient.current_stock < ProductIngredient.quantity_per_unit,
        )
        .distinct()
    )
    return set(result.scalars().all())
