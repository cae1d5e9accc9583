"""Product CRUD, option groups and image upload. Every write is pushed to the menu change feed."""

import logging
import uuid
from pathlib import Path
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, UploadFile, File, status
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.deps import get_current_user, require_permission, company_id_of
from app.db.base import get_db
from app.models.category import Category
from app.models.product import Product, ProductOption
from app.schemas.auth import CurrentUser
from app.schemas.product import (
    ProductCreate, ProductUpdate, ProductResponse, ProductListResponse,
)
from app.services.menu_sync import ChangeType, ProductChange, product_change_broker, product_payload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])

UPLOAD_DIR = Path(settings.UPLOAD_DIR) / "products"
UPLOAD_DIR.mkdir(parents=True, exist_ok=True)

# Max upload size in bytes
MAX_UPLOAD_BYTES = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp"}


def _escape_like(s: str) -> str:
    """Escape SQL LIKE wildcards in user input."""
    return s.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _publish(event_type: ChangeType, product: Product) -> None:
    delivered = product_change_broker.publish(
        ProductChange(
            event_type=event_type,
            company_id=product.company_id,
            product_id=product.id,
            new={} if event_type == ChangeType.DELETE else product_payload(product),
        )
    )
    logger.debug("Product %s %s delivered to %d menus", product.id, event_type.value, delivered)


async def _get_owned_product(db: AsyncSession, product_id: UUID, company_id: UUID) -> Product:
    result = await db.execute(
        select(Product).where(Product.id == product_id, Product.company_id == company_id)
    )
    product = result.scalar_one_or_none()
    if not product:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Product not found")
    return product


async def _check_category(db: AsyncSession, category_id: UUID | None, company_id: UUID) -> None:
    if category_id is None:
        return
    result = await db.execute(
        select(Category.id).where(Category.id == category_id, Category.company_id == company_id)
    )
    if result.scalar_one_or_none() is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Category not found")


@router.get("", response_model=ProductListResponse)
async def list_products(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    category_id: UUID | None = None,
    search: str | None = None,
    is_active: bool | None = None,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    company_id = company_id_of(current_user)
    query = select(Product).where(Product.company_id == company_id)
    count_query = select(func.count(Product.id)).where(Product.company_id == company_id)

    if is_active is not None:
        query = query.where(Product.is_active == is_active)
        count_query = count_query.where(Product.is_active == is_active)
    if category_id:
        query = query.where(Product.category_id == category_id)
        count_query = count_query.where(Product.category_id == category_id)
    if search:
        like = f"%{_escape_like(search)}%"
        query = query.where(Product.name.ilike(like))
        count_query = count_query.where(Product.name.ilike(like))

    total = (await db.execute(count_query)).scalar() or 0
    offset = (page - 1) * size
    query = query.offset(offset).limit(size).order_by(Product.sort_order, Product.name)

    result = await db.execute(query)
    items = result.scalars().all()

    return ProductListResponse(
        items=[ProductResponse.model_validate(p) for p in items],
        total=total,
        page=page,
        size=size,
    )


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    product = await _get_owned_product(db, product_id, company_id_of(current_user))
    return ProductResponse.model_validate(product)


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    data: ProductCreate,
    current_user: CurrentUser = Depends(require_permission("product:create")),
    db: AsyncSession = Depends(get_db),
):
    company_id = company_id_of(current_user)
    await _check_category(db, data.category_id, company_id)

    fields = data.model_dump(exclude={"options"})
    product = Product(**fields, company_id=company_id)
    product.options = [ProductOption(**opt.model_dump()) for opt in data.options]
    db.add(product)
    await db.commit()
    await db.refresh(product)

    _publish(ChangeType.INSERT, product)
    return ProductResponse.model_validate(product)


@router.patch("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: UUID,
    data: ProductUpdate,
    current_user: CurrentUser = Depends(require_permission("product:update")),
    db: AsyncSession = Depends(get_db),
):
    company_id = company_id_of(current_user)
    product = await _get_owned_product(db, product_id, company_id)

    update_data = data.model_dump(exclude_unset=True, exclude={"options"})
    if "category_id" in update_data:
        await _check_category(db, update_data["category_id"], company_id)

    for key, value in update_data.items():
        setattr(product, key, value)

    if data.options is not None:
        product.options = [ProductOption(**opt.model_dump()) for opt in data.options]

    await db.commit()
    await db.refresh(product)

    _publish(ChangeType.UPDATE, product)
    return ProductResponse.model_validate(product)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: UUID,
    current_user: CurrentUser = Depends(require_permission("product:delete")),
    db: AsyncSession = Depends(get_db),
):
    product = await _get_owned_product(db, product_id, company_id_of(current_user))
    await db.delete(product)
    await db.commit()

    _publish(ChangeType.DELETE, product)


@router.post("/{product_id}/image", response_model=ProductResponse)
async def upload_product_image(
    product_id: UUID,
    file: UploadFile = File(...),
    current_user: CurrentUser = Depends(require_permission("product:update")),
    db: AsyncSession = Depends(get_db),
):
    product = await _get_owned_product(db, product_id, company_id_of(current_user))

    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(400, f"File type not allowed. Use: {', '.join(sorted(ALLOWED_IMAGE_TYPES))}")

    # Check Content-Length header first (if available) to reject early
    if file.size and file.size > MAX_UPLOAD_BYTES:
        raise HTTPException(400, f"File too large. Max {settings.MAX_UPLOAD_SIZE_MB}MB")

    # Read in chunks to limit memory usage
    chunks = []
    total_size = 0
    while True:
        chunk = await file.read(64 * 1024)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > MAX_UPLOAD_BYTES:
            raise HTTPException(400, f"File too large. Max {settings.MAX_UPLOAD_SIZE_MB}MB")
        chunks.append(chunk)
    content = b"".join(chunks)

    ext = file.filename.rsplit(".", 1)[-1].lower() if file.filename and "." in file.filename else "jpg"
    filename = f"{product_id}_{uuid.uuid4().hex[:8]}.{ext}"
    filepath = UPLOAD_DIR / filename
    filepath.write_bytes(content)

    # Delete old image if it was one of ours
    if product.image_url and product.image_url.startswith("/uploads/products/"):
        old_path = UPLOAD_DIR / product.image_url.rsplit("/", 1)[-1]
        old_path.unlink(missing_ok=True)

    product.image_url = f"/uploads/products/{filename}"
    await db.commit()
    await db.refresh(product)

    _publish(ChangeType.UPDATE, product)
    return ProductResponse.model_validate(product)
