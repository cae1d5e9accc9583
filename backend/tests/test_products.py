"""Unit tests for Product Management API."""

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch
import uuid

import pytest
from fastapi import HTTPException

from app.schemas.product import ProductCreate, ProductUpdate
from app.services.menu_sync import ChangeType


def _user():
    user = MagicMock()
    user.id = uuid.uuid4()
    user.company_id = uuid.uuid4()
    return user


def _product(company_id, **overrides):
    now = datetime.now(timezone.utc)
    product = MagicMock()
    product.id = uuid.uuid4()
    product.company_id = company_id
    product.name = "Pizza Calabresa"
    product.description = None
    product.price = Decimal("45.00")
    product.promotional_price = None
    product.image_url = None
    product.is_active = True
    product.requires_preparation = True
    product.sort_order = 0
    product.category_id = None
    product.options = []
    product.created_at = now
    product.updated_at = now
    for key, value in overrides.items():
        setattr(product, key, value)
    return product


def _scalar(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


# ── Validation ─────────────────────────────────────

def test_product_create_rejects_negative_price():
    with pytest.raises(ValueError):
        ProductCreate(name="Suco", price=Decimal("-1.00"))


def test_product_update_options_default_to_untouched():
    assert ProductUpdate(name="Novo").options is None


# ── Endpoints ──────────────────────────────────────

@pytest.mark.asyncio
async def test_create_product_with_foreign_category():
    """A category owned by another company is reported as missing."""
    from app.api.products import create_product

    mock_db = AsyncMock()
    mock_db.execute.return_value = _scalar(None)

    with pytest.raises(HTTPException) as exc_info:
        await create_product(
            ProductCreate(name="Pizza", price=Decimal("40.00"), category_id=uuid.uuid4()),
            _user(),
            mock_db,
        )

    assert exc_info.value.status_code == 404
    mock_db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_get_product_not_found():
    from app.api.products import get_product

    mock_db = AsyncMock()
    mock_db.execute.return_value = _scalar(None)

    with pytest.raises(HTTPException) as exc_info:
        await get_product(product_id=uuid.uuid4(), current_user=_user(), db=mock_db)
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_update_product_publishes_change():
    from app.api.products import update_product

    user = _user()
    product = _product(user.company_id)
    mock_db = AsyncMock()
    mock_db.execute.return_value = _scalar(product)

    with patch("app.api.products.product_change_broker") as broker:
        response = await update_product(
            product.id, ProductUpdate(price=Decimal("50.00")), user, mock_db
        )

    assert product.price == Decimal("50.00")
    assert response.price == Decimal("50.00")
    change = broker.publish.call_args.args[0]
    assert change.event_type == ChangeType.UPDATE
    assert change.new["price"] == "50.00"


@pytest.mark.asyncio
async def test_delete_product_publishes_delete():
    from app.api.products import delete_product

    user = _user()
    product = _product(user.company_id)
    mock_db = AsyncMock()
    mock_db.execute.return_value = _scalar(product)

    with patch("app.api.products.product_change_broker") as broker:
        await delete_product(product_id=product.id, current_user=user, db=mock_db)

    mock_db.delete.assert_awaited_once_with(product)
    change = broker.publish.call_args.args[0]
    assert change.event_type == ChangeType.DELETE
    assert change.new == {}
    assert change.company_id == user.company_id


def test_escape_like():
    from app.api.products import _escape_like

    assert _escape_like("50%_off") == "50\\%\\_off"
