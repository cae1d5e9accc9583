"""Unit tests for delivery drivers and driver assignment."""

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
import uuid

import pytest
from fastapi import HTTPException

from app.models.driver import DriverStatus
from app.models.order import OrderStatus, OrderType
from app.schemas.driver import AssignDriverRequest, DriverCreate, DriverUpdate

NOW = datetime(2026, 5, 10, 19, 0, tzinfo=timezone.utc)


def _user(permissions=("order:read", "order:update", "driver:manage")):
    user = MagicMock()
    user.id = uuid.uuid4()
    user.company_id = uuid.uuid4()
    user.permissions = list(permissions)
    return user


def _scalar(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def _rowcount(count):
    result = MagicMock()
    result.rowcount = count
    return result


def _driver(**kw):
    data = dict(
        id=uuid.uuid4(), company_id=uuid.uuid4(), driver_name="Carlos", driver_phone="11988887777",
        vehicle_type="moto", is_active=True, is_available=True, driver_status=DriverStatus.AVAILABLE,
        user_id=None, created_at=NOW,
    )
    data.update(kw)
    return SimpleNamespace(**data)


def _order(status=OrderStatus.READY, order_type=OrderType.DELIVERY, driver_id=None):
    return SimpleNamespace(
        id=uuid.uuid4(), order_number="260510-ABCDEF", status=status, order_type=order_type,
        delivery_driver_id=driver_id,
    )


# ── Driver CRUD ──────────────────────────────────────

@pytest.mark.asyncio
async def test_create_driver_duplicate_phone():
    from app.api.drivers import create_driver

    mock_db = AsyncMock()
    mock_db.execute.return_value = _scalar(uuid.uuid4())

    with pytest.raises(HTTPException) as exc_info:
        await create_driver(DriverCreate(driver_name="Carlos", driver_phone="11988887777"), _user(), mock_db)
    assert exc_info.value.status_code == 409
    mock_db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_create_driver_starts_available():
    from app.api.drivers import create_driver

    def stamp(driver):
        driver.id = uuid.uuid4()
        driver.created_at = NOW

    user = _user()
    mock_db = AsyncMock()
    mock_db.add = MagicMock()
    mock_db.refresh.side_effect = stamp

    result = await create_driver(DriverCreate(driver_name="Carlos", vehicle_type="bike"), user, mock_db)

    assert result.company_id == user.company_id
    assert result.is_available is True
    assert result.driver_status == DriverStatus.AVAILABLE
    mock_db.execute.assert_not_awaited()


def test_create_driver_rejects_unknown_vehicle():
    with pytest.raises(ValueError):
        DriverCreate(driver_name="Carlos", vehicle_type="caminhao")


@pytest.mark.asyncio
async def test_update_driver_going_offline():
    from app.api.drivers import update_driver

    driver = _driver()
    mock_db = AsyncMock()
    mock_db.execute.return_value = _scalar(driver)

    result = await update_driver(driver.id, DriverUpdate(is_available=False), _user(), mock_db)

    assert result.driver_status == DriverStatus.OFFLINE
    mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_update_driver_on_delivery_keeps_status():
    from app.api.drivers import update_driver

    driver = _driver(is_available=False, driver_status=DriverStatus.IN_DELIVERY)
    mock_db = AsyncMock()
    mock_db.execute.return_value = _scalar(driver)

    result = await update_driver(driver.id, DriverUpdate(is_available=True), _user(), mock_db)
    assert result.driver_status == DriverStatus.IN_DELIVERY


@pytest.mark.asyncio
async def test_deactivating_driver_takes_it_offline():
    from app.api.drivers import update_driver

    driver = _driver()
    mock_db = AsyncMock()
    mock_db.execute.return_value = _scalar(driver)

    result = await update_driver(driver.id, DriverUpdate(is_active=False), _user(), mock_db)

    assert result.is_available is False
    assert result.driver_status == DriverStatus.OFFLINE


@pytest.mark.asyncio
async def test_delete_driver_with_active_delivery():
    from app.api.drivers import delete_driver

    driver = _driver()
    active = MagicMock()
    active.scalar_one.return_value = 1
    mock_db = AsyncMock()
    mock_db.execute.side_effect = [_scalar(driver), active]

    with pytest.raises(HTTPException) as exc_info:
        await delete_driver(driver.id, _user(), mock_db)
    assert exc_info.value.status_code == 409
    mock_db.delete.assert_not_awaited()


@pytest.mark.asyncio
async def test_delete_other_company_driver():
    from app.api.drivers import delete_driver

    mock_db = AsyncMock()
    mock_db.execute.return_value = _scalar(None)

    with pytest.raises(HTTPException) as exc_info:
        await delete_driver(uuid.uuid4(), _user(), mock_db)
    assert exc_info.value.status_code == 404


# ── Assignment ───────────────────────────────────────

@pytest.mark.asyncio
async def test_assign_ready_order():
    from app.api.orders import assign_driver

    driver = _driver(user_id=uuid.uuid4())
    order = _order()
    mock_db = AsyncMock()
    mock_db.add = MagicMock()
    mock_db.execute.side_effect = [_scalar(order), _scalar(driver), _rowcount(1)]

    result = await assign_driver(order.id, AssignDriverRequest(driver_id=driver.id), _user(), mock_db)

    assert result.success is True
    assert result.driver_name == "Carlos"
    assert order.status == OrderStatus.AWAITING_DRIVER
    assert order.delivery_driver_id == driver.id
    notification = mock_db.add.call_args[0][0]
    assert notification.user_id == driver.user_id
    assert notification.data["orderId"] == str(order.id)
    mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_assign_rejects_order_not_ready():
    from app.api.orders import assign_driver

    order = _order(status=OrderStatus.PREPARING)
    mock_db = AsyncMock()
    mock_db.execute.return_value = _scalar(order)

    with pytest.raises(HTTPException) as exc_info:
        await assign_driver(order.id, AssignDriverRequest(driver_id=uuid.uuid4()), _user(), mock_db)

    assert exc_info.value.status_code == 400
    assert order.delivery_driver_id is None
    mock_db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_assign_rejects_pickup_order():
    from app.api.orders import assign_driver

    order = _order(order_type=OrderType.PICKUP)
    mock_db = AsyncMock()
    mock_db.execute.return_value = _scalar(order)

    with pytest.raises(HTTPException) as exc_info:
        await assign_driver(order.id, AssignDriverRequest(driver_id=uuid.uuid4()), _user(), mock_db)
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_assign_inactive_driver():
    from app.api.orders import assign_driver

    driver = _driver(is_active=False)
    order = _order()
    mock_db = AsyncMock()
    mock_db.execute.side_effect = [_scalar(order), _scalar(driver)]

    with pytest.raises(HTTPException) as exc_info:
        await assign_driver(order.id, AssignDriverRequest(driver_id=driver.id), _user(), mock_db)
    assert exc_info.value.status_code == 400
    assert order.status == OrderStatus.READY


@pytest.mark.asyncio
async def test_assign_driver_taken_by_another_order():
    from app.api.orders import assign_driver

    driver = _driver()
    order = _order()
    mock_db = AsyncMock()
    mock_db.execute.side_effect = [_scalar(order), _scalar(driver), _rowcount(0)]

    with pytest.raises(HTTPException) as exc_info:
        await assign_driver(order.id, AssignDriverRequest(driver_id=driver.id), _user(), mock_db)

    assert exc_info.value.status_code == 400
    assert order.status == OrderStatus.READY
    mock_db.rollback.assert_awaited_once()
    mock_db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_reassign_releases_previous_driver():
    from app.api.orders import assign_driver

    previous_id = uuid.uuid4()
    driver = _driver()
    order = _order(status=OrderStatus.AWAITING_DRIVER, driver_id=previous_id)
    mock_db = AsyncMock()
    mock_db.add = MagicMock()
    mock_db.execute.side_effect = [_scalar(order), _scalar(driver), _rowcount(1), MagicMock()]

    await assign_driver(order.id, AssignDriverRequest(driver_id=driver.id), _user(), mock_db)

    release = mock_db.execute.await_args_list[3].args[0].compile().params
    assert release["is_available"] is True
    assert release["driver_status"] == DriverStatus.AVAILABLE
    assert order.delivery_driver_id == driver.id
    # driver without a login gets no in-app notification
    mock_db.add.assert_not_called()


@pytest.mark.asyncio
async def test_assign_same_driver_again_skips_claim():
    from app.api.orders import assign_driver

    driver = _driver(is_available=False, driver_status=DriverStatus.PENDING_ACCEPTANCE)
    order = _order(status=OrderStatus.AWAITING_DRIVER, driver_id=driver.id)
    mock_db = AsyncMock()
    mock_db.add = MagicMock()
    mock_db.execute.side_effect = [_scalar(order), _scalar(driver)]

    result = await assign_driver(order.id, AssignDriverRequest(driver_id=driver.id), _user(), mock_db)

    assert result.driver_id == driver.id
    assert mock_db.execute.await_count == 2
    mock_db.commit.assert_awaited_once()
