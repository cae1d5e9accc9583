"""Delivery driver management for the store dashboard."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_user, require_permission, company_id_of
from app.db.base import get_db
from app.models.driver import DeliveryDriver, DriverStatus
from app.models.order import Order, OrderStatus
from app.schemas.auth import CurrentUser
from app.schemas.driver import DriverCreate, DriverResponse, DriverUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/drivers", tags=["drivers"])

# Orders a driver is still responsible for
ACTIVE_DELIVERY_STATUSES = (OrderStatus.AWAITING_DRIVER, OrderStatus.OUT_FOR_DELIVERY)


async def get_owned_driver(db: AsyncSession, driver_id: UUID, company_id: UUID) -> DeliveryDriver:
    result = await db.execute(
        select(DeliveryDriver).where(
            DeliveryDriver.id == driver_id,
            DeliveryDriver.company_id == company_id,
        )
    )
    driver = result.scalar_one_or_none()
    if not driver:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entregador não encontrado")
    return driver


@router.get("", response_model=list[DriverResponse])
async def list_drivers(
    available_only: bool = False,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    query = select(DeliveryDriver).where(DeliveryDriver.company_id == company_id_of(current_user))
    if available_only:
        query = query.where(DeliveryDriver.is_active.is_(True), DeliveryDriver.is_available.is_(True))
    result = await db.execute(query.order_by(DeliveryDriver.driver_name))
    return [DriverResponse.model_validate(d) for d in result.scalars().all()]


@router.post("", response_model=DriverResponse, status_code=status.HTTP_201_CREATED)
async def create_driver(
    body: DriverCreate,
    current_user: CurrentUser = Depends(require_permission("driver:manage")),
    db: AsyncSession = Depends(get_db),
):
    company_id = company_id_of(current_user)
    if body.driver_phone:
        existing = await db.execute(
            select(DeliveryDriver.id).where(
                DeliveryDriver.company_id == company_id,
                DeliveryDriver.driver_phone == body.driver_phone,
            )
        )
        if existing.scalar_one_or_none():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"A driver with phone {body.driver_phone} already exists",
            )

    driver = DeliveryDriver(
        **body.model_dump(),
        is_active=True,
        is_available=True,
        driver_status=DriverStatus.AVAILABLE,
        company_id=company_id,
    )
    db.add(driver)
    await db.commit()
    await db.refresh(driver)
    logger.info("Driver %s added to company %s", driver.driver_name, company_id)
    return DriverResponse.model_validate(driver)


@router.patch("/{driver_id}", response_model=DriverResponse)
async def update_driver(
    driver_id: UUID,
    body: DriverUpdate,
    current_user: CurrentUser = Depends(require_permission("driver:manage")),
    db: AsyncSession = Depends(get_db),
):
    driver = await get_owned_driver(db, driver_id, company_id_of(current_user))
    update_data = body.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(driver, field, value)

    # Availability toggles only move idle drivers; a driver on a delivery keeps its status
    if "is_available" in update_data and driver.driver_status != DriverStatus.IN_DELIVERY:
        driver.driver_status = DriverStatus.AVAILABLE if driver.is_available else DriverStatus.OFFLINE
    if update_data.get("is_active") is False:
        driver.is_available = False
        driver.driver_status = DriverStatus.OFFLINE

    await db.commit()
    await db.refresh(driver)
    return DriverResponse.model_validate(driver)


@router.delete("/{driver_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_driver(
    driver_id: UUID,
    current_user: CurrentUser = Depends(require_permission("driver:manage")),
    db: AsyncSession = Depends(get_db),
):
    driver = await get_owned_driver(db, driver_id, company_id_of(current_user))

    active = await db.execute(
        select(func.count(Order.id)).where(
            Order.delivery_driver_id == driver.id,
            Order.status.in_(ACTIVE_DELIVERY_STATUSES),
        )
    )
    if active.scalar_one() > 0:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Driver has deliveries in progress",
        )

    await db.delete(driver)
    await db.commit()
