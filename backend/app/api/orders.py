"""Public checkout and tracking, plus the dashboard order workflow."""

import logging
import secrets
import uuid
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from fastapi.responses import Response
from sqlalchemy import select, func, or_, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.deps import get_current_user, require_permission, company_id_of
from app.db.base import get_db
from app.models.category import Category
from app.models.company import Company
from app.models.customer import Customer
from app.models.driver import DeliveryDriver, DriverStatus
from app.models.lottery import LotterySettings, LotteryTicket
from app.models.order import Order, OrderItem, OrderStatus, OrderType, PaymentMethod, PaymentStatus
from app.models.payment import CompanyPaymentSettings, PaymentTransaction
from app.models.pizza import PizzaCategorySettings
from app.models.product import Product
from app.models.promotion import Coupon, Promotion, PromotionEvent, PromotionEventType
from app.models.table import TableSession, TableSessionStatus
from app.schemas.auth import CurrentUser
from app.schemas.driver import AssignDriverRequest, AssignDriverResponse
from app.schemas.order import (
    CheckoutItem,
    CheckoutRequest,
    CheckoutResponse,
    OrderListResponse,
    OrderResponse,
    OrderItemResponse,
    OrderStatusUpdate,
    OrderTicketResponse,
    OrderTrackingResponse,
    TrackingStep,
)
from app.api.drivers import get_owned_driver
from app.services import order_flow
from app.services.catalog import get_company_by_slug, is_storefront_visible, unavailable_product_ids
from app.services.notifications import notify_user
from app.services.order_ticket import (
    format_ticket_text,
    generate_esc_pos_commands,
    generate_ticket_lines,
    ticket_from_order,
)
from app.services.pricing import (
    CartLine,
    CartOption,
    cart_subtotal,
    checkout_totals,
    coupon_discount,
    discounted_price,
    find_promotion,
    half_half_price,
    lottery_tickets_earned,
    promotion_applies_to_size,
    resolve_base_price,
    to_money,
    validate_coupon,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])

DRIVER_ASSIGNABLE_STATUSES = (OrderStatus.READY, OrderStatus.AWAITING_DRIVER)


def generate_order_number() -> str:
    """Short, human-readable and unique enough to read out over the phone."""
    return f"{datetime.now(timezone.utc):%y%m%d}-{secrets.token_hex(3).upper()}"


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


# ---------------------------------------------------------------------------
# Server-side cart pricing
# ---------------------------------------------------------------------------


def price_cart(
    items: list[CheckoutItem],
    products: dict[UUID, Product],
    categories: dict[UUID, Category],
    promotions: list[Promotion],
    pizza_settings: dict[UUID, PizzaCategorySettings],
    now: datetime,
) -> list[dict]:
    """
    Price every checkout line from catalog data, ignoring client prices.

    Returns one dict per line with the ``CartLine`` used for totals, the
    ``OrderItem`` fields and the promotion that was applied (if any).
    """
    priced = []
    for item in items:
        product = products.get(item.product_id)
        if product is None or not product.is_active:
            raise _bad_request(f"Produto indisponível: {item.product_id}")

        options_by_id = {o.id: o for o in product.options}
        chosen = []
        for option_id in item.option_ids:
            option = options_by_id.get(option_id)
            if option is None or not option.is_available:
                raise _bad_request(f"Opção inválida para {product.name}")
            chosen.append(option)
        size = next((o for o in chosen if o.is_size), None)
        size_id = size.id if size else None
        cart_options = [
            CartOption(name=o.name, group_name=o.group_name, price_modifier=o.price_modifier) for o in chosen
        ]
        stored_options = [
            {"name": o.name, "group_name": o.group_name, "price_modifier": str(o.price_modifier)} for o in chosen
        ]

        def unit_price_of(p: Product) -> tuple[Decimal, Promotion | None]:
            category = categories.get(p.category_id) if p.category_id else None
            base = resolve_base_price(p.price, category.base_price if category else None)
            promo = find_promotion(p.id, p.category_id, promotions, now)
            if promo is not None and not promotion_applies_to_size(promo, size_id):
                promo = None
            if p.promotional_price is not None and p.promotional_price > 0:
                promo = None
            return discounted_price(base, p.promotional_price, promo), promo

        if item.flavor_product_ids:
            line, promotion_id, name, notes = _price_half_half(
                item, product, products, categories, pizza_settings, unit_price_of, cart_options, size
            )
        else:
            unit, promo = unit_price_of(product)
            line = CartLine(
                product_id=product.id,
                name=product.name,
                price=unit,
                quantity=item.quantity,
                options=cart_options,
            )
            promotion_id = promo.id if promo else None
            name, notes = product.name, item.notes

        priced.append({
            "line": line,
            "promotion_id": promotion_id,
            "item": {
                "product_id": product.id,
                "product_name": name,
                "quantity": item.quantity,
                "unit_price": to_money(line.unit_total),
                "total_price": to_money(line.line_total),
                "options": stored_options,
                "notes": notes,
                "requires_preparation": product.requires_preparation,
                "promotion_id": promotion_id,
            },
        })
    return priced


def _price_half_half(item, product, products, categories, pizza_settings, unit_price_of, cart_options, size):
    pizza = pizza_settings.get(product.category_id) if product.category_id else None
    if pizza is None or not pizza.allow_half_half:
        raise _bad_request(f"{product.name} não aceita meio a meio")

    flavor_ids = [product.id, *item.flavor_product_ids]
    if len(flavor_ids) != pizza.max_flavors:
        raise _bad_request(f"Selecione {pizza.max_flavors} sabores para montar a pizza")
    if not pizza.allow_repeated_flavors and len(set(flavor_ids)) != len(flavor_ids):
        raise _bad_request("Sabores repetidos não são permitidos")

    flavors = []
    for flavor_id in flavor_ids:
        flavor = products.get(flavor_id)
        if flavor is None or not flavor.is_active:
            raise _bad_request(f"Sabor indisponível: {flavor_id}")
        if flavor.category_id != product.category_id:
            raise _bad_request("Todos os sabores devem ser da mesma categoria")
        flavors.append(flavor)

    category = categories.get(product.category_id)
    unit = half_half_price(
        [unit_price_of(f)[0] for f in flavors],
        rule=pizza.half_half_pricing_rule,
        max_flavors=pizza.max_flavors,
        size_base_price=(category.base_price if category and category.base_price else Decimal("0")),
        discount_percentage=pizza.half_half_discount_percentage,
        options_total=sum((o.price_modifier for o in cart_options), Decimal("0")),
        quantity=1,
    )
    line = CartLine(product_id=product.id, name=product.name, price=unit, quantity=item.quantity)
    size_text = f" - {size.name}" if size else ""
    notes = "Sabores: " + " + ".join(f.name for f in flavors)
    if item.notes:
        notes = f"{notes} | {item.notes}"
    return line, None, f"Pizza Meio a Meio{size_text}", notes


def _payment_accepted(payment_settings: CompanyPaymentSettings | None, method: PaymentMethod) -> bool:
    if payment_settings is None:
        return method in (PaymentMethod.CASH, PaymentMethod.CARD_ON_DELIVERY)
    return {
        PaymentMethod.CASH: payment_settings.accepts_cash,
        PaymentMethod.CARD_ON_DELIVERY: payment_settings.accepts_card_on_delivery,
        PaymentMethod.PIX: payment_settings.accepts_pix,
        PaymentMethod.ONLINE: payment_settings.online_gateway is not None,
    }[method]


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/checkout", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED)
async def checkout(body: CheckoutRequest, db: AsyncSession = Depends(get_db)):
    """Place an order from a storefront cart. Prices are recomputed server-side."""
    company = await get_company_by_slug(db, body.company_slug)
    if not is_storefront_visible(company):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Estabelecimento não encontrado")
    if not company.is_open:
        raise _bad_request("O estabelecimento está fechado no momento")

    now = datetime.now(timezone.utc)

    payment_settings = (await db.execute(
        select(CompanyPaymentSettings).where(CompanyPaymentSettings.company_id == company.id)
    )).scalar_one_or_none()
    if not _payment_accepted(payment_settings, body.payment_method):
        raise _bad_request("Forma de pagamento não aceita por este estabelecimento")

    # Catalog
    wanted = {i.product_id for i in body.items} | {f for i in body.items for f in i.flavor_product_ids}
    products = {
        p.id: p for p in (await db.execute(
            select(Product).where(Product.id.in_(wanted), Product.company_id == company.id)
        )).scalars().all()
    }
    unavailable = await unavailable_product_ids(db, company.id)
    blocked = [products[pid].name for pid in wanted if pid in unavailable and pid in products]
    if blocked:
        raise _bad_request(f"Produto sem estoque: {', '.join(sorted(blocked))}")

    categories = {
        c.id: c for c in (await db.execute(
            select(Category).where(Category.company_id == company.id)
        )).scalars().all()
    }
    promotions = list((await db.execute(
        select(Promotion).where(
            Promotion.company_id == company.id,
            Promotion.is_active.is_(True),
            or_(Promotion.expires_at.is_(None), Promotion.expires_at > now),
        )
    )).scalars().all())
    pizza_settings = {
        s.category_id: s for s in (await db.execute(
            select(PizzaCategorySettings).where(PizzaCategorySettings.company_id == company.id)
        )).scalars().all()
    }

    priced = price_cart(body.items, products, categories, promotions, pizza_settings, now)
    subtotal = cart_subtotal(p["line"] for p in priced)

    # Coupon
    coupon = None
    discount = Decimal("0.00")
    if body.coupon_code:
        coupon = (await db.execute(
            select(Coupon).where(
                Coupon.company_id == company.id,
                Coupon.code == body.coupon_code.strip().upper(),
            )
        )).scalar_one_or_none()
        error = validate_coupon(coupon, subtotal, now)
        if error:
            raise _bad_request(error)
        discount = coupon_discount(coupon, subtotal)

    if (
        body.order_type == OrderType.DELIVERY
        and company.min_order_value
        and subtotal < company.min_order_value
    ):
        raise _bad_request(f"Pedido mínimo de R$ {to_money(company.min_order_value):.2f} para entrega")

    # Table session
    table_session = None
    if body.table_session_token:
        table_session = (await db.execute(
            select(TableSession).where(
                TableSession.session_token == body.table_session_token,
                TableSession.company_id == company.id,
            )
        )).scalar_one_or_none()
        if table_session is None:
            raise _bad_request("Mesa não encontrada")
        if table_session.status != TableSessionStatus.OPEN:
            raise _bad_request("Esta mesa já foi fechada")

    # Customer, by phone
    customer = (await db.execute(
        select(Customer).where(Customer.phone == body.customer_phone)
    )).scalar_one_or_none()
    if customer is None:
        customer = Customer(
            id=uuid.uuid4(),
            name=body.customer_name,
            phone=body.customer_phone,
            email=body.customer_email.lower() if body.customer_email else None,
            address=body.delivery_address,
        )
        db.add(customer)
    elif body.customer_email and not customer.email:
        customer.email = body.customer_email.lower()

    totals = checkout_totals(
        subtotal,
        discount,
        company.delivery_fee,
        is_table=body.order_type != OrderType.DELIVERY,
    )
    minutes = company.estimated_delivery_minutes or settings.DEFAULT_DELIVERY_MINUTES

    order = Order(
        id=uuid.uuid4(),
        order_number=generate_order_number(),
        status=OrderStatus.PENDING,
        order_type=body.order_type,
        payment_method=body.payment_method,
        payment_status=PaymentStatus.PENDING,
        **totals,
        coupon_code=coupon.code if coupon else None,
        customer_name=body.customer_name,
        customer_phone=body.customer_phone,
        customer_email=body.customer_email,
        delivery_address=body.delivery_address if body.order_type == OrderType.DELIVERY else None,
        change_for=body.change_for,
        note=body.note,
        estimated_delivery_time=now + timedelta(minutes=minutes),
        company_id=company.id,
        customer_id=customer.id,
        table_session_id=table_session.id if table_session else None,
    )
    order.items = [OrderItem(**p["item"]) for p in priced]
    db.add(order)

    if coupon is not None:
        # Claim a use only while the cap still holds
        claimed = await db.execute(
            update(Coupon)
            .where(
                Coupon.id == coupon.id,
                Coupon.max_uses.is_(None) | (Coupon.current_uses < Coupon.max_uses),
            )
            .values(current_uses=Coupon.current_uses + 1)
        )
        if claimed.rowcount == 0:
            await db.rollback()
            raise _bad_request("Este cupom atingiu o limite de uso")

    # Lottery tickets
    lottery = (await db.execute(
        select(LotterySettings).where(LotterySettings.company_id == company.id)
    )).scalar_one_or_none()
    tickets = lottery_tickets_earned(lottery, totals["subtotal"])
    if tickets > 0:
        db.add(LotteryTicket(
            company_id=company.id,
            customer_id=customer.id,
            order_id=order.id,
            quantity=tickets,
        ))

    # Promotion conversions, one event per promotion
    revenue_by_promotion: dict[UUID, Decimal] = defaultdict(Decimal)
    for p in priced:
        if p["promotion_id"]:
            revenue_by_promotion[p["promotion_id"]] += p["line"].line_total
    for promotion_id, revenue in revenue_by_promotion.items():
        db.add(PromotionEvent(
            event_type=PromotionEventType.CONVERSION,
            promotion_id=promotion_id,
            company_id=company.id,
            order_id=order.id,
            session_id=body.promotion_session_id,
            revenue=to_money(revenue),
        ))

    payment_reference = None
    if body.payment_method == PaymentMethod.ONLINE:
        transaction = PaymentTransaction(
            id=uuid.uuid4(),
            amount=totals["total"],
            gateway=payment_settings.online_gateway,
            company_id=company.id,
            order_id=order.id,
        )
        db.add(transaction)
        payment_reference = transaction.id

    await db.commit()
    await db.refresh(order)
    logger.info(
        "Order %s placed at %s: total=%s tickets=%d", order.order_number, company.slug, order.total, tickets
    )

    return CheckoutResponse(
        order=OrderResponse.model_validate(order),
        tickets_earned=tickets,
        payment_reference=payment_reference,
    )


@router.get("/track/{order_id}", response_model=OrderTrackingResponse)
async def track_order(order_id: UUID, db: AsyncSession = Depends(get_db)):
    """Public order status; clients stop polling once ``is_final`` is true."""
    order = await db.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pedido não encontrado")
    company = await db.get(Company, order.company_id)

    return OrderTrackingResponse(
        id=order.id,
        order_number=order.order_number,
        status=order.status,
        display_status=order_flow.display_status(order.status),
        order_type=order.order_type,
        payment_status=order.payment_status,
        payment_method=order.payment_method,
        items=[OrderItemResponse.model_validate(i) for i in order.items],
        subtotal=order.subtotal,
        discount_amount=order.discount_amount,
        delivery_fee=order.delivery_fee,
        total=order.total,
        estimated_delivery_time=order.estimated_delivery_time,
        steps=[TrackingStep(**s) for s in order_flow.tracking_steps(order.order_type, order.status)],
        progress=order_flow.progress_percent(order.order_type, order.status),
        is_final=order.is_final,
        company_name=company.name if company else "",
        created_at=order.created_at,
    )


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


async def _get_owned_order(db: AsyncSession, order_id: UUID, company_id: UUID) -> Order:
    result = await db.execute(
        select(Order).where(Order.id == order_id, Order.company_id == company_id)
    )
    order = result.scalar_one_or_none()
    if not order:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Order not found",
        )
    return order


@router.get("", response_model=OrderListResponse)
async def list_orders(
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100),
    status_filter: OrderStatus | None = None,
    order_type: OrderType | None = None,
    from_date: datetime | None = None,
    to_date: datetime | None = None,
    current_user: CurrentUser = Depends(require_permission("order:read")),
    db: AsyncSession = Depends(get_db),
):
    """List orders with pagination and optional filters."""
    offset = (page - 1) * size

    query = select(Order).where(Order.company_id == company_id_of(current_user))

    if status_filter:
        query = query.where(Order.status == status_filter)
    if order_type:
        query = query.where(Order.order_type == order_type)
    if from_date:
        query = query.where(Order.created_at >= from_date)
    if to_date:
        query = query.where(Order.created_at <= to_date)

    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar_one()

    query = query.offset(offset).limit(size).order_by(Order.created_at.desc())
    result = await db.execute(query)
    orders = result.scalars().all()

    return OrderListResponse(
        items=[OrderResponse.model_validate(o) for o in orders],
        total=total,
        page=page,
        size=size,
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: UUID,
    current_user: CurrentUser = Depends(require_permission("order:read")),
    db: AsyncSession = Depends(get_db),
):
    order = await _get_owned_order(db, order_id, company_id_of(current_user))
    return OrderResponse.model_validate(order)


@router.post("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: UUID,
    body: OrderStatusUpdate,
    current_user: CurrentUser = Depends(require_permission("order:update")),
    db: AsyncSession = Depends(get_db),
):
    """Advance an order through the workflow. Cancelling also needs order:cancel."""
    if body.status == OrderStatus.CANCELLED and "order:cancel" not in current_user.permissions:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Missing permissions: order:cancel",
        )

    order = await _get_owned_order(db, order_id, company_id_of(current_user))

    if not order_flow.can_transition(order.order_type, order.status, body.status):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot change order from {order.status.value} to {body.status.value}",
        )

    previous = order.status
    order.status = body.status
    if body.status == OrderStatus.CANCELLED:
        order.cancellation_reason = body.cancellation_reason
    await _sync_driver(db, order)
    await db.commit()
    await db.refresh(order)

    logger.info("Order %s: %s -> %s", order.order_number, previous.value, order.status.value)
    return OrderResponse.model_validate(order)


async def _sync_driver(db: AsyncSession, order: Order) -> None:
    """Keep the assigned driver's state in step with the delivery."""
    if order.delivery_driver_id is None:
        return
    if order.status == OrderStatus.OUT_FOR_DELIVERY:
        values = {"is_available": False, "driver_status": DriverStatus.IN_DELIVERY}
    elif order.status in (OrderStatus.DELIVERED, OrderStatus.CANCELLED):
        values = {"is_available": True, "driver_status": DriverStatus.AVAILABLE}
    else:
        return
    await db.execute(
        update(DeliveryDriver)
        .where(DeliveryDriver.id == order.delivery_driver_id, DeliveryDriver.is_active.is_(True))
        .values(**values)
    )


@router.post("/{order_id}/assign-driver", response_model=AssignDriverResponse)
async def assign_driver(
    order_id: UUID,
    body: AssignDriverRequest,
    current_user: CurrentUser = Depends(require_permission("order:update")),
    db: AsyncSession = Depends(get_db),
):
    """Hand a ready delivery order to a driver; it waits for the driver to pick it up."""
    company_id = company_id_of(current_user)
    order = await _get_owned_order(db, order_id, company_id)
    if order.order_type != OrderType.DELIVERY:
        raise _bad_request("Apenas pedidos de entrega recebem entregador")
    if order.status not in DRIVER_ASSIGNABLE_STATUSES:
        raise _bad_request("Status inválido para atribuição")

    driver = await get_owned_driver(db, body.driver_id, company_id)
    if not driver.is_active:
        raise _bad_request("Entregador inativo")

    previous_driver_id = order.delivery_driver_id
    if previous_driver_id != driver.id:
        # Claim the driver only while still free, so two orders cannot take the same one
        claimed = await db.execute(
            update(DeliveryDriver)
            .where(
                DeliveryDriver.id == driver.id,
                DeliveryDriver.is_available.is_(True),
                DeliveryDriver.driver_status != DriverStatus.IN_DELIVERY,
            )
            .values(is_available=False, driver_status=DriverStatus.PENDING_ACCEPTANCE)
        )
        if claimed.rowcount == 0:
            await db.rollback()
            raise _bad_request("Entregador indisponível no momento")
        if previous_driver_id is not None:
            await db.execute(
                update(DeliveryDriver)
                .where(DeliveryDriver.id == previous_driver_id, DeliveryDriver.company_id == company_id)
                .values(is_available=True, driver_status=DriverStatus.AVAILABLE)
            )

    order.delivery_driver_id = driver.id
    order.status = OrderStatus.AWAITING_DRIVER
    if driver.user_id:
        notify_user(
            db, driver.user_id,
            "Nova entrega disponível",
            f"Pedido #{order.order_number}",
            data={"orderId": str(order.id), "companyId": str(company_id)},
        )
    await db.commit()

    logger.info("Order %s assigned to driver %s", order.order_number, driver.driver_name)
    return AssignDriverResponse(
        order_id=order.id,
        driver_id=driver.id,
        driver_name=driver.driver_name,
        message="Pedido atribuído ao entregador",
    )


async def _ticket_data(db: AsyncSession, order: Order):
    company = await db.get(Company, order.company_id)
    table_name = None
    if order.table_session_id:
        session = await db.get(TableSession, order.table_session_id)
        if session is not None:
            table = await session.awaitable_attrs.table
            table_name = table.display_name
    return ticket_from_order(order, company, table_name)


@router.get("/{order_id}/ticket", response_model=OrderTicketResponse)
async def get_order_ticket(
    order_id: UUID,
    current_user: CurrentUser = Depends(require_permission("order:read")),
    db: AsyncSession = Depends(get_db),
):
    """Printable comanda as text lines."""
    order = await _get_owned_order(db, order_id, company_id_of(current_user))
    data = await _ticket_data(db, order)
    return OrderTicketResponse(
        order_id=order.id,
        order_number=order.order_number,
        lines=[line.text for line in generate_ticket_lines(data)],
        text=format_ticket_text(data),
    )


@router.get("/{order_id}/ticket/escpos")
async def get_order_ticket_escpos(
    order_id: UUID,
    current_user: CurrentUser = Depends(require_permission("order:read")),
    db: AsyncSession = Depends(get_db),
):
    """Raw ESC/POS bytes for thermal printers."""
    order = await _get_owned_order(db, order_id, company_id_of(current_user))
    data = await _ticket_data(db, order)
    return Response(
        content=generate_esc_pos_commands(data),
        media_type="application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="comanda-{order.order_number}.bin"'},
    )
