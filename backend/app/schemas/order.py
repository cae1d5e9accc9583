"""Order, checkout and tracking schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict, model_validator

from app.models.order import OrderStatus, OrderType, PaymentMethod, PaymentStatus


# ── Checkout (public) ──
class CheckoutItem(BaseModel):
    product_id: UUID
    quantity: int = Field(..., gt=0)
    option_ids: list[UUID] = Field(default_factory=list)
    # Extra flavors for half/half pizzas; product_id is the first flavor
    flavor_product_ids: list[UUID] = Field(default_factory=list)
    notes: str | None = Field(None, max_length=500)


class CheckoutRequest(BaseModel):
    company_slug: str
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_phone: str = Field(..., min_length=8, max_length=20)
    customer_email: str | None = None
    order_type: OrderType = OrderType.DELIVERY
    payment_method: PaymentMethod
    delivery_address: str | None = None
    change_for: Decimal | None = Field(None, ge=0)
    note: str | None = Field(None, max_length=1000)
    coupon_code: str | None = None
    table_session_token: str | None = None
    promotion_session_id: str | None = None
    items: list[CheckoutItem] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_order_type(self):
        if self.order_type == OrderType.DELIVERY and not self.delivery_address:
            raise ValueError("delivery_address is required for delivery orders")
        if self.order_type == OrderType.TABLE and not self.table_session_token:
            raise ValueError("table_session_token is required for table orders")
        return self


# ── Order ──
class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    product_id: UUID | None
    product_name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    options: list[dict] | None = None
    notes: str | None = None
    promotion_id: UUID | None = None


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_number: str
    status: OrderStatus
    order_type: OrderType
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    subtotal: Decimal
    discount_amount: Decimal
    delivery_fee: Decimal
    total: Decimal
    coupon_code: str | None
    customer_name: str
    customer_phone: str
    delivery_address: str | None
    change_for: Decimal | None
    note: str | None
    estimated_delivery_time: datetime | None
    cancellation_reason: str | None
    company_id: UUID
    customer_id: UUID | None
    table_session_id: UUID | None
    delivery_driver_id: UUID | None = None
    items: list[OrderItemResponse]
    created_at: datetime
    updated_at: datetime


class CheckoutResponse(BaseModel):
    order: OrderResponse
    tickets_earned: int = 0
    # Merchant reference for online payments; the gateway echoes it back on the webhook
    payment_reference: UUID | None = None


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    total: int
    page: int
    size: int


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    cancellation_reason: str | None = Field(None, max_length=500)


# ── Tracking (public) ──
class TrackingStep(BaseModel):
    status: OrderStatus
    label: str
    completed: bool
    current: bool


class OrderTrackingResponse(BaseModel):
    id: UUID
    order_number: str
    status: OrderStatus
    display_status: OrderStatus
    order_type: OrderType
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    items: list[OrderItemResponse]
    subtotal: Decimal
    discount_amount: Decimal
    delivery_fee: Decimal
    total: Decimal
    estimated_delivery_time: datetime | None
    steps: list[TrackingStep]
    progress: int
    is_final: bool
    company_name: str
    created_at: datetime


class OrderTicketResponse(BaseModel):
    order_id: UUID
    order_number: str
    lines: list[str]
    text: str
