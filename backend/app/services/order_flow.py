"""Order status workflow and customer-facing tracking steps."""

from app.models.order import OrderStatus, OrderType

S = OrderStatus

DELIVERY_STEPS = [S.PENDING, S.CONFIRMED, S.PREPARING, S.READY, S.OUT_FOR_DELIVERY, S.DELIVERED]
TABLE_STEPS = [S.PENDING, S.CONFIRMED, S.PREPARING, S.READY, S.DELIVERED]

FINAL_STATUSES = frozenset({S.DELIVERED, S.CANCELLED})

# Forward moves; cancellation is allowed from any non-final status
TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = {
    S.PENDING: {S.CONFIRMED},
    S.CONFIRMED: {S.PREPARING},
    S.PREPARING: {S.READY},
    S.READY: {S.AWAITING_DRIVER, S.OUT_FOR_DELIVERY, S.DELIVERED},
    S.AWAITING_DRIVER: {S.OUT_FOR_DELIVERY},
    S.OUT_FOR_DELIVERY: {S.DELIVERED},
}

LABELS = {
    S.PENDING: "Aguardando confirmação",
    S.CONFIRMED: "Pedido confirmado",
    S.PREPARING: "Em preparação",
    S.READY: "Pronto para entrega",
    S.AWAITING_DRIVER: "Aguardando entregador",
    S.OUT_FOR_DELIVERY: "A caminho",
    S.DELIVERED: "Entregue",
    S.CANCELLED: "Cancelado",
}

TABLE_LABELS = {
    **LABELS,
    S.READY: "Pronto para servir",
    S.DELIVERED: "Servido",
}


def steps_for(order_type: OrderType) -> list[OrderStatus]:
    return DELIVERY_STEPS if order_type == OrderType.DELIVERY else TABLE_STEPS


def can_transition(order_type: OrderType, current: OrderStatus, new: OrderStatus) -> bool:
    if current in FINAL_STATUSES or current == new:
        return False
    if new == S.CANCELLED:
        return True
    allowed = set(TRANSITIONS.get(current, ()))
    if order_type != OrderType.DELIVERY:
        # no courier leg outside delivery
        allowed -= {S.AWAITING_DRIVER, S.OUT_FOR_DELIVERY}
    elif current == S.READY:
        allowed.discard(S.DELIVERED)
    return new in allowed


def display_status(status: OrderStatus) -> OrderStatus:
    """Customers never see the courier hand-off state."""
    return S.READY if status == S.AWAITING_DRIVER else status


def tracking_steps(order_type: OrderType, status: OrderStatus) -> list[dict]:
    steps = steps_for(order_type)
    labels = LABELS if order_type == OrderType.DELIVERY else TABLE_LABELS
    shown = display_status(status)
    current_index = steps.index(shown) if shown in steps else -1
    return [
        {
            "status": step,
            "label": labels[step],
            "completed": 0 <= i <= current_index,
            "current": i == current_index,
        }
        for i, step in enumerate(steps)
    ]


def progress_percent(order_type: OrderType, status: OrderStatus) -> int:
    steps = steps_for(order_type)
    shown = display_status(status)
    if shown not in steps:
        return 0
    return min(round(steps.index(shown) / (len(steps) - 1) * 100), 100)
