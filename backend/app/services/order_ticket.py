"""Kitchen/delivery ticket ("comanda") generation for thermal printers."""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

WIDTH = 32

PAYMENT_LABELS = {
    "cash": "Dinheiro",
    "card_on_delivery": "Cartão na entrega",
    "pix": "PIX",
    "online": "Pago online",
}

ORDER_TYPE_LABELS = {
    "delivery": "ENTREGA",
    "pickup": "RETIRADA",
    "table": "MESA",
}


class TicketLine(BaseModel):
    """Single line on the ticket."""
    text: str
    align: Literal["left", "center", "right"] = "left"
    bold: bool = False
    double_height: bool = False
    double_width: bool = False


class TicketItem(BaseModel):
    name: str
    quantity: int
    total_price: Decimal = Field(..., decimal_places=2)
    options: list[str] = Field(default_factory=list)
    notes: str | None = None


class TicketData(BaseModel):
    """Everything printed on a comanda."""
    company_name: str
    company_phone: str | None = None

    order_number: str
    order_date: datetime
    order_type: str
    table_name: str | None = None

    customer_name: str
    customer_phone: str | None = None
    delivery_address: str | None = None

    items: list[TicketItem]

    subtotal: Decimal = Field(..., decimal_places=2)
    discount_amount: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    delivery_fee: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    total: Decimal = Field(..., decimal_places=2)

    payment_method: str
    change_for: Decimal | None = Field(None, decimal_places=2)
    note: str | None = None


def brl(value: Decimal) -> str:
    """R$ 1.234,50"""
    formatted = f"{value:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    return f"R$ {formatted}"


def ticket_from_order(order, company, table_name: str | None = None) -> TicketData:
    items = [
        TicketItem(
            name=item.product_name,
            quantity=item.quantity,
            total_price=item.total_price,
            options=[opt.get("name", "") for opt in (item.options or [])],
            notes=item.notes,
        )
        for item in order.items
    ]
    return TicketData(
        company_name=company.name,
        company_phone=company.phone,
        order_number=order.order_number,
        order_date=order.created_at,
        order_type=order.order_type.value,
        table_name=table_name,
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        delivery_address=order.delivery_address,
        items=items,
        subtotal=order.subtotal,
        discount_amount=order.discount_amount,
        delivery_fee=order.delivery_fee,
        total=order.total,
        payment_method=order.payment_method.value,
        change_for=order.change_for,
        note=order.note,
    )


def generate_ticket_lines(data: TicketData) -> list[TicketLine]:
    lines: list[TicketLine] = []

    # Header
    lines.append(TicketLine(text=data.company_name, align="center", bold=True, double_width=True))
    if data.company_phone:
        lines.append(TicketLine(text=f"Tel: {data.company_phone}", align="center"))
    lines.append(TicketLine(text="=" * WIDTH, align="center"))

    lines.append(TicketLine(
        text=f"{ORDER_TYPE_LABELS.get(data.order_type, data.order_type.upper())} #{data.order_number}",
        bold=True,
        double_height=True,
    ))
    lines.append(TicketLine(text=data.order_date.strftime("%d/%m/%Y %H:%M")))

    if data.table_name:
        lines.append(TicketLine(text=data.table_name, bold=True))
    lines.append(TicketLine(text=f"Cliente: {data.customer_name}"))
    if data.customer_phone:
        lines.append(TicketLine(text=f"Tel: {data.customer_phone}"))
    if data.delivery_address:
        lines.append(TicketLine(text=f"End: {data.delivery_address}"))

    lines.append(TicketLine(text="-" * WIDTH))

    for item in data.items:
        lines.append(TicketLine(text=f"{item.quantity}x {item.name}", bold=True))
        for option in item.options:
            lines.append(TicketLine(text=f"  + {option}"))
        if item.notes:
            lines.append(TicketLine(text=f"  Obs: {item.notes}"))
        lines.append(TicketLine(text=brl(item.total_price), align="right"))

    lines.append(TicketLine(text="-" * WIDTH))

    lines.append(TicketLine(text=f"Subtotal: {brl(data.subtotal)}", align="right"))
    if data.discount_amount > 0:
        lines.append(TicketLine(text=f"Desconto: -{brl(data.discount_amount)}", align="right"))
    if data.delivery_fee > 0:
        lines.append(TicketLine(text=f"Entrega: {brl(data.delivery_fee)}", align="right"))
    lines.append(TicketLine(text="=" * WIDTH))
    lines.append(TicketLine(text=f"TOTAL: {brl(data.total)}", align="right", bold=True, double_height=True))

    lines.append(TicketLine(text=f"Pagamento: {PAYMENT_LABELS.get(data.payment_method, data.payment_method)}"))
    if data.change_for and data.change_for > data.total:
        lines.append(TicketLine(text=f"Troco para: {brl(data.change_for)}", align="right"))
        lines.append(TicketLine(text=f"Troco: {brl(data.change_for - data.total)}", align="right"))

    if data.note:
        lines.append(TicketLine(text="-" * WIDTH))
        lines.append(TicketLine(text=f"Obs: {data.note}"))

    lines.append(TicketLine(text=" "))  # feed before cut
    return lines


def format_ticket_text(data: TicketData) -> str:
    return "\n".join(line.text for line in generate_ticket_lines(data))


def generate_esc_pos_commands(data: TicketData) -> bytes:
    """ESC/POS byte stream for 58mm/80mm thermal printers."""
    ESC = b'\x1b'
    GS = b'\x1d'

    commands = ESC + b'@'
    for line in generate_ticket_lines(data):
        commands += ESC + {"center": b'a\x01', "right": b'a\x02'}.get(line.align, b'a\x00')
        commands += ESC + (b'E\x01' if line.bold else b'E\x00')

        if line.double_height and line.double_width:
            commands += GS + b'!\x30'
        elif line.double_height:
            commands += GS + b'!\x10'
        elif line.double_width:
            commands += GS + b'!\x20'
        else:
            commands += GS + b'!\x00'

        commands += line.text.encode('utf-8') + b'\n'

    # full cut
    commands += GS + b'V\x00'
    return commands
