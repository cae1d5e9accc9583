"""Lottery schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class LotterySettingsUpdate(BaseModel):
    is_enabled: bool
    tickets_per_order: int = Field(default=1, ge=0)
    tickets_per_amount: Decimal = Field(default=Decimal("0.00"), ge=0)
    prize_description: str | None = Field(None, max_length=1000)
    draw_frequency: str = Field(default="monthly", pattern="^(weekly|biweekly|monthly)$")


class LotterySettingsResponse(LotterySettingsUpdate):
    model_config = ConfigDict(from_attributes=True)

    id: UUID | None = None
    company_id: UUID


class TicketHolder(BaseModel):
    customer_id: UUID
    customer_name: str
    customer_phone: str
    customer_email: str | None = None
    total_tickets: int
    total_spent: Decimal
    weighted_score: float
    chance_percent: float


class TicketHolderList(BaseModel):
    items: list[TicketHolder]
    total_tickets: int


class DrawResult(BaseModel):
    draw_id: UUID
    winner: TicketHolder
    prize_description: str
    total_tickets_in_draw: int
    total_participants: int
    drawn_at: datetime


class DrawSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    drawn_at: datetime
    prize_description: str
    total_tickets_in_draw: int
    winner_tickets_count: int
    winner_name: str | None
    winner_phone: str | None
    total_participants: int = 0


class CustomerTickets(BaseModel):
    customer_name: str | None
    active_tickets: int
    prize_description: str | None
    is_enabled: bool
