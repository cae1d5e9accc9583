"""Lottery holder aggregation and weighted draw."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Sequence
from uuid import UUID

logger = logging.getLogger(__name__)

# +10% weight for every R$100 spent
BONUS_PER_100 = 0.1
DEFAULT_PRIZE = "Prêmio do sorteio"


@dataclass
class Holder:
    customer_id: UUID
    customer_name: str
    customer_phone: str
    customer_email: str | None = None
    total_tickets: int = 0
    total_spent: Decimal = Decimal("0.00")
    weighted_score: float = 0.0
    chance_percent: float = 0.0


def weighted_score(tickets: int, spent: Decimal | float) -> float:
    return tickets * (1 + (float(spent) / 100) * BONUS_PER_100)


def aggregate_holders(tickets: Iterable, spent_by_customer: dict[UUID, Decimal]) -> list[Holder]:
    """
    Group unused tickets per customer and rank them by weighted score.

    ``tickets`` are LotteryTicket rows with their ``customer`` loaded.
    """
    holders: dict[UUID, Holder] = {}
    for ticket in tickets:
        holder = holders.get(ticket.customer_id)
        if holder is None:
            customer = ticket.customer
            holder = holders[ticket.customer_id] = Holder(
                customer_id=ticket.customer_id,
                customer_name=customer.name,
                customer_phone=customer.phone,
                customer_email=customer.email,
            )
        holder.total_tickets += ticket.quantity

    for holder in holders.values():
        holder.total_spent = Decimal(spent_by_customer.get(holder.customer_id, 0))
        holder.weighted_score = weighted_score(holder.total_tickets, holder.total_spent)

    total_score = sum(h.weighted_score for h in holders.values())
    for holder in holders.values():
        holder.chance_percent = holder.weighted_score / total_score * 100 if total_score > 0 else 0.0

    return sorted(holders.values(), key=lambda h: h.weighted_score, reverse=True)


def pick_winner(holders: Sequence[Holder], rng: random.Random | None = None) -> Holder:
    """Weighted random pick; falls back to the first holder."""
    if not holders:
        raise ValueError("No ticket holders to draw from")
    rng = rng or random.SystemRandom()
    remaining = rng.random() * sum(h.weighted_score for h in holders)
    for holder in holders:
        remaining -= holder.weighted_score
        if remaining <= 0:
            return holder
    return holders[0]
