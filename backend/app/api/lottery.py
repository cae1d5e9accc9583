"""Customer lottery: settings, ticket holders, weighted draws."""

import logging
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.deps import get_current_user, require_permission, company_id_of
from app.db.base import get_db
from app.models.company import Company
from app.models.customer import Customer
from app.models.lottery import LotteryDraw, LotterySettings, LotteryTicket
from app.models.order import Order, OrderStatus
from app.schemas.auth import CurrentUser
from app.schemas.lottery import (
    CustomerTickets,
    DrawResult,
    DrawSummary,
    LotterySettingsResponse,
    LotterySettingsUpdate,
    TicketHolder,
    TicketHolderList,
)
from app.services.catalog import get_company_by_slug
from app.services.lottery import DEFAULT_PRIZE, Holder, aggregate_holders, pick_winner
from app.services.notifications import lottery_winner_email, send_email_best_effort

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/lottery", tags=["lottery"])

# Orders that count towards a holder's spend bonus
SPEND_STATUSES = (OrderStatus.DELIVERED, OrderStatus.READY)
RECENT_DRAWS = 10


class DrawRequest(BaseModel):
    prize_description: str | None = Field(None, max_length=1000)


def _holder_out(holder: Holder) -> TicketHolder:
    return TicketHolder(
        customer_id=holder.customer_id,
        customer_name=holder.customer_name,
        customer_phone=holder.customer_phone,
        customer_email=holder.customer_email,
        total_tickets=holder.total_tickets,
        total_spent=holder.total_spent,
        weighted_score=round(holder.weighted_score, 4),
        chance_percent=round(holder.chance_percent, 2),
    )


async def _load_settings(db: AsyncSession, company_id) -> LotterySettings | None:
    result = await db.execute(
        select(LotterySettings).where(LotterySettings.company_id == company_id)
    )
    return result.scalar_one_or_none()


async def _current_holders(db: AsyncSession, company_id) -> list[Holder]:
    result = await db.execute(
        select(LotteryTicket)
        .where(LotteryTicket.company_id == company_id, LotteryTicket.is_used.is_(False))
        .options(selectinload(LotteryTicket.customer))
    )
    tickets = result.scalars().all()
    if not tickets:
        return []

    customer_ids = {t.customer_id for t in tickets}
    spent = await db.execute(
        select(Order.customer_id, func.coalesce(func.sum(Order.total), 0))
        .where(
            Order.company_id == company_id,
            Order.customer_id.in_(customer_ids),
            Order.status.in_(SPEND_STATUSES),
        )
        .group_by(Order.customer_id)
    )
    return aggregate_holders(tickets, {row[0]: row[1] for row in spent.all()})


@router.get("/settings", response_model=LotterySettingsResponse)
async def get_lottery_settings(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    company_id = company_id_of(current_user)
    lottery = await _load_settings(db, company_id)
    if lottery is None:
        return LotterySettingsResponse(is_enabled=False, company_id=company_id)
    return LotterySettingsResponse.model_validate(lottery)


@router.put("/settings", response_model=LotterySettingsResponse)
async def save_lottery_settings(
    body: LotterySettingsUpdate,
    current_user: CurrentUser = Depends(require_permission("lottery:manage")),
    db: AsyncSession = Depends(get_db),
):
    company_id = company_id_of(current_user)
    lottery = await _load_settings(db, company_id)
    if lottery is None:
        lottery = LotterySettings(company_id=company_id)
        db.add(lottery)
    for field, value in body.model_dump().items():
        setattr(lottery, field, value)
    await db.commit()
    await db.refresh(lottery)
    return LotterySettingsResponse.model_validate(lottery)


@router.get("/holders", response_model=TicketHolderList)
async def list_ticket_holders(
    current_user: CurrentUser = Depends(require_permission("lottery:manage")),
    db: AsyncSession = Depends(get_db),
):
    holders = await _current_holders(db, company_id_of(current_user))
    return TicketHolderList(
        items=[_holder_out(h) for h in holders],
        total_tickets=sum(h.total_tickets for h in holders),
    )


@router.post("/draw", response_model=DrawResult)
async def run_draw(
    body: DrawRequest | None = None,
    current_user: CurrentUser = Depends(require_permission("lottery:draw")),
    db: AsyncSession = Depends(get_db),
):
    """
    Draw a winner among the holders of unused tickets.

    Every unused ticket is consumed by the draw, winner or not.
    """
    company_id = company_id_of(current_user)
    holders = await _current_holders(db, company_id)
    if not holders:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Nenhum participante com tickets ativos",
        )

    lottery = await _load_settings(db, company_id)
    prize = (body.prize_description if body else None) or (lottery.prize_description if lottery else None)
    prize = prize or DEFAULT_PRIZE

    winner = pick_winner(holders)
    total_tickets = sum(h.total_tickets for h in holders)

    draw = LotteryDraw(
        id=uuid.uuid4(),
        company_id=company_id,
        drawn_at=datetime.now(timezone.utc),
        prize_description=prize,
        total_tickets_in_draw=total_tickets,
        winner_tickets_count=winner.total_tickets,
        winner_name=winner.customer_name,
        winner_phone=winner.customer_phone,
        winner_customer_id=winner.customer_id,
    )
    db.add(draw)
    await db.flush()

    await db.execute(
        update(LotteryTicket)
        .where(LotteryTicket.company_id == company_id, LotteryTicket.is_used.is_(False))
        .values(is_used=True, used_in_draw_id=draw.id)
    )
    await db.commit()
    logger.info(
        "Lottery draw %s for company %s: %d tickets, winner %s",
        draw.id, company_id, total_tickets, winner.customer_id,
    )

    if winner.customer_email:
        company = await db.get(Company, company_id)
        subject, html = lottery_winner_email(winner.customer_name, prize, company.name if company else "")
        await send_email_best_effort(winner.customer_email, subject, html, tag="lottery_winner")

    return DrawResult(
        draw_id=draw.id,
        winner=_holder_out(winner),
        prize_description=prize,
        total_tickets_in_draw=total_tickets,
        total_participants=len(holders),
        drawn_at=draw.drawn_at,
    )


@router.get("/draws", response_model=list[DrawSummary])
async def list_draws(
    current_user: CurrentUser = Depends(require_permission("lottery:manage")),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(LotteryDraw)
        .where(LotteryDraw.company_id == company_id_of(current_user))
        .order_by(LotteryDraw.drawn_at.desc())
        .limit(RECENT_DRAWS)
    )
    draws = result.scalars().all()
    if not draws:
        return []

    participants = await db.execute(
        select(LotteryTicket.used_in_draw_id, func.count(func.distinct(LotteryTicket.customer_id)))
        .where(LotteryTicket.used_in_draw_id.in_([d.id for d in draws]))
        .group_by(LotteryTicket.used_in_draw_id)
    )
    counts = {row[0]: row[1] for row in participants.all()}

    summaries = []
    for draw in draws:
        summary = DrawSummary.model_validate(draw)
        summary.total_participants = counts.get(draw.id, 0)
        summaries.append(summary)
    return summaries


@router.get("/tickets/{slug}", response_model=CustomerTickets)
async def get_customer_tickets(
    slug: str,
    phone: str = Query(..., min_length=8, max_length=20),
    db: AsyncSession = Depends(get_db),
):
    """Public: how many active tickets a customer holds at a store."""
    company = await get_company_by_slug(db, slug)
    if company is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Estabelecimento não encontrado")

    lottery = await _load_settings(db, company.id)
    customer = (await db.execute(
        select(Customer).where(Customer.phone == phone)
    )).scalar_one_or_none()

    active = 0
    if customer is not None:
        result = await db.execute(
            select(func.coalesce(func.sum(LotteryTicket.quantity), 0)).where(
                LotteryTicket.company_id == company.id,
                LotteryTicket.customer_id == customer.id,
                LotteryTicket.is_used.is_(False),
            )
        )
        active = int(result.scalar_one())

    return CustomerTickets(
        customer_name=customer.name if customer else None,
        active_tickets=active,
        prize_description=lottery.prize_description if lottery else None,
        is_enabled=bool(lottery and lottery.is_enabled),
    )
