"""Unit tests for lottery holders and draws."""

import random
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
import uuid

import pytest
from fastapi import HTTPException

from app.services.lottery import Holder, aggregate_holders, pick_winner, weighted_score


def _ticket(customer, quantity=1):
    return SimpleNamespace(customer_id=customer.id, customer=customer, quantity=quantity)


def _customer(name, email=None):
    return SimpleNamespace(id=uuid.uuid4(), name=name, phone="1199" + name, email=email)


def _user():
    user = MagicMock()
    user.id = uuid.uuid4()
    user.company_id = uuid.uuid4()
    return user


# ── Weighting ────────────────────────────────────────

def test_weighted_score_bonus_per_hundred():
    assert weighted_score(2, 0) == 2
    assert weighted_score(2, 100) == pytest.approx(2.2)
    assert weighted_score(1, Decimal("250")) == pytest.approx(1.25)


def test_aggregate_holders_groups_and_ranks():
    ana, bia = _customer("ana"), _customer("bia")
    tickets = [_ticket(ana), _ticket(ana, 2), _ticket(bia)]

    holders = aggregate_holders(tickets, {bia.id: Decimal("1000")})

    assert [h.customer_name for h in holders] == ["ana", "bia"]
    assert holders[0].total_tickets == 3
    assert holders[1].total_spent == Decimal("1000")
    assert holders[1].weighted_score == pytest.approx(2.0)
    assert sum(h.chance_percent for h in holders) == pytest.approx(100.0)


def test_pick_winner_requires_holders():
    with pytest.raises(ValueError):
        pick_winner([])


def test_pick_winner_respects_weights():
    heavy = Holder(customer_id=uuid.uuid4(), customer_name="a", customer_phone="1", weighted_score=99.0)
    light = Holder(customer_id=uuid.uuid4(), customer_name="b", customer_phone="2", weighted_score=1.0)
    rng = random.Random(7)
    wins = sum(pick_winner([heavy, light], rng) is heavy for _ in range(500))
    assert wins > 450


def test_pick_winner_single_holder():
    only = Holder(customer_id=uuid.uuid4(), customer_name="a", customer_phone="1", weighted_score=0.0)
    assert pick_winner([only]) is only


# ── Draw endpoint ────────────────────────────────────

@pytest.mark.asyncio
async def test_draw_without_holders_fails():
    from app.api.lottery import run_draw

    empty = MagicMock()
    empty.scalars.return_value.all.return_value = []
    mock_db = AsyncMock()
    mock_db.execute.return_value = empty

    with pytest.raises(HTTPException) as exc_info:
        await run_draw(None, _user(), mock_db)
    assert exc_info.value.status_code == 400
    mock_db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_draw_consumes_tickets_and_emails_winner():
    from app.api.lottery import DrawRequest, run_draw

    winner = _customer("ana", email="ana@example.com")
    tickets_result = MagicMock()
    tickets_result.scalars.return_value.all.return_value = [_ticket(winner, 3)]
    spent_result = MagicMock()
    spent_result.all.return_value = [(winner.id, Decimal("200"))]
    settings_result = MagicMock()
    settings_result.scalar_one_or_none.return_value = None

    mock_db = AsyncMock()
    mock_db.execute.side_effect = [tickets_result, spent_result, settings_result, MagicMock()]
    mock_db.get.return_value = SimpleNamespace(name="Pizzaria Bella")

    with patch("app.api.lottery.send_email_best_effort", new_callable=AsyncMock) as send:
        result = await run_draw(DrawRequest(prize_description="Pizza grátis"), _user(), mock_db)

    assert result.winner.customer_id == winner.id
    assert result.total_tickets_in_draw == 3
    assert result.total_participants == 1
    assert result.prize_description == "Pizza grátis"
    # fourth execute marks tickets used
    assert mock_db.execute.await_count == 4
    mock_db.commit.assert_awaited_once()
    send.assert_awaited_once()
    assert send.await_args.args[0] == "ana@example.com"


@pytest.mark.asyncio
async def test_customer_tickets_unknown_store():
    from app.api.lottery import get_customer_tickets

    missing = MagicMock()
    missing.scalar_one_or_none.return_value = None
    mock_db = AsyncMock()
    mock_db.execute.return_value = missing

    with pytest.raises(HTTPException) as exc_info:
        await get_customer_tickets("nope", "11999990000", mock_db)
    assert exc_info.value.status_code == 404
