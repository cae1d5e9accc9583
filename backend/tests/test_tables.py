"""Unit tests for table QR sessions and table management."""

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
import uuid

import pytest
from fastapi import HTTPException
from fastapi.responses import JSONResponse

from app.models.table import TableSessionStatus
from app.schemas.table import CheckSessionRequest, CheckTableRequest, TableCreate


def _scalar(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def _table(number=4, name=None):
    return SimpleNamespace(
        id=uuid.uuid4(), table_number=number, company_id=uuid.uuid4(),
        display_name=name or f"Mesa {number}",
    )


def _company():
    return SimpleNamespace(id=uuid.uuid4(), slug="bella", name="Pizzaria Bella")


# ── check-by-number ──────────────────────────────────

@pytest.mark.asyncio
async def test_check_by_number_missing_params():
    from app.api.tables import check_table_by_number

    response = await check_table_by_number(CheckTableRequest(companySlug="bella"), AsyncMock())
    assert isinstance(response, JSONResponse)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_check_by_number_unknown_company():
    from app.api.tables import check_table_by_number

    mock_db = AsyncMock()
    mock_db.execute.return_value = _scalar(None)

    response = await check_table_by_number(CheckTableRequest(tableNumber=4, companySlug="x"), mock_db)
    assert response == {
        "hasActiveSession": False,
        "reason": "company_not_found",
        "message": "Estabelecimento não encontrado",
    }


@pytest.mark.asyncio
async def test_check_by_number_unknown_table():
    from app.api.tables import check_table_by_number

    mock_db = AsyncMock()
    mock_db.execute.side_effect = [_scalar(_company()), _scalar(None)]

    response = await check_table_by_number(CheckTableRequest(tableNumber=99, companySlug="bella"), mock_db)
    assert response["reason"] == "table_not_found"


@pytest.mark.asyncio
async def test_check_by_number_joins_open_session():
    from app.api.tables import check_table_by_number

    table = _table()
    session = SimpleNamespace(
        id=uuid.uuid4(), session_token="tok", opened_at=datetime(2026, 5, 10, 20, tzinfo=timezone.utc),
    )
    mock_db = AsyncMock()
    mock_db.execute.side_effect = [_scalar(_company()), _scalar(table), _scalar(session)]

    response = await check_table_by_number(CheckTableRequest(tableNumber=4, companySlug="bella"), mock_db)

    assert response["hasActiveSession"] is True
    assert response["sessionToken"] == "tok"
    assert response["tableName"] == "Mesa 4"
    mock_db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_check_by_number_asks_for_customer_data():
    from app.api.tables import check_table_by_number

    mock_db = AsyncMock()
    mock_db.execute.side_effect = [_scalar(_company()), _scalar(_table()), _scalar(None)]

    response = await check_table_by_number(CheckTableRequest(tableNumber=4, companySlug="bella"), mock_db)

    assert response["hasActiveSession"] is False
    assert response["needsCustomerData"] is True


@pytest.mark.asyncio
async def test_check_by_number_opens_session():
    from app.api.tables import check_table_by_number

    mock_db = AsyncMock()
    mock_db.add = MagicMock()
    mock_db.execute.side_effect = [_scalar(_company()), _scalar(_table(2, "Varanda")), _scalar(None)]

    response = await check_table_by_number(
        CheckTableRequest(tableNumber=2, companySlug="bella", customerName="Ana", customerPhone="11999990000"),
        mock_db,
    )

    assert response["newSession"] is True
    assert response["tableName"] == "Varanda"
    assert response["customerName"] == "Ana"
    session = mock_db.add.call_args.args[0]
    assert session.status == TableSessionStatus.OPEN
    assert session.customer_count == 1
    assert response["sessionToken"] == session.session_token
    mock_db.commit.assert_awaited_once()


# ── check-session ────────────────────────────────────

@pytest.mark.asyncio
async def test_check_session_closed():
    from app.api.tables import check_session

    session = SimpleNamespace(status=TableSessionStatus.CLOSED)
    mock_db = AsyncMock()
    mock_db.execute.return_value = _scalar(session)

    response = await check_session(CheckSessionRequest(sessionToken="tok"), mock_db)
    assert response["valid"] is False
    assert response["reason"] == "session_closed"


@pytest.mark.asyncio
async def test_check_session_valid():
    from app.api.tables import check_session

    company = _company()
    session = SimpleNamespace(
        id=uuid.uuid4(), status=TableSessionStatus.OPEN, table=_table(), company_id=company.id,
        customer_name="Ana",
    )
    mock_db = AsyncMock()
    mock_db.execute.return_value = _scalar(session)
    mock_db.get.return_value = company

    response = await check_session(CheckSessionRequest(sessionToken="tok"), mock_db)
    assert response["valid"] is True
    assert response["companySlug"] == "bella"


# ── Dashboard ────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_duplicate_table_number():
    from app.api.tables import create_table

    user = MagicMock()
    user.company_id = uuid.uuid4()
    mock_db = AsyncMock()
    mock_db.execute.return_value = _scalar(uuid.uuid4())

    with pytest.raises(HTTPException) as exc_info:
        await create_table(TableCreate(table_number=4), user, mock_db)
    assert exc_info.value.status_code == 409


@pytest.mark.asyncio
async def test_close_session_twice():
    from app.api.tables import close_session

    user = MagicMock()
    user.company_id = uuid.uuid4()
    mock_db = AsyncMock()
    mock_db.execute.return_value = _scalar(SimpleNamespace(status=TableSessionStatus.CLOSED))

    with pytest.raises(HTTPException) as exc_info:
        await close_session(uuid.uuid4(), user, mock_db)
    assert exc_info.value.status_code == 400
