"""Unit tests for platform administration and the inactivity job."""

from datetime import date
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
import uuid

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError

from app.api.admin import group_release_notes, validate_setting, version_key
from app.models.company import CompanyStatus
from app.models.platform import INACTIVITY_DAYS_KEY


def _note(version, day, title="Nova funcionalidade"):
    return SimpleNamespace(
        id=uuid.uuid4(),
        version=version,
        title=title,
        description="",
        note_type="feature",
        release_date=date(2026, 1, day),
        is_published=True,
    )


def _count(value):
    result = MagicMock()
    result.scalar_one.return_value = value
    return result


# ── Settings ─────────────────────────────────────────

def test_inactivity_setting_is_normalized():
    assert validate_setting(INACTIVITY_DAYS_KEY, " 30") == "30"


@pytest.mark.parametrize("value", ["abc", "0", "366"])
def test_inactivity_setting_rejects_bad_values(value):
    with pytest.raises(HTTPException) as exc_info:
        validate_setting(INACTIVITY_DAYS_KEY, value)
    assert exc_info.value.status_code == 400


def test_other_settings_pass_through():
    assert validate_setting("support_whatsapp", "+55 11 99999-0000") == "+55 11 99999-0000"


# ── Release notes ────────────────────────────────────

def test_version_key_orders_numerically():
    assert sorted(["1.10.0", "1.2.0", "1.9"], key=version_key) == ["1.2.0", "1.9", "1.10.0"]
    assert version_key("2.beta") == (2, 0)


def test_release_notes_grouped_newest_first():
    groups = group_release_notes([_note("1.2.0", 5), _note("1.10.0", 2), _note("1.2.0", 9, "Correção")])

    assert [g.version for g in groups] == ["1.10.0", "1.2.0"]
    assert groups[1].release_date == date(2026, 1, 9)
    assert [n.title for n in groups[1].notes] == ["Correção", "Nova funcionalidade"]


# ── Company moderation ───────────────────────────────

@pytest.mark.asyncio
async def test_approve_already_approved():
    from app.api.admin import approve_company

    mock_db = AsyncMock()
    mock_db.get.return_value = SimpleNamespace(status=CompanyStatus.APPROVED)

    with pytest.raises(HTTPException) as exc_info:
        await approve_company(uuid.uuid4(), MagicMock(), mock_db)
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_suspend_missing_company():
    from app.api.admin import suspend_company

    mock_db = AsyncMock()
    mock_db.get.return_value = None

    with pytest.raises(HTTPException) as exc_info:
        await suspend_company(uuid.uuid4(), MagicMock(), mock_db)
    assert exc_info.value.status_code == 404


# ── Inactivity job ───────────────────────────────────

@pytest.mark.asyncio
async def test_inactivity_days_falls_back_on_garbage():
    from app.api.admin import inactivity_days

    mock_db = AsyncMock()
    mock_db.get.return_value = SimpleNamespace(value="soon")

    with patch("app.api.admin.settings") as mock_settings:
        mock_settings.DEFAULT_INACTIVITY_DAYS = 15
        assert await inactivity_days(mock_db) == 15


@pytest.mark.asyncio
async def test_check_inactive_companies():
    from app.api.admin import check_inactive_companies

    idle_id, busy_id, owner_id = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    idle = SimpleNamespace(status=CompanyStatus.APPROVED)
    owner = SimpleNamespace(id=owner_id, email="dono@exemplo.com")
    candidates = MagicMock()
    candidates.all.return_value = [
        (idle_id, "Pizzaria Parada", owner_id, False),
        (busy_id, "Pizzaria Movimentada", None, False),
    ]

    mock_db = AsyncMock()
    mock_db.add = MagicMock()
    # setting lookup, idle company, its owner
    mock_db.get.side_effect = [SimpleNamespace(value="20"), idle, owner]
    # candidates, idle: orders/products/categories, busy: orders
    mock_db.execute.side_effect = [candidates, _count(0), _count(0), _count(0), _count(3)]

    with patch("app.api.admin.send_email_best_effort", new_callable=AsyncMock) as send:
        result = await check_inactive_companies(mock_db)

    assert result.inactivityDays == 20
    assert result.checked == 2
    assert result.cancelled == 1
    assert result.cancelledCompanies == ["Pizzaria Parada"]
    assert result.errors is None
    assert idle.status == CompanyStatus.SUSPENDED
    mock_db.add.assert_called_once()
    send.assert_awaited_once()
    assert send.await_args[0][0] == "dono@exemplo.com"


@pytest.mark.asyncio
async def test_check_inactive_collects_errors():
    from app.api.admin import check_inactive_companies

    candidates = MagicMock()
    candidates.all.return_value = [(uuid.uuid4(), "Pizzaria Quebrada", None, False)]

    mock_db = AsyncMock()
    mock_db.get.return_value = None
    mock_db.execute.side_effect = [candidates, OperationalError("SELECT", {}, Exception("db down"))]

    with patch("app.api.admin.settings") as mock_settings:
        mock_settings.DEFAULT_INACTIVITY_DAYS = 15
        result = await check_inactive_companies(mock_db)

    assert result.success is True
    assert result.cancelled == 0
    assert len(result.errors) == 1
    assert result.errors[0].startswith("Pizzaria Quebrada")
    mock_db.rollback.assert_awaited_once()
