"""Unit tests for Payment API: webhook parsing, signature and settlement."""

import hashlib
import hmac
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
import uuid

import pytest
from fastapi import HTTPException
from fastapi.responses import JSONResponse

from app.api.payments import (
    extract_gateway_status,
    extract_reference,
    normalize_status,
    verify_webhook_signature,
)
from app.models.order import PaymentStatus
from app.models.payment import TransactionStatus
from app.schemas.payment import CompanyPaymentInfoRequest, PaymentSettingsUpdate

SECRET = "whsec_test"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _sign(body: bytes, secret: str = SECRET) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def _request(payload, secret: str = SECRET, signature: str | None = None):
    body = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
    request = MagicMock()
    request.body = AsyncMock(return_value=body)
    request.headers = {"X-Signature": signature if signature is not None else _sign(body, secret)}
    return request


def _transaction(status=TransactionStatus.PENDING):
    return SimpleNamespace(
        id=uuid.uuid4(),
        order_id=uuid.uuid4(),
        status=status,
        gateway_response=None,
        gateway_charge_id=None,
    )


# ---------------------------------------------------------------------------
# Signature verification
# ---------------------------------------------------------------------------


class TestWebhookSignature:
    def test_valid_signature_passes(self):
        body = b'{"status": "PAID"}'
        assert verify_webhook_signature(body, _sign(body), SECRET) is True

    def test_uppercase_hex_accepted(self):
        body = b"{}"
        assert verify_webhook_signature(body, _sign(body).upper(), SECRET) is True

    def test_tampered_body_fails(self):
        signature = _sign(b'{"amount": 100}')
        assert verify_webhook_signature(b'{"amount": 1}', signature, SECRET) is False

    def test_missing_secret_or_signature_fails(self):
        body = b"{}"
        assert verify_webhook_signature(body, _sign(body), "") is False
        assert verify_webhook_signature(body, "", SECRET) is False


# ---------------------------------------------------------------------------
# Payload parsing
# ---------------------------------------------------------------------------


class TestPayloadParsing:
    def test_status_from_nested_data(self):
        assert extract_gateway_status({"data": {"status": "paid"}}) == "PAID"
        assert extract_gateway_status({"charge": {"status": "expired"}}) == "EXPIRED"
        assert extract_gateway_status({}) == ""

    def test_reference_from_known_fields(self):
        assert extract_reference({"merchantChargeId": "abc"}) == "abc"
        assert extract_reference({"data": {"referenceId": "r-1"}}) == "r-1"

    def test_reference_from_description(self):
        ref = str(uuid.uuid4())
        payload = {"data": {"description": f"Pedido {ref} - Pizzaria"}}
        assert extract_reference(payload) == ref

    def test_no_reference(self):
        assert extract_reference({"data": {"description": "sem id"}}) is None

    @pytest.mark.parametrize(
        "gateway_status, expected",
        [
            ("PAID", TransactionStatus.COMPLETED),
            ("APPROVED", TransactionStatus.COMPLETED),
            ("EXPIRED", TransactionStatus.CANCELLED),
            ("REFUNDED", TransactionStatus.REFUNDED),
            ("WAITING", None),
        ],
    )
    def test_normalize_status(self, gateway_status, expected):
        assert normalize_status(gateway_status) == expected


# ---------------------------------------------------------------------------
# Webhook endpoint
# ---------------------------------------------------------------------------


@pytest.fixture
def webhook_secret():
    with patch("app.api.payments.settings") as mock_settings:
        mock_settings.PAYMENT_WEBHOOK_SECRET = SECRET
        yield mock_settings


@pytest.mark.asyncio
async def test_webhook_bad_signature(webhook_secret):
    from app.api.payments import payment_webhook

    with pytest.raises(HTTPException) as exc_info:
        await payment_webhook(_request({"status": "PAID"}, signature="deadbeef"), AsyncMock())
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_webhook_without_reference(webhook_secret):
    from app.api.payments import payment_webhook

    result = await payment_webhook(_request({"status": "PAID"}), AsyncMock())
    assert result == {"received": True, "warning": "No merchant reference found"}


@pytest.mark.asyncio
async def test_webhook_unknown_transaction(webhook_secret):
    from app.api.payments import payment_webhook

    mock_db = AsyncMock()
    mock_db.get.return_value = None
    by_order = MagicMock()
    by_order.scalar_one_or_none.return_value = None
    mock_db.execute.return_value = by_order

    result = await payment_webhook(
        _request({"status": "PAID", "merchantChargeId": str(uuid.uuid4())}), mock_db
    )
    assert result == {"received": True, "error": "Transaction not found"}


@pytest.mark.asyncio
async def test_webhook_marks_order_paid(webhook_secret):
    from app.api.payments import payment_webhook

    transaction = _transaction()
    order = SimpleNamespace(payment_status=PaymentStatus.PENDING)
    claimed = MagicMock()
    claimed.rowcount = 1

    mock_db = AsyncMock()
    mock_db.get.side_effect = [transaction, order]
    mock_db.execute.return_value = claimed

    payload = {"data": {"id": "ch_123", "status": "PAID", "merchantChargeId": str(transaction.id)}}
    result = await payment_webhook(_request(payload), mock_db)

    assert result["status"] == "completed"
    assert transaction.status == TransactionStatus.COMPLETED
    assert transaction.gateway_charge_id == "ch_123"
    assert order.payment_status == PaymentStatus.PAID
    mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_webhook_refund_marks_order_refunded(webhook_secret):
    from app.api.payments import payment_webhook

    transaction = _transaction()
    order = SimpleNamespace(payment_status=PaymentStatus.PENDING)
    claimed = MagicMock()
    claimed.rowcount = 1

    mock_db = AsyncMock()
    mock_db.get.side_effect = [transaction, order]
    mock_db.execute.return_value = claimed

    payload = {"status": "REFUNDED", "referenceId": str(transaction.id)}
    await payment_webhook(_request(payload), mock_db)

    assert transaction.status == TransactionStatus.REFUNDED
    assert order.payment_status == PaymentStatus.REFUNDED


@pytest.mark.asyncio
async def test_webhook_already_processed(webhook_secret):
    from app.api.payments import payment_webhook

    transaction = _transaction(TransactionStatus.COMPLETED)
    mock_db = AsyncMock()
    mock_db.get.return_value = transaction

    result = await payment_webhook(
        _request({"status": "PAID", "referenceId": str(transaction.id)}), mock_db
    )
    assert result == {"received": True, "already_processed": True}
    mock_db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_webhook_lost_claim_race(webhook_secret):
    """A concurrent delivery already moved the transaction out of pending."""
    from app.api.payments import payment_webhook

    transaction = _transaction()
    claimed = MagicMock()
    claimed.rowcount = 0
    mock_db = AsyncMock()
    mock_db.get.return_value = transaction
    mock_db.execute.return_value = claimed

    result = await payment_webhook(
        _request({"status": "PAID", "referenceId": str(transaction.id)}), mock_db
    )
    assert result == {"received": True, "already_processed": True}
    assert transaction.status == TransactionStatus.PENDING
    mock_db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_webhook_pending_status_is_acknowledged(webhook_secret):
    from app.api.payments import payment_webhook

    transaction = _transaction()
    mock_db = AsyncMock()
    mock_db.get.return_value = transaction

    result = await payment_webhook(
        _request({"status": "CREATED", "referenceId": str(transaction.id)}), mock_db
    )
    assert result == {"received": True, "status": "CREATED"}


@pytest.mark.asyncio
async def test_webhook_non_json_body(webhook_secret):
    from app.api.payments import payment_webhook

    result = await payment_webhook(_request(b"not json"), AsyncMock())
    assert result == {"received": True, "error": "invalid_payload"}


# ---------------------------------------------------------------------------
# Settings / public info
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_company_info_requires_company_id():
    from app.api.payments import get_company_payment_info

    response = await get_company_payment_info(CompanyPaymentInfoRequest(), AsyncMock())
    assert isinstance(response, JSONResponse)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_company_info_defaults_without_settings():
    from app.api.payments import get_company_payment_info

    missing = MagicMock()
    missing.scalar_one_or_none.return_value = None
    mock_db = AsyncMock()
    mock_db.execute.return_value = missing

    response = await get_company_payment_info(CompanyPaymentInfoRequest(companyId=uuid.uuid4()), mock_db)
    assert response["ok"] is True
    assert response["paymentInfo"]["accepts_cash"] is True
    assert "gateway_secret" not in response["paymentInfo"]


@pytest.mark.asyncio
async def test_save_settings_requires_pix_key():
    from app.api.payments import save_payment_settings

    user = MagicMock()
    user.company_id = uuid.uuid4()
    stored = SimpleNamespace(accepts_pix=False, pix_key=None, gateway_secret=None)
    found = MagicMock()
    found.scalar_one_or_none.return_value = stored
    mock_db = AsyncMock()
    mock_db.execute.return_value = found

    with pytest.raises(HTTPException) as exc_info:
        await save_payment_settings(PaymentSettingsUpdate(accepts_pix=True), user, mock_db)
    assert exc_info.value.status_code == 400
    mock_db.commit.assert_not_awaited()
