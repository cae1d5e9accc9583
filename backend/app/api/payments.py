"""Payment settings, transactions and the online-gateway webhook."""

import hashlib
import hmac
import json
import logging
import re
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.deps import get_current_user, require_permission, company_id_of
from app.db.base import get_db
from app.models.order import Order, PaymentStatus
from app.models.payment import (
    CompanyPaymentSettings,
    PaymentGateway,
    PaymentTransaction,
    TransactionStatus,
)
from app.schemas.auth import CurrentUser
from app.schemas.payment import (
    CompanyPaymentInfoRequest,
    PaymentSettingsResponse,
    PaymentSettingsUpdate,
    PublicPaymentInfo,
    TransactionListResponse,
    TransactionResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])

APPROVED_STATUSES = frozenset({"PAID", "APPROVED", "COMPLETED", "SETTLED", "AUTHORIZED", "CAPTURED"})
CANCELLED_STATUSES = frozenset({"CANCELLED", "CANCELED", "REFUNDED", "EXPIRED", "REJECTED", "FAILED"})

_UUID_RE = re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE)

# ---------------------------------------------------------------------------
# Helpers – webhook payload parsing
# ---------------------------------------------------------------------------


def verify_webhook_signature(raw_body: bytes, signature: str, secret: str) -> bool:
    """Hex HMAC-SHA256 of the raw request body."""
    if not secret or not signature:
        return False
    expected = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected.lower(), signature.strip().lower())


def _dig(payload: dict, *path: str):
    value = payload
    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def extract_gateway_status(payload: dict) -> str:
    for path in (("data", "status"), ("status",), ("charge", "status"), ("payment", "status"), ("transaction", "status")):
        value = _dig(payload, *path)
        if value:
            return str(value).upper()
    return ""


def extract_reference(payload: dict) -> str | None:
    """
    Our merchant reference (a transaction or order id) from a gateway payload.

    Gateways put it in different places; as a last resort it is pulled out of
    the charge description, which we fill with the reference.
    """
    for path in (
        ("merchantChargeId",),
        ("referenceId",),
        ("reference_id",),
        ("externalReference",),
        ("external_reference",),
        ("data", "merchantChargeId"),
        ("data", "referenceId"),
        ("charge", "merchantChargeId"),
    ):
        value = _dig(payload, *path)
        if value:
            return str(value)

    for path in (("data", "description"), ("description",), ("charge", "description")):
        value = _dig(payload, *path)
        if isinstance(value, str):
            match = _UUID_RE.search(value)
            if match:
                return match.group(0)
    return None


def normalize_status(gateway_status: str) -> TransactionStatus | None:
    if gateway_status in APPROVED_STATUSES:
        return TransactionStatus.COMPLETED
    if gateway_status == "REFUNDED":
        return TransactionStatus.REFUNDED
    if gateway_status in CANCELLED_STATUSES:
        return TransactionStatus.CANCELLED
    return None


async def _find_transaction(db: AsyncSession, reference: str) -> PaymentTransaction | None:
    try:
        ref_id = UUID(reference)
    except ValueError:
        result = await db.execute(
            select(PaymentTransaction).where(PaymentTransaction.gateway_charge_id == reference)
        )
        return result.scalar_one_or_none()

    transaction = await db.get(PaymentTransaction, ref_id)
    if transaction is not None:
        return transaction
    # Some integrations send the order id instead
    result = await db.execute(
        select(PaymentTransaction)
        .where(PaymentTransaction.order_id == ref_id)
        .order_by(PaymentTransaction.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def _settings_out(company_id: UUID, payment_settings: CompanyPaymentSettings | None) -> PaymentSettingsResponse:
    if payment_settings is None:
        return PaymentSettingsResponse(company_id=company_id)
    return PaymentSettingsResponse(
        **PublicPaymentInfo.model_validate(payment_settings).model_dump(),
        company_id=company_id,
        has_gateway_secret=bool(payment_settings.gateway_secret),
    )


async def _load_settings(db: AsyncSession, company_id: UUID) -> CompanyPaymentSettings | None:
    result = await db.execute(
        select(CompanyPaymentSettings).where(CompanyPaymentSettings.company_id == company_id)
    )
    return result.scalar_one_or_none()


@router.get("/settings", response_model=PaymentSettingsResponse)
async def get_payment_settings(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    company_id = company_id_of(current_user)
    return _settings_out(company_id, await _load_settings(db, company_id))


@router.put("/settings", response_model=PaymentSettingsResponse)
async def save_payment_settings(
    body: PaymentSettingsUpdate,
    current_user: CurrentUser = Depends(require_permission("store:settings")),
    db: AsyncSession = Depends(get_db),
):
    """Upsert accepted methods and gateway keys. An empty secret keeps the stored one."""
    company_id = company_id_of(current_user)
    payment_settings = await _load_settings(db, company_id)
    if payment_settings is None:
        payment_settings = CompanyPaymentSettings(company_id=company_id)
        db.add(payment_settings)

    update_data = body.model_dump(exclude_unset=True)
    if not update_data.get("gateway_secret"):
        update_data.pop("gateway_secret", None)
    for field, value in update_data.items():
        setattr(payment_settings, field, value)

    if payment_settings.accepts_pix and not payment_settings.pix_key:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="PIX key is required to accept PIX")

    await db.commit()
    await db.refresh(payment_settings)
    logger.info("Payment settings saved for company %s", company_id)
    return _settings_out(company_id, payment_settings)


@router.post("/company-info")
async def get_company_payment_info(body: CompanyPaymentInfoRequest, db: AsyncSession = Depends(get_db)):
    """Public: methods a storefront can offer at checkout. Never includes secrets."""
    if body.company_id is None:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"ok": False, "error": "companyId is required"},
        )
    payment_settings = await _load_settings(db, body.company_id)
    info = PublicPaymentInfo.model_validate(payment_settings) if payment_settings else PublicPaymentInfo()
    return {"ok": True, "paymentInfo": info.model_dump(mode="json")}


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


@router.get("/transactions", response_model=TransactionListResponse)
async def list_transactions(
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100),
    order_id: UUID | None = None,
    gateway: PaymentGateway | None = None,
    transaction_status: TransactionStatus | None = Query(None, alias="status"),
    current_user: CurrentUser = Depends(require_permission("payment:read")),
    db: AsyncSession = Depends(get_db),
):
    """List online payment transactions for the current company."""
    query = select(PaymentTransaction).where(PaymentTransaction.company_id == company_id_of(current_user))
    if order_id:
        query = query.where(PaymentTransaction.order_id == order_id)
    if gateway:
        query = query.where(PaymentTransaction.gateway == gateway)
    if transaction_status:
        query = query.where(PaymentTransaction.status == transaction_status)

    count_q = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_q)).scalar_one()

    query = query.order_by(PaymentTransaction.created_at.desc()).offset((page - 1) * size).limit(size)
    result = await db.execute(query)
    items = result.scalars().all()

    return TransactionListResponse(
        items=[TransactionResponse.model_validate(t) for t in items],
        total=total,
        page=page,
        size=size,
    )


# ---------------------------------------------------------------------------
# Gateway webhook
# ---------------------------------------------------------------------------


@router.post("/webhook")
async def payment_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    """
    Gateway notification endpoint.

    Anything past the signature check answers 200 so the gateway stops
    retrying; the body says what happened.
    """
    raw_body = await request.body()
    signature = request.headers.get("X-Signature", "")
    if not verify_webhook_signature(raw_body, signature, settings.PAYMENT_WEBHOOK_SECRET):
        logger.warning("Payment webhook: invalid signature")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature")

    try:
        payload = json.loads(raw_body)
    except ValueError:
        logger.warning("Payment webhook: body is not JSON")
        return {"received": True, "error": "invalid_payload"}
    if not isinstance(payload, dict):
        return {"received": True, "error": "invalid_payload"}

    gateway_status = extract_gateway_status(payload)
    reference = extract_reference(payload)
    if reference is None:
        logger.warning("Payment webhook: no merchant reference (status=%s)", gateway_status)
        return {"received": True, "warning": "No merchant reference found"}

    transaction = await _find_transaction(db, reference)
    if transaction is None:
        logger.warning("Payment webhook: no transaction for reference %s", reference)
        return {"received": True, "error": "Transaction not found"}

    if transaction.status in (TransactionStatus.COMPLETED, TransactionStatus.CANCELLED, TransactionStatus.REFUNDED):
        return {"received": True, "already_processed": True}

    new_status = normalize_status(gateway_status)
    if new_status is None:
        # Still waiting on the customer
        return {"received": True, "status": gateway_status}

    # Claim the transaction so concurrent deliveries apply it once
    claimed = await db.execute(
        update(PaymentTransaction)
        .where(
            PaymentTransaction.id == transaction.id,
            PaymentTransaction.status == TransactionStatus.PENDING,
        )
        .values(status=TransactionStatus.PROCESSING)
    )
    if claimed.rowcount == 0:
        return {"received": True, "already_processed": True}

    transaction.status = new_status
    transaction.gateway_response = payload
    charge_id = _dig(payload, "data", "id") or _dig(payload, "charge", "id") or _dig(payload, "id")
    if charge_id and not transaction.gateway_charge_id:
        transaction.gateway_charge_id = str(charge_id)

    order = await db.get(Order, transaction.order_id)
    if order is not None:
        order.payment_status = {
            TransactionStatus.COMPLETED: PaymentStatus.PAID,
            TransactionStatus.CANCELLED: PaymentStatus.CANCELLED,
            TransactionStatus.REFUNDED: PaymentStatus.REFUNDED,
        }[new_status]

    await db.commit()
    logger.info(
        "Payment webhook: transaction=%s status=%s (gateway %s)",
        transaction.id, new_status.value, gateway_status,
    )
    return {"received": True, "status": new_status.value, "transaction_id": str(transaction.id)}
