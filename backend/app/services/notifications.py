"""Outbound e-mail relay and in-app notifications."""

import logging
from uuid import UUID

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.platform import Notification

logger = logging.getLogger(__name__)


class EmailRelayError(Exception):
    """The relay rejected the message or could not be reached."""


async def send_email(to: str, subject: str, html: str, tag: str | None = None) -> None:
    """
    POST a message to the configured mail relay.

    Raises EmailRelayError on HTTP or connection failures. When no relay is
    configured the message is logged and dropped.
    """
    if not settings.EMAIL_WEBHOOK_URL:
        logger.info("Email relay not configured, skipping '%s' to %s", subject, to)
        return

    headers = {"Content-Type": "application/json"}
    if settings.EMAIL_WEBHOOK_TOKEN:
        headers["Authorization"] = f"Bearer {settings.EMAIL_WEBHOOK_TOKEN}"
    body = {"to": to, "subject": subject, "html": html}
    if tag:
        body["tag"] = tag

    try:
        async with httpx.AsyncClient(timeout=15.0) as client:
            resp = await client.post(settings.EMAIL_WEBHOOK_URL, json=body, headers=headers)
            resp.raise_for_status()
    except httpx.HTTPStatusError as exc:
        logger.error("Email relay error: %s", exc)
        raise EmailRelayError(f"Relay returned {exc.response.status_code}") from exc
    except httpx.RequestError as exc:
        logger.error("Email relay connection error: %s", exc)
        raise EmailRelayError("Cannot reach email relay") from exc

    logger.info("Email '%s' sent to %s", subject, to)


async def send_email_best_effort(to: str | None, subject: str, html: str, tag: str | None = None) -> bool:
    """Like send_email, but failures are logged instead of raised."""
    if not to:
        return False
    try:
        await send_email(to, subject, html, tag=tag)
    except EmailRelayError as exc:
        logger.warning("Best-effort email to %s failed: %s", to, exc)
        return False
    return True


def notify_user(
    db: AsyncSession,
    user_id: UUID,
    title: str,
    message: str,
    notification_type: str = "info",
    data: dict | None = None,
) -> Notification:
    """Stage an in-app notification; the caller commits."""
    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        notification_type=notification_type,
        data=data,
    )
    db.add(notification)
    return notification


def lottery_winner_email(winner_name: str, prize: str, company_name: str) -> tuple[str, str]:
    subject = f"🎉 Você ganhou o sorteio da {company_name}!"
    html = (
        f"<h2>Parabéns, {winner_name}!</h2>"
        f"<p>Você foi sorteado(a) na promoção da <strong>{company_name}</strong>.</p>"
        f"<p>Prêmio: <strong>{prize}</strong></p>"
        "<p>Entre em contato com o estabelecimento para retirar seu prêmio.</p>"
    )
    return subject, html


def suspension_email(company_name: str, days: int) -> tuple[str, str]:
    subject = f"Sua loja {company_name} foi suspensa por inatividade"
    html = (
        f"<h2>Loja suspensa: {company_name}</h2>"
        f"<p>Sua loja não teve atividade nos últimos {days} dias e não possui produtos, "
        "categorias, pedidos ou cardápio publicado.</p>"
        "<p>Para reativá-la, entre em contato com o suporte.</p>"
    )
    return subject, html


def approval_email(company_name: str, slug: str) -> tuple[str, str]:
    subject = f"Sua loja {company_name} foi aprovada!"
    html = (
        f"<h2>Bem-vindo(a), {company_name}!</h2>"
        "<p>Sua loja foi aprovada e já pode receber pedidos assim que o cardápio for publicado.</p>"
        f"<p>Endereço do cardápio: <strong>/{slug}</strong></p>"
    )
    return subject, html
