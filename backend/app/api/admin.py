"""Platform administration, portal content and the scheduled inactivity job."""

import logging
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.deps import get_current_user, require_role, verify_cron_secret
from app.db.base import get_db
from app.models.category import Category
from app.models.company import Company, CompanyStatus
from app.models.order import Order
from app.models.platform import INACTIVITY_DAYS_KEY, Notification, PortalPost, ReleaseNote, SystemSetting
from app.models.product import Product
from app.models.user import User
from app.schemas.auth import CompanyResponse, CurrentUser
from app.schemas.platform import (
    InactiveCheckResult,
    NotificationResponse,
    PortalPostCreate,
    PortalPostResponse,
    PortalPostUpdate,
    ReleaseGroup,
    ReleaseNoteCreate,
    ReleaseNoteResponse,
    ReleaseNoteUpdate,
    SystemSettingResponse,
    SystemSettingUpdate,
)
from app.services.notifications import (
    approval_email,
    notify_user,
    send_email_best_effort,
    suspension_email,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])
portal_router = APIRouter(tags=["portal"])
jobs_router = APIRouter(prefix="/admin/jobs", tags=["jobs"])

admin_only = require_role("admin")


def version_key(version: str) -> tuple[int, ...]:
    """Sort key for dotted versions; non-numeric parts sort as zero."""
    return tuple(int(part) if part.isdigit() else 0 for part in version.split("."))


def group_release_notes(notes) -> list[ReleaseGroup]:
    """Group notes per version, newest version first."""
    grouped: dict[str, list] = defaultdict(list)
    for note in notes:
        grouped[note.version].append(note)

    groups = []
    for version in sorted(grouped, key=version_key, reverse=True):
        items = sorted(grouped[version], key=lambda n: n.release_date, reverse=True)
        groups.append(ReleaseGroup(
            version=version,
            release_date=max(n.release_date for n in items),
            notes=[ReleaseNoteResponse.model_validate(n) for n in items],
        ))
    return groups


def validate_setting(key: str, value: str) -> str:
    if key == INACTIVITY_DAYS_KEY:
        try:
            days = int(value)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{INACTIVITY_DAYS_KEY} must be an integer",
            )
        if not 1 <= days <= 365:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{INACTIVITY_DAYS_KEY} must be between 1 and 365",
            )
        return str(days)
    return value


# ---------------------------------------------------------------------------
# System settings
# ---------------------------------------------------------------------------


@router.get("/settings", response_model=list[SystemSettingResponse])
async def list_settings(
    current_user: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(SystemSetting).order_by(SystemSetting.key))
    return [SystemSettingResponse.model_validate(s) for s in result.scalars().all()]


@router.put("/settings/{key}", response_model=SystemSettingResponse)
async def save_setting(
    key: str,
    body: SystemSettingUpdate,
    current_user: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    value = validate_setting(key, body.value.strip())
    setting = await db.get(SystemSetting, key)
    if setting is None:
        setting = SystemSetting(key=key, value=value)
        db.add(setting)
    else:
        setting.value = value
    await db.commit()
    await db.refresh(setting)
    logger.info("System setting %s set to %s by %s", key, value, current_user.id)
    return SystemSettingResponse.model_validate(setting)


# ---------------------------------------------------------------------------
# Companies
# ---------------------------------------------------------------------------


@router.get("/companies", response_model=list[CompanyResponse])
async def list_companies(
    company_status: CompanyStatus | None = Query(None, alias="status"),
    search: str | None = Query(None, max_length=100),
    current_user: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    query = select(Company)
    if company_status:
        query = query.where(Company.status == company_status)
    if search:
        query = query.where(Company.name.ilike(f"%{search}%") | Company.slug.ilike(f"%{search}%"))
    result = await db.execute(query.order_by(Company.created_at.desc()))
    return [CompanyResponse.model_validate(c) for c in result.scalars().all()]


async def _set_company_status(db: AsyncSession, company_id: UUID, new_status: CompanyStatus) -> Company:
    company = await db.get(Company, company_id)
    if company is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    if company.status == new_status:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Company is already {new_status.value}",
        )
    company.status = new_status
    return company


@router.post("/companies/{company_id}/approve", response_model=CompanyResponse)
async def approve_company(
    company_id: UUID,
    current_user: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    company = await _set_company_status(db, company_id, CompanyStatus.APPROVED)
    owner = await db.get(User, company.owner_id) if company.owner_id else None
    if owner is not None:
        notify_user(
            db, owner.id,
            "Empresa aprovada",
            f'Sua empresa "{company.name}" foi aprovada.',
            notification_type="success",
            data={"type": "company_approved", "companyId": str(company.id)},
        )
    await db.commit()
    await db.refresh(company)
    logger.info("Company %s approved by %s", company.slug, current_user.id)

    if owner is not None:
        subject, html = approval_email(company.name, company.slug)
        await send_email_best_effort(owner.email, subject, html, tag="company_approved")
    return CompanyResponse.model_validate(company)


@router.post("/companies/{company_id}/suspend", response_model=CompanyResponse)
async def suspend_company(
    company_id: UUID,
    current_user: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    company = await _set_company_status(db, company_id, CompanyStatus.SUSPENDED)
    await db.commit()
    await db.refresh(company)
    logger.info("Company %s suspended by %s", company.slug, current_user.id)
    return CompanyResponse.model_validate(company)


# ---------------------------------------------------------------------------
# Release notes & portal posts
# ---------------------------------------------------------------------------


@router.get("/release-notes", response_model=list[ReleaseGroup])
async def list_all_release_notes(
    current_user: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(ReleaseNote))
    return group_release_notes(result.scalars().all())


@router.post("/release-notes", response_model=ReleaseNoteResponse, status_code=status.HTTP_201_CREATED)
async def create_release_note(
    body: ReleaseNoteCreate,
    current_user: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    note = ReleaseNote(**body.model_dump())
    db.add(note)
    await db.commit()
    await db.refresh(note)
    return ReleaseNoteResponse.model_validate(note)


@router.patch("/release-notes/{note_id}", response_model=ReleaseNoteResponse)
async def update_release_note(
    note_id: UUID,
    body: ReleaseNoteUpdate,
    current_user: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    note = await db.get(ReleaseNote, note_id)
    if note is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Release note not found")
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(note, field, value)
    await db.commit()
    await db.refresh(note)
    return ReleaseNoteResponse.model_validate(note)


@router.delete("/release-notes/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_release_note(
    note_id: UUID,
    current_user: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    note = await db.get(ReleaseNote, note_id)
    if note is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Release note not found")
    await db.delete(note)
    await db.commit()


@router.get("/posts", response_model=list[PortalPostResponse])
async def list_all_posts(
    current_user: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(PortalPost).order_by(PortalPost.created_at.desc()))
    return [PortalPostResponse.model_validate(p) for p in result.scalars().all()]


@router.post("/posts", response_model=PortalPostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    body: PortalPostCreate,
    current_user: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    post = PortalPost(**body.model_dump(), author_id=current_user.id)
    if post.is_published:
        post.published_at = datetime.now(timezone.utc)
    db.add(post)
    await db.commit()
    await db.refresh(post)
    return PortalPostResponse.model_validate(post)


@router.patch("/posts/{post_id}", response_model=PortalPostResponse)
async def update_post(
    post_id: UUID,
    body: PortalPostUpdate,
    current_user: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    post = await db.get(PortalPost, post_id)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")

    was_published = post.is_published
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(post, field, value)
    if post.is_published and not was_published:
        post.published_at = datetime.now(timezone.utc)
    elif not post.is_published:
        post.published_at = None

    await db.commit()
    await db.refresh(post)
    return PortalPostResponse.model_validate(post)


@router.delete("/posts/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: UUID,
    current_user: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    post = await db.get(PortalPost, post_id)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    await db.delete(post)
    await db.commit()


# ---------------------------------------------------------------------------
# Portal (any signed-in user)
# ---------------------------------------------------------------------------


@portal_router.get("/portal/posts", response_model=list[PortalPostResponse])
async def list_published_posts(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(PortalPost)
        .where(PortalPost.is_published.is_(True))
        .order_by(PortalPost.published_at.desc())
    )
    return [PortalPostResponse.model_validate(p) for p in result.scalars().all()]


@portal_router.get("/portal/release-notes", response_model=list[ReleaseGroup])
async def list_release_notes(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(ReleaseNote).where(ReleaseNote.is_published.is_(True)))
    return group_release_notes(result.scalars().all())


@portal_router.get("/notifications", response_model=list[NotificationResponse])
async def list_notifications(
    unread_only: bool = False,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    query = select(Notification).where(Notification.user_id == current_user.id)
    if unread_only:
        query = query.where(Notification.is_read.is_(False))
    result = await db.execute(query.order_by(Notification.created_at.desc()).limit(50))
    return [NotificationResponse.model_validate(n) for n in result.scalars().all()]


@portal_router.post("/notifications/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notification = await db.get(Notification, notification_id)
    if notification is None or notification.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    notification.is_read = True
    await db.commit()
    await db.refresh(notification)
    return NotificationResponse.model_validate(notification)


# ---------------------------------------------------------------------------
# Scheduled jobs
# ---------------------------------------------------------------------------


async def inactivity_days(db: AsyncSession) -> int:
    setting = await db.get(SystemSetting, INACTIVITY_DAYS_KEY)
    if setting is None:
        return settings.DEFAULT_INACTIVITY_DAYS
    try:
        return int(setting.value)
    except ValueError:
        logger.warning("Invalid %s value %r, using default", INACTIVITY_DAYS_KEY, setting.value)
        return settings.DEFAULT_INACTIVITY_DAYS


async def _count(db: AsyncSession, model, company_id: UUID) -> int:
    result = await db.execute(select(func.count(model.id)).where(model.company_id == company_id))
    return result.scalar_one()


@jobs_router.post(
    "/check-inactive-companies",
    response_model=InactiveCheckResult,
    response_model_exclude_none=True,
    dependencies=[Depends(verify_cron_secret)],
)
async def check_inactive_companies(db: AsyncSession = Depends(get_db)):
    """
    Suspend approved companies that never set up their store.

    A company is suspended when it has not been updated within the configured
    window and has no orders, products, categories or published menu.
    Failures are collected per company so one bad row does not stop the run.
    """
    days = await inactivity_days(db)
    cutoff = datetime.now(timezone.utc) - timedelta(days=days)

    result = await db.execute(
        select(Company.id, Company.name, Company.owner_id, Company.menu_published).where(
            Company.status == CompanyStatus.APPROVED,
            Company.updated_at < cutoff,
        )
    )
    candidates = result.all()
    logger.info("Inactivity check: %d candidates older than %d days", len(candidates), days)

    suspended: list[str] = []
    errors: list[str] = []
    for company_id, name, owner_id, menu_published in candidates:
        try:
            has_orders = await _count(db, Order, company_id) > 0
            configured = (
                await _count(db, Product, company_id) > 0
                or await _count(db, Category, company_id) > 0
                or menu_published
            )
            if has_orders or configured:
                continue

            company = await db.get(Company, company_id)
            company.status = CompanyStatus.SUSPENDED
            owner = await db.get(User, owner_id) if owner_id else None
            if owner is not None:
                notify_user(
                    db, owner.id,
                    "Empresa suspensa por inatividade",
                    f'Sua empresa "{name}" foi suspensa automaticamente após {days} dias '
                    "sem configuração ou pedidos. Entre em contato com o suporte para reativar.",
                    notification_type="error",
                    data={"type": "company_suspended_inactivity", "companyId": str(company_id), "inactivityDays": days},
                )
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.error("Inactivity check failed for %s: %s", name, exc)
            errors.append(f"{name}: {exc}")
            continue

        suspended.append(name)
        logger.info("Suspended inactive company %s", name)
        if owner is not None:
            subject, html = suspension_email(name, days)
            await send_email_best_effort(owner.email, subject, html, tag="company_suspended")

    return InactiveCheckResult(
        success=True,
        inactivityDays=days,
        checked=len(candidates),
        cancelled=len(suspended),
        cancelledCompanies=suspended,
        errors=errors or None,
    )
