"""Dine-in tables: dashboard CRUD plus the public QR-code session endpoints."""

import logging
from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.deps import get_current_user, require_permission, company_id_of
from app.core.security import new_session_token
from app.db.base import get_db
from app.models.company import Company
from app.models.table import Table, TableSession, TableSessionStatus
from app.schemas.auth import CurrentUser
from app.schemas.table import (
    TableCreate,
    TableUpdate,
    TableResponse,
    TableSessionResponse,
    CheckTableRequest,
    CheckSessionRequest,
)
from app.services.catalog import get_company_by_slug

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tables", tags=["tables"])


# ---------------------------------------------------------------------------
# Public endpoints (scanned QR code)
# ---------------------------------------------------------------------------


def _table_info(table: Table) -> dict:
    return {
        "tableId": str(table.id),
        "tableNumber": table.table_number,
        "tableName": table.display_name,
    }


@router.post("/check-by-number")
async def check_table_by_number(body: CheckTableRequest, db: AsyncSession = Depends(get_db)):
    """
    Resolve a table from its number and the store slug.

    Joins the table's open session when there is one. Otherwise it opens a
    new session once the customer has given a name and phone, or asks for them.
    """
    if not body.table_number or not body.company_slug:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "hasActiveSession": False,
                "reason": "missing_params",
                "message": "Parâmetros inválidos",
            },
        )

    company = await get_company_by_slug(db, body.company_slug)
    if company is None:
        return {
            "hasActiveSession": False,
            "reason": "company_not_found",
            "message": "Estabelecimento não encontrado",
        }

    result = await db.execute(
        select(Table).where(
            Table.company_id == company.id,
            Table.table_number == body.table_number,
            Table.is_active.is_(True),
        )
    )
    table = result.scalar_one_or_none()
    if table is None:
        return {
            "hasActiveSession": False,
            "reason": "table_not_found",
            "message": "Mesa não encontrada",
        }

    result = await db.execute(
        select(TableSession)
        .where(
            TableSession.table_id == table.id,
            TableSession.status == TableSessionStatus.OPEN,
        )
        .order_by(TableSession.opened_at.desc())
        .limit(1)
    )
    session = result.scalar_one_or_none()

    if session is not None:
        return {
            "hasActiveSession": True,
            "sessionId": str(session.id),
            "sessionToken": session.session_token,
            **_table_info(table),
            "openedAt": session.opened_at.isoformat() if session.opened_at else None,
        }

    if not (body.customer_name and body.customer_phone):
        return {
            "hasActiveSession": False,
            "needsCustomerData": True,
            **_table_info(table),
            "message": "Por favor, informe seus dados para abrir a mesa.",
        }

    session = TableSession(
        table_id=table.id,
        company_id=table.company_id,
        session_token=new_session_token(),
        status=TableSessionStatus.OPEN,
        opened_at=datetime.now(timezone.utc),
        customer_name=body.customer_name,
        customer_phone=body.customer_phone,
        customer_email=body.customer_email,
        customer_count=body.customer_count or 1,
    )
    db.add(session)
    await db.commit()
    logger.info("Opened session for table %s of company %s", table.table_number, company.slug)

    return {
        "hasActiveSession": True,
        "sessionId": str(session.id),
        "sessionToken": session.session_token,
        **_table_info(table),
        "customerName": session.customer_name,
        "openedAt": session.opened_at.isoformat(),
        "newSession": True,
    }


@router.post("/check-session")
async def check_session(body: CheckSessionRequest, db: AsyncSession = Depends(get_db)):
    """Is this session token still an open table session?"""
    if not body.session_token:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"valid": False, "reason": "missing_params", "message": "Parâmetros inválidos"},
        )

    result = await db.execute(
        select(TableSession)
        .where(TableSession.session_token == body.session_token)
        .options(selectinload(TableSession.table))
    )
    session = result.scalar_one_or_none()
    if session is None:
        return {"valid": False, "reason": "session_not_found", "message": "Sessão não encontrada"}
    if session.status != TableSessionStatus.OPEN:
        return {"valid": False, "reason": "session_closed", "message": "Esta mesa já foi fechada"}

    company = await db.get(Company, session.company_id)
    return {
        "valid": True,
        "sessionId": str(session.id),
        **_table_info(session.table),
        "companyId": str(session.company_id),
        "companySlug": company.slug if company else None,
        "companyName": company.name if company else None,
        "customerName": session.customer_name,
    }


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


async def _get_owned_table(db: AsyncSession, table_id: UUID, company_id: UUID) -> Table:
    result = await db.execute(
        select(Table).where(Table.id == table_id, Table.company_id == company_id)
    )
    table = result.scalar_one_or_none()
    if not table:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Table not found")
    return table


@router.get("", response_model=list[TableResponse])
async def list_tables(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Table)
        .where(Table.company_id == company_id_of(current_user))
        .order_by(Table.table_number)
    )
    return [TableResponse.model_validate(t) for t in result.scalars().all()]


@router.post("", response_model=TableResponse, status_code=status.HTTP_201_CREATED)
async def create_table(
    body: TableCreate,
    current_user: CurrentUser = Depends(require_permission("table:manage")),
    db: AsyncSession = Depends(get_db),
):
    company_id = company_id_of(current_user)
    existing = await db.execute(
        select(Table.id).where(Table.company_id == company_id, Table.table_number == body.table_number)
    )
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Table {body.table_number} already exists",
        )

    table = Table(**body.model_dump(), company_id=company_id)
    db.add(table)
    await db.commit()
    await db.refresh(table)
    return TableResponse.model_validate(table)


@router.patch("/{table_id}", response_model=TableResponse)
async def update_table(
    table_id: UUID,
    body: TableUpdate,
    current_user: CurrentUser = Depends(require_permission("table:manage")),
    db: AsyncSession = Depends(get_db),
):
    table = await _get_owned_table(db, table_id, company_id_of(current_user))
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(table, field, value)
    await db.commit()
    await db.refresh(table)
    return TableResponse.model_validate(table)


@router.delete("/{table_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_table(
    table_id: UUID,
    current_user: CurrentUser = Depends(require_permission("table:manage")),
    db: AsyncSession = Depends(get_db),
):
    table = await _get_owned_table(db, table_id, company_id_of(current_user))
    await db.delete(table)
    await db.commit()


@router.get("/sessions/open", response_model=list[TableSessionResponse])
async def list_open_sessions(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(TableSession)
        .where(
            TableSession.company_id == company_id_of(current_user),
            TableSession.status == TableSessionStatus.OPEN,
        )
        .order_by(TableSession.opened_at)
    )
    return [TableSessionResponse.model_validate(s) for s in result.scalars().all()]


@router.post("/sessions/{session_id}/close", response_model=TableSessionResponse)
async def close_session(
    session_id: UUID,
    current_user: CurrentUser = Depends(require_permission("table:manage")),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(TableSession).where(
            TableSession.id == session_id,
            TableSession.company_id == company_id_of(current_user),
        )
    )
    session = result.scalar_one_or_none()
    if not session:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    if session.status == TableSessionStatus.CLOSED:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Session already closed")

    session.status = TableSessionStatus.CLOSED
    session.closed_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(session)
    return TableSessionResponse.model_validate(session)
