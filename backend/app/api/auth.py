"""Authentication endpoints: login, company registration and the company profile."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.security import hash_password, verify_password, create_access_token
from app.core.deps import get_current_user, require_permission, company_id_of
from app.db.base import get_db
from app.models.company import Company
from app.models.user import User
from app.models.role import Role, RoleType, RolePermission
from app.schemas.auth import (
    LoginRequest,
    TokenResponse,
    RegisterCompanyRequest,
    RegisterCompanyResponse,
    CompanyResponse,
    CompanyUpdate,
    CurrentUser,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _with_permissions():
    return selectinload(User.role).selectinload(Role.permissions).selectinload(RolePermission.permission)


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Authenticate via email + password, return JWT."""
    result = await db.execute(
        select(User).where(User.email == body.email).options(_with_permissions())
    )
    user = result.scalar_one_or_none()

    if not user or not verify_password(body.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated",
        )

    permissions = [rp.permission.action.value for rp in user.role.permissions]
    token = create_access_token(
        user_id=user.id,
        company_id=user.company_id,
        role=user.role.name.value,
        permissions=permissions,
    )
    return TokenResponse(
        access_token=token,
        user_id=user.id,
        company_id=user.company_id,
        role=user.role.name.value,
    )


@router.post(
    "/register",
    response_model=RegisterCompanyResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_company(body: RegisterCompanyRequest, db: AsyncSession = Depends(get_db)):
    """Self-service onboarding: a new company (pending approval) plus its owner account."""
    existing_user = await db.execute(select(User).where(User.email == body.email))
    if existing_user.scalar_one_or_none():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    existing_company = await db.execute(select(Company).where(Company.slug == body.company_slug))
    if existing_company.scalar_one_or_none():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Company slug already taken")

    role_result = await db.execute(
        select(Role)
        .where(Role.name == RoleType.OWNER)
        .options(selectinload(Role.permissions).selectinload(RolePermission.permission))
    )
    owner_role = role_result.scalar_one_or_none()
    if not owner_role:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="RBAC roles not seeded. Run seed_rbac first.",
        )

    company = Company(
        name=body.company_name,
        slug=body.company_slug,
        address=body.company_address,
        phone=body.company_phone,
    )
    db.add(company)
    await db.flush()  # get company.id

    user = User(
        email=body.email,
        hashed_password=hash_password(body.password),
        full_name=body.full_name,
        phone=body.phone,
        company_id=company.id,
        role_id=owner_role.id,
    )
    db.add(user)
    await db.flush()  # get user.id

    company.owner_id = user.id
    await db.commit()
    logger.info("Company %s registered by %s", company.slug, user.email)

    permissions = [rp.permission.action.value for rp in owner_role.permissions]
    token = create_access_token(
        user_id=user.id,
        company_id=company.id,
        role=RoleType.OWNER.value,
        permissions=permissions,
    )

    return RegisterCompanyResponse(
        user_id=user.id,
        company_id=company.id,
        access_token=token,
    )


@router.get("/me", response_model=CurrentUser)
async def get_me(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Return full profile of the current authenticated user."""
    result = await db.execute(
        select(User).where(User.id == current_user.id).options(_with_permissions())
    )
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return CurrentUser(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=user.role.name.value,
        company_id=user.company_id,
        permissions=[rp.permission.action.value for rp in user.role.permissions],
        is_active=user.is_active,
    )


@router.get("/company", response_model=CompanyResponse)
async def get_my_company(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    company = await db.get(Company, company_id_of(current_user))
    if not company:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    return CompanyResponse.model_validate(company)


@router.patch("/company", response_model=CompanyResponse)
async def update_my_company(
    body: CompanyUpdate,
    current_user: CurrentUser = Depends(require_permission("store:settings")),
    db: AsyncSession = Depends(get_db),
):
    """Update store profile, delivery settings and menu publishing."""
    company = await db.get(Company, company_id_of(current_user))
    if not company:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")

    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(company, field, value)

    await db.commit()
    await db.refresh(company)
    return CompanyResponse.model_validate(company)
