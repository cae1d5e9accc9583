"""Seed default roles and permissions.

RBAC Matrix:
┌─────────────────────┬───────┬───────┬─────────┬───────┐
│ Permission          │ Admin │ Owner │ Manager │ Staff │
├─────────────────────┼───────┼───────┼─────────┼───────┤
│ product:create      │  ✓    │  ✓    │   ✓     │       │
│ product:read        │  ✓    │  ✓    │   ✓     │   ✓   │
│ product:update      │  ✓    │  ✓    │   ✓     │       │
│ product:delete      │  ✓    │  ✓    │         │       │
│ order:read          │  ✓    │  ✓    │   ✓     │   ✓   │
│ order:update        │  ✓    │  ✓    │   ✓     │   ✓   │
│ order:cancel        │  ✓    │  ✓    │   ✓     │       │
│ table:manage        │  ✓    │  ✓    │   ✓     │   ✓   │
│ driver:manage       │  ✓    │  ✓    │   ✓     │       │
│ promotion:manage    │  ✓    │  ✓    │   ✓     │       │
│ lottery:manage      │  ✓    │  ✓    │   ✓     │       │
│ lottery:draw        │  ✓    │  ✓    │         │       │
│ inventory:read      │  ✓    │  ✓    │   ✓     │   ✓   │
│ inventory:adjust    │  ✓    │  ✓    │   ✓     │       │
│ report:sales        │  ✓    │  ✓    │   ✓     │       │
│ payment:read        │  ✓    │  ✓    │         │       │
│ subscription:read   │  ✓    │  ✓    │         │       │
│ store:settings      │  ✓    │  ✓    │         │       │
│ platform:admin      │  ✓    │       │         │       │
└─────────────────────┴───────┴───────┴─────────┴───────┘

Run with ``python -m app.db.seed_rbac``; safe to re-run.
"""

import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base import async_session_maker
from app.models.role import Permission, PermissionAction, Role, RolePermission, RoleType

logger = logging.getLogger(__name__)

ROLE_PERMISSIONS: dict[RoleType, list[PermissionAction]] = {
    RoleType.ADMIN: list(PermissionAction),  # All permissions
    RoleType.OWNER: [p for p in PermissionAction if p != PermissionAction.PLATFORM_ADMIN],
    RoleType.MANAGER: [
        PermissionAction.PRODUCT_CREATE,
        PermissionAction.PRODUCT_READ,
        PermissionAction.PRODUCT_UPDATE,
        PermissionAction.ORDER_READ,
        PermissionAction.ORDER_UPDATE,
        PermissionAction.ORDER_CANCEL,
        PermissionAction.TABLE_MANAGE,
        PermissionAction.DRIVER_MANAGE,
        PermissionAction.PROMOTION_MANAGE,
        PermissionAction.LOTTERY_MANAGE,
        PermissionAction.INVENTORY_READ,
        PermissionAction.INVENTORY_ADJUST,
        PermissionAction.REPORT_SALES,
    ],
    RoleType.STAFF: [
        PermissionAction.PRODUCT_READ,
        PermissionAction.ORDER_READ,
        PermissionAction.ORDER_UPDATE,
        PermissionAction.TABLE_MANAGE,
        PermissionAction.INVENTORY_READ,
    ],
}


async def seed_rbac(db: AsyncSession) -> None:
    """Create missing permissions and roles, then sync each role's grants."""
    existing = {p.action: p for p in (await db.execute(select(Permission))).scalars().all()}
    for action in PermissionAction:
        if action not in existing:
            existing[action] = Permission(action=action, description=action.value)
            db.add(existing[action])
    await db.flush()

    roles = {r.name: r for r in (await db.execute(select(Role))).scalars().all()}
    for role_type, actions in ROLE_PERMISSIONS.items():
        role = roles.get(role_type)
        if role is None:
            role = Role(name=role_type, description=role_type.value.title())
            db.add(role)
            await db.flush()
            granted = set()
        else:
            granted = {rp.permission_id for rp in role.permissions}

        for action in actions:
            permission = existing[action]
            if permission.id not in granted:
                db.add(RolePermission(role_id=role.id, permission_id=permission.id))
        logger.info("Role %s: %d permissions", role_type.value, len(actions))

    await db.commit()


async def main() -> None:
    async with async_session_maker() as db:
        await seed_rbac(db)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
