"""Role & Permission models - RBAC system."""

import enum
import uuid

from sqlalchemy import String, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin, enum_column


class PermissionAction(str, enum.Enum):
    """All permission actions in the ordering platform."""
    # Catalog
    PRODUCT_CREATE = "product:create"
    PRODUCT_READ = "product:read"
    PRODUCT_UPDATE = "product:update"
    PRODUCT_DELETE = "product:delete"
    # Orders
    ORDER_READ = "order:read"
    ORDER_UPDATE = "order:update"
    ORDER_CANCEL = "order:cancel"
    # Tables
    TABLE_MANAGE = "table:manage"
    # Delivery
    DRIVER_MANAGE = "driver:manage"
    # Marketing
    PROMOTION_MANAGE = "promotion:manage"
    LOTTERY_MANAGE = "lottery:manage"
    LOTTERY_DRAW = "lottery:draw"
    # Ingredient stock
    INVENTORY_READ = "inventory:read"
    INVENTORY_ADJUST = "inventory:adjust"
    # Reports & money
    REPORT_SALES = "report:sales"
    PAYMENT_READ = "payment:read"
    SUBSCRIPTION_READ = "subscription:read"
    # Store settings
    STORE_SETTINGS = "store:settings"
    # Platform
    PLATFORM_ADMIN = "platform:admin"


class RoleType(str, enum.Enum):
    ADMIN = "admin"
    OWNER = "owner"
    MANAGER = "manager"
    STAFF = "staff"


class Permission(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "permissions"

    action: Mapped[PermissionAction] = mapped_column(
        enum_column(PermissionAction), unique=True, nullable=False, index=True
    )
    description: Mapped[str | None] = mapped_column(String(255))

    roles = relationship("RolePermission", back_populates="permission", lazy="selectin")


class Role(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "roles"

    name: Mapped[RoleType] = mapped_column(
        enum_column(RoleType), unique=True, nullable=False, index=True
    )
    description: Mapped[str | None] = mapped_column(String(255))

    users = relationship("User", back_populates="role")
    permissions = relationship("RolePermission", back_populates="role", lazy="selectin")


class RolePermission(Base):
    __tablename__ = "role_permissions"
    __table_args__ = (
        UniqueConstraint("role_id", "permission_id", name="uq_role_permission"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    role_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("roles.id", ondelete="CASCADE"), nullable=False
    )
    permission_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("permissions.id", ondelete="CASCADE"), nullable=False
    )

    role = relationship("Role", back_populates="permissions")
    permission = relationship("Permission", back_populates="roles")
