"""SQLAlchemy models for roles, permissions and users (tenant database)."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from retailhub.common.models import TenantBase, TimestampMixin

DEFAULT_GUARD = "web"

role_has_permissions = Table(
    "role_has_permissions",
    TenantBase.metadata,
    Column("permission_id", Integer, ForeignKey("permissions.id"), primary_key=True),
    Column("role_id", Integer, ForeignKey("roles.id"), primary_key=True),
)

user_roles = Table(
    "user_roles",
    TenantBase.metadata,
    Column("role_id", Integer, ForeignKey("roles.id"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id"), primary_key=True),
)

user_permissions = Table(
    "user_permissions",
    TenantBase.metadata,
    Column("permission_id", Integer, ForeignKey("permissions.id"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id"), primary_key=True),
)


class RoleModel(TenantBase, TimestampMixin):
    __tablename__ = "roles"
    __table_args__ = (UniqueConstraint("name", "guard_name", name="uq_role_name_guard"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    guard_name: Mapped[str] = mapped_column(String(50), default=DEFAULT_GUARD)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    permissions: Mapped[list["PermissionModel"]] = relationship(
        secondary=role_has_permissions, lazy="selectin"
    )


class PermissionModel(TenantBase, TimestampMixin):
    __tablename__ = "permissions"
    __table_args__ = (
        UniqueConstraint("name", "guard_name", name="uq_permission_name_guard"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    guard_name: Mapped[str] = mapped_column(String(50), default=DEFAULT_GUARD)
    module: Mapped[str | None] = mapped_column(String(50), nullable=True)


class UserModel(TenantBase, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    company_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role_id: Mapped[int | None] = mapped_column(ForeignKey("roles.id"), nullable=True)
    biller_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    warehouse_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False)
    email_verified_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    roles: Mapped[list["RoleModel"]] = relationship(
        secondary=user_roles, lazy="selectin"
    )
    permissions: Mapped[list["PermissionModel"]] = relationship(
        secondary=user_permissions, lazy="selectin"
    )
