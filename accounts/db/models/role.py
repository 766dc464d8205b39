"""
File: accounts/db/models/role.py
Description: 角色模型与用户角色关联表

1. Role: 角色 (聚合根)，code 在有效行中唯一
2. UserRole: 用户-角色关联 (中间表)，软删除而非物理删除，
   使"移除角色"可逆、可审计

Author: jinmozhe
Created: 2026-10-12
"""

import enum
import uuid

from sqlalchemy import CheckConstraint, Enum, ForeignKey, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from accounts.db.models.base import (
    LIFECYCLE_CHECK_CLAUSE,
    LIVE_ROW_CLAUSE,
    SoftDeleteMixin,
    UUIDModel,
)


class RoleStatus(str, enum.Enum):
    """角色启用状态 (与生命周期无关)"""

    ENABLED = "ENABLED"
    DISABLED = "DISABLED"


class Role(UUIDModel, SoftDeleteMixin):
    """
    角色表
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "roles"

    __table_args__ = (
        CheckConstraint("length(trim(code)) > 0", name="code_not_empty"),
        CheckConstraint(LIFECYCLE_CHECK_CLAUSE, name="lifecycle_consistent"),
        Index(
            "uq_roles_code_live",
            "code",
            unique=True,
            postgresql_where=text(LIVE_ROW_CLAUSE),
            sqlite_where=text(LIVE_ROW_CLAUSE),
        ),
    )

    code: Mapped[str] = mapped_column(
        String(50), nullable=False, comment="角色编码 (有效行唯一)"
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False, comment="角色名称")

    description: Mapped[str | None] = mapped_column(
        String(255), nullable=True, comment="角色描述"
    )

    status: Mapped[RoleStatus] = mapped_column(
        Enum(RoleStatus, native_enum=False, length=16, validate_strings=True),
        default=RoleStatus.ENABLED,
        server_default=RoleStatus.ENABLED.value,
        nullable=False,
        comment="角色状态 (ENABLED / DISABLED)",
    )


class UserRole(UUIDModel, SoftDeleteMixin):
    """
    用户角色关联表

    约束：
    - (user_id, role_id) 在有效行中唯一
    - 分配时要求 User 与 Role 均为有效行 (服务层校验，非持续约束)
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "user_roles"

    __table_args__ = (
        CheckConstraint(LIFECYCLE_CHECK_CLAUSE, name="lifecycle_consistent"),
        Index(
            "uq_user_roles_pair_live",
            "user_id",
            "role_id",
            unique=True,
            postgresql_where=text(LIVE_ROW_CLAUSE),
            sqlite_where=text(LIVE_ROW_CLAUSE),
        ),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
        comment="关联用户ID",
    )

    role_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("roles.id"),
        nullable=False,
        index=True,
        comment="关联角色ID",
    )
