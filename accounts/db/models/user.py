"""
File: accounts/db/models/user.py
Description: 用户核心账号模型 (聚合根)

继承自 UUIDModel 和 SoftDeleteMixin，自动拥有：
1. UUID v7 主键
2. created_at / updated_at (UTC)
3. state / deleted_at (显式生命周期)

约束：
- username 在有效行 (deleted_at IS NULL) 中唯一 (部分唯一索引)
- email 可为空，非空时在有效行中唯一
- 关联 (Profile / UserRole / AuditLog) 均不声明 ORM relationship，
  由一致性服务手动维护

Author: jinmozhe
Created: 2025-11-25
Updated: 2026-10-12 (Live-row partial unique indexes)
"""

from sqlalchemy import Boolean, CheckConstraint, Index, String, text
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from accounts.db.models.base import (
    LIFECYCLE_CHECK_CLAUSE,
    LIVE_ROW_CLAUSE,
    SoftDeleteMixin,
    UUIDModel,
)


class User(UUIDModel, SoftDeleteMixin):
    """
    用户模型 (账号域)
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "users"

    # --------------------------------------------------------------------------
    # 数据库级约束 (Constraints)
    # --------------------------------------------------------------------------
    __table_args__ = (
        CheckConstraint("length(trim(username)) > 0", name="username_not_empty"),
        CheckConstraint("length(password_hash) > 0", name="password_not_empty"),
        CheckConstraint(LIFECYCLE_CHECK_CLAUSE, name="lifecycle_consistent"),
        # 唯一性兜底：只约束有效行，允许已删除用户的用户名被重新注册
        Index(
            "uq_users_username_live",
            "username",
            unique=True,
            postgresql_where=text(LIVE_ROW_CLAUSE),
            sqlite_where=text(LIVE_ROW_CLAUSE),
        ),
        Index(
            "uq_users_email_live",
            "email",
            unique=True,
            postgresql_where=text(LIVE_ROW_CLAUSE),
            sqlite_where=text(LIVE_ROW_CLAUSE),
        ),
    )

    # --------------------------------------------------------------------------
    # 核心凭证
    # --------------------------------------------------------------------------

    username: Mapped[str] = mapped_column(
        String(50), nullable=False, comment="用户名 (有效行唯一)"
    )

    email: Mapped[str | None] = mapped_column(
        String(255), nullable=True, comment="用户邮箱 (可选, 有效行唯一)"
    )

    # 由调用方完成哈希 (Argon2id)，本服务只负责存储
    password_hash: Mapped[str] = mapped_column(
        String(255), nullable=False, comment="密码哈希值"
    )

    # --------------------------------------------------------------------------
    # 状态
    # --------------------------------------------------------------------------

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default=text("true"),
        nullable=False,
        comment="是否激活",
    )
