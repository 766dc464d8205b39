"""
File: accounts/db/models/profile.py
Description: 用户档案模型 (1:1 User)

注意：
采用 "No-Relationship" 模式，不显式定义 ORM relationship。
User 与 Profile 的关联仅通过 user_id 外键物理约束。
生命周期跟随所属 User (同一级联戳软删除/恢复)，
除非操作明确只针对档案本身。

Author: jinmozhe
Created: 2025-12-02
Updated: 2026-10-12 (Soft delete + one live profile per user)
"""

import uuid
from datetime import date

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from accounts.db.models.base import (
    LIFECYCLE_CHECK_CLAUSE,
    LIVE_ROW_CLAUSE,
    SoftDeleteMixin,
    UUIDModel,
)


class Profile(UUIDModel, SoftDeleteMixin):
    """
    用户档案表
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "profiles"

    __table_args__ = (
        CheckConstraint(LIFECYCLE_CHECK_CLAUSE, name="lifecycle_consistent"),
        # 每个用户至多一份有效档案；历史档案 (已删除) 可以有多份
        Index(
            "uq_profiles_user_id_live",
            "user_id",
            unique=True,
            postgresql_where=text(LIVE_ROW_CLAUSE),
            sqlite_where=text(LIVE_ROW_CLAUSE),
        ),
    )

    # 不设置 ondelete="CASCADE"，级联由服务层手动维护
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
        comment="关联用户ID",
    )

    full_name: Mapped[str | None] = mapped_column(
        String(100), nullable=True, comment="姓名"
    )

    phone: Mapped[str | None] = mapped_column(
        String(20), nullable=True, comment="联系电话"
    )

    email: Mapped[str | None] = mapped_column(
        String(255), nullable=True, comment="联系邮箱 (不参与唯一性校验)"
    )

    avatar: Mapped[str | None] = mapped_column(
        String(255), nullable=True, comment="头像URL"
    )

    birthday: Mapped[date | None] = mapped_column(
        Date, nullable=True, comment="出生日期"
    )
