"""
File: accounts/db/models/base.py
Description: ORM 模型基类与组件化定义

本模块采用"组件化组合" (Mixin) 模式：
1. UUIDBase: [基础] UUID v7 主键 + 自动表名(智能 snake_case) + update 方法
2. TimestampMixin: [组件] created_at, updated_at (UTC, TIMESTAMPTZ)
3. SoftDeleteMixin: [组件] 显式生命周期状态 state (LIVE/DELETED) + deleted_at
4. UUIDModel: [标准] UUIDBase + TimestampMixin

软删除约定：
- 生命周期只有两个状态，LIVE -> DELETED (软删除) / DELETED -> LIVE (恢复)
- state 与 deleted_at 必须同步变更，只允许通过 mark_deleted / mark_live
  或仓储层的批量级联方法修改
- 同一次级联删除写入的 deleted_at 完全相同 (级联戳)，恢复时据此识别子记录

Author: jinmozhe
Created: 2025-11-25
Updated: 2026-10-12 (Explicit lifecycle state)
"""

import enum
import re
import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import DateTime, Enum, MetaData, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column
from uuid6 import uuid7

# 约束命名约定 (PostgreSQL / SQLite 通用)
POSTGRES_INDEXES_NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# 有效行过滤条件 (部分唯一索引共用)
LIVE_ROW_CLAUSE = "deleted_at IS NULL"

# state 与 deleted_at 一致性约束
LIFECYCLE_CHECK_CLAUSE = (
    "(state = 'LIVE' AND deleted_at IS NULL) "
    "OR (state = 'DELETED' AND deleted_at IS NOT NULL)"
)


def utc_now() -> datetime:
    """当前 UTC 时间"""
    return datetime.now(UTC)


def resolve_table_name(name: str) -> str:
    """
    将驼峰命名 (CamelCase) 转换为蛇形命名 (snake_case)。

    示例:
    - UserProfile -> user_profile
    - APIKey -> api_key
    """
    s1 = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub("([a-z0-9])([A-Z])", r"\1_\2", s1).lower()


class Base(DeclarativeBase):
    """SQLAlchemy 声明式元类"""

    metadata = MetaData(naming_convention=POSTGRES_INDEXES_NAMING_CONVENTION)


class LifecycleState(str, enum.Enum):
    """聚合/子记录生命周期状态"""

    LIVE = "LIVE"
    DELETED = "DELETED"


# ==============================================================================
# 1. 功能组件 (Mixins)
# ==============================================================================


class TimestampMixin:
    """
    [组件] 时间戳混入类

    规范：强制使用 UTC 时间存储 (TIMESTAMPTZ)，展示时再转本地时间。
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
        comment="创建时间 (UTC)",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        onupdate=utc_now,
        nullable=False,
        comment="更新时间 (UTC)",
    )


class SoftDeleteMixin:
    """
    [组件] 软删除混入类

    适用：用户、档案、角色、用户角色关联。
    不适用：审计日志 (只追加，不参与删除/恢复)。
    """

    state: Mapped[LifecycleState] = mapped_column(
        Enum(
            LifecycleState,
            native_enum=False,
            length=16,
            validate_strings=True,
        ),
        default=LifecycleState.LIVE,
        server_default=LifecycleState.LIVE.value,
        nullable=False,
        comment="生命周期状态 (LIVE / DELETED)",
    )

    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None, nullable=True, comment="删除时间 (UTC)"
    )

    @property
    def is_live(self) -> bool:
        return self.state is LifecycleState.LIVE

    @property
    def is_deleted(self) -> bool:
        return self.state is LifecycleState.DELETED

    def mark_deleted(self, at: datetime) -> None:
        """LIVE -> DELETED，at 即本次级联戳"""
        self.state = LifecycleState.DELETED
        self.deleted_at = at

    def mark_live(self) -> None:
        """DELETED -> LIVE"""
        self.state = LifecycleState.LIVE
        self.deleted_at = None


# ==============================================================================
# 2. 基础模型 (Base Models)
# ==============================================================================


class UUIDBase(Base):
    """
    [纯净版] 仅包含 ID 和基础工具方法。

    适用场景：只追加的日志表、不需要 updated_at 的表。
    """

    __abstract__ = True

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return resolve_table_name(cls.__name__)

    # Uuid 为通用类型：PostgreSQL 原生 UUID，SQLite 下为 CHAR(32)
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid7, comment="主键 (UUID v7)"
    )

    def update(self, **kwargs: Any) -> None:
        """
        [工具方法] 动态更新模型属性

        用法:
        user.update(**schema.model_dump(exclude_unset=True))
        """
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)


class UUIDModel(UUIDBase, TimestampMixin):
    """
    [标准版] 全站通用的业务模型基类。

    用法示例：
        class Role(UUIDModel, SoftDeleteMixin): ...
    """

    __abstract__ = True

