"""
File: accounts/db/models/log.py
Description: 审计日志模型 (只追加)

一致性引擎的每次写操作都会在同一事务内追加一行日志。
本表不参与软删除/恢复，核心业务从不修改或删除日志；
过期清理由独立的保留策略 (AuditLogService.purge_*) 负责。

Author: jinmozhe
Created: 2026-10-12
"""

import enum
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Enum, Index, String, Text, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from accounts.db.models.base import UUIDBase, utc_now


class AuditAction(str, enum.Enum):
    """审计动作"""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    SOFT_DELETE = "SOFT_DELETE"
    RESTORE = "RESTORE"
    ASSIGN_ROLE = "ASSIGN_ROLE"
    ASSIGN_ROLE_RESTORE = "ASSIGN_ROLE_RESTORE"
    REMOVE_ROLE = "REMOVE_ROLE"


class AuditLog(UUIDBase):
    """
    审计日志表

    actor_user_id 为空表示系统发起的操作。
    target_id 为字符串：聚合行使用 UUID，用户角色关联使用 "user_id:role_id"。
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "logs"

    __table_args__ = (
        Index("ix_logs_target", "target_table", "target_id"),
        Index("ix_logs_created_at", "created_at"),
    )

    # 不声明外键：日志需在用户被清理后依然保留
    actor_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True), nullable=True, index=True, comment="操作人ID (空=系统)"
    )

    target_table: Mapped[str] = mapped_column(
        String(50), nullable=False, comment="目标表名"
    )

    target_id: Mapped[str] = mapped_column(
        String(100), nullable=False, comment="目标记录标识"
    )

    action: Mapped[AuditAction] = mapped_column(
        Enum(AuditAction, native_enum=False, length=32, validate_strings=True),
        nullable=False,
        comment="审计动作",
    )

    message: Mapped[str] = mapped_column(Text, nullable=False, comment="日志描述")

    # PostgreSQL 使用 JSONB，其他方言回退为通用 JSON
    detail: Mapped[dict[str, Any] | None] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=True,
        comment="结构化详情 (已脱敏)",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
        comment="创建时间 (UTC)",
    )
