"""
File: accounts/domains/audit/schemas.py
Description: 审计日志 Pydantic 模型

Author: jinmozhe
Created: 2026-10-12
"""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from accounts.db.models import AuditAction


class AuditLogQuery(BaseModel):
    """审计日志查询参数 (默认按创建时间倒序)"""

    actor_user_id: UUID | None = Field(default=None, description="操作人")
    target_table: str | None = Field(default=None, description="目标表名")
    target_id: str | None = Field(default=None, description="目标记录标识")
    action: AuditAction | None = Field(default=None, description="审计动作")
    keyword: str | None = Field(default=None, description="日志描述模糊匹配")
    created_from: datetime | None = Field(default=None, description="起始时间 (含)")
    created_to: datetime | None = Field(default=None, description="截止时间 (不含)")
    page: int = Field(default=1, ge=1, description="页码")
    page_size: int = Field(default=20, ge=1, le=100, description="每页条数")
    sort_dir: Literal["asc", "desc"] = "desc"

    @model_validator(mode="after")
    def _check_window(self) -> "AuditLogQuery":
        if self.created_from and self.created_to and self.created_from >= self.created_to:
            raise ValueError("created_from 必须早于 created_to")
        return self


class AuditLogRead(BaseModel):
    id: UUID = Field(..., description="日志ID")
    actor_user_id: UUID | None = Field(default=None, description="操作人 (空=系统)")
    target_table: str
    target_id: str
    action: AuditAction
    message: str
    detail: dict[str, Any] | None = None
    created_at: datetime = Field(..., description="记录时间")

    model_config = ConfigDict(from_attributes=True)
