"""
File: accounts/domains/roles/schemas.py
Description: 角色领域 Pydantic 模型 (Schema)

1. RoleCreate / RoleUpdate: 输入模型
2. RoleRead / RoleBrief: 输出模型
3. RoleListQuery: 列表查询参数 (关键字 / 状态过滤 / 分页 / 排序)

Author: jinmozhe
Created: 2026-10-12
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from accounts.db.models import LifecycleState, RoleStatus

# ------------------------------------------------------------------------------
# Input Schemas
# ------------------------------------------------------------------------------


class RoleCreate(BaseModel):
    code: str = Field(
        ...,
        min_length=1,
        max_length=50,
        pattern=r"^[A-Za-z0-9_\-:.]+$",
        description="角色编码 (有效行唯一)",
        examples=["admin"],
    )
    name: str = Field(..., min_length=1, max_length=100, description="角色名称")
    description: str | None = Field(default=None, max_length=255)
    status: RoleStatus = Field(default=RoleStatus.ENABLED, description="角色状态")


class RoleUpdate(BaseModel):
    """
    角色更新模型 (PATCH 语义，仅更新传入字段)
    """

    code: str | None = Field(
        default=None, min_length=1, max_length=50, pattern=r"^[A-Za-z0-9_\-:.]+$"
    )
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=255)
    status: RoleStatus | None = Field(default=None)


class RoleListQuery(BaseModel):
    """角色列表查询参数"""

    keyword: str | None = Field(default=None, description="匹配编码或名称")
    status: RoleStatus | None = Field(default=None, description="状态过滤")
    page: int = Field(default=1, ge=1, description="页码")
    page_size: int = Field(default=20, ge=1, le=100, description="每页条数")
    sort_by: Literal["created_at", "code", "name"] = "created_at"
    sort_dir: Literal["asc", "desc"] = "desc"


# ------------------------------------------------------------------------------
# Output Schemas
# ------------------------------------------------------------------------------


class RoleBrief(BaseModel):
    """嵌入用户详情中的角色摘要"""

    id: UUID
    code: str
    name: str
    status: RoleStatus

    model_config = ConfigDict(from_attributes=True)


class RoleRead(RoleBrief):
    description: str | None = None
    state: LifecycleState = Field(..., description="生命周期状态")
    created_at: datetime = Field(..., description="创建时间 (UTC)")
    updated_at: datetime = Field(..., description="更新时间 (UTC)")
    deleted_at: datetime | None = Field(default=None, description="删除时间 (UTC)")
