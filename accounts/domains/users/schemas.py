"""
File: accounts/domains/users/schemas.py
Description: 用户领域 Pydantic 模型 (Schema)

本模块定义了用户相关的输入/输出数据结构：
1. UserCreate / UserUpdate: 一致性服务的输入 (只含 password_hash，不含明文)
2. UserCreateRequest / UserUpdateRequest: HTTP 请求体 (含明文 password，
   由 Router 哈希后转换为上面的服务输入)
3. ProfileFields: 档案字段 (创建/更新时内嵌)
4. UserRead / UserDetail / ProfileRead / UserRoleRead: 响应模型
5. UserListQuery / AssignRolesRequest: 查询与分配角色参数

规范：
- 严格遵循 Pydantic V2 写法 (ConfigDict)
- 响应模型开启 from_attributes=True 以支持 ORM 转换
- 任何响应模型都不包含 password_hash

Author: jinmozhe
Created: 2025-11-25
Updated: 2026-10-12 (Profile / roles / lifecycle)
"""

from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from accounts.db.models import LifecycleState
from accounts.domains.roles.schemas import RoleBrief

USERNAME_PATTERN = r"^[A-Za-z0-9_.\-]+$"

# ------------------------------------------------------------------------------
# Shared Properties
# ------------------------------------------------------------------------------


class ProfileFields(BaseModel):
    """
    档案字段 (全部可选)。
    更新时按 exclude_unset 语义做部分更新。
    """

    full_name: str | None = Field(default=None, max_length=100, description="姓名")
    phone: str | None = Field(default=None, max_length=20, description="联系电话")
    email: EmailStr | None = Field(default=None, description="联系邮箱")
    avatar: str | None = Field(default=None, max_length=255, description="头像URL")
    birthday: date | None = Field(default=None, description="出生日期")


# ------------------------------------------------------------------------------
# Service Input Schemas (一致性服务输入)
# ------------------------------------------------------------------------------


class UserCreate(BaseModel):
    """
    创建用户的服务输入。
    role_ids 为 None 时使用配置的默认角色 (如有)；传空列表表示不分配角色。
    """

    username: str = Field(..., min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    password_hash: str = Field(..., min_length=1, max_length=255)
    email: EmailStr | None = Field(default=None)
    is_active: bool = Field(default=True)
    profile: ProfileFields | None = Field(default=None)
    role_ids: list[UUID] | None = Field(default=None)


class UserUpdate(BaseModel):
    """
    更新用户的服务输入 (PATCH 语义)。
    profile 存在时对档案做 upsert。
    """

    username: str | None = Field(
        default=None, min_length=3, max_length=50, pattern=USERNAME_PATTERN
    )
    email: EmailStr | None = Field(default=None)
    password_hash: str | None = Field(default=None, min_length=1, max_length=255)
    is_active: bool | None = Field(default=None)
    profile: ProfileFields | None = Field(default=None)


# ------------------------------------------------------------------------------
# HTTP Request Schemas
# ------------------------------------------------------------------------------


class UserCreateRequest(BaseModel):
    """创建用户请求体 (明文密码仅存在于 HTTP 边界)"""

    username: str = Field(
        ...,
        min_length=3,
        max_length=50,
        pattern=USERNAME_PATTERN,
        examples=["alice"],
    )
    password: str = Field(..., min_length=6, max_length=128, description="明文密码")
    email: EmailStr | None = Field(default=None, examples=["alice@example.com"])
    is_active: bool = Field(default=True)
    profile: ProfileFields | None = Field(default=None)
    role_ids: list[UUID] | None = Field(default=None, description="初始角色")


class UserUpdateRequest(BaseModel):
    username: str | None = Field(
        default=None, min_length=3, max_length=50, pattern=USERNAME_PATTERN
    )
    email: EmailStr | None = Field(default=None)
    password: str | None = Field(
        default=None, min_length=6, max_length=128, description="新密码 (如需修改)"
    )
    is_active: bool | None = Field(default=None)
    profile: ProfileFields | None = Field(default=None)


class AssignRolesRequest(BaseModel):
    role_ids: list[UUID] = Field(..., min_length=1, description="待分配角色ID")


class UserListQuery(BaseModel):
    """用户列表查询参数 (仅返回有效用户)"""

    username: str | None = Field(default=None, description="用户名精确匹配")
    email: str | None = Field(default=None, description="邮箱精确匹配")
    is_active: bool | None = Field(default=None)
    keyword: str | None = Field(default=None, description="匹配用户名/邮箱/姓名")
    include_profile: bool = Field(default=False)
    include_roles: bool = Field(default=False)
    page: int = Field(default=1, ge=1, description="页码")
    page_size: int = Field(default=20, ge=1, le=100, description="每页条数")
    sort_by: Literal["created_at", "updated_at", "username", "email"] = "created_at"
    sort_dir: Literal["asc", "desc"] = "desc"


# ------------------------------------------------------------------------------
# Output Schemas
# ------------------------------------------------------------------------------


class ProfileRead(ProfileFields):
    id: UUID
    user_id: UUID
    email: str | None = None
    state: LifecycleState
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class UserRead(BaseModel):
    """
    用户读取模型 (响应)。
    屏蔽 password_hash，增加生命周期字段。
    """

    id: UUID = Field(..., description="用户 ID (UUID v7)")
    username: str
    email: str | None = None
    is_active: bool = Field(..., description="账号状态")
    state: LifecycleState = Field(..., description="生命周期状态")
    created_at: datetime = Field(..., description="创建时间 (UTC)")
    updated_at: datetime = Field(..., description="更新时间 (UTC)")
    deleted_at: datetime | None = Field(default=None, description="删除时间 (UTC)")

    model_config = ConfigDict(from_attributes=True)


class UserDetail(UserRead):
    """用户聚合视图：用户 + 有效档案 + 有效角色"""

    profile: ProfileRead | None = None
    roles: list[RoleBrief] = Field(default_factory=list)


class UserRoleRead(BaseModel):
    id: UUID
    user_id: UUID
    role_id: UUID
    state: LifecycleState
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
