"""
File: accounts/api/deps.py
Description: 全局依赖注入定义 (DB Session + Actor)

本模块负责：
1. 数据库会话管理 (get_db / DBSession)
2. 操作人标识提取 (get_actor_id / ActorId)

本服务不做鉴权：操作人 ID 由上游身份层通过 X-Actor-ID 请求头传入，
仅用于审计归属；缺省表示系统操作。

Author: jinmozhe
Created: 2025-12-05
Updated: 2026-10-12 (Actor header replaces JWT)
"""

from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from accounts.core.middleware import ACTOR_HEADER
from accounts.db.session import AsyncSessionLocal

# ------------------------------------------------------------------------------
# 1. Database Dependencies
# ------------------------------------------------------------------------------


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    获取异步数据库会话依赖。
    使用 async with 确保请求结束时自动关闭 session。
    """
    async with AsyncSessionLocal() as session:
        yield session


# 数据库会话依赖类型别名
DBSession = Annotated[AsyncSession, Depends(get_db)]


# ------------------------------------------------------------------------------
# 2. Actor Dependencies
# ------------------------------------------------------------------------------


async def get_actor_id(
    actor_id: Annotated[UUID | None, Header(alias=ACTOR_HEADER)] = None,
) -> UUID | None:
    """
    读取操作人 ID。
    格式非法时由 FastAPI 校验失败，返回 400 (system.invalid_params)。
    """
    return actor_id


# 用法: async def endpoint(actor_id: ActorId): ...
ActorId = Annotated[UUID | None, Depends(get_actor_id)]
