"""
File: accounts/domains/users/dependencies.py
Description: 用户领域依赖注入 (DI)

依赖链：
DBSession + Settings.DEFAULT_ROLE_CODE → UserService → UserServiceDep

Router 层将直接使用 UserServiceDep，无需关心底层细节。

Author: jinmozhe
Created: 2025-11-26
Updated: 2026-10-12 (Service composes its own repositories)
"""

from typing import Annotated

from fastapi import Depends

from accounts.api.deps import DBSession
from accounts.core.config import settings
from accounts.domains.users.service import UserService


async def get_user_service(session: DBSession) -> UserService:
    """
    获取用户服务实例 (UserService)。
    默认角色编码作为显式配置传入，服务不持有全局状态。
    """
    return UserService(session=session, default_role_code=settings.DEFAULT_ROLE_CODE)


# Router 中只需写: service: UserServiceDep
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
