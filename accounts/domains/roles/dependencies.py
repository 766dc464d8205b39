"""
File: accounts/domains/roles/dependencies.py
Description: 角色领域依赖注入 (DI)

Author: jinmozhe
Created: 2026-10-12
"""

from typing import Annotated

from fastapi import Depends

from accounts.api.deps import DBSession
from accounts.domains.roles.service import RoleService


async def get_role_service(session: DBSession) -> RoleService:
    return RoleService(session=session)


RoleServiceDep = Annotated[RoleService, Depends(get_role_service)]
