"""
File: accounts/domains/roles/service.py
Description: 角色聚合一致性服务

与用户聚合同构：创建 / 更新 / 软删除 / 恢复，每个写操作一个事务、一条审计日志。
角色的级联只触达用户角色关联 (user_roles)：
- 软删除角色：其全部有效关联写入与角色相同的删除戳
- 恢复角色：只恢复删除戳相同且用户仍有效的关联

Author: jinmozhe
Created: 2026-10-12
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from accounts.core.exceptions import ConflictException, NotFoundException
from accounts.core.logging import logger
from accounts.core.response import PageData
from accounts.db.models import AuditAction, Role, User, UserRole
from accounts.db.models.base import utc_now
from accounts.db.transaction import atomic
from accounts.domains.audit.service import AuditRecorder
from accounts.domains.roles.constants import ROLES_TABLE, RoleError
from accounts.domains.roles.repository import RoleRepository, UserRoleRepository
from accounts.domains.roles.schemas import (
    RoleCreate,
    RoleListQuery,
    RoleRead,
    RoleUpdate,
)
from accounts.domains.uniqueness import UniqueField, UniquenessGuard


class RoleService:
    """
    角色领域服务
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.roles = RoleRepository(model=Role, session=session)
        self.user_roles = UserRoleRepository(model=UserRole, session=session)
        self.guard = UniquenessGuard(session)
        self.audit = AuditRecorder(session)

    async def get(self, role_id: uuid.UUID) -> Role:
        role = await self.roles.get_live(role_id)
        if role is None:
            raise NotFoundException(RoleError.ROLE_NOT_FOUND, data={"id": str(role_id)})
        return role

    async def list_roles(self, query: RoleListQuery) -> PageData[RoleRead]:
        roles, total = await self.roles.list_roles(query)
        return PageData[RoleRead](
            items=[RoleRead.model_validate(role) for role in roles],
            total=total,
            page=query.page,
            page_size=query.page_size,
        )

    async def create(
        self, obj_in: RoleCreate, actor_id: uuid.UUID | None = None
    ) -> Role:
        async with atomic(self.session):
            await self.guard.ensure(UniqueField.ROLE_CODE, obj_in.code)

            role = await self.roles.add(Role(**obj_in.model_dump()))

            await self.audit.record(
                AuditAction.CREATE,
                ROLES_TABLE,
                role.id,
                f"创建角色 {role.code}",
                actor_id=actor_id,
                detail=obj_in.model_dump(),
            )

        logger.bind(role_id=str(role.id), code=role.code).info("Role created")
        return role

    async def update(
        self,
        role_id: uuid.UUID,
        obj_in: RoleUpdate,
        actor_id: uuid.UUID | None = None,
    ) -> Role:
        """部分更新角色 (code / name / status 不允许置空)"""
        async with atomic(self.session):
            role = await self.get(role_id)

            changes = obj_in.model_dump(exclude_unset=True)
            patch = {
                key: value
                for key, value in changes.items()
                if value is not None or key == "description"
            }

            if "code" in patch and patch["code"] != role.code:
                await self.guard.ensure(
                    UniqueField.ROLE_CODE, patch["code"], exclude_id=role.id
                )

            if patch:
                role = await self.roles.update(role, patch)

            await self.audit.record(
                AuditAction.UPDATE,
                ROLES_TABLE,
                role.id,
                f"更新角色 {role.code}",
                actor_id=actor_id,
                detail={"changes": changes},
            )

        logger.bind(role_id=str(role.id), fields=sorted(changes)).info("Role updated")
        return role

    async def soft_delete(
        self, role_id: uuid.UUID, actor_id: uuid.UUID | None = None
    ) -> None:
        """软删除角色，级联软删除其全部有效用户关联"""
        async with atomic(self.session):
            role = await self.get(role_id)
            deleted_at = utc_now()

            role.mark_deleted(deleted_at)
            await self.session.flush()

            links = await self.user_roles.soft_delete_where(
                UserRole.role_id == role.id, at=deleted_at
            )

            await self.audit.record(
                AuditAction.SOFT_DELETE,
                ROLES_TABLE,
                role.id,
                f"删除角色 {role.code}",
                actor_id=actor_id,
                detail={"user_roles": links},
            )

        logger.bind(role_id=str(role_id), user_roles=links).info("Role soft deleted")

    async def restore(
        self, role_id: uuid.UUID, actor_id: uuid.UUID | None = None
    ) -> Role:
        """
        恢复角色及被同一次删除动作级联的用户关联 (用户须仍有效)。
        """
        async with atomic(self.session):
            role = await self.roles.get_any(role_id)
            if role is None:
                raise NotFoundException(
                    RoleError.ROLE_NOT_FOUND, data={"id": str(role_id)}
                )
            if role.is_live:
                raise ConflictException(RoleError.NOT_DELETED, data={"id": str(role_id)})

            await self.guard.ensure(UniqueField.ROLE_CODE, role.code, exclude_id=role.id)

            stamp = role.deleted_at
            role.mark_live()
            await self.session.flush()

            live_users = select(User.id).where(User.deleted_at.is_(None))
            links = await self.user_roles.restore_where(
                UserRole.role_id == role.id,
                UserRole.user_id.in_(live_users),
                stamp=stamp,
            )

            await self.audit.record(
                AuditAction.RESTORE,
                ROLES_TABLE,
                role.id,
                f"恢复角色 {role.code}",
                actor_id=actor_id,
                detail={"user_roles": links},
            )
            await self.session.refresh(role)

        logger.bind(role_id=str(role.id), user_roles=links).info("Role restored")
        return role
