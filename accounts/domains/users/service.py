"""
File: accounts/domains/users/service.py
Description: 用户聚合一致性服务 (业务逻辑层)

模型层禁用了 ORM 级联与关系，本服务手动维护 User / Profile / UserRole / Log
四张表的一致性。每个公开写操作都是一个工作单元 (atomic)：
唯一性校验 -> 结构写入 -> 审计追加 -> 提交；任一步失败整体回滚。

级联规则：
1. 软删除用户时，有效档案与全部有效角色关联写入与用户相同的删除戳
2. 恢复用户时，只恢复删除戳相同的子记录 (即被同一次删除动作级联的记录)；
   角色关联还要求角色本身仍有效
3. 档案可被单独删除/恢复，用户保持有效

注意：
- 服务只接收 password_hash，哈希由 HTTP 边界完成
- 默认角色按配置的编码在每次创建时实时查询，不做进程内缓存

Author: jinmozhe
Created: 2025-11-25
Updated: 2026-10-12 (Cascading soft delete / restore)
"""

import uuid
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from accounts.core.exceptions import (
    ConflictException,
    InvalidStateException,
    NotFoundException,
)
from accounts.core.logging import logger
from accounts.core.response import PageData
from accounts.db.models import (
    AuditAction,
    Profile,
    Role,
    RoleStatus,
    User,
    UserRole,
)
from accounts.db.models.base import utc_now
from accounts.db.transaction import atomic
from accounts.domains.audit.service import AuditRecorder
from accounts.domains.roles.constants import RoleError
from accounts.domains.roles.repository import RoleRepository, UserRoleRepository
from accounts.domains.uniqueness import UniqueField, UniquenessGuard
from accounts.domains.users.aggregate import UserAggregate
from accounts.domains.users.constants import (
    PROFILES_TABLE,
    USER_ROLES_TABLE,
    USERS_TABLE,
    UserError,
)
from accounts.domains.users.repository import ProfileRepository, UserRepository
from accounts.domains.users.schemas import (
    UserCreate,
    UserDetail,
    UserListQuery,
    UserUpdate,
)
from accounts.utils.masking import mask_email


def unique_ids(ids: Sequence[uuid.UUID]) -> list[uuid.UUID]:
    """去重并保持原始顺序"""
    return list(dict.fromkeys(ids))


def link_target_id(user_id: uuid.UUID, role_id: uuid.UUID) -> str:
    """用户角色关联在审计日志中的目标标识"""
    return f"{user_id}:{role_id}"


class UserService:
    """
    用户领域服务。

    职责：
    - 编排用户聚合的多表原子操作
    - 执行业务规则校验 (唯一性、存在性、生命周期状态)
    - 为每个写操作追加审计日志
    """

    def __init__(self, session: AsyncSession, default_role_code: str | None = None):
        self.session = session
        self.default_role_code = default_role_code
        self.users = UserRepository(model=User, session=session)
        self.profiles = ProfileRepository(model=Profile, session=session)
        self.roles = RoleRepository(model=Role, session=session)
        self.user_roles = UserRoleRepository(model=UserRole, session=session)
        self.guard = UniquenessGuard(session)
        self.audit = AuditRecorder(session)

    # --------------------------------------------------------------------------
    # 查询
    # --------------------------------------------------------------------------

    async def get(self, user_id: uuid.UUID) -> User:
        """
        获取有效用户。
        不存在或已被软删除时抛出 NotFoundException。
        """
        user = await self.users.get_live(user_id)
        if user is None:
            raise NotFoundException(UserError.USER_NOT_FOUND, data={"id": str(user_id)})
        return user

    async def get_aggregate(self, user_id: uuid.UUID) -> UserAggregate:
        """用户 + 有效档案 + 有效角色"""
        user = await self.get(user_id)
        profile = await self.profiles.get_live_by_user(user.id)
        roles_by_user = await self.user_roles.list_live_roles_for_users([user.id])
        return UserAggregate(user=user, profile=profile, roles=roles_by_user[user.id])

    async def list_users(self, query: UserListQuery) -> PageData[UserDetail]:
        users, total = await self.users.list_users(query)
        user_ids = [user.id for user in users]

        profiles = (
            await self.profiles.map_live_by_users(user_ids)
            if query.include_profile
            else {}
        )
        roles_by_user = (
            await self.user_roles.list_live_roles_for_users(user_ids)
            if query.include_roles
            else {}
        )

        items = [
            UserAggregate(
                user=user,
                profile=profiles.get(user.id),
                roles=roles_by_user.get(user.id, []),
            ).to_detail()
            for user in users
        ]
        return PageData[UserDetail](
            items=items, total=total, page=query.page, page_size=query.page_size
        )

    # --------------------------------------------------------------------------
    # 写操作 (每个方法一个事务)
    # --------------------------------------------------------------------------

    async def create(
        self, obj_in: UserCreate, actor_id: uuid.UUID | None = None
    ) -> User:
        """
        创建用户 (可同时创建档案、分配角色)。
        只写一条 CREATE 日志，初始角色不单独记录 ASSIGN_ROLE。
        """
        async with atomic(self.session):
            # 1. 唯一性校验 (Fail Fast)
            await self.guard.ensure(UniqueField.USERNAME, obj_in.username)
            await self.guard.ensure(UniqueField.EMAIL, obj_in.email)

            # 2. 解析初始角色
            if obj_in.role_ids is None:
                roles = await self._default_roles()
            else:
                roles = await self._load_assignable_roles(obj_in.role_ids)

            # 3. 结构写入
            user = await self.users.add(
                User(
                    username=obj_in.username,
                    email=obj_in.email,
                    password_hash=obj_in.password_hash,
                    is_active=obj_in.is_active,
                )
            )
            if obj_in.profile is not None:
                await self.profiles.add(
                    Profile(user_id=user.id, **obj_in.profile.model_dump())
                )
            for role in roles:
                self.session.add(UserRole(user_id=user.id, role_id=role.id))
            await self.session.flush()

            # 4. 审计
            await self.audit.record(
                AuditAction.CREATE,
                USERS_TABLE,
                user.id,
                f"创建用户 {user.username}",
                actor_id=actor_id,
                detail={
                    "username": user.username,
                    "email": user.email,
                    "has_profile": obj_in.profile is not None,
                    "role_ids": [role.id for role in roles],
                },
            )

        logger.bind(
            user_id=str(user.id),
            email=mask_email(user.email) if user.email else None,
            roles=len(roles),
        ).info("User created successfully")
        return user

    async def update(
        self,
        user_id: uuid.UUID,
        obj_in: UserUpdate,
        actor_id: uuid.UUID | None = None,
    ) -> User:
        """
        部分更新用户；传入 profile 时对档案做 upsert。
        """
        async with atomic(self.session):
            user = await self.get(user_id)

            changes = obj_in.model_dump(exclude_unset=True)
            profile_fields: dict[str, Any] | None = changes.pop("profile", None)
            # username / password_hash / is_active 不允许置空
            patch = {
                key: value
                for key, value in changes.items()
                if value is not None or key == "email"
            }

            # 1. 唯一性字段变更校验 (排除自身)
            if "username" in patch and patch["username"] != user.username:
                await self.guard.ensure(
                    UniqueField.USERNAME, patch["username"], exclude_id=user.id
                )
            if "email" in patch and patch["email"] != user.email:
                await self.guard.ensure(
                    UniqueField.EMAIL, patch["email"], exclude_id=user.id
                )

            # 2. 结构写入
            if patch:
                user = await self.users.update(user, patch)
            if profile_fields is not None:
                await self._upsert_profile(user.id, profile_fields)

            # 3. 审计 (detail 在 AuditRecorder 中脱敏)
            await self.audit.record(
                AuditAction.UPDATE,
                USERS_TABLE,
                user.id,
                f"更新用户 {user.username}",
                actor_id=actor_id,
                detail={"changes": obj_in.model_dump(exclude_unset=True)},
            )

        logger.bind(user_id=str(user.id), fields=sorted(changes)).info(
            "User updated successfully"
        )
        return user

    async def soft_delete(
        self, user_id: uuid.UUID, actor_id: uuid.UUID | None = None
    ) -> None:
        """
        软删除用户，并以同一删除戳级联软删除有效档案与角色关联。
        已删除的用户视为不存在 (NotFound)。
        """
        async with atomic(self.session):
            user = await self.get(user_id)
            deleted_at = utc_now()

            user.mark_deleted(deleted_at)
            await self.session.flush()

            profiles = await self.profiles.soft_delete_where(
                Profile.user_id == user.id, at=deleted_at
            )
            links = await self.user_roles.soft_delete_where(
                UserRole.user_id == user.id, at=deleted_at
            )

            await self.audit.record(
                AuditAction.SOFT_DELETE,
                USERS_TABLE,
                user.id,
                f"删除用户 {user.username}",
                actor_id=actor_id,
                detail={"profiles": profiles, "user_roles": links},
            )

        logger.bind(user_id=str(user_id), profiles=profiles, user_roles=links).info(
            "User soft deleted"
        )

    async def restore(
        self, user_id: uuid.UUID, actor_id: uuid.UUID | None = None
    ) -> User:
        """
        恢复已软删除的用户及被同一次删除动作级联的子记录。
        """
        async with atomic(self.session):
            user = await self.users.get_any(user_id)
            if user is None:
                raise NotFoundException(
                    UserError.USER_NOT_FOUND, data={"id": str(user_id)}
                )
            if user.is_live:
                raise ConflictException(UserError.NOT_DELETED, data={"id": str(user_id)})

            # 删除期间用户名/邮箱可能已被新用户占用
            await self.guard.ensure(UniqueField.USERNAME, user.username, exclude_id=user.id)
            await self.guard.ensure(UniqueField.EMAIL, user.email, exclude_id=user.id)

            stamp = user.deleted_at
            user.mark_live()
            await self.session.flush()

            profiles = await self._restore_profile_with_user(user.id, stamp)
            live_roles = select(Role.id).where(Role.deleted_at.is_(None))
            links = await self.user_roles.restore_where(
                UserRole.user_id == user.id,
                UserRole.role_id.in_(live_roles),
                stamp=stamp,
            )

            await self.audit.record(
                AuditAction.RESTORE,
                USERS_TABLE,
                user.id,
                f"恢复用户 {user.username}",
                actor_id=actor_id,
                detail={"profiles": profiles, "user_roles": links},
            )
            await self.session.refresh(user)

        logger.bind(user_id=str(user.id), profiles=profiles, user_roles=links).info(
            "User restored"
        )
        return user

    async def assign_roles(
        self,
        user_id: uuid.UUID,
        role_ids: Sequence[uuid.UUID],
        actor_id: uuid.UUID | None = None,
    ) -> list[UserRole]:
        """
        为用户分配角色 (幂等)。

        每个角色：
        - 无关联记录 -> 新建 (ASSIGN_ROLE)
        - 存在已删除的关联 -> 复活最近删除的那条 (ASSIGN_ROLE_RESTORE)
        - 已存在有效关联 -> 跳过

        Returns:
            list[UserRole]: 本次新建或复活的关联
        """
        async with atomic(self.session):
            user = await self.get(user_id)
            roles = await self._load_assignable_roles(role_ids)
            changed = await self._link_roles(user.id, roles, actor_id)

        logger.bind(
            user_id=str(user_id), requested=len(roles), changed=len(changed)
        ).info("Roles assigned")
        return changed

    async def remove_role(
        self,
        user_id: uuid.UUID,
        role_id: uuid.UUID,
        actor_id: uuid.UUID | None = None,
    ) -> None:
        """软删除一条有效的用户角色关联"""
        async with atomic(self.session):
            link = await self.user_roles.get_live_link(user_id, role_id)
            if link is None:
                raise NotFoundException(
                    UserError.ROLE_ASSIGNMENT_NOT_FOUND,
                    data={"user_id": str(user_id), "role_id": str(role_id)},
                )

            link.mark_deleted(utc_now())
            await self.session.flush()

            await self.audit.record(
                AuditAction.REMOVE_ROLE,
                USER_ROLES_TABLE,
                link_target_id(user_id, role_id),
                "移除用户角色",
                actor_id=actor_id,
                detail={"user_id": user_id, "role_id": role_id},
            )

        logger.bind(user_id=str(user_id), role_id=str(role_id)).info("Role removed")

    async def soft_delete_profile(
        self, user_id: uuid.UUID, actor_id: uuid.UUID | None = None
    ) -> None:
        """只删除档案，用户保持有效"""
        async with atomic(self.session):
            user = await self.get(user_id)
            profile = await self.profiles.get_live_by_user(user.id)
            if profile is None:
                raise NotFoundException(
                    UserError.PROFILE_NOT_FOUND, data={"user_id": str(user_id)}
                )

            profile.mark_deleted(utc_now())
            await self.session.flush()

            await self.audit.record(
                AuditAction.SOFT_DELETE,
                PROFILES_TABLE,
                profile.id,
                f"删除用户档案 {user.username}",
                actor_id=actor_id,
                detail={"user_id": user.id},
            )

        logger.bind(user_id=str(user_id)).info("Profile soft deleted")

    async def restore_profile(
        self, user_id: uuid.UUID, actor_id: uuid.UUID | None = None
    ) -> Profile:
        """恢复用户最近一次被删除的档案"""
        async with atomic(self.session):
            user = await self.get(user_id)
            if await self.profiles.get_live_by_user(user.id) is not None:
                raise InvalidStateException(
                    UserError.PROFILE_ALREADY_LIVE, data={"user_id": str(user_id)}
                )

            profile = await self.profiles.get_latest_deleted(user.id)
            if profile is None:
                raise NotFoundException(
                    UserError.PROFILE_NOT_FOUND, data={"user_id": str(user_id)}
                )

            profile.mark_live()
            await self.session.flush()

            await self.audit.record(
                AuditAction.RESTORE,
                PROFILES_TABLE,
                profile.id,
                f"恢复用户档案 {user.username}",
                actor_id=actor_id,
                detail={"user_id": user.id},
            )
            await self.session.refresh(profile)

        logger.bind(user_id=str(user_id)).info("Profile restored")
        return profile

    # --------------------------------------------------------------------------
    # 内部步骤 (均在调用方事务内执行)
    # --------------------------------------------------------------------------

    async def _load_assignable_roles(self, role_ids: Sequence[uuid.UUID]) -> list[Role]:
        """
        按入参顺序返回有效且启用的角色。
        缺失 -> NotFound (附带 missing_ids)；已禁用 -> InvalidState。
        """
        ids = unique_ids(role_ids)
        found = {role.id: role for role in await self.roles.list_live_by_ids(ids)}

        missing = [role_id for role_id in ids if role_id not in found]
        if missing:
            raise NotFoundException(
                UserError.ROLE_NOT_FOUND,
                data={"missing_ids": [str(role_id) for role_id in missing]},
            )

        roles = [found[role_id] for role_id in ids]
        disabled = [role for role in roles if role.status is RoleStatus.DISABLED]
        if disabled:
            raise InvalidStateException(
                RoleError.DISABLED,
                data={"role_ids": [str(role.id) for role in disabled]},
            )
        return roles

    async def _default_roles(self) -> list[Role]:
        """按配置的默认角色编码实时查询；未配置或不可用时不分配"""
        if not self.default_role_code:
            return []

        role = await self.roles.get_live_by_code(self.default_role_code)
        if role is None or role.status is not RoleStatus.ENABLED:
            logger.bind(role_code=self.default_role_code).warning(
                "Default role unavailable, user created without roles"
            )
            return []
        return [role]

    async def _link_roles(
        self,
        user_id: uuid.UUID,
        roles: Sequence[Role],
        actor_id: uuid.UUID | None,
    ) -> list[UserRole]:
        links = await self.user_roles.list_links(user_id, [role.id for role in roles])
        links_by_role: dict[uuid.UUID, list[UserRole]] = {}
        for link in links:
            links_by_role.setdefault(link.role_id, []).append(link)

        changed: list[UserRole] = []
        for role in roles:
            existing = links_by_role.get(role.id, [])
            if any(link.is_live for link in existing):
                continue

            if existing:
                # list_links 已按删除时间倒序
                link = existing[0]
                link.mark_live()
                await self.session.flush()
                action = AuditAction.ASSIGN_ROLE_RESTORE
                message = f"恢复角色 {role.code}"
            else:
                link = await self.user_roles.add(
                    UserRole(user_id=user_id, role_id=role.id)
                )
                action = AuditAction.ASSIGN_ROLE
                message = f"分配角色 {role.code}"

            await self.audit.record(
                action,
                USER_ROLES_TABLE,
                link_target_id(user_id, role.id),
                message,
                actor_id=actor_id,
                detail={"user_id": user_id, "role_id": role.id, "role_code": role.code},
            )
            changed.append(link)

        return changed

    async def _upsert_profile(
        self, user_id: uuid.UUID, fields: dict[str, Any]
    ) -> Profile:
        profile = await self.profiles.get_live_by_user(user_id)
        if profile is None:
            return await self.profiles.add(Profile(user_id=user_id, **fields))
        return await self.profiles.update(profile, fields)

    async def _restore_profile_with_user(
        self, user_id: uuid.UUID, stamp: datetime
    ) -> int:
        """
        恢复与用户同一删除戳的档案。
        没有匹配且当前无有效档案时，退而恢复最近删除的那一份。
        """
        restored = await self.profiles.restore_where(
            Profile.user_id == user_id, stamp=stamp
        )
        if restored:
            return restored

        if await self.profiles.get_live_by_user(user_id) is not None:
            return 0

        profile = await self.profiles.get_latest_deleted(user_id)
        if profile is None:
            return 0
        profile.mark_live()
        await self.session.flush()
        return 1
