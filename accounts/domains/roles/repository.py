"""
File: accounts/domains/roles/repository.py
Description: 角色领域仓储层

1. RoleRepository: 角色读取 (按 ID 批量 / 按编码 / 列表查询)
2. UserRoleRepository: 用户-角色关联表读取 (有效/全部状态)，
   以及按用户批量合并角色 (列表接口一次查询补齐)

注意：关联表的写入 (插入/软删除/恢复) 只能由一致性服务发起。

Author: jinmozhe
Created: 2026-10-12
"""

import uuid
from collections import defaultdict
from collections.abc import Sequence

from sqlalchemy import ColumnElement, asc, desc, func, or_, select

from accounts.db.models import Role, UserRole
from accounts.db.repositories.base import SoftDeleteRepository
from accounts.domains.roles.schemas import RoleListQuery


class RoleRepository(SoftDeleteRepository[Role]):
    """
    角色仓储类。
    除 get_any 外，查询方法默认只返回有效行。
    """

    async def get_live_by_code(self, code: str) -> Role | None:
        stmt = select(Role).where(Role.code == code, self.live_clause())
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_live_by_ids(self, role_ids: Sequence[uuid.UUID]) -> list[Role]:
        """按 ID 批量读取有效角色 (返回顺序不保证与入参一致)"""
        if not role_ids:
            return []
        stmt = select(Role).where(Role.id.in_(role_ids), self.live_clause())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_roles(self, query: RoleListQuery) -> tuple[list[Role], int]:
        """
        分页查询有效角色
        """
        filters: list[ColumnElement[bool]] = [self.live_clause()]
        if query.keyword:
            pattern = f"%{query.keyword}%"
            filters.append(or_(Role.code.ilike(pattern), Role.name.ilike(pattern)))
        if query.status is not None:
            filters.append(Role.status == query.status)

        count_stmt = select(func.count()).select_from(Role).where(*filters)
        total = (await self.session.execute(count_stmt)).scalar() or 0

        order = desc if query.sort_dir == "desc" else asc
        stmt = (
            select(Role)
            .where(*filters)
            .order_by(order(getattr(Role, query.sort_by)), order(Role.id))
            .offset((query.page - 1) * query.page_size)
            .limit(query.page_size)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total


class UserRoleRepository(SoftDeleteRepository[UserRole]):
    """
    用户角色关联仓储
    """

    async def get_live_link(
        self, user_id: uuid.UUID, role_id: uuid.UUID
    ) -> UserRole | None:
        stmt = select(UserRole).where(
            UserRole.user_id == user_id,
            UserRole.role_id == role_id,
            self.live_clause(),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_links(
        self, user_id: uuid.UUID, role_ids: Sequence[uuid.UUID]
    ) -> list[UserRole]:
        """
        读取 (user_id, role_ids) 的全部关联行，包含已软删除的。
        已删除行按删除时间倒序，便于优先复活最近一次删除的记录。
        """
        if not role_ids:
            return []
        stmt = (
            select(UserRole)
            .where(UserRole.user_id == user_id, UserRole.role_id.in_(role_ids))
            .order_by(desc(UserRole.deleted_at), desc(UserRole.created_at))
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_live_roles_for_users(
        self, user_ids: Sequence[uuid.UUID]
    ) -> dict[uuid.UUID, list[Role]]:
        """
        一次查询取回多个用户的有效角色 (关联与角色均为有效行)。

        Returns:
            dict: user_id -> 角色列表 (按编码排序)
        """
        roles_by_user: dict[uuid.UUID, list[Role]] = defaultdict(list)
        if not user_ids:
            return roles_by_user

        stmt = (
            select(UserRole.user_id, Role)
            .join(Role, Role.id == UserRole.role_id)
            .where(
                UserRole.user_id.in_(user_ids),
                self.live_clause(),
                Role.deleted_at.is_(None),
            )
            .order_by(Role.code)
        )
        result = await self.session.execute(stmt)
        for user_id, role in result.all():
            roles_by_user[user_id].append(role)
        return roles_by_user
