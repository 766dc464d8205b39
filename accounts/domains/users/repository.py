"""
File: accounts/domains/users/repository.py
Description: 用户领域仓储层 (Repository)

1. UserRepository: 用户读取与列表查询 (精确过滤 / 关键字 / 排序 / 分页)
2. ProfileRepository: 档案读取 (有效档案 / 最近删除的档案 / 批量按用户)

注意：
查询方法默认过滤软删除数据 (deleted_at IS NULL)。
恢复流程需要看到已删除行，请使用 get_any / get_latest_deleted。

Author: jinmozhe
Created: 2025-11-25
Updated: 2026-10-12 (Profile repository, list query)
"""

import uuid
from collections.abc import Sequence

from sqlalchemy import ColumnElement, asc, desc, exists, func, or_, select

from accounts.db.models import Profile, User
from accounts.db.repositories.base import SoftDeleteRepository
from accounts.domains.users.schemas import UserListQuery


class UserRepository(SoftDeleteRepository[User]):
    """
    用户仓储类。
    """

    @staticmethod
    def _build_filters(query: UserListQuery) -> list[ColumnElement[bool]]:
        filters: list[ColumnElement[bool]] = [User.deleted_at.is_(None)]
        if query.username:
            filters.append(User.username == query.username)
        if query.email:
            filters.append(User.email == query.email)
        if query.is_active is not None:
            filters.append(User.is_active == query.is_active)
        if query.keyword:
            pattern = f"%{query.keyword}%"
            # 姓名在档案表，用 EXISTS 子查询避免 JOIN 造成重复行
            name_match = exists().where(
                Profile.user_id == User.id,
                Profile.deleted_at.is_(None),
                Profile.full_name.ilike(pattern),
            )
            filters.append(
                or_(User.username.ilike(pattern), User.email.ilike(pattern), name_match)
            )
        return filters

    async def list_users(self, query: UserListQuery) -> tuple[list[User], int]:
        """
        分页查询有效用户。

        Returns:
            tuple: (当前页用户, 总数)
        """
        filters = self._build_filters(query)

        count_stmt = select(func.count()).select_from(User).where(*filters)
        total = (await self.session.execute(count_stmt)).scalar() or 0

        order = desc if query.sort_dir == "desc" else asc
        stmt = (
            select(User)
            .where(*filters)
            .order_by(order(getattr(User, query.sort_by)), order(User.id))
            .offset((query.page - 1) * query.page_size)
            .limit(query.page_size)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total


class ProfileRepository(SoftDeleteRepository[Profile]):
    """
    档案仓储类
    """

    async def get_live_by_user(self, user_id: uuid.UUID) -> Profile | None:
        stmt = select(Profile).where(Profile.user_id == user_id, self.live_clause())
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_latest_deleted(self, user_id: uuid.UUID) -> Profile | None:
        """取该用户最近一次被删除的档案"""
        stmt = (
            select(Profile)
            .where(Profile.user_id == user_id, Profile.deleted_at.is_not(None))
            .order_by(desc(Profile.deleted_at), desc(Profile.created_at))
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def map_live_by_users(
        self, user_ids: Sequence[uuid.UUID]
    ) -> dict[uuid.UUID, Profile]:
        """批量取回多个用户的有效档案"""
        if not user_ids:
            return {}
        stmt = select(Profile).where(Profile.user_id.in_(user_ids), self.live_clause())
        result = await self.session.execute(stmt)
        return {profile.user_id: profile for profile in result.scalars().all()}
