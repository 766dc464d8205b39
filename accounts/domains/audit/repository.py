"""
File: accounts/domains/audit/repository.py
Description: 审计日志仓储层

1. list_logs: 多条件过滤 + 分页查询
2. purge_before: 按时间物理删除过期日志 (仅供保留策略使用)

Author: jinmozhe
Created: 2026-10-12
"""

from datetime import datetime

from sqlalchemy import ColumnElement, asc, delete, desc, func, select

from accounts.db.models import AuditLog
from accounts.db.repositories.base import BaseRepository
from accounts.domains.audit.schemas import AuditLogQuery


class AuditLogRepository(BaseRepository[AuditLog]):
    """
    审计日志仓储。
    一致性服务只通过 AuditRecorder 追加，本类不提供 update。
    """

    @staticmethod
    def _build_filters(query: AuditLogQuery) -> list[ColumnElement[bool]]:
        filters: list[ColumnElement[bool]] = []
        if query.actor_user_id is not None:
            filters.append(AuditLog.actor_user_id == query.actor_user_id)
        if query.target_table:
            filters.append(AuditLog.target_table == query.target_table)
        if query.target_id:
            filters.append(AuditLog.target_id == query.target_id)
        if query.action is not None:
            filters.append(AuditLog.action == query.action)
        if query.keyword:
            filters.append(AuditLog.message.ilike(f"%{query.keyword}%"))
        if query.created_from is not None:
            filters.append(AuditLog.created_at >= query.created_from)
        if query.created_to is not None:
            filters.append(AuditLog.created_at < query.created_to)
        return filters

    async def list_logs(self, query: AuditLogQuery) -> tuple[list[AuditLog], int]:
        """
        分页获取审计日志
        """
        # 1. 构建基础查询条件
        filters = self._build_filters(query)

        # 2. 计算总数
        count_stmt = select(func.count()).select_from(AuditLog).where(*filters)
        total = (await self.session.execute(count_stmt)).scalar() or 0

        # 3. 分页查询 (id 为 UUID v7，可作为同一时刻的稳定次序)
        order = desc if query.sort_dir == "desc" else asc
        stmt = (
            select(AuditLog)
            .where(*filters)
            .order_by(order(AuditLog.created_at), order(AuditLog.id))
            .offset((query.page - 1) * query.page_size)
            .limit(query.page_size)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def purge_before(self, cutoff: datetime) -> int:
        """物理删除 created_at 早于 cutoff 的日志，返回删除行数"""
        stmt = (
            delete(AuditLog)
            .where(AuditLog.created_at < cutoff)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0  # type: ignore[attr-defined]
