"""
File: accounts/domains/audit/service.py
Description: 审计领域服务

1. AuditRecorder: 在调用方事务内追加一行审计日志 (只 flush，不 commit)
   - detail 先脱敏 (redact_sensitive)，再经 orjson 转为 JSON 安全结构
     (UUID / date / datetime / Enum 自动转字符串)
2. AuditLogService: 日志查询与过期清理 (保留策略)，不属于一致性引擎

Author: jinmozhe
Created: 2026-10-12
"""

import uuid
from datetime import datetime, timedelta
from typing import Any

import orjson
from sqlalchemy.ext.asyncio import AsyncSession

from accounts.core.config import settings
from accounts.core.exceptions import NotFoundException
from accounts.core.logging import logger
from accounts.core.response import PageData
from accounts.db.models import AuditAction, AuditLog
from accounts.db.models.base import utc_now
from accounts.db.transaction import atomic
from accounts.domains.audit.constants import AuditError
from accounts.domains.audit.repository import AuditLogRepository
from accounts.domains.audit.schemas import AuditLogQuery, AuditLogRead
from accounts.utils.masking import redact_sensitive


def to_json_safe(detail: dict[str, Any]) -> dict[str, Any]:
    """脱敏后转换为可直接写入 JSON 列的纯 Python 结构"""
    # default=str 兜底 orjson 不识别的类型 (如 uuid6.UUID 子类)
    return orjson.loads(orjson.dumps(redact_sensitive(detail), default=str))


class AuditRecorder:
    """
    审计记录器。
    每个写操作在提交前调用一次 record (分配 N 个角色时调用 N 次)。
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def record(
        self,
        action: AuditAction,
        target_table: str,
        target_id: uuid.UUID | str,
        message: str,
        actor_id: uuid.UUID | None = None,
        detail: dict[str, Any] | None = None,
    ) -> AuditLog:
        log = AuditLog(
            actor_user_id=actor_id,
            target_table=target_table,
            target_id=str(target_id),
            action=action,
            message=message,
            detail=to_json_safe(detail) if detail is not None else None,
        )
        self.session.add(log)
        await self.session.flush()
        return log


class AuditLogService:
    """
    审计日志查询与清理服务
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = AuditLogRepository(model=AuditLog, session=session)

    async def list_logs(self, query: AuditLogQuery) -> PageData[AuditLogRead]:
        items, total = await self.repo.list_logs(query)
        return PageData[AuditLogRead](
            items=[AuditLogRead.model_validate(item) for item in items],
            total=total,
            page=query.page,
            page_size=query.page_size,
        )

    async def get_log(self, log_id: uuid.UUID) -> AuditLog:
        log = await self.repo.get(log_id)
        if log is None:
            raise NotFoundException(AuditError.LOG_NOT_FOUND, data={"id": str(log_id)})
        return log

    async def purge_before(self, cutoff: datetime) -> int:
        """物理删除早于 cutoff 的日志"""
        async with atomic(self.session):
            deleted = await self.repo.purge_before(cutoff)

        logger.bind(cutoff=cutoff.isoformat(), deleted=deleted).info(
            "Audit logs purged"
        )
        return deleted

    async def purge_expired(
        self, retention_days: int | None = None, now: datetime | None = None
    ) -> int:
        """
        按保留天数清理日志。
        retention_days 缺省取 settings.AUDIT_LOG_RETENTION_DAYS。
        """
        days = settings.AUDIT_LOG_RETENTION_DAYS if retention_days is None else retention_days
        if days < 0:
            raise ValueError("retention_days must be >= 0")
        cutoff = (now or utc_now()) - timedelta(days=days)
        return await self.purge_before(cutoff)
