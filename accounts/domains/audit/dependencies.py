"""
File: accounts/domains/audit/dependencies.py
Description: 审计日志领域依赖注入 (DI)

Author: jinmozhe
Created: 2026-10-12
"""

from typing import Annotated

from fastapi import Depends

from accounts.api.deps import DBSession
from accounts.domains.audit.service import AuditLogService


async def get_audit_log_service(session: DBSession) -> AuditLogService:
    return AuditLogService(session=session)


AuditLogServiceDep = Annotated[AuditLogService, Depends(get_audit_log_service)]
