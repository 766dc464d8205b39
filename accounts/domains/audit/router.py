"""
File: accounts/domains/audit/router.py
Description: 审计日志 HTTP 路由层 (只读)

Author: jinmozhe
Created: 2026-10-12
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, Request

from accounts.core.response import PageData, ResponseModel
from accounts.domains.audit.dependencies import AuditLogServiceDep
from accounts.domains.audit.schemas import AuditLogQuery, AuditLogRead

router = APIRouter()


@router.get(
    "",
    response_model=ResponseModel[PageData[AuditLogRead]],
    summary="分页获取审计日志",
    description="支持按操作人、目标、动作、时间窗口过滤，默认按时间倒序。",
)
async def list_logs(
    request: Request,
    query: Annotated[AuditLogQuery, Query()],
    service: AuditLogServiceDep,
) -> ResponseModel[PageData[AuditLogRead]]:
    page = await service.list_logs(query)
    return ResponseModel.success(
        data=page, request_id=getattr(request.state, "request_id", None)
    )


@router.get(
    "/{log_id}",
    response_model=ResponseModel[AuditLogRead],
    summary="审计日志详情",
)
async def get_log(
    request: Request,
    log_id: UUID,
    service: AuditLogServiceDep,
) -> ResponseModel[AuditLogRead]:
    log = await service.get_log(log_id)
    return ResponseModel.success(
        data=AuditLogRead.model_validate(log),
        request_id=getattr(request.state, "request_id", None),
    )
