"""
File: accounts/domains/roles/router.py
Description: 角色领域 HTTP 路由层

Author: jinmozhe
Created: 2026-10-12
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, Request, status

from accounts.api.deps import ActorId
from accounts.core.response import PageData, ResponseModel
from accounts.domains.roles.dependencies import RoleServiceDep
from accounts.domains.roles.schemas import (
    RoleCreate,
    RoleListQuery,
    RoleRead,
    RoleUpdate,
)

router = APIRouter()


@router.post(
    "",
    response_model=ResponseModel[RoleRead],
    status_code=status.HTTP_201_CREATED,
    summary="创建角色",
    description="角色编码在有效角色中唯一。",
)
async def create_role(
    request: Request,
    role_in: RoleCreate,
    service: RoleServiceDep,
    actor_id: ActorId,
) -> ResponseModel[RoleRead]:
    role = await service.create(role_in, actor_id=actor_id)
    return ResponseModel.success(
        data=RoleRead.model_validate(role),
        request_id=getattr(request.state, "request_id", None),
        message="Role created successfully",
    )


@router.get(
    "",
    response_model=ResponseModel[PageData[RoleRead]],
    summary="角色列表",
)
async def list_roles(
    request: Request,
    query: Annotated[RoleListQuery, Query()],
    service: RoleServiceDep,
) -> ResponseModel[PageData[RoleRead]]:
    page = await service.list_roles(query)
    return ResponseModel.success(
        data=page, request_id=getattr(request.state, "request_id", None)
    )


@router.get(
    "/{role_id}",
    response_model=ResponseModel[RoleRead],
    summary="角色详情",
)
async def get_role(
    request: Request,
    role_id: UUID,
    service: RoleServiceDep,
) -> ResponseModel[RoleRead]:
    role = await service.get(role_id)
    return ResponseModel.success(
        data=RoleRead.model_validate(role),
        request_id=getattr(request.state, "request_id", None),
    )


@router.patch(
    "/{role_id}",
    response_model=ResponseModel[RoleRead],
    summary="更新角色",
)
async def update_role(
    request: Request,
    role_id: UUID,
    role_in: RoleUpdate,
    service: RoleServiceDep,
    actor_id: ActorId,
) -> ResponseModel[RoleRead]:
    role = await service.update(role_id, role_in, actor_id=actor_id)
    return ResponseModel.success(
        data=RoleRead.model_validate(role),
        request_id=getattr(request.state, "request_id", None),
        message="Role updated successfully",
    )


@router.delete(
    "/{role_id}",
    response_model=ResponseModel[None],
    summary="软删除角色",
    description="软删除角色，并级联软删除其全部用户关联。",
)
async def delete_role(
    request: Request,
    role_id: UUID,
    service: RoleServiceDep,
    actor_id: ActorId,
) -> ResponseModel[None]:
    await service.soft_delete(role_id, actor_id=actor_id)
    return ResponseModel.success(
        request_id=getattr(request.state, "request_id", None),
        message="Role deleted successfully",
    )


@router.post(
    "/{role_id}/restore",
    response_model=ResponseModel[RoleRead],
    summary="恢复角色",
    description="恢复角色及被同一次删除动作级联、且用户仍有效的关联。",
)
async def restore_role(
    request: Request,
    role_id: UUID,
    service: RoleServiceDep,
    actor_id: ActorId,
) -> ResponseModel[RoleRead]:
    role = await service.restore(role_id, actor_id=actor_id)
    return ResponseModel.success(
        data=RoleRead.model_validate(role),
        request_id=getattr(request.state, "request_id", None),
        message="Role restored successfully",
    )
