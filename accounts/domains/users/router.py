"""
File: accounts/domains/users/router.py
Description: 用户领域 HTTP 路由层

本模块是一致性服务的薄 HTTP 边界：
1. 明文密码只在此处出现，经 pwdlib 哈希后再交给 Service
2. 操作人 ID 取自 X-Actor-ID 请求头 (ActorId)，仅用于审计
3. 统一使用 ResponseModel.success 返回响应信封

Author: jinmozhe
Created: 2025-12-05
Updated: 2026-10-12 (Aggregate endpoints: restore / roles / profile)
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, Request, status

from accounts.api.deps import ActorId
from accounts.core.response import PageData, ResponseModel
from accounts.core.security import get_password_hash_async
from accounts.domains.users.dependencies import UserServiceDep
from accounts.domains.users.schemas import (
    AssignRolesRequest,
    ProfileRead,
    UserCreate,
    UserCreateRequest,
    UserDetail,
    UserListQuery,
    UserRoleRead,
    UserUpdate,
    UserUpdateRequest,
)

router = APIRouter()


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


# ------------------------------------------------------------------------------
# Aggregate Lifecycle
# ------------------------------------------------------------------------------


@router.post(
    "",
    response_model=ResponseModel[UserDetail],
    status_code=status.HTTP_201_CREATED,
    summary="创建用户",
    description="创建用户，可同时创建档案与分配角色。用户名/邮箱在有效用户中唯一。",
)
async def create_user(
    request: Request,
    user_in: UserCreateRequest,
    service: UserServiceDep,
    actor_id: ActorId,
) -> ResponseModel[UserDetail]:
    # 1. 明文密码在 HTTP 边界完成哈希 (线程池执行)
    password_hash = await get_password_hash_async(user_in.password)
    obj_in = UserCreate(
        **user_in.model_dump(exclude={"password"}), password_hash=password_hash
    )

    # 2. 调用 Service 执行业务逻辑
    user = await service.create(obj_in, actor_id=actor_id)
    aggregate = await service.get_aggregate(user.id)

    return ResponseModel.success(
        data=aggregate.to_detail(),
        request_id=_request_id(request),
        message="User created successfully",
    )


@router.get(
    "",
    response_model=ResponseModel[PageData[UserDetail]],
    summary="用户列表",
    description="分页查询有效用户，可选附带档案与角色。",
)
async def list_users(
    request: Request,
    query: Annotated[UserListQuery, Query()],
    service: UserServiceDep,
) -> ResponseModel[PageData[UserDetail]]:
    page = await service.list_users(query)
    return ResponseModel.success(data=page, request_id=_request_id(request))


@router.get(
    "/{user_id}",
    response_model=ResponseModel[UserDetail],
    summary="用户详情",
)
async def get_user(
    request: Request,
    user_id: UUID,
    service: UserServiceDep,
) -> ResponseModel[UserDetail]:
    aggregate = await service.get_aggregate(user_id)
    return ResponseModel.success(
        data=aggregate.to_detail(), request_id=_request_id(request)
    )


@router.patch(
    "/{user_id}",
    response_model=ResponseModel[UserDetail],
    summary="更新用户",
    description="部分更新用户；传入 profile 时档案不存在则创建。",
)
async def update_user(
    request: Request,
    user_id: UUID,
    user_in: UserUpdateRequest,
    service: UserServiceDep,
    actor_id: ActorId,
) -> ResponseModel[UserDetail]:
    changes = user_in.model_dump(exclude_unset=True)
    password = changes.pop("password", None)
    if password:
        changes["password_hash"] = await get_password_hash_async(password)

    await service.update(user_id, UserUpdate.model_validate(changes), actor_id=actor_id)
    aggregate = await service.get_aggregate(user_id)

    return ResponseModel.success(
        data=aggregate.to_detail(),
        request_id=_request_id(request),
        message="User updated successfully",
    )


@router.delete(
    "/{user_id}",
    response_model=ResponseModel[None],
    summary="软删除用户",
    description="软删除用户，并级联软删除其档案与角色关联。",
)
async def delete_user(
    request: Request,
    user_id: UUID,
    service: UserServiceDep,
    actor_id: ActorId,
) -> ResponseModel[None]:
    await service.soft_delete(user_id, actor_id=actor_id)
    return ResponseModel.success(
        request_id=_request_id(request), message="User deleted successfully"
    )


@router.post(
    "/{user_id}/restore",
    response_model=ResponseModel[UserDetail],
    summary="恢复用户",
    description="恢复已删除的用户及被同一次删除动作级联的档案与角色关联。",
)
async def restore_user(
    request: Request,
    user_id: UUID,
    service: UserServiceDep,
    actor_id: ActorId,
) -> ResponseModel[UserDetail]:
    await service.restore(user_id, actor_id=actor_id)
    aggregate = await service.get_aggregate(user_id)
    return ResponseModel.success(
        data=aggregate.to_detail(),
        request_id=_request_id(request),
        message="User restored successfully",
    )


# ------------------------------------------------------------------------------
# Role Assignment
# ------------------------------------------------------------------------------


@router.post(
    "/{user_id}/roles",
    response_model=ResponseModel[list[UserRoleRead]],
    summary="分配角色",
    description="幂等分配角色，返回本次新建或复活的关联；已分配的角色会被跳过。",
)
async def assign_roles(
    request: Request,
    user_id: UUID,
    body: AssignRolesRequest,
    service: UserServiceDep,
    actor_id: ActorId,
) -> ResponseModel[list[UserRoleRead]]:
    links = await service.assign_roles(user_id, body.role_ids, actor_id=actor_id)
    return ResponseModel.success(
        data=[UserRoleRead.model_validate(link) for link in links],
        request_id=_request_id(request),
    )


@router.delete(
    "/{user_id}/roles/{role_id}",
    response_model=ResponseModel[None],
    summary="移除角色",
)
async def remove_role(
    request: Request,
    user_id: UUID,
    role_id: UUID,
    service: UserServiceDep,
    actor_id: ActorId,
) -> ResponseModel[None]:
    await service.remove_role(user_id, role_id, actor_id=actor_id)
    return ResponseModel.success(
        request_id=_request_id(request), message="Role removed successfully"
    )


# ------------------------------------------------------------------------------
# Profile
# ------------------------------------------------------------------------------


@router.delete(
    "/{user_id}/profile",
    response_model=ResponseModel[None],
    summary="删除用户档案",
    description="只删除档案，用户保持有效。",
)
async def delete_profile(
    request: Request,
    user_id: UUID,
    service: UserServiceDep,
    actor_id: ActorId,
) -> ResponseModel[None]:
    await service.soft_delete_profile(user_id, actor_id=actor_id)
    return ResponseModel.success(
        request_id=_request_id(request), message="Profile deleted successfully"
    )


@router.post(
    "/{user_id}/profile/restore",
    response_model=ResponseModel[ProfileRead],
    summary="恢复用户档案",
)
async def restore_profile(
    request: Request,
    user_id: UUID,
    service: UserServiceDep,
    actor_id: ActorId,
) -> ResponseModel[ProfileRead]:
    profile = await service.restore_profile(user_id, actor_id=actor_id)
    return ResponseModel.success(
        data=ProfileRead.model_validate(profile), request_id=_request_id(request)
    )
