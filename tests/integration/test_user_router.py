"""
File: tests/integration/test_user_router.py
Description: 用户路由集成测试

覆盖：
1. 创建 (201 + 密码哈希不外泄) / 详情 / 列表 / 更新
2. 软删除级联 + 恢复 + 重复恢复 409
3. 角色分配/移除、档案删除/恢复
4. 错误码映射 (409 / 404 / 400) 与 X-Actor-ID 审计归属

Author: jinmozhe
Created: 2025-11-26
Updated: 2026-10-12 (Aggregate lifecycle endpoints)
"""

from typing import Any

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from uuid6 import uuid7

from accounts.core.config import settings
from accounts.core.security import verify_password
from accounts.db.models import AuditAction, AuditLog, User

API_PREFIX = f"{settings.API_V1_STR}/users"
ROLES_PREFIX = f"{settings.API_V1_STR}/roles"


async def create_role(client: AsyncClient, code: str) -> str:
    response = await client.post(ROLES_PREFIX, json={"code": code, "name": code.title()})
    assert response.status_code == 201
    return response.json()["data"]["id"]


async def create_user(client: AsyncClient, **overrides: Any) -> dict[str, Any]:
    payload = {
        "username": "alice",
        "password": "password123",
        "email": "alice@example.com",
        **overrides,
    }
    response = await client.post(API_PREFIX, json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.mark.asyncio
async def test_create_user_success(client: AsyncClient, db_session: AsyncSession) -> None:
    """
    测试：POST /users
    验证：201、统一信封、档案与角色一并返回、密码以哈希落库且不出现在响应中
    """
    role_id = await create_role(client, "admin")

    response = await client.post(
        API_PREFIX,
        json={
            "username": "alice",
            "password": "password123",
            "email": "alice@example.com",
            "profile": {"full_name": "Alice", "phone": "13800138000"},
            "role_ids": [role_id],
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["code"] == "success"
    assert body["request_id"] == response.headers["X-Request-ID"]

    data = body["data"]
    assert data["username"] == "alice"
    assert data["state"] == "LIVE"
    assert data["profile"]["full_name"] == "Alice"
    assert [role["code"] for role in data["roles"]] == ["admin"]
    assert "password" not in data
    assert "password_hash" not in data

    user = (await db_session.execute(select(User).where(User.username == "alice"))).scalar_one()
    assert user.password_hash != "password123"
    assert user.password_hash.startswith("$argon2")
    assert verify_password("password123", user.password_hash)


@pytest.mark.asyncio
async def test_create_user_conflicts(client: AsyncClient) -> None:
    await create_user(client)

    response = await client.post(
        API_PREFIX,
        json={"username": "alice", "password": "password123"},
    )
    assert response.status_code == 409
    assert response.json()["code"] == "users.username_exist"
    assert response.json()["data"] == {"field": "username"}

    response = await client.post(
        API_PREFIX,
        json={"username": "bob", "password": "password123", "email": "alice@example.com"},
    )
    assert response.status_code == 409
    assert response.json()["code"] == "users.email_exist"


@pytest.mark.asyncio
async def test_create_user_validation_error(client: AsyncClient) -> None:
    response = await client.post(API_PREFIX, json={"username": "al", "password": "123"})

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "system.invalid_params"
    assert body["data"]["errors"]


@pytest.mark.asyncio
async def test_create_user_with_unknown_role(client: AsyncClient) -> None:
    ghost = str(uuid7())

    response = await client.post(
        API_PREFIX,
        json={"username": "alice", "password": "password123", "role_ids": [ghost]},
    )

    assert response.status_code == 404
    assert response.json()["code"] == "users.role_not_found"
    assert response.json()["data"] == {"missing_ids": [ghost]}


@pytest.mark.asyncio
async def test_get_and_list_users(client: AsyncClient) -> None:
    alice = await create_user(client, profile={"full_name": "Alice Liddell"})
    await create_user(client, username="bob", email="bob@example.com")

    response = await client.get(f"{API_PREFIX}/{alice['id']}")
    assert response.status_code == 200
    assert response.json()["data"]["profile"]["full_name"] == "Alice Liddell"

    response = await client.get(
        API_PREFIX,
        params={"keyword": "liddell", "include_profile": "true"},
    )
    assert response.status_code == 200
    page = response.json()["data"]
    assert page["total"] == 1
    assert page["items"][0]["id"] == alice["id"]
    assert page["items"][0]["profile"]["full_name"] == "Alice Liddell"

    response = await client.get(API_PREFIX, params={"page_size": 1, "sort_by": "username"})
    page = response.json()["data"]
    assert page["total"] == 2
    assert page["pages"] == 2
    assert len(page["items"]) == 1

    response = await client.get(f"{API_PREFIX}/{uuid7()}")
    assert response.status_code == 404
    assert response.json()["code"] == "users.not_found"


@pytest.mark.asyncio
async def test_update_user(client: AsyncClient, db_session: AsyncSession) -> None:
    alice = await create_user(client)

    response = await client.patch(
        f"{API_PREFIX}/{alice['id']}",
        json={"password": "new-password", "profile": {"phone": "555"}},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["profile"]["phone"] == "555"
    assert data["email"] == "alice@example.com"

    log = (
        await db_session.execute(
            select(AuditLog).where(AuditLog.action == AuditAction.UPDATE)
        )
    ).scalar_one()
    assert log.detail["changes"]["password_hash"] == "******"
    assert log.detail["changes"]["profile"] == {"phone": "555"}

    user = (await db_session.execute(select(User).where(User.username == "alice"))).scalar_one()
    assert verify_password("new-password", user.password_hash)


@pytest.mark.asyncio
async def test_delete_and_restore_user(client: AsyncClient) -> None:
    role_id = await create_role(client, "admin")
    alice = await create_user(client, profile={"full_name": "Alice"}, role_ids=[role_id])
    user_url = f"{API_PREFIX}/{alice['id']}"

    response = await client.delete(user_url)
    assert response.status_code == 200
    assert response.json()["data"] is None

    assert (await client.get(user_url)).status_code == 404
    assert (await client.delete(user_url)).status_code == 404

    # 用户名在删除后可被复用，复用期间旧用户无法恢复
    bob = await create_user(client, username="alice", email="other@example.com")
    response = await client.post(f"{user_url}/restore")
    assert response.status_code == 409
    assert response.json()["code"] == "users.username_exist"

    await client.delete(f"{API_PREFIX}/{bob['id']}")
    response = await client.post(f"{user_url}/restore")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["state"] == "LIVE"
    assert data["deleted_at"] is None
    assert data["profile"]["full_name"] == "Alice"
    assert [role["id"] for role in data["roles"]] == [role_id]

    response = await client.post(f"{user_url}/restore")
    assert response.status_code == 409
    assert response.json()["code"] == "users.not_deleted"


@pytest.mark.asyncio
async def test_assign_and_remove_roles(client: AsyncClient) -> None:
    admin_id = await create_role(client, "admin")
    editor_id = await create_role(client, "editor")
    alice = await create_user(client, role_ids=[])
    roles_url = f"{API_PREFIX}/{alice['id']}/roles"

    response = await client.post(roles_url, json={"role_ids": [admin_id, admin_id, editor_id]})
    assert response.status_code == 200
    assert [link["role_id"] for link in response.json()["data"]] == [admin_id, editor_id]

    # 重复分配为空操作
    response = await client.post(roles_url, json={"role_ids": [admin_id]})
    assert response.json()["data"] == []

    response = await client.delete(f"{roles_url}/{admin_id}")
    assert response.status_code == 200

    response = await client.delete(f"{roles_url}/{admin_id}")
    assert response.status_code == 404
    assert response.json()["code"] == "users.role_assignment_not_found"

    response = await client.get(f"{API_PREFIX}/{alice['id']}")
    assert [role["code"] for role in response.json()["data"]["roles"]] == ["editor"]

    response = await client.post(roles_url, json={"role_ids": []})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_profile_delete_and_restore(client: AsyncClient) -> None:
    alice = await create_user(client, profile={"full_name": "Alice"})
    profile_url = f"{API_PREFIX}/{alice['id']}/profile"

    response = await client.delete(profile_url)
    assert response.status_code == 200

    response = await client.get(f"{API_PREFIX}/{alice['id']}")
    assert response.json()["data"]["profile"] is None

    response = await client.post(f"{profile_url}/restore")
    assert response.status_code == 200
    assert response.json()["data"]["full_name"] == "Alice"

    response = await client.post(f"{profile_url}/restore")
    assert response.status_code == 400
    assert response.json()["code"] == "users.profile_already_live"


@pytest.mark.asyncio
async def test_actor_header_is_recorded(client: AsyncClient, db_session: AsyncSession) -> None:
    actor = uuid7()

    response = await client.post(
        API_PREFIX,
        json={"username": "alice", "password": "password123"},
        headers={"X-Actor-ID": str(actor)},
    )
    assert response.status_code == 201

    log = (
        await db_session.execute(
            select(AuditLog).where(AuditLog.action == AuditAction.CREATE)
        )
    ).scalar_one()
    assert log.actor_user_id == actor
    assert log.target_table == "users"

    response = await client.post(
        API_PREFIX,
        json={"username": "bob", "password": "password123"},
        headers={"X-Actor-ID": "not-a-uuid"},
    )
    assert response.status_code == 400
    assert response.json()["code"] == "system.invalid_params"
