"""
File: tests/integration/test_log_router.py
Description: 审计日志查询路由集成测试

Author: jinmozhe
Created: 2026-10-12
"""

import pytest
from httpx import AsyncClient
from uuid6 import uuid7

from accounts.core.config import settings

LOGS_PREFIX = f"{settings.API_V1_STR}/logs"
USERS_PREFIX = f"{settings.API_V1_STR}/users"


@pytest.mark.asyncio
async def test_user_lifecycle_is_audited(client: AsyncClient) -> None:
    actor = str(uuid7())
    headers = {"X-Actor-ID": actor}

    response = await client.post(
        USERS_PREFIX,
        json={"username": "alice", "password": "password123"},
        headers=headers,
    )
    user_id = response.json()["data"]["id"]
    await client.delete(f"{USERS_PREFIX}/{user_id}", headers=headers)
    await client.post(f"{USERS_PREFIX}/{user_id}/restore", headers=headers)

    response = await client.get(
        LOGS_PREFIX,
        params={"target_table": "users", "target_id": user_id, "sort_dir": "asc"},
    )

    assert response.status_code == 200
    page = response.json()["data"]
    assert page["total"] == 3
    assert [item["action"] for item in page["items"]] == ["CREATE", "SOFT_DELETE", "RESTORE"]
    assert all(item["actor_user_id"] == actor for item in page["items"])

    log_id = page["items"][0]["id"]
    response = await client.get(f"{LOGS_PREFIX}/{log_id}")
    assert response.status_code == 200
    assert response.json()["data"]["detail"]["username"] == "alice"


@pytest.mark.asyncio
async def test_log_filters_and_errors(client: AsyncClient) -> None:
    await client.post(USERS_PREFIX, json={"username": "alice", "password": "password123"})

    response = await client.get(LOGS_PREFIX, params={"action": "RESTORE"})
    assert response.json()["data"]["total"] == 0

    response = await client.get(f"{LOGS_PREFIX}/{uuid7()}")
    assert response.status_code == 404
    assert response.json()["code"] == "logs.not_found"

    response = await client.get(
        LOGS_PREFIX,
        params={
            "created_from": "2026-10-02T00:00:00Z",
            "created_to": "2026-10-01T00:00:00Z",
        },
    )
    assert response.status_code == 400
    assert response.json()["code"] == "system.invalid_params"
