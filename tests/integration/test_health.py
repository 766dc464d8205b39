"""
File: tests/integration/test_health.py
Description: 健康检查与框架级错误的集成测试

/health 是特例：不使用统一响应信封，返回原始 JSON 以便 K8s/LB 解析。
未匹配的路由仍走信封，业务码为 system.not_found。

Author: jinmozhe
Created: 2025-11-26
Updated: 2026-10-12 (Framework 404 envelope)
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient) -> None:
    response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data == {"status": "ok"}

    # 中间件对 /health 只跳过访问日志，X-Request-ID 照常下发
    request_id_header = response.headers.get("X-Request-ID")
    assert request_id_header


@pytest.mark.asyncio
async def test_unknown_route_uses_envelope(client: AsyncClient) -> None:
    response = await client.get("/api/v1/nowhere")

    assert response.status_code == 404
    body = response.json()
    assert body["code"] == "system.not_found"
    assert body["data"] is None
    assert body["request_id"] == response.headers["X-Request-ID"]
