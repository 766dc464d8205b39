"""
File: accounts/core/middleware.py
Description: 中间件配置与实现

本模块负责：
1. RequestLogMiddleware：
   - 生成 UUID v7 request_id，写入 request.state 与 X-Request-ID 响应头
   - 将 request_id / actor_id 绑定到 Loguru 上下文，贯穿 Router → Service → Repository
   - 记录访问日志 (Access Log)
2. register_middlewares：统一注册 CORS 与请求日志中间件

注意：request_id 同时用于关联审计日志 (logs 表) 与应用日志。

Author: jinmozhe
Created: 2025-11-24
Updated: 2026-10-12 (Bind actor header into log context)
"""

import time
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from uuid6 import uuid7

from accounts.core.config import settings
from accounts.core.logging import logger

# 操作人标识请求头 (由上游身份层注入)
ACTOR_HEADER = "X-Actor-ID"

# 跳过访问日志的路径（健康检查等高频低价值请求）
SKIP_LOG_PATHS: set[str] = {"/health", "/health/", "/favicon.ico"}


class RequestLogMiddleware(BaseHTTPMiddleware):
    """
    全局请求日志中间件
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = str(uuid7())
        request.state.request_id = request_id

        skip_log = request.url.path in SKIP_LOG_PATHS
        actor_id = request.headers.get(ACTOR_HEADER, "")

        # 在此 with 块内产生的所有日志都会自动携带 request_id / actor_id
        with logger.contextualize(request_id=request_id, actor_id=actor_id):
            start_time = time.perf_counter()

            try:
                response = await call_next(request)
                response.headers["X-Request-ID"] = request_id

                if not skip_log:
                    process_time = (time.perf_counter() - start_time) * 1000
                    logger.bind(
                        method=request.method,
                        path=request.url.path,
                        status_code=response.status_code,
                        duration_ms=round(process_time, 2),
                        client_ip=request.client.host if request.client else "unknown",
                    ).info("Request finished")

                return response

            except Exception as exc:
                # ExceptionHandler 未能兜住的异常才会走到这里
                process_time = (time.perf_counter() - start_time) * 1000
                logger.bind(
                    method=request.method,
                    path=request.url.path,
                    duration_ms=round(process_time, 2),
                ).opt(exception=exc).error("Request failed with unhandled exception")
                raise


def register_middlewares(app: FastAPI) -> None:
    """
    统一注册所有中间件。
    注意：后注册的中间件先执行 (洋葱模型，请求进入方向)。
    """
    if settings.BACKEND_CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_middleware(RequestLogMiddleware)
