"""
File: accounts/db/session.py
Description: 数据库会话管理 (Async SQLAlchemy)

本模块负责：
1. 创建全局唯一的 AsyncEngine (生产: postgresql+asyncpg，测试: sqlite+aiosqlite)
2. 配置连接池参数与事务隔离级别，从 Settings 读取
3. 创建 AsyncSession 工厂 (AsyncSessionLocal)
4. 集成 orjson 用于 JSON 字段 (审计日志 detail) 序列化
5. 提供引擎关闭函数用于优雅退出

Author: jinmozhe
Created: 2025-11-24
Updated: 2026-10-12 (Isolation level / SQLite support)
"""

from typing import Any

import orjson
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from accounts.core.config import settings


def _orjson_serializer(obj: Any) -> str:
    """
    使用 orjson 替代标准库 json.dumps。
    orjson 返回 bytes，SQLAlchemy 需要 str，因此需 decode。
    """
    return orjson.dumps(obj).decode("utf-8")


def _orjson_deserializer(obj: str | bytes) -> Any:
    return orjson.loads(obj)


def build_engine_options() -> dict[str, Any]:
    """
    按方言组装引擎参数。
    SQLite 不支持 QueuePool 参数和 asyncpg 的 ssl 参数，只保留通用项。
    """
    options: dict[str, Any] = {
        "echo": settings.is_debug,
        "json_serializer": _orjson_serializer,
        "json_deserializer": _orjson_deserializer,
    }
    if settings.is_sqlite:
        return options

    options.update(
        # 连接池配置 (统一从 config.py 读取，方便生产环境调优)
        pool_pre_ping=settings.DB_POOL_PRE_PING,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        # 一次操作 = 一个事务，隔离级别决定"先查后写"的竞态窗口
        isolation_level=settings.DB_ISOLATION_LEVEL,
        connect_args={"ssl": False},
    )
    return options


# 1. 创建异步引擎
engine: AsyncEngine = create_async_engine(
    str(settings.SQLALCHEMY_DATABASE_URI), **build_engine_options()
)

# 2. 创建异步会话工厂
# expire_on_commit=False 是 AsyncSession 的强制要求
# 避免在 commit 后访问属性时触发隐式 IO (Async 模式下不支持)
AsyncSessionLocal: async_sessionmaker[AsyncSession] = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
)


async def close_engine() -> None:
    """
    关闭数据库引擎，释放连接池资源。
    应在应用 shutdown 事件中调用。
    """
    await engine.dispose()
