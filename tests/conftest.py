"""
File: tests/conftest.py
Description: Pytest 全局 Fixtures 配置 (Async + 内存 SQLite)

说明：
1. 在导入应用之前写入测试环境变量，Settings 单例据此指向 sqlite+aiosqlite
2. 每个测试函数拥有独立的内存数据库 (StaticPool 保证同一连接)，
   create_all 建表，部分唯一索引与检查约束在 SQLite 上同样生效
3. event loop 由 pytest-asyncio 按 pyproject.toml 配置管理 (function 级)

Author: jinmozhe
Created: 2025-11-26
Updated: 2026-10-12 (In-memory SQLite per test)
"""

import asyncio
import os
import sys
from collections.abc import AsyncGenerator

# ------------------------------------------------------------------------------
# Windows 平台特定修复 (必须在任何 async 操作之前)
# ------------------------------------------------------------------------------
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# ------------------------------------------------------------------------------
# 1. 环境配置覆写 (必须先于 accounts 导入)
# ------------------------------------------------------------------------------
TEST_DATABASE_URI = "sqlite+aiosqlite://"

os.environ["SQLALCHEMY_DATABASE_URI"] = TEST_DATABASE_URI
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "false"

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from accounts.api.deps import get_db
from accounts.db.models import Base
from accounts.main import app

# ------------------------------------------------------------------------------
# 2. 全局 Fixtures
# ------------------------------------------------------------------------------


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:  # type: ignore[no-untyped-def]
    """SQLite 默认不校验外键，测试中显式打开"""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest_asyncio.fixture(scope="function")
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    创建测试专用的数据库引擎 (每个测试一个全新的内存库)。
    """
    engine = create_async_engine(
        TEST_DATABASE_URI,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """
    获取测试用的数据库会话 (Function 级别)。
    """
    async_session_factory = async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    获取异步 HTTP 客户端 (复用 db_session，便于断言落库结果)。
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"  # type: ignore
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
