"""
File: alembic/env.py
Description: Alembic 迁移环境配置 - 同步版本

策略：
- 迁移 (Migration): 使用 psycopg (Sync) -> 稳定，无 EventLoop 问题
- 运行 (Runtime): 使用 asyncpg (Async) -> 高性能

部分唯一索引 (WHERE deleted_at IS NULL) 与检查约束均声明在模型 __table_args__ 中，
autogenerate 可直接识别。

Author: jinmozhe
Created: 2025-11-26
Updated: 2026-10-12 (Accounts models, DSN driver mapping)
"""

import sys
from logging.config import fileConfig
from pathlib import Path
from urllib.parse import quote_plus

from sqlalchemy import create_engine, pool

from alembic import context  # type: ignore

# ------------------------------------------------------------------------------
# 0. 将项目根目录加入 sys.path (未以可编辑模式安装时也能导入 accounts)
# ------------------------------------------------------------------------------
sys.path.insert(0, str(Path(__file__).parent.parent.resolve()))

# ------------------------------------------------------------------------------
# 1. 导入项目配置与模型
# ------------------------------------------------------------------------------
from accounts.core.config import settings
from accounts.db.models import Base

# 运行时异步驱动 -> 迁移用同步驱动
SYNC_DRIVERS = {
    "postgresql+asyncpg": "postgresql+psycopg",
    "sqlite+aiosqlite": "sqlite",
}

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def build_sync_uri() -> str:
    """
    优先从 POSTGRES_* 组件构建 (对密码做 URL 编码)，
    否则把 SQLALCHEMY_DATABASE_URI 中的异步驱动替换为同步驱动。
    """
    if settings.POSTGRES_SERVER and settings.POSTGRES_USER:
        password = quote_plus(settings.POSTGRES_PASSWORD or "")
        return (
            f"postgresql+psycopg://{settings.POSTGRES_USER}:{password}"
            f"@{settings.POSTGRES_SERVER}:{settings.POSTGRES_PORT}"
            f"/{settings.POSTGRES_DB}"
        )

    uri = str(settings.SQLALCHEMY_DATABASE_URI)
    for async_driver, sync_driver in SYNC_DRIVERS.items():
        if uri.startswith(async_driver):
            return sync_driver + uri[len(async_driver) :]
    return uri


# configparser 会对 % 做插值，需要转义
config.set_main_option("sqlalchemy.url", build_sync_uri().replace("%", "%%"))

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """离线模式迁移：生成 SQL 脚本而不实际连接数据库"""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        compare_server_default=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """在线模式迁移：连接数据库并执行迁移"""
    url = config.get_main_option("sqlalchemy.url") or ""
    connectable = create_engine(url, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            compare_server_default=True,
            # SQLite 不支持大部分 ALTER，需批量重建表
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()

    connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
