"""
File: accounts/db/transaction.py
Description: 工作单元 (Unit of Work): 一次操作 = 一个事务

用法:
    async with atomic(session):
        ...  # 唯一性校验 -> 结构写入 -> 审计追加
    # 正常退出即 commit，任何异常都会整体回滚

异常映射：
1. AppException (NotFound / Conflict / InvalidState): 回滚后原样抛出
2. IntegrityError: 唯一索引兜底触发 -> ConflictException(system.unique_conflict)
3. 死锁 / 序列化失败 / SQLite 锁超时 -> TransientStorageException (可重试)
4. 任务取消 (asyncio.CancelledError): 回滚后原样抛出

Author: jinmozhe
Created: 2026-10-12
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from accounts.core.error_code import SystemErrorCode
from accounts.core.exceptions import (
    AppException,
    ConflictException,
    TransientStorageException,
)
from accounts.core.logging import logger

# PostgreSQL: serialization_failure / deadlock_detected
TRANSIENT_SQLSTATES = frozenset({"40001", "40P01"})
SQLITE_LOCKED_MESSAGE = "database is locked"


def is_transient_error(exc: DBAPIError) -> bool:
    """判断底层驱动错误是否属于可重试的瞬时错误"""
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in TRANSIENT_SQLSTATES:
        return True
    return SQLITE_LOCKED_MESSAGE in str(orig).lower()


@asynccontextmanager
async def atomic(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    在当前会话上开启一个原子工作单元。
    """
    try:
        yield session
        await session.commit()
    except AppException:
        await session.rollback()
        raise
    except IntegrityError as exc:
        await session.rollback()
        logger.bind(detail=str(exc.orig)).warning(
            "Unique index rejected write, reporting conflict"
        )
        raise ConflictException(SystemErrorCode.UNIQUE_CONFLICT) from exc
    except DBAPIError as exc:
        await session.rollback()
        if is_transient_error(exc):
            logger.bind(detail=str(exc.orig)).warning("Transient storage error")
            raise TransientStorageException(SystemErrorCode.TRANSIENT_STORAGE) from exc
        raise
    except asyncio.CancelledError:
        await session.rollback()
        logger.warning("Operation cancelled, transaction rolled back")
        raise
    except Exception:
        await session.rollback()
        raise
