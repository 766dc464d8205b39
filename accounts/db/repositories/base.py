"""
File: accounts/db/repositories/base.py
Description: 通用异步 Repository 基类

本模块定义了两层仓储：
1. BaseRepository: 通用 CRUD (get / add / update)
2. SoftDeleteRepository: 针对 SoftDeleteMixin 模型的生命周期操作
   - get_live / get_any: 区分"有效行"与"包含已删除行"的读取
   - soft_delete_where: 批量软删除 (级联写入同一个删除戳)
   - restore_where: 批量恢复 (只恢复与给定删除戳相同的行)

约定：
- 仓储只 flush，不 commit；事务边界由 accounts.db.transaction.atomic 控制
- state / deleted_at 不允许通过通用 update 修改，只能走生命周期方法

Author: jinmozhe
Created: 2025-11-25
Updated: 2026-10-12 (Soft delete lifecycle helpers)
"""

from datetime import datetime
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy import ColumnElement, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from accounts.db.models.base import Base, LifecycleState, utc_now

# 定义泛型变量
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    通用 CRUD 仓储基类。

    参数:
    - ModelType: SQLAlchemy 模型类 (如 User)
    """

    # 受保护的字段，禁止通过通用 update 方法修改
    PROTECTED_FIELDS: ClassVar[set[str]] = {
        "id",
        "created_at",
        "updated_at",
        "state",
        "deleted_at",
    }

    def __init__(self, model: type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    # --------------------------------------------------------------------------
    # 查询操作 (Read)
    # --------------------------------------------------------------------------

    async def get(self, id: Any) -> ModelType | None:
        """根据主键 ID 查询单条记录 (不区分生命周期)"""
        return await self.session.get(self.model, id)

    # --------------------------------------------------------------------------
    # 写入操作 (Create / Update)
    # --------------------------------------------------------------------------

    async def add(self, db_obj: ModelType) -> ModelType:
        """
        持久化一个新的 ORM 对象。
        flush 以获取数据库默认值，但不会 commit。
        """
        self.session.add(db_obj)
        await self.session.flush()
        await self.session.refresh(db_obj)
        return db_obj

    async def update(
        self, db_obj: ModelType, obj_in: BaseModel | dict[str, Any]
    ) -> ModelType:
        """
        部分更新现有记录。

        支持传入 Pydantic 模型 (exclude_unset) 或字典，
        自动过滤 PROTECTED_FIELDS。
        """
        if isinstance(obj_in, dict):
            update_data = obj_in
        else:
            update_data = obj_in.model_dump(exclude_unset=True)

        safe_data = {
            k: v for k, v in update_data.items() if k not in self.PROTECTED_FIELDS
        }
        db_obj.update(**safe_data)  # type: ignore[attr-defined]

        self.session.add(db_obj)
        await self.session.flush()
        await self.session.refresh(db_obj)
        return db_obj


class SoftDeleteRepository(BaseRepository[ModelType]):
    """
    软删除模型仓储。

    所有 *_live 查询只返回 deleted_at IS NULL 的行；
    get_any 用于恢复流程，需要看到已删除的行。
    """

    def live_clause(self) -> ColumnElement[bool]:
        return self.model.deleted_at.is_(None)  # type: ignore[attr-defined]

    async def get_live(self, id: Any) -> ModelType | None:
        """根据 ID 查询有效行"""
        stmt = select(self.model).where(
            self.model.id == id,  # type: ignore[attr-defined]
            self.live_clause(),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_any(self, id: Any) -> ModelType | None:
        """根据 ID 查询，包含已软删除的行"""
        return await self.get(id)

    async def soft_delete_where(
        self, *criteria: ColumnElement[bool], at: datetime
    ) -> int:
        """
        批量软删除满足条件的有效行，写入统一的删除戳 at。

        Returns:
            int: 受影响行数
        """
        stmt = (
            update(self.model)
            .where(self.live_clause(), *criteria)
            .values(state=LifecycleState.DELETED, deleted_at=at, updated_at=at)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0  # type: ignore[attr-defined]

    async def restore_where(
        self, *criteria: ColumnElement[bool], stamp: datetime
    ) -> int:
        """
        批量恢复删除戳等于 stamp 的行 (即被同一次删除动作级联的子记录)。

        Returns:
            int: 受影响行数
        """
        stmt = (
            update(self.model)
            .where(
                self.model.deleted_at == stamp,  # type: ignore[attr-defined]
                *criteria,
            )
            .values(state=LifecycleState.LIVE, deleted_at=None, updated_at=utc_now())
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0  # type: ignore[attr-defined]
