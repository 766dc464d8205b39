"""
File: accounts/domains/uniqueness.py
Description: 唯一性守卫 (Uniqueness Guard)

在插入/更新 username、email、Role.code 之前检查有效行中是否已存在冲突值。

注意：
这是"先查后写"的快速路径，只用于返回带字段语义的 409 错误码。
并发场景下真正的兜底是部分唯一索引 (WHERE deleted_at IS NULL)，
其 IntegrityError 由 accounts.db.transaction.atomic 统一转换为 ConflictException。

Author: jinmozhe
Created: 2026-10-12
"""

import enum
import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from accounts.core.error_code import BaseErrorCode
from accounts.core.exceptions import ConflictException
from accounts.db.models import Role, User
from accounts.domains.roles.constants import RoleError
from accounts.domains.users.constants import UserError


class UniqueField(enum.Enum):
    """受唯一性约束保护的字段"""

    USERNAME = "username"
    EMAIL = "email"
    ROLE_CODE = "role_code"


@dataclass(frozen=True, slots=True)
class Conflict:
    """冲突描述：哪个字段、哪个值、被哪一行占用"""

    field: UniqueField
    value: str
    existing_id: uuid.UUID


# 字段 -> (模型, 列名, 冲突错误码)
_FIELD_TARGETS: dict[UniqueField, tuple[Any, str, BaseErrorCode]] = {
    UniqueField.USERNAME: (User, "username", UserError.USERNAME_EXIST),
    UniqueField.EMAIL: (User, "email", UserError.EMAIL_EXIST),
    UniqueField.ROLE_CODE: (Role, "code", RoleError.CODE_EXIST),
}


class UniquenessGuard:
    """
    唯一性守卫。

    只读，不持有状态；每个操作按需在自己的会话上构造。
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def check(
        self,
        field: UniqueField,
        value: str | None,
        exclude_id: uuid.UUID | None = None,
    ) -> Conflict | None:
        """
        检查 value 是否已被其他有效行占用。

        Args:
            field: 待检查字段
            value: 候选值 (None 表示不参与唯一性，直接通过)
            exclude_id: 更新场景下排除自身

        Returns:
            Conflict | None: 存在冲突时返回冲突描述
        """
        if value is None:
            return None

        model, column_name, _ = _FIELD_TARGETS[field]
        stmt = select(model.id).where(
            getattr(model, column_name) == value,
            model.deleted_at.is_(None),
        )
        if exclude_id is not None:
            stmt = stmt.where(model.id != exclude_id)

        result = await self.session.execute(stmt.limit(1))
        existing_id = result.scalar_one_or_none()
        if existing_id is None:
            return None
        return Conflict(field=field, value=value, existing_id=existing_id)

    async def ensure(
        self,
        field: UniqueField,
        value: str | None,
        exclude_id: uuid.UUID | None = None,
    ) -> None:
        """检查并在冲突时抛出 ConflictException (字段专属错误码)"""
        conflict = await self.check(field, value, exclude_id)
        if conflict is None:
            return

        _, _, error = _FIELD_TARGETS[field]
        raise ConflictException(error, data={"field": field.value})
