"""
File: accounts/db/models/__init__.py
Description: ORM 模型注册表

本模块负责：
1. 导入所有业务模型 (User, Profile, Role, UserRole, AuditLog)
2. 导入基类 (Base, UUIDModel, Mixins)
3. 导出它们供 Alembic (env.py) 与测试 (create_all) 发现 metadata

注意：
每当新增一个 Model 文件，必须在此处导入，
否则 Alembic autogenerate 无法检测到新表。

Author: jinmozhe
Created: 2025-11-25
Updated: 2026-10-12 (Accounts aggregate tables)
"""

# 1. 导入基类与组件
from accounts.db.models.base import (
    Base,
    LifecycleState,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDBase,
    UUIDModel,
)

# 2. 导入业务模型
from accounts.db.models.log import AuditAction, AuditLog
from accounts.db.models.profile import Profile
from accounts.db.models.role import Role, RoleStatus, UserRole
from accounts.db.models.user import User

# 3. 显式导出
__all__ = [
    # 基类
    "Base",
    "UUIDBase",
    "UUIDModel",
    "TimestampMixin",
    "SoftDeleteMixin",
    "LifecycleState",
    # 业务模型
    "User",
    "Profile",
    "Role",
    "RoleStatus",
    "UserRole",
    "AuditLog",
    "AuditAction",
]
