"""
File: accounts/api_router.py
Description: 根 API 路由聚合层

本模块负责：
1. 聚合所有业务领域的 Router (users, roles, logs)
2. 统一设置路由前缀与 OpenAPI 标签

Author: jinmozhe
Created: 2025-12-05
Updated: 2026-10-12 (Accounts domains)
"""

from fastapi import APIRouter

from accounts.domains.audit.router import router as audit_router
from accounts.domains.roles.router import router as roles_router
from accounts.domains.users.router import router as users_router

# 创建根 API 路由
api_router = APIRouter()

# 1. 用户聚合 (Users Domain)
api_router.include_router(users_router, prefix="/users", tags=["users"])

# 2. 角色聚合 (Roles Domain)
api_router.include_router(roles_router, prefix="/roles", tags=["roles"])

# 3. 审计日志 (Audit Domain，只读)
api_router.include_router(audit_router, prefix="/logs", tags=["logs"])
