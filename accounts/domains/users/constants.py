"""
File: accounts/domains/users/constants.py
Description: 用户领域常量定义 (错误码枚举 / 审计目标表名)
"""

from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
)

from accounts.core.error_code import BaseErrorCode

USERS_TABLE = "users"
PROFILES_TABLE = "profiles"
USER_ROLES_TABLE = "user_roles"


class UserError(BaseErrorCode):
    """用户领域错误码"""

    # 格式: (HTTP状态, 业务码, 默认文案)

    USER_NOT_FOUND = (HTTP_404_NOT_FOUND, "users.not_found", "用户不存在")
    USERNAME_EXIST = (HTTP_409_CONFLICT, "users.username_exist", "该用户名已被占用")
    EMAIL_EXIST = (HTTP_409_CONFLICT, "users.email_exist", "该邮箱已被注册")
    NOT_DELETED = (HTTP_409_CONFLICT, "users.not_deleted", "用户未被删除，无需恢复")

    ROLE_NOT_FOUND = (HTTP_404_NOT_FOUND, "users.role_not_found", "角色不存在")
    ROLE_ASSIGNMENT_NOT_FOUND = (
        HTTP_404_NOT_FOUND,
        "users.role_assignment_not_found",
        "用户未分配该角色",
    )

    PROFILE_NOT_FOUND = (HTTP_404_NOT_FOUND, "users.profile_not_found", "用户档案不存在")
    PROFILE_ALREADY_LIVE = (
        HTTP_400_BAD_REQUEST,
        "users.profile_already_live",
        "用户已有有效档案",
    )
