"""
File: accounts/domains/roles/constants.py
Description: 角色领域常量定义 (错误码枚举)
"""

from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
)

from accounts.core.error_code import BaseErrorCode

ROLES_TABLE = "roles"


class RoleError(BaseErrorCode):
    """角色领域错误码"""

    ROLE_NOT_FOUND = (HTTP_404_NOT_FOUND, "roles.not_found", "角色不存在")
    CODE_EXIST = (HTTP_409_CONFLICT, "roles.code_exist", "该角色编码已存在")
    NOT_DELETED = (HTTP_409_CONFLICT, "roles.not_deleted", "角色未被删除，无需恢复")
    DISABLED = (HTTP_400_BAD_REQUEST, "roles.disabled", "角色已禁用，无法分配")
