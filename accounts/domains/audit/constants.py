"""
File: accounts/domains/audit/constants.py
Description: 审计日志领域常量定义
"""

from starlette.status import HTTP_404_NOT_FOUND

from accounts.core.error_code import BaseErrorCode


class AuditError(BaseErrorCode):
    """审计日志错误码"""

    LOG_NOT_FOUND = (HTTP_404_NOT_FOUND, "logs.not_found", "日志不存在")
