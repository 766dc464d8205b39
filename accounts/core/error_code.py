"""
File: accounts/core/error_code.py
Description: 全局错误码基类与系统级错误定义

本模块定义了错误码的枚举基类及系统通用的错误状态。
遵循 v2.1 架构规范：语义化 HTTP 状态码 + 字符串命名空间。

定义结构 Tuple(http_status, code, message):
1. http_status: HTTP 响应状态码 (4xx/5xx)
2. code: 字符串业务码 (格式: domain.reason)
3. message: 默认的人类可读错误消息

Author: jinmozhe
Created: 2026-01-15
Updated: 2026-10-12 (Add unique conflict / transient storage)
"""

from enum import Enum

from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_503_SERVICE_UNAVAILABLE,
)


class BaseErrorCode(Enum):
    """
    错误码枚举基类
    所有业务领域的错误码 Enum 必须继承此类。

    Value Tuple Definition:
    (http_status, code, msg)
    """

    @property
    def http_status(self) -> int:
        """获取映射的 HTTP 状态码"""
        return self.value[0]

    @property
    def code(self) -> str:
        """获取业务错误标识 (domain.reason)"""
        return self.value[1]

    @property
    def msg(self) -> str:
        """获取默认错误描述信息"""
        return self.value[2]


class SystemErrorCode(BaseErrorCode):
    """
    系统通用错误定义 (System Domain)
    包含: 参数校验、资源状态、存储故障
    """

    # HTTP 400: 客户端参数错误 (Pydantic 校验会自动映射到这里)
    INVALID_PARAMS = (HTTP_400_BAD_REQUEST, "system.invalid_params", "参数校验失败")

    # HTTP 404: 路由不存在
    NOT_FOUND = (HTTP_404_NOT_FOUND, "system.not_found", "资源不存在")

    # HTTP 409: 数据库唯一索引兜底冲突 (预检查未拦住的并发写入)
    UNIQUE_CONFLICT = (
        HTTP_409_CONFLICT,
        "system.unique_conflict",
        "数据已存在，请勿重复提交",
    )

    # HTTP 500: 服务端故障 (需要监控报警)
    INTERNAL_ERROR = (
        HTTP_500_INTERNAL_SERVER_ERROR,
        "system.internal_error",
        "系统内部错误",
    )
    DB_ERROR = (HTTP_500_INTERNAL_SERVER_ERROR, "system.db_error", "数据库操作异常")

    # HTTP 503: 死锁/序列化失败，调用方可用相同参数重试
    TRANSIENT_STORAGE = (
        HTTP_503_SERVICE_UNAVAILABLE,
        "system.transient_storage",
        "数据库繁忙，请稍后重试",
    )
