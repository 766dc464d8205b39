"""
File: accounts/core/exceptions.py
Description: 业务异常类与全局异常处理器

本模块负责：
1. 业务异常基类 AppException（接受 BaseErrorCode 枚举）
2. 一致性引擎的错误分类：
   - NotFoundException: 目标聚合/角色不存在 (或已软删除)
   - ConflictException: 唯一性冲突，或对未删除的聚合执行恢复
   - InvalidStateException: 操作与当前生命周期状态不兼容
   - TransientStorageException: 死锁/序列化失败，调用方可用相同参数重试
3. 全局异常处理器：语义化 HTTP 状态码 + 字符串业务码 + 统一响应信封

Author: jinmozhe
Created: 2025-11-24
Updated: 2026-10-12 (Accounts error taxonomy)
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from accounts.core.error_code import BaseErrorCode, SystemErrorCode
from accounts.core.logging import logger
from accounts.core.response import ResponseModel

# ------------------------------------------------------------------------------
# 1. 业务异常类
# ------------------------------------------------------------------------------


class AppException(Exception):
    """
    应用基础异常类。

    用法示例:
        raise AppException(UserError.USERNAME_EXIST)
        raise NotFoundException(RoleError.ROLE_NOT_FOUND, data={"role_id": str(rid)})
    """

    def __init__(
        self,
        error: BaseErrorCode,
        message: str = "",
        data: Any = None,
    ):
        # 自动从枚举中解构: (HTTP状态, 业务码, 默认文案)
        self.error = error
        self.http_status = error.http_status
        self.code = error.code
        self.message = message or error.msg
        self.data = data
        super().__init__(self.message)


class NotFoundException(AppException):
    """引用的聚合或角色在有效数据中不存在"""


class ConflictException(AppException):
    """唯一性冲突，或恢复一个未被删除的聚合"""


class InvalidStateException(AppException):
    """操作与当前生命周期状态不兼容 (如分配已禁用的角色)"""


class TransientStorageException(AppException):
    """
    存储层瞬时错误 (死锁 / 序列化失败)。
    唯一允许调用方重试的异常类型，且仅限幂等操作。
    """


# ------------------------------------------------------------------------------
# 2. 辅助函数
# ------------------------------------------------------------------------------


def _get_request_id(request: Request) -> str:
    """尝试从 request.state 获取 request_id，如果不存在则返回 'unknown'"""
    return str(getattr(request.state, "request_id", "unknown"))


def _render(
    status_code: int,
    code: str,
    message: str,
    request_id: str,
    data: Any = None,
) -> ORJSONResponse:
    response_model = ResponseModel.fail(
        code=code,
        message=message,
        data=data,
        request_id=request_id,
    )
    return ORJSONResponse(
        status_code=status_code,
        content=response_model.model_dump(mode="json"),
    )


# ------------------------------------------------------------------------------
# 3. 全局异常处理器 (Handlers)
# ------------------------------------------------------------------------------


async def app_exception_handler(request: Request, exc: AppException) -> ORJSONResponse:
    """
    处理业务异常 (AppException 及其子类)
    直接映射为错误码中定义的 HTTP 状态码和 Code
    """
    request_id = _get_request_id(request)

    logger.bind(
        request_id=request_id,
        error_type=type(exc).__name__,
        code=exc.code,
        http_status=exc.http_status,
        message=exc.message,
    ).warning("Business exception occurred")

    return _render(exc.http_status, exc.code, exc.message, request_id, exc.data)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> ORJSONResponse:
    """
    处理 Pydantic 校验异常 (FastAPI 默认 422)
    映射目标: HTTP 400 / Code: system.invalid_params
    """
    request_id = _get_request_id(request)

    errors = exc.errors()
    first_error = errors[0] if errors else {}

    # loc 示例: ('body', 'email')
    loc = first_error.get("loc", [])
    field_name = str(loc[-1]) if loc else "unknown"
    msg = first_error.get("msg", "Invalid parameter")
    readable_message = f"{field_name}: {msg}"

    logger.bind(request_id=request_id, detail=readable_message).warning(
        "Request validation failed"
    )

    # errors 中可能包含不可序列化的 ctx 对象，只回传关键字段
    safe_errors = [
        {"loc": list(e.get("loc", [])), "msg": e.get("msg"), "type": e.get("type")}
        for e in errors
    ]
    return _render(
        SystemErrorCode.INVALID_PARAMS.http_status,
        SystemErrorCode.INVALID_PARAMS.code,
        readable_message,
        request_id,
        {"errors": safe_errors},
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> ORJSONResponse:
    """
    处理框架层面的 HTTP 异常 (如 404 Not Found, 405 Method Not Allowed)
    """
    request_id = _get_request_id(request)
    code_str = (
        SystemErrorCode.NOT_FOUND.code
        if exc.status_code == 404
        else "system.http_error"
    )

    logger.bind(
        request_id=request_id,
        status_code=exc.status_code,
        detail=str(exc.detail),
    ).warning("Framework HTTP exception occurred")

    return _render(exc.status_code, code_str, str(exc.detail), request_id)


async def general_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    """
    处理所有未捕获的异常 (500 Internal Server Error)
    屏蔽内部细节，返回通用系统错误
    """
    request_id = _get_request_id(request)

    logger.opt(exception=exc).bind(request_id=request_id).error(
        "Unhandled system exception occurred"
    )

    return _render(
        SystemErrorCode.INTERNAL_ERROR.http_status,
        SystemErrorCode.INTERNAL_ERROR.code,
        SystemErrorCode.INTERNAL_ERROR.msg,
        request_id,
    )


# ------------------------------------------------------------------------------
# 4. 异常处理器注册函数
# ------------------------------------------------------------------------------


def register_exception_handlers(app: FastAPI) -> None:
    """
    统一注册所有异常处理器。
    应在 main.py 中调用。
    """
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore
    app.add_exception_handler(Exception, general_exception_handler)
