"""
File: accounts/core/response.py
Description: 统一响应信封（Unified Response Envelope）模型与辅助函数

本模块定义了全站统一的 API 响应格式。
所有 HTTP 接口必须遵循此契约返回数据。
列表接口的 data 字段统一使用 PageData 分页结构。

Author: jinmozhe
Created: 2025-11-24
Updated: 2026-10-12 (Add PageData)
"""

from datetime import UTC, datetime
from typing import Any, Generic, TypeVar, cast

from pydantic import BaseModel, ConfigDict, Field, computed_field

T = TypeVar("T")


class ResponseBase(BaseModel):
    """
    响应基类
    """

    model_config = ConfigDict(from_attributes=True)

    code: str = Field(default="success", description="业务状态码")
    message: str = Field(default="Success", description="响应消息")
    request_id: str | None = Field(default=None, description="请求追踪ID")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="响应生成时间",
    )


class ResponseModel(ResponseBase, Generic[T]):
    """
    统一响应信封
    """

    data: T | None = Field(default=None, description="业务数据")

    @classmethod
    def success(
        cls,
        data: T | None = None,
        message: str = "Success",
        request_id: str | None = None,
    ) -> "ResponseModel[T]":
        """
        构造成功响应
        """
        # 强制将 Pydantic 模型转换为 JSON 安全的字典
        if hasattr(data, "model_dump"):
            data = cast(Any, data).model_dump(mode="json")

        return cls(
            code="success",
            message=message,
            data=data,
            request_id=request_id,
        )

    @classmethod
    def fail(
        cls,
        code: str,
        message: str,
        data: Any = None,
        request_id: str | None = None,
    ) -> "ResponseModel[Any]":
        """
        构造失败响应
        """
        return cls(
            code=code,
            message=message,
            data=data,
            request_id=request_id,
        )


class PageData(BaseModel, Generic[T]):
    """
    分页数据结构

    与 ResponseModel 组合使用: ResponseModel[PageData[UserListItem]]
    """

    items: list[T] = Field(default_factory=list, description="当前页数据")
    total: int = Field(default=0, ge=0, description="总记录数")
    page: int = Field(default=1, ge=1, description="当前页码")
    page_size: int = Field(default=20, ge=1, description="每页条数")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def pages(self) -> int:
        """总页数"""
        if self.total == 0:
            return 0
        return (self.total + self.page_size - 1) // self.page_size
