"""
File: accounts/utils/masking.py
Description: 敏感数据脱敏工具

用于两处：
1. 审计日志 detail 落库前，屏蔽密码/密钥类字段 (redact_sensitive)
2. 业务日志输出时，对邮箱/手机号做部分掩码 (mask_email / mask_phone)

Author: jinmozhe
Created: 2025-11-26
Updated: 2026-10-12 (Audit detail redaction)
"""

from collections.abc import Mapping
from typing import Any

REDACTED = "******"

# 敏感字段黑名单 (大小写不敏感，同时匹配包含以下片段的 Key)
SENSITIVE_KEYS = frozenset(
    {
        "password",
        "password_hash",
        "passwd",
        "secret",
        "token",
        "api_key",
        "client_secret",
    }
)

SENSITIVE_FRAGMENTS = ("password", "secret", "token")


def is_sensitive_key(key: str) -> bool:
    lowered = key.lower()
    if lowered in SENSITIVE_KEYS:
        return True
    return any(fragment in lowered for fragment in SENSITIVE_FRAGMENTS)


def mask_phone(phone: str | None) -> str:
    """
    手机号脱敏: 保留前3位和后4位。
    示例: 13800138000 -> 138****8000
    """
    if not phone or len(phone) < 7:
        return REDACTED
    return f"{phone[:3]}****{phone[-4:]}"


def mask_email(email: str | None) -> str:
    """
    邮箱脱敏: 保留用户名首字符和域名。
    示例: alice@example.com -> a***@example.com
    """
    if not email or "@" not in email:
        return REDACTED

    user_part, domain_part = email.split("@", 1)
    masked_user = "****" if len(user_part) <= 1 else f"{user_part[0]}***"
    return f"{masked_user}@{domain_part}"


def redact_sensitive(data: Any) -> Any:
    """
    递归遍历字典/列表，把敏感 Key 对应的值替换为掩码。

    返回新对象，不修改入参。None 值保持为 None，
    以便审计日志区分"清空"与"设置新值"。
    """
    if isinstance(data, Mapping):
        redacted: dict[Any, Any] = {}
        for key, value in data.items():
            if isinstance(key, str) and is_sensitive_key(key):
                redacted[key] = None if value is None else REDACTED
            else:
                redacted[key] = redact_sensitive(value)
        return redacted

    if isinstance(data, list | tuple):
        return [redact_sensitive(item) for item in data]

    return data
