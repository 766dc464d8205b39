"""
File: tests/unit/test_masking.py
Description: 脱敏工具测试

Author: jinmozhe
Created: 2026-10-12
"""

from accounts.utils.masking import (
    REDACTED,
    is_sensitive_key,
    mask_email,
    mask_phone,
    redact_sensitive,
)


def test_mask_phone() -> None:
    assert mask_phone("13800138000") == "138****8000"
    assert mask_phone("123") == REDACTED
    assert mask_phone(None) == REDACTED


def test_mask_email() -> None:
    assert mask_email("alice@example.com") == "a***@example.com"
    assert mask_email("a@example.com") == "****@example.com"
    assert mask_email("broken") == REDACTED


def test_is_sensitive_key() -> None:
    assert is_sensitive_key("password_hash")
    assert is_sensitive_key("Refresh_Token")
    assert is_sensitive_key("API_KEY")
    assert not is_sensitive_key("username")


def test_redact_sensitive_nested() -> None:
    source = {
        "username": "alice",
        "password_hash": "$argon2id$...",
        "changes": [{"client_secret": "s"}, {"email": "a@x.com"}],
        "password": None,
    }

    redacted = redact_sensitive(source)

    assert redacted == {
        "username": "alice",
        "password_hash": REDACTED,
        "changes": [{"client_secret": REDACTED}, {"email": "a@x.com"}],
        "password": None,
    }
    # 入参不被修改
    assert source["password_hash"] == "$argon2id$..."
