"""
File: accounts/core/security.py
Description: 密码哈希工具 (pwdlib / Argon2id)

一致性引擎只接收 password_hash，从不接触明文密码。
本模块供 HTTP 边界 (Router) 在调用 Service 之前完成哈希：
1. get_password_hash / verify_password: 同步版本
2. get_password_hash_async: 在线程池中执行，避免 CPU 密集型哈希阻塞事件循环

Author: jinmozhe
Created: 2025-12-05
Updated: 2026-10-12 (Drop JWT, hashing only)
"""

from pwdlib import PasswordHash
from starlette.concurrency import run_in_threadpool

# pwdlib[argon2] 推荐配置
password_hash = PasswordHash.recommended()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """校验明文密码与哈希值是否匹配"""
    return password_hash.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """生成密码哈希值 (Argon2id)"""
    return password_hash.hash(password)


async def get_password_hash_async(password: str) -> str:
    """异步生成密码哈希（线程池执行）"""
    return await run_in_threadpool(get_password_hash, password)
