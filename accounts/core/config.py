"""
File: accounts/core/config.py
Description: 全局应用配置管理（使用 pydantic-settings）

所有配置值通过 .env 文件加载。
本模块负责：
1. 校验环境变量类型
2. 解析复杂类型（如 CORS 列表）
3. 组装数据库 DSN（确保使用 postgresql+asyncpg 协议）
4. 定义事务隔离级别、默认角色、审计日志保留期等业务参数
5. 运行时强制校验必填项，确保应用在配置缺失时快速失败

Author: jinmozhe
Created: 2025-11-24
Updated: 2026-10-12 (Accounts: isolation level / default role / audit retention)
"""

from typing import Literal

from pydantic import AnyHttpUrl, model_validator
from pydantic_core import MultiHostUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """全局配置对象（唯一真实来源）"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
        case_sensitive=True,
    )

    # --------------------------------------------------------------------------
    # 1. General (通用)
    # --------------------------------------------------------------------------
    PROJECT_NAME: str = "Accounts Service"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: Literal["local", "dev", "test", "prod"] = "local"
    DEBUG: bool = False

    # CORS 配置（Pydantic 会自动解析 JSON 字符串列表）
    BACKEND_CORS_ORIGINS: list[AnyHttpUrl] = []

    # --------------------------------------------------------------------------
    # 2. Database (PostgreSQL)
    # --------------------------------------------------------------------------
    POSTGRES_SERVER: str | None = None
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str | None = None
    POSTGRES_PASSWORD: str | None = None
    POSTGRES_DB: str | None = None

    # 连接池配置 (Pool Settings)
    DB_POOL_SIZE: int = 20  # 连接池基准大小
    DB_MAX_OVERFLOW: int = 10  # 允许超出基准的额外连接数
    DB_POOL_PRE_PING: bool = True  # 每次获取连接前是否自动 ping
    DB_POOL_TIMEOUT: int = 30  # 连接获取超时（秒）
    DB_POOL_RECYCLE: int = 1800  # 连接回收时间（秒），防止连接过期

    # 事务隔离级别 (仅 PostgreSQL 生效)
    # 唯一索引是最终防线，REPEATABLE READ 可缩小"先查后写"的竞态窗口
    DB_ISOLATION_LEVEL: Literal[
        "READ COMMITTED", "REPEATABLE READ", "SERIALIZABLE"
    ] = "REPEATABLE READ"

    # 完整 DSN 覆盖（可选，测试环境可直接指定 sqlite+aiosqlite）
    SQLALCHEMY_DATABASE_URI: str | None = None

    # --------------------------------------------------------------------------
    # 3. Logging (Loguru)
    # --------------------------------------------------------------------------
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_JSON_FORMAT: bool = False  # 是否输出 JSON 格式
    LOG_FILE_ENABLED: bool = False  # 是否启用文件日志
    LOG_DIR: str = "logs"  # 日志文件目录
    LOG_ROTATION: str = "1 hour"  # 轮转策略
    LOG_RETENTION: str = "7 days"  # 保留时间
    LOG_COMPRESSION: str = "zip"  # 压缩格式
    LOG_DIAGNOSE: bool = True  # 是否启用诊断信息（生产环境建议 False）

    # --------------------------------------------------------------------------
    # 4. Accounts Business Settings (账号业务参数)
    # --------------------------------------------------------------------------
    # 新建用户未指定角色时自动分配的角色编码 (None = 不分配)
    # 每次创建用户时实时查库，不在进程内缓存
    DEFAULT_ROLE_CODE: str | None = None

    # 审计日志保留天数 (供清理任务使用)
    AUDIT_LOG_RETENTION_DAYS: int = 90

    # --------------------------------------------------------------------------
    # Properties (便捷属性)
    # --------------------------------------------------------------------------
    @property
    def is_production(self) -> bool:
        """是否为生产环境"""
        return self.ENVIRONMENT == "prod"

    @property
    def is_debug(self) -> bool:
        """是否启用调试模式（仅在非生产环境有效）"""
        return self.DEBUG and not self.is_production

    @property
    def is_sqlite(self) -> bool:
        """当前 DSN 是否指向 SQLite (测试/本地)"""
        return str(self.SQLALCHEMY_DATABASE_URI).startswith("sqlite")

    # --------------------------------------------------------------------------
    # Validators
    # --------------------------------------------------------------------------
    @model_validator(mode="after")
    def _validate_and_build_db_uri(self) -> "Settings":
        """验证必填项并构建数据库连接串。"""
        # 1. 如果 env 直接提供了 DSN，则优先使用
        if self.SQLALCHEMY_DATABASE_URI:
            return self

        # 2. 否则检查 POSTGRES_* 字段是否齐全
        missing_fields: list[str] = []
        required_pg_fields = [
            "POSTGRES_SERVER",
            "POSTGRES_USER",
            "POSTGRES_PASSWORD",
            "POSTGRES_DB",
        ]

        for field in required_pg_fields:
            if not getattr(self, field):
                missing_fields.append(field)

        if missing_fields:
            raise ValueError(
                f"缺少数据库环境变量，无法构建 DSN: {', '.join(missing_fields)}"
            )

        # 3. 自动组装 DSN
        self.SQLALCHEMY_DATABASE_URI = str(
            MultiHostUrl.build(
                scheme="postgresql+asyncpg",
                username=self.POSTGRES_USER,  # type: ignore[arg-type]
                password=self.POSTGRES_PASSWORD,  # type: ignore[arg-type]
                host=self.POSTGRES_SERVER,  # type: ignore[arg-type]
                port=self.POSTGRES_PORT,
                path=self.POSTGRES_DB,  # type: ignore[arg-type]
            )
        )

        return self


# 单例配置对象
# 配置加载失败时，Pydantic 会抛出 ValidationError，包含详细错误信息
settings = Settings()
