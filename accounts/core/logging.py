"""
File: accounts/core/logging.py
Description: 全局日志配置模块 (Loguru)

本模块负责：
1. 接管标准库 logging (Uvicorn / FastAPI / SQLAlchemy)，统一转发到 Loguru
2. 配置输出格式（开发环境彩色文本，生产环境 JSON）
3. 设置文件日志的轮转 (Rotation) 与保留 (Retention) 策略
4. 在日志行中追加 request_id / actor_id 上下文（由中间件与 Service 绑定）

Author: jinmozhe
Created: 2025-11-24
Updated: 2026-10-12 (Accounts: actor context, SQLAlchemy interception)
"""

import logging
import sys
from pathlib import Path
from typing import Any

from loguru import logger

from accounts.core.config import settings

# 需要接管的第三方 logger 前缀
INTERCEPTED_PREFIXES: tuple[str, ...] = ("uvicorn", "fastapi", "sqlalchemy")


class InterceptHandler(logging.Handler):
    """
    将标准库 logging 记录转发到 Loguru。
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # 回溯到真正的调用方栈帧，保证行号正确
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            if frame.f_back:
                frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def format_record(record: dict[str, Any]) -> str:
    """
    文本格式化函数。
    extra 中存在 request_id / actor_id 时追加到行尾。
    """
    format_string = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
    )

    extra = record["extra"]
    if extra.get("request_id"):
        format_string += " | <magenta>req_id={extra[request_id]}</magenta>"
    if extra.get("actor_id"):
        format_string += " | <yellow>actor={extra[actor_id]}</yellow>"

    format_string += "\n{exception}"
    return format_string


def _intercept_stdlib_logging() -> None:
    """清理第三方 handler，统一交给 root 上的 InterceptHandler"""
    logging.root.handlers = [InterceptHandler()]
    logging.root.setLevel(settings.LOG_LEVEL)

    for name in list(logging.root.manager.loggerDict.keys()):
        if name.startswith(INTERCEPTED_PREFIXES):
            std_logger = logging.getLogger(name)
            std_logger.handlers = []
            std_logger.propagate = True

    # SQL 语句日志只在调试模式输出
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.is_debug else logging.WARNING
    )


def setup_logging() -> None:
    """
    初始化日志配置。
    应在应用 lifespan 启动阶段调用。
    """
    _intercept_stdlib_logging()

    logger.remove()

    base_config: dict[str, Any] = {
        "level": settings.LOG_LEVEL,
        # 测试环境同步写入，避免后台线程与事件循环交错
        "enqueue": settings.ENVIRONMENT != "test",
        "backtrace": True,
        "diagnose": settings.LOG_DIAGNOSE,
    }

    # Sink 1: 控制台
    console_config = base_config.copy()
    if settings.LOG_JSON_FORMAT:
        console_config["serialize"] = True
    else:
        console_config["format"] = format_record
        console_config["colorize"] = True

    logger.add(sys.stdout, **console_config)

    # Sink 2: 文件 (按配置启用)
    if settings.LOG_FILE_ENABLED:
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)

        file_config = base_config.copy()
        file_config.update(
            {
                "rotation": settings.LOG_ROTATION,
                "retention": settings.LOG_RETENTION,
                "compression": settings.LOG_COMPRESSION,
            }
        )
        if settings.LOG_JSON_FORMAT:
            file_config["serialize"] = True
        else:
            file_config["format"] = format_record

        logger.add(str(log_dir / "accounts_{time:YYYY-MM-DD_HH}.log"), **file_config)

    logger.bind(environment=settings.ENVIRONMENT).info("Logging configured")
