"""
结构化日志配置

库本身只通过 logging.getLogger(__name__) 输出日志，不主动配置 handler；
调用方（CLI、服务）可以在启动时调用 setup_logging() 获得统一格式。

功能：
- JSON 格式输出，便于日志聚合（ELK/Loki）
- 操作 ID 追踪：轮询期间的每条日志都带上当前 operation_id
- 开发环境彩色控制台输出

使用示例：
    import logging
    from qnamaker.infra.logging import setup_logging

    setup_logging()
    logger = logging.getLogger("qnamaker")
    logger.info("发布知识库", extra={"kb_id": "xxx"})
"""

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Iterator

from qnamaker.config import get_settings

# 当前正在跟踪的异步操作 ID
operation_id_var: ContextVar[str | None] = ContextVar("operation_id", default=None)


def get_operation_id() -> str | None:
    """获取当前操作 ID"""
    return operation_id_var.get()


@contextmanager
def operation_context(operation_id: str | None) -> Iterator[None]:
    """在 with 块内把 operation_id 绑定到日志上下文，退出时恢复"""
    token = operation_id_var.set(operation_id)
    try:
        yield
    finally:
        operation_id_var.reset(token)


class JSONFormatter(logging.Formatter):
    """
    JSON 格式日志格式化器

    输出格式：
    {
        "timestamp": "2024-01-01T00:00:00.000Z",
        "level": "INFO",
        "logger": "qnamaker.tracker",
        "message": "操作完成",
        "operation_id": "abc123",
        "extra": {...}
    }
    """

    STANDARD_ATTRS = {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "pathname", "process", "processName", "relativeCreated",
        "stack_info", "exc_info", "exc_text", "thread", "threadName",
        "taskName", "message",
    }

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        operation_id = get_operation_id()
        if operation_id:
            log_data["operation_id"] = operation_id

        if record.levelno <= logging.DEBUG:
            log_data["location"] = f"{record.pathname}:{record.lineno}"

        extra = {
            k: v for k, v in record.__dict__.items()
            if k not in self.STANDARD_ATTRS and not k.startswith("_")
        }
        if extra:
            log_data["extra"] = extra

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """
    控制台友好的日志格式化器（开发环境）

    输出格式：
    2024-01-01 00:00:00 INFO     [operation] logger_name - message
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        level = record.levelname
        color = self.COLORS.get(level, "")

        parts = [f"{timestamp} {color}{level:8}{self.RESET}"]

        operation_id = get_operation_id()
        if operation_id:
            parts.append(f"[{operation_id[:8]}]")

        parts.append(f"{record.name} -")
        parts.append(record.getMessage())

        result = " ".join(parts)
        if record.exc_info:
            result += "\n" + self.formatException(record.exc_info)
        return result


def setup_logging(
    level: str | None = None,
    json_format: bool | None = None,
) -> None:
    """
    配置日志输出

    Args:
        level: 日志级别（DEBUG/INFO/WARNING/ERROR），默认从配置读取
        json_format: 是否使用 JSON 格式，默认读取 log_json，未配置时非 dev 环境使用 JSON
    """
    settings = get_settings()

    if level is None:
        level = settings.log_level
    log_level = getattr(logging, level.upper(), logging.INFO)

    if json_format is None:
        json_format = settings.log_json
    if json_format is None:
        json_format = settings.environment not in ("dev", "development", "test")

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_format else ConsoleFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # httpx 会在 INFO 级别打印每个请求，轮询时过于嘈杂
    for noisy_logger in ("httpx", "httpcore"):
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    logging.getLogger("qnamaker").setLevel(log_level)
