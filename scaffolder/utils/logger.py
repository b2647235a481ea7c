"""scaffolder 日志配置

提供统一的日志配置，支持人类可读文本和结构化 JSON 两种输出格式。
步骤执行在线程池中并发进行，文本格式带线程名便于区分交错输出。
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

TEXT_FORMAT = "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s"
VERBOSE_FORMAT = "%(asctime)s [%(levelname)-7s] (%(threadName)s) %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """结构化 JSON 日志格式器，便于 CI 流水线消费

    输出字段: timestamp / level / logger / message / thread，
    有异常时附带 exception。
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            # 取 record.created，记录事件发生时间而非格式化时间
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "thread": record.threadName,
        }
        step = getattr(record, "step", None)
        if step:
            log_entry["step"] = step
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False)


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """配置根日志器

    参数:
        level: 日志级别字符串（DEBUG, INFO, WARNING, ERROR）
        json_output: 为 True 时输出 JSON（适用于 CI），否则输出文本

    说明:
        - 输出到 stderr，stdout 留给命令结果
        - 重复调用会先清理已有 handlers，避免日志重复
        - DEBUG 级别下文本格式附带线程名
    """
    reset_logging()
    root = logging.getLogger()
    numeric = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(numeric)

    handler = logging.StreamHandler(sys.stderr)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        fmt = VERBOSE_FORMAT if numeric <= logging.DEBUG else TEXT_FORMAT
        handler.setFormatter(logging.Formatter(fmt))
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """获取指定名称的 logger 实例"""
    return logging.getLogger(name)


def reset_logging() -> None:
    """移除根日志器上的全部 handlers（测试中重新配置时使用）"""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
