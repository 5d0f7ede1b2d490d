"""extbuild 日志配置

支持人类可读文本和结构化 JSON 两种输出格式；CLI 的 -v / -q 映射到日志级别。
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone


class JSONFormatter(logging.Formatter):
    """结构化 JSON 日志格式器，便于 CI 流水线消费

    输出字段: timestamp, level, logger, message, target(如有), exception(如有)
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        target = getattr(record, "target", None)
        if target:
            log_entry["target"] = target
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False)


def level_for_verbosity(verbosity: int) -> str:
    """把 CLI 冗余度换算为日志级别

    0 → WARNING（静默），1 → INFO（默认），>=2 → DEBUG
    """
    if verbosity <= 0:
        return "WARNING"
    if verbosity == 1:
        return "INFO"
    return "DEBUG"


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """配置根日志器

    参数:
        level: 日志级别字符串（DEBUG, INFO, WARNING, ERROR）
        json_output: 为 True 时使用 JSON 格式，否则使用人类可读格式

    说明:
        输出到 stderr；重复调用会先清理已有 handlers，避免日志重复。
    """
    reset_logging()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stderr)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        fmt = "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s"
        handler.setFormatter(logging.Formatter(fmt))
    root.addHandler(handler)


def reset_logging() -> None:
    """清理根日志器的所有 handlers"""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
