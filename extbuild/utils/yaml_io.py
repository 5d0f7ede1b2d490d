"""YAML 文件统一读写工具

配置文件经由此处读取，生成文件统一原子写入。
清单 versions.json 是 JSON，由 Manifest 直接解析。
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# 文件最大大小限制 (10MB)
MAX_YAML_SIZE = 10 * 1024 * 1024


def atomic_write(path: Path, content: str) -> None:
    """原子写入文件：先写同目录临时文件再 rename，防止中途崩溃留下半个文件"""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(
        dir=str(path.parent), suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp, str(path))
    except Exception:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


def load_document(path: str | Path) -> Any:
    """读取 YAML 文档，返回原始解析结果

    异常:
        FileNotFoundError: 文件不存在
        ValueError: 文件过大
        yaml.YAMLError: 格式错误
    """
    p = Path(path)
    file_size = p.stat().st_size
    if file_size > MAX_YAML_SIZE:
        raise ValueError(
            f"文件过大: {p} ({file_size} 字节), 超过限制 {MAX_YAML_SIZE} 字节"
        )
    try:
        with open(p, encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error("解析文件失败: %s, 错误: %s", path, e)
        raise


def load_yaml(path: str | Path) -> dict[str, Any]:
    """安全读取 YAML 映射

    文件不存在、为空、或内容不是字典时返回空字典。
    """
    p = Path(path)
    if not p.exists():
        return {}
    result = load_document(p)
    if result is None:
        return {}
    if not isinstance(result, dict):
        logger.warning(
            "%s 内容不是字典类型 (实际类型: %s)，返回空字典",
            path, type(result).__name__,
        )
        return {}
    return result
