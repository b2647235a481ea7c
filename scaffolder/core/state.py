"""工作树状态记录 — 跨运行持久化的少量键值（目前只有 db_suffix）

记录保存在工作树根目录的 YAML 文件中，更新时合并已有键并原子写入。
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any

import yaml

from scaffolder.core.config import STATE_FILE
from scaffolder.core.exceptions import ConfigError
from scaffolder.utils.yaml_io import load_yaml, save_yaml

logger = logging.getLogger(__name__)

DB_SUFFIX_KEY = "db_suffix"

# 同一进程内并发的数据库步骤写同一文件时串行化
_write_lock = threading.Lock()


class WorktreeState:
    """单个工作树的状态文件"""

    def __init__(self, worktree_path: str | Path, filename: str = STATE_FILE) -> None:
        self.path = Path(worktree_path) / filename

    def read(self) -> dict[str, Any]:
        """读取记录；文件损坏（YAML 语法、编码、超限）时抛 ConfigError"""
        try:
            return load_yaml(self.path)
        except (yaml.YAMLError, ValueError) as e:
            raise ConfigError(f"状态记录损坏: {self.path}: {e}") from e

    def _read_for_update(self) -> dict[str, Any]:
        try:
            return self.read()
        except ConfigError as e:
            logger.warning("%s，将以新记录覆盖", e)
            return {}

    def get(self, key: str, default: str = "") -> str:
        value = self.read().get(key)
        return default if value is None else str(value)

    def update(self, **values: Any) -> dict[str, Any]:
        """合并写入，返回写入后的完整记录"""
        with _write_lock:
            data = self._read_for_update()
            data.update(values)
            save_yaml(self.path, data)
        logger.debug("状态已写入 %s: %s", self.path, ", ".join(values))
        return data

    def remove(self, key: str) -> bool:
        with _write_lock:
            data = self.read()
            if key not in data:
                return False
            del data[key]
            save_yaml(self.path, data)
        return True

    @property
    def db_suffix(self) -> str:
        return self.get(DB_SUFFIX_KEY)

    def save_db_suffix(self, suffix: str) -> None:
        self.update(**{DB_SUFFIX_KEY: suffix})
