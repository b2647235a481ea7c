"""运行上下文 — 一次 scaffold / cleanup 运行内所有步骤共享的状态

并发约定:
  - 标识字段（worktree_path / branch / repo_name / site_name / preset / path）
    在运行期间只读
  - variables 由锁保护，后写者覆盖
  - db_suffix 由锁保护；claim_db_suffix 保证只有一个首写者，
    suffix_guard() 让数据库步骤的"协商-创建-重试"过程整体互斥
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

from scaffolder.utils.envfile import DEFAULT_ENV_FILE, read_env_file

logger = logging.getLogger(__name__)


@dataclass
class ScaffoldContext:
    """单次运行的共享上下文"""

    worktree_path: str
    branch: str = ""
    repo_name: str = ""
    site_name: str = ""
    preset: str = ""
    path: str = ""
    env: dict[str, str] = field(default_factory=dict)
    variables: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.worktree_path = os.path.abspath(self.worktree_path)
        if not self.path:
            self.path = Path(self.worktree_path).name
        self._db_suffix = ""
        self._lock = threading.Lock()
        self._suffix_lock = threading.RLock()

    # ---- 变量 ----

    def get_var(self, name: str) -> str:
        with self._lock:
            return self.variables.get(name, "")

    def has_var(self, name: str) -> bool:
        with self._lock:
            return name in self.variables

    def set_var(self, name: str, value: str) -> None:
        with self._lock:
            self.variables[name] = value

    def snapshot_vars(self) -> dict[str, str]:
        with self._lock:
            return dict(self.variables)

    # ---- 数据库后缀 ----

    def get_db_suffix(self) -> str:
        with self._lock:
            return self._db_suffix

    def set_db_suffix(self, value: str) -> None:
        with self._lock:
            self._db_suffix = value

    def clear_db_suffix(self) -> None:
        self.set_db_suffix("")

    def claim_db_suffix(self, factory: Callable[[], str]) -> tuple[str, bool]:
        """后缀为空时用 factory 生成并写入

        返回 (后缀, 是否由本次调用生成)。
        """
        with self._lock:
            if self._db_suffix:
                return self._db_suffix, False
            self._db_suffix = factory()
            return self._db_suffix, True

    @contextmanager
    def suffix_guard(self) -> Iterator[None]:
        """持有期间其他数据库步骤无法协商后缀（可重入）"""
        with self._suffix_lock:
            yield

    # ---- 环境 ----

    def resolve(self, relative: str) -> Path:
        """工作树内的相对路径转绝对路径"""
        return Path(self.worktree_path) / relative

    def read_env_file(self, name: str = DEFAULT_ENV_FILE) -> dict[str, str]:
        return read_env_file(self.worktree_path, name)

    def env_snapshot(self, name: str = DEFAULT_ENV_FILE) -> dict[str, str]:
        """env 文件内容，叠加调用方传入的 env 覆盖项（每次实时读取）"""
        merged = self.read_env_file(name)
        merged.update(self.env)
        return merged
