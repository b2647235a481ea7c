"""公共测试替身: 数据库客户端 / 命令执行器"""

from __future__ import annotations

import re
import threading
from pathlib import Path

import pytest

from scaffolder.core.context import ScaffoldContext
from scaffolder.core.exceptions import DatabaseExistsError
from scaffolder.core.models import DatabaseOptions, DbEngine
from scaffolder.utils.shell import CommandResult


def like_to_regex(pattern: str) -> re.Pattern[str]:
    """SQL LIKE 模式（反斜杠转义）转正则"""
    out: list[str] = []
    chars = iter(pattern)
    for ch in chars:
        if ch == "\\":
            out.append(re.escape(next(chars, "")))
        elif ch == "%":
            out.append(".*")
        elif ch == "_":
            out.append(".")
        else:
            out.append(re.escape(ch))
    return re.compile("".join(out))


class FakeDatabaseClient:
    """内存数据库客户端，记录全部调用"""

    def __init__(
        self,
        exists_on_first_n_calls: int = 0,
        ping_error: Exception | None = None,
        create_error: Exception | None = None,
        drop_error: Exception | None = None,
        list_error: Exception | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self.exists_on_first_n_calls = exists_on_first_n_calls
        self.ping_error = ping_error
        self.create_error = create_error
        self.drop_error = drop_error
        self.list_error = list_error
        self.databases: set[str] = set()
        self.create_calls: list[str] = []
        self.drop_calls: list[str] = []
        self.list_calls: list[str] = []
        self.closed = 0

    def ping(self) -> None:
        if self.ping_error:
            raise self.ping_error

    def close(self) -> None:
        with self._lock:
            self.closed += 1

    def create_database(self, name: str) -> None:
        with self._lock:
            self.create_calls.append(name)
            if self.create_error:
                raise self.create_error
            if len(self.create_calls) <= self.exists_on_first_n_calls or name in self.databases:
                raise DatabaseExistsError(name)
            self.databases.add(name)

    def drop_database(self, name: str) -> None:
        with self._lock:
            self.drop_calls.append(name)
            if self.drop_error:
                raise self.drop_error
            self.databases.discard(name)

    def list_databases(self, pattern: str) -> list[str]:
        with self._lock:
            self.list_calls.append(pattern)
            if self.list_error:
                raise self.list_error
            regex = like_to_regex(pattern)
            return sorted(n for n in self.databases if regex.fullmatch(n))


class FakeClientFactory:
    """总是返回同一个 FakeDatabaseClient，记录连接参数"""

    def __init__(self, client: FakeDatabaseClient, error: Exception | None = None) -> None:
        self.client = client
        self.error = error
        self.calls: list[tuple[DbEngine, DatabaseOptions]] = []

    def __call__(self, engine: DbEngine, options: DatabaseOptions) -> FakeDatabaseClient:
        self.calls.append((engine, options))
        if self.error:
            raise self.error
        return self.client


class FakeExecutor:
    """记录命令的执行器，按需返回失败"""

    def __init__(self, returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self.result = CommandResult(returncode=returncode, stdout=stdout, stderr=stderr)
        self.calls: list[tuple[list[str], str]] = []
        self._lock = threading.Lock()

    def execute(self, cmd, *, cwd=".", env=None, timeout=None) -> CommandResult:
        with self._lock:
            self.calls.append((list(cmd), cwd))
        return self.result


@pytest.fixture
def fake_db() -> FakeDatabaseClient:
    return FakeDatabaseClient()


@pytest.fixture
def fake_factory(fake_db: FakeDatabaseClient) -> FakeClientFactory:
    return FakeClientFactory(fake_db)


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def worktree(tmp_path: Path) -> Path:
    wt = tmp_path / "feature-auth"
    wt.mkdir()
    return wt


@pytest.fixture
def ctx(worktree: Path) -> ScaffoldContext:
    return ScaffoldContext(worktree_path=str(worktree), site_name="myapp", branch="feature/auth")
