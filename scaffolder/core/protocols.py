"""领域协议定义

集中定义执行器、步骤、数据库客户端之间的接口契约（Protocol）。
使用 typing.Protocol 而非 ABC，测试桩无需继承即可满足协议。
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from scaffolder.core.context import ScaffoldContext
    from scaffolder.core.models import DatabaseOptions, DbEngine, StepOptions


# =========================================================================
# 步骤协议
# =========================================================================

class ScaffoldStep(Protocol):
    """可调度步骤

    执行器只依赖这四项能力：名称、优先级（越小越早）、
    条件判定（无副作用）、执行（失败抛异常）。
    """

    @property
    def name(self) -> str:
        ...

    @property
    def priority(self) -> int:
        ...

    def condition(self, ctx: ScaffoldContext) -> bool:
        """判定是否需要执行，不得修改任何状态"""
        ...

    def run(self, ctx: ScaffoldContext, opts: StepOptions) -> None:
        """执行步骤，失败时抛出异常"""
        ...


# =========================================================================
# 数据库客户端协议
# =========================================================================

class DatabaseClient(Protocol):
    """数据库服务端操作

    create_database 遇到同名库时必须抛出可被
    is_database_exists_error 识别的异常。
    """

    def create_database(self, name: str) -> None:
        ...

    def drop_database(self, name: str) -> None:
        ...

    def list_databases(self, pattern: str) -> list[str]:
        """按 SQL LIKE 模式列出数据库名"""
        ...

    def ping(self) -> None:
        ...

    def close(self) -> None:
        ...


class DatabaseClientFactory(Protocol):
    """按引擎与连接参数构造客户端，连接失败时抛异常"""

    def __call__(self, engine: DbEngine, options: DatabaseOptions) -> DatabaseClient:
        ...
