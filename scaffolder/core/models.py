"""核心数据模型

步骤配置、执行选项、执行结果与编排请求/报告集中定义于此，
core 与 services 两层统一从这里导入，避免循环依赖。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from scaffolder.core.exceptions import ConfigError

if TYPE_CHECKING:
    from scaffolder.core.protocols import ScaffoldStep


# =========================================================================
# 步骤配置
# =========================================================================


@dataclass
class StepConfig:
    """单个步骤的声明式配置（来自 scaffold.yml 或预设）"""

    name: str
    priority: int | None = None  # None 表示沿用步骤类型的默认优先级
    enabled: bool = True
    args: list[str] = field(default_factory=list)
    command: str = ""
    condition: Any = None
    from_: str = ""
    to: str = ""
    key: str = ""
    value: str = ""
    store_as: str = ""
    file: str = ""
    type: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StepConfig:
        """从 YAML 字典构建，`from` 映射为 from_"""
        if not isinstance(data, dict):
            raise ConfigError(f"步骤配置必须是映射: {data!r}")
        name = str(data.get("name", "")).strip()
        if not name:
            raise ConfigError(f"步骤配置缺少 name: {data!r}")

        args = data.get("args") or []
        if isinstance(args, str):
            args = [args]
        priority = data.get("priority")
        enabled = data.get("enabled")

        return cls(
            name=name,
            priority=int(priority) if priority is not None else None,
            enabled=True if enabled is None else bool(enabled),
            args=[str(a) for a in args],
            command=str(data.get("command", "") or ""),
            condition=data.get("condition"),
            from_=str(data.get("from", "") or ""),
            to=str(data.get("to", "") or ""),
            key=str(data.get("key", "") or ""),
            value="" if data.get("value") is None else str(data["value"]),
            store_as=str(data.get("store_as", "") or ""),
            file=str(data.get("file", "") or ""),
            type=str(data.get("type", "") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        """导出为 YAML 字典，省略空字段"""
        out: dict[str, Any] = {"name": self.name}
        if self.priority is not None:
            out["priority"] = self.priority
        if not self.enabled:
            out["enabled"] = False
        for key, val in (
            ("args", self.args), ("command", self.command),
            ("condition", self.condition), ("from", self.from_),
            ("to", self.to), ("key", self.key), ("value", self.value),
            ("store_as", self.store_as), ("file", self.file), ("type", self.type),
        ):
            if val:
                out[key] = val
        return out


@dataclass
class StepOptions:
    """单次运行的执行选项"""

    args: list[str] = field(default_factory=list)
    dry_run: bool = False
    verbose: bool = False


# =========================================================================
# 执行结果
# =========================================================================


class SkipReason(str, Enum):
    """步骤跳过原因"""

    CONDITION = "condition"
    DRY_RUN = "dry_run"


@dataclass
class StepResult:
    """单个步骤的执行结果"""

    step: ScaffoldStep
    skipped: bool = False
    skip_reason: SkipReason | None = None
    error: BaseException | None = None
    duration: float = 0.0

    @property
    def name(self) -> str:
        return self.step.name

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def status(self) -> str:
        if self.error is not None:
            return "failed"
        if self.skipped:
            return "skipped"
        return "done"


# =========================================================================
# 数据库引擎
# =========================================================================


class DbEngine(str, Enum):
    """支持的数据库引擎"""

    MYSQL = "mysql"
    PGSQL = "pgsql"
    SQLITE = "sqlite"


# DB_CONNECTION 取值 -> 引擎
DB_CONNECTION_ALIASES: dict[str, DbEngine] = {
    "mysql": DbEngine.MYSQL,
    "mariadb": DbEngine.MYSQL,
    "pgsql": DbEngine.PGSQL,
    "postgres": DbEngine.PGSQL,
    "postgresql": DbEngine.PGSQL,
    "sqlite": DbEngine.SQLITE,
}


@dataclass
class DatabaseOptions:
    """数据库连接参数"""

    host: str = ""
    port: int = 0
    username: str = ""
    password: str = ""


# =========================================================================
# 编排请求 / 报告
# =========================================================================


@dataclass
class ScaffoldRequest:
    """一次 scaffold / cleanup 调用的输入"""

    worktree_path: str
    branch: str = ""
    repo_name: str = ""
    site_name: str = ""
    preset: str = ""
    dry_run: bool = False
    verbose: bool = False
    env: dict[str, str] = field(default_factory=dict)


@dataclass
class ScaffoldReport:
    """编排执行报告"""

    request: ScaffoldRequest
    preset: str = ""
    results: list[StepResult] = field(default_factory=list)
    error: BaseException | None = None
    db_suffix: str = ""

    @property
    def success(self) -> bool:
        return self.error is None

    def summary(self) -> dict[str, int]:
        counts = {"done": 0, "skipped": 0, "failed": 0}
        for r in self.results:
            counts[r.status] += 1
        return counts
