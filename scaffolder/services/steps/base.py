"""步骤基类

所有内置步骤共享: 名称 / 优先级 / 条件的存取，以及 `--flag value` 参数解析。
配置中的条件在构造时编译，配置错误尽早暴露。
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from scaffolder.core.conditions import Always, compile_condition
from scaffolder.core.context import ScaffoldContext
from scaffolder.core.models import StepOptions

logger = logging.getLogger(__name__)


def parse_flags(args: list[str]) -> dict[str, str]:
    """解析 `--key value` / `--key=value` 形式的参数，后出现者覆盖"""
    flags: dict[str, str] = {}
    i = 0
    while i < len(args):
        arg = args[i]
        if arg.startswith("--"):
            key, sep, value = arg[2:].partition("=")
            if sep:
                flags[key] = value
            elif i + 1 < len(args) and not args[i + 1].startswith("--"):
                flags[key] = args[i + 1]
                i += 1
            else:
                flags[key] = ""
        i += 1
    return flags


class BaseStep(ABC):
    """内置步骤公共实现

    子类设置 default_priority，按需覆盖 default_condition()，实现 run()。
    显式配置的条件优先于 default_condition()。
    """

    default_priority: int = 0

    def __init__(
        self,
        name: str,
        *,
        priority: int | None = None,
        condition: object = None,
    ) -> None:
        self._name = name
        self._priority = self.default_priority if priority is None else priority
        self._condition = compile_condition(condition)

    @property
    def name(self) -> str:
        return self._name

    @property
    def priority(self) -> int:
        return self._priority

    @property
    def has_condition(self) -> bool:
        return not isinstance(self._condition, Always)

    def condition(self, ctx: ScaffoldContext) -> bool:
        if self.has_condition:
            return self._condition.evaluate(ctx)
        return self.default_condition(ctx)

    def default_condition(self, ctx: ScaffoldContext) -> bool:
        return True

    @abstractmethod
    def run(self, ctx: ScaffoldContext, opts: StepOptions) -> None:
        """执行步骤"""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r}, priority={self._priority})"
