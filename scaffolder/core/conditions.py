"""条件表达式 — 决定步骤是否执行

条件是 YAML 里的嵌套映射/列表，语法:
    映射       所有键都成立（AND，短路）
    列表       所有元素都成立（AND）
    not: X     X 取反，X 为映射或列表
    叶子谓词   file_exists / file_contains / file_has_script / command_exists /
               os / env_exists / env_not_exists / env_file_contains /
               env_file_missing（别名 env_file_not_exists）
    空或缺省   成立

未知谓词视为成立，编译时输出 WARNING。
配置在加载时编译为节点树，参数只解码一次；求值不修改任何状态。
"""

from __future__ import annotations

import json
import logging
import os
import platform
import shutil
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Union

from scaffolder.core.context import ScaffoldContext
from scaffolder.core.exceptions import ConditionError
from scaffolder.utils.envfile import DEFAULT_ENV_FILE

logger = logging.getLogger(__name__)


# =========================================================================
# 谓词参数
# =========================================================================

@dataclass(frozen=True)
class ScalarArg:
    value: str


@dataclass(frozen=True)
class ListArg:
    values: tuple[str, ...]


@dataclass(frozen=True)
class MappingArg:
    fields: tuple[tuple[str, str], ...]

    def get(self, key: str, default: str = "") -> str:
        for k, v in self.fields:
            if k == key:
                return v
        return default


PredicateArg = Union[ScalarArg, ListArg, MappingArg]


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return "" if value is None else str(value)


def decode_arg(raw: Any) -> PredicateArg:
    """把 YAML 原始值解码为谓词参数"""
    if isinstance(raw, dict):
        return MappingArg(tuple((str(k), _scalar(v)) for k, v in raw.items()))
    if isinstance(raw, (list, tuple)):
        return ListArg(tuple(_scalar(v) for v in raw if not isinstance(v, (dict, list))))
    return ScalarArg(_scalar(raw))


def _single(arg: PredicateArg, key: str) -> str:
    """取标量参数，或映射参数中的 key 字段"""
    if isinstance(arg, ScalarArg):
        return arg.value
    if isinstance(arg, MappingArg):
        return arg.get(key)
    return ""


# =========================================================================
# 叶子谓词
# =========================================================================

def current_os() -> str:
    """平台标识: linux / darwin / windows"""
    return platform.system().lower()


def _file_exists(ctx: ScaffoldContext, arg: PredicateArg) -> bool:
    if isinstance(arg, ListArg):
        return bool(arg.values) and all(p and ctx.resolve(p).exists() for p in arg.values)
    path = _single(arg, "file")
    return bool(path) and ctx.resolve(path).exists()


def _file_contains(ctx: ScaffoldContext, arg: PredicateArg) -> bool:
    if not isinstance(arg, MappingArg):
        return False
    file, pattern = arg.get("file"), arg.get("pattern")
    if not file or not pattern:
        return False
    try:
        return pattern in ctx.resolve(file).read_text(encoding="utf-8", errors="replace")
    except OSError:
        return False


def _file_has_script(ctx: ScaffoldContext, arg: PredicateArg) -> bool:
    script = _single(arg, "name")
    if not script:
        return False
    try:
        data = json.loads(ctx.resolve("package.json").read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return False
    scripts = data.get("scripts") if isinstance(data, dict) else None
    return isinstance(scripts, dict) and script in scripts


def _command_exists(ctx: ScaffoldContext, arg: PredicateArg) -> bool:
    command = _single(arg, "command")
    return bool(command) and shutil.which(command) is not None


def _os_matches(ctx: ScaffoldContext, arg: PredicateArg) -> bool:
    if isinstance(arg, ListArg):
        candidates = arg.values
    else:
        candidates = (_single(arg, "os"),)
    here = current_os()
    return any(c.lower() == here for c in candidates if c)


def _env_exists(ctx: ScaffoldContext, arg: PredicateArg) -> bool:
    name = _single(arg, "env")
    return bool(name) and (name in os.environ or name in ctx.env)


def _env_file_contains(ctx: ScaffoldContext, arg: PredicateArg) -> bool:
    if isinstance(arg, MappingArg):
        file, key = arg.get("file", DEFAULT_ENV_FILE) or DEFAULT_ENV_FILE, arg.get("key")
    elif isinstance(arg, ScalarArg):
        file, key = DEFAULT_ENV_FILE, arg.value
    else:
        return False
    if not key:
        return False
    return ctx.read_env_file(file).get(key, "") != ""


PredicateFn = Callable[[ScaffoldContext, PredicateArg], bool]

PREDICATES: dict[str, PredicateFn] = {
    "file_exists": _file_exists,
    "file_contains": _file_contains,
    "file_has_script": _file_has_script,
    "command_exists": _command_exists,
    "os": _os_matches,
    "env_exists": _env_exists,
    "env_file_contains": _env_file_contains,
}

# 取反谓词 -> 基础谓词
NEGATED_PREDICATES: dict[str, str] = {
    "env_not_exists": "env_exists",
    "env_file_missing": "env_file_contains",
    "env_file_not_exists": "env_file_contains",
}


# =========================================================================
# 条件节点
# =========================================================================

class Condition(ABC):
    """编译后的条件节点"""

    @abstractmethod
    def evaluate(self, ctx: ScaffoldContext) -> bool:
        ...


class Always(Condition):
    def evaluate(self, ctx: ScaffoldContext) -> bool:
        return True

    def __repr__(self) -> str:
        return "Always()"


class AllOf(Condition):
    def __init__(self, children: list[Condition]) -> None:
        self.children = tuple(children)

    def evaluate(self, ctx: ScaffoldContext) -> bool:
        return all(c.evaluate(ctx) for c in self.children)

    def __repr__(self) -> str:
        return f"AllOf({list(self.children)!r})"


class Not(Condition):
    def __init__(self, child: Condition) -> None:
        self.child = child

    def evaluate(self, ctx: ScaffoldContext) -> bool:
        return not self.child.evaluate(ctx)

    def __repr__(self) -> str:
        return f"Not({self.child!r})"


class Predicate(Condition):
    def __init__(self, name: str, arg: PredicateArg, check: PredicateFn) -> None:
        self.name = name
        self.arg = arg
        self._check = check

    def evaluate(self, ctx: ScaffoldContext) -> bool:
        result = self._check(ctx, self.arg)
        logger.debug("条件 %s(%s) -> %s", self.name, self.arg, result)
        return result

    def __repr__(self) -> str:
        return f"Predicate({self.name}={self.arg!r})"


class UnknownPredicate(Condition):
    """无法识别的谓词，恒为真"""

    def __init__(self, name: str) -> None:
        self.name = name

    def evaluate(self, ctx: ScaffoldContext) -> bool:
        return True

    def __repr__(self) -> str:
        return f"UnknownPredicate({self.name})"


# =========================================================================
# 编译与求值
# =========================================================================

def _compile_entry(key: str, value: Any) -> Condition:
    if key == "not":
        if not isinstance(value, (dict, list)):
            raise ConditionError(f"not 的参数必须是映射或列表: {value!r}")
        return Not(compile_condition(value))
    if key in NEGATED_PREDICATES:
        base = NEGATED_PREDICATES[key]
        return Not(Predicate(base, decode_arg(value), PREDICATES[base]))
    check = PREDICATES.get(key)
    if check is None:
        logger.warning("未知条件谓词 '%s'，按成立处理", key)
        return UnknownPredicate(key)
    return Predicate(key, decode_arg(value), check)


def compile_condition(raw: Any) -> Condition:
    """把 YAML 条件编译为节点树，结构无效时抛 ConditionError"""
    if isinstance(raw, Condition):
        return raw
    if raw is None:
        return Always()
    if isinstance(raw, dict):
        nodes = [_compile_entry(str(k), v) for k, v in raw.items()]
    elif isinstance(raw, (list, tuple)):
        for item in raw:
            if not isinstance(item, (dict, list, tuple)):
                raise ConditionError(f"条件列表元素必须是映射或列表: {item!r}")
        nodes = [compile_condition(item) for item in raw]
    else:
        raise ConditionError(f"条件必须是映射或列表: {raw!r}")

    if not nodes:
        return Always()
    if len(nodes) == 1:
        return nodes[0]
    return AllOf(nodes)


def evaluate(condition: Any, ctx: ScaffoldContext) -> bool:
    """求值条件（原始 YAML 结构或已编译节点）"""
    return compile_condition(condition).evaluate(ctx)
