"""模板替换 — `{{ .Identifier }}` 占位符

可引用上下文字段（WorktreePath / Path / Branch / RepoName / SiteName /
Preset / DbSuffix）与运行变量；引用未知标识符立即报错，不会静默替换为空串。
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable

from scaffolder.core.context import ScaffoldContext
from scaffolder.core.exceptions import TemplateError

PLACEHOLDER_RE = re.compile(r"\{\{\s*\.([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")

_FIELDS: dict[str, Callable[[ScaffoldContext], str]] = {
    "WorktreePath": lambda c: c.worktree_path,
    "Path": lambda c: c.path,
    "Branch": lambda c: c.branch,
    "RepoName": lambda c: c.repo_name,
    "SiteName": lambda c: c.site_name,
    "Preset": lambda c: c.preset,
    "DbSuffix": lambda c: c.get_db_suffix(),
}


def lookup(identifier: str, ctx: ScaffoldContext) -> str:
    """解析单个标识符：上下文字段优先，其次运行变量"""
    getter = _FIELDS.get(identifier)
    if getter is not None:
        return getter(ctx)
    if ctx.has_var(identifier):
        return ctx.get_var(identifier)
    raise TemplateError(f"模板引用了未知变量: {identifier}", identifier=identifier)


def render_template(text: str, ctx: ScaffoldContext) -> str:
    """替换 text 中全部占位符"""
    if "{{" not in text:
        return text
    return PLACEHOLDER_RE.sub(lambda m: lookup(m.group(1), ctx), text)


def render_args(args: Iterable[str], ctx: ScaffoldContext) -> list[str]:
    return [render_template(a, ctx) for a in args]
