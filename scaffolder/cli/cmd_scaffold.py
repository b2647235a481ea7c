"""CLI — scaffold / cleanup 命令"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import click

from scaffolder.cli import _load_container, _parse_kv_pairs
from scaffolder.core.exceptions import ScaffoldError
from scaffolder.core.models import ScaffoldReport, ScaffoldRequest

_RUN_OPTIONS: list[Callable[[Any], Any]] = [
    click.argument("path", default=".", type=click.Path(exists=True, file_okay=False)),
    click.option("--config", "-c", "config_path", default="", help="配置文件路径（默认 PATH/scaffold.yml）"),
    click.option("--branch", "-b", default="", help="分支名"),
    click.option("--repo", "repo_name", default="", help="仓库名"),
    click.option("--site", "site_name", default="", help="站点名（数据库名前缀）"),
    click.option("--preset", default="", help="预设名（默认按目录检测）"),
    click.option("--env", "env_pairs", multiple=True, help="覆盖 env 变量 KEY=VALUE（可多次）"),
    click.option("--dry-run", is_flag=True, help="只判定条件，不执行"),
    click.option("--verbose", "-v", is_flag=True, help="输出详细日志"),
]


def _run_options(func: Callable[..., Any]) -> Callable[..., Any]:
    for decorator in reversed(_RUN_OPTIONS):
        func = decorator(func)
    return func


def register(group: click.Group) -> None:
    group.add_command(scaffold)
    group.add_command(cleanup)


def _request(path: str, kwargs: dict[str, Any]) -> ScaffoldRequest:
    if kwargs.get("verbose"):
        logging.getLogger().setLevel(logging.DEBUG)
    return ScaffoldRequest(
        worktree_path=path,
        branch=kwargs.get("branch", ""),
        repo_name=kwargs.get("repo_name", ""),
        site_name=kwargs.get("site_name", ""),
        preset=kwargs.get("preset", ""),
        dry_run=kwargs.get("dry_run", False),
        verbose=kwargs.get("verbose", False),
        env=_parse_kv_pairs(kwargs.get("env_pairs", ())),
    )


def _echo_report(phase: str, report: ScaffoldReport) -> None:
    click.echo(f"{phase}: {report.request.worktree_path} (预设: {report.preset or '-'})")
    for r in report.results:
        note = ""
        if r.skip_reason is not None:
            note = f"  [{r.skip_reason.value}]"
        elif r.error is not None:
            note = f"  {r.error}"
        click.echo(f"  {r.status:8s} {r.name:22s} {r.duration:6.1f}s{note}")
    counts = report.summary()
    click.echo(
        f"完成 {counts['done']} / 跳过 {counts['skipped']} / 失败 {counts['failed']}"
        + (f"  db_suffix={report.db_suffix}" if report.db_suffix else "")
    )


def _execute(phase: str, path: str, kwargs: dict[str, Any]) -> None:
    container = _load_container(path, kwargs.get("config_path", ""))
    request = _request(path, kwargs)
    svc = container.scaffold
    run = svc.run_scaffold if phase == "scaffold" else svc.run_cleanup
    try:
        report = run(request, container.config)
    except ScaffoldError as e:
        raise click.ClickException(str(e)) from e
    _echo_report(phase, report)
    if not report.success:
        raise click.ClickException(str(report.error))


@click.command()
@_run_options
def scaffold(path: str, **kwargs: Any) -> None:
    """在工作树中执行 scaffold 步骤"""
    _execute("scaffold", path, kwargs)


@click.command()
@_run_options
def cleanup(path: str, **kwargs: Any) -> None:
    """在工作树中执行 cleanup 步骤"""
    _execute("cleanup", path, kwargs)
