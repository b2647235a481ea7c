"""CLI — 查询类命令（步骤、预设、状态、配置校验）"""

from __future__ import annotations

import click

from scaffolder.cli import _load_container, _svc
from scaffolder.core.exceptions import ConfigError
from scaffolder.core.state import DB_SUFFIX_KEY, WorktreeState
from scaffolder.services.steps.registry import BINARIES, SHELLS


def register(group: click.Group) -> None:
    group.add_command(list_steps)
    group.add_command(list_presets)
    group.add_command(show_state)
    group.add_command(validate)


@click.command(name="steps")
def list_steps() -> None:
    """列出已注册的步骤类型"""
    binaries = {b.name: f"{b.binary} (priority={b.priority})" for b in BINARIES}
    for name in _svc().registry.names():
        if name in binaries:
            detail = binaries[name]
        elif name in SHELLS:
            detail = f"{SHELLS[name]} -c"
        else:
            detail = ""
        click.echo(f"  {name:22s} {detail}")


@click.command(name="presets")
@click.argument("path", required=False, type=click.Path(exists=True, file_okay=False))
def list_presets(path: str | None) -> None:
    """列出预设；指定 PATH 时显示检测结果"""
    presets = _svc().presets
    for name in presets.available():
        click.echo(f"  {name}")
    if path:
        detected = presets.detect(path)
        click.echo(f"检测结果: {detected or '无匹配预设'}")


@click.command(name="state")
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False))
def show_state(path: str) -> None:
    """显示工作树状态记录"""
    state = WorktreeState(path, _svc().config.state_file)
    try:
        data = state.read()
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    if not data:
        click.echo(f"没有状态记录: {state.path}")
        return
    for key, value in data.items():
        marker = " *" if key == DB_SUFFIX_KEY else ""
        click.echo(f"  {key}: {value}{marker}")


@click.command(name="validate")
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False))
@click.option("--config", "-c", "config_path", default="", help="配置文件路径（默认 PATH/scaffold.yml）")
@click.option("--preset", default="", help="预设名")
def validate(path: str, config_path: str, preset: str) -> None:
    """校验配置: 步骤名、条件结构、必填字段"""
    container = _load_container(path, config_path)
    problems = container.scaffold.validate(container.config, path, preset)
    if problems:
        for p in problems:
            click.echo(f"  {p}", err=True)
        raise click.ClickException(f"发现 {len(problems)} 个问题")
    click.echo("配置有效")
