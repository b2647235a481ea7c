"""scaffolder 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

import os

import click

from scaffolder import __version__
from scaffolder.services.container import ServiceContainer, get_container, set_container
from scaffolder.utils.logger import setup_logging


def _svc() -> ServiceContainer:
    """获取全局服务容器的快捷方式"""
    return get_container()


def _parse_kv_pairs(pairs: tuple[str, ...]) -> dict[str, str]:
    """解析 key=value 参数对"""
    result: dict[str, str] = {}
    for p in pairs:
        if "=" in p:
            k, v = p.split("=", 1)
            result[k.strip()] = v.strip()
    return result


def _load_container(worktree: str, config_path: str) -> ServiceContainer:
    """加载配置并替换全局容器

    未指定 --config 时读取工作树下的 scaffold.yml。
    """
    from scaffolder.core.config import CONFIG_FILE, Config
    from scaffolder.core.exceptions import ScaffoldError

    path = config_path or os.path.join(worktree, CONFIG_FILE)
    try:
        cfg = Config.from_file(path)
    except ScaffoldError as e:
        raise click.ClickException(str(e)) from e
    container = ServiceContainer(config=cfg)
    set_container(container)
    return container


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """scaffolder - 按分支隔离的开发环境编排"""
    setup_logging(
        level=os.getenv("SCAFFOLDER_LOG_LEVEL", "INFO"),
        json_output=os.getenv("SCAFFOLDER_LOG_JSON", "") == "1",
    )


# 注册各领域子命令
from scaffolder.cli.cmd_scaffold import register as _reg_scaffold  # noqa: E402
from scaffolder.cli.cmd_info import register as _reg_info  # noqa: E402

_reg_scaffold(main)
_reg_info(main)
