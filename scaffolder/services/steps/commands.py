"""外部命令步骤

BinaryStep: 调用已知工具（composer / npm / php artisan / herd ...），
            未配置条件时以"可执行文件在 PATH 上"为默认条件
ShellStep:  bash.run / command.run，通过 `<shell> -c` 执行一段脚本
两者都在工作树目录中执行，参数与脚本先做模板替换。
"""

from __future__ import annotations

import logging
import shlex
import shutil

from scaffolder.core.context import ScaffoldContext
from scaffolder.core.exceptions import ConfigError
from scaffolder.core.models import StepOptions
from scaffolder.core.template import render_args, render_template
from scaffolder.services.steps.base import BaseStep
from scaffolder.utils.shell import CommandExecutor, LocalExecutor, run_cmd

logger = logging.getLogger(__name__)


class BinaryStep(BaseStep):
    """执行 `<binary> <args...>`"""

    def __init__(
        self,
        name: str,
        binary: str,
        args: list[str] | None = None,
        *,
        priority: int | None = None,
        condition: object = None,
        executor: CommandExecutor | None = None,
    ) -> None:
        super().__init__(name, priority=priority, condition=condition)
        self.binary = shlex.split(binary)
        if not self.binary:
            raise ConfigError(f"{name}: 未指定可执行文件")
        self.args = list(args or [])
        self._executor = executor or LocalExecutor()

    def default_condition(self, ctx: ScaffoldContext) -> bool:
        return shutil.which(self.binary[0]) is not None

    def command_line(self, ctx: ScaffoldContext, opts: StepOptions) -> list[str]:
        return self.binary + render_args(self.args + opts.args, ctx)

    def run(self, ctx: ScaffoldContext, opts: StepOptions) -> None:
        cmd = self.command_line(ctx, opts)
        if opts.verbose:
            logger.info("  运行: %s", shlex.join(cmd))
        run_cmd(self._executor, cmd, cwd=ctx.worktree_path, label=self.name)


class ShellStep(BaseStep):
    """执行 `<shell> -c <command>`"""

    default_priority = 100

    def __init__(
        self,
        name: str,
        shell: str,
        command: str,
        *,
        priority: int | None = None,
        condition: object = None,
        executor: CommandExecutor | None = None,
    ) -> None:
        super().__init__(name, priority=priority, condition=condition)
        if not command.strip():
            raise ConfigError(f"{name}: 缺少 command")
        self.shell = shell
        self.command = command
        self._executor = executor or LocalExecutor()

    def run(self, ctx: ScaffoldContext, opts: StepOptions) -> None:
        script = render_template(self.command, ctx)
        if opts.verbose:
            logger.info("  运行 (%s): %s", self.shell, script)
        run_cmd(self._executor, [self.shell, "-c", script], cwd=ctx.worktree_path, label=self.name)
