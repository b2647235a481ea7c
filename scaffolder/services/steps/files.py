"""文件与 env 步骤

file.copy  复制工作树内文件，源文件不存在时默认跳过
env.read   读取 env 文件中的键，存入运行变量
env.write  写入 env 文件中的键（原位替换或追加），值支持模板
"""

from __future__ import annotations

import logging
import shutil

from scaffolder.core.context import ScaffoldContext
from scaffolder.core.exceptions import ConfigError, ExecutionError
from scaffolder.core.models import StepOptions
from scaffolder.core.template import render_template
from scaffolder.services.steps.base import BaseStep
from scaffolder.utils.envfile import DEFAULT_ENV_FILE, write_env_key

logger = logging.getLogger(__name__)


class FileCopyStep(BaseStep):
    default_priority = 9

    def __init__(
        self,
        source: str,
        destination: str,
        *,
        priority: int | None = None,
        condition: object = None,
    ) -> None:
        super().__init__("file.copy", priority=priority, condition=condition)
        if not source or not destination:
            raise ConfigError("file.copy 需要 from 和 to")
        self.source = source
        self.destination = destination

    def default_condition(self, ctx: ScaffoldContext) -> bool:
        return ctx.resolve(render_template(self.source, ctx)).is_file()

    def run(self, ctx: ScaffoldContext, opts: StepOptions) -> None:
        src = ctx.resolve(render_template(self.source, ctx))
        dst = ctx.resolve(render_template(self.destination, ctx))
        if opts.dry_run:
            logger.info("[dry-run] 将复制 %s -> %s", src, dst)
            return
        try:
            dst.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(src, dst)
        except OSError as e:
            raise ExecutionError(f"复制文件失败 {src} -> {dst}: {e}") from e
        logger.info("  已复制 %s -> %s", self.source, self.destination)


class EnvReadStep(BaseStep):
    def __init__(
        self,
        key: str,
        *,
        store_as: str = "",
        file: str = "",
        priority: int | None = None,
        condition: object = None,
    ) -> None:
        super().__init__("env.read", priority=priority, condition=condition)
        self.key = key
        self.store_as = store_as or key
        self.file = file or DEFAULT_ENV_FILE

    def run(self, ctx: ScaffoldContext, opts: StepOptions) -> None:
        if not self.key:
            raise ConfigError("env.read 缺少 key")
        env = ctx.read_env_file(self.file)
        if self.key not in env:
            logger.warning("env.read: %s 中没有 %s，未设置变量 %s", self.file, self.key, self.store_as)
            return
        ctx.set_var(self.store_as, env[self.key])
        logger.debug("env.read: %s -> %s", self.key, self.store_as)


class EnvWriteStep(BaseStep):
    def __init__(
        self,
        key: str,
        value: str = "",
        *,
        file: str = "",
        priority: int | None = None,
        condition: object = None,
    ) -> None:
        super().__init__("env.write", priority=priority, condition=condition)
        self.key = key
        self.value = value
        self.file = file or DEFAULT_ENV_FILE

    def run(self, ctx: ScaffoldContext, opts: StepOptions) -> None:
        if not self.key:
            raise ConfigError("env.write 缺少 key")
        value = render_template(self.value, ctx)
        if opts.dry_run:
            logger.info("[dry-run] 将写入 %s: %s=%s", self.file, self.key, value)
            return
        try:
            write_env_key(ctx.resolve(self.file), self.key, value)
        except OSError as e:
            raise ExecutionError(f"写入 {self.file} 失败: {e}") from e
        logger.info("  %s: %s 已写入", self.file, self.key)
