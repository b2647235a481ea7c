"""步骤注册表 — 步骤名 -> 工厂函数

注册表是普通对象，由 default_registry() 构建后显式传入各服务，
测试可构建独立实例并注入 mock 的命令执行器 / 数据库客户端工厂。
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from scaffolder.core.config import STATE_FILE
from scaffolder.core.exceptions import ConfigError
from scaffolder.core.models import StepConfig
from scaffolder.core.protocols import DatabaseClientFactory, ScaffoldStep
from scaffolder.core.words import DEFAULT_MAX_LENGTH
from scaffolder.services.steps.commands import BinaryStep, ShellStep
from scaffolder.services.steps.database import DbCreateStep, DbDestroyStep
from scaffolder.services.steps.files import EnvReadStep, EnvWriteStep, FileCopyStep
from scaffolder.utils.shell import CommandExecutor, LocalExecutor

logger = logging.getLogger(__name__)

StepFactory = Callable[[StepConfig], ScaffoldStep]


@dataclass(frozen=True)
class BinaryDefinition:
    name: str
    binary: str
    priority: int


BINARIES: tuple[BinaryDefinition, ...] = (
    BinaryDefinition("php", "php", 5),
    BinaryDefinition("php.composer", "composer", 10),
    BinaryDefinition("php.laravel.artisan", "php artisan", 20),
    BinaryDefinition("node.npm", "npm", 10),
    BinaryDefinition("node.yarn", "yarn", 10),
    BinaryDefinition("node.pnpm", "pnpm", 10),
    BinaryDefinition("node.bun", "bun", 10),
    BinaryDefinition("herd", "herd", 60),
)

SHELLS: dict[str, str] = {
    "bash.run": "bash",
    "command.run": "sh",
}


class StepRegistry:
    """步骤工厂注册表"""

    def __init__(self) -> None:
        self._factories: dict[str, StepFactory] = {}

    def register(self, name: str, factory: StepFactory) -> None:
        if name in self._factories:
            logger.debug("覆盖已注册步骤: %s", name)
        self._factories[name] = factory

    def names(self) -> list[str]:
        return sorted(self._factories)

    def __contains__(self, name: object) -> bool:
        return name in self._factories

    def create(self, cfg: StepConfig) -> ScaffoldStep | None:
        """按配置构建步骤，未注册的名称返回 None

        配置内容无效（条件结构错误、缺少必填字段）时抛 ConfigError。
        """
        factory = self._factories.get(cfg.name)
        if factory is None:
            logger.warning("未知步骤 '%s'，已忽略", cfg.name)
            return None
        return factory(cfg)

    def create_all(self, configs: list[StepConfig]) -> list[ScaffoldStep]:
        """构建多个步骤，跳过 enabled=false 与未知步骤"""
        steps: list[ScaffoldStep] = []
        for cfg in configs:
            if not cfg.enabled:
                logger.debug("步骤已禁用: %s", cfg.name)
                continue
            step = self.create(cfg)
            if step is not None:
                steps.append(step)
        return steps


def default_registry(
    *,
    executor: CommandExecutor | None = None,
    client_factory: DatabaseClientFactory | None = None,
    state_file: str = STATE_FILE,
    db_max_length: int = DEFAULT_MAX_LENGTH,
) -> StepRegistry:
    """构建包含全部内置步骤的注册表"""
    registry = StepRegistry()
    run = executor or LocalExecutor()

    def _priority(cfg: StepConfig, default: int) -> int:
        # 0 与未配置一样沿用默认优先级
        return cfg.priority if cfg.priority else default

    for b in BINARIES:
        def _binary(cfg: StepConfig, b: BinaryDefinition = b) -> ScaffoldStep:
            return BinaryStep(
                b.name, b.binary, cfg.args,
                priority=_priority(cfg, b.priority),
                condition=cfg.condition, executor=run,
            )
        registry.register(b.name, _binary)

    for name, shell in SHELLS.items():
        def _shell(cfg: StepConfig, name: str = name, shell: str = shell) -> ScaffoldStep:
            return ShellStep(
                name, shell, cfg.command,
                priority=_priority(cfg, ShellStep.default_priority),
                condition=cfg.condition, executor=run,
            )
        registry.register(name, _shell)

    registry.register("file.copy", lambda cfg: FileCopyStep(
        cfg.from_, cfg.to,
        priority=_priority(cfg, FileCopyStep.default_priority),
        condition=cfg.condition,
    ))
    registry.register("env.read", lambda cfg: EnvReadStep(
        cfg.key, store_as=cfg.store_as, file=cfg.file,
        priority=_priority(cfg, EnvReadStep.default_priority),
        condition=cfg.condition,
    ))
    registry.register("env.write", lambda cfg: EnvWriteStep(
        cfg.key, cfg.value, file=cfg.file,
        priority=_priority(cfg, EnvWriteStep.default_priority),
        condition=cfg.condition,
    ))
    registry.register("db.create", lambda cfg: DbCreateStep(
        cfg.args, db_type=cfg.type,
        priority=_priority(cfg, DbCreateStep.default_priority),
        condition=cfg.condition, client_factory=client_factory,
        state_file=state_file, max_length=db_max_length,
    ))
    registry.register("db.destroy", lambda cfg: DbDestroyStep(
        cfg.args, db_type=cfg.type,
        priority=_priority(cfg, DbDestroyStep.default_priority),
        condition=cfg.condition, client_factory=client_factory,
        state_file=state_file,
    ))
    return registry


def require_known(registry: StepRegistry, configs: list[StepConfig]) -> None:
    """校验配置中的步骤名均已注册"""
    unknown = sorted({c.name for c in configs if c.name not in registry})
    if unknown:
        raise ConfigError(f"未知步骤: {', '.join(unknown)}")
