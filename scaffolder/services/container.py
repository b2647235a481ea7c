"""服务容器 — 统一依赖注入

注册表、预设管理器与 scaffold 服务都经由容器获取，同一容器内共享实例。
CLI 通过 get_container() 取全局容器；测试可构造独立容器并注入替身。

用法:
    container = ServiceContainer(config=Config.from_file("scaffold.yml"))
    report = container.scaffold.run_scaffold(request, container.config)
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from scaffolder.core.config import Config
    from scaffolder.core.protocols import DatabaseClientFactory
    from scaffolder.services.presets import PresetManager
    from scaffolder.services.scaffold_service import ScaffoldService
    from scaffolder.services.steps.registry import StepRegistry
    from scaffolder.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)


class ServiceContainer:
    """懒加载服务容器"""

    def __init__(
        self,
        config: Config | None = None,
        *,
        executor: CommandExecutor | None = None,
        client_factory: DatabaseClientFactory | None = None,
    ) -> None:
        self._instances: dict[str, object] = {}
        if config is None:
            from scaffolder.core.config import get_config
            config = get_config()
        self._config = config
        self._executor = executor
        self._client_factory = client_factory

    @property
    def config(self) -> Config:
        return self._config

    @property
    def registry(self) -> StepRegistry:
        if "registry" not in self._instances:
            from scaffolder.services.steps.registry import default_registry
            self._instances["registry"] = default_registry(
                executor=self._executor,
                client_factory=self._client_factory,
                state_file=self._config.state_file,
                db_max_length=self._config.db_max_length,
            )
        return self._instances["registry"]  # type: ignore[return-value]

    @property
    def presets(self) -> PresetManager:
        if "presets" not in self._instances:
            from scaffolder.services.presets import PresetManager
            self._instances["presets"] = PresetManager()
        return self._instances["presets"]  # type: ignore[return-value]

    @property
    def scaffold(self) -> ScaffoldService:
        if "scaffold" not in self._instances:
            from scaffolder.services.scaffold_service import ScaffoldService
            self._instances["scaffold"] = ScaffoldService(
                registry=self.registry, presets=self.presets,
            )
        return self._instances["scaffold"]  # type: ignore[return-value]


# =========================================================================
# 全局单例
# =========================================================================

_container: ServiceContainer | None = None
_container_lock = threading.Lock()


def get_container() -> ServiceContainer:
    """获取全局服务容器（线程安全）"""
    global _container  # noqa: PLW0603
    if _container is None:
        with _container_lock:
            if _container is None:
                _container = ServiceContainer()
    return _container


def set_container(container: ServiceContainer) -> None:
    """替换全局容器（CLI 加载配置后、测试注入时使用）"""
    global _container  # noqa: PLW0603
    with _container_lock:
        _container = container


def reset_container() -> None:
    global _container  # noqa: PLW0603
    with _container_lock:
        _container = None
