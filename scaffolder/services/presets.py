"""预设 — 按项目类型打包的默认步骤

laravel: 存在 artisan，或 composer.json 依赖 laravel/framework
php:     存在 composer.json

检测按注册顺序进行，更具体的预设先注册。
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from scaffolder.core.models import StepConfig

logger = logging.getLogger(__name__)


# =========================================================================
# 预设基类
# =========================================================================


class BasePreset(ABC):
    """预设公共接口"""

    name: str = ""

    @abstractmethod
    def detect(self, path: str | Path) -> bool:
        """判断目录是否属于该项目类型"""

    @abstractmethod
    def default_steps(self) -> list[StepConfig]:
        """scaffold 阶段默认步骤"""

    def cleanup_steps(self) -> list[StepConfig]:
        """cleanup 阶段默认步骤"""
        return []


class LaravelPreset(BasePreset):
    name = "laravel"

    def detect(self, path: str | Path) -> bool:
        root = Path(path)
        if (root / "artisan").exists():
            return True
        try:
            return "laravel/framework" in (root / "composer.json").read_text(encoding="utf-8", errors="replace")
        except OSError:
            return False

    def default_steps(self) -> list[StepConfig]:
        return [
            StepConfig(name="php.composer", args=["install"]),
            StepConfig(name="file.copy", from_=".env.example", to=".env", priority=5),
            StepConfig(
                name="db.create",
                condition={"env_file_contains": {"file": ".env", "key": "DB_CONNECTION"}},
            ),
            StepConfig(name="node.npm", args=["ci"]),
            StepConfig(
                name="php.laravel.artisan",
                args=["key:generate", "--no-interaction"],
                condition={"env_file_missing": "APP_KEY"},
            ),
            StepConfig(name="php.laravel.artisan", args=["migrate:fresh", "--seed", "--no-interaction"]),
            StepConfig(name="node.npm", args=["run", "build"], priority=15),
            StepConfig(name="php.laravel.artisan", args=["storage:link", "--no-interaction"]),
            StepConfig(name="herd", args=["link", "--secure"]),
        ]

    def cleanup_steps(self) -> list[StepConfig]:
        return [
            StepConfig(name="herd", args=["unlink"]),
            StepConfig(name="db.destroy"),
        ]


class PhpPreset(BasePreset):
    name = "php"

    def detect(self, path: str | Path) -> bool:
        return (Path(path) / "composer.json").exists()

    def default_steps(self) -> list[StepConfig]:
        return [
            StepConfig(
                name="php.composer", args=["install"],
                condition={"file_exists": "composer.lock"},
            ),
            StepConfig(
                name="php.composer", args=["update"],
                condition={"not": {"file_exists": "composer.lock"}},
            ),
        ]


# =========================================================================
# 预设管理
# =========================================================================


class PresetManager:
    """预设注册与检测"""

    def __init__(self, presets: list[BasePreset] | None = None) -> None:
        self._presets: dict[str, BasePreset] = {}
        for preset in presets if presets is not None else [LaravelPreset(), PhpPreset()]:
            self.register(preset)

    def register(self, preset: BasePreset) -> None:
        self._presets[preset.name] = preset

    def get(self, name: str) -> BasePreset | None:
        return self._presets.get(name)

    def available(self) -> list[str]:
        return list(self._presets)

    def detect(self, path: str | Path) -> str:
        """返回首个匹配的预设名，无匹配返回空串"""
        for preset in self._presets.values():
            if preset.detect(path):
                logger.debug("检测到预设: %s (%s)", preset.name, path)
                return preset.name
        return ""

    def resolve(self, name: str, path: str | Path) -> BasePreset | None:
        """显式名称优先，否则按目录检测"""
        if name:
            preset = self.get(name)
            if preset is None:
                logger.warning("未知预设 '%s'，不加载预设步骤", name)
            return preset
        detected = self.detect(path)
        return self.get(detected) if detected else None
