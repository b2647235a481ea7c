"""项目配置 — scaffold.yml

    site_name: myapp
    preset: laravel
    db_max_length: 63
    scaffold:
      override: false
      steps:
        - name: php.composer
          args: [install]
    cleanup:
      - name: db.destroy

未识别的顶层键保存在 extra 中。
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from scaffolder.core.exceptions import ConfigError
from scaffolder.core.models import StepConfig
from scaffolder.core.words import DEFAULT_MAX_LENGTH
from scaffolder.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

CONFIG_FILE = "scaffold.yml"
STATE_FILE = ".scaffold-state.yml"


def _parse_steps(raw: Any, where: str) -> list[StepConfig]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ConfigError(f"{where} 必须是列表")
    return [StepConfig.from_dict(item) for item in raw]


@dataclass
class Config:
    """项目级配置"""

    site_name: str = ""
    preset: str = ""
    steps: list[StepConfig] = field(default_factory=list)
    override: bool = False
    cleanup: list[StepConfig] = field(default_factory=list)
    db_max_length: int = DEFAULT_MAX_LENGTH
    state_file: str = STATE_FILE

    # 放不到字段里的配置项
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        data = dict(data)
        scaffold = data.pop("scaffold", None) or {}
        if not isinstance(scaffold, dict):
            raise ConfigError("scaffold 必须是映射")
        cfg = cls(
            site_name=str(data.pop("site_name", "") or ""),
            preset=str(data.pop("preset", "") or ""),
            steps=_parse_steps(scaffold.get("steps"), "scaffold.steps"),
            override=bool(scaffold.get("override", False)),
            cleanup=_parse_steps(data.pop("cleanup", None), "cleanup"),
            db_max_length=int(data.pop("db_max_length", 0) or DEFAULT_MAX_LENGTH),
            state_file=str(data.pop("state_file", "") or STATE_FILE),
        )
        cfg.extra = data
        return cfg

    @classmethod
    def from_file(cls, path: str | Path = CONFIG_FILE) -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        try:
            data = load_yaml(path)
        except (ValueError, yaml.YAMLError) as e:
            raise ConfigError(str(e)) from e
        if not data:
            return cls()
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["steps"] = [s.to_dict() for s in self.steps]
        out["cleanup"] = [s.to_dict() for s in self.cleanup]
        return out


def load_project(project_dir: str | Path) -> Config:
    """加载项目目录下的 scaffold.yml"""
    path = Path(project_dir) / CONFIG_FILE
    cfg = Config.from_file(path)
    if path.exists():
        logger.debug("项目配置已加载: %s", path)
    return cfg


# 全局单例，由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str | Path = CONFIG_FILE) -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current
