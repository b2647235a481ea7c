"""YAML 与文本文件读写工具

项目配置（scaffold.yml）和工作树状态记录（.scaffold-state.yml）
统一经由此处读写：UTF-8 编码、空值保护、目录自动创建、原子写入。
"""

from __future__ import annotations

import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# 配置文件大小上限 (1MB)，防止误读超大文件
MAX_YAML_SIZE = 1024 * 1024


def atomic_write(path: Path, content: str, *, keep_mode: bool = True) -> None:
    """原子写入：同目录临时文件 + os.replace，中途失败不损坏原文件

    参数:
        path: 目标文件路径
        content: 写入内容
        keep_mode: 目标已存在时沿用其权限位（.env 等敏感文件保持 0600）
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    mode: int | None = None
    if keep_mode and path.exists():
        mode = stat.S_IMODE(path.stat().st_mode)

    fd, tmp = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        if mode is not None:
            os.chmod(tmp, mode)
        os.replace(tmp, str(path))
    except Exception:
        # 只清理临时文件，原异常照常抛出
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


def load_yaml(path: str | Path) -> dict[str, Any]:
    """读取 YAML 文件为字典

    文件不存在、为空或顶层不是映射时返回空字典；
    格式错误、权限错误照常抛出，超过 MAX_YAML_SIZE 抛 ValueError。
    """
    p = Path(path)
    if not p.exists():
        return {}

    size = p.stat().st_size
    if size > MAX_YAML_SIZE:
        raise ValueError(f"YAML 文件过大: {p} ({size} 字节), 超过限制 {MAX_YAML_SIZE} 字节")

    try:
        with open(p, encoding="utf-8") as f:
            result = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error("解析 YAML 文件失败: %s, 错误: %s", p, e)
        raise

    if result is None:
        return {}
    if not isinstance(result, dict):
        logger.warning("%s 顶层不是映射 (实际类型: %s)，按空配置处理", p, type(result).__name__)
        return {}
    return result


def save_yaml(path: str | Path, data: Any) -> None:
    """原子写入 YAML 文件（保持键顺序，允许 Unicode）"""
    p = Path(path)
    try:
        content = yaml.safe_dump(
            data, default_flow_style=False,
            allow_unicode=True, sort_keys=False,
        )
    except yaml.YAMLError as e:
        logger.error("序列化 YAML 数据失败: %s, 错误: %s", p, e)
        raise
    atomic_write(p, content)
