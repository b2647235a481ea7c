"""dotenv 文件读写

只处理 KEY=value 行：注释与空行在读取时忽略，在写入时原样保留。
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from scaffolder.utils.yaml_io import atomic_write

logger = logging.getLogger(__name__)

DEFAULT_ENV_FILE = ".env"

_LINE_RE = re.compile(r"^\s*(?:export\s+)?([A-Za-z_][A-Za-z0-9_.]*)\s*=(.*)$")


def _unquote(raw: str) -> str:
    value = raw.strip()
    if len(value) >= 2 and value[0] == value[-1] == "'":
        return value[1:-1]
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return re.sub(r'\\(["\\])', r"\1", value[1:-1])
    # 未加引号时去掉行尾注释
    if " #" in value:
        value = value.split(" #", 1)[0].rstrip()
    return value


def parse_env(text: str) -> dict[str, str]:
    """解析 dotenv 文本，同名键后者覆盖前者"""
    env: dict[str, str] = {}
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        m = _LINE_RE.match(line)
        if m:
            env[m.group(1)] = _unquote(m.group(2))
    return env


def read_env_file(base: str | Path, name: str = DEFAULT_ENV_FILE) -> dict[str, str]:
    """读取 base 目录下的 env 文件，不存在或不可读时返回空字典

    非 UTF-8 字节按替换字符读入，键名仍可识别。
    """
    path = Path(base) / name
    try:
        return parse_env(path.read_text(encoding="utf-8", errors="replace"))
    except FileNotFoundError:
        return {}
    except OSError as e:
        logger.warning("读取 env 文件失败: %s, 错误: %s", path, e)
        return {}


def _format_value(value: str) -> str:
    if value == "" or re.search(r"[\s#\"']", value) is None:
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def write_env_key(path: str | Path, key: str, value: str) -> bool:
    """写入单个键：已存在则原位替换，否则追加到末尾

    保留注释、空行与原有顺序，文件以换行结尾，原子写入并保持权限位。
    返回 True 表示替换了已有键，False 表示追加。
    """
    p = Path(path)
    lines: list[str] = []
    if p.exists():
        lines = p.read_text(encoding="utf-8").splitlines()

    new_line = f"{key}={_format_value(value)}"
    replaced = False
    for i, line in enumerate(lines):
        m = _LINE_RE.match(line)
        if m and m.group(1) == key:
            lines[i] = new_line
            replaced = True
            break
    if not replaced:
        lines.append(new_line)

    atomic_write(p, "\n".join(lines) + "\n")
    logger.debug("env 已%s: %s (%s)", "更新" if replaced else "追加", key, p)
    return replaced
