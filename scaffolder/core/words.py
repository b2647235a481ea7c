"""数据库命名 — `{prefix}_{adjective}_{noun}`

后缀取自两份小写词表，词内不含下划线，因此名称最后两段即为后缀。
长度超限时只截断前缀，后缀保持完整。
"""

from __future__ import annotations

import random
import re

# PostgreSQL 标识符上限；MySQL 允许 64
DEFAULT_MAX_LENGTH = 63

ADJECTIVES: tuple[str, ...] = (
    "able", "agile", "amber", "ancient", "autumn", "bold", "brave", "breezy",
    "bright", "brisk", "calm", "clever", "cosmic", "crisp", "curious", "daring",
    "dawn", "dusty", "eager", "early", "electric", "fancy", "fierce", "fluffy",
    "frosty", "gentle", "gilded", "glad", "golden", "grand", "happy", "hidden",
    "humble", "icy", "jolly", "keen", "kind", "lively", "lucky", "lunar",
    "mellow", "merry", "misty", "modest", "noble", "nimble", "plucky", "polite",
    "proud", "quick", "quiet", "rapid", "rustic", "shiny", "silent", "silver",
    "sleepy", "smooth", "snowy", "solar", "spry", "steady", "stormy", "sunny",
    "swift", "tidy", "vivid", "wandering", "warm", "wild", "wise", "witty",
)

NOUNS: tuple[str, ...] = (
    "anchor", "badger", "beacon", "birch", "brook", "canyon", "cedar", "cloud",
    "comet", "coral", "crane", "creek", "dune", "eagle", "ember", "falcon",
    "fern", "field", "finch", "fjord", "forest", "fox", "galaxy", "glacier",
    "grove", "harbor", "hawk", "heron", "hill", "island", "lagoon", "lake",
    "lantern", "maple", "meadow", "mesa", "moon", "moss", "oak", "ocean",
    "orchid", "otter", "owl", "panda", "pebble", "pine", "planet", "pond",
    "prairie", "quartz", "raven", "reef", "ridge", "river", "robin", "sparrow",
    "spruce", "star", "stone", "summit", "thunder", "tiger", "trail", "tundra",
    "valley", "violet", "willow", "wolf", "wren", "zephyr",
)

_rng = random.SystemRandom()
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def sanitize_site_name(name: str) -> str:
    """小写化，连续非字母数字替换为单个下划线，去掉首尾下划线

    >>> sanitize_site_name("My-Test_App 123!")
    'my_test_app_123'
    """
    return _NON_ALNUM_RE.sub("_", name.lower()).strip("_")


def generate_suffix() -> str:
    """随机生成 `{adjective}_{noun}`"""
    return f"{_rng.choice(ADJECTIVES)}_{_rng.choice(NOUNS)}"


def build_database_name(prefix: str, suffix: str, max_length: int = 0) -> str:
    """拼接 `{prefix}_{suffix}`，超长时截断前缀

    max_length 为 0 时取 DEFAULT_MAX_LENGTH；前缀被截空时只返回后缀。
    """
    limit = max_length or DEFAULT_MAX_LENGTH
    clean = sanitize_site_name(prefix)
    room = limit - len(suffix) - 1
    if room <= 0:
        return suffix
    clean = clean[:room].rstrip("_")
    return f"{clean}_{suffix}" if clean else suffix


def generate_database_name(prefix: str, max_length: int = 0) -> str:
    """用新生成的后缀拼接数据库名"""
    return build_database_name(prefix, generate_suffix(), max_length)


def extract_suffix(name: str) -> str:
    """从数据库名取出 `{adjective}_{noun}` 后缀，不足两段时返回空串"""
    parts = name.split("_")
    if len(parts) < 2:
        return ""
    return "_".join(parts[-2:])
