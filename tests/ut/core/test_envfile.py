"""dotenv 读写与原子写入单元测试"""

from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from scaffolder.utils.envfile import parse_env, read_env_file, write_env_key
from scaffolder.utils.yaml_io import MAX_YAML_SIZE, atomic_write, load_yaml, save_yaml


class TestParseEnv:
    def test_basic(self) -> None:
        text = "# comment\n\nAPP_NAME=demo\nexport DB_HOST=127.0.0.1\n"
        assert parse_env(text) == {"APP_NAME": "demo", "DB_HOST": "127.0.0.1"}

    def test_quotes(self) -> None:
        text = "A='single # kept'\nB=\"say \\\"hi\\\"\"\nC=plain # trailing\n"
        env = parse_env(text)
        assert env["A"] == "single # kept"
        assert env["B"] == 'say "hi"'
        assert env["C"] == "plain"

    def test_empty_value_and_override(self) -> None:
        env = parse_env("APP_KEY=\nX=1\nX=2\n")
        assert env == {"APP_KEY": "", "X": "2"}

    def test_invalid_lines_ignored(self) -> None:
        assert parse_env("not a pair\n=novalue\n") == {}


class TestReadEnvFile:
    def test_missing_file(self, tmp_path: Path) -> None:
        assert read_env_file(tmp_path) == {}

    def test_named_file(self, tmp_path: Path) -> None:
        (tmp_path / ".env.testing").write_text("DB_CONNECTION=sqlite\n")
        assert read_env_file(tmp_path, ".env.testing") == {"DB_CONNECTION": "sqlite"}

    def test_non_utf8_bytes(self, tmp_path: Path) -> None:
        (tmp_path / ".env").write_bytes(b"APP_NAME=caf\xe9\nAPP_KEY=base64:abc\n")
        env = read_env_file(tmp_path)
        assert env["APP_KEY"] == "base64:abc"
        assert env["APP_NAME"].startswith("caf")


class TestWriteEnvKey:
    def test_replace_in_place(self, tmp_path: Path) -> None:
        path = tmp_path / ".env"
        path.write_text("# app\nAPP_NAME=demo\n\nDB_DATABASE=old\nDB_HOST=x\n")
        assert write_env_key(path, "DB_DATABASE", "myapp_bold_fox") is True
        assert path.read_text() == "# app\nAPP_NAME=demo\n\nDB_DATABASE=myapp_bold_fox\nDB_HOST=x\n"

    def test_append_missing(self, tmp_path: Path) -> None:
        path = tmp_path / ".env"
        path.write_text("APP_NAME=demo")
        assert write_env_key(path, "DB_DATABASE", "x") is False
        assert path.read_text() == "APP_NAME=demo\nDB_DATABASE=x\n"

    def test_creates_file(self, tmp_path: Path) -> None:
        path = tmp_path / ".env"
        write_env_key(path, "A", "1")
        assert path.read_text() == "A=1\n"

    def test_value_with_spaces_quoted(self, tmp_path: Path) -> None:
        path = tmp_path / ".env"
        write_env_key(path, "APP_NAME", "My App")
        assert path.read_text() == 'APP_NAME="My App"\n'
        assert read_env_file(tmp_path)["APP_NAME"] == "My App"

    @pytest.mark.skipif(os.name == "nt", reason="POSIX 权限位")
    def test_mode_preserved(self, tmp_path: Path) -> None:
        path = tmp_path / ".env"
        path.write_text("A=1\n")
        os.chmod(path, 0o600)
        write_env_key(path, "A", "2")
        assert stat.S_IMODE(path.stat().st_mode) == 0o600


class TestYamlIO:
    def test_atomic_write_leaves_no_temp(self, tmp_path: Path) -> None:
        path = tmp_path / "sub" / "out.txt"
        atomic_write(path, "hello")
        assert path.read_text() == "hello"
        assert [p.name for p in path.parent.iterdir()] == ["out.txt"]

    def test_load_yaml_non_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "x.yml"
        path.write_text("- a\n- b\n")
        assert load_yaml(path) == {}

    def test_load_yaml_too_large(self, tmp_path: Path) -> None:
        path = tmp_path / "big.yml"
        path.write_text("a: " + "x" * (MAX_YAML_SIZE + 1))
        with pytest.raises(ValueError, match="过大"):
            load_yaml(path)

    def test_save_keeps_order_and_unicode(self, tmp_path: Path) -> None:
        path = tmp_path / "s.yml"
        save_yaml(path, {"z": 1, "a": "中文"})
        text = path.read_text(encoding="utf-8")
        assert text.index("z:") < text.index("a:")
        assert "中文" in text
