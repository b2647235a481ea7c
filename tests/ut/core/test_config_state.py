"""项目配置与工作树状态单元测试"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from scaffolder.core import config as config_mod
from scaffolder.core.config import CONFIG_FILE, STATE_FILE, Config, load_project
from scaffolder.core.exceptions import ConfigError
from scaffolder.core.models import StepConfig
from scaffolder.core.state import DB_SUFFIX_KEY, WorktreeState
from scaffolder.core.words import DEFAULT_MAX_LENGTH


class TestStepConfig:
    def test_from_dict(self) -> None:
        cfg = StepConfig.from_dict({
            "name": "file.copy", "from": ".env.example", "to": ".env",
            "priority": 5, "condition": {"file_exists": ".env.example"},
        })
        assert cfg.from_ == ".env.example"
        assert cfg.priority == 5
        assert cfg.enabled is True
        assert cfg.condition == {"file_exists": ".env.example"}

    def test_scalar_args_wrapped(self) -> None:
        assert StepConfig.from_dict({"name": "php", "args": "-v"}).args == ["-v"]

    def test_missing_name(self) -> None:
        with pytest.raises(ConfigError, match="name"):
            StepConfig.from_dict({"args": ["install"]})

    def test_not_mapping(self) -> None:
        with pytest.raises(ConfigError):
            StepConfig.from_dict("php.composer")  # type: ignore[arg-type]

    def test_to_dict_omits_defaults(self) -> None:
        out = StepConfig(name="db.create", args=["--prefix", "x"]).to_dict()
        assert out == {"name": "db.create", "args": ["--prefix", "x"]}
        assert StepConfig(name="a", enabled=False, priority=0).to_dict() == {
            "name": "a", "priority": 0, "enabled": False,
        }


class TestConfig:
    def test_defaults(self) -> None:
        cfg = Config()
        assert cfg.steps == []
        assert cfg.override is False
        assert cfg.db_max_length == DEFAULT_MAX_LENGTH
        assert cfg.state_file == STATE_FILE

    def test_from_dict(self) -> None:
        cfg = Config.from_dict({
            "site_name": "shop",
            "preset": "laravel",
            "scaffold": {"override": True, "steps": [{"name": "php.composer", "args": ["install"]}]},
            "cleanup": [{"name": "db.destroy"}],
            "custom": 1,
        })
        assert cfg.site_name == "shop"
        assert cfg.override is True
        assert [s.name for s in cfg.steps] == ["php.composer"]
        assert [s.name for s in cfg.cleanup] == ["db.destroy"]
        assert cfg.extra == {"custom": 1}

    def test_steps_must_be_list(self) -> None:
        with pytest.raises(ConfigError, match="scaffold.steps"):
            Config.from_dict({"scaffold": {"steps": {"name": "x"}}})

    def test_from_missing_file(self, tmp_path: Path) -> None:
        assert Config.from_file(tmp_path / "nope.yml").steps == []

    def test_from_file_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / CONFIG_FILE
        path.write_text("scaffold: [unclosed\n")
        with pytest.raises(ConfigError):
            Config.from_file(path)

    def test_load_project(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILE).write_text(yaml.safe_dump({"preset": "php", "db_max_length": 30}))
        cfg = load_project(tmp_path)
        assert cfg.preset == "php"
        assert cfg.db_max_length == 30

    def test_to_dict_round_trip(self) -> None:
        cfg = Config(site_name="x", steps=[StepConfig(name="php", args=["-v"])])
        again = Config.from_dict({
            "site_name": "x",
            "scaffold": {"steps": cfg.to_dict()["steps"]},
        })
        assert again.steps[0].args == ["-v"]

    def test_global_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(config_mod, "_current", None)
        assert config_mod.get_config().preset == ""
        path = tmp_path / CONFIG_FILE
        path.write_text("preset: laravel\n")
        config_mod.init_config(path)
        assert config_mod.get_config().preset == "laravel"


class TestWorktreeState:
    def test_empty(self, tmp_path: Path) -> None:
        state = WorktreeState(tmp_path)
        assert state.read() == {}
        assert state.db_suffix == ""

    def test_save_and_read_suffix(self, tmp_path: Path) -> None:
        state = WorktreeState(tmp_path)
        state.save_db_suffix("swift_runner")
        assert WorktreeState(tmp_path).db_suffix == "swift_runner"
        assert (tmp_path / STATE_FILE).exists()

    def test_update_merges(self, tmp_path: Path) -> None:
        state = WorktreeState(tmp_path)
        state.update(other="x")
        state.save_db_suffix("bold_fox")
        assert state.read() == {"other": "x", DB_SUFFIX_KEY: "bold_fox"}

    def test_remove(self, tmp_path: Path) -> None:
        state = WorktreeState(tmp_path)
        state.save_db_suffix("bold_fox")
        assert state.remove(DB_SUFFIX_KEY) is True
        assert state.remove(DB_SUFFIX_KEY) is False
        assert state.db_suffix == ""

    def test_custom_filename(self, tmp_path: Path) -> None:
        WorktreeState(tmp_path, "state.yml").save_db_suffix("calm_owl")
        assert (tmp_path / "state.yml").exists()

    def test_corrupt_record_raises_config_error(self, tmp_path: Path) -> None:
        (tmp_path / STATE_FILE).write_text("db_suffix: [unclosed\n")
        with pytest.raises(ConfigError, match="状态记录损坏"):
            WorktreeState(tmp_path).read()

    def test_save_replaces_corrupt_record(self, tmp_path: Path) -> None:
        (tmp_path / STATE_FILE).write_text("db_suffix: [unclosed\n")
        state = WorktreeState(tmp_path)
        state.save_db_suffix("calm_owl")
        assert state.read() == {DB_SUFFIX_KEY: "calm_owl"}
