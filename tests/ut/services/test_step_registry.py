"""步骤注册表单元测试"""

from __future__ import annotations

import logging

import pytest

from scaffolder.core.exceptions import ConditionError, ConfigError
from scaffolder.core.models import StepConfig
from scaffolder.services.steps import (
    BinaryStep,
    DbCreateStep,
    DbDestroyStep,
    EnvReadStep,
    EnvWriteStep,
    FileCopyStep,
    ShellStep,
    StepRegistry,
    default_registry,
)
from scaffolder.services.steps.registry import require_known


@pytest.fixture
def registry(fake_executor, fake_factory) -> StepRegistry:
    return default_registry(executor=fake_executor, client_factory=fake_factory)


class TestDefaultRegistry:
    def test_builtin_names(self, registry: StepRegistry) -> None:
        assert set(registry.names()) == {
            "php", "php.composer", "php.laravel.artisan",
            "node.npm", "node.yarn", "node.pnpm", "node.bun", "herd",
            "bash.run", "command.run",
            "file.copy", "env.read", "env.write",
            "db.create", "db.destroy",
        }

    @pytest.mark.parametrize("name,cls,priority", [
        ("php", BinaryStep, 5),
        ("php.composer", BinaryStep, 10),
        ("php.laravel.artisan", BinaryStep, 20),
        ("node.npm", BinaryStep, 10),
        ("herd", BinaryStep, 60),
        ("db.create", DbCreateStep, 8),
        ("db.destroy", DbDestroyStep, 0),
        ("env.read", EnvReadStep, 0),
    ])
    def test_default_priorities(self, registry: StepRegistry, name: str, cls: type, priority: int) -> None:
        step = registry.create(StepConfig(name=name))
        assert isinstance(step, cls)
        assert step.priority == priority

    def test_file_and_shell_steps(self, registry: StepRegistry) -> None:
        copy = registry.create(StepConfig(name="file.copy", from_="a", to="b"))
        assert isinstance(copy, FileCopyStep) and copy.priority == 9
        shell = registry.create(StepConfig(name="bash.run", command="echo hi"))
        assert isinstance(shell, ShellStep) and shell.shell == "bash" and shell.priority == 100
        sh = registry.create(StepConfig(name="command.run", command="true"))
        assert isinstance(sh, ShellStep) and sh.shell == "sh"
        write = registry.create(StepConfig(name="env.write", key="A", value="1"))
        assert isinstance(write, EnvWriteStep)

    def test_priority_override(self, registry: StepRegistry) -> None:
        assert registry.create(StepConfig(name="php.composer", priority=3)).priority == 3

    def test_zero_priority_keeps_default(self, registry: StepRegistry) -> None:
        assert registry.create(StepConfig(name="php.composer", priority=0)).priority == 10

    def test_args_and_condition_passed(self, registry: StepRegistry) -> None:
        step = registry.create(StepConfig(
            name="php.composer", args=["install"], condition={"file_exists": "composer.lock"},
        ))
        assert step.args == ["install"]
        assert step.has_condition

    def test_db_type_passed(self, registry: StepRegistry) -> None:
        step = registry.create(StepConfig(name="db.create", type="pgsql", args=["--prefix", "x"]))
        assert step.db_type == "pgsql"
        assert step.flags == {"prefix": "x"}

    def test_invalid_condition_raises(self, registry: StepRegistry) -> None:
        with pytest.raises(ConditionError):
            registry.create(StepConfig(name="php", condition="file_exists"))


class TestUnknownAndDisabled:
    def test_unknown_returns_none(self, registry: StepRegistry, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            assert registry.create(StepConfig(name="ruby.bundle")) is None
        assert "ruby.bundle" in caplog.text

    def test_create_all_skips(self, registry: StepRegistry) -> None:
        steps = registry.create_all([
            StepConfig(name="php.composer", args=["install"]),
            StepConfig(name="nope"),
            StepConfig(name="node.npm", enabled=False),
        ])
        assert [s.name for s in steps] == ["php.composer"]

    def test_require_known(self, registry: StepRegistry) -> None:
        require_known(registry, [StepConfig(name="php")])
        with pytest.raises(ConfigError, match="a.b, z"):
            require_known(registry, [StepConfig(name="z"), StepConfig(name="a.b"), StepConfig(name="php")])


class TestCustomRegistration:
    def test_register_and_override(self) -> None:
        registry = StepRegistry()
        registry.register("x", lambda cfg: ShellStep("x", "sh", "true"))
        registry.register("x", lambda cfg: ShellStep("x", "bash", "true"))
        assert "x" in registry
        assert registry.create(StepConfig(name="x")).shell == "bash"
