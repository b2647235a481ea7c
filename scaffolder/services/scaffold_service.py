"""Scaffold 服务 — 把配置、预设、注册表和执行器串成一次完整运行

步骤来源:
  scaffold: 预设默认步骤 + scaffold.steps；override=true 时只用 scaffold.steps
  cleanup:  预设清理步骤 + cleanup
预设取请求中的名称，其次配置，最后按工作树内容检测。
"""

from __future__ import annotations

import logging
from pathlib import Path

from scaffolder.core.config import Config
from scaffolder.core.context import ScaffoldContext
from scaffolder.core.exceptions import ScaffoldError, StepError, ValidationError
from scaffolder.core.executor import StepExecutor
from scaffolder.core.models import ScaffoldReport, ScaffoldRequest, StepConfig, StepOptions
from scaffolder.core.protocols import ScaffoldStep
from scaffolder.services.presets import BasePreset, PresetManager
from scaffolder.services.steps.registry import StepRegistry, default_registry, require_known

logger = logging.getLogger(__name__)


class ScaffoldService:
    """scaffold / cleanup 编排"""

    def __init__(
        self,
        registry: StepRegistry | None = None,
        presets: PresetManager | None = None,
    ) -> None:
        self.registry = registry or default_registry()
        self.presets = presets or PresetManager()

    # ---- 步骤装配 ----

    def _preset(self, cfg: Config, worktree_path: str, name: str = "") -> BasePreset | None:
        return self.presets.resolve(name or cfg.preset, worktree_path)

    def scaffold_configs(
        self, cfg: Config, worktree_path: str, preset: str = "",
    ) -> list[StepConfig]:
        if cfg.override:
            return list(cfg.steps)
        p = self._preset(cfg, worktree_path, preset)
        base = p.default_steps() if p else []
        return base + list(cfg.steps)

    def cleanup_configs(
        self, cfg: Config, worktree_path: str, preset: str = "",
    ) -> list[StepConfig]:
        p = self._preset(cfg, worktree_path, preset)
        base = p.cleanup_steps() if p else []
        return base + list(cfg.cleanup)

    def get_scaffold_steps(
        self, cfg: Config, worktree_path: str, preset: str = "",
    ) -> list[ScaffoldStep]:
        return self.registry.create_all(self.scaffold_configs(cfg, worktree_path, preset))

    def get_cleanup_steps(
        self, cfg: Config, worktree_path: str, preset: str = "",
    ) -> list[ScaffoldStep]:
        return self.registry.create_all(self.cleanup_configs(cfg, worktree_path, preset))

    def validate(self, cfg: Config, worktree_path: str, preset: str = "") -> list[str]:
        """构建全部步骤但不执行，返回发现的问题"""
        problems: list[str] = []
        for phase, configs in (
            ("scaffold", self.scaffold_configs(cfg, worktree_path, preset)),
            ("cleanup", self.cleanup_configs(cfg, worktree_path, preset)),
        ):
            try:
                require_known(self.registry, configs)
            except ScaffoldError as e:
                problems.append(f"{phase}: {e}")
            for c in configs:
                if c.name not in self.registry:
                    continue
                try:
                    self.registry.create(c)
                except ScaffoldError as e:
                    problems.append(f"{phase}: {c.name}: {e}")
        return problems

    # ---- 执行 ----

    def _context(self, request: ScaffoldRequest, cfg: Config, preset: str) -> ScaffoldContext:
        if not Path(request.worktree_path).is_dir():
            raise ValidationError(f"工作树目录不存在: {request.worktree_path}")
        return ScaffoldContext(
            worktree_path=request.worktree_path,
            branch=request.branch,
            repo_name=request.repo_name,
            site_name=request.site_name or cfg.site_name,
            preset=preset,
            env=dict(request.env),
        )

    def _run(self, phase: str, request: ScaffoldRequest, cfg: Config) -> ScaffoldReport:
        preset = self._preset(cfg, request.worktree_path, request.preset)
        preset_name = preset.name if preset else ""
        ctx = self._context(request, cfg, preset_name)

        if phase == "scaffold":
            steps = self.get_scaffold_steps(cfg, request.worktree_path, request.preset)
        else:
            steps = self.get_cleanup_steps(cfg, request.worktree_path, request.preset)

        report = ScaffoldReport(request=request, preset=preset_name)
        logger.info(
            "%s: %s (预设=%s, %d 个步骤%s)",
            phase, ctx.worktree_path, preset_name or "-", len(steps),
            ", dry-run" if request.dry_run else "",
        )

        opts = StepOptions(dry_run=request.dry_run, verbose=request.verbose)
        executor = StepExecutor(steps, ctx, opts)
        try:
            executor.execute()
        except StepError as e:
            report.error = e
            logger.error("%s 失败: %s", phase, e)
        report.results = executor.results()
        report.db_suffix = ctx.get_db_suffix()
        return report

    def run_scaffold(self, request: ScaffoldRequest, cfg: Config | None = None) -> ScaffoldReport:
        """执行 scaffold，步骤失败记录在 report.error 中"""
        return self._run("scaffold", request, cfg or Config())

    def run_cleanup(self, request: ScaffoldRequest, cfg: Config | None = None) -> ScaffoldReport:
        """执行 cleanup，步骤失败记录在 report.error 中"""
        return self._run("cleanup", request, cfg or Config())
