"""步骤执行器 — 按优先级分组，组间串行、组内并发

流程:
  1. 按 priority 稳定排序，相同优先级的相邻步骤归为一组
  2. 逐组处理: 同步判定条件，条件不成立或 dry-run 的步骤记为跳过
  3. 其余步骤提交线程池并发执行，等待整组结束
  4. 组内任一步骤失败则不再执行后续组，抛出 StepError
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from itertools import groupby

from scaffolder.core.context import ScaffoldContext
from scaffolder.core.exceptions import StepError
from scaffolder.core.models import SkipReason, StepOptions, StepResult
from scaffolder.core.protocols import ScaffoldStep

logger = logging.getLogger(__name__)


def sort_by_priority(steps: list[ScaffoldStep]) -> list[ScaffoldStep]:
    """按优先级升序稳定排序"""
    return sorted(steps, key=lambda s: s.priority)


def group_by_priority(steps: list[ScaffoldStep]) -> list[list[ScaffoldStep]]:
    """相邻且优先级相同的步骤归为一组（输入需已排序）"""
    return [list(g) for _, g in groupby(steps, key=lambda s: s.priority)]


class StepExecutor:
    """优先级分组执行器

    results() 在 execute() 成功或失败后都可读取，顺序与排序后的步骤一致。
    """

    def __init__(
        self,
        steps: list[ScaffoldStep],
        ctx: ScaffoldContext,
        opts: StepOptions | None = None,
    ) -> None:
        self.steps = list(steps)
        self.ctx = ctx
        self.opts = opts or StepOptions()
        self._results: list[StepResult] = []

    def results(self) -> list[StepResult]:
        return list(self._results)

    def execute(self) -> None:
        """执行全部步骤，失败时抛 StepError（携带首个失败步骤）"""
        self._results = []
        groups = group_by_priority(sort_by_priority(self.steps))
        for index, group in enumerate(groups):
            error = self._execute_group(group)
            if error is not None:
                remaining = sum(len(g) for g in groups[index + 1:])
                if remaining:
                    logger.info("已停止: 剩余 %d 个步骤未执行", remaining)
                raise error

    # ---- 内部 ----

    def _execute_group(self, group: list[ScaffoldStep]) -> StepError | None:
        slots: dict[int, StepResult] = {}
        ready: list[tuple[int, ScaffoldStep]] = []

        for index, step in enumerate(group):
            try:
                enabled = step.condition(self.ctx)
            except Exception as e:  # noqa: BLE001
                logger.error("失败: %s (条件求值出错): %s", step.name, e)
                slots[index] = StepResult(step=step, error=e)
                continue
            if not enabled:
                logger.info("跳过: %s (条件不满足)", step.name)
                slots[index] = StepResult(step=step, skipped=True, skip_reason=SkipReason.CONDITION)
            elif self.opts.dry_run:
                logger.info("[dry-run] 将执行: %s", step.name)
                slots[index] = StepResult(step=step, skipped=True, skip_reason=SkipReason.DRY_RUN)
            else:
                ready.append((index, step))

        if len(ready) == 1:
            index, step = ready[0]
            slots[index] = self._run_step(step)
        elif ready:
            with ThreadPoolExecutor(
                max_workers=len(ready), thread_name_prefix=f"step-p{group[0].priority}",
            ) as pool:
                futures = [(i, pool.submit(self._run_step, s)) for i, s in ready]
                for index, future in futures:
                    slots[index] = future.result()

        error: StepError | None = None
        for index in range(len(group)):
            result = slots[index]
            self._results.append(result)
            if result.error is not None and error is None:
                error = StepError(result.name, result.error)
        return error

    def _run_step(self, step: ScaffoldStep) -> StepResult:
        start = time.monotonic()
        logger.info("执行: %s", step.name)
        try:
            step.run(self.ctx, self.opts)
        except Exception as e:  # noqa: BLE001
            duration = time.monotonic() - start
            logger.error("失败: %s (%.1f秒): %s", step.name, duration, e)
            return StepResult(step=step, error=e, duration=duration)
        duration = time.monotonic() - start
        logger.info("完成: %s (%.1f秒)", step.name, duration)
        return StepResult(step=step, duration=duration)
