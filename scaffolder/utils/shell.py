"""Shell 命令执行工具 — 统一子进程调用

步骤通过 CommandExecutor 协议调用外部工具（composer / npm / bash 等），
测试时注入 mock 实现即可，无需 patch subprocess。
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Protocol

from scaffolder.core.exceptions import ExecutionError

logger = logging.getLogger(__name__)

# 错误信息中保留的输出长度
OUTPUT_TAIL = 500


# =========================================================================
# 命令执行结果
# =========================================================================

@dataclass
class CommandResult:
    """命令执行结果（与 subprocess 解耦）"""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """合并后的输出，优先 stderr"""
        return (self.stderr or self.stdout).strip()


# =========================================================================
# 命令执行器协议
# =========================================================================

class CommandExecutor(Protocol):
    """命令执行器协议 — 抽象子进程调用"""

    def execute(
        self,
        cmd: str | list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        """执行命令并返回结果"""
        ...


# =========================================================================
# 默认实现: 本地执行器
# =========================================================================

class LocalExecutor:
    """本地子进程执行器（默认实现）"""

    def execute(
        self,
        cmd: str | list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        args = shlex.split(cmd) if isinstance(cmd, str) else cmd
        merged_env = {**os.environ, **env} if env else None
        try:
            r = subprocess.run(
                args, capture_output=True, text=True,
                cwd=cwd, env=merged_env, check=False, timeout=timeout,
            )
        except FileNotFoundError as e:
            return CommandResult(returncode=127, stdout="", stderr=str(e))
        except subprocess.TimeoutExpired:
            return CommandResult(returncode=124, stdout="", stderr=f"超时（{timeout}秒）")
        return CommandResult(returncode=r.returncode, stdout=r.stdout, stderr=r.stderr)


# =========================================================================
# 便捷函数
# =========================================================================

def run_cmd(
    executor: CommandExecutor,
    cmd: list[str],
    *,
    cwd: str = ".",
    env: dict[str, str] | None = None,
    label: str = "cmd",
) -> CommandResult:
    """执行命令，退出码非 0 时抛 ExecutionError

    Args:
        executor: 命令执行器
        cmd: 参数列表
        cwd: 工作目录
        env: 追加的环境变量
        label: 日志与错误信息中的标签
    """
    logger.info("  %s: %s (cwd=%s)", label, shlex.join(cmd), cwd)
    r = executor.execute(cmd, cwd=cwd, env=env)
    if not r.success:
        raise ExecutionError(f"{label}失败 (rc={r.returncode}): {r.output[-OUTPUT_TAIL:]}")
    if r.stdout:
        logger.debug("  %s 输出:\n%s", label, r.stdout.rstrip())
    return r
