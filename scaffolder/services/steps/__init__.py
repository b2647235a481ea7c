"""内置步骤

- commands.py: 外部工具与 shell 脚本（php / composer / npm / herd / bash.run ...）
- files.py:    file.copy / env.read / env.write
- database.py: db.create / db.destroy
- registry.py: 步骤名 -> 工厂
"""

from scaffolder.services.steps.base import BaseStep
from scaffolder.services.steps.commands import BinaryStep, ShellStep
from scaffolder.services.steps.database import DbCreateStep, DbDestroyStep
from scaffolder.services.steps.files import EnvReadStep, EnvWriteStep, FileCopyStep
from scaffolder.services.steps.registry import StepRegistry, default_registry

__all__ = [
    "BaseStep",
    "BinaryStep",
    "ShellStep",
    "DbCreateStep",
    "DbDestroyStep",
    "EnvReadStep",
    "EnvWriteStep",
    "FileCopyStep",
    "StepRegistry",
    "default_registry",
]
