"""统一异常体系

所有业务异常继承 ScaffoldError，替代散落的 ValueError / RuntimeError。
CLI 层可据此输出友好提示；软跳过（soft-skip）只记日志，不抛异常。
"""

from __future__ import annotations


class ScaffoldError(Exception):
    """框架基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(ScaffoldError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class TemplateError(ConfigError):
    """模板中引用了未知变量"""

    code = "TEMPLATE_ERROR"

    def __init__(self, message: str, identifier: str = "") -> None:
        super().__init__(message)
        self.identifier = identifier


class ConditionError(ConfigError):
    """条件表达式结构无效"""

    code = "CONDITION_ERROR"


class ValidationError(ScaffoldError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class ExecutionError(ScaffoldError):
    """外部命令执行失败"""

    code = "EXECUTION_ERROR"


class StepError(ScaffoldError):
    """步骤执行失败，携带失败步骤名与原始异常"""

    code = "STEP_FAILED"

    def __init__(self, step_name: str, cause: BaseException | None = None) -> None:
        message = f"步骤 {step_name} 执行失败"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.step_name = step_name
        self.cause = cause


class DatabaseError(ScaffoldError):
    """数据库操作失败"""

    code = "DATABASE_ERROR"


class DatabaseExistsError(DatabaseError):
    """目标数据库已存在（命名冲突）"""

    code = "DATABASE_EXISTS"

    def __init__(self, name: str) -> None:
        super().__init__(f"database {name} already exists")
        self.name = name


class DatabaseConnectionError(DatabaseError):
    """无法连接数据库服务"""

    code = "DATABASE_UNREACHABLE"
