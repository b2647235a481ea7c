"""数据库步骤 — db.create / db.destroy

db.create
  1. 引擎: 显式 type，否则取 env 中的 DB_CONNECTION；都无法确定时跳过
  2. sqlite: 确保数据库文件存在，不使用后缀
  3. mysql / pgsql: 连接失败时跳过；上下文已有后缀则直接复用，
     否则生成后缀并在"已存在"冲突时重试，最多 MAX_CREATE_ATTEMPTS 次
  4. 成功后把后缀写入工作树状态记录
  同一运行内的多个 db.create 共享同一个后缀，后缀协商过程在
  ctx.suffix_guard() 内完成。

db.destroy
  后缀取自上下文，其次取状态记录；列出 `%_<suffix>` 的数据库逐个删除。
  清理阶段的任何失败只记日志。
"""

from __future__ import annotations

import logging

from scaffolder.core.config import STATE_FILE
from scaffolder.core.context import ScaffoldContext
from scaffolder.core.exceptions import ConfigError, DatabaseError
from scaffolder.core.models import (
    DB_CONNECTION_ALIASES,
    DatabaseOptions,
    DbEngine,
    StepOptions,
)
from scaffolder.core.protocols import DatabaseClient, DatabaseClientFactory
from scaffolder.core.state import WorktreeState
from scaffolder.core.words import (
    DEFAULT_MAX_LENGTH,
    build_database_name,
    generate_suffix,
    sanitize_site_name,
)
from scaffolder.services.steps.base import BaseStep, parse_flags
from scaffolder.services.steps.dbclient import (
    create_client,
    default_options,
    escape_like,
    is_database_exists_error,
)

logger = logging.getLogger(__name__)

MAX_CREATE_ATTEMPTS = 5
DEFAULT_SQLITE_PATH = "database/database.sqlite"
DEFAULT_PREFIX = "app"


def resolve_engine(db_type: str, env: dict[str, str]) -> DbEngine | None:
    """确定数据库引擎，无法确定时返回 None；显式 type 不受支持时抛 ConfigError"""
    if db_type:
        try:
            return DbEngine(db_type.strip().lower())
        except ValueError:
            raise ConfigError(f"不支持的数据库类型: {db_type}") from None
    connection = env.get("DB_CONNECTION", "").strip().lower()
    return DB_CONNECTION_ALIASES.get(connection)


def connection_options(
    engine: DbEngine, flags: dict[str, str], env: dict[str, str],
) -> DatabaseOptions:
    """连接参数优先级: --flag > env 文件 DB_* > 引擎默认值"""
    opts = default_options(engine)
    port = flags.get("port") or env.get("DB_PORT") or ""
    if port:
        try:
            opts.port = int(port)
        except ValueError:
            raise ConfigError(f"端口无效: {port}") from None
    opts.host = flags.get("host") or env.get("DB_HOST") or opts.host
    opts.username = flags.get("username") or env.get("DB_USERNAME") or opts.username
    opts.password = flags.get("password") or env.get("DB_PASSWORD") or ""
    return opts


class _DatabaseStep(BaseStep):
    """db.create / db.destroy 公共部分"""

    def __init__(
        self,
        name: str,
        args: list[str] | None = None,
        *,
        db_type: str = "",
        priority: int | None = None,
        condition: object = None,
        client_factory: DatabaseClientFactory | None = None,
        state_file: str = STATE_FILE,
    ) -> None:
        super().__init__(name, priority=priority, condition=condition)
        self.args = list(args or [])
        self.flags = parse_flags(self.args)
        self.db_type = db_type
        self._client_factory = client_factory or create_client
        self._state_file = state_file

    def state(self, ctx: ScaffoldContext) -> WorktreeState:
        return WorktreeState(ctx.worktree_path, self._state_file)

    def _connect(self, engine: DbEngine, env: dict[str, str]) -> DatabaseClient | None:
        """建立连接并 ping，失败时返回 None（软跳过）"""
        options = connection_options(engine, self.flags, env)
        client: DatabaseClient | None = None
        try:
            client = self._client_factory(engine, options)
            client.ping()
        except Exception as e:  # noqa: BLE001
            logger.warning(
                "%s: 无法连接 %s (%s:%s)，跳过: %s",
                self.name, engine.value, options.host, options.port, e,
            )
            if client is not None:
                client.close()
            return None
        return client


class DbCreateStep(_DatabaseStep):
    default_priority = 8

    def __init__(
        self,
        args: list[str] | None = None,
        *,
        db_type: str = "",
        priority: int | None = None,
        condition: object = None,
        client_factory: DatabaseClientFactory | None = None,
        state_file: str = STATE_FILE,
        max_length: int = DEFAULT_MAX_LENGTH,
    ) -> None:
        super().__init__(
            "db.create", args, db_type=db_type, priority=priority, condition=condition,
            client_factory=client_factory, state_file=state_file,
        )
        self.max_length = max_length

    def run(self, ctx: ScaffoldContext, opts: StepOptions) -> None:
        env = ctx.env_snapshot()
        engine = resolve_engine(self.db_type, env)
        if engine is None:
            logger.info("db.create: 未指定数据库类型且 .env 中没有 DB_CONNECTION，跳过")
            return

        if engine is DbEngine.SQLITE:
            self._create_sqlite(ctx, env, opts)
            return

        if opts.dry_run:
            logger.info("[dry-run] 将创建 %s 数据库 (前缀 %s)", engine.value, self.prefix(ctx, env))
            return

        client = self._connect(engine, env)
        if client is None:
            return
        try:
            with ctx.suffix_guard():
                name = self._provision(ctx, client, self.prefix(ctx, env))
        finally:
            client.close()
        logger.info("  数据库已创建: %s", name)

    def prefix(self, ctx: ScaffoldContext, env: dict[str, str]) -> str:
        """--prefix > 站点名 > APP_NAME > app（均为清洗后的非空值）"""
        for candidate in (self.flags.get("prefix", ""), ctx.site_name, env.get("APP_NAME", "")):
            clean = sanitize_site_name(candidate)
            if clean:
                return clean
        return DEFAULT_PREFIX

    def _provision(self, ctx: ScaffoldContext, client: DatabaseClient, prefix: str) -> str:
        existing = ctx.get_db_suffix()
        if existing:
            name = build_database_name(prefix, existing, self.max_length)
            try:
                client.create_database(name)
            except Exception as e:  # noqa: BLE001
                raise DatabaseError(f"创建数据库 {name} 失败 (沿用后缀 {existing}): {e}") from e
            self._persist(ctx, existing)
            return name

        last_error: BaseException | None = None
        for attempt in range(1, MAX_CREATE_ATTEMPTS + 1):
            suffix, _ = ctx.claim_db_suffix(generate_suffix)
            name = build_database_name(prefix, suffix, self.max_length)
            logger.debug("  数据库名: %s (第 %d/%d 次)", name, attempt, MAX_CREATE_ATTEMPTS)
            try:
                client.create_database(name)
            except Exception as e:  # noqa: BLE001
                ctx.clear_db_suffix()
                if not is_database_exists_error(e):
                    raise DatabaseError(f"创建数据库 {name} 失败: {e}") from e
                logger.info("  数据库 %s 已存在，重新生成后缀", name)
                last_error = e
                continue
            self._persist(ctx, suffix)
            return name

        raise DatabaseError(
            f"创建数据库失败 (after {MAX_CREATE_ATTEMPTS} attempts): {last_error}"
        )

    def _persist(self, ctx: ScaffoldContext, suffix: str) -> None:
        try:
            self.state(ctx).save_db_suffix(suffix)
        except (OSError, ConfigError) as e:
            logger.warning("db.create: 写入 db_suffix 失败: %s", e)

    def _create_sqlite(self, ctx: ScaffoldContext, env: dict[str, str], opts: StepOptions) -> None:
        target = self.flags.get("database") or env.get("DB_DATABASE") or DEFAULT_SQLITE_PATH
        path = ctx.resolve(target)
        if path.exists():
            logger.info("  SQLite 数据库已存在: %s", target)
            return
        if opts.dry_run:
            logger.info("[dry-run] 将创建 SQLite 数据库: %s", target)
            return
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.touch()
        except OSError as e:
            raise DatabaseError(f"创建 SQLite 数据库失败 {path}: {e}") from e
        logger.info("  SQLite 数据库已创建: %s", target)


class DbDestroyStep(_DatabaseStep):
    default_priority = 0

    def __init__(
        self,
        args: list[str] | None = None,
        *,
        db_type: str = "",
        priority: int | None = None,
        condition: object = None,
        client_factory: DatabaseClientFactory | None = None,
        state_file: str = STATE_FILE,
    ) -> None:
        super().__init__(
            "db.destroy", args, db_type=db_type, priority=priority, condition=condition,
            client_factory=client_factory, state_file=state_file,
        )

    def _resolve_suffix(self, ctx: ScaffoldContext) -> str:
        suffix = ctx.get_db_suffix()
        if suffix:
            return suffix
        try:
            suffix = self.state(ctx).db_suffix
        except (OSError, ConfigError) as e:
            logger.warning("db.destroy: 读取状态记录失败: %s", e)
            return ""
        if suffix:
            ctx.set_db_suffix(suffix)
        return suffix

    def run(self, ctx: ScaffoldContext, opts: StepOptions) -> None:
        suffix = self._resolve_suffix(ctx)
        if not suffix:
            logger.info("db.destroy: 未找到数据库后缀，跳过清理")
            return

        env = ctx.env_snapshot()
        try:
            engine = resolve_engine(self.db_type, env)
        except ConfigError as e:
            logger.warning("db.destroy: %s，跳过", e)
            return
        if engine is None or engine is DbEngine.SQLITE:
            logger.info("db.destroy: 无服务端数据库需要清理")
            return

        client = self._connect(engine, env)
        if client is None:
            return
        try:
            self._drop_matching(client, suffix, opts)
        finally:
            client.close()

    def _drop_matching(self, client: DatabaseClient, suffix: str, opts: StepOptions) -> None:
        pattern = "%" + escape_like(f"_{suffix}")
        try:
            names = [n for n in client.list_databases(pattern) if n.endswith(f"_{suffix}")]
        except Exception as e:  # noqa: BLE001
            logger.warning("db.destroy: 列出数据库失败: %s", e)
            return

        if not names:
            logger.info("db.destroy: 没有匹配后缀 %s 的数据库", suffix)
            return

        for name in names:
            if opts.dry_run:
                logger.info("[dry-run] 将删除数据库: %s", name)
                continue
            try:
                client.drop_database(name)
            except Exception as e:  # noqa: BLE001
                logger.warning("db.destroy: 删除数据库 %s 失败: %s", name, e)
                continue
            logger.info("  已删除数据库: %s", name)
