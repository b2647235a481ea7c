"""数据库服务端客户端

MySQLClient     基于 PyMySQL
PostgresClient  基于 psycopg 3
驱动在构造时才导入，未使用对应引擎时不要求安装。
每次尝试新建一个连接，用完即关，不做连接池。
"""

from __future__ import annotations

import logging
from typing import Any

from scaffolder.core.exceptions import (
    DatabaseConnectionError,
    DatabaseExistsError,
    ValidationError,
)
from scaffolder.core.models import DatabaseOptions, DbEngine
from scaffolder.core.protocols import DatabaseClient

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT = 5

# MySQL: ER_DB_CREATE_EXISTS
MYSQL_DB_EXISTS = 1007

_DEFAULTS: dict[DbEngine, DatabaseOptions] = {
    DbEngine.MYSQL: DatabaseOptions(host="127.0.0.1", port=3306, username="root"),
    DbEngine.PGSQL: DatabaseOptions(host="127.0.0.1", port=5432, username="postgres"),
}


def default_options(engine: DbEngine) -> DatabaseOptions:
    base = _DEFAULTS.get(engine, DatabaseOptions(host="127.0.0.1"))
    return DatabaseOptions(host=base.host, port=base.port, username=base.username)


def is_database_exists_error(err: BaseException | None) -> bool:
    """判断是否为"数据库已存在"错误（类型或消息匹配）"""
    if err is None:
        return False
    if isinstance(err, DatabaseExistsError):
        return True
    if err.args and err.args[0] == MYSQL_DB_EXISTS:
        return True
    text = str(err).lower()
    return "already exists" in text or "database exists" in text


def escape_like(value: str) -> str:
    """转义 LIKE 通配符，使 value 按字面匹配"""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


# =========================================================================
# MySQL
# =========================================================================

def _mysql_ident(name: str) -> str:
    return "`" + name.replace("`", "``") + "`"


class MySQLClient:
    """MySQL / MariaDB"""

    def __init__(self, options: DatabaseOptions) -> None:
        import pymysql

        self._pymysql = pymysql
        try:
            self._conn = pymysql.connect(
                host=options.host, port=options.port,
                user=options.username, password=options.password,
                connect_timeout=CONNECT_TIMEOUT, autocommit=True,
            )
        except pymysql.err.MySQLError as e:
            raise DatabaseConnectionError(
                f"无法连接 MySQL {options.host}:{options.port}: {e}"
            ) from e

    def _execute(self, query: str, params: Any = None) -> list[tuple[Any, ...]]:
        with self._conn.cursor() as cur:
            cur.execute(query, params)
            return list(cur.fetchall())

    def ping(self) -> None:
        self._conn.ping(reconnect=False)

    def create_database(self, name: str) -> None:
        try:
            self._execute(f"CREATE DATABASE {_mysql_ident(name)}")
        except self._pymysql.err.MySQLError as e:
            if e.args and e.args[0] == MYSQL_DB_EXISTS:
                raise DatabaseExistsError(name) from e
            raise

    def drop_database(self, name: str) -> None:
        self._execute(f"DROP DATABASE IF EXISTS {_mysql_ident(name)}")

    def list_databases(self, pattern: str) -> list[str]:
        return [row[0] for row in self._execute("SHOW DATABASES LIKE %s", (pattern,))]

    def close(self) -> None:
        self._conn.close()


# =========================================================================
# PostgreSQL
# =========================================================================

class PostgresClient:
    """PostgreSQL（连接到维护库 postgres）"""

    def __init__(self, options: DatabaseOptions, dbname: str = "postgres") -> None:
        import psycopg
        from psycopg import errors, sql

        self._sql = sql
        self._errors = errors
        try:
            self._conn = psycopg.connect(
                host=options.host, port=options.port,
                user=options.username, password=options.password or None,
                dbname=dbname, connect_timeout=CONNECT_TIMEOUT, autocommit=True,
            )
        except psycopg.Error as e:
            raise DatabaseConnectionError(
                f"无法连接 PostgreSQL {options.host}:{options.port}: {e}"
            ) from e

    def ping(self) -> None:
        self._conn.execute("SELECT 1")

    def _exists(self, name: str) -> bool:
        row = self._conn.execute(
            "SELECT 1 FROM pg_database WHERE datname = %s", (name,),
        ).fetchone()
        return row is not None

    def create_database(self, name: str) -> None:
        if self._exists(name):
            raise DatabaseExistsError(name)
        try:
            self._conn.execute(
                self._sql.SQL("CREATE DATABASE {}").format(self._sql.Identifier(name)),
            )
        except self._errors.DuplicateDatabase as e:
            raise DatabaseExistsError(name) from e

    def drop_database(self, name: str) -> None:
        self._conn.execute(
            self._sql.SQL("DROP DATABASE IF EXISTS {}").format(self._sql.Identifier(name)),
        )

    def list_databases(self, pattern: str) -> list[str]:
        rows = self._conn.execute(
            "SELECT datname FROM pg_database WHERE datname LIKE %s AND NOT datistemplate",
            (pattern,),
        ).fetchall()
        return [row[0] for row in rows]

    def close(self) -> None:
        self._conn.close()


def create_client(engine: DbEngine, options: DatabaseOptions) -> DatabaseClient:
    """默认客户端工厂"""
    if engine is DbEngine.MYSQL:
        return MySQLClient(options)
    if engine is DbEngine.PGSQL:
        return PostgresClient(options)
    raise ValidationError(f"{engine.value} 没有服务端客户端")
