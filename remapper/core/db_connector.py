from __future__ import annotations

import logging
from typing import Any

import pymssql
import pymysql
from pymysql.connections import Connection

from remapper.config.models import ConnectionDescriptor
from remapper.core.errors import StatementError, StoreConnectionError

LOG = logging.getLogger(__name__)


def _error_code_and_message(exc: Exception) -> tuple[int | None, str]:
    """从驱动异常中取出错误码和错误信息（PyMySQL 与 pymssql 的 args 格式不同）。"""
    args = exc.args
    if args and isinstance(args[0], tuple):
        args = args[0]
    if len(args) >= 2 and isinstance(args[0], int):
        message = args[1]
        if isinstance(message, bytes):
            message = message.decode("utf-8", errors="replace")
        return args[0], str(message).strip()
    return None, str(exc)


class DatabaseConnector:
    """
    数据库连接器基类，定义迁移过程中对存储的全部操作：
    connect / execute / query / close。

    所有语句都在自动提交模式下执行，不存在跨语句的事务。
    """

    dialect: str = ""

    def __init__(self, descriptor: ConnectionDescriptor, role: str = "source") -> None:
        """
        Args:
            descriptor (ConnectionDescriptor): 连接信息。
            role (str): 'source' 或 'destination'，用于错误报告。
        """
        self._descriptor: ConnectionDescriptor = descriptor
        self._role: str = role
        self._connection: Any = None

    @property
    def role(self) -> str:
        return self._role

    def is_connected(self) -> bool:
        return self._connection is not None

    def connect(self) -> None:
        """
        建立连接。

        Raises:
            StoreConnectionError: 主机不可达或认证失败。
        """
        if self.is_connected():
            self.close()
        self._connection = self._open()
        LOG.info("已连接%s数据库 %s@%s", self._role_label(), self._descriptor.database, self._descriptor.host)

    def execute(self, statement: str) -> None:
        """
        执行一条不返回结果的语句。

        Raises:
            StatementError: 语句执行失败。
        """
        LOG.debug("[%s] %s", self._role, statement)
        cursor = self._cursor()
        try:
            cursor.execute(statement)
        except self._driver_error as e:
            raise self._statement_error(e, statement) from e
        finally:
            cursor.close()

    def query(self, statement: str) -> list[tuple]:
        """
        执行查询并按数据库返回的顺序返回全部行，每行为按列顺序排列的元组。

        Raises:
            StatementError: 查询失败。
        """
        LOG.debug("[%s] %s", self._role, statement)
        cursor = self._cursor()
        try:
            cursor.execute(statement)
            return [tuple(row) for row in cursor.fetchall()]
        except self._driver_error as e:
            raise self._statement_error(e, statement) from e
        finally:
            cursor.close()

    def close(self) -> None:
        """关闭连接。可重复调用，不会抛出异常。"""
        if self._connection is None:
            return
        try:
            self._connection.close()
            LOG.info("%s数据库连接已关闭。", self._role_label())
        except Exception as e:
            LOG.warning("关闭%s数据库连接时出错: %s", self._role_label(), e)
        finally:
            self._connection = None

    # 子类实现
    _driver_error: type[Exception] = Exception

    def _open(self) -> Any:
        raise NotImplementedError

    def _cursor(self) -> Any:
        if not self.is_connected():
            raise StoreConnectionError(f"{self._role_label()}数据库未连接")
        return self._connection.cursor()

    def _statement_error(self, exc: Exception, statement: str) -> StatementError:
        code, message = _error_code_and_message(exc)
        return StatementError(code, message, statement=statement, role=self._role)

    def _role_label(self) -> str:
        return "目标" if self._role == "destination" else "源"

    def __enter__(self) -> DatabaseConnector:
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class MySqlConnector(DatabaseConnector):
    """MySQL / MariaDB 连接器（使用 PyMySQL）。"""

    dialect = "mysql"
    _driver_error = pymysql.err.Error

    def _open(self) -> Connection:
        d = self._descriptor
        try:
            return pymysql.connect(
                host=d.host,
                port=int(d.port or 3306),
                user=d.user,
                password=d.password,
                database=d.database,
                charset="utf8mb4",
                autocommit=True,
            )
        except pymysql.err.Error as e:
            code, message = _error_code_and_message(e)
            raise StoreConnectionError(f"无法连接{self._role_label()}数据库 {d.database}@{d.host}: [{code}] {message}") from e


class MssqlConnector(DatabaseConnector):
    """
    SQL Server 连接器（使用 pymssql）。

    连接后关闭 QUOTED_IDENTIFIER，使双引号包裹的内容按字符串字面量处理，
    与 DoubleEscape 转义策略配合使用。
    """

    dialect = "mssql"
    _driver_error = pymssql.Error

    def _open(self) -> Any:
        d = self._descriptor
        try:
            connection = pymssql.connect(
                server=d.host,
                port=str(d.port or 1433),
                user=d.user,
                password=d.password,
                database=d.database,
                charset="UTF-8",
                autocommit=True,
            )
        except pymssql.Error as e:
            code, message = _error_code_and_message(e)
            raise StoreConnectionError(f"无法连接{self._role_label()}数据库 {d.database}@{d.host}: [{code}] {message}") from e
        cursor = connection.cursor()
        try:
            cursor.execute("SET QUOTED_IDENTIFIER OFF")
        finally:
            cursor.close()
        return connection


class ScriptRecorder(DatabaseConnector):
    """
    只记录语句、不执行的目标端连接器，用于生成迁移脚本（dry run）。
    """

    def __init__(self, descriptor: ConnectionDescriptor, dialect: str = "mysql", role: str = "destination") -> None:
        super().__init__(descriptor, role=role)
        self.dialect = dialect
        self.statements: list[str] = []

    def _open(self) -> list[str]:
        return self.statements

    def execute(self, statement: str) -> None:
        if not self.is_connected():
            raise StoreConnectionError(f"{self._role_label()}脚本记录器未打开")
        LOG.debug("[%s:record] %s", self._role, statement)
        self.statements.append(statement)

    def query(self, statement: str) -> list[tuple]:
        return []

    def close(self) -> None:
        self._connection = None


CONNECTORS: dict[str, type[DatabaseConnector]] = {
    "mysql": MySqlConnector,
    "mssql": MssqlConnector,
}


def create_connector(dialect: str, descriptor: ConnectionDescriptor, role: str) -> DatabaseConnector:
    """根据数据库类型创建连接器（尚未连接）。"""
    try:
        connector_cls = CONNECTORS[dialect]
    except KeyError:
        raise ValueError(f"不支持的数据库类型: {dialect}（可选: {', '.join(CONNECTORS)}）") from None
    return connector_cls(descriptor, role=role)
