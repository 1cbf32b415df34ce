from __future__ import annotations

from typing import Sequence

from remapper.generator.escaping import BackslashEscape, DoubleEscape, EscapingPolicy


class SqlDialect:
    """
    目标数据库方言，负责生成迁移过程中用到的全部 SQL 文本。

    源表查询语句在各方言下相同；目标表相关语句（清空、插入、
    自增列写入开关）由各方言决定标识符引用方式和转义策略。
    """

    name: str = ""

    def __init__(self) -> None:
        self.escaping: EscapingPolicy = self._create_escaping()

    def _create_escaping(self) -> EscapingPolicy:
        raise NotImplementedError

    def quote_identifier(self, name: str) -> str:
        return name

    def select_sql(self, table: str, columns: Sequence[str]) -> str:
        return f"SELECT {', '.join(columns)} FROM {table}"

    def delete_sql(self, table: str) -> str:
        return f"DELETE FROM {self.quote_identifier(table)}"

    def insert_sql(self, table: str, insert_columns: Sequence[str], row: tuple) -> str:
        """insert_columns 已经过 quote_identifier 处理。"""
        return (
            f"INSERT INTO {self.quote_identifier(table)}({','.join(insert_columns)}) "
            f"VALUES({self.escaping.values_clause(row)})"
        )

    def identity_insert_sql(self, table: str, enabled: bool) -> str | None:
        """返回开启/关闭自增列显式写入的语句；方言不需要时返回 None。"""
        return None


class MySqlDialect(SqlDialect):
    name = "mysql"

    def _create_escaping(self) -> EscapingPolicy:
        return BackslashEscape()


class MssqlDialect(SqlDialect):
    name = "mssql"

    def _create_escaping(self) -> EscapingPolicy:
        return DoubleEscape()

    def quote_identifier(self, name: str) -> str:
        return f"[{name}]"

    def identity_insert_sql(self, table: str, enabled: bool) -> str | None:
        return f"SET IDENTITY_INSERT {table} {'ON' if enabled else 'OFF'}"


DIALECTS: dict[str, type[SqlDialect]] = {
    "mysql": MySqlDialect,
    "mssql": MssqlDialect,
}


def get_dialect(name: str) -> SqlDialect:
    try:
        return DIALECTS[name]()
    except KeyError:
        raise ValueError(f"不支持的数据库类型: {name}（可选: {', '.join(DIALECTS)}）") from None
