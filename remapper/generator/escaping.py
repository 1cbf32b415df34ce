from __future__ import annotations

from typing import Any

NULL_LITERAL = "NULL"

BINARY_TYPES = (bytes, bytearray, memoryview)


def stringify(value: Any) -> str | None:
    """
    将数据库返回的非二进制原始值转换为字符串。

    None 返回 None，由转义策略输出 NULL；bool 转为 1/0，其余值使用 str()。
    二进制值不经过这里，由 EscapingPolicy.binary_literal 按字节原样输出。
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


class EscapingPolicy:
    """
    转义策略：把一个原始值转换为目标数据库可以接受的 SQL 字面量。

    每次运行只根据目标数据库类型选择一次策略。
    """

    name: str = ""

    def literal(self, value: Any) -> str:
        if isinstance(value, BINARY_TYPES):
            return self.binary_literal(bytes(value))
        text = stringify(value)
        if text is None:
            return NULL_LITERAL
        return self.quote(text)

    def quote(self, text: str) -> str:
        raise NotImplementedError

    def binary_literal(self, data: bytes) -> str:
        """BLOB / VARBINARY 等二进制值输出为十六进制字面量，保证逐字节一致。"""
        raise NotImplementedError

    def values_clause(self, row: tuple) -> str:
        return ",".join(self.literal(value) for value in row)


class BackslashEscape(EscapingPolicy):
    """MySQL 风格：反斜杠加倍，单引号转为 \\'，外层使用单引号。"""

    name = "backslash"

    def quote(self, text: str) -> str:
        escaped = text.replace("\\", "\\\\").replace("'", "\\'")
        return f"'{escaped}'"

    def binary_literal(self, data: bytes) -> str:
        return f"X'{data.hex()}'"


class DoubleEscape(EscapingPolicy):
    """Transact-SQL 风格：单引号和双引号都转为两个单引号，外层使用双引号。"""

    name = "double"

    def quote(self, text: str) -> str:
        escaped = text.replace("'", "''").replace('"', "''")
        return f'"{escaped}"'

    def binary_literal(self, data: bytes) -> str:
        return "0x" + data.hex().upper()
