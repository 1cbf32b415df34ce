from __future__ import annotations


class RemapError(Exception):
    """数据迁移过程中所有自定义异常的基类。"""


class StoreConnectionError(RemapError, ConnectionError):
    """无法连接或登录到数据库时抛出。"""


class StatementError(RemapError):
    """
    SQL 语句被数据库拒绝或执行失败。

    Attributes:
        code (int | None): 数据库返回的错误码。
        message (str): 数据库返回的错误信息。
        statement (str): 执行失败的 SQL 语句原文。
        role (str): 出错连接的角色，'source' 或 'destination'。
    """

    def __init__(self, code: int | None, message: str, statement: str = "", role: str = "") -> None:
        super().__init__(f"[{code}] {message}")
        self.code: int | None = code
        self.message: str = message
        self.statement: str = statement
        self.role: str = role


class ConfigFormatError(RemapError, ValueError):
    """配置文档的结构不符合预期的指令格式。"""
