from __future__ import annotations

from typing import Any, Iterable

from remapper.config.models import (
    ColumnMapping,
    ConnectionDescriptor,
    ConnectionPair,
    CopyDirective,
    Directive,
    OverrideDirective,
    RemapSettings,
)
from remapper.core.errors import ConfigFormatError

DATABASE_KEY = "database"


class DirectiveParser:
    """
    指令解析器，把配置文档中的原始记录转换为带类型的指令。

    所有结构校验都在这里完成，解释执行阶段不再处理原始数据。
    """

    def __init__(self, settings: RemapSettings | None = None) -> None:
        self._settings: RemapSettings = settings or RemapSettings()

    def parse_all(self, raw_directives: Iterable[Any]) -> list[Directive]:
        """
        解析整份文档，并检查复制指令前已经出现过 database 指令。

        Raises:
            ConfigFormatError: 任一记录格式错误，或复制指令出现在第一条 database 指令之前。
        """
        directives: list[Directive] = []
        connected = False
        for index, raw in enumerate(raw_directives):
            directive = self.parse(raw, index)
            if isinstance(directive, ConnectionPair):
                connected = True
            elif isinstance(directive, CopyDirective) and not connected:
                raise ConfigFormatError(
                    f"第 {index + 1} 条指令表 '{directive.table}' 的复制出现在 database 指令之前"
                )
            directives.append(directive)
        return directives

    def parse(self, raw: Any, index: int = 0) -> Directive:
        """
        解析单条记录。

        Args:
            raw: [键, 值] 形式的原始记录。
            index (int): 记录在文档中的位置，仅用于错误信息。

        Raises:
            ConfigFormatError: 记录结构不符合任何一种指令格式。
        """
        if not isinstance(raw, (list, tuple)) or len(raw) != 2:
            raise ConfigFormatError(f"第 {index + 1} 条指令必须是 [名称, 内容] 形式，实际为: {raw!r}")
        key, payload = raw
        if not isinstance(key, str) or not key:
            raise ConfigFormatError(f"第 {index + 1} 条指令的名称必须是非空字符串，实际为: {key!r}")

        if key == DATABASE_KEY:
            return self._parse_connection_pair(payload, index)
        if payload is None or (isinstance(payload, (list, tuple)) and not payload):
            return OverrideDirective(key)
        if isinstance(payload, (list, tuple)):
            columns = tuple(self._parse_column(col, key, index) for col in payload)
            return CopyDirective(key, columns)
        raise ConfigFormatError(f"表 '{key}' 的字段列表必须是列表或留空，实际为: {payload!r}")

    def _parse_connection_pair(self, payload: Any, index: int) -> ConnectionPair:
        if not isinstance(payload, (list, tuple)) or len(payload) != 2:
            raise ConfigFormatError(
                f"第 {index + 1} 条指令 'database' 必须包含源库和目标库两组连接信息，实际为: {payload!r}"
            )
        source = self._parse_descriptor(payload[0], self._settings.source_host, self._settings.source_port, "源库")
        destination = self._parse_descriptor(
            payload[1], self._settings.destination_host, self._settings.destination_port, "目标库"
        )
        return ConnectionPair(source, destination)

    @staticmethod
    def _parse_descriptor(entry: Any, host: str, port: int | None, label: str) -> ConnectionDescriptor:
        if not isinstance(entry, (list, tuple)) or len(entry) != 3:
            raise ConfigFormatError(f"{label}连接信息必须是 [数据库, 用户名, 密码]，实际为: {entry!r}")
        if any(item is None or isinstance(item, (list, tuple, dict)) for item in entry):
            raise ConfigFormatError(f"{label}连接信息中的每一项都必须是标量值，实际为: {entry!r}")
        database, user, password = (str(item) for item in entry)
        return ConnectionDescriptor(host=host, database=database, user=user, password=password, port=port)

    @staticmethod
    def _parse_column(col: Any, table: str, index: int) -> ColumnMapping:
        if isinstance(col, str) and col:
            return ColumnMapping(col, col)
        if (
            isinstance(col, (list, tuple))
            and len(col) == 2
            and all(isinstance(name, str) and name for name in col)
        ):
            return ColumnMapping(col[0], col[1])
        raise ConfigFormatError(
            f"第 {index + 1} 条指令表 '{table}' 的字段必须是字段名或 [源字段, 目标字段]，实际为: {col!r}"
        )


def parse_directives(raw_directives: Iterable[Any], settings: RemapSettings | None = None) -> list[Directive]:
    return DirectiveParser(settings).parse_all(raw_directives)
