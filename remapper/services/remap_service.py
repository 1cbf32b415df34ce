from __future__ import annotations

import logging
from typing import Any, Callable

from remapper.config.loader import load_config_file
from remapper.config.models import ConnectionDescriptor, ConnectionPair, Directive, RemapResult, RemapSettings
from remapper.core.db_connector import DatabaseConnector, ScriptRecorder, create_connector
from remapper.core.errors import StatementError, StoreConnectionError
from remapper.core.transfer_executor import TransferExecutor
from remapper.generator.sql_generator import get_dialect
from remapper.services.directive_parser import DirectiveParser
from remapper.services.interpreter import DirectiveInterpreter
from remapper.utils.file_exporter import FileExporter

LOG = logging.getLogger(__name__)

ConnectorFactory = Callable[[str, ConnectionDescriptor, str], DatabaseConnector]


class RemapService:
    """
    迁移服务，串联整个流程：读取配置 -> 解析指令 -> 解释执行。

    数据库连接错误和语句错误在这里被捕获并报告，不做重试；
    配置格式错误直接抛给调用方。无论成功与否，所有连接都会被关闭。
    """

    def __init__(self, settings: RemapSettings, connector_factory: ConnectorFactory = create_connector) -> None:
        """
        Args:
            settings (RemapSettings): 运行配置。
            connector_factory: 创建连接器的工厂函数，参数为 (数据库类型, 连接信息, 角色)。
        """
        self._settings: RemapSettings = settings
        self._connector_factory: ConnectorFactory = connector_factory
        self._recorders: list[ScriptRecorder] = []

    @property
    def settings(self) -> RemapSettings:
        return self._settings

    def load_directives(self, raw_directives: list[Any] | None = None) -> list[Directive]:
        """
        解析指令。未传入原始指令时从 settings.config_path 读取。

        Raises:
            ConfigFormatError: 配置文档格式错误。
        """
        if raw_directives is None:
            raw_directives = load_config_file(self._settings.config_path)
        return DirectiveParser(self._settings).parse_all(raw_directives)

    def open_executor(self, pair: ConnectionPair) -> TransferExecutor:
        """建立源库、目标库连接；目标库连接失败时关闭已打开的源库连接。"""
        settings = self._settings
        source = self._connector_factory(settings.source_dialect, pair.source, "source")
        if settings.dry_run:
            destination: DatabaseConnector = ScriptRecorder(pair.destination, dialect=settings.destination_dialect)
            self._recorders.append(destination)
        else:
            destination = self._connector_factory(settings.destination_dialect, pair.destination, "destination")

        source.connect()
        try:
            destination.connect()
        except Exception:
            source.close()
            raise
        return TransferExecutor(source, destination, get_dialect(settings.destination_dialect))

    def recorded_statements(self) -> list[str]:
        return [statement for recorder in self._recorders for statement in recorder.statements]

    def run(self, raw_directives: list[Any] | None = None) -> RemapResult:
        """
        执行一次完整迁移。

        Returns:
            RemapResult: success 为 False 时 error 中为捕获到的连接或语句错误。
        """
        directives = self.load_directives(raw_directives)
        self._recorders = []
        result = RemapResult()
        interpreter = DirectiveInterpreter(self.open_executor)
        try:
            with interpreter:
                interpreter.run(directives)
        except StoreConnectionError as e:
            result.success = False
            result.error = e
            LOG.error("数据库连接失败: %s", e)
        except StatementError as e:
            result.success = False
            result.error = e
            LOG.error("执行 SQL 时发生错误 (%s)", "目标库" if e.role == "destination" else "源库")
            LOG.error("错误码: %s", e.code)
            LOG.error("错误信息: %s", e.message)
            if e.role == "destination":
                result.last_statement = e.statement
                LOG.error("最后执行的语句: %s", e.statement)
        result.transfers = list(interpreter.summaries)

        if result.success:
            LOG.info("迁移完成：共复制 %d 张表，%d 行。", len(result.transfers), result.total_rows)
            if self._settings.dry_run:
                result.script_path = FileExporter.export_sql_script(
                    self.recorded_statements(), self._settings
                )
        return result
