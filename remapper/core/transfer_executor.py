from __future__ import annotations

import logging

from remapper.config.models import PlannedTransfer, TransferSummary
from remapper.core.db_connector import DatabaseConnector
from remapper.generator.column_mapper import build_column_plan
from remapper.generator.sql_generator import SqlDialect, get_dialect

LOG = logging.getLogger(__name__)


class TransferExecutor:
    """
    表数据复制执行器，在运行期间独占源库和目标库的连接。

    每次复制都是破坏性的：先清空目标表，再逐行插入源表数据。
    语句在自动提交模式下逐条执行，中途失败时目标表会保留已插入的部分数据。
    """

    def __init__(
        self,
        source: DatabaseConnector,
        destination: DatabaseConnector,
        dialect: SqlDialect | None = None,
    ) -> None:
        """
        Args:
            source (DatabaseConnector): 已连接的源库连接器。
            destination (DatabaseConnector): 已连接的目标库连接器。
            dialect (SqlDialect | None): 目标库方言，默认按目标连接器的类型选择。
        """
        self._source: DatabaseConnector = source
        self._destination: DatabaseConnector = destination
        self._dialect: SqlDialect = dialect or get_dialect(destination.dialect)

    @property
    def dialect(self) -> SqlDialect:
        return self._dialect

    def transfer(self, planned: PlannedTransfer) -> TransferSummary:
        """
        复制一张表。

        Raises:
            StatementError: 任一语句执行失败，不重试。
        """
        dialect = self._dialect
        plan = build_column_plan(planned.columns, dialect)
        target = planned.target_table
        LOG.info("从源表 %s 复制到目标表 %s。", planned.source_table, target)

        select = dialect.select_sql(planned.source_table, plan.select_columns)
        rows = self._source.query(select)

        LOG.info("清空目标表 %s。", target)
        self._destination.execute(dialect.delete_sql(target))

        identity_on = dialect.identity_insert_sql(target, True) if plan.identity_insert_needed else None
        if identity_on:
            self._destination.execute(identity_on)

        summary = TransferSummary(planned.source_table, target)
        for row in rows:
            self._destination.execute(dialect.insert_sql(target, plan.insert_columns, row))
            summary.row_count += 1

        if identity_on:
            self._destination.execute(dialect.identity_insert_sql(target, False))

        LOG.info("目标表 %s 写入 %d 行。", target, summary.row_count)
        return summary

    def close(self) -> None:
        """释放两个连接，可重复调用。"""
        self._source.close()
        self._destination.close()
