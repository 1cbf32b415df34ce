from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from remapper.config.models import ColumnMapping
from remapper.generator.sql_generator import SqlDialect

IDENTITY_COLUMN = "id"


@dataclass(frozen=True)
class ColumnPlan:
    """
    单张表的字段计划。

    Attributes:
        select_columns (list[str]): 查询源表时使用的字段名，保持配置顺序。
        insert_columns (list[str]): 插入目标表时使用的字段名，已按方言加引用。
        identity_insert_needed (bool): 源字段中是否包含名为 id 的字段。
    """
    select_columns: list[str]
    insert_columns: list[str]
    identity_insert_needed: bool


def build_column_plan(columns: Sequence[ColumnMapping], dialect: SqlDialect) -> ColumnPlan:
    select_columns = [c.source_name for c in columns]
    insert_columns = [dialect.quote_identifier(c.dest_name) for c in columns]
    # 大小写敏感，只有 id 本身才算
    identity_insert_needed = any(name == IDENTITY_COLUMN for name in select_columns)
    return ColumnPlan(select_columns, insert_columns, identity_insert_needed)
