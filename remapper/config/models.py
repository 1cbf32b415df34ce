from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union


@dataclass(frozen=True)
class ConnectionDescriptor:
    """
    单个数据库的连接信息。

    Attributes:
        host (str): 数据库主机地址，来自运行配置而不是配置文档。
        database (str): 数据库名。
        user (str): 用户名。
        password (str): 密码。
        port (int | None): 端口，为空时使用驱动默认端口。
    """
    host: str
    database: str
    user: str
    password: str
    port: int | None = None


@dataclass(frozen=True)
class ConnectionPair:
    """源库与目标库的连接信息对，配置文档中 'database' 指令的解析结果。"""
    source: ConnectionDescriptor
    destination: ConnectionDescriptor


@dataclass(frozen=True)
class ColumnMapping:
    """
    字段映射。

    配置中只写一个字段名时源字段与目标字段同名；
    写成 [源字段, 目标字段] 时两者不同。
    """
    source_name: str
    dest_name: str


@dataclass(frozen=True)
class OverrideDirective:
    """不带字段列表的表指令，仅用于指定下一条复制指令的目标表名。"""
    name: str


@dataclass(frozen=True)
class CopyDirective:
    """带字段列表的表指令：从源表 table 复制所列字段。"""
    table: str
    columns: tuple[ColumnMapping, ...]


Directive = Union[ConnectionPair, OverrideDirective, CopyDirective]


@dataclass(frozen=True)
class NoOverride:
    """当前没有待生效的目标表覆盖。"""


@dataclass(frozen=True)
class OverridePending:
    """已记录一个目标表覆盖，等待下一条复制指令使用。"""
    name: str


OverrideState = Union[NoOverride, OverridePending]

NO_OVERRIDE = NoOverride()


@dataclass(frozen=True)
class PlannedTransfer:
    """
    一次已解析完成的表复制。

    Attributes:
        source_table (str): 源表名。
        target_table (str): 实际写入的目标表名（可能来自覆盖指令）。
        columns (tuple[ColumnMapping, ...]): 字段映射列表。
    """
    source_table: str
    target_table: str
    columns: tuple[ColumnMapping, ...]


@dataclass
class RemapSettings:
    """
    运行配置。

    配置文档中只包含数据库名、用户名和密码，主机、端口和数据库类型
    由这里提供。
    """
    config_path: str = "db-remapper.yaml"
    source_host: str = "localhost"
    destination_host: str = "localhost"
    source_port: int | None = None
    destination_port: int | None = None
    source_dialect: str = "mysql"
    destination_dialect: str = "mysql"
    dry_run: bool = False
    export_dir: str = "data"


@dataclass
class TransferSummary:
    """单张表复制完成后的统计。"""
    source_table: str
    target_table: str
    row_count: int = 0


@dataclass
class RemapResult:
    """一次完整运行的结果。"""
    success: bool = True
    transfers: list[TransferSummary] = field(default_factory=list)
    error: Exception | None = None
    last_statement: str = ""
    script_path: str | None = None

    @property
    def total_rows(self) -> int:
        return sum(t.row_count for t in self.transfers)
