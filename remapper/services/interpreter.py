from __future__ import annotations

import logging
from typing import Callable, Iterable

from remapper.config.models import (
    NO_OVERRIDE,
    ConnectionPair,
    CopyDirective,
    Directive,
    OverrideDirective,
    OverridePending,
    OverrideState,
    PlannedTransfer,
    TransferSummary,
)
from remapper.core.errors import ConfigFormatError
from remapper.core.transfer_executor import TransferExecutor

LOG = logging.getLogger(__name__)


def resolve(state: OverrideState, directive: Directive) -> tuple[OverrideState, PlannedTransfer | None]:
    """
    目标表覆盖状态机的单步转换。

    - OverrideDirective: 进入 OverridePending，后出现的覆盖替换先前的覆盖。
    - CopyDirective: 目标表取待生效的覆盖名（没有则取源表名），之后回到 NoOverride。
    - ConnectionPair: 不产生复制，回到 NoOverride。

    Returns:
        tuple: (新状态, 需要执行的复制；没有则为 None)
    """
    if isinstance(directive, OverrideDirective):
        return OverridePending(directive.name), None
    if isinstance(directive, CopyDirective):
        target = state.name if isinstance(state, OverridePending) else directive.table
        return NO_OVERRIDE, PlannedTransfer(directive.table, target, directive.columns)
    return NO_OVERRIDE, None


def plan_transfers(directives: Iterable[Directive]) -> list[PlannedTransfer]:
    """不连接数据库，仅按文档顺序计算每条复制指令的实际源表、目标表。"""
    state: OverrideState = NO_OVERRIDE
    planned_list: list[PlannedTransfer] = []
    for directive in directives:
        state, planned = resolve(state, directive)
        if planned:
            planned_list.append(planned)
    # 文档末尾未被使用的覆盖直接丢弃
    return planned_list


class DirectiveInterpreter:
    """
    指令解释器，按文档顺序执行指令。

    持有当前的连接对（TransferExecutor），遇到新的 database 指令时关闭旧连接
    并建立新连接。作为上下文管理器使用时保证退出时释放连接。
    """

    def __init__(self, open_executor: Callable[[ConnectionPair], TransferExecutor]) -> None:
        """
        Args:
            open_executor: 根据连接信息对建立连接并返回 TransferExecutor 的工厂函数。
        """
        self._open_executor: Callable[[ConnectionPair], TransferExecutor] = open_executor
        self._executor: TransferExecutor | None = None
        self.summaries: list[TransferSummary] = []

    def run(self, directives: Iterable[Directive]) -> list[TransferSummary]:
        """执行一份指令列表，返回本次运行的复制结果；每次调用都重新统计。"""
        self.summaries = []
        state: OverrideState = NO_OVERRIDE
        for directive in directives:
            state = self.process(state, directive)
        return self.summaries

    def process(self, state: OverrideState, directive: Directive) -> OverrideState:
        if isinstance(directive, ConnectionPair):
            self._connect(directive)
        next_state, planned = resolve(state, directive)
        if planned:
            if self._executor is None:
                raise ConfigFormatError(f"表 '{planned.source_table}' 的复制指令出现在 database 指令之前")
            self.summaries.append(self._executor.transfer(planned))
        return next_state

    def _connect(self, pair: ConnectionPair) -> None:
        self.close()
        self._executor = None
        LOG.info(
            "连接数据库: %s@%s -> %s@%s",
            pair.source.database, pair.source.host, pair.destination.database, pair.destination.host,
        )
        self._executor = self._open_executor(pair)

    def close(self) -> None:
        if self._executor is not None:
            self._executor.close()

    def __enter__(self) -> DirectiveInterpreter:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
