import unittest
from unittest.mock import Mock

from remapper.config import (
    NO_OVERRIDE,
    ColumnMapping,
    ConnectionDescriptor,
    ConnectionPair,
    CopyDirective,
    OverrideDirective,
    OverridePending,
    PlannedTransfer,
)
from remapper.core import ConfigFormatError, DatabaseConnector, ScriptRecorder, TransferExecutor
from remapper.generator import MySqlDialect
from remapper.services import DirectiveInterpreter, parse_directives, plan_transfers, resolve

PAIR = ConnectionPair(
    ConnectionDescriptor("localhost", "src", "su", "sp"),
    ConnectionDescriptor("localhost", "dst", "du", "dp"),
)
COLUMNS = (ColumnMapping("a", "a"),)


class TestOverrideStateMachine(unittest.TestCase):
    """
    针对目标表覆盖状态机的单元测试。
    """

    def test_override_sets_pending(self):
        state, planned = resolve(NO_OVERRIDE, OverrideDirective("dst"))
        self.assertEqual(state, OverridePending("dst"))
        self.assertIsNone(planned)

    def test_copy_consumes_pending_override(self):
        state, planned = resolve(OverridePending("dst"), CopyDirective("src", COLUMNS))
        self.assertEqual(state, NO_OVERRIDE)
        self.assertEqual(planned, PlannedTransfer("src", "dst", COLUMNS))

    def test_copy_without_override_uses_own_table(self):
        state, planned = resolve(NO_OVERRIDE, CopyDirective("src", COLUMNS))
        self.assertEqual(state, NO_OVERRIDE)
        self.assertEqual(planned.target_table, "src")

    def test_connection_pair_clears_override(self):
        state, planned = resolve(OverridePending("dst"), PAIR)
        self.assertEqual(state, NO_OVERRIDE)
        self.assertIsNone(planned)

    def test_last_override_wins(self):
        """测试：连续两条覆盖指令时只有后一条生效。"""
        plans = plan_transfers([OverrideDirective("a"), OverrideDirective("b"), CopyDirective("src", COLUMNS)])
        self.assertEqual([(p.source_table, p.target_table) for p in plans], [("src", "b")])

    def test_override_applies_only_to_next_copy(self):
        plans = plan_transfers([
            OverrideDirective("dst"),
            CopyDirective("src", COLUMNS),
            CopyDirective("other", COLUMNS),
        ])
        self.assertEqual([(p.source_table, p.target_table) for p in plans], [("src", "dst"), ("other", "other")])

    def test_trailing_override_is_dropped(self):
        plans = plan_transfers([CopyDirective("src", COLUMNS), OverrideDirective("never")])
        self.assertEqual([p.target_table for p in plans], ["src"])


class TestDirectiveInterpreter(unittest.TestCase):
    """
    针对指令解释器的单元测试，使用模拟的 TransferExecutor。
    """

    def setUp(self):
        self.executors = []

        def open_executor(pair):
            executor = Mock(spec=TransferExecutor)
            self.executors.append(executor)
            return executor

        self.open_executor = Mock(side_effect=open_executor)
        self.interpreter = DirectiveInterpreter(self.open_executor)

    def test_override_routes_copy_to_override_target(self):
        """测试：["dst", null] 后接 ["src", [...]] 时数据写入 dst。"""
        directives = parse_directives([
            ["database", [["src", "su", "sp"], ["dst", "du", "dp"]]],
            ["dst", None],
            ["src", ["a"]],
        ])
        self.interpreter.run(directives)

        self.open_executor.assert_called_once()
        planned = self.executors[0].transfer.call_args.args[0]
        self.assertEqual((planned.source_table, planned.target_table), ("src", "dst"))

    def test_trailing_override_executes_nothing(self):
        self.interpreter.run([PAIR, OverrideDirective("dst")])
        self.executors[0].transfer.assert_not_called()

    def test_copy_before_database_is_rejected(self):
        with self.assertRaises(ConfigFormatError):
            self.interpreter.run([CopyDirective("src", COLUMNS)])

    def test_new_connection_pair_replaces_previous(self):
        """测试：第二条 database 指令会关闭旧连接，之后的复制使用新连接。"""
        self.interpreter.run([PAIR, CopyDirective("s1", COLUMNS), PAIR, CopyDirective("s2", COLUMNS)])

        self.assertEqual(len(self.executors), 2)
        self.executors[0].close.assert_called_once()
        self.assertEqual(self.executors[0].transfer.call_args.args[0].source_table, "s1")
        self.assertEqual(self.executors[1].transfer.call_args.args[0].source_table, "s2")
        self.executors[1].close.assert_not_called()

    def test_context_manager_closes_on_error(self):
        with self.assertRaises(RuntimeError):
            with self.interpreter:
                self.interpreter.run([PAIR])
                raise RuntimeError("boom")
        self.executors[0].close.assert_called()

    def test_summaries_collected(self):
        self.interpreter.run([PAIR, CopyDirective("s1", COLUMNS), CopyDirective("s2", COLUMNS)])
        self.assertEqual(len(self.interpreter.summaries), 2)

    def test_summaries_reset_between_runs(self):
        """测试：同一个解释器执行两次时，第二次只返回自己的复制结果。"""
        self.interpreter.run([PAIR, CopyDirective("s1", COLUMNS), CopyDirective("s2", COLUMNS)])
        summaries = self.interpreter.run([PAIR, CopyDirective("s3", COLUMNS)])

        self.assertEqual(len(summaries), 1)
        self.assertEqual(len(self.interpreter.summaries), 1)
        self.assertEqual(self.executors[-1].transfer.call_args.args[0].source_table, "s3")


class TestInterpreterWithRecorder(unittest.TestCase):
    """
    使用脚本记录器作为目标库，检查实际产生的语句。
    """

    def setUp(self):
        self.source = Mock(spec=DatabaseConnector)
        self.tables = {"s1": [(1,), (2,)], "s2": [], "s3": [(3,)]}
        self.source.query.side_effect = lambda sql: self.tables[sql.split()[-1]]
        self.recorder = ScriptRecorder(PAIR.destination)
        self.recorder.connect()
        self.interpreter = DirectiveInterpreter(
            lambda pair: TransferExecutor(self.source, self.recorder, MySqlDialect())
        )

    def test_one_delete_per_copy_and_one_insert_per_row(self):
        """测试：N 条复制指令产生 N 条 DELETE，每行源数据对应一条 INSERT。"""
        self.interpreter.run([PAIR] + [CopyDirective(name, COLUMNS) for name in ("s1", "s2", "s3")])

        self.assertEqual(self.recorder.statements, [
            "DELETE FROM s1",
            "INSERT INTO s1(a) VALUES('1')",
            "INSERT INTO s1(a) VALUES('2')",
            "DELETE FROM s2",
            "DELETE FROM s3",
            "INSERT INTO s3(a) VALUES('3')",
        ])

    def test_override_document_scenario(self):
        self.tables["s1"] = [(1, 2)]
        directives = parse_directives([
            ["database", [["src", "su", "sp"], ["dst", "du", "dp"]]],
            ["t1", None],
            ["s1", ["a", ["b", "c"]]],
        ])
        self.interpreter.run(directives)

        self.source.query.assert_called_once_with("SELECT a, b FROM s1")
        self.assertEqual(self.recorder.statements, ["DELETE FROM t1", "INSERT INTO t1(a,c) VALUES('1','2')"])


if __name__ == '__main__':
    unittest.main()
