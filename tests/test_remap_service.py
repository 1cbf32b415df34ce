import os
import tempfile
import unittest
from unittest.mock import Mock

from remapper.config import RemapSettings
from remapper.core import ConfigFormatError, DatabaseConnector, StatementError, StoreConnectionError
from remapper.services import RemapService

RAW_DIRECTIVES = [
    ["database", [["srcdb", "su", "sp"], ["dstdb", "du", "dp"]]],
    ["t1", None],
    ["s1", ["a", ["b", "c"]]],
]


class TestRemapService(unittest.TestCase):
    """
    针对迁移服务整体流程的单元测试。

    通过注入连接器工厂，用模拟对象代替真实数据库。
    """

    def setUp(self):
        self.source = Mock(spec=DatabaseConnector)
        self.source.query.return_value = [(1, 2)]
        self.destination = Mock(spec=DatabaseConnector)
        self.factory = Mock(side_effect=lambda dialect, descriptor, role: (
            self.source if role == "source" else self.destination
        ))
        self.settings = RemapSettings(destination_host="192.168.1.101")
        self.service = RemapService(self.settings, connector_factory=self.factory)

    def test_successful_run(self):
        """测试：正常执行时写入覆盖后的目标表，并在结束后关闭连接。"""
        result = self.service.run(RAW_DIRECTIVES)

        self.assertTrue(result.success)
        self.assertEqual(result.total_rows, 1)
        executed = [call.args[0] for call in self.destination.execute.call_args_list]
        self.assertEqual(executed, ["DELETE FROM t1", "INSERT INTO t1(a,c) VALUES('1','2')"])
        self.source.close.assert_called()
        self.destination.close.assert_called()

        dialect, descriptor, role = self.factory.call_args_list[1].args
        self.assertEqual((dialect, descriptor.host, descriptor.database, role), ("mysql", "192.168.1.101", "dstdb", "destination"))

    def test_destination_error_reports_last_statement(self):
        """测试：目标库语句失败时报告错误码、错误信息和最后执行的语句。"""
        def fail_on_insert(sql):
            if sql.startswith("INSERT"):
                raise StatementError(1062, "Duplicate entry '1'", statement=sql, role="destination")

        self.destination.execute.side_effect = fail_on_insert

        with self.assertLogs("remapper", level="ERROR") as logs:
            result = self.service.run(RAW_DIRECTIVES)

        self.assertFalse(result.success)
        self.assertIsInstance(result.error, StatementError)
        self.assertEqual(result.last_statement, "INSERT INTO t1(a,c) VALUES('1','2')")
        output = "\n".join(logs.output)
        self.assertIn("1062", output)
        self.assertIn("Duplicate entry", output)
        self.assertIn("INSERT INTO t1(a,c) VALUES('1','2')", output)
        self.source.close.assert_called()
        self.destination.close.assert_called()

    def test_source_error_has_no_last_statement(self):
        self.source.query.side_effect = StatementError(1146, "Table 'srcdb.s1' doesn't exist",
                                                       statement="SELECT a, b FROM s1", role="source")
        result = self.service.run(RAW_DIRECTIVES)

        self.assertFalse(result.success)
        self.assertEqual(result.last_statement, "")
        self.destination.execute.assert_not_called()

    def test_destination_connect_failure_closes_source(self):
        """测试：目标库连接失败时关闭已建立的源库连接。"""
        self.destination.connect.side_effect = StoreConnectionError("Access denied")

        result = self.service.run(RAW_DIRECTIVES)

        self.assertFalse(result.success)
        self.assertIsInstance(result.error, StoreConnectionError)
        self.source.close.assert_called()
        self.source.query.assert_not_called()

    def test_config_format_error_propagates(self):
        with self.assertRaises(ConfigFormatError):
            self.service.run([["s1", 5]])
        self.factory.assert_not_called()

    def test_copy_before_later_database_connects_nothing(self):
        """测试：文档后面才出现 database 指令时，同样在连接任何数据库之前失败。"""
        with self.assertRaises(ConfigFormatError):
            self.service.run([["s1", ["a"]], ["database", [["src", "su", "sp"], ["dst", "du", "dp"]]]])
        self.factory.assert_not_called()

    def test_copy_before_database_propagates(self):
        with self.assertRaises(ConfigFormatError):
            self.service.run([["s1", ["a"]]])
        self.factory.assert_not_called()

    def test_dry_run_exports_script(self):
        """测试：dry run 不连接目标库，只把语句导出到脚本文件。"""
        with tempfile.TemporaryDirectory() as tmp:
            settings = RemapSettings(config_path="db-remapper.yaml", dry_run=True, export_dir=tmp)
            service = RemapService(settings, connector_factory=self.factory)

            result = service.run(RAW_DIRECTIVES)

            self.assertTrue(result.success)
            self.assertEqual(self.factory.call_count, 1)
            self.destination.execute.assert_not_called()
            self.assertTrue(os.path.exists(result.script_path))
            with open(result.script_path, encoding="utf-8") as f:
                content = f.read()
        self.assertIn("DELETE FROM t1;", content)
        self.assertIn("INSERT INTO t1(a,c) VALUES('1','2');", content)
        self.assertEqual(service.recorded_statements(), ["DELETE FROM t1", "INSERT INTO t1(a,c) VALUES('1','2')"])

    def test_loads_config_path_when_no_directives_given(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "remap.yaml")
            with open(path, "w", encoding="utf-8") as f:
                f.write("database:\n  - [srcdb, su, sp]\n  - [dstdb, du, dp]\nt1:\ns1:\n  - a\n  - [b, c]\n")
            self.settings.config_path = path

            result = self.service.run()

        self.assertTrue(result.success)
        self.assertEqual([(t.source_table, t.target_table) for t in result.transfers], [("s1", "t1")])


if __name__ == '__main__':
    unittest.main()
