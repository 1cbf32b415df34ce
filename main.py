# 命令行入口：按 YAML 配置把源库的表复制到目标库
#
# 配置文件格式:
#
# database:
#   - [source_database, src_db_user, src_db_passwd]
#   - [destination_database, dest_db_user, dest_db_passwd]
# table1:
#   - column1
#   - [source_column, destination_column]
# destination_table:
# source_table:
#   - column1
#
# 不带字段列表的表名表示下一张表写入该表名。每张目标表都会先被清空再写入。

import argparse
import logging
import sys

from remapper.config import RemapSettings
from remapper.core import ConfigFormatError
from remapper.generator import DIALECTS
from remapper.services import RemapService
from remapper.utils import setup_logging

LOG = logging.getLogger("remapper.main")


def build_parser() -> argparse.ArgumentParser:
    defaults = RemapSettings()
    parser = argparse.ArgumentParser(description="按 YAML 配置在两个数据库之间复制表数据（先清空目标表再写入）。")
    parser.add_argument("-c", "--config", default=defaults.config_path, help="配置文件路径")
    parser.add_argument("--source-host", default=defaults.source_host, help="源库主机")
    parser.add_argument("--destination-host", default=defaults.destination_host, help="目标库主机")
    parser.add_argument("--source-port", type=int, default=None, help="源库端口")
    parser.add_argument("--destination-port", type=int, default=None, help="目标库端口")
    parser.add_argument("--source-dialect", choices=sorted(DIALECTS), default=defaults.source_dialect)
    parser.add_argument("--destination-dialect", choices=sorted(DIALECTS), default=defaults.destination_dialect)
    parser.add_argument("--dry-run", action="store_true", help="不写入目标库，只把语句导出为 SQL 脚本")
    parser.add_argument("--export-dir", default=defaults.export_dir, help="dry run 脚本输出目录")
    parser.add_argument("--log-level", default="INFO", help="日志级别 (DEBUG 会输出每条语句)")
    return parser


def settings_from_args(args: argparse.Namespace) -> RemapSettings:
    return RemapSettings(
        config_path=args.config,
        source_host=args.source_host,
        destination_host=args.destination_host,
        source_port=args.source_port,
        destination_port=args.destination_port,
        source_dialect=args.source_dialect,
        destination_dialect=args.destination_dialect,
        dry_run=args.dry_run,
        export_dir=args.export_dir,
    )


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    service = RemapService(settings_from_args(args))
    try:
        result = service.run()
    except ConfigFormatError as e:
        LOG.error("配置文件格式错误: %s", e)
        return 2

    if result.success and result.script_path:
        LOG.info("脚本文件: %s", result.script_path)
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
