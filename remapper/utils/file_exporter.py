import datetime
import logging
import os
from typing import Sequence

from remapper.config.models import RemapSettings

LOG = logging.getLogger(__name__)


class FileExporter:
    """
    负责将记录下来的目标库语句导出为 .sql 脚本文件。
    """

    @staticmethod
    def build_script(statements: Sequence[str], settings: RemapSettings) -> str:
        """把语句列表拼成脚本文本，每条语句以分号结尾。"""
        header = [
            "-- ====================================================================",
            "-- 数据迁移脚本",
            f"-- 生成时间: {datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
            f"-- 配置文件: {settings.config_path}",
            f"-- 目标库类型: {settings.destination_dialect}",
            "-- ====================================================================",
        ]
        body = [f"{statement};" for statement in statements]
        return "\n".join(header + body) + "\n"

    @staticmethod
    def export_sql_script(statements: Sequence[str], settings: RemapSettings) -> str:
        """
        将语句保存到 settings.export_dir 下的 .sql 文件中。

        文件名格式为 remap_<配置文件名>_<日期>.sql。

        Returns:
            str: 成功保存的文件路径。

        Raises:
            IOError: 如果文件写入失败。
        """
        config_name = os.path.splitext(os.path.basename(settings.config_path))[0] or "config"
        timestamp = datetime.datetime.now().strftime('%Y%m%d')
        filename = f"remap_{config_name}_{timestamp}.sql"

        # 确保输出目录存在
        os.makedirs(settings.export_dir, exist_ok=True)

        file_path = os.path.join(settings.export_dir, filename)

        try:
            with open(file_path, "w", encoding="utf-8") as f:
                f.write(FileExporter.build_script(statements, settings))
            LOG.info("脚本已成功导出到: %s", file_path)
            return file_path
        except IOError as e:
            LOG.error("无法将脚本写入文件 %s。原因: %s", file_path, e)
            raise
