from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from remapper.core.errors import ConfigFormatError

LOG = logging.getLogger(__name__)


class _UniqueKeyLoader(yaml.SafeLoader):
    """
    不允许映射中出现重复键的 SafeLoader。

    同一张源表需要复制到多个目标表时，映射形式会让后一个同名键覆盖前一个，
    此时必须改用 [[名称, 内容], ...] 的列表形式。
    """

    def construct_mapping(self, node, deep=False):
        seen = set()
        for key_node, _ in node.value:
            if key_node.tag == "tag:yaml.org,2002:merge":
                continue
            key = self.construct_object(key_node, deep=deep)
            try:
                duplicated = key in seen
            except TypeError:
                # 不可哈希的键交给父类报错
                continue
            if duplicated:
                raise ConfigFormatError(
                    f"配置文档第 {key_node.start_mark.line + 1} 行出现重复的键 '{key}'；"
                    f"同一名称需要出现多次时请使用 [[名称, 内容], ...] 的列表形式"
                )
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


def load_raw_directives(text: str) -> list[list[Any]]:
    """
    将配置文档内容解析为有序的原始指令列表。

    文档可以是映射（按书写顺序）：

        database:
          - [source_db, src_user, src_pass]
          - [destination_db, dst_user, dst_pass]
        destination_table:
        source_table:
          - column1
          - [source_column, destination_column]

    也可以是由二元列表组成的序列，例如 [["t1", null], ["s1", ["a"]]]。

    Returns:
        list[list[Any]]: 每项为 [键, 值]。

    Raises:
        ConfigFormatError: YAML 无法解析、映射中有重复的键，或顶层结构不是映射或列表。
    """
    try:
        data = yaml.load(text, Loader=_UniqueKeyLoader)
    except yaml.YAMLError as e:
        raise ConfigFormatError(f"配置文档不是合法的 YAML: {e}") from e

    if data is None:
        return []
    if isinstance(data, dict):
        return [[key, value] for key, value in data.items()]
    if isinstance(data, list):
        return [list(entry) if isinstance(entry, (list, tuple)) else entry for entry in data]
    raise ConfigFormatError(f"配置文档顶层必须是映射或列表，实际为 {type(data).__name__}")


def load_config_file(path: str) -> list[list[Any]]:
    """读取配置文件并返回原始指令列表。"""
    LOG.info("读取配置文件: %s", path)
    return load_raw_directives(Path(path).read_text(encoding="utf-8"))
