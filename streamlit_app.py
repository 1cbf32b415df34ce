import json
import os
import sys
import tempfile
import time
from typing import Any, Dict, List

import pandas as pd
import streamlit as st

# 导入后端模块
from remapper.config import CopyDirective, OverrideDirective, RemapSettings, load_raw_directives
from remapper.core import ConfigFormatError
from remapper.generator import DIALECTS, build_column_plan, get_dialect
from remapper.services import RemapService, parse_directives, plan_transfers
from remapper.utils import FileExporter, setup_logging

# --- 配置文件管理 ---
PROFILE_FILE = "remap_profiles.json"
PROFILE_KEYS = ['source_host', 'source_port', 'source_dialect',
                'destination_host', 'destination_port', 'destination_dialect']


def get_app_dir():
    """获取应用程序运行目录 (兼容 .exe 和 .py)"""
    if getattr(sys, 'frozen', False):
        return os.path.dirname(sys.executable)
    return os.path.dirname(os.path.abspath(__file__))


def load_last_profile() -> Dict[str, Any]:
    """加载最后一次使用的连接设置"""
    file_path = os.path.join(get_app_dir(), PROFILE_FILE)
    if not os.path.exists(file_path):
        return {}
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        st.warning(f"无法加载配置文件: {e}")
        return {}


def save_current_profile(profile_data: Dict[str, Any]):
    """保存当前连接设置"""
    try:
        with open(os.path.join(get_app_dir(), PROFILE_FILE), 'w', encoding='utf-8') as f:
            json.dump(profile_data, f, indent=4, ensure_ascii=False)
    except OSError as e:
        st.warning(f"无法保存配置文件: {e}")


# --- 页面配置 ---
st.set_page_config(
    page_title="数据库表迁移工具",
    page_icon="🛠️",
    layout="wide",
    initial_sidebar_state="expanded"
)
setup_logging()


def init_session_state():
    """统一初始化 Session State"""
    defaults = RemapSettings()
    for key in PROFILE_KEYS:
        if key not in st.session_state:
            value = getattr(defaults, key)
            st.session_state[key] = "" if value is None else value
    if 'has_loaded_profile' not in st.session_state:
        for key, val in load_last_profile().items():
            if key in PROFILE_KEYS:
                st.session_state[key] = val
        st.session_state.has_loaded_profile = True


init_session_state()


def current_settings(config_path: str, dry_run: bool) -> RemapSettings:
    def port(key):
        value = str(st.session_state[key]).strip()
        return int(value) if value.isdigit() else None

    return RemapSettings(
        config_path=config_path,
        source_host=st.session_state.source_host,
        destination_host=st.session_state.destination_host,
        source_port=port('source_port'),
        destination_port=port('destination_port'),
        source_dialect=st.session_state.source_dialect,
        destination_dialect=st.session_state.destination_dialect,
        dry_run=dry_run,
        export_dir=os.path.join(tempfile.gettempdir(), "remapper"),
    )


def build_plan_frame(directives, dialect_name: str) -> pd.DataFrame:
    """把解析后的复制计划整理成表格"""
    dialect = get_dialect(dialect_name)
    records: List[Dict[str, Any]] = []
    for planned in plan_transfers(directives):
        plan = build_column_plan(planned.columns, dialect)
        records.append({
            '源表': planned.source_table,
            '目标表': planned.target_table,
            '查询字段': ", ".join(plan.select_columns),
            '写入字段': ",".join(plan.insert_columns),
            '自增列写入': "是" if plan.identity_insert_needed else "",
        })
    return pd.DataFrame(records, columns=['源表', '目标表', '查询字段', '写入字段', '自增列写入'])


# --- 侧边栏：连接设置 (Sidebar) ---
def render_sidebar():
    with st.sidebar:
        st.header("🔌 连接设置")
        st.caption("数据库名、用户名和密码来自配置文件中的 database 指令。")
        dialects = sorted(DIALECTS)

        st.subheader("源数据库 (Source)")
        st.text_input("Host", key="source_host")
        st.text_input("Port (留空使用默认端口)", key="source_port")
        st.selectbox("类型", options=dialects, key="source_dialect")

        st.divider()

        st.subheader("目标数据库 (Target)")
        st.text_input("Host", key="destination_host")
        st.text_input("Port (留空使用默认端口)", key="destination_port")
        st.selectbox("类型", options=dialects, key="destination_dialect")

        if st.button("保存设置", use_container_width=True):
            save_current_profile({key: st.session_state[key] for key in PROFILE_KEYS})
            st.toast("✅ 设置已保存")


# --- 主工作区 (Main Area) ---
def render_main_area():
    st.title("🛠️ 数据库表迁移工具")
    st.warning("⚠️ 每张目标表都会先执行 DELETE 清空再写入，且没有事务保护。")

    uploaded_file = st.file_uploader("上传迁移配置 (YAML)", type=['yaml', 'yml'])
    if not uploaded_file:
        st.info("请先上传配置文件。")
        return

    try:
        raw_directives = load_raw_directives(uploaded_file.getvalue().decode('utf-8'))
        directives = parse_directives(raw_directives, current_settings(uploaded_file.name, dry_run=True))
    except ConfigFormatError as e:
        st.error(f"❌ 配置文件格式错误: {e}")
        return

    overrides = [d.name for d in directives if isinstance(d, OverrideDirective)]
    copies = [d for d in directives if isinstance(d, CopyDirective)]
    st.success(f"✅ 共 {len(directives)} 条指令，其中复制指令 {len(copies)} 条，目标表覆盖 {len(overrides)} 条。")

    st.subheader("迁移计划")
    st.dataframe(build_plan_frame(directives, st.session_state.destination_dialect), use_container_width=True)

    col_script, col_run = st.columns(2)
    with col_script:
        if st.button("📝 生成迁移脚本 (不写入目标库)", use_container_width=True):
            run_remap(raw_directives, uploaded_file.name, dry_run=True)
    with col_run:
        confirmed = st.checkbox("我确认要清空并重新写入上述目标表")
        if st.button("🚀 执行迁移", type="primary", use_container_width=True, disabled=not confirmed):
            run_remap(raw_directives, uploaded_file.name, dry_run=False)


def run_remap(raw_directives, config_name: str, dry_run: bool):
    """执行迁移或生成脚本，并展示结果"""
    settings = current_settings(config_name, dry_run)
    service = RemapService(settings)
    try:
        with st.spinner("正在执行..." if not dry_run else "正在生成脚本..."):
            result = service.run(raw_directives)
    except ConfigFormatError as e:
        st.error(f"❌ 配置文件格式错误: {e}")
        return

    if result.transfers:
        st.dataframe(pd.DataFrame(
            [{'源表': t.source_table, '目标表': t.target_table, '行数': t.row_count} for t in result.transfers]
        ), use_container_width=True)

    if not result.success:
        st.error(f"❌ 执行失败: {result.error}")
        if result.last_statement:
            st.code(result.last_statement, language='sql')
        return

    st.success(f"🎉 完成：{len(result.transfers)} 张表，{result.total_rows} 行。")
    if dry_run:
        content = FileExporter.build_script(service.recorded_statements(), settings)
        st.code(content[:20000], language='sql')
        st.download_button(
            label="📥 下载 SQL 脚本",
            data=content,
            file_name=f"remap_script_{int(time.time())}.sql",
            mime="application/sql"
        )


# --- 程序入口 ---
if __name__ == "__main__":
    render_sidebar()
    render_main_area()
