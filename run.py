import argparse
import os
import sys

import streamlit.web.cli as stcli

APP_FILE = "streamlit_app.py"


def resolve_path(path):
    """获取资源绝对路径 (兼容开发环境和打包后的环境)"""
    base_dir = getattr(sys, '_MEIPASS', None) or os.path.dirname(os.path.abspath(__file__))
    return os.path.join(base_dir, path)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="启动数据库表迁移工具的网页界面")
    parser.add_argument("--port", type=int, default=8501, help="网页服务端口")
    args = parser.parse_args()

    # 等价于命令行: streamlit run streamlit_app.py --server.port=8501 --global.developmentMode=false
    sys.argv = [
        "streamlit",
        "run",
        resolve_path(APP_FILE),
        f"--server.port={args.port}",
        "--global.developmentMode=false",
    ]
    sys.exit(stcli.main())
