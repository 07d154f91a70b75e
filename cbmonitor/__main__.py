"""
主程序入口

使用方式:
    python -m cbmonitor --config config.yaml
    或
    cbmonitor --config config.yaml --interval 15 --timeout 3
"""

from cbmonitor.main import cli


if __name__ == "__main__":
    cli()
