"""
主程序入口

启动两个并发任务：
1. 集群采集循环
2. REST API 服务
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import uvicorn

from . import __version__
from .client import StatsClient
from .collector import run_collector
from .config import AppConfig, get_config, load_config, set_config
from .exceptions import ConfigError
from .poller import ClusterPoller
from .store import store

logger = logging.getLogger(__name__)


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# 第三方库日志级别
QUIET_LOGGERS = {
    "httpx": logging.WARNING,
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.WARNING,
}


def setup_logging(config: AppConfig):
    """配置日志：标准输出，可选追加到文件"""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if config.logging.file:
        log_path = Path(config.logging.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(str(log_path), encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )
    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """解析命令行参数（未指定的参数沿用配置文件）"""
    parser = argparse.ArgumentParser(
        prog="cbmonitor",
        description="Poll Couchbase clusters and serve their latest statistics",
    )
    parser.add_argument("--config", default=None,
                        help="Configuration file path (default: $CBMONITOR_CONFIG_PATH or ./config.yaml)")
    parser.add_argument("--interval", type=float, default=None,
                        help="Monitoring interval in seconds")
    parser.add_argument("--timeout", type=float, default=None,
                        help="Monitoring call timeout in seconds")
    parser.add_argument("--password", default="",
                        help="Default password for clusters without one in the config file")
    parser.add_argument("--port", type=int, default=None,
                        help="API listen port")
    return parser.parse_args(argv)


def apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """用命令行参数覆盖配置"""
    collector = config.collector
    if args.interval is not None:
        if args.interval <= 0:
            raise ConfigError(f"--interval must be positive, got {args.interval}")
        collector = collector.model_copy(update={"interval": args.interval})
    if args.timeout is not None:
        if args.timeout <= 0:
            raise ConfigError(f"--timeout must be positive, got {args.timeout}")
        collector = collector.model_copy(update={"timeout": args.timeout})

    api = config.api
    if args.port is not None:
        api = api.model_copy(update={"port": args.port})

    return config.model_copy(update={"collector": collector, "api": api})


def build_pollers(config: AppConfig, client: StatsClient, default_password: str = "") -> List[ClusterPoller]:
    """为每个集群创建采集器"""
    pollers = []
    for target in config.build_targets(default_password):
        logger.info(f"\t- {target.name} @ {target.base_url}")
        pollers.append(ClusterPoller(target, client, timeout=config.collector.timeout))
    return pollers


async def run_api_server():
    """运行 API 服务器"""
    from .api.app import create_app

    config = get_config()
    app = create_app(store=store, cors_origins=config.api.cors_origins)

    server_config = uvicorn.Config(
        app=app,
        host=config.api.host,
        port=config.api.port,
        log_level="info",
        access_log=False
    )
    server = uvicorn.Server(server_config)
    await server.serve()


async def main(config: AppConfig, pollers: List[ClusterPoller], client: StatsClient):
    """主函数：启动所有任务"""
    logger.info(f"API listening on {config.api.host}:{config.api.port}")

    try:
        await asyncio.gather(
            run_collector(
                pollers,
                store,
                interval=config.collector.interval,
                max_concurrency=config.collector.max_concurrency,
            ),
            run_api_server(),
        )
    except asyncio.CancelledError:
        logger.info("Tasks cancelled, shutting down...")
    finally:
        await client.aclose()


def cli(argv: Optional[List[str]] = None):
    """命令行入口"""
    args = parse_args(argv)

    try:
        config = apply_overrides(load_config(args.config), args)
    except ConfigError as e:
        print(f"Cannot read configuration: {e}", file=sys.stderr)
        sys.exit(1)

    set_config(config)
    setup_logging(config)
    logger.info("=" * 60)
    logger.info(f"Couchbase Cluster Monitor v{__version__}")
    logger.info("=" * 60)

    client = StatsClient.create(config.collector.timeout)
    try:
        pollers = build_pollers(config, client, args.password)
    except ConfigError as e:
        logger.error(f"Cannot create monitor: {e}")
        sys.exit(1)
    logger.info(f"Found {len(pollers)} clusters")

    try:
        asyncio.run(main(config, pollers, client))
    except KeyboardInterrupt:
        print("\nShutdown requested, exiting...")
        sys.exit(0)


if __name__ == "__main__":
    cli()
