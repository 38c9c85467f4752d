#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MeshConsole 主启动文件
服务网格可观测性控制台后端：导航路由表与Istio配置目录
"""

import argparse
import asyncio
import sys

import urllib3
from kubernetes.config.config_exception import ConfigException

from meshconsole.core.config import Settings
from meshconsole.core.logger import setup_logger
from meshconsole.modes.console_app import ConsoleAppMode


async def main():
    """主启动函数"""
    parser = argparse.ArgumentParser(description="MeshConsole")
    parser.add_argument("--port", type=int, default=8000, help="服务端口 (默认: 8000)")
    parser.add_argument("--host", default="0.0.0.0", help="服务地址 (默认: 0.0.0.0)")
    parser.add_argument("--config", help="配置文件路径")

    args = parser.parse_args()

    # 初始化配置
    settings = Settings(config_file=args.config)

    # 设置日志
    logger = setup_logger(settings.log_level)
    logger.info("启动 MeshConsole - 版本: %s", settings.version)

    app_mode = ConsoleAppMode(settings)
    try:
        await app_mode.start(host=args.host, port=args.port)
    except KeyboardInterrupt:
        logger.info("收到停止信号，正在关闭服务...")
    except (ConfigException, OSError) as e:
        logger.error("启动失败: %s", e)
        sys.exit(1)
    finally:
        await app_mode.stop()


def cli():
    """命令行入口"""
    urllib3.disable_warnings()
    asyncio.run(main())


if __name__ == "__main__":
    cli()
