# -*- coding: utf-8 -*-
"""
日志配置模块
统一控制台日志输出，并压低第三方客户端库的日志级别
"""

import logging
import sys
from typing import Optional, Iterable

# 调试级别下输出过多的第三方日志
NOISY_LOGGERS = ("kubernetes.client.rest", "urllib3.connectionpool")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(level: str = "INFO", name: Optional[str] = None) -> logging.Logger:
    """
    设置日志配置

    Args:
        level: 日志级别名称，无效时回退到INFO
        name: 日志器名称，默认为meshconsole根日志器

    Returns:
        logging.Logger: 配置好的日志器
    """
    logger = logging.getLogger(name or "meshconsole")
    log_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(log_level)

    # 避免重复添加handler，但允许重新设置级别
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(log_level)
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(console_handler)

    quiet_third_party_loggers(NOISY_LOGGERS)

    return logger


def quiet_third_party_loggers(
    names: Iterable[str], level: int = logging.WARNING
) -> None:
    """将第三方库日志器的级别限制在指定级别"""
    for logger_name in names:
        logging.getLogger(logger_name).setLevel(level)
