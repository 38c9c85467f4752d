# -*- coding: utf-8 -*-
"""
Istio统一API路由注册器
汇总Istio配置相关的子路由器
"""

import logging

from fastapi import APIRouter

from .config_api import create_istio_config_router

logger = logging.getLogger(__name__)


def create_istio_router(mode_instance) -> APIRouter:
    """
    创建统一的Istio API路由器

    Args:
        mode_instance: 模式实例，提供settings与istio_fetcher

    Returns:
        APIRouter: 配置好的Istio API路由器
    """
    main_router = APIRouter()

    routers = [create_istio_config_router(mode_instance)]
    for router in routers:
        main_router.include_router(router)

    logger.info(
        "[Istio路由器]成功创建Istio API路由器 - 响应摘要: 子路由器数量=%d",
        len(routers),
    )
    return main_router
