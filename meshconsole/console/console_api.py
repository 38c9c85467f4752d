# -*- coding: utf-8 -*-
"""
控制台导航API
向前端外壳提供路由表、导航菜单以及路径解析
"""

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from meshconsole.core.error_handler import create_error_handler
from .routes import (
    DEFAULT_ROUTE,
    NAV_ITEMS,
    PATH_ROUTES,
    active_menu_item,
    match_route,
)

logger = logging.getLogger(__name__)


class MenuItemModel(BaseModel):
    """导航菜单项"""

    icon_class: str = Field(..., description="图标样式")
    title: str = Field(..., description="菜单标题")
    to: str = Field(..., description="目标路径")
    paths_active: List[str] = Field(
        default_factory=list, description="激活状态匹配正则"
    )


class NavigationData(BaseModel):
    default_route: str = Field(..., description="默认路由")
    items: List[MenuItemModel] = Field(default_factory=list, description="菜单项")


class NavigationResponse(BaseModel):
    """导航菜单响应模型"""

    success: bool = Field(..., description="请求是否成功")
    data: NavigationData = Field(..., description="导航菜单")
    message: str = Field(..., description="响应消息")


class RouteModel(BaseModel):
    path: str = Field(..., description="路由模式")
    component: str = Field(..., description="页面组件")


class RouteListResponse(BaseModel):
    """路由表响应模型"""

    success: bool = Field(..., description="请求是否成功")
    data: List[RouteModel] = Field(default_factory=list, description="路由表")
    total: int = Field(..., description="总数")
    message: str = Field(..., description="响应消息")


class RouteResolution(BaseModel):
    path: str = Field(..., description="规范化后的路径")
    route: str = Field(..., description="匹配的路由模式")
    component: str = Field(..., description="页面组件")
    params: Dict[str, str] = Field(default_factory=dict, description="路径参数")
    active_menu: Optional[str] = Field(None, description="激活的菜单项标题")


class RouteResolutionResponse(BaseModel):
    """路径解析响应模型"""

    success: bool = Field(..., description="请求是否成功")
    data: RouteResolution = Field(..., description="解析结果")
    message: str = Field(..., description="响应消息")


def build_navigation() -> NavigationData:
    """将静态菜单表转换为响应数据"""
    return NavigationData(
        default_route=DEFAULT_ROUTE,
        items=[
            MenuItemModel(
                icon_class=item.icon_class,
                title=item.title,
                to=item.to,
                paths_active=[pattern.pattern for pattern in item.paths_active],
            )
            for item in NAV_ITEMS
        ],
    )


def create_console_router() -> APIRouter:
    """
    创建控制台导航API路由

    Returns:
        配置好的APIRouter
    """
    router = APIRouter(prefix="/console", tags=["Console Navigation"])
    error_handler = create_error_handler(logger)

    @router.get("/navigation", response_model=NavigationResponse)
    async def get_navigation():
        """获取导航菜单"""
        return NavigationResponse(
            success=True, data=build_navigation(), message="获取导航菜单成功"
        )

    @router.get("/routes", response_model=RouteListResponse)
    async def get_routes():
        """获取路由表（按匹配优先级排列）"""
        routes = [
            RouteModel(path=route.path, component=route.component.value)
            for route in PATH_ROUTES
        ]
        return RouteListResponse(
            success=True,
            data=routes,
            total=len(routes),
            message=f"获取路由表成功，共 {len(routes)} 条",
        )

    @router.get("/resolve", response_model=RouteResolutionResponse)
    async def resolve_path(path: str = Query(..., description="待解析的路径")):
        """解析路径对应的页面和激活的菜单项"""
        route_match = match_route(path)
        if route_match is None:
            raise error_handler.handle_not_found(
                f"没有匹配的路由: {path}", object_type="控制台路由", operation="resolve"
            )

        menu_item = active_menu_item(path)
        logger.debug(
            "[控制台路由]路径解析成功 - 路径=%s, 页面=%s, 菜单=%s",
            route_match.path,
            route_match.route.component.value,
            menu_item.title if menu_item else None,
        )
        return RouteResolutionResponse(
            success=True,
            data=RouteResolution(
                path=route_match.path,
                route=route_match.route.path,
                component=route_match.route.component.value,
                params=dict(route_match.params),
                active_menu=menu_item.title if menu_item else None,
            ),
            message="路径解析成功",
        )

    return router
