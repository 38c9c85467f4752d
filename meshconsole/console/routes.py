# -*- coding: utf-8 -*-
"""
控制台路由表与导航菜单
静态配置，在导入时构建一次，运行期间只读
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple
from urllib.parse import unquote, urlsplit


class PageComponent(str, Enum):
    """控制台页面"""

    OVERVIEW = "OverviewPage"
    GRAPH = "GraphRouteHandler"
    APP_LIST = "AppListPage"
    APP_DETAILS = "AppDetailsPage"
    WORKLOAD_LIST = "WorkloadListPage"
    WORKLOAD_DETAILS = "WorkloadDetailsPage"
    SERVICE_LIST = "ServiceListPage"
    SERVICE_DETAILS = "ServiceDetailsPageContainer"
    ISTIO_CONFIG_LIST = "IstioConfigListPage"
    ISTIO_CONFIG_DETAILS = "IstioConfigDetailsPage"
    SERVICE_JAEGER = "ServiceJaegerPage"


_PARAM_SEGMENT = re.compile(r"^:(\w+)$")


def _compile_path(path: str) -> re.Pattern:
    """
    将路由模式编译为正则

    ":name" 段捕获一个路径段；模式匹配路径的前缀段，其后允许出现更多路径段。
    """
    parts = []
    for segment in path.strip("/").split("/"):
        param = _PARAM_SEGMENT.match(segment)
        if param:
            parts.append(f"(?P<{param.group(1)}>[^/]+)")
        else:
            parts.append(re.escape(segment))
    return re.compile("^/" + "/".join(parts) + "(?:/.*)?$")


@dataclass(frozen=True)
class PathRoute:
    """路由模式与页面的绑定"""

    path: str
    component: PageComponent
    pattern: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "pattern", _compile_path(self.path))


@dataclass(frozen=True)
class RouteMatch:
    """路由匹配结果"""

    route: PathRoute
    path: str
    params: Mapping[str, str]


@dataclass(frozen=True)
class MenuItem:
    """导航菜单项"""

    icon_class: str
    title: str
    to: str
    paths_active: Tuple[re.Pattern, ...] = ()


DEFAULT_ROUTE = "/overview"

NAV_ITEMS: Tuple[MenuItem, ...] = (
    MenuItem(
        icon_class="fa fa-tachometer",
        title="Overview",
        to="/overview",
        paths_active=(re.compile(r"^/overview/(.*)"),),
    ),
    MenuItem(
        icon_class="fa pficon-topology",
        title="Graph",
        to="/graph/namespaces?keepState=true",
        paths_active=(re.compile(r"^/graph/(.*)"),),
    ),
    MenuItem(
        icon_class="fa pficon-applications",
        title="Applications",
        to="/applications",
        paths_active=(re.compile(r"^/namespaces/(.*)/applications/(.*)"),),
    ),
    MenuItem(
        icon_class="fa pficon-bundle",
        title="Workloads",
        to="/workloads",
        paths_active=(re.compile(r"^/namespaces/(.*)/workloads/(.*)"),),
    ),
    MenuItem(
        icon_class="fa pficon-service",
        title="Services",
        to="/services",
        paths_active=(re.compile(r"^/namespaces/(.*)/services/(.*)"),),
    ),
    MenuItem(
        icon_class="fa pficon-template",
        title="Istio Config",
        to="/istio",
        paths_active=(re.compile(r"^/namespaces/(.*)/istio/(.*)"),),
    ),
    MenuItem(
        icon_class="fa fa-paw",
        title="Distributed Tracing",
        to="/jaeger",
    ),
)

# 顺序即优先级：更具体的模式必须排在更通用的模式之前
PATH_ROUTES: Tuple[PathRoute, ...] = (
    PathRoute("/overview", PageComponent.OVERVIEW),
    PathRoute(
        "/graph/node/namespaces/:namespace/applications/:app/versions/:version",
        PageComponent.GRAPH,
    ),
    PathRoute("/graph/node/namespaces/:namespace/applications/:app", PageComponent.GRAPH),
    PathRoute("/graph/node/namespaces/:namespace/services/:service", PageComponent.GRAPH),
    PathRoute(
        "/graph/node/namespaces/:namespace/workloads/:workload", PageComponent.GRAPH
    ),
    PathRoute("/graph/namespaces", PageComponent.GRAPH),
    PathRoute("/namespaces/:namespace/services/:service", PageComponent.SERVICE_DETAILS),
    PathRoute(
        "/namespaces/:namespace/istio/:objectType/:objectSubtype/:object",
        PageComponent.ISTIO_CONFIG_DETAILS,
    ),
    PathRoute(
        "/namespaces/:namespace/istio/:objectType/:object",
        PageComponent.ISTIO_CONFIG_DETAILS,
    ),
    PathRoute("/services", PageComponent.SERVICE_LIST),
    PathRoute("/applications", PageComponent.APP_LIST),
    PathRoute("/namespaces/:namespace/applications/:app", PageComponent.APP_DETAILS),
    PathRoute("/workloads", PageComponent.WORKLOAD_LIST),
    PathRoute(
        "/namespaces/:namespace/workloads/:workload", PageComponent.WORKLOAD_DETAILS
    ),
    PathRoute("/istio", PageComponent.ISTIO_CONFIG_LIST),
    PathRoute("/jaeger", PageComponent.SERVICE_JAEGER),
)


def _location_path(location: str) -> str:
    """去掉查询串和片段，并去掉末尾的斜杠"""
    path = urlsplit(location).path or "/"
    if len(path) > 1:
        path = path.rstrip("/")
    return path


def match_route(location: str) -> Optional[RouteMatch]:
    """
    按路由表顺序匹配路径，返回第一个匹配的路由

    Args:
        location: 浏览器地址中的路径，可以包含查询串

    Returns:
        Optional[RouteMatch]: 匹配结果，没有路由匹配时为None
    """
    path = _location_path(location)
    for route in PATH_ROUTES:
        matched = route.pattern.match(path)
        if matched:
            params = {key: unquote(value) for key, value in matched.groupdict().items()}
            return RouteMatch(route=route, path=path, params=MappingProxyType(params))
    return None


def is_menu_item_active(item: MenuItem, location: str) -> bool:
    """当前路径等于菜单目标路径或匹配任一激活正则时，菜单项处于激活状态"""
    path = _location_path(location)
    if path == _location_path(item.to):
        return True
    return any(pattern.search(path) for pattern in item.paths_active)


def active_menu_item(location: str) -> Optional[MenuItem]:
    """返回第一个处于激活状态的菜单项"""
    for item in NAV_ITEMS:
        if is_menu_item_active(item, location):
            return item
    return None
