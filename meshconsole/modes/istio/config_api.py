"""
Istio Config API Module

This module serves the Istio configuration catalog of the console: the
flattened, filtered and paginated configuration list across namespaces and
the details of a single configuration object.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional, List, Dict

from fastapi import APIRouter
from pydantic import BaseModel, Field

from meshconsole.core.async_utils import ConcurrentResourceFetcher
from meshconsole.core.error_handler import create_error_handler, with_timeout
from meshconsole.core.pagination import (
    PaginationRequest,
    PaginationResponse,
    SortOrder,
    get_paginator,
)
from .config_list import (
    IstioSortField,
    ValidationStatus,
    attach_validations,
    filter_by_config_validation,
    filter_by_name,
    sort_istio_items,
    to_istio_items,
)
from .models import IstioConfigItem, ResourcePermissions, make_istio_item

logger = logging.getLogger(__name__)


class IstioConfigListRequest(BaseModel):
    """Istio配置列表请求模型"""

    namespaces: List[str] = Field(
        default_factory=list, description="命名空间列表，为空则查询所有可见命名空间"
    )
    names: List[str] = Field(
        default_factory=list, description="名称过滤词，包含任一过滤词即匹配"
    )
    config_validation: List[ValidationStatus] = Field(
        default_factory=list, description="验证状态过滤"
    )
    object_types: List[str] = Field(
        default_factory=list, description="配置类型（复数名称），为空则查询全部"
    )
    include_permissions: bool = Field(True, description="是否返回操作权限")
    include_validations: bool = Field(True, description="是否附加验证结果")
    pagination: PaginationRequest = Field(
        default_factory=PaginationRequest, description="分页与排序"
    )


class IstioConfigDetailRequest(BaseModel):
    """Istio配置详情请求模型"""

    namespace: str = Field(..., description="命名空间")
    object_type: str = Field(..., description="配置类型（复数名称），如 gateways")
    object_name: str = Field(..., description="对象名称")
    object_subtype: Optional[str] = Field(
        None, description="适配器/模板的资源复数名称，如 listcheckers"
    )


class IstioConfigListResponse(BaseModel):
    """Istio配置列表响应模型"""

    success: bool = Field(..., description="请求是否成功")
    data: List[IstioConfigItem] = Field(default_factory=list, description="配置列表")
    total: int = Field(..., description="过滤后的总数")
    pagination: Optional[PaginationResponse] = Field(None, description="分页信息")
    permissions: Dict[str, Dict[str, ResourcePermissions]] = Field(
        default_factory=dict, description="命名空间 -> 配置类型 -> 操作权限"
    )
    message: str = Field(..., description="响应消息")


class IstioConfigDetail(BaseModel):
    """Istio配置详情模型"""

    namespace: str = Field(..., description="命名空间")
    object_type: str = Field(..., description="配置类型")
    object_subtype: Optional[str] = Field(None, description="配置子类型")
    item: IstioConfigItem = Field(..., description="配置对象及其验证结果")
    permissions: ResourcePermissions = Field(
        default_factory=ResourcePermissions, description="操作权限"
    )


class IstioConfigDetailResponse(BaseModel):
    """Istio配置详情响应模型"""

    success: bool = Field(..., description="请求是否成功")
    data: Optional[IstioConfigDetail] = Field(None, description="配置详情")
    message: str = Field(..., description="响应消息")


def _sort_func(items, sort_by: str, sort_order: SortOrder):
    return sort_istio_items(items, sort_by, ascending=sort_order == SortOrder.ASC)


def create_istio_config_router(mode_instance) -> APIRouter:
    """
    创建Istio配置API路由

    Args:
        mode_instance: 模式实例，提供settings与istio_fetcher

    Returns:
        配置好的APIRouter
    """
    router = APIRouter(prefix="/istio/config", tags=["Istio Config"])
    error_handler = create_error_handler(logger)
    paginator = get_paginator()

    # kubernetes客户端为同步调用，放入线程池执行
    resource_fetcher = ConcurrentResourceFetcher(
        max_workers=mode_instance.settings.istio.max_concurrent_requests
    )

    @with_timeout(mode_instance.settings.istio.request_timeout)
    async def run_blocking(func, *args):
        return await resource_fetcher.run(func, *args)

    @router.post("/list", response_model=IstioConfigListResponse)
    async def list_istio_config(request: IstioConfigListRequest):
        """获取Istio配置列表"""
        start_time = datetime.now()
        fetcher = mode_instance.istio_fetcher

        sort_by = request.pagination.sort_by
        if sort_by and sort_by not in {field.value for field in IstioSortField}:
            raise error_handler.handle_validation_error(
                f"不支持的排序字段: {sort_by}", operation="list"
            )

        logger.info(
            "[Istio配置列表][%s]开始获取配置列表 - 请求参数: names=%s, config_validation=%s, object_types=%s",
            ",".join(request.namespaces) or "全部命名空间",
            request.names,
            [status.value for status in request.config_validation],
            request.object_types,
        )

        try:
            namespaces = request.namespaces or await run_blocking(
                fetcher.list_namespaces
            )

            # 各命名空间并发获取，结果保持命名空间顺序
            results = await asyncio.gather(
                *(
                    run_blocking(
                        fetcher.get_istio_config_list,
                        namespace,
                        request.object_types or None,
                        request.include_permissions,
                    )
                    for namespace in namespaces
                )
            )

            items = []
            permissions = {}
            for namespace, result in zip(namespaces, results):
                config_list = filter_by_name(result.config_list, request.names)
                namespace_items = to_istio_items(config_list)
                if request.include_validations:
                    namespace_items = attach_validations(
                        namespace_items, result.validations
                    )
                items.extend(namespace_items)
                if request.include_permissions:
                    permissions[namespace] = dict(config_list.permissions)

        except ValueError as e:
            raise error_handler.handle_validation_error(str(e), operation="list")
        except Exception as e:
            raise error_handler.handle_k8s_exception(
                e, namespace=",".join(request.namespaces) or None, operation="list"
            )

        items = filter_by_config_validation(items, request.config_validation)
        paged = paginator.paginate_list(items, request.pagination, _sort_func)

        processing_time = (datetime.now() - start_time).total_seconds()
        logger.info(
            "[Istio配置列表][%s]成功获取配置列表 - 响应摘要: 命名空间数=%d, 总数=%d, 当前页=%d, 处理时间=%.2fs",
            ",".join(namespaces),
            len(namespaces),
            len(items),
            paged.pagination.page,
            processing_time,
        )
        if processing_time > 3.0:
            logger.warning(
                "[Istio配置列表]列表查询耗时较长 - 处理时间=%.2fs, 建议缩小命名空间范围",
                processing_time,
            )

        return IstioConfigListResponse(
            success=True,
            data=paged.items,
            total=len(items),
            pagination=paged.pagination,
            permissions=permissions,
            message=f"获取Istio配置列表成功，共 {len(items)} 个",
        )

    @router.post("/detail", response_model=IstioConfigDetailResponse)
    async def get_istio_config_detail(request: IstioConfigDetailRequest):
        """获取Istio配置详情"""
        fetcher = mode_instance.istio_fetcher
        logger.info(
            "[Istio配置详情][%s]开始获取配置详情 - 请求参数: object_type=%s, object_subtype=%s, object_name=%s",
            request.namespace,
            request.object_type,
            request.object_subtype,
            request.object_name,
        )

        try:
            payload, validation = await run_blocking(
                fetcher.get_istio_object,
                request.namespace,
                request.object_type,
                request.object_name,
                request.object_subtype,
            )
            permissions = await run_blocking(
                fetcher.get_permissions,
                request.namespace,
                [request.object_type],
                request.object_subtype,
            )
        except ValueError as e:
            raise error_handler.handle_validation_error(
                str(e),
                namespace=request.namespace,
                object_type=request.object_type,
                operation="detail",
            )
        except Exception as e:
            raise error_handler.handle_k8s_exception(
                e,
                namespace=request.namespace,
                object_type=request.object_type,
                object_name=request.object_name,
                operation="detail",
            )

        detail = IstioConfigDetail(
            namespace=request.namespace,
            object_type=request.object_type,
            object_subtype=request.object_subtype,
            item=make_istio_item(request.namespace, payload, validation),
            permissions=permissions.get(request.object_type, ResourcePermissions()),
        )
        return IstioConfigDetailResponse(
            success=True, data=detail, message="获取Istio配置详情成功"
        )

    return router
