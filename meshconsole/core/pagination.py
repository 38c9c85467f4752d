# -*- coding: utf-8 -*-
"""
分页工具
为Istio配置列表提供统一的分页与排序功能
"""

import logging
from enum import Enum
from typing import List, Any, Optional, Callable

from pydantic import BaseModel, Field


class SortOrder(str, Enum):
    """排序顺序"""

    ASC = "asc"
    DESC = "desc"


class PaginationRequest(BaseModel):
    """分页请求模型"""

    page: int = Field(1, ge=1, description="页码，从1开始")
    page_size: int = Field(20, ge=1, le=500, description="每页大小，最大500")
    sort_by: Optional[str] = Field(None, description="排序字段")
    sort_order: SortOrder = Field(SortOrder.ASC, description="排序顺序")


class PaginationResponse(BaseModel):
    """分页响应模型"""

    page: int = Field(..., description="当前页码")
    page_size: int = Field(..., description="每页大小")
    total_items: int = Field(..., description="总条目数")
    total_pages: int = Field(..., description="总页数")
    has_next: bool = Field(..., description="是否有下一页")
    has_prev: bool = Field(..., description="是否有上一页")


class PaginatedData(BaseModel):
    """分页数据模型"""

    items: List[Any] = Field(..., description="数据项列表")
    pagination: PaginationResponse = Field(..., description="分页信息")


class PaginationConfig:
    """分页配置"""

    # 控制台列表页的默认分页大小
    DEFAULT_PAGE_SIZE = 20

    # 最大分页大小
    MAX_PAGE_SIZE = 500


class Paginator:
    """分页器"""

    def __init__(self, config: Optional[PaginationConfig] = None):
        """
        初始化分页器

        Args:
            config: 分页配置
        """
        self.config = config or PaginationConfig()
        self.logger = logging.getLogger("meshconsole.Paginator")

    def paginate_list(
        self,
        items: List[Any],
        pagination: PaginationRequest,
        sort_func: Optional[Callable] = None,
    ) -> PaginatedData:
        """
        对列表进行分页

        Args:
            items: 要分页的项目列表
            pagination: 分页请求
            sort_func: 自定义排序函数 (items, sort_by, sort_order) -> items

        Returns:
            PaginatedData: 分页后的数据
        """
        total_items = len(items)

        # 排序失败时保留原始顺序
        if sort_func and pagination.sort_by:
            try:
                items = sort_func(items, pagination.sort_by, pagination.sort_order)
            except (KeyError, TypeError, ValueError) as e:
                self.logger.warning("排序失败，使用原始顺序: %s", str(e))

        page_size = min(pagination.page_size, self.config.MAX_PAGE_SIZE)
        total_pages = (
            (total_items + page_size - 1) // page_size if total_items > 0 else 1
        )
        # 超出范围的页码落到最后一页
        current_page = min(pagination.page, total_pages)

        start_idx = (current_page - 1) * page_size
        end_idx = min(start_idx + page_size, total_items)

        pagination_response = PaginationResponse(
            page=current_page,
            page_size=page_size,
            total_items=total_items,
            total_pages=total_pages,
            has_next=current_page < total_pages,
            has_prev=current_page > 1,
        )

        return PaginatedData(
            items=list(items[start_idx:end_idx]), pagination=pagination_response
        )


# 全局分页器实例
_global_paginator: Optional[Paginator] = None


def get_paginator() -> Paginator:
    """
    获取全局分页器实例

    Returns:
        Paginator: 全局分页器实例
    """
    global _global_paginator
    if _global_paginator is None:
        _global_paginator = Paginator()
    return _global_paginator
