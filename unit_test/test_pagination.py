# -*- coding: utf-8 -*-
"""
分页功能测试
"""

import pytest
from pydantic import ValidationError

from meshconsole.core.pagination import (
    Paginator,
    PaginationRequest,
    PaginationConfig,
    SortOrder,
    get_paginator,
)


def sort_by_value(items, sort_by, sort_order):
    return sorted(
        items, key=lambda item: item[sort_by], reverse=sort_order == SortOrder.DESC
    )


class TestPaginator:
    """分页器测试"""

    def setup_method(self):
        """测试前准备"""
        self.paginator = Paginator()

        # 创建测试数据
        self.test_items = [{"name": f"item-{i:03d}", "value": i} for i in range(100)]

    def test_basic_pagination(self):
        """测试基本分页功能"""
        pagination = PaginationRequest(page=1, page_size=10)
        result = self.paginator.paginate_list(self.test_items, pagination)

        assert len(result.items) == 10
        assert result.pagination.page == 1
        assert result.pagination.page_size == 10
        assert result.pagination.total_items == 100
        assert result.pagination.total_pages == 10
        assert result.pagination.has_next is True
        assert result.pagination.has_prev is False

    def test_last_page_pagination(self):
        """测试最后一页分页"""
        pagination = PaginationRequest(page=10, page_size=10)
        result = self.paginator.paginate_list(self.test_items, pagination)

        assert len(result.items) == 10
        assert result.pagination.page == 10
        assert result.pagination.has_next is False
        assert result.pagination.has_prev is True

    def test_partial_last_page(self):
        """测试不完整的最后一页"""
        pagination = PaginationRequest(page=4, page_size=30)
        result = self.paginator.paginate_list(self.test_items, pagination)

        assert len(result.items) == 10  # 100 - 3*30 = 10
        assert result.pagination.page == 4
        assert result.pagination.total_pages == 4
        assert result.pagination.has_next is False

    def test_empty_list_pagination(self):
        """测试空列表分页"""
        pagination = PaginationRequest(page=1, page_size=10)
        result = self.paginator.paginate_list([], pagination)

        assert len(result.items) == 0
        assert result.pagination.total_items == 0
        assert result.pagination.total_pages == 1
        assert result.pagination.has_next is False
        assert result.pagination.has_prev is False

    def test_sorting(self):
        """测试排序功能"""
        pagination = PaginationRequest(
            page=1, page_size=5, sort_by="value", sort_order=SortOrder.DESC
        )
        result = self.paginator.paginate_list(self.test_items, pagination, sort_by_value)

        # 检查是否按value降序排列
        values = [item["value"] for item in result.items]
        assert values == [99, 98, 97, 96, 95]

    def test_sort_func_ignored_without_sort_by(self):
        """未指定排序字段时不调用排序函数"""
        items = list(reversed(self.test_items))
        pagination = PaginationRequest(page=1, page_size=3)
        result = self.paginator.paginate_list(items, pagination, sort_by_value)

        assert [item["value"] for item in result.items] == [99, 98, 97]

    def test_sort_failure_keeps_original_order(self):
        """排序失败时保留原始顺序"""
        pagination = PaginationRequest(page=1, page_size=3, sort_by="missing_field")
        result = self.paginator.paginate_list(self.test_items, pagination, sort_by_value)

        assert [item["value"] for item in result.items] == [0, 1, 2]
        assert result.pagination.total_items == 100

    def test_max_page_size_limit(self):
        """测试最大页面大小限制"""
        config = PaginationConfig()
        config.MAX_PAGE_SIZE = 20

        paginator = Paginator(config)
        pagination = PaginationRequest(page=1, page_size=100)  # 请求超过限制

        result = paginator.paginate_list(self.test_items, pagination)

        # 应该被限制为最大页面大小
        assert result.pagination.page_size == 20
        assert len(result.items) == 20

    def test_invalid_page_number(self):
        """测试无效页码处理"""
        pagination = PaginationRequest(page=999, page_size=10)
        result = self.paginator.paginate_list(self.test_items, pagination)

        # 应该返回最后一页
        assert result.pagination.page == 10
        assert len(result.items) == 10
        assert result.items[0]["name"] == "item-090"


class TestPaginationRequest:
    """分页请求模型测试"""

    def test_defaults(self):
        """测试默认分页参数"""
        pagination = PaginationRequest()

        assert pagination.page == 1
        assert pagination.page_size == PaginationConfig.DEFAULT_PAGE_SIZE
        assert pagination.sort_by is None
        assert pagination.sort_order == SortOrder.ASC

    def test_page_size_upper_bound(self):
        """测试每页数量上限"""
        with pytest.raises(ValidationError):
            PaginationRequest(page_size=PaginationConfig.MAX_PAGE_SIZE + 1)

    def test_page_lower_bound(self):
        """测试页码下限"""
        with pytest.raises(ValidationError):
            PaginationRequest(page=0)


class TestPaginationConfig:
    """分页配置测试"""

    def test_default_config(self):
        """测试默认配置"""
        config = PaginationConfig()

        assert config.DEFAULT_PAGE_SIZE == 20
        assert config.MAX_PAGE_SIZE == 500

    def test_global_paginator_is_shared(self):
        """测试全局分页器共享"""
        assert get_paginator() is get_paginator()


if __name__ == "__main__":
    pytest.main([__file__])
