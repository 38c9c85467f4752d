# -*- coding: utf-8 -*-
"""
Istio配置API测试
使用Mock获取器测试列表与详情接口
"""

import threading
from unittest.mock import Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from kubernetes.client.exceptions import ApiException

from meshconsole.core.config import Settings
from meshconsole.modes.istio.fetcher import IstioConfigFetchResult
from meshconsole.modes.istio.models import (
    DestinationRule,
    DestinationRules,
    Gateway,
    IstioAdapter,
    IstioConfigList,
    Namespace,
    ObjectCheck,
    ObjectValidation,
    ResourcePermissions,
    VirtualService,
    VirtualServices,
)
from meshconsole.modes.istio.router import create_istio_router

GATEWAY_PERMISSIONS = ResourcePermissions(create=True, update=True, delete=False)


def bookinfo_result(include_permissions=True):
    permissions = {"gateways": GATEWAY_PERMISSIONS} if include_permissions else {}
    config_list = IstioConfigList(
        namespace=Namespace(name="bookinfo"),
        gateways=[Gateway(name="bookinfo-gateway")],
        virtual_services=VirtualServices(
            items=[VirtualService(name="bookinfo"), VirtualService(name="reviews")]
        ),
        destination_rules=DestinationRules(items=[DestinationRule(name="reviews")]),
        permissions=permissions,
    )
    validations = [
        ObjectValidation(name="bookinfo-gateway", object_type="gateway", valid=True),
        ObjectValidation(
            name="reviews",
            object_type="virtualservice",
            valid=False,
            checks=[
                ObjectCheck(message="no routes", severity="error", path="spec"),
                ObjectCheck(message="odd host", severity="warning", path="spec/hosts"),
            ],
        ),
    ]
    return IstioConfigFetchResult(config_list=config_list, validations=validations)


def istio_system_result(include_permissions=True):
    config_list = IstioConfigList(
        namespace=Namespace(name="istio-system"),
        gateways=[Gateway(name="ingressgateway")],
    )
    return IstioConfigFetchResult(config_list=config_list)


RESULTS = {"bookinfo": bookinfo_result, "istio-system": istio_system_result}


def get_istio_config_list(namespace, object_types=None, include_permissions=True):
    return RESULTS[namespace](include_permissions)


class TestIstioConfigAPI:
    """Istio配置API测试"""

    def setup_method(self):
        """测试设置"""
        self.fetcher = Mock()
        self.fetcher.get_istio_config_list.side_effect = get_istio_config_list
        self.fetcher.list_namespaces.return_value = ["bookinfo", "istio-system"]

        mode = Mock()
        mode.settings = Settings()
        mode.istio_fetcher = self.fetcher

        app = FastAPI()
        app.include_router(create_istio_router(mode))
        self.client = TestClient(app)

    def list_config(self, **body):
        return self.client.post("/istio/config/list", json=body)

    def test_list_single_namespace(self):
        """测试获取单个命名空间的配置列表"""
        response = self.list_config(namespaces=["bookinfo"])

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["total"] == 4
        assert [(item["type"], item["name"]) for item in data["data"]] == [
            ("gateway", "bookinfo-gateway"),
            ("virtualservice", "bookinfo"),
            ("virtualservice", "reviews"),
            ("destinationrule", "reviews"),
        ]
        self.fetcher.list_namespaces.assert_not_called()

    def test_namespaces_fetched_concurrently(self):
        """测试多个命名空间并发获取且结果保持顺序"""
        barrier = threading.Barrier(2, timeout=5)

        def wait_for_both(namespace, object_types=None, include_permissions=True):
            # 两个命名空间的请求必须同时在执行中
            barrier.wait()
            return get_istio_config_list(namespace, object_types, include_permissions)

        self.fetcher.get_istio_config_list.side_effect = wait_for_both

        response = self.list_config(namespaces=["istio-system", "bookinfo"])

        assert response.status_code == 200
        data = response.json()
        assert data["data"][0]["namespace"] == "istio-system"
        assert [item["namespace"] for item in data["data"][1:]] == ["bookinfo"] * 4
        assert list(data["permissions"]) == ["istio-system", "bookinfo"]

    def test_list_wire_format(self):
        """测试列表项的驼峰字段格式"""
        response = self.list_config(namespaces=["bookinfo"])
        item = response.json()["data"][2]

        assert item["namespace"] == "bookinfo"
        assert item["virtualService"]["name"] == "reviews"
        assert item["virtualService"]["createdAt"] == ""
        assert item["validation"]["objectType"] == "virtualservice"
        assert item["validation"]["checks"][0]["severity"] == "error"

    def test_validation_attached_by_type_and_name(self):
        """测试验证结果按类型和名称关联"""
        items = self.list_config(namespaces=["bookinfo"]).json()["data"]

        # 同名的DestinationRule不应获得VirtualService的验证结果
        assert items[3]["validation"] is None
        assert items[0]["validation"]["valid"] is True

    def test_list_all_namespaces(self):
        """测试未指定命名空间时获取全部命名空间"""
        response = self.list_config()

        data = response.json()
        assert data["total"] == 5
        assert data["data"][-1]["namespace"] == "istio-system"
        self.fetcher.list_namespaces.assert_called_once()

    def test_filter_by_name(self):
        """测试按名称过滤"""
        data = self.list_config(namespaces=["bookinfo"], names=["bookinfo"]).json()

        assert [item["name"] for item in data["data"]] == ["bookinfo-gateway", "bookinfo"]

    def test_filter_by_validation(self):
        """测试按验证状态过滤"""
        data = self.list_config(
            namespaces=["bookinfo"], config_validation=["Not Valid", "Warning"]
        ).json()

        # 无效且带警告的对象出现两次
        assert [item["name"] for item in data["data"]] == ["reviews", "reviews"]
        assert data["total"] == 2

    def test_filter_not_validated(self):
        """测试过滤未验证的对象"""
        data = self.list_config(
            namespaces=["bookinfo"], config_validation=["Not Validated"]
        ).json()

        assert [item["type"] for item in data["data"]] == [
            "virtualservice",
            "destinationrule",
        ]

    def test_invalid_validation_status(self):
        """测试无效的验证状态参数"""
        response = self.list_config(config_validation=["Broken"])
        assert response.status_code == 422

    def test_without_validations(self):
        """测试不附加验证结果"""
        data = self.list_config(
            namespaces=["bookinfo"], include_validations=False
        ).json()

        assert all(item["validation"] is None for item in data["data"])

    def test_permissions(self):
        """测试返回命名空间权限"""
        data = self.list_config(namespaces=["bookinfo"]).json()

        assert data["permissions"]["bookinfo"]["gateways"] == {
            "create": True,
            "update": True,
            "delete": False,
        }

    def test_permissions_skipped(self):
        """测试跳过权限检查"""
        data = self.list_config(
            namespaces=["bookinfo"], include_permissions=False
        ).json()

        assert data["permissions"] == {}
        self.fetcher.get_istio_config_list.assert_called_once_with(
            "bookinfo", None, False
        )

    def test_pagination_and_sort(self):
        """测试分页与排序"""
        data = self.list_config(
            namespaces=["bookinfo", "istio-system"],
            pagination={"page": 2, "page_size": 2, "sort_by": "name"},
        ).json()

        assert [item["name"] for item in data["data"]] == ["ingressgateway", "reviews"]
        assert data["total"] == 5
        assert data["pagination"]["total_pages"] == 3
        assert data["pagination"]["has_next"] is True

    def test_sort_by_validation_descending(self):
        """测试按验证状态降序排序"""
        data = self.list_config(
            namespaces=["bookinfo"],
            pagination={"sort_by": "validation", "sort_order": "desc"},
        ).json()

        assert data["data"][-1]["name"] == "reviews"

    def test_invalid_sort_field(self):
        """测试不支持的排序字段"""
        response = self.list_config(pagination={"sort_by": "age"})

        assert response.status_code == 400
        assert response.json()["detail"]["error_type"] == "validation_error"

    def test_unknown_object_type(self):
        """测试不支持的配置类型"""
        self.fetcher.get_istio_config_list.side_effect = ValueError(
            "不支持的Istio配置类型: sidecars"
        )

        response = self.list_config(namespaces=["bookinfo"], object_types=["sidecars"])

        assert response.status_code == 400
        assert "sidecars" in response.json()["detail"]["message"]

    def test_forbidden(self):
        """测试权限不足时返回403"""
        self.fetcher.get_istio_config_list.side_effect = ApiException(
            status=403, reason="Forbidden"
        )

        response = self.list_config(namespaces=["bookinfo"])

        assert response.status_code == 403
        detail = response.json()["detail"]
        assert detail["error_type"] == "auth_error"
        assert detail["details"]["namespace"] == "bookinfo"

    def test_detail(self):
        """测试获取配置详情"""
        validation = ObjectValidation(
            name="bookinfo-gateway", object_type="gateway", valid=True
        )
        self.fetcher.get_istio_object.return_value = (
            Gateway(name="bookinfo-gateway"),
            validation,
        )
        self.fetcher.get_permissions.return_value = {"gateways": GATEWAY_PERMISSIONS}

        response = self.client.post(
            "/istio/config/detail",
            json={
                "namespace": "bookinfo",
                "object_type": "gateways",
                "object_name": "bookinfo-gateway",
            },
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["item"]["type"] == "gateway"
        assert data["item"]["gateway"]["name"] == "bookinfo-gateway"
        assert data["item"]["validation"]["valid"] is True
        assert data["permissions"]["create"] is True
        self.fetcher.get_istio_object.assert_called_once_with(
            "bookinfo", "gateways", "bookinfo-gateway", None
        )
        self.fetcher.get_permissions.assert_called_once_with(
            "bookinfo", ["gateways"], None
        )

    def test_detail_adapter_permissions_use_subtype(self):
        """测试适配器详情按请求的子类型检查权限"""
        adapter = IstioAdapter(name="handler", adapter="stdio", adapters="stdios")
        self.fetcher.get_istio_object.return_value = (adapter, None)
        self.fetcher.get_permissions.return_value = {
            "adapters": ResourcePermissions(update=True)
        }

        response = self.client.post(
            "/istio/config/detail",
            json={
                "namespace": "istio-system",
                "object_type": "adapters",
                "object_subtype": "stdios",
                "object_name": "handler",
            },
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["item"]["adapter"]["adapters"] == "stdios"
        assert data["permissions"]["update"] is True
        self.fetcher.get_permissions.assert_called_once_with(
            "istio-system", ["adapters"], "stdios"
        )

    def test_detail_not_found(self):
        """测试配置不存在时返回404"""
        self.fetcher.get_istio_object.side_effect = ApiException(
            status=404, reason="Not Found"
        )

        response = self.client.post(
            "/istio/config/detail",
            json={
                "namespace": "bookinfo",
                "object_type": "gateways",
                "object_name": "missing",
            },
        )

        assert response.status_code == 404
        assert response.json()["detail"]["details"]["object_name"] == "missing"

    def test_detail_missing_subtype(self):
        """测试适配器缺少子类型时返回400"""
        self.fetcher.get_istio_object.side_effect = ValueError("adapters需要指定子类型")

        response = self.client.post(
            "/istio/config/detail",
            json={
                "namespace": "istio-system",
                "object_type": "adapters",
                "object_name": "whitelist",
            },
        )

        assert response.status_code == 400


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
