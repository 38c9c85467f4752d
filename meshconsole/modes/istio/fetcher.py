# -*- coding: utf-8 -*-
"""
Istio配置获取模块
通过Kubernetes API按命名空间获取Istio配置对象，并计算当前用户的操作权限
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Sequence, Tuple

from kubernetes import client
from kubernetes.client.exceptions import ApiException
from pydantic import ValidationError

from meshconsole.core.async_utils import ConcurrentResourceFetcher
from meshconsole.core.config import IstioConfig
from .models import (
    ISTIO_ITEM_TYPES,
    ISTIO_TYPE_DICT,
    DestinationRules,
    IstioConfigList,
    IstioModel,
    Namespace,
    ObjectValidation,
    ResourcePermissions,
    VirtualServices,
)
from .utils.istio_parser import IstioParser

logger = logging.getLogger(__name__)

# 权限字段 -> Kubernetes动词
PERMISSION_VERBS = (("create", "create"), ("update", "patch"), ("delete", "delete"))

# 资源复数名称 -> 列表项类型，按列表展开顺序排列；Kind名称的小写即列表项类型
OBJECT_TYPES = tuple(
    (ISTIO_TYPE_DICT[kind], item_type)
    for item_type in ISTIO_ITEM_TYPES
    for kind in ISTIO_TYPE_DICT
    if kind.lower() == item_type
)

SUBTYPED_OBJECT_TYPES = ("adapters", "templates")

NETWORKING_OBJECT_TYPES = {
    "gateways",
    "virtualservices",
    "destinationrules",
    "serviceentries",
}

_PARSERS = {
    "gateway": IstioParser.parse_gateway,
    "virtualservice": IstioParser.parse_virtual_service,
    "destinationrule": IstioParser.parse_destination_rule,
    "serviceentry": IstioParser.parse_service_entry,
    "rule": IstioParser.parse_rule,
    "quotaspec": IstioParser.parse_quota_spec,
    "quotaspecbinding": IstioParser.parse_quota_spec_binding,
}


@dataclass(frozen=True)
class ResourceSpec:
    """一个可查询的自定义资源"""

    object_type: str  # 复数名称，如 gateways、adapters
    item_type: str  # 列表项类型，如 gateway、adapter
    group: str
    version: str
    plural: str  # 实际查询的资源复数名称，如 listcheckers

    @property
    def subtype(self) -> Optional[str]:
        """适配器和模板的子类型，即资源复数名称"""
        return self.plural if self.object_type in SUBTYPED_OBJECT_TYPES else None


@dataclass
class IstioConfigFetchResult:
    """单个命名空间的获取结果"""

    config_list: IstioConfigList
    validations: List[ObjectValidation] = field(default_factory=list)


class IstioConfigFetcher:
    """Istio配置获取器"""

    def __init__(self, api_client, settings: Optional[IstioConfig] = None):
        """
        初始化获取器

        Args:
            api_client: kubernetes.client.ApiClient实例
            settings: Istio API配置
        """
        self.settings = settings or IstioConfig()
        self.custom_api = client.CustomObjectsApi(api_client)
        self.auth_api = client.AuthorizationV1Api(api_client)
        self.core_api = client.CoreV1Api(api_client)
        self._pool = ConcurrentResourceFetcher(
            max_workers=self.settings.max_concurrent_requests
        )

    def resource_specs(self, object_type: str) -> List[ResourceSpec]:
        """
        获取某类配置对应的所有自定义资源

        Raises:
            ValueError: 不支持的配置类型
        """
        item_type = dict(OBJECT_TYPES).get(object_type)
        if item_type is None:
            raise ValueError(f"不支持的Istio配置类型: {object_type}")

        if object_type in NETWORKING_OBJECT_TYPES:
            group = self.settings.networking_group
            version = self.settings.networking_version
        else:
            group = self.settings.config_group
            version = self.settings.config_version

        if object_type == "adapters":
            plurals = self.settings.adapter_plurals
        elif object_type == "templates":
            plurals = self.settings.template_plurals
        else:
            plurals = [object_type]

        return [
            ResourceSpec(object_type, item_type, group, version, plural)
            for plural in plurals
        ]

    def list_namespaces(self) -> List[str]:
        """获取当前用户可见的命名空间名称"""
        namespace_list = self.core_api.list_namespace()
        return sorted(ns.metadata.name for ns in namespace_list.items)

    def get_istio_config_list(
        self,
        namespace: str,
        object_types: Optional[Sequence[str]] = None,
        include_permissions: bool = True,
    ) -> IstioConfigFetchResult:
        """
        获取命名空间下的Istio配置集合

        Args:
            namespace: 命名空间
            object_types: 要查询的配置类型（复数名称），为空则查询全部
            include_permissions: 是否计算当前用户的操作权限

        Returns:
            IstioConfigFetchResult: 配置集合及本地验证结果
        """
        start_time = time.time()
        requested = list(object_types) if object_types else [t for t, _ in OBJECT_TYPES]

        objects: Dict[str, List[IstioModel]] = {t: [] for t, _ in OBJECT_TYPES}
        validations: List[ObjectValidation] = []

        # 每个资源复数名称一次列表调用，并发执行，结果保持请求顺序
        specs = [s for t in requested for s in self.resource_specs(t)]
        listed = self._pool.fetch_all(
            lambda resource_spec: self._list_objects(namespace, resource_spec), specs
        )

        for resource_spec, raws in zip(specs, listed):
            for raw in raws:
                parsed = self._parse_object(namespace, resource_spec, raw)
                if parsed is None:
                    continue
                objects[resource_spec.object_type].append(parsed)
                validations.append(
                    IstioParser.validate_istio_config(
                        resource_spec.item_type, raw, resource_spec.subtype
                    )
                )

        permissions: Dict[str, ResourcePermissions] = {}
        if include_permissions:
            permissions = self.get_permissions(namespace, requested)

        config_list = IstioConfigList(
            namespace=Namespace(name=namespace),
            gateways=objects["gateways"],
            virtual_services=VirtualServices(
                permissions=permissions.get("virtualservices", ResourcePermissions()),
                items=objects["virtualservices"],
            ),
            destination_rules=DestinationRules(
                permissions=permissions.get("destinationrules", ResourcePermissions()),
                items=objects["destinationrules"],
            ),
            service_entries=objects["serviceentries"],
            rules=objects["rules"],
            adapters=objects["adapters"],
            templates=objects["templates"],
            quota_specs=objects["quotaspecs"],
            quota_spec_bindings=objects["quotaspecbindings"],
            permissions=permissions,
        )

        logger.info(
            "[Istio配置获取][%s]成功获取配置集合 - 响应摘要: 类型数=%d, 对象数=%d, 处理时间=%.2fs",
            namespace,
            len(requested),
            config_list.item_count(),
            time.time() - start_time,
        )
        return IstioConfigFetchResult(config_list=config_list, validations=validations)

    def get_istio_object(
        self,
        namespace: str,
        object_type: str,
        name: str,
        object_subtype: Optional[str] = None,
    ) -> Tuple[IstioModel, ObjectValidation]:
        """
        获取单个Istio配置对象

        Args:
            namespace: 命名空间
            object_type: 配置类型（复数名称）
            name: 对象名称
            object_subtype: 适配器/模板的具体资源复数名称，如 listcheckers

        Raises:
            ValueError: 配置类型或子类型不受支持
            ApiException: Kubernetes API调用失败（包括对象不存在）
        """
        specs = self.resource_specs(object_type)
        if object_subtype:
            specs = [s for s in specs if s.plural == object_subtype]
            if not specs:
                raise ValueError(f"不支持的{object_type}子类型: {object_subtype}")
        elif object_type in SUBTYPED_OBJECT_TYPES:
            raise ValueError(f"{object_type}需要指定子类型")

        resource_spec = specs[0]
        raw = self.custom_api.get_namespaced_custom_object(
            group=resource_spec.group,
            version=resource_spec.version,
            namespace=namespace,
            plural=resource_spec.plural,
            name=name,
        )
        payload = self._parse_resource(resource_spec, raw)
        validation = IstioParser.validate_istio_config(
            resource_spec.item_type, raw, resource_spec.subtype
        )

        logger.info(
            "[Istio配置详情][%s]成功获取配置对象 - 资源类型=%s, 资源名称=%s, 有效=%s",
            namespace,
            resource_spec.plural,
            name,
            validation.valid,
        )
        return payload, validation

    def get_permissions(
        self,
        namespace: str,
        object_types: Sequence[str],
        object_subtype: Optional[str] = None,
    ) -> Dict[str, ResourcePermissions]:
        """
        通过SelfSubjectAccessReview计算各配置类型的操作权限

        Args:
            namespace: 命名空间
            object_types: 配置类型（复数名称）
            object_subtype: 适配器/模板的资源复数名称；未指定时以配置中的
                第一个资源复数名称为代表进行检查
        """
        representatives: Dict[str, ResourceSpec] = {}
        for object_type in object_types:
            specs = self.resource_specs(object_type)
            if object_subtype and object_type in SUBTYPED_OBJECT_TYPES:
                specs = [s for s in specs if s.plural == object_subtype]
            if specs:
                representatives[object_type] = specs[0]

        checks = [
            (object_type, field_name, verb)
            for object_type in representatives
            for field_name, verb in PERMISSION_VERBS
        ]
        results = self._pool.fetch_all(
            lambda check: self._can(namespace, representatives[check[0]], check[2]),
            checks,
        )

        allowed: Dict[str, Dict[str, bool]] = {t: {} for t in object_types}
        for (object_type, field_name, _), result in zip(checks, results):
            allowed[object_type][field_name] = result
        return {
            object_type: ResourcePermissions(**fields)
            for object_type, fields in allowed.items()
        }

    def close(self):
        """关闭并发请求线程池"""
        self._pool.shutdown()

    def _can(self, namespace: str, resource_spec: ResourceSpec, verb: str) -> bool:
        body = client.V1SelfSubjectAccessReview(
            spec=client.V1SelfSubjectAccessReviewSpec(
                resource_attributes=client.V1ResourceAttributes(
                    namespace=namespace,
                    verb=verb,
                    group=resource_spec.group,
                    resource=resource_spec.plural,
                )
            )
        )
        try:
            review = self.auth_api.create_self_subject_access_review(body)
        except ApiException as e:
            logger.warning(
                "[Istio权限检查][%s]权限检查失败，按无权限处理 - 资源=%s, 动词=%s, 状态码=%s",
                namespace,
                resource_spec.plural,
                verb,
                e.status,
            )
            return False
        return bool(review.status and review.status.allowed)

    def _list_objects(
        self, namespace: str, resource_spec: ResourceSpec
    ) -> List[Dict[str, Any]]:
        try:
            result = self.custom_api.list_namespaced_custom_object(
                group=resource_spec.group,
                version=resource_spec.version,
                namespace=namespace,
                plural=resource_spec.plural,
            )
        except ApiException as e:
            # 集群未安装对应CRD
            if e.status == 404:
                logger.debug(
                    "[Istio配置获取][%s]资源类型不存在 - 资源=%s.%s",
                    namespace,
                    resource_spec.plural,
                    resource_spec.group,
                )
                return []
            raise
        return result.get("items", [])

    def _parse_resource(
        self, resource_spec: ResourceSpec, raw: Dict[str, Any]
    ) -> IstioModel:
        if resource_spec.item_type == "adapter":
            return IstioParser.parse_adapter(raw, resource_spec.plural)
        if resource_spec.item_type == "template":
            return IstioParser.parse_template(raw, resource_spec.plural)
        return _PARSERS[resource_spec.item_type](raw)

    def _parse_object(
        self, namespace: str, resource_spec: ResourceSpec, raw: Dict[str, Any]
    ) -> Optional[IstioModel]:
        try:
            return self._parse_resource(resource_spec, raw)
        except ValidationError as e:
            logger.warning(
                "[Istio配置获取][%s]处理配置对象失败 - 资源类型=%s, 资源名称=%s, 错误信息=%s",
                namespace,
                resource_spec.plural,
                raw.get("metadata", {}).get("name", "unknown"),
                str(e),
            )
            return None
