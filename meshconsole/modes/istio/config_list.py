# -*- coding: utf-8 -*-
"""
Istio配置列表转换与过滤
将命名空间级别的配置集合展开为统一的列表项，并按名称、验证状态过滤和排序
"""

from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .models import (
    DestinationRules,
    IstioConfigItemBase,
    IstioConfigList,
    ObjectValidation,
    VirtualServices,
    make_istio_item,
)


class ValidationStatus(str, Enum):
    """配置验证状态过滤标签"""

    VALID = "Valid"
    NOT_VALID = "Not Valid"
    NOT_VALIDATED = "Not Validated"
    WARNING = "Warning"


class IstioSortField(str, Enum):
    """列表排序字段"""

    NAMESPACE = "namespace"
    TYPE = "type"
    NAME = "name"
    VALIDATION = "validation"


def include_name(name: str, names: Sequence[str]) -> bool:
    """名称包含任一过滤词即匹配（区分大小写的子串匹配）"""
    for term in names:
        if term in name:
            return True
    return False


def filter_by_name(unfiltered: IstioConfigList, names: Sequence[str]) -> IstioConfigList:
    """
    按名称过滤配置集合

    Args:
        unfiltered: 原始配置集合
        names: 名称过滤词列表，为空时原样返回

    Returns:
        IstioConfigList: 每种资源只保留名称匹配任一过滤词的对象
    """
    if not names:
        return unfiltered

    return IstioConfigList(
        namespace=unfiltered.namespace,
        gateways=[gw for gw in unfiltered.gateways if include_name(gw.name, names)],
        virtual_services=VirtualServices(
            permissions=unfiltered.virtual_services.permissions,
            items=[
                vs
                for vs in unfiltered.virtual_services.items
                if include_name(vs.name, names)
            ],
        ),
        destination_rules=DestinationRules(
            permissions=unfiltered.destination_rules.permissions,
            items=[
                dr
                for dr in unfiltered.destination_rules.items
                if include_name(dr.name, names)
            ],
        ),
        service_entries=[
            se for se in unfiltered.service_entries if include_name(se.name, names)
        ],
        rules=[r for r in unfiltered.rules if include_name(r.name, names)],
        adapters=[a for a in unfiltered.adapters if include_name(a.name, names)],
        templates=[t for t in unfiltered.templates if include_name(t.name, names)],
        quota_specs=[
            qs for qs in unfiltered.quota_specs if include_name(qs.name, names)
        ],
        quota_spec_bindings=[
            qsb
            for qsb in unfiltered.quota_spec_bindings
            if include_name(qsb.name, names)
        ],
        permissions=unfiltered.permissions,
    )


def filter_by_config_validation(
    unfiltered: List[IstioConfigItemBase], config_filters: Sequence[str]
) -> List[IstioConfigItemBase]:
    """
    按验证状态过滤列表项

    每个请求的状态标签独立匹配，同时匹配多个标签的列表项会重复出现
    （例如无效且带警告的对象在 ["Not Valid", "Warning"] 下出现两次）。

    Args:
        unfiltered: 列表项
        config_filters: 状态标签，取值见ValidationStatus

    Returns:
        List[IstioConfigItemBase]: 过滤后的列表项
    """
    if not config_filters:
        return unfiltered

    filter_by_valid = ValidationStatus.VALID in config_filters
    filter_by_not_valid = ValidationStatus.NOT_VALID in config_filters
    filter_by_not_validated = ValidationStatus.NOT_VALIDATED in config_filters
    filter_by_warning = ValidationStatus.WARNING in config_filters
    if (
        filter_by_valid
        and filter_by_not_valid
        and filter_by_not_validated
        and filter_by_warning
    ):
        return unfiltered

    filtered = []
    for item in unfiltered:
        validation = item.validation
        if filter_by_valid and validation is not None and validation.valid:
            filtered.append(item)
        if filter_by_not_valid and validation is not None and not validation.valid:
            filtered.append(item)
        if filter_by_not_validated and validation is None:
            filtered.append(item)
        if filter_by_warning and validation is not None and validation.has_warnings():
            filtered.append(item)
    return filtered


def to_istio_items(istio_config_list: IstioConfigList) -> List[IstioConfigItemBase]:
    """
    将配置集合展开为列表项

    顺序固定为 gateway, virtualservice, destinationrule, serviceentry, rule,
    adapter, template, quotaspec, quotaspecbinding，同类对象保持原有顺序。
    """
    namespace = istio_config_list.namespace.name
    payloads = (
        istio_config_list.gateways
        + istio_config_list.virtual_services.items
        + istio_config_list.destination_rules.items
        + istio_config_list.service_entries
        + istio_config_list.rules
        + istio_config_list.adapters
        + istio_config_list.templates
        + istio_config_list.quota_specs
        + istio_config_list.quota_spec_bindings
    )
    return [make_istio_item(namespace, payload) for payload in payloads]


def attach_validations(
    items: List[IstioConfigItemBase], validations: Iterable[ObjectValidation]
) -> List[IstioConfigItemBase]:
    """
    按 (对象类型, 子类型, 名称) 为列表项附加验证结果，返回新的列表项

    适配器和模板的子类型为资源复数名称，不同种类的同名适配器各自匹配自己的验证结果。
    """
    by_key: Dict[Tuple[str, Optional[str], str], ObjectValidation] = {
        (validation.object_type, validation.object_subtype, validation.name): validation
        for validation in validations
    }
    if not by_key:
        return list(items)

    attached = []
    for item in items:
        validation = by_key.get((item.type, item.subtype, item.name))
        if validation is not None:
            item = item.model_copy(update={"validation": validation})
        attached.append(item)
    return attached


def _validation_rank(item: IstioConfigItemBase) -> int:
    # 无效 < 警告 < 有效 < 未验证
    if item.validation is None:
        return 3
    if not item.validation.valid:
        return 0
    if item.validation.has_warnings():
        return 1
    return 2


_SORT_KEYS = {
    IstioSortField.NAMESPACE: lambda item: (item.namespace, item.name),
    IstioSortField.TYPE: lambda item: (item.type, item.name),
    IstioSortField.NAME: lambda item: (item.name, item.namespace),
    IstioSortField.VALIDATION: lambda item: (_validation_rank(item), item.name),
}


def sort_istio_items(
    items: List[IstioConfigItemBase], sort_field: str, ascending: bool = True
) -> List[IstioConfigItemBase]:
    """
    对列表项排序

    Raises:
        ValueError: 排序字段不受支持时
    """
    key = _SORT_KEYS[IstioSortField(sort_field)]
    return sorted(items, key=key, reverse=not ascending)
