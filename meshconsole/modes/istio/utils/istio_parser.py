"""
Istio Resource Parser Utilities

This module converts raw Istio custom objects, as returned by the Kubernetes
API, into the typed configuration models and computes a local validation
result for each of them.
"""

from typing import Dict, Any, List, Optional, Callable
import logging

from pydantic import BaseModel

from ..models import (
    DestinationRule,
    Gateway,
    IstioAdapter,
    IstioModel,
    IstioRule,
    IstioTemplate,
    ObjectCheck,
    ObjectValidation,
    QuotaSpec,
    QuotaSpecBinding,
    ServiceEntry,
    Severity,
    VirtualService,
)

logger = logging.getLogger(__name__)


class IstioMetadata(BaseModel):
    """Common Istio resource metadata"""

    name: str
    creation_timestamp: str = ""
    resource_version: str = ""


class IstioParser:
    """
    Utility class for parsing Istio resources into configuration models.
    Provides one parsing method per configuration kind plus kind-aware validation.
    """

    @staticmethod
    def extract_istio_metadata(resource: Dict[str, Any]) -> IstioMetadata:
        """
        Extract common Istio metadata from resource.

        Args:
            resource: Raw Kubernetes resource dictionary

        Returns:
            Structured metadata information
        """
        metadata = resource.get("metadata", {})
        return IstioMetadata(
            name=metadata.get("name", ""),
            creation_timestamp=str(metadata.get("creationTimestamp") or ""),
            resource_version=metadata.get("resourceVersion", ""),
        )

    @staticmethod
    def _object_fields(resource: Dict[str, Any]) -> Dict[str, Any]:
        """Common name/createdAt/resourceVersion fields in wire form"""
        metadata = IstioParser.extract_istio_metadata(resource)
        return {
            "name": metadata.name,
            "createdAt": metadata.creation_timestamp,
            "resourceVersion": metadata.resource_version,
        }

    @staticmethod
    def _parse_spec_object(model_cls, resource: Dict[str, Any]) -> IstioModel:
        """Parse kinds whose spec fields map one to one onto the model"""
        data = dict(resource.get("spec") or {})
        data.update(IstioParser._object_fields(resource))
        parsed = model_cls.model_validate(data)

        logger.debug(
            "[Istio解析器][%s]成功解析配置 - 资源类型=%s, 资源名称=%s",
            resource.get("metadata", {}).get("namespace", "未知命名空间"),
            model_cls.__name__,
            parsed.name,
        )
        return parsed

    @staticmethod
    def parse_gateway(resource: Dict[str, Any]) -> Gateway:
        return IstioParser._parse_spec_object(Gateway, resource)

    @staticmethod
    def parse_virtual_service(resource: Dict[str, Any]) -> VirtualService:
        return IstioParser._parse_spec_object(VirtualService, resource)

    @staticmethod
    def parse_destination_rule(resource: Dict[str, Any]) -> DestinationRule:
        return IstioParser._parse_spec_object(DestinationRule, resource)

    @staticmethod
    def parse_service_entry(resource: Dict[str, Any]) -> ServiceEntry:
        return IstioParser._parse_spec_object(ServiceEntry, resource)

    @staticmethod
    def parse_rule(resource: Dict[str, Any]) -> IstioRule:
        return IstioParser._parse_spec_object(IstioRule, resource)

    @staticmethod
    def parse_quota_spec_binding(resource: Dict[str, Any]) -> QuotaSpecBinding:
        return IstioParser._parse_spec_object(QuotaSpecBinding, resource)

    @staticmethod
    def parse_quota_spec(resource: Dict[str, Any]) -> QuotaSpec:
        """
        Parse a QuotaSpec.

        Each match-quota rule carries a single quota; when the resource lists
        several quotas for one rule only the first one is kept.
        """
        spec = resource.get("spec") or {}
        rules = []
        for rule in spec.get("rules") or []:
            quotas = rule.get("quotas")
            if isinstance(quotas, list):
                if len(quotas) > 1:
                    logger.debug(
                        "[Istio解析器][%s]QuotaSpec规则包含多个配额，仅保留第一个 - 资源名称=%s",
                        resource.get("metadata", {}).get("namespace", "未知命名空间"),
                        resource.get("metadata", {}).get("name", ""),
                    )
                quotas = quotas[0] if quotas else None
            rules.append({"match": rule.get("match"), "quotas": quotas})

        data = {"rules": rules if "rules" in spec else None}
        data.update(IstioParser._object_fields(resource))
        return QuotaSpec.model_validate(data)

    @staticmethod
    def parse_adapter(resource: Dict[str, Any], plural: str) -> IstioAdapter:
        """Parse a Mixer adapter handler listed under the given plural"""
        data = IstioParser._object_fields(resource)
        data.update(
            {
                "adapter": (resource.get("kind") or plural).lower(),
                "adapters": plural,
                "spec": resource.get("spec"),
            }
        )
        return IstioAdapter.model_validate(data)

    @staticmethod
    def parse_template(resource: Dict[str, Any], plural: str) -> IstioTemplate:
        """Parse a Mixer template instance listed under the given plural"""
        data = IstioParser._object_fields(resource)
        data.update(
            {
                "template": (resource.get("kind") or plural).lower(),
                "templates": plural,
                "spec": resource.get("spec"),
            }
        )
        return IstioTemplate.model_validate(data)

    @staticmethod
    def validate_istio_config(
        object_type: str,
        resource: Dict[str, Any],
        object_subtype: Optional[str] = None,
    ) -> ObjectValidation:
        """
        Validate an Istio resource and identify common issues.

        Args:
            object_type: Item type tag (gateway, virtualservice, ...)
            resource: Raw Istio resource dictionary
            object_subtype: Resource plural of adapters and templates, e.g. listcheckers

        Returns:
            Validation result; valid when no error level check was raised
        """
        metadata = resource.get("metadata", {})
        spec = resource.get("spec") or {}
        checks: List[ObjectCheck] = []

        if not metadata.get("name"):
            checks.append(_error("Resource name is missing", "metadata/name"))

        validator = _KIND_VALIDATORS.get(object_type)
        if validator is not None:
            checks.extend(validator(spec))

        validation = ObjectValidation(
            name=metadata.get("name", ""),
            object_type=object_type,
            object_subtype=object_subtype,
            valid=not any(check.severity == Severity.ERROR for check in checks),
            checks=checks,
        )

        logger.debug(
            "[Istio解析器][%s]配置验证完成 - 资源类型=%s, 资源名称=%s, 有效=%s, 检查项数=%d",
            metadata.get("namespace", "未知命名空间"),
            object_type,
            validation.name,
            validation.valid,
            len(checks),
        )
        return validation


def _error(message: str, path: str) -> ObjectCheck:
    return ObjectCheck(message=message, severity=Severity.ERROR, path=path)


def _warning(message: str, path: str) -> ObjectCheck:
    return ObjectCheck(message=message, severity=Severity.WARNING, path=path)


def _validate_gateway_config(spec: Dict[str, Any]) -> List[ObjectCheck]:
    """Validate Gateway configuration"""
    checks = []

    servers = spec.get("servers") or []
    if not servers:
        checks.append(_error("Gateway has no servers configured", "spec/servers"))

    for i, server in enumerate(servers):
        if not server.get("hosts"):
            checks.append(
                _error(f"Server {i} has no hosts configured", f"spec/servers[{i}]/hosts")
            )

        port = server.get("port") or {}
        if not port.get("number"):
            checks.append(
                _error(
                    f"Server {i} has no port number configured",
                    f"spec/servers[{i}]/port",
                )
            )
        elif str(port.get("protocol", "")).upper() == "HTTPS" and not server.get("tls"):
            checks.append(
                _warning(
                    f"Server {i} uses HTTPS without TLS options",
                    f"spec/servers[{i}]/tls",
                )
            )

    if not spec.get("selector"):
        checks.append(_warning("Gateway has no workload selector", "spec/selector"))

    return checks


def _validate_virtualservice_config(spec: Dict[str, Any]) -> List[ObjectCheck]:
    """Validate VirtualService configuration"""
    checks = []

    if not spec.get("hosts"):
        checks.append(_error("VirtualService has no hosts configured", "spec/hosts"))

    http_routes = spec.get("http") or []
    tcp_routes = spec.get("tcp") or []
    tls_routes = spec.get("tls") or []

    if not (http_routes or tcp_routes or tls_routes):
        checks.append(
            _error("VirtualService has no routing rules configured", "spec")
        )

    for i, route in enumerate(http_routes):
        destinations = route.get("route") or []
        if not destinations and not route.get("redirect"):
            checks.append(
                _error(
                    f"HTTP route {i} has no destination configured",
                    f"spec/http[{i}]/route",
                )
            )
            continue

        weights = [d.get("weight") for d in destinations if d.get("weight") is not None]
        if len(destinations) > 1 and weights and sum(weights) != 100:
            checks.append(
                _error(
                    f"HTTP route {i} weights sum to {sum(weights)}, expected 100",
                    f"spec/http[{i}]/route",
                )
            )

    return checks


def _validate_destinationrule_config(spec: Dict[str, Any]) -> List[ObjectCheck]:
    """Validate DestinationRule configuration"""
    checks = []

    if not spec.get("host"):
        checks.append(_error("DestinationRule has no host configured", "spec/host"))

    subsets = spec.get("subsets") or []
    if not spec.get("trafficPolicy") and not subsets:
        checks.append(
            _warning(
                "DestinationRule has no traffic policy or subsets configured", "spec"
            )
        )

    for i, subset in enumerate(subsets):
        if not subset.get("name"):
            checks.append(
                _error(f"Subset {i} has no name", f"spec/subsets[{i}]/name")
            )

    return checks


def _validate_serviceentry_config(spec: Dict[str, Any]) -> List[ObjectCheck]:
    """Validate ServiceEntry configuration"""
    checks = []

    if not spec.get("hosts"):
        checks.append(_error("ServiceEntry has no hosts configured", "spec/hosts"))

    if not spec.get("ports"):
        checks.append(_warning("ServiceEntry has no ports configured", "spec/ports"))

    if spec.get("resolution") == "STATIC" and not spec.get("endpoints"):
        checks.append(
            _error(
                "ServiceEntry with STATIC resolution has no endpoints",
                "spec/endpoints",
            )
        )

    return checks


def _validate_rule_config(spec: Dict[str, Any]) -> List[ObjectCheck]:
    """Validate Mixer rule configuration"""
    checks = []

    actions = spec.get("actions") or []
    if not actions:
        checks.append(_warning("Rule has no actions configured", "spec/actions"))

    for i, action in enumerate(actions):
        if not action.get("handler"):
            checks.append(
                _error(
                    f"Action {i} has no handler configured",
                    f"spec/actions[{i}]/handler",
                )
            )

    return checks


def _validate_opaque_spec(spec: Dict[str, Any]) -> List[ObjectCheck]:
    """Adapters and templates only need a non-empty spec"""
    if not spec:
        return [_warning("Resource spec is empty", "spec")]
    return []


def _validate_quotaspec_config(spec: Dict[str, Any]) -> List[ObjectCheck]:
    if not spec.get("rules"):
        return [_warning("QuotaSpec has no rules configured", "spec/rules")]
    return []


def _validate_quotaspecbinding_config(spec: Dict[str, Any]) -> List[ObjectCheck]:
    """Validate QuotaSpecBinding configuration"""
    checks = []

    if not spec.get("quotaSpecs"):
        checks.append(
            _error("QuotaSpecBinding references no quota specs", "spec/quotaSpecs")
        )
    if not spec.get("services"):
        checks.append(
            _warning("QuotaSpecBinding is bound to no services", "spec/services")
        )

    return checks


_KIND_VALIDATORS: Dict[str, Callable[[Dict[str, Any]], List[ObjectCheck]]] = {
    "gateway": _validate_gateway_config,
    "virtualservice": _validate_virtualservice_config,
    "destinationrule": _validate_destinationrule_config,
    "serviceentry": _validate_serviceentry_config,
    "rule": _validate_rule_config,
    "adapter": _validate_opaque_spec,
    "template": _validate_opaque_spec,
    "quotaspec": _validate_quotaspec_config,
    "quotaspecbinding": _validate_quotaspecbinding_config,
}
