"""
Istio Configuration Models

Typed snapshots of the Istio configuration objects shown by the console:
traffic management kinds (Gateway, VirtualService, DestinationRule,
ServiceEntry) and Mixer policy kinds (Rule, Adapter, Template, QuotaSpec,
QuotaSpecBinding).

Fields use snake_case in Python and camelCase on the wire, matching the
payloads exchanged with the console front end.
"""

from enum import Enum
from types import MappingProxyType
from typing import Annotated, Any, ClassVar, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class IstioModel(BaseModel):
    """Base model: camelCase aliases, immutable after construction"""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )


class Namespace(IstioModel):
    """Mesh namespace"""

    name: str


class ResourcePermissions(IstioModel):
    """Verbs the current user may perform on a resource kind"""

    create: bool = False
    update: bool = False
    delete: bool = False


class Severity(str, Enum):
    """Validation check severity"""

    ERROR = "error"
    WARNING = "warning"


class ObjectCheck(IstioModel):
    """Single validation check result"""

    message: str
    severity: Severity
    path: str = ""


class ObjectValidation(IstioModel):
    """Validation result attached to a configuration object"""

    name: str
    object_type: str
    # adapter/template resource plural, e.g. listcheckers
    object_subtype: Optional[str] = None
    valid: bool
    checks: List[ObjectCheck] = Field(default_factory=list)

    def has_warnings(self) -> bool:
        return any(check.severity == Severity.WARNING for check in self.checks)


# ---------------------------------------------------------------------------
# Traffic management kinds
# ---------------------------------------------------------------------------


class Port(IstioModel):
    number: int
    protocol: str = ""
    name: str = ""


class TLSOptions(IstioModel):
    https_redirect: bool = False
    mode: str = ""
    server_certificate: str = ""
    private_key: str = ""
    ca_certificates: str = ""
    subject_alt_names: List[str] = Field(default_factory=list)


class Server(IstioModel):
    port: Port
    hosts: List[str] = Field(default_factory=list)
    tls: Optional[TLSOptions] = None


class Gateway(IstioModel):
    name: str
    created_at: str = ""
    resource_version: str = ""
    servers: Optional[List[Server]] = None
    selector: Optional[Dict[str, str]] = None


class VirtualService(IstioModel):
    """VirtualService; route bodies are kept as raw structured data"""

    name: str
    created_at: str = ""
    resource_version: str = ""
    hosts: Optional[List[str]] = None
    gateways: Optional[List[str]] = None
    http: Optional[List[Dict[str, Any]]] = None
    tcp: Optional[List[Dict[str, Any]]] = None
    tls: Optional[List[Dict[str, Any]]] = None


class DestinationRule(IstioModel):
    name: str
    created_at: str = ""
    resource_version: str = ""
    host: Optional[str] = None
    traffic_policy: Optional[Dict[str, Any]] = None
    subsets: Optional[List[Dict[str, Any]]] = None


class VirtualServices(IstioModel):
    permissions: ResourcePermissions = Field(default_factory=ResourcePermissions)
    items: List[VirtualService] = Field(default_factory=list)


class DestinationRules(IstioModel):
    permissions: ResourcePermissions = Field(default_factory=ResourcePermissions)
    items: List[DestinationRule] = Field(default_factory=list)


class Endpoint(IstioModel):
    address: str
    ports: Dict[str, int] = Field(default_factory=dict)
    labels: Dict[str, str] = Field(default_factory=dict)


class ServiceEntry(IstioModel):
    name: str
    created_at: str = ""
    resource_version: str = ""
    hosts: Optional[List[str]] = None
    addresses: Optional[List[str]] = None
    ports: Optional[List[Port]] = None
    location: Optional[str] = None
    resolution: Optional[str] = None
    endpoints: Optional[List[Endpoint]] = None


# ---------------------------------------------------------------------------
# Mixer policy kinds
# ---------------------------------------------------------------------------


class IstioRuleActionItem(IstioModel):
    handler: str
    instances: List[str] = Field(default_factory=list)


class IstioRule(IstioModel):
    name: str
    created_at: str = ""
    resource_version: str = ""
    match: str = ""
    actions: List[IstioRuleActionItem] = Field(default_factory=list)


class IstioAdapter(IstioModel):
    """Mixer adapter handler; spec is schema-less and varies per adapter"""

    name: str
    created_at: str = ""
    resource_version: str = ""
    adapter: str = ""
    adapters: str = ""
    spec: Any = None


class IstioTemplate(IstioModel):
    """Mixer template instance; spec is schema-less and varies per template"""

    name: str
    created_at: str = ""
    resource_version: str = ""
    template: str = ""
    templates: str = ""
    spec: Any = None


class Match(IstioModel):
    # attribute name -> match type (exact, prefix, regex) -> value
    clause: Dict[str, Dict[str, str]] = Field(default_factory=dict)


class Quota(IstioModel):
    quota: str
    charge: int = 0


class MatchQuota(IstioModel):
    match: Optional[Match] = None
    quotas: Optional[Quota] = None


class QuotaSpec(IstioModel):
    name: str
    created_at: str = ""
    resource_version: str = ""
    rules: Optional[List[MatchQuota]] = None


class QuotaSpecRef(IstioModel):
    name: str
    namespace: Optional[str] = None


class IstioService(IstioModel):
    name: str
    namespace: Optional[str] = None
    domain: Optional[str] = None
    service: Optional[str] = None
    labels: Optional[Dict[str, str]] = None


class QuotaSpecBinding(IstioModel):
    name: str
    created_at: str = ""
    resource_version: str = ""
    quota_specs: Optional[List[QuotaSpecRef]] = None
    services: Optional[List[IstioService]] = None


# ---------------------------------------------------------------------------
# Namespace collection
# ---------------------------------------------------------------------------


class IstioConfigList(IstioModel):
    """All configuration objects of one namespace, grouped by kind"""

    namespace: Namespace
    gateways: List[Gateway] = Field(default_factory=list)
    virtual_services: VirtualServices = Field(default_factory=VirtualServices)
    destination_rules: DestinationRules = Field(default_factory=DestinationRules)
    service_entries: List[ServiceEntry] = Field(default_factory=list)
    rules: List[IstioRule] = Field(default_factory=list)
    adapters: List[IstioAdapter] = Field(default_factory=list)
    templates: List[IstioTemplate] = Field(default_factory=list)
    quota_specs: List[QuotaSpec] = Field(default_factory=list)
    quota_spec_bindings: List[QuotaSpecBinding] = Field(default_factory=list)
    permissions: Dict[str, ResourcePermissions] = Field(default_factory=dict)

    def item_count(self) -> int:
        return (
            len(self.gateways)
            + len(self.virtual_services.items)
            + len(self.destination_rules.items)
            + len(self.service_entries)
            + len(self.rules)
            + len(self.adapters)
            + len(self.templates)
            + len(self.quota_specs)
            + len(self.quota_spec_bindings)
        )


# ---------------------------------------------------------------------------
# Flattened list item: one variant per kind, discriminated by ``type``
# ---------------------------------------------------------------------------


class IstioConfigItemBase(IstioModel):
    namespace: str
    name: str
    validation: Optional[ObjectValidation] = None

    PAYLOAD_FIELD: ClassVar[str] = ""

    @property
    def payload(self) -> IstioModel:
        """The populated configuration object of this item"""
        return getattr(self, self.PAYLOAD_FIELD)

    @property
    def subtype(self) -> Optional[str]:
        """Resource plural of adapter and template items, None for other kinds"""
        return None


class GatewayItem(IstioConfigItemBase):
    PAYLOAD_FIELD: ClassVar[str] = "gateway"

    type: Literal["gateway"] = "gateway"
    gateway: Gateway


class VirtualServiceItem(IstioConfigItemBase):
    PAYLOAD_FIELD: ClassVar[str] = "virtual_service"

    type: Literal["virtualservice"] = "virtualservice"
    virtual_service: VirtualService


class DestinationRuleItem(IstioConfigItemBase):
    PAYLOAD_FIELD: ClassVar[str] = "destination_rule"

    type: Literal["destinationrule"] = "destinationrule"
    destination_rule: DestinationRule


class ServiceEntryItem(IstioConfigItemBase):
    PAYLOAD_FIELD: ClassVar[str] = "service_entry"

    type: Literal["serviceentry"] = "serviceentry"
    service_entry: ServiceEntry


class RuleItem(IstioConfigItemBase):
    PAYLOAD_FIELD: ClassVar[str] = "rule"

    type: Literal["rule"] = "rule"
    rule: IstioRule


class AdapterItem(IstioConfigItemBase):
    PAYLOAD_FIELD: ClassVar[str] = "adapter"

    type: Literal["adapter"] = "adapter"
    adapter: IstioAdapter

    @property
    def subtype(self) -> Optional[str]:
        return self.adapter.adapters or None


class TemplateItem(IstioConfigItemBase):
    PAYLOAD_FIELD: ClassVar[str] = "template"

    type: Literal["template"] = "template"
    template: IstioTemplate

    @property
    def subtype(self) -> Optional[str]:
        return self.template.templates or None


class QuotaSpecItem(IstioConfigItemBase):
    PAYLOAD_FIELD: ClassVar[str] = "quota_spec"

    type: Literal["quotaspec"] = "quotaspec"
    quota_spec: QuotaSpec


class QuotaSpecBindingItem(IstioConfigItemBase):
    PAYLOAD_FIELD: ClassVar[str] = "quota_spec_binding"

    type: Literal["quotaspecbinding"] = "quotaspecbinding"
    quota_spec_binding: QuotaSpecBinding


IstioConfigItem = Annotated[
    Union[
        GatewayItem,
        VirtualServiceItem,
        DestinationRuleItem,
        ServiceEntryItem,
        RuleItem,
        AdapterItem,
        TemplateItem,
        QuotaSpecItem,
        QuotaSpecBindingItem,
    ],
    Field(discriminator="type"),
]

# Payload class -> item variant, in list order
ITEM_CLASS_BY_PAYLOAD = MappingProxyType(
    {
        Gateway: GatewayItem,
        VirtualService: VirtualServiceItem,
        DestinationRule: DestinationRuleItem,
        ServiceEntry: ServiceEntryItem,
        IstioRule: RuleItem,
        IstioAdapter: AdapterItem,
        IstioTemplate: TemplateItem,
        QuotaSpec: QuotaSpecItem,
        QuotaSpecBinding: QuotaSpecBindingItem,
    }
)

ISTIO_ITEM_TYPES = tuple(
    cls.model_fields["type"].default for cls in ITEM_CLASS_BY_PAYLOAD.values()
)


def make_istio_item(
    namespace: str, payload: IstioModel, validation: Optional[ObjectValidation] = None
) -> IstioConfigItemBase:
    """
    Build the list item variant matching the payload's kind.

    Raises:
        TypeError: when payload is not a known configuration kind
    """
    item_class = ITEM_CLASS_BY_PAYLOAD.get(type(payload))
    if item_class is None:
        raise TypeError(f"Unsupported Istio configuration kind: {type(payload).__name__}")

    return item_class(
        namespace=namespace,
        name=payload.name,
        validation=validation,
        **{item_class.PAYLOAD_FIELD: payload},
    )


# Kind name <-> plural resource name, looked up in both directions
ISTIO_TYPE_DICT = MappingProxyType(
    {
        "Gateway": "gateways",
        "VirtualService": "virtualservices",
        "DestinationRule": "destinationrules",
        "ServiceEntry": "serviceentries",
        "Rule": "rules",
        "Adapter": "adapters",
        "Template": "templates",
        "QuotaSpec": "quotaspecs",
        "QuotaSpecBinding": "quotaspecbindings",
        "gateways": "Gateway",
        "virtualservices": "VirtualService",
        "destinationrules": "DestinationRule",
        "serviceentries": "ServiceEntry",
        "rules": "Rule",
        "adapters": "Adapter",
        "templates": "Template",
        "quotaspecs": "QuotaSpec",
        "quotaspecbindings": "QuotaSpecBinding",
        "instance": "Instance",
        "handler": "Handler",
    }
)
