"""Data models for portico network resource projection."""

import os
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


DEFAULT_ANNOTATION_PREFIX = "nginx.ingress.kubernetes.io"


class ReplicationType(str, Enum):
    """How the workload behind a service is replicated."""

    STATELESS = "stateless"
    STATEFUL = "stateful"


class RuleExtensionKey(str, Enum):
    """Known rule extension keys."""

    HTTP_TO_HTTPS = "httptohttps"
    LB_TYPE = "lb-type"


class PluginModel(str, Enum):
    """Network plugin models a service can be related to."""

    UPSTREAM_NET = "net-plugin:up"
    DOWNSTREAM_NET = "net-plugin:down"


class Tenant(BaseModel):
    """A tenant owning services."""

    uuid: str = Field(..., description="Tenant unique id, used as namespace")
    name: str = Field(..., description="Tenant display name")


class TenantService(BaseModel):
    """A tenant service being projected into networking resources."""

    service_id: str = Field(..., description="Service unique id")
    tenant_id: str = Field(..., description="Owning tenant id")
    service_alias: str = Field(..., description="Service alias, used as selector")
    service_name: str = Field("", description="Service name, used for the stateful service")
    deploy_version: str = Field("", description="Current deploy version")
    replicas: int = Field(1, description="Replica count")
    replication_type: ReplicationType = Field(ReplicationType.STATELESS, description="Exposure topology")


class ServicePort(BaseModel):
    """One exposed container port of a tenant service."""

    id: int = Field(..., description="Port record id")
    service_id: str = Field(..., description="Owning service id")
    container_port: int = Field(..., description="Container port")
    mapping_port: int = Field(0, description="Visible port, 0 when unset")
    protocol: str = Field("http", description="Stored port protocol")
    is_inner_service: bool = Field(False, description="Reachable inside the cluster")
    is_outer_service: bool = Field(False, description="Reachable from outside the cluster")

    @property
    def visible_port(self) -> int:
        return self.mapping_port or self.container_port


class HTTPRule(BaseModel):
    """A layer 7 routing rule bound to a service port."""

    uuid: str = Field(..., description="Rule id")
    service_id: str = Field(..., description="Service the rule routes to")
    container_port: int = Field(..., description="Container port the rule is bound to")
    domain: str = Field("", description="Host to match, empty for the default domain")
    path: str = Field("", description="Path to match, empty for /")
    header: str = Field("", description="Header match specification")
    cookie: str = Field("", description="Cookie match specification")
    certificate_id: str = Field("", description="Referenced certificate id")


class TCPRule(BaseModel):
    """A layer 4 routing rule bound to a service port."""

    uuid: str = Field(..., description="Rule id")
    service_id: str = Field(..., description="Service the rule routes to")
    container_port: int = Field(..., description="Container port the rule is bound to")
    ip: str = Field("", description="External IP")
    port: int = Field(..., description="External port")


class RuleExtension(BaseModel):
    """A named modifier attached to an HTTP rule."""

    rule_id: str = Field(..., description="HTTP rule id")
    key: str = Field(..., description="Extension key, see RuleExtensionKey")
    value: str = Field("", description="Extension value")


class Certificate(BaseModel):
    """A TLS key pair."""

    uuid: str = Field(..., description="Certificate id")
    certificate_name: str = Field("", description="Display name")
    certificate: str = Field(..., description="Certificate PEM")
    private_key: str = Field(..., description="Private key PEM")


class PluginMappingPort(BaseModel):
    """A port reassignment made by a network plugin."""

    service_id: str = Field(..., description="Service id")
    container_port: int = Field(..., description="Original container port")
    plugin_port: int = Field(..., description="Port substituted by the plugin")
    plugin_model: PluginModel = Field(PluginModel.UPSTREAM_NET, description="Plugin model")


class BuildConfig(BaseModel):
    """Environment level configuration for a build."""

    ex_domain: Optional[str] = Field(None, description="External domain base for default domains")
    network_mode: Optional[str] = Field(None, description="Cluster network mode")
    annotation_prefix: str = Field(DEFAULT_ANNOTATION_PREFIX, description="Prefix for ingress annotations")
    node_port_network_modes: List[str] = Field(
        default_factory=lambda: ["midonet"],
        description="Network modes that expose outer services as NodePort",
    )

    @property
    def external_domain_base(self) -> str:
        """The external domain with any port suffix and leading dot removed."""
        ex_domain = self.ex_domain or ""
        if ":" in ex_domain:
            ex_domain = ex_domain.split(":")[0]
        if ex_domain.startswith("."):
            ex_domain = ex_domain[1:]
        return ex_domain.strip()

    @property
    def uses_node_port(self) -> bool:
        return self.network_mode in self.node_port_network_modes

    @classmethod
    def from_env(cls) -> "BuildConfig":
        """Create a config instance from environment variables."""
        return cls(
            ex_domain=os.getenv("EX_DOMAIN") or None,
            network_mode=os.getenv("CUR_NET") or None,
            annotation_prefix=os.getenv("PORTICO_ANNOTATION_PREFIX", DEFAULT_ANNOTATION_PREFIX),
        )


class Catalog(BaseModel):
    """All records a catalog store serves lookups from."""

    tenants: List[Tenant] = Field(default_factory=list, description="Tenants")
    services: List[TenantService] = Field(default_factory=list, description="Tenant services")
    ports: List[ServicePort] = Field(default_factory=list, description="Service ports")
    http_rules: List[HTTPRule] = Field(default_factory=list, description="HTTP rules")
    tcp_rules: List[TCPRule] = Field(default_factory=list, description="TCP rules")
    rule_extensions: List[RuleExtension] = Field(default_factory=list, description="HTTP rule extensions")
    certificates: List[Certificate] = Field(default_factory=list, description="Certificates")
    plugin_relations: List[str] = Field(
        default_factory=list, description="Service ids related to an upstream network plugin"
    )
    plugin_ports: List[PluginMappingPort] = Field(default_factory=list, description="Plugin mapping ports")
