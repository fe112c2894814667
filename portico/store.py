"""Record lookups a build is made from.

``ServiceStore`` is the interface the builder consumes. A lookup returns
``None`` when the record does not exist and raises ``LookupFailedError`` when
the lookup itself fails, so callers can tell "absent" from "broken".
"""

import abc
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import yaml
from pydantic import ValidationError

from .errors import LookupFailedError
from .logging_config import get_logger
from .models import (
    Catalog,
    Certificate,
    HTTPRule,
    PluginMappingPort,
    PluginModel,
    RuleExtension,
    ServicePort,
    TCPRule,
    Tenant,
    TenantService,
)

logger = get_logger(__name__)


class ServiceStore(abc.ABC):
    """Read-only source of service, port, rule and certificate records."""

    @abc.abstractmethod
    def get_service_by_id(self, service_id: str) -> Optional[TenantService]:
        pass

    @abc.abstractmethod
    def get_tenant_by_id(self, tenant_id: str) -> Optional[Tenant]:
        pass

    @abc.abstractmethod
    def get_ports_by_service_id(self, service_id: str) -> List[ServicePort]:
        pass

    @abc.abstractmethod
    def get_port(self, service_id: str, container_port: int) -> Optional[ServicePort]:
        pass

    @abc.abstractmethod
    def has_upstream_plugin_relation(self, service_id: str) -> bool:
        """Whether an upstream network plugin intercepts the service's traffic."""
        pass

    @abc.abstractmethod
    def get_plugin_mapping_ports(
        self, service_id: str, plugin_model: PluginModel = PluginModel.UPSTREAM_NET
    ) -> List[PluginMappingPort]:
        pass

    @abc.abstractmethod
    def get_http_rule(self, service_id: str, container_port: int) -> Optional[HTTPRule]:
        """Return the first HTTP rule bound to the port."""
        pass

    @abc.abstractmethod
    def get_tcp_rule(self, service_id: str, container_port: int) -> Optional[TCPRule]:
        """Return the first TCP rule bound to the port."""
        pass

    @abc.abstractmethod
    def get_rule_extensions(self, rule_id: str) -> List[RuleExtension]:
        pass

    @abc.abstractmethod
    def get_certificate_by_id(self, certificate_id: str) -> Optional[Certificate]:
        pass


class CatalogStore(ServiceStore):
    """ServiceStore answering lookups from an in-memory ``Catalog``."""

    def __init__(self, catalog: Catalog):
        self.catalog = catalog
        self._services: Dict[str, TenantService] = {s.service_id: s for s in catalog.services}
        self._tenants: Dict[str, Tenant] = {t.uuid: t for t in catalog.tenants}
        self._certificates: Dict[str, Certificate] = {c.uuid: c for c in catalog.certificates}
        logger.debug("Catalog store loaded",
                    services=len(self._services),
                    tenants=len(self._tenants),
                    ports=len(catalog.ports))

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "CatalogStore":
        """Load a catalog from a YAML file.

        Raises:
            LookupFailedError: If the file cannot be read or is not a valid catalog.
        """
        path = Path(path)
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
            catalog = Catalog(**data)
        except (OSError, yaml.YAMLError, ValidationError, TypeError) as e:
            logger.error("Failed to load catalog", path=str(path), error=str(e))
            raise LookupFailedError("load_catalog", str(path), str(e)) from e
        return cls(catalog)

    def get_service_by_id(self, service_id: str) -> Optional[TenantService]:
        return self._services.get(service_id)

    def get_tenant_by_id(self, tenant_id: str) -> Optional[Tenant]:
        return self._tenants.get(tenant_id)

    def get_ports_by_service_id(self, service_id: str) -> List[ServicePort]:
        return [p for p in self.catalog.ports if p.service_id == service_id]

    def get_port(self, service_id: str, container_port: int) -> Optional[ServicePort]:
        for port in self.get_ports_by_service_id(service_id):
            if port.container_port == container_port:
                return port
        return None

    def has_upstream_plugin_relation(self, service_id: str) -> bool:
        return service_id in self.catalog.plugin_relations

    def get_plugin_mapping_ports(
        self, service_id: str, plugin_model: PluginModel = PluginModel.UPSTREAM_NET
    ) -> List[PluginMappingPort]:
        return [
            p for p in self.catalog.plugin_ports
            if p.service_id == service_id and p.plugin_model == plugin_model
        ]

    def get_http_rule(self, service_id: str, container_port: int) -> Optional[HTTPRule]:
        return self._first_rule(self.catalog.http_rules, service_id, container_port)

    def get_tcp_rule(self, service_id: str, container_port: int) -> Optional[TCPRule]:
        return self._first_rule(self.catalog.tcp_rules, service_id, container_port)

    def get_rule_extensions(self, rule_id: str) -> List[RuleExtension]:
        return [e for e in self.catalog.rule_extensions if e.rule_id == rule_id]

    def get_certificate_by_id(self, certificate_id: str) -> Optional[Certificate]:
        return self._certificates.get(certificate_id)

    @staticmethod
    def _first_rule(rules, service_id: str, container_port: int):
        for rule in rules:
            if rule.service_id == service_id and rule.container_port == container_port:
                return rule
        return None

    def summary(self) -> Tuple[int, int, int]:
        """Return (tenants, services, ports) counts."""
        return len(self.catalog.tenants), len(self.catalog.services), len(self.catalog.ports)


def guarded_lookup(lookup: str, key, func, *args):
    """Call a store lookup, wrapping unexpected failures in ``LookupFailedError``."""
    try:
        return func(*args)
    except LookupFailedError:
        raise
    except Exception as e:
        raise LookupFailedError(lookup, key, str(e)) from e
