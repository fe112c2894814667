"""Build orchestration: project a tenant service into services, ingresses and secrets."""

from typing import Callable, List, NamedTuple, Optional, Tuple

from kubernetes import client

from . import naming
from .appservice import AppService
from .errors import PortNotFoundError, ServiceNotFoundError, TenantNotFoundError
from .logging_config import get_logger, log_build_event, log_function_entry, log_function_exit
from .models import BuildConfig, PluginModel, ReplicationType, ServicePort, Tenant, TenantService
from .plugin_ports import PortRemap, label_origin_ports, remap_plugin_ports
from .rules import RouteRuleApplier
from .services import create_inner_service, create_outer_service, create_stateful_service
from .store import ServiceStore, guarded_lookup

logger = get_logger(__name__)


class BuildResult(NamedTuple):
    """Objects produced by one build."""

    services: Tuple[client.V1Service, ...]
    ingresses: Tuple[client.V1Ingress, ...]
    secrets: Tuple[client.V1Secret, ...]


class _BuildAccumulator:
    def __init__(self):
        self.services: List[client.V1Service] = []
        self.ingresses: List[client.V1Ingress] = []
        self.secrets: List[client.V1Secret] = []

    def add_service(self, service: client.V1Service) -> None:
        self.services.append(service)

    def add_routes(self, ingresses: List[client.V1Ingress], secret: Optional[client.V1Secret]) -> None:
        self.ingresses.extend(ingresses)
        if secret is not None:
            self.secrets.append(secret)

    def freeze(self) -> BuildResult:
        return BuildResult(tuple(self.services), tuple(self.ingresses), tuple(self.secrets))


class AppServiceBuild:
    """Builds the networking objects of one tenant service.

    Use ``from_store`` to load the service and tenant context; the context is
    loaded once and reused by ``build`` and ``build_on_port``.
    """

    def __init__(
        self,
        service: TenantService,
        tenant: Tenant,
        store: ServiceStore,
        config: BuildConfig,
        replication_type: ReplicationType = ReplicationType.STATELESS,
        event_id: str = "",
        new_id: Callable[[], str] = naming.new_short_id,
        annotation_key: Optional[Callable[[str], str]] = None,
    ):
        self.service = service
        self.tenant = tenant
        self.store = store
        self.config = config
        self.replication_type = ReplicationType(replication_type)
        self.event_id = event_id
        self.rule_applier = RouteRuleApplier(
            store, service, tenant, config, new_id=new_id, annotation_key=annotation_key
        )

    @property
    def service_id(self) -> str:
        return self.service.service_id

    @classmethod
    def from_store(
        cls,
        service_id: str,
        replication_type: ReplicationType,
        store: ServiceStore,
        config: BuildConfig,
        **kwargs,
    ) -> "AppServiceBuild":
        """Load the service and tenant context for a build.

        Raises:
            ServiceNotFoundError: If the service does not exist.
            TenantNotFoundError: If the service's tenant does not exist.
            LookupFailedError: If either lookup fails.
        """
        service = guarded_lookup("get_service_by_id", service_id, store.get_service_by_id, service_id)
        if service is None:
            raise ServiceNotFoundError(service_id)

        tenant = guarded_lookup("get_tenant_by_id", service.tenant_id, store.get_tenant_by_id, service.tenant_id)
        if tenant is None:
            raise TenantNotFoundError(service.tenant_id, service_id)

        return cls(service, tenant, store, config, replication_type=replication_type, **kwargs)

    def build(self) -> BuildResult:
        """Build the services, ingresses and secrets for every port.

        Any failure aborts the whole build; nothing is returned for the ports
        that succeeded.

        Raises:
            NoRoutingRuleError: If an outer port has no routing rule.
            CertificateNotFoundError: If a rule references a missing certificate.
            LookupFailedError: If a store lookup fails.
        """
        log_function_entry(logger, "build",
                          service_id=self.service_id,
                          replication_type=self.replication_type.value)

        ports = guarded_lookup("get_ports_by_service_id", self.service_id,
                               self.store.get_ports_by_service_id, self.service_id)
        remap = self._apply_upstream_plugin(ports)

        acc = _BuildAccumulator()
        outers = []
        for port in remap.ports:
            if port.is_inner_service:
                acc.add_service(create_inner_service(port, self.service, self.tenant))
            if port.is_outer_service:
                outer = create_outer_service(port, self.service, self.tenant, self.config, self.event_id)
                acc.add_routes(*self.rule_applier.apply_rules(port, outer, remap.origins.get(port.id)))
                acc.add_service(outer)
                outers.append((port, outer))

        if self.replication_type == ReplicationType.STATEFUL:
            acc.add_service(create_stateful_service(remap.ports, self.service, self.tenant))

        if remap.remapped:
            label_origin_ports(outers, remap.origins)

        result = acc.freeze()
        log_build_event(logger, "build_completed", self.service_id,
                        services=len(result.services),
                        ingresses=len(result.ingresses),
                        secrets=len(result.secrets),
                        plugin_remapped=remap.remapped)
        log_function_exit(logger, "build", service_id=self.service_id, status="success")
        return result

    def _apply_upstream_plugin(self, ports: List[ServicePort]) -> PortRemap:
        related = guarded_lookup("has_upstream_plugin_relation", self.service_id,
                                 self.store.has_upstream_plugin_relation, self.service_id)
        if not related:
            return PortRemap(ports, {}, {})

        plugin_ports = guarded_lookup("get_plugin_mapping_ports", self.service_id,
                                      self.store.get_plugin_mapping_ports, self.service_id,
                                      PluginModel.UPSTREAM_NET)
        remap = remap_plugin_ports(ports, plugin_ports)
        logger.debug("Upstream plugin ports applied",
                    service_id=self.service_id,
                    plugin_ports=len(plugin_ports),
                    remapped=len(remap.origins))
        return remap

    def build_on_port(self, container_port: int, is_outer: bool) -> client.V1Service:
        """Build the single inner or outer service of one port, without routing rules.

        Raises:
            PortNotFoundError: If the port does not exist or is not exposed in
                the requested direction.
            LookupFailedError: If the port lookup fails.
        """
        port = guarded_lookup("get_port", container_port, self.store.get_port, self.service_id, container_port)
        if port is not None:
            if not is_outer and port.is_inner_service:
                return create_inner_service(port, self.service, self.tenant)
            if is_outer and port.is_outer_service:
                return create_outer_service(port, self.service, self.tenant, self.config, self.event_id)
        raise PortNotFoundError(container_port, self.service_id)


def register_tenant_service(
    app_service: AppService, store: ServiceStore, config: BuildConfig, event_id: str = ""
) -> BuildResult:
    """Build a tenant service and store the produced objects on ``app_service``."""
    builder = AppServiceBuild.from_store(
        app_service.service_id, app_service.replication_type, store, config, event_id=event_id
    )
    result = builder.build()
    for service in result.services:
        app_service.set_service(service)
    for ingress in result.ingresses:
        app_service.set_ingress(ingress)
    for secret in result.secrets:
        app_service.set_secret(secret)
    log_build_event(logger, "tenant_service_registered", app_service.service_id, app_service=repr(app_service))
    return result
