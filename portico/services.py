"""Service object synthesis.

Builds the inner, outer and stateful (headless) ``V1Service`` variants for a
tenant service. Every function here is pure: all records are already loaded.
"""

from typing import Dict, List, Optional

from kubernetes import client

from .models import BuildConfig, ServicePort, Tenant, TenantService

CREATOR = "Portico"
TOLERATE_UNREADY_KEY = "portico.io/tolerate-unready-endpoints"
# Honoured by clusters that predate spec.publishNotReadyAddresses
ALPHA_TOLERATE_UNREADY_KEY = "service.alpha.kubernetes.io/tolerate-unready-endpoints"

SERVICE_TYPE_LABEL = "service_type"
SERVICE_TYPE_INNER = "inner"
SERVICE_TYPE_OUTER = "outer"
SERVICE_TYPE_STATEFUL = "stateful"


def common_labels(service: TenantService, tenant: Tenant, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """Labels shared by every service object of a tenant service."""
    labels = {
        "tenant_id": tenant.uuid,
        "tenant_name": tenant.name,
        "service_id": service.service_id,
        "service_alias": service.service_alias,
        "creator": CREATOR,
    }
    if extra:
        labels.update(extra)
    return labels


def service_protocol(port: ServicePort) -> str:
    return "UDP" if port.protocol == "udp" else "TCP"


def _tolerate_unready(service: TenantService) -> Dict[str, str]:
    if service.replicas <= 1:
        return {TOLERATE_UNREADY_KEY: "true"}
    return {}


def _service_port(port: ServicePort, name: Optional[str] = None) -> client.V1ServicePort:
    return client.V1ServicePort(
        name=name,
        protocol=service_protocol(port),
        port=port.visible_port,
        target_port=port.container_port,
    )


def create_inner_service(port: ServicePort, service: TenantService, tenant: Tenant) -> client.V1Service:
    """Create the cluster internal service for one inner port.

    The name depends only on the port id and container port, so building the
    same port twice yields the same object name.
    """
    tolerate = _tolerate_unready(service)
    labels = common_labels(service, tenant, {
        SERVICE_TYPE_LABEL: SERVICE_TYPE_INNER,
        "name": f"{service.service_alias}Service",
        "port_protocol": port.protocol,
        "version": service.deploy_version,
    })
    labels.update(tolerate)
    return client.V1Service(
        api_version="v1",
        kind="Service",
        metadata=client.V1ObjectMeta(
            name=f"service-{port.id}-{port.container_port}",
            namespace=tenant.uuid,
            labels=labels,
            annotations=dict(tolerate),
        ),
        spec=client.V1ServiceSpec(
            ports=[_service_port(port)],
            selector={"name": service.service_alias},
        ),
    )


def create_outer_service(
    port: ServicePort,
    service: TenantService,
    tenant: Tenant,
    config: BuildConfig,
    event_id: str = "",
) -> client.V1Service:
    """Create the externally exposed service for one outer port.

    The service is a ``NodePort`` when the configured network mode exposes
    outer services on nodes, a ``ClusterIP`` otherwise.
    """
    tolerate = _tolerate_unready(service)
    labels = common_labels(service, tenant, {
        SERVICE_TYPE_LABEL: SERVICE_TYPE_OUTER,
        "name": f"{service.service_alias}ServiceOUT",
        "protocol": port.protocol,
        "port_protocol": port.protocol,
        "event_id": event_id,
        "version": service.deploy_version,
    })
    labels.update(tolerate)
    return client.V1Service(
        api_version="v1",
        kind="Service",
        metadata=client.V1ObjectMeta(
            name=f"service-{port.id}-{port.container_port}out",
            namespace=tenant.uuid,
            labels=labels,
            annotations=dict(tolerate),
        ),
        spec=client.V1ServiceSpec(
            ports=[_service_port(port)],
            selector={"name": service.service_alias},
            type="NodePort" if config.uses_node_port else "ClusterIP",
        ),
    )


def create_stateful_service(ports: List[ServicePort], service: TenantService, tenant: Tenant) -> client.V1Service:
    """Create the headless service covering every port of a stateful service."""
    return client.V1Service(
        api_version="v1",
        kind="Service",
        metadata=client.V1ObjectMeta(
            name=service.service_name or service.service_alias,
            namespace=tenant.uuid,
            labels={
                SERVICE_TYPE_LABEL: SERVICE_TYPE_STATEFUL,
                "name": f"{service.service_alias}ServiceStateful",
                "creator": CREATOR,
                "service_id": service.service_id,
                "version": service.deploy_version,
            },
            annotations={ALPHA_TOLERATE_UNREADY_KEY: "true"},
        ),
        spec=client.V1ServiceSpec(
            ports=[_service_port(port, name=f"{port.id}-port") for port in ports],
            selector={"name": service.service_alias},
            cluster_ip="None",
            publish_not_ready_addresses=True,
        ),
    )
