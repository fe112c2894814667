"""Shared fixtures for portico tests."""

import pytest

from portico.models import (
    BuildConfig,
    Catalog,
    Certificate,
    HTTPRule,
    RuleExtension,
    ServicePort,
    TCPRule,
    Tenant,
    TenantService,
)
from portico.store import CatalogStore


@pytest.fixture
def tenant():
    """Create a test tenant."""
    return Tenant(uuid="tenant-uuid-1", name="acme")


@pytest.fixture
def service():
    """Create a test tenant service with a single replica."""
    return TenantService(
        service_id="svc-1",
        tenant_id="tenant-uuid-1",
        service_alias="web",
        service_name="web-stateful",
        deploy_version="20240101",
        replicas=1,
    )


@pytest.fixture
def config():
    """Create a build configuration with an external domain."""
    return BuildConfig(ex_domain="example.com")


@pytest.fixture
def inner_port():
    return ServicePort(id=1, service_id="svc-1", container_port=80, protocol="http", is_inner_service=True)


@pytest.fixture
def outer_port():
    return ServicePort(id=2, service_id="svc-1", container_port=8080, protocol="http", is_outer_service=True)


@pytest.fixture
def catalog(tenant, service, inner_port, outer_port):
    """Create a catalog with one inner port and one outer port routed over HTTPS."""
    return Catalog(
        tenants=[tenant],
        services=[service],
        ports=[inner_port, outer_port],
        http_rules=[
            HTTPRule(
                uuid="rule-1",
                service_id="svc-1",
                container_port=8080,
                domain="www.example.com",
                path="/api",
                certificate_id="cert-1",
            )
        ],
        tcp_rules=[TCPRule(uuid="tcp-1", service_id="svc-1", container_port=9000, ip="10.0.0.1", port=30000)],
        rule_extensions=[RuleExtension(rule_id="rule-1", key="httptohttps", value="true")],
        certificates=[Certificate(uuid="cert-1", certificate="CERT PEM", private_key="KEY PEM")],
    )


@pytest.fixture
def store(catalog):
    return CatalogStore(catalog)
