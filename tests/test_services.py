"""Tests for service object synthesis."""

import pytest

from portico.models import BuildConfig, ServicePort
from portico.services import (
    ALPHA_TOLERATE_UNREADY_KEY,
    CREATOR,
    TOLERATE_UNREADY_KEY,
    common_labels,
    create_inner_service,
    create_outer_service,
    create_stateful_service,
)


class TestInnerService:
    """Tests for create_inner_service."""

    def test_name_is_stable(self, inner_port, service, tenant):
        """Test that the inner service name is stable across builds."""
        first = create_inner_service(inner_port, service, tenant)
        second = create_inner_service(inner_port, service, tenant)
        assert first.metadata.name == "service-1-80"
        assert first.metadata.name == second.metadata.name

    def test_port_and_selector(self, inner_port, service, tenant):
        """Test the port, selector and namespace of an inner service."""
        svc = create_inner_service(inner_port, service, tenant)
        assert len(svc.spec.ports) == 1
        assert svc.spec.ports[0].port == 80
        assert svc.spec.ports[0].target_port == 80
        assert svc.spec.ports[0].protocol == "TCP"
        assert svc.spec.selector == {"name": "web"}
        assert svc.metadata.namespace == "tenant-uuid-1"

    def test_mapping_port_is_visible_port(self, service, tenant):
        """Test that the mapping port is exposed when set."""
        port = ServicePort(id=3, service_id="svc-1", container_port=8080, mapping_port=80, is_inner_service=True)
        svc = create_inner_service(port, service, tenant)
        assert svc.spec.ports[0].port == 80
        assert svc.spec.ports[0].target_port == 8080

    def test_udp_protocol(self, service, tenant):
        """Test that udp ports use the UDP protocol."""
        port = ServicePort(id=3, service_id="svc-1", container_port=53, protocol="udp", is_inner_service=True)
        assert create_inner_service(port, service, tenant).spec.ports[0].protocol == "UDP"

    @pytest.mark.parametrize("protocol", ["tcp", "http", "mysql", "UDP"])
    def test_other_protocols_are_tcp(self, service, tenant, protocol):
        """Test that every other protocol maps to TCP."""
        port = ServicePort(id=3, service_id="svc-1", container_port=53, protocol=protocol, is_inner_service=True)
        assert create_inner_service(port, service, tenant).spec.ports[0].protocol == "TCP"

    def test_labels(self, inner_port, service, tenant):
        """Test the labels of the service."""
        labels = create_inner_service(inner_port, service, tenant).metadata.labels
        assert labels["service_type"] == "inner"
        assert labels["name"] == "webService"
        assert labels["service_id"] == "svc-1"
        assert labels["version"] == "20240101"
        assert labels["creator"] == CREATOR
        assert labels["port_protocol"] == "http"

    def test_single_replica_tolerates_unready(self, inner_port, service, tenant):
        """Test that a single replica tolerates unready endpoints."""
        svc = create_inner_service(inner_port, service, tenant)
        assert svc.metadata.labels[TOLERATE_UNREADY_KEY] == "true"
        assert svc.metadata.annotations == {TOLERATE_UNREADY_KEY: "true"}

    def test_multiple_replicas_do_not_tolerate_unready(self, inner_port, service, tenant):
        """Test that several replicas do not tolerate unready endpoints."""
        service = service.model_copy(update={"replicas": 3})
        svc = create_inner_service(inner_port, service, tenant)
        assert TOLERATE_UNREADY_KEY not in svc.metadata.labels
        assert svc.metadata.annotations == {}


class TestOuterService:
    """Tests for create_outer_service."""

    def test_name_has_out_suffix(self, outer_port, service, tenant, config):
        """Test that outer service names end in out."""
        svc = create_outer_service(outer_port, service, tenant, config)
        assert svc.metadata.name == "service-2-8080out"

    def test_labels(self, outer_port, service, tenant, config):
        """Test the labels of the service."""
        labels = create_outer_service(outer_port, service, tenant, config, event_id="evt-1").metadata.labels
        assert labels["service_type"] == "outer"
        assert labels["name"] == "webServiceOUT"
        assert labels["tenant_name"] == "acme"
        assert labels["event_id"] == "evt-1"
        assert labels["protocol"] == "http"

    def test_cluster_ip_by_default(self, outer_port, service, tenant, config):
        """Test that outer services default to ClusterIP."""
        assert create_outer_service(outer_port, service, tenant, config).spec.type == "ClusterIP"

    def test_node_port_network_mode(self, outer_port, service, tenant):
        """Test that node port network modes produce NodePort services."""
        config = BuildConfig(network_mode="midonet")
        assert create_outer_service(outer_port, service, tenant, config).spec.type == "NodePort"

    def test_mapping_port_fallback(self, outer_port, service, tenant, config):
        """Test that the container port is exposed without a mapping port."""
        svc = create_outer_service(outer_port, service, tenant, config)
        assert svc.spec.ports[0].port == 8080

    def test_mapping_port_is_visible_port(self, service, tenant, config):
        """Test that the mapping port is exposed when set."""
        port = ServicePort(id=4, service_id="svc-1", container_port=8080, mapping_port=443, is_outer_service=True)
        svc = create_outer_service(port, service, tenant, config)
        assert svc.spec.ports[0].port == 443
        assert svc.spec.ports[0].target_port == 8080


class TestStatefulService:
    """Tests for create_stateful_service."""

    @pytest.fixture
    def stateful_ports(self):
        return [
            ServicePort(id=10, service_id="svc-1", container_port=8080, mapping_port=80),
            ServicePort(id=11, service_id="svc-1", container_port=8443, mapping_port=443),
        ]

    def test_headless_service_covers_all_ports(self, stateful_ports, service, tenant):
        """Test that the headless service has one port per record."""
        svc = create_stateful_service(stateful_ports, service, tenant)
        assert svc.metadata.name == "web-stateful"
        assert svc.spec.cluster_ip == "None"
        assert [p.name for p in svc.spec.ports] == ["10-port", "11-port"]
        assert [p.port for p in svc.spec.ports] == [80, 443]
        assert [p.target_port for p in svc.spec.ports] == [8080, 8443]

    def test_publishes_unready_endpoints(self, stateful_ports, service, tenant):
        """Test that the headless service publishes unready endpoints."""
        svc = create_stateful_service(stateful_ports, service, tenant)
        assert svc.spec.publish_not_ready_addresses is True
        assert svc.metadata.annotations == {ALPHA_TOLERATE_UNREADY_KEY: "true"}
        assert svc.metadata.labels["service_type"] == "stateful"

    def test_mapping_port_fallback(self, service, tenant):
        """Test that the container port is exposed without a mapping port."""
        ports = [ServicePort(id=12, service_id="svc-1", container_port=3306)]
        svc = create_stateful_service(ports, service, tenant)
        assert svc.spec.ports[0].port == 3306

    def test_name_falls_back_to_alias(self, stateful_ports, service, tenant):
        """Test that the alias names the service when the service name is empty."""
        service = service.model_copy(update={"service_name": ""})
        assert create_stateful_service(stateful_ports, service, tenant).metadata.name == "web"


def test_common_labels_merge_extra(service, tenant):
    """Test that extra labels override the common ones."""
    labels = common_labels(service, tenant, {"creator": "someone-else", "extra": "1"})
    assert labels["tenant_id"] == "tenant-uuid-1"
    assert labels["service_alias"] == "web"
    assert labels["creator"] == "someone-else"
    assert labels["extra"] == "1"
