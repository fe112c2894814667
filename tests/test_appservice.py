"""Tests for AppService."""

from kubernetes import client

from portico.appservice import AppService
from portico.models import ReplicationType


def _service(name):
    return client.V1Service(metadata=client.V1ObjectMeta(name=name))


def test_defaults():
    """Test a new AppService is empty and stateless."""
    app_service = AppService("svc-1")
    assert app_service.replication_type is ReplicationType.STATELESS
    assert app_service.get_services() == []
    assert app_service.get_ingresses() == []
    assert app_service.get_secrets() == []


def test_replication_type_from_string():
    """Test that the replication type parses from a string."""
    assert AppService("svc-1", "stateful").replication_type is ReplicationType.STATEFUL


def test_set_replaces_by_name():
    """Test that setting a same-named object replaces it."""
    app_service = AppService("svc-1")
    first, second = _service("service-1-80"), _service("service-1-80")

    app_service.set_service(first)
    app_service.set_service(second)
    app_service.set_service(_service("service-2-8080out"))

    services = app_service.get_services()
    assert len(services) == 2
    assert services[0] is second


def test_ingresses_and_secrets():
    """Test storing ingresses and secrets."""
    app_service = AppService("svc-1")
    app_service.set_ingress(client.V1Ingress(metadata=client.V1ObjectMeta(name="ing-a.com-1")))
    app_service.set_secret(client.V1Secret(metadata=client.V1ObjectMeta(name="certificate-a.com")))

    assert [i.metadata.name for i in app_service.get_ingresses()] == ["ing-a.com-1"]
    assert [s.metadata.name for s in app_service.get_secrets()] == ["certificate-a.com"]
    assert repr(app_service) == "AppService(service_id='svc-1', services=0, ingresses=1, secrets=1)"
