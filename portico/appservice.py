"""In-memory projection target for a tenant service."""

from typing import Dict, List

from kubernetes import client

from .models import ReplicationType


class AppService:
    """Collects the networking objects projected for one tenant service.

    Objects are keyed by name; setting an object with a name already present
    replaces it.
    """

    def __init__(self, service_id: str, replication_type: ReplicationType = ReplicationType.STATELESS):
        self.service_id = service_id
        self.replication_type = ReplicationType(replication_type)
        self._services: Dict[str, client.V1Service] = {}
        self._ingresses: Dict[str, client.V1Ingress] = {}
        self._secrets: Dict[str, client.V1Secret] = {}

    def set_service(self, service: client.V1Service) -> None:
        self._services[service.metadata.name] = service

    def set_ingress(self, ingress: client.V1Ingress) -> None:
        self._ingresses[ingress.metadata.name] = ingress

    def set_secret(self, secret: client.V1Secret) -> None:
        self._secrets[secret.metadata.name] = secret

    def get_services(self) -> List[client.V1Service]:
        return list(self._services.values())

    def get_ingresses(self) -> List[client.V1Ingress]:
        return list(self._ingresses.values())

    def get_secrets(self) -> List[client.V1Secret]:
        return list(self._secrets.values())

    def __repr__(self) -> str:
        return (f"AppService(service_id={self.service_id!r}, services={len(self._services)}, "
                f"ingresses={len(self._ingresses)}, secrets={len(self._secrets)})")
