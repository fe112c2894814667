"""Errors raised while projecting a service into networking resources."""

from typing import Any, Optional


class PorticoError(Exception):
    """Base class for all build errors."""


class NotFoundError(PorticoError):
    """A required record does not exist."""

    kind = "record"

    def __init__(self, key: Any, service_id: Optional[str] = None):
        self.key = key
        self.service_id = service_id
        message = f"did not find the {self.kind} {key}"
        if service_id and service_id != key:
            message += f" for service {service_id}"
        super().__init__(message)


class ServiceNotFoundError(NotFoundError):
    kind = "tenant service"


class TenantNotFoundError(NotFoundError):
    kind = "tenant"


class CertificateNotFoundError(NotFoundError):
    kind = "certificate"


class PortNotFoundError(NotFoundError):
    kind = "service port"


class LookupFailedError(PorticoError):
    """A collaborator lookup failed.

    Args:
        lookup: Name of the lookup that failed, e.g. ``get_ports_by_service_id``
        key: The key the lookup was made with
        reason: Underlying error message
    """

    def __init__(self, lookup: str, key: Any, reason: str = ""):
        self.lookup = lookup
        self.key = key
        self.reason = reason
        message = f"{lookup}({key}) failed"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class NoRoutingRuleError(PorticoError):
    """An outer port has neither an HTTP rule nor a TCP rule."""

    def __init__(self, service_id: str, port: int):
        self.service_id = service_id
        self.port = port
        super().__init__(f"can't find HTTPRule or TCPRule for outer service {service_id} port {port}")
