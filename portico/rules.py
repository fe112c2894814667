"""Routing rule application.

Turns the HTTP and TCP rules stored for an outer port into ``V1Ingress``
objects, and a certificate reference into a TLS ``V1Secret``.
"""

import base64
from typing import Callable, List, Optional, Tuple

from kubernetes import client

from . import naming
from .errors import CertificateNotFoundError, NoRoutingRuleError
from .logging_config import get_logger, log_function_entry, log_function_exit
from .models import BuildConfig, HTTPRule, RuleExtensionKey, ServicePort, TCPRule, Tenant, TenantService
from .store import ServiceStore, guarded_lookup

logger = get_logger(__name__)

PATH_TYPE = "ImplementationSpecific"


def create_default_domain(config: BuildConfig, tenant_name: str, service_alias: str, port: int) -> str:
    """Return ``{port}.{alias}.{tenant}.{ex_domain}``, or "" without an external domain."""
    ex_domain = config.external_domain_base
    if not ex_domain:
        return ""
    return f"{port}.{service_alias}.{tenant_name}.{ex_domain}"


def _strip_spaces(value: str) -> str:
    return "".join(value.split())


def _b64(value: str) -> str:
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def _candidate_ports(port: ServicePort, origin_port: Optional[int]) -> List[int]:
    if origin_port is None or origin_port == port.container_port:
        return [port.container_port]
    return [origin_port, port.container_port]


class RouteRuleApplier:
    """Applies the routing rules of a tenant service's outer ports."""

    def __init__(
        self,
        store: ServiceStore,
        service: TenantService,
        tenant: Tenant,
        config: BuildConfig,
        new_id: Callable[[], str] = naming.new_short_id,
        annotation_key: Optional[Callable[[str], str]] = None,
    ):
        self.store = store
        self.service = service
        self.tenant = tenant
        self.config = config
        self.new_id = new_id
        self.annotation_key = annotation_key or self._prefixed_annotation_key

    def _prefixed_annotation_key(self, name: str) -> str:
        return naming.annotation_key(name, self.config.annotation_prefix)

    def apply_rules(
        self, port: ServicePort, outer_service: client.V1Service, origin_port: Optional[int] = None
    ) -> Tuple[List[client.V1Ingress], Optional[client.V1Secret]]:
        """Build the ingresses and TLS secret for one outer port.

        A port rewritten by an upstream plugin is looked up by its
        ``origin_port`` first, then by its plugin assigned container port.

        Raises:
            NoRoutingRuleError: If the port has neither an HTTP nor a TCP rule.
            CertificateNotFoundError: If the HTTP rule references a missing certificate.
            LookupFailedError: If a certificate or rule extension lookup fails.
        """
        log_function_entry(logger, "apply_rules",
                          service_id=port.service_id,
                          container_port=port.container_port,
                          origin_port=origin_port)

        http_rule = tcp_rule = None
        for rule_port in _candidate_ports(port, origin_port):
            http_rule = self._lookup_rule(self.store.get_http_rule, "HTTPRule", port.service_id, rule_port)
            tcp_rule = self._lookup_rule(self.store.get_tcp_rule, "TCPRule", port.service_id, rule_port)
            if http_rule is not None or tcp_rule is not None:
                break
        else:
            raise NoRoutingRuleError(port.service_id, port.container_port)

        ingresses = []
        secret = None
        if http_rule is not None:
            ingress, secret = self.apply_http_rule(http_rule, outer_service)
            ingresses.append(ingress)
        if tcp_rule is not None:
            ingresses.append(self.apply_tcp_rule(tcp_rule, outer_service))

        log_function_exit(logger, "apply_rules",
                         service_id=port.service_id,
                         container_port=port.container_port,
                         ingresses=len(ingresses),
                         tls=secret is not None)
        return ingresses, secret

    def _lookup_rule(self, lookup, kind: str, service_id: str, container_port: int):
        try:
            return lookup(service_id, container_port)
        except Exception as e:
            logger.info(f"Can't get {kind} for port",
                       service_id=service_id,
                       container_port=container_port,
                       error=str(e))
            return None

    def apply_http_rule(
        self, rule: HTTPRule, outer_service: client.V1Service
    ) -> Tuple[client.V1Ingress, Optional[client.V1Secret]]:
        """Build the ingress for an HTTP rule, plus its TLS secret if it has a certificate."""
        path = _strip_spaces(rule.path) or "/"
        domain = _strip_spaces(rule.domain)
        if not domain:
            domain = create_default_domain(
                self.config, self.tenant.name, self.service.service_alias, rule.container_port
            )
            logger.debug("Using default domain", rule_id=rule.uuid, domain=domain)

        backend = client.V1IngressBackend(
            service=client.V1IngressServiceBackend(
                name=outer_service.metadata.name,
                port=client.V1ServiceBackendPort(number=outer_service.spec.ports[0].port),
            )
        )
        ingress = client.V1Ingress(
            api_version="networking.k8s.io/v1",
            kind="Ingress",
            metadata=client.V1ObjectMeta(
                name=f"ing-{domain}-{self.new_id()}",
                namespace=self.tenant.uuid,
            ),
            spec=client.V1IngressSpec(
                rules=[
                    client.V1IngressRule(
                        host=domain or None,
                        http=client.V1HTTPIngressRuleValue(
                            paths=[client.V1HTTPIngressPath(path=path, path_type=PATH_TYPE, backend=backend)]
                        ),
                    )
                ]
            ),
        )

        annotations = {}
        if rule.header:
            annotations[self.annotation_key("header")] = rule.header
        if rule.cookie:
            annotations[self.annotation_key("cookie")] = rule.cookie

        secret = None
        if rule.certificate_id:
            secret = self._create_tls_secret(rule, domain)
            ingress.spec.tls = [client.V1IngressTLS(hosts=[domain], secret_name=secret.metadata.name)]

        extensions = guarded_lookup("get_rule_extensions", rule.uuid, self.store.get_rule_extensions, rule.uuid)
        for extension in extensions:
            if extension.key == RuleExtensionKey.HTTP_TO_HTTPS.value:
                annotations[self.annotation_key("force-ssl-redirect")] = "true"
            elif extension.key == RuleExtensionKey.LB_TYPE.value:
                annotations[self.annotation_key("lb-type")] = extension.value
            else:
                logger.warning("Unexpected rule extension",
                              rule_id=rule.uuid,
                              key=extension.key,
                              value=extension.value)

        ingress.metadata.annotations = annotations
        return ingress, secret

    def _create_tls_secret(self, rule: HTTPRule, domain: str) -> client.V1Secret:
        certificate = guarded_lookup(
            "get_certificate_by_id", rule.certificate_id, self.store.get_certificate_by_id, rule.certificate_id
        )
        if certificate is None:
            raise CertificateNotFoundError(rule.certificate_id, rule.service_id)
        return client.V1Secret(
            api_version="v1",
            kind="Secret",
            metadata=client.V1ObjectMeta(
                name=f"certificate-{domain}",
                namespace=self.tenant.uuid,
            ),
            data={
                "tls.crt": _b64(certificate.certificate),
                "tls.key": _b64(certificate.private_key),
            },
            type="Opaque",
        )

    def apply_tcp_rule(self, rule: TCPRule, outer_service: client.V1Service) -> client.V1Ingress:
        """Build the layer 4 ingress for a TCP rule.

        The ingress only has a default backend; the stream endpoint travels in
        annotations.
        """
        ingress = client.V1Ingress(
            api_version="networking.k8s.io/v1",
            kind="Ingress",
            metadata=client.V1ObjectMeta(
                name=f"ing-{rule.ip}-{self.new_id()}",
                namespace=self.tenant.uuid,
                annotations={
                    self.annotation_key("l4-enable"): "true",
                    self.annotation_key("l4-host"): rule.ip,
                    self.annotation_key("l4-port"): str(rule.port),
                },
            ),
            spec=client.V1IngressSpec(
                default_backend=client.V1IngressBackend(
                    service=client.V1IngressServiceBackend(
                        name=outer_service.metadata.name,
                        port=client.V1ServiceBackendPort(number=outer_service.spec.ports[0].port),
                    )
                )
            ),
        )
        return ingress
