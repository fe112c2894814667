"""Upstream network plugin port remapping."""

from typing import Dict, List, NamedTuple, Tuple

from kubernetes import client

from .logging_config import get_logger
from .models import PluginMappingPort, ServicePort

logger = get_logger(__name__)

ORIGIN_PORT_LABEL = "origin_port"


class PortRemap(NamedTuple):
    """Outcome of an upstream plugin remapping.

    ``reverse`` maps each plugin port back to the container port it replaced.
    ``origins`` maps the id of every rewritten port record to its original
    container port; ports missing from it were not touched.
    """

    ports: List[ServicePort]
    reverse: Dict[int, int]
    origins: Dict[int, int]

    @property
    def remapped(self) -> bool:
        return bool(self.origins)


def remap_plugin_ports(ports: List[ServicePort], plugin_ports: List[PluginMappingPort]) -> PortRemap:
    """Substitute plugin assigned ports for the ports a plugin intercepts.

    Args:
        ports: The service's ports
        plugin_ports: Mapping records of the upstream plugin

    Returns:
        A ``PortRemap`` whose port list has the matched ports replaced by
        remapped copies. When no port matches, the input list is returned as
        is with empty maps.
    """
    substitutes: Dict[int, int] = {}
    for pport in plugin_ports:
        substitutes.setdefault(pport.container_port, pport.plugin_port)

    if not any(port.container_port in substitutes for port in ports):
        return PortRemap(ports, {}, {})

    reverse: Dict[int, int] = {}
    origins: Dict[int, int] = {}
    remapped = []
    for port in ports:
        plugin_port = substitutes.get(port.container_port)
        if plugin_port is None:
            remapped.append(port)
            continue
        reverse[plugin_port] = port.container_port
        origins[port.id] = port.container_port
        remapped.append(port.model_copy(update={"container_port": plugin_port, "mapping_port": plugin_port}))
        logger.debug("Port remapped by upstream plugin",
                    service_id=port.service_id,
                    port_id=port.id,
                    origin_port=port.container_port,
                    plugin_port=plugin_port)
    return PortRemap(remapped, reverse, origins)


def label_origin_ports(outer_services: List[Tuple[ServicePort, client.V1Service]], origins: Dict[int, int]) -> None:
    """Label outer services with the port they exposed before remapping.

    Ports that were not rewritten keep their own container port.
    """
    for port, service in outer_services:
        origin = origins.get(port.id, port.container_port)
        labels = service.metadata.labels or {}
        labels[ORIGIN_PORT_LABEL] = str(origin)
        service.metadata.labels = labels
        logger.debug("Outer service labelled with origin port",
                    service=service.metadata.name,
                    port_id=port.id,
                    origin_port=origin)
