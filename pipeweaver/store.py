"""State of the audio graph: managed nodes, filters and links, and unmanaged hardware."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from pipeweaver.audio_types import (
    DeviceAdded,
    DeviceRemoved,
    FilterHandler,
    FilterValue,
    LinkKind,
    LinkType,
    ManagedLinkDropped,
    MediaClass,
    PipewireNode,
    PipewireReceiver,
    PortLocation,
    ReadySender,
)
from pipeweaver.identifiers import Ulid
from pipeweaver.registry import Direction, RegistryDevice, RegistryLink, RegistryNode

_log = logging.getLogger(__name__)


def _empty_node_ports() -> dict[PortLocation, Optional[int]]:
    return {location: None for location in PortLocation}


def _default_filter_ports() -> dict[Direction, dict[PortLocation, int]]:
    return {direction: {location: 0 for location in PortLocation} for direction in Direction}


def _empty_links() -> dict[PortLocation, Optional[LinkStoreMap]]:
    return {location: None for location in PortLocation}


@dataclass
class NodeStore:
    """A virtual device node created by the mixer."""

    id: Ulid
    pw_id: Optional[int] = None
    props: dict[str, str] = field(default_factory=dict)
    request_ports: Optional[Callable[[], None]] = None
    port_map: dict[PortLocation, Optional[int]] = field(default_factory=_empty_node_ports)
    ports_ready: bool = False
    ready_sender: ReadySender = None
    resources: list[Any] = field(default_factory=list)


@dataclass
class FilterStore:
    """A processing filter created by the mixer."""

    id: Ulid
    callback: FilterHandler
    pw_id: Optional[int] = None
    port_map: dict[Direction, dict[PortLocation, int]] = field(
        default_factory=_default_filter_ports
    )
    input_ports: list[Any] = field(default_factory=list)
    output_ports: list[Any] = field(default_factory=list)
    ready_sender: ReadySender = None
    resources: list[Any] = field(default_factory=list)
    lock: Any = field(default_factory=threading.RLock, repr=False, compare=False)


@dataclass
class LinkStoreMap:
    """One channel's link inside a link group."""

    internal_id: Ulid
    source_port_id: int
    destination_port_id: int
    pw_id: Optional[int] = None
    resources: list[Any] = field(default_factory=list)


@dataclass
class LinkGroupStore:
    """The per-channel links joining one source to one destination."""

    source: LinkType
    destination: LinkType
    links: dict[PortLocation, Optional[LinkStoreMap]] = field(default_factory=_empty_links)
    ready_sender: ReadySender = None


class Store:
    """Tracks everything the mixer created and the hardware the server reported."""

    def __init__(self, callback: Callable[[PipewireReceiver], Any]) -> None:
        self._callback = callback

        self._managed_nodes: dict[Ulid, NodeStore] = {}
        self._managed_filters: dict[Ulid, FilterStore] = {}
        self._managed_links: dict[Ulid, LinkGroupStore] = {}

        self._unmanaged_devices: dict[int, RegistryDevice] = {}
        self._unmanaged_nodes: dict[int, RegistryNode] = {}
        self._unmanaged_links: dict[int, RegistryLink] = {}

        self._usable_nodes: list[int] = []

    def _send(self, message: PipewireReceiver) -> None:
        try:
            self._callback(message)
        except Exception:  # a dead receiver must not break the store
            _log.debug("Unable to deliver %r", message)

    # Unmanaged objects

    def is_managed_node(self, id: int) -> bool:
        return any(node.pw_id == id for node in self._managed_nodes.values())

    def unmanaged_device_add(self, id: int, device: RegistryDevice) -> None:
        if self.is_managed_node(id):
            return
        self._unmanaged_devices[id] = device

    def unmanaged_device_get(self, id: int) -> Optional[RegistryDevice]:
        return self._unmanaged_devices.get(id)

    def unmanaged_node_add(self, id: int, node: RegistryNode) -> None:
        if self.is_managed_node(id):
            return
        self._unmanaged_nodes[id] = node
        self.unmanaged_node_check(id)

    def unmanaged_node_check(self, id: int) -> None:
        """Report a node that has become usable, or one that no longer is."""
        node = self._unmanaged_nodes.get(id)
        if node is None:
            return
        media_class = self.is_usable_node(id)
        if media_class is not None and id not in self._usable_nodes:
            self._usable_nodes.append(id)
            self._send(
                DeviceAdded(
                    PipewireNode(
                        node_id=id,
                        node_class=media_class,
                        name=node.name,
                        nickname=node.nickname,
                        description=node.description,
                    )
                )
            )
            return
        if media_class is None and id in self._usable_nodes:
            self._usable_nodes = [value for value in self._usable_nodes if value != id]
            self._send(DeviceRemoved(id))

    def unmanaged_node_get(self, id: int) -> Optional[RegistryNode]:
        return self._unmanaged_nodes.get(id)

    def unmanaged_link_add(self, id: int, link: RegistryLink) -> None:
        if self.is_managed_link(id) is None:
            self._unmanaged_links[id] = link

    def is_managed_link(self, id: int) -> Optional[Ulid]:
        """The id of the link group owning the server link ``id``, if any."""
        return next(
            (
                group_id
                for group_id, group in self._managed_links.items()
                if any(link is not None and link.pw_id == id for link in group.links.values())
            ),
            None,
        )

    # Managed nodes

    def _node(self, id: Ulid) -> NodeStore:
        try:
            return self._managed_nodes[id]
        except KeyError:
            raise KeyError(f"no managed node {id}") from None

    def node_add(self, node: NodeStore) -> None:
        _log.debug("[%s] Device Added to Store, waiting for data", node.id)
        self._managed_nodes[node.id] = node

    def node_get(self, id: Ulid) -> Optional[NodeStore]:
        return self._managed_nodes.get(id)

    def node_remove(self, id: Ulid) -> None:
        # Links attached to the node are cleaned up by the server.
        self._managed_nodes.pop(id, None)

    def node_set_pw_id(self, id: Ulid, pw_id: int) -> None:
        self._node(id).pw_id = pw_id
        self.node_check_ready(id)

    def node_request_ports(self, id: Ulid) -> None:
        node = self._node(id)
        if node.request_ports is not None:
            node.request_ports()

    def node_add_port(self, id: Ulid, location: PortLocation, port_id: int) -> None:
        node = self._node(id)
        node.port_map[location] = port_id
        if all(node.port_map.get(loc) is not None for loc in PortLocation):
            self.node_ports_ready(id)

    def node_ports_ready(self, id: Ulid) -> None:
        self._node(id).ports_ready = True
        self.node_check_ready(id)

    def node_check_ready(self, id: Ulid) -> None:
        """Fire the node's ready callback once it has both an id and its ports."""
        node = self._node(id)
        if node.ports_ready and node.pw_id is not None and node.ready_sender is not None:
            sender, node.ready_sender = node.ready_sender, None
            _log.debug("[%s] Device Ready, sending callback", id)
            sender()

    # Managed filters

    def _filter(self, id: Ulid) -> FilterStore:
        try:
            return self._managed_filters[id]
        except KeyError:
            raise KeyError(f"no managed filter {id}") from None

    def filter_add(self, filter: FilterStore) -> None:
        _log.debug("[%s] Filter Added to Store", filter.id)
        self._managed_filters[filter.id] = filter

    def filter_get(self, id: Ulid) -> Optional[FilterStore]:
        return self._managed_filters.get(id)

    def filter_remove(self, id: Ulid) -> None:
        self.link_remove_for_type(LinkType(LinkKind.Filter, id))
        self._managed_filters.pop(id, None)

    def filter_set_pw_id(self, id: Ulid, pw_id: int) -> None:
        filter = self._filter(id)
        filter.pw_id = pw_id
        if filter.ready_sender is not None:
            sender, filter.ready_sender = filter.ready_sender, None
            sender()

    def filter_set_parameter(self, id: Ulid, key: int, value: FilterValue) -> None:
        filter = self._filter(id)
        with filter.lock:
            filter.callback.set_property(key, value)

    # Managed links

    def link_add_group(self, id: Ulid, group: LinkGroupStore) -> None:
        self._managed_links[id] = group

    def link_ready(self, id: Ulid, link_id: Ulid, pw_id: int) -> None:
        group = self._managed_links.get(id)
        if group is not None:
            for link in group.links.values():
                if link is not None and link.internal_id == link_id:
                    link.pw_id = pw_id
                    # The server announces the link before it becomes active here.
                    self._unmanaged_links.pop(pw_id, None)
        self.link_ready_check(id)

    def link_ready_check(self, id: Ulid) -> None:
        """Fire the group's ready callback once every channel's link has an id."""
        group = self._managed_links.get(id)
        if group is None or group.ready_sender is None:
            return
        for location in PortLocation:
            link = group.links.get(location)
            if link is None:
                _log.error("Link Missing Port Configuration: %s", id)
                return
            if link.pw_id is None:
                return
        sender, group.ready_sender = group.ready_sender, None
        sender()

    def link_remove(self, source: LinkType, destination: LinkType) -> None:
        self._managed_links = {
            group_id: group
            for group_id, group in self._managed_links.items()
            if group.source != source or group.destination != destination
        }

    def link_remove_for_type(self, link: LinkType) -> None:
        self._managed_links = {
            group_id: group
            for group_id, group in self._managed_links.items()
            if group.source != link and group.destination != link
        }

    # Queries

    def is_usable_node(self, id: int) -> Optional[MediaClass]:
        """Classify an unmanaged node by its non-monitor port counts."""
        node = self._unmanaged_nodes.get(id)
        if node is None or (node.name is None and node.description is None):
            return None

        def count(direction: Direction) -> int:
            ports = node.ports.get(direction, {})
            return sum(1 for port in ports.values() if not port.is_monitor)

        in_count = count(Direction.In)
        out_count = count(Direction.Out)
        if 1 <= in_count <= 2 and out_count == 0:
            return MediaClass.Sink
        if 1 <= out_count <= 2 and in_count == 0:
            return MediaClass.Source
        if 1 <= in_count <= 2 and in_count == out_count:
            return MediaClass.Duplex
        return None

    def remove_by_id(self, id: int) -> None:
        """Forget whatever the server object ``id`` was."""
        link = self._unmanaged_links.pop(id, None)
        if link is not None:
            _log.debug(
                "Removing %s:%s to %s:%s",
                link.output_node,
                link.output_port,
                link.input_node,
                link.input_port,
            )
            return

        if self._unmanaged_nodes.pop(id, None) is not None:
            _log.debug("Removing Node: %s", id)
            if id in self._usable_nodes:
                self._send(DeviceRemoved(id))
                self._usable_nodes = [value for value in self._usable_nodes if value != id]
            return

        if self._unmanaged_devices.pop(id, None) is not None:
            _log.debug("Removing Device: %s", id)
            return

        group_id = self.is_managed_link(id)
        if group_id is not None:
            group = self._managed_links.pop(group_id, None)
            if group is not None:
                self._send(ManagedLinkDropped(group.source, group.destination))

    def resolve_port(
        self, link: LinkType, direction: Direction, location: PortLocation
    ) -> tuple[int, int]:
        """The server node id and port index for one channel of a link end."""
        if link.kind is LinkKind.Node:
            node = self._node(link.id)
            port = node.port_map.get(location)
            if node.pw_id is None or port is None:
                raise ValueError(f"node {link.id} is not ready")
            return node.pw_id, port

        if link.kind is LinkKind.Filter:
            filter = self._filter(link.id)
            if filter.pw_id is None:
                raise ValueError(f"filter {link.id} is not ready")
            return filter.pw_id, filter.port_map[direction][location]

        node_id = link.id
        registry_node = self._unmanaged_nodes.get(node_id)
        if registry_node is None:
            raise KeyError(f"Invalid NodeID {node_id}")
        ports = registry_node.ports.get(direction, {})
        if len(ports) == 1:
            return node_id, next(iter(ports))
        for index, port in ports.items():
            try:
                port_location = PortLocation.from_channel(port.channel)
            except ValueError:
                continue
            if port_location is location:
                return node_id, index
        raise ValueError("Requested Unmanaged Node is Neither Stereo or Mono")