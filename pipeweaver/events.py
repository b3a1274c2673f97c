"""Turns the audio server's registry announcements into store updates."""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Mapping, Optional, Union

from pipeweaver.registry import (
    Direction,
    RegistryDevice,
    RegistryLink,
    RegistryNode,
    RegistryPort,
)
from pipeweaver.store import Store

_log = logging.getLogger(__name__)

_U32_MAX = 0xFFFF_FFFF
_UNSIGNED = re.compile(r"\+?[0-9]+")

DEVICE_NICK = "device.nick"
DEVICE_DESCRIPTION = "device.description"
DEVICE_NAME = "device.name"
DEVICE_ID = "device.id"
NODE_NICK = "node.nick"
NODE_DESCRIPTION = "node.description"
NODE_NAME = "node.name"
NODE_ID = "node.id"
PORT_ID = "port.id"
PORT_NAME = "port.name"
PORT_DIRECTION = "port.direction"
PORT_MONITOR = "port.monitor"
AUDIO_CHANNEL = "audio.channel"
LINK_INPUT_NODE = "link.input.node"
LINK_INPUT_PORT = "link.input.port"
LINK_OUTPUT_NODE = "link.output.node"
LINK_OUTPUT_PORT = "link.output.port"

Props = Optional[Mapping[str, str]]


class ObjectType(Enum):
    """Object types the server announces, valued by their interface names."""

    Client = "PipeWire:Interface:Client"
    ClientEndpoint = "PipeWire:Interface:ClientEndpoint"
    ClientNode = "PipeWire:Interface:ClientNode"
    ClientSession = "PipeWire:Interface:ClientSession"
    Core = "PipeWire:Interface:Core"
    Device = "PipeWire:Interface:Device"
    Endpoint = "PipeWire:Interface:Endpoint"
    EndpointLink = "PipeWire:Interface:EndpointLink"
    EndpointStream = "PipeWire:Interface:EndpointStream"
    Factory = "PipeWire:Interface:Factory"
    Link = "PipeWire:Interface:Link"
    Metadata = "PipeWire:Interface:Metadata"
    Module = "PipeWire:Interface:Module"
    Node = "PipeWire:Interface:Node"
    Port = "PipeWire:Interface:Port"
    Profiler = "PipeWire:Interface:Profiler"
    Registry = "PipeWire:Interface:Registry"
    Session = "PipeWire:Interface:Session"


def _parse_u32(value: Optional[str]) -> Optional[int]:
    if value is None or not _UNSIGNED.fullmatch(value):
        return None
    number = int(value)
    return number if number <= _U32_MAX else None


def _coerce_type(object_type: Union[ObjectType, str]) -> Optional[ObjectType]:
    if isinstance(object_type, ObjectType):
        return object_type
    try:
        return ObjectType(object_type)
    except ValueError:
        return None


class RegistryListener:
    """Feeds global add and remove announcements into a store."""

    def __init__(self, store: Store) -> None:
        self.store = store

    def on_global(
        self, global_id: int, object_type: Union[ObjectType, str], props: Props
    ) -> None:
        """Record a newly announced device, node, port or link."""
        kind = _coerce_type(object_type)
        if kind is ObjectType.Device:
            if props is not None:
                self._device(global_id, props)
        elif kind is ObjectType.Node:
            if props is not None:
                self._node(global_id, props)
        elif kind is ObjectType.Port:
            if props is not None:
                self._port(global_id, props)
        elif kind is ObjectType.Link:
            if props is not None:
                self._link(global_id, props)
        else:
            _log.debug("Unmonitored Global Type: %s - %s", object_type, global_id)

    def on_global_remove(self, global_id: int) -> None:
        """Forget an object the server has removed."""
        self.store.remove_by_id(global_id)

    def _device(self, global_id: int, props: Mapping[str, str]) -> None:
        device = RegistryDevice(
            nickname=props.get(DEVICE_NICK),
            description=props.get(DEVICE_DESCRIPTION),
            name=props.get(DEVICE_NAME),
        )
        self.store.unmanaged_device_add(global_id, device)

    def _node(self, global_id: int, props: Mapping[str, str]) -> None:
        device_id = _parse_u32(props.get(DEVICE_ID))
        if device_id is None:
            return
        device = self.store.unmanaged_device_get(device_id)
        if device is None:
            return
        node = RegistryNode(
            parent_id=device_id,
            nickname=props.get(NODE_NICK),
            description=props.get(NODE_DESCRIPTION),
            name=props.get(NODE_NAME),
        )
        device.add_node(global_id)
        # Only nodes that belong to a device are tracked.
        self.store.unmanaged_node_add(global_id, node)

    def _port(self, global_id: int, props: Mapping[str, str]) -> None:
        node_id = props.get(NODE_ID)
        port_id = props.get(PORT_ID)
        name = props.get(PORT_NAME)
        channel = props.get(AUDIO_CHANNEL)
        direction_text = props.get(PORT_DIRECTION)
        if None in (node_id, port_id, name, channel, direction_text):
            return

        # Notify and control ports are of no use here.
        if direction_text == "in":
            direction = Direction.In
        elif direction_text == "out":
            direction = Direction.Out
        else:
            return

        is_monitor = props.get(PORT_MONITOR) == "true"

        node_number = _parse_u32(node_id)
        port_number = _parse_u32(port_id)
        if node_number is None or port_number is None:
            return
        node = self.store.unmanaged_node_get(node_number)
        if node is None:
            return
        node.add_port(port_number, direction, RegistryPort(global_id, name, channel, is_monitor))
        self.store.unmanaged_node_check(node_number)

    def _link(self, global_id: int, props: Mapping[str, str]) -> None:
        input_node = _parse_u32(props.get(LINK_INPUT_NODE))
        input_port = _parse_u32(props.get(LINK_INPUT_PORT))
        output_node = _parse_u32(props.get(LINK_OUTPUT_NODE))
        output_port = _parse_u32(props.get(LINK_OUTPUT_PORT))
        if None in (input_node, input_port, output_node, output_port):
            return
        self.store.unmanaged_link_add(
            global_id,
            RegistryLink(
                input_node=input_node,
                input_port=input_port,
                output_node=output_node,
                output_port=output_port,
            ),
        )