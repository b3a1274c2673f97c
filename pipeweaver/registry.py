"""Records of unmanaged devices, nodes, ports and links announced by the audio server."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Direction(Enum):
    """Port direction, valued as the server spells it."""

    In = "in"
    Out = "out"


@dataclass
class RegistryDevice:
    """A hardware device and the ids of the nodes that belong to it."""

    nickname: Optional[str] = None
    description: Optional[str] = None
    name: Optional[str] = None
    nodes: list[int] = field(default_factory=list)

    def add_node(self, id: int) -> None:
        self.nodes.append(id)


@dataclass
class RegistryPort:
    global_id: int
    name: str
    channel: str
    is_monitor: bool = False


def _empty_ports() -> dict[Direction, dict[int, RegistryPort]]:
    return {direction: {} for direction in Direction}


@dataclass
class RegistryNode:
    """A node attached to a device, with its ports keyed by direction and port id."""

    parent_id: int
    nickname: Optional[str] = None
    description: Optional[str] = None
    name: Optional[str] = None
    ports: dict[Direction, dict[int, RegistryPort]] = field(default_factory=_empty_ports)

    def add_port(self, id: int, direction: Direction, port: RegistryPort) -> None:
        """Record a port, replacing any earlier port with the same id and direction."""
        self.ports.setdefault(direction, {})[id] = port


@dataclass(frozen=True)
class RegistryLink:
    input_node: int
    input_port: int
    output_node: int
    output_port: int