"""Audio graph types and the messages exchanged with the audio server thread."""

from __future__ import annotations

import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, MutableSequence, Optional, Sequence, Union

from pipeweaver.identifiers import Ulid

_U8_MAX = 0xFF
_U32_MAX = 0xFFFF_FFFF
_I32_MIN = -(1 << 31)
_I32_MAX = (1 << 31) - 1

ReadySender = Optional[Callable[[], None]]


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class MediaClass(Enum):
    """Whether a node produces audio, consumes it, or both."""

    Source = "Source"
    Sink = "Sink"
    Duplex = "Duplex"


class PortLocation(Enum):
    """A stereo channel position."""

    LEFT = "FL"
    RIGHT = "FR"

    @classmethod
    def from_channel(cls, text: str) -> PortLocation:
        """Parse an audio channel name such as ``FL`` or ``FR``."""
        for location in cls:
            if location.value == text:
                return location
        raise ValueError("Unknown Channel")

    def __str__(self) -> str:
        return self.value


class LinkKind(Enum):
    Node = "Node"
    Filter = "Filter"
    UnmanagedNode = "UnmanagedNode"


@dataclass(frozen=True)
class LinkType:
    """One end of a link: a managed node or filter by Ulid, or an unmanaged node by id."""

    kind: LinkKind
    id: Union[Ulid, int]

    def __post_init__(self) -> None:
        if not isinstance(self.kind, LinkKind):
            raise TypeError("kind must be a LinkKind")
        if self.kind is LinkKind.UnmanagedNode:
            if not _is_int(self.id) or not 0 <= self.id <= _U32_MAX:
                raise ValueError("an unmanaged node id must be an unsigned 32-bit integer")
        elif not isinstance(self.id, Ulid):
            raise ValueError(f"a {self.kind.value} link end needs a Ulid")


class FilterValueKind(Enum):
    Int32 = "Int32"
    Float32 = "Float32"
    UInt8 = "UInt8"
    UInt32 = "UInt32"
    String = "String"


@dataclass(frozen=True)
class FilterValue:
    """A typed value passed to or read from a filter property."""

    kind: FilterValueKind
    value: Union[int, float, str]

    @classmethod
    def int32(cls, value: int) -> FilterValue:
        if not _is_int(value) or not _I32_MIN <= value <= _I32_MAX:
            raise ValueError(f"not a signed 32-bit integer: {value!r}")
        return cls(FilterValueKind.Int32, value)

    @classmethod
    def float32(cls, value: float) -> FilterValue:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"not a number: {value!r}")
        try:
            (narrowed,) = struct.unpack("<f", struct.pack("<f", float(value)))
        except OverflowError:
            raise ValueError(f"out of range for a 32-bit float: {value!r}") from None
        return cls(FilterValueKind.Float32, narrowed)

    @classmethod
    def uint8(cls, value: int) -> FilterValue:
        if not _is_int(value) or not 0 <= value <= _U8_MAX:
            raise ValueError(f"not an unsigned 8-bit integer: {value!r}")
        return cls(FilterValueKind.UInt8, value)

    @classmethod
    def uint32(cls, value: int) -> FilterValue:
        if not _is_int(value) or not 0 <= value <= _U32_MAX:
            raise ValueError(f"not an unsigned 32-bit integer: {value!r}")
        return cls(FilterValueKind.UInt32, value)

    @classmethod
    def string(cls, value: str) -> FilterValue:
        if not isinstance(value, str):
            raise ValueError(f"not a string: {value!r}")
        return cls(FilterValueKind.String, value)


@dataclass
class FilterProperty:
    id: int
    name: str
    value: FilterValue


class FilterHandler(ABC):
    """The processing side of a filter: its properties and its sample callback."""

    @abstractmethod
    def get_properties(self) -> list[FilterProperty]:
        """All properties the filter exposes."""

    @abstractmethod
    def get_property(self, id: int) -> FilterProperty:
        """The property with the given id."""

    @abstractmethod
    def set_property(self, id: int, value: FilterValue) -> None:
        """Change a property's value."""

    @abstractmethod
    def process_samples(
        self,
        inputs: Sequence[MutableSequence[float]],
        outputs: Sequence[MutableSequence[float]],
    ) -> None:
        """Read one block from the input buffers and fill the output buffers."""


@dataclass
class PipewireNode:
    """A usable hardware node seen on the audio server."""

    node_id: int
    node_class: MediaClass
    name: Optional[str] = None
    nickname: Optional[str] = None
    description: Optional[str] = None


@dataclass
class NamingScheme:
    app_id: str
    app_name: str
    group_prefix: str


@dataclass
class NodeProperties:
    """Everything needed to create a virtual device node."""

    node_id: Ulid
    node_name: str
    node_nick: str
    node_description: str
    app_id: str
    app_name: str
    linger: bool
    media_class: MediaClass
    ready_sender: ReadySender = None


@dataclass
class FilterProperties:
    """Everything needed to create a processing filter."""

    filter_id: Ulid
    filter_name: str
    filter_nick: str
    filter_description: str
    app_id: str
    app_name: str
    media_class: MediaClass
    linger: bool
    callback: FilterHandler
    ready_sender: ReadySender = None


@dataclass
class CreateDeviceNode:
    properties: NodeProperties


@dataclass
class CreateFilterNode:
    properties: FilterProperties


@dataclass
class CreateDeviceLink:
    source: LinkType
    destination: LinkType
    ready_sender: ReadySender = None


@dataclass(frozen=True)
class RemoveDeviceNode:
    id: Ulid


@dataclass(frozen=True)
class RemoveFilterNode:
    id: Ulid


@dataclass(frozen=True)
class RemoveDeviceLink:
    source: LinkType
    destination: LinkType


@dataclass(frozen=True)
class SetFilterValue:
    id: Ulid
    key: int
    value: FilterValue


@dataclass(frozen=True)
class Quit:
    """Stop the audio thread, or report that it stopped."""


@dataclass
class DeviceAdded:
    node: PipewireNode


@dataclass(frozen=True)
class DeviceRemoved:
    node_id: int


@dataclass(frozen=True)
class ManagedLinkDropped:
    source: LinkType
    destination: LinkType


PipewireMessage = Union[
    CreateDeviceNode,
    CreateFilterNode,
    CreateDeviceLink,
    RemoveDeviceNode,
    RemoveFilterNode,
    RemoveDeviceLink,
    SetFilterValue,
    Quit,
]

PipewireReceiver = Union[Quit, DeviceAdded, DeviceRemoved, ManagedLinkDropped]


def forward_messages(
    receiver: Iterable[PipewireMessage], send: Callable[[PipewireMessage], Any]
) -> None:
    """Pass messages on until a Quit; a receiver that runs dry counts as a Quit."""
    for message in receiver:
        send(message)
        if isinstance(message, Quit):
            return
    send(Quit())