"""Requests, responses and status objects exchanged with the daemon, with their JSON forms."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, Union

from pipeweaver.identifiers import Ulid
from pipeweaver.profile import Profile
from pipeweaver.shared import Colour, DeviceType, Mix, MuteState, MuteTarget, NodeType

_U16_MAX = (1 << 16) - 1
_U32_MAX = (1 << 32) - 1
_U64_MAX = (1 << 64) - 1
_PATCH_OPERATIONS = {"add", "remove", "replace", "move", "copy", "test"}


def _is_uint(value: Any, upper: int) -> bool:
    return not isinstance(value, bool) and isinstance(value, int) and 0 <= value <= upper


def _uint(value: Any, upper: int, what: str) -> int:
    if not _is_uint(value, upper):
        raise ValueError(f"{what} must be an integer from 0 to {upper}, got {value!r}")
    return value


def _text(value: Any, what: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{what} must be a string, got {value!r}")
    return value


def _flag(value: Any, what: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{what} must be a boolean, got {value!r}")
    return value


def _object(value: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"{what} must be an object")
    return value


def _field(data: Mapping[str, Any], key: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise ValueError(f"missing field `{key}`") from None


def _optional_text(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    return None if value is None else _text(value, key)


def _single_entry(data: Any, what: str) -> tuple[str, Any]:
    if isinstance(data, Mapping) and len(data) == 1:
        ((tag, value),) = data.items()
        return tag, value
    raise ValueError(f"invalid {what}: {data!r}")


def _ulid(value: Any) -> Ulid:
    return Ulid.from_string(_text(value, "identifier"))


@dataclass(frozen=True)
class _Codec:
    name: str
    check: Callable[[Any], bool]
    encode: Callable[[Any], Any]
    decode: Callable[[Any], Any]


def _int_codec(name: str, upper: int) -> _Codec:
    return _Codec(name, lambda v: _is_uint(v, upper), lambda v: v, lambda v: _uint(v, upper, name))


def _enum_codec(enum: type[Enum]) -> _Codec:
    return _Codec(
        enum.__name__,
        lambda v: isinstance(v, enum),
        lambda v: v.value,
        lambda v: enum(_text(v, enum.__name__)),
    )


_ULID = _Codec("Ulid", lambda v: isinstance(v, Ulid), str, _ulid)
_STRING = _Codec("string", lambda v: isinstance(v, str), lambda v: v, lambda v: _text(v, "string"))
_BOOL = _Codec("bool", lambda v: isinstance(v, bool), lambda v: v, lambda v: _flag(v, "bool"))
_COLOUR = _Codec("Colour", lambda v: isinstance(v, Colour), lambda v: v.to_dict(), Colour.from_dict)
_U8 = _int_codec("u8", 255)
_U32 = _int_codec("u32", _U32_MAX)
_USIZE = _int_codec("usize", _U64_MAX)
_NODE_TYPE = _enum_codec(NodeType)
_MIX = _enum_codec(Mix)
_MUTE_TARGET = _enum_codec(MuteTarget)
_MUTE_STATE = _enum_codec(MuteState)


class CommandKind(Enum):
    """The commands the daemon's mixer API accepts."""

    CreateNode = "CreateNode"
    RenameNode = "RenameNode"
    SetNodeColour = "SetNodeColour"
    RemoveNode = "RemoveNode"
    SetSourceVolume = "SetSourceVolume"
    SetSourceVolumeLinked = "SetSourceVolumeLinked"
    SetTargetVolume = "SetTargetVolume"
    SetTargetMix = "SetTargetMix"
    SetRoute = "SetRoute"
    AddSourceMuteTarget = "AddSourceMuteTarget"
    DelSourceMuteTarget = "DelSourceMuteTarget"
    AddMuteTargetNode = "AddMuteTargetNode"
    DelMuteTargetNode = "DelMuteTargetNode"
    ClearMuteTargetNodes = "ClearMuteTargetNodes"
    SetTargetMuteState = "SetTargetMuteState"
    AttachPhysicalNode = "AttachPhysicalNode"
    RemovePhysicalNode = "RemovePhysicalNode"


_SIGNATURES: dict[CommandKind, tuple[_Codec, ...]] = {
    CommandKind.CreateNode: (_NODE_TYPE, _STRING),
    CommandKind.RenameNode: (_ULID, _STRING),
    CommandKind.SetNodeColour: (_ULID, _COLOUR),
    CommandKind.RemoveNode: (_ULID,),
    CommandKind.SetSourceVolume: (_ULID, _MIX, _U8),
    CommandKind.SetSourceVolumeLinked: (_ULID, _BOOL),
    CommandKind.SetTargetVolume: (_ULID, _U8),
    CommandKind.SetTargetMix: (_ULID, _MIX),
    CommandKind.SetRoute: (_ULID, _ULID, _BOOL),
    CommandKind.AddSourceMuteTarget: (_ULID, _MUTE_TARGET),
    CommandKind.DelSourceMuteTarget: (_ULID, _MUTE_TARGET),
    CommandKind.AddMuteTargetNode: (_ULID, _MUTE_TARGET, _ULID),
    CommandKind.DelMuteTargetNode: (_ULID, _MUTE_TARGET, _ULID),
    CommandKind.ClearMuteTargetNodes: (_ULID, _MUTE_TARGET),
    CommandKind.SetTargetMuteState: (_ULID, _MUTE_STATE),
    CommandKind.AttachPhysicalNode: (_ULID, _U32),
    CommandKind.RemovePhysicalNode: (_ULID, _USIZE),
}


@dataclass(frozen=True)
class APICommand:
    """One mixer command with its arguments, checked against the command's signature."""

    kind: CommandKind
    args: tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.kind, CommandKind):
            raise TypeError("kind must be a CommandKind")
        object.__setattr__(self, "args", tuple(self.args))
        signature = _SIGNATURES[self.kind]
        if len(self.args) != len(signature):
            raise ValueError(
                f"{self.kind.value} takes {len(signature)} arguments, got {len(self.args)}"
            )
        for codec, arg in zip(signature, self.args):
            if not codec.check(arg):
                raise ValueError(f"{self.kind.value}: expected {codec.name}, got {arg!r}")


def command_to_json(command: APICommand) -> Any:
    """The JSON value of a command."""
    signature = _SIGNATURES[command.kind]
    encoded = [codec.encode(arg) for codec, arg in zip(signature, command.args)]
    if len(encoded) == 1:
        return {command.kind.value: encoded[0]}
    return {command.kind.value: encoded}


def command_from_json(data: Any) -> APICommand:
    """Build a command from its JSON value."""
    tag, value = _single_entry(data, "command")
    try:
        kind = CommandKind(tag)
    except ValueError:
        raise ValueError(f"unknown command `{tag}`") from None
    signature = _SIGNATURES[kind]
    if len(signature) == 1:
        values = [value]
    else:
        if not isinstance(value, list) or len(value) != len(signature):
            raise ValueError(f"{tag} expects an array of {len(signature)} values")
        values = value
    return APICommand(kind, tuple(codec.decode(v) for codec, v in zip(signature, values)))


@dataclass
class HttpSettings:
    enabled: bool = False
    bind_address: str = ""
    cors_enabled: bool = False
    port: int = 0

    def _to_dict(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "bind_address": self.bind_address,
            "cors_enabled": self.cors_enabled,
            "port": self.port,
        }

    @classmethod
    def _from_dict(cls, data: Any) -> HttpSettings:
        data = _object(data, "http_settings")
        return cls(
            enabled=_flag(_field(data, "enabled"), "enabled"),
            bind_address=_text(_field(data, "bind_address"), "bind_address"),
            cors_enabled=_flag(_field(data, "cors_enabled"), "cors_enabled"),
            port=_uint(_field(data, "port"), _U16_MAX, "port"),
        )


@dataclass
class PhysicalDevice:
    """A physical audio node as offered to API users."""

    node_id: int = 0
    name: str | None = None
    description: str | None = None

    def _to_dict(self) -> dict[str, Any]:
        return {"node_id": self.node_id, "name": self.name, "description": self.description}

    @classmethod
    def _from_dict(cls, data: Any) -> PhysicalDevice:
        data = _object(data, "physical device")
        return cls(
            node_id=_uint(_field(data, "node_id"), _U32_MAX, "node_id"),
            name=_optional_text(data, "name"),
            description=_optional_text(data, "description"),
        )


def _empty_devices() -> dict[DeviceType, list[PhysicalDevice]]:
    return {kind: [] for kind in DeviceType}


@dataclass
class AudioConfiguration:
    profile: Profile = field(default_factory=Profile)
    devices: dict[DeviceType, list[PhysicalDevice]] = field(default_factory=_empty_devices)

    def _to_dict(self) -> dict[str, Any]:
        return {
            "profile": self.profile.to_dict(),
            "devices": {
                kind.value: [d._to_dict() for d in self.devices.get(kind, [])]
                for kind in DeviceType
            },
        }

    @classmethod
    def _from_dict(cls, data: Any) -> AudioConfiguration:
        data = _object(data, "audio")
        devices = _object(_field(data, "devices"), "devices")
        unknown = set(devices) - {kind.value for kind in DeviceType}
        if unknown:
            raise ValueError(f"unknown device types: {sorted(unknown)}")
        parsed = {}
        for kind in DeviceType:
            items = _field(devices, kind.value)
            if not isinstance(items, list):
                raise ValueError(f"devices for {kind.value} must be an array")
            parsed[kind] = [PhysicalDevice._from_dict(item) for item in items]
        return cls(profile=Profile.from_dict(_field(data, "profile")), devices=parsed)


@dataclass
class DaemonConfig:
    http_settings: HttpSettings = field(default_factory=HttpSettings)

    def _to_dict(self) -> dict[str, Any]:
        return {"http_settings": self.http_settings._to_dict()}

    @classmethod
    def _from_dict(cls, data: Any) -> DaemonConfig:
        data = _object(data, "config")
        return cls(http_settings=HttpSettings._from_dict(_field(data, "http_settings")))


@dataclass
class DaemonStatus:
    """The daemon's full state: its configuration and the audio setup."""

    config: DaemonConfig = field(default_factory=DaemonConfig)
    audio: AudioConfiguration = field(default_factory=AudioConfiguration)

    def _to_dict(self) -> dict[str, Any]:
        return {"config": self.config._to_dict(), "audio": self.audio._to_dict()}

    @classmethod
    def _from_dict(cls, data: Any) -> DaemonStatus:
        data = _object(data, "status")
        return cls(
            config=DaemonConfig._from_dict(_field(data, "config")),
            audio=AudioConfiguration._from_dict(_field(data, "audio")),
        )


@dataclass(frozen=True)
class Ping:
    """Ask the daemon whether it is alive."""


@dataclass(frozen=True)
class GetStatus:
    """Ask the daemon for its full status."""


@dataclass(frozen=True)
class PipewireRequest:
    command: APICommand


DaemonRequest = Union[Ping, GetStatus, PipewireRequest]


@dataclass(frozen=True)
class ApiOk:
    pass


@dataclass(frozen=True)
class ApiId:
    id: Ulid


@dataclass(frozen=True)
class ApiErr:
    message: str


APICommandResponse = Union[ApiOk, ApiId, ApiErr]


@dataclass
class OkResponse:
    pass


@dataclass
class ErrResponse:
    message: str


@dataclass
class PatchResponse:
    patch: list[dict[str, Any]]


@dataclass
class StatusResponse:
    status: DaemonStatus


@dataclass
class PipewireResponse:
    response: APICommandResponse


DaemonResponse = Union[OkResponse, ErrResponse, PatchResponse, StatusResponse, PipewireResponse]


def request_to_json(request: DaemonRequest) -> Any:
    """The JSON value of a daemon request."""
    if isinstance(request, Ping):
        return "Ping"
    if isinstance(request, GetStatus):
        return "GetStatus"
    if isinstance(request, PipewireRequest):
        return {"Pipewire": command_to_json(request.command)}
    raise TypeError(f"not a daemon request: {request!r}")


def request_from_json(data: Any) -> DaemonRequest:
    """Build a daemon request from its JSON value."""
    if isinstance(data, str):
        if data == "Ping":
            return Ping()
        if data == "GetStatus":
            return GetStatus()
        raise ValueError(f"unknown request `{data}`")
    tag, value = _single_entry(data, "request")
    if tag == "Pipewire":
        return PipewireRequest(command_from_json(value))
    raise ValueError(f"unknown request `{tag}`")


def _api_response_to_json(response: APICommandResponse) -> Any:
    if isinstance(response, ApiOk):
        return "Ok"
    if isinstance(response, ApiId):
        return {"Id": str(response.id)}
    if isinstance(response, ApiErr):
        return {"Err": response.message}
    raise TypeError(f"not a command response: {response!r}")


def _api_response_from_json(data: Any) -> APICommandResponse:
    if data == "Ok":
        return ApiOk()
    tag, value = _single_entry(data, "command response")
    if tag == "Id":
        return ApiId(_ulid(value))
    if tag == "Err":
        return ApiErr(_text(value, "error"))
    raise ValueError(f"unknown command response `{tag}`")


def _patch(data: Any) -> list[dict[str, Any]]:
    if not isinstance(data, list):
        raise ValueError("patch must be an array")
    operations = []
    for item in data:
        item = _object(item, "patch operation")
        if _field(item, "op") not in _PATCH_OPERATIONS:
            raise ValueError(f"unknown patch operation {item['op']!r}")
        _text(_field(item, "path"), "path")
        operations.append(dict(item))
    return operations


def response_to_json(response: DaemonResponse) -> Any:
    """The JSON value of a daemon response."""
    if isinstance(response, OkResponse):
        return "Ok"
    if isinstance(response, ErrResponse):
        return {"Err": response.message}
    if isinstance(response, PatchResponse):
        return {"Patch": [dict(op) for op in response.patch]}
    if isinstance(response, StatusResponse):
        return {"Status": response.status._to_dict()}
    if isinstance(response, PipewireResponse):
        return {"Pipewire": _api_response_to_json(response.response)}
    raise TypeError(f"not a daemon response: {response!r}")


def response_from_json(data: Any) -> DaemonResponse:
    """Build a daemon response from its JSON value."""
    if isinstance(data, str):
        if data == "Ok":
            return OkResponse()
        raise ValueError(f"unknown response `{data}`")
    tag, value = _single_entry(data, "response")
    if tag == "Err":
        return ErrResponse(_text(value, "error"))
    if tag == "Patch":
        return PatchResponse(_patch(value))
    if tag == "Status":
        return StatusResponse(DaemonStatus._from_dict(value))
    if tag == "Pipewire":
        return PipewireResponse(_api_response_from_json(value))
    raise ValueError(f"unknown response `{tag}`")


@dataclass(frozen=True)
class WebsocketRequest:
    """A request sent over the websocket, tagged with the caller's id."""

    id: int
    data: DaemonRequest

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "data": request_to_json(self.data)}

    @classmethod
    def from_dict(cls, data: Any) -> WebsocketRequest:
        data = _object(data, "websocket request")
        return cls(
            id=_uint(_field(data, "id"), _U64_MAX, "id"),
            data=request_from_json(_field(data, "data")),
        )


@dataclass
class WebsocketResponse:
    """A response sent over the websocket, tagged with the id of its request."""

    id: int
    data: DaemonResponse

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "data": response_to_json(self.data)}

    @classmethod
    def from_dict(cls, data: Any) -> WebsocketResponse:
        data = _object(data, "websocket response")
        return cls(
            id=_uint(_field(data, "id"), _U64_MAX, "id"),
            data=response_from_json(_field(data, "data")),
        )