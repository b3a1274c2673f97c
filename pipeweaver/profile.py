"""The mixer profile: configured devices, volumes, mute settings and routes."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, TypeVar

from pipeweaver.identifiers import Ulid
from pipeweaver.shared import Colour, Mix, MuteState, MuteTarget

_E = TypeVar("_E", bound=Enum)
_V = TypeVar("_V")


def _object(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"{what} must be an object")
    return data


def _field(data: Mapping[str, Any], key: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise ValueError(f"missing field `{key}`") from None


def _list(data: Any, what: str) -> list[Any]:
    if not isinstance(data, list):
        raise ValueError(f"{what} must be an array")
    return data


def _byte(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 255:
        raise ValueError(f"{what} must be an integer from 0 to 255")
    return value


def _string(value: Any, what: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{what} must be a string")
    return value


def _optional_string(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    return None if value is None else _string(value, key)


def _ulid(value: Any) -> Ulid:
    return Ulid.from_string(_string(value, "identifier"))


def _ulid_set(data: Any, what: str) -> set[Ulid]:
    return {_ulid(item) for item in _list(data, what)}


def _ulid_list(ids: set[Ulid]) -> list[str]:
    return [str(ulid) for ulid in sorted(ids)]


def _enum_map(data: Any, enum: type[_E], convert: Callable[[Any], _V], what: str) -> dict[_E, _V]:
    data = _object(data, what)
    names = {member.value for member in enum}
    unknown = set(data) - names
    if unknown:
        raise ValueError(f"unknown keys in {what}: {sorted(unknown)}")
    return {member: convert(_field(data, member.value)) for member in enum}


def _default_volumes() -> dict[Mix, int]:
    return {Mix.A: 100, Mix.B: 100}


def _empty_mute_targets() -> dict[MuteTarget, set[Ulid]]:
    return {target: set() for target in MuteTarget}


@dataclass
class DeviceDescription:
    id: Ulid = field(default_factory=Ulid)
    name: str = ""
    colour: Colour = field(default_factory=Colour)

    def _to_dict(self) -> dict[str, Any]:
        return {"id": str(self.id), "name": self.name, "colour": self.colour.to_dict()}

    @classmethod
    def _from_dict(cls, data: Any) -> DeviceDescription:
        data = _object(data, "description")
        return cls(
            id=_ulid(_field(data, "id")),
            name=_string(_field(data, "name"), "name"),
            colour=Colour.from_dict(_field(data, "colour")),
        )


@dataclass
class MuteStates:
    mute_state: set[MuteTarget] = field(default_factory=set)
    mute_targets: dict[MuteTarget, set[Ulid]] = field(default_factory=_empty_mute_targets)

    def _to_dict(self) -> dict[str, Any]:
        return {
            "mute_state": [t.value for t in MuteTarget if t in self.mute_state],
            "mute_targets": {
                t.value: _ulid_list(self.mute_targets.get(t, set())) for t in MuteTarget
            },
        }

    @classmethod
    def _from_dict(cls, data: Any) -> MuteStates:
        data = _object(data, "mute_states")
        return cls(
            mute_state={MuteTarget(v) for v in _list(_field(data, "mute_state"), "mute_state")},
            mute_targets=_enum_map(
                _field(data, "mute_targets"),
                MuteTarget,
                lambda v: _ulid_set(v, "mute target"),
                "mute_targets",
            ),
        )


@dataclass
class Volumes:
    volume: dict[Mix, int] = field(default_factory=_default_volumes)
    volumes_linked: float | None = 1.0

    def _to_dict(self) -> dict[str, Any]:
        return {
            "volume": {mix.value: self.volume[mix] for mix in Mix},
            "volumes_linked": self.volumes_linked,
        }

    @classmethod
    def _from_dict(cls, data: Any) -> Volumes:
        data = _object(data, "volumes")
        linked = data.get("volumes_linked")
        if linked is not None:
            if isinstance(linked, bool) or not isinstance(linked, (int, float)):
                raise ValueError("volumes_linked must be a number")
            linked = float(linked)
        return cls(
            volume=_enum_map(_field(data, "volume"), Mix, lambda v: _byte(v, "volume"), "volume"),
            volumes_linked=linked,
        )


@dataclass
class PhysicalDeviceDescriptor:
    name: str | None = None
    description: str | None = None

    def _to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "description": self.description}

    @classmethod
    def _from_dict(cls, data: Any) -> PhysicalDeviceDescriptor:
        data = _object(data, "attached device")
        return cls(
            name=_optional_string(data, "name"),
            description=_optional_string(data, "description"),
        )


def _attached(data: Mapping[str, Any]) -> list[PhysicalDeviceDescriptor]:
    return [
        PhysicalDeviceDescriptor._from_dict(item)
        for item in _list(_field(data, "attached_devices"), "attached_devices")
    ]


@dataclass
class VirtualSourceDevice:
    description: DeviceDescription = field(default_factory=DeviceDescription)
    mute_states: MuteStates = field(default_factory=MuteStates)
    volumes: Volumes = field(default_factory=Volumes)

    def _to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description._to_dict(),
            "mute_states": self.mute_states._to_dict(),
            "volumes": self.volumes._to_dict(),
        }

    @classmethod
    def _from_dict(cls, data: Any) -> VirtualSourceDevice:
        data = _object(data, "virtual source")
        return cls(
            description=DeviceDescription._from_dict(_field(data, "description")),
            mute_states=MuteStates._from_dict(_field(data, "mute_states")),
            volumes=Volumes._from_dict(_field(data, "volumes")),
        )


@dataclass
class PhysicalSourceDevice:
    description: DeviceDescription = field(default_factory=DeviceDescription)
    mute_states: MuteStates = field(default_factory=MuteStates)
    volumes: Volumes = field(default_factory=Volumes)
    attached_devices: list[PhysicalDeviceDescriptor] = field(default_factory=list)

    def _to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description._to_dict(),
            "mute_states": self.mute_states._to_dict(),
            "volumes": self.volumes._to_dict(),
            "attached_devices": [d._to_dict() for d in self.attached_devices],
        }

    @classmethod
    def _from_dict(cls, data: Any) -> PhysicalSourceDevice:
        data = _object(data, "physical source")
        return cls(
            description=DeviceDescription._from_dict(_field(data, "description")),
            mute_states=MuteStates._from_dict(_field(data, "mute_states")),
            volumes=Volumes._from_dict(_field(data, "volumes")),
            attached_devices=_attached(data),
        )


@dataclass
class VirtualTargetDevice:
    description: DeviceDescription = field(default_factory=DeviceDescription)
    mute_state: MuteState = MuteState.Unmuted
    volume: int = 100
    mix: Mix = Mix.A

    def _to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description._to_dict(),
            "mute_state": self.mute_state.value,
            "volume": self.volume,
            "mix": self.mix.value,
        }

    @classmethod
    def _from_dict(cls, data: Any) -> VirtualTargetDevice:
        data = _object(data, "virtual target")
        return cls(
            description=DeviceDescription._from_dict(_field(data, "description")),
            mute_state=MuteState(_field(data, "mute_state")),
            volume=_byte(_field(data, "volume"), "volume"),
            mix=Mix(_field(data, "mix")),
        )


@dataclass
class PhysicalTargetDevice:
    description: DeviceDescription = field(default_factory=DeviceDescription)
    mute_state: MuteState = MuteState.Unmuted
    volume: int = 100
    mix: Mix = Mix.A
    attached_devices: list[PhysicalDeviceDescriptor] = field(default_factory=list)

    def _to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description._to_dict(),
            "mute_state": self.mute_state.value,
            "volume": self.volume,
            "mix": self.mix.value,
            "attached_devices": [d._to_dict() for d in self.attached_devices],
        }

    @classmethod
    def _from_dict(cls, data: Any) -> PhysicalTargetDevice:
        data = _object(data, "physical target")
        return cls(
            description=DeviceDescription._from_dict(_field(data, "description")),
            mute_state=MuteState(_field(data, "mute_state")),
            volume=_byte(_field(data, "volume"), "volume"),
            mix=Mix(_field(data, "mix")),
            attached_devices=_attached(data),
        )


@dataclass
class SourceDevices:
    physical_devices: list[PhysicalSourceDevice] = field(default_factory=list)
    virtual_devices: list[VirtualSourceDevice] = field(default_factory=list)

    def _to_dict(self) -> dict[str, Any]:
        return {
            "physical_devices": [d._to_dict() for d in self.physical_devices],
            "virtual_devices": [d._to_dict() for d in self.virtual_devices],
        }

    @classmethod
    def _from_dict(cls, data: Any) -> SourceDevices:
        data = _object(data, "sources")
        return cls(
            physical_devices=[
                PhysicalSourceDevice._from_dict(d)
                for d in _list(_field(data, "physical_devices"), "physical_devices")
            ],
            virtual_devices=[
                VirtualSourceDevice._from_dict(d)
                for d in _list(_field(data, "virtual_devices"), "virtual_devices")
            ],
        )


@dataclass
class TargetDevices:
    physical_devices: list[PhysicalTargetDevice] = field(default_factory=list)
    virtual_devices: list[VirtualTargetDevice] = field(default_factory=list)

    def _to_dict(self) -> dict[str, Any]:
        return {
            "physical_devices": [d._to_dict() for d in self.physical_devices],
            "virtual_devices": [d._to_dict() for d in self.virtual_devices],
        }

    @classmethod
    def _from_dict(cls, data: Any) -> TargetDevices:
        data = _object(data, "targets")
        return cls(
            physical_devices=[
                PhysicalTargetDevice._from_dict(d)
                for d in _list(_field(data, "physical_devices"), "physical_devices")
            ],
            virtual_devices=[
                VirtualTargetDevice._from_dict(d)
                for d in _list(_field(data, "virtual_devices"), "virtual_devices")
            ],
        )


@dataclass
class Devices:
    sources: SourceDevices = field(default_factory=SourceDevices)
    targets: TargetDevices = field(default_factory=TargetDevices)

    def _to_dict(self) -> dict[str, Any]:
        return {"sources": self.sources._to_dict(), "targets": self.targets._to_dict()}

    @classmethod
    def _from_dict(cls, data: Any) -> Devices:
        data = _object(data, "devices")
        return cls(
            sources=SourceDevices._from_dict(_field(data, "sources")),
            targets=TargetDevices._from_dict(_field(data, "targets")),
        )


@dataclass
class Profile:
    """The devices configured in a profile and the routes between them."""

    devices: Devices = field(default_factory=Devices)
    routes: dict[Ulid, set[Ulid]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "devices": self.devices._to_dict(),
            "routes": {str(source): _ulid_list(targets) for source, targets in self.routes.items()},
        }

    @classmethod
    def from_dict(cls, data: Any) -> Profile:
        data = _object(data, "profile")
        routes = _object(_field(data, "routes"), "routes")
        return cls(
            devices=Devices._from_dict(_field(data, "devices")),
            routes={_ulid(source): _ulid_set(targets, "route") for source, targets in routes.items()},
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, text: str) -> Profile:
        return cls.from_dict(json.loads(text))