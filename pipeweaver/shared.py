"""Enumerations and small value types shared across the mixer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping


class _NamedEnum(Enum):
    def __str__(self) -> str:
        return self.value


class NodeType(_NamedEnum):
    PhysicalSource = "PhysicalSource"
    PhysicalTarget = "PhysicalTarget"
    VirtualSource = "VirtualSource"
    VirtualTarget = "VirtualTarget"


class Mix(_NamedEnum):
    A = "A"
    B = "B"


class DeviceType(_NamedEnum):
    Source = "Source"
    Target = "Target"


class MuteState(_NamedEnum):
    Unmuted = "Unmuted"
    Muted = "Muted"


class MuteTarget(_NamedEnum):
    TargetA = "TargetA"
    TargetB = "TargetB"


def _channel(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 255:
        raise ValueError(f"colour channel `{name}` must be an integer from 0 to 255")
    return value


@dataclass
class Colour:
    """An RGB colour, defaulting to yellow."""

    red: int = 255
    green: int = 255
    blue: int = 0

    def __post_init__(self) -> None:
        for name in ("red", "green", "blue"):
            _channel(getattr(self, name), name)

    def to_dict(self) -> dict[str, int]:
        return {"red": self.red, "green": self.green, "blue": self.blue}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Colour:
        if not isinstance(data, Mapping):
            raise ValueError("colour must be an object")
        values = {}
        for name in ("red", "green", "blue"):
            if name not in data:
                raise ValueError(f"missing field `{name}`")
            values[name] = _channel(data[name], name)
        return cls(**values)