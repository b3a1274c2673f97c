"""Persistent daemon settings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

_DEFAULT_PROFILE = "default"


@dataclass
class Settings:
    """Daemon settings; missing fields take their defaults when loaded."""

    profile: str = _DEFAULT_PROFILE

    def to_dict(self) -> dict[str, Any]:
        return {"profile": self.profile}

    @classmethod
    def from_dict(cls, data: Any) -> Settings:
        if not isinstance(data, Mapping):
            raise ValueError("settings must be an object")
        profile = data.get("profile", _DEFAULT_PROFILE)
        if not isinstance(profile, str):
            raise ValueError("profile must be a string")
        return cls(profile=profile)