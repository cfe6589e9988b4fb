"""Metadata a plugin reports about itself."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .protocol import Capability, Command


def _string(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string")
    return value


def _string_list(data: dict, key: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"field {key!r} must be a list of strings")
    return list(value)


def _capability(raw: str) -> Capability | str:
    try:
        return Capability(raw)
    except ValueError:
        return raw


@dataclass
class Metadata:
    """Metadata provided by a plugin."""

    name: str = ""
    description: str = ""
    version: str = ""
    url: str = ""
    supported_contract_versions: list[str] = field(default_factory=list)
    capabilities: list[Capability | str] = field(default_factory=list)

    def validate(self) -> None:
        """Raise ValueError if a required field is empty."""
        if not self.name:
            raise ValueError("empty name")
        if not self.description:
            raise ValueError("empty description")
        if not self.version:
            raise ValueError("empty version")
        if not self.url:
            raise ValueError("empty url")
        if not self.capabilities:
            raise ValueError("empty capabilities")
        if not self.supported_contract_versions:
            raise ValueError("empty supported contract versions")

    def command(self) -> Command:
        """The command that produces metadata."""
        return Command.GET_METADATA

    def has_capability(self, capability: Capability | str) -> bool:
        """Report whether the capability is supported; an empty one always is."""
        if not capability:
            return True
        return capability in self.capabilities

    def supports_contract(self, ver: str) -> bool:
        """Report whether the contract version is supported."""
        return ver in self.supported_contract_versions

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "version": self.version,
            "url": self.url,
            "supportedContractVersions": list(self.supported_contract_versions),
            "capabilities": [str(cap) for cap in self.capabilities],
        }

    @classmethod
    def from_dict(cls, data: Any) -> Metadata:
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"metadata must be a JSON object, got {type(data).__name__}")
        return cls(
            name=_string(data, "name"),
            description=_string(data, "description"),
            version=_string(data, "version"),
            url=_string(data, "url"),
            supported_contract_versions=_string_list(data, "supportedContractVersions"),
            capabilities=[_capability(cap) for cap in _string_list(data, "capabilities")],
        )