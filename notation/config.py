"""Reading and writing notation's config.json and signingkeys.json files."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any

from .dirs import default_path_manager
from .types import _escape_html


def _mapping(data: Any, what: str) -> dict:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{what} must be a JSON object")
    return data


def _get(data: dict, key: str, kind: type, item: type | None = None) -> Any:
    value = data.get(key)
    if value is None:
        return kind()
    items = value.values() if isinstance(value, dict) else value
    if not isinstance(value, kind) or (item and not all(isinstance(v, item) for v in items)):
        raise ValueError(f"field {key!r} has the wrong type")
    return kind(value) if kind is not str else value


def _save(path: str, data: dict[str, Any]) -> None:
    """Write data as indented JSON, creating the parent directory if needed."""
    if os.path.dirname(path):
        os.makedirs(os.path.dirname(path), mode=0o700, exist_ok=True)
    with open(path, "w", encoding="utf-8") as handle:
        handle.write(_escape_html(json.dumps(data, indent=4, ensure_ascii=False)) + "\n")


def _load(path: str) -> Any:
    with open(path, "rb") as handle:
        return json.load(handle)


def config_path() -> str:
    """The default location of config.json."""
    return default_path_manager().config()


def signing_keys_path() -> str:
    """The default location of signingkeys.json."""
    return default_path_manager().signing_key_config()


@dataclass
class CertificateReference:
    """A named certificate file path."""

    name: str = ""
    path: str = ""

    def matches(self, name: str) -> bool:
        return self.name == name


@dataclass
class VerificationCertificates:
    """Public certificates used for verification."""

    certificates: list[CertificateReference] = field(default_factory=list)


@dataclass
class Config:
    """The contents of config.json."""

    verification_certificates: VerificationCertificates = field(default_factory=VerificationCertificates)
    insecure_registries: list[str] = field(default_factory=list)
    credentials_store: str = ""
    credential_helpers: dict[str, str] = field(default_factory=dict)
    signature_format: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "verificationCerts": {"certs": [
                {"name": ref.name, "path": ref.path} for ref in self.verification_certificates.certificates]},
            "insecureRegistries": list(self.insecure_registries),
        }
        if self.credentials_store:
            data["credsStore"] = self.credentials_store
        if self.credential_helpers:
            data["credHelpers"] = dict(sorted(self.credential_helpers.items()))
        if self.signature_format:
            data["signatureFormat"] = self.signature_format
        return data

    @classmethod
    def from_dict(cls, data: Any) -> Config:
        data = _mapping(data, "config")
        certs = _get(_mapping(data.get("verificationCerts"), "verificationCerts"), "certs", list)
        references = [
            CertificateReference(_get(entry, "name", str), _get(entry, "path", str))
            for entry in (_mapping(raw, "certificate reference") for raw in certs)
        ]
        return cls(
            verification_certificates=VerificationCertificates(references),
            insecure_registries=_get(data, "insecureRegistries", list, str),
            credentials_store=_get(data, "credsStore", str),
            credential_helpers=_get(data, "credHelpers", dict, str),
            signature_format=_get(data, "signatureFormat", str),
        )

    def save(self, path: str | None = None) -> None:
        """Write the config to path, or to the default config location."""
        _save(path if path is not None else config_path(), self.to_dict())


def new_config() -> Config:
    return Config()


def load_config(path: str | None = None) -> Config:
    """Read the config, or return a default config when the file does not exist."""
    try:
        data = _load(path if path is not None else config_path())
    except FileNotFoundError:
        return new_config()
    return Config.from_dict(data)


@dataclass
class X509KeyPair:
    """Paths of a private key file and its certificate file."""

    key_path: str = ""
    certificate_path: str = ""


@dataclass
class ExternalKey:
    """What is needed to delegate signing to the named plugin."""

    id: str = ""
    plugin_name: str = ""
    plugin_config: dict[str, str] = field(default_factory=dict)


@dataclass
class KeySuite:
    """A named signing key, held locally or by a plugin."""

    name: str = ""
    x509_key_pair: X509KeyPair | None = None
    external_key: ExternalKey | None = None

    def matches(self, name: str) -> bool:
        return self.name == name

    def to_dict(self) -> dict[str, Any]:
        """Return the flattened JSON form; empty fields are left out."""
        fields: dict[str, Any] = {"name": self.name}
        if self.x509_key_pair is not None:
            fields.update(keyPath=self.x509_key_pair.key_path, certPath=self.x509_key_pair.certificate_path)
        if self.external_key is not None:
            fields.update(id=self.external_key.id, pluginName=self.external_key.plugin_name,
                          pluginConfig=dict(sorted(self.external_key.plugin_config.items())))
        return {key: value for key, value in fields.items() if key == "name" or value}

    @classmethod
    def from_dict(cls, data: Any) -> KeySuite:
        """Build a key suite; each part exists only if one of its fields appears."""
        data = _mapping(data, "key suite")
        pair = None
        if "keyPath" in data or "certPath" in data:
            pair = X509KeyPair(_get(data, "keyPath", str), _get(data, "certPath", str))
        external = None
        if {"id", "pluginName", "pluginConfig"} & data.keys():
            external = ExternalKey(_get(data, "id", str), _get(data, "pluginName", str),
                                   _get(data, "pluginConfig", dict, str))
        return cls(_get(data, "name", str), pair, external)


@dataclass
class SigningKeys:
    """The contents of signingkeys.json."""

    default: str = ""
    keys: list[KeySuite] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"default": self.default, "keys": [key.to_dict() for key in self.keys]}

    @classmethod
    def from_dict(cls, data: Any) -> SigningKeys:
        data = _mapping(data, "signing keys")
        return cls(_get(data, "default", str), [KeySuite.from_dict(raw) for raw in _get(data, "keys", list)])

    def save(self, path: str | None = None) -> None:
        """Write the signing keys to path, or to the default location."""
        _save(path if path is not None else signing_keys_path(), self.to_dict())


def new_signing_keys() -> SigningKeys:
    return SigningKeys()


def load_signing_keys(path: str | None = None) -> SigningKeys:
    """Read the signing keys, or return an empty set when the file does not exist."""
    try:
        data = _load(path if path is not None else signing_keys_path())
    except FileNotFoundError:
        return new_signing_keys()
    return SigningKeys.from_dict(data)