"""The plugin contract: commands, capabilities, requests and responses."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Protocol, runtime_checkable

PREFIX = "notation-"
"""Prefix required on all plugin executable names."""

CONTRACT_VERSION = "1.0"
"""The <major>.<minor> version of the plugin contract."""


class Command(str, Enum):
    """A command available in the plugin contract."""

    GET_METADATA = "get-plugin-metadata"
    DESCRIBE_KEY = "describe-key"
    GENERATE_SIGNATURE = "generate-signature"
    GENERATE_ENVELOPE = "generate-envelope"
    VERIFY_SIGNATURE = "verify-signature"

    def __str__(self) -> str:
        return self.value


class VerificationCapability(str, Enum):
    """A verification feature available in the plugin contract."""

    TRUSTED_IDENTITY = "SIGNATURE_VERIFIER.TRUSTED_IDENTITY"
    REVOCATION_CHECK = "SIGNATURE_VERIFIER.REVOCATION_CHECK"

    def __str__(self) -> str:
        return self.value


class Capability(str, Enum):
    """A feature available in the plugin contract."""

    SIGNATURE_GENERATOR = "SIGNATURE_GENERATOR.RAW"
    ENVELOPE_GENERATOR = "SIGNATURE_GENERATOR.ENVELOPE"
    TRUSTED_IDENTITY_VERIFIER = VerificationCapability.TRUSTED_IDENTITY.value
    REVOCATION_CHECK_VERIFIER = VerificationCapability.REVOCATION_CHECK.value

    def __str__(self) -> str:
        return self.value

    def is_in(self, capabilities) -> bool:
        """Report whether this capability is among the given ones."""
        return any(self == capability for capability in capabilities)


class SigningScheme(str, Enum):
    """The feature set provided by a signature's signing scheme."""

    DEFAULT = "notary.default.x509"
    AUTHORITY = "notary.signingAuthority.x509"

    def __str__(self) -> str:
        return self.value


def _mapping(data: Any, what: str) -> dict:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{what} must be a JSON object, got {type(data).__name__}")
    return data


def _string(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string")
    return value


def _string_map(data: dict, key: str) -> dict[str, str]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict) or not all(isinstance(v, str) for v in value.values()):
        raise ValueError(f"field {key!r} must be a map of strings")
    return dict(value)


def _list(data: dict, key: str) -> list:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"field {key!r} must be a list")
    return list(value)


def _encode_bytes(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


def _decode_bytes(value: Any, key: str) -> bytes:
    if value is None:
        return b""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a base64 string")
    try:
        return base64.b64decode(value, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"field {key!r} is not valid base64: {exc}") from exc


def _decode_bytes_list(data: dict, key: str) -> list[bytes]:
    return [_decode_bytes(item, key) for item in _list(data, key)]


def _format_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.isoformat()
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


def _with_plugin_config(data: dict[str, Any], plugin_config: dict[str, str]) -> dict[str, Any]:
    if plugin_config:
        data["pluginConfig"] = dict(sorted(plugin_config.items()))
    return data


class Request:
    """A plugin request; each kind of request belongs to one command."""

    COMMAND: ClassVar[Command | str]

    def command(self) -> Command | str:
        """The command this request is sent with."""
        return type(self).COMMAND

    def to_dict(self) -> dict[str, Any]:
        """The JSON body sent to the plugin."""
        return {}


@dataclass
class GetMetadataRequest(Request):
    """Parameters of a get-plugin-metadata request."""

    COMMAND: ClassVar[Command] = Command.GET_METADATA

    plugin_config: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return _with_plugin_config({}, self.plugin_config)


@dataclass
class DescribeKeyRequest(Request):
    """Parameters of a describe-key request."""

    COMMAND: ClassVar[Command] = Command.DESCRIBE_KEY

    contract_version: str = ""
    key_id: str = ""
    plugin_config: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data = {"contractVersion": self.contract_version, "keyId": self.key_id}
        return _with_plugin_config(data, self.plugin_config)


@dataclass
class DescribeKeyResponse:
    """Response to a describe-key request."""

    key_id: str = ""
    key_spec: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> DescribeKeyResponse:
        data = _mapping(data, "describe-key response")
        return cls(key_id=_string(data, "keyId"), key_spec=_string(data, "keySpec"))


@dataclass
class GenerateSignatureRequest(Request):
    """Parameters of a generate-signature request."""

    COMMAND: ClassVar[Command] = Command.GENERATE_SIGNATURE

    contract_version: str = ""
    key_id: str = ""
    key_spec: str = ""
    hash: str = ""
    payload: bytes = b""
    plugin_config: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data = {
            "contractVersion": self.contract_version,
            "keyId": self.key_id,
            "keySpec": self.key_spec,
            "hashAlgorithm": self.hash,
            "payload": _encode_bytes(self.payload),
        }
        return _with_plugin_config(data, self.plugin_config)


@dataclass
class GenerateSignatureResponse:
    """Response to a generate-signature request.

    The certificate chain is ordered from the leaf to the root certificate.
    """

    key_id: str = ""
    signature: bytes = b""
    signing_algorithm: str = ""
    certificate_chain: list[bytes] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> GenerateSignatureResponse:
        data = _mapping(data, "generate-signature response")
        return cls(
            key_id=_string(data, "keyId"),
            signature=_decode_bytes(data.get("signature"), "signature"),
            signing_algorithm=_string(data, "signingAlgorithm"),
            certificate_chain=_decode_bytes_list(data, "certificateChain"),
        )


@dataclass
class GenerateEnvelopeRequest(Request):
    """Parameters of a generate-envelope request."""

    COMMAND: ClassVar[Command] = Command.GENERATE_ENVELOPE

    contract_version: str = ""
    key_id: str = ""
    payload_type: str = ""
    signature_envelope_type: str = ""
    payload: bytes = b""
    plugin_config: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data = {
            "contractVersion": self.contract_version,
            "keyId": self.key_id,
            "payloadType": self.payload_type,
            "signatureEnvelopeType": self.signature_envelope_type,
            "payload": _encode_bytes(self.payload),
        }
        return _with_plugin_config(data, self.plugin_config)


@dataclass
class GenerateEnvelopeResponse:
    """Response to a generate-envelope request."""

    signature_envelope: bytes = b""
    signature_envelope_type: str = ""
    annotations: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> GenerateEnvelopeResponse:
        data = _mapping(data, "generate-envelope response")
        return cls(
            signature_envelope=_decode_bytes(data.get("signatureEnvelope"), "signatureEnvelope"),
            signature_envelope_type=_string(data, "signatureEnvelopeType"),
            annotations=_string_map(data, "annotations"),
        )


@dataclass
class CriticalAttributes:
    """The critical attributes of a signature envelope and their values."""

    content_type: str = ""
    signing_scheme: str = ""
    expiry: datetime | None = None
    authentic_signing_time: datetime | None = None
    extended_attributes: dict[Any, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "contentType": self.content_type,
            "signingScheme": str(self.signing_scheme),
        }
        if self.expiry is not None:
            data["expiry"] = _format_time(self.expiry)
        if self.authentic_signing_time is not None:
            data["authenticSigningTime"] = _format_time(self.authentic_signing_time)
        if self.extended_attributes:
            data["extendedAttributes"] = {
                str(key): value for key, value in self.extended_attributes.items()
            }
        return data


@dataclass
class Signature:
    """A signature taken out of its envelope."""

    critical_attributes: CriticalAttributes = field(default_factory=CriticalAttributes)
    unprocessed_attributes: list[Any] = field(default_factory=list)
    certificate_chain: list[bytes] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "criticalAttributes": self.critical_attributes.to_dict(),
            "unprocessedAttributes": list(self.unprocessed_attributes),
            "certificateChain": [_encode_bytes(cert) for cert in self.certificate_chain],
        }


@dataclass
class TrustPolicy:
    """The identities trusted to sign artifacts and the checks to run."""

    trusted_identities: list[str] = field(default_factory=list)
    signature_verification: list[VerificationCapability] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "trustedIdentities": list(self.trusted_identities),
            "signatureVerification": [str(cap) for cap in self.signature_verification],
        }


@dataclass
class VerifySignatureRequest(Request):
    """Parameters of a verify-signature request."""

    COMMAND: ClassVar[Command] = Command.VERIFY_SIGNATURE

    contract_version: str = ""
    signature: Signature = field(default_factory=Signature)
    trust_policy: TrustPolicy = field(default_factory=TrustPolicy)
    plugin_config: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data = {
            "contractVersion": self.contract_version,
            "signature": self.signature.to_dict(),
            "trustPolicy": self.trust_policy.to_dict(),
        }
        return _with_plugin_config(data, self.plugin_config)


@dataclass
class VerificationResult:
    """The outcome of one verification performed by a plugin."""

    success: bool = False
    reason: str = ""


def _verification_result(data: Any) -> VerificationResult | None:
    if data is None:
        return None
    data = _mapping(data, "verification result")
    success = data.get("success")
    if success is None:
        success = False
    if not isinstance(success, bool):
        raise ValueError("field 'success' must be a boolean")
    return VerificationResult(success=success, reason=_string(data, "reason"))


def _capability_key(key: str) -> VerificationCapability | str:
    try:
        return VerificationCapability(key)
    except ValueError:
        return key


@dataclass
class VerifySignatureResponse:
    """Response to a verify-signature request."""

    verification_results: dict[VerificationCapability | str, VerificationResult | None] = field(
        default_factory=dict
    )
    processed_attributes: list[Any] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> VerifySignatureResponse:
        data = _mapping(data, "verify-signature response")
        raw_results = _mapping(data.get("verificationResults"), "verificationResults")
        results = {
            _capability_key(key): _verification_result(value)
            for key, value in raw_results.items()
        }
        return cls(
            verification_results=results,
            processed_attributes=_list(data, "processedAttributes"),
        )


@runtime_checkable
class Runner(Protocol):
    """Runs commands against a plugin."""

    def run(self, req: Request) -> Any:
        """Execute the request's command and return the decoded response."""
        ...