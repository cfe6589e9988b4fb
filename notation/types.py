"""Core signing types: artifact descriptors, payloads and signer interfaces."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

MEDIA_TYPE_PAYLOAD_V1 = "application/vnd.cncf.notary.payload.v1+json"
SIGNING_AGENT = "Notation/1.0.0"

_HTML_ESCAPES = {"<": "\\u003c", ">": "\\u003e", "&": "\\u0026", "\u2028": "\\u2028", "\u2029": "\\u2029"}


def _escape_html(text: str) -> str:
    """Escape characters that are unsafe to embed in HTML, as JSON escapes."""
    for char, escaped in _HTML_ESCAPES.items():
        text = text.replace(char, escaped)
    return text


def _field(data: dict, key: str, kind: type, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise TypeError(f"field {key!r} must be of type {kind.__name__}")
    return value


@dataclass
class Descriptor:
    """Describes the artifact that is signed."""

    media_type: str = ""
    digest: str = ""
    size: int = 0
    annotations: dict[str, str] = field(default_factory=dict)

    def equal(self, other: Descriptor) -> bool:
        """Report whether both descriptors point to the same content."""
        return (self.media_type, self.digest, self.size) == (other.media_type, other.digest, other.size)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"mediaType": self.media_type, "digest": self.digest, "size": self.size}
        if self.annotations:
            data["annotations"] = dict(sorted(self.annotations.items()))
        return data

    @classmethod
    def from_dict(cls, data: Any) -> Descriptor:
        if not isinstance(data, dict):
            raise TypeError("descriptor must be a JSON object")
        annotations = _field(data, "annotations", dict, {})
        if not all(isinstance(value, str) for value in annotations.values()):
            raise TypeError("annotations must be strings")
        return cls(
            media_type=_field(data, "mediaType", str, ""),
            digest=_field(data, "digest", str, ""),
            size=_field(data, "size", int, 0),
            annotations=dict(annotations),
        )


@dataclass
class Payload:
    """The content that gets signed."""

    target_artifact: Descriptor = field(default_factory=Descriptor)

    def to_dict(self) -> dict[str, Any]:
        return {"targetArtifact": self.target_artifact.to_dict()}

    def to_json(self) -> bytes:
        """Serialize to compact JSON bytes."""
        text = json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)
        return _escape_html(text).encode("utf-8")

    @classmethod
    def from_dict(cls, data: Any) -> Payload:
        if not isinstance(data, dict):
            raise TypeError("payload must be a JSON object")
        target = data.get("targetArtifact")
        return cls() if target is None else cls(Descriptor.from_dict(target))

    @classmethod
    def from_json(cls, data: bytes | str) -> Payload:
        return cls.from_dict(json.loads(data))


@dataclass
class SignOptions:
    """Parameters for Signer.sign."""

    expiry: datetime | None = None
    tsa: Any = None
    tsa_verify_options: Any = None
    plugin_config: dict[str, str] = field(default_factory=dict)


@dataclass
class VerifyOptions:
    """Parameters for Verifier.verify."""

    signature_media_type: str = ""

    def validate(self) -> None:
        """Basic validation: any media type string is accepted."""
        if not isinstance(self.signature_media_type, str):
            raise TypeError("signature media type must be a string")


@runtime_checkable
class Signer(Protocol):
    """Signs an artifact and returns the signature envelope."""

    def sign(self, desc: Descriptor, opts: SignOptions) -> bytes: ...


@runtime_checkable
class Verifier(Protocol):
    """Verifies a signature and returns the signed descriptor."""

    def verify(self, signature: bytes, opts: VerifyOptions) -> Descriptor: ...


@runtime_checkable
class Service(Signer, Verifier, Protocol):
    """Combines signing and verification."""