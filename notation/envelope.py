"""Checks on signature envelope media types and payload content types."""

from __future__ import annotations

import json

from .types import MEDIA_TYPE_PAYLOAD_V1

MEDIA_TYPE_JWS_ENVELOPE = "application/jose+json"
MEDIA_TYPE_COSE_ENVELOPE = "application/cose"

_REGISTERED_ENVELOPE_TYPES = (MEDIA_TYPE_JWS_ENVELOPE, MEDIA_TYPE_COSE_ENVELOPE)


def registered_envelope_types() -> list[str]:
    """The media types of the supported signature envelope formats."""
    return list(_REGISTERED_ENVELOPE_TYPES)


def validate_envelope_media_type(media_type: str) -> None:
    """Raise ValueError unless media_type names a supported envelope format."""
    if media_type not in _REGISTERED_ENVELOPE_TYPES:
        raise ValueError("invalid envelope media type")


def validate_payload_content_type(content_type: str) -> None:
    """Raise ValueError unless content_type is the supported payload type."""
    if content_type != MEDIA_TYPE_PAYLOAD_V1:
        raise ValueError(
            f"payload content type {json.dumps(content_type)} not supported"
        )