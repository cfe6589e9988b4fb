"""Key specs and signing algorithms named as in the signature specification."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any

RSA_2048 = "RSA-2048"
RSA_3072 = "RSA-3072"
RSA_4096 = "RSA-4096"
EC_256 = "EC-256"
EC_384 = "EC-384"
EC_521 = "EC-521"

SHA_256 = "SHA-256"
SHA_384 = "SHA-384"
SHA_512 = "SHA-512"

ECDSA_SHA_256 = "ECDSA-SHA-256"
ECDSA_SHA_384 = "ECDSA-SHA-384"
ECDSA_SHA_512 = "ECDSA-SHA-512"
RSASSA_PSS_SHA_256 = "RSASSA-PSS-SHA-256"
RSASSA_PSS_SHA_384 = "RSASSA-PSS-SHA-384"
RSASSA_PSS_SHA_512 = "RSASSA-PSS-SHA-512"


class KeyType(IntEnum):
    """The type of a signing key."""

    RSA = 1
    EC = 2


class Algorithm(IntEnum):
    """A signature algorithm."""

    PS256 = 1
    PS384 = 2
    PS512 = 3
    ES256 = 4
    ES384 = 5
    ES512 = 6


@dataclass(frozen=True)
class KeySpec:
    """The type and size of a signing key."""

    type: KeyType | None = None
    size: int = 0


_KEY_SPEC_NAMES: dict[tuple[KeyType, int], str] = {
    (KeyType.EC, 256): EC_256,
    (KeyType.EC, 384): EC_384,
    (KeyType.EC, 521): EC_521,
    (KeyType.RSA, 2048): RSA_2048,
    (KeyType.RSA, 3072): RSA_3072,
    (KeyType.RSA, 4096): RSA_4096,
}

_KEY_SPEC_HASHES: dict[tuple[KeyType, int], str] = {
    (KeyType.EC, 256): SHA_256,
    (KeyType.EC, 384): SHA_384,
    (KeyType.EC, 521): SHA_512,
    (KeyType.RSA, 2048): SHA_256,
    (KeyType.RSA, 3072): SHA_384,
    (KeyType.RSA, 4096): SHA_512,
}

_KEY_SPECS_BY_NAME: dict[str, KeySpec] = {
    name: KeySpec(type=key_type, size=size)
    for (key_type, size), name in _KEY_SPEC_NAMES.items()
}

_ALGORITHM_NAMES: dict[Algorithm, str] = {
    Algorithm.ES256: ECDSA_SHA_256,
    Algorithm.ES384: ECDSA_SHA_384,
    Algorithm.ES512: ECDSA_SHA_512,
    Algorithm.PS256: RSASSA_PSS_SHA_256,
    Algorithm.PS384: RSASSA_PSS_SHA_384,
    Algorithm.PS512: RSASSA_PSS_SHA_512,
}

_ALGORITHMS_BY_NAME: dict[str, Algorithm] = {
    name: alg for alg, name in _ALGORITHM_NAMES.items()
}


def _lookup(table: dict, key: Any) -> str:
    try:
        return table.get(key, "")
    except TypeError:
        return ""


def key_spec_string(key_spec: KeySpec) -> str:
    """The spec name of a key spec, or an empty string if unsupported."""
    return _lookup(_KEY_SPEC_NAMES, (key_spec.type, key_spec.size))


def key_spec_hash_string(key_spec: KeySpec) -> str:
    """The name of the hash function belonging to a key spec, or an empty string."""
    return _lookup(_KEY_SPEC_HASHES, (key_spec.type, key_spec.size))


def parse_key_spec(raw: str) -> KeySpec:
    """Parse a key spec name; raises ValueError for unknown names."""
    try:
        return _KEY_SPECS_BY_NAME[raw]
    except (KeyError, TypeError):
        raise ValueError("unknown key spec") from None


def signing_algorithm_string(alg: Any) -> str:
    """The spec name of a signing algorithm, or an empty string if unsupported."""
    return _lookup(_ALGORITHM_NAMES, alg)


def parse_signing_algorithm(raw: str) -> Algorithm:
    """Parse a signing algorithm name; raises ValueError for unknown names."""
    try:
        return _ALGORITHMS_BY_NAME[raw]
    except (KeyError, TypeError):
        raise ValueError("unknown signing algorithm") from None