"""The error response a plugin returns for a failed request."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes defined by the plugin contract."""

    VALIDATION = "VALIDATION_ERROR"
    UNSUPPORTED_CONTRACT_VERSION = "UNSUPPORTED_CONTRACT_VERSION"
    ACCESS_DENIED = "ACCESS_DENIED"
    TIMEOUT = "TIMEOUT"
    THROTTLED = "THROTTLED"
    GENERIC = "ERROR"

    def __str__(self) -> str:
        return self.value


def _code_value(code: ErrorCode | str) -> str:
    return code.value if isinstance(code, ErrorCode) else str(code)


def _parse_code(raw: str) -> ErrorCode | str:
    try:
        return ErrorCode(raw)
    except ValueError:
        return raw


class RequestError(Exception):
    """The common error response for any plugin request."""

    def __init__(
        self,
        code: ErrorCode | str = "",
        err: BaseException | None = None,
        metadata: dict[str, str] | None = None,
    ) -> None:
        self.code = code
        self.err = err
        self.metadata = dict(metadata) if metadata else {}
        super().__init__(str(self))
        if err is not None:
            self.__cause__ = err

    def __str__(self) -> str:
        message = "" if self.err is None else str(self.err)
        return f"{_code_value(self.code)}: {message}"

    def __repr__(self) -> str:
        return (
            f"RequestError(code={_code_value(self.code)!r}, err={self.err!r}, "
            f"metadata={self.metadata!r})"
        )

    def matches(self, target: Any) -> bool:
        """Report whether target is a request error with the same code and message."""
        if not isinstance(target, RequestError):
            return False
        if _code_value(self.code) != _code_value(target.code):
            return False
        if self.err is target.err:
            return True
        return (
            self.err is not None
            and target.err is not None
            and str(self.err) == str(target.err)
        )

    def to_dict(self) -> dict[str, Any]:
        """The JSON form; an empty message or metadata is left out."""
        data: dict[str, Any] = {"errorCode": _code_value(self.code)}
        if self.err is not None:
            message = str(self.err)
            if message:
                data["errorMessage"] = message
        if self.metadata:
            data["errorMetadata"] = dict(sorted(self.metadata.items()))
        return data

    def to_json(self) -> bytes:
        """Serialize to compact JSON bytes."""
        return json.dumps(self.to_dict(), separators=(",", ":")).encode("utf-8")

    @classmethod
    def from_json(cls, data: bytes | str) -> RequestError:
        """Parse an error response; raises ValueError if it is malformed or empty."""
        raw = json.loads(data)
        if not isinstance(raw, dict):
            raise ValueError("error response must be a JSON object")
        code = raw.get("errorCode") or ""
        message = raw.get("errorMessage") or ""
        metadata = raw.get("errorMetadata")
        if not isinstance(code, str) or not isinstance(message, str):
            raise ValueError("errorCode and errorMessage must be strings")
        if metadata is not None and (
            not isinstance(metadata, dict)
            or not all(isinstance(v, str) for v in metadata.values())
        ):
            raise ValueError("errorMetadata must be a map of strings")
        if not code and not message and metadata is None:
            raise ValueError("incomplete json")
        err = Exception(message) if message else None
        return cls(code=_parse_code(code), err=err, metadata=metadata)