"""Error taxonomy and classification.

Every failure the catalog reports is a CatalogError tagged with an
ErrorKind. Retryability, severity, audience and protocol code are looked
up from one table when the error is created.
"""

import time
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Literal

Severity = Literal["low", "medium", "high", "critical"]
Fault = Literal["client", "server"]

INTERNAL_ERROR_MESSAGE = "Internal server error"


class ErrorKind(str, Enum):
    """Internal failure kinds."""

    INVALID_COMPONENT_ID = "INVALID_COMPONENT_ID"
    COMPONENT_NOT_FOUND = "COMPONENT_NOT_FOUND"
    INVALID_SEARCH_QUERY = "INVALID_SEARCH_QUERY"
    INVALID_CATEGORY = "INVALID_CATEGORY"
    CACHE_ERROR = "CACHE_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"


class ProtocolCode(IntEnum):
    """JSON-RPC error codes used on the tool protocol."""

    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603


@dataclass(frozen=True)
class Classification:
    """How a failure kind is reported and handled."""

    protocol_code: ProtocolCode
    fault: Fault
    retryable: bool
    user_facing: bool
    severity: Severity


_CLASSIFICATIONS: dict[ErrorKind, Classification] = {
    ErrorKind.INVALID_COMPONENT_ID: Classification(
        ProtocolCode.INVALID_PARAMS, "client", False, True, "low"
    ),
    ErrorKind.INVALID_SEARCH_QUERY: Classification(
        ProtocolCode.INVALID_PARAMS, "client", False, True, "low"
    ),
    ErrorKind.INVALID_CATEGORY: Classification(
        ProtocolCode.INVALID_PARAMS, "client", False, True, "low"
    ),
    ErrorKind.VALIDATION_ERROR: Classification(
        ProtocolCode.INVALID_PARAMS, "client", False, True, "low"
    ),
    ErrorKind.COMPONENT_NOT_FOUND: Classification(
        ProtocolCode.INVALID_REQUEST, "client", False, True, "medium"
    ),
    # Retryable once the reset delay has passed
    ErrorKind.RATE_LIMIT_EXCEEDED: Classification(
        ProtocolCode.INVALID_REQUEST, "client", True, True, "high"
    ),
    ErrorKind.NETWORK_ERROR: Classification(
        ProtocolCode.INTERNAL_ERROR, "server", True, False, "high"
    ),
    ErrorKind.CACHE_ERROR: Classification(
        ProtocolCode.INTERNAL_ERROR, "server", True, False, "critical"
    ),
}

_missing = set(ErrorKind) - set(_CLASSIFICATIONS)
if _missing:
    raise RuntimeError(f"Unclassified error kinds: {sorted(k.value for k in _missing)}")


def classify(kind: ErrorKind) -> Classification:
    """Return the classification for an error kind."""
    return _CLASSIFICATIONS[ErrorKind(kind)]


class CatalogError(Exception):
    """
    Tagged catalog failure.

    Args:
        kind: Failure kind
        message: Human-readable message (shown to callers only for user-facing kinds)
        details: Structured diagnostic payload
        context: Extra context fields for logs
        request_id: Request that failed
        tool_name: Tool that failed
        retry_after: Seconds to wait before retrying (rate limiting)
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        details: Any = None,
        context: dict[str, Any] | None = None,
        request_id: str | None = None,
        tool_name: str | None = None,
        retry_after: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = ErrorKind(kind)
        self.message = message
        self.details = details
        self.context = dict(context or {})
        self.request_id = request_id
        self.tool_name = tool_name
        self.retry_after = retry_after
        self.timestamp = time.time()
        self.classification = classify(self.kind)

    @property
    def retryable(self) -> bool:
        return self.classification.retryable

    @property
    def user_facing(self) -> bool:
        return self.classification.user_facing

    @property
    def severity(self) -> Severity:
        return self.classification.severity

    @property
    def protocol_code(self) -> ProtocolCode:
        return self.classification.protocol_code

    @property
    def public_message(self) -> str:
        """Message safe to return to callers."""
        return self.message if self.user_facing else INTERNAL_ERROR_MESSAGE

    def to_dict(self) -> dict[str, Any]:
        """Protocol-facing error payload (no internal details)."""
        payload: dict[str, Any] = {
            "errorCode": self.kind.value,
            "protocolCode": int(self.protocol_code),
            "severity": self.severity,
            "retryable": self.retryable,
        }
        if self.retry_after is not None:
            payload["retryAfter"] = self.retry_after
        if self.user_facing and isinstance(self.details, dict) and "errors" in self.details:
            payload["details"] = {"errors": self.details["errors"]}
        return payload

    def __repr__(self) -> str:
        return f"CatalogError(kind={self.kind.value!r}, message={self.message!r})"


__all__ = [
    "ErrorKind",
    "ProtocolCode",
    "Classification",
    "CatalogError",
    "classify",
    "INTERNAL_ERROR_MESSAGE",
]
