"""ID Generation.

ULID-based request identifiers. Prefixed (``req_*``) so they are easy to
spot in logs, and k-sortable so log lines order by request start.
"""

from typing import NewType

from ulid import ULID

RequestID = NewType("RequestID", str)
"""Tool call identifier"""


class Prefix:
    """ID prefix constants."""

    REQUEST = "req"


def new_request_id() -> RequestID:
    """Generate new request ID."""
    return RequestID(f"{Prefix.REQUEST}_{ULID()}")


__all__ = [
    "RequestID",
    "Prefix",
    "new_request_id",
]
