"""Cache key hashing.

xxhash for the hot path (search and browse page keys), SHA256 where a
stable cross-process digest is wanted (snapshot fingerprints).
"""

import hashlib
from enum import Enum
from typing import Any, Mapping

import orjson
import xxhash


class Algorithm(str, Enum):
    """Supported hash algorithms."""

    XXHASH64 = "xxhash64"  # Fast, non-cryptographic (cache keys)
    SHA256 = "sha256"  # Snapshot fingerprints


def hash_bytes(data: bytes, algorithm: Algorithm = Algorithm.XXHASH64) -> str:
    """Hash bytes to a hex digest."""
    if algorithm == Algorithm.XXHASH64:
        return xxhash.xxh64(data).hexdigest()
    if algorithm == Algorithm.SHA256:
        return hashlib.sha256(data).hexdigest()
    raise ValueError(f"Unknown algorithm: {algorithm}")


def hash_string(
    text: str, algorithm: Algorithm = Algorithm.XXHASH64, truncate: int | None = None
) -> str:
    """
    Hash string to hex digest.

    Args:
        text: String to hash
        algorithm: Hash algorithm (default: xxhash64 for speed)
        truncate: Optional length to truncate digest

    Returns:
        Hex digest string

    Examples:
        >>> len(hash_string("button"))
        16
        >>> len(hash_string("button", Algorithm.SHA256, truncate=12))
        12
    """
    digest = hash_bytes(text.encode("utf-8"), algorithm)
    return digest[:truncate] if truncate else digest


def hash_fields(*fields: str, algorithm: Algorithm = Algorithm.XXHASH64) -> str:
    """
    Hash multiple fields together (deterministic).

    Examples:
        >>> hash_fields("buttons", "10", "0") == hash_fields("buttons", "10", "0")
        True
    """
    combined = "\x00".join(fields)  # Null byte separator
    return hash_string(combined, algorithm)


def canonical_json(value: Mapping[str, Any]) -> bytes:
    """Serialize with sorted keys so equal mappings give equal bytes."""
    return orjson.dumps(value, option=orjson.OPT_SORT_KEYS | orjson.OPT_NON_STR_KEYS)


def search_key(query: str, filters: Mapping[str, Any]) -> str:
    """
    Cache key for a search page.

    Args:
        query: Already normalized query (trimmed, lowercased)
        filters: Filter mapping (JSON-compatible values)

    Returns:
        Key in the ``search:`` namespace
    """
    payload = query.encode("utf-8") + b"\x00" + canonical_json(filters)
    return f"search:{hash_bytes(payload)}"


def browse_key(category_id: str, limit: int, offset: int) -> str:
    """Cache key for a category page."""
    return f"category:{category_id}:{limit}:{offset}"


__all__ = [
    "Algorithm",
    "hash_bytes",
    "hash_string",
    "hash_fields",
    "canonical_json",
    "search_key",
    "browse_key",
]
