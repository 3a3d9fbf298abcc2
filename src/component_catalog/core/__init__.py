"""Core utilities and infrastructure."""

from .config import Settings, get_settings
from .errors import CatalogError, ErrorKind, ProtocolCode
from .validate import (
    SearchFilters,
    validate_category_id,
    validate_component_id,
    validate_pagination,
    validate_search_filters,
    validate_search_query,
)
from .logging_config import configure_logging, get_logger, LogContext
from .schema import SchemaNode, SchemaValidator, ValidationReport
from .hash import Algorithm, hash_string, hash_bytes, hash_fields
from .cache import TTLCache, Stats
from .ratelimit import RateLimiter
from .retry import retry_async


def create_container(settings: Settings | None = None):
    """Create dependency injection container (lazy import to avoid circular deps)."""
    from .container import create_container as _create_container

    return _create_container(settings)


__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Errors
    "CatalogError",
    "ErrorKind",
    "ProtocolCode",
    # Validation
    "SearchFilters",
    "validate_category_id",
    "validate_component_id",
    "validate_pagination",
    "validate_search_filters",
    "validate_search_query",
    "SchemaNode",
    "SchemaValidator",
    "ValidationReport",
    # Logging
    "configure_logging",
    "get_logger",
    "LogContext",
    # DI
    "create_container",
    # Hashing
    "Algorithm",
    "hash_string",
    "hash_bytes",
    "hash_fields",
    # Caching and admission
    "TTLCache",
    "Stats",
    "RateLimiter",
    "retry_async",
]
