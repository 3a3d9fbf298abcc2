"""Request parameter validation.

Validators run before any catalog access. Each one either returns the
normalized value or raises a CatalogError whose ``details["errors"]`` lists
every problem found, as plain dictionaries ready for the protocol payload.
"""

import math
import re
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .errors import CatalogError, ErrorKind
from .schema import ValidationIssue

# Validation limits
MAX_ID_LENGTH = 100
MAX_QUERY_LENGTH = 200
MAX_PAGE_SIZE = 50
DEFAULT_PAGE_SIZE = 10
# Offsets past the largest 64-bit index address nothing; larger ones are clamped
MAX_OFFSET = 2**63 - 1

ID_PATTERN = re.compile(r"^[a-zA-Z0-9\-_]+$")
_DATETIME = TypeAdapter(datetime)

DifficultyName = Literal["beginner", "intermediate", "advanced"]
SortField = Literal["name", "updated", "difficulty", "category"]
SortOrder = Literal["asc", "desc"]

DIFFICULTIES: tuple[str, ...] = ("beginner", "intermediate", "advanced")
SORT_FIELDS: tuple[str, ...] = ("name", "updated", "difficulty", "category")
SORT_ORDERS: tuple[str, ...] = ("asc", "desc")


class RequestValidator(BaseModel):
    """Base validator with strict configuration."""

    model_config = ConfigDict(
        strict=True, validate_assignment=True, extra="forbid", frozen=True  # Immutable by default
    )


class SearchFilters(RequestValidator):
    """
    Validated search filters.

    Accepts snake_case names or their camelCase aliases; dumps with aliases
    for the protocol surface.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    category: Optional[str] = None
    tags: Optional[tuple[str, ...]] = None
    difficulty: Optional[DifficultyName] = None
    has_demo: Optional[bool] = None
    dependencies: Optional[tuple[str, ...]] = None
    updated_after: Optional[datetime] = None
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    offset: int = Field(default=0, ge=0, le=MAX_OFFSET)
    sort_by: Optional[SortField] = None
    sort_order: SortOrder = "desc"

    def cache_fields(self) -> dict[str, Any]:
        """JSON-compatible mapping of the set fields (stable cache key input)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def _fail(kind: ErrorKind, issues: list[ValidationIssue]) -> CatalogError:
    summary = ", ".join(f"{issue.field}: {issue.message}" for issue in issues)
    return CatalogError(
        kind,
        f"Validation failed: {summary}",
        details={"errors": [issue.to_dict() for issue in issues]},
    )


def _identifier(value: Any, field: str, label: str, kind: ErrorKind) -> str:
    issue: ValidationIssue | None = None

    if value is None:
        issue = ValidationIssue(field, f"{label} is required", "REQUIRED", value)
    elif not isinstance(value, str):
        issue = ValidationIssue(field, f"{label} must be a string", "INVALID_TYPE", value)
    else:
        trimmed = value.strip()
        if not trimmed:
            issue = ValidationIssue(field, f"{label} cannot be empty", "EMPTY_VALUE", value)
        elif len(trimmed) > MAX_ID_LENGTH:
            issue = ValidationIssue(
                field, f"{label} cannot exceed {MAX_ID_LENGTH} characters", "TOO_LONG", value
            )
        elif not ID_PATTERN.match(trimmed):
            issue = ValidationIssue(
                field,
                f"{label} can only contain alphanumeric characters, hyphens, and underscores",
                "INVALID_FORMAT",
                value,
            )
        else:
            return trimmed

    raise _fail(kind, [issue])


def validate_component_id(value: Any) -> str:
    """
    Validate and normalize a component ID.

    Args:
        value: Raw ID from the caller

    Returns:
        Trimmed ID

    Raises:
        CatalogError: INVALID_COMPONENT_ID

    Examples:
        >>> validate_component_id("  animated-button-1 ")
        'animated-button-1'
    """
    return _identifier(value, "id", "Component ID", ErrorKind.INVALID_COMPONENT_ID)


def validate_category_id(value: Any) -> str:
    """Validate a category ID (same rules as component IDs)."""
    return _identifier(value, "categoryId", "Category ID", ErrorKind.INVALID_CATEGORY)


def validate_search_query(value: Any, max_length: int = MAX_QUERY_LENGTH) -> str:
    """
    Validate and trim a search query.

    Raises:
        CatalogError: INVALID_SEARCH_QUERY
    """
    issue: ValidationIssue | None = None

    if value is None:
        issue = ValidationIssue("query", "Search query is required", "REQUIRED", value)
    elif not isinstance(value, str):
        issue = ValidationIssue("query", "Search query must be a string", "INVALID_TYPE", value)
    else:
        trimmed = value.strip()
        if not trimmed:
            issue = ValidationIssue("query", "Search query cannot be empty", "EMPTY_VALUE", value)
        elif len(trimmed) > max_length:
            issue = ValidationIssue(
                "query", f"Search query cannot exceed {max_length} characters", "TOO_LONG", value
            )
        else:
            return trimmed

    raise _fail(ErrorKind.INVALID_SEARCH_QUERY, [issue])


def _as_number(
    value: Any, field: str, label: str, issues: list[ValidationIssue]
) -> int | float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        issues.append(ValidationIssue(field, f"{label} must be a number", "INVALID_TYPE", value))
        return None
    # Integers stay exact; float() overflows past ~1e308
    if isinstance(value, int):
        return value

    number: int | float = math.nan
    if isinstance(value, float):
        number = value
    else:
        try:
            return int(value.strip())
        except ValueError:
            pass
        try:
            number = float(value)
        except ValueError:
            pass
    if not math.isfinite(number):
        issues.append(
            ValidationIssue(field, f"{label} must be a valid number", "INVALID_NUMBER", value)
        )
        return None
    return number


def _check_pagination(
    limit: Any, offset: Any, max_limit: int, default_limit: int, issues: list[ValidationIssue]
) -> tuple[int, int]:
    validated_limit = default_limit
    validated_offset = 0

    if limit is not None:
        number = _as_number(limit, "limit", "Limit", issues)
        if number is not None:
            if number < 1:
                issues.append(
                    ValidationIssue("limit", "Limit must be at least 1", "TOO_SMALL", limit)
                )
            elif number > max_limit:
                issues.append(
                    ValidationIssue("limit", f"Limit cannot exceed {max_limit}", "TOO_LARGE", limit)
                )
            else:
                validated_limit = math.floor(number)

    if offset is not None:
        number = _as_number(offset, "offset", "Offset", issues)
        if number is not None:
            if number < 0:
                issues.append(
                    ValidationIssue("offset", "Offset cannot be negative", "NEGATIVE_VALUE", offset)
                )
            else:
                validated_offset = min(math.floor(number), MAX_OFFSET)

    return validated_limit, validated_offset


def validate_pagination(
    limit: Any = None,
    offset: Any = None,
    *,
    max_limit: int = MAX_PAGE_SIZE,
    default_limit: int = DEFAULT_PAGE_SIZE,
) -> tuple[int, int]:
    """
    Validate pagination parameters.

    Numbers and numeric strings are accepted and fractional values floored.
    Out-of-range values are rejected rather than clamped.

    Returns:
        (limit, offset)

    Raises:
        CatalogError: VALIDATION_ERROR

    Examples:
        >>> validate_pagination("7.9", None)
        (7, 0)
    """
    issues: list[ValidationIssue] = []
    result = _check_pagination(limit, offset, max_limit, default_limit, issues)
    if issues:
        raise _fail(ErrorKind.VALIDATION_ERROR, issues)
    return result


def _pick(mapping: Mapping[str, Any], camel: str, snake: str) -> Any:
    return mapping[camel] if camel in mapping else mapping.get(snake)


def _string_list(value: Any, field: str, issues: list[ValidationIssue]) -> tuple[str, ...] | None:
    if isinstance(value, str) or not isinstance(value, (Sequence, set, frozenset)):
        issues.append(ValidationIssue(field, "Must be an array", "INVALID_TYPE", value))
        return None
    cleaned = tuple(item.strip() for item in value if isinstance(item, str) and item.strip())
    return cleaned or None


def _choice(
    value: Any, options: tuple[str, ...], field: str, label: str, issues: list[ValidationIssue]
) -> str | None:
    if value in options:
        return value
    issues.append(
        ValidationIssue(
            field, f"{label} must be one of: {', '.join(options)}", "INVALID_VALUE", value
        )
    )
    return None


def _timestamp(value: Any, field: str, issues: list[ValidationIssue]) -> datetime | None:
    parsed: datetime | None = None
    if isinstance(value, (datetime, str)):
        try:
            parsed = _DATETIME.validate_python(value.strip() if isinstance(value, str) else value)
        except PydanticValidationError:
            parsed = None
    if parsed is None:
        issues.append(
            ValidationIssue(field, "Must be an ISO-8601 timestamp", "INVALID_FORMAT", value)
        )
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def validate_search_filters(
    filters: Any,
    *,
    max_limit: int = MAX_PAGE_SIZE,
    default_limit: int = DEFAULT_PAGE_SIZE,
) -> SearchFilters:
    """
    Validate a raw filter mapping into SearchFilters.

    Blank category and blank tags are dropped, ``hasDemo`` is coerced to
    bool, pagination follows validate_pagination.

    Args:
        filters: Mapping with camelCase or snake_case keys, or None

    Returns:
        Immutable SearchFilters

    Raises:
        CatalogError: VALIDATION_ERROR listing every invalid field
    """
    if filters is None:
        return SearchFilters(limit=default_limit)
    if not isinstance(filters, Mapping):
        raise _fail(
            ErrorKind.VALIDATION_ERROR,
            [ValidationIssue("filters", "Filters must be an object", "INVALID_TYPE", filters)],
        )

    issues: list[ValidationIssue] = []
    values: dict[str, Any] = {}

    category = filters.get("category")
    if category is not None:
        if isinstance(category, str):
            if category.strip():
                values["category"] = category.strip()
        else:
            issues.append(
                ValidationIssue(
                    "filters.category", "Category must be a string", "INVALID_TYPE", category
                )
            )

    for name in ("tags", "dependencies"):
        raw = filters.get(name)
        if raw is not None:
            values[name] = _string_list(raw, f"filters.{name}", issues)

    difficulty = filters.get("difficulty")
    if difficulty is not None:
        values["difficulty"] = _choice(
            difficulty, DIFFICULTIES, "filters.difficulty", "Difficulty", issues
        )

    has_demo = _pick(filters, "hasDemo", "has_demo")
    if has_demo is not None:
        values["has_demo"] = bool(has_demo)

    updated_after = _pick(filters, "updatedAfter", "updated_after")
    if updated_after is not None:
        values["updated_after"] = _timestamp(updated_after, "filters.updatedAfter", issues)

    sort_by = _pick(filters, "sortBy", "sort_by")
    if sort_by is not None:
        values["sort_by"] = _choice(sort_by, SORT_FIELDS, "filters.sortBy", "Sort field", issues)

    sort_order = _pick(filters, "sortOrder", "sort_order")
    if sort_order is not None:
        values["sort_order"] = _choice(
            sort_order, SORT_ORDERS, "filters.sortOrder", "Sort order", issues
        )

    limit, offset = _check_pagination(
        filters.get("limit"), filters.get("offset"), max_limit, default_limit, issues
    )

    if issues:
        raise _fail(ErrorKind.VALIDATION_ERROR, issues)

    values = {key: value for key, value in values.items() if value is not None}
    return SearchFilters(limit=limit, offset=offset, **values)


__all__ = [
    "MAX_ID_LENGTH",
    "MAX_QUERY_LENGTH",
    "MAX_PAGE_SIZE",
    "DEFAULT_PAGE_SIZE",
    "MAX_OFFSET",
    "RequestValidator",
    "SearchFilters",
    "validate_component_id",
    "validate_category_id",
    "validate_search_query",
    "validate_pagination",
    "validate_search_filters",
]
