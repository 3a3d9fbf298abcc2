"""Structural validation for a constrained JSON-Schema subset.

Supports string, integer, number, boolean, array and object nodes with the
constraints the tool schemas use. Validation is recursive, collects every
failure instead of stopping at the first one, and never mutates its input.
"""

import re
from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass, field
from functools import lru_cache
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

SchemaType = Literal["string", "integer", "number", "boolean", "array", "object"]


class SchemaNode(BaseModel):
    """One node of a schema tree."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True, extra="ignore"
    )

    type: Optional[SchemaType] = None
    description: Optional[str] = None
    default: Any = None
    examples: Optional[list[Any]] = None

    # string
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    enum: Optional[list[Any]] = None

    # integer / number
    minimum: Optional[float] = None
    maximum: Optional[float] = None

    # array
    min_items: Optional[int] = None
    max_items: Optional[int] = None
    unique_items: Optional[bool] = None
    items: Optional["SchemaNode"] = None

    # object
    properties: Optional[dict[str, "SchemaNode"]] = None
    required: Optional[list[str]] = None
    additional_properties: Optional[bool] = None


SchemaNode.model_rebuild()


@dataclass(frozen=True)
class ValidationIssue:
    """A constraint violation that makes the value invalid."""

    field: str
    message: str
    code: str
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        # JSON encoders stop at 64-bit integers
        if isinstance(self.value, int) and not -(2**63) <= self.value < 2**64:
            data["value"] = str(self.value)
        return data


@dataclass(frozen=True)
class ValidationWarning:
    """A non-fatal finding; never affects validity."""

    field: str
    message: str
    code: str
    severity: Literal["info", "warn"] = "warn"
    suggestion: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ValidationReport:
    """Outcome of validating one value against one schema."""

    valid: bool
    data: Any = None
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationWarning] = field(default_factory=list)


@lru_cache(maxsize=128)
def _compile(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern)


def _runtime_type(value: Any) -> str:
    """Map a Python value onto schema type vocabulary."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, Sequence):
        return "array"
    return type(value).__name__


def _type_matches(expected: str, actual: str) -> bool:
    if expected in ("integer", "number"):
        return actual == "number"
    return expected == actual


def _has_duplicates(items: Sequence[Any]) -> bool:
    seen: list[Any] = []
    for item in items:
        if item in seen:
            return True
        seen.append(item)
    return False


def _child(path: str, name: str) -> str:
    return f"{path}.{name}" if path else name


class SchemaValidator:
    """
    Recursive validator for SchemaNode trees.

    Examples:
        >>> props = {"id": {"type": "string"}}
        >>> schema = {"type": "object", "required": ["id"], "properties": props}
        >>> SchemaValidator().validate({}, schema).errors[0].code
        'MISSING_REQUIRED'
    """

    def validate(self, data: Any, schema: SchemaNode | Mapping[str, Any]) -> ValidationReport:
        """
        Validate data against a schema.

        Args:
            data: Value to check
            schema: SchemaNode or its dictionary form

        Returns:
            Report; valid is True when there are no errors (warnings allowed)
        """
        node = schema if isinstance(schema, SchemaNode) else SchemaNode.model_validate(schema)
        errors: list[ValidationIssue] = []
        warnings: list[ValidationWarning] = []

        self._validate_value(data, node, "", errors, warnings)

        valid = not errors
        return ValidationReport(
            valid=valid,
            data=data if valid else None,
            errors=errors,
            warnings=warnings,
        )

    def _validate_value(
        self,
        value: Any,
        node: SchemaNode,
        path: str,
        errors: list[ValidationIssue],
        warnings: list[ValidationWarning],
    ) -> None:
        where = path or "root"

        if node.type is not None:
            actual = _runtime_type(value)
            if not _type_matches(node.type, actual):
                # None passes when the node itself lists no required names
                if value is None and not node.required:
                    return
                errors.append(
                    ValidationIssue(
                        where, f"Expected type {node.type}, got {actual}", "TYPE_MISMATCH", value
                    )
                )
                return

        if node.type == "string":
            self._check_string(value, node, where, errors)
        elif node.type in ("integer", "number"):
            self._check_number(value, node, where, errors)
        elif node.type == "array":
            self._check_array(value, node, path, errors, warnings)
        elif node.type == "object":
            self._check_object(value, node, path, errors, warnings)

    def _check_string(
        self, value: str, node: SchemaNode, where: str, errors: list[ValidationIssue]
    ) -> None:
        if node.min_length is not None and len(value) < node.min_length:
            errors.append(
                ValidationIssue(
                    where, f"String too short (minimum {node.min_length})", "TOO_SHORT", value
                )
            )
        if node.max_length is not None and len(value) > node.max_length:
            errors.append(
                ValidationIssue(
                    where, f"String too long (maximum {node.max_length})", "TOO_LONG", value
                )
            )
        if node.pattern is not None and not _compile(node.pattern).search(value):
            errors.append(
                ValidationIssue(
                    where,
                    f"String does not match pattern {node.pattern}",
                    "PATTERN_MISMATCH",
                    value,
                )
            )
        if node.enum is not None and value not in node.enum:
            allowed = ", ".join(str(option) for option in node.enum)
            errors.append(
                ValidationIssue(where, f"Value must be one of: {allowed}", "INVALID_ENUM", value)
            )

    def _check_number(
        self, value: float, node: SchemaNode, where: str, errors: list[ValidationIssue]
    ) -> None:
        if node.type == "integer" and isinstance(value, float) and not value.is_integer():
            errors.append(ValidationIssue(where, "Value must be an integer", "NOT_INTEGER", value))
        if node.minimum is not None and value < node.minimum:
            errors.append(
                ValidationIssue(
                    where, f"Value must be at least {node.minimum:g}", "TOO_SMALL", value
                )
            )
        if node.maximum is not None and value > node.maximum:
            errors.append(
                ValidationIssue(
                    where, f"Value must be at most {node.maximum:g}", "TOO_LARGE", value
                )
            )

    def _check_array(
        self,
        value: Sequence[Any],
        node: SchemaNode,
        path: str,
        errors: list[ValidationIssue],
        warnings: list[ValidationWarning],
    ) -> None:
        where = path or "root"
        if node.min_items is not None and len(value) < node.min_items:
            errors.append(
                ValidationIssue(
                    where, f"Array too short (minimum {node.min_items})", "TOO_FEW_ITEMS", value
                )
            )
        if node.max_items is not None and len(value) > node.max_items:
            errors.append(
                ValidationIssue(
                    where, f"Array too long (maximum {node.max_items})", "TOO_MANY_ITEMS", value
                )
            )
        if node.unique_items and _has_duplicates(value):
            warnings.append(
                ValidationWarning(where, "Array contains duplicate items", "DUPLICATE_ITEMS")
            )
        if node.items is not None:
            for index, item in enumerate(value):
                self._validate_value(item, node.items, f"{path}[{index}]", errors, warnings)

    def _check_object(
        self,
        value: Mapping[str, Any],
        node: SchemaNode,
        path: str,
        errors: list[ValidationIssue],
        warnings: list[ValidationWarning],
    ) -> None:
        for name in node.required or []:
            if name not in value:
                errors.append(
                    ValidationIssue(
                        _child(path, name), "Required property is missing", "MISSING_REQUIRED"
                    )
                )

        declared = node.properties or {}
        if node.additional_properties is False:
            for name in value:
                if name not in declared:
                    warnings.append(
                        ValidationWarning(
                            _child(path, name),
                            "Additional property not allowed in schema",
                            "ADDITIONAL_PROPERTY",
                            suggestion=f"Remove property '{name}' or update schema",
                        )
                    )

        for name, child in declared.items():
            if name in value:
                self._validate_value(value[name], child, _child(path, name), errors, warnings)


__all__ = [
    "SchemaNode",
    "SchemaValidator",
    "ValidationIssue",
    "ValidationWarning",
    "ValidationReport",
]
