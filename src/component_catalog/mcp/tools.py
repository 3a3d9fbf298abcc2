"""
Tool Definitions
Input schemas and descriptions for the catalog tools
"""

from typing import Any

from component_catalog.core.schema import SchemaNode
from component_catalog.core.validate import DIFFICULTIES, SORT_FIELDS, SORT_ORDERS

ID_PATTERN = r"^[a-zA-Z0-9\-_]+$"

_LIMIT = {"type": "integer", "minimum": 1, "maximum": 50, "default": 10}
_OFFSET = {"type": "integer", "minimum": 0, "default": 0}

TOOL_SCHEMAS: dict[str, dict[str, Any]] = {
    "search_components": {
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "minLength": 1,
                "maxLength": 200,
                "description": "Search query for component names, descriptions, or tags",
                "examples": ["button", "animation", "card hover effect"],
            },
            "category": {
                "type": "string",
                "minLength": 1,
                "maxLength": 50,
                "description": "Filter by component category",
            },
            "tags": {
                "type": "array",
                "items": {"type": "string", "minLength": 1, "maxLength": 30},
                "maxItems": 10,
                "uniqueItems": True,
                "description": "Filter by component tags",
            },
            "difficulty": {
                "type": "string",
                "enum": list(DIFFICULTIES),
                "description": "Filter by difficulty level",
            },
            "hasDemo": {"type": "boolean", "description": "Filter components that have demo URLs"},
            "dependencies": {
                "type": "array",
                "items": {"type": "string", "minLength": 1, "maxLength": 100},
                "maxItems": 10,
                "uniqueItems": True,
                "description": "Filter by required npm dependencies",
            },
            "updatedAfter": {
                "type": "string",
                "description": "Only components updated after this ISO-8601 timestamp",
            },
            "sortBy": {
                "type": "string",
                "enum": list(SORT_FIELDS),
                "description": "Field to sort results by",
            },
            "sortOrder": {
                "type": "string",
                "enum": list(SORT_ORDERS),
                "default": "desc",
                "description": "Sort direction",
            },
            "limit": {**_LIMIT, "description": "Maximum number of results to return"},
            "offset": {**_OFFSET, "description": "Number of results to skip (for pagination)"},
        },
        "required": ["query"],
        "additionalProperties": False,
    },
    "get_component": {
        "type": "object",
        "properties": {
            "id": {
                "type": "string",
                "minLength": 1,
                "maxLength": 100,
                "pattern": ID_PATTERN,
                "description": "The unique identifier of the component",
            }
        },
        "required": ["id"],
        "additionalProperties": False,
    },
    "list_categories": {"type": "object", "properties": {}, "additionalProperties": False},
    "browse_category": {
        "type": "object",
        "properties": {
            "categoryId": {
                "type": "string",
                "minLength": 1,
                "maxLength": 50,
                "pattern": ID_PATTERN,
                "description": "The category identifier to browse",
            },
            "limit": {**_LIMIT, "description": "Maximum number of components to return"},
            "offset": {**_OFFSET, "description": "Number of components to skip (for pagination)"},
        },
        "required": ["categoryId"],
        "additionalProperties": False,
    },
    "get_random_component": {"type": "object", "properties": {}, "additionalProperties": False},
}

TOOL_NODES: dict[str, SchemaNode] = {
    name: SchemaNode.model_validate(schema) for name, schema in TOOL_SCHEMAS.items()
}

TOOL_DESCRIPTIONS: dict[str, str] = {
    "search_components": "Search for React components with optional filters and pagination support",
    "get_component": (
        "Retrieve detailed information about a specific component including full code"
    ),
    "list_categories": "Get all available component categories with metadata",
    "browse_category": "Browse components within a specific category with pagination",
    "get_random_component": "Get a random component with full code for inspiration",
}

TOOL_DEFINITIONS: list[dict[str, Any]] = [
    {"name": name, "description": TOOL_DESCRIPTIONS[name], "inputSchema": TOOL_SCHEMAS[name]}
    for name in TOOL_SCHEMAS
]

# Argument names forwarded from search_components to the filter validator
SEARCH_FILTER_KEYS = (
    "category",
    "tags",
    "difficulty",
    "hasDemo",
    "dependencies",
    "updatedAfter",
    "sortBy",
    "sortOrder",
    "limit",
    "offset",
)


__all__ = [
    "TOOL_SCHEMAS",
    "TOOL_NODES",
    "TOOL_DESCRIPTIONS",
    "TOOL_DEFINITIONS",
    "SEARCH_FILTER_KEYS",
    "ID_PATTERN",
]
