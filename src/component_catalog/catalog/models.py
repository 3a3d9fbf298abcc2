"""
Catalog Type Definitions
Component and category records, snapshots and engine result types
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from component_catalog.core.hash import Algorithm, hash_fields
from component_catalog.core.logging_config import get_logger
from .defaults import DEFAULT_COMPONENTS, DEFAULT_ICON, KNOWN_CATEGORIES, CategoryInfo

logger = get_logger(__name__)


class Difficulty(str, Enum):
    """Skill level required to use a component"""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

    @property
    def rank(self) -> int:
        return _DIFFICULTY_RANK[self]


_DIFFICULTY_RANK = {
    Difficulty.BEGINNER: 1,
    Difficulty.INTERMEDIATE: 2,
    Difficulty.ADVANCED: 3,
}


class CatalogModel(BaseModel):
    """Immutable record serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class ComponentProp(CatalogModel):
    """Documented component prop"""

    property: str
    type: str = "any"
    default: Optional[str] = None
    description: str = ""
    required: bool = True


class ComponentExample(CatalogModel):
    """Usage example"""

    title: str
    code: str
    description: Optional[str] = None


class ComponentStyling(CatalogModel):
    """Styling requirements"""

    framework: Optional[Literal["tailwind", "css-modules", "styled-components", "emotion"]] = None
    custom_css: Optional[str] = Field(default=None, alias="customCSS")
    variables: Optional[dict[str, str]] = None


class Component(CatalogModel):
    """A UI component record."""

    id: str = Field(..., min_length=1)
    name: str
    description: str = ""
    category: str
    tags: tuple[str, ...] = ()
    difficulty: Difficulty = Difficulty.BEGINNER
    dependencies: tuple[str, ...] = ()
    last_updated: datetime
    demo_url: Optional[str] = None
    code_preview: str = ""
    full_code: Optional[str] = None
    props: tuple[ComponentProp, ...] = ()
    examples: tuple[ComponentExample, ...] = ()
    styling: Optional[ComponentStyling] = None

    @field_validator("last_updated")
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        """Naive timestamps are taken as UTC."""
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)

    @field_validator("tags", "dependencies")
    @classmethod
    def drop_duplicates(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(dict.fromkeys(v))

    def with_full_code(self, code: str) -> "Component":
        """Copy of this record with its full source attached."""
        return self.model_copy(update={"full_code": code})

    def to_dict(self, include_code: bool = True) -> dict[str, Any]:
        data = super().to_dict()
        if not include_code:
            data.pop("fullCode", None)
        if not self.props:
            data.pop("props", None)
        if not self.examples:
            data.pop("examples", None)
        return data


class Category(CatalogModel):
    """A category of components; componentCount is derived from the snapshot."""

    id: str
    name: str
    description: str
    component_count: int = Field(default=0, ge=0)
    subcategories: tuple[str, ...] = ()
    icon: Optional[str] = None
    priority: Optional[int] = None


def _category_name(category_id: str) -> str:
    return category_id[:1].upper() + category_id[1:].replace("-", " ", 1)


def derive_categories(
    components: Iterable[Component],
    known: Mapping[str, CategoryInfo] = KNOWN_CATEGORIES,
) -> tuple[Category, ...]:
    """
    Build one category per distinct component category.

    Priority follows first appearance; counts are exact.
    """
    counts: dict[str, int] = {}
    for component in components:
        counts[component.category] = counts.get(component.category, 0) + 1

    categories = []
    for priority, (category_id, count) in enumerate(counts.items(), start=1):
        info = known.get(category_id)
        categories.append(
            Category(
                id=category_id,
                name=info.name if info else _category_name(category_id),
                description=(
                    info.description if info else f"Components in the {category_id} category"
                ),
                component_count=count,
                subcategories=info.subcategories if info else (),
                icon=info.icon if info else DEFAULT_ICON,
                priority=priority,
            )
        )
    return tuple(categories)


@dataclass(frozen=True)
class Snapshot:
    """
    An immutable, self-consistent view of the catalog.

    Component ids are unique and every component's category matches
    exactly one category record.
    """

    components: tuple[Component, ...]
    categories: tuple[Category, ...]
    source: str = "unknown"
    fingerprint: str = ""
    _index: dict[str, Component] = field(default_factory=dict, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self._index and self.components:
            object.__setattr__(self, "_index", {c.id: c for c in self.components})

    @classmethod
    def build(cls, components: Iterable[Component], source: str = "unknown") -> "Snapshot":
        """
        Build a snapshot from raw records.

        Duplicate ids are dropped (first occurrence wins) and categories are
        derived from the surviving components.
        """
        index: dict[str, Component] = {}
        for component in components:
            if component.id in index:
                logger.warning("duplicate_component_dropped", id=component.id, source=source)
                continue
            index[component.id] = component

        unique = tuple(index.values())
        fingerprint = hash_fields(*sorted(index), algorithm=Algorithm.SHA256)[:16]
        return cls(
            components=unique,
            categories=derive_categories(unique),
            source=source,
            fingerprint=fingerprint,
            _index=index,
        )

    @classmethod
    def builtin(cls) -> "Snapshot":
        """Snapshot of the built-in default components."""
        return cls.build(
            (Component.model_validate(record) for record in DEFAULT_COMPONENTS), source="builtin"
        )

    def get(self, component_id: str) -> Optional[Component]:
        return self._index.get(component_id)

    def __len__(self) -> int:
        return len(self.components)


@dataclass(frozen=True)
class Page:
    """One page of search or browse results."""

    components: tuple[Component, ...]
    total: int
    limit: int
    offset: int
    cached: bool = False

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.components) < self.total

    @property
    def current_page(self) -> int:
        return self.offset // self.limit + 1

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)

    def pagination(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "limit": self.limit,
            "offset": self.offset,
            "hasMore": self.has_more,
            "currentPage": self.current_page,
            "totalPages": self.total_pages,
        }


@dataclass(frozen=True)
class Lookup:
    """Result of an id lookup; component is None when the id is unknown."""

    component: Optional[Component]
    cached: bool = False

    @property
    def found(self) -> bool:
        return self.component is not None


@dataclass(frozen=True)
class CategoryListing:
    categories: tuple[Category, ...]
    cached: bool = False

    @property
    def total_components(self) -> int:
        return sum(c.component_count for c in self.categories)


__all__ = [
    "Difficulty",
    "CatalogModel",
    "ComponentProp",
    "ComponentExample",
    "ComponentStyling",
    "Component",
    "Category",
    "derive_categories",
    "Snapshot",
    "Page",
    "Lookup",
    "CategoryListing",
]
