"""Backing record store.

Reads the extractor's on-disk layout::

    <root>/component-index.json                 [{"name": ..., "category": ...}, ...]
    <root>/components/<category>/<slug>.json    one record per component

Each record carries ``metadata``, ``analysis``, ``source`` and ``types``
sections which are mapped onto Component.
"""

import asyncio
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol, runtime_checkable

import orjson

from component_catalog.core.errors import CatalogError, ErrorKind
from component_catalog.core.logging_config import get_logger
from .defaults import normalize_category
from .models import Component, ComponentProp, ComponentStyling, Difficulty

logger = get_logger(__name__)

INDEX_FILE = "component-index.json"
COMPONENTS_DIR = "components"

_FRAMEWORKS = ("tailwind", "styled-components", "emotion", "css-modules")


@runtime_checkable
class RecordStore(Protocol):
    """Readable record store keyed by component id."""

    async def get(self, component_id: str) -> Optional[Component]:
        """Full record (including source) or None if unknown."""
        ...

    async def load_all(self) -> list[Component]:
        """Every readable record."""
        ...


def slugify(name: str) -> str:
    """Lowercase, whitespace runs collapsed to hyphens."""
    return re.sub(r"\s+", "-", name.strip().lower())


def _difficulty(level: Optional[str]) -> Difficulty:
    if level == "complex":
        return Difficulty.ADVANCED
    if level == "moderate":
        return Difficulty.INTERMEDIATE
    return Difficulty.BEGINNER


def describe(analysis: Mapping[str, Any]) -> str:
    """Human-readable description generated from the analysis section."""
    complexity = (analysis.get("complexity") or {}).get("level") or "simple"
    features = analysis.get("features") or []

    description = f"A {complexity} React component"
    if analysis.get("hasAnimation"):
        description += " with animation capabilities"
    if features:
        description += f" featuring {', '.join(features[:3])}"
    return description + ". Built with modern React patterns and optimized for performance."


def code_preview(source_code: str) -> str:
    """First ``const x = ...`` line plus two more, or the first five lines."""
    lines = source_code.split("\n")
    for i, line in enumerate(lines):
        if "const " in line and " = " in line:
            return "\n".join(lines[i : i + 3]) + "..."
    return "\n".join(lines[:5]) + "..."


def parse_props(types: Optional[Mapping[str, Any]]) -> tuple[ComponentProp, ...]:
    """Props from ``name: type`` strings; a ``?`` marks the prop optional."""
    props = []
    for interface in (types or {}).get("propsInterface") or []:
        for raw in interface.get("properties") or []:
            name, _, prop_type = raw.partition(":")
            name = name.strip()
            props.append(
                ComponentProp(
                    property=name.rstrip("?") or raw,
                    type=prop_type.strip() or "any",
                    default="",
                    description=f"{name.rstrip('?')} property",
                    required="?" not in raw,
                )
            )
    return tuple(props)


def detect_framework(styling_approach: Any) -> Optional[str]:
    if not styling_approach:
        return None
    text = styling_approach if isinstance(styling_approach, str) else " ".join(styling_approach)
    for framework in _FRAMEWORKS:
        if framework in text:
            return framework
    return None


def map_record(data: Mapping[str, Any]) -> Component:
    """
    Map one extracted record onto a Component.

    Args:
        data: Parsed record file

    Returns:
        Component with full source attached

    Raises:
        KeyError: Record lacks metadata name or category
    """
    metadata = data["metadata"]
    analysis = data.get("analysis") or {}
    source_code = (data.get("source") or {}).get("sourceCode") or ""

    framework = detect_framework(analysis.get("stylingApproach"))
    extracted_at = metadata.get("extractedAt")

    return Component(
        id=f"{slugify(metadata['name'])}-{metadata['category']}",
        name=metadata["name"],
        description=describe(analysis),
        category=normalize_category(metadata["category"]),
        tags=tuple(analysis.get("features") or ()),
        difficulty=_difficulty((analysis.get("complexity") or {}).get("level")),
        dependencies=tuple(analysis.get("dependencies") or ()),
        last_updated=extracted_at or datetime.now(timezone.utc),
        code_preview=code_preview(source_code),
        full_code=source_code or None,
        props=parse_props(data.get("types")),
        styling=ComponentStyling(framework=framework) if framework else None,
    )


def _read_json(path: Path) -> Any:
    return orjson.loads(path.read_bytes())


class FileRecordStore:
    """
    RecordStore over an extraction directory.

    Files are read off the event loop via asyncio.to_thread.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self._paths: dict[str, Path] = {}

    def _record_path(self, entry: Mapping[str, Any]) -> Path:
        return self.root / COMPONENTS_DIR / entry["category"] / f"{slugify(entry['name'])}.json"

    async def _load_index(self) -> list[dict[str, Any]]:
        path = self.root / INDEX_FILE
        try:
            entries = await asyncio.to_thread(_read_json, path)
        except (OSError, orjson.JSONDecodeError) as e:
            raise CatalogError(
                ErrorKind.CACHE_ERROR,
                f"Failed to read component index: {e}",
                context={"path": str(path)},
            ) from e
        if not isinstance(entries, list):
            raise CatalogError(
                ErrorKind.CACHE_ERROR,
                "Component index is not a list",
                context={"path": str(path)},
            )
        for entry in entries:
            if isinstance(entry, dict) and "name" in entry and "category" in entry:
                key = f"{slugify(entry['name'])}-{entry['category']}"
                self._paths[key] = self._record_path(entry)
        return entries

    async def _load_record(self, path: Path) -> Optional[Component]:
        try:
            data = await asyncio.to_thread(_read_json, path)
            return map_record(data)
        except (OSError, orjson.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning("record_unreadable", path=str(path), error=str(e))
            return None

    async def load_all(self) -> list[Component]:
        """
        Load every record listed in the index.

        Unreadable records are skipped with a warning.

        Raises:
            CatalogError: CACHE_ERROR if the index itself cannot be read
        """
        entries = await self._load_index()
        components: list[Component] = []
        for entry in entries:
            if not isinstance(entry, dict) or "name" not in entry or "category" not in entry:
                logger.warning("index_entry_invalid", entry=str(entry))
                continue
            component = await self._load_record(self._record_path(entry))
            if component is not None:
                self._paths[component.id] = self._record_path(entry)
                components.append(component)

        logger.info("records_loaded", root=str(self.root), count=len(components))
        return components

    async def get(self, component_id: str) -> Optional[Component]:
        if not self._paths:
            await self._load_index()
        path = self._paths.get(component_id)
        if path is None:
            return None
        return await self._load_record(path)


__all__ = [
    "RecordStore",
    "FileRecordStore",
    "map_record",
    "slugify",
    "describe",
    "code_preview",
    "parse_props",
    "detect_framework",
]
