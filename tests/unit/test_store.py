"""Tests for the on-disk record store."""

import orjson
import pytest

from component_catalog.catalog.models import Difficulty
from component_catalog.catalog.source import StoreExtractionSource
from component_catalog.catalog.store import (
    FileRecordStore,
    code_preview,
    describe,
    detect_framework,
    map_record,
    parse_props,
    slugify,
)
from component_catalog.core.errors import CatalogError, ErrorKind

SOURCE = """import React from 'react';

const GlowButton = ({ label }) => {
  return <button>{label}</button>;
};

export default GlowButton;
"""


def record(name: str, category: str, **analysis) -> dict:
    return {
        "metadata": {
            "name": name,
            "category": category,
            "extractedAt": "2024-06-01T12:00:00Z",
        },
        "analysis": {
            "complexity": {"level": "moderate"},
            "features": ["hover", "glow"],
            "dependencies": ["react"],
            "stylingApproach": ["tailwind"],
            **analysis,
        },
        "source": {"sourceCode": SOURCE},
        "types": {"propsInterface": [{"properties": ["label: string", "onClick?: () => void"]}]},
    }


@pytest.fixture
def extraction_dir(tmp_path):
    """Extraction directory with two readable records and one broken one."""
    entries = [
        {"name": "Glow Button", "category": "buttons"},
        {"name": "Fade In", "category": "nimations"},
        {"name": "Broken Card", "category": "cards"},
    ]
    (tmp_path / "component-index.json").write_bytes(orjson.dumps(entries))

    for category, slug, data in [
        ("buttons", "glow-button", record("Glow Button", "buttons")),
        ("nimations", "fade-in", record("Fade In", "nimations", hasAnimation=True)),
    ]:
        folder = tmp_path / "components" / category
        folder.mkdir(parents=True, exist_ok=True)
        (folder / f"{slug}.json").write_bytes(orjson.dumps(data))

    broken = tmp_path / "components" / "cards"
    broken.mkdir(parents=True)
    (broken / "broken-card.json").write_text("{not json")
    return tmp_path


# ============================================================================
# Record mapping
# ============================================================================

def test_slugify():
    assert slugify("  Glow   Button ") == "glow-button"


def test_map_record():
    component = map_record(record("Glow Button", "buttons"))

    assert component.id == "glow-button-buttons"
    assert component.category == "buttons"
    assert component.difficulty is Difficulty.INTERMEDIATE
    assert component.tags == ("hover", "glow")
    assert component.dependencies == ("react",)
    assert component.full_code == SOURCE
    assert component.styling.framework == "tailwind"
    assert component.last_updated.year == 2024


def test_map_record_normalizes_category():
    component = map_record(record("Fade In", "nimations"))

    assert component.id == "fade-in-nimations"
    assert component.category == "animations"


def test_map_record_requires_metadata():
    with pytest.raises(KeyError):
        map_record({"analysis": {}})


def test_describe():
    analysis = {"complexity": {"level": "complex"}, "hasAnimation": True, "features": list("abcd")}
    text = describe(analysis)

    assert text.startswith("A complex React component with animation capabilities")
    assert "featuring a, b, c." in text


def test_code_preview_starts_at_first_const():
    assert code_preview(SOURCE) == (
        "const GlowButton = ({ label }) => {\n"
        "  return <button>{label}</button>;\n"
        "};..."
    )


def test_code_preview_without_const():
    assert code_preview("a\nb\nc\nd\ne\nf") == "a\nb\nc\nd\ne..."


def test_parse_props():
    props = parse_props({"propsInterface": [{"properties": ["label: string", "onClick?: fn"]}]})

    assert [(p.property, p.type, p.required) for p in props] == [
        ("label", "string", True),
        ("onClick", "fn", False),
    ]


def test_parse_props_missing_types():
    assert parse_props(None) == ()


def test_detect_framework():
    assert detect_framework("styled-components") == "styled-components"
    assert detect_framework(["css-modules", "inline"]) == "css-modules"
    assert detect_framework(None) is None
    assert detect_framework("inline") is None


# ============================================================================
# File store
# ============================================================================

@pytest.mark.asyncio
async def test_load_all_skips_unreadable(extraction_dir):
    store = FileRecordStore(extraction_dir)

    components = await store.load_all()

    assert [c.id for c in components] == ["glow-button-buttons", "fade-in-nimations"]


@pytest.mark.asyncio
async def test_get_reads_single_record(extraction_dir):
    store = FileRecordStore(extraction_dir)

    component = await store.get("glow-button-buttons")

    assert component is not None
    assert component.full_code == SOURCE
    assert await store.get("unknown-buttons") is None
    assert await store.get("broken-card-cards") is None


@pytest.mark.asyncio
async def test_missing_index(tmp_path):
    store = FileRecordStore(tmp_path)

    with pytest.raises(CatalogError) as exc_info:
        await store.load_all()

    assert exc_info.value.kind is ErrorKind.CACHE_ERROR


@pytest.mark.asyncio
async def test_index_must_be_list(tmp_path):
    (tmp_path / "component-index.json").write_bytes(orjson.dumps({"name": "x"}))

    with pytest.raises(CatalogError) as exc_info:
        await FileRecordStore(tmp_path).load_all()

    assert "not a list" in exc_info.value.message


# ============================================================================
# Store-backed source
# ============================================================================

@pytest.mark.asyncio
async def test_store_source_builds_snapshot(extraction_dir):
    result = await StoreExtractionSource(FileRecordStore(extraction_dir)).refresh()

    snapshot = result.unwrap()
    assert len(snapshot) == 2
    assert snapshot.source == "store"


@pytest.mark.asyncio
async def test_store_source_reports_missing_index(tmp_path):
    result = await StoreExtractionSource(FileRecordStore(tmp_path)).refresh()

    assert result.failure().kind is ErrorKind.CACHE_ERROR


@pytest.mark.asyncio
async def test_store_source_rejects_empty_store(memory_store):
    result = await StoreExtractionSource(memory_store([])).refresh()

    assert result.failure().message == "Record store returned no components"
