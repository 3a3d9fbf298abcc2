"""Pytest configuration and fixtures."""

import asyncio
import random
from typing import Any, Optional

import pytest
from returns.result import Failure, Result

from component_catalog.catalog.models import Component, Snapshot
from component_catalog.catalog.service import CatalogDataService
from component_catalog.catalog.source import StaticSource
from component_catalog.core.config import Settings
from component_catalog.core.errors import CatalogError, ErrorKind
from component_catalog.mcp.protocol import ToolDispatcher


# ============================================================================
# Helpers
# ============================================================================

class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_component(
    component_id: str,
    name: Optional[str] = None,
    category: str = "buttons",
    tags: tuple[str, ...] = (),
    difficulty: str = "beginner",
    dependencies: tuple[str, ...] = (),
    updated: str = "2024-01-01T00:00:00Z",
    demo_url: Optional[str] = None,
    description: str = "",
    full_code: Optional[str] = None,
) -> Component:
    return Component(
        id=component_id,
        name=name or component_id.replace("-", " ").title(),
        description=description,
        category=category,
        tags=tags,
        difficulty=difficulty,
        dependencies=dependencies,
        last_updated=updated,
        demo_url=demo_url,
        code_preview=f"<{component_id} />",
        full_code=full_code,
    )


class ScriptedSource:
    """Source that replays a list of results, one per refresh."""

    def __init__(self, *results: Result[Snapshot, CatalogError]):
        self.results = list(results)
        self.calls = 0
        self.gate: Optional[asyncio.Event] = None
        self.closed = False

    async def refresh(self) -> Result[Snapshot, CatalogError]:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0]

    async def close(self) -> None:
        self.closed = True


class MemoryStore:
    """RecordStore holding full records in memory."""

    def __init__(self, components: list[Component]):
        self.records = {c.id: c for c in components}
        self.lookups = 0

    async def get(self, component_id: str) -> Optional[Component]:
        self.lookups += 1
        return self.records.get(component_id)

    async def load_all(self) -> list[Component]:
        return list(self.records.values())


def failure(message: str = "source down") -> Failure:
    return Failure(CatalogError(ErrorKind.NETWORK_ERROR, message))


# ============================================================================
# Data Fixtures
# ============================================================================

@pytest.fixture
def sample_components() -> list[Component]:
    """Seven components across three categories, four of them animations."""
    return [
        make_component(
            "fade-in-animations",
            "Fade In",
            "animations",
            ("fade", "entrance"),
            "beginner",
            ("framer-motion",),
            "2024-03-01T00:00:00Z",
            description="Fades content into view",
        ),
        make_component(
            "slide-up-animations",
            "Slide Up",
            "animations",
            ("slide", "entrance"),
            "intermediate",
            ("framer-motion",),
            "2024-02-01T00:00:00Z",
            description="Slides content up on mount",
        ),
        make_component(
            "bounce-animations",
            "Bounce",
            "animations",
            ("bounce",),
            "advanced",
            ("gsap",),
            "2024-04-01T00:00:00Z",
            demo_url="https://example.com/demo/bounce",
            description="Springy bounce effect",
        ),
        make_component(
            "spin-loader-animations",
            "Spin Loader",
            "animations",
            ("spin", "loading"),
            "beginner",
            (),
            "2024-01-10T00:00:00Z",
            description="Rotating loading indicator",
        ),
        make_component(
            "primary-button-buttons",
            "Primary Button",
            "buttons",
            ("button", "click"),
            "beginner",
            ("react",),
            "2024-05-01T00:00:00Z",
            demo_url="https://example.com/demo/primary-button",
            description="Solid call-to-action button",
        ),
        make_component(
            "ghost-button-buttons",
            "Ghost Button",
            "buttons",
            ("button", "outline"),
            "intermediate",
            ("react",),
            "2024-01-20T00:00:00Z",
            description="Transparent button with a border",
        ),
        make_component(
            "glass-card-cards",
            "Glass Card",
            "cards",
            ("glass", "card"),
            "advanced",
            ("tailwindcss",),
            "2024-02-15T00:00:00Z",
            description="Frosted glass container",
        ),
    ]


@pytest.fixture
def snapshot(sample_components) -> Snapshot:
    return Snapshot.build(sample_components, source="test")


# ============================================================================
# Core Fixtures
# ============================================================================

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    """Test settings (no .env file)."""
    return Settings(_env_file=None)


@pytest.fixture
def make_service(settings, clock):
    """Factory for data services over a given source and store."""

    def _make(source: Any = None, store: Any = None, **overrides: Any) -> CatalogDataService:
        service_settings = settings.model_copy(update=overrides) if overrides else settings
        return CatalogDataService(
            service_settings,
            source=source,
            store=store,
            clock=clock,
            rng=random.Random(7),
        )

    return _make


@pytest.fixture
def service(make_service, snapshot) -> CatalogDataService:
    return make_service(StaticSource(snapshot))


@pytest.fixture
def dispatcher(service) -> ToolDispatcher:
    return ToolDispatcher(service)


# ============================================================================
# Helper Fixtures
# ============================================================================

@pytest.fixture
def component_factory():
    return make_component


@pytest.fixture
def scripted_source():
    """ScriptedSource class; call with Success/Failure results."""
    return ScriptedSource


@pytest.fixture
def memory_store():
    return MemoryStore


@pytest.fixture
def source_failure():
    return failure
