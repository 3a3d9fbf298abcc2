"""Tests for the catalog data service lifecycle and operations."""

import asyncio

import pytest
from returns.result import Success

from component_catalog.catalog.models import Snapshot
from component_catalog.catalog.search import CatalogState
from component_catalog.catalog.source import StaticSource
from component_catalog.core.errors import CatalogError, ErrorKind
from component_catalog.core.validate import SearchFilters


# ============================================================================
# Loading
# ============================================================================

@pytest.mark.asyncio
async def test_ensure_initialized_loads_snapshot(service):
    assert service.initialized is False

    await service.ensure_initialized()

    status = service.health_status()
    assert status["hasData"] is True
    assert status["componentCount"] == 7
    assert status["categoryCount"] == 3
    assert status["state"] == "ready"
    assert status["refreshSuccesses"] == 1
    assert status["usingFallbackData"] is False


@pytest.mark.asyncio
async def test_concurrent_loads_share_one_fetch(make_service, scripted_source, snapshot):
    source = scripted_source(Success(snapshot))
    source.gate = asyncio.Event()
    service = make_service(source)

    waiters = [asyncio.create_task(service.ensure_initialized()) for _ in range(5)]
    await asyncio.sleep(0)
    source.gate.set()
    await asyncio.gather(*waiters)

    assert source.calls == 1
    assert service.initialized


@pytest.mark.asyncio
async def test_operations_wait_for_inflight_load(make_service, scripted_source, snapshot):
    source = scripted_source(Success(snapshot))
    source.gate = asyncio.Event()
    service = make_service(source)

    search = asyncio.create_task(service.search_components("button"))
    for _ in range(3):
        await asyncio.sleep(0)
    assert service.engine.state is CatalogState.LOADING

    source.gate.set()
    page = await search

    assert page.total == 2


@pytest.mark.asyncio
async def test_builtin_fallback_when_first_load_fails(
    make_service, scripted_source, source_failure
):
    source = scripted_source(source_failure())
    service = make_service(source)

    await service.ensure_initialized()

    status = service.health_status()
    assert status["usingFallbackData"] is True
    assert status["componentCount"] == 4
    assert status["refreshFailures"] == 1
    assert (await service.get_component("animated-button-1")).found


@pytest.mark.asyncio
async def test_no_fallback_is_fatal(make_service, scripted_source, source_failure):
    source = scripted_source(source_failure("unreachable"))
    service = make_service(source, use_builtin_fallback=False)

    with pytest.raises(CatalogError) as exc_info:
        await service.ensure_initialized()

    assert exc_info.value.kind is ErrorKind.CACHE_ERROR
    assert exc_info.value.message.startswith("Failed to load any component data")
    assert service.engine.state is CatalogState.LOADING
    assert service.initialized is False

    # Each request retries the load
    with pytest.raises(CatalogError):
        await service.list_categories()
    assert source.calls == 2


@pytest.mark.asyncio
async def test_source_crash_is_contained(make_service, snapshot):
    class CrashingSource:
        async def refresh(self):
            raise RuntimeError("boom")

        async def close(self):
            return None

    service = make_service(CrashingSource())
    await service.ensure_initialized()

    assert service.health_status()["usingFallbackData"] is True


# ============================================================================
# Refresh
# ============================================================================

@pytest.mark.asyncio
async def test_stale_snapshot_refreshes_on_request(
    make_service, scripted_source, snapshot, clock, component_factory
):
    newer = Snapshot.build([component_factory("new-thing-buttons")], source="newer")
    source = scripted_source(Success(snapshot), Success(newer))
    service = make_service(source)
    await service.ensure_initialized()

    clock.advance(100)
    await service.list_categories()
    assert source.calls == 1

    clock.advance(201)
    await service.list_categories()
    assert source.calls == 2
    assert service.engine.snapshot is newer


@pytest.mark.asyncio
async def test_failed_refresh_keeps_last_good(
    make_service, scripted_source, snapshot, clock, source_failure
):
    source = scripted_source(Success(snapshot), source_failure())
    service = make_service(source)
    await service.ensure_initialized()

    clock.advance(301)
    page = await service.search_components("button")

    assert page.total == 2
    assert service.engine.snapshot is snapshot
    assert service.engine.state is CatalogState.READY
    assert service.health_status()["refreshFailures"] == 1

    # The failure resets the staleness timer
    clock.advance(10)
    await service.search_components("card")
    assert source.calls == 2


@pytest.mark.asyncio
async def test_forced_refresh(make_service, scripted_source, snapshot):
    source = scripted_source(Success(snapshot))
    service = make_service(source)
    await service.ensure_initialized()

    await service.refresh()
    await service.refresh(force=False)

    assert source.calls == 2


# ============================================================================
# Operations
# ============================================================================

@pytest.mark.asyncio
async def test_invalid_input_never_touches_source(make_service, scripted_source, snapshot):
    source = scripted_source(Success(snapshot))
    service = make_service(source)

    with pytest.raises(CatalogError) as exc_info:
        await service.search_components("   ")
    assert exc_info.value.kind is ErrorKind.INVALID_SEARCH_QUERY

    with pytest.raises(CatalogError) as exc_info:
        await service.browse_category("animations", limit=0)
    assert exc_info.value.kind is ErrorKind.VALIDATION_ERROR

    with pytest.raises(CatalogError) as exc_info:
        await service.get_component("bad id")
    assert exc_info.value.kind is ErrorKind.INVALID_COMPONENT_ID

    assert source.calls == 0


@pytest.mark.asyncio
async def test_search_with_raw_filters(service):
    page = await service.search_components(
        "animations", {"sortBy": "updated", "sortOrder": "asc", "limit": 2}
    )

    assert [c.id for c in page.components] == ["spin-loader-animations", "slide-up-animations"]
    assert page.total == 4


@pytest.mark.asyncio
async def test_prebuilt_filters_obey_configured_page_size(make_service, snapshot):
    service = make_service(StaticSource(snapshot), max_page_size=5)

    with pytest.raises(CatalogError) as exc_info:
        await service.search_components("animations", SearchFilters(limit=10))

    assert exc_info.value.kind is ErrorKind.VALIDATION_ERROR
    page = await service.search_components("animations", SearchFilters(limit=5))
    assert page.limit == 5


@pytest.mark.asyncio
async def test_browse_uses_default_page_size(make_service, snapshot):
    service = make_service(StaticSource(snapshot), default_page_size=3)

    page = await service.browse_category("animations")

    assert page.limit == 3
    assert page.has_more is True


@pytest.mark.asyncio
async def test_store_backed_service(make_service, memory_store, sample_components):
    records = [c.with_full_code(f"// {c.id}") for c in sample_components]
    service = make_service(store=memory_store(records))

    lookup = await service.get_component("bounce-animations")

    assert lookup.component.full_code == "// bounce-animations"
    assert service.engine.snapshot.source == "store"


@pytest.mark.asyncio
async def test_operations_record_metrics(service):
    await service.search_components("button")
    await service.search_components("button")
    await service.get_random_component()

    summary = service.metrics_summary()
    assert summary["totalOperations"] == 3
    assert summary["operationCounts"] == {"search_components": 2, "get_random_component": 1}
    assert summary["cacheHitRate"] > 0


@pytest.mark.asyncio
async def test_metrics_disabled(make_service, snapshot):
    service = make_service(StaticSource(snapshot), enable_metrics=False)

    await service.list_categories()

    assert service.metrics_summary()["totalOperations"] == 0


@pytest.mark.asyncio
async def test_cache_stats(service):
    await service.ensure_initialized()

    stats = service.cache_stats()

    assert set(stats) == {"components", "categories", "searches"}
    assert stats["components"]["size"] == 7
    assert stats["categories"]["size"] == 4  # listing plus one per category


# ============================================================================
# Admission control
# ============================================================================

def test_rate_limit(make_service, snapshot, clock):
    service = make_service(StaticSource(snapshot), rate_limit_max_requests=2)

    service.check_rate_limit("client-a")
    service.check_rate_limit("client-a")
    with pytest.raises(CatalogError) as exc_info:
        service.check_rate_limit("client-a")

    assert exc_info.value.kind is ErrorKind.RATE_LIMIT_EXCEEDED
    assert exc_info.value.retry_after == 60

    service.check_rate_limit("client-b")

    clock.advance(59.5)
    with pytest.raises(CatalogError) as exc_info:
        service.check_rate_limit("client-a")
    assert exc_info.value.retry_after == 1


def test_anonymous_callers_share_default_identity(make_service, snapshot):
    service = make_service(StaticSource(snapshot), rate_limit_max_requests=1)

    service.check_rate_limit()
    with pytest.raises(CatalogError):
        service.check_rate_limit(None)


def test_rate_limit_disabled(make_service, snapshot):
    service = make_service(
        StaticSource(snapshot), rate_limit_max_requests=1, enable_rate_limit=False
    )

    for _ in range(5):
        service.check_rate_limit("client-a")


# ============================================================================
# Lifecycle
# ============================================================================

@pytest.mark.asyncio
async def test_context_manager_starts_and_stops(make_service, scripted_source, snapshot):
    source = scripted_source(Success(snapshot))
    service = make_service(source)

    async with service:
        assert service.initialized
        assert len(service._tasks) == 3

    assert service._tasks == []
    assert source.closed is True


@pytest.mark.asyncio
async def test_start_survives_failed_load(make_service, scripted_source, source_failure):
    source = scripted_source(source_failure())
    service = make_service(source, use_builtin_fallback=False)

    await service.start()
    try:
        assert service.initialized is False
    finally:
        await service.close()


@pytest.mark.asyncio
async def test_sweep_purges_expired_entries(service, clock):
    await service.ensure_initialized()
    await service.search_components("button")

    clock.advance(121)
    await service._sweep()

    assert len(service.page_cache) == 0
    assert len(service.component_cache) == 7
