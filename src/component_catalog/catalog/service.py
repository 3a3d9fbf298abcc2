"""Catalog data service.

Owns every cache, the rate limiter, the metrics ring and the search
engine for the lifetime of the process, and exposes the five catalog
operations. Loads and refreshes are singleflight: concurrent callers share
one in-flight task.
"""

import asyncio
import math
import random
import time
from typing import Any, Awaitable, Callable, Optional

from returns.pipeline import is_successful
from returns.result import Failure, Result

from component_catalog.core.cache import TTLCache
from component_catalog.core.config import Settings
from component_catalog.core.errors import CatalogError, ErrorKind
from component_catalog.core.logging_config import get_logger
from component_catalog.core.ratelimit import Clock, RateLimiter
from component_catalog.core.validate import (
    SearchFilters,
    validate_category_id,
    validate_component_id,
    validate_pagination,
    validate_search_filters,
    validate_search_query,
)
from component_catalog.monitoring.metrics import MetricSample, MetricsCollector
from .models import CategoryListing, Lookup, Page, Snapshot
from .search import CatalogSearchEngine, CatalogState
from .source import ExtractionSource, StaticSource, StoreExtractionSource
from .store import RecordStore

logger = get_logger(__name__)


class CatalogDataService:
    """
    Orchestrates loading, refreshing and querying the catalog.

    Args:
        settings: Service settings
        source: Snapshot producer (defaults to the store, then built-in data)
        store: Backing record store for full source code
        clock: Monotonic time source in seconds (caches, limiter, staleness)
        rng: Random source for get_random_component
        metrics: Sample collector (one is created when omitted)

    Examples:
        >>> async with CatalogDataService(Settings()) as service:  # doctest: +SKIP
        ...     page = await service.search_components("button", {"limit": 2})
    """

    def __init__(
        self,
        settings: Settings,
        source: Optional[ExtractionSource] = None,
        store: Optional[RecordStore] = None,
        clock: Clock = time.monotonic,
        rng: Optional[random.Random] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self.settings = settings
        self.store = store
        if source is None:
            source = StoreExtractionSource(store) if store is not None else StaticSource.builtin()
        self.source = source
        self._clock = clock

        self.component_cache: TTLCache[Any] = TTLCache(
            settings.max_cache_size, settings.component_cache_ttl, clock
        )
        self.category_cache: TTLCache[Any] = TTLCache(
            settings.category_cache_size, settings.category_cache_ttl, clock
        )
        self.page_cache: TTLCache[Page] = TTLCache(
            settings.search_cache_size, settings.search_cache_ttl, clock
        )
        self.rate_limiter = RateLimiter(
            settings.rate_limit_max_requests, settings.rate_limit_window, clock
        )
        self.metrics = metrics or MetricsCollector(settings.metrics_capacity)
        self.engine = CatalogSearchEngine(
            self.component_cache,
            self.category_cache,
            self.page_cache,
            store=store,
            browse_ttl=settings.browse_cache_ttl,
            rng=rng,
        )

        self._inflight: Optional[asyncio.Task[None]] = None
        self._last_refresh: Optional[float] = None
        self._using_fallback = False
        self._refresh_successes = 0
        self._refresh_failures = 0
        self._tasks: list[asyncio.Task[None]] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Load the catalog and start background sweeps and refreshes."""
        try:
            await self.ensure_initialized()
        except CatalogError as e:
            logger.warning("initial_load_failed", error=e.message, retry="next_request")

        if not self._tasks:
            self._tasks = [
                asyncio.create_task(self._every(self.settings.cleanup_interval, self._sweep)),
                asyncio.create_task(self._every(self.settings.refresh_interval, self.refresh)),
            ]
            if self.settings.enable_metrics:
                self._tasks.append(
                    asyncio.create_task(
                        self._every(self.settings.metrics_log_interval, self._log_metrics)
                    )
                )
        logger.info("catalog_service_started", background_tasks=len(self._tasks))

    async def close(self) -> None:
        """Cancel background work and release the source."""
        tasks = list(self._tasks)
        if self._inflight is not None and not self._inflight.done():
            tasks.append(self._inflight)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks = []
        await self.source.close()
        logger.info("catalog_service_closed")

    async def __aenter__(self) -> "CatalogDataService":
        await self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _every(self, interval: float, action: Callable[[], Awaitable[None]]) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await action()
            except CatalogError as e:
                logger.warning("background_task_failed", task=action.__name__, error=e.message)

    async def _sweep(self) -> None:
        removed = {
            "components": self.component_cache.cleanup(),
            "categories": self.category_cache.cleanup(),
            "pages": self.page_cache.cleanup(),
            "clients": self.rate_limiter.cleanup(),
        }
        logger.debug("cleanup_completed", **removed)

    async def _log_metrics(self) -> None:
        logger.info("metrics_summary", **self.metrics.get_summary())

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @property
    def initialized(self) -> bool:
        return self.engine.snapshot is not None

    async def ensure_initialized(self) -> None:
        """
        Make sure a snapshot is loaded; concurrent callers share one load.

        Raises:
            CatalogError: CACHE_ERROR when nothing could be loaded
        """
        if self.initialized:
            return
        await self._singleflight()

    async def refresh_if_stale(self) -> None:
        """Refresh unless the last refresh is younger than cache_expiry."""
        if (
            self._last_refresh is not None
            and self._clock() - self._last_refresh < self.settings.cache_expiry
        ):
            return
        await self._singleflight()

    async def refresh(self, force: bool = True) -> None:
        """Refresh from the source; with force=False only when stale."""
        if not force:
            await self.refresh_if_stale()
            return
        await self._singleflight()

    async def _singleflight(self) -> None:
        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.create_task(self._load())
        # Shielded so a cancelled caller does not cancel the shared load
        await asyncio.shield(self._inflight)

    async def _fetch(self) -> Result[Snapshot, CatalogError]:
        try:
            return await self.source.refresh()
        except CatalogError as e:
            return Failure(e)
        except Exception as e:
            logger.exception("refresh_source_crashed")
            return Failure(
                CatalogError(
                    ErrorKind.CACHE_ERROR, "Refresh source failed", details={"cause": str(e)}
                )
            )

    async def _load(self) -> None:
        self.engine.begin_load()
        started = time.perf_counter()
        result = await self._fetch()

        if is_successful(result):
            snapshot = result.unwrap()
            self.engine.complete_load(snapshot)
            self._last_refresh = self._clock()
            self._using_fallback = False
            self._refresh_successes += 1
            logger.info(
                "catalog_refreshed",
                source=snapshot.source,
                components=len(snapshot),
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            return

        error = result.failure()
        self._refresh_failures += 1

        if self.engine.snapshot is not None:
            logger.warning(
                "refresh_failed_keeping_snapshot", error=error.message, kind=error.kind.value
            )
            self.engine.fail_load(error)
            self._last_refresh = self._clock()
            return

        if self.settings.use_builtin_fallback:
            logger.warning(
                "refresh_failed_using_builtin", error=error.message, kind=error.kind.value
            )
            self.engine.complete_load(Snapshot.builtin())
            self._last_refresh = self._clock()
            self._using_fallback = True
            return

        fatal = CatalogError(
            ErrorKind.CACHE_ERROR,
            f"Failed to load any component data: {error.message}",
            details={"cause": error.kind.value},
        )
        logger.error("catalog_load_failed", error=error.message, kind=error.kind.value)
        self.engine.fail_load(fatal)
        raise fatal

    async def _prepare(self) -> None:
        await self.ensure_initialized()
        await self.refresh_if_stale()

    def _record(self, operation: str, started: float, cache_hit: bool) -> None:
        if self.settings.enable_metrics:
            self.metrics.record(
                MetricSample(
                    operation_name=operation,
                    duration=(time.perf_counter() - started) * 1000,
                    cache_hit=cache_hit,
                )
            )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def search_components(
        self, query: Any, filters: SearchFilters | dict[str, Any] | None = None
    ) -> Page:
        """
        Search the catalog.

        Args:
            query: Search text (1-200 characters after trimming)
            filters: SearchFilters or a raw filter mapping

        Returns:
            Page of matches with total count

        Raises:
            CatalogError: INVALID_SEARCH_QUERY or VALIDATION_ERROR for bad input
        """
        started = time.perf_counter()
        validated_query = validate_search_query(query, self.settings.max_query_length)
        if isinstance(filters, SearchFilters):
            # Model bounds are global; the configured page size may be tighter
            validate_pagination(
                filters.limit,
                filters.offset,
                max_limit=self.settings.max_page_size,
                default_limit=self.settings.default_page_size,
            )
            validated_filters = filters
        else:
            validated_filters = validate_search_filters(
                filters,
                max_limit=self.settings.max_page_size,
                default_limit=self.settings.default_page_size,
            )

        await self._prepare()
        page = await self.engine.search(validated_query, validated_filters)
        self._record("search_components", started, page.cached)
        logger.debug("search_completed", results=len(page.components), total=page.total)
        return page

    async def get_component(self, component_id: Any) -> Lookup:
        """Look up one component; ``Lookup.component`` is None when unknown."""
        started = time.perf_counter()
        validated_id = validate_component_id(component_id)

        await self._prepare()
        lookup = await self.engine.get_by_id(validated_id)
        self._record("get_component", started, lookup.cached)
        return lookup

    async def list_categories(self) -> CategoryListing:
        started = time.perf_counter()
        await self._prepare()
        listing = await self.engine.list_categories()
        self._record("list_categories", started, listing.cached)
        return listing

    async def browse_category(
        self, category_id: Any, limit: Any = None, offset: Any = None
    ) -> Page:
        """One page of a category's components."""
        started = time.perf_counter()
        validated_id = validate_category_id(category_id)
        validated_limit, validated_offset = validate_pagination(
            limit,
            offset,
            max_limit=self.settings.max_page_size,
            default_limit=self.settings.default_page_size,
        )

        await self._prepare()
        page = await self.engine.browse(validated_id, validated_limit, validated_offset)
        self._record("browse_category", started, page.cached)
        return page

    async def get_random_component(self) -> Lookup:
        started = time.perf_counter()
        await self._prepare()
        lookup = await self.engine.get_random()
        self._record("get_random_component", started, lookup.cached)
        return lookup

    # ------------------------------------------------------------------
    # Admission control and read-only views
    # ------------------------------------------------------------------

    def check_rate_limit(self, identifier: Optional[str] = None) -> None:
        """
        Admit one request for a caller.

        Raises:
            CatalogError: RATE_LIMIT_EXCEEDED with retry_after in whole seconds
        """
        if not self.settings.enable_rate_limit:
            return
        client_id = identifier or self.settings.default_client_id
        if self.rate_limiter.is_allowed(client_id):
            return

        retry_after = max(1, math.ceil(self.rate_limiter.get_reset_time(client_id)))
        logger.warning("rate_limit_exceeded", client_id=client_id, retry_after=retry_after)
        raise CatalogError(
            ErrorKind.RATE_LIMIT_EXCEEDED,
            f"Rate limit exceeded. Try again in {retry_after} seconds.",
            context={"clientId": client_id, "remaining": 0},
            retry_after=retry_after,
        )

    def cache_stats(self) -> dict[str, dict[str, Any]]:
        stats = {
            "components": self.component_cache.get_stats(),
            "categories": self.category_cache.get_stats(),
            "searches": self.page_cache.get_stats(),
        }
        for name, values in stats.items():
            self.metrics.set_cache_size(name, values["size"])
        return stats

    def metrics_summary(self) -> dict[str, Any]:
        return self.metrics.get_summary()

    def health_status(self) -> dict[str, Any]:
        """Data availability and refresh bookkeeping."""
        snapshot = self.engine.snapshot
        return {
            "hasData": snapshot is not None and len(snapshot) > 0,
            "componentCount": len(snapshot) if snapshot else 0,
            "categoryCount": len(snapshot.categories) if snapshot else 0,
            "isInitialized": self.initialized,
            "state": self.engine.state.value,
            "usingFallbackData": self._using_fallback,
            "lastRefreshAge": (
                None if self._last_refresh is None else self._clock() - self._last_refresh
            ),
            "refreshSuccesses": self._refresh_successes,
            "refreshFailures": self._refresh_failures,
        }


__all__ = ["CatalogDataService", "CatalogState"]
