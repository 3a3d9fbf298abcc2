"""Catalog search engine.

Filter, sort and paginate over the active snapshot, with cached components,
categories and result pages. Every cache mutation here is synchronous; the
only suspension points are waiting for a load and reading the record store.
"""

import asyncio
import dataclasses
import random as random_module
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Sequence

from component_catalog.core.cache import TTLCache
from component_catalog.core.errors import CatalogError, ErrorKind
from component_catalog.core.hash import browse_key, search_key
from component_catalog.core.logging_config import get_logger
from component_catalog.core.validate import SearchFilters
from .models import CategoryListing, Component, Lookup, Page, Snapshot
from .store import RecordStore

logger = get_logger(__name__)

ALL_CATEGORIES_KEY = "categories:all"


class CatalogState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"


_SORT_KEYS: dict[str, Callable[[Component], Any]] = {
    "name": lambda c: c.name.casefold(),
    "updated": lambda c: c.last_updated,
    "difficulty": lambda c: c.difficulty.rank,
    "category": lambda c: c.category.casefold(),
}


def matches_query(component: Component, term: str) -> bool:
    """Case-insensitive substring match on name, description, tags or category."""
    return (
        term in component.name.lower()
        or term in component.description.lower()
        or any(term in tag.lower() for tag in component.tags)
        or term in component.category.lower()
    )


def matches_filters(component: Component, filters: SearchFilters) -> bool:
    """Conjunction of every filter that is set."""
    if filters.category is not None and component.category != filters.category:
        return False
    if filters.tags and not set(filters.tags).intersection(component.tags):
        return False
    if filters.difficulty is not None and component.difficulty != filters.difficulty:
        return False
    if filters.has_demo is not None and bool(component.demo_url) != filters.has_demo:
        return False
    if filters.dependencies and not set(filters.dependencies).intersection(component.dependencies):
        return False
    if filters.updated_after is not None and not component.last_updated > filters.updated_after:
        return False
    return True


def filter_components(
    components: Iterable[Component], term: str, filters: SearchFilters
) -> list[Component]:
    """Components matching the normalized term (if any) and all filters, in input order."""
    return [
        c
        for c in components
        if (not term or matches_query(c, term)) and matches_filters(c, filters)
    ]


def sort_components(
    components: Sequence[Component], sort_by: str, sort_order: str = "desc"
) -> list[Component]:
    """Stable sort by one field; ties keep their input order in both directions."""
    return sorted(components, key=_SORT_KEYS[sort_by], reverse=sort_order == "desc")


def paginate(items: Sequence[Component], limit: int, offset: int) -> Page:
    return Page(
        components=tuple(items[offset : offset + limit]),
        total=len(items),
        limit=limit,
        offset=offset,
    )


class CatalogSearchEngine:
    """
    Query layer over one catalog.

    State moves Uninitialized -> Loading -> Ready, and Ready -> Loading on a
    refresh. A failed load returns to Ready when an earlier snapshot exists;
    without one the state stays Loading and waiters receive the failure.

    Args:
        component_cache: Components by id
        category_cache: Category listing and categories by id
        page_cache: Search and browse result pages
        store: Backing store used for full source code
        browse_ttl: TTL for category pages (seconds)
        rng: Random source for get_random
    """

    def __init__(
        self,
        component_cache: TTLCache[Component],
        category_cache: TTLCache[Any],
        page_cache: TTLCache[Page],
        store: Optional[RecordStore] = None,
        browse_ttl: Optional[float] = None,
        rng: Optional[random_module.Random] = None,
    ) -> None:
        self.component_cache = component_cache
        self.category_cache = category_cache
        self.page_cache = page_cache
        self.store = store
        self.browse_ttl = browse_ttl
        self._random = rng or random_module.Random()

        self._state = CatalogState.UNINITIALIZED
        self._snapshot: Optional[Snapshot] = None
        self._ready = asyncio.Event()
        self._load_error: Optional[CatalogError] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> CatalogState:
        return self._state

    @property
    def snapshot(self) -> Optional[Snapshot]:
        return self._snapshot

    def begin_load(self) -> None:
        """Enter Loading; operations wait until the load completes."""
        self._state = CatalogState.LOADING
        self._load_error = None
        self._ready.clear()

    def complete_load(self, snapshot: Snapshot) -> None:
        """Install a snapshot and enter Ready."""
        self.install(snapshot)
        self._state = CatalogState.READY
        self._ready.set()

    def fail_load(self, error: CatalogError) -> None:
        """
        Finish a failed load.

        Keeps serving the previous snapshot if there is one; otherwise
        waiters are released with the error and the state stays Loading.
        """
        if self._snapshot is not None:
            self._state = CatalogState.READY
        else:
            self._load_error = error
        self._ready.set()

    def install(self, snapshot: Snapshot) -> None:
        """Swap in a snapshot, dropping cached pages and warming record caches."""
        self._snapshot = snapshot
        self.page_cache.clear()
        self.component_cache.clear()
        self.category_cache.clear()

        for component in snapshot.components:
            self.component_cache.set(component.id, component)
        self.category_cache.set(ALL_CATEGORIES_KEY, snapshot.categories)
        for category in snapshot.categories:
            self.category_cache.set(category.id, category)

        logger.info(
            "snapshot_installed",
            source=snapshot.source,
            components=len(snapshot.components),
            categories=len(snapshot.categories),
            fingerprint=snapshot.fingerprint,
        )

    async def wait_ready(self) -> Snapshot:
        """
        Wait for an in-flight load and return the active snapshot.

        Raises:
            CatalogError: CACHE_ERROR when no snapshot has ever loaded
        """
        if self._state is CatalogState.UNINITIALIZED:
            raise CatalogError(ErrorKind.CACHE_ERROR, "Catalog has not been loaded")
        await self._ready.wait()
        if self._snapshot is None:
            raise self._load_error or CatalogError(ErrorKind.CACHE_ERROR, "Catalog has no data")
        return self._snapshot

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def search(self, query: str, filters: SearchFilters) -> Page:
        """
        Filter, sort, then paginate the catalog.

        Args:
            query: Free text; trimmed and lowercased before matching
            filters: Validated filters including limit and offset

        Returns:
            The requested page with the total match count
        """
        snapshot = await self.wait_ready()

        term = query.strip().lower()
        key = search_key(term, filters.cache_fields())
        cached = self.page_cache.get(key)
        if cached is not None:
            return dataclasses.replace(cached, cached=True)

        matches = filter_components(snapshot.components, term, filters)
        if filters.sort_by:
            matches = sort_components(matches, filters.sort_by, filters.sort_order)

        page = paginate(matches, filters.limit, filters.offset)
        self.page_cache.set(key, page)
        return page

    async def browse(self, category_id: str, limit: int, offset: int) -> Page:
        """Components of one category, in catalog order."""
        snapshot = await self.wait_ready()

        key = browse_key(category_id, limit, offset)
        cached = self.page_cache.get(key)
        if cached is not None:
            return dataclasses.replace(cached, cached=True)

        matches = [c for c in snapshot.components if c.category == category_id]
        page = paginate(matches, limit, offset)
        self.page_cache.set(key, page, ttl=self.browse_ttl)
        return page

    async def list_categories(self) -> CategoryListing:
        snapshot = await self.wait_ready()

        cached = self.category_cache.get(ALL_CATEGORIES_KEY)
        if cached is not None:
            return CategoryListing(categories=cached, cached=True)

        self.category_cache.set(ALL_CATEGORIES_KEY, snapshot.categories)
        return CategoryListing(categories=snapshot.categories)

    async def get_by_id(self, component_id: str) -> Lookup:
        """
        Cache-first lookup with full code attached when the store has it.

        An unknown id is a normal result (``Lookup(None)``), not an error.
        """
        snapshot = await self.wait_ready()

        cached = self.component_cache.get(component_id)
        if cached is not None and cached.full_code is not None:
            return Lookup(cached, cached=True)

        component = cached or snapshot.get(component_id)
        if component is None:
            component = await self._from_store(component_id)
            if component is None:
                return Lookup(None)

        component = await self._with_code(component)
        self.component_cache.set(component_id, component)
        return Lookup(component, cached=cached is not None)

    async def get_random(self) -> Lookup:
        """Uniformly random component, with full code when obtainable."""
        snapshot = await self.wait_ready()
        if not snapshot.components:
            return Lookup(None)

        picked = snapshot.components[self._random.randrange(len(snapshot.components))]
        cached = self.component_cache.get(picked.id)
        component = cached or picked
        if component.full_code is None:
            component = await self._with_code(component)
            self.component_cache.set(component.id, component)
        return Lookup(component, cached=cached is not None)

    async def _from_store(self, component_id: str) -> Optional[Component]:
        if self.store is None:
            return None
        try:
            return await self.store.get(component_id)
        except (CatalogError, OSError) as e:
            logger.warning("store_lookup_failed", id=component_id, error=str(e))
            return None

    async def _with_code(self, component: Component) -> Component:
        """Attach full code from the store; on failure return the record unchanged."""
        if component.full_code is not None or self.store is None:
            return component
        try:
            record = await self._from_store(component.id)
        except Exception as e:
            logger.warning("full_code_fetch_failed", id=component.id, error=str(e))
            return component
        if record is None or record.full_code is None:
            return component
        return component.with_full_code(record.full_code)

    def __len__(self) -> int:
        return len(self._snapshot) if self._snapshot else 0


__all__ = [
    "CatalogState",
    "CatalogSearchEngine",
    "matches_query",
    "matches_filters",
    "filter_components",
    "sort_components",
    "paginate",
    "ALL_CATEGORIES_KEY",
]
