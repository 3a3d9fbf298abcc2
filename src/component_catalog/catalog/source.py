"""Extraction sources.

A source produces whole catalog snapshots. ``refresh()`` never raises for
expected failures: it returns ``Success(snapshot)`` or
``Failure(CatalogError)`` and the data service decides what to keep.
"""

from typing import Protocol, runtime_checkable

from returns.result import Failure, Result, Success

from component_catalog.core.errors import CatalogError, ErrorKind
from .models import Snapshot
from .store import RecordStore


@runtime_checkable
class ExtractionSource(Protocol):
    """Producer of catalog snapshots."""

    async def refresh(self) -> Result[Snapshot, CatalogError]:
        """Produce a full snapshot or report why not."""
        ...

    async def close(self) -> None:
        """Release resources."""
        ...


class StoreExtractionSource:
    """Snapshots read from a RecordStore."""

    def __init__(self, store: RecordStore, name: str = "store") -> None:
        self.store = store
        self.name = name

    async def refresh(self) -> Result[Snapshot, CatalogError]:
        try:
            components = await self.store.load_all()
        except CatalogError as e:
            return Failure(e)
        except OSError as e:
            return Failure(CatalogError(ErrorKind.CACHE_ERROR, f"Record store unavailable: {e}"))

        if not components:
            return Failure(
                CatalogError(ErrorKind.CACHE_ERROR, "Record store returned no components")
            )
        return Success(Snapshot.build(components, source=self.name))

    async def close(self) -> None:
        return None


class StaticSource:
    """A fixed snapshot, e.g. the built-in defaults."""

    def __init__(self, snapshot: Snapshot) -> None:
        self.snapshot = snapshot

    @classmethod
    def builtin(cls) -> "StaticSource":
        return cls(Snapshot.builtin())

    async def refresh(self) -> Result[Snapshot, CatalogError]:
        return Success(self.snapshot)

    async def close(self) -> None:
        return None


__all__ = ["ExtractionSource", "StoreExtractionSource", "StaticSource"]
