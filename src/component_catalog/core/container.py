"""Dependency Injection Container."""

from pathlib import Path
from typing import Optional

from injector import Injector, Module, provider, singleton

from component_catalog.catalog.service import CatalogDataService
from component_catalog.catalog.source import ExtractionSource, StaticSource, StoreExtractionSource
from component_catalog.catalog.store import FileRecordStore, RecordStore
from component_catalog.clients.extraction import HttpExtractionSource
from component_catalog.mcp.protocol import ToolDispatcher
from .config import Settings, get_settings
from .logging_config import configure_logging, get_logger

logger = get_logger(__name__)


class CatalogModule(Module):
    """Catalog dependencies."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()
        self._store: Optional[RecordStore] = None
        self._store_checked = False

    @singleton
    @provider
    def provide_settings(self) -> Settings:
        return self.settings

    def record_store(self) -> Optional[RecordStore]:
        """File store when the extraction directory exists."""
        if not self._store_checked:
            self._store_checked = True
            root = Path(self.settings.extraction_path)
            if root.is_dir():
                self._store = FileRecordStore(root)
            else:
                logger.info("record_store_unavailable", path=str(root))
        return self._store

    @singleton
    @provider
    def provide_extraction_source(self, settings: Settings) -> ExtractionSource:
        """Remote endpoint first, then the local store, then built-in data."""
        if settings.source_url:
            return HttpExtractionSource(
                settings.source_url,
                timeout=settings.source_timeout,
                retries=settings.source_retries,
                retry_delay=settings.source_retry_delay,
                max_retry_delay=settings.max_retry_delay,
            )
        store = self.record_store()
        if store is not None:
            return StoreExtractionSource(store)
        return StaticSource.builtin()

    @singleton
    @provider
    def provide_data_service(
        self, settings: Settings, source: ExtractionSource
    ) -> CatalogDataService:
        return CatalogDataService(settings, source=source, store=self.record_store())

    @singleton
    @provider
    def provide_dispatcher(self, service: CatalogDataService) -> ToolDispatcher:
        return ToolDispatcher(service)


def create_container(settings: Optional[Settings] = None) -> Injector:
    """Configure logging from settings and create the injector."""
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.json_logs)
    return Injector([CatalogModule(settings)])


__all__ = ["CatalogModule", "create_container"]
