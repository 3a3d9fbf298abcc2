"""
Component Catalog
Data model, record store, snapshot sources, search engine and data service
"""

from .models import (
    Category,
    CategoryListing,
    Component,
    ComponentExample,
    ComponentProp,
    ComponentStyling,
    Difficulty,
    Lookup,
    Page,
    Snapshot,
)
from .search import CatalogSearchEngine, CatalogState
from .service import CatalogDataService
from .source import ExtractionSource, StaticSource, StoreExtractionSource
from .store import FileRecordStore, RecordStore

__all__ = [
    "Category",
    "CategoryListing",
    "Component",
    "ComponentExample",
    "ComponentProp",
    "ComponentStyling",
    "Difficulty",
    "Lookup",
    "Page",
    "Snapshot",
    "CatalogSearchEngine",
    "CatalogState",
    "CatalogDataService",
    "ExtractionSource",
    "StaticSource",
    "StoreExtractionSource",
    "FileRecordStore",
    "RecordStore",
]
