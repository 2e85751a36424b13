"""
Catalog module for background table discovery.

This module provides:
- Catalog readers that list the tables of a SQL database or a Couchbase cluster
- The table monitor thread that polls a reader and publishes table snapshots
- The partition planner that groups tables into balanced task assignments
"""

from catalog.monitor import MonitorState, TableMonitor
from catalog.planner import group_partitions
from catalog.reader import (
    CatalogReader,
    CouchbaseCatalogReader,
    FilteredCatalogReader,
    SqlAlchemyCatalogReader,
    build_catalog_reader,
)

__all__ = [
    "CatalogReader",
    "CouchbaseCatalogReader",
    "FilteredCatalogReader",
    "MonitorState",
    "SqlAlchemyCatalogReader",
    "TableMonitor",
    "build_catalog_reader",
    "group_partitions",
]
