"""
Catalog readers.

A catalog reader turns an open connection into the current ordered list of
table identifiers. Readers hold no state between calls and are only ever
invoked from the table monitor's own thread.
"""

import logging
from typing import Iterable, Optional, Protocol, Sequence

from couchbase.exceptions import CouchbaseException
from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from utils.config import ConnectorConfig
from utils.connection import COUCHBASE_KIND, ConnectionHandle
from utils.constants import CONNECTOR_NAME, DEFAULT_TABLE_TYPES
from utils.errors import DiscoveryError

logger = logging.getLogger(f"{CONNECTOR_NAME}.catalog.reader")


# Every collection of every scope of every bucket, ordered for stable partitioning
KEYSPACES_QUERY = (
    "SELECT RAW CONCAT(k.`bucket`, '.', k.`scope`, '.', k.name) "
    "FROM system:keyspaces AS k "
    "WHERE k.`bucket` IS VALUED AND k.`scope` IS VALUED "
    "ORDER BY k.`bucket`, k.`scope`, k.name"
)


class CatalogReader(Protocol):
    """Lists the tables currently exposed by a data source."""

    def list_tables(self, connection: ConnectionHandle) -> list[str]:
        """Return the ordered table identifiers, or raise DiscoveryError."""
        ...


class SqlAlchemyCatalogReader:
    """Enumerates tables (and optionally views) of a relational database."""

    def __init__(self, schema: Optional[str] = None, table_types: Sequence[str] = DEFAULT_TABLE_TYPES):
        self.schema = schema
        self.table_types = tuple(t.upper() for t in table_types)

    def list_tables(self, connection: ConnectionHandle) -> list[str]:
        conn = connection.connection
        try:
            inspector = inspect(conn)
            tables: list[str] = []
            if "TABLE" in self.table_types:
                tables.extend(inspector.get_table_names(schema=self.schema))
            if "VIEW" in self.table_types:
                tables.extend(inspector.get_view_names(schema=self.schema))
            return tables
        except SQLAlchemyError as e:
            raise DiscoveryError(f"Failed to list tables: {e}") from e
        finally:
            _end_transaction(conn)


def _end_transaction(conn) -> None:
    """Roll back the transaction the inspector autobegan.

    Also clears an invalidated connection so the next poll can reconnect.
    """
    try:
        conn.rollback()
    except SQLAlchemyError as e:
        logger.warning(f"Failed to roll back catalog transaction: {e}")


class CouchbaseCatalogReader:
    """Enumerates collections of a Couchbase cluster as bucket.scope.collection."""

    def __init__(self, query: str = KEYSPACES_QUERY):
        self.query = query

    def list_tables(self, connection: ConnectionHandle) -> list[str]:
        try:
            result = connection.connection.query(self.query)
            return [str(row) for row in result.rows()]
        except CouchbaseException as e:
            raise DiscoveryError(f"Failed to list keyspaces: {e}") from e


class FilteredCatalogReader:
    """Applies a whitelist or a blacklist to another reader's output.

    Reader order is preserved; the filters only drop entries.
    """

    def __init__(
        self,
        reader: CatalogReader,
        whitelist: Iterable[str] = (),
        blacklist: Iterable[str] = (),
    ):
        self.reader = reader
        self.whitelist = frozenset(whitelist)
        self.blacklist = frozenset(blacklist)

    def list_tables(self, connection: ConnectionHandle) -> list[str]:
        tables = self.reader.list_tables(connection)
        if self.whitelist:
            return [t for t in tables if t in self.whitelist]
        if self.blacklist:
            return [t for t in tables if t not in self.blacklist]
        return tables


def build_catalog_reader(config: ConnectorConfig, connection: ConnectionHandle) -> CatalogReader:
    """Pick the reader matching the connection kind and wrap it with the table filters."""
    if connection.kind == COUCHBASE_KIND:
        reader: CatalogReader = CouchbaseCatalogReader()
    else:
        reader = SqlAlchemyCatalogReader(schema=config.schema, table_types=config.table_types)

    if config.whitelist or config.blacklist:
        logger.debug(
            f"Filtering discovered tables (whitelist={list(config.whitelist)}, "
            f"blacklist={list(config.blacklist)})"
        )
        reader = FilteredCatalogReader(reader, config.whitelist, config.blacklist)
    return reader
