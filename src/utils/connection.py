import logging
from datetime import timedelta
from typing import Any, Optional
from urllib.parse import urlparse

from couchbase.auth import PasswordAuthenticator
from couchbase.cluster import Cluster
from couchbase.options import ClusterOptions
from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine

from .constants import CONNECTOR_NAME, COUCHBASE_SCHEMES
from .errors import DataSourceConnectionError

logger = logging.getLogger(f"{CONNECTOR_NAME}.utils.connection")

SQL_KIND = "sql"
COUCHBASE_KIND = "couchbase"


class ConnectionHandle:
    """The single open channel to the data source.

    Owned by the connector. The table monitor only reads through it.
    """

    def __init__(self, kind: str, connection: Any, engine: Optional[Engine] = None, url: str = ""):
        self.kind = kind
        self.connection = connection
        self.url = url
        self._engine = engine
        self.closed = False

    def close(self) -> None:
        """Close the underlying connection. Raises whatever the driver raises."""
        if self.closed:
            return
        self.closed = True
        try:
            self.connection.close()
        finally:
            if self._engine is not None:
                self._engine.dispose()

    def __repr__(self) -> str:
        return f"ConnectionHandle(kind={self.kind!r}, url={redact_url(self.url)!r}, closed={self.closed})"


def redact_url(url: str) -> str:
    """Hide the password part of a connection URL for logging."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return url
    if parsed.password:
        netloc = parsed.netloc.replace(f":{parsed.password}@", ":***@")
        return parsed._replace(netloc=netloc).geturl()
    return url


def is_couchbase_url(url: str) -> bool:
    return urlparse(url).scheme.lower() in COUCHBASE_SCHEMES


def connect_to_couchbase_cluster(
    connection_string: str, username: str, password: str
) -> Cluster:
    """Connect to Couchbase cluster and return the cluster object if successful.
    If the connection fails, it will raise an exception.
    """
    try:
        logger.info("Connecting to Couchbase cluster...")
        auth = PasswordAuthenticator(username, password)
        options = ClusterOptions(auth)
        options.apply_profile("wan_development")
        cluster = Cluster(connection_string, options)  # type: ignore
        cluster.wait_until_ready(timedelta(seconds=5))

        logger.info("Successfully connected to Couchbase cluster")
        return cluster
    except Exception as e:
        logger.error(f"Failed to connect to Couchbase: {e}")
        raise


def connect_to_sql_database(url: str) -> tuple[Engine, Connection]:
    """Create an engine for the SQLAlchemy URL and open one connection on it."""
    engine = create_engine(url)
    try:
        connection = engine.connect()
    except Exception:
        engine.dispose()
        raise
    return engine, connection


def open_connection(
    url: str, username: Optional[str] = None, password: Optional[str] = None
) -> ConnectionHandle:
    """Open the data source connection described by the URL.

    couchbase:// and couchbases:// URLs go through the Couchbase SDK, anything
    else is treated as a SQLAlchemy database URL.

    Raises:
        DataSourceConnectionError: If the connection cannot be opened
    """
    logger.debug(f"Trying to connect to {redact_url(url)}")
    try:
        if is_couchbase_url(url):
            cluster = connect_to_couchbase_cluster(url, username, password)  # type: ignore
            return ConnectionHandle(COUCHBASE_KIND, cluster, url=url)
        engine, connection = connect_to_sql_database(url)
        return ConnectionHandle(SQL_KIND, connection, engine=engine, url=url)
    except Exception as e:
        logger.error(f"Couldn't open connection to {redact_url(url)}: {e}")
        raise DataSourceConnectionError(f"Couldn't open connection to {redact_url(url)}: {e}") from e
