"""
Table source connector.

Coordinates the data source connection, the table monitor and task planning:
- start() validates the configuration, opens the connection and launches the monitor
- task_configs() partitions the monitor's latest snapshot across the available tasks
- stop() stops the monitor with a bounded wait and releases the connection

Only configuration and initial connection errors propagate to the host. Once the
monitor runs, data source trouble shows up as stale task assignments and logs.
"""

import logging
from typing import Any, Callable, Mapping, Optional

from catalog.monitor import ChangeCallback, MonitorState, TableMonitor, TableSnapshot
from catalog.planner import group_partitions
from catalog.reader import CatalogReader, build_catalog_reader
from utils.config import ConnectorConfig
from utils.connection import ConnectionHandle, open_connection, redact_url
from utils.constants import (
    CONNECTOR_NAME,
    MONITOR_JOIN_TIMEOUT_MS,
    TABLES_CONFIG,
    TABLES_DELIMITER,
)
from utils.errors import ShutdownError

logger = logging.getLogger(f"{CONNECTOR_NAME}.connector")

ConnectionOpener = Callable[[str, Optional[str], Optional[str]], ConnectionHandle]
ReaderFactory = Callable[[ConnectorConfig, ConnectionHandle], CatalogReader]


class TableSourceConnector:
    """Watches a data source's tables and hands out balanced task configurations."""

    def __init__(
        self,
        connection_opener: ConnectionOpener = open_connection,
        reader_factory: ReaderFactory = build_catalog_reader,
        on_tables_changed: Optional[ChangeCallback] = None,
        join_timeout_ms: int = MONITOR_JOIN_TIMEOUT_MS,
        log: Optional[logging.Logger] = None,
    ):
        self._connection_opener = connection_opener
        self._reader_factory = reader_factory
        self._on_tables_changed = on_tables_changed
        self._join_timeout_ms = join_timeout_ms
        self._logger = log or logger

        self.config: Optional[ConnectorConfig] = None
        self._connection: Optional[ConnectionHandle] = None
        self._monitor: Optional[TableMonitor] = None

    @property
    def monitor(self) -> Optional[TableMonitor]:
        return self._monitor

    def start(self, properties: Mapping[str, Any]) -> None:
        """Start the connector.

        Raises:
            ConfigurationError: If the properties are invalid (no connection is attempted)
            DataSourceConnectionError: If the data source cannot be reached
            RuntimeError: If the connector was already started
        """
        if self._monitor is not None:
            raise RuntimeError("Connector is already started")

        config = ConnectorConfig.from_properties(properties)

        self._logger.info(f"Starting connector for {redact_url(config.connection_url)}")
        connection = self._connection_opener(config.connection_url, config.user, config.password)

        try:
            reader = self._reader_factory(config, connection)
            monitor = TableMonitor(
                connection,
                reader,
                config.poll_interval_ms,
                on_change=self._on_tables_changed,
                log=self._logger.getChild("monitor"),
            )
            monitor.start()
        except Exception:
            self._logger.error("Failed to start table monitor, closing connection")
            self._close_connection(connection)
            raise

        self.config = config
        self._connection = connection
        self._monitor = monitor

    def tables(self) -> TableSnapshot:
        """Latest table snapshot, empty when the connector is not started."""
        if self._monitor is None:
            return ()
        return self._monitor.tables()

    def task_configs(self, max_tasks: int) -> list[dict[str, Any]]:
        """Build one configuration per task group from the latest table snapshot.

        Each configuration is a copy of the connector properties plus the group's
        tables joined with a comma under the "tables" key.

        Raises:
            RuntimeError: If the connector has not been started
            ValueError: If max_tasks is not a positive integer
        """
        if self._monitor is None:
            raise RuntimeError("Connector has not been started")

        current_tables = self._monitor.tables()
        grouped = group_partitions(current_tables, max_tasks)
        task_configs = []
        for task_tables in grouped:
            task_props = dict(self.config.properties)
            task_props[TABLES_CONFIG] = TABLES_DELIMITER.join(task_tables)
            task_configs.append(task_props)

        self._logger.debug(
            f"Planned {len(task_configs)} task configurations for "
            f"{len(current_tables)} tables (max tasks {max_tasks})"
        )
        return task_configs

    def stop(self) -> list[ShutdownError]:
        """Stop the monitor and close the connection.

        Never raises. Steps that misbehave are logged and returned as
        ShutdownError instances so callers can inspect them.
        """
        problems: list[ShutdownError] = []
        if self._monitor is None and self._connection is None:
            self._logger.warning("Connector is not running")
            return problems

        if self._monitor is not None:
            self._logger.info("Stopping table monitoring thread")
            try:
                self._monitor.shutdown()
                if not self._monitor.join(self._join_timeout_ms):
                    problems.append(
                        ShutdownError(f"Table monitor did not stop within {self._join_timeout_ms} ms")
                    )
            except Exception as e:
                self._logger.error(f"Error stopping table monitor: {e}", exc_info=True)
                problems.append(ShutdownError(f"Error stopping table monitor: {e}"))

        if self._connection is not None:
            error = self._close_connection(self._connection)
            if error is not None:
                problems.append(error)
            self._connection = None

        for problem in problems:
            self._logger.warning(f"Connector shutdown completed with a problem: {problem}")
        return problems

    def status(self) -> dict[str, Any]:
        """Connector status without secrets."""
        monitor_status = self._monitor.status() if self._monitor else {"state": MonitorState.NOT_STARTED.value}
        return {
            "connector_name": CONNECTOR_NAME,
            "connection_url": redact_url(self.config.connection_url) if self.config else None,
            "connection_open": self._connection is not None and not self._connection.closed,
            "monitor": monitor_status,
        }

    def _close_connection(self, connection: ConnectionHandle) -> Optional[ShutdownError]:
        self._logger.debug("Trying to close data source connection")
        try:
            connection.close()
        except Exception as e:
            self._logger.error(f"Failed to close data source connection: {e}", exc_info=True)
            return ShutdownError(f"Failed to close data source connection: {e}")
        return None
