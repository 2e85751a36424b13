"""
Table monitor background thread.

The monitor owns one daemon thread that:
1. Lists the data source's tables through a catalog reader
2. Publishes the result as an immutable snapshot readable from any thread
3. Logs (and reports through an optional callback) when the table set changes
4. Sleeps for the poll interval, waking up early when asked to stop

A failed poll keeps the previous snapshot. Readers of tables() never wait on a poll.
"""

import logging
import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional

from catalog.reader import CatalogReader
from utils.connection import ConnectionHandle
from utils.constants import CONNECTOR_NAME
from utils.errors import DiscoveryError

logger = logging.getLogger(f"{CONNECTOR_NAME}.catalog.monitor")

TableSnapshot = tuple[str, ...]
ChangeCallback = Callable[[TableSnapshot], None]


class MonitorState(Enum):
    """Lifecycle of a table monitor."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    STOP_REQUESTED = "stop_requested"
    STOPPED = "stopped"


class TableMonitor:
    """Polls the catalog on a fixed interval and keeps the latest table list."""

    def __init__(
        self,
        connection: ConnectionHandle,
        reader: CatalogReader,
        poll_interval_ms: int,
        on_change: Optional[ChangeCallback] = None,
        log: Optional[logging.Logger] = None,
        name: str = "TableMonitor",
    ):
        if poll_interval_ms <= 0:
            raise ValueError(f"poll_interval_ms must be positive, got {poll_interval_ms}")
        self._connection = connection
        self._reader = reader
        self._poll_interval = poll_interval_ms / 1000.0
        self._on_change = on_change
        self._logger = log or logger
        self._name = name

        # Guards the snapshot, the lifecycle state and the poll statistics.
        # Held only to swap whole values, never across I/O.
        self._lock = threading.Lock()
        self._snapshot: TableSnapshot = ()
        self._state = MonitorState.NOT_STARTED
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self._poll_count = 0
        self._consecutive_failures = 0
        self._last_error: Optional[str] = None
        self._last_success_at: Optional[datetime] = None

    @property
    def state(self) -> MonitorState:
        with self._lock:
            return self._state

    def start(self) -> None:
        """Launch the background thread.

        Raises:
            RuntimeError: If the monitor was already started
        """
        with self._lock:
            if self._state is not MonitorState.NOT_STARTED:
                raise RuntimeError(f"Table monitor cannot be started from state {self._state.value}")
            self._state = MonitorState.RUNNING
            self._thread = threading.Thread(target=self._run, daemon=True, name=self._name)

        self._logger.info("Starting table monitor thread")
        self._thread.start()

    def tables(self) -> TableSnapshot:
        """Return the latest snapshot. Empty until the first successful poll."""
        with self._lock:
            return self._snapshot

    def shutdown(self) -> None:
        """Ask the monitor to stop. Returns immediately; repeated calls are no-ops."""
        with self._lock:
            if self._state is MonitorState.RUNNING:
                self._state = MonitorState.STOP_REQUESTED
                self._logger.info("Table monitor stop requested")
            elif self._state is MonitorState.NOT_STARTED:
                self._state = MonitorState.STOPPED
        self._stop_event.set()

    def join(self, timeout_ms: Optional[int] = None) -> bool:
        """Wait until the monitor has stopped or the timeout elapses.

        Never raises on timeout.

        Returns:
            True if the monitor reached the stopped state
        """
        thread = self._thread
        if thread is not None:
            thread.join(None if timeout_ms is None else max(timeout_ms, 0) / 1000.0)
            if thread.is_alive():
                self._logger.warning(f"Table monitor thread did not stop within {timeout_ms} ms")
                return False
        return self.state is MonitorState.STOPPED

    def is_alive(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def _poll_once(self) -> bool:
        """Run a single discovery cycle.

        Returns:
            True if the catalog was read and the snapshot published
        """
        try:
            tables = tuple(self._reader.list_tables(self._connection))
        except DiscoveryError as e:
            self._record_failure(str(e))
            self._logger.error(f"Table discovery failed, keeping previous table list: {e}")
            return False
        except Exception as e:
            self._record_failure(str(e))
            self._logger.error(f"Unexpected error during table discovery: {e}", exc_info=True)
            return False

        with self._lock:
            previous = self._snapshot
            self._snapshot = tables
            self._poll_count += 1
            self._consecutive_failures = 0
            self._last_error = None
            self._last_success_at = datetime.now(timezone.utc)

        current_set, previous_set = set(tables), set(previous)
        if current_set != previous_set:
            added = [t for t in tables if t not in previous_set]
            removed = [t for t in previous if t not in current_set]
            self._logger.info(
                f"Table set changed ({len(previous)} -> {len(tables)} tables), "
                f"added: {added}, removed: {removed}"
            )
            self._notify_change(tables)
        else:
            self._logger.debug(f"No table changes detected ({len(tables)} tables)")
        return True

    def status(self) -> dict[str, Any]:
        """Summary of the monitor's lifecycle and poll history."""
        with self._lock:
            return {
                "state": self._state.value,
                "table_count": len(self._snapshot),
                "poll_interval_ms": int(self._poll_interval * 1000),
                "successful_polls": self._poll_count,
                "consecutive_failures": self._consecutive_failures,
                "last_error": self._last_error,
                "last_success_at": self._last_success_at.isoformat() if self._last_success_at else None,
            }

    def _record_failure(self, error: str) -> None:
        with self._lock:
            self._consecutive_failures += 1
            self._last_error = error

    def _notify_change(self, tables: TableSnapshot) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change(tables)
        except Exception as e:
            self._logger.error(f"Table change callback failed: {e}", exc_info=True)

    def _run(self) -> None:
        self._logger.info("Table monitor thread started")
        try:
            while not self._stop_event.is_set():
                self._poll_once()
                # Event.wait returns True as soon as shutdown() sets the event
                if self._stop_event.wait(self._poll_interval):
                    break
        except Exception as e:
            self._logger.error(f"Error in table monitor loop: {e}", exc_info=True)
        finally:
            with self._lock:
                self._state = MonitorState.STOPPED
            self._logger.info("Table monitor thread stopped")
