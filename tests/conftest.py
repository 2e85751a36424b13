"""
Shared fixtures and fakes for the connector unit tests.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any

import pytest

from utils.connection import SQL_KIND, ConnectionHandle
from utils.constants import CONNECTION_URL_CONFIG, TABLE_POLL_INTERVAL_MS_CONFIG
from utils.errors import DiscoveryError

# Generous upper bound for background-thread assertions
WAIT_TIMEOUT = 5.0


class FakeRawConnection:
    """Stands in for a driver connection; records close() calls."""

    def __init__(self, close_error: Exception | None = None) -> None:
        self.close_calls = 0
        self.close_error = close_error

    def close(self) -> None:
        self.close_calls += 1
        if self.close_error is not None:
            raise self.close_error


class ScriptedReader:
    """Catalog reader returning a scripted sequence of results.

    Each entry is either a list of table names or an exception to raise.
    The last entry repeats once the script is exhausted.
    """

    def __init__(self, *results: list[str] | Exception) -> None:
        self.results = list(results) or [[]]
        self.calls = 0
        self.connections: list[ConnectionHandle] = []
        self._lock = threading.Lock()

    def list_tables(self, connection: ConnectionHandle) -> list[str]:
        with self._lock:
            self.connections.append(connection)
            result = self.results[min(self.calls, len(self.results) - 1)]
            self.calls += 1
        if isinstance(result, Exception):
            raise result
        return list(result)


def wait_for(predicate: Callable[[], bool], timeout: float = WAIT_TIMEOUT) -> bool:
    """Poll predicate until it is true or the timeout elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def discovery_error(message: str = "catalog unavailable") -> DiscoveryError:
    return DiscoveryError(message)


@pytest.fixture
def raw_connection() -> FakeRawConnection:
    return FakeRawConnection()


@pytest.fixture
def connection(raw_connection: FakeRawConnection) -> ConnectionHandle:
    return ConnectionHandle(SQL_KIND, raw_connection, url="postgresql://user:secret@db/warehouse")


@pytest.fixture
def base_properties() -> dict[str, Any]:
    return {
        CONNECTION_URL_CONFIG: "postgresql://user:secret@db/warehouse",
        TABLE_POLL_INTERVAL_MS_CONFIG: "50",
        "topic.prefix": "warehouse-",
    }
