"""
Unit tests for the MCP tools and CLI helpers.

Tools are called directly with a stub context carrying the lifespan AppContext.
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from conftest import FakeRawConnection, ScriptedReader, wait_for

from connector import TableSourceConnector
from mcp_server import build_connector_properties
from tools import ALL_TOOLS, get_connector_status, get_task_configurations, list_discovered_tables
from utils.connection import SQL_KIND, ConnectionHandle
from utils.context import AppContext


def make_context(connector: TableSourceConnector | None) -> SimpleNamespace:
    app_context = AppContext(connector=connector)
    return SimpleNamespace(request_context=SimpleNamespace(lifespan_context=app_context))


@pytest.fixture
def running_connector(base_properties):
    base_properties["connection.password"] = "hunter2"
    connector = TableSourceConnector(
        connection_opener=lambda url, user, password: ConnectionHandle(SQL_KIND, FakeRawConnection(), url=url),
        reader_factory=lambda config, connection: ScriptedReader(["orders", "customers", "items"]),
    )
    connector.start(base_properties)
    assert wait_for(lambda: len(connector.tables()) == 3)
    yield connector
    connector.stop()


class TestConnectorTools:
    """Tool behaviour against a running connector."""

    def test_all_tools_registered(self) -> None:
        names = {tool.__name__ for tool in ALL_TOOLS}
        assert names == {"get_connector_status", "list_discovered_tables", "get_task_configurations"}

    def test_list_discovered_tables(self, running_connector) -> None:
        ctx = make_context(running_connector)
        assert list_discovered_tables(ctx) == ["orders", "customers", "items"]

    def test_get_task_configurations_masks_password(self, running_connector) -> None:
        ctx = make_context(running_connector)
        task_configs = get_task_configurations(ctx, 2)

        assert [c["tables"] for c in task_configs] == ["orders,customers", "items"]
        assert all(c["connection.password"] == "********" for c in task_configs)
        # The connector's own records still carry the real value
        assert running_connector.task_configs(1)[0]["connection.password"] == "hunter2"

    def test_get_task_configurations_invalid_count(self, running_connector) -> None:
        ctx = make_context(running_connector)
        with pytest.raises(ValueError):
            get_task_configurations(ctx, 0)

    def test_get_connector_status(self, running_connector) -> None:
        status = get_connector_status(make_context(running_connector))
        assert status["monitor"]["state"] == "running"
        assert status["monitor"]["table_count"] == 3
        assert "hunter2" not in str(status)

    def test_tools_require_running_connector(self) -> None:
        with pytest.raises(ValueError, match="not running"):
            list_discovered_tables(make_context(None))


class TestBuildConnectorProperties:
    """CLI option mapping."""

    def test_maps_and_skips_unset(self) -> None:
        properties = build_connector_properties(
            connection_url="sqlite:///data.db",
            user=None,
            password=None,
            table_poll_interval_ms=5000,
            table_whitelist="orders,items",
            table_blacklist=None,
            table_types=None,
            schema_pattern=None,
        )
        assert properties == {
            "connection.url": "sqlite:///data.db",
            "table.poll.interval.ms": "5000",
            "table.whitelist": "orders,items",
        }
