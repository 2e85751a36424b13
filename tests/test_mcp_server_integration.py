"""
High-level integration tests for the connector MCP server.

These tests launch the server over stdio against a SQLite database and validate that:
- The expected tools are exposed by the MCP server
- The background monitor discovers the database's tables
- Task configurations are planned from the discovered tables
"""

from __future__ import annotations

import asyncio
import json
import os
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import pytest
from mcp import ClientSession, StdioServerParameters, stdio_client
from sqlalchemy import create_engine, text

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"

# Tools we expect to be registered by the server
EXPECTED_TOOLS = {
    "get_connector_status",
    "list_discovered_tables",
    "get_task_configurations",
}

TABLES = ["customers", "invoices", "items", "orders", "shipments"]

# Default timeout (seconds) to guard against hangs when the server fails to start.
DEFAULT_TIMEOUT = int(os.getenv("TDC_TEST_TIMEOUT", "60"))


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """Create a SQLite database with a handful of tables."""
    url = f"sqlite:///{tmp_path / 'warehouse.db'}"
    engine = create_engine(url)
    with engine.begin() as conn:
        for table in TABLES:
            conn.execute(text(f"CREATE TABLE {table} (id INTEGER PRIMARY KEY)"))
    engine.dispose()
    return url


def _build_env(database_url: str) -> dict[str, str]:
    """Build the environment passed to the test server process."""
    env = os.environ.copy()

    # Ensure the server module can be imported from the repo's src/ folder
    existing_path = env.get("PYTHONPATH")
    env["PYTHONPATH"] = (
        f"{SRC_DIR}{os.pathsep}{existing_path}" if existing_path else str(SRC_DIR)
    )

    env["TDC_CONNECTION_URL"] = database_url
    env["TDC_TABLE_POLL_INTERVAL_MS"] = "100"
    # Force stdio transport for the test server to match stdio_client
    env["TDC_MCP_TRANSPORT"] = "stdio"
    # Ensure unbuffered output to avoid stdout/stderr buffering surprises
    env.setdefault("PYTHONUNBUFFERED", "1")
    return env


@asynccontextmanager
async def create_mcp_session(database_url: str) -> AsyncIterator[ClientSession]:
    """Create a fresh MCP client session connected to the server over stdio."""
    params = StdioServerParameters(
        command=sys.executable,
        args=["-m", "mcp_server"],
        env=_build_env(database_url),
    )

    async with stdio_client(params) as (read_stream, write_stream):
        async with ClientSession(read_stream, write_stream) as session:
            await asyncio.wait_for(session.initialize(), timeout=DEFAULT_TIMEOUT)
            yield session


def _extract_payload(response: Any) -> Any:
    """Extract a usable payload from a tool response.

    List returns may arrive as one content block per item.
    """
    content = getattr(response, "content", None) or []
    if not content:
        return None

    decoded = []
    for block in content:
        raw = getattr(block, "text", None)
        if isinstance(raw, str):
            try:
                decoded.append(json.loads(raw))
            except json.JSONDecodeError:
                decoded.append(raw)
    if len(decoded) == 1:
        return decoded[0]
    return decoded


def _ensure_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


async def _wait_for_tables(session: ClientSession, expected: int) -> dict[str, Any]:
    deadline = asyncio.get_running_loop().time() + DEFAULT_TIMEOUT
    while True:
        status = _extract_payload(await session.call_tool("get_connector_status", arguments={}))
        if status["monitor"]["table_count"] >= expected:
            return status
        if asyncio.get_running_loop().time() > deadline:
            pytest.fail(f"Tables were not discovered in time, last status: {status}")
        await asyncio.sleep(0.1)


@pytest.mark.asyncio
async def test_tools_are_registered(database_url: str) -> None:
    """Ensure all expected tools are exposed by the server."""
    async with create_mcp_session(database_url) as session:
        tools_response = await session.list_tools()
        tool_names = {tool.name for tool in tools_response.tools}
        missing = EXPECTED_TOOLS - tool_names
        assert not missing, f"Missing MCP tools: {sorted(missing)}"


@pytest.mark.asyncio
async def test_tables_are_discovered(database_url: str) -> None:
    """The background monitor publishes the database's tables."""
    async with create_mcp_session(database_url) as session:
        status = await _wait_for_tables(session, len(TABLES))
        assert status["monitor"]["state"] == "running"

        response = await session.call_tool("list_discovered_tables", arguments={})
        tables = _ensure_list(_extract_payload(response))
        assert sorted(tables) == TABLES


@pytest.mark.asyncio
async def test_task_configurations_are_balanced(database_url: str) -> None:
    """Five tables over two tasks gives a group of three and a group of two."""
    async with create_mcp_session(database_url) as session:
        await _wait_for_tables(session, len(TABLES))

        response = await session.call_tool("get_task_configurations", arguments={"max_tasks": 2})
        task_configs = _ensure_list(_extract_payload(response))

        assert len(task_configs) == 2
        group_sizes = [len(config["tables"].split(",")) for config in task_configs]
        assert group_sizes == [3, 2]
        assert all(config["connection.url"] == database_url for config in task_configs)
