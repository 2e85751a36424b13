"""
Table Discovery Connector MCP Server
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import click
from mcp.server.fastmcp import FastMCP

from connector import TableSourceConnector

# Import tools
from tools import ALL_TOOLS

# Import utilities
from utils import (
    ALLOWED_TRANSPORTS,
    CONNECTOR_NAME,
    DEFAULT_HOST,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PORT,
    DEFAULT_TRANSPORT,
    NETWORK_TRANSPORTS,
    NETWORK_TRANSPORTS_SDK_MAPPING,
    ConnectorError,
    get_settings,
    set_settings,
)
from utils.constants import (
    CONNECTION_PASSWORD_CONFIG,
    CONNECTION_URL_CONFIG,
    CONNECTION_USER_CONFIG,
    DEFAULT_TABLE_POLL_INTERVAL_MS,
    SCHEMA_PATTERN_CONFIG,
    TABLE_BLACKLIST_CONFIG,
    TABLE_POLL_INTERVAL_MS_CONFIG,
    TABLE_TYPES_CONFIG,
    TABLE_WHITELIST_CONFIG,
)
from utils.context import AppContext

logger = logging.getLogger(CONNECTOR_NAME)


def _log_tables_changed(tables: tuple[str, ...]) -> None:
    logger.info(f"Task reconfiguration needed, {len(tables)} tables discovered")


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
    """Start the connector for the lifetime of the MCP server."""
    settings = get_settings()
    properties = settings.get("connector", {})

    connector = TableSourceConnector(on_tables_changed=_log_tables_changed)
    try:
        connector.start(properties)
    except ConnectorError as e:
        logger.error(f"Couldn't start connector: {e}")
        raise

    try:
        yield AppContext(connector=connector)
    finally:
        logger.info("Stopping connector")
        connector.stop()
        logger.info("Closing MCP server")


def build_connector_properties(**options) -> dict[str, str]:
    """Map CLI options to connector property keys, skipping unset options."""
    mapping = {
        "connection_url": CONNECTION_URL_CONFIG,
        "user": CONNECTION_USER_CONFIG,
        "password": CONNECTION_PASSWORD_CONFIG,
        "table_poll_interval_ms": TABLE_POLL_INTERVAL_MS_CONFIG,
        "table_whitelist": TABLE_WHITELIST_CONFIG,
        "table_blacklist": TABLE_BLACKLIST_CONFIG,
        "table_types": TABLE_TYPES_CONFIG,
        "schema_pattern": SCHEMA_PATTERN_CONFIG,
    }
    return {
        key: str(options[name])
        for name, key in mapping.items()
        if options.get(name) is not None
    }


@click.command()
@click.option(
    "--connection-url",
    envvar="TDC_CONNECTION_URL",
    required=True,
    help="Data source URL: a SQLAlchemy database URL or a couchbase:// connection string",
)
@click.option(
    "--user",
    envvar="TDC_USER",
    default=None,
    help="User for sources that authenticate separately from the URL (Couchbase)",
)
@click.option(
    "--password",
    envvar="TDC_PASSWORD",
    default=None,
    help="Password for sources that authenticate separately from the URL (Couchbase)",
)
@click.option(
    "--table-poll-interval-ms",
    envvar="TDC_TABLE_POLL_INTERVAL_MS",
    type=click.IntRange(min=1),
    default=DEFAULT_TABLE_POLL_INTERVAL_MS,
    help="Delay between catalog polls in milliseconds (default: 60000)",
)
@click.option(
    "--table-whitelist",
    envvar="TDC_TABLE_WHITELIST",
    default=None,
    help="Comma-separated list of tables to include",
)
@click.option(
    "--table-blacklist",
    envvar="TDC_TABLE_BLACKLIST",
    default=None,
    help="Comma-separated list of tables to exclude",
)
@click.option(
    "--table-types",
    envvar="TDC_TABLE_TYPES",
    default=None,
    help="Comma-separated table types to discover: TABLE, VIEW (default: TABLE)",
)
@click.option(
    "--schema-pattern",
    envvar="TDC_SCHEMA_PATTERN",
    default=None,
    help="Schema to enumerate for SQL sources (default: the connection's default schema)",
)
@click.option(
    "--transport",
    envvar="TDC_MCP_TRANSPORT",
    type=click.Choice(ALLOWED_TRANSPORTS),
    default=DEFAULT_TRANSPORT,
    help="Transport mode for the server (stdio, http or sse). Default is stdio",
)
@click.option(
    "--host",
    envvar="TDC_MCP_HOST",
    default=DEFAULT_HOST,
    help="Host to run the server on (default: 127.0.0.1)",
)
@click.option(
    "--port",
    envvar="TDC_MCP_PORT",
    default=DEFAULT_PORT,
    help="Port to run the server on (default: 8000)",
)
@click.option(
    "--log-level",
    envvar="TDC_LOG_LEVEL",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=DEFAULT_LOG_LEVEL,
    help="Logging level (default: INFO)",
)
@click.version_option(package_name="table-discovery-connector")
def main(
    connection_url,
    user,
    password,
    table_poll_interval_ms,
    table_whitelist,
    table_blacklist,
    table_types,
    schema_pattern,
    transport,
    host,
    port,
    log_level,
):
    """Table Discovery Connector MCP Server"""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    set_settings({
        "connector": build_connector_properties(
            connection_url=connection_url,
            user=user,
            password=password,
            table_poll_interval_ms=table_poll_interval_ms,
            table_whitelist=table_whitelist,
            table_blacklist=table_blacklist,
            table_types=table_types,
            schema_pattern=schema_pattern,
        ),
        "transport": transport,
        "host": host,
        "port": port,
    })

    # Map user-friendly transport names to SDK transport names
    sdk_transport = NETWORK_TRANSPORTS_SDK_MAPPING.get(transport, transport)

    # If the transport is network based, we need to pass the host and port to the MCP server
    config = (
        {
            "host": host,
            "port": port,
        }
        if transport in NETWORK_TRANSPORTS
        else {}
    )

    mcp = FastMCP(CONNECTOR_NAME, lifespan=app_lifespan, **config)

    # Register all tools
    for tool in ALL_TOOLS:
        mcp.add_tool(tool)

    # Run the server
    mcp.run(transport=sdk_transport)  # type: ignore


if __name__ == "__main__":
    main()
