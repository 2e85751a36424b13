import logging
from dataclasses import dataclass

from mcp.server.fastmcp import Context

from connector import TableSourceConnector
from utils.constants import CONNECTOR_NAME

logger = logging.getLogger(f"{CONNECTOR_NAME}.utils.context")


@dataclass
class AppContext:
    """Context for the MCP server."""

    connector: TableSourceConnector | None = None


def get_connector(ctx: Context) -> TableSourceConnector:
    """Return the running connector from the lifespan context.
    Raises an exception if the connector was not started.
    """
    app_context = ctx.request_context.lifespan_context
    if app_context.connector is None:
        logger.error("Connector is not running")
        raise ValueError("Connector is not running. Check the server logs for startup errors.")
    return app_context.connector
