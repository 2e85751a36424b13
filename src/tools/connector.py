"""
Tools for inspecting the table source connector.

This module contains tools for getting the connector status, listing the discovered tables and previewing task configurations.
"""

import logging
from typing import Any

from mcp.server.fastmcp import Context

from utils.constants import CONNECTION_PASSWORD_CONFIG, CONNECTOR_NAME
from utils.context import get_connector

logger = logging.getLogger(f"{CONNECTOR_NAME}.tools.connector")


def get_connector_status(ctx: Context) -> dict[str, Any]:
    """Get the connector status, including the table monitor state and poll statistics.
    Does not expose credentials.
    """
    connector = get_connector(ctx)
    return connector.status()


def list_discovered_tables(ctx: Context) -> list[str]:
    """Get the tables found by the most recent successful catalog poll.
    Returns an empty list if no poll has succeeded yet.
    """
    connector = get_connector(ctx)
    return list(connector.tables())


def get_task_configurations(ctx: Context, max_tasks: int) -> list[dict[str, Any]]:
    """Preview how the discovered tables would be split across max_tasks workers.
    Returns one configuration per task; the password setting is masked.
    """
    connector = get_connector(ctx)
    try:
        task_configs = connector.task_configs(max_tasks)
    except ValueError as e:
        logger.error(f"Invalid task count: {e}")
        raise

    for task_config in task_configs:
        if task_config.get(CONNECTION_PASSWORD_CONFIG):
            task_config[CONNECTION_PASSWORD_CONFIG] = "********"
    return task_configs
