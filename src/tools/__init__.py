"""
Connector MCP Tools

This module contains all the MCP tools for inspecting the table source connector.
"""

# Connector tools
from .connector import (
    get_connector_status,
    get_task_configurations,
    list_discovered_tables,
)

# List of all tools for easy registration
ALL_TOOLS = [
    get_connector_status,
    list_discovered_tables,
    get_task_configurations,
]

__all__ = [
    # Individual tools
    "get_connector_status",
    "list_discovered_tables",
    "get_task_configurations",
    # Convenience
    "ALL_TOOLS",
]
