"""
Connector Utilities

This module contains utility functions for configuration, connection, and error handling.
"""

# Configuration utilities
from .config import (
    ConnectorConfig,
    get_settings,
    parse_list,
    set_settings,
)

# Connection utilities
from .connection import (
    ConnectionHandle,
    open_connection,
    redact_url,
)

# Errors
from .errors import (
    ConfigurationError,
    ConnectorError,
    DataSourceConnectionError,
    DiscoveryError,
    ShutdownError,
)

# Constants
from .constants import (
    ALLOWED_TRANSPORTS,
    CONNECTOR_NAME,
    DEFAULT_HOST,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PORT,
    DEFAULT_TRANSPORT,
    NETWORK_TRANSPORTS,
    NETWORK_TRANSPORTS_SDK_MAPPING,
)

# Note: Individual modules create their own hierarchical loggers using:
# logger = logging.getLogger(f"{CONNECTOR_NAME}.module.name")

__all__ = [
    # Config
    "ConnectorConfig",
    "get_settings",
    "parse_list",
    "set_settings",
    # Connection
    "ConnectionHandle",
    "open_connection",
    "redact_url",
    # Errors
    "ConfigurationError",
    "ConnectorError",
    "DataSourceConnectionError",
    "DiscoveryError",
    "ShutdownError",
    # Constants
    "ALLOWED_TRANSPORTS",
    "CONNECTOR_NAME",
    "DEFAULT_HOST",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_PORT",
    "DEFAULT_TRANSPORT",
    "NETWORK_TRANSPORTS",
    "NETWORK_TRANSPORTS_SDK_MAPPING",
]
