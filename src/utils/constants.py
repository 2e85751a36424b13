"""
Constants shared by the connector, the monitor and the MCP surface.
"""

CONNECTOR_NAME = "table-discovery"

# Configuration keys
CONNECTION_URL_CONFIG = "connection.url"
CONNECTION_USER_CONFIG = "connection.user"
CONNECTION_PASSWORD_CONFIG = "connection.password"
TABLE_POLL_INTERVAL_MS_CONFIG = "table.poll.interval.ms"
TABLE_WHITELIST_CONFIG = "table.whitelist"
TABLE_BLACKLIST_CONFIG = "table.blacklist"
TABLE_TYPES_CONFIG = "table.types"
SCHEMA_PATTERN_CONFIG = "schema.pattern"

# Key added to every worker configuration record
TABLES_CONFIG = "tables"
TABLES_DELIMITER = ","

DEFAULT_TABLE_POLL_INTERVAL_MS = 60_000
DEFAULT_TABLE_TYPES = ("TABLE",)
ALLOWED_TABLE_TYPES = ("TABLE", "VIEW")

# Bounded wait for the monitor thread during stop()
MONITOR_JOIN_TIMEOUT_MS = 10_000

COUCHBASE_SCHEMES = ("couchbase", "couchbases")

# MCP host surface
DEFAULT_TRANSPORT = "stdio"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000
ALLOWED_TRANSPORTS = ["stdio", "http", "sse"]
NETWORK_TRANSPORTS = ["http", "sse"]
NETWORK_TRANSPORTS_SDK_MAPPING = {
    "http": "streamable-http",
    "sse": "sse",
}
