import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional
from urllib.parse import urlparse

from .constants import (
    ALLOWED_TABLE_TYPES,
    CONNECTION_PASSWORD_CONFIG,
    CONNECTION_URL_CONFIG,
    CONNECTION_USER_CONFIG,
    CONNECTOR_NAME,
    COUCHBASE_SCHEMES,
    DEFAULT_TABLE_POLL_INTERVAL_MS,
    DEFAULT_TABLE_TYPES,
    SCHEMA_PATTERN_CONFIG,
    TABLE_BLACKLIST_CONFIG,
    TABLE_POLL_INTERVAL_MS_CONFIG,
    TABLE_TYPES_CONFIG,
    TABLE_WHITELIST_CONFIG,
)
from .errors import ConfigurationError

logger = logging.getLogger(f"{CONNECTOR_NAME}.utils.config")


config = {}

def set_settings(settings: dict) -> None:
    """Set settings in global variable."""
    global config
    config = settings

def get_settings() -> dict:
    """Get settings from global variable."""
    return config


def parse_list(value: Any) -> list[str]:
    """Parse a comma-separated string (or an iterable of strings) into a list.

    Whitespace around items is stripped and empty items are dropped.
    Order is preserved.
    """
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    else:
        items = list(value)
    return [str(item).strip() for item in items if str(item).strip()]


def _parse_poll_interval(value: Any) -> int:
    if value is None or value == "":
        return DEFAULT_TABLE_POLL_INTERVAL_MS
    if isinstance(value, bool):
        raise ConfigurationError(
            f"{TABLE_POLL_INTERVAL_MS_CONFIG} must be a positive integer, got {value!r}"
        )
    try:
        interval = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"{TABLE_POLL_INTERVAL_MS_CONFIG} must be a positive integer, got {value!r}"
        ) from e
    if interval <= 0:
        raise ConfigurationError(
            f"{TABLE_POLL_INTERVAL_MS_CONFIG} must be a positive integer, got {interval}"
        )
    return interval


@dataclass(frozen=True)
class ConnectorConfig:
    """Validated view of the connector properties."""

    connection_url: str
    poll_interval_ms: int = DEFAULT_TABLE_POLL_INTERVAL_MS
    user: Optional[str] = None
    password: Optional[str] = None
    whitelist: tuple[str, ...] = ()
    blacklist: tuple[str, ...] = ()
    table_types: tuple[str, ...] = DEFAULT_TABLE_TYPES
    schema: Optional[str] = None
    properties: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_properties(cls, properties: Mapping[str, Any]) -> "ConnectorConfig":
        """Parse and validate connector properties.

        Raises:
            ConfigurationError: If a required setting is missing or a value is invalid
        """
        if properties is None:
            raise ConfigurationError("Connector properties are required")

        connection_url = properties.get(CONNECTION_URL_CONFIG)
        if not connection_url or not str(connection_url).strip():
            raise ConfigurationError(f"Missing required setting: {CONNECTION_URL_CONFIG}")

        whitelist = parse_list(properties.get(TABLE_WHITELIST_CONFIG))
        blacklist = parse_list(properties.get(TABLE_BLACKLIST_CONFIG))
        if whitelist and blacklist:
            raise ConfigurationError(
                f"{TABLE_WHITELIST_CONFIG} and {TABLE_BLACKLIST_CONFIG} are mutually exclusive"
            )

        table_types = [t.upper() for t in parse_list(properties.get(TABLE_TYPES_CONFIG))]
        invalid_types = [t for t in table_types if t not in ALLOWED_TABLE_TYPES]
        if invalid_types:
            raise ConfigurationError(
                f"Unsupported {TABLE_TYPES_CONFIG}: {', '.join(invalid_types)}. "
                f"Allowed values: {', '.join(ALLOWED_TABLE_TYPES)}"
            )

        is_couchbase = urlparse(str(connection_url)).scheme.lower() in COUCHBASE_SCHEMES
        if is_couchbase and "VIEW" in table_types:
            raise ConfigurationError("Couchbase sources do not expose views")

        user = properties.get(CONNECTION_USER_CONFIG) or None
        password = properties.get(CONNECTION_PASSWORD_CONFIG) or None
        if is_couchbase:
            missing = [
                key
                for key, value in ((CONNECTION_USER_CONFIG, user), (CONNECTION_PASSWORD_CONFIG, password))
                if not value
            ]
            if missing:
                raise ConfigurationError(
                    f"Couchbase sources require credentials, missing: {', '.join(missing)}"
                )

        parsed = cls(
            connection_url=str(connection_url).strip(),
            poll_interval_ms=_parse_poll_interval(properties.get(TABLE_POLL_INTERVAL_MS_CONFIG)),
            user=user,
            password=password,
            whitelist=tuple(whitelist),
            blacklist=tuple(blacklist),
            table_types=tuple(table_types) or DEFAULT_TABLE_TYPES,
            schema=properties.get(SCHEMA_PATTERN_CONFIG) or None,
            properties=dict(properties),
        )
        logger.debug(
            f"Parsed connector configuration for {parsed.connection_url} "
            f"(poll interval {parsed.poll_interval_ms} ms)"
        )
        return parsed
