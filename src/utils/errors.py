"""
Error taxonomy for the connector.

Only ConfigurationError and DataSourceConnectionError ever reach the caller of
start(). DiscoveryError is raised by catalog readers and absorbed by the
monitor. ShutdownError is logged during stop() and never raised to the host.
"""


class ConnectorError(Exception):
    """Base class for all connector errors."""


class ConfigurationError(ConnectorError):
    """Invalid or missing connector settings."""


class DataSourceConnectionError(ConnectorError):
    """The data source could not be reached or opened."""


class DiscoveryError(ConnectorError):
    """A single catalog poll failed."""


class ShutdownError(ConnectorError):
    """A step of connector shutdown misbehaved."""
