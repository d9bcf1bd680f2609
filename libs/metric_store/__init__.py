"""Per-metric MySQL storage backend for the metric collection daemon."""

from .config import USAGE, ConfigurationState, DatabaseSettings, parse_config_options
from .connection import ConnectionProvisioner
from .exceptions import (
    ConnectionClosedError,
    DatabaseConnectionError,
    InsertError,
    InvalidConfigurationError,
    InvalidStateError,
    MetricStoreError,
    ProvisioningError,
)
from .handle import MetricStorageHandle
from .level import LevelGenerator
from .naming import (
    MetricIdentity,
    derive_table_name,
    metric_key,
    sanitize_identifier,
    sanitize_metric_name,
)
from .plugin import MySQLStore, get_plugin
from .registry import MetricStoreRegistry
from .schema import MetricTableSchema, ensure_table

__all__ = [
    "USAGE",
    "ConfigurationState",
    "ConnectionClosedError",
    "ConnectionProvisioner",
    "DatabaseConnectionError",
    "DatabaseSettings",
    "InsertError",
    "InvalidConfigurationError",
    "InvalidStateError",
    "LevelGenerator",
    "MetricIdentity",
    "MetricStorageHandle",
    "MetricStoreError",
    "MetricStoreRegistry",
    "MetricTableSchema",
    "MySQLStore",
    "ProvisioningError",
    "derive_table_name",
    "ensure_table",
    "get_plugin",
    "metric_key",
    "parse_config_options",
    "sanitize_identifier",
    "sanitize_metric_name",
]
