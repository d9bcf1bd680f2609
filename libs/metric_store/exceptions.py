"""Domain specific exceptions raised by the metric store."""

from __future__ import annotations

__all__ = [
    "ConnectionClosedError",
    "DatabaseConnectionError",
    "InsertError",
    "InvalidConfigurationError",
    "InvalidStateError",
    "MetricStoreError",
    "ProvisioningError",
]


class MetricStoreError(RuntimeError):
    """Base class for metric store failures."""


class InvalidConfigurationError(MetricStoreError, ValueError):
    """A required connection parameter is missing or empty."""


class InvalidStateError(MetricStoreError):
    """An operation was attempted without the resource it needs."""


class DatabaseConnectionError(MetricStoreError):
    """The driver could not be initialised or the session not established."""

    def __init__(self, message: str, *, code: int | None = None) -> None:
        super().__init__(f"Error {code}: {message}" if code is not None else message)
        self.code = code
        self.message = message


class ProvisioningError(MetricStoreError):
    """The ``CREATE TABLE`` statement for a metric table failed."""

    def __init__(self, table: str, *, code: int | None = None) -> None:
        super().__init__(f"Cannot create table '{table}'. Error: {code}")
        self.table = table
        self.code = code


class ConnectionClosedError(MetricStoreError):
    """A value was stored through a handle whose connection is closed."""

    def __init__(self, table: str) -> None:
        super().__init__(f"Cannot insert value for <{table}>: connection is closed")
        self.table = table


class InsertError(MetricStoreError):
    """The single-row insert for a metric value failed."""

    def __init__(self, table: str, *, code: int | None = None) -> None:
        super().__init__(f"Failed to insert into '{table}'. Error: {code}")
        self.table = table
        self.code = code
