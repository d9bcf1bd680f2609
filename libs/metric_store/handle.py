"""Per-metric storage handle owning a dedicated connection and table."""

from __future__ import annotations

import logging
from datetime import datetime
from threading import Lock
from typing import Generic, TypeVar

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from .connection import ConnectionProvisioner, driver_error_code
from .exceptions import ConnectionClosedError, InsertError
from .level import LevelGenerator
from .naming import MetricIdentity
from .schema import MetricTableSchema

__all__ = ["MetricStorageHandle", "Timestamp"]

logger = logging.getLogger(__name__)

ContextT = TypeVar("ContextT")

Timestamp = datetime | float | int

_U64_LIMIT = 1 << 64


def _whole_seconds(timestamp: Timestamp) -> int:
    # Sub-second precision is dropped to match the legacy row format.
    if isinstance(timestamp, datetime):
        return int(timestamp.timestamp())
    return int(timestamp)


def _unsigned_64(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"value must be an integer, not {type(value).__name__}")
    if not 0 <= value < _U64_LIMIT:
        raise ValueError(f"value {value} does not fit an unsigned 64-bit column")
    return value


class MetricStorageHandle(Generic[ContextT]):
    """Storage target for a single ``(component, metric)`` identity.

    Handles are created and destroyed by
    :class:`~libs.metric_store.registry.MetricStoreRegistry`. The handle lock
    serialises statement execution with :meth:`close`, so a close never
    interleaves with an in-flight :meth:`append`.
    """

    def __init__(
        self,
        identity: MetricIdentity,
        connection: Connection,
        *,
        level_generator: LevelGenerator,
        context: ContextT | None = None,
    ) -> None:
        self._identity = identity
        self._table_name = identity.table_name
        self._cleansed_metric_name = identity.cleansed_metric_name
        self._schema = MetricTableSchema(self._table_name)
        self._connection: Connection | None = connection
        self._level_generator = level_generator
        self._context = context
        self._lock = Lock()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<MetricStorageHandle {self._identity.key!r} table={self._table_name} {state}>"

    @property
    def identity(self) -> MetricIdentity:
        return self._identity

    @property
    def metric_key(self) -> str:
        return self._identity.key

    @property
    def table_name(self) -> str:
        return self._table_name

    @property
    def cleansed_metric_name(self) -> str:
        return self._cleansed_metric_name

    @property
    def context(self) -> ContextT | None:
        return self._context

    @property
    def connection(self) -> Connection | None:
        return self._connection

    @property
    def closed(self) -> bool:
        return self._connection is None

    def append(self, component_id: int, timestamp: Timestamp, value: int) -> None:
        """Insert one row and commit it.

        Raises :class:`ConnectionClosedError` without touching the database
        when the handle has been closed.
        """

        with self._lock:
            connection = self._connection
            if connection is None:
                logger.error(
                    "Cannot insert value: connection to mysql is closed",
                    extra={"table": self._table_name},
                )
                raise ConnectionClosedError(self._table_name)
            params = {
                "comp_id": int(component_id),
                "value": _unsigned_64(value),
                "seconds": _whole_seconds(timestamp),
                "level": self._level_generator.draw(),
            }
            try:
                connection.execute(text(self._schema.insert_sql()), params)
                connection.commit()
            except SQLAlchemyError as exc:
                code = driver_error_code(exc)
                logger.error(
                    "Failed to insert metric value",
                    extra={"table": self._table_name, "code": code},
                )
                raise InsertError(self._table_name, code=code) from exc

    def flush(self) -> None:
        """Reserved for bulk inserts; values are already durable after :meth:`append`."""

    def close(self) -> None:
        """Release the connection. Closing twice is a no-op."""

        with self._lock:
            connection, self._connection = self._connection, None
        if connection is not None:
            ConnectionProvisioner.release(connection)
