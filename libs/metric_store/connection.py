"""Per-handle database connections.

Every storage handle owns exactly one connection. Connections are never
pooled or shared: each one is backed by a private engine using
:class:`~sqlalchemy.pool.NullPool`, so the database server must allow one
connection per distinct metric (``max_connections`` in ``my.cnf``).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import suppress
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Connection, Engine
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.pool import NullPool

from .config import ConfigurationState, DatabaseSettings
from .exceptions import DatabaseConnectionError, InvalidConfigurationError

__all__ = ["ConnectionProvisioner", "driver_error_code", "driver_error_message"]

logger = logging.getLogger(__name__)

DRIVER_NAME = "mysql+pymysql"

EngineFactory = Callable[..., Engine]


def driver_error_code(error: BaseException) -> int | None:
    """Return the numeric error code reported by the DB-API driver, if any."""

    original = error.orig if isinstance(error, DBAPIError) else error
    args = getattr(original, "args", ())
    if args and isinstance(args[0], int):
        return args[0]
    return None


def driver_error_message(error: BaseException) -> str:
    original = error.orig if isinstance(error, DBAPIError) else error
    args = getattr(original, "args", ())
    if len(args) > 1 and isinstance(args[0], int):
        return str(args[1])
    return str(original)


def build_url(settings: DatabaseSettings) -> URL:
    # Empty and missing passwords are equivalent for the driver.
    return URL.create(
        DRIVER_NAME,
        username=settings.user,
        password=settings.password or None,
        host=settings.host,
        port=settings.port,
        database=settings.database,
    )


def _connect_args(settings: DatabaseSettings) -> dict[str, Any]:
    connect_args: dict[str, Any] = {}
    if settings.connect_timeout_seconds is not None:
        connect_args["connect_timeout"] = settings.connect_timeout_seconds
    return connect_args


class ConnectionProvisioner:
    """Open dedicated connections using the current configuration snapshot."""

    def __init__(
        self,
        state: ConfigurationState,
        *,
        engine_factory: EngineFactory = create_engine,
    ) -> None:
        self._state = state
        self._engine_factory = engine_factory

    def open(self) -> Connection:
        settings = self._state.snapshot()
        if settings is None or not (settings.host and settings.database and settings.user):
            logger.error("Invalid parameters for database")
            raise InvalidConfigurationError("Invalid parameters for database")

        try:
            engine = self._engine_factory(
                build_url(settings),
                poolclass=NullPool,
                connect_args=_connect_args(settings),
            )
        except (SQLAlchemyError, ImportError) as exc:
            code = driver_error_code(exc)
            message = driver_error_message(exc)
            logger.error("Cannot initialise database client", extra={"code": code, "error": message})
            raise DatabaseConnectionError(message, code=code) from exc

        try:
            connection = engine.connect()
        except SQLAlchemyError as exc:
            engine.dispose()
            code = driver_error_code(exc)
            message = driver_error_message(exc)
            logger.error(
                "Cannot connect to database",
                extra={"code": code, "error": message, "db_host": settings.host},
            )
            raise DatabaseConnectionError(message, code=code) from exc

        logger.debug("Opened database connection", extra={"db_host": settings.host})
        return connection

    @staticmethod
    def release(connection: Connection | None) -> None:
        """Close *connection* and dispose of its private engine."""

        if connection is None:
            return
        engine = connection.engine
        with suppress(SQLAlchemyError):
            connection.close()
        engine.dispose()
