"""Host-facing entry points of the MySQL metric store.

:class:`MySQLStore` is constructed once by the collector daemon and owns all
state: the configuration and the handle registry. The method names follow
the store plugin interface the daemon dispatches to.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from observability.logging import configure_logging

from .config import USAGE, ConfigurationState, DatabaseSettings, parse_config_options
from .connection import ConnectionProvisioner, EngineFactory
from .exceptions import InvalidStateError
from .handle import MetricStorageHandle, Timestamp
from .level import LevelGenerator
from .registry import MetricStoreRegistry

__all__ = ["MySQLStore", "get_plugin"]

logger = logging.getLogger(__name__)

PACKAGE_LOGGER = "libs.metric_store"


class MySQLStore:
    """Store plugin persisting each metric into its own MySQL table."""

    name = "mysql"

    def __init__(
        self,
        *,
        engine_factory: EngineFactory | None = None,
        level_generator: LevelGenerator | None = None,
    ) -> None:
        self._state = ConfigurationState()
        if engine_factory is None:
            provisioner = ConnectionProvisioner(self._state)
        else:
            provisioner = ConnectionProvisioner(self._state, engine_factory=engine_factory)
        self._registry = MetricStoreRegistry(provisioner, level_generator=level_generator)

    @property
    def registry(self) -> MetricStoreRegistry:
        return self._registry

    @property
    def settings(self) -> DatabaseSettings | None:
        return self._state.snapshot()

    # ------------------------------------------------------------------
    # Plugin lifecycle
    def config(self, options: Mapping[str, str]) -> DatabaseSettings:
        """Apply ``dbhost``/``dbschema``/``dbuser``/``dbpasswd`` options.

        Connections are opened lazily when a handle is created; handles that
        are already open keep the settings they were created with.
        """

        arguments = parse_config_options(options)
        open_handles = len(self._registry)
        if open_handles:
            logger.warning(
                "Reconfiguring with open handles; existing connections keep the previous settings",
                extra={"open_handles": open_handles},
            )
        return self._state.configure(**arguments)

    def term(self) -> None:
        self._state.clear()

    @staticmethod
    def usage() -> str:
        return USAGE

    # ------------------------------------------------------------------
    # Metric stores
    def get_store(self, component_name: str, metric_name: str) -> MetricStorageHandle[Any] | None:
        return self._registry.lookup(component_name, metric_name)

    def new_store(
        self,
        component_name: str,
        metric_name: str,
        context: Any = None,
    ) -> MetricStorageHandle[Any]:
        return self._registry.get_or_create(component_name, metric_name, context)

    @staticmethod
    def get_context(handle: MetricStorageHandle[Any]) -> Any:
        return handle.context

    @staticmethod
    def store(
        handle: MetricStorageHandle[Any] | None,
        component_id: int,
        timestamp: Timestamp,
        value: int,
    ) -> None:
        if handle is None:
            raise InvalidStateError("Cannot store a value without a metric store handle")
        handle.append(component_id, timestamp, value)

    @staticmethod
    def flush(handle: MetricStorageHandle[Any] | None) -> None:
        if handle is not None:
            handle.flush()

    def close(self, handle: MetricStorageHandle[Any] | None) -> None:
        self._registry.close(handle)


def get_plugin(
    log_sink: Callable[[dict[str, Any]], None] | None = None,
    *,
    log_level: int | str = logging.INFO,
) -> MySQLStore:
    """Build the store, routing its log records to the daemon's *log_sink*."""

    if log_sink is not None:
        configure_logging(level=log_level, sink=log_sink, logger_name=PACKAGE_LOGGER)
    return MySQLStore()
