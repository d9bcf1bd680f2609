"""Registry mapping metric identities to their storage handles.

Creation of a handle (connection open plus table provisioning) runs entirely
under the registry lock. Provisioning is rare compared to appends, and the
global serialisation guarantees that two callers racing on a never-seen
identity cannot both provision it: exactly one handle exists per identity.
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Any

from .connection import ConnectionProvisioner
from .handle import MetricStorageHandle
from .level import LevelGenerator
from .naming import MetricIdentity, metric_key
from .schema import ensure_table

__all__ = ["MetricStoreRegistry"]

logger = logging.getLogger(__name__)


class MetricStoreRegistry:
    """Concurrent ``identity -> handle`` mapping owning the handle lifecycle."""

    def __init__(
        self,
        provisioner: ConnectionProvisioner,
        *,
        level_generator: LevelGenerator | None = None,
    ) -> None:
        self._provisioner = provisioner
        self._level_generator = level_generator or LevelGenerator()
        self._handles: dict[str, MetricStorageHandle[Any]] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)

    def __contains__(self, identity: object) -> bool:
        if not isinstance(identity, MetricIdentity):
            return False
        with self._lock:
            return identity.key in self._handles

    def lookup(self, component_name: str, metric_name: str) -> MetricStorageHandle[Any] | None:
        """Return the live handle for the identity, or ``None``. Never creates."""

        with self._lock:
            return self._handles.get(metric_key(component_name, metric_name))

    def get_or_create(
        self,
        component_name: str,
        metric_name: str,
        context: Any = None,
    ) -> MetricStorageHandle[Any]:
        """Return the handle for the identity, provisioning it on first use.

        When a handle already exists *context* is ignored and the context
        supplied by the first creator is kept.
        """

        identity = MetricIdentity(component_name, metric_name)
        with self._lock:
            existing = self._handles.get(identity.key)
            if existing is not None:
                return existing

            handle = self._create(identity, context)
            self._handles[identity.key] = handle

        logger.info(
            "Created metric store",
            extra={"metric_key": identity.key, "table": handle.table_name},
        )
        return handle

    def _create(self, identity: MetricIdentity, context: Any) -> MetricStorageHandle[Any]:
        table_name = identity.table_name
        connection = self._provisioner.open()
        try:
            ensure_table(connection, table_name)
            return MetricStorageHandle(
                identity,
                connection,
                level_generator=self._level_generator,
                context=context,
            )
        except Exception:
            self._provisioner.release(connection)
            raise

    def close(self, handle: MetricStorageHandle[Any] | None) -> None:
        """Unregister *handle* and release its connection.

        ``None`` and handles that are already closed are ignored.
        """

        if handle is None:
            return
        with self._lock:
            if self._handles.get(handle.metric_key) is handle:
                del self._handles[handle.metric_key]
            if handle.closed:
                return
            logger.info(
                "Closing metric store",
                extra={"metric_key": handle.metric_key, "table": handle.table_name},
            )
            handle.close()
