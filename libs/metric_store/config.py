"""Typed connection settings and the process-wide configuration state."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from threading import Lock
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, PositiveInt, ValidationError

from .exceptions import InvalidConfigurationError

__all__ = [
    "ConfigurationState",
    "DatabaseSettings",
    "USAGE",
    "parse_config_options",
]

logger = logging.getLogger(__name__)

USAGE = (
    "    config name=store_mysql dbschema=<db_schema> dbuser=<dbuser> dbhost=<dbhost>\n"
    "        - Set the dbinfo for the mysql storage for data.\n"
    "        dbhost      The host of the database\n"
    "        dbschema    The name of the database\n"
    "        dbuser      The username of the database\n"
    "        dbpasswd    The passwd for the user of the database (optional)\n"
    "        dbport      The port of the database (optional, default 3306)\n"
    "        dbtimeout   Seconds to wait when connecting (optional)\n"
)

_REQUIRED_OPTIONS = ("dbhost", "dbschema", "dbuser")

# Upper bound accepted by the MySQL driver for connect_timeout (one year).
MAX_CONNECT_TIMEOUT_SECONDS = 31_536_000


class DatabaseSettings(BaseModel):
    """Connection parameters shared by every per-metric connection."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    host: str = Field(..., min_length=1, description="Host name or address of the database server.")
    database: str = Field(..., min_length=1, description="Database (schema) holding the metric tables.")
    user: str = Field(..., min_length=1, description="User name used to authenticate.")
    password: str | None = Field(
        default=None,
        repr=False,
        description="Optional password. Empty and missing are equivalent.",
    )
    port: PositiveInt = Field(3306, description="TCP port of the database server.")
    connect_timeout_seconds: PositiveFloat | None = Field(
        default=None,
        le=MAX_CONNECT_TIMEOUT_SECONDS,
        description="Timeout for establishing a connection. Null waits indefinitely.",
    )


def _describe_validation_error(error: ValidationError) -> str:
    fields = sorted({".".join(str(part) for part in item["loc"]) for item in error.errors()})
    return ", ".join(fields)


class ConfigurationState:
    """Lock-guarded holder of the current :class:`DatabaseSettings`.

    The settings are replaced wholesale, so readers always observe a complete
    and consistent snapshot. Connections already opened with older settings
    are unaffected by a later :meth:`configure`.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._settings: DatabaseSettings | None = None

    def configure(
        self,
        host: str | None,
        schema: str | None,
        user: str | None,
        password: str | None = None,
        **extra: Any,
    ) -> DatabaseSettings:
        """Validate and install new settings.

        On failure the previously stored settings are left untouched.
        """

        try:
            settings = DatabaseSettings(
                host=host or "",
                database=schema or "",
                user=user or "",
                password=password,
                **extra,
            )
        except ValidationError as exc:
            raise InvalidConfigurationError(
                f"Invalid parameters for database: {_describe_validation_error(exc)}"
            ) from exc

        with self._lock:
            self._settings = settings
        logger.info(
            "Database settings configured",
            extra={"db_host": settings.host, "db_schema": settings.database, "db_user": settings.user},
        )
        return settings

    def snapshot(self) -> DatabaseSettings | None:
        with self._lock:
            return self._settings

    def clear(self) -> None:
        with self._lock:
            self._settings = None

    @property
    def is_configured(self) -> bool:
        return self.snapshot() is not None


def parse_config_options(options: Mapping[str, str]) -> dict[str, Any]:
    """Translate ``config`` verb key/value pairs into :meth:`ConfigurationState.configure` arguments."""

    missing = [key for key in _REQUIRED_OPTIONS if not options.get(key)]
    if missing:
        raise InvalidConfigurationError(f"Missing required options: {', '.join(missing)}")

    arguments: dict[str, Any] = {
        "host": options["dbhost"],
        "schema": options["dbschema"],
        "user": options["dbuser"],
        "password": options.get("dbpasswd"),
    }
    if options.get("dbport"):
        arguments["port"] = options["dbport"]
    if options.get("dbtimeout"):
        arguments["connect_timeout_seconds"] = options["dbtimeout"]
    return arguments
