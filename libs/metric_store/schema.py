"""DDL and DML for the fixed per-metric table layout."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from .connection import driver_error_code
from .exceptions import InvalidStateError, ProvisioningError

__all__ = ["MetricTableSchema", "ensure_table"]

logger = logging.getLogger(__name__)

# The source value type is not known when a table is provisioned, so every
# value is stored as an unsigned 64-bit integer.
VALUE_COLUMN_TYPE = "BIGINT UNSIGNED"


@dataclass(frozen=True, slots=True)
class MetricTableSchema:
    """Statements for a single ``Metric<Component><Metric>Values`` table."""

    table: str

    def create_table_sql(self) -> str:
        columns = [
            "`TableKey` INT NOT NULL AUTO_INCREMENT",
            "`CompId` INT(32) NOT NULL",
            f"`Value` {VALUE_COLUMN_TYPE} NOT NULL",
            "`Time` TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP",
            "`Level` INT(32) NOT NULL DEFAULT 0",
            "PRIMARY KEY (`TableKey`)",
            f"KEY {self.table}_Time (`Time`)",
            f"KEY {self.table}_Level (`CompId`, `Level`, `Time`)",
        ]
        return (
            f"CREATE TABLE IF NOT EXISTS {self.table} ("
            "\n    "
            + ",\n    ".join(columns)
            + "\n)"
        )

    def insert_sql(self) -> str:
        return (
            f"INSERT INTO {self.table} VALUES "
            "(NULL, :comp_id, :value, FROM_UNIXTIME(:seconds), :level)"
        )


def ensure_table(connection: Connection | None, table: str) -> None:
    """Create *table* unless it already exists."""

    if connection is None:
        raise InvalidStateError(f"No connection available to provision '{table}'")

    statement = text(MetricTableSchema(table).create_table_sql())
    try:
        connection.execute(statement)
        connection.commit()
    except SQLAlchemyError as exc:
        code = driver_error_code(exc)
        logger.error(
            "Cannot query to create table",
            extra={"table": table, "code": code},
        )
        raise ProvisioningError(table, code=code) from exc
    logger.debug("Provisioned metric table", extra={"table": table})
