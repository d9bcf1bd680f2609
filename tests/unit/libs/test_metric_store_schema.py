"""Tests for metric table DDL and provisioning."""

from __future__ import annotations

import pytest

from libs.metric_store.exceptions import InvalidStateError, ProvisioningError
from libs.metric_store.schema import MetricTableSchema, ensure_table


def test_create_table_sql_defines_fixed_layout() -> None:
    sql = MetricTableSchema("MetricNode01Cpu_utilValues").create_table_sql()

    assert sql.startswith("CREATE TABLE IF NOT EXISTS MetricNode01Cpu_utilValues (")
    assert "`TableKey` INT NOT NULL AUTO_INCREMENT" in sql
    assert "`CompId` INT(32) NOT NULL" in sql
    assert "`Value` BIGINT UNSIGNED NOT NULL" in sql
    assert "`Time` TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP" in sql
    assert "`Level` INT(32) NOT NULL DEFAULT 0" in sql
    assert "PRIMARY KEY (`TableKey`)" in sql
    assert "KEY MetricNode01Cpu_utilValues_Time (`Time`)" in sql
    assert "KEY MetricNode01Cpu_utilValues_Level (`CompId`, `Level`, `Time`)" in sql


def test_insert_sql_binds_values() -> None:
    sql = MetricTableSchema("MetricAB").insert_sql()

    assert sql == (
        "INSERT INTO MetricAB VALUES "
        "(NULL, :comp_id, :value, FROM_UNIXTIME(:seconds), :level)"
    )


def test_ensure_table_is_idempotent(provisioner) -> None:
    connection = provisioner.open()

    ensure_table(connection, "MetricAMValues")
    ensure_table(connection, "MetricAMValues")

    statements = [sql for sql, _ in connection.executed]
    assert len(statements) == 2
    assert all(sql.startswith("CREATE TABLE IF NOT EXISTS MetricAMValues") for sql in statements)
    assert connection.commits == 2


def test_ensure_table_requires_connection() -> None:
    with pytest.raises(InvalidStateError):
        ensure_table(None, "MetricAMValues")


def test_ensure_table_reports_driver_error(provisioner, engine_factory) -> None:
    engine_factory.fail_on = "CREATE TABLE"
    connection = provisioner.open()

    with pytest.raises(ProvisioningError) as excinfo:
        ensure_table(connection, "MetricAMValues")

    assert excinfo.value.code == 1146
    assert excinfo.value.table == "MetricAMValues"
    assert connection.commits == 0
