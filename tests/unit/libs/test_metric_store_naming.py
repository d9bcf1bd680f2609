"""Tests for identifier sanitisation and table naming."""

from __future__ import annotations

import re
import string

import pytest

from libs.metric_store.naming import (
    MetricIdentity,
    derive_table_name,
    metric_key,
    sanitize_identifier,
    sanitize_metric_name,
)

_SAFE = re.compile(r"^[A-Za-z0-9_]*$")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("cpu.util", "Cpu_util"),
        ("node01", "Node01"),
        ("MemFree", "MemFree"),
        ("9lives", "9lives"),
        ("_private", "_private"),
        ("rx bytes/s", "Rx_bytes_s"),
        ("", ""),
    ],
)
def test_sanitize_identifier(raw: str, expected: str) -> None:
    assert sanitize_identifier(raw) == expected


@pytest.mark.parametrize(
    "raw",
    ["cpu.util", "ümlaut-ß", "a;DROP TABLE x;--", "tab\tname", "ñandú", "x" * 200, "🙂metric"],
)
def test_sanitize_identifier_is_deterministic_and_schema_safe(raw: str) -> None:
    first = sanitize_identifier(raw)

    assert first == sanitize_identifier(raw)
    assert _SAFE.match(first)
    assert len(first) == len(raw)
    if raw[0] in string.ascii_letters:
        assert first[0].isupper()


def test_sanitize_metric_name_keeps_case() -> None:
    assert sanitize_metric_name("cpu.util") == "cpu_util"


def test_derive_table_name_follows_persisted_convention() -> None:
    assert derive_table_name("node01", "cpu.util") == "MetricNode01Cpu_utilValues"
    assert derive_table_name("node01", "cpu.util") == derive_table_name("node01", "cpu.util")


def test_punctuation_variants_share_a_table() -> None:
    assert derive_table_name("node01", "cpu.util") == derive_table_name("node01", "cpu-util")


def test_metric_identity_key_and_table() -> None:
    identity = MetricIdentity("node01", "cpu.util")

    assert identity.key == "node01:cpu.util" == metric_key("node01", "cpu.util")
    assert identity.table_name == "MetricNode01Cpu_utilValues"
    assert identity.cleansed_metric_name == "cpu_util"


def test_distinct_components_never_share_a_table() -> None:
    assert derive_table_name("a", "m") != derive_table_name("b", "m")
