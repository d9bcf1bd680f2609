"""Identifier sanitisation and table naming for per-metric tables.

Table names are part of the persisted layout and follow the convention
``Metric<Component><Metric>Values`` where both fragments are produced by
:func:`sanitize_identifier`. Two raw names that differ only in punctuation
(``cpu.util`` and ``cpu-util``) sanitise to the same fragment and therefore
share a table; callers are expected to keep their naming consistent.
"""

from __future__ import annotations

from dataclasses import dataclass
from string import ascii_letters, digits

__all__ = [
    "MetricIdentity",
    "derive_table_name",
    "metric_key",
    "sanitize_identifier",
    "sanitize_metric_name",
]

_ALLOWED = frozenset(ascii_letters + digits)
_TABLE_PREFIX = "Metric"
_TABLE_SUFFIX = "Values"


def sanitize_metric_name(name: str) -> str:
    """Replace every character that is not an ASCII letter or digit with ``_``."""

    return "".join(char if char in _ALLOWED else "_" for char in name)


def sanitize_identifier(name: str) -> str:
    """Return a schema-safe fragment with its first character upper-cased."""

    cleansed = sanitize_metric_name(name)
    return cleansed[:1].upper() + cleansed[1:]


def derive_table_name(component_name: str, metric_name: str) -> str:
    return (
        _TABLE_PREFIX
        + sanitize_identifier(component_name)
        + sanitize_identifier(metric_name)
        + _TABLE_SUFFIX
    )


def metric_key(component_name: str, metric_name: str) -> str:
    """Canonical registry key for a ``(component, metric)`` pair."""

    return f"{component_name}:{metric_name}"


@dataclass(frozen=True, slots=True)
class MetricIdentity:
    """The ``(component, metric)`` pair naming a single time series."""

    component_name: str
    metric_name: str

    @property
    def key(self) -> str:
        return metric_key(self.component_name, self.metric_name)

    @property
    def table_name(self) -> str:
        return derive_table_name(self.component_name, self.metric_name)

    @property
    def cleansed_metric_name(self) -> str:
        return sanitize_metric_name(self.metric_name)
