"""Observability helpers for the metric store."""

from .logging import StructuredLogFormatter, configure_logging  # noqa: F401

__all__ = [
    "StructuredLogFormatter",
    "configure_logging",
]
