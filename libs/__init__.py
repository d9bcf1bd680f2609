"""Shared infrastructural libraries for the metric store.

The storage backend lives under :mod:`libs.metric_store`. This package exists
primarily to provide a concrete package root so static type checkers can
resolve modules deterministically.
"""

__all__ = ["metric_store"]
