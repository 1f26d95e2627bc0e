"""Uniform field access over the record types a fetch function may return."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from keyset_connection.exceptions import UnsupportedQueryShape

_MISSING = object()


def record_value(record: Any, column: str) -> Any:
    """Read ``column`` from a mapping, a SQLAlchemy ``Row`` or an object.

    Raises:
        UnsupportedQueryShape: If the record does not carry the column, which
            happens when a custom projection leaves out a sort column.
    """
    if isinstance(record, Mapping):
        value = record.get(column, _MISSING)
    else:
        mapping = getattr(record, "_mapping", None)
        if isinstance(mapping, Mapping):
            value = mapping.get(column, _MISSING)
        else:
            value = getattr(record, column, _MISSING)

    if value is _MISSING:
        raise UnsupportedQueryShape(
            detail=f"Fetched records must include the sort column '{column}'",
            extra={"column": column},
        )
    return value


__all__ = ["record_value"]
