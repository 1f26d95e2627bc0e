"""Source adapter protocol.

The engine never runs queries. An adapter takes the caller's source (a
SQLAlchemy statement, a list of records, ...) and a FetchPlan, and returns
the bounded, ordered, filtered source the caller's fetch function executes.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from keyset_connection.exceptions import UnsupportedQueryShape

if TYPE_CHECKING:
    from keyset_connection.planner import FetchPlan


@runtime_checkable
class SourceAdapter(Protocol):
    """Applies a fetch plan to a source and normalizes fetched rows."""

    def apply(self, source: Any, plan: FetchPlan) -> Any:
        """Return ``source`` ordered, filtered and limited per ``plan``."""
        ...

    def unwrap(self, rows: Sequence[Any], plan: FetchPlan) -> list[Any]:
        """Return the records carried by fetched ``rows``."""
        ...


def resolve_adapter(source: Any, configured: SourceAdapter | None = None) -> SourceAdapter:
    """Pick the adapter for ``source``.

    Raises:
        UnsupportedQueryShape: If no adapter understands the source.
    """
    if configured is not None:
        return configured

    from sqlalchemy import Select

    if isinstance(source, Select):
        from keyset_connection.adapters.sqlalchemy import SQLAlchemyAdapter

        return SQLAlchemyAdapter()

    if isinstance(source, Iterable) and not isinstance(source, (str, bytes, Mapping)):
        from keyset_connection.adapters.memory import InMemoryAdapter

        return InMemoryAdapter()

    raise UnsupportedQueryShape(
        detail=f"Cannot paginate a source of type {type(source).__name__}",
        extra={"source_type": type(source).__name__},
    )


__all__ = ["SourceAdapter", "resolve_adapter"]
