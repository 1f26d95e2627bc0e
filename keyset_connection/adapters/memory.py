"""In-memory source adapter.

Executes a fetch plan over an iterable of mappings or objects with the same
semantics a SQL database gives the generated query: comparisons against NULL
are unknown (the row is filtered out), and NULLs sort last ascending and
first descending, as in PostgreSQL.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from keyset_connection.planner import FetchPlan
from keyset_connection.records import record_value
from keyset_connection.sorting import SortDirection, SortEntry


class InMemoryAdapter:
    """Paginate a list of records without a database.

    Example:
        people = [{"id": 1, "name": "Abe"}, {"id": 2, "name": "Bea"}]
        connection = paginate(people, list, {"first": 1}, ConnectionConfig(unique_column="id"))
    """

    def apply(self, source: Iterable[Any], plan: FetchPlan) -> list[Any]:
        rows = list(source)
        if plan.predicate is not None:
            rows = [row for row in rows if plan.predicate.evaluate(row)]

        # Stable sorts, least significant key first
        for entry in reversed(plan.physical_order.entries):
            rows.sort(
                key=lambda row, entry=entry: self._sort_key(row, entry, plan),
                reverse=entry.direction == SortDirection.DESC,
            )

        return rows[: plan.limit]

    def unwrap(self, rows: Sequence[Any], plan: FetchPlan) -> list[Any]:
        return list(rows)

    @staticmethod
    def _sort_key(row: Any, entry: SortEntry, plan: FetchPlan) -> tuple[bool, Any]:
        value = record_value(row, entry.column)
        if value is None:
            value = plan.null_coalesce.get(entry.column)
        # (is_null, value): NULL sorts above every value, so last when ascending
        return (value is None, value)


__all__ = ["InMemoryAdapter"]
