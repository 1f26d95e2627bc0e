"""Physical order and limit for a page fetch.

"Last N before a cursor" runs as "first N past the cursor in the flipped
order": every direction is reversed for the fetch and the rows are reversed
back afterwards. One row more than requested is fetched; whether it shows
up tells the assembler if another page exists, without a COUNT query.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from keyset_connection.predicates import Boundary, Predicate, build_boundary_predicate
from keyset_connection.request import PageRequest
from keyset_connection.sorting import SortSpec


@dataclass(frozen=True, slots=True)
class FetchPlan:
    """Everything a source adapter needs to shape the fetch.

    Attributes:
        sorts: Logical sort spec (the order pages are returned in).
        physical_order: Sort spec the fetch must use.
        predicate: Boundary condition, or None without a cursor.
        limit: Rows to fetch (page size + 1 lookahead row).
        reverse: Whether fetched rows must be reversed to logical order.
        null_coalesce: Substitute values for NULL, per column.
    """

    sorts: SortSpec
    physical_order: SortSpec
    predicate: Predicate | None
    limit: int
    reverse: bool
    null_coalesce: Mapping[str, Any] = field(default_factory=dict)

    def describe(self) -> str:
        order = ", ".join(f"{e.column} {e.direction.value.upper()}" for e in self.physical_order)
        where = str(self.predicate) if self.predicate is not None else "-"
        return f"ORDER BY {order} WHERE {where} LIMIT {self.limit} reverse={self.reverse}"


def plan_fetch(
    sorts: SortSpec,
    request: PageRequest,
    key: Mapping[str, Any] | None = None,
    null_coalesce: Mapping[str, Any] | None = None,
) -> FetchPlan:
    """Plan the bounded fetch for a validated request.

    Args:
        sorts: Normalized sort spec.
        request: Validated page request.
        key: Decoded cursor key, when the request carries a cursor.
        null_coalesce: Substitute values for NULL, per column.

    Returns:
        The fetch plan.
    """
    null_coalesce = dict(null_coalesce or {})

    predicate = None
    if key is not None:
        boundary = Boundary.BEFORE if request.before is not None else Boundary.AFTER
        predicate = build_boundary_predicate(sorts, boundary, key, null_coalesce)

    return FetchPlan(
        sorts=sorts,
        physical_order=sorts.flipped() if request.backward else sorts,
        predicate=predicate,
        limit=request.count + 1,
        reverse=request.backward,
        null_coalesce=null_coalesce,
    )


__all__ = ["FetchPlan", "plan_fetch"]
