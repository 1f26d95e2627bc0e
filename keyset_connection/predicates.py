"""Boundary predicates for seeking past a cursor.

For a sort spec ``[(c1, d1), ..., (cN, dN)]`` and a cursor key
``(v1, ..., vN)``, "strictly after this position" is a lexicographic
comparison, built by folding from the last column to the first:

    pred_N = cN op vN
    pred_k = (ck op vk) OR (ck = vk AND pred_k+1)

where ``op`` is ``>`` for ascending columns and ``<`` for descending ones,
and both flip when seeking *before* the cursor. With ORDER BY
(created_at DESC, id ASC) and a cursor at (t1, 7), after-the-cursor is:

    created_at < t1 OR (created_at = t1 AND id > 7)

The predicate is a small backend-neutral tree; adapters compile it to SQL
or evaluate it against in-memory records.
"""

from __future__ import annotations

import operator
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from functools import reduce
from typing import Any

from keyset_connection.exceptions import UnsafeNullComparison
from keyset_connection.records import record_value
from keyset_connection.sorting import SortDirection, SortEntry, SortSpec

_NO_COALESCE = object()


class Boundary(StrEnum):
    """Which side of the cursor a page lies on."""

    AFTER = "after"
    BEFORE = "before"


class Operator(StrEnum):
    GT = ">"
    LT = "<"
    EQ = "="

    @property
    def func(self) -> Callable[[Any, Any], bool]:
        return _OPERATOR_FUNCS[self]


_OPERATOR_FUNCS: dict[Operator, Callable[[Any, Any], bool]] = {
    Operator.GT: operator.gt,
    Operator.LT: operator.lt,
    Operator.EQ: operator.eq,
}


def strict_operator(direction: SortDirection, boundary: Boundary) -> Operator:
    """Comparison selecting rows strictly past the cursor on one column."""
    ascending = direction == SortDirection.ASC
    if boundary == Boundary.BEFORE:
        ascending = not ascending
    return Operator.GT if ascending else Operator.LT


@dataclass(frozen=True, slots=True)
class Comparison:
    """``column <op> value``, comparing ``COALESCE(column, coalesce)`` when set."""

    column: str
    operator: Operator
    value: Any
    coalesce: Any = _NO_COALESCE

    @property
    def coalesced(self) -> bool:
        return self.coalesce is not _NO_COALESCE

    def evaluate(self, record: Any) -> bool:
        actual = record_value(record, self.column)
        if actual is None and self.coalesced:
            actual = self.coalesce
        # NULL compares as unknown, which filters the row out
        if actual is None or self.value is None:
            return False
        return self.operator.func(actual, self.value)

    def columns(self) -> tuple[str, ...]:
        return (self.column,)

    def __str__(self) -> str:
        column = f"COALESCE({self.column}, {self.coalesce!r})" if self.coalesced else self.column
        return f"{column} {self.operator.value} {self.value!r}"


@dataclass(frozen=True, slots=True)
class And:
    left: Predicate
    right: Predicate

    def evaluate(self, record: Any) -> bool:
        return self.left.evaluate(record) and self.right.evaluate(record)

    def columns(self) -> tuple[str, ...]:
        return _merge_columns(self.left, self.right)

    def __str__(self) -> str:
        return f"({self.left} AND {self.right})"


@dataclass(frozen=True, slots=True)
class Or:
    left: Predicate
    right: Predicate

    def evaluate(self, record: Any) -> bool:
        return self.left.evaluate(record) or self.right.evaluate(record)

    def columns(self) -> tuple[str, ...]:
        return _merge_columns(self.left, self.right)

    def __str__(self) -> str:
        return f"({self.left} OR {self.right})"


Predicate = Comparison | And | Or


def _merge_columns(left: Predicate, right: Predicate) -> tuple[str, ...]:
    return tuple(dict.fromkeys(left.columns() + right.columns()))


def compare(
    column: str,
    op: Operator,
    value: Any,
    null_coalesce: Mapping[str, Any],
) -> Comparison:
    """Build one column comparison, refusing to compare against NULL.

    Raises:
        UnsafeNullComparison: If ``value`` is None and the column has no
            coalesce value.
    """
    coalesce = null_coalesce.get(column, _NO_COALESCE)
    if coalesce is None:
        coalesce = _NO_COALESCE
    if value is None:
        if coalesce is _NO_COALESCE:
            raise UnsafeNullComparison(column)
        value = coalesce
    return Comparison(column, op, value, coalesce)


def build_boundary_predicate(
    sorts: SortSpec,
    boundary: Boundary,
    key: Mapping[str, Any],
    null_coalesce: Mapping[str, Any] | None = None,
) -> Predicate:
    """Build the predicate selecting rows strictly past ``key``.

    Args:
        sorts: Normalized sort spec (logical order, not the physical one).
        boundary: AFTER for forward pages, BEFORE for backward pages.
        key: Cursor key with a value for every sort column.
        null_coalesce: Substitute values for NULL, per column.

    Returns:
        A predicate tree equivalent to a lexicographic tuple comparison.

    Raises:
        UnsafeNullComparison: If a key value is None for a column without a
            coalesce value.
    """
    null_coalesce = null_coalesce or {}
    *leading, last = sorts.entries

    def strict(entry: SortEntry) -> Comparison:
        return compare(
            entry.column,
            strict_operator(entry.direction, boundary),
            key[entry.column],
            null_coalesce,
        )

    def fold(inner: Predicate, entry: SortEntry) -> Predicate:
        equal = compare(entry.column, Operator.EQ, key[entry.column], null_coalesce)
        return Or(strict(entry), And(equal, inner))

    return reduce(fold, reversed(leading), strict(last))


__all__ = [
    "And",
    "Boundary",
    "Comparison",
    "Operator",
    "Or",
    "Predicate",
    "build_boundary_predicate",
    "compare",
    "strict_operator",
]
