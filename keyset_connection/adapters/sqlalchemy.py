"""SQLAlchemy source adapter.

Applies a fetch plan to a ``Select`` statement without hiding the query:

    stmt = select(User).where(User.is_active == True)
    stmt = SQLAlchemyAdapter().apply(stmt, plan)

    # Generates, for sorts [last_name ASC, id ASC] after a cursor at ("Ng", 7):
    #   WHERE last_name > 'Ng' OR (last_name = 'Ng' AND id > 7)
    #   ORDER BY last_name ASC, id ASC
    #   LIMIT :page_size_plus_one

Columns with a null coalesce value are ordered and compared through
``COALESCE(column, value)``. For ``DISTINCT`` statements the database needs
ORDER BY expressions in the select list, so the coalesce expressions are
added to the projection as ``coalesce_<column>`` labels. That is only
possible when the statement selects a whole entity or table; a custom
projection is rejected.

The caller's statement should not carry its own ORDER BY; the keyset order
is appended to whatever is already there.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import Select, and_, asc, desc, func, or_
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.engine import Row
from sqlalchemy.sql.elements import ColumnElement

from keyset_connection.exceptions import InvalidSortEntry, UnsupportedQueryShape
from keyset_connection.log import get_lazy_logger
from keyset_connection.planner import FetchPlan
from keyset_connection.predicates import And, Comparison, Or, Predicate
from keyset_connection.sorting import SortDirection

logger = get_lazy_logger(__name__)

COALESCE_LABEL_PREFIX = "coalesce_"


class SQLAlchemyAdapter:
    """Apply keyset ordering, seek condition and limit to a Select."""

    def apply(self, statement: Select[Any], plan: FetchPlan) -> Select[Any]:
        columns = {
            name: self.resolve_column(statement, name) for name in plan.sorts.cursor_columns
        }
        order_terms: dict[str, Any] = {
            name: (
                func.coalesce(column, plan.null_coalesce[name])
                if plan.null_coalesce.get(name) is not None
                else column
            )
            for name, column in columns.items()
        }
        coalesced = [name for name in columns if plan.null_coalesce.get(name) is not None]

        if coalesced and _is_distinct(statement):
            if not _selects_whole_source(statement):
                raise UnsupportedQueryShape(
                    detail=(
                        "DISTINCT queries with custom select clauses and null_coalesce are not "
                        "supported. ORDER BY expressions must appear in the select list of a "
                        "DISTINCT query, but a custom select clause cannot be modified. Either "
                        "remove DISTINCT, remove null_coalesce, or include the COALESCE "
                        "expressions in your select clause manually."
                    ),
                    extra={"columns": coalesced},
                )
            labels = {name: f"{COALESCE_LABEL_PREFIX}{name}" for name in coalesced}
            statement = statement.add_columns(
                *(order_terms[name].label(labels[name]) for name in coalesced)
            )
            # Refer to the select-list labels from ORDER BY
            order_terms.update(labels)

        for entry in plan.physical_order:
            term = order_terms[entry.column]
            statement = statement.order_by(
                desc(term) if entry.direction == SortDirection.DESC else asc(term)
            )

        if plan.predicate is not None:
            statement = statement.where(self.compile_predicate(plan.predicate, columns))

        return statement.limit(plan.limit)

    def unwrap(self, rows: Sequence[Any], plan: FetchPlan) -> list[Any]:
        """Reduce ``(entity, coalesce_...)`` rows to the entity."""
        return [_row_entity(row) for row in rows]

    def compile_predicate(
        self,
        predicate: Predicate,
        columns: dict[str, ColumnElement[Any]],
    ) -> ColumnElement[bool]:
        """Compile a predicate tree into a SQLAlchemy boolean expression."""
        if isinstance(predicate, Comparison):
            column: Any = columns[predicate.column]
            if predicate.coalesced:
                column = func.coalesce(column, predicate.coalesce)
            return predicate.operator.func(column, predicate.value)
        if isinstance(predicate, And):
            return and_(
                self.compile_predicate(predicate.left, columns),
                self.compile_predicate(predicate.right, columns),
            )
        if isinstance(predicate, Or):
            return or_(
                self.compile_predicate(predicate.left, columns),
                self.compile_predicate(predicate.right, columns),
            )
        raise TypeError(f"Unknown predicate node {type(predicate).__name__}")

    @staticmethod
    def resolve_column(statement: Select[Any], name: str) -> ColumnElement[Any]:
        """Find the column called ``name`` among the statement's known columns.

        Names are matched against mapped column attributes and FROM clause
        columns; arbitrary attributes are never looked up from caller input.

        Raises:
            InvalidSortEntry: If the statement has no such column.
        """
        for description in statement.column_descriptions:
            entity = description.get("entity")
            if entity is None:
                continue
            info = sa_inspect(entity, raiseerr=False)
            mapper = getattr(info, "mapper", None)
            if mapper is not None and name in mapper.column_attrs:
                return getattr(entity, name)

        for from_clause in statement.get_final_froms():
            if name in from_clause.c:
                return from_clause.c[name]

        if name in statement.selected_columns:
            return statement.selected_columns[name]

        raise InvalidSortEntry(f"Unknown sort column '{name}'", entry={name: None})


def _is_distinct(statement: Select[Any]) -> bool:
    # Select exposes no public accessor for its DISTINCT state
    return bool(getattr(statement, "_distinct", False) or getattr(statement, "_distinct_on", ()))


def _selects_whole_source(statement: Select[Any]) -> bool:
    descriptions = statement.column_descriptions
    if len(descriptions) == 1:
        entity = descriptions[0].get("entity")
        if entity is not None and descriptions[0].get("expr") is entity:
            return True

    froms = statement.get_final_froms()
    if len(froms) != 1:
        return False
    selected = [column.key for column in statement.selected_columns]
    return selected == list(froms[0].c.keys())


def _row_entity(row: Any) -> Any:
    if isinstance(row, Row) and len(row) > 0:
        first = row[0]
        if sa_inspect(first, raiseerr=False) is not None and not isinstance(first, type):
            return first
    return row


__all__ = ["COALESCE_LABEL_PREFIX", "SQLAlchemyAdapter"]
