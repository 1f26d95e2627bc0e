"""Sort specification normalization.

Keyset pagination needs a *total* order: if two records can compare equal,
a cursor pointing at one of them cannot say which side of the boundary the
other belongs on, and pages skip or repeat rows. The normalizer enforces one
column per entry, rejects repeated columns and appends the configured unique
column as a final ascending tie-break.

Sorts arrive in the shape GraphQL arguments use, a list of single-key maps:

    [{"first_name": "asc"}, {"inserted_at": "desc"}]
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from keyset_connection.exceptions import InvalidSortEntry, MissingSortSpecification


class SortDirection(StrEnum):
    """Direction of a single ORDER BY term."""

    ASC = "asc"
    DESC = "desc"

    def flipped(self) -> SortDirection:
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


@dataclass(frozen=True, slots=True)
class SortEntry:
    """One ``(column, direction)`` term of a sort specification."""

    column: str
    direction: SortDirection = SortDirection.ASC

    def __post_init__(self) -> None:
        if not isinstance(self.direction, SortDirection):
            object.__setattr__(self, "direction", parse_direction(self.direction, self))

    def flipped(self) -> SortEntry:
        return SortEntry(self.column, self.direction.flipped())


@dataclass(frozen=True, slots=True)
class SortSpec:
    """A canonical, duplicate-free sort specification.

    Attributes:
        entries: Sort terms in significance order (primary first).
    """

    entries: tuple[SortEntry, ...]

    @property
    def cursor_columns(self) -> tuple[str, ...]:
        """Column names in sort order; the shape of every cursor key."""
        return tuple(entry.column for entry in self.entries)

    def flipped(self) -> SortSpec:
        return SortSpec(tuple(entry.flipped() for entry in self.entries))

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


def parse_direction(value: Any, entry: Any = None) -> SortDirection:
    """Coerce ``"asc"``/``"desc"`` (any case) or a SortDirection."""
    if isinstance(value, SortDirection):
        return value
    if isinstance(value, str):
        try:
            return SortDirection(value.lower())
        except ValueError:
            pass
    raise InvalidSortEntry(
        f"Sort direction must be 'asc' or 'desc', got {value!r}",
        entry=entry,
    )


def parse_sort_entry(entry: Any) -> SortEntry:
    """Build a SortEntry from a single-key mapping or pass one through.

    Raises:
        InvalidSortEntry: If the entry names zero or several columns, or
            the column/direction is malformed.
    """
    if isinstance(entry, SortEntry):
        return entry

    if not isinstance(entry, Mapping) or len(entry) != 1:
        raise InvalidSortEntry(entry=entry)

    ((column, direction),) = entry.items()
    if not isinstance(column, str) or not column:
        raise InvalidSortEntry(f"Sort column must be a non-empty string, got {column!r}", entry=entry)

    return SortEntry(column, parse_direction(direction, entry))


def normalize_sorts(
    sorts: Iterable[Any] | None,
    unique_column: str | None = None,
) -> SortSpec:
    """Validate caller sorts and make them a total order.

    Args:
        sorts: Caller sort entries, possibly empty or None.
        unique_column: Column appended as ``asc`` when not already sorted on.

    Returns:
        The canonical SortSpec.

    Raises:
        InvalidSortEntry: For a malformed or repeated entry.
        MissingSortSpecification: If there is nothing to sort by.

    Example:
        >>> normalize_sorts([{"first_name": "desc"}], unique_column="id").cursor_columns
        ('first_name', 'id')
    """
    if sorts is None:
        sorts = ()
    elif isinstance(sorts, (str, bytes, Mapping)) or not isinstance(sorts, Iterable):
        raise InvalidSortEntry("'sorts' must be a list of single-column sort entries", entry=sorts)

    entries: list[SortEntry] = []
    seen: set[str] = set()
    for raw in sorts:
        entry = parse_sort_entry(raw)
        if entry.column in seen:
            raise InvalidSortEntry(f"Column '{entry.column}' appears more than once in 'sorts'", entry=raw)
        seen.add(entry.column)
        entries.append(entry)

    if unique_column and unique_column not in seen:
        entries.append(SortEntry(unique_column, SortDirection.ASC))

    if not entries:
        raise MissingSortSpecification()

    return SortSpec(tuple(entries))


__all__ = [
    "SortDirection",
    "SortEntry",
    "SortSpec",
    "normalize_sorts",
    "parse_direction",
    "parse_sort_entry",
]
