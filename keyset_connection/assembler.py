"""Turn fetched rows into a Connection.

Page info is a pure function of the request shape and of whether the
lookahead row came back:

    request shape      has_previous_page   has_next_page
    after + first      True                more_pages
    after only         True                False
    before + last      more_pages          True
    before only        False               True
    first only         False               more_pages
    last only          more_pages          False
    neither            False               False

A cursor argument implies at least one record lies on its far side, since
the cursor was minted from a real record.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from keyset_connection.cursor import CursorCodec, cursor_key, encode_cursor
from keyset_connection.exceptions import UnsafeNullComparison, UnsupportedQueryShape
from keyset_connection.request import PageRequest
from keyset_connection.schemas import Connection, Edge, PageInfo
from keyset_connection.sorting import SortSpec


def build_page_info(
    request: PageRequest,
    edges: Sequence[Edge[Any]],
    more_pages: bool,
) -> PageInfo:
    """Compute PageInfo for the current page."""
    has_first = request.first is not None
    has_last = request.last is not None

    if request.after is not None:
        has_previous, has_next = True, more_pages and has_first
    elif request.before is not None:
        has_previous, has_next = more_pages and has_last, True
    elif has_first:
        has_previous, has_next = False, more_pages
    elif has_last:
        has_previous, has_next = more_pages, False
    else:
        has_previous, has_next = False, False

    return PageInfo(
        has_previous_page=has_previous,
        has_next_page=has_next,
        start_cursor=edges[0].cursor if edges else None,
        end_cursor=edges[-1].cursor if edges else None,
    )


def assemble_page(
    rows: Sequence[Any],
    request: PageRequest,
    sorts: SortSpec,
    codec: CursorCodec | None = None,
    null_coalesce: Mapping[str, Any] | None = None,
) -> Connection[Any]:
    """Trim the lookahead row, restore logical order and build edges.

    Args:
        rows: Records as fetched, in physical order.
        request: The validated page request.
        sorts: Normalized sort spec the cursors are minted for.
        codec: Cursor codec (default codec when None).
        null_coalesce: Substitute values for NULL, per column.

    Returns:
        The page as a Connection.

    Raises:
        UnsafeNullComparison: If a fetched row, the lookahead row included,
            holds NULL in a sort column without a coalesce value.
        UnsupportedQueryShape: If a sort value cannot be encoded in a cursor.
    """
    nodes = list(rows)
    columns = sorts.cursor_columns
    null_coalesce = null_coalesce or {}
    # Lookahead row included, since the next page starts past it
    for node in nodes:
        key = cursor_key(node, columns, null_coalesce)
        for column in columns:
            if key[column] is None:
                raise UnsafeNullComparison(column)

    limit = request.count
    more_pages = limit is not None and len(nodes) > limit
    if more_pages:
        nodes = nodes[:limit]

    if request.backward:
        nodes.reverse()

    edges = [
        Edge(node=node, cursor=_edge_cursor(node, columns, null_coalesce, codec))
        for node in nodes
    ]

    return Connection(edges=edges, page_info=build_page_info(request, edges, more_pages))


def _edge_cursor(
    node: Any,
    columns: Sequence[str],
    null_coalesce: Mapping[str, Any],
    codec: CursorCodec | None,
) -> str:
    key = cursor_key(node, columns, null_coalesce)
    try:
        return encode_cursor(key, columns, null_coalesce, codec)
    except TypeError as exc:
        raise UnsupportedQueryShape(
            detail=f"Sort column values cannot be encoded in a cursor: {exc}",
            extra={"columns": list(columns)},
        ) from exc


__all__ = ["assemble_page", "build_page_info"]
