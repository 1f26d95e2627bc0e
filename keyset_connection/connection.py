"""Relay-style connections over keyset pagination.

The orchestrator validates the request, normalizes the sorts, decodes the
cursor and plans the fetch before any data access. The caller supplies the
source and a fetch function; the engine shapes the source and never runs
queries itself:

    async def fetch(stmt):
        return (await session.scalars(stmt)).all()

    connection = await apaginate(
        select(User),
        fetch,
        {"first": 20, "after": cursor, "sorts": [{"last_name": "asc"}]},
        ConnectionConfig(unique_column="id"),
    )

    for edge in connection.edges:
        print(edge.node, edge.cursor)
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any

from keyset_connection.adapters.base import SourceAdapter, resolve_adapter
from keyset_connection.assembler import assemble_page
from keyset_connection.config import ConnectionConfig
from keyset_connection.cursor import decode_cursor
from keyset_connection.exceptions import InvalidCursor
from keyset_connection.log import get_lazy_logger
from keyset_connection.planner import FetchPlan, plan_fetch
from keyset_connection.request import PageRequest, coerce_page_request, validate_page_request
from keyset_connection.schemas import Connection
from keyset_connection.sorting import SortSpec, normalize_sorts

logger = get_lazy_logger(__name__)


class KeysetPaginator:
    """One page request, validated and planned.

    Construction performs every check that does not need data, so an invalid
    request fails before the caller touches the database. ``prepare`` and
    ``complete`` bracket a fetch the caller runs however it likes.

    Args:
        request: A PageRequest or a mapping of connection arguments.
        config: Request-independent options.

    Raises:
        PaginationError: For any invalid argument, sort entry or cursor.
        UnsafeNullComparison: If the cursor holds NULL for a column without
            a coalesce value.

    Example:
        paginator = KeysetPaginator({"last": 10, "before": cursor}, config)
        rows = session.scalars(paginator.prepare(select(User))).all()
        connection = paginator.complete(rows)
    """

    def __init__(
        self,
        request: PageRequest | Mapping[str, Any],
        config: ConnectionConfig | None = None,
    ) -> None:
        self.config = config or ConnectionConfig()
        self.request = coerce_page_request(request)
        validate_page_request(self.request, self.config.max_page_size)

        self.sorts: SortSpec = normalize_sorts(self.request.sorts, self.config.unique_column)
        self.key = self._decode_key()
        self.plan: FetchPlan = plan_fetch(
            self.sorts,
            self.request,
            self.key,
            self.config.null_coalesce,
        )
        self._adapter: SourceAdapter | None = None
        logger.debug(lambda: f"Planned keyset fetch: {self.plan.describe()}")

    def _decode_key(self) -> dict[str, Any] | None:
        cursor = self.request.cursor
        if cursor is None:
            return None
        try:
            return decode_cursor(
                cursor,
                self.sorts.cursor_columns,
                self.config.null_coalesce,
                self.config.cursor_codec,
            )
        except InvalidCursor:
            raise InvalidCursor(self.request.cursor_argument) from None

    def prepare(self, source: Any) -> Any:
        """Return ``source`` ordered, bounded and limited for this page."""
        self._adapter = resolve_adapter(source, self.config.adapter)
        return self._adapter.apply(source, self.plan)

    def complete(self, rows: Iterable[Any]) -> Connection[Any]:
        """Build the Connection from the rows fetched for ``prepare``'s result."""
        adapter = self._adapter or resolve_adapter(rows, self.config.adapter)
        records = adapter.unwrap(list(rows), self.plan)
        logger.debug(
            "Fetched %d rows (limit %d)",
            lambda: len(records),
            self.plan.limit,
        )
        return assemble_page(
            records,
            self.request,
            self.sorts,
            codec=self.config.cursor_codec,
            null_coalesce=self.config.null_coalesce,
        )


def paginate(
    source: Any,
    fetch: Callable[[Any], Iterable[Any]],
    request: PageRequest | Mapping[str, Any],
    config: ConnectionConfig | None = None,
) -> Connection[Any]:
    """Fetch one page of ``source`` as a Connection.

    Args:
        source: A SQLAlchemy Select or an iterable of records.
        fetch: Called exactly once with the prepared source; returns rows.
        request: Connection arguments (first/last/after/before/sorts).
        config: Request-independent options.

    Returns:
        The page, with edges in logical order.
    """
    paginator = KeysetPaginator(request, config)
    return paginator.complete(fetch(paginator.prepare(source)))


async def apaginate(
    source: Any,
    fetch: Callable[[Any], Awaitable[Iterable[Any]]],
    request: PageRequest | Mapping[str, Any],
    config: ConnectionConfig | None = None,
) -> Connection[Any]:
    """Async variant of :func:`paginate`; ``fetch`` is awaited exactly once."""
    paginator = KeysetPaginator(request, config)
    rows = await fetch(paginator.prepare(source))
    return paginator.complete(rows)


__all__ = ["KeysetPaginator", "apaginate", "paginate"]
