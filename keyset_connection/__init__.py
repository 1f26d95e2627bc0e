"""Keyset (seek) pagination returning Relay-style connections.

Keyset pagination is:
- Stable: Rows inserted or deleted between requests don't shift pages
- Performant: Uses indexed seeks instead of OFFSET scans
- Deterministic: A unique tie-break column makes the order total

Usage:
    from keyset_connection import ConnectionConfig, apaginate

    connection = await apaginate(
        select(User),
        fetch,
        {"first": 50, "after": cursor, "sorts": [{"inserted_at": "desc"}]},
        ConnectionConfig(unique_column="id"),
    )
    next_cursor = connection.page_info.end_cursor
"""

from keyset_connection.adapters import (
    InMemoryAdapter,
    SQLAlchemyAdapter,
    SourceAdapter,
    resolve_adapter,
)
from keyset_connection.config import ConnectionConfig
from keyset_connection.connection import KeysetPaginator, apaginate, paginate
from keyset_connection.cursor import (
    Base64HashedCodec,
    CursorCodec,
    decode_cursor,
    encode_cursor,
)
from keyset_connection.exceptions import (
    ConflictingPageArguments,
    InvalidCursor,
    InvalidLimit,
    InvalidSortEntry,
    MissingPageDirection,
    MissingSortSpecification,
    PaginationError,
    UnsafeNullComparison,
    UnsupportedQueryShape,
)
from keyset_connection.planner import FetchPlan, plan_fetch
from keyset_connection.predicates import Boundary, build_boundary_predicate
from keyset_connection.request import PageRequest
from keyset_connection.schemas import Connection, Edge, PageInfo
from keyset_connection.settings import KeysetSettings, get_keyset_settings
from keyset_connection.sorting import SortDirection, SortEntry, SortSpec, normalize_sorts

__all__ = [
    # Cursors
    "Base64HashedCodec",
    "Boundary",
    # Errors
    "ConflictingPageArguments",
    # Schemas
    "Connection",
    # Configuration
    "ConnectionConfig",
    "CursorCodec",
    "Edge",
    "FetchPlan",
    # Adapters
    "InMemoryAdapter",
    "InvalidCursor",
    "InvalidLimit",
    "InvalidSortEntry",
    # Entry points
    "KeysetPaginator",
    "KeysetSettings",
    "MissingPageDirection",
    "MissingSortSpecification",
    "PageInfo",
    "PageRequest",
    "PaginationError",
    "SQLAlchemyAdapter",
    # Sorting
    "SortDirection",
    "SortEntry",
    "SortSpec",
    "SourceAdapter",
    "UnsafeNullComparison",
    "UnsupportedQueryShape",
    "apaginate",
    "build_boundary_predicate",
    "decode_cursor",
    "encode_cursor",
    "get_keyset_settings",
    "normalize_sorts",
    "paginate",
    "plan_fetch",
    "resolve_adapter",
]
