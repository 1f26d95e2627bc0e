"""Connection response schemas (Relay cursor connections).

A page is returned as a Connection: edges pairing each node with its cursor,
and PageInfo describing how the page relates to the rest of the set.

    {
        "edges": [{"node": ..., "cursor": "Tr7wn5SRWzI1XQ=="}, ...],
        "page_info": {
            "has_previous_page": false,
            "has_next_page": true,
            "start_cursor": "Tr7wn5SRWzI1XQ==",
            "end_cursor": "..."
        }
    }
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class PageInfo(BaseModel):
    """Pagination metadata following the GraphQL Relay specification.

    Attributes:
        has_previous_page: Whether there are items before the current page
        has_next_page: Whether there are items after the current page
        start_cursor: Cursor of the first item in this page
        end_cursor: Cursor of the last item in this page
    """

    has_previous_page: bool = Field(
        description="Whether previous items exist"
    )
    has_next_page: bool = Field(
        description="Whether more items exist"
    )
    start_cursor: str | None = Field(
        default=None,
        description="Cursor of the first item",
    )
    end_cursor: str | None = Field(
        default=None,
        description="Cursor of the last item",
    )

    model_config = {"frozen": True}


class Edge(BaseModel, Generic[T]):
    """A node paired with the cursor that points at it.

    Attributes:
        node: The actual data item
        cursor: Cursor for this specific item
    """

    node: T = Field(description="The data item")
    cursor: str = Field(description="Cursor for this item")

    model_config = {"frozen": True, "arbitrary_types_allowed": True}


class Connection(BaseModel, Generic[T]):
    """One page of a keyset-paginated result set.

    Client navigation:
        # Next page (using end_cursor from previous response)
        {"first": 10, "after": page_info.end_cursor}

        # Previous page (using start_cursor)
        {"last": 10, "before": page_info.start_cursor}

    Attributes:
        edges: List of Edge objects containing nodes and cursors
        page_info: Navigation metadata
    """

    edges: list[Edge[T]] = Field(
        default_factory=list,
        description="List of edges (items with cursors)",
    )
    page_info: PageInfo = Field(
        description="Pagination metadata",
    )

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    @property
    def nodes(self) -> list[T]:
        """Get just the nodes without edge wrappers."""
        return [edge.node for edge in self.edges]


__all__ = [
    "Connection",
    "Edge",
    "PageInfo",
]
