"""Integration tests for keyset pagination against SQLite (aiosqlite)."""
from __future__ import annotations

import pytest
from sqlalchemy import select

from keyset_connection import (
    ConnectionConfig,
    InvalidSortEntry,
    UnsafeNullComparison,
    UnsupportedQueryShape,
    apaginate,
    paginate,
)
from tests.utils import (
    ONE_SORT_CASES,
    THREE_SORT_CASES,
    User,
    abe_bea_cal_rows,
    generic_rows,
    make_people,
    page_ids,
    three_sort_rows,
)

pytestmark = pytest.mark.integration

BY_ID = ConnectionConfig(unique_column="id")
COALESCE_LAST_NAME = ConnectionConfig(unique_column="id", null_coalesce={"last_name": ""})


async def walk_forward(fetch, request, config, statement=None):
    """Collect node ids page by page following end cursors."""
    statement = statement if statement is not None else select(User)
    ids: list[int] = []
    cursor = None
    while True:
        args = dict(request)
        if cursor:
            args["after"] = cursor
        connection = await apaginate(statement, fetch, args, config)
        ids.extend(page_ids(connection))
        if not connection.page_info.has_next_page:
            return ids
        cursor = connection.page_info.end_cursor


async def walk_backward(fetch, request, config, statement=None):
    """Collect node ids page by page following start cursors."""
    statement = statement if statement is not None else select(User)
    ids: list[int] = []
    cursor = None
    while True:
        args = dict(request)
        if cursor:
            args["before"] = cursor
        connection = await apaginate(statement, fetch, args, config)
        ids[:0] = page_ids(connection)
        if not connection.page_info.has_previous_page:
            return ids
        cursor = connection.page_info.start_cursor


class TestSortedById:
    async def test_first_and_after(self, insert_users, fetch_scalars):
        await insert_users(generic_rows(10))

        first = await apaginate(select(User), fetch_scalars, {"first": 3}, BY_ID)
        second = await apaginate(
            select(User),
            fetch_scalars,
            {"first": 3, "after": first.page_info.end_cursor},
            BY_ID,
        )

        assert page_ids(first) == [1, 2, 3]
        assert (first.page_info.has_previous_page, first.page_info.has_next_page) == (False, True)
        assert page_ids(second) == [4, 5, 6]
        assert (second.page_info.has_previous_page, second.page_info.has_next_page) == (True, True)

    async def test_last_and_before(self, insert_users, fetch_scalars):
        await insert_users(generic_rows(10))

        last = await apaginate(select(User), fetch_scalars, {"last": 3}, BY_ID)
        before = await apaginate(
            select(User),
            fetch_scalars,
            {"last": 3, "before": last.page_info.start_cursor},
            BY_ID,
        )

        assert page_ids(last) == [8, 9, 10]
        assert (last.page_info.has_previous_page, last.page_info.has_next_page) == (True, False)
        assert page_ids(before) == [5, 6, 7]
        assert (before.page_info.has_previous_page, before.page_info.has_next_page) == (True, True)

    async def test_respects_caller_filters(self, insert_users, fetch_scalars):
        await insert_users(generic_rows(10))
        statement = select(User).where(User.id % 2 == 0)

        ids = await walk_forward(fetch_scalars, {"first": 2}, BY_ID, statement)

        assert ids == [2, 4, 6, 8, 10]


@pytest.mark.parametrize(("sorts", "expected"), ONE_SORT_CASES)
async def test_one_non_unique_sort(insert_users, fetch_scalars, sorts, expected):
    await insert_users(abe_bea_cal_rows())

    assert await walk_forward(fetch_scalars, {"sorts": sorts, "first": 3}, BY_ID) == expected
    assert await walk_backward(fetch_scalars, {"sorts": sorts, "last": 3}, BY_ID) == expected


@pytest.mark.parametrize(("sorts", "expected"), THREE_SORT_CASES)
@pytest.mark.parametrize("size", [1, 2, 4])
async def test_three_sorts(insert_users, fetch_scalars, sorts, expected, size):
    await insert_users(three_sort_rows())
    config = ConnectionConfig()

    assert await walk_forward(fetch_scalars, {"sorts": sorts, "first": size}, config) == expected
    assert await walk_backward(fetch_scalars, {"sorts": sorts, "last": size}, config) == expected


async def test_datetime_cursor_round_trips_through_database(insert_users, fetch_scalars):
    await insert_users(generic_rows(7))

    ids = await walk_forward(fetch_scalars, {"sorts": [{"inserted_at": "desc"}], "first": 2}, BY_ID)

    assert ids == [7, 6, 5, 4, 3, 2, 1]


async def test_matches_in_memory_pages(insert_users, fetch_scalars):
    """The same request pages identically over SQL and over a list."""
    rows = three_sort_rows()
    await insert_users(rows)
    request = {"sorts": [{"last_name": "desc"}, {"first_name": "asc"}], "first": 2}

    people = make_people(rows)
    in_memory = paginate(people, list, request, BY_ID)
    database = await apaginate(select(User), fetch_scalars, request, BY_ID)

    assert page_ids(database) == page_ids(in_memory)
    assert [edge.cursor for edge in database.edges] == [edge.cursor for edge in in_memory.edges]


class TestNullValues:
    ROWS = [
        {"id": 1, "first_name": "Alice"},
        {"id": 2, "first_name": "Bob", "last_name": "Brown"},
        {"id": 3, "first_name": "Charlie"},
        {"id": 4, "first_name": "David", "last_name": "Davis"},
    ]

    async def test_null_sort_values_without_coalescing_raise(self, insert_users, fetch_scalars):
        await insert_users([{"id": i, "first_name": f"First{i}"} for i in range(1, 5)])

        with pytest.raises(UnsafeNullComparison):
            await apaginate(
                select(User),
                fetch_scalars,
                {"sorts": [{"last_name": "asc"}], "first": 2},
                BY_ID,
            )

    async def test_null_past_the_page_without_coalescing_raises(self, insert_users, fetch_scalars):
        """NULLs compare lowest in SQLite, so a descending sort fetches them last."""
        await insert_users(self.ROWS[1:3])

        with pytest.raises(UnsafeNullComparison) as exc_info:
            await apaginate(
                select(User),
                fetch_scalars,
                {"sorts": [{"last_name": "desc"}], "first": 1},
                BY_ID,
            )

        assert exc_info.value.column == "last_name"

    async def test_forward_with_coalescing(self, insert_users, fetch_scalars):
        await insert_users(self.ROWS)

        ids = await walk_forward(
            fetch_scalars,
            {"sorts": [{"last_name": "asc"}], "first": 2},
            COALESCE_LAST_NAME,
        )

        assert ids == [1, 3, 2, 4]

    async def test_backward_with_coalescing(self, insert_users, fetch_scalars):
        await insert_users(self.ROWS)

        ids = await walk_backward(
            fetch_scalars,
            {"sorts": [{"last_name": "asc"}], "last": 2},
            COALESCE_LAST_NAME,
        )

        assert ids == [1, 3, 2, 4]

    async def test_distinct_entity_with_coalescing(self, insert_users, db_session):
        """DISTINCT selects get the coalesce expressions added to the projection."""
        await insert_users(self.ROWS)

        async def fetch(statement):
            return (await db_session.execute(statement)).all()

        ids = await walk_forward(
            fetch,
            {"sorts": [{"last_name": "asc"}], "first": 3},
            COALESCE_LAST_NAME,
            select(User).distinct(),
        )

        assert ids == [1, 3, 2, 4]

    async def test_distinct_custom_projection_is_rejected(self, insert_users, db_session):
        await insert_users(self.ROWS)
        fetched = []

        async def fetch(statement):
            fetched.append(statement)
            return (await db_session.execute(statement)).all()

        with pytest.raises(UnsupportedQueryShape):
            await apaginate(
                select(User.id, User.last_name).distinct(),
                fetch,
                {"sorts": [{"last_name": "asc"}], "first": 2},
                COALESCE_LAST_NAME,
            )

        assert fetched == []


async def test_custom_projection_rows(insert_users, db_session):
    await insert_users(abe_bea_cal_rows())

    async def fetch(statement):
        return (await db_session.execute(statement)).all()

    connection = await apaginate(
        select(User.id, User.first_name),
        fetch,
        {"sorts": [{"first_name": "desc"}], "first": 2},
        BY_ID,
    )

    assert [(row.id, row.first_name) for row in connection.nodes] == [(5, "Cal"), (6, "Cal")]


async def test_unknown_sort_column(insert_users, fetch_scalars):
    await insert_users(generic_rows(2))

    with pytest.raises(InvalidSortEntry):
        await apaginate(
            select(User),
            fetch_scalars,
            {"sorts": [{"bite_strength": "asc"}], "first": 2},
            BY_ID,
        )
