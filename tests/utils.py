"""Test utilities and helper functions.

Usage:
    from tests.utils import Person, make_people, page_ids

    people = make_people([{"id": 1, "first_name": "Abe"}])
    connection = paginate(people, list, {"first": 1}, ConnectionConfig(unique_column="id"))
    assert page_ids(connection) == [1]
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

BASE_TIME = datetime(2025, 1, 15, 10, 30, 0)


@dataclass(frozen=True)
class Person:
    """In-memory stand-in for a users row."""

    id: int
    first_name: str | None = None
    last_name: str | None = None
    inserted_at: datetime | None = None


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    first_name: Mapped[str | None] = mapped_column(String(100))
    last_name: Mapped[str | None] = mapped_column(String(100))
    inserted_at: Mapped[datetime | None] = mapped_column(DateTime)


def with_inserted_at(row: dict[str, Any]) -> dict[str, Any]:
    """Fill inserted_at from the id so insertion order is deterministic."""
    return {"inserted_at": BASE_TIME + timedelta(minutes=row["id"]), **row}


def make_people(rows: list[dict[str, Any]]) -> list[Person]:
    """Build people from partial attribute maps."""
    return [Person(**with_inserted_at(row)) for row in rows]


def generic_rows(count: int) -> list[dict[str, Any]]:
    return [{"id": i, "first_name": f"First{i}", "last_name": f"Last{i}"} for i in range(1, count + 1)]


def page_ids(connection: Any) -> list[int]:
    """Node ids of a connection, in page order."""
    return [node.id for node in connection.nodes]


def abe_bea_cal_rows() -> list[dict[str, Any]]:
    """Six users in pairs sharing a first name."""
    return [
        {"id": 1, "first_name": "Abe"},
        {"id": 2, "first_name": "Abe"},
        {"id": 3, "first_name": "Bea"},
        {"id": 4, "first_name": "Bea"},
        {"id": 5, "first_name": "Cal"},
        {"id": 6, "first_name": "Cal"},
    ]


def three_sort_rows() -> list[dict[str, Any]]:
    """Six users where first name, last name and id all break ties."""
    return [
        {"id": 1, "first_name": "Abe", "last_name": "Ableton"},
        {"id": 2, "first_name": "Abe", "last_name": "Avila"},
        {"id": 3, "first_name": "Ann", "last_name": "Ableton"},
        {"id": 4, "first_name": "Bea", "last_name": "Bryant"},
        {"id": 5, "first_name": "Bea", "last_name": "Bryant"},
        {"id": 6, "first_name": "Cal", "last_name": "Carter"},
    ]


# (sorts, expected id order) over abe_bea_cal_rows() with unique column "id"
ONE_SORT_CASES: list[tuple[list[dict[str, str]], list[int]]] = [
    ([{"first_name": "asc"}], [1, 2, 3, 4, 5, 6]),
    ([{"first_name": "desc"}], [5, 6, 3, 4, 1, 2]),
]

# (sorts, expected id order) over three_sort_rows()
THREE_SORT_CASES: list[tuple[list[dict[str, str]], list[int]]] = [
    ([{"first_name": "asc"}, {"last_name": "asc"}, {"id": "asc"}], [1, 2, 3, 4, 5, 6]),
    ([{"first_name": "asc"}, {"last_name": "asc"}, {"id": "desc"}], [1, 2, 3, 5, 4, 6]),
    ([{"first_name": "asc"}, {"last_name": "desc"}, {"id": "asc"}], [2, 1, 3, 4, 5, 6]),
    ([{"first_name": "asc"}, {"last_name": "desc"}, {"id": "desc"}], [2, 1, 3, 5, 4, 6]),
    ([{"first_name": "desc"}, {"last_name": "asc"}, {"id": "asc"}], [6, 4, 5, 3, 1, 2]),
    ([{"first_name": "desc"}, {"last_name": "asc"}, {"id": "desc"}], [6, 5, 4, 3, 1, 2]),
    ([{"first_name": "desc"}, {"last_name": "desc"}, {"id": "asc"}], [6, 4, 5, 3, 2, 1]),
    ([{"first_name": "desc"}, {"last_name": "desc"}, {"id": "desc"}], [6, 5, 4, 3, 2, 1]),
]
