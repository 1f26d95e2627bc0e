"""Page request arguments and their validation.

Arguments follow the Relay connection spec: ``first``/``after`` page forward,
``last``/``before`` page backward. Mixing the two styles is rejected before
any data access.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from keyset_connection.exceptions import (
    ConflictingPageArguments,
    InvalidLimit,
    MissingPageDirection,
)

# Checked in order; the first match wins.
_CONFLICTS: tuple[tuple[tuple[str, str], str], ...] = (
    (
        ("first", "last"),
        "Including a value for both first and last is strongly discouraged, "
        "as it is likely to lead to confusing queries and results.",
    ),
    (
        ("before", "after"),
        "Although logically possible, it doesn't make sense for pagination.",
    ),
    (
        ("first", "before"),
        "Although logically possible, it doesn't make sense for pagination.",
    ),
    (
        ("last", "after"),
        "Although logically possible, it doesn't make sense for pagination.",
    ),
)


@dataclass(frozen=True, slots=True)
class PageRequest:
    """Connection arguments for one page.

    ``None`` means the argument was not supplied.

    Attributes:
        first: Page size when paging forward.
        last: Page size when paging backward.
        after: Cursor the page starts after.
        before: Cursor the page ends before.
        sorts: Caller sort entries, e.g. ``[{"name": "desc"}]``.
    """

    first: Any = None
    last: Any = None
    after: Any = None
    before: Any = None
    sorts: Sequence[Any] | None = None

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> PageRequest:
        """Build a request from resolver arguments; other keys are ignored."""
        return cls(
            first=args.get("first"),
            last=args.get("last"),
            after=args.get("after"),
            before=args.get("before"),
            sorts=args.get("sorts"),
        )

    @property
    def count(self) -> int:
        """Requested page size, from whichever of first/last is set."""
        return self.first if self.first is not None else self.last

    @property
    def backward(self) -> bool:
        return self.last is not None

    @property
    def cursor(self) -> str | None:
        return self.after if self.after is not None else self.before

    @property
    def cursor_argument(self) -> str | None:
        if self.after is not None:
            return "after"
        if self.before is not None:
            return "before"
        return None

    def supplied(self, name: str) -> bool:
        return getattr(self, name) is not None


def _valid_limit(value: Any, max_page_size: int | None) -> bool:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        return False
    return max_page_size is None or value <= max_page_size


def validate_page_request(request: PageRequest, max_page_size: int | None = None) -> None:
    """Check the argument combination and page size.

    Raises:
        ConflictingPageArguments: For first+last, before+after, first+before
            or last+after.
        InvalidLimit: If first/last is not an integer >= 1 (or exceeds
            ``max_page_size``).
        MissingPageDirection: If neither first nor last is given.
    """
    for arguments, reason in _CONFLICTS:
        if all(request.supplied(name) for name in arguments):
            raise ConflictingPageArguments(arguments, reason)

    for name in ("first", "last"):
        value = getattr(request, name)
        if value is not None and not _valid_limit(value, max_page_size):
            raise InvalidLimit(name, value, max_page_size)

    if request.first is None and request.last is None:
        raise MissingPageDirection()


def coerce_page_request(request: PageRequest | Mapping[str, Any]) -> PageRequest:
    if isinstance(request, PageRequest):
        return request
    return PageRequest.from_args(request)


__all__ = ["PageRequest", "coerce_page_request", "validate_page_request"]
