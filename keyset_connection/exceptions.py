"""Exception classes raised by the pagination engine.

Every request-shape failure derives from :class:`PaginationError` and carries
RFC 7807 problem details, so an API layer can turn it into a response without
knowing the individual error kinds.

:class:`UnsafeNullComparison` sits outside that hierarchy: it
signals a configuration error (a nullable sort column without a coalesce
value), not a bad request.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class PaginationError(Exception):
    """Base class for recoverable pagination errors.

    Attributes:
        status_code: HTTP status code suggested for the error.
        detail: Human-readable error message.
        type: Error type identifier (used in RFC 7807 problem details).
        title: Short, human-readable summary of the problem type.
        extra: Additional context-specific information about the error.

    Example:
        try:
            connection = paginate(stmt, fetch, {"first": 10, "last": 10})
        except PaginationError as exc:
            return JSONResponse(exc.to_problem_detail(), status_code=exc.status_code)
    """

    code: str = "PaginationError"
    default_type: str = "pagination-error"
    default_title: str = "Bad Request"
    default_status: int = 400

    def __init__(
        self,
        detail: str,
        type: str | None = None,
        title: str | None = None,
        status_code: int | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize pagination error.

        Args:
            detail: Human-readable error message.
            type: Error type identifier.
            title: Short summary of the problem type.
            status_code: HTTP status code.
            extra: Additional context about the error.
        """
        self.detail = detail
        self.type = type or self.default_type
        self.title = title or self.default_title
        self.status_code = status_code or self.default_status
        self.extra = extra or {}
        super().__init__(detail)

    def to_problem_detail(self) -> dict[str, Any]:
        """Render the error as an RFC 7807 problem details mapping."""
        problem: dict[str, Any] = {
            "type": self.type,
            "title": self.title,
            "status": self.status_code,
            "detail": self.detail,
            "code": self.code,
        }
        problem.update(self.extra)
        return problem


class ConflictingPageArguments(PaginationError):
    """Raised when two mutually exclusive page arguments are supplied.

    Example:
        raise ConflictingPageArguments(("first", "last"), "Including both is discouraged.")
    """

    code = "ConflictingPageArguments"
    default_type = "conflicting-page-arguments"

    def __init__(self, arguments: Sequence[str], reason: str) -> None:
        first, second = arguments
        super().__init__(
            detail=f"The combination of '{first}' and '{second}' is unsupported. {reason}",
            extra={"arguments": [first, second]},
        )
        self.arguments = (first, second)


class InvalidLimit(PaginationError):
    """Raised when ``first`` or ``last`` is not a usable page size."""

    code = "InvalidLimit"
    default_type = "invalid-limit"

    def __init__(self, argument: str, value: Any, max_page_size: int | None = None) -> None:
        if max_page_size is None:
            detail = f"The value of '{argument}' must be an integer >= 1"
        else:
            detail = f"The value of '{argument}' must be an integer between 1 and {max_page_size}"
        super().__init__(detail=detail, extra={"argument": argument})
        self.argument = argument
        self.value = value


class MissingPageDirection(PaginationError):
    """Raised when neither ``first`` nor ``last`` is supplied."""

    code = "MissingPageDirection"
    default_type = "missing-page-direction"

    def __init__(self) -> None:
        super().__init__(
            detail=(
                "Querying with neither 'first' nor 'last' is unsupported. "
                "Although logically possible, it doesn't make sense for pagination."
            ),
        )


class InvalidSortEntry(PaginationError):
    """Raised for a sort entry that cannot be applied deterministically."""

    code = "InvalidSortEntry"
    default_type = "invalid-sort-entry"

    def __init__(self, detail: str | None = None, entry: Any = None) -> None:
        super().__init__(
            detail=detail
            or (
                "Each sort must specify a single column and direction "
                "so that sorts can be applied in the specified order"
            ),
        )
        self.entry = entry


class MissingSortSpecification(PaginationError):
    """Raised when there is nothing to order by."""

    code = "MissingSortSpecification"
    default_type = "missing-sort-specification"

    def __init__(self) -> None:
        super().__init__(
            detail="Must supply at least one column to sort by in 'sorts' or configure a unique column",
        )


class InvalidCursor(PaginationError):
    """Raised for any cursor that does not decode under the active sort spec.

    The detail text is fixed; decoding internals are only logged.
    """

    code = "InvalidCursor"
    default_type = "invalid-cursor"

    def __init__(self, argument: str | None = None) -> None:
        extra = {"argument": argument} if argument else None
        super().__init__(detail="The supplied cursor is invalid", extra=extra)
        self.argument = argument


class UnsupportedQueryShape(PaginationError):
    """Raised when a source cannot be paginated safely as written."""

    code = "UnsupportedQueryShape"
    default_type = "unsupported-query-shape"
    default_title = "Unprocessable Entity"
    default_status = 422


class UnsafeNullComparison(RuntimeError):
    """Raised when a boundary predicate would compare a column against NULL.

    SQL comparisons with NULL are neither true nor false, so a page built from
    such a predicate would silently skip or repeat rows. Configure a
    ``null_coalesce`` value for the column or avoid sorting by nullable columns.
    """

    def __init__(self, column: str) -> None:
        super().__init__(
            f"Comparing column '{column}' with NULL is forbidden; "
            f"configure a null_coalesce value for '{column}'"
        )
        self.column = column


__all__ = [
    "ConflictingPageArguments",
    "InvalidCursor",
    "InvalidLimit",
    "InvalidSortEntry",
    "MissingPageDirection",
    "MissingSortSpecification",
    "PaginationError",
    "UnsafeNullComparison",
    "UnsupportedQueryShape",
]
