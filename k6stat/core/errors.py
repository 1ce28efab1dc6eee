"""
Storage layer errors.

QueryError carries the status code the HTTP layer should answer with and
the SQL text that failed, so both the API and the CLI can report it.
"""

from __future__ import annotations

import httpx


class QueryError(Exception):
    """A failed storage query."""

    def __init__(
        self,
        message: str,
        code: int = 0,
        query: str = "",
        wrapped: BaseException | None = None,
    ):
        super().__init__(message)
        if code == 0:
            code = 500
            # Transport failures mean the database is unreachable, not broken.
            if isinstance(wrapped, httpx.TransportError):
                code = 503
        self.code = code
        self.query = query
        self.wrapped = wrapped

    @classmethod
    def wrap(cls, exc: BaseException, query: str = "", code: int = 0) -> "QueryError":
        return cls(str(exc) or type(exc).__name__, code=code, query=query, wrapped=exc)


def invalid_from() -> QueryError:
    return QueryError("invalid from", code=400)


def invalid_until() -> QueryError:
    return QueryError("invalid until", code=400)
