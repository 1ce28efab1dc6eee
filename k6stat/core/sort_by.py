"""
Ranking metrics.

The seven metrics an operator can rank endpoints by, with parsing helpers
for the CLI and HTTP layers.
"""

from __future__ import annotations

from enum import Enum


class InvalidSortByError(ValueError):
    """Raised when a string does not name a ranking metric."""

    def __init__(self, value: str):
        super().__init__(f"{value} not a sortBy key")
        self.value = value


class SortBy(str, Enum):
    """Ranking metric. Declaration order is the display order."""

    MAX = "max"
    P99 = "p99"
    P95 = "p95"
    P90 = "p90"
    P50 = "p50"
    ERRORS = "errors"
    COUNT = "count"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_string(cls, value: str) -> "SortBy":
        try:
            return cls(value)
        except ValueError:
            raise InvalidSortByError(value) from None

    @classmethod
    def values(cls) -> list[str]:
        return [m.value for m in cls]

    @classmethod
    def values_string(cls) -> str:
        return "[" + ",".join(cls.values()) + "]"


DEFAULT_SORT_BY = SortBy.P99
