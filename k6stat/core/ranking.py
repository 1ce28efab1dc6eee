"""
Ranking of merged and diffed sample records.

Every metric maps to an ordered cascade of (field, descending) pairs.
Records are compared on the first pair, ties fall through to the next one.
All cascades put the worst endpoints first.
"""

from __future__ import annotations

from typing import Sequence

from k6stat.core.sort_by import SortBy
from k6stat.models import SampleDurations, SampleDurationsDiff

SortKey = tuple[str, bool]

# Cascades over absolute values.
SORT_CASCADES: dict[SortBy, tuple[SortKey, ...]] = {
    SortBy.MAX: (("max", True), ("errors_pcnt", True), ("p99", True)),
    SortBy.P99: (("p99", True), ("errors_pcnt", True), ("max", True)),
    SortBy.P95: (("p95", True), ("errors_pcnt", True), ("max", True)),
    SortBy.P90: (("p90", True), ("errors_pcnt", True), ("max", True)),
    SortBy.P50: (("p50", True), ("errors_pcnt", True), ("p99", True)),
    SortBy.ERRORS: (("errors_pcnt", True), ("max", True), ("p99", True)),
    # count has no distinct tertiary key
    SortBy.COUNT: (("count", True), ("max", True), ("max", True)),
}

# Cascades over deltas against the reference run.
DIFF_SORT_CASCADES: dict[SortBy, tuple[SortKey, ...]] = {
    SortBy.MAX: (("max_diff", True), ("errors_pcnt_diff", True), ("p99_diff", True)),
    SortBy.P99: (("p99_diff", True), ("max_diff", True), ("errors_pcnt_diff", True)),
    SortBy.P95: (("p95_diff", True), ("max_diff", True), ("errors_pcnt_diff", True)),
    SortBy.P90: (("p90_diff", True), ("max_diff", True), ("errors_pcnt_diff", True)),
    SortBy.P50: (("p50_diff", True), ("max_diff", True), ("errors_pcnt_diff", True)),
    SortBy.ERRORS: (("errors_pcnt_diff", True), ("max_diff", True), ("p99_diff", True)),
    SortBy.COUNT: (("count_diff", True), ("max_diff", True), ("errors_pcnt_diff", True)),
}


def cascade_for(sort_by: SortBy, by_diff: bool = False) -> tuple[SortKey, ...]:
    """
    Full comparison cascade for a metric.

    The diff cascade ends with the absolute cascade, so records without a
    comparable reference (all deltas zero) still rank deterministically.
    """
    if by_diff:
        return DIFF_SORT_CASCADES[sort_by] + SORT_CASCADES[sort_by]
    return SORT_CASCADES[sort_by]


def _sort_key(cascade: Sequence[SortKey]):
    def key(record: SampleDurations) -> tuple[float, ...]:
        return tuple(
            -getattr(record, field) if descending else getattr(record, field)
            for field, descending in cascade
        )

    return key


def sort_samples_durations(durations: list[SampleDurations], sort_by: SortBy) -> None:
    """
    Sort records in place by absolute value, worst first.

    Accepts SampleDurationsDiff records too; diff fields are ignored.
    """
    durations.sort(key=_sort_key(cascade_for(sort_by)))


def sort_samples_durations_by_diff(
    durations: list[SampleDurationsDiff], sort_by: SortBy
) -> None:
    """Sort diff records in place by their delta from the reference, largest first."""
    durations.sort(key=_sort_key(cascade_for(sort_by, by_diff=True)))


def sort_test_samples(
    samples: dict[str, list[SampleDurations]] | dict[str, list[SampleDurationsDiff]],
    sort_by: SortBy,
    by_diff: bool = False,
) -> None:
    """Sort every label's records in place."""
    for durations in samples.values():
        if by_diff:
            sort_samples_durations_by_diff(durations, sort_by)  # type: ignore[arg-type]
        else:
            sort_samples_durations(durations, sort_by)
