"""
Tests for per-metric sort cascades (k6stat.core.ranking).
"""

from __future__ import annotations

import random

import pytest

from k6stat.core.ranking import (
    DIFF_SORT_CASCADES,
    SORT_CASCADES,
    cascade_for,
    sort_samples_durations,
    sort_samples_durations_by_diff,
    sort_test_samples,
)
from k6stat.core.sort_by import SortBy
from k6stat.models import SampleDurationsDiff

ERR70 = {"200": 1, "400": 1, "404": 1, "500": 4, "503": 3}
ERR80 = {"400": 1, "404": 1, "500": 5, "503": 3}


@pytest.fixture
def three(make_durations):
    return [
        make_durations("a", ERR70, p50=1, p90=2, p95=3, p99=4, max=4),
        make_durations("b", ERR70, p50=1, p90=2, p95=3, p99=5, max=5),
        make_durations("c", ERR80, p50=1, p90=2, p95=2, p99=4, max=4),
    ]


class TestCascadeTable:
    """Tests for the cascade definitions."""

    def test_every_metric_has_a_cascade(self) -> None:
        assert set(SORT_CASCADES) == set(SortBy)
        assert set(DIFF_SORT_CASCADES) == set(SortBy)

    @pytest.mark.parametrize(
        "sort_by,fields",
        [
            (SortBy.MAX, ["max", "errors_pcnt", "p99"]),
            (SortBy.P99, ["p99", "errors_pcnt", "max"]),
            (SortBy.P95, ["p95", "errors_pcnt", "max"]),
            (SortBy.P90, ["p90", "errors_pcnt", "max"]),
            (SortBy.P50, ["p50", "errors_pcnt", "p99"]),
            (SortBy.ERRORS, ["errors_pcnt", "max", "p99"]),
            (SortBy.COUNT, ["count", "max", "max"]),
        ],
    )
    def test_absolute_cascades(self, sort_by: SortBy, fields: list[str]) -> None:
        assert [f for f, _ in cascade_for(sort_by)] == fields
        assert all(desc for _, desc in cascade_for(sort_by))

    def test_diff_cascade_falls_back_to_absolute(self) -> None:
        cascade = cascade_for(SortBy.P99, by_diff=True)
        assert cascade[:3] == DIFF_SORT_CASCADES[SortBy.P99]
        assert cascade[3:] == SORT_CASCADES[SortBy.P99]


class TestSortSamplesDurations:
    """Tests for ranking merged records by absolute value."""

    def test_p99_tie_broken_by_errors(self, three) -> None:
        sort_samples_durations(three, SortBy.P99)
        assert [d.url for d in three] == ["b", "c", "a"]

    def test_p95_tie_broken_by_max(self, three) -> None:
        sort_samples_durations(three, SortBy.P95)
        assert [d.url for d in three] == ["b", "a", "c"]

    def test_errors_tie_broken_by_max(self, three) -> None:
        sort_samples_durations(three, SortBy.ERRORS)
        assert [d.url for d in three] == ["c", "b", "a"]

    def test_max(self, three) -> None:
        sort_samples_durations(three, SortBy.MAX)
        # a and c tie on max, c has more errors
        assert [d.url for d in three] == ["b", "c", "a"]

    def test_p50_tertiary_key_is_p99(self, make_durations) -> None:
        records = [
            make_durations("low", {"200": 1}, p50=1, p99=2),
            make_durations("high", {"200": 1}, p50=1, p99=9),
        ]
        sort_samples_durations(records, SortBy.P50)
        assert [d.url for d in records] == ["high", "low"]

    def test_count(self, make_durations) -> None:
        records = [
            make_durations("few", {"200": 1}, max=9),
            make_durations("many-slow", {"200": 5}, max=3),
            make_durations("many-fast", {"200": 5}, max=1),
        ]
        sort_samples_durations(records, SortBy.COUNT)
        assert [d.url for d in records] == ["many-slow", "many-fast", "few"]

    def test_ranking_is_permutation_invariant(self, make_durations) -> None:
        """Input order never changes the result when keys differ."""
        records = [
            make_durations(f"/{i}", {"200": i + 1, "500": i % 3}, p99=i % 5, max=i)
            for i in range(20)
        ]
        expected = list(records)
        sort_samples_durations(expected, SortBy.P99)

        shuffled = list(records)
        random.Random(42).shuffle(shuffled)
        sort_samples_durations(shuffled, SortBy.P99)

        assert [d.url for d in shuffled] == [d.url for d in expected]

    def test_data_is_not_modified(self, three) -> None:
        before = {d.url: d.model_dump() for d in three}
        sort_samples_durations(three, SortBy.P99)
        assert {d.url: d.model_dump() for d in three} == before


class TestSortByDiff:
    """Tests for ranking diff records by delta."""

    @staticmethod
    def diff(url: str, **fields: float) -> SampleDurationsDiff:
        return SampleDurationsDiff(url=url, **fields)

    def test_largest_regression_first(self) -> None:
        records = [
            self.diff("same", p99=100, p99_diff=0),
            self.diff("worse", p99=10, p99_diff=5),
            self.diff("better", p99=50, p99_diff=-5),
        ]
        sort_samples_durations_by_diff(records, SortBy.P99)
        assert [d.url for d in records] == ["worse", "same", "better"]

    def test_p99_diff_tie_broken_by_max_diff(self) -> None:
        records = [
            self.diff("a", p99_diff=1, max_diff=1),
            self.diff("b", p99_diff=1, max_diff=3),
        ]
        sort_samples_durations_by_diff(records, SortBy.P99)
        assert [d.url for d in records] == ["b", "a"]

    def test_no_reference_records_fall_back_to_absolute(self) -> None:
        """Records with all-zero deltas rank by their absolute cascade."""
        records = [
            self.diff("fast", p99=1),
            self.diff("slow", p99=9),
            self.diff("regressed", p99=2, p99_diff=1),
        ]
        sort_samples_durations_by_diff(records, SortBy.P99)
        assert [d.url for d in records] == ["regressed", "slow", "fast"]

    def test_sort_diff_records_by_value(self) -> None:
        records = [
            self.diff("a", p99=1, p99_diff=10),
            self.diff("b", p99=2, p99_diff=0),
        ]
        sort_samples_durations(records, SortBy.P99)
        assert [d.url for d in records] == ["b", "a"]


class TestSortTestSamples:
    """Tests for ranking every label of a dataset."""

    def test_sorts_each_label(self, current_samples) -> None:
        sort_test_samples(current_samples.samples, SortBy.P50)
        assert [d.url for d in current_samples.samples["find"]] == ["q=b.*", "q=a.*"]
        assert [d.url for d in current_samples.samples["render 1h"]] == ["target=a.*"]

    def test_by_diff(self) -> None:
        samples = {
            "x": [
                SampleDurationsDiff(url="a", max=5, max_diff=0),
                SampleDurationsDiff(url="b", max=1, max_diff=2),
            ]
        }
        sort_test_samples(samples, SortBy.MAX, by_diff=True)
        assert [d.url for d in samples["x"]] == ["b", "a"]

        sort_test_samples(samples, SortBy.MAX)
        assert [d.url for d in samples["x"]] == ["a", "b"]
