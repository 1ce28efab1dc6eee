"""
Tests for plain-text reports (k6stat.core.report).
"""

from __future__ import annotations

from k6stat.core import report
from k6stat.core.comparison import diff_samples
from k6stat.models import TestSamples


class TestFormatTests:
    """Tests for test list rendering."""

    def test_format_tests(self, current_test, reference_test) -> None:
        out = report.format_tests([current_test, reference_test])
        lines = out.splitlines()

        assert lines[0].split("|")[0].strip() == "N"
        assert lines[2] == report.TESTS_HEAD
        assert "carbonapi 1.5.6" in lines[3]
        assert lines[3].split("|")[0].strip() == "0"
        assert lines[4] == "USERS=2"
        assert lines[5].split("|")[0].strip() == "1"

    def test_format_test_without_head(self, current_test) -> None:
        out = report.format_test(current_test, "ref", head=False)
        assert report.TESTS_HEAD not in out
        assert out.split("|")[0].strip() == "ref"
        assert "2023-01-20T06:41:42+00:00" in out


class TestFormatHttpTop:
    """Tests for top-N tables."""

    def test_labels_sorted_and_top_limited(self, current_samples: TestSamples) -> None:
        out = report.format_http_top(current_samples.samples, 1)

        assert out.index('Label: "find", 2 urls') < out.index('Label: "render 1h", 1 urls')
        assert "q=a.*" in out
        assert "q=b.*" not in out

    def test_status_column(self, current_samples: TestSamples) -> None:
        out = report.format_http_top(current_samples.samples, 10)
        assert " | 200: 90.00, 504: 10.00" in out

    def test_zero_success_status(self, make_durations) -> None:
        out = report.format_http_top({"x": [make_durations("/a", {"404": 1, "500": 1})]}, 10)
        assert " | 200: 0, 404: 50.00, 500: 50.00" in out

    def test_record_without_status_has_no_status_column(self, make_durations) -> None:
        out = report.format_http_top({"x": [make_durations("/a", {}, p99=1)]}, 10)
        assert "200:" not in out


class TestFormatHttpTopDiff:
    """Tests for diff tables."""

    def test_diff_cells(
        self, current_samples: TestSamples, reference_samples: TestSamples
    ) -> None:
        diff = diff_samples(current_samples, reference_samples)

        out = report.format_http_top_diff(diff.samples, 1)

        assert "5.00 (1.00)" in out
        assert "10.00 (10.00)" in out
        # current 200 share (reference share)
        assert "200: 90.00 (80.00)" in out
        assert "504: 10.00 (0.00)" in out
        assert report.TOP_DIFF_HEAD in out

    def test_reference_only_status_cells(self, make_durations) -> None:
        from k6stat.core.comparison import diff_sample

        d = diff_sample(
            make_durations("/a", {"200": 10}),
            make_durations("/a", {"200": 5, "404": 2, "504": 3}),
        )

        out = report.format_http_top_diff({"x": [d]}, 5)

        assert "200: 100.00 (50.00)" in out
        assert "404: 0.00 (20.00)" in out
        assert "504: 0.00 (30.00)" in out
        assert "400:" not in out

    def test_no_reference_counts(self, make_durations) -> None:
        """Records without reference counts do not divide by zero."""
        from k6stat.core.comparison import diff_sample

        out = report.format_http_top_diff({"x": [diff_sample(make_durations("/a", {"200": 1}), None)]}, 5)
        assert "200: 100.00" in out


class TestDiffStrings:
    def test_diff_string(self) -> None:
        assert report.diff_string(1.234, -0.5) == "1.23 (-0.50)"

    def test_count_diff_string(self) -> None:
        assert report.count_diff_string(10, -2) == "10 (-2)"
