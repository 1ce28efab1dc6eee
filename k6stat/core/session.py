"""
Operator session state.

The interactive shell works on previously loaded data: a list of tests, a
sample filter, the selected run and the reference run. Session keeps that
state in one explicit object that command handlers receive, so the merge,
ranking and comparison functions stay free of hidden state.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from k6stat.core.comparison import diff_samples
from k6stat.core.ranking import sort_test_samples
from k6stat.core.sort_by import SortBy
from k6stat.core.utils import to_unix_nano
from k6stat.models import SampleFilter, Test, TestSamples, TestSamplesDiff


class SessionError(Exception):
    """A command needs state the session does not have yet."""


@dataclass
class Session:
    tests: list[Test] = field(default_factory=list)

    label: str = ""
    url: str = ""
    skip_url: list[str] = field(default_factory=list)

    selected: TestSamples | None = None
    reference: TestSamples | None = None

    def set_filter(self, label: str = "", url: str = "", skip_url: list[str] | None = None) -> None:
        self.label = label
        self.url = url
        self.skip_url = list(skip_url or [])

    def sample_filter(self, test: Test) -> SampleFilter:
        """Sample filter for ``test`` narrowed by the current label/url filter."""
        return SampleFilter(
            id=test.id,
            start=to_unix_nano(test.ts),
            label=self.label,
            url=self.url,
            skip_url=[u for u in self.skip_url if u],
        )

    def test_by_number(self, n: int) -> Test:
        if n < 0 or n >= len(self.tests):
            raise SessionError(f"test number {n} out of range, {len(self.tests)} tests loaded")
        return self.tests[n]

    def top(self, sort_by: SortBy) -> TestSamples:
        """Selected samples with every label ranked by ``sort_by``."""
        if self.selected is None:
            raise SessionError("select test with 'select' command")
        sort_test_samples(self.selected.samples, sort_by)
        return self.selected

    def ref_top(self, sort_by: SortBy) -> TestSamples:
        if self.reference is None:
            raise SessionError("select reference test with 'reference' command")
        sort_test_samples(self.reference.samples, sort_by)
        return self.reference

    def diff(self, sort_by: SortBy, by_diff: bool = False) -> TestSamplesDiff:
        """Diff of the selected run against the reference, ranked."""
        missing = []
        if self.selected is None:
            missing.append("select test with 'select' command")
        if self.reference is None:
            missing.append("select reference test with 'reference' command")
        if missing:
            raise SessionError(", ".join(missing))

        diff = diff_samples(self.selected, self.reference)
        sort_test_samples(diff.samples, sort_by, by_diff=by_diff)
        return diff
