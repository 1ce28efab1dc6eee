"""
Tests for operator session state (k6stat.core.session).
"""

from __future__ import annotations

import pytest

from k6stat.core.session import Session, SessionError
from k6stat.core.sort_by import SortBy
from k6stat.core.utils import to_unix_nano


class TestSessionFilter:
    """Tests for the label/url filter."""

    def test_sample_filter_uses_test_identity(self, current_test) -> None:
        session = Session()
        session.set_filter(label="find", url="%q=%", skip_url=["/health", ""])

        f = session.sample_filter(current_test)

        assert f.id == 2
        assert f.start == to_unix_nano(current_test.ts)
        assert f.start == 1674196902 * 1_000_000_000
        assert (f.label, f.url) == ("find", "%q=%")
        assert f.skip_url == ["/health"]

    def test_set_filter_resets(self) -> None:
        session = Session()
        session.set_filter(label="find", skip_url=["/a"])
        session.set_filter()
        assert (session.label, session.url, session.skip_url) == ("", "", [])


class TestSessionSelection:
    """Tests for commands that need a selected run."""

    def test_test_by_number(self, current_test, reference_test) -> None:
        session = Session(tests=[current_test, reference_test])
        assert session.test_by_number(1) == reference_test
        with pytest.raises(SessionError):
            session.test_by_number(2)
        with pytest.raises(SessionError):
            session.test_by_number(-1)

    def test_top_requires_selection(self) -> None:
        with pytest.raises(SessionError, match="select test with 'select' command"):
            Session().top(SortBy.P99)

    def test_ref_top_requires_reference(self) -> None:
        with pytest.raises(SessionError, match="select reference test with 'reference' command"):
            Session().ref_top(SortBy.P99)

    def test_diff_reports_everything_missing(self, current_samples) -> None:
        with pytest.raises(SessionError) as exc_info:
            Session().diff(SortBy.P99)
        assert "'select'" in str(exc_info.value)
        assert "'reference'" in str(exc_info.value)

        with pytest.raises(SessionError, match="'reference'"):
            Session(selected=current_samples).diff(SortBy.P99)

    def test_top_sorts_selection(self, current_samples) -> None:
        session = Session(selected=current_samples)
        samples = session.top(SortBy.P50)
        assert [d.url for d in samples.samples["find"]] == ["q=b.*", "q=a.*"]

    def test_diff(self, current_samples, reference_samples) -> None:
        session = Session(selected=current_samples, reference=reference_samples)

        diff = session.diff(SortBy.MAX, by_diff=True)

        assert diff.test == current_samples.test
        assert diff.reference == reference_samples.test
        assert diff.samples["find"][0].max_diff == 1
