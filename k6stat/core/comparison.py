"""
Comparison of a test run against a reference run.

diff_samples aligns two merged datasets by label and url and attaches
current-minus-reference deltas to every endpoint of the current run.
"""

from __future__ import annotations

import logging

from k6stat.models import (
    SampleDurations,
    SampleDurationsDiff,
    TestSamples,
    TestSamplesDiff,
)

logger = logging.getLogger(__name__)

# Fields copied verbatim from the current run and diffed against the reference.
_DIFF_FIELDS = ("p50", "p90", "p95", "p99", "max", "count", "errors_pcnt")


def _copy(current: SampleDurations) -> SampleDurationsDiff:
    return SampleDurationsDiff(
        url=current.url,
        p50=current.p50,
        p90=current.p90,
        p95=current.p95,
        p99=current.p99,
        max=current.max,
        status=dict(current.status),
        count=current.count,
        errors_pcnt=current.errors_pcnt,
    )


def status_delta(current: dict[str, float], reference: dict[str, float]) -> dict[str, float]:
    """Per-status count delta over the union of statuses; a missing side counts as 0."""
    delta = dict(current)
    for status, value in reference.items():
        delta[status] = delta.get(status, 0.0) - value
    return delta


def diff_sample(current: SampleDurations, reference: SampleDurations | None) -> SampleDurationsDiff:
    """
    Diff record for one endpoint.

    Deltas are only filled when a reference exists and both sides saw
    requests; otherwise they stay zero ("not comparable"). When comparable,
    status classes seen only in the reference are added to ``status`` with
    a zero count.
    """
    d = _copy(current)
    if reference is None or current.count == 0 or reference.count == 0:
        return d

    for field in _DIFF_FIELDS:
        setattr(d, f"{field}_diff", getattr(current, field) - getattr(reference, field))
    d.status_diff = status_delta(current.status, reference.status)
    for code in reference.status:
        d.status.setdefault(code, 0.0)
    return d


def diff_samples(test: TestSamples, ref: TestSamples) -> TestSamplesDiff:
    """
    Diff a test run against a reference run.

    Only labels measured by ``test`` appear in the result; labels present
    only in ``ref`` are dropped. Record order follows ``test``.
    """
    samples: dict[str, list[SampleDurationsDiff]] = {}
    for label, durations in test.samples.items():
        ref_durations = ref.samples.get(label)
        if ref_durations is None:
            logger.debug("label %r not in reference", label)
            samples[label] = [_copy(d) for d in durations]
            continue

        # last one wins on duplicate urls
        ref_by_url = {d.url: d for d in ref_durations}
        samples[label] = [diff_sample(d, ref_by_url.get(d.url)) for d in durations]

    return TestSamplesDiff(test=test.test, reference=ref.test, samples=samples)
