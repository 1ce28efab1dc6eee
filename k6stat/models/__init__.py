"""
Data models for k6-stat.

This package contains Pydantic models for:
- Test runs and test lookup filters
- Raw per-endpoint aggregates (quantiles, status counts)
- Merged and diffed sample datasets
"""

from k6stat.models.test import (
    Test,
    TestFilter,
    TestIdFilter,
)

from k6stat.models.samples import (
    SampleFilter,
    SampleQuantiles,
    SampleStatus,
    SampleDurations,
    SampleDurationsDiff,
    TestSamples,
    TestSamplesDiff,
)

__all__ = [
    # test
    "Test",
    "TestFilter",
    "TestIdFilter",
    # samples
    "SampleFilter",
    "SampleQuantiles",
    "SampleStatus",
    "SampleDurations",
    "SampleDurationsDiff",
    "TestSamples",
    "TestSamplesDiff",
]
