"""
Sample Models

Defines Pydantic models for the per-endpoint aggregates produced by the
storage layer and for the merged and diffed datasets built from them.

Latency values are whatever unit the load generator wrote (milliseconds
for k6). Status counts are floats because the aggregation may weight
samples.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from k6stat.models.test import Test


class SampleFilter(BaseModel):
    """Selects the samples of one test run, optionally narrowed by label/url."""

    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(0, description="Test run identifier")
    start: int = Field(0, description="Test start time (epoch nanoseconds)")
    label: str = Field("", description="Label filter (LIKE format)")
    url: str = Field("", description="Url filter (LIKE format)")
    skip_url: List[str] = Field(
        default_factory=list, alias="no-url", description="Url exclusions (LIKE format)"
    )


class SampleQuantiles(BaseModel):
    """Latency quantiles of one endpoint within one test run."""

    id: int = Field(..., description="Test run identifier")
    start: datetime = Field(..., description="Test start time")
    label: str = Field("", description="Scenario label")
    url: str = Field(..., description="Endpoint")

    p50: float = Field(0.0, description="50th percentile")
    p90: float = Field(0.0, description="90th percentile")
    p95: float = Field(0.0, description="95th percentile")
    p99: float = Field(0.0, description="99th percentile")
    max: float = Field(0.0, description="Maximum latency")


class SampleStatus(BaseModel):
    """Request count of one endpoint for one response status."""

    id: int = Field(..., description="Test run identifier")
    start: datetime = Field(..., description="Test start time")
    label: str = Field("", description="Scenario label")
    url: str = Field(..., description="Endpoint")
    status: str = Field(..., description="Response status")
    count: float = Field(0.0, description="Request count")


class SampleDurations(BaseModel):
    """
    Merged per-endpoint record: latency quantiles plus status breakdown.

    ``count`` is the sum of ``status`` values and ``errors_pcnt`` the share
    of unexpected statuses in percent (0 when there are no requests).
    """

    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(..., description="Endpoint")

    p50: float = Field(0.0, description="50th percentile")
    p90: float = Field(0.0, description="90th percentile")
    p95: float = Field(0.0, description="95th percentile")
    p99: float = Field(0.0, description="99th percentile")
    max: float = Field(0.0, description="Maximum latency")

    status: Dict[str, float] = Field(
        default_factory=dict, description="Request count by status"
    )
    count: float = Field(0.0, description="Total request count")
    errors_pcnt: float = Field(0.0, alias="errors", description="Errors (%)")


class SampleDurationsDiff(SampleDurations):
    """
    Merged record of the current run with deltas against a reference run.

    Diff fields stay zero when the reference has no matching endpoint or
    either side has no requests; zero then means "not comparable", not
    "unchanged".
    """

    p50_diff: float = Field(0.0, alias="p50-diff")
    p90_diff: float = Field(0.0, alias="p90-diff")
    p95_diff: float = Field(0.0, alias="p95-diff")
    p99_diff: float = Field(0.0, alias="p99-diff")
    max_diff: float = Field(0.0, alias="max-diff")

    status_diff: Optional[Dict[str, float]] = Field(None, alias="status-diff")
    count_diff: float = Field(0.0, alias="count-diff")
    errors_pcnt_diff: float = Field(0.0, alias="errors-diff")


class TestSamples(BaseModel):
    """Merged samples of one test run, grouped by label."""

    test: Test
    samples: Dict[str, List[SampleDurations]] = Field(default_factory=dict)


class TestSamplesDiff(BaseModel):
    """Diff of a test run against a reference run, grouped by label."""

    model_config = ConfigDict(populate_by_name=True)

    test: Test
    reference: Test = Field(..., alias="ref")
    samples: Dict[str, List[SampleDurationsDiff]] = Field(default_factory=dict)
