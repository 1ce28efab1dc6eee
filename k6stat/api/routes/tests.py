"""
API routes for test runs and their HTTP samples.

Endpoints (all POST with a JSON filter body; an empty body means defaults):
- Test list: /api/tests
- Raw latency quantiles: /api/test/http/duration
- Raw status counts: /api/test/http/status
- Merged and ranked samples: /api/test/http/samples
- Diff against a reference run: /api/test/http/diff
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, HTTPException
from pydantic import BaseModel, Field

from k6stat.api.error_handling import http_exception
from k6stat.connectors import clickhouse_client
from k6stat.core import queries
from k6stat.core.comparison import diff_samples
from k6stat.core.ranking import sort_test_samples
from k6stat.core.sort_by import DEFAULT_SORT_BY, SortBy
from k6stat.models import (
    SampleFilter,
    SampleQuantiles,
    SampleStatus,
    Test,
    TestFilter,
    TestIdFilter,
    TestSamples,
    TestSamplesDiff,
)

router = APIRouter()
logger = logging.getLogger(__name__)


class SamplesRequest(SampleFilter):
    sort: str = Field(DEFAULT_SORT_BY.value, description="Ranking metric")


class DiffRequest(BaseModel):
    test: SampleFilter = Field(default_factory=SampleFilter)
    ref: SampleFilter = Field(default_factory=SampleFilter)
    sort: str = Field(DEFAULT_SORT_BY.value, description="Ranking metric")
    by_diff: bool = Field(False, description="Rank by delta instead of value")


async def _load(client: Any, f: SampleFilter) -> TestSamples:
    logger.debug("loading samples of test %d", f.id)
    test = await queries.get_test_by_id(client, TestIdFilter(id=f.id, time=f.start))
    return await queries.load_test_samples(client, test, f)


@router.post("/tests")
async def list_tests(filters: TestFilter | None = Body(None)) -> list[Test]:
    try:
        client = clickhouse_client.get_default_client()
        return await queries.get_tests(client, filters or TestFilter())
    except Exception as e:
        raise http_exception("get tests", e)


@router.post("/test/http/duration")
async def get_http_samples_durations(
    filters: SampleFilter | None = Body(None),
) -> list[SampleQuantiles]:
    try:
        client = clickhouse_client.get_default_client()
        return await queries.get_http_samples_durations(client, filters or SampleFilter())
    except Exception as e:
        raise http_exception("get http samples durations", e)


@router.post("/test/http/status")
async def get_http_samples_status(
    filters: SampleFilter | None = Body(None),
) -> list[SampleStatus]:
    try:
        client = clickhouse_client.get_default_client()
        return await queries.get_http_samples_status(client, filters or SampleFilter())
    except Exception as e:
        raise http_exception("get http samples status", e)


@router.post("/test/http/samples")
async def get_http_samples(request: SamplesRequest | None = Body(None)) -> TestSamples:
    """Merged samples of one test, each label ranked by ``sort``."""
    request = request or SamplesRequest()
    try:
        sort_by = SortBy.from_string(request.sort)
        client = clickhouse_client.get_default_client()
        samples = await _load(client, request)
        sort_test_samples(samples.samples, sort_by)
        return samples
    except HTTPException:
        raise
    except Exception as e:
        raise http_exception("get http samples", e)


@router.post("/test/http/diff")
async def get_http_samples_diff(request: DiffRequest | None = Body(None)) -> TestSamplesDiff:
    """Diff of ``test`` against ``ref``, ranked by value or by delta."""
    request = request or DiffRequest()
    try:
        sort_by = SortBy.from_string(request.sort)
        client = clickhouse_client.get_default_client()
        test = await _load(client, request.test)
        ref = await _load(client, request.ref)
        diff = diff_samples(test, ref)
        sort_test_samples(diff.samples, sort_by, by_diff=request.by_diff)
        return diff
    except HTTPException:
        raise
    except Exception as e:
        raise http_exception("get http samples diff", e)
