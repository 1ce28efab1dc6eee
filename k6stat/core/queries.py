"""
Storage queries for tests and HTTP samples.

SQL is built by pure ``build_*`` functions returning ``(query, params)`` so
the shape of every statement can be tested without a server; the async
``get_*`` functions run them through a ClickHouseClient and convert rows
into models.

Contains:
- get_tests / get_test_by_id: test run lookup
- get_http_samples_durations: per-endpoint latency quantiles
- get_http_samples_status: per-endpoint, per-status request counts
- load_test_samples: both aggregates merged into TestSamples
"""

from __future__ import annotations

import logging
from typing import Any

from k6stat.config import settings
from k6stat.core.errors import QueryError, invalid_from, invalid_until
from k6stat.core.merge import merge_samples
from k6stat.core.utils import parse_datetime
from k6stat.models import (
    SampleFilter,
    SampleQuantiles,
    SampleStatus,
    Test,
    TestFilter,
    TestIdFilter,
    TestSamples,
)

logger = logging.getLogger(__name__)

DURATION_METRIC = "http_req_duration"
REQS_METRIC = "http_reqs"


def _tests_table(table: str | None) -> str:
    return table or settings.K6_STAT_TABLE_TESTS


def _samples_table(table: str | None) -> str:
    return table or settings.K6_STAT_TABLE_SAMPLES


# =============================================================================
# QUERY BUILDERS
# =============================================================================


def build_tests_query(f: TestFilter, table: str | None = None) -> tuple[str, dict[str, Any]]:
    """
    Build the test listing query.

    Raises:
        QueryError: 400 when ``from`` or ``until`` is negative.
    """
    if f.from_ < 0:
        raise invalid_from()
    if f.until < 0:
        raise invalid_until()

    where: list[str] = []
    params: dict[str, Any] = {}
    if f.from_ > 0:
        where.append("ts >= toDateTime({From:Int64})")
        params["From"] = f.from_
    if f.until > 0:
        where.append("ts < toDateTime({Until:Int64})")
        params["Until"] = f.until
    if f.name:
        where.append("name LIKE {Name:String}")
        params["Name"] = f.name

    query = f"SELECT id, ts, name, params FROM {_tests_table(table)}"
    if where:
        query += " WHERE " + " AND ".join(where)
    query += " ORDER BY id, ts, name"
    return query, params


def build_test_by_id_query(f: TestIdFilter, table: str | None = None) -> tuple[str, dict[str, Any]]:
    query = (
        f"SELECT id, ts, name, params FROM {_tests_table(table)}"
        " WHERE ts = fromUnixTimestamp64Milli({Time:Int64}) AND id = {Id:UInt64}"
        " ORDER BY id, ts, name"
    )
    return query, {"Id": f.id, "Time": f.time // 1_000_000}


def _samples_where(f: SampleFilter, metric: str) -> tuple[str, dict[str, Any]]:
    where = [
        "id = {Id:UInt64}",
        "start = fromUnixTimestamp64Milli({Start:Int64})",
        "metric = {Metric:String}",
    ]
    params: dict[str, Any] = {"Id": f.id, "Start": f.start // 1_000_000, "Metric": metric}
    if f.label:
        where.append("label LIKE {Label:String}")
        params["Label"] = f.label
    if f.url:
        where.append("url LIKE {Url:String}")
        params["Url"] = f.url
    for i, skip in enumerate(u for u in f.skip_url if u):
        where.append(f"url NOT LIKE {{SkipUrl{i}:String}}")
        params[f"SkipUrl{i}"] = skip
    return " WHERE " + " AND ".join(where), params


def build_durations_query(f: SampleFilter, table: str | None = None) -> tuple[str, dict[str, Any]]:
    where, params = _samples_where(f, DURATION_METRIC)
    query = (
        "SELECT id, start, label, url,"
        " quantiles(0.5, 0.9, 0.95, 0.99)(value) AS quantiles, max(value) AS max"
        f" FROM {_samples_table(table)}{where}"
        " GROUP BY id, start, label, url ORDER BY label, url"
    )
    return query, params


def build_status_query(f: SampleFilter, table: str | None = None) -> tuple[str, dict[str, Any]]:
    where, params = _samples_where(f, REQS_METRIC)
    query = (
        "SELECT id, start, label, url, status, sum(value) AS count"
        f" FROM {_samples_table(table)}{where}"
        " GROUP BY id, start, label, url, status ORDER BY label, url, status"
    )
    return query, params


# =============================================================================
# ROW CONVERSION
# =============================================================================


def _row_to_test(row: dict[str, Any]) -> Test:
    return Test(
        id=int(row["id"]),
        ts=parse_datetime(row["ts"]),
        name=row.get("name") or "",
        params=row.get("params") or "",
    )


def _row_to_quantiles(row: dict[str, Any]) -> SampleQuantiles:
    q = [float(v) for v in row.get("quantiles") or []]
    q += [0.0] * (4 - len(q))
    return SampleQuantiles(
        id=int(row["id"]),
        start=parse_datetime(row["start"]),
        label=row.get("label") or "",
        url=row["url"],
        p50=q[0],
        p90=q[1],
        p95=q[2],
        p99=q[3],
        max=float(row.get("max") or 0.0),
    )


def _row_to_status(row: dict[str, Any]) -> SampleStatus:
    return SampleStatus(
        id=int(row["id"]),
        start=parse_datetime(row["start"]),
        label=row.get("label") or "",
        url=row["url"],
        status=str(row["status"]),
        count=float(row.get("count") or 0.0),
    )


def _convert(rows: list[dict[str, Any]], convert, query: str) -> list:
    try:
        return [convert(row) for row in rows]
    except (KeyError, TypeError, ValueError) as e:
        raise QueryError.wrap(e, query=query) from e


# =============================================================================
# FETCH FUNCTIONS
# =============================================================================


async def get_tests(client: Any, f: TestFilter, table: str | None = None) -> list[Test]:
    query, params = build_tests_query(f, table)
    rows = await client.fetch_all(query, params)
    return _convert(rows, _row_to_test, query)


async def get_test_by_id(client: Any, f: TestIdFilter, table: str | None = None) -> Test:
    """
    Fetch one test by ``(id, start time)``.

    Raises:
        QueryError: 404 when no test matches, 500 when the pair is not unique.
    """
    query, params = build_test_by_id_query(f, table)
    rows = await client.fetch_all(query, params)
    tests = _convert(rows, _row_to_test, query)
    if not tests:
        raise QueryError("test not found", code=404, query=query)
    if len(tests) > 1:
        raise QueryError("duplicate test id", query=query)
    return tests[0]


async def get_http_samples_durations(
    client: Any, f: SampleFilter, table: str | None = None
) -> list[SampleQuantiles]:
    query, params = build_durations_query(f, table)
    rows = await client.fetch_all(query, params)
    return _convert(rows, _row_to_quantiles, query)


async def get_http_samples_status(
    client: Any, f: SampleFilter, table: str | None = None
) -> list[SampleStatus]:
    query, params = build_status_query(f, table)
    rows = await client.fetch_all(query, params)
    return _convert(rows, _row_to_status, query)


async def load_test_samples(
    client: Any, test: Test, f: SampleFilter, table: str | None = None
) -> TestSamples:
    """Fetch duration and status aggregates of ``test`` and merge them."""
    quantiles = await get_http_samples_durations(client, f, table)
    if not quantiles:
        logger.warning("no duration samples for test %d", test.id)
    statuses = await get_http_samples_status(client, f, table)
    if not statuses:
        logger.warning("no status samples for test %d", test.id)

    logger.info(
        "Loaded %d duration samples, %d status samples for test %d",
        len(quantiles),
        len(statuses),
        test.id,
    )
    return merge_samples(test, quantiles, statuses)
