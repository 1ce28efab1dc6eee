"""
Merge of separately aggregated sample results.

The storage layer returns latency quantiles and status counts from two
independent GROUP BY queries. merge_samples folds both into one
SampleDurations record per endpoint and groups the records by label.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable, Mapping, NamedTuple

from k6stat.models import (
    SampleDurations,
    SampleQuantiles,
    SampleStatus,
    Test,
    TestSamples,
)

logger = logging.getLogger(__name__)

# Statuses that count as expected responses; everything else is an error.
EXPECTED_STATUSES = frozenset({"200", "400", "404"})


class MergeKey(NamedTuple):
    """Identity of one endpoint aggregate within one test run."""

    id: int
    start: datetime
    label: str
    url: str


def http_errors_pcnt(status: Mapping[str, float]) -> tuple[float, float]:
    """
    Total request count and error percentage of a status breakdown.

    Returns:
        (total, errors_pcnt); errors_pcnt is 0 when total is 0.
    """
    total = 0.0
    errors = 0.0
    for name, n in status.items():
        if name not in EXPECTED_STATUSES:
            errors += n
        total += n
    if total == 0.0:
        return total, 0.0
    return total, errors / total * 100.0


def merge_samples(
    test: Test,
    quantiles: Iterable[SampleQuantiles],
    statuses: Iterable[SampleStatus],
    on_missing: Callable[[MergeKey], None] | None = None,
) -> TestSamples:
    """
    Merge quantile and status aggregates of one test run.

    A status row without a matching quantile row gets a zero-latency
    placeholder record so its counts are kept. The anomaly is logged and,
    when given, reported to ``on_missing``.

    Args:
        test: Test run the rows belong to.
        quantiles: Per-endpoint latency quantiles.
        statuses: Per-endpoint, per-status request counts.
        on_missing: Called with the key of every status row that had no
            quantile row.

    Returns:
        Merged samples grouped by label. Record order within a label is
        unspecified; rank them with k6stat.core.ranking.
    """
    durations: dict[MergeKey, dict] = {}
    for q in quantiles:
        durations[MergeKey(q.id, q.start, q.label, q.url)] = {
            "url": q.url,
            "p50": q.p50,
            "p90": q.p90,
            "p95": q.p95,
            "p99": q.p99,
            "max": q.max,
            "status": {},
        }

    for s in statuses:
        key = MergeKey(s.id, s.start, s.label, s.url)
        d = durations.get(key)
        if d is None:
            d = {"url": s.url, "status": {}}
            durations[key] = d
            logger.warning("no durations record for %r", key)
            if on_missing is not None:
                on_missing(key)
        d["status"][s.status] = d["status"].get(s.status, 0.0) + s.count

    samples: dict[str, list[SampleDurations]] = {}
    for key, d in durations.items():
        d["count"], d["errors_pcnt"] = http_errors_pcnt(d["status"])
        samples.setdefault(key.label, []).append(SampleDurations(**d))

    return TestSamples(test=test, samples=samples)
