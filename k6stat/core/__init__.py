"""
Core sample processing package.

Modules:
- merge: merge quantile and status aggregates into per-endpoint records
- ranking: per-metric sort cascades over merged and diffed records
- comparison: diff of a test run against a reference run
- sort_by: ranking metric names
- queries: storage queries (ClickHouse)
- session: explicit operator session state
- report: plain-text tables
- samples_file: JSON save/load of merged samples
"""

from .sort_by import (
    SortBy,
    InvalidSortByError,
    DEFAULT_SORT_BY,
)
from .merge import (
    EXPECTED_STATUSES,
    MergeKey,
    http_errors_pcnt,
    merge_samples,
)
from .ranking import (
    SORT_CASCADES,
    DIFF_SORT_CASCADES,
    cascade_for,
    sort_samples_durations,
    sort_samples_durations_by_diff,
    sort_test_samples,
)
from .comparison import (
    diff_sample,
    diff_samples,
    status_delta,
)

__all__ = [
    # Sort By
    "SortBy",
    "InvalidSortByError",
    "DEFAULT_SORT_BY",
    # Merge
    "EXPECTED_STATUSES",
    "MergeKey",
    "http_errors_pcnt",
    "merge_samples",
    # Ranking
    "SORT_CASCADES",
    "DIFF_SORT_CASCADES",
    "cascade_for",
    "sort_samples_durations",
    "sort_samples_durations_by_diff",
    "sort_test_samples",
    # Comparison
    "diff_sample",
    "diff_samples",
    "status_delta",
]
