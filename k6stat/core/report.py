"""
Plain-text reports for the interactive shell.

Renders test lists and per-label top-N endpoint tables. Records are
printed in list order; rank them first with k6stat.core.ranking.
"""

from __future__ import annotations

import json
from typing import Iterable, Mapping, Sequence

from k6stat.core.merge import EXPECTED_STATUSES
from k6stat.models import SampleDurations, SampleDurationsDiff, Test

TESTS_HEAD = "-" * (9 + 19 + 30 + 45 + 18)
TOP_HEAD = "-" * (9 * 8 + 16)
TOP_DIFF_HEAD = "-" * (20 * 8 + 14)

# Expected statuses lead the status column, in this order.
_LEADING_STATUSES = ("200", "400", "404")


def _ts(test: Test) -> str:
    return test.ts.isoformat()


def _pcnt(value: float, total: float) -> float:
    return value / total * 100 if total else 0.0


def diff_string(value: float, diff: float) -> str:
    return f"{value:.2f} ({diff:.2f})"


def count_diff_string(count: float, diff: float) -> str:
    return f"{count:.0f} ({diff:.0f})"


def format_tests(tests: Sequence[Test]) -> str:
    lines = [f"{'N':>9} | {'Id':>19} | {'Ts':>30} | Name\nParams", TESTS_HEAD]
    for i, t in enumerate(tests):
        lines.append(f"{i:>9} | {t.id:>19} | {_ts(t):>30} | {t.name}\n{t.params}")
    return "\n".join(lines) + "\n"


def format_test(test: Test, descr: str, head: bool = True) -> str:
    """One test as a table row, optionally with the table header."""
    out = ""
    if head:
        out += f"{'N':>9} | {'Id':>19} | {'Ts':>30} | {'Name':>45} | Params\n{TESTS_HEAD}\n"
    out += f"{descr:>9} | {test.id:>19} | {_ts(test):>30} | {test.name:>45} | {test.params}\n"
    return out


def _ordered_statuses(status: Mapping[str, float]) -> list[str]:
    return sorted(k for k in status if k not in EXPECTED_STATUSES)


def _status_column(d: SampleDurations) -> str:
    parts = []
    v = d.status.get("200", 0.0)
    parts.append(f"200: {_pcnt(v, d.count):.2f}" if v > 0 else "200: 0")
    for code in _LEADING_STATUSES[1:]:
        v = d.status.get(code, 0.0)
        if v > 0:
            parts.append(f"{code}: {_pcnt(v, d.count):.2f}")
    for code in _ordered_statuses(d.status):
        parts.append(f"{code}: {_pcnt(d.status[code], d.count):.2f}")
    return " | " + ", ".join(parts)


def _status_diff_column(d: SampleDurationsDiff) -> str:
    status_diff = d.status_diff or {}
    ref_count = d.count - d.count_diff

    def cell(code: str, v: float) -> str:
        ref_v = _pcnt(v - status_diff.get(code, 0.0), ref_count)
        return f"{code}: {diff_string(_pcnt(v, d.count), ref_v)}"

    parts = [cell("200", d.status.get("200", 0.0))]
    for code in _LEADING_STATUSES[1:]:
        v = d.status.get(code, 0.0)
        if v > 0 or status_diff.get(code, 0.0) != 0:
            parts.append(cell(code, v))
    for code in _ordered_statuses(d.status):
        parts.append(cell(code, d.status[code]))
    return " " + ", ".join(parts)


def _labels(samples: Mapping[str, object]) -> Iterable[str]:
    return sorted(samples)


def format_http_top(samples: Mapping[str, Sequence[SampleDurations]], top: int) -> str:
    """Top ``top`` endpoints of every label, labels in alphabetical order."""
    out = []
    for label in _labels(samples):
        durations = samples[label]
        out.append(f"\nLabel: {json.dumps(label)}, {len(durations)} urls\n{TOP_HEAD}\n")
        out.append(
            f"{'P50':>9} | {'P90':>9} | {'P95':>9} | {'P99':>9} | {'Max':>9} | "
            f"{'Count':>9} | {'Err%':>6} | Status%\n{TOP_HEAD}\n"
        )
        for d in durations[:top]:
            out.append(
                f"{d.url}\n{d.p50:9.2f} | {d.p90:9.2f} | {d.p95:9.2f} | {d.p99:9.2f} | "
                f"{d.max:9.2f} | {d.count:9.0f} | {d.errors_pcnt:6.2f}"
            )
            if d.status:
                out.append(_status_column(d))
            out.append("\n")
    return "".join(out)


def format_http_top_diff(
    samples: Mapping[str, Sequence[SampleDurationsDiff]], top: int
) -> str:
    """
    Top ``top`` diff records of every label.

    Each cell shows ``current (diff)``; the status column shows the current
    share with the reference share in parentheses.
    """
    out = []
    for label in _labels(samples):
        durations = samples[label]
        out.append(f"\nLabel: {json.dumps(label)}, {len(durations)} urls\n{TOP_DIFF_HEAD}\n")
        out.append(
            f"{'Url P50 (Diff)':>20} | {'P90 (Diff)':>20} | {'P95 (Diff)':>20} | "
            f"{'P99 (Diff)':>20} | {'Max (Diff)':>20} | {'Count (Diff)':>20} | "
            f"{'Err% (Diff)':>14} | Status% (Reference)\n{TOP_DIFF_HEAD}\n"
        )
        for d in durations[:top]:
            out.append(
                f"{d.url}\n{diff_string(d.p50, d.p50_diff):>20} | "
                f"{diff_string(d.p90, d.p90_diff):>20} | "
                f"{diff_string(d.p95, d.p95_diff):>20} | "
                f"{diff_string(d.p99, d.p99_diff):>20} | "
                f"{diff_string(d.max, d.max_diff):>20} | "
                f"{count_diff_string(d.count, d.count_diff):>20} | "
                f"{diff_string(d.errors_pcnt, d.errors_pcnt_diff):>14} |"
            )
            if d.status:
                out.append(_status_diff_column(d))
            out.append("\n")
    return "".join(out)
