#!/usr/bin/env python3
"""
Interactive shell for browsing k6 test results.

Load a list of tests, select a run (and optionally a reference run), then
print per-label top-N endpoint tables or a diff between the two runs.
Selected datasets can be saved to JSON files and loaded back later.
"""

from __future__ import annotations

import argparse
import asyncio
import cmd
import logging
import re
import shlex
import sys
from datetime import UTC, datetime, timedelta
from typing import IO, Any, Awaitable, Callable, TypeVar

from pydantic import ValidationError

from k6stat.config import settings
from k6stat.connectors.clickhouse_client import ClickHouseClient
from k6stat.core import queries, report
from k6stat.core.errors import QueryError
from k6stat.core.samples_file import load_test_samples_file, save_test_samples
from k6stat.core.session import Session, SessionError
from k6stat.core.sort_by import DEFAULT_SORT_BY, InvalidSortByError, SortBy
from k6stat.core.utils import to_unix_nano
from k6stat.models import Test, TestFilter, TestIdFilter, TestSamples

logger = logging.getLogger(__name__)

T = TypeVar("T")

TIME_LAYOUT = "%Y-%m-%dT%H:%M:%S"

_RFC3339_RE = re.compile(
    r"^(?P<base>\d{4}-\d\d-\d\d[T ]\d\d:\d\d:\d\d)(?:\.(?P<frac>\d+))?(?P<tz>Z|[+-]\d\d:?\d\d)?$"
)


class CommandError(Exception):
    """Invalid command line."""


class _HelpShown(Exception):
    pass


class _ArgumentParser(argparse.ArgumentParser):
    """argparse parser that reports errors instead of exiting the process."""

    def error(self, message: str):
        raise CommandError(message)

    def exit(self, status: int = 0, message: str | None = None):
        if status:
            raise CommandError(message or "invalid arguments")
        raise _HelpShown()


def parse_time(value: str) -> datetime:
    """Parse ``2006-01-02T15:04:05`` (UTC)."""
    try:
        return datetime.strptime(value, TIME_LAYOUT).replace(tzinfo=UTC)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid time {value!r}, want {TIME_LAYOUT}")


def parse_rfc3339_nano(value: str) -> int:
    """Parse an RFC 3339 timestamp with up to nanosecond precision into epoch ns."""
    m = _RFC3339_RE.match(value.strip())
    if m is None:
        raise argparse.ArgumentTypeError(f"invalid time {value!r}, want RFC 3339")
    tz = m.group("tz") or "Z"
    if tz == "Z":
        tz = "+00:00"
    base = datetime.fromisoformat(m.group("base").replace(" ", "T") + tz)
    frac = (m.group("frac") or "").ljust(9, "0")[:9]
    return to_unix_nano(base) + int(frac)


def parse_sort_by(value: str) -> SortBy:
    try:
        return SortBy.from_string(value)
    except InvalidSortByError as e:
        raise argparse.ArgumentTypeError(str(e))


def _build_command_parsers() -> dict[str, argparse.ArgumentParser]:
    now = datetime.now(UTC).replace(microsecond=0)
    parsers: dict[str, argparse.ArgumentParser] = {}

    def add(name: str, description: str) -> argparse.ArgumentParser:
        parser = _ArgumentParser(prog=name, description=description, exit_on_error=False)
        parsers[name] = parser
        return parser

    p = add("tests", "Load tests")
    p.add_argument(
        "-f", "--from", dest="from_", type=parse_time, default=now,
        help=f"Select tests started after ({TIME_LAYOUT}, UTC)",
    )
    p.add_argument(
        "-u", "--until", type=parse_time, default=now + timedelta(hours=24),
        help=f"Select tests started before ({TIME_LAYOUT}, UTC)",
    )
    p.add_argument("-n", "--name", default="", help="Tests name filter (LIKE format)")

    p = add("filter", "Filter for load tests")
    p.add_argument("-l", "--label", default="", help="Label filter (LIKE format)")
    p.add_argument("-u", "--url", default="", help="Url filter (LIKE format)")
    p.add_argument(
        "-U", "--skip-url", action="append", default=[], help="Skip url filter (LIKE format)"
    )

    for name, description in (
        ("select", "Select test"),
        ("reference", "Select reference test (used for compare)"),
    ):
        p = add(name, description)
        p.add_argument(
            "-n", "--number", type=int, default=-1, help="Select test from loaded tests by number"
        )
        p.add_argument("-i", "--id", type=int, default=0, help="Test id (conflicts with number)")
        p.add_argument(
            "-t", "--time", type=parse_rfc3339_nano, default=to_unix_nano(now),
            help="Test start time, RFC 3339 (used with id)",
        )

    for name, description in (("save", "Save tests"), ("load", "Load tests")):
        p = add(name, description)
        p.add_argument("-t", "--test", default="", help="Test file")
        p.add_argument("-r", "--ref", default="", help="Reference test file")

    for name, description in (
        ("top", "Print top of test queries"),
        ("ref-top", "Print top of reference test queries"),
        ("diff", "Print top of diff test/reference queries"),
    ):
        p = add(name, description)
        p.add_argument("-c", "--count", type=int, default=10, help="Top of N queries")
        p.add_argument(
            "-s", "--sort", type=parse_sort_by, default=DEFAULT_SORT_BY,
            help=f"Sort by {SortBy.values_string()}",
        )
        if name == "diff":
            p.add_argument("-d", "--by-diff", action="store_true", help="Top by diff")
        p.add_argument("-o", "--out", default="", help="Save top to file")
        p.add_argument("-a", "--append", action="store_true", help="Append to file")

    return parsers


class K6StatShell(cmd.Cmd):
    """Command loop over a Session and a ClickHouse client."""

    prompt = "k6-stat> "
    intro = "CLI for display xk6-output-clickhouse tests. Type 'help' for commands."
    identchars = cmd.Cmd.identchars + "-"

    def __init__(
        self,
        client: Any,
        tests_table: str | None = None,
        samples_table: str | None = None,
        stdout: IO[str] | None = None,
        stderr: IO[str] | None = None,
    ):
        super().__init__(stdout=stdout)
        self.client = client
        self.tests_table = tests_table
        self.samples_table = samples_table
        self.stderr = stderr or sys.stderr
        self.session = Session()
        self.parsers = _build_command_parsers()
        self._loop = asyncio.new_event_loop()

    # ------------------------------------------------------------------
    # plumbing
    # ------------------------------------------------------------------

    def _run(self, coro: Awaitable[T]) -> T:
        return self._loop.run_until_complete(coro)

    def close(self) -> None:
        try:
            close = getattr(self.client, "close", None)
            if close is not None:
                self._run(close())
        finally:
            self._loop.close()

    def _error(self, message: str) -> None:
        self.stderr.write(f"Error: {message}\n")

    def _parse(self, command: str, arg: str) -> argparse.Namespace | None:
        logger.debug("command %s %r", command, arg)
        try:
            return self.parsers[command].parse_args(shlex.split(arg))
        except _HelpShown:
            return None
        except (CommandError, argparse.ArgumentError, ValueError) as e:
            self._error(str(e))
            return None

    def _guarded(self, handler: Callable[[argparse.Namespace], None], command: str, arg: str):
        args = self._parse(command, arg)
        if args is None:
            return
        try:
            handler(args)
        except QueryError as e:
            if e.query:
                self._error(f"{e}, sql: {e.query}")
            else:
                self._error(str(e))
        except SessionError as e:
            self._error(str(e))

    def _output(self, text: str, out: str = "", append: bool = False) -> None:
        self.stdout.write(text)
        if out:
            try:
                with open(out, "a" if append else "w", encoding="utf-8") as f:
                    f.write(text)
            except OSError as e:
                self._error(str(e))

    def parseline(self, line: str):
        command, arg, line = super().parseline(line)
        if command:
            command = command.replace("-", "_")
        return command, arg, line

    def completenames(self, text: str, *ignored):
        return [name for name in self.parsers if name.startswith(text)] + [
            name for name in ("help", "exit", "quit") if name.startswith(text)
        ]

    def emptyline(self):
        pass

    def default(self, line: str):
        self._error(f"command {line!r} not handled")

    # ------------------------------------------------------------------
    # commands
    # ------------------------------------------------------------------

    def do_tests(self, arg: str):
        """Load tests started in a time window."""
        self._guarded(self._tests, "tests", arg)

    def _tests(self, args: argparse.Namespace) -> None:
        f = TestFilter(
            from_=int(args.from_.timestamp()), until=int(args.until.timestamp()), name=args.name
        )
        self.session.tests = self._run(queries.get_tests(self.client, f, self.tests_table))
        self.stdout.write(report.format_tests(self.session.tests))

    def do_filter(self, arg: str):
        """Set the label/url filter used by select and reference."""
        self._guarded(self._filter, "filter", arg)

    def _filter(self, args: argparse.Namespace) -> None:
        self.session.set_filter(args.label, args.url, args.skip_url)

    def do_select(self, arg: str):
        """Select a test and load its samples."""
        self._guarded(lambda args: self._select(args, "test"), "select", arg)

    def do_reference(self, arg: str):
        """Select a reference test and load its samples."""
        self._guarded(lambda args: self._select(args, "ref"), "reference", arg)

    def _resolve_test(self, args: argparse.Namespace, descr: str) -> Test:
        if args.id > 0:
            test = self._run(
                queries.get_test_by_id(
                    self.client, TestIdFilter(id=args.id, time=args.time), self.tests_table
                )
            )
            self.stdout.write(report.format_test(test, descr))
            return test
        if args.number < 0:
            raise SessionError("set test number (-n) or id (-i)")
        test = self.session.test_by_number(args.number)
        self.stdout.write(report.format_test(test, str(args.number)))
        return test

    def _filter_string(self) -> str:
        out = "Filter:"
        if self.session.label:
            out += f' Label "{self.session.label}"'
        if self.session.url:
            out += f' Url "{self.session.url}"'
        if self.session.skip_url:
            out += f" Skip url {self.session.skip_url}"
        return out + "\n"

    def _select(self, args: argparse.Namespace, descr: str) -> None:
        test = self._resolve_test(args, descr)
        self.stdout.write(self._filter_string())

        samples = self._run(
            queries.load_test_samples(
                self.client, test, self.session.sample_filter(test), self.samples_table
            )
        )
        urls = sum(len(durations) for durations in samples.samples.values())
        if descr == "ref":
            self.session.reference = samples
            self.stdout.write(f"Loaded reference {urls} urls in {len(samples.samples)} labels\n")
        else:
            self.session.selected = samples
            self.stdout.write(f"Loaded {urls} urls in {len(samples.samples)} labels\n")

    def do_save(self, arg: str):
        """Save the selected and/or reference samples to JSON files."""
        self._guarded(self._save, "save", arg)

    def _save(self, args: argparse.Namespace) -> None:
        for path, samples, what in (
            (args.test, self.session.selected, "test"),
            (args.ref, self.session.reference, "ref"),
        ):
            if not path:
                continue
            if samples is None:
                self._error(f"save '{what}' samples: nothing selected")
                continue
            try:
                save_test_samples(samples, path)
            except OSError as e:
                self._error(f"save '{what}' samples with {e}")

    def do_load(self, arg: str):
        """Load selected and/or reference samples from JSON files."""
        self._guarded(self._load, "load", arg)

    def _load_file(self, path: str, what: str) -> TestSamples | None:
        try:
            return load_test_samples_file(path)
        except (OSError, ValidationError) as e:
            self._error(f"load '{what}' samples with {e}")
            return None

    def _load(self, args: argparse.Namespace) -> None:
        if args.test:
            samples = self._load_file(args.test, "test")
            if samples is not None:
                self.session.selected = samples
        if args.ref:
            samples = self._load_file(args.ref, "ref")
            if samples is not None:
                self.session.reference = samples

    def do_top(self, arg: str):
        """Print the top endpoints of the selected test."""
        self._guarded(self._top, "top", arg)

    def _top(self, args: argparse.Namespace) -> None:
        samples = self.session.top(args.sort)
        text = report.format_test(samples.test, "test") + "\n"
        text += report.format_http_top(samples.samples, args.count)
        self._output(text, args.out, args.append)

    def do_ref_top(self, arg: str):
        """Print the top endpoints of the reference test."""
        self._guarded(self._ref_top, "ref-top", arg)

    def _ref_top(self, args: argparse.Namespace) -> None:
        samples = self.session.ref_top(args.sort)
        text = report.format_test(samples.test, "ref") + "\n"
        text += report.format_http_top(samples.samples, args.count)
        self._output(text, args.out, args.append)

    def do_diff(self, arg: str):
        """Print the top endpoints of the selected test compared with the reference."""
        self._guarded(self._diff, "diff", arg)

    def _diff(self, args: argparse.Namespace) -> None:
        diff = self.session.diff(args.sort, by_diff=args.by_diff)
        text = report.format_test(diff.test, "test")
        text += report.format_test(diff.reference, "ref", head=False) + "\n"
        text += report.format_http_top_diff(diff.samples, args.count)
        self._output(text, args.out, args.append)

    def do_help(self, arg: str):
        """Print help."""
        name = arg.strip()
        if name in self.parsers:
            self.stdout.write(self.parsers[name].format_help())
            return
        if name:
            self._error(f"unknown command {name!r}")
            return
        self.stdout.write("Commands:\n")
        for command, parser in self.parsers.items():
            self.stdout.write(f"  {command:<10} {parser.description}\n")
        self.stdout.write(f"  {'help':<10} Print help (help <command> for options)\n")
        self.stdout.write(f"  {'exit':<10} Exit (also quit, Ctrl-D)\n")

    def do_exit(self, arg: str):
        """Exit the shell."""
        return True

    do_quit = do_exit

    def do_EOF(self, arg: str):
        self.stdout.write("\n")
        return True


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="CLI for display xk6-output-clickhouse tests."
    )
    parser.add_argument("-d", "--db", default=settings.K6_STAT_DB, help="Database name.")
    parser.add_argument(
        "-t", "--tests", default=settings.K6_STAT_TABLE_TESTS, help="Tests table."
    )
    parser.add_argument(
        "-s", "--samples", default=settings.K6_STAT_TABLE_SAMPLES, help="Samples table."
    )
    parser.add_argument(
        "-a", "--address", default=settings.K6_STAT_DB_ADDR, help="Database address."
    )
    parser.add_argument(
        "-p", "--params", default=settings.K6_STAT_DB_PARAM, help="Connection params."
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Log level for diagnostics printed to stderr.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(levelname)s: %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)

    client = ClickHouseClient(
        address=args.address,
        database=args.db,
        params=args.params,
        max_connections=3,
        timeout=settings.K6_STAT_DB_TIMEOUT,
        client_name="cli",
    )
    shell = K6StatShell(client, tests_table=args.tests, samples_table=args.samples)
    try:
        shell.cmdloop()
    except KeyboardInterrupt:
        print("Aborted.", file=sys.stderr)
    finally:
        shell.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
