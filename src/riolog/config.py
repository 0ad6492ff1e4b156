from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
import os
import re

from riolog.filtering import FilterSpec
from riolog.log_entry import LogLevel
from riolog.merging import IssueOrder
from riolog.output import DEFAULT_PAGER

PAGER_ENV_VAR = "RIOLOG_PAGER"

VALID_INPUT_TIME_FORMATS = [
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S,%f",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S,%f",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%d",
]


def parse_time_using(ts_str: str, formats: str | list[str]) -> datetime:
    if not isinstance(formats, (list, tuple)):
        formats = [formats]
    for fmt in formats:
        try:
            return datetime.strptime(ts_str, fmt)
        except ValueError:
            pass
    raise ValueError(f"no matching format for input string {ts_str!r}")


def parse_relative_time(ts_str: str, now: datetime | None = None) -> datetime:
    """
    Convert strings like "15m" (15 minutes ago) to a datetime. RIO timestamps
    are in UTC, so "now" is the current UTC time.
    """
    parts = re.match(r"(\d+)([smhd])$", ts_str, flags=re.IGNORECASE)
    if parts:
        qty, unit = parts.groups()
        seconds = int(qty)
        if now is None:
            now = datetime.now(timezone.utc).replace(tzinfo=None)
        for unit_type, mult in [("s", 1), ("m", 60), ("h", 60), ("d", 24)]:
            seconds *= mult
            if unit.lower() == unit_type:
                return now - timedelta(seconds=seconds)

    raise ValueError(f"invalid relative time string {ts_str!r}")


def parse_time_arg(ts_str: str) -> datetime:
    """
    argparse type for --since/--until values.
    """
    try:
        if ts_str.lower().endswith(tuple("smhd")) and ts_str[:1].isdigit() and "-" not in ts_str:
            return parse_relative_time(ts_str)
        return parse_time_using(ts_str, VALID_INPUT_TIME_FORMATS)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"invalid date/time {ts_str!r} (use YYYY-MM-DD[ HH:MM[:SS[.fff]]], or a relative time like 15m)"
        ) from None


def parse_level_arg(level_str: str) -> LogLevel:
    """
    argparse type for --level values.
    """
    level = LogLevel.from_token(level_str)
    if level is None:
        valid = ", ".join(lvl.token for lvl in LogLevel)
        raise argparse.ArgumentTypeError(f"invalid level {level_str!r} (choose from {valid})")
    return level


def parse_pattern_arg(pattern_str: str) -> re.Pattern:
    try:
        return re.compile(pattern_str)
    except re.error as exc:
        raise argparse.ArgumentTypeError(f"invalid regular expression {pattern_str!r}: {exc}") from None


@dataclass(frozen=True)
class ViewerConfig:
    """
    Everything a riolog run needs, captured once at startup and not changed
    afterwards.
    """
    files: tuple[str, ...] = ("-",)
    filter_spec: FilterSpec = field(default_factory=FilterSpec)
    output_file: str | None = None
    use_pager: bool = True
    pager_command: str = DEFAULT_PAGER
    color: bool = True
    decode_escapes: bool = True
    wrap: bool = False
    encoding: str = "utf-8"
    join_continuation_lines: bool = False
    warn_malformed: bool = False
    issue_order: IssueOrder = IssueOrder.IMMEDIATE
    skip_unreadable: bool = False
    memstats: bool = False

    @property
    def interactive(self) -> bool:
        return self.output_file is None

    @classmethod
    def from_args(cls, args: argparse.Namespace, environ: dict[str, str] | None = None) -> ViewerConfig:
        if environ is None:
            environ = os.environ

        filter_spec = FilterSpec(
            min_level=args.level,
            since=args.since,
            until=args.until,
            contains=args.contains,
            pattern=args.pattern,
            match_decoded=args.match_decoded,
        )

        return cls(
            files=tuple(args.files or ["-"]),
            filter_spec=filter_spec,
            output_file=args.output,
            use_pager=not args.no_pager,
            pager_command=args.pager_command or environ.get(PAGER_ENV_VAR) or DEFAULT_PAGER,
            color=not args.no_color,
            decode_escapes=not args.no_format,
            wrap=args.wrap,
            encoding=args.encoding,
            join_continuation_lines=args.join_continuation,
            warn_malformed=args.warn_malformed,
            issue_order=IssueOrder(args.issue_order),
            skip_unreadable=args.skip_unreadable,
            memstats=args.memstats,
        )
