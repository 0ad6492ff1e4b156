from __future__ import annotations

from collections.abc import Generator, Iterable
from datetime import datetime
import re

from riolog.errors import SourceReadError
from riolog.escapes import has_dangling_escape
from riolog.log_entry import IssueReason, LogEntry, LogLevel, ParseIssue, ParseResult


class RioLineParser:
    r"""
    Class to split RIO log lines into their fields.

    A RIO line looks like:

        -warning:<16866> 2020-01-13 20:09:18.476 UTC [net.io]: retry \"eth0\"

    - level token after the leading '-', ending with ':'
    - process id in angle brackets
    - timestamp with milliseconds, always UTC
    - category in square brackets, followed by ': '
    - everything else is the message, kept with its escape sequences undecoded

    Lines that cannot be split this way are returned as ParseIssues instead of
    raising, so that one bad line never stops the rest of a file from being read.
    """
    timestamp_pattern = r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{3}"
    strptime_format = "%Y-%m-%d %H:%M:%S.%f"

    # the timestamp is captured loosely here, and validated separately, so that a
    # bad timestamp can be reported as such instead of as a generic mismatch
    pattern = (
        r"(?P<header>-(?P<level>\w+):<(?P<pid>\d+)> "
        r"(?P<timestamp>\S+ \S+) UTC "
        r"\[(?P<category>[^\]]*)\]: ?)"
        r"(?P<message>.*)"
    )
    header_start_pattern = r"-\w+:"

    def __init__(self):
        self._match_line = re.compile(self.pattern, flags=re.DOTALL).fullmatch
        self._match_timestamp = re.compile(self.timestamp_pattern).fullmatch
        self.is_header_start = re.compile(self.header_start_pattern).match

    def parse_timestamp(self, s: str) -> datetime | None:
        if not self._match_timestamp(s):
            return None
        try:
            return datetime.strptime(s, self.strptime_format)
        except ValueError:
            return None

    def parse_line(
            self,
            line: str,
            line_number: int = 0,
            source_index: int = 0,
            source_name: str = "<input>",
    ) -> ParseResult:

        def issue(reason: IssueReason) -> ParseIssue:
            return ParseIssue(reason, line, line_number, source_index, source_name)

        m = self._match_line(line)
        if m is None:
            if self.is_header_start(line):
                return issue(IssueReason.TRUNCATED_RECORD)
            return issue(IssueReason.MALFORMED_LINE)

        level = LogLevel.from_token(m["level"])
        if level is None:
            return issue(IssueReason.UNRECOGNIZED_LEVEL)

        timestamp = self.parse_timestamp(m["timestamp"])
        if timestamp is None:
            return issue(IssueReason.UNPARSEABLE_TIMESTAMP)

        message = m["message"]
        if has_dangling_escape(message):
            return issue(IssueReason.INVALID_ESCAPE)

        return LogEntry(
            timestamp=timestamp,
            level=level,
            message=message,
            source_index=source_index,
            raw_line=line,
            line_number=line_number,
            pid=int(m["pid"]),
            category=m["category"],
            header=m["header"],
        )


class LogEntryReader:
    """
    One-pass iterator over the LogEntries and ParseIssues of a single source.

    Blank lines separate entries and are skipped. If join_continuation_lines is
    True, lines without a RIO header that directly follow a valid entry are
    appended to that entry's message (tracebacks, pretty-printed data, etc.);
    otherwise each such line is reported as a malformed line. A continuation
    line ending in a lone backslash is reported as an invalid escape, and ends
    the entry it would have continued.

    Reading is lazy: at most one entry is held back, waiting to see if the next
    line continues it.
    """
    def __init__(
            self,
            lines: Iterable[str],
            source_index: int = 0,
            source_name: str = "<input>",
            *,
            join_continuation_lines: bool = False,
            parser: RioLineParser | None = None,
    ):
        self.lines = lines
        self.source_index = source_index
        self.source_name = source_name
        self.join_continuation_lines = join_continuation_lines
        self.parser = parser or RioLineParser()
        self._iter = self._read_entries()

    def __iter__(self):
        return self

    def __next__(self) -> ParseResult:
        return next(self._iter)

    def close(self) -> None:
        self._iter.close()

    def _read_lines(self) -> Generator[tuple[int, str], None, None]:
        line_iter = iter(self.lines)
        line_number = 0
        while True:
            try:
                line = next(line_iter)
            except StopIteration:
                return
            except (OSError, EOFError, UnicodeDecodeError) as exc:
                raise SourceReadError(self.source_name, exc) from exc
            line_number += 1
            yield line_number, line.rstrip("\r\n")

    def _read_entries(self) -> Generator[ParseResult, None, None]:
        pending: LogEntry | None = None

        for line_number, line in self._read_lines():
            if not line.strip():
                # blank line ends the current entry
                if pending is not None:
                    yield pending
                    pending = None
                continue

            if pending is not None and not self.parser.is_header_start(line):
                if has_dangling_escape(line):
                    # the entry ends here; the broken line is reported on its own
                    yield pending
                    pending = None
                    yield ParseIssue(
                        IssueReason.INVALID_ESCAPE, line, line_number, self.source_index, self.source_name
                    )
                    continue
                pending.append_continuation(line)
                continue

            result = self.parser.parse_line(line, line_number, self.source_index, self.source_name)

            if pending is not None:
                yield pending
                pending = None

            if self.join_continuation_lines and isinstance(result, LogEntry):
                pending = result
            else:
                yield result

        if pending is not None:
            yield pending
