from __future__ import annotations

from collections.abc import Generator, Iterable
from dataclasses import dataclass
from datetime import datetime
import re

from riolog.escapes import ESCAPED_CHARACTERS
from riolog.log_entry import LogEntry, LogLevel, ParseResult


@dataclass(frozen=True)
class FilterSpec:
    """
    Selection criteria for merged log entries. An entry is shown only if it
    passes every criterion that is set; criteria left as None always pass.

    - min_level: lowest level to show
    - since/until: inclusive time bounds
    - contains: case-sensitive literal text to look for in the message
    - pattern: regular expression to search for in the message
    - match_decoded: match contains/pattern against the message with its escape
      sequences decoded (a contains string or pattern holding a backslash, a
      quote or a control character always matches against decoded text)
    """
    min_level: LogLevel | None = None
    since: datetime | None = None
    until: datetime | None = None
    contains: str | None = None
    pattern: re.Pattern | None = None
    match_decoded: bool = False

    def __post_init__(self):
        if self.since is not None and self.until is not None and self.since > self.until:
            raise ValueError("invalid time range - since must not be later than until")

    @property
    def is_empty(self) -> bool:
        return (
            self.min_level is None
            and self.since is None
            and self.until is None
            and self.contains is None
            and self.pattern is None
        )

    @property
    def uses_decoded_message(self) -> bool:
        return (
            self.match_decoded
            or (self.contains is not None and _targets_decoded_text(self.contains))
            or (self.pattern is not None and _targets_decoded_text(self.pattern.pattern))
        )

    def matches(self, entry: LogEntry) -> bool:
        if self.min_level is not None and entry.level < self.min_level:
            return False
        if self.since is not None and entry.timestamp < self.since:
            return False
        if self.until is not None and entry.timestamp > self.until:
            return False

        if self.contains is None and self.pattern is None:
            return True

        message = entry.decoded_message if self.uses_decoded_message else entry.message
        if self.contains is not None and self.contains not in message:
            return False
        if self.pattern is not None and self.pattern.search(message) is None:
            return False
        return True

    def apply(self, stream: Iterable[ParseResult]) -> Generator[ParseResult, None, None]:
        """
        Yield the entries of stream that match; ParseIssues are passed through.
        """
        if self.is_empty:
            yield from stream
            return

        for item in stream:
            if not isinstance(item, LogEntry) or self.matches(item):
                yield item


def _targets_decoded_text(text: str) -> bool:
    return not ESCAPED_CHARACTERS.isdisjoint(text) or any(c < " " for c in text)
