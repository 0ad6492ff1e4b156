from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
import enum
from functools import cached_property

from riolog.escapes import decode_escapes


class LogLevel(enum.IntEnum):
    """
    Severity of a RIO log entry, ordered so that comparisons follow severity.
    """
    DEBUG = 0
    INFO = 1
    WARNING = 2
    CRITICAL = 3
    FATAL = 4

    @classmethod
    def from_token(cls, token: str) -> LogLevel | None:
        try:
            return cls[token.upper()]
        except KeyError:
            return None

    @property
    def token(self) -> str:
        return self.name.lower()


class IssueReason(enum.Enum):
    MALFORMED_LINE = "malformed line"
    TRUNCATED_RECORD = "truncated record"
    UNRECOGNIZED_LEVEL = "unrecognized level"
    UNPARSEABLE_TIMESTAMP = "unparseable timestamp"
    INVALID_ESCAPE = "invalid escape sequence"


@dataclass(eq=False)
class LogEntry:
    """
    One parsed RIO log entry.

    The message is kept exactly as written in the file; the decoded form is
    computed on first access and cached, so records dropped by filtering never
    pay for decoding, and records that are both filtered and rendered decode
    only once.
    """
    timestamp: datetime
    level: LogLevel
    message: str
    source_index: int = 0
    raw_line: str = ""
    line_number: int = 0
    pid: int = 0
    category: str = ""
    header: str = ""

    @cached_property
    def decoded_message(self) -> str:
        return decode_escapes(self.message)

    def append_continuation(self, line: str) -> None:
        self.message = f"{self.message}\n{line}"
        self.raw_line = f"{self.raw_line}\n{line}"
        # message changed, drop any cached decoding
        self.__dict__.pop("decoded_message", None)

    @property
    def sort_key(self) -> tuple[datetime, int]:
        return self.timestamp, self.source_index


@dataclass(frozen=True)
class ParseIssue:
    """
    Diagnostic for an input line that could not be turned into a LogEntry.
    """
    reason: IssueReason
    raw_line: str
    line_number: int = 0
    source_index: int = 0
    source_name: str = field(default="<input>")

    def __str__(self) -> str:
        return f"{self.source_name}:{self.line_number}: {self.reason.value}: {self.raw_line!r}"


ParseResult = LogEntry | ParseIssue
