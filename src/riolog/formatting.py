from __future__ import annotations

from collections.abc import Generator, Iterable, Sequence
from functools import partial
import re

from rich.color import Color

from riolog.log_entry import LogEntry, LogLevel


def _sgr(color_name: str) -> str:
    return f"\x1b[{';'.join(Color.parse(color_name).get_ansi_codes())}m"


LEVEL_COLOR_NAMES = {
    LogLevel.DEBUG: "white",
    LogLevel.INFO: "bright_white",
    LogLevel.WARNING: "yellow",
    LogLevel.CRITICAL: "red",
    LogLevel.FATAL: "bright_red",
}
LEVEL_COLORS = {level: _sgr(color_name) for level, color_name in LEVEL_COLOR_NAMES.items()}
SOURCE_COLOR = _sgr("cyan")
RESET = "\x1b[0m"

# removes every ESC byte, along with the rest of the control sequence it starts
strip_escape_sequences = partial(re.compile("\x1b" + r"(\[[0-?]*[ -/]*[@-~])?").sub, "")


class Renderer:
    """
    Formats log entries as display lines.

    Each line is the entry's header and message, with the message's escape
    sequences decoded (unless decode is False). When colorize is True, the line
    is wrapped in the ANSI color for the entry's level; since a pager shows each
    physical line separately, the color is restored after every newline inside
    the message. When colorize is False, no escape bytes are written at all.

    If more than one source name is given, each line is prefixed with the name
    of the file the entry came from.
    """
    def __init__(
            self,
            colorize: bool,
            *,
            decode: bool = True,
            source_names: Sequence[str] | None = None,
    ):
        self.colorize = colorize
        self.decode = decode
        self.source_names = list(source_names or [])
        self.show_source = len(self.source_names) > 1

    def _source_prefix(self, entry: LogEntry) -> str:
        if not self.show_source:
            return ""
        name = self.source_names[entry.source_index]
        if self.colorize:
            return f"{SOURCE_COLOR}{name}: {RESET}"
        return f"{name}: "

    def render(self, entry: LogEntry) -> str:
        message = entry.decoded_message if self.decode else entry.message

        if not self.colorize:
            return strip_escape_sequences(f"{self._source_prefix(entry)}{entry.header}{message}") + "\n"

        color = LEVEL_COLORS[entry.level]
        message = message.replace("\n", f"{RESET}\n{color}")
        return f"{self._source_prefix(entry)}{color}{entry.header}{message}{RESET}\n"

    def __call__(self, entries: Iterable[LogEntry]) -> Generator[str, None, None]:
        for entry in entries:
            yield self.render(entry)
