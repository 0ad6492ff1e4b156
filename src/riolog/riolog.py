#
# riolog.py
#
# Viewer for RIO log files: merges one or more files by timestamp, filters,
# and shows the entries colored by level in a pager, or writes them to a file.
#

from __future__ import annotations

import argparse
from collections.abc import Generator, Iterable
import contextlib
import logging
import sys
from typing import TextIO

from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown

from riolog import __version__
from riolog.config import ViewerConfig, parse_level_arg, parse_pattern_arg, parse_time_arg
from riolog.entry_parsing import LogEntryReader, RioLineParser
from riolog.errors import EXIT_INTERRUPTED, EXIT_OK, EXIT_USAGE, RioLogError, SourceError
from riolog.file_reading import FileReader
from riolog.formatting import Renderer
from riolog.log_entry import LogEntry, ParseIssue, ParseResult
from riolog.memstats import GLOBAL_MEM_STATS
from riolog.merging import IssueOrder, Merger
from riolog.output import FileSink, OutputSink, PagerSink, SinkState, StdoutSink, pager_command

logger = logging.getLogger("riolog")


def make_argument_parser():
    epilog_notes = """
    Date/time values for --since and --until are given in `YYYY-MM-DD HH:MM:SS.SSS` format,
    with trailing milliseconds, seconds and time optional. A "T" can be included between
    the date and time to avoid quoting the value on the command line. Relative times such as
    "15m" for "15 minutes ago" are also accepted, using units "s", "m", "h", or "d".
    Log timestamps are UTC, and both bounds are inclusive.
    """

    parser = argparse.ArgumentParser(prog="riolog", description="RIO log filter & viewer", epilog=epilog_notes)
    parser.add_argument(
        "files",
        nargs="*",
        metavar="FILE",
        help="log file(s) to show; with no FILE, or when FILE is -, read standard input",
    )
    parser.add_argument("--output", "-o", metavar="FILE", help="write the log to FILE instead of the pager")
    parser.add_argument(
        "--since", "-S",
        type=parse_time_arg,
        metavar="DATE_TIME",
        help="show only entries at or after this date/time",
    )
    parser.add_argument(
        "--until", "-U",
        type=parse_time_arg,
        metavar="DATE_TIME",
        help="show only entries at or before this date/time",
    )
    parser.add_argument(
        "--level", "-L",
        type=parse_level_arg,
        metavar="NAME",
        help="show only entries with this level or higher (debug, info, warning, critical, fatal)",
    )
    parser.add_argument("--contains", "-C", metavar="STRING", help="show only entries containing STRING (case-sensitive)")
    parser.add_argument("--pattern", "-P", type=parse_pattern_arg, metavar="REGEX", help="show only entries matching REGEX")
    parser.add_argument(
        "--match-decoded",
        action="store_true",
        help="match --contains/--pattern against messages with escape sequences decoded",
    )
    parser.add_argument("--no-color", action="store_true", help="do not color the output")
    parser.add_argument("--no-format", action="store_true", help="do not decode escape sequences in messages")
    parser.add_argument("--no-pager", action="store_true", help="write to standard output instead of the pager")
    parser.add_argument("--wrap", "-w", action="store_true", help="wrap long lines in the pager")
    parser.add_argument("--pager-command", metavar="CMD", help="pager command (defaults to $RIOLOG_PAGER, or less)")
    parser.add_argument(
        "--join-continuation",
        action="store_true",
        help="attach lines without a RIO header to the preceding entry",
    )
    parser.add_argument("--warn-malformed", action="store_true", help="report lines that cannot be parsed")
    parser.add_argument(
        "--issue-order",
        choices=[order.value for order in IssueOrder],
        default=IssueOrder.IMMEDIATE.value,
        help="report unparsed lines immediately, or defer them until the next entry of the same file",
    )
    parser.add_argument(
        "--skip-unreadable",
        action="store_true",
        help="when merging several files, skip files that cannot be opened or read",
    )
    parser.add_argument(
        "--encoding", "-enc",
        type=str,
        default="utf-8",
        help="encoding to use when reading log files (defaults to UTF-8)",
    )
    parser.add_argument("--memstats", action="store_true", help="report peak memory use at exit")
    parser.add_argument("--verbose", "-v", action="store_true", help="show diagnostic messages")
    parser.add_argument("--about", action="store_true", help="show detailed help and exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=Console(stderr=True),
                show_time=False,
                show_path=False,
                markup=False,
            )
        ],
        force=True,
    )


class RioLogApplication:
    def __init__(self, config: ViewerConfig, *, stdout: TextIO | None = None):
        self.config = config
        self.stdout = stdout if stdout is not None else sys.stdout
        self.parser = RioLineParser()

    def make_sink(self) -> OutputSink:
        if self.config.output_file is not None:
            return FileSink(self.config.output_file)

        is_terminal = self.stdout.isatty()
        if self.config.use_pager and is_terminal:
            return PagerSink(
                pager_command(self.config.pager_command, colorize=self.config.color, wrap=self.config.wrap),
                colorize=self.config.color,
            )
        return StdoutSink(self.stdout, colorize=self.config.color and is_terminal)

    def run(self) -> SinkState:
        sink = self.make_sink()
        renderer = Renderer(
            sink.colorize,
            decode=self.config.decode_escapes,
            source_names=self.config.files,
        )

        with contextlib.ExitStack() as stack:
            sources = self._open_sources(stack)
            merged = Merger(
                sources,
                issue_order=self.config.issue_order,
                skip_unreadable=self.config.skip_unreadable,
            )
            entries = self._report_issues(self.config.filter_spec.apply(merged))
            lines = renderer(entries)
            stack.callback(lines.close)

            if self.config.memstats:
                GLOBAL_MEM_STATS.ensure_started()
                lines = GLOBAL_MEM_STATS.track(lines)

            return sink.deliver(lines)

    def _open_sources(self, stack: contextlib.ExitStack) -> list[LogEntryReader]:
        skip_unreadable = self.config.skip_unreadable and len(self.config.files) > 1

        sources = []
        first_error: SourceError | None = None
        for source_index, fname in enumerate(self.config.files):
            try:
                reader = stack.enter_context(FileReader.get_reader(fname, self.config.encoding))
            except SourceError as exc:
                if not skip_unreadable:
                    raise
                logger.warning("skipping source: %s", exc)
                first_error = first_error or exc
                continue

            sources.append(
                LogEntryReader(
                    reader,
                    source_index,
                    fname,
                    join_continuation_lines=self.config.join_continuation_lines,
                    parser=self.parser,
                )
            )

        if not sources and first_error is not None:
            raise first_error
        return sources

    def _report_issues(self, stream: Iterable[ParseResult]) -> Generator[LogEntry, None, None]:
        level = logging.WARNING if self.config.warn_malformed else logging.DEBUG
        for item in stream:
            if isinstance(item, ParseIssue):
                logger.log(level, "skipped %s", item)
                continue
            yield item


def run_cli(argv: list[str] | None = None) -> int:
    parser = make_argument_parser()
    args_ns = parser.parse_args(argv)

    if args_ns.about:
        from riolog.about import text

        Console().print(Markdown(text))
        return EXIT_OK

    configure_logging(args_ns.verbose)

    try:
        config = ViewerConfig.from_args(args_ns)
    except ValueError as ve:
        parser.print_usage(sys.stderr)
        Console(stderr=True, highlight=False).print(f"riolog: error: {ve}", markup=False, soft_wrap=True)
        return EXIT_USAGE

    try:
        RioLogApplication(config).run()
    except RioLogError as exc:
        Console(stderr=True, highlight=False).print(f"riolog: error: {exc}", markup=False, soft_wrap=True)
        return exc.exit_code
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED

    return EXIT_OK


def main():
    sys.exit(run_cli())


if __name__ == '__main__':
    main()
