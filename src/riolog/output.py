"""
Output sinks - the last stage of the riolog pipeline.

A sink takes the stream of rendered lines and delivers it to a pager, to
standard output, or to a file. A pager (or a program reading our stdout) may
quit before reading everything; that is reported by the OS as a broken pipe,
and is treated here as a normal end of output, not as an error.
"""
from __future__ import annotations

import abc
from collections.abc import Iterable, Sequence
import enum
import os
import shlex
import subprocess
import sys
from typing import TextIO

from riolog.errors import OutputFileError, OutputWriteError, PagerSpawnError, SinkError

DEFAULT_PAGER = "less"


class SinkState(enum.Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    COMPLETED = "completed"
    ABORTED = "aborted"


class WriteResult(enum.Enum):
    WRITTEN = "written"
    CONSUMER_GONE = "consumer gone"


def pager_command(base_command: str, *, colorize: bool, wrap: bool) -> list[str]:
    """
    Build the command line for the pager. The default pager (less) gets the
    options needed to show colors and to leave short output on the screen.
    """
    command = shlex.split(base_command)
    if os.path.basename(command[0]) == DEFAULT_PAGER and len(command) == 1:
        command.append("--quit-if-one-screen")
        if colorize:
            command.append("--RAW-CONTROL-CHARS")
        if not wrap:
            command.append("--chop-long-lines")
    return command


class OutputSink(abc.ABC):
    """
    Base class for single-use output sinks.

    State goes IDLE -> STREAMING -> COMPLETED, or -> ABORTED if the output
    cannot be delivered (the matching SinkError is raised in that case).
    """
    # True if the reader of our output is allowed to stop reading early
    consumer_may_exit = True
    colorize = False

    def __init__(self):
        self.state = SinkState.IDLE
        self.lines_written = 0

    @property
    @abc.abstractmethod
    def target_name(self) -> str:
        """Override in subclasses"""

    @abc.abstractmethod
    def _deliver(self, lines: Iterable[str]) -> None:
        """Override in subclasses"""

    def deliver(self, lines: Iterable[str]) -> SinkState:
        if self.state is not SinkState.IDLE:
            raise RuntimeError(f"output sink already used (state: {self.state.value})")
        self.state = SinkState.STREAMING
        try:
            self._deliver(lines)
        except SinkError:
            self.state = SinkState.ABORTED
            raise
        self.state = SinkState.COMPLETED
        return self.state

    def _write(self, stream: TextIO, line: str) -> WriteResult:
        try:
            stream.write(line)
        except BrokenPipeError:
            if self.consumer_may_exit:
                return WriteResult.CONSUMER_GONE
            raise OutputWriteError(self.target_name, BrokenPipeError()) from None
        except OSError as exc:
            raise OutputWriteError(self.target_name, exc) from exc
        self.lines_written += 1
        return WriteResult.WRITTEN

    def _flush(self, stream: TextIO) -> WriteResult:
        try:
            stream.flush()
        except BrokenPipeError:
            if self.consumer_may_exit:
                return WriteResult.CONSUMER_GONE
            raise OutputWriteError(self.target_name, BrokenPipeError()) from None
        except OSError as exc:
            raise OutputWriteError(self.target_name, exc) from exc
        return WriteResult.WRITTEN

    def _write_lines(self, stream: TextIO, lines: Iterable[str]) -> WriteResult:
        for line in lines:
            if self._write(stream, line) is WriteResult.CONSUMER_GONE:
                return WriteResult.CONSUMER_GONE
        return self._flush(stream)


class PagerSink(OutputSink):
    """
    Sink that pipes output into an interactive pager, and waits for the pager
    to exit.
    """
    def __init__(self, command: Sequence[str], *, colorize: bool = True):
        super().__init__()
        self.command = list(command)
        self.colorize = colorize
        self.pager_returncode: int | None = None

    @property
    def target_name(self) -> str:
        return f"pager {self.command[0]!r}"

    def _deliver(self, lines: Iterable[str]) -> None:
        try:
            pager = subprocess.Popen(
                self.command,
                stdin=subprocess.PIPE,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as exc:
            raise PagerSpawnError(self.command, exc) from exc

        with pager:
            try:
                self._write_lines(pager.stdin, lines)
            finally:
                _close_pipe(pager.stdin)
            # leaving the with block waits for the pager to exit
        self.pager_returncode = pager.returncode


class StdoutSink(OutputSink):
    """
    Sink writing to standard output, for when no pager is wanted (or stdout is
    not a terminal and riolog is itself part of a shell pipeline).
    """
    def __init__(self, stream: TextIO | None = None, *, colorize: bool = False):
        super().__init__()
        self.stream = stream if stream is not None else sys.stdout
        self.colorize = colorize

    @property
    def target_name(self) -> str:
        return "standard output"

    def _deliver(self, lines: Iterable[str]) -> None:
        if self._write_lines(self.stream, lines) is WriteResult.CONSUMER_GONE and self.stream is sys.stdout:
            # point stdout at devnull, so that the interpreter's final flush at
            # exit does not report the broken pipe again
            devnull = os.open(os.devnull, os.O_WRONLY)
            os.dup2(devnull, sys.stdout.fileno())
            os.close(devnull)


class FileSink(OutputSink):
    """
    Sink writing plain, uncolored UTF-8 text to a file. Any failure to create
    or write the file is fatal.
    """
    consumer_may_exit = False
    colorize = False

    def __init__(self, path: str | os.PathLike):
        super().__init__()
        self.path = path

    @property
    def target_name(self) -> str:
        return str(self.path)

    def _deliver(self, lines: Iterable[str]) -> None:
        try:
            outfile = open(self.path, "w", encoding="utf-8")
        except OSError as exc:
            raise OutputFileError(self.path, exc) from exc

        try:
            self._write_lines(outfile, lines)
        finally:
            try:
                outfile.close()
            except OSError as exc:
                raise OutputWriteError(self.path, exc) from exc


def _close_pipe(pipe: TextIO | None) -> None:
    if pipe is None:
        return
    try:
        pipe.close()
    except BrokenPipeError:
        # pager quit with unread output still buffered
        pass
