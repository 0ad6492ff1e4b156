from __future__ import annotations

import os

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_SOURCE_ERROR = 3
EXIT_OUTPUT_ERROR = 4
EXIT_PAGER_ERROR = 5
EXIT_INTERRUPTED = 130


class RioLogError(Exception):
    """
    Base class for errors that end a riolog run; carries the process exit code.
    """
    exit_code = 1


class SourceError(RioLogError):
    exit_code = EXIT_SOURCE_ERROR

    def __init__(self, source_name: str, cause: BaseException):
        self.source_name = source_name
        self.cause = cause
        super().__init__(source_name, cause)


class SourceOpenError(SourceError):
    def __str__(self):
        return f"cannot open file {self.source_name!r}: {_describe(self.cause)}"


class SourceReadError(SourceError):
    def __str__(self):
        return f"error reading file {self.source_name!r}: {_describe(self.cause)}"


class SinkError(RioLogError):
    pass


class OutputFileError(SinkError):
    exit_code = EXIT_OUTPUT_ERROR

    def __init__(self, path: str | os.PathLike, cause: BaseException):
        self.path = path
        self.cause = cause
        super().__init__(path, cause)

    def __str__(self):
        return f"cannot create output file {str(self.path)!r}: {_describe(self.cause)}"


class OutputWriteError(OutputFileError):
    def __str__(self):
        return f"cannot write to {str(self.path)!r}: {_describe(self.cause)}"


class PagerSpawnError(SinkError):
    exit_code = EXIT_PAGER_ERROR

    def __init__(self, command: list[str], cause: BaseException):
        self.command = command
        self.cause = cause
        super().__init__(command, cause)

    def __str__(self):
        return f"cannot start pager {' '.join(self.command)!r}: {_describe(self.cause)}"


def _describe(exc: BaseException) -> str:
    if isinstance(exc, OSError) and exc.strerror:
        return exc.strerror
    return str(exc) or type(exc).__name__
