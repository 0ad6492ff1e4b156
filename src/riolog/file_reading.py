from __future__ import annotations

import abc
import io
import sys

from riolog.errors import SourceOpenError

STDIN_NAME = "-"


class FileReader:
    """
    Line iterator over one input source, selected by file name.

    Readers are context managers, and also close themselves once their lines
    are exhausted, so that every open handle is released whether the run ends
    normally, on an error, or early because the pager was closed.
    """
    @classmethod
    def get_reader(cls, name: str, encoding: str) -> FileReader:
        for subcls in cls.__subclasses__():
            if subcls is TextFileReader:
                continue
            if subcls._can_read(name):
                reader_cls = subcls
                break
        else:
            reader_cls = TextFileReader

        try:
            return reader_cls(name, encoding)
        except (OSError, LookupError) as exc:
            raise SourceOpenError(name, exc) from exc

    @classmethod
    @abc.abstractmethod
    def _can_read(cls, fname: str) -> bool:
        """Override in subclasses"""

    @abc.abstractmethod
    def _close_reader(self):
        """Override in subclasses"""

    def __init__(self, file_name: str, encoding: str):
        self.file_name = file_name
        self.encoding = encoding
        self.closed = False
        self._iter = iter(())

    def __iter__(self):
        return self

    def __next__(self) -> str:
        try:
            return next(self._iter)
        except StopIteration:
            self.close()
            raise

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._close_reader()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


class TextFileReader(FileReader):
    @classmethod
    def _can_read(cls, fname: str) -> bool:
        return True

    def __init__(self, fname: str, encoding: str):
        super().__init__(fname, encoding)
        self._close_obj = open(self.file_name, encoding=self.encoding, errors="replace")
        self._iter = self._close_obj

    def _close_reader(self):
        self._close_obj.close()


class GzipFileReader(FileReader):
    @classmethod
    def _can_read(cls, fname: str) -> bool:
        return fname.endswith(".gz")

    def __init__(self, fname: str, encoding: str):
        import gzip

        super().__init__(fname, encoding)
        self._close_obj = gzip.open(self.file_name, "rt", encoding=self.encoding, errors="replace")
        self._iter = self._close_obj

    def _close_reader(self):
        self._close_obj.close()


class StdinReader(FileReader):
    @classmethod
    def _can_read(cls, fname: str) -> bool:
        return fname == STDIN_NAME

    def __init__(self, fname: str, encoding: str):
        super().__init__(fname, encoding)
        self._stream = io.TextIOWrapper(sys.stdin.buffer, encoding=self.encoding, errors="replace")
        self._iter = self._stream

    def _close_reader(self):
        # leave the process's stdin open, only drop our wrapper around it
        self._stream.detach()
