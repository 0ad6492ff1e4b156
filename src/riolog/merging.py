from __future__ import annotations

from collections.abc import Generator, Iterable, Sequence
import enum
import heapq
import itertools
import logging

from riolog.errors import SourceReadError
from riolog.log_entry import ParseIssue, ParseResult

logger = logging.getLogger(__name__)


class IssueOrder(enum.Enum):
    """
    When ParseIssues pulled from a source are passed downstream.

    IMMEDIATE - as soon as they are read, ahead of any pending entries
    DEFERRED - right after the next entry from the same source is emitted
    """
    IMMEDIATE = "immediate"
    DEFERRED = "deferred"


class Merger:
    """
    Class that takes a list of per-source iterators of LogEntries (each already
    in timestamp order) and yields all their entries in one timestamp-ordered
    stream.

    Uses a heap holding at most one head entry per source. Entries with equal
    timestamps come out in source order, and within one source in the order
    they were read, so merging the same input always gives the same output.

    ParseIssues carry no usable timestamp, so they are not ordered; they are
    forwarded according to issue_order.
    """
    def __init__(
            self,
            sources: Sequence[Iterable[ParseResult]],
            *,
            issue_order: IssueOrder = IssueOrder.IMMEDIATE,
            skip_unreadable: bool = False,
    ):
        self.sources = [iter(src) for src in sources]
        self.issue_order = issue_order

        # dropping a failed source only makes sense if something is left to show
        self.skip_unreadable = skip_unreadable and len(self.sources) > 1

        self._heads: list[tuple] = []
        self._arrival = itertools.count()
        self._deferred_issues: dict[int, list[ParseIssue]] = {}
        self._iter = self._merge()

    def __iter__(self):
        return self

    def __next__(self) -> ParseResult:
        return next(self._iter)

    def _merge(self) -> Generator[ParseResult, None, None]:
        for source_number in range(len(self.sources)):
            yield from self._refill_head(source_number)

        while self._heads:
            *_, source_number, entry = heapq.heappop(self._heads)
            yield entry
            yield from self._flush_deferred_issues(source_number)
            yield from self._refill_head(source_number)

    def _refill_head(self, source_number: int) -> Generator[ParseIssue, None, None]:
        source = self.sources[source_number]
        while True:
            try:
                item = next(source)
            except StopIteration:
                break
            except SourceReadError as exc:
                if not self.skip_unreadable:
                    raise
                logger.warning("skipping rest of source: %s", exc)
                break

            if isinstance(item, ParseIssue):
                if self.issue_order is IssueOrder.IMMEDIATE:
                    yield item
                else:
                    self._deferred_issues.setdefault(source_number, []).append(item)
                continue

            heapq.heappush(
                self._heads,
                (*item.sort_key, next(self._arrival), source_number, item)
            )
            return

        # source is exhausted - report anything still held back for it
        yield from self._flush_deferred_issues(source_number)

    def _flush_deferred_issues(self, source_number: int) -> Generator[ParseIssue, None, None]:
        yield from self._deferred_issues.pop(source_number, ())
