from datetime import datetime, timedelta
import logging
import random

import pytest

from riolog.entry_parsing import LogEntryReader
from riolog.errors import SourceReadError
from riolog.log_entry import IssueReason, LogEntry, ParseIssue
from riolog.merging import IssueOrder, Merger

from .riolog_testing import fixture_path
from .util import make_entry


def issue(line="???", source_index=0):
    return ParseIssue(IssueReason.MALFORMED_LINE, line, source_index=source_index)


def describe(results):
    return [
        r.raw_line if isinstance(r, ParseIssue) else f"{r.source_index}:{r.timestamp:%H:%M}"
        for r in results
    ]


def test_merge_two_files():
    readers = []
    for source_index, name in enumerate(["rio_a.log", "rio_b.log"]):
        with open(fixture_path(name), encoding="utf-8") as log_file:
            readers.append(list(LogEntryReader(log_file, source_index, name)))

    merged = list(Merger(readers))

    assert [(e.source_index, e.message) for e in merged] == [
        (0, "first from A"),
        (1, "first from B"),
        (1, "second from B"),
        (0, "second from A"),
    ]


def test_equal_timestamps_follow_source_order():
    a = [make_entry("2020-01-13 10:00:00.000", "a1", source_index=1)]
    b = [make_entry("2020-01-13 10:00:00.000", "b1", source_index=0)]
    c = [make_entry("2020-01-13 10:00:00.000", "c1", source_index=2)]

    merged = list(Merger([a, b, c]))

    assert [e.message for e in merged] == ["b1", "a1", "c1"]


def test_equal_timestamps_within_source_keep_read_order():
    a = [
        make_entry("2020-01-13 10:00:00.000", "first"),
        make_entry("2020-01-13 10:00:00.000", "second"),
        make_entry("2020-01-13 10:00:00.000", "third"),
    ]
    b = [make_entry("2020-01-13 10:00:00.000", "other", source_index=1)]

    merged = list(Merger([a, b]))

    assert [e.message for e in merged] == ["first", "second", "third", "other"]


def _random_source(rng, source_index, count):
    start = datetime(2020, 1, 13)
    # coarse steps to get plenty of equal timestamps across sources
    offsets = sorted(rng.randrange(0, 50) for _ in range(count))
    return [
        make_entry(
            f"{start + timedelta(seconds=offset):%Y-%m-%d %H:%M:%S}.000",
            f"{source_index}-{i}",
            source_index=source_index,
        )
        for i, offset in enumerate(offsets)
    ]


@pytest.mark.parametrize("seed", [0, 1, 2, 1234])
def test_merge_matches_stable_sort(seed):
    rng = random.Random(seed)
    sources = [_random_source(rng, source_index, rng.randrange(0, 40)) for source_index in range(5)]

    merged = list(Merger(sources))

    all_entries = [e for src in sources for e in src]
    assert len(merged) == len(all_entries)
    assert all(a.timestamp <= b.timestamp for a, b in zip(merged, merged[1:]))
    assert merged == sorted(all_entries, key=lambda e: e.sort_key)

    # merging the same input again gives the same output
    assert [e.message for e in Merger(sources)] == [e.message for e in merged]


def test_merge_empty_sources():
    assert list(Merger([])) == []
    assert list(Merger([[], []])) == []

    only = [make_entry("2020-01-13 10:00:00.000", "only", source_index=1)]
    assert list(Merger([[], only, []])) == only


def test_issues_immediately_forwarded():
    a = [
        make_entry("2020-01-13 10:00:00.000", source_index=0),
        issue("bad line in A"),
        make_entry("2020-01-13 10:05:00.000", source_index=0),
    ]
    b = [make_entry("2020-01-13 10:01:00.000", source_index=1)]

    merged = list(Merger([a, b]))

    assert describe(merged) == ["0:10:00", "bad line in A", "1:10:01", "0:10:05"]


def test_issues_deferred_until_next_entry_from_same_source():
    a = [issue("issue1"), make_entry("2020-01-13 10:05:00.000", source_index=0)]
    b = [
        make_entry("2020-01-13 10:00:00.000", source_index=1),
        make_entry("2020-01-13 10:06:00.000", source_index=1),
    ]

    immediate = list(Merger([a, b], issue_order=IssueOrder.IMMEDIATE))
    deferred = list(Merger([a, b], issue_order=IssueOrder.DEFERRED))

    assert describe(immediate) == ["issue1", "1:10:00", "0:10:05", "1:10:06"]
    assert describe(deferred) == ["1:10:00", "0:10:05", "issue1", "1:10:06"]


def test_deferred_issues_flushed_when_source_ends():
    a = [make_entry("2020-01-13 10:00:00.000", source_index=0), issue("trailing garbage")]
    b = [make_entry("2020-01-13 10:30:00.000", source_index=1)]

    merged = list(Merger([a, b], issue_order=IssueOrder.DEFERRED))

    assert describe(merged) == ["0:10:00", "trailing garbage", "1:10:30"]


def test_source_with_only_issues():
    a = [issue("one"), issue("two")]
    b = [make_entry("2020-01-13 10:00:00.000", source_index=1)]

    for order in IssueOrder:
        assert describe(Merger([a, b], issue_order=order)) == ["one", "two", "1:10:00"]


def _failing_source(source_name, *entries):
    def lines():
        for entry in entries:
            yield entry.raw_line
        raise OSError(5, "Input/output error")
    return LogEntryReader(lines(), entries[0].source_index, source_name)


def test_unreadable_source_skipped(caplog):
    a = _failing_source("flaky.log", make_entry("2020-01-13 10:00:00.000", "a1", source_index=0))
    b = [
        make_entry("2020-01-13 10:01:00.000", "b1", source_index=1),
        make_entry("2020-01-13 10:02:00.000", "b2", source_index=1),
    ]

    with caplog.at_level(logging.WARNING, logger="riolog.merging"):
        merged = list(Merger([a, b], skip_unreadable=True))

    assert [e.message for e in merged] == ["a1", "b1", "b2"]
    assert "flaky.log" in caplog.text


def test_unreadable_source_raises_by_default():
    a = _failing_source("flaky.log", make_entry("2020-01-13 10:00:00.000", "a1", source_index=0))
    b = [make_entry("2020-01-13 10:01:00.000", "b1", source_index=1)]

    with pytest.raises(SourceReadError):
        list(Merger([a, b]))


def test_single_unreadable_source_always_raises():
    a = _failing_source("flaky.log", make_entry("2020-01-13 10:00:00.000", "a1", source_index=0))

    merger = Merger([a], skip_unreadable=True)

    assert isinstance(next(merger), LogEntry)
    with pytest.raises(SourceReadError):
        next(merger)
