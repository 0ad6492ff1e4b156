import io
import logging

import pytest

from riolog.riolog import run_cli

from .riolog_testing import RioLogTestApp, fixture_path
from .util import contains_list

A_LOG = fixture_path("rio_a.log")
B_LOG = fixture_path("rio_b.log")
LEVELS_LOG = fixture_path("rio_levels.log")
MALFORMED_LOG = fixture_path("rio_malformed.log")


class TtyStringIO(io.StringIO):
    def isatty(self):
        return True


def test_merge_two_files():
    lines = RioLogTestApp([A_LOG, B_LOG])()

    assert lines == [
        f"{A_LOG}: -info:<100> 2020-01-13 10:00:00.000 UTC [A]: first from A",
        f"{B_LOG}: -debug:<200> 2020-01-13 10:02:00.000 UTC [B]: first from B",
        f"{B_LOG}: -critical:<200> 2020-01-13 10:03:00.000 UTC [B]: second from B",
        f"{A_LOG}: -warning:<100> 2020-01-13 10:05:00.000 UTC [A]: second from A",
    ]


def test_merge_is_independent_of_file_order():
    forward = RioLogTestApp([A_LOG, B_LOG])()
    backward = RioLogTestApp([B_LOG, A_LOG])()

    assert forward == backward


def test_single_file_has_no_source_prefix():
    lines = RioLogTestApp(A_LOG)()

    assert lines == [
        "-info:<100> 2020-01-13 10:00:00.000 UTC [A]: first from A",
        "-warning:<100> 2020-01-13 10:05:00.000 UTC [A]: second from A",
    ]


def test_level_filter():
    lines = RioLogTestApp(LEVELS_LOG, "--level", "warning")()

    assert lines == [
        "-warning:<300> 2020-01-13 21:30:00.000 UTC [net]: Text3",
        '-critical:<300> 2020-01-13 22:00:00.000 UTC [disk]: error: "disk',
        'full"',
        "-fatal:<300> 2020-01-13 22:30:00.000 UTC [core]: Text5",
    ]


def test_time_filter():
    lines = RioLogTestApp(LEVELS_LOG, "--since", "2020-01-13T21:00", "--until", "2020-01-13 21:30:00.000")()

    assert [line.rpartition(": ")[-1] for line in lines] == ["Text2", "Text3"]


def test_contains_and_pattern_filters():
    assert RioLogTestApp(LEVELS_LOG, "--contains", "Text", "--pattern", r"[35]$")() == [
        "-warning:<300> 2020-01-13 21:30:00.000 UTC [net]: Text3",
        "-fatal:<300> 2020-01-13 22:30:00.000 UTC [core]: Text5",
    ]
    assert RioLogTestApp(LEVELS_LOG, "--pattern", '^error: "disk', "--match-decoded")() == [
        '-critical:<300> 2020-01-13 22:00:00.000 UTC [disk]: error: "disk',
        'full"',
    ]


@pytest.mark.parametrize("option,value", [("--pattern", r"disk\nfull"), ("--pattern", '"disk'), ("--contains", '"disk')])
def test_content_filters_see_decoded_characters(option, value):
    assert RioLogTestApp(LEVELS_LOG, option, value)() == [
        '-critical:<300> 2020-01-13 22:00:00.000 UTC [disk]: error: "disk',
        'full"',
    ]


def test_no_format_shows_raw_messages():
    lines = RioLogTestApp(LEVELS_LOG, "--level", "critical", "--no-format")()

    assert lines == [
        r'-critical:<300> 2020-01-13 22:00:00.000 UTC [disk]: error: \"disk\nfull\"',
        "-fatal:<300> 2020-01-13 22:30:00.000 UTC [core]: Text5",
    ]


def test_malformed_lines_are_skipped(caplog):
    with caplog.at_level(logging.WARNING, logger="riolog"):
        lines = RioLogTestApp(MALFORMED_LOG)()

    assert [line.rpartition(": ")[-1] for line in lines] == ["starting", "still running"]
    assert not caplog.records


def test_warn_malformed(caplog):
    with caplog.at_level(logging.WARNING, logger="riolog"):
        RioLogTestApp(MALFORMED_LOG, "--warn-malformed")()

    messages = [record.getMessage() for record in caplog.records]
    assert len(messages) == 5
    assert contains_list(
        [msg.split(": ")[1] for msg in messages],
        ["malformed line", "unrecognized level", "unparseable timestamp"],
    )
    assert f"{MALFORMED_LOG}:3" in messages[0]


def test_output_file(tmp_path):
    out_path = tmp_path / "levels.txt"

    assert run_cli([LEVELS_LOG, "-o", str(out_path)]) == 0

    text = out_path.read_text(encoding="utf-8")
    assert "\x1b" not in text
    assert '-critical:<300> 2020-01-13 22:00:00.000 UTC [disk]: error: "disk\nfull"\n' in text
    assert len(text.splitlines()) == 6


def test_stdout_when_not_a_terminal(capsys):
    assert run_cli([A_LOG]) == 0

    captured = capsys.readouterr()
    assert captured.out.splitlines() == [
        "-info:<100> 2020-01-13 10:00:00.000 UTC [A]: first from A",
        "-warning:<100> 2020-01-13 10:05:00.000 UTC [A]: second from A",
    ]


def test_missing_file(tmp_path, capsys):
    missing = str(tmp_path / "missing.log")

    assert run_cli([A_LOG, missing]) == 3
    assert "cannot open file" in capsys.readouterr().err


def test_skip_unreadable(tmp_path, capsys):
    missing = str(tmp_path / "missing.log")

    assert run_cli([A_LOG, missing, "--skip-unreadable"]) == 0

    captured = capsys.readouterr()
    assert "first from A" in captured.out
    assert "skipping source" in captured.err


def test_skip_unreadable_needs_something_readable(tmp_path):
    assert run_cli([str(tmp_path / "missing1.log"), str(tmp_path / "missing2.log"), "--skip-unreadable"]) == 3


def test_bad_output_directory(tmp_path, capsys):
    out_path = tmp_path / "no_such_dir" / "out.txt"

    assert run_cli([A_LOG, "-o", str(out_path)]) == 4
    assert "cannot create output file" in capsys.readouterr().err


def test_pager_cannot_start(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdout", TtyStringIO())

    assert run_cli([A_LOG, "--pager-command", "/nonexistent/bin/no-such-pager"]) == 5
    assert "cannot start pager" in capsys.readouterr().err


def test_invalid_level():
    with pytest.raises(SystemExit) as exc_info:
        run_cli([A_LOG, "--level", "verbose"])
    assert exc_info.value.code == 2


def test_invalid_pattern():
    with pytest.raises(SystemExit) as exc_info:
        run_cli([A_LOG, "--pattern", "(unclosed"])
    assert exc_info.value.code == 2


def test_since_after_until(capsys):
    assert run_cli([A_LOG, "--since", "2020-01-13 22:00", "--until", "2020-01-13 21:00"]) == 2
    assert "since must not be later than until" in capsys.readouterr().err


def test_about(capsys):
    assert run_cli(["--about"]) == 0
    assert "riolog" in capsys.readouterr().out
