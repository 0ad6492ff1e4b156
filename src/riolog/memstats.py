"""
Lightweight memory instrumentation for the riolog streaming phase.

Enabled with --memstats. Samples the tracemalloc peak while rendered lines are
being delivered, so that runs over very large log files can confirm that memory
stays flat (records are not accumulated anywhere in the pipeline).
"""

from __future__ import annotations

import atexit
from collections.abc import Generator, Iterable
import os
import tracemalloc
from typing import TypeVar

from rich.console import Console

T = TypeVar("T")

SAMPLE_INTERVAL = 1000


class _MemStats:
    def __init__(self) -> None:
        self.enabled: bool = False
        self.started: bool = False
        self.stream_peak: int = 0  # bytes
        self.items_seen: int = 0

        # snapshot (optional, for short-term diagnostics)
        self._snapshots_enabled: bool = (
            os.getenv("RIOLOG_MEM_SNAPSHOTS", "0").lower() not in {"0", "false", "off"}
        )
        self.stream_snapshot = None

    # --- lifecycle ---
    def ensure_started(self) -> None:
        if not self.started:
            tracemalloc.start()
            self.started = True
            self.enabled = True
            atexit.register(_print_memory_summary_at_exit)

    # --- sampling ---
    def sample_stream(self) -> None:
        if not self.enabled:
            return
        _, peak = tracemalloc.get_traced_memory()
        if peak > self.stream_peak:
            self.stream_peak = peak

    def snap_stream(self) -> None:
        if not (self.enabled and self._snapshots_enabled):
            return
        self.stream_snapshot = tracemalloc.take_snapshot()

    def track(self, items: Iterable[T]) -> Generator[T, None, None]:
        """
        Pass items through unchanged, sampling memory every SAMPLE_INTERVAL items.
        """
        for self.items_seen, item in enumerate(items, start=1):
            if self.items_seen % SAMPLE_INTERVAL == 0:
                self.sample_stream()
            yield item
        self.sample_stream()
        self.snap_stream()

    # --- reporting ---
    @staticmethod
    def _fmt_bytes(b: int) -> str:
        mb = b / (1024 * 1024)
        kb = b / 1024
        if mb >= 1:
            return f"{mb:.2f} MiB ({kb:.0f} KiB)"
        return f"{kb:.0f} KiB"

    def as_summary_lines(self) -> list[str]:
        if not self.enabled:
            return ["Memory instrumentation disabled or not used."]
        return [
            "Memory usage summary (tracemalloc):",
            f"  Lines streamed: {self.items_seen:,}",
            f"  Streaming peak: {self._fmt_bytes(self.stream_peak)}",
        ]


GLOBAL_MEM_STATS = _MemStats()


def _format_snapshot(title: str, snap) -> list[str]:
    if not snap:
        return []
    filtered = snap.filter_traces([tracemalloc.Filter(True, "*riolog*")])
    snap_use = filtered if filtered.traces else snap
    stats = snap_use.statistics("traceback")
    top_n = int(os.getenv("RIOLOG_MEM_SNAPSHOT_TOP", "12"))
    out = [f"{title} (top {top_n} by cumulative size):"]
    for i, stat in enumerate(stats[:top_n], start=1):
        size_kib = stat.size / 1024.0
        frame = stat.traceback[-1] if stat.traceback else None
        loc = f"{frame.filename}:{frame.lineno}" if frame else "<unknown>"
        out.append(f"  {i:2d}. {size_kib:8.1f} KiB at {loc}")
    return out


def _print_memory_summary_at_exit() -> None:
    lines = GLOBAL_MEM_STATS.as_summary_lines()
    report_lines = ["=== riolog Memory Summary ===", *lines]
    report_lines += _format_snapshot("Top allocators - streaming", GLOBAL_MEM_STATS.stream_snapshot)
    report_lines.append("=== End Memory Summary ===")
    Console(stderr=True, highlight=False).print("\n".join(report_lines), markup=False)
