"""
Stage profiling for the publishing pipeline.

Each pipeline stage (aggregate, assemble, stage, split, verify) runs inside
`profile_block`, which records wall-clock duration and peak RSS. Hashing and
copying tens of megabytes per artifact is where the time goes, so the stage
table printed at the end of a run is the first place to look when a build
gets slow.

Usage:
    from store_publisher.utils.profiler import profile_block

    with profile_block("split") as stats:
        split_large_files(root, ...)

    print(stats.duration_seconds, stats.peak_rss_bytes)
"""

from __future__ import annotations

import contextlib
import threading
import time
from dataclasses import dataclass
from typing import Generator, Optional

import psutil


@dataclass
class ProfileStats:
    label: str
    duration_seconds: float = 0.0
    peak_rss_bytes: Optional[int] = None


class _PeakRssSampler(threading.Thread):
    """Polls this process's RSS until stopped and keeps the maximum."""

    def __init__(self, interval_seconds: float) -> None:
        super().__init__(name="rss-sampler", daemon=True)
        self._process = psutil.Process()
        self._interval = interval_seconds
        self._stopped = threading.Event()
        self.peak = self._process.memory_info().rss

    def run(self) -> None:
        while not self._stopped.is_set():
            try:
                self.peak = max(self.peak, self._process.memory_info().rss)
            except psutil.Error:
                return
            self._stopped.wait(self._interval)

    def stop(self) -> int:
        self._stopped.set()
        self.join(timeout=1.0)
        return self.peak


@contextlib.contextmanager
def profile_block(label: str, sample_interval_ms: int = 50) -> Generator[ProfileStats, None, None]:
    """
    Measure wall-clock time and peak RSS of the enclosed block.

    Parameters
    ----------
    label : str
        Stage name shown in the timing table.
    sample_interval_ms : int
        RSS polling interval.
    """
    stats = ProfileStats(label=label)
    sampler = _PeakRssSampler(sample_interval_ms / 1000.0)
    sampler.start()
    started = time.perf_counter()
    try:
        yield stats
    finally:
        stats.duration_seconds = time.perf_counter() - started
        peak = sampler.stop()
        stats.peak_rss_bytes = peak if peak > 0 else None


__all__ = ["ProfileStats", "profile_block"]
