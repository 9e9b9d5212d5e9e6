"""
Opt-in timing of whole parse, print and minify calls.

Enabled by setting ``JTREE_PROFILE`` in the environment before import; when
disabled every context manager is a no-op and nothing is recorded.

Each operation is timed once per public call, not per token, so the overhead
stays constant regardless of document size. Callers that only learn how much
they processed at the end (the printer) set ``nbytes`` on the context before
it exits.
"""

import os
import time
from dataclasses import dataclass
from typing import Any

PROFILE_HOT_PATHS = __debug__ and "JTREE_PROFILE" in os.environ


@dataclass
class HotPathStats:
    """Accumulated timings for one operation."""

    operation: str
    call_count: int = 0
    failure_count: int = 0
    total_time_ns: int = 0
    bytes_processed: int = 0

    def record_call(
        self, duration_ns: int, nbytes: int = 0, failed: bool = False
    ) -> None:
        self.call_count += 1
        self.total_time_ns += duration_ns
        if failed:
            self.failure_count += 1
        else:
            self.bytes_processed += nbytes

    @property
    def mean_time_ns(self) -> float:
        return self.total_time_ns / self.call_count if self.call_count else 0.0

    @property
    def bytes_per_second(self) -> float:
        """Throughput over successful calls; zero before any time is recorded."""
        if not self.total_time_ns:
            return 0.0
        return self.bytes_processed * 1e9 / self.total_time_ns


_hot_path_stats: dict[str, HotPathStats] = {}


def get_hot_path_stats() -> dict[str, HotPathStats]:
    """Returns a snapshot of the recorded statistics, keyed by operation."""
    return dict(_hot_path_stats)


def clear_hot_path_stats() -> None:
    _hot_path_stats.clear()


if PROFILE_HOT_PATHS:

    class ProfileContext:
        """Times one call of ``operation``; a raised exception counts as a failure."""

        def __init__(self, operation: str, nbytes: int = 0) -> None:
            self.operation = operation
            self.nbytes = nbytes
            self._started = 0

        def __enter__(self) -> "ProfileContext":
            self._started = time.perf_counter_ns()
            return self

        def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
            elapsed = time.perf_counter_ns() - self._started
            stats = _hot_path_stats.get(self.operation)
            if stats is None:
                stats = _hot_path_stats[self.operation] = HotPathStats(self.operation)
            stats.record_call(elapsed, self.nbytes, failed=exc_type is not None)

else:

    class ProfileContext:  # type: ignore[no-redef]
        def __init__(self, operation: str, nbytes: int = 0) -> None:
            self.nbytes = nbytes

        def __enter__(self) -> "ProfileContext":
            return self

        def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
            pass
