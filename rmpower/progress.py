"""
Progress reporting for RMPower simulations.

Provides a callback-based progress system that works from both Python scripts
and GUI applications. Progress is reported via a simple (current, total) callback.
"""

import sys
from typing import Callable, List, Optional


class SimulationCancelled(Exception):
    """Raised when a simulation grid is cancelled before it finishes.

    Attributes:
        results: Unit results collected before cancellation. They remain
            valid input for power aggregation.
    """

    def __init__(self, message: str = "Simulation cancelled by user", results: Optional[List] = None):
        super().__init__(message)
        self.results = list(results) if results is not None else []


class ProgressReporter:
    """Wraps a ``(current, total)`` callback with counting and throttling.

    Tracks the number of completed grid units and fires the callback
    at most once every *update_every* advances, preventing excessive I/O
    when units complete very quickly.

    Args:
        total: Total number of grid units.
        callback: Function called as ``callback(current, total)`` on each
            (throttled) update.
        update_every: Fire the callback at most once per this many advances.
            Defaults to ``max(1, total // 200)`` (~200 updates total).
    """

    def __init__(
        self,
        total: int,
        callback: Callable[[int, int], None],
        update_every: Optional[int] = None,
    ):
        self.total = total
        self._callback = callback
        self._current = 0
        self.update_every = update_every if update_every is not None else max(1, total // 200)

    @property
    def current(self) -> int:
        return self._current

    def start(self):
        """Signal the beginning of the run (fires an initial 0/total update)."""
        self._current = 0
        self._callback(0, self.total)

    def advance(self, n: int = 1):
        """Advance the counter by *n* steps, firing the callback when due."""
        previous = self._current
        self._current += n
        if self._current >= self.total or self._current // self.update_every > previous // self.update_every:
            self._callback(self._current, self.total)

    def finish(self):
        """Signal completion (fires a final total/total update if not already there)."""
        if self._current < self.total:
            self._current = self.total
            self._callback(self.total, self.total)


class PrintReporter:
    """Console progress reporter: prints ``\\rProgress: 45.2% (723/1600 units)``."""

    def __call__(self, current: int, total: int):
        if total <= 0:
            return
        pct = 100.0 * current / total
        sys.stderr.write(f"\rProgress: {pct:5.1f}% ({current}/{total} units)")
        sys.stderr.flush()
        if current >= total:
            sys.stderr.write("\n")
            sys.stderr.flush()


class TqdmReporter:
    """Optional tqdm-based progress reporter (lazy import).

    Usage::

        from rmpower.progress import TqdmReporter
        model.find_sample_size(30, 90, 30, progress_callback=TqdmReporter())
    """

    def __init__(self, **tqdm_kwargs):
        self._tqdm_kwargs = tqdm_kwargs
        self._bar = None

    def __call__(self, current: int, total: int):
        from tqdm import tqdm

        if self._bar is None:
            self._bar = tqdm(total=total, unit="unit", **self._tqdm_kwargs)

        delta = current - self._bar.n
        if delta > 0:
            self._bar.update(delta)

        if current >= total:
            self._bar.close()
            self._bar = None


def compute_total_units(n_replications: int, n_sample_sizes: int = 1) -> int:
    """Return the number of grid units in a run.

    Used to initialise ``ProgressReporter`` with an accurate total.
    """
    return n_replications * n_sample_sizes
