"""
Tests for progress reporting module.
"""

import io
from unittest.mock import MagicMock, patch

import pytest

from rmpower.progress import (
    PrintReporter,
    ProgressReporter,
    SimulationCancelled,
    TqdmReporter,
    compute_total_units,
)


class TestSimulationCancelled:
    """Test SimulationCancelled exception."""

    def test_is_exception(self):
        assert issubclass(SimulationCancelled, Exception)

    def test_message(self):
        exc = SimulationCancelled("cancelled by user")
        assert str(exc) == "cancelled by user"

    def test_default_message_and_results(self):
        exc = SimulationCancelled()
        assert "cancelled" in str(exc)
        assert exc.results == []

    def test_carries_partial_results(self):
        exc = SimulationCancelled("stop", results=[1, 2])
        assert exc.results == [1, 2]


class TestProgressReporter:
    """Test ProgressReporter throttled callback wrapper."""

    def test_start_fires_zero(self):
        cb = MagicMock()
        pr = ProgressReporter(100, cb)
        pr.start()
        cb.assert_called_with(0, 100)

    def test_advance_throttled(self):
        cb = MagicMock()
        pr = ProgressReporter(100, cb, update_every=10)
        pr.start()
        cb.reset_mock()

        pr.advance(5)
        assert cb.call_count == 0

        pr.advance(5)
        cb.assert_called_with(10, 100)

    def test_batch_advance_crossing_boundary_fires(self):
        cb = MagicMock()
        pr = ProgressReporter(100, cb, update_every=10)
        pr.start()
        cb.reset_mock()

        pr.advance(7)
        pr.advance(7)  # 14 crosses 10
        cb.assert_called_once_with(14, 100)

    def test_advance_fires_at_completion(self):
        cb = MagicMock()
        pr = ProgressReporter(10, cb, update_every=100)
        pr.start()
        cb.reset_mock()

        pr.advance(10)
        cb.assert_called_once_with(10, 10)

    def test_finish_fires_total(self):
        cb = MagicMock()
        pr = ProgressReporter(50, cb, update_every=100)
        pr.start()
        pr.advance(20)
        cb.reset_mock()

        pr.finish()
        cb.assert_called_once_with(50, 50)

    def test_finish_noop_when_complete(self):
        cb = MagicMock()
        pr = ProgressReporter(5, cb)
        pr.advance(5)
        cb.reset_mock()
        pr.finish()
        cb.assert_not_called()

    def test_default_update_every(self):
        pr = ProgressReporter(1000, MagicMock())
        assert pr.update_every == 5
        assert ProgressReporter(10, MagicMock()).update_every == 1


class TestPrintReporter:
    def test_writes_percentage(self):
        buf = io.StringIO()
        with patch("sys.stderr", buf):
            PrintReporter()(50, 200)
        assert "25.0%" in buf.getvalue()
        assert "(50/200 units)" in buf.getvalue()

    def test_newline_at_completion(self):
        buf = io.StringIO()
        with patch("sys.stderr", buf):
            PrintReporter()(200, 200)
        assert buf.getvalue().endswith("\n")

    def test_zero_total_is_silent(self):
        buf = io.StringIO()
        with patch("sys.stderr", buf):
            PrintReporter()(0, 0)
        assert buf.getvalue() == ""


class TestTqdmReporter:
    def test_updates_bar(self):
        pytest.importorskip("tqdm")
        reporter = TqdmReporter(file=io.StringIO())
        reporter(0, 10)
        reporter(4, 10)
        assert reporter._bar.n == 4
        reporter(10, 10)
        assert reporter._bar is None


def test_compute_total_units():
    assert compute_total_units(50, 3) == 150
    assert compute_total_units(200) == 200
