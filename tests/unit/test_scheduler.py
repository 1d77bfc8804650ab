"""
Unit tests for the periodic scheduler
"""

import pytest
import os
import sys
import threading
import time

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from tracker.scheduler import PeriodicTask


class TestPeriodicTask:
    """Test cases for PeriodicTask"""

    def test_first_run_is_immediate(self):
        ran = threading.Event()
        handle = PeriodicTask(ran.set, interval_s=60.0).start()
        try:
            assert ran.wait(timeout=2.0)
        finally:
            handle.cancel()
            handle.join(timeout=2.0)
        assert not handle.running

    def test_runs_repeatedly_until_cancelled(self):
        done = threading.Event()
        calls = []
        handle = None

        def fn():
            calls.append(time.monotonic())
            if len(calls) == 3:
                handle.cancel()
                done.set()

        handle = PeriodicTask(fn, interval_s=0.01)
        handle.start()
        assert done.wait(timeout=5.0)
        handle.join(timeout=2.0)

        assert not handle.running
        assert handle.cancelled
        assert len(calls) == 3
        assert handle.ticks == 3

    def test_exception_does_not_stop_schedule(self):
        done = threading.Event()
        calls = []

        def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")
            done.set()

        handle = PeriodicTask(flaky, interval_s=0.01).start()
        try:
            assert done.wait(timeout=5.0)
        finally:
            handle.cancel()
            handle.join(timeout=2.0)
        assert len(calls) >= 2

    def test_overrun_drops_missed_ticks(self):
        done = threading.Event()
        calls = []

        def slow():
            calls.append(1)
            if len(calls) == 1:
                time.sleep(0.12)
            else:
                done.set()

        handle = PeriodicTask(slow, interval_s=0.05).start()
        try:
            assert done.wait(timeout=5.0)
        finally:
            handle.cancel()
            handle.join(timeout=2.0)
        assert handle.dropped >= 1

    def test_cancel_before_start_runs_nothing(self):
        calls = []
        handle = PeriodicTask(lambda: calls.append(1), interval_s=0.01)
        handle.cancel()
        handle.start()
        handle.join(timeout=2.0)
        assert calls == []

    def test_start_twice(self):
        handle = PeriodicTask(lambda: None, interval_s=60.0).start()
        try:
            with pytest.raises(RuntimeError):
                handle.start()
        finally:
            handle.cancel()
            handle.join(timeout=2.0)

    @pytest.mark.parametrize("interval", [0, -1.0])
    def test_invalid_interval(self, interval):
        with pytest.raises(ValueError):
            PeriodicTask(lambda: None, interval_s=interval)
