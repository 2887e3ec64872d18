"""
Tests cho ProgressReporter: throttle, non-blocking, forced final report
giu throttle window.
"""

import threading
import time

from core.ingestion.progress import ProgressReporter


class TestProgressReporter:
    def test_counts(self):
        reporter = ProgressReporter()
        reporter.add_found(5)
        reporter.add_found(0)
        reporter.add_processed()
        reporter.add_processed(2)

        assert reporter.total == 5
        assert reporter.processed == 3

    def test_throttled(self):
        """Throttle lon: nhieu update chi emit toi da mot lan."""
        calls = []
        reporter = ProgressReporter(lambda p, t: calls.append((p, t)), 3_600_000)

        reporter.add_found(100)
        for _ in range(100):
            reporter.add_processed()

        assert len(calls) <= 1

    def test_forced_report_always_emits_final_counts(self):
        calls = []
        reporter = ProgressReporter(lambda p, t: calls.append((p, t)), 200)
        reporter.add_found(3)
        for _ in range(3):
            reporter.add_processed()

        reporter.report(force=True)

        assert calls[0] == (0, 3)
        assert calls[-1] == (3, 3)

    def test_forced_report_waits_out_throttle_window(self):
        """Final report ngay sau mot lan emit van giu khoang cach >= throttle."""
        stamps = []
        reporter = ProgressReporter(lambda p, t: stamps.append(time.monotonic()), 200)

        reporter.add_found(1)
        reporter.add_processed()
        reporter.report(force=True)

        assert len(stamps) >= 2
        assert stamps[-1] - stamps[-2] >= 0.19

    def test_forced_report_outside_window_does_not_wait(self):
        calls = []
        reporter = ProgressReporter(lambda p, t: calls.append((p, t)), 3_600_000)

        start = time.monotonic()
        reporter.report(force=True)

        assert calls == [(0, 0)]
        assert time.monotonic() - start < 1

    def test_no_throttle_emits_every_update(self):
        calls = []
        reporter = ProgressReporter(lambda p, t: calls.append((p, t)), 0)

        reporter.add_found(2)
        reporter.add_processed()
        reporter.add_processed()

        assert calls == [(0, 2), (1, 2), (2, 2)]

    def test_busy_reporter_skips(self):
        """Worker khac dang report -> bo qua, khong block."""
        calls = []
        entered = threading.Event()
        release = threading.Event()

        def slow_callback(processed, total):
            calls.append((processed, total))
            entered.set()
            release.wait(5)

        reporter = ProgressReporter(slow_callback, 0)
        worker = threading.Thread(target=reporter.report, kwargs={"force": True})
        worker.start()
        entered.wait(5)

        reporter.add_processed()  # Khong block du callback dang chay
        release.set()
        worker.join(5)

        assert calls == [(0, 0)]
        assert reporter.processed == 1

    def test_callback_errors_swallowed(self):
        def broken(processed, total):
            raise RuntimeError("ui gone")

        reporter = ProgressReporter(broken, 0)
        reporter.add_found(1)
        reporter.report(force=True)
