"""Thread safety tests for the shared browser limiter and artifact generation.

Pipelines run concurrently; only the headless browser limiter is shared
between them.
"""

import threading
import time
import unittest
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta

import pytz

from gcalagent.core.calendar_links import CalendarLinkGenerator
from gcalagent.core.event_model import NormalizedEvent
from gcalagent.exceptions.errors import StrategyFailedError
from gcalagent.extraction.headless import BrowserLimiter, shared_browser_limiter


class TestBrowserLimiterThreadSafety(unittest.TestCase):
    """BrowserLimiter never lets more browsers run than configured."""

    def test_concurrent_slots_respect_limit(self):
        limiter = BrowserLimiter(2)
        lock = threading.Lock()
        state = {"running": 0, "peak": 0}
        errors = []

        def use_browser():
            try:
                with limiter.slot(5):
                    with lock:
                        state["running"] += 1
                        state["peak"] = max(state["peak"], state["running"])
                    time.sleep(0.02)
                    with lock:
                        state["running"] -= 1
            except Exception as e:
                errors.append(str(e))

        threads = [threading.Thread(target=use_browser) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(len(errors), 0, f"Errors during concurrent use: {errors}")
        self.assertEqual(state["running"], 0)
        self.assertLessEqual(state["peak"], 2)

    def test_slot_released_after_exception(self):
        limiter = BrowserLimiter(1)
        with self.assertRaises(RuntimeError):
            with limiter.slot(1):
                raise RuntimeError("browser crashed")

        with limiter.slot(0.05):
            pass

    def test_exhausted_limiter_reports_strategy_failure(self):
        limiter = BrowserLimiter(1)
        with limiter.slot(1):
            with self.assertRaises(StrategyFailedError) as context:
                with limiter.slot(0.01):
                    pass
        self.assertEqual(context.exception.strategy, "headless")

    def test_shared_limiter_is_a_singleton(self):
        with ThreadPoolExecutor(max_workers=8) as executor:
            limiters = list(executor.map(lambda _: shared_browser_limiter(), range(32)))
        self.assertTrue(all(limiter is limiters[0] for limiter in limiters))


class TestConcurrentGeneration(unittest.TestCase):
    """Artifacts generated in parallel get distinct UIDs."""

    def test_uids_unique_across_threads(self):
        fixed_now = datetime(2024, 5, 1, 12, 0, tzinfo=pytz.utc)
        generator = CalendarLinkGenerator(clock=lambda: fixed_now)
        event = NormalizedEvent(
            title="Standup",
            start=fixed_now + timedelta(days=1),
            end=fixed_now + timedelta(days=1, hours=1),
        )

        def uid_of(_):
            ics = generator.generate(event).apple
            return next(line for line in ics.split("\r\n") if line.startswith("UID:"))

        with ThreadPoolExecutor(max_workers=8) as executor:
            uids = list(executor.map(uid_of, range(50)))

        self.assertEqual(len(set(uids)), 50)


if __name__ == "__main__":
    unittest.main()
