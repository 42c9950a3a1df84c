"""Unit tests for app.services.rate_limit."""

import unittest
from unittest.mock import patch

from app.services.rate_limit import RateLimitConfig, RateLimiter


class TestRateLimiter(unittest.TestCase):
    def setUp(self) -> None:
        patcher = patch("app.services.rate_limit.time.monotonic", return_value=100.0)
        self.clock = patcher.start()
        self.addCleanup(patcher.stop)

    def test_blocks_after_budget(self) -> None:
        limiter = RateLimiter(RateLimitConfig(max_requests=2, window_seconds=10))
        self.assertTrue(limiter.allow("10.0.0.1"))
        self.assertTrue(limiter.allow("10.0.0.1"))
        self.assertFalse(limiter.allow("10.0.0.1"))
        self.assertTrue(limiter.allow("10.0.0.2"))

    def test_budget_returns_after_window(self) -> None:
        limiter = RateLimiter(RateLimitConfig(max_requests=1, window_seconds=10))
        self.assertTrue(limiter.allow("10.0.0.1"))
        self.assertFalse(limiter.allow("10.0.0.1"))
        self.clock.return_value = 111.0
        self.assertTrue(limiter.allow("10.0.0.1"))

    def test_idle_clients_are_evicted(self) -> None:
        limiter = RateLimiter(RateLimitConfig(max_requests=5, window_seconds=10))
        for i in range(500):
            limiter.allow(f"10.0.{i // 256}.{i % 256}")
        self.assertEqual(len(limiter), 500)

        self.clock.return_value = 111.0
        limiter.allow("192.168.1.1")
        self.assertEqual(len(limiter), 1)

    def test_active_clients_survive_purge(self) -> None:
        limiter = RateLimiter(RateLimitConfig(max_requests=5, window_seconds=10))
        limiter.allow("idle")
        self.clock.return_value = 105.0
        limiter.allow("active")
        self.clock.return_value = 111.0
        limiter.allow("newcomer")
        self.assertEqual(len(limiter), 2)
        # The earlier hit still counts: four more fit, the fifth does not.
        self.assertTrue(all(limiter.allow("active") for _ in range(4)))
        self.assertFalse(limiter.allow("active"))

    def test_reset(self) -> None:
        limiter = RateLimiter(RateLimitConfig(max_requests=1, window_seconds=10))
        limiter.allow("10.0.0.1")
        limiter.reset()
        self.assertEqual(len(limiter), 0)
        self.assertTrue(limiter.allow("10.0.0.1"))


if __name__ == "__main__":
    unittest.main()
