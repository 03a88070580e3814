# tests/test_pacing.py

"""Tests for the cancellable Pacer."""

import threading
import time
import unittest

from src.services.pacing import Pacer


class TestPacer(unittest.TestCase):

    def test_negative_delay(self) -> None:
        with self.assertRaises(ValueError):
            Pacer(-1)

    def test_zero_delay_returns_immediately(self) -> None:
        self.assertTrue(Pacer(0).pause())

    def test_waits_for_delay(self) -> None:
        pacer = Pacer(0.05)
        start = time.monotonic()
        self.assertTrue(pacer.pause())
        self.assertGreaterEqual(time.monotonic() - start, 0.05)

    def test_cancel_interrupts_pause(self) -> None:
        pacer = Pacer(10)
        timer = threading.Timer(0.05, pacer.cancel)
        timer.start()
        start = time.monotonic()
        self.assertFalse(pacer.pause())
        self.assertLess(time.monotonic() - start, 5)
        timer.join()

    def test_reset_after_cancel(self) -> None:
        pacer = Pacer(0)
        pacer.cancel()
        self.assertTrue(pacer.cancelled)
        self.assertFalse(pacer.pause())
        pacer.reset()
        self.assertFalse(pacer.cancelled)
        self.assertTrue(pacer.pause())


if __name__ == "__main__":
    unittest.main()
