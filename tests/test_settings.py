# tests/test_settings.py

"""Tests for the Settings configuration class."""

import json
import unittest
from pathlib import Path

from apscheduler.triggers.cron import CronTrigger

from src.config.settings import Settings


class TestSettings(unittest.TestCase):
    """Verify Settings constants and the store registry."""

    def test_sweep_cron_default(self) -> None:
        """Sweeps run at minute 0 of every 4th hour."""
        self.assertEqual(Settings.SWEEP_CRON, "0 */4 * * *")

    def test_sweep_cron_is_valid(self) -> None:
        """SWEEP_CRON must parse as a crontab expression."""
        CronTrigger.from_crontab(Settings.SWEEP_CRON)

    def test_item_delay_default(self) -> None:
        """ITEM_DELAY is two seconds."""
        self.assertIsInstance(Settings.ITEM_DELAY, float)
        self.assertEqual(Settings.ITEM_DELAY, 2.0)

    def test_request_timeout_default(self) -> None:
        """REQUEST_TIMEOUT is ten seconds."""
        self.assertIsInstance(Settings.REQUEST_TIMEOUT, int)
        self.assertEqual(Settings.REQUEST_TIMEOUT, 10)

    def test_history_cap_default(self) -> None:
        """HISTORY_CAP keeps thirty observations."""
        self.assertEqual(Settings.HISTORY_CAP, 30)

    def test_each_store_has_required_keys(self) -> None:
        """Every store must have id, label, and extractor keys."""
        for store in Settings.AVAILABLE_STORES:
            with self.subTest(store=store.get("id", "?")):
                self.assertIn("id", store)
                self.assertIn("label", store)
                self.assertIn("extractor", store)

    def test_store_ids_are_unique(self) -> None:
        """No duplicate store ids."""
        ids = [s["id"] for s in Settings.AVAILABLE_STORES]
        self.assertEqual(len(ids), len(set(ids)))

    def test_selectors_cover_every_store(self) -> None:
        """selectors.json has a price selector list for every store."""
        with open(Settings.SELECTORS_PATH, encoding="utf-8") as f:
            selectors = json.load(f)
        for store in Settings.AVAILABLE_STORES:
            with self.subTest(store=store["id"]):
                self.assertIn(store["id"], selectors)
                self.assertTrue(selectors[store["id"]]["price"])

    def test_path_constants_are_paths(self) -> None:
        """Path-typed settings are Path instances."""
        self.assertIsInstance(Settings.BASE_DIR, Path)
        self.assertIsInstance(Settings.SELECTORS_PATH, Path)
        self.assertIsInstance(Settings.TEMPLATES_DIR, Path)
        self.assertIsInstance(Settings.LOGS_DIR, Path)

    def test_template_exists(self) -> None:
        """The price-drop e-mail template ships with the package."""
        self.assertTrue(
            (Settings.TEMPLATES_DIR / "price_drop.html").exists()
        )

    def test_default_headers_identify_a_browser(self) -> None:
        """DEFAULT_HEADERS carries a browser User-Agent."""
        self.assertIn("User-Agent", Settings.DEFAULT_HEADERS)
        self.assertIn("Mozilla/5.0", Settings.DEFAULT_HEADERS["User-Agent"])


if __name__ == "__main__":
    unittest.main()
