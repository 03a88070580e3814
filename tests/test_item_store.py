# tests/test_item_store.py

"""Tests for the SQLite-backed ItemStore."""

import tempfile
import unittest
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path

from src.models.errors import PersistenceFailure
from src.models.price_history import PriceHistory
from src.models.price_observation import PriceObservation
from src.models.tracked_item import TrackedItem
from src.storage.item_store import ItemStore, normalize_url

T0 = datetime(2026, 3, 1, 8, 0, 0)


def _make_item(
    owner_id: str = "ana@example.com",
    price: str = "100.00",
    target: str | None = "90.00",
    url: str = "https://www.target.com/p/lego/-/A-1",
    cap: int = 30,
) -> TrackedItem:
    history = PriceHistory(cap)
    history.append(PriceObservation(price=Decimal(price), observed_at=T0))
    return TrackedItem(
        url=url,
        title="LEGO Millennium Falcon",
        current_price=Decimal(price),
        target_price=Decimal(target) if target is not None else None,
        store="Target",
        owner_id=owner_id,
        created_at=T0,
        last_checked=T0,
        history=history,
    )


class TestNormalizeUrl(unittest.TestCase):
    """Tracking-parameter stripping."""

    def test_strips_amazon_path_ref(self) -> None:
        url = "https://www.amazon.com/Sony-Headphones/dp/B09XS7JWHH/ref=sr_1_3"
        self.assertEqual(
            normalize_url(url),
            "https://www.amazon.com/Sony-Headphones/dp/B09XS7JWHH",
        )

    def test_strips_tracking_query_params(self) -> None:
        url = (
            "https://www.ebay.com/itm/123?_trkparms=abc&_trksid=p1"
            "&utm_source=mail&var=42"
        )
        self.assertEqual(
            normalize_url(url), "https://www.ebay.com/itm/123?var=42",
        )

    def test_drops_fragment_and_whitespace(self) -> None:
        self.assertEqual(
            normalize_url("  https://www.walmart.com/ip/5#reviews "),
            "https://www.walmart.com/ip/5",
        )

    def test_clean_url_unchanged(self) -> None:
        url = "https://www.bestbuy.com/site/airpods/6447382.p?skuId=6447382"
        self.assertEqual(normalize_url(url), url)


class TestItemStore(unittest.TestCase):
    """Writes, queries and retention."""

    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        self.db_path = Path(self._tmpdir.name) / "items.db"
        self.store = ItemStore(self.db_path, history_cap=30)

    def tearDown(self) -> None:
        self.store.close()
        self._tmpdir.cleanup()

    def test_add_assigns_id_and_round_trips(self) -> None:
        item = self.store.add_item(_make_item())
        self.assertIsNotNone(item.id)

        loaded = self.store.get_item(item.id)
        self.assertEqual(loaded.title, "LEGO Millennium Falcon")
        self.assertEqual(loaded.current_price, Decimal("100.00"))
        self.assertEqual(loaded.target_price, Decimal("90.00"))
        self.assertEqual(loaded.created_at, T0)
        self.assertTrue(loaded.is_active)
        self.assertEqual(len(loaded.history), 1)

    def test_add_without_target(self) -> None:
        item = self.store.add_item(_make_item(target=None))
        self.assertIsNone(self.store.get_item(item.id).target_price)

    def test_add_requires_seed_observation(self) -> None:
        item = _make_item()
        item.history = PriceHistory(30)
        with self.assertRaises(ValueError):
            self.store.add_item(item)

    def test_prices_keep_cents(self) -> None:
        item = self.store.add_item(_make_item(price="1299.99"))
        loaded = self.store.get_item(item.id)
        self.assertEqual(loaded.current_price, Decimal("1299.99"))

    def test_record_observation_updates_item(self) -> None:
        item = self.store.add_item(_make_item())
        later = T0 + timedelta(hours=4)
        self.store.record_observation(
            item.id, PriceObservation(Decimal("85.50"), later),
        )
        loaded = self.store.get_item(item.id)
        self.assertEqual(loaded.current_price, Decimal("85.50"))
        self.assertEqual(loaded.last_checked, later)
        self.assertEqual(len(loaded.history), 2)
        self.assertEqual(loaded.history.latest.price, Decimal("85.50"))

    def test_history_cap_evicts_oldest(self) -> None:
        """35 observations on a 30-cap store keep the newest 30."""
        item = self.store.add_item(_make_item())
        for i in range(1, 35):
            self.store.record_observation(
                item.id,
                PriceObservation(
                    Decimal(f"{100 + i}.00"), T0 + timedelta(hours=i),
                ),
            )
        history = self.store.get_history(item.id)
        self.assertEqual(len(history), 30)
        self.assertEqual(history[0].observed_at, T0 + timedelta(hours=5))
        self.assertEqual(history[-1].observed_at, T0 + timedelta(hours=34))
        stamps = [o.observed_at for o in history]
        self.assertEqual(stamps, sorted(stamps))

    def test_price_too_large_for_sqlite(self) -> None:
        """An out-of-range integer is a persistence failure, not a crash."""
        item = _make_item(price="99999999999999999.00", target=None)
        with self.assertRaises(PersistenceFailure):
            self.store.add_item(item)
        self.assertEqual(self.store.list_active(), [])

    def test_record_for_missing_item_fails(self) -> None:
        with self.assertRaises(PersistenceFailure):
            self.store.record_observation(
                999, PriceObservation(Decimal("1.00"), T0),
            )

    def test_deactivate_keeps_history(self) -> None:
        item = self.store.add_item(_make_item())
        self.assertTrue(self.store.deactivate(item.id, "ana@example.com"))

        self.assertEqual(self.store.list_active(), [])
        loaded = self.store.get_item(item.id)
        self.assertFalse(loaded.is_active)
        self.assertEqual(len(loaded.history), 1)

    def test_deactivate_other_owner(self) -> None:
        item = self.store.add_item(_make_item())
        self.assertFalse(self.store.deactivate(item.id, "bob@example.com"))
        self.assertEqual(len(self.store.list_active()), 1)

    def test_set_target_price(self) -> None:
        item = self.store.add_item(_make_item())
        updated = self.store.set_target_price(
            item.id, "ana@example.com", Decimal("75.00"),
        )
        self.assertEqual(updated.target_price, Decimal("75.00"))

        cleared = self.store.set_target_price(item.id, "ana@example.com", None)
        self.assertIsNone(cleared.target_price)

    def test_set_target_unknown_item(self) -> None:
        self.assertIsNone(
            self.store.set_target_price(42, "ana@example.com", Decimal("1"))
        )

    def test_get_item_scoped_to_owner(self) -> None:
        item = self.store.add_item(_make_item())
        self.assertIsNone(self.store.get_item(item.id, "bob@example.com"))
        self.assertIsNotNone(self.store.get_item(item.id, "ana@example.com"))

    def test_list_for_owner(self) -> None:
        a = self.store.add_item(_make_item())
        self.store.add_item(_make_item(owner_id="bob@example.com"))
        b = self.store.add_item(_make_item())
        self.store.deactivate(b.id, "ana@example.com")

        active = self.store.list_for_owner("ana@example.com")
        self.assertEqual([i.id for i in active], [a.id])
        everything = self.store.list_for_owner(
            "ana@example.com", include_inactive=True,
        )
        self.assertEqual([i.id for i in everything], [a.id, b.id])

    def test_list_active_in_registration_order(self) -> None:
        ids = [self.store.add_item(_make_item()).id for _ in range(3)]
        self.assertEqual([i.id for i in self.store.list_active()], ids)

    def test_reopen_persists(self) -> None:
        item = self.store.add_item(_make_item())
        self.store.close()
        self.store = ItemStore(self.db_path, history_cap=30)
        self.assertEqual(self.store.get_item(item.id).url, item.url)

    def test_default_path_from_settings(self) -> None:
        """The autouse fixture redirects the default database."""
        store = ItemStore()
        try:
            self.assertEqual(store.history_cap, 30)
            self.assertEqual(store.list_active(), [])
        finally:
            store.close()

    def test_unopenable_path(self) -> None:
        blocker = Path(self._tmpdir.name) / "not_a_dir"
        blocker.write_text("x")
        with self.assertRaises(PersistenceFailure):
            ItemStore(blocker / "items.db")


if __name__ == "__main__":
    unittest.main()
