# src/storage/item_store.py

"""SQLite-backed store for tracked items and their price history."""

import logging
import re
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from src.config.settings import Settings
from src.models.errors import PersistenceFailure
from src.models.money import from_minor_units, to_minor_units
from src.models.price_history import PriceHistory
from src.models.price_observation import PriceObservation
from src.models.tracked_item import TrackedItem

logger = logging.getLogger("price_tracker.store")

# Retail tracking params that vary per visit
_TRACKING_PARAMS: frozenset[str] = frozenset({
    "ref", "ref_", "dib", "dib_tag", "qid", "sr", "spc",
    "sp_csd", "xpid", "aref", "sp_cr", "psc", "crid",
    "keywords", "pd_rd_i", "pd_rd_r", "pd_rd_w",
    "pd_rd_wg", "pf_rd_i", "pf_rd_m", "pf_rd_p",
    "pf_rd_r", "pf_rd_s", "pf_rd_t", "th", "_trkparms",
    "_trksid", "hash", "clickid", "afid", "lnm",
})

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS tracked_items (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_id      TEXT    NOT NULL,
    url           TEXT    NOT NULL,
    title         TEXT    NOT NULL,
    current_price INTEGER NOT NULL,
    target_price  INTEGER,
    image         TEXT    NOT NULL DEFAULT '',
    store         TEXT    NOT NULL,
    is_active     INTEGER NOT NULL DEFAULT 1,
    created_at    TEXT    NOT NULL,
    last_checked  TEXT    NOT NULL
);

CREATE TABLE IF NOT EXISTS price_observations (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    item_id     INTEGER NOT NULL
                REFERENCES tracked_items(id) ON DELETE CASCADE,
    price       INTEGER NOT NULL,
    observed_at TEXT    NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_observations_item_date
    ON price_observations(item_id, observed_at);
CREATE INDEX IF NOT EXISTS idx_items_owner
    ON tracked_items(owner_id, is_active);
"""

_ITEM_COLUMNS = (
    "id, owner_id, url, title, current_price, target_price, "
    "image, store, is_active, created_at, last_checked"
)


def normalize_url(raw_url: str) -> str:
    """Strip tracking/session query params to get a stable product URL."""
    parsed = urlparse(raw_url.strip())

    # Amazon path-based tracking (e.g. /ref=sr_1_243)
    path = re.sub(r"/ref=[^/]*", "", parsed.path)

    params = parse_qs(parsed.query, keep_blank_values=True)
    cleaned = {
        k: v for k, v in params.items()
        if k.lower() not in _TRACKING_PARAMS
        and not k.lower().startswith("utm_")
    }
    new_query = urlencode(cleaned, doseq=True) if cleaned else ""
    return urlunparse((
        parsed.scheme,
        parsed.netloc,
        path,
        parsed.params,
        new_query,
        "",
    ))


class ItemStore:
    """Durable storage for :class:`TrackedItem` records.

    Every write runs in a single transaction, so an item's observation
    set is either fully updated or left as it was.  A lock serialises
    access because sweeps run on scheduler threads while registrations
    and edits arrive from the caller's thread.
    """

    def __init__(
        self,
        db_path: Path | None = None,
        history_cap: int | None = None,
    ) -> None:
        path = db_path or Settings.DB_PATH
        self.history_cap = history_cap or Settings.HISTORY_CAP
        self._lock = threading.RLock()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(
                str(path), check_same_thread=False,
            )
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA foreign_keys=ON")
            self._conn.executescript(_SCHEMA)
        except (sqlite3.Error, OSError) as exc:
            raise PersistenceFailure(
                f"Cannot open item store at {path}: {exc}"
            ) from exc
        logger.debug(
            "ItemStore opened at %s (history cap %d)",
            path,
            self.history_cap,
        )

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._conn.close()

    @contextmanager
    def _transaction(self, action: str) -> Iterator[sqlite3.Cursor]:
        """Run a block atomically, mapping sqlite errors."""
        with self._lock:
            try:
                with self._conn:
                    yield self._conn.cursor()
            # OverflowError: an integer too large for a SQLite column
            except (sqlite3.Error, OverflowError) as exc:
                logger.error(
                    "Store error during %s: %s", action, exc,
                    exc_info=True,
                )
                raise PersistenceFailure(
                    f"Failed to {action}: {exc}"
                ) from exc

    # ── Row mapping ──────────────────────────────────────

    def _load_history(
        self, cur: sqlite3.Cursor, item_id: int,
    ) -> PriceHistory:
        rows = cur.execute(
            "SELECT price, observed_at FROM price_observations "
            "WHERE item_id = ? ORDER BY observed_at ASC, id ASC",
            (item_id,),
        ).fetchall()
        return PriceHistory(
            self.history_cap,
            (
                PriceObservation(
                    price=from_minor_units(r[0]),
                    observed_at=datetime.fromisoformat(r[1]),
                )
                for r in rows
            ),
        )

    def _row_to_item(
        self, cur: sqlite3.Cursor, row: tuple,
    ) -> TrackedItem:
        return TrackedItem(
            id=row[0],
            owner_id=row[1],
            url=row[2],
            title=row[3],
            current_price=from_minor_units(row[4]),
            target_price=(
                from_minor_units(row[5]) if row[5] is not None else None
            ),
            image=row[6],
            store=row[7],
            is_active=bool(row[8]),
            created_at=datetime.fromisoformat(row[9]),
            last_checked=datetime.fromisoformat(row[10]),
            history=self._load_history(cur, row[0]),
        )

    def _prune(self, cur: sqlite3.Cursor, item_id: int) -> int:
        """Drop observations beyond the retention cap, oldest first."""
        cur.execute(
            "DELETE FROM price_observations "
            "WHERE item_id = ? AND id NOT IN ("
            "  SELECT id FROM price_observations WHERE item_id = ? "
            "  ORDER BY observed_at DESC, id DESC LIMIT ?"
            ")",
            (item_id, item_id, self.history_cap),
        )
        return cur.rowcount

    # ── Writing ──────────────────────────────────────────

    def add_item(self, item: TrackedItem) -> TrackedItem:
        """Insert a new item with its seed history; assigns ``item.id``."""
        if not len(item.history):
            raise ValueError("A tracked item needs at least one observation")
        with self._transaction("add item") as cur:
            cur.execute(
                "INSERT INTO tracked_items (owner_id, url, title, "
                "current_price, target_price, image, store, is_active, "
                "created_at, last_checked) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    item.owner_id,
                    item.url,
                    item.title,
                    to_minor_units(item.current_price),
                    (
                        to_minor_units(item.target_price)
                        if item.target_price is not None
                        else None
                    ),
                    item.image,
                    item.store,
                    1 if item.is_active else 0,
                    item.created_at.isoformat(),
                    item.last_checked.isoformat(),
                ),
            )
            item_id = cur.lastrowid
            cur.executemany(
                "INSERT INTO price_observations "
                "(item_id, price, observed_at) VALUES (?, ?, ?)",
                [
                    (
                        item_id,
                        to_minor_units(obs.price),
                        obs.observed_at.isoformat(),
                    )
                    for obs in item.history
                ],
            )
        item.id = item_id
        logger.info(
            "Tracking item %d for owner %s: %s", item_id, item.owner_id, item.url,
        )
        return item

    def record_observation(
        self, item_id: int, observation: PriceObservation,
    ) -> None:
        """Append an observation and update the item's current price."""
        with self._transaction("record observation") as cur:
            cur.execute(
                "UPDATE tracked_items "
                "SET current_price = ?, last_checked = ? WHERE id = ?",
                (
                    to_minor_units(observation.price),
                    observation.observed_at.isoformat(),
                    item_id,
                ),
            )
            if cur.rowcount == 0:
                raise sqlite3.IntegrityError(f"no tracked item {item_id}")
            cur.execute(
                "INSERT INTO price_observations "
                "(item_id, price, observed_at) VALUES (?, ?, ?)",
                (
                    item_id,
                    to_minor_units(observation.price),
                    observation.observed_at.isoformat(),
                ),
            )
            evicted = self._prune(cur, item_id)
        if evicted:
            logger.debug(
                "Evicted %d old observations for item %d", evicted, item_id,
            )

    def deactivate(self, item_id: int, owner_id: str) -> bool:
        """Soft-delete an item; its history is kept."""
        with self._transaction("deactivate item") as cur:
            cur.execute(
                "UPDATE tracked_items SET is_active = 0 "
                "WHERE id = ? AND owner_id = ?",
                (item_id, owner_id),
            )
            changed = cur.rowcount > 0
        if changed:
            logger.info("Item %d removed from tracking", item_id)
        return changed

    def set_target_price(
        self,
        item_id: int,
        owner_id: str,
        target_price: Decimal | None,
    ) -> TrackedItem | None:
        """Change the alert threshold; ``None`` clears it."""
        with self._transaction("update target price") as cur:
            cur.execute(
                "UPDATE tracked_items SET target_price = ? "
                "WHERE id = ? AND owner_id = ?",
                (
                    (
                        to_minor_units(target_price)
                        if target_price is not None
                        else None
                    ),
                    item_id,
                    owner_id,
                ),
            )
            if cur.rowcount == 0:
                return None
        return self.get_item(item_id, owner_id)

    # ── Querying ─────────────────────────────────────────

    def get_item(
        self, item_id: int, owner_id: str | None = None,
    ) -> TrackedItem | None:
        """Fetch one item, optionally scoped to its owner."""
        sql = f"SELECT {_ITEM_COLUMNS} FROM tracked_items WHERE id = ?"
        params: tuple = (item_id,)
        if owner_id is not None:
            sql += " AND owner_id = ?"
            params = (item_id, owner_id)
        with self._transaction("load item") as cur:
            row = cur.execute(sql, params).fetchone()
            return self._row_to_item(cur, row) if row else None

    def list_active(self) -> list[TrackedItem]:
        """Every active item, oldest registration first."""
        with self._transaction("list active items") as cur:
            rows = cur.execute(
                f"SELECT {_ITEM_COLUMNS} FROM tracked_items "
                "WHERE is_active = 1 ORDER BY id ASC",
            ).fetchall()
            return [self._row_to_item(cur, r) for r in rows]

    def list_for_owner(
        self, owner_id: str, include_inactive: bool = False,
    ) -> list[TrackedItem]:
        sql = (
            f"SELECT {_ITEM_COLUMNS} FROM tracked_items "
            "WHERE owner_id = ?"
        )
        if not include_inactive:
            sql += " AND is_active = 1"
        sql += " ORDER BY id ASC"
        with self._transaction("list owner items") as cur:
            rows = cur.execute(sql, (owner_id,)).fetchall()
            return [self._row_to_item(cur, r) for r in rows]

    def get_history(self, item_id: int) -> list[PriceObservation]:
        """Observations for an item, oldest first."""
        with self._transaction("load history") as cur:
            return list(self._load_history(cur, item_id))
