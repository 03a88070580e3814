# src/extractors/base_extractor.py

"""Abstract base class for all store extraction strategies."""

import json
import logging
import re
from abc import ABC
from decimal import Decimal, InvalidOperation
from typing import Any
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag

from src.config.settings import Settings
from src.models.extraction_result import ExtractionResult
from src.models.money import quantize_price

# Everything that is not a digit or a decimal point
_NON_PRICE_CHARS = re.compile(r"[^\d.]")


class BaseExtractor(ABC):
    """Maps a product page of one store to an :class:`ExtractionResult`.

    Subclasses declare the host fragments they answer for and may
    override the element hooks when a store needs more than a plain CSS
    lookup.  Selectors live in ``selectors.json`` keyed by ``store_id``
    and are tried in order: the first one yielding a non-empty value
    wins.
    """

    HOST_MARKERS: tuple[str, ...] = ()

    def __init__(self, store_id: str, label: str) -> None:
        self.store_id = store_id
        self.label = label
        self.logger = logging.getLogger(
            f"price_tracker.{store_id}"
        )
        self.settings = Settings()
        self.selectors: dict[str, list[str]] = self._load_selectors()

    def _load_selectors(self) -> dict[str, list[str]]:
        """Load the CSS selectors for this store from selectors.json."""
        with open(self.settings.SELECTORS_PATH, encoding="utf-8") as f:
            all_selectors: dict[str, Any] = json.load(f)
        raw: dict[str, Any] = all_selectors.get(self.store_id, {})
        return {
            key: [value] if isinstance(value, str) else list(value)
            for key, value in raw.items()
        }

    def matches(self, url: str) -> bool:
        """Return True if *url* belongs to this store."""
        host = urlparse(url).netloc.lower() or url.lower()
        return any(marker in host for marker in self.HOST_MARKERS)

    # ── Element hooks ────────────────────────────────────

    def _price_element(
        self, soup: BeautifulSoup, selector: str,
    ) -> Tag | None:
        """Return the element whose text carries the price."""
        return soup.select_one(selector)

    def _find_price_text(self, soup: BeautifulSoup) -> str:
        """Return the first non-empty normalised price string."""
        for selector in self.selectors.get("price", []):
            el = self._price_element(soup, selector)
            if el is None:
                continue
            cleaned = _NON_PRICE_CHARS.sub("", el.get_text())
            if cleaned:
                return cleaned
            self.logger.debug(
                "[%s] Price selector '%s' matched but was empty",
                self.store_id,
                selector,
            )
        return ""

    def _find_title(self, soup: BeautifulSoup) -> str:
        for selector in self.selectors.get("title", []):
            el = soup.select_one(selector)
            if el is not None:
                title = el.get_text(strip=True)
                if title:
                    return title
        return ""

    def _find_image(self, soup: BeautifulSoup) -> str:
        for selector in self.selectors.get("image", []):
            el = soup.select_one(selector)
            if el is not None and el.get("src"):
                return str(el["src"])
        return ""

    # ── Public API ───────────────────────────────────────

    @staticmethod
    def extract_price(text: str | None) -> Decimal | None:
        """Parse a price from text like '$1,299.99'.

        Every character other than digits and the decimal point is
        dropped first, so currency symbols and thousands separators
        disappear.  Returns ``None`` when nothing parseable remains.
        """
        if not text:
            return None
        cleaned = _NON_PRICE_CHARS.sub("", text)
        if not cleaned or cleaned == ".":
            return None
        try:
            return quantize_price(Decimal(cleaned))
        except InvalidOperation:
            return None

    def extract(self, document: str | BeautifulSoup) -> ExtractionResult:
        """Extract price, title and image from a product page.

        Missing title or image fall back to defaults; only the price
        may be ``None``.
        """
        soup = (
            document
            if isinstance(document, BeautifulSoup)
            else BeautifulSoup(document, "lxml")
        )
        result = ExtractionResult(
            price=self.extract_price(self._find_price_text(soup)),
            title=self._find_title(soup) or self.settings.DEFAULT_TITLE,
            image=self._find_image(soup) or self.settings.DEFAULT_IMAGE,
            store=self.label,
        )
        if not result.has_price:
            self.logger.info(
                "[%s] No price resolved from document", self.store_id,
            )
        return result
