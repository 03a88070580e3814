# src/extractors/amazon_extractor.py

"""Extraction strategy for Amazon product pages."""

import re

from bs4 import BeautifulSoup

from src.extractors.base_extractor import BaseExtractor

_NON_DIGITS = re.compile(r"\D")


class AmazonExtractor(BaseExtractor):
    """Amazon product pages (any regional domain).

    Amazon renders the visible price in two spans, whole units and
    fraction.  When both are present they are joined; otherwise the
    configured selector chain applies.
    """

    HOST_MARKERS = ("amazon.",)

    def __init__(self) -> None:
        super().__init__("amazon", "Amazon")

    def _split_price_text(self, soup: BeautifulSoup) -> str:
        """Return 'units.fraction' from the split price spans, or ''."""
        whole_selectors = self.selectors.get("price_whole", [])
        fraction_selectors = self.selectors.get("price_fraction", [])
        if not whole_selectors or not fraction_selectors:
            return ""
        whole = soup.select_one(whole_selectors[0])
        if whole is None or whole.parent is None:
            return ""
        fraction = whole.parent.select_one(fraction_selectors[0])
        if fraction is None:
            return ""
        units = _NON_DIGITS.sub("", whole.get_text())
        cents = _NON_DIGITS.sub("", fraction.get_text())
        return f"{units}.{cents}" if units and cents else ""

    def _find_price_text(self, soup: BeautifulSoup) -> str:
        return self._split_price_text(soup) or super()._find_price_text(soup)
