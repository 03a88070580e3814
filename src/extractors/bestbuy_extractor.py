# src/extractors/bestbuy_extractor.py

"""Extraction strategy for Best Buy product pages."""

from bs4 import BeautifulSoup, Tag

from src.extractors.base_extractor import BaseExtractor


class BestBuyExtractor(BaseExtractor):
    """Best Buy product pages.

    The visible price sits next to a screen-reader label reading
    "current price"; the label's parent holds both, so the parent text
    is what gets parsed.
    """

    HOST_MARKERS = ("bestbuy.",)

    def __init__(self) -> None:
        super().__init__("bestbuy", "Best Buy")

    def _price_element(
        self, soup: BeautifulSoup, selector: str,
    ) -> Tag | None:
        el = soup.select_one(selector)
        if el is None:
            return None
        if "sr-only" in (el.get("class") or []) and el.parent is not None:
            return el.parent
        return el
