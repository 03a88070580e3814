# src/extractors/ebay_extractor.py

"""Extraction strategy for eBay listings."""

from src.extractors.base_extractor import BaseExtractor


class EbayExtractor(BaseExtractor):
    """eBay item pages."""

    HOST_MARKERS = ("ebay.",)

    def __init__(self) -> None:
        super().__init__("ebay", "eBay")
