# src/extractors/walmart_extractor.py

"""Extraction strategy for Walmart product pages."""

from src.extractors.base_extractor import BaseExtractor


class WalmartExtractor(BaseExtractor):
    """Walmart product pages."""

    HOST_MARKERS = ("walmart.",)

    def __init__(self) -> None:
        super().__init__("walmart", "Walmart")
