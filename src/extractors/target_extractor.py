# src/extractors/target_extractor.py

"""Extraction strategy for Target product pages."""

from src.extractors.base_extractor import BaseExtractor


class TargetExtractor(BaseExtractor):
    """Target product pages.  Target exposes a single price element."""

    HOST_MARKERS = ("target.",)

    def __init__(self) -> None:
        super().__init__("target", "Target")
