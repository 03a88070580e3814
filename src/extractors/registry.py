# src/extractors/registry.py

"""Registry of store extraction strategies, keyed by store id."""

import importlib
import logging
from typing import Any

from bs4 import BeautifulSoup

from src.config.settings import Settings
from src.extractors.base_extractor import BaseExtractor
from src.models.errors import ExtractionFailure
from src.models.extraction_result import ExtractionResult

logger = logging.getLogger("price_tracker.registry")


def _load_extractor_class(dotted_path: str) -> type[Any]:
    """Dynamically import an extractor class from its dotted module path."""
    module_path, class_name = dotted_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    cls: type[Any] = getattr(module, class_name)
    return cls


def load_extractors(
    stores: list[dict[str, str]] | None = None,
) -> list[BaseExtractor]:
    """Instantiate every extractor listed in the store registry."""
    entries = stores if stores is not None else Settings.AVAILABLE_STORES
    extractors: list[BaseExtractor] = []
    for entry in entries:
        cls = _load_extractor_class(entry["extractor"])
        extractors.append(cls())
    return extractors


class ExtractorRegistry:
    """Selects and runs the extraction strategy for a store.

    Callers only deal in store keys and raw documents; adding a store
    means adding a strategy and a registry entry.
    """

    def __init__(
        self, extractors: list[BaseExtractor] | None = None,
    ) -> None:
        loaded = extractors if extractors is not None else load_extractors()
        self._extractors: dict[str, BaseExtractor] = {
            e.store_id: e for e in loaded
        }

    @property
    def store_ids(self) -> list[str]:
        """Registered store keys, in registry order."""
        return list(self._extractors)

    def get(self, store_key: str | None) -> BaseExtractor | None:
        """Return the extractor for *store_key*, if registered."""
        if store_key is None:
            return None
        return self._extractors.get(store_key)

    def classify(self, url: str) -> str | None:
        """Return the store key whose host markers match *url*."""
        for store_id, extractor in self._extractors.items():
            if extractor.matches(url):
                return store_id
        return None

    def extract(
        self,
        store_key: str | None,
        content: str | BeautifulSoup,
    ) -> ExtractionResult:
        """Run the strategy for *store_key* over *content*.

        Raises:
            ExtractionFailure: unknown store, no usable price, or a
                price above ``Settings.MAX_PRICE``.
        """
        extractor = self.get(store_key)
        if extractor is None:
            raise ExtractionFailure(
                f"No extractor registered for store '{store_key}'",
                store=store_key,
            )
        result = extractor.extract(content)
        price = result.price
        if price is None or price <= 0:
            raise ExtractionFailure(
                f"No price found on {extractor.label} page",
                store=store_key,
            )
        if price > Settings.MAX_PRICE:
            raise ExtractionFailure(
                f"Implausible price {price} on {extractor.label} page",
                store=store_key,
            )
        return result

    def extract_for_url(
        self, url: str, content: str | BeautifulSoup,
    ) -> ExtractionResult:
        """Classify *url* and extract from its document."""
        store_key = self.classify(url)
        if store_key is None:
            logger.warning("Unrecognised store for %s", url)
            raise ExtractionFailure(
                f"Unrecognised store for {url}", store=None,
            )
        return self.extract(store_key, content)
