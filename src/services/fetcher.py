# src/services/fetcher.py

"""Outbound retrieval of product pages."""

import logging
from typing import Any

from curl_cffi import requests as curl_requests

from src.config.settings import Settings
from src.models.errors import FetchFailure

logger = logging.getLogger("price_tracker.fetcher")


class Fetcher:
    """Fetches product documents with a fixed timeout and browser headers.

    Each call makes exactly one request.  Any failure (transport error,
    timeout, non-200 status, bot-challenge interstitial) is raised as
    :class:`FetchFailure` so callers can tell it apart from an
    extraction problem.
    """

    def __init__(
        self,
        timeout: int | None = None,
        session: Any | None = None,
    ) -> None:
        self.settings = Settings()
        self.timeout = timeout or self.settings.REQUEST_TIMEOUT
        self.session = session or curl_requests.Session(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )

    def _looks_like_challenge(self, text: str) -> str | None:
        """Return the marker of a bot-challenge page, if present."""
        lower = text.lower()
        for marker in self.settings.CHALLENGE_MARKERS:
            if marker in lower:
                return marker
        return None

    def fetch(self, url: str) -> str:
        """Return the document body for *url*.

        Raises:
            FetchFailure: the document could not be retrieved.
        """
        logger.debug("Fetching %s (timeout=%ss)", url, self.timeout)
        try:
            resp = self.session.get(
                url,
                headers=dict(self.settings.DEFAULT_HEADERS),
                timeout=self.timeout,
            )
        except Exception as exc:
            logger.warning("Request error for %s: %s", url, exc)
            raise FetchFailure(url, f"request error: {exc}") from exc

        if resp.status_code != 200:
            logger.warning("HTTP %d for %s", resp.status_code, url)
            raise FetchFailure(
                url, f"HTTP {resp.status_code}", status=resp.status_code,
            )

        text = str(resp.text)
        marker = self._looks_like_challenge(text)
        if marker:
            logger.warning(
                "Bot challenge page for %s (marker: '%s')", url, marker,
            )
            raise FetchFailure(
                url, "bot challenge page", status=resp.status_code,
            )
        return text

    def close(self) -> None:
        """Release the underlying HTTP session."""
        self.session.close()
