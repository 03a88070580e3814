# src/config/settings.py

"""Central configuration for the price_tracker engine."""

import os
from decimal import Decimal
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


def _env_float(name: str, default: float) -> float:
    """Read a float from the environment, falling back on bad input."""
    raw = os.getenv(name)
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    """Read an int from the environment, falling back on bad input."""
    raw = os.getenv(name)
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


class Settings:
    """Central configuration for the price_tracker engine."""

    # --- Sweep ---
    SWEEP_CRON: str = os.getenv(
        "PRICE_TRACKER_SWEEP_CRON", "0 */4 * * *"
    )                                   # Minute 0 of every 4th hour
    ITEM_DELAY: float = _env_float(
        "PRICE_TRACKER_ITEM_DELAY", 2.0
    )                                   # Seconds between item fetches
    HISTORY_CAP: int = _env_int(
        "PRICE_TRACKER_HISTORY_CAP", 30
    )                                   # Observations kept per item

    # --- Fetching ---
    REQUEST_TIMEOUT: int = _env_int(
        "PRICE_TRACKER_REQUEST_TIMEOUT", 10
    )                                   # Seconds before a request times out
    CHALLENGE_MARKERS: list[str] = [
        "challenges.cloudflare.com",
        "cdn-cgi/challenge-platform",
        "cf-turnstile",
        "/errors/validatecaptcha",
        "enter the characters you see below",
    ]

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
            "AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/131.0.0.0 Safari/537.36"
        ),
        "Accept": (
            "text/html,application/xhtml+xml,"
            "application/xml;q=0.9,image/avif,"
            "image/webp,image/apng,*/*;q=0.8"
        ),
        "Accept-Language": "en-US,en;q=0.9",
        "Upgrade-Insecure-Requests": "1",
    }

    # --- Price bounds ---
    MAX_PRICE: Decimal = Decimal("1000000000")  # Anything above is a parse error

    # --- Extraction defaults ---
    DEFAULT_TITLE: str = "Unknown Product"
    DEFAULT_IMAGE: str = ""

    # --- Email ---
    EMAIL_FROM: str = os.getenv("EMAIL_FROM", "").strip()
    SMTP_HOST: str = os.getenv("SMTP_HOST", "").strip()
    SMTP_PORT: int = _env_int("SMTP_PORT", 587)
    SMTP_USER: str = os.getenv("SMTP_USER", "").strip()
    SMTP_PASS: str = os.getenv("SMTP_PASS", "").strip()
    SMTP_USE_SSL: bool = (
        os.getenv("SMTP_USE_SSL", "false").lower() == "true"
    )
    SMTP_TIMEOUT: int = 30

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    SELECTORS_PATH: Path = BASE_DIR / "src" / "config" / "selectors.json"
    TEMPLATES_DIR: Path = BASE_DIR / "src" / "templates"
    DATA_DIR: Path = BASE_DIR / "data"
    DB_PATH: Path = Path(
        os.getenv(
            "PRICE_TRACKER_DB_PATH",
            str(BASE_DIR / "data" / "price_tracker.db"),
        )
    )
    LOGS_DIR: Path = BASE_DIR / "logs"

    # --- Stores (registry of extraction strategies) ---
    AVAILABLE_STORES: list[dict[str, str]] = [
        {
            "id": "amazon",
            "label": "Amazon",
            "extractor": "src.extractors.amazon_extractor.AmazonExtractor",
        },
        {
            "id": "ebay",
            "label": "eBay",
            "extractor": "src.extractors.ebay_extractor.EbayExtractor",
        },
        {
            "id": "walmart",
            "label": "Walmart",
            "extractor": "src.extractors.walmart_extractor.WalmartExtractor",
        },
        {
            "id": "bestbuy",
            "label": "Best Buy",
            "extractor": "src.extractors.bestbuy_extractor.BestBuyExtractor",
        },
        {
            "id": "target",
            "label": "Target",
            "extractor": "src.extractors.target_extractor.TargetExtractor",
        },
    ]
