"""
gold-api.com spot price feed.

``GET https://api.gold-api.com/price/<SYMBOL>`` returns the USD price per
troy ounce; quotes are converted to USD per gram.
"""
import json
import logging
import urllib.error
import urllib.request
from datetime import datetime, timezone
from typing import Optional

import pandas as pd

from ..shared.defaults import FEED_TIMEOUT_SECONDS, TROY_OUNCE_GRAMS
from ..shared.types import Instrument, to_utc
from .base import PriceFeed, Quote


logger = logging.getLogger(__name__)

GOLD_API_URL = "https://api.gold-api.com/price"


class GoldApiFeed(PriceFeed):
    """Spot quotes from gold-api.com (free tier: a handful of requests per hour)."""

    name = "gold-api.com"

    def __init__(self, base_url: str = GOLD_API_URL, timeout: float = FEED_TIMEOUT_SECONDS):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _get_json(self, url: str) -> dict:
        req = urllib.request.Request(url, headers={"User-Agent": "metalwatch/0.3", "Accept": "application/json"})
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                return json.loads(resp.read().decode("utf-8"))
        except (urllib.error.URLError, OSError, ValueError) as e:
            raise self.unavailable(f"GET {url} failed: {e}") from e

    def fetch(self, instrument: Instrument) -> Quote:
        url = f"{self.base_url}/{instrument.value}"
        logger.info(f"Fetching from {self.name}: {url}")
        data = self._get_json(url)

        try:
            price_per_oz = float(data["price"])
        except (KeyError, TypeError, ValueError) as e:
            raise self.unavailable(f"no price in response {data!r}") from e
        if price_per_oz <= 0:
            raise self.unavailable(f"non-positive price {price_per_oz}")

        return Quote(
            instrument=instrument,
            price=price_per_oz / TROY_OUNCE_GRAMS,
            timestamp=_parse_updated_at(data.get("updatedAt")),
            source=self.name,
        )


def _parse_updated_at(value: Optional[str]) -> datetime:
    """Quote time from the response, falling back to now when absent or unreadable."""
    if value:
        try:
            return to_utc(pd.Timestamp(value))
        except (ValueError, TypeError):
            logger.warning(f"Unreadable updatedAt '{value}', using current time")
    return datetime.now(timezone.utc)
