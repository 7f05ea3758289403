"""
Price feed interface.

Feeds turn an external quote into a Quote in the history's base unit
(USD per gram). On failure they raise ExternalResourceUnavailable; caching
and fallback are the tracker's job.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from ..shared.errors import ExternalResourceUnavailable
from ..shared.types import Instrument, Tick, to_epoch_ms, from_epoch_ms


@dataclass(frozen=True)
class Quote:
    """One successful feed response, price per gram."""
    instrument: Instrument
    price: float
    timestamp: datetime
    high_price: Optional[float] = None
    low_price: Optional[float] = None
    change_pct: Optional[float] = None
    source: str = ""

    def to_tick(self) -> Tick:
        return Tick(
            instrument=self.instrument,
            price=self.price,
            timestamp=self.timestamp,
            high_price=self.high_price,
            low_price=self.low_price,
            change_pct=self.change_pct,
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly form used for the last-known-good cache."""
        return {
            "symbol": self.instrument.value,
            "price": self.price,
            "timestamp": to_epoch_ms(self.timestamp),
            "high_price": self.high_price,
            "low_price": self.low_price,
            "change_pct": self.change_pct,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Quote":
        return cls(
            instrument=Instrument.parse(data["symbol"]),
            price=float(data["price"]),
            timestamp=from_epoch_ms(data["timestamp"]),
            high_price=data.get("high_price"),
            low_price=data.get("low_price"),
            change_pct=data.get("change_pct"),
            source=data.get("source", ""),
        )


class PriceFeed(ABC):
    """Source of live spot quotes."""

    name: str = "price_feed"

    @abstractmethod
    def fetch(self, instrument: Instrument) -> Quote:
        """
        Fetch the current quote for an instrument.

        Raises:
            ExternalResourceUnavailable: If the source cannot deliver a valid quote
        """

    def unavailable(self, message: str) -> ExternalResourceUnavailable:
        return ExternalResourceUnavailable(self.name, message)
