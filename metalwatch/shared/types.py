"""
Shared types for tracker modules.

This module consolidates the Instrument enum, the Tick dataclass and the
InsufficientData result value that are used across the history, indicator
and forecast modules.
"""
import math
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from numbers import Real
from typing import Any, Dict, Optional, Union

import pandas as pd

from .errors import InvalidTick


class Instrument(Enum):
    """Tracked metal, valued by its ISO 4217 style symbol."""
    GOLD = "XAU"
    SILVER = "XAG"
    PLATINUM = "XPT"
    PALLADIUM = "XPD"

    @property
    def display_name(self) -> str:
        return self.name.capitalize()

    @classmethod
    def parse(cls, value: Union[str, "Instrument"]) -> "Instrument":
        """
        Resolve an instrument from a symbol ("XAU") or a name ("gold").

        Raises:
            ValueError: If the value names no known instrument
        """
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for instrument in cls:
            if text.upper() == instrument.value or text.upper() == instrument.name:
                return instrument
        raise ValueError(f"Unknown instrument '{value}'. Available: {[i.value for i in cls]}")


def to_utc(ts: datetime) -> datetime:
    """Return ts as an aware UTC datetime (naive values are taken as UTC)."""
    if isinstance(ts, pd.Timestamp):
        ts = ts.to_pydatetime()
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def to_epoch_ms(ts: datetime) -> int:
    return int(round(to_utc(ts).timestamp() * 1000))


def from_epoch_ms(ms: Union[int, float]) -> datetime:
    return datetime.fromtimestamp(float(ms) / 1000.0, tz=timezone.utc)


def iso_date(ts: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a Z suffix (2024-01-31T09:30:00.000Z)."""
    ts = to_utc(ts)
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


@dataclass(frozen=True)
class Tick:
    """
    One observed price sample.

    Price is in the base unit of the history (USD per gram). High, low and
    change are informational only and are not used by indicator math.
    """
    instrument: Instrument
    price: float
    timestamp: datetime
    high_price: Optional[float] = None
    low_price: Optional[float] = None
    change_pct: Optional[float] = None

    def validate(self) -> "Tick":
        """
        Check the tick and return a copy with a UTC timestamp.

        Raises:
            InvalidTick: On unknown instrument, non-positive/non-finite price or invalid timestamp
        """
        if not isinstance(self.instrument, Instrument):
            raise InvalidTick(f"instrument must be an Instrument, got {self.instrument!r}")
        price = self.price
        if isinstance(price, bool) or not isinstance(price, Real):
            raise InvalidTick(f"price must be a number, got {price!r}")
        if not math.isfinite(price) or price <= 0:
            raise InvalidTick(f"price must be positive and finite, got {price}")
        if not isinstance(self.timestamp, datetime) or pd.isna(self.timestamp):
            raise InvalidTick(f"timestamp must be a valid datetime, got {self.timestamp!r}")
        return replace(self, price=float(price), timestamp=to_utc(self.timestamp))

    def to_record(self) -> Dict[str, Any]:
        """Flat storage record: symbol, price, timestamp (epoch ms), date (ISO)."""
        return {
            "symbol": self.instrument.value,
            "price": self.price,
            "timestamp": to_epoch_ms(self.timestamp),
            "date": iso_date(self.timestamp),
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Tick":
        """
        Rebuild a tick from a storage record.

        The epoch-ms ``timestamp`` field wins; ``date`` is used only when the
        timestamp is missing.

        Raises:
            InvalidTick: If the record is malformed
        """
        try:
            instrument = Instrument.parse(record["symbol"])
            if record.get("timestamp") is not None:
                timestamp = from_epoch_ms(record["timestamp"])
            else:
                timestamp = to_utc(pd.Timestamp(record["date"]))
            price = float(record["price"])
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            raise InvalidTick(f"Malformed tick record {record!r}: {e}") from e
        return cls(instrument=instrument, price=price, timestamp=timestamp).validate()


@dataclass(frozen=True)
class InsufficientData:
    """
    Result value for "not enough history yet".

    Returned (never raised) by RSI and forecast; callers branch on it with
    isinstance(). This is the normal state on cold start.
    """
    required: int
    available: int
    reason: str = ""

    def __str__(self) -> str:
        text = f"need {self.required} points, have {self.available}"
        return f"{self.reason}: {text}" if self.reason else text
