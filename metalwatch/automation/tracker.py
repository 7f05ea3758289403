"""
Tracker service: polls the price feed and assembles analysis snapshots.

Wires the history store, session state, rate controllers, indicator engine
and forecaster together. The scheduler drives ``poll()``; presentation
layers (the CLI) read ``analyze()``.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Union

import pandas as pd

from ..feeds.base import PriceFeed, Quote
from ..forecast.adjustment import AdjustmentProvider, parse_adjustment_text, validate_adjustment
from ..forecast.linear import ForecastResult, LinearForecaster
from ..history.export import export_csv
from ..history.store import HistoryStore, TimeWindow, WindowLike
from ..indicators.summary import (
    MarketStats,
    PeriodStats,
    TechnicalAssessment,
    analyze_period,
    assess_technicals,
    is_near_high,
    market_stats,
    period_change,
    summarize_windows,
)
from ..indicators.technical import rsi, rsi_series, sma
from ..settings.config import TrackerConfig
from ..shared.defaults import COMMENTARY_RESOURCE, PRICE_FEED_RESOURCE
from ..shared.errors import ExternalResourceUnavailable, InvalidTick
from ..shared.types import Instrument, InsufficientData
from .rate_controller import RateController
from .state import SessionState


logger = logging.getLogger(__name__)

ADJUSTMENT_CACHE_PREFIX = "adjustment_"
# Ticks per metal behind the change figure and the market overview volatility
RECENT_POINTS = 7


class PollStatus(Enum):
    FRESH = "fresh"  # Fetched from the feed and appended to history
    CACHED = "cached"  # Served from the last-known-good quote
    UNAVAILABLE = "unavailable"  # Nothing fetched and nothing cached


@dataclass
class PollResult:
    """Outcome of one poll for one instrument."""
    instrument: Instrument
    status: PollStatus
    quote: Optional[Quote] = None
    message: str = ""


@dataclass
class AnalysisSnapshot:
    """Everything a presentation layer shows for one instrument and window."""
    instrument: Instrument
    window: str
    status: str  # "collecting" or "ready"
    required_points: int
    prices: pd.Series
    sma_short: List[Optional[float]] = field(default_factory=list)
    sma_long: List[Optional[float]] = field(default_factory=list)
    rsi: Union[float, InsufficientData, None] = None
    rsi_series: List[Optional[float]] = field(default_factory=list)
    forecast: Union[ForecastResult, InsufficientData, None] = None
    assessment: TechnicalAssessment = field(default_factory=TechnicalAssessment)
    period: Optional[PeriodStats] = None
    windows: List[PeriodStats] = field(default_factory=list)
    change_pct: Optional[float] = None  # over the last RECENT_POINTS prices
    near_high: Optional[bool] = None

    @property
    def ready(self) -> bool:
        return self.status == "ready"

    @property
    def points(self) -> int:
        return len(self.prices)

    @property
    def latest_price(self) -> Optional[float]:
        return float(self.prices.iloc[-1]) if len(self.prices) else None

    @property
    def sma_short_latest(self) -> Optional[float]:
        return self.sma_short[-1] if self.sma_short else None

    @property
    def sma_long_latest(self) -> Optional[float]:
        return self.sma_long[-1] if self.sma_long else None


class MetalTracker:
    """
    Polling and analysis orchestrator.

    Responsibilities:
    - Gate price feed requests through the price feed RateController
    - Append fresh quotes to history and cache them as last-known-good
    - Fall back to cached quotes when the feed is cooling down or failing
    - Build analysis snapshots (indicators, assessment, forecast)
    - Summarize the gold/silver market (ratio, volatility, trend)
    """

    def __init__(
        self,
        store: HistoryStore,
        feed: PriceFeed,
        session: SessionState,
        config: Optional[TrackerConfig] = None,
        adjustment_provider: Optional[AdjustmentProvider] = None,
    ):
        """
        Initialize tracker.

        Args:
            store: History store receiving fresh ticks
            feed: Price feed
            session: Initialized session state (quota states, cache)
            config: Tracker configuration (default: TrackerConfig())
            adjustment_provider: Optional source of forecast adjustments
        """
        self.store = store
        self.feed = feed
        self.session = session
        self.config = config or TrackerConfig()
        self.adjustment_provider = adjustment_provider

        self.price_controller: RateController = session.controller(
            PRICE_FEED_RESOURCE,
            interval_seconds=self.config.price_feed_interval_seconds,
            quota=self.config.price_feed_quota,
            window_seconds=self.config.quota_window_seconds,
        )
        self.commentary_controller: RateController = session.controller(
            COMMENTARY_RESOURCE,
            interval_seconds=self.config.commentary_interval_seconds,
            window_seconds=self.config.quota_window_seconds,
        )
        self.forecaster = LinearForecaster(
            horizon=self.config.forecast_horizon,
            window=self.config.forecast_window,
            band_multiplier=self.config.band_multiplier,
        )

    # Polling

    def cached_quote(self, instrument: Instrument) -> Optional[Quote]:
        """Last-known-good quote for an instrument, or None."""
        data = self.session.get_cached(instrument.value)
        if data is None:
            return None
        try:
            return Quote.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring malformed cached quote for {instrument.value}: {e}")
            return None

    def poll(self, instruments: Optional[Sequence[Instrument]] = None) -> Dict[Instrument, PollResult]:
        """
        Refresh quotes for the given instruments (default: configured ones).

        One admitted poll counts as one price feed request against the
        quota. Instruments without a cached quote force the request through.

        Returns:
            PollResult per instrument
        """
        instruments = [Instrument.parse(i) for i in (instruments or self.config.instruments)]
        cached = {i: self.cached_quote(i) for i in instruments}

        if not self.price_controller.admit(has_cached=all(q is not None for q in cached.values())):
            return {i: self._from_cache(i, cached[i], "cooldown") for i in instruments}

        self.price_controller.record_request()
        results = {}
        for instrument in instruments:
            try:
                quote = self.feed.fetch(instrument)
            except ExternalResourceUnavailable as e:
                logger.warning(f"{instrument.value}: feed unavailable ({e}), using cached quote")
                results[instrument] = self._from_cache(instrument, cached[instrument], str(e))
                continue

            try:
                self.store.append(quote.to_tick())
            except InvalidTick as e:
                logger.warning(f"{instrument.value}: rejected quote from {quote.source}: {e}")
                results[instrument] = self._from_cache(instrument, cached[instrument], str(e))
                continue

            self.session.set_cached(instrument.value, quote.to_dict())
            logger.info(f"{instrument.value}: {quote.price:.4f} USD/g from {quote.source or self.feed.name}")
            results[instrument] = PollResult(instrument=instrument, status=PollStatus.FRESH, quote=quote)
        return results

    def _from_cache(self, instrument: Instrument, quote: Optional[Quote], reason: str) -> PollResult:
        if quote is None:
            logger.error(f"{instrument.value}: no quote available ({reason})")
            return PollResult(instrument=instrument, status=PollStatus.UNAVAILABLE, message=reason)
        return PollResult(instrument=instrument, status=PollStatus.CACHED, quote=quote, message=reason)

    def reset_quota_windows(self) -> List[str]:
        """
        Reset request counters whose quota window has elapsed.

        Returns:
            Resources that were reset
        """
        reset = []
        for controller in (self.price_controller, self.commentary_controller):
            if controller.window_due():
                controller.reset_window()
                reset.append(controller.resource)
        return reset

    def tick(self) -> Dict[Instrument, PollResult]:
        """One scheduler cycle: roll over quota windows, then poll."""
        self.reset_quota_windows()
        return self.poll()

    # Analysis

    def _adjustment_for(self, instrument: Instrument, prices: pd.Series) -> Optional[List[float]]:
        """Adjustment from the provider when its controller admits, else the cached one."""
        if self.adjustment_provider is None:
            return None

        horizon = self.config.forecast_horizon
        key = ADJUSTMENT_CACHE_PREFIX + instrument.value
        cached = validate_adjustment(self.session.get_cached(key), horizon)
        if not self.commentary_controller.admit(has_cached=cached is not None):
            return cached

        self.commentary_controller.record_request()
        training = prices.to_numpy(dtype=float)[-self.config.forecast_window:].tolist()
        try:
            raw = self.adjustment_provider(training, horizon)
            if isinstance(raw, str):
                raw = parse_adjustment_text(raw, horizon)
            values = validate_adjustment(raw, horizon)
        except Exception as e:
            logger.warning(f"{instrument.value}: adjustment provider failed: {e}")
            return cached
        if values is None:
            logger.warning(f"{instrument.value}: adjustment provider returned no usable values")
            return cached

        self.session.set_cached(key, values)
        return values

    def analyze(self, instrument: Instrument, window: WindowLike = TimeWindow.ALL) -> AnalysisSnapshot:
        """
        Build the analysis snapshot for an instrument.

        Args:
            instrument: Instrument to analyze
            window: Lookback window of the history to use

        Returns:
            AnalysisSnapshot with status "collecting" while fewer than
            ``min_analysis_points`` prices exist
        """
        instrument = Instrument.parse(instrument)
        cfg = self.config
        prices = self.store.prices(instrument, window)
        label = window.value if isinstance(window, TimeWindow) else str(window or TimeWindow.ALL.value)

        status = "ready" if len(prices) >= cfg.min_analysis_points else "collecting"
        snapshot = AnalysisSnapshot(
            instrument=instrument,
            window=label,
            status=status,
            required_points=cfg.min_analysis_points,
            prices=prices,
        )
        if len(prices) == 0:
            logger.info(f"{instrument.value}: collecting data, no prices yet")
            return snapshot

        snapshot.sma_short = sma(prices, cfg.sma_short_period)
        snapshot.sma_long = sma(prices, cfg.sma_long_period)
        snapshot.rsi = rsi(prices, cfg.rsi_period)
        snapshot.rsi_series = rsi_series(prices, cfg.rsi_period)
        snapshot.period = analyze_period(prices.tolist(), label)
        snapshot.windows = summarize_windows(self.store, instrument)
        snapshot.change_pct = period_change(prices.tolist(), RECENT_POINTS)
        latest = self.store.latest(instrument)
        snapshot.near_high = is_near_high(latest.price, latest.high_price)

        if len(prices) >= cfg.min_forecast_points:
            adjustment = self._adjustment_for(instrument, prices)
            snapshot.forecast = self.forecaster.forecast(prices, adjustment=adjustment)

        if snapshot.ready:
            snapshot.assessment = assess_technicals(
                snapshot.sma_short_latest,
                snapshot.sma_long_latest,
                snapshot.rsi,
                oversold=cfg.rsi_oversold,
                overbought=cfg.rsi_overbought,
            )
        else:
            logger.info(f"{instrument.value}: collecting data ({len(prices)}/{cfg.min_analysis_points} points)")

        return snapshot

    def market_overview(self) -> Optional[MarketStats]:
        """
        Gold/silver ratio, volatility and market trend from the latest ticks.

        Returns:
            MarketStats, or None until both gold and silver have a price
        """
        gold = self.store.latest(Instrument.GOLD)
        silver = self.store.latest(Instrument.SILVER)
        if gold is None or silver is None:
            return None
        return market_stats(
            gold.price,
            silver.price,
            self.store.prices(Instrument.GOLD).tolist()[-RECENT_POINTS:],
            self.store.prices(Instrument.SILVER).tolist()[-RECENT_POINTS:],
            gold_change_pct=gold.change_pct,
            silver_change_pct=silver.change_pct,
        )

    def export_csv(self) -> str:
        """CSV of the full tick log."""
        return export_csv(self.store.query())
