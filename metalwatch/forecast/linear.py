"""
Linear-trend price forecast with heuristic confidence bands.

Fits ordinary least squares over the most recent window of prices
(x = 0..n-1) and extrapolates ``horizon`` steps. Bands are the prediction
plus/minus ``band_multiplier`` residual standard errors. The multiplier
(1.5 by default) is a fixed heuristic, NOT a calibrated 90%/95% interval.
"""
import logging
import math
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from ..shared.defaults import FORECAST_HORIZON, FORECAST_WINDOW, BAND_MULTIPLIER
from ..shared.errors import InvalidParameter
from ..shared.types import InsufficientData
from .adjustment import AdjustmentProvider, validate_adjustment


logger = logging.getLogger(__name__)

MIN_FORECAST_INPUT = 2


@dataclass
class ForecastResult:
    """Point forecasts and bands for steps 1..horizon, plus fit metadata."""
    predictions: List[float]
    upper_band: List[float]
    lower_band: List[float]
    slope: float
    intercept: float
    standard_error: float
    training_size: int
    band_multiplier: float
    adjusted: bool = False
    adjustment: List[float] = field(default_factory=list)

    @property
    def horizon(self) -> int:
        return len(self.predictions)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


def _positive_int(value: int, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value <= 0:
        raise InvalidParameter(f"{name} must be a positive integer, got {value!r}")
    return int(value)


def forecast(
    prices: Union[Sequence[float], np.ndarray, pd.Series],
    horizon: int = FORECAST_HORIZON,
    adjustment: Optional[Sequence[float]] = None,
    window: int = FORECAST_WINDOW,
    band_multiplier: float = BAND_MULTIPLIER,
) -> Union[ForecastResult, InsufficientData]:
    """
    Forecast the next ``horizon`` prices from a linear trend.

    Args:
        prices: Chronological prices (missing values are dropped)
        horizon: Number of future steps
        adjustment: Optional per-step percentage deltas, applied as
            ``prediction *= 1 + delta / 100`` before banding. Ignored unless
            it holds exactly ``horizon`` finite numbers.
        window: Most recent points used for the fit
        band_multiplier: Band half-width in standard errors

    Returns:
        ForecastResult, or InsufficientData when fewer than 2 prices exist

    Raises:
        InvalidParameter: On non-positive horizon/window or a negative multiplier
    """
    horizon = _positive_int(horizon, "horizon")
    window = _positive_int(window, "window")
    if not math.isfinite(band_multiplier) or band_multiplier < 0:
        raise InvalidParameter(f"band_multiplier must be >= 0, got {band_multiplier}")

    if isinstance(prices, pd.Series):
        values = prices.to_numpy(dtype=float)
    else:
        values = np.asarray(list(prices), dtype=float)
    values = values[~np.isnan(values)]
    if len(values) < MIN_FORECAST_INPUT:
        return InsufficientData(required=MIN_FORECAST_INPUT, available=len(values), reason="forecast")

    y = values[-min(window, len(values)):]
    n_train = len(y)
    x = np.arange(n_train, dtype=float)
    x_mean = x.mean()
    y_mean = y.mean()
    sxx = float(np.sum((x - x_mean) ** 2))

    if sxx == 0:
        # Single training point: no trend to fit
        last = float(y[-1])
        flat = [last] * horizon
        return ForecastResult(
            predictions=flat,
            upper_band=list(flat),
            lower_band=list(flat),
            slope=0.0,
            intercept=last,
            standard_error=0.0,
            training_size=n_train,
            band_multiplier=band_multiplier,
        )

    slope = float(np.sum((x - x_mean) * (y - y_mean)) / sxx)
    intercept = float(y_mean - slope * x_mean)

    residuals = y - (slope * x + intercept)
    standard_error = math.sqrt(float(np.sum(residuals ** 2)) / max(1, n_train - 2))

    deltas = validate_adjustment(adjustment, horizon)
    if adjustment is not None and deltas is None:
        logger.debug("Forecast adjustment rejected, using plain trend")

    margin = band_multiplier * standard_error
    predictions, upper, lower = [], [], []
    for h in range(1, horizon + 1):
        prediction = slope * (n_train + h - 1) + intercept
        if deltas is not None:
            prediction *= 1 + deltas[h - 1] / 100
        predictions.append(prediction)
        upper.append(prediction + margin)
        lower.append(prediction - margin)

    return ForecastResult(
        predictions=predictions,
        upper_band=upper,
        lower_band=lower,
        slope=slope,
        intercept=intercept,
        standard_error=standard_error,
        training_size=n_train,
        band_multiplier=band_multiplier,
        adjusted=deltas is not None,
        adjustment=deltas or [],
    )


class LinearForecaster:
    """Forecast engine bound to configured horizon, window and band width."""

    def __init__(
        self,
        horizon: int = FORECAST_HORIZON,
        window: int = FORECAST_WINDOW,
        band_multiplier: float = BAND_MULTIPLIER,
    ):
        self.horizon = _positive_int(horizon, "horizon")
        self.window = _positive_int(window, "window")
        self.band_multiplier = band_multiplier

    def forecast(
        self,
        prices,
        adjustment: Optional[Sequence[float]] = None,
        horizon: Optional[int] = None,
    ) -> Union[ForecastResult, InsufficientData]:
        return forecast(
            prices,
            horizon=self.horizon if horizon is None else horizon,
            adjustment=adjustment,
            window=self.window,
            band_multiplier=self.band_multiplier,
        )

    def forecast_with_provider(
        self,
        prices,
        provider: Optional[AdjustmentProvider],
        horizon: Optional[int] = None,
    ) -> Union[ForecastResult, InsufficientData]:
        """
        Forecast, asking ``provider`` for an adjustment first.

        A provider that raises or returns garbage yields the plain forecast.
        """
        horizon = self.horizon if horizon is None else _positive_int(horizon, "horizon")
        adjustment = None
        if provider is not None:
            training = list(prices)[-self.window:]
            try:
                adjustment = provider(training, horizon)
            except Exception as e:
                logger.warning(f"Forecast adjustment provider failed, using plain trend: {e}")
        return self.forecast(prices, adjustment=adjustment, horizon=horizon)
