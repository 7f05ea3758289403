"""
External forecast adjustments.

An adjustment is one percentage delta per forecast step (roughly -5..+5),
produced by an outside commentary service. Providers are optional: the
forecast engine ignores absent or malformed adjustments.
"""
import json
import logging
import math
import re
from numbers import Real
from typing import List, Optional, Protocol, Sequence

import numpy as np


logger = logging.getLogger(__name__)

# First bracketed list of numbers in free-form text, e.g. "Sure: [-1.2, 0.5, 1.8]"
_ARRAY_PATTERN = re.compile(r"\[[\d\s.,eE+-]+\]")


class AdjustmentProvider(Protocol):
    """Callable returning ``horizon`` percentage deltas for recent prices, or None."""

    def __call__(self, prices: Sequence[float], horizon: int) -> Optional[Sequence[float]]:
        ...


def validate_adjustment(values, horizon: int) -> Optional[List[float]]:
    """
    Return the adjustment as floats if it is usable, else None.

    Usable means: a sequence (not a string) of exactly ``horizon`` finite
    real numbers.
    """
    if values is None:
        return None
    if isinstance(values, (str, bytes)) or not isinstance(values, (Sequence, np.ndarray)):
        logger.debug(f"Ignoring adjustment of type {type(values).__name__}")
        return None
    if len(values) != horizon:
        logger.debug(f"Ignoring adjustment with {len(values)} values for horizon {horizon}")
        return None

    deltas = []
    for value in values:
        if isinstance(value, bool) or not isinstance(value, (Real, np.number)):
            logger.debug(f"Ignoring adjustment with non-numeric value {value!r}")
            return None
        value = float(value)
        if not math.isfinite(value):
            logger.debug("Ignoring adjustment with non-finite value")
            return None
        deltas.append(value)
    return deltas


def parse_adjustment_text(text: Optional[str], horizon: Optional[int] = None) -> Optional[List[float]]:
    """
    Extract the first numeric JSON array from provider output.

    Args:
        text: Free-form response text
        horizon: If given, the array must have exactly this many values

    Returns:
        List of floats, or None when no well-formed array is found
    """
    if not text:
        return None
    match = _ARRAY_PATTERN.search(text)
    if not match:
        return None
    try:
        values = json.loads(match.group(0))
    except ValueError:
        return None
    if not isinstance(values, list) or not values:
        return None
    if horizon is None:
        horizon = len(values)
    return validate_adjustment(values, horizon)
