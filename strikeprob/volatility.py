"""
Volatility estimation from a price feed and volatility regime classification.
"""

import logging
from enum import Enum
from typing import Iterable

import numpy as np

from .exceptions import InvalidParameterError
from .gbm import SECONDS_PER_YEAR

logger = logging.getLogger(__name__)

DEFAULT_VOLATILITY = 0.40
REGIME_THRESHOLDS = (0.30, 0.60)  # R1 | R2 | R3 boundaries, lower-inclusive


class Regime(Enum):
    """Coarse volatility level."""

    R1 = "R1"
    R2 = "R2"
    R3 = "R3"

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_DESCRIPTIONS = {
    Regime.R1: "low volatility",
    Regime.R2: "medium volatility",
    Regime.R3: "high volatility",
}

# Volatility the monitor simulates with once a regime is known
REGIME_VOLATILITY = {
    Regime.R1: 0.25,
    Regime.R2: DEFAULT_VOLATILITY,
    Regime.R3: 0.65,
}


def estimate_volatility(
    prices: Iterable[float],
    sampling_interval_seconds: float = 1.0,
) -> float:
    """
    Annualized volatility of log returns from a price series.

    Returns are taken between consecutive positive prices; pairs involving a
    non-positive price are skipped. The population standard deviation of the
    returns is scaled by sqrt(periods per year), where a period is the
    sampling interval of the feed. Fewer than two prices, no usable returns or
    zero dispersion fall back to DEFAULT_VOLATILITY.

    Args:
        prices: Price observations, most recent last
        sampling_interval_seconds: Seconds between observations

    Returns:
        Annualized volatility, e.g. 0.40 = 40%
    """
    if sampling_interval_seconds <= 0:
        raise InvalidParameterError("Sampling interval must be positive")

    prices = np.asarray(list(prices), dtype=float)
    if prices.size < 2:
        logger.debug("Volatility: %d observations, using default", prices.size)
        return DEFAULT_VOLATILITY

    previous = prices[:-1]
    current = prices[1:]
    usable = (previous > 0) & (current > 0)
    returns = np.log(current[usable] / previous[usable])

    if returns.size == 0:
        logger.debug("Volatility: no usable returns, using default")
        return DEFAULT_VOLATILITY

    std_dev = float(np.std(returns))
    if std_dev == 0.0:
        logger.debug("Volatility: zero dispersion in returns, using default")
        return DEFAULT_VOLATILITY

    periods_per_year = SECONDS_PER_YEAR / sampling_interval_seconds
    return std_dev * float(np.sqrt(periods_per_year))


def classify_regime(annualized_vol: float) -> Regime:
    """
    Map an annualized volatility to a regime.

    vol < 0.30 -> R1, 0.30 <= vol < 0.60 -> R2, vol >= 0.60 -> R3
    """
    low, high = REGIME_THRESHOLDS
    if annualized_vol < low:
        return Regime.R1
    if annualized_vol < high:
        return Regime.R2
    return Regime.R3


def regime_volatility(regime: Regime) -> float:
    """Representative volatility to simulate with for a regime."""
    return REGIME_VOLATILITY[regime]
