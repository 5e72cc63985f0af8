"""
Geometric Brownian Motion (GBM) path simulation for short-dated expiries.

The GBM model assumes prices follow:
    dS = μS dt + σS dW

and each step uses the exact transition over an interval dt:
    S(t+dt) = S(t) * exp((μ - σ²/2)dt + σ√dt * Z),    Z ~ N(0, 1)

where:
    S = asset price
    μ = drift (annualized)
    σ = volatility (annualized)
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .exceptions import InvalidParameterError
from .variates import NormalSource

logger = logging.getLogger(__name__)

SECONDS_PER_YEAR = 365 * 24 * 3600
MIN_YEARS = 1 / (365 * 24 * 60)  # One simulated minute

DEFAULT_PATH_COUNT = 1000
DEFAULT_STEP_COUNT = 60


def years_to_expiry(time_to_expiry_seconds: float) -> float:
    """
    Convert seconds to expiry into a simulation horizon in years.

    The horizon is floored at one minute so an imminent or already passed
    expiry still produces a non-degenerate path.
    """
    years = time_to_expiry_seconds / SECONDS_PER_YEAR
    if years < MIN_YEARS:
        logger.debug(
            "Expiry in %.1fs is below the one-minute floor, simulating one minute",
            time_to_expiry_seconds,
        )
        return MIN_YEARS
    return years


def time_grid(years: float, step_count: int) -> np.ndarray:
    """
    Get the time grid for path simulation.

    Args:
        years: Total time horizon (in years)
        step_count: Number of time steps

    Returns:
        Array of time points with shape (step_count + 1,)
    """
    return np.linspace(0, years, step_count + 1)


@dataclass(frozen=True)
class SimulationRequest:
    """Inputs for one ensemble of GBM paths."""

    spot: float  # Current price S(0)
    annualized_vol: float  # Volatility, e.g. 0.40 = 40%
    time_to_expiry_seconds: float
    strike: float  # Threshold for the above/below outcome
    path_count: int = DEFAULT_PATH_COUNT
    step_count: int = DEFAULT_STEP_COUNT
    drift: float = 0.0  # Annualized drift μ, 0 for risk-neutral

    def __post_init__(self):
        if self.spot <= 0:
            raise InvalidParameterError("Spot price must be positive")
        if self.strike <= 0:
            raise InvalidParameterError("Strike price must be positive")
        if self.path_count <= 0:
            raise InvalidParameterError("Path count must be positive")
        if self.step_count <= 0:
            raise InvalidParameterError("Step count must be positive")
        if self.annualized_vol < 0:
            raise InvalidParameterError("Volatility cannot be negative")

    @property
    def years(self) -> float:
        """Simulation horizon in years, after the one-minute floor."""
        return years_to_expiry(self.time_to_expiry_seconds)

    @property
    def dt(self) -> float:
        return self.years / self.step_count

    def time_grid(self) -> np.ndarray:
        return time_grid(self.years, self.step_count)


def simulate_one_path(
    spot: float,
    annualized_vol: float,
    years: float,
    step_count: int,
    drift: float,
    rng: NormalSource,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Simulate a single GBM price path.

    Args:
        spot: Initial price S(0)
        annualized_vol: Volatility σ (annualized)
        years: Time horizon (in years)
        step_count: Number of time steps
        drift: Drift μ (annualized)
        rng: Source of standard normal draws, one per step
        out: Optional array of shape (step_count + 1,) to write the path into

    Returns:
        Array of prices with shape (step_count + 1,).
        First element is exactly spot, last is the terminal price.
    """
    if step_count <= 0:
        raise InvalidParameterError("Step count must be positive")
    if spot <= 0:
        raise InvalidParameterError("Spot price must be positive")
    if annualized_vol < 0:
        raise InvalidParameterError("Volatility cannot be negative")
    if years <= 0:
        raise InvalidParameterError("Time horizon must be positive")

    dt = years / step_count
    sqrt_dt = np.sqrt(dt)

    z = rng.normals(step_count)
    log_returns = (drift - 0.5 * annualized_vol**2) * dt + annualized_vol * sqrt_dt * z

    path = np.empty(step_count + 1) if out is None else out
    path[0] = spot
    path[1:] = spot * np.exp(np.cumsum(log_returns))

    return path
