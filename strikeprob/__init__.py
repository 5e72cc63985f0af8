"""
Strike Probability Simulation Library

A Monte Carlo engine estimating the probability that an asset finishes above
or below a strike at expiry, using Geometric Brownian Motion (GBM) for price
dynamics.
"""

from .exceptions import InvalidParameterError
from .gbm import SimulationRequest, simulate_one_path
from .simulation import PathEnsembleRunner, SimulationResult, aggregate, simulate
from .variates import BoxMullerSource, NormalSource
from .volatility import Regime, classify_regime, estimate_volatility

__all__ = [
    "InvalidParameterError",
    "SimulationRequest",
    "simulate_one_path",
    "PathEnsembleRunner",
    "SimulationResult",
    "aggregate",
    "simulate",
    "BoxMullerSource",
    "NormalSource",
    "Regime",
    "classify_regime",
    "estimate_volatility",
]
