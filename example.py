#!/usr/bin/env python3
"""
Example usage of the strike probability library.

Reproduces one refresh of a trading monitor: take the spot price, the strike
and expiry of the active contract, pick a volatility from the regime, then
estimate the probability of finishing above the strike and compare it with
the closed-form GBM value.
"""

import logging

import numpy as np

from strikeprob import (
    BoxMullerSource,
    classify_regime,
    estimate_volatility,
    simulate,
)
from strikeprob.gbm import years_to_expiry
from strikeprob.simulation import analytical_prob_above
from strikeprob.volatility import DEFAULT_VOLATILITY, regime_volatility


def main():
    logging.basicConfig(
        level=logging.DEBUG, format="%(asctime)s - %(levelname)s - %(message)s"
    )

    # Market state
    spot = 95000.0  # Current BTC price
    strike = spot * 1.001  # Contract floor strike
    time_to_expiry = 10 * 60  # Seconds until the contract closes

    print("=" * 60)
    print("Strike Probability Monte Carlo")
    print("=" * 60)
    print(f"\nMarket State:")
    print(f"  Spot price:       ${spot:,.2f}")
    print(f"  Strike price:     ${strike:,.2f}")
    print(f"  Time to expiry:   {time_to_expiry / 60:.0f} minutes")

    # Volatility from the regime of the default estimate
    regime = classify_regime(DEFAULT_VOLATILITY)
    vol = regime_volatility(regime)

    print("\n" + "-" * 60)
    print("Volatility Regime")
    print("-" * 60)
    print(f"  Regime:     {regime.value} ({regime.description})")
    print(f"  Volatility: {vol:.1%}")

    # Simulate
    print("\n" + "-" * 60)
    print("Simulation")
    print("-" * 60)

    result = simulate(spot, vol, time_to_expiry, strike, seed=42)
    closed_form = analytical_prob_above(spot, vol, years_to_expiry(time_to_expiry), strike)

    print(f"  Monte Carlo:  {result}")
    print(f"  Closed form:  P(above): {closed_form:.4f}")
    print(f"  Difference:   {abs(result.prob_above - closed_form):.4f}")
    print(f"  Mean path:    {result.mean_path[::10].round(2)}")

    # Parallel generation with the pair-caching source
    parallel = simulate(
        spot, vol, time_to_expiry, strike,
        path_count=20_000,
        source=BoxMullerSource(seed=42, cache_pair=True),
        n_workers=4,
    )
    print(f"\n  20k paths, 4 workers: {parallel}")

    # Volatility from a one-second price feed
    print("\n" + "-" * 60)
    print("Volatility Estimate From Price Feed")
    print("-" * 60)

    feed = result.paths[0]
    estimate = estimate_volatility(feed, sampling_interval_seconds=10)
    print(f"  Feed of {len(feed)} prices sampled every 10s")
    print(f"  Estimated volatility: {estimate:.1%} -> {classify_regime(estimate).value}")
    print(f"  Short feed fallback:  {estimate_volatility(np.array([spot])):.1%}")

    print("\n" + "=" * 60)
    print("Simulation complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
