"""
Monte Carlo ensemble runner and aggregation for strike probabilities.

Estimates the probability that the price finishes strictly above a strike at
expiry by simulating many independent GBM paths and counting terminal prices:

    P(S(T) > K) ≈ #{p : S_p(T) > K} / N

A terminal price equal to the strike counts as "below".
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .exceptions import InvalidParameterError
from .gbm import (
    DEFAULT_PATH_COUNT,
    DEFAULT_STEP_COUNT,
    SimulationRequest,
    simulate_one_path,
)
from .variates import BoxMullerSource, NormalSource, SeedLike

logger = logging.getLogger(__name__)


@dataclass
class SimulationResult:
    """Result of a path ensemble run."""

    paths: np.ndarray  # Shape (n_paths, steps + 1), read-only
    mean_path: np.ndarray  # Cross-path mean price at each step
    prob_above: float  # Fraction of terminal prices > strike
    prob_below: float  # 1 - prob_above
    final_prices: np.ndarray  # Terminal price of each path
    steps: int

    @property
    def n_paths(self) -> int:
        return int(self.paths.shape[0])

    @property
    def std_error(self) -> float:
        """Binomial standard error of prob_above."""
        p = self.prob_above
        return float(np.sqrt(p * (1.0 - p) / self.n_paths))

    @property
    def confidence_interval_95(self) -> tuple[float, float]:
        half_width = 1.96 * self.std_error
        return (
            max(0.0, self.prob_above - half_width),
            min(1.0, self.prob_above + half_width),
        )

    def __str__(self) -> str:
        ci_lower, ci_upper = self.confidence_interval_95
        return (
            f"P(above): {self.prob_above:.4f} "
            f"P(below): {self.prob_below:.4f} "
            f"(SE: {self.std_error:.4f}, "
            f"95% CI: [{ci_lower:.4f}, {ci_upper:.4f}], "
            f"{self.n_paths} paths x {self.steps} steps)"
        )


def make_blocks(n: int, block_size: int = 250) -> list[tuple[int, int]]:
    """
    Partition path indices [0, n) into half-open blocks (i, j).

    >>> make_blocks(5, block_size=2)
    [(0, 2), (2, 4), (4, 5)]
    """
    blocks = []
    i = 0
    while i < n:
        j = min(i + block_size, n)
        blocks.append((i, j))
        i = j
    return blocks


def aggregate(
    paths: np.ndarray,
    final_prices: np.ndarray,
    strike: float,
) -> tuple[np.ndarray, float, float]:
    """
    Reduce an ensemble of paths to its mean path and strike probabilities.

    Args:
        paths: Price paths with shape (n_paths, n_steps + 1)
        final_prices: Terminal prices with shape (n_paths,)
        strike: Strike price K

    Returns:
        (mean_path, prob_above, prob_below). prob_above uses a strict
        comparison and prob_below is its complement, so they sum to 1.
    """
    paths = np.asarray(paths, dtype=float)
    final_prices = np.asarray(final_prices, dtype=float)

    if paths.ndim != 2 or paths.shape[0] == 0:
        raise InvalidParameterError("Paths must be a non-empty 2-D array")
    if final_prices.shape != (paths.shape[0],):
        raise InvalidParameterError("Need exactly one final price per path")

    # Average deviations from the first path so constant columns stay exact
    mean_path = paths[0] + (paths - paths[0]).mean(axis=0)

    above = int(np.count_nonzero(final_prices > strike))
    prob_above = above / final_prices.shape[0]

    return mean_path, prob_above, 1.0 - prob_above


class PathEnsembleRunner:
    """
    Runs N independent GBM paths for a request and aggregates them.

    Paths are stored in one contiguous (path_count, step_count + 1) array.
    With n_workers > 1 the paths are split into fixed blocks, each block gets
    its own stream spawned from the source, and blocks run on a thread pool.
    Each path is a short Python-level call that holds the GIL for most of its
    work, so expect a modest speedup from threads at best. Block layout
    depends only on block_size, so a seeded run gives the same paths for any
    worker count.
    """

    def __init__(
        self,
        source: Optional[NormalSource] = None,
        n_workers: int = 1,
        block_size: int = 250,
    ):
        """
        Initialize the runner.

        Args:
            source: Normal variate source (default: unseeded BoxMullerSource)
            n_workers: Number of worker threads for path generation
            block_size: Paths per independent stream in parallel mode
        """
        if n_workers <= 0:
            raise InvalidParameterError("Worker count must be positive")
        if block_size <= 0:
            raise InvalidParameterError("Block size must be positive")

        self.source = source if source is not None else BoxMullerSource()
        self.n_workers = n_workers
        self.block_size = block_size

    def run(self, request: SimulationRequest) -> SimulationResult:
        """
        Simulate and aggregate all paths for a request.

        Args:
            request: Validated simulation inputs

        Returns:
            SimulationResult with read-only paths
        """
        paths = np.empty((request.path_count, request.step_count + 1))

        if self.n_workers > 1:
            self._run_parallel(request, paths)
        else:
            self._fill(request, paths, 0, request.path_count, self.source)

        paths.flags.writeable = False
        final_prices = paths[:, -1].copy()

        mean_path, prob_above, prob_below = aggregate(
            paths, final_prices, request.strike
        )

        logger.debug(
            "Simulated %d paths x %d steps over %.3e years: P(above %.2f) = %.4f",
            request.path_count,
            request.step_count,
            request.years,
            request.strike,
            prob_above,
        )

        return SimulationResult(
            paths=paths,
            mean_path=mean_path,
            prob_above=prob_above,
            prob_below=prob_below,
            final_prices=final_prices,
            steps=request.step_count,
        )

    @staticmethod
    def _fill(
        request: SimulationRequest,
        paths: np.ndarray,
        start: int,
        stop: int,
        source: NormalSource,
    ) -> None:
        years = request.years
        for p in range(start, stop):
            simulate_one_path(
                request.spot,
                request.annualized_vol,
                years,
                request.step_count,
                request.drift,
                source,
                out=paths[p],
            )

    def _run_parallel(self, request: SimulationRequest, paths: np.ndarray) -> None:
        blocks = make_blocks(request.path_count, self.block_size)
        streams = self.source.spawn(len(blocks))

        logger.debug(
            "Generating %d blocks on %d worker threads", len(blocks), self.n_workers
        )

        with ThreadPoolExecutor(max_workers=self.n_workers) as executor:
            futures = [
                executor.submit(self._fill, request, paths, i, j, stream)
                for (i, j), stream in zip(blocks, streams)
            ]
            for future in as_completed(futures):
                future.result()


def simulate(
    spot: float,
    annualized_vol: float,
    time_to_expiry_seconds: float,
    strike: float,
    path_count: int = DEFAULT_PATH_COUNT,
    step_count: int = DEFAULT_STEP_COUNT,
    drift: float = 0.0,
    seed: SeedLike = None,
    source: Optional[NormalSource] = None,
    n_workers: int = 1,
) -> SimulationResult:
    """
    Estimate the probability of finishing above or below a strike at expiry.

    Args:
        spot: Current price
        annualized_vol: Annualized volatility (e.g. 0.40 = 40%)
        time_to_expiry_seconds: Seconds until expiry, floored at one minute
        strike: Strike price for the binary outcome
        path_count: Number of simulation paths (default 1000)
        step_count: Number of time steps per path (default 60)
        drift: Annualized drift μ (default 0 for risk-neutral)
        seed: Seed for the default Box-Muller source, ignored if source is given
        source: Explicit normal variate source
        n_workers: Worker threads for path generation

    Returns:
        SimulationResult

    Raises:
        InvalidParameterError: On non-positive spot, strike, path or step
            count, or negative volatility
    """
    request = SimulationRequest(
        spot=spot,
        annualized_vol=annualized_vol,
        time_to_expiry_seconds=time_to_expiry_seconds,
        strike=strike,
        path_count=path_count,
        step_count=step_count,
        drift=drift,
    )
    if source is None:
        source = BoxMullerSource(seed)

    return PathEnsembleRunner(source, n_workers=n_workers).run(request)


def analytical_prob_above(
    spot: float,
    annualized_vol: float,
    years: float,
    strike: float,
    drift: float = 0.0,
) -> float:
    """
    Closed-form GBM probability that S(T) > K.

    P(S(T) > K) = N(d2),  d2 = (ln(S/K) + (μ - σ²/2)T) / (σ√T)

    Useful for validating Monte Carlo results.
    """
    from scipy.stats import norm

    if annualized_vol == 0:
        return 1.0 if spot * np.exp(drift * years) > strike else 0.0

    d2 = (np.log(spot / strike) + (drift - 0.5 * annualized_vol**2) * years) / (
        annualized_vol * np.sqrt(years)
    )
    return float(norm.cdf(d2))
