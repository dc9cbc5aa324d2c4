"""
Monte Carlo price-path simulation.

Each path is a multiplicative random walk: at every step a standard
normal ``z`` is drawn via the Box-Muller transform from two uniforms and
the price moves by ``price · volatility · z``.  Paths are independent and
equally weighted.

Usage:
    from quant_engine.analysis.monte_carlo import run_monte_carlo

    paths = run_monte_carlo(start_price=2650.0, volatility=0.01, steps=20,
                            simulations=50, seed=7)
    finals = [p.final_price for p in paths]

Run time grows with ``steps × simulations``; the computation context caps
``simulations`` before calling in here.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

logger = logging.getLogger("monte_carlo")

# Lower bound on the first uniform so log() stays finite
UNIFORM_FLOOR = 1e-6


@dataclass
class SimulationPath:
    id: int
    path: list[float] = field(default_factory=list)
    final_price: float = 0.0
    probability: float = 0.0


def box_muller(rng: np.random.Generator, size: int) -> np.ndarray:
    """Draw *size* standard normals from pairs of uniform draws."""
    u1 = np.maximum(rng.random(size), UNIFORM_FLOOR)
    u2 = rng.random(size)
    return np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * math.pi * u2)


def run_monte_carlo(
    start_price: float,
    volatility: float,
    steps: int = 20,
    simulations: int = 50,
    seed: Optional[int] = None,
) -> list[SimulationPath]:
    """Simulate *simulations* independent price paths of *steps* moves.

    Args:
        start_price: First element of every path.
        volatility: Per-step volatility fraction.
        steps: Moves per path; a path has ``steps + 1`` prices.
        simulations: Number of paths.
        seed: Random seed for reproducibility.

    Returns:
        One ``SimulationPath`` per simulation, each with probability
        ``1 / simulations``.  Empty when ``simulations`` is not positive.
    """
    if simulations <= 0:
        return []
    steps = max(int(steps), 0)

    logger.debug("monte_carlo: %d paths x %d steps", simulations, steps)
    rng = np.random.default_rng(seed)

    prices = np.empty((simulations, steps + 1), dtype=np.float64)
    prices[:, 0] = start_price
    for j in range(1, steps + 1):
        z = box_muller(rng, simulations)
        prices[:, j] = prices[:, j - 1] + prices[:, j - 1] * (volatility * z)

    weight = 1.0 / simulations
    return [
        SimulationPath(
            id=i,
            path=prices[i].tolist(),
            final_price=float(prices[i, -1]),
            probability=weight,
        )
        for i in range(simulations)
    ]
