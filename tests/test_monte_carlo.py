"""
Tests for monte_carlo.py: Box-Muller draws and price-path simulation.
"""

import numpy as np
import pytest

from quant_engine.analysis.monte_carlo import (
    SimulationPath,
    box_muller,
    run_monte_carlo,
)


class TestBoxMuller:
    def test_standard_normal_moments(self):
        z = box_muller(np.random.default_rng(0), 200_000)
        assert abs(z.mean()) < 0.02
        assert z.std() == pytest.approx(1.0, abs=0.02)

    def test_always_finite(self):
        z = box_muller(np.random.default_rng(1), 10_000)
        assert np.all(np.isfinite(z))


class TestRunMonteCarlo:
    def test_path_count_and_length(self):
        paths = run_monte_carlo(100.0, 0.01, steps=20, simulations=30, seed=1)
        assert len(paths) == 30
        assert all(isinstance(p, SimulationPath) for p in paths)
        assert all(len(p.path) == 21 for p in paths)

    def test_every_path_starts_at_start_price(self):
        for p in run_monte_carlo(2650.0, 0.02, steps=10, simulations=25, seed=2):
            assert p.path[0] == 2650.0

    def test_final_price_is_last_element(self):
        for p in run_monte_carlo(50.0, 0.05, steps=5, simulations=10, seed=3):
            assert p.final_price == p.path[-1]

    def test_uniform_probability(self):
        paths = run_monte_carlo(10.0, 0.01, steps=3, simulations=8, seed=4)
        assert all(p.probability == pytest.approx(1 / 8) for p in paths)
        assert sum(p.probability for p in paths) == pytest.approx(1.0)

    def test_ids_are_sequential(self):
        paths = run_monte_carlo(10.0, 0.01, steps=3, simulations=5, seed=5)
        assert [p.id for p in paths] == list(range(5))

    def test_zero_volatility_is_flat(self):
        for p in run_monte_carlo(75.0, 0.0, steps=12, simulations=4, seed=6):
            assert p.path == [75.0] * 13

    def test_zero_steps(self):
        paths = run_monte_carlo(75.0, 0.1, steps=0, simulations=3, seed=7)
        assert all(p.path == [75.0] and p.final_price == 75.0 for p in paths)

    def test_no_simulations(self):
        assert run_monte_carlo(75.0, 0.1, steps=5, simulations=0) == []

    def test_seed_is_reproducible(self):
        a = run_monte_carlo(100.0, 0.02, steps=15, simulations=10, seed=42)
        b = run_monte_carlo(100.0, 0.02, steps=15, simulations=10, seed=42)
        assert a == b

    def test_paths_are_independent(self):
        paths = run_monte_carlo(100.0, 0.02, steps=15, simulations=10, seed=8)
        finals = {round(p.final_price, 10) for p in paths}
        assert len(finals) == 10

    def test_step_update_rule(self):
        # Recompute one path from the same draws
        steps, sims, vol = 4, 3, 0.05
        paths = run_monte_carlo(100.0, vol, steps=steps, simulations=sims, seed=9)
        rng = np.random.default_rng(9)
        price = np.full(sims, 100.0)
        for j in range(1, steps + 1):
            price = price + price * (vol * box_muller(rng, sims))
            assert [p.path[j] for p in paths] == pytest.approx(price.tolist())
