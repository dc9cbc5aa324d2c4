"""
Tests for sizing.py: Kelly criterion and trade-plan payoff ratio.
"""

import pytest

from quant_engine.analysis.sizing import (
    kelly_criterion,
    kelly_suggestion,
    reward_risk_ratio,
)


class TestKellyCriterion:
    def test_even_odds_coin_flip_is_zero(self):
        assert kelly_criterion(0.5, 1.0) == 0.0

    @pytest.mark.parametrize("p", [0.0, 0.3, 0.5, 0.9, 1.0])
    def test_zero_ratio_is_zero(self, p):
        assert kelly_criterion(p, 0.0) == 0.0

    def test_negative_ratio_is_zero(self):
        assert kelly_criterion(0.9, -2.0) == 0.0

    def test_known_value(self):
        # 60% win rate at 2:1 payoff -> 0.6 - 0.4 / 2
        assert kelly_criterion(0.6, 2.0) == pytest.approx(0.4)

    def test_negative_edge_clamped(self):
        assert kelly_criterion(0.3, 1.0) == 0.0

    def test_certain_win_is_full_size(self):
        assert kelly_criterion(1.0, 1.5) == pytest.approx(1.0)

    def test_never_negative(self):
        for p in (0.0, 0.1, 0.25, 0.5, 0.75, 1.0):
            for r in (-1.0, 0.0, 0.1, 0.5, 1.0, 3.0):
                assert kelly_criterion(p, r) >= 0.0

    def test_non_finite_is_zero(self):
        assert kelly_criterion(float("nan"), 2.0) == 0.0
        assert kelly_criterion(0.6, float("inf")) == 0.0


class TestRewardRiskRatio:
    def test_long_plan(self):
        assert reward_risk_ratio(100.0, 95.0, 110.0) == pytest.approx(2.0)

    def test_short_plan(self):
        assert reward_risk_ratio(100.0, 104.0, 94.0) == pytest.approx(1.5)

    def test_zero_risk(self):
        assert reward_risk_ratio(100.0, 100.0, 120.0) == 0.0


class TestKellySuggestion:
    def test_default_win_prob(self):
        # 0.55 - 0.45 / 2
        assert kelly_suggestion(100.0, 95.0, 110.0) == pytest.approx(0.325)

    def test_zero_risk_plan_sizes_to_zero(self):
        assert kelly_suggestion(100.0, 100.0, 110.0) == 0.0

    def test_custom_win_prob(self):
        assert kelly_suggestion(100.0, 90.0, 110.0, win_prob=0.6) == pytest.approx(0.2)
